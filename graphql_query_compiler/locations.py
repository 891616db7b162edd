"""Translation of GraphQL coordinates into original source file coordinates."""

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Location:
    """A line/column position in an original source file."""

    line: int
    column: int

    def to_dict(self) -> dict:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class Span:
    """A start (and optional end) position in an original source file."""

    start: Location
    end: Optional[Location] = None

    def to_dict(self) -> dict:
        out = {"start": self.start.to_dict()}
        if self.end is not None:
            out["end"] = self.end.to_dict()
        return out


AnyLocation = Union[Location, Span]


@dataclass(frozen=True)
class TemplateLocation:
    """
    Where an embedded GraphQL text starts inside its file.

    The default (line 1, column 0) describes a standalone .graphql file,
    for which translation is the identity.
    """

    line: int = 1
    column: int = 0


def loc_in_graphql_to_loc_in_file(template: TemplateLocation, graphql_location: Any) -> Location:
    """
    Translate a GraphQL-internal position into a position in the original file.

    Args:
        template: Start of the GraphQL text inside the file
        graphql_location: Anything with 1-based ``line`` and ``column`` attributes
            (e.g. graphql-core's SourceLocation)

    Returns:
        Location in original-file coordinates
    """
    line = graphql_location.line + template.line - 1
    # Only the first line of the template is offset by the template's column
    column = graphql_location.column + (template.column if graphql_location.line == 1 else 0)
    return Location(line=line, column=column)


def node_location(node: Any) -> Optional[Any]:
    """Get the GraphQL-internal SourceLocation of an AST node's start, if known."""
    if node is None or not getattr(node, "loc", None):
        return None
    return node.loc.source.get_location(node.loc.start)


def translate_node(template: TemplateLocation, node: Any) -> Optional[Location]:
    """Translate an AST node's start position into original-file coordinates."""
    graphql_location = node_location(node)
    if graphql_location is None:
        return None
    return loc_in_graphql_to_loc_in_file(template, graphql_location)
