"""Source documents, named definitions and the per-pass definition table."""

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterator, Literal, Mapping, Optional, Union

from graphql import DocumentNode, GraphQLSchema, parse, print_ast

from . import parser, utils
from .errors import AddError, duplicate_fragment_error, structural_validation_error
from .locations import Location, TemplateLocation, translate_node

logger = logging.getLogger(__name__)

DefinitionKind = Literal["operation", "fragment"]


@dataclass
class SourceDocument:
    """
    One parsed GraphQL document per file, as handed over by a document source.

    ``templates`` optionally gives one TemplateLocation per definition, for
    files whose GraphQL was assembled from several embedded templates; when
    omitted every definition starts at ``template``.
    """

    path: str
    document: DocumentNode
    template: TemplateLocation = field(default_factory=TemplateLocation)
    templates: Optional[tuple[TemplateLocation, ...]] = None
    is_hook: bool = False
    is_static_query: bool = False
    hash: Optional[str] = None

    def __post_init__(self):
        if self.hash is None:
            self.hash = utils.sha256(print_ast(self.document))

    @classmethod
    def from_text(cls, path: str, text: str, **kwargs) -> "SourceDocument":
        """Parse GraphQL text into a SourceDocument (raises GraphQLError on bad syntax)."""
        return cls(path=path, document=parse(text), **kwargs)

    @property
    def definitions(self) -> tuple:
        return tuple(self.document.definitions)

    def template_at(self, index: int) -> TemplateLocation:
        if self.templates and index < len(self.templates):
            return self.templates[index]
        return self.template

    def template_for_node(self, node: Any) -> TemplateLocation:
        """Template of the definition that was parsed from the same source text as ``node``."""
        source = node.loc.source if node is not None and getattr(node, "loc", None) else None
        if source is not None and self.templates:
            for index, definition in enumerate(self.definitions):
                if definition.loc and definition.loc.source is source:
                    return self.template_at(index)
        return self.template


def as_source_document(path: str, value: Union[SourceDocument, DocumentNode]) -> SourceDocument:
    """Accept either a SourceDocument or a bare DocumentNode for ``path``."""
    if isinstance(value, SourceDocument):
        return value
    return SourceDocument(path=path, document=value)


@dataclass
class Definition:
    """A named operation or fragment extracted from a SourceDocument."""

    kind: ClassVar[DefinitionKind]

    name: str
    node: Any
    text: str
    file_path: str
    template: TemplateLocation

    def locate(self, node: Any) -> Optional[Location]:
        """Position of ``node`` (inside this definition) in the original file."""
        return translate_node(self.template, node)

    @property
    def location(self) -> Optional[Location]:
        return self.locate(self.node.name or self.node)


@dataclass
class Operation(Definition):
    kind: ClassVar[DefinitionKind] = "operation"

    original_text: str = ""
    is_hook: bool = False
    is_static_query: bool = False
    hash: str = ""


@dataclass
class Fragment(Definition):
    kind: ClassVar[DefinitionKind] = "fragment"


def extract_definitions(file_path: str, source: SourceDocument) -> Iterator[Definition]:
    """Turn each executable definition node of a document into an Operation or Fragment."""
    for index, node in enumerate(source.definitions):
        template = source.template_at(index)
        if utils.is_operation(node):
            yield Operation(
                name=utils.definition_name(node),
                node=node,
                text=print_ast(node),
                file_path=file_path,
                template=template,
                # The text the operation was parsed from, before minimization
                original_text=node.loc.source.body if node.loc else print_ast(node),
                is_hook=source.is_hook,
                is_static_query=source.is_static_query,
                hash=source.hash,
            )
        elif utils.is_fragment(node):
            yield Fragment(
                name=utils.definition_name(node),
                node=node,
                text=print_ast(node),
                file_path=file_path,
                template=template,
            )
        else:
            logger.debug("Ignoring %s definition in %s", node.kind, file_path)


class DefinitionTable:
    """
    Fragments by global name, plus every operation in discovery order.

    Created fresh for each compile pass and only mutated while collecting.
    """

    def __init__(self):
        self.fragments: dict[str, Fragment] = {}
        self.operations: list[Operation] = []
        # Distinct bodies seen for each name that had a conflict; such names stay unusable
        self.conflicts: dict[str, list[Fragment]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self.fragments

    def get(self, name: str) -> Optional[Fragment]:
        return self.fragments.get(name)

    def fragment_names(self) -> list[str]:
        return list(self.fragments)

    def add_operation(self, operation: Operation) -> None:
        self.operations.append(operation)

    def add_fragment(self, fragment: Fragment, add_error: AddError) -> None:
        """
        Insert a fragment, resolving name collisions.

        Identical text is the same fragment reused across files and keeps the
        first definition. Differing text is a conflict: both bodies are
        reported and the name is removed so nobody can use either.

        Any later definition of a conflicted name disagrees with at least one
        body seen before, and is reported against the first such body.
        """
        name = fragment.name

        if name in self.conflicts:
            bodies = self.conflicts[name]
            other = next(body for body in bodies if body.text != fragment.text)
            add_error(duplicate_fragment_error(fragment, other))
            if all(body.text != fragment.text for body in bodies):
                bodies.append(fragment)
            return

        existing = self.fragments.get(name)
        if existing is None:
            self.fragments[name] = fragment
            return

        if fragment.text == existing.text:
            logger.debug(
                "Fragment %s in %s is identical to the one in %s", name, fragment.file_path, existing.file_path
            )
            return

        add_error(duplicate_fragment_error(fragment, existing))
        del self.fragments[name]
        self.conflicts[name] = [existing, fragment]


def collect_definitions(
    schema: GraphQLSchema,
    documents: Mapping[str, Union[SourceDocument, DocumentNode]],
    add_error: AddError,
) -> DefinitionTable:
    """
    Validate each document structurally and flatten the survivors into one table.

    Args:
        schema: GraphQL schema
        documents: File path -> document, in processing order
        add_error: Error sink

    Returns:
        DefinitionTable holding only unambiguous fragments and all operations
    """
    table = DefinitionTable()

    for file_path, value in documents.items():
        source = as_source_document(file_path, value)

        errors = parser.validate_structure(schema, source.document)
        if errors:
            for error in errors:
                node = error.nodes[0] if error.nodes else None
                add_error(structural_validation_error(error, file_path, source.template_for_node(node)))
            logger.info("Rejected %s: %d structural validation error(s)", file_path, len(errors))
            continue

        for definition in extract_definitions(file_path, source):
            if isinstance(definition, Operation):
                table.add_operation(definition)
            else:
                table.add_fragment(definition, add_error)

    logger.debug(
        "Collected %d operation(s) and %d fragment(s)", len(table.operations), len(table.fragments)
    )
    return table
