"""Structured compile errors and the error sink."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional

from graphql import GraphQLError

from .locations import AnyLocation, Location, Span, TemplateLocation, loc_in_graphql_to_loc_in_file

logger = logging.getLogger(__name__)

ErrorKind = Literal[
    "structural-validation-failure",
    "duplicate-fragment",
    "unknown-fragment",
    "multiple-root-operations",
    "schema-validation-failure",
    "fragment-cycle",
    "graphql-syntax-error",
]

STRUCTURAL_VALIDATION_FAILURE: ErrorKind = "structural-validation-failure"
DUPLICATE_FRAGMENT: ErrorKind = "duplicate-fragment"
UNKNOWN_FRAGMENT: ErrorKind = "unknown-fragment"
MULTIPLE_ROOT_OPERATIONS: ErrorKind = "multiple-root-operations"
SCHEMA_VALIDATION_FAILURE: ErrorKind = "schema-validation-failure"
FRAGMENT_CYCLE: ErrorKind = "fragment-cycle"
GRAPHQL_SYNTAX_ERROR: ErrorKind = "graphql-syntax-error"


@dataclass
class CompileError:
    """One compile failure, located in the original source file."""

    kind: ErrorKind
    file_path: str
    message: str
    location: Optional[AnyLocation] = None
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        out = {"kind": self.kind, "filePath": self.file_path, "message": self.message}
        if self.location is not None:
            out["location"] = self.location.to_dict()
        out["context"] = self.context
        return out


AddError = Callable[[CompileError], None]


class ErrorCollector:
    """Append-only error sink; pass ``collector.add`` as the ``add_error`` callback."""

    def __init__(self):
        self.errors: list[CompileError] = []

    def add(self, error: CompileError) -> None:
        logger.debug("%s in %s: %s", error.kind, error.file_path, error.message)
        self.errors.append(error)

    def of_kind(self, kind: ErrorKind) -> list[CompileError]:
        return [e for e in self.errors if e.kind == kind]

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    def __bool__(self) -> bool:
        return bool(self.errors)


def _first_location(error: GraphQLError, template: TemplateLocation) -> Optional[Location]:
    if not error.locations:
        return None
    return loc_in_graphql_to_loc_in_file(template, error.locations[0])


def structural_validation_error(
    error: GraphQLError, file_path: str, template: TemplateLocation
) -> CompileError:
    """
    Convert a structural validation error into a compile error.

    Args:
        error: Error reported by a graphql-core validation rule
        file_path: File owning the rejected document
        template: Where the document's text starts inside the file

    Returns:
        structural-validation-failure error
    """
    start = _first_location(error, template)
    return CompileError(
        kind=STRUCTURAL_VALIDATION_FAILURE,
        file_path=file_path,
        message=error.message,
        location=Span(start=start) if start else None,
        context={"sourceMessage": error.message},
    )


def duplicate_fragment_error(left, right) -> CompileError:
    """
    Two differently-bodied fragments share a name.

    Args:
        left: The newly encountered Fragment
        right: The Fragment already in the table
    """
    return CompileError(
        kind=DUPLICATE_FRAGMENT,
        file_path=left.file_path,
        message=(
            f'Found two different GraphQL fragments with identical name "{left.name}". '
            "Fragment names must be unique"
        ),
        location=left.location,
        context={
            "fragmentName": left.name,
            "leftFragment": _fragment_context(left),
            "rightFragment": _fragment_context(right),
        },
    )


def _fragment_context(fragment) -> dict:
    location = fragment.location
    return {
        "filePath": fragment.file_path,
        "location": location.to_dict() if location else None,
        "text": fragment.text,
    }


def unknown_fragment_error(
    operation, spread, containing, closest_fragment: Optional[str]
) -> CompileError:
    """
    A spread references a fragment with no surviving definition.

    Args:
        operation: Operation being compiled (its file owns the error)
        spread: The FragmentSpreadNode that could not be resolved
        containing: Definition whose body holds the spread
        closest_fragment: Nearest known fragment name, if any
    """
    name = spread.name.value
    message = f'The fragment "{name}" does not exist.'
    if closest_fragment:
        message += f' Did you mean "{closest_fragment}"?'
    context = {
        "fragmentName": name,
        "closestFragment": closest_fragment,
        "operationName": operation.name,
    }
    if containing.file_path != operation.file_path:
        context["location_path"] = containing.file_path
    return CompileError(
        kind=UNKNOWN_FRAGMENT,
        file_path=operation.file_path,
        message=message,
        location=containing.locate(spread),
        context=context,
    )


def fragment_cycle_error(operation, spread, containing, path: list[str]) -> CompileError:
    """
    A fragment spreads itself, directly or through other fragments.

    Args:
        operation: Operation being compiled
        spread: The spread closing the cycle
        containing: Fragment whose body holds the spread
        path: Fragment names on the current traversal path, ending with the repeated one
    """
    name = spread.name.value
    context = {"fragmentName": name, "cycle": path, "operationName": operation.name}
    if containing.file_path != operation.file_path:
        context["location_path"] = containing.file_path
    return CompileError(
        kind=FRAGMENT_CYCLE,
        file_path=operation.file_path,
        message=f'Cannot spread fragment "{name}" within itself ({" -> ".join(path)}).',
        location=containing.locate(spread),
        context=context,
    )


def multiple_root_operations_error(operation, other) -> CompileError:
    """
    More than one operation maps to the same file.

    Args:
        operation: The rejected (later) operation
        other: The operation that claimed the file first
    """
    return CompileError(
        kind=MULTIPLE_ROOT_OPERATIONS,
        file_path=operation.file_path,
        message=(
            f'Multiple "root" queries found: "{operation.name}" and "{other.name}". '
            "Only one query per file is supported; combine them into a single query."
        ),
        location=operation.location,
        context={
            "name": operation.name,
            "otherName": other.name,
            "otherLocation": other.location.to_dict() if other.location else None,
        },
    )


def schema_validation_error(
    error: GraphQLError, operation, location: Optional[Location], location_path: Optional[str]
) -> CompileError:
    """
    The assembled document fails full schema validation.

    Args:
        error: graphql-core validation error
        operation: Operation whose minimal document failed
        location: Error position, already in original-file coordinates
        location_path: File the location refers to, when not the operation's file
    """
    context = {"sourceMessage": error.message, "operationName": operation.name}
    if location_path and location_path != operation.file_path:
        context["location_path"] = location_path
    return CompileError(
        kind=SCHEMA_VALIDATION_FAILURE,
        file_path=operation.file_path,
        message=error.message,
        location=location,
        context=context,
    )


def syntax_error(error: GraphQLError, file_path: str, template: TemplateLocation) -> CompileError:
    """A GraphQL text that could not be parsed."""
    return CompileError(
        kind=GRAPHQL_SYNTAX_ERROR,
        file_path=file_path,
        message=error.message,
        location=_first_location(error, template),
        context={"sourceMessage": error.message},
    )
