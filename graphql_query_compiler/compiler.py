"""
Query compiler.

Extracts operations and fragments from all documents, validates them and
collocates every operation with exactly the fragments it requires. Fragments
have global scope and can be used by any operation or fragment in any file.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from graphql import DocumentNode, GraphQLError, GraphQLSchema, print_ast

from . import parser, utils
from .definitions import Definition, Fragment, Operation, SourceDocument, collect_definitions
from .errors import AddError, schema_validation_error
from .locations import Location, loc_in_graphql_to_loc_in_file
from .resolver import DEFAULT_SUGGESTION_MAX_DISTANCE, FragmentResolver

logger = logging.getLogger(__name__)

DEFAULT_STATIC_QUERY_PREFIX = "sq--"


@dataclass(frozen=True)
class CompiledQuery:
    """The minimal, validated query compiled for one file."""

    name: str
    text: str
    original_text: str
    path: str
    is_hook: bool
    is_static_query: bool
    hash: str
    id: Optional[str] = None

    def to_dict(self) -> dict:
        out = {
            "name": self.name,
            "text": self.text,
            "originalText": self.original_text,
            "path": self.path,
            "isHook": self.is_hook,
            "isStaticQuery": self.is_static_query,
            "hash": self.hash,
        }
        if self.is_static_query:
            out["id"] = self.id
        return out


def static_query_id(path: str, project_root: str, prefix: str = DEFAULT_STATIC_QUERY_PREFIX) -> str:
    """Stable identifier of a static query, derived from its file's project-relative path."""
    return prefix + utils.kebab_case(utils.relative_posix_path(path, project_root))


def assemble_document(operation: Operation, fragments: list[Fragment]) -> DocumentNode:
    """Minimal document: the required fragments followed by the operation."""
    return DocumentNode(definitions=tuple([f.node for f in fragments] + [operation.node]))


def locate_error(
    error: GraphQLError, operation: Operation, fragments: list[Fragment]
) -> tuple[Optional[Location], Optional[str]]:
    """
    Position of a validation error of an assembled document, in original-file terms.

    The error's coordinates are relative to the text the offending node was
    parsed from, so they are translated with the template of the definition
    that owns that text.

    Returns:
        (location, path of the file the location refers to)
    """
    if not error.locations:
        return None, None

    owner: Definition = operation
    node = error.nodes[0] if error.nodes else None
    source = node.loc.source if node is not None and node.loc else None
    if source is not None:
        for definition in [operation, *fragments]:
            if definition.node.loc and definition.node.loc.source is source:
                owner = definition
                break

    return loc_in_graphql_to_loc_in_file(owner.template, error.locations[0]), owner.file_path


def build_query(
    operation: Operation,
    document: DocumentNode,
    project_root: str,
    static_query_prefix: str = DEFAULT_STATIC_QUERY_PREFIX,
) -> CompiledQuery:
    """
    Build the compiled record of a validated operation.

    Args:
        operation: Operation that survived full validation
        document: Its minimal document
        project_root: Root that static query ids are relative to
        static_query_prefix: Marker prepended to static query ids

    Returns:
        CompiledQuery
    """
    return CompiledQuery(
        name=operation.name,
        text=print_ast(document),
        original_text=operation.original_text,
        path=operation.file_path,
        is_hook=operation.is_hook,
        is_static_query=operation.is_static_query,
        hash=operation.hash,
        id=(
            static_query_id(operation.file_path, project_root, static_query_prefix)
            if operation.is_static_query
            else None
        ),
    )


def process_queries(
    schema: GraphQLSchema,
    parsed_queries: Mapping[str, Union[SourceDocument, DocumentNode]],
    add_error: AddError,
    project_root: Optional[str] = None,
    static_query_prefix: str = DEFAULT_STATIC_QUERY_PREFIX,
    suggestion_max_distance: int = DEFAULT_SUGGESTION_MAX_DISTANCE,
) -> dict[str, CompiledQuery]:
    """
    Run one compile pass.

    Never raises for problems in the input: every failure is reported through
    ``add_error`` and only the affected document or operation is dropped.

    Args:
        schema: GraphQL schema
        parsed_queries: File path -> parsed document, in a stable order
        add_error: Error sink, called once per CompileError
        project_root: Root that static query ids are relative to (default: cwd)
        static_query_prefix: Marker prepended to static query ids
        suggestion_max_distance: Edit distance cap for "did you mean" fragment names

    Returns:
        File path -> CompiledQuery, for files whose operation compiled cleanly
    """
    project_root = project_root or os.getcwd()

    table = collect_definitions(schema, parsed_queries, add_error)
    resolver = FragmentResolver(table, suggestion_max_distance=suggestion_max_distance)

    compiled: dict[str, CompiledQuery] = {}
    for resolution in resolver.resolve_operations(add_error):
        operation = resolution.operation
        fragments = resolver.fragments_for(resolution)
        document = assemble_document(operation, fragments)

        errors = parser.validate_full(schema, document)
        if errors:
            for error in errors:
                location, location_path = locate_error(error, operation, fragments)
                add_error(schema_validation_error(error, operation, location, location_path))
            logger.info(
                "Dropped %s in %s: %d schema validation error(s)", operation.name, operation.file_path, len(errors)
            )
            continue

        compiled[operation.file_path] = build_query(operation, document, project_root, static_query_prefix)

    # A file with several operations compiles to nothing, not to whichever came first
    for file_path in resolver.conflicted_paths:
        compiled.pop(file_path, None)

    logger.info("Compiled %d of %d document(s)", len(compiled), len(parsed_queries))
    return compiled
