"""GraphQL parsing, schema building and validation."""

from typing import Union

from graphql import (
    DocumentNode,
    FragmentDefinitionNode,
    FragmentsOnCompositeTypesRule,
    GraphQLError,
    GraphQLSchema,
    KnownTypeNamesRule,
    LoneAnonymousOperationRule,
    PossibleFragmentSpreadsRule,
    ScalarLeafsRule,
    ValuesOfCorrectTypeRule,
    VariablesAreInputTypesRule,
    VariablesInAllowedPositionRule,
    build_client_schema,
    parse,
    validate,
)
from graphql import build_schema as build_schema_from_sdl

# Rules that hold for a document in isolation, without knowing fragments defined elsewhere
STRUCTURAL_RULES = [
    LoneAnonymousOperationRule,
    KnownTypeNamesRule,
    FragmentsOnCompositeTypesRule,
    VariablesAreInputTypesRule,
    ScalarLeafsRule,
    PossibleFragmentSpreadsRule,
    ValuesOfCorrectTypeRule,
    VariablesInAllowedPositionRule,
]


def build_schema(schema: Union[dict, str]) -> GraphQLSchema:
    """
    Build GraphQL schema from introspection JSON or SDL.

    Args:
        schema: Introspection result, either {"__schema": {...}} or {"data": {"__schema": {...}}},
            or schema definition language text

    Returns:
        GraphQLSchema object
    """
    if isinstance(schema, str):
        return build_schema_from_sdl(schema)

    # Handle both formats
    if "__schema" in schema:
        data = schema
    elif "data" in schema and "__schema" in schema["data"]:
        data = schema["data"]
    else:
        data = schema

    return build_client_schema(data)


def parse_document(source: str) -> DocumentNode:
    """
    Parse GraphQL text into AST.

    Args:
        source: GraphQL text

    Returns:
        DocumentNode AST

    Raises:
        GraphQLError: If the text is syntactically invalid
    """
    return parse(source)


def validate_structure(schema: GraphQLSchema, doc: DocumentNode) -> list[GraphQLError]:
    """
    Validate a single document with the fragment-independent rule subset.

    Args:
        schema: GraphQL schema
        doc: Parsed document of one file

    Returns:
        List of validation errors (empty if valid)
    """
    return validate(schema, doc, STRUCTURAL_RULES)


def validate_full(schema: GraphQLSchema, doc: DocumentNode) -> list[GraphQLError]:
    """
    Validate an assembled document against all standard rules.

    Some rules follow fragment spreads recursively, so a very long fragment
    chain can exhaust the interpreter stack. That is reported as a single
    validation error for this document.

    Args:
        schema: GraphQL schema
        doc: Minimal document (operation plus the fragments it needs)

    Returns:
        List of validation errors (empty if valid)
    """
    try:
        return validate(schema, doc)
    except RecursionError:
        fragments = sum(1 for d in doc.definitions if isinstance(d, FragmentDefinitionNode))
        return [GraphQLError(f"Fragment chain too deep to validate ({fragments} fragments).")]
