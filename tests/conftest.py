"""Shared fixtures for compiler tests."""

import pytest

from graphql_query_compiler.compiler import process_queries
from graphql_query_compiler.definitions import SourceDocument
from graphql_query_compiler.errors import ErrorCollector
from graphql_query_compiler.parser import build_schema

SCHEMA_SDL = """
interface Node {
  id: ID!
}

type File implements Node {
  id: ID!
  absolutePath: String
  publicURL: String
}

type FileConnection {
  totalCount: Int!
  nodes: [File!]!
}

type PostsJson implements Node {
  id: ID!
  text: String
  image: File
}

type PostsJsonConnection {
  totalCount: Int!
  nodes: [PostsJson!]!
}

input StringQueryOperatorInput {
  eq: String
  ne: String
}

input PostsJsonFilterInput {
  id: StringQueryOperatorInput
  text: StringQueryOperatorInput
}

type Query {
  allFile(limit: Int): FileConnection!
  allPostsJson(filter: PostsJsonFilterInput, limit: Int): PostsJsonConnection!
}
"""


@pytest.fixture
def schema():
    return build_schema(SCHEMA_SDL)


@pytest.fixture
def compile_docs(schema):
    """Compile {path: graphql text | SourceDocument} and return (result, errors)."""

    def _compile(docs: dict, **kwargs):
        errors = ErrorCollector()
        documents = {
            path: value if isinstance(value, SourceDocument) else SourceDocument.from_text(path, value)
            for path, value in docs.items()
        }
        result = process_queries(schema, documents, errors.add, **kwargs)
        return result, errors.errors

    return _compile


@pytest.fixture
def schema_sdl():
    return SCHEMA_SDL
