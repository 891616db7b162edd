"""Definition collection tests."""

from graphql_query_compiler.definitions import (
    Fragment,
    Operation,
    SourceDocument,
    collect_definitions,
    extract_definitions,
)
from graphql_query_compiler.errors import ErrorCollector
from graphql_query_compiler.locations import Location, TemplateLocation

FRAGMENT = "fragment PostId on PostsJson { id }"


def collect(schema, docs: dict):
    errors = ErrorCollector()
    documents = {
        path: value if isinstance(value, SourceDocument) else SourceDocument.from_text(path, value)
        for path, value in docs.items()
    }
    return collect_definitions(schema, documents, errors.add), errors


def test_definitions_are_tagged_by_kind():
    doc = SourceDocument.from_text("page", "query Page { allPostsJson { totalCount } }\n" + FRAGMENT, hash="abc")

    definitions = list(extract_definitions("page", doc))

    assert [type(d) for d in definitions] == [Operation, Fragment]
    assert [d.kind for d in definitions] == ["operation", "fragment"]
    assert definitions[0].hash == "abc"
    assert definitions[1].text == "fragment PostId on PostsJson {\n  id\n}"


def test_operations_are_kept_in_order_without_dedup(schema):
    query = "query Page { allPostsJson { totalCount } }"

    table, errors = collect(schema, {"a": query, "b": query})

    assert not errors
    assert [(op.name, op.file_path) for op in table.operations] == [("Page", "a"), ("Page", "b")]


def test_identical_fragments_keep_first_definition(schema):
    table, errors = collect(schema, {"a": FRAGMENT, "b": "fragment PostId on PostsJson {\n  id\n}"})

    assert not errors
    assert table.fragment_names() == ["PostId"]
    assert table.get("PostId").file_path == "a"


def test_conflicting_fragments_are_removed(schema):
    table, errors = collect(schema, {"a": FRAGMENT, "b": "fragment PostId on PostsJson { text }"})

    assert "PostId" not in table
    assert table.get("PostId") is None
    assert [e.kind for e in errors] == ["duplicate-fragment"]
    assert errors.errors[0].location == Location(line=1, column=10)


def test_conflicted_name_stays_unusable(schema):
    table, errors = collect(
        schema,
        {
            "a": FRAGMENT,
            "b": "fragment PostId on PostsJson { text }",
            "c": FRAGMENT,
            "d": "fragment PostId on PostsJson { image { id } }",
        },
    )

    assert "PostId" not in table
    assert [e.file_path for e in errors] == ["b", "c", "d"]
    # A body matching the first one still conflicts with the second
    assert [e.context["rightFragment"]["filePath"] for e in errors] == ["a", "b", "a"]
    assert [f.file_path for f in table.conflicts["PostId"]] == ["a", "b", "d"]


def test_structurally_invalid_document_contributes_nothing(schema):
    text = (
        "query { allPostsJson { totalCount } }\n"
        "query { allFile { totalCount } }\n"
        "fragment Orphan on PostsJson { id }\n"
    )

    table, errors = collect(schema, {"bad": text, "good": FRAGMENT})

    assert table.operations == []
    assert table.fragment_names() == ["PostId"]
    assert {e.kind for e in errors} == {"structural-validation-failure"}
    assert {e.file_path for e in errors} == {"bad"}


def test_unknown_types_fail_structural_validation(schema):
    table, errors = collect(schema, {"bad": "fragment Nope on Missing { id }"})

    assert "Nope" not in table
    assert [e.kind for e in errors] == ["structural-validation-failure"]
    assert "Missing" in errors.errors[0].message


def test_per_definition_templates_are_used_for_locations(schema):
    first = SourceDocument.from_text("x", "fragment A on Missing { id }")
    second = SourceDocument.from_text("x", "fragment B on PostsJson { id }")
    doc = SourceDocument(
        path="component.js",
        document=type(first.document)(definitions=first.definitions + second.definitions),
        templates=(TemplateLocation(line=3, column=10), TemplateLocation(line=9, column=4)),
    )

    _, errors = collect(schema, {"component.js": doc})

    # "Missing" sits at column 15 of the first template's only line
    assert errors.errors[0].location.start == Location(line=3, column=25)
