"""Document source tests."""

from graphql_query_compiler import sources
from graphql_query_compiler.compiler import process_queries
from graphql_query_compiler.errors import ErrorCollector
from graphql_query_compiler.locations import Location, TemplateLocation

PAGE = """import React from "react"
import { graphql } from "gatsby"

export default function Index({ data }) {
  return <div>{data.allPostsJson.totalCount}</div>
}

export const query = graphql`
  query IndexQuery {
    allPostsJson {
      totalCount
      nodes {
        ...PostFields
      }
    }
  }
`
"""

HOOK = """import { useStaticQuery, graphql } from "gatsby"

export default function Header() {
  const data = useStaticQuery(graphql`
    query HeaderQuery {
      allFile {
        totalCount
      }
    }
  `)
  return data
}
"""

STATIC_QUERY = """export default () => (
  <StaticQuery
    query={graphql`query FooterQuery { allFile { totalCount } }`}
    render={data => data}
  />
)
"""

FRAGMENTS = "fragment PostFields on PostsJson {\n  id\n  text\n}\n"


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_find_files_filters_extensions_and_excluded_dirs(tmp_path):
    write(tmp_path / "src" / "pages" / "index.js", PAGE)
    write(tmp_path / "src" / "fragments.graphql", FRAGMENTS)
    write(tmp_path / "src" / "types.d.ts", "declare const x: string")
    write(tmp_path / "src" / "styles.css", "body {}")
    write(tmp_path / "src" / "node_modules" / "dep" / "index.js", PAGE)

    files = sources.find_files([str(tmp_path / "src"), str(tmp_path / "missing")], [".js", ".ts", ".graphql"], ["node_modules"])

    assert files == [
        (tmp_path / "src" / "fragments.graphql").as_posix(),
        (tmp_path / "src" / "pages" / "index.js").as_posix(),
    ]


def test_find_files_deduplicates_overlapping_dirs(tmp_path):
    write(tmp_path / "src" / "a.graphql", FRAGMENTS)

    files = sources.find_files([str(tmp_path), str(tmp_path / "src")], [".graphql"])

    assert files == [(tmp_path / "src" / "a.graphql").as_posix()]


def test_extract_templates_records_start_and_flags():
    templates = sources.extract_templates(PAGE)

    assert len(templates) == 1
    body, template, is_hook, is_static_query = templates[0]
    assert "query IndexQuery" in body
    assert template == TemplateLocation(line=8, column=29)
    assert (is_hook, is_static_query) == (False, False)


def test_use_static_query_is_hook_and_static():
    (_, _, is_hook, is_static_query), = sources.extract_templates(HOOK)

    assert is_hook is True
    assert is_static_query is True


def test_static_query_component_is_static():
    (_, _, is_hook, is_static_query), = sources.extract_templates(STATIC_QUERY)

    assert is_hook is False
    assert is_static_query is True


def test_parse_file_skips_files_without_graphql(tmp_path):
    path = write(tmp_path / "plain.js", "export const x = 1\n")

    assert sources.parse_file(str(path), ErrorCollector().add) is None


def test_parse_file_reports_syntax_errors(tmp_path):
    path = write(tmp_path / "broken.js", "const q = graphql`\n  query Broken {\n`\n")
    errors = ErrorCollector()

    assert sources.parse_file(str(path), errors.add) is None
    assert [e.kind for e in errors] == ["graphql-syntax-error"]
    assert errors.errors[0].file_path == str(path)


def test_compiles_discovered_files_with_file_locations(tmp_path, schema):
    write(tmp_path / "src" / "pages" / "index.js", PAGE)
    write(tmp_path / "src" / "fragments.graphql", FRAGMENTS)
    write(tmp_path / "src" / "components" / "Header.js", HOOK)
    files = sources.find_files([str(tmp_path / "src")], [".js", ".graphql"])
    errors = ErrorCollector()

    documents = sources.parse_files(files, errors.add)
    result = process_queries(schema, documents, errors.add, project_root=str(tmp_path))

    assert not errors
    page = result[(tmp_path / "src" / "pages" / "index.js").as_posix()]
    assert "fragment PostFields on PostsJson" in page.text
    header = result[(tmp_path / "src" / "components" / "Header.js").as_posix()]
    assert header.is_hook is True
    assert header.id == "sq--src-components-header-js"


def test_errors_in_embedded_templates_point_into_the_js_file(tmp_path, schema):
    page = write(tmp_path / "index.js", PAGE.replace("...PostFields", "...Unknown"))
    errors = ErrorCollector()

    documents = sources.parse_files([str(page)], errors.add)
    result = process_queries(schema, documents, errors.add)

    assert result == {}
    assert [e.kind for e in errors] == ["unknown-fragment"]
    # "...Unknown" is on line 13 of the file, indented by eight spaces
    assert errors.errors[0].location == Location(line=13, column=9)
