"""Default document source: finds files and turns their GraphQL into SourceDocuments."""

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from graphql import DocumentNode, GraphQLError

from . import parser, utils
from .definitions import SourceDocument
from .errors import AddError, syntax_error
from .locations import TemplateLocation

logger = logging.getLogger(__name__)

GRAPHQL_EXTENSIONS = (".graphql", ".gql")

# graphql`...` tagged templates; GraphQL itself never contains backticks
TEMPLATE_RE = re.compile(r"\bgraphql\s*`([^`]*)`")
HOOK_RE = re.compile(r"useStaticQuery\s*\(\s*$")
STATIC_QUERY_RE = re.compile(r"<StaticQuery\b[^<]*\bquery\s*=\s*\{\s*$")


def find_files(dirs: Iterable[str], extensions: Iterable[str], exclude_dirs: Iterable[str] = ()) -> list[str]:
    """
    Enumerate candidate source files.

    Args:
        dirs: Directories to search recursively (missing ones are skipped)
        extensions: File suffixes to include, e.g. [".js", ".graphql"]
        exclude_dirs: Directory names pruned anywhere in the tree

    Returns:
        Sorted-per-directory, deduplicated list of file paths
    """
    extensions = tuple(extensions)
    excluded = set(exclude_dirs)
    seen: dict[str, None] = {}

    for directory in dirs:
        root = Path(directory)
        if not root.is_dir():
            logger.debug("Skipping missing directory %s", directory)
            continue
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.name.endswith(".d.ts"):
                continue
            if not path.name.endswith(extensions):
                continue
            if excluded.intersection(path.relative_to(root).parts[:-1]):
                continue
            seen[path.as_posix()] = None

    return list(seen)


def _template_location(text: str, offset: int) -> TemplateLocation:
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1)
    return TemplateLocation(line=line, column=column)


def extract_templates(text: str) -> list[tuple[str, TemplateLocation, bool, bool]]:
    """
    Find every graphql`...` template in JavaScript/TypeScript source.

    Returns:
        (graphql text, template location, is_hook, is_static_query) per template
    """
    out = []
    for match in TEMPLATE_RE.finditer(text):
        body = match.group(1)
        if not body.strip():
            continue
        before = text[: match.start()]
        is_hook = bool(HOOK_RE.search(before))
        is_static_query = is_hook or bool(STATIC_QUERY_RE.search(before))
        out.append((body, _template_location(text, match.start(1)), is_hook, is_static_query))
    return out


def parse_file(path: str, add_error: AddError) -> Optional[SourceDocument]:
    """
    Parse one file into a SourceDocument.

    .graphql/.gql files are one document; in other files all graphql
    templates are merged into one document. A template that fails to parse
    rejects the whole file with a graphql-syntax-error.

    Returns:
        SourceDocument, or None when the file holds no (valid) GraphQL
    """
    text = utils.read_text(path)

    if path.endswith(GRAPHQL_EXTENSIONS):
        templates = [(text, TemplateLocation(), False, False)] if text.strip() else []
    else:
        templates = extract_templates(text)

    if not templates:
        return None

    definitions = []
    locations = []
    for body, template, _, _ in templates:
        try:
            doc = parser.parse_document(body)
        except GraphQLError as e:
            add_error(syntax_error(e, path, template))
            logger.info("Skipping %s: %s", path, e.message)
            return None
        definitions.extend(doc.definitions)
        locations.extend([template] * len(doc.definitions))

    return SourceDocument(
        path=path,
        document=DocumentNode(definitions=tuple(definitions)),
        template=templates[0][1],
        templates=tuple(locations),
        is_hook=any(t[2] for t in templates),
        is_static_query=any(t[3] for t in templates),
        hash=utils.sha256([t[0] for t in templates]),
    )


def parse_files(paths: Iterable[str], add_error: AddError) -> dict[str, SourceDocument]:
    """Parse files in order, keeping only those that contain GraphQL."""
    documents: dict[str, SourceDocument] = {}
    for path in paths:
        document = parse_file(path, add_error)
        if document is not None:
            documents[path] = document
    logger.info("Found GraphQL in %d file(s)", len(documents))
    return documents
