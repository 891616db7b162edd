"""Utility functions for GraphQL query compilation."""

import hashlib
import json
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator
from urllib.parse import urlparse

from graphql import (
    FragmentDefinitionNode,
    FragmentSpreadNode,
    OperationDefinitionNode,
    get_introspection_query,
)

# Standard GraphQL introspection query
INTROSPECTION_QUERY = get_introspection_query()

# Runs of letters (any script) or of digits; case transitions are split afterwards
_RUN_RE = re.compile(r"[^\W\d_]+|\d+")


# File system utilities
def ensure_dir(path: str) -> None:
    """Ensure directory exists, creating it if necessary."""
    Path(path).mkdir(parents=True, exist_ok=True)


def exists(path: str) -> bool:
    """Check if file exists."""
    return Path(path).exists()


def dirname(path: str) -> str:
    """Get directory name from path."""
    return str(Path(path).parent)


def join(*parts: str) -> str:
    """Join path components."""
    return str(Path(*parts))


def expand_path(path: str) -> str:
    """Expand ~ in path."""
    return str(Path(path).expanduser())


def relative_posix_path(path: str, root: str) -> str:
    """Path relative to root, always with forward slashes."""
    return Path(os.path.relpath(path, root)).as_posix()


# File I/O
def read_text(path: str) -> str:
    """Read text file."""
    return Path(path).read_text(encoding="utf-8")


def read_json(path: str) -> dict:
    """Read JSON file."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def write_json(path: str, data: Any) -> None:
    """Write JSON file with pretty formatting."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def to_json(data: Any) -> str:
    """Convert data to JSON string."""
    return json.dumps(data, indent=2)


# Hashing & timestamps
def now_iso() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def sha256(obj: Any) -> str:
    """Calculate SHA-256 hash of object."""
    s = json.dumps(obj, sort_keys=True)
    return hashlib.sha256(s.encode()).hexdigest()[:16]


def sanitize_host(url: str) -> str:
    """Extract sanitized hostname from URL for use in filenames."""
    if url.startswith("file://"):
        return "file"
    parsed = urlparse(url)
    host = parsed.netloc or parsed.path
    # Remove port, replace special chars
    host = host.split(":")[0]
    return host.replace("/", "_").replace(":", "_")


# Identifiers
def kebab_case(value: str) -> str:
    """
    Convert a string to kebab-case.

    Splits on any non-alphanumeric character, on lower-to-upper case
    transitions and between letters and digits, so
    ``src/components/Header2.js`` becomes ``src-components-header-2-js``.
    Letters of every script are kept: ``pages/关于.js`` becomes ``pages-关于-js``.
    """
    words = []
    for run in _RUN_RE.findall(value):
        words.extend(_split_case(run))
    return "-".join(word.lower() for word in words)


def _split_case(run: str) -> list[str]:
    # "XMLHttpThing" -> ["XML", "Http", "Thing"]; caseless scripts stay whole
    words = []
    start = 0
    for i in range(1, len(run)):
        if not run[i].isupper():
            continue
        prev_upper = run[i - 1].isupper()
        next_lower = i + 1 < len(run) and not run[i + 1].isupper()
        if not prev_upper or next_lower:
            words.append(run[start:i])
            start = i
    words.append(run[start:])
    return words


# URL manipulation
def ensure_graphql_url(url: str) -> str:
    """Ensure URL ends with /graphql/ - append if missing."""
    url = url.rstrip("/")
    if not url.endswith("/graphql"):
        url = f"{url}/graphql/"
    elif not url.endswith("/"):
        url = f"{url}/"
    return url


# AST helpers
def is_operation(node: Any) -> bool:
    """Check if AST node is an operation definition."""
    return isinstance(node, OperationDefinitionNode)


def is_fragment(node: Any) -> bool:
    """Check if AST node is a fragment definition."""
    return isinstance(node, FragmentDefinitionNode)


def child_selections(node) -> list:
    """Get child selections of any node carrying a selection set."""
    selection_set = getattr(node, "selection_set", None)
    if selection_set:
        return list(selection_set.selections)
    return []


def iter_fragment_spreads(node) -> Iterator[FragmentSpreadNode]:
    """
    Iterate over fragment spreads inside a definition, in source order.

    Descends through fields and inline fragments, but not into the
    fragments the spreads point at.
    """
    stack = child_selections(node)[::-1]
    while stack:
        child = stack.pop()
        if isinstance(child, FragmentSpreadNode):
            yield child
        else:
            stack.extend(child_selections(child)[::-1])


def definition_name(node) -> str:
    """Name of an operation or fragment definition ("" when anonymous)."""
    return node.name.value if getattr(node, "name", None) else ""


# HTTP response helpers
def safe_json_response(response, context: str = "API request") -> dict:
    """
    Safely parse JSON from HTTP response with helpful error messages.

    Args:
        response: requests.Response object
        context: Description of what operation failed (e.g., "GraphQL introspection")

    Returns:
        Parsed JSON as dict

    Raises:
        RuntimeError: If response is not valid JSON, with detailed diagnostic info
    """
    try:
        return response.json()
    except json.JSONDecodeError as e:
        content_type = response.headers.get("Content-Type", "unknown")

        body_preview = response.text[:300]
        if len(response.text) > 300:
            body_preview += "..."

        error_parts = [
            f"{context} failed - server returned non-JSON response",
            "",
            f"  URL: {response.url}",
            f"  Status: {response.status_code}",
            f"  Content-Type: {content_type}",
            "",
            "  Response preview:",
            f"  {body_preview}",
            "",
            "  Suggestions:",
            "  - Verify the URL is correct and points to a GraphQL endpoint (try /graphql/)",
            "  - Authentication may be required - try adding --token YOUR_TOKEN",
            "",
            f"  Original JSON error: {e}",
        ]
        raise RuntimeError("\n".join(error_parts)) from e
