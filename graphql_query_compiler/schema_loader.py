"""Schema loading: SDL or introspection files, or a live endpoint with a local cache."""

import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import requests
from graphql import GraphQLSchema

from . import parser, utils
from .config import Config

logger = logging.getLogger(__name__)

SDL_EXTENSIONS = (".graphql", ".graphqls", ".gql")
TOKEN_ENV_VAR = "GQC_TOKEN"


@dataclass
class SchemaProfile:
    """A loaded schema and where it came from."""

    url: str
    fetched_at: str
    hash: str
    schema: Union[dict, str]

    def build(self) -> GraphQLSchema:
        return parser.build_schema(self.schema)

    def age(self) -> timedelta:
        return datetime.now(timezone.utc) - datetime.fromisoformat(self.fetched_at)


def load_schema(
    url: Optional[str] = None,
    schema_file: Optional[str] = None,
    cfg: Optional[Config] = None,
    refresh: bool = False,
    token: Optional[str] = None,
) -> SchemaProfile:
    """
    Load the schema queries are compiled against.

    A schema file wins over a URL. Endpoint schemas are cached per URL and
    re-fetched once older than ``cfg.schema_cache_ttl_hours``.

    Args:
        url: GraphQL endpoint URL
        schema_file: Path to a .graphql SDL file or an introspection JSON file
        cfg: Configuration object
        refresh: Ignore the cache and fetch again
        token: Bearer token (default: the GQC_TOKEN environment variable)

    Returns:
        SchemaProfile with the introspection dict or the SDL text

    Raises:
        ValueError: If neither url nor schema_file provided
        RuntimeError: If the endpoint cannot be introspected
    """
    if schema_file:
        return load_schema_file(schema_file)
    if not url:
        raise ValueError("No URL or schema file provided")

    cfg = cfg or Config()
    cache_path = cache_path_for(url, cfg)

    if not refresh:
        cached = read_cached(cache_path, cfg.schema_cache_ttl_hours)
        if cached is not None:
            return cached

    data = introspect(url, token or os.environ.get(TOKEN_ENV_VAR))
    profile = SchemaProfile(url=url, fetched_at=utils.now_iso(), hash=utils.sha256(data), schema=data)

    utils.ensure_dir(utils.dirname(cache_path))
    utils.write_json(cache_path, asdict(profile))
    logger.info("Cached schema of %s at %s", url, cache_path)
    return profile


def load_schema_file(path: str) -> SchemaProfile:
    """Read an SDL file (by extension) or an introspection JSON file."""
    schema = utils.read_text(path) if path.endswith(SDL_EXTENSIONS) else utils.read_json(path)
    logger.debug("Loaded schema from %s", path)
    return SchemaProfile(url=f"file://{path}", fetched_at=utils.now_iso(), hash=utils.sha256(schema), schema=schema)


def read_cached(cache_path: str, ttl_hours: Optional[float]) -> Optional[SchemaProfile]:
    """
    Cached profile at ``cache_path``, unless missing or expired.

    A ``ttl_hours`` of None keeps cache entries forever.
    """
    if not utils.exists(cache_path):
        return None
    profile = SchemaProfile(**utils.read_json(cache_path))
    if ttl_hours is not None and profile.age() > timedelta(hours=ttl_hours):
        logger.info("Cached schema %s is older than %sh, fetching again", cache_path, ttl_hours)
        return None
    logger.debug("Using cached schema %s", cache_path)
    return profile


def introspect(graphql_url: str, token: Optional[str] = None) -> dict:
    """
    Run the introspection query against a live endpoint.

    Args:
        graphql_url: GraphQL endpoint URL
        token: Optional bearer token

    Returns:
        The ``data`` part of the introspection result

    Raises:
        RuntimeError: On connection failures, non-200 responses or GraphQL errors
    """
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    logger.info("Introspecting %s", graphql_url)
    try:
        resp = requests.post(graphql_url, json={"query": utils.INTROSPECTION_QUERY}, headers=headers, timeout=30)
    except requests.RequestException as e:
        raise RuntimeError(f"Could not reach {graphql_url}: {e}") from e

    if resp.status_code != 200:
        raise RuntimeError(f"Introspection of {graphql_url} failed with status {resp.status_code}")

    payload = utils.safe_json_response(resp, context="GraphQL introspection")
    if payload.get("errors"):
        messages = "; ".join(str(err.get("message", err)) for err in payload["errors"])
        raise RuntimeError(f"Introspection errors: {messages}")

    return payload["data"]


def cache_path_for(url: str, cfg: Config) -> str:
    """Cache file of one endpoint: readable host prefix plus a digest of the full URL."""
    return utils.join(cfg.schema_cache_dir, f"{utils.sanitize_host(url)}-{utils.sha256(url)[:8]}.json")
