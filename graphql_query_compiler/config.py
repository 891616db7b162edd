"""Configuration management for gqc."""

import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

from . import utils

DEFAULT_EXTENSIONS = [".graphql", ".gql", ".js", ".jsx", ".ts", ".tsx"]
DEFAULT_EXCLUDE_DIRS = ["node_modules", ".git", "public"]


@dataclass
class Config:
    """Configuration for gqc."""

    project_root: str = "."
    schema_file: Optional[str] = None
    default_url: Optional[str] = None
    schema_cache_dir: str = "~/.gqc/schemas"
    # None keeps cached endpoint schemas forever
    schema_cache_ttl_hours: Optional[float] = 24
    source_dirs: list[str] = field(default_factory=lambda: ["src"])
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    static_query_prefix: str = "sq--"
    suggestion_max_distance: int = 10
    log_level: str = "WARNING"

    def __post_init__(self):
        """Expand paths after initialization."""
        self.schema_cache_dir = utils.expand_path(self.schema_cache_dir)
        self.project_root = os.path.abspath(utils.expand_path(self.project_root))


def get_default_config_path() -> str:
    """Get default config file path."""
    return utils.expand_path("~/.gqc/config.yaml")


def load(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Config object with defaults for missing values.
    """
    if config_path is None:
        config_path = get_default_config_path()

    # Return defaults if config doesn't exist
    if not utils.exists(config_path):
        return Config()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    # Merge with defaults
    return Config(
        project_root=data.get("project_root", "."),
        schema_file=data.get("schema_file"),
        default_url=data.get("default_url"),
        schema_cache_dir=data.get("schema_cache_dir", "~/.gqc/schemas"),
        schema_cache_ttl_hours=data.get("schema_cache_ttl_hours", 24),
        source_dirs=data.get("source_dirs", ["src"]),
        extensions=data.get("extensions", list(DEFAULT_EXTENSIONS)),
        exclude_dirs=data.get("exclude_dirs", list(DEFAULT_EXCLUDE_DIRS)),
        static_query_prefix=data.get("static_query_prefix", "sq--"),
        suggestion_max_distance=data.get("suggestion_max_distance", 10),
        log_level=data.get("log_level", "WARNING"),
    )


def create_example_config(path: Optional[str] = None) -> str:
    """Create an example config file and return its path."""
    if path is None:
        path = get_default_config_path()

    utils.ensure_dir(utils.dirname(path))

    example = {
        "project_root": ".",
        "schema_file": "schema.graphql",
        "default_url": "http://localhost:8000/",
        "schema_cache_dir": "~/.gqc/schemas",
        "schema_cache_ttl_hours": 24,
        "source_dirs": ["src", ".cache/fragments"],
        "extensions": list(DEFAULT_EXTENSIONS),
        "exclude_dirs": list(DEFAULT_EXCLUDE_DIRS),
        "static_query_prefix": "sq--",
        "suggestion_max_distance": 10,
        "log_level": "WARNING",
    }

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(example, f, default_flow_style=False, sort_keys=False)

    return path
