"""CLI for gqc."""

import os
import sys
from dataclasses import dataclass, field
from typing import List, Literal, Optional

import typer
from rich.console import Console

from . import compiler, config, schema_loader, sources, utils
from .errors import ErrorCollector
from .logging_setup import setup_logging
from .report import CompileSummary, emit, print_kv, to_dict

app = typer.Typer(help="GraphQL query compiler")
schema_app = typer.Typer(help="Schema operations")
app.add_typer(schema_app, name="schema")

console = Console()


@dataclass
class CompileOptions:
    """Options for compile command."""

    dirs: list[str] = field(default_factory=list)
    url: Optional[str] = None
    schema_file: Optional[str] = None
    root: Optional[str] = None
    config_path: Optional[str] = None
    output: Literal["console", "json"] = "console"
    out: Optional[str] = None
    fail_on_error: bool = False
    refresh_schema: bool = False


@schema_app.command("pull")
def schema_pull(
    url: Optional[str] = typer.Option(None, help="GraphQL endpoint URL"),
    token: Optional[str] = typer.Option(None, help="Bearer token (default: $GQC_TOKEN)"),
    out: Optional[str] = typer.Option(None, help="Output file path"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Config file path"),
):
    """Fetch and cache a GraphQL schema via introspection."""
    try:
        cfg = config.load(config_path)
        base_url = url or cfg.default_url

        if not base_url:
            console.print("[red]Error: No URL provided. Use --url or set default_url in config.[/red]")
            raise typer.Exit(1)

        full_url = utils.ensure_graphql_url(base_url)
        console.print(f"[cyan]Fetching schema from {full_url}...[/cyan]")
        profile = schema_loader.load_schema(url=full_url, cfg=cfg, refresh=True, token=token)

        # If custom output path specified, write just the introspection JSON
        if out:
            utils.write_json(out, profile.schema)
            path = out
        else:
            path = schema_loader.cache_path_for(profile.url, cfg)

        print_kv("Schema pulled", {"url": profile.url, "hash": profile.hash, "path": path})
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command("init-config")
def init_config(path: Optional[str] = typer.Option(None, help="Where to write the config file")):
    """Write an example configuration file."""
    written = config.create_example_config(path)
    print_kv("Config written", {"path": written})


@app.command("compile")
def compile_cmd(
    dirs: Optional[List[str]] = typer.Argument(None, help="Directories to search (default: source_dirs from config)"),
    url: Optional[str] = typer.Option(None, help="GraphQL endpoint URL to introspect"),
    schema: Optional[str] = typer.Option(None, help="Schema file (.graphql SDL or introspection JSON)"),
    root: Optional[str] = typer.Option(None, help="Project root (static query ids are relative to it)"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Config file path"),
    output: str = typer.Option("console", help="Output format (console|json)"),
    out: Optional[str] = typer.Option(None, help="Also write the JSON result to this file"),
    fail_on_error: bool = typer.Option(False, help="Exit code 2 if any compile error was collected"),
    refresh_schema: bool = typer.Option(False, help="Introspect the endpoint again even if a cached schema is fresh"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log compiler decisions"),
):
    """Compile the GraphQL queries and fragments found in source files."""
    try:
        opts = CompileOptions(
            dirs=list(dirs or []),
            url=url,
            schema_file=schema,
            root=root,
            config_path=config_path,
            output=output,
            out=out,
            fail_on_error=fail_on_error,
            refresh_schema=refresh_schema,
        )
        cfg = config.load(config_path)
        setup_logging("DEBUG" if verbose else cfg.log_level)

        summary = run_compile(opts, cfg)

        emit(summary, output)
        if out:
            utils.write_json(out, to_dict(summary))

        if fail_on_error and summary.errors:
            raise typer.Exit(2)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if "--debug" in sys.argv:
            raise
        raise typer.Exit(1)


def run_compile(opts: CompileOptions, cfg: Optional[config.Config] = None) -> CompileSummary:
    """
    Discover source files and compile them.

    Args:
        opts: Compile options
        cfg: Loaded configuration (loaded from opts.config_path when omitted)

    Returns:
        CompileSummary with compiled queries and every collected error
    """
    cfg = cfg or config.load(opts.config_path)
    project_root = os.path.abspath(opts.root) if opts.root else cfg.project_root

    url = None
    if opts.url or cfg.default_url:
        url = utils.ensure_graphql_url(opts.url or cfg.default_url)
    schema_file = opts.schema_file or cfg.schema_file
    if not url and not schema_file:
        raise ValueError("No schema given. Use --schema or --url, or set schema_file in config.")

    profile = schema_loader.load_schema(url=url, schema_file=schema_file, cfg=cfg, refresh=opts.refresh_schema)
    schema = profile.build()

    dirs = opts.dirs or [os.path.join(project_root, d) for d in cfg.source_dirs]
    files = sources.find_files(dirs, cfg.extensions, cfg.exclude_dirs)

    errors = ErrorCollector()
    documents = sources.parse_files(files, errors.add)
    queries = compiler.process_queries(
        schema,
        documents,
        errors.add,
        project_root=project_root,
        static_query_prefix=cfg.static_query_prefix,
        suggestion_max_distance=cfg.suggestion_max_distance,
    )

    return CompileSummary(queries=queries, errors=errors.errors, file_count=len(files))


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
