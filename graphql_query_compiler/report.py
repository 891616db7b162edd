"""Output formatting and reporting."""

from dataclasses import dataclass

from rich.console import Console
from rich.table import Table

from . import utils
from .compiler import CompiledQuery
from .errors import CompileError

console = Console()


@dataclass
class CompileSummary:
    """Everything one compile pass produced."""

    queries: dict[str, CompiledQuery]
    errors: list[CompileError]
    file_count: int


def to_dict(summary: CompileSummary) -> dict:
    return {
        "files": summary.file_count,
        "queries": {path: q.to_dict() for path, q in summary.queries.items()},
        "errors": [e.to_dict() for e in summary.errors],
    }


def format_location(error: CompileError) -> str:
    """file:line:column for an error, as far as it is known."""
    location = error.location
    if location is None:
        return error.file_path
    start = getattr(location, "start", location)
    return f"{error.file_path}:{start.line}:{start.column}"


def emit(summary: CompileSummary, fmt: str) -> None:
    """
    Output compile results.

    Args:
        summary: Compile results
        fmt: Output format ("json" or "console")
    """
    if fmt == "json":
        print(utils.to_json(to_dict(summary)))
        return

    console.print("\n[bold cyan]Compiled Queries[/bold cyan]\n")

    if summary.queries:
        table = Table(box=None)
        table.add_column("File", style="cyan")
        table.add_column("Query")
        table.add_column("Kind")
        table.add_column("Id", style="dim")

        for path, query in summary.queries.items():
            kind = "hook" if query.is_hook else ("static" if query.is_static_query else "page")
            table.add_row(path, query.name or "[dim]<anonymous>[/dim]", kind, query.id or "")

        console.print(table)
    else:
        console.print("  [dim]No queries compiled[/dim]")

    console.print(
        f"\n  {len(summary.queries)} compiled from {summary.file_count} file(s), "
        f"{len(summary.errors)} error(s)"
    )

    if summary.errors:
        console.print("\n[bold red]Errors:[/bold red]\n")
        for error in summary.errors:
            console.print(f"  [red]✖[/red] [dim]{error.kind}[/dim] {format_location(error)}", highlight=False)
            console.print(f"    {error.message}", markup=False, highlight=False)
            suggestion = error.context.get("closestFragment")
            if suggestion:
                console.print(f"    [dim]closest fragment: {suggestion}[/dim]")
    else:
        console.print("\n[green]✓ No errors[/green]")

    console.print()


def print_kv(title: str, data: dict) -> None:
    """
    Print key-value pairs (for schema pull, config init).

    Args:
        title: Section title
        data: Key-value data
    """
    console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="yellow")

    for k, v in data.items():
        table.add_row(k, str(v))

    console.print(table)
    console.print()
