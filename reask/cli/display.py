"""
Rich terminal display utilities for CLI.

Provides formatted output using the Rich library for:
- Progress indicators
- Syntax-highlighted JSON
- Decode errors
- Result statistics
"""

import json
from typing import Any, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

console = Console()

ROOT_PATH_LABEL = "(root)"


def print_header(title: str) -> None:
    """Print a formatted header."""
    console.print()
    console.print(f"[bold cyan]{title}[/bold cyan]")
    console.print("=" * len(title))
    console.print()


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def print_json(data: Any, title: Optional[str] = None) -> None:
    """
    Print JSON data with syntax highlighting.

    Args:
        data: JSON-serializable data or JSON string
        title: Optional title for the panel
    """
    if isinstance(data, str):
        json_str = data
    else:
        json_str = json.dumps(data, indent=2, ensure_ascii=False, default=str)

    syntax = Syntax(json_str, "json", theme="monokai", line_numbers=False)

    if title:
        console.print(Panel(syntax, title=f"[bold]{title}[/bold]", border_style="cyan"))
    else:
        console.print(syntax)


def print_schema(schema: dict, title: str = "Schema") -> None:
    print_json(schema, title)


def print_validation_errors(errors: List[str]) -> None:
    """
    Print formatted decode errors as a list.

    Args:
        errors: One line per decode error
    """
    if not errors:
        return

    console.print()
    console.print("[bold red]Validation Errors:[/bold red]")
    for error in errors:
        # error text may contain brackets, keep it out of rich markup
        console.print(Text.assemble(("  • ", "red"), display_error_line(error)))
    console.print()


def display_error_line(error: str) -> str:
    """Show an empty path (JSON syntax, top-level type) as ``(root)``."""
    if error.endswith(" at path "):
        return error + ROOT_PATH_LABEL
    return error


def print_result_stats(outcome: str, attempts: int, max_retries: int, latency_ms: float) -> None:
    """
    Print extraction statistics in a table.

    Args:
        outcome: "success", "validation error" or "adapter error"
        attempts: Provider calls made
        max_retries: Retry budget of the request
        latency_ms: Wall-clock time in milliseconds
    """
    table = Table(title="Extraction Statistics", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan", width=20)
    table.add_column("Value", style="white", width=30)

    status = Text("✓ Valid", style="green bold") if outcome == "success" else Text(f"✗ {outcome}", style="red bold")
    table.add_row("Status", status)
    table.add_row("Attempts", f"{attempts} of {max_retries + 1}")
    table.add_row("Latency", f"{latency_ms:.0f} ms")

    console.print()
    console.print(table)
    console.print()


def create_progress_spinner() -> Progress:
    """Progress spinner for long-running operations."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )


def print_separator() -> None:
    console.print("[dim]" + "─" * 70 + "[/dim]")
