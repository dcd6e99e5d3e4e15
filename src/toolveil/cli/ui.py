"""Shared UI components for the toolveil CLI.

Everything here renders to stderr: stdout belongs to the protocol stream while
the proxy runs and to the tool listing otherwise.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from toolveil.config import ProxyConfig

theme = Theme(
    {
        "info": "dim cyan",
        "warning": "yellow",
        "error": "bold red",
        "tip": "blue",
        "heading": "bold cyan",
    }
)

error_console = Console(theme=theme, stderr=True)


def _filter_summary(config: ProxyConfig) -> tuple[str, str]:
    if config.include_patterns is not None:
        return "[bold green]include[/bold green]", ", ".join(config.include_patterns) or "(none)"
    if config.exclude_patterns is not None:
        return "[bold red]exclude[/bold red]", ", ".join(config.exclude_patterns) or "(none)"
    return "[dim]off[/dim]", "all tools visible"


def print_startup(config: ProxyConfig, config_path: Path | None) -> None:
    """Print the proxy's startup summary to stderr."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold white", justify="right")
    table.add_column("Value", style="cyan")

    mode, patterns = _filter_summary(config)
    table.add_row("Target", Text(" ".join(config.target_command)))
    table.add_row("Filter", mode)
    table.add_row("Patterns", Text(patterns))
    if config_path is not None:
        table.add_row("Config", Text(str(config_path)))

    error_console.print(
        Panel(
            table,
            title="[bold]MCP Proxy Ready[/bold]",
            subtitle="[dim]Forwarding JSON-RPC over stdio[/dim]",
            border_style="dim white",
            padding=(1, 1),
        )
    )


def print_error(title: str, message: str, tip: str | None = None) -> None:
    """Print a styled error message with an optional actionable tip."""
    content = Text()
    content.append(f"{message}\n", style="white")

    if tip:
        content.append("\nTip: ", style="bold blue")
        content.append(tip, style="blue")

    error_console.print(
        Panel(
            content,
            title=f"[bold red]Error: {title}[/bold red]",
            border_style="red",
            padding=(1, 1),
        )
    )
