"""
Terminal UI utilities using Rich.

Provides:
- Colored console output
- Emote and streamer tables
- Status panel
"""

from typing import Any, Dict, Mapping

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from sevenmote.autocomplete.formatting import delimited, emote_image_url
from sevenmote.settings import sorted_streamers


# Global console instance
console = Console()


def print_success(message: str) -> None:
    """Print success message"""
    console.print(f"[bold green]✓ {message}[/bold green]")


def print_warning(message: str) -> None:
    """Print warning message"""
    console.print(f"[bold yellow]⚠ {message}[/bold yellow]")


def print_error(message: str) -> None:
    """Print error message"""
    console.print(f"[bold red]✗ {message}[/bold red]")


def show_emote_table(mapping: Mapping[str, str], title: str = "Emotes", limit: int = 50) -> None:
    """
    Display emotes as a table.

    Args:
        mapping: Emote name -> identifier
        title: Table title
        limit: Maximum rows shown
    """
    table = Table(title=f"{title} ({len(mapping)})")

    table.add_column("#", style="dim")
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("ID", style="white")
    table.add_column("Image", style="dim")

    for i, (name, identifier) in enumerate(mapping.items(), 1):
        if i > limit:
            break
        table.add_row(str(i), delimited(name), identifier, emote_image_url(identifier))

    console.print(table)
    if len(mapping) > limit:
        console.print(f"[dim]... and {len(mapping) - limit} more[/dim]")


def show_streamers(selected: str = "") -> None:
    """Display the built-in streamer list."""
    table = Table(title="Built-in streamers")

    table.add_column("Key", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Twitch ID", style="dim")
    table.add_column("", style="green")

    for name, twitch_id, key in sorted_streamers():
        table.add_row(key, name, twitch_id, "✓ Selected" if key == selected else "")

    console.print(table)


def show_status(status: Dict[str, Any]) -> None:
    """Display current configuration status."""
    lines = [
        f"[bold]Source:[/bold] {status.get('source')}",
        f"[bold]Cache:[/bold] {status.get('cache_strategy')}",
        f"[bold]Emotes:[/bold] {'Loaded' if status.get('emotes_loaded') else 'Not loaded'}",
        f"[bold]Settings:[/bold] {status.get('settings_file')}",
        f"[bold]Logs:[/bold] {status.get('log_dir') or 'disabled'}",
    ]
    console.print(Panel("\n".join(lines), title="Current Status", border_style="blue"))


def show_welcome() -> None:
    """Show welcome banner"""
    welcome_text = """
# Sevenmote

Type `:NAME` and press Tab to pick an emote. Press Ctrl-D to quit.
"""
    console.print(Markdown(welcome_text))


def create_spinner(text: str):
    """
    Create a progress spinner.

    Returns:
        Progress context manager
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
