"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from webstart_cli.models.config import LauncherConfig
from webstart_cli.models.descriptor import LaunchDescriptor
from webstart_cli.models.stats import FetchStats
from webstart_cli.utils.formatting import format_duration, format_size, format_speed


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "TrustError": [
            "• The jar is not signed, or its signature does not verify.",
            "• Re-run with --trust if you trust the publisher anyway.",
        ],
        "VerificationUnavailableError": [
            "• jarsigner could not be started. Install a JDK or set JAVA_HOME.",
            "• Set 'jarsigner_command' in the configuration file.",
            "• Re-run with --trust to launch without verification.",
        ],
        "DownloadError": [
            "• Check that the codebase in the descriptor is reachable.",
            "• Partially downloaded jars are replaced on the next run.",
        ],
        "DescriptorError": [
            "• Check the descriptor URL (file://, http:// or https://).",
            "• Make sure the document is a JNLP file with a <jnlp> root.",
        ],
        "ProcessSpawnError": [
            "• Java could not be started. Install a JRE or set JAVA_HOME.",
            "• Set 'java_command' in the configuration file.",
        ],
        "ConfigurationError": [
            "• The descriptor needs at least one <jar> and a main-class.",
            "• Check the configuration file with --show-config.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_descriptor_panel(console: Console, descriptor: LaunchDescriptor) -> None:
    """Displays the descriptor's meta information and its resources."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Title:", descriptor.title or "[dim]-[/dim]")
    table.add_row("Vendor:", descriptor.vendor or "[dim]-[/dim]")
    table.add_row("Homepage:", descriptor.homepage or "[dim]-[/dim]")
    table.add_row("Main Class:", descriptor.entry_point or "[red]missing[/red]")
    if descriptor.arguments:
        table.add_row("Arguments:", " ".join(descriptor.arguments))
    for i, ref in enumerate(descriptor.resources):
        marker = " [green](main)[/green]" if ref.is_primary else ""
        table.add_row("Jars:" if i == 0 else "", f"{ref.url}{marker}")
    if not descriptor.resources:
        table.add_row("Jars:", "[red]none[/red]")

    console.print(
        Panel(table, title="[bold cyan]Java Web Start[/bold cyan]", border_style="cyan")
    )


def print_config(console: Console, config_path: Path, config: LauncherConfig) -> None:
    """Displays the effective configuration."""
    content = ""
    for key in sorted(LauncherConfig.get_ini_keys()):
        content += f"{key} = {getattr(config, key)}\n"
    if not config_path.is_file():
        content += "\n[dim](no configuration file, defaults shown)[/dim]"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_fetch_summary(console: Console, stats: FetchStats) -> None:
    """Displays a one-line summary of the fetch phase."""
    parts: list[Any] = []
    if stats.artifacts_downloaded:
        parts.append(
            f"[green]✓ {stats.artifacts_downloaded} downloaded[/green] "
            f"({format_size(stats.bytes_downloaded)} in {format_duration(stats.elapsed_s)}, "
            f"{format_speed(stats.avg_speed_bps)})"
        )
    if stats.artifacts_cached:
        parts.append(
            f"[cyan]○ {stats.artifacts_cached} cached[/cyan] "
            f"({format_size(stats.bytes_cached)})"
        )
    if stats.artifacts_failed:
        parts.append(f"[red]✗ {stats.artifacts_failed} failed[/red]")
    if parts:
        console.print("  ".join(parts))
