"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from webstart_cli import __version__
from webstart_cli.core import Launcher
from webstart_cli.exceptions import AbortedError, WebstartError
from webstart_cli.storage.config_manager import ConfigManager
from webstart_cli.web import DescriptorReader

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_descriptor_panel,
    print_fetch_summary,
)
from .progress_manager import ProgressManager

# Standard output belongs to the launched application.
console = Console(stderr=True)

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("webstart_cli")

EXIT_FAILURE = 1
EXIT_LAUNCH_ERROR = 2

USAGE = "Usage: webstart [OPTIONS] <descriptorUrl>"

app = typer.Typer(
    name="webstart",
    help=(
        "Downloads the jars named by a JNLP descriptor and runs its main class."
        " Use 'webstart --help' for all options."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "webstart-cli"


CONFIG_FILE = get_config_dir() / "config.ini"


def _install_signal_handlers(launcher: Launcher) -> list[int]:
    """Routes SIGINT/SIGTERM to the launcher instead of interrupting the loop."""
    loop = asyncio.get_running_loop()

    def _on_signal(sig: int) -> None:
        console.print(
            f"\n[yellow]⚠️  {signal.Signals(sig).name} received, stopping...[/yellow]"
        )
        launcher.stop(sig)

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _on_signal, sig)
            installed.append(sig)
        except (NotImplementedError, RuntimeError, ValueError) as e:
            log.debug(f"Could not install handler for {sig}: {e}")
    return installed


def _remove_signal_handlers(installed: list[int]) -> None:
    loop = asyncio.get_running_loop()
    for sig in installed:
        loop.remove_signal_handler(sig)


@app.command()
def launch(
    descriptor_url: Optional[str] = typer.Argument(
        None,
        help="file://, http:// or https:// location of the JNLP descriptor.",
        metavar="<descriptorUrl>",
    ),
    trust: bool = typer.Option(
        False, "--trust", help="Run the jars even if they are not (correctly) signed."
    ),
    no_verify: bool = typer.Option(
        False, "--no-verify", help="Skip jarsigner verification entirely."
    ),
    target_dir: Optional[Path] = typer.Option(
        None,
        "--target-dir",
        "-d",
        help="Directory the jars are downloaded to (default: current directory).",
    ),
    jars: Optional[List[Path]] = typer.Option(
        None,
        "--jar",
        help="Run this local jar instead of downloading the descriptor's jars (repeatable).",
    ),
    info: bool = typer.Option(
        False, "--info", help="Show the descriptor information and exit."
    ),
    config_file: Path = typer.Option(
        CONFIG_FILE, "--config", help="Path of the INI configuration file."
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the effective configuration and exit."
    ),
    init_config: bool = typer.Option(
        False, "--init-config", help="Write a configuration file with defaults and exit."
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """Launch a Java Web Start application."""
    if version:
        console.print(f"[bold]webstart-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    if verbose >= 2:
        logging.getLogger("webstart_cli").setLevel("DEBUG")

    config_manager = ConfigManager(config_file)

    if init_config:
        try:
            config_manager.save_new_config()
        except WebstartError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=EXIT_FAILURE) from e
        console.print(f"[green]✓ Configuration saved to '{config_file}'[/green]")
        raise typer.Exit()

    cli_options = {
        key: value
        for key, value in {
            "target_dir": str(target_dir) if target_dir else None,
            "trust": trust or None,
            "verify": False if no_verify else None,
            "descriptor_url": descriptor_url,
        }.items()
        if value is not None
    }

    try:
        config = config_manager.load_config(cli_options)
    except WebstartError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=EXIT_LAUNCH_ERROR) from e

    if show_config:
        print_config(console, config_file, config)
        raise typer.Exit()

    if not descriptor_url:
        console.print(USAGE)
        console.print("[red]✗ Missing descriptor URL.[/red]")
        raise typer.Exit(code=EXIT_FAILURE)

    async def _launch_async() -> int:
        try:
            descriptor = await DescriptorReader.read(descriptor_url)
        except WebstartError as e:
            console.print(format_error_with_suggestions(e))
            raise typer.Exit(code=EXIT_LAUNCH_ERROR) from e

        print_descriptor_panel(console, descriptor)
        if info:
            return 0

        async with ProgressManager(console=console) as progress_manager:
            launcher = Launcher(descriptor, config, progress=progress_manager)
            installed = _install_signal_handlers(launcher)
            try:
                exit_code = await launcher.run(resource_paths=jars or None)
            except AbortedError as e:
                console.print(f"[yellow]⚠️  {e}[/yellow]")
                raise typer.Exit(code=EXIT_FAILURE) from e
            except WebstartError as e:
                print_fetch_summary(console, launcher.stats)
                console.print(format_error_with_suggestions(e))
                raise typer.Exit(code=EXIT_LAUNCH_ERROR) from e
            finally:
                _remove_signal_handlers(installed)

        log.debug(f"{descriptor.entry_point} exited with code {exit_code}")
        return exit_code

    exit_code = asyncio.run(_launch_async())
    raise typer.Exit(code=exit_code)
