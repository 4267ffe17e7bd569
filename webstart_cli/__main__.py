"""
Console entry point for `webstart` and `python -m webstart_cli`.

Errors escaping the typer command are rendered here and mapped to exit codes:
launch failures exit with 2, interrupts and unexpected errors with 1.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from webstart_cli.cli.app import EXIT_FAILURE, EXIT_LAUNCH_ERROR, app
from webstart_cli.cli.formatters import format_error_with_suggestions
from webstart_cli.exceptions import WebstartError

log = logging.getLogger("webstart_cli")


def _use_utf8_streams() -> None:
    # Windows consoles default to a legacy code page.
    if os.name != "nt":
        return
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass


def _report(console: Console, error: Exception, context: dict | None = None) -> None:
    console.print()
    console.print(format_error_with_suggestions(error, context))


def main() -> None:
    _use_utf8_streams()
    console = Console(stderr=True)

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Interrupted.[/yellow]")
        sys.exit(EXIT_FAILURE)
    except WebstartError as e:
        _report(console, e)
        sys.exit(EXIT_LAUNCH_ERROR)
    except Exception as e:
        _report(console, e, {"type": "Unexpected"})
        log.debug("Full traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
