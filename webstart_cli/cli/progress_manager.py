"""
Renders resource download progress with Rich, one bar per resource.
"""

import asyncio
import logging

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

log = logging.getLogger("webstart_cli")


class ProgressManager:
    """
    Receives byte counters from the resource fetcher and shows them as
    transient Rich progress bars.
    """

    def __init__(self, console: Console, enabled: bool = True):
        self.console = console
        self.enabled = enabled
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=True,
        )
        self._tasks: dict[str, TaskID] = {}
        self._started = False

    def _short_name(self, name: str) -> str:
        if len(name) > 40:
            return "…" + name[-39:]
        return name

    def start(self, name: str, total: int | None) -> None:
        if not self.enabled:
            return
        if not self._started:
            self.progress.start()
            self._started = True
        description = f"Downloading [cyan]{self._short_name(name)}[/cyan]"
        self._tasks[name] = self.progress.add_task(description, total=total, start=True)

    def advance(self, name: str, completed: int) -> None:
        task_id = self._tasks.get(name)
        if task_id is not None:
            self.progress.update(task_id, completed=completed)

    def finish(self, name: str, success: bool) -> None:
        task_id = self._tasks.pop(name, None)
        if task_id is None:
            return
        self.progress.remove_task(task_id)
        if success:
            log.debug(f"Finished downloading {name}")
        else:
            log.debug(f"Download of {name} did not complete")
        if not self._tasks and self._started:
            # The child process owns the terminal once all transfers are done.
            self.progress.stop()
            self._started = False

    async def __aenter__(self) -> "ProgressManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._started:
            await asyncio.sleep(0.1)
            self.progress.stop()
            self._started = False
