"""
Spawns the child runtime with the fetched resources on its classpath and
supervises it until it terminates.
"""

import asyncio
import logging
import os
import signal
from typing import Any, Iterable, Sequence

from webstart_cli.exceptions import ProcessSpawnError
from webstart_cli.utils.path import build_classpath

from .streams import close_sink, pump_input, pump_output

log = logging.getLogger(__name__)


def normalize_exit_code(returncode: int | None) -> int:
    """
    Maps the OS return code to the reported exit code.
    A child ended by a signal has no exit code of its own and reports 0.
    """
    if returncode is None or returncode < 0:
        return 0
    return returncode


class Execution:
    """
    A handle on one supervised child process.

    Awaiting it yields the exit code. `abort()` signals the child, even if it
    has not been started yet.
    """

    def __init__(
        self,
        command: Sequence[str],
        stdout: Any = None,
        stderr: Any = None,
        stdin: Any = None,
    ):
        self.command = list(command)
        self._stdout = stdout
        self._stderr = stderr
        self._stdin = stdin
        self._process: asyncio.subprocess.Process | None = None
        self._pending_signal: int | None = None
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"execution:{self.command[0]}"
        )

    def __await__(self):
        return self._task.__await__()

    async def wait(self) -> int:
        return await self._task

    def done(self) -> bool:
        return self._task.done()

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process else None

    def abort(self, sig: int = signal.SIGINT) -> bool:
        """
        Sends a signal to the child (SIGINT by default, SIGTERM to terminate).

        Returns:
            True if the signal was delivered or queued for delivery on start,
            False if the child already exited.
        """
        if self._task.done():
            return False
        if self._process is None:
            log.debug(f"Child not started yet, queueing signal {sig}.")
            self._pending_signal = sig
            return True
        if self._process.returncode is not None:
            return False
        return self._send_signal(sig)

    def _send_signal(self, sig: int) -> bool:
        try:
            self._process.send_signal(sig)
            log.debug(f"Sent signal {sig} to process {self._process.pid}.")
            return True
        except ProcessLookupError:
            return False
        except ValueError:
            # Windows only supports a subset of signals for child processes.
            self._process.terminate()
            return True

    async def _run(self) -> int:
        pipe = asyncio.subprocess.PIPE
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=pipe if self._stdin is not None else None,
                stdout=pipe if self._stdout is not None else None,
                stderr=pipe if self._stderr is not None else None,
            )
        except OSError as e:
            await self._close_sinks()
            raise ProcessSpawnError(f"Could not start '{self.command[0]}': {e}") from e

        self._process = process
        log.debug(f"Started process {process.pid}: {' '.join(self.command)}")
        if self._pending_signal is not None:
            self._send_signal(self._pending_signal)

        output_pumps = []
        if self._stdout is not None:
            output_pumps.append(asyncio.create_task(pump_output(process.stdout, self._stdout)))
        if self._stderr is not None:
            output_pumps.append(asyncio.create_task(pump_output(process.stderr, self._stderr)))
        input_pump = None
        if self._stdin is not None:
            input_pump = asyncio.create_task(pump_input(self._stdin, process.stdin))

        try:
            returncode = await process.wait()
            results = await asyncio.gather(*output_pumps, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    log.debug(f"Output pipe failed: {result}")
        except asyncio.CancelledError:
            if process.returncode is None:
                log.debug(f"Supervision cancelled, killing process {process.pid}.")
                process.kill()
                await asyncio.shield(process.wait())
            raise
        finally:
            await self._unwire(output_pumps, input_pump)

        log.info("Process terminated")
        return normalize_exit_code(returncode)

    async def _unwire(self, output_pumps: list[asyncio.Task], input_pump: asyncio.Task | None):
        pumps = [p for p in [*output_pumps, input_pump] if p is not None]
        for pump in pumps:
            if not pump.done():
                pump.cancel()
        await asyncio.gather(*pumps, return_exceptions=True)
        await self._close_sinks()

    async def _close_sinks(self):
        for sink in (self._stdout, self._stderr):
            if sink is not None:
                await close_sink(sink)


class ProcessSupervisor:
    """Builds the runtime command line and spawns one Execution per call."""

    def __init__(self, runtime: str = "java", runtime_args: Iterable[str] = ()):
        self.runtime = runtime
        self.runtime_args = list(runtime_args)

    def build_command(
        self,
        entry_point: str,
        resource_paths: Iterable[os.PathLike | str],
        arguments: Iterable[str] = (),
    ) -> list[str]:
        classpath = build_classpath(resource_paths)
        return [self.runtime, *self.runtime_args, "-cp", classpath, entry_point, *arguments]

    def spawn(
        self,
        entry_point: str,
        resource_paths: Iterable[os.PathLike | str],
        arguments: Iterable[str] = (),
        stdout: Any = None,
        stderr: Any = None,
        stdin: Any = None,
    ) -> Execution:
        """
        Starts the entry point in a child runtime and returns immediately.

        Streams left as None are inherited from this process and never closed.
        Explicitly supplied output sinks are closed once the child terminates.
        Must be called from a running event loop.
        """
        command = self.build_command(entry_point, resource_paths, arguments)
        return Execution(command, stdout=stdout, stderr=stderr, stdin=stdin)
