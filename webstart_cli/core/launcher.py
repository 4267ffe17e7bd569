"""
The launch orchestrator: fetches all resources, verifies them, and supervises
the child runtime, reacting to stop requests at any point in between.
"""

import asyncio
import logging
import signal
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Iterable, TypeVar

from webstart_cli.exceptions import AbortedError, ConfigurationError
from webstart_cli.models.config import LauncherConfig
from webstart_cli.models.descriptor import (
    CachedArtifact,
    LaunchDescriptor,
    ResourceRef,
    VerificationResult,
)
from webstart_cli.models.stats import FetchStats
from webstart_cli.process import Execution, ProcessSupervisor
from webstart_cli.resources import (
    JarSignerVerifier,
    ProgressReporter,
    ResourceFetcher,
    Verifier,
    apply_trust_policy,
)

log = logging.getLogger(__name__)

T = TypeVar("T")


class LaunchState(Enum):
    """States of a launch."""

    CREATED = "created"
    RESOURCES_FETCHING = "resources_fetching"
    VERIFYING = "verifying"
    RUNNING = "running"
    TERMINATED = "terminated"
    ABORTED = "aborted"
    FAILED = "failed"


_FINAL_STATES = (LaunchState.TERMINATED, LaunchState.ABORTED, LaunchState.FAILED)


def _signal_name(sig: int) -> str:
    try:
        return signal.Signals(sig).name
    except ValueError:
        return str(sig)


def _local_artifacts(paths: Iterable) -> list[CachedArtifact]:
    """Wraps jars already on disk as artifacts, in the given order."""
    artifacts = []
    for raw in paths:
        path = Path(raw).expanduser().resolve()
        if not path.is_file():
            raise ConfigurationError(f"Local jar '{raw}' does not exist.")
        ref = ResourceRef(name=path.name, url=path.as_uri())
        artifacts.append(
            CachedArtifact(ref, path, path.stat().st_size, from_cache=True)
        )
    return artifacts


class Launcher:
    """
    Runs one descriptor exactly once.

    CREATED -> RESOURCES_FETCHING -> VERIFYING -> RUNNING -> TERMINATED, with
    ABORTED reachable through `stop()` and FAILED on any error.
    """

    def __init__(
        self,
        descriptor: LaunchDescriptor,
        config: LauncherConfig | None = None,
        fetcher: ResourceFetcher | None = None,
        verifier: Verifier | None = None,
        supervisor: ProcessSupervisor | None = None,
        progress: ProgressReporter | None = None,
    ):
        self.descriptor = descriptor
        self.config = config or LauncherConfig()
        self.stats = FetchStats()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or ResourceFetcher(
            progress=progress,
            stats=self.stats,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.retry_delay,
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
        )
        self.verifier = verifier or JarSignerVerifier(
            self.config.resolve_jarsigner_command()
        )
        self.supervisor = supervisor or ProcessSupervisor(
            self.config.resolve_java_command()
        )

        self.state = LaunchState.CREATED
        self.artifacts: list[CachedArtifact] = []
        self.verification_results: list[VerificationResult] = []
        self.execution: Execution | None = None
        self._active_task: asyncio.Task | None = None
        self._stop_signal: int | None = None

    @property
    def stop_requested(self) -> bool:
        return self._stop_signal is not None

    def _transition(self, state: LaunchState) -> None:
        log.debug(f"Launch state: {self.state.value} -> {state.value}")
        self.state = state

    async def run(
        self,
        stdout: Any = None,
        stderr: Any = None,
        stdin: Any = None,
        resource_paths: Iterable | None = None,
    ) -> int:
        """
        Fetches, verifies and runs the descriptor's entry point.

        Args:
            resource_paths: Jars already on disk to run instead of the
                descriptor's resources. Nothing is downloaded when given.

        Returns:
            The exit code of the child process.

        Raises:
            ConfigurationError: When run twice, the descriptor lacks resources
                or an entry point, or a local jar does not exist.
            DownloadError, TrustError, VerificationUnavailableError,
            ProcessSpawnError: When the corresponding phase fails.
            AbortedError: When `stop()` was called during the run.
        """
        if self.state is not LaunchState.CREATED:
            raise ConfigurationError(
                f"Launcher already used (state: {self.state.value}); create a new one."
            )
        local_artifacts = None
        try:
            if resource_paths is not None:
                local_artifacts = _local_artifacts(resource_paths)
                if not local_artifacts:
                    raise ConfigurationError("No local jars given.")
            elif not self.descriptor.resources:
                raise ConfigurationError("The descriptor does not name any jar resources.")
            if not self.descriptor.entry_point:
                raise ConfigurationError("No main class specified in the descriptor.")
        except ConfigurationError:
            self._transition(LaunchState.FAILED)
            raise

        try:
            exit_code = await self._run_pipeline(stdout, stderr, stdin, local_artifacts)
        except AbortedError:
            self._transition(LaunchState.ABORTED)
            raise
        except BaseException:
            self._transition(LaunchState.FAILED)
            raise
        self._transition(LaunchState.TERMINATED)
        return exit_code

    async def _run_pipeline(
        self,
        stdout: Any,
        stderr: Any,
        stdin: Any,
        local_artifacts: list[CachedArtifact] | None,
    ) -> int:
        if local_artifacts is not None:
            log.debug("Using local jars, skipping download.")
            self.artifacts = local_artifacts
        else:
            self._transition(LaunchState.RESOURCES_FETCHING)
            try:
                self.artifacts = await self._run_phase(
                    self.fetcher.fetch_all(self.descriptor.resources, self.config.target_path)
                )
            finally:
                if self._owns_fetcher:
                    await self.fetcher.close()
            # close() yields, so a stop may arrive between the phases.
            self._raise_if_stopped()

        self._transition(LaunchState.VERIFYING)
        if self.config.verify:
            self.verification_results = await self._run_phase(
                apply_trust_policy(self.verifier, self.artifacts, self.config.trust)
            )
        else:
            log.warning("[yellow]Signature verification is disabled.[/yellow]")
        self._raise_if_stopped()

        self._transition(LaunchState.RUNNING)
        log.info("Starting Java Web Start...")
        self.execution = self.supervisor.spawn(
            self.descriptor.entry_point,
            [artifact.local_path for artifact in self.artifacts],
            arguments=self.descriptor.arguments,
            stdout=stdout,
            stderr=stderr,
            stdin=stdin,
        )
        exit_code = await self.execution
        self._raise_if_stopped(exit_code)
        return exit_code

    async def _run_phase(self, coro: Awaitable[T]) -> T:
        """Runs a phase as its own task so `stop()` can cancel it."""
        self._active_task = asyncio.ensure_future(coro)
        try:
            return await self._active_task
        except asyncio.CancelledError:
            if self.stop_requested:
                self._raise_if_stopped()
            raise
        finally:
            self._active_task = None

    def _raise_if_stopped(self, exit_code: int | None = None) -> None:
        if self._stop_signal is None:
            return
        message = f"Launch aborted by {_signal_name(self._stop_signal)}"
        if exit_code is not None:
            message += f" (child exited with {exit_code})"
        raise AbortedError(message)

    def stop(self, sig: int = signal.SIGINT) -> bool:
        """
        Requests the launch to stop, forwarding to whatever is active: the
        fetch or verification task is cancelled, a running child is signalled.

        Returns:
            True if the stop was recorded for a live launch. It takes effect
            at the latest before the next phase starts.
        """
        if self.state is LaunchState.CREATED or self.state in _FINAL_STATES:
            log.debug(f"Ignoring stop request in state {self.state.value}.")
            return False

        self._stop_signal = sig
        log.debug(f"Stop requested ({_signal_name(sig)}) in state {self.state.value}.")
        if self.state is LaunchState.RUNNING and self.execution is not None:
            return self.execution.abort(sig)
        if self._active_task is not None and not self._active_task.done():
            self._active_task.cancel()
        return True
