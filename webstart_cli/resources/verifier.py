"""
Signature verification of downloaded archives and the trust policy applied to it.
"""

import asyncio
import logging
import os
from typing import Iterable, Protocol

from webstart_cli.exceptions import TrustError, VerificationUnavailableError
from webstart_cli.models.descriptor import CachedArtifact, VerificationResult

log = logging.getLogger(__name__)


class Verifier(Protocol):
    async def verify(self, artifact_path: os.PathLike | str) -> VerificationResult: ...


class JarSignerVerifier:
    """Checks archive signatures with `jarsigner -verify`."""

    VERIFIED_MARKER = "jar verified."

    def __init__(self, command: str = "jarsigner"):
        self.command = command

    async def verify(self, artifact_path: os.PathLike | str) -> VerificationResult:
        """
        Runs jarsigner against the archive.

        Returns:
            A VerificationResult, trusted when jarsigner reports the jar as verified.

        Raises:
            VerificationUnavailableError: If jarsigner could not be started.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self.command,
                "-verify",
                str(artifact_path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise VerificationUnavailableError(
                f"Unable to verify '{artifact_path}' using {self.command} -verify: {e}"
            ) from e

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        output = stdout.decode(errors="replace")
        if self.VERIFIED_MARKER in output:
            return VerificationResult(trusted=True, detail=output.strip())
        detail = (output + stderr.decode(errors="replace")).strip()
        log.debug(f"{self.command} exited with {process.returncode}: {detail}")
        return VerificationResult(trusted=False, detail=detail)


async def apply_trust_policy(
    verifier: Verifier, artifacts: Iterable[CachedArtifact], trust: bool
) -> list[VerificationResult]:
    """
    Verifies artifacts one at a time.

    Without trust, the first untrusted artifact raises TrustError and an
    unavailable verifier propagates VerificationUnavailableError. With trust,
    every artifact is still checked and failures only produce warnings.
    """
    results = []
    for artifact in artifacts:
        name = artifact.ref.name
        log.debug(f"Verifying if '{name}' is signed...")
        try:
            result = await verifier.verify(artifact.local_path)
        except VerificationUnavailableError as e:
            if not trust:
                raise
            log.warning(f"[yellow]{e}[/yellow]")
            log.warning(f"[yellow]'{name}' trusted explicitly.[/yellow]")
            results.append(VerificationResult(trusted=False, detail=str(e)))
            continue

        if result.trusted:
            log.info(f"[green]✓ '{name}' correctly signed.[/green]")
        elif not trust:
            raise TrustError(f"'{name}' is not (correctly) signed. Override using --trust.")
        else:
            log.warning(f"[yellow]'{name}' not (correctly) signed, trusted explicitly.[/yellow]")
        results.append(result)
    return results
