"""
Handles the downloading of descriptor resources over HTTP, with size-based
cache short-circuiting, streaming writes and cancellable concurrent fetches.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Iterable, Protocol

import aiofiles
import aiohttp

from webstart_cli.exceptions import DownloadError
from webstart_cli.models.descriptor import CachedArtifact, ResourceRef
from webstart_cli.models.stats import FetchStats
from webstart_cli.utils.path import create_dir, resource_target_path

log = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """Receives byte counters for each resource being transferred."""

    def start(self, name: str, total: int | None) -> None: ...

    def advance(self, name: str, completed: int) -> None: ...

    def finish(self, name: str, success: bool) -> None: ...


def create_session(
    connect_timeout: float = 15.0, read_timeout: float = 90.0, limit_per_host: int = 8
) -> aiohttp.ClientSession:
    """Creates the ClientSession used for resource and descriptor downloads."""
    connector = aiohttp.TCPConnector(
        limit=limit_per_host * 2,
        limit_per_host=limit_per_host,
        ttl_dns_cache=600,
        enable_cleanup_closed=True,
    )
    timeout = aiohttp.ClientTimeout(
        total=None, sock_connect=connect_timeout, sock_read=read_timeout
    )
    # Archives must be stored byte for byte, so no transfer encoding.
    return aiohttp.ClientSession(
        connector=connector, timeout=timeout, headers={"Accept-Encoding": "identity"}
    )


def _cached_size(path: Path) -> int:
    """Size of an existing regular file at path, 0 when there is none."""
    try:
        if path.is_file():
            return path.stat().st_size
    except OSError:
        pass
    return 0


class ResourceFetcher:
    """
    Downloads resources into a target directory.

    A file already present with the same byte size as the remote Content-Length
    is reused without transferring the body. Only the size is compared, so a
    changed remote resource of identical length is treated as cached. An empty
    local file never counts as cached, so an empty remote resource is always
    transferred again.
    """

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        progress: ProgressReporter | None = None,
        stats: FetchStats | None = None,
        max_attempts: int = 3,
        base_delay: float = 1.5,
        chunk_size: int = CHUNK_SIZE,
        connect_timeout: float = 15.0,
        read_timeout: float = 90.0,
    ):
        self._session = session
        self._owns_session = session is None
        self.progress = progress
        self.stats = stats
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.chunk_size = chunk_size
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = create_session(self.connect_timeout, self.read_timeout)
            self._owns_session = True
            log.debug("Created resource download session.")
        return self._session

    async def close(self) -> None:
        """Closes the HTTP session if this fetcher created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            log.debug("Resource download session closed.")
        if self._owns_session:
            self._session = None

    async def __aenter__(self) -> "ResourceFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def fetch(self, ref: ResourceRef, target_dir: os.PathLike | str) -> CachedArtifact:
        """
        Makes one resource available in target_dir.

        Connection failures and timeouts are retried with exponential backoff.
        HTTP error statuses are not retried.

        Raises:
            DownloadError: On HTTP status >= 400, or network/stream/file failures.
        """
        try:
            target_path = resource_target_path(Path(target_dir), ref.name)
        except ValueError as e:
            await self._record_failure()
            raise DownloadError(str(e), url=ref.url) from e

        cached_length = await asyncio.to_thread(_cached_size, target_path)
        last_exception: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self._fetch_once(ref, target_path, cached_length)
            except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{ref.name}' failed: {e!r}."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
            except DownloadError:
                await self._record_failure()
                raise
            except aiohttp.ClientError as e:
                last_exception = e
                break

        await self._record_failure()
        raise DownloadError(
            f"Failed to download '{ref.name}' from {ref.url}: {last_exception}",
            url=ref.url,
        ) from last_exception

    async def _fetch_once(
        self, ref: ResourceRef, target_path: Path, cached_length: int
    ) -> CachedArtifact:
        session = await self._get_session()
        async with session.get(ref.url, allow_redirects=True) as response:
            if response.status >= 400:
                log.warning(f"{ref.url}: HTTP {response.status} {response.reason}")
                raise DownloadError(
                    f"Download of '{ref.name}' failed with HTTP {response.status} "
                    f"{response.reason or ''}".rstrip(),
                    url=ref.url,
                    status=response.status,
                )

            content_length = response.content_length
            if cached_length and content_length == cached_length:
                # Drop the connection instead of draining the body.
                response.close()
                log.debug(f"Cached version of '{ref.name}' found at {target_path}.")
                if self.stats:
                    await self.stats.record_cache_hit(cached_length)
                return CachedArtifact(ref, target_path, cached_length, from_cache=True)

            log.debug(f"Downloading {ref.name} ...")
            self._progress_call("start", ref.name, content_length)

            bytes_downloaded = 0
            success = False
            try:
                await asyncio.to_thread(create_dir, target_path.parent)
                async with aiofiles.open(target_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        await f.write(chunk)
                        bytes_downloaded += len(chunk)
                        self._progress_call("advance", ref.name, bytes_downloaded)
                if content_length is not None and bytes_downloaded != content_length:
                    raise DownloadError(
                        f"Incomplete download of '{ref.name}': got {bytes_downloaded}"
                        f" of {content_length} bytes",
                        url=ref.url,
                    )
                success = True
            except aiohttp.ClientPayloadError as e:
                raise DownloadError(
                    f"Transfer of '{ref.name}' was interrupted: {e}", url=ref.url
                ) from e
            except (aiohttp.ClientError, asyncio.TimeoutError):
                raise
            except OSError as e:
                raise DownloadError(
                    f"Could not write '{target_path}': {e}", url=ref.url
                ) from e
            finally:
                self._progress_call("finish", ref.name, success)

        if self.stats:
            await self.stats.record_download(bytes_downloaded)
        log.debug(f"Downloaded {ref.name} ({bytes_downloaded} bytes).")
        return CachedArtifact(ref, target_path, bytes_downloaded, from_cache=False)

    async def fetch_all(
        self, refs: Iterable[ResourceRef], target_dir: os.PathLike | str
    ) -> list[CachedArtifact]:
        """
        Fetches all resources concurrently and returns them in declared order.

        Every fetch runs to completion even if a sibling fails; the first failure
        to occur is raised afterwards. Finished downloads stay on disk.
        Cancelling this coroutine cancels all in-flight fetches.
        """
        tasks = [
            asyncio.create_task(self.fetch(ref, target_dir), name=f"fetch:{ref.name}")
            for ref in refs
        ]
        first_error: BaseException | None = None
        try:
            for next_done in asyncio.as_completed(tasks):
                try:
                    await next_done
                except Exception as e:
                    if first_error is None:
                        first_error = e
                    else:
                        log.debug(f"Additional fetch failure: {e}")
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            log.debug("Fetch phase cancelled.")
            raise

        if first_error is not None:
            raise first_error
        return [task.result() for task in tasks]

    async def _record_failure(self) -> None:
        if self.stats:
            await self.stats.record_failure()

    def _progress_call(self, method: str, *args) -> None:
        """Forwards to the progress reporter; rendering problems never fail a fetch."""
        if not self.progress:
            return
        try:
            getattr(self.progress, method)(*args)
        except Exception as e:
            log.debug(f"Progress reporter {method} failed: {e}")
