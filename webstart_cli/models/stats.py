"""
Dataclass for tracking fetch phase statistics.
"""

import asyncio
import time
from dataclasses import dataclass, field


@dataclass
class FetchStats:
    """Tracks statistics for the fetch phase of a launch, including average speed."""

    artifacts_downloaded: int = 0
    artifacts_cached: int = 0
    artifacts_failed: int = 0
    bytes_downloaded: int = 0
    bytes_cached: int = 0

    _started_at: float = field(default=0.0, repr=False)
    _finished_at: float = field(default=0.0, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self):
        self._started_at = time.monotonic()

    async def record_download(self, byte_length: int) -> None:
        async with self._lock:
            self.artifacts_downloaded += 1
            self.bytes_downloaded += byte_length
            self._finished_at = time.monotonic()

    async def record_cache_hit(self, byte_length: int) -> None:
        async with self._lock:
            self.artifacts_cached += 1
            self.bytes_cached += byte_length
            self._finished_at = time.monotonic()

    async def record_failure(self) -> None:
        async with self._lock:
            self.artifacts_failed += 1
            self._finished_at = time.monotonic()

    @property
    def elapsed_s(self) -> float:
        end = self._finished_at or time.monotonic()
        return max(0.0, end - self._started_at)

    @property
    def avg_speed_bps(self) -> float:
        """Average transfer speed over the downloaded (non-cached) bytes."""
        elapsed = self.elapsed_s
        if elapsed <= 0 or self.bytes_downloaded <= 0:
            return 0.0
        return self.bytes_downloaded / elapsed
