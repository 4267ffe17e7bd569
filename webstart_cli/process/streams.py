"""
Stream plumbing between a child process and caller-supplied sinks and sources.
"""

import asyncio
import codecs
import inspect
import io
import logging
from typing import Any

log = logging.getLogger(__name__)

PUMP_CHUNK_SIZE = 65536


class OutputBuffer:
    """
    An in-memory sink that collects everything written to it.
    The collected data stays readable after the buffer is closed.
    """

    def __init__(self):
        self._data = bytearray()
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("write to closed OutputBuffer")
        self._data.extend(data)
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    def getvalue(self) -> bytes:
        return bytes(self._data)

    def __str__(self) -> str:
        return self._data.decode("utf-8", errors="replace")


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


async def pump_output(reader: asyncio.StreamReader, sink: Any) -> None:
    """Copies a child output pipe into a sink until EOF."""
    decoder = None
    if isinstance(sink, io.TextIOBase):
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    while True:
        chunk = await reader.read(PUMP_CHUNK_SIZE)
        if not chunk:
            break
        if decoder:
            await _maybe_await(sink.write(decoder.decode(chunk)))
        else:
            await _maybe_await(sink.write(chunk))
        if hasattr(sink, "drain"):
            await sink.drain()

    if decoder and (tail := decoder.decode(b"", final=True)):
        await _maybe_await(sink.write(tail))
    if hasattr(sink, "flush"):
        await _maybe_await(sink.flush())


async def pump_input(source: Any, writer: asyncio.StreamWriter) -> None:
    """
    Feeds a source into the child's stdin and closes it at EOF.

    Accepts bytes, an asyncio.StreamReader or a binary file-like object.
    A child that stops reading early is not an error.
    """
    try:
        if isinstance(source, (bytes, bytearray, memoryview)):
            writer.write(bytes(source))
            await writer.drain()
        elif isinstance(source, asyncio.StreamReader):
            while chunk := await source.read(PUMP_CHUNK_SIZE):
                writer.write(chunk)
                await writer.drain()
        else:
            read = getattr(source, "read1", None) or source.read
            while chunk := await asyncio.to_thread(read, PUMP_CHUNK_SIZE):
                if isinstance(chunk, str):
                    chunk = chunk.encode()
                writer.write(chunk)
                await writer.drain()
    except (BrokenPipeError, ConnectionResetError) as e:
        log.debug(f"Child stdin closed before input was consumed: {e}")
    finally:
        try:
            writer.close()
        except Exception as e:
            log.debug(f"Could not close child stdin: {e}")


async def close_sink(sink: Any) -> None:
    """Flushes and closes a caller-supplied sink. Failures are only logged."""
    try:
        if hasattr(sink, "flush"):
            await _maybe_await(sink.flush())
        if hasattr(sink, "close"):
            await _maybe_await(sink.close())
        if hasattr(sink, "wait_closed"):
            await sink.wait_closed()
    except Exception as e:
        log.debug(f"Could not close output sink {sink!r}: {e}")
