"""Sink interfaces.

A sink receives chunks one at a time, in document order. The extractor never
buffers or retries: buffering and transactions, if any, belong to the sink.
"""

from __future__ import annotations

from typing import Callable, List

from ..chunking.base import Chunk


class ChunkSink:
    """Sink interface."""

    def consume(self, chunk: Chunk) -> None:
        """Receive one chunk."""
        raise NotImplementedError

    def close(self) -> None:
        """Flush pending work. Called once after the last chunk."""

    def __enter__(self) -> "ChunkSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()


class CallbackSink(ChunkSink):
    """Adapts a plain `consume(chunk_text)` callable to the sink interface."""

    def __init__(self, fn: Callable[[str], None]) -> None:
        self.fn = fn

    def consume(self, chunk: Chunk) -> None:
        self.fn(chunk.text)


class ListSink(ChunkSink):
    """Collects chunks in memory."""

    def __init__(self) -> None:
        self.chunks: List[Chunk] = []

    def consume(self, chunk: Chunk) -> None:
        self.chunks.append(chunk)

    @property
    def texts(self) -> List[str]:
        return [c.text for c in self.chunks]
