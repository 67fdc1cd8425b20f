"""Stream sinks: human-readable banners or JSON Lines.

Both write chunk text byte-for-byte (no wrapping, no tab expansion), so the
output can be piped into other tools.
"""

from __future__ import annotations

import json
import sys
from typing import Optional, TextIO

from ..chunking.base import Chunk
from .base import ChunkSink

CHUNK_START = "=== EMBEDDING CHUNK START ==="
CHUNK_END = "=== EMBEDDING CHUNK END ==="


class _StreamSink(ChunkSink):
    def __init__(self, out: Optional[TextIO] = None) -> None:
        self._out = out

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def close(self) -> None:
        self.out.flush()


class ConsoleSink(_StreamSink):
    """Print each chunk between start/end banners."""

    def consume(self, chunk: Chunk) -> None:
        self.out.write(f"{CHUNK_START}\n{chunk.text}\n{CHUNK_END}\n\n")


class JsonlSink(_StreamSink):
    """Write one JSON object per chunk: symbol, kind, line range and text."""

    def consume(self, chunk: Chunk) -> None:
        record = {
            "symbol": chunk.symbol,
            "kind": chunk.kind.value,
            "start_line": chunk.start_line,
            "end_line": chunk.end_line,
            "text": chunk.text,
        }
        self.out.write(json.dumps(record, ensure_ascii=False) + "\n")
