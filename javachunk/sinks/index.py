"""Sink that embeds chunks and stores them in a vector store.

Chunks are buffered and embedded `batch_size` at a time, in arrival order.
Call `set_document` before emitting a file's chunks so they are attributed to
it; `close` flushes whatever is still buffered.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..chunking.base import Chunk
from ..embeddings.base import Embedder
from ..vectordb.base import ChunkRecord, VectorStore
from .base import ChunkSink

logger = logging.getLogger(__name__)


class EmbeddingIndexSink(ChunkSink):
    """
    Attributes:
        embedder: Embedding backend.
        store: Where records are written.
        batch_size: Chunks per embedding call.
        written: Records written so far.
    """

    def __init__(self, embedder: Embedder, store: VectorStore, batch_size: int = 32) -> None:
        self.embedder = embedder
        self.store = store
        self.batch_size = max(1, int(batch_size))
        self.written = 0
        self._document: Optional[Tuple[str, str]] = None
        self._ordinal = 0
        # ((file_path, sha), ordinal, chunk)
        self._pending: List[Tuple[Tuple[str, str], int, Chunk]] = []

    def set_document(self, file_path: str, file_sha256: str) -> None:
        self._document = (file_path, file_sha256)
        self._ordinal = 0

    def consume(self, chunk: Chunk) -> None:
        if self._document is None:
            raise RuntimeError("set_document() must be called before emitting chunks")
        self._pending.append((self._document, self._ordinal, chunk))
        self._ordinal += 1
        if len(self._pending) >= self.batch_size:
            self.flush()

    def flush(self) -> int:
        """Embed and store the buffered chunks; returns how many were written."""
        if not self._pending:
            return 0
        pending, self._pending = self._pending, []

        vecs = self.embedder.embed([chunk.text for _, _, chunk in pending])
        if len(vecs) != len(pending):
            raise ValueError(f"Embedder returned {len(vecs)} vector(s) for {len(pending)} chunk(s)")

        records = [
            ChunkRecord(
                file_path=file_path,
                file_sha256=sha,
                kind=chunk.kind.value,
                symbol=chunk.symbol,
                start_line=chunk.start_line,
                end_line=chunk.end_line,
                text=chunk.text,
                embedding=vec,
                ordinal=ordinal,
            )
            for ((file_path, sha), ordinal, chunk), vec in zip(pending, vecs)
        ]
        n = self.store.upsert_chunks(records)
        self.written += n
        logger.debug("Stored %d embedded chunk(s)", n)
        return n

    def close(self) -> None:
        self.flush()
