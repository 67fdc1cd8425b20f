"""Vector store interface and the records it stores."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class ChunkRecord:
    """One embedded chunk, ready to persist.

    Attributes:
        file_path: Workspace-relative path of the source file.
        file_sha256: Hash of the source text the chunk came from.
        kind: `type-header`, `method` or `constructor`.
        symbol: `Outer.Inner` for headers, `Outer.Inner#member` for members.
        start_line: First source line of the declaration (1-based).
        end_line: Last source line of the declaration.
        text: The chunk text that was embedded.
        embedding: The chunk's vector.
        ordinal: Position of the chunk among its file's chunks (0-based).
    """

    file_path: str
    file_sha256: str
    kind: str
    symbol: Optional[str]
    start_line: int
    end_line: int
    text: str
    embedding: Sequence[float]
    ordinal: int = 0

    @property
    def chunk_id(self) -> str:
        """Stable id: same file, declaration, kind and position give the same id."""
        key = f"{self.file_path}\0{self.ordinal}\0{self.kind}\0{self.symbol}\0{self.start_line}\0{self.end_line}"
        return hashlib.sha1(key.encode("utf-8")).hexdigest()


@dataclass
class SearchHit:
    """A stored chunk and its cosine similarity to the query."""

    chunk_id: str
    score: float
    path: str
    start_line: int
    end_line: int
    text: str
    kind: str
    symbol: Optional[str]

    @property
    def location(self) -> str:
        return f"{self.path}:{self.start_line}-{self.end_line}"


class VectorStore:
    """Persists chunk records and finds the ones nearest a query vector."""

    def upsert_chunks(self, records: List[ChunkRecord]) -> int:
        """Insert or replace records. Returns how many were written."""
        raise NotImplementedError

    def delete_file(self, file_path: str) -> int:
        """Drop every record of one source file. Returns how many were removed."""
        raise NotImplementedError

    def search(self, query_vec: Sequence[float], top_k: int) -> List[SearchHit]:
        raise NotImplementedError

    def stats(self) -> dict:
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass
