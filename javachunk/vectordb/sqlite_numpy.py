"""SQLite + NumPy vector store: one local file, no extra services.

Chunk text, metadata and the float32 embedding (as a BLOB) share a row in
`chunks.sqlite3`. Search loads the vectors into one matrix and ranks by cosine
similarity, which is plenty for a single code base.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import List, Sequence

import numpy as np

from .base import ChunkRecord, SearchHit, VectorStore

logger = logging.getLogger(__name__)

DB_FILENAME = "chunks.sqlite3"

SCHEMA = """
CREATE TABLE IF NOT EXISTS chunks (
    chunk_id    TEXT PRIMARY KEY,
    file_path   TEXT NOT NULL,
    file_sha256 TEXT NOT NULL,
    kind        TEXT NOT NULL,
    symbol      TEXT,
    start_line  INTEGER NOT NULL,
    end_line    INTEGER NOT NULL,
    text        TEXT NOT NULL,
    dim         INTEGER NOT NULL,
    embedding   BLOB NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_chunks_file ON chunks(file_path);
"""


def _normalize(m: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(m, axis=-1, keepdims=True)
    return m / np.maximum(norms, 1e-12)


class SQLiteNumpyVectorStore(VectorStore):
    """Vector store in `<store_dir>/chunks.sqlite3`."""

    def __init__(self, store_dir: Path) -> None:
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.store_dir / DB_FILENAME
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.executescript(SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteNumpyVectorStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def upsert_chunks(self, records: List[ChunkRecord]) -> int:
        rows = []
        for rec in records:
            vec = np.asarray(rec.embedding, dtype=np.float32)
            rows.append(
                (
                    rec.chunk_id,
                    rec.file_path,
                    rec.file_sha256,
                    rec.kind,
                    rec.symbol,
                    int(rec.start_line),
                    int(rec.end_line),
                    rec.text,
                    int(vec.shape[0]),
                    vec.tobytes(),
                )
            )
        with self._conn:
            self._conn.executemany("INSERT OR REPLACE INTO chunks VALUES (?,?,?,?,?,?,?,?,?,?)", rows)
        return len(rows)

    def delete_file(self, file_path: str) -> int:
        with self._conn:
            cur = self._conn.execute("DELETE FROM chunks WHERE file_path = ?", (file_path,))
        return cur.rowcount

    def search(self, query_vec: Sequence[float], top_k: int) -> List[SearchHit]:
        rows = self._conn.execute(
            "SELECT chunk_id, file_path, start_line, end_line, text, kind, symbol, embedding FROM chunks"
        ).fetchall()
        q = np.asarray(query_vec, dtype=np.float32)
        matching = [r for r in rows if len(r[7]) == q.nbytes]
        if len(matching) < len(rows):
            logger.warning("Skipping %d chunk(s) embedded with a different dimension", len(rows) - len(matching))
        rows = matching
        if not rows:
            return []

        matrix = np.stack([np.frombuffer(r[7], dtype=np.float32) for r in rows])
        scores = _normalize(matrix) @ _normalize(q)
        order = np.argsort(-scores, kind="stable")[: max(1, int(top_k))]
        return [
            SearchHit(
                chunk_id=rows[i][0],
                score=float(scores[i]),
                path=rows[i][1],
                start_line=int(rows[i][2]),
                end_line=int(rows[i][3]),
                text=rows[i][4],
                kind=rows[i][5],
                symbol=rows[i][6],
            )
            for i in order
        ]

    def stats(self) -> dict:
        chunks, files = self._conn.execute("SELECT COUNT(*), COUNT(DISTINCT file_path) FROM chunks").fetchone()
        by_kind = dict(self._conn.execute("SELECT kind, COUNT(*) FROM chunks GROUP BY kind ORDER BY kind"))
        dims = [d for (d,) in self._conn.execute("SELECT DISTINCT dim FROM chunks")]
        return {
            "chunks": int(chunks),
            "files": int(files),
            "by_kind": by_kind,
            "dim": dims[0] if len(dims) == 1 else dims,
            "db_path": str(self.db_path),
        }

    def reset(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM chunks")
        self._conn.execute("VACUUM")
        logger.debug("Cleared %s", self.db_path)
