"""Chunking interfaces."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class ChunkKind(str, Enum):
    """What a chunk was cut from."""

    TYPE_HEADER = "type-header"
    METHOD = "method"
    CONSTRUCTOR = "constructor"


@dataclass(frozen=True)
class Chunk:
    """A chunk of text extracted from a source file.

    Attributes:
        text: Self-contained chunk content.
        kind: Type header, method or constructor.
        start_line: 1-based start line of the declaration in the source file.
        end_line: 1-based end line of the declaration in the source file.
        symbol: Qualified type name, with `#member` appended for members.
    """

    text: str
    kind: ChunkKind
    start_line: int
    end_line: int
    symbol: Optional[str] = None


class Chunker:
    """Chunker interface."""

    def chunk(self, text: str) -> List[Chunk]:
        """Split document text into chunks."""
        raise NotImplementedError
