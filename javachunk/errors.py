"""Error hierarchy.

Every failure carries the pipeline stage it happened in:
  - read:  the source file cannot be read
  - parse: the source is not valid Java
  - emit:  a sink rejected a chunk

There is no partial recovery: a file either extracts completely or fails.
"""

from __future__ import annotations

from typing import Optional


class ChunkerError(Exception):
    """Base error for all javachunk failures.

    Attributes:
        message: Human-readable description.
        path: Source file involved, if known.
    """

    stage = "chunk"

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        where = f" ({self.path})" if self.path else ""
        return f"[{self.stage}] {self.message}{where}"


class SourceReadError(ChunkerError):
    """The input path could not be read (missing, unreadable, binary)."""

    stage = "read"


class ParseError(ChunkerError):
    """The input does not conform to the Java grammar.

    Attributes:
        line: 1-based line of the first syntax error.
        column: 1-based column of the first syntax error.
    """

    stage = "parse"

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message, path=path)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        base = super().__str__()
        if self.line is None:
            return base
        return f"{base} at line {self.line}, column {self.column}"


class SinkError(ChunkerError):
    """A sink failed while consuming a chunk.

    Attributes:
        symbol: Symbol of the chunk being emitted.
    """

    stage = "emit"

    def __init__(self, message: str, path: Optional[str] = None, symbol: Optional[str] = None) -> None:
        super().__init__(message, path=path)
        self.symbol = symbol
