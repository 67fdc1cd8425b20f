"""Reading Java source files from disk.

Files are read whole: a source file cut short would not parse, so oversize
files are refused instead of truncated.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from ..errors import SourceReadError

# bytes that never show up in source text (NUL aside, checked separately)
_CONTROL = bytes(b for b in range(0x20) if b not in (0x09, 0x0A, 0x0C, 0x0D, 0x1B))
SNIFF_BYTES = 8192


def is_probably_binary(data: bytes) -> bool:
    """Guess from the first few KB whether `data` is binary.

    A NUL byte, or more than 30% control characters, means binary.
    """
    head = data[:SNIFF_BYTES]
    if not head:
        return False
    if b"\x00" in head:
        return True
    controls = len(head) - len(head.translate(None, _CONTROL))
    return controls / len(head) > 0.30


def decode_source(raw: bytes) -> Tuple[str, str]:
    """Decode source bytes as UTF-8 (BOM stripped), else Latin-1.

    Returns:
        Tuple of (text, encoding_used).
    """
    try:
        return raw.decode("utf-8-sig"), "utf-8"
    except UnicodeDecodeError:
        return raw.decode("latin-1"), "latin-1"


def read_text_file(path: Path, max_bytes: Optional[int] = None) -> Tuple[str, str]:
    """Read a whole source file as text.

    Args:
        path: File to read.
        max_bytes: Refuse files larger than this (no limit when None).

    Returns:
        Tuple of (text, encoding_used).

    Raises:
        SourceReadError: If the file is missing, unreadable, too large or binary.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise SourceReadError(f"Cannot read source file: {e.strerror or e}", path=str(path)) from e
    if max_bytes is not None and len(raw) > max_bytes:
        raise SourceReadError(f"File is {len(raw)} bytes, limit is {max_bytes}", path=str(path))
    if is_probably_binary(raw):
        raise SourceReadError("Binary file detected", path=str(path))
    return decode_source(raw)
