"""Workspace scanning.

`list_candidate_files` walks the tree once (pruning excluded folders) so the
CLI can size its progress bar; `load_documents` then reads each file and
hashes its text for the incremental index manifest.
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from ..config import IndexOptions
from ..errors import ChunkerError
from .ignore_rules import build_ignore_matcher
from .loaders import read_text_file

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """One source file loaded from a workspace."""

    path: Path
    rel_path: str
    content: str
    encoding: str

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.content.encode("utf-8", errors="surrogatepass")).hexdigest()


def list_candidate_files(root: Path, opts: IndexOptions) -> List[Path]:
    """Every file under `root` that passes the extension, ignore and size filters.

    Returns:
        Paths sorted by their position relative to `root`.
    """
    matcher = build_ignore_matcher(root, opts.exclude_globs, use_gitignore=opts.use_gitignore)
    suffixes = {"." + e.lower().lstrip(".") for e in opts.include_ext}

    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=opts.follow_symlinks):
        here = Path(dirpath)
        dirnames[:] = [d for d in dirnames if not matcher.spec.match_file((here / d).relative_to(root).as_posix() + "/")]
        for fn in filenames:
            p = here / fn
            if p.suffix.lower() not in suffixes or matcher.matches(p):
                continue
            if p.is_symlink() and not opts.follow_symlinks:
                continue
            try:
                size = p.stat().st_size
            except OSError as e:
                logger.warning("Skipping %s: %s", p, e)
                continue
            if size > opts.max_file_bytes:
                logger.info("Skipping %s: larger than %.1f MB", p, opts.max_file_mb)
                continue
            found.append(p)
    return sorted(found, key=lambda p: p.relative_to(root).as_posix())


def load_documents(
    root: Path,
    files: List[Path],
    opts: IndexOptions,
    errors: Optional[List[ChunkerError]] = None,
) -> Iterator[Document]:
    """Read `files` in order.

    Files that cannot be read are logged, appended to `errors` when given,
    and skipped.
    """
    for p in files:
        try:
            content, enc = read_text_file(p, opts.max_file_bytes)
        except ChunkerError as e:
            logger.warning("%s", e)
            if errors is not None:
                errors.append(e)
            continue
        yield Document(path=p, rel_path=p.relative_to(root).as_posix(), content=content, encoding=enc)
