"""Path filtering for workspace scans.

Exclude globs and the workspace's root `.gitignore` are compiled together into
one gitwildmatch spec, so both follow git's matching rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

import pathspec


@dataclass(frozen=True)
class IgnoreMatcher:
    """Tells whether a path under `root` is excluded from indexing."""

    root: Path
    spec: pathspec.PathSpec

    def matches(self, path: Path) -> bool:
        return self.spec.match_file(path.relative_to(self.root).as_posix())


def read_gitignore(root: Path) -> List[str]:
    """Lines of `<root>/.gitignore`, or an empty list."""
    gi = root / ".gitignore"
    if not gi.is_file():
        return []
    return gi.read_text(encoding="utf-8", errors="ignore").splitlines()


def build_ignore_matcher(root: Path, exclude_globs: Iterable[str], use_gitignore: bool = True) -> IgnoreMatcher:
    lines = list(exclude_globs)
    if use_gitignore:
        lines += read_gitignore(root)
    return IgnoreMatcher(root=root, spec=pathspec.PathSpec.from_lines("gitwildmatch", lines))
