"""Options and on-disk locations.

Everything here is a plain dataclass passed explicitly to the code that needs
it; nothing is read from module globals at run time.

  - ChunkerOptions: how chunk text is synthesized
  - Workspace / IndexLocation: what is indexed and where the index lives
  - IndexOptions: which files are scanned, overridable per workspace through
    `<root>/.javachunk/settings.json`
  - BackendOptions: which embedding backend is used
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STORE_DIRNAME = ".javachunk"
SETTINGS_FILENAME = "settings.json"

DEFAULT_EMBED_MODELS: Dict[str, str] = {
    "ollama": "nomic-embed-text",
    "sbert": "intfloat/e5-small-v2",
}

# gitwildmatch patterns, matched at any depth
DEFAULT_EXCLUDE_GLOBS: List[str] = [
    "target/",
    "build/",
    "out/",
    "bin/",
    "generated-sources/",
    "node_modules/",
    ".gradle/",
    ".idea/",
    ".vscode/",
    ".git/",
    ".svn/",
    ".hg/",
    f"{STORE_DIRNAME}/",
]


@dataclass(frozen=True)
class ChunkerOptions:
    """Options for chunk synthesis.

    Attributes:
        member_imports: Repeat the import block in method/constructor chunks.
            Off by default: imports only appear in type-header chunks.
        member_docs: Prefix member chunks with the member's leading Javadoc.
        include_local_types: Also chunk types declared inside method bodies
            and anonymous classes.
    """

    member_imports: bool = False
    member_docs: bool = True
    include_local_types: bool = True


@dataclass(frozen=True)
class Workspace:
    """A Java file or source folder to index.

    Attributes:
        root: Folder the index is keyed on (a single file's parent folder).
        target: The resolved path that was asked for.
        name: Optional display name.
    """

    root: Path
    target: Path
    name: Optional[str] = None

    @classmethod
    def from_path(cls, path: str, name: Optional[str] = None) -> "Workspace":
        target = Path(path).expanduser().resolve()
        return cls(root=target.parent if target.is_file() else target, target=target, name=name)

    @property
    def id(self) -> str:
        """First 16 hex chars of the root path's SHA-1."""
        return hashlib.sha1(str(self.root).encode("utf-8")).hexdigest()[:16]

    @property
    def is_single_file(self) -> bool:
        return self.target.is_file()


@dataclass(frozen=True)
class IndexLocation:
    """Where one workspace's index is stored.

    With a local store the index lives in `<root>/.javachunk/`, otherwise in
    `~/.javachunk/`. Either way each workspace gets `workspaces/<id>/`.
    """

    base_dir: Path
    workspace: Workspace

    @classmethod
    def for_workspace(cls, ws: Workspace, local_store: bool) -> "IndexLocation":
        base = ws.root / STORE_DIRNAME if local_store else Path.home() / STORE_DIRNAME
        return cls(base_dir=base, workspace=ws)

    @property
    def path(self) -> Path:
        return self.base_dir / "workspaces" / self.workspace.id

    @property
    def manifest_path(self) -> Path:
        return self.path / "manifest.json"

    def ensure(self) -> Path:
        """Create the workspace directory and return it."""
        self.path.mkdir(parents=True, exist_ok=True)
        return self.path


@dataclass
class IndexOptions:
    """What `index` scans and how it batches embeddings."""

    include_ext: List[str] = field(default_factory=lambda: ["java"])
    exclude_globs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_GLOBS))
    max_file_mb: float = 2.0
    follow_symlinks: bool = False
    use_gitignore: bool = True
    batch_size: int = 32
    member_imports: bool = False

    @property
    def max_file_bytes(self) -> int:
        return int(self.max_file_mb * 1024 * 1024)

    def chunker_options(self) -> ChunkerOptions:
        return ChunkerOptions(member_imports=self.member_imports)

    def update(self, payload: Dict[str, Any]) -> None:
        """Override fields from a settings mapping.

        Unknown keys and values of the wrong type are logged and ignored.
        """
        defaults = IndexOptions()
        for f in dataclasses.fields(self):
            if f.name not in payload:
                continue
            value = payload[f.name]
            current = getattr(defaults, f.name)
            if isinstance(current, list):
                ok = isinstance(value, list) and all(isinstance(x, str) for x in value)
            elif isinstance(current, bool):
                ok = isinstance(value, bool)
            elif isinstance(current, float):
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
                value = float(value) if ok else value
            else:
                ok = isinstance(value, int) and not isinstance(value, bool)
            if not ok:
                logger.warning("Ignoring setting %s=%r: expected %s", f.name, value, type(current).__name__)
                continue
            setattr(self, f.name, value)
        self.batch_size = max(1, self.batch_size)
        for key in sorted(set(payload) - {f.name for f in dataclasses.fields(self)}):
            logger.warning("Unknown setting %r ignored", key)


@dataclass
class BackendOptions:
    """Embedding backend selection: `ollama` (HTTP) or `sbert` (local model)."""

    embedder: str = "ollama"
    embed_model: Optional[str] = None
    ollama_host: str = "http://localhost:11434"

    @property
    def model_name(self) -> str:
        """`embed_model`, or the backend's default model."""
        if self.embed_model:
            return self.embed_model
        return DEFAULT_EMBED_MODELS.get(self.embedder, "")


def load_index_options(workspace_root: Path) -> IndexOptions:
    """Read `<root>/.javachunk/settings.json` over the defaults.

    A missing file gives the defaults. An unreadable one is logged and
    ignored.
    """
    opts = IndexOptions()
    settings_path = workspace_root / STORE_DIRNAME / SETTINGS_FILENAME
    if not settings_path.is_file():
        return opts
    try:
        payload = json.loads(settings_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", settings_path, e)
        return opts
    if not isinstance(payload, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", settings_path)
        return opts
    opts.update(payload)
    return opts
