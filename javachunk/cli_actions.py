"""
Reusable CLI actions.

`javachunk.cli` only parses arguments; the work happens here so it can be
called and tested without a command line.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .chunking.java import JavaChunker
from .config import BackendOptions, ChunkerOptions, IndexLocation, Workspace, load_index_options
from .embeddings.base import Embedder
from .embeddings.ollama import OllamaEmbedder, check_ollama
from .embeddings.sbert import SentenceTransformersEmbedder
from .errors import ChunkerError, ParseError, SinkError, SourceReadError
from .ingest.scanner import list_candidate_files, load_documents
from .sinks.console import ConsoleSink, JsonlSink
from .sinks.index import EmbeddingIndexSink
from .vectordb.sqlite_numpy import SQLiteNumpyVectorStore

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

OUTPUT_FORMATS = {"text": ConsoleSink, "jsonl": JsonlSink}


def fail(e: ChunkerError) -> typer.Exit:
    """Print a pipeline error in red and return the exit (code 1) to raise."""
    err_console.print(f"[red]Error:[/red] {escape(str(e))}")
    return typer.Exit(code=1)


def _locate(path: str, local_store: bool, name: Optional[str] = None) -> IndexLocation:
    """
    Resolve a workspace and create its index directory.

    Raises:
        SourceReadError: If `path` does not exist.
    """
    ws = Workspace.from_path(path, name=name)
    if not ws.target.exists():
        raise SourceReadError("No such file or directory", path=str(ws.target))
    loc = IndexLocation.for_workspace(ws, local_store=local_store)
    loc.ensure()
    return loc


def make_embedder(backend: BackendOptions) -> Embedder:
    """
    Build the embedding backend named by `backend.embedder`.

    Raises:
        typer.BadParameter: If the backend is unknown.
    """
    if backend.embedder == "ollama":
        return OllamaEmbedder(host=backend.ollama_host, model=backend.model_name)
    if backend.embedder == "sbert":
        return SentenceTransformersEmbedder(model_name=backend.model_name)
    raise typer.BadParameter(f"Unknown embedder: {backend.embedder} (expected ollama or sbert)")


class Manifest:
    """Which files are indexed, at which content hash, with which embedder."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.embedder = ""
        self.files: Dict[str, str] = {}
        if not path.is_file():
            return
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Manifest %s is unreadable, re-indexing everything: %s", path, e)
            return
        if isinstance(data, dict) and isinstance(data.get("files"), dict):
            self.embedder = str(data.get("embedder", ""))
            self.files = {str(k): str(v) for k, v in data["files"].items()}

    def save(self) -> None:
        payload = {"embedder": self.embedder, "files": self.files}
        self.path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


def do_chunk(
    path: str,
    fmt: str = "text",
    output: Optional[str] = None,
    member_imports: bool = False,
) -> int:
    """
    Chunk one Java file and print every chunk.

    Args:
        path: Java source file.
        fmt: "text" (banners) or "jsonl".
        output: Write to this file instead of stdout.
        member_imports: Repeat imports in method/constructor chunks.

    Returns:
        Number of chunks written.

    Raises:
        typer.BadParameter: If the format is unknown.
        ChunkerError: On read, parse or sink failure.
    """
    sink_cls = OUTPUT_FORMATS.get(fmt)
    if sink_cls is None:
        raise typer.BadParameter(f"Unknown format: {fmt} (expected one of: {', '.join(OUTPUT_FORMATS)})")
    chunker = JavaChunker(ChunkerOptions(member_imports=member_imports))

    if output is None:
        with sink_cls() as sink:
            n = chunker.chunk_file(Path(path), sink)
        logger.info("%d chunk(s) from %s", n, path)
        return n

    # parse before opening the output so a bad file leaves no empty output behind
    unit = chunker.parse_file(Path(path))
    with open(output, "w", encoding="utf-8") as fh, sink_cls(fh) as sink:
        n = chunker.emit_chunks(unit, sink)
    err_console.print(f"[green]Wrote {n} chunk(s) to[/green] {escape(output)}")
    return n


def do_index(
    path: str,
    local_store: bool,
    exclude_globs: Optional[str],
    max_file_mb: Optional[float],
    backend: BackendOptions,
    member_imports: Optional[bool] = None,
    name: Optional[str] = None,
    embedder: Optional[Embedder] = None,
) -> dict:
    """
    Chunk a Java file or folder and store chunk embeddings.

    A file whose content hash matches the manifest is skipped, unless the
    embedder changed since the last run. A changed file replaces its previous
    chunks; a file gone from the folder loses them. Files that fail to read or
    parse are listed and skipped; embedding and store failures abort the run.

    Args:
        path: Java file or folder.
        local_store: Keep the index in <root>/.javachunk instead of ~/.javachunk.
        exclude_globs: Comma-separated gitwildmatch patterns, replacing the defaults.
        max_file_mb: Skip files larger than this.
        backend: Embedding backend options.
        member_imports: Override `member_imports` from settings.json.
        name: Optional workspace display name.
        embedder: Use this embedder instead of building one from `backend`.

    Returns:
        Run summary: files, changed, removed, written, failed, chunks.
    """
    loc = _locate(path, local_store, name=name)
    ws = loc.workspace

    opts = load_index_options(ws.root)
    if max_file_mb is not None:
        opts.max_file_mb = max_file_mb
    if exclude_globs:
        opts.exclude_globs = [g.strip() for g in exclude_globs.split(",") if g.strip()]
    if member_imports is not None:
        opts.member_imports = member_imports

    if embedder is None:
        if backend.embedder == "ollama" and not check_ollama(backend.ollama_host):
            console.print(f"[yellow]No Ollama server at {escape(backend.ollama_host)}; embedding will likely fail.[/yellow]")
        embedder = make_embedder(backend)

    if ws.is_single_file:
        files = [ws.target]
    else:
        console.print("[dim]Scanning for Java files...[/dim]")
        files = list_candidate_files(ws.root, opts)

    manifest = Manifest(loc.manifest_path)
    reembed = bool(manifest.embedder) and manifest.embedder != embedder.model_id
    manifest.embedder = embedder.model_id

    chunker = JavaChunker(opts.chunker_options())
    failures: List[ChunkerError] = []
    changed = removed = 0

    with SQLiteNumpyVectorStore(loc.path) as store:
        sink = EmbeddingIndexSink(embedder, store, batch_size=opts.batch_size)

        if reembed:
            console.print("[yellow]Embedder changed; re-embedding all files.[/yellow]")
            store.reset()
            manifest.files.clear()

        if not ws.is_single_file:
            present = {p.relative_to(ws.root).as_posix() for p in files}
            for rel in sorted(set(manifest.files) - present):
                store.delete_file(rel)
                del manifest.files[rel]
                removed += 1

        progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
        )
        with progress:
            task = progress.add_task("Chunking files", total=len(files))
            for doc in load_documents(ws.root, files, opts, errors=failures):
                progress.advance(task)
                sha = doc.sha256
                if manifest.files.get(doc.rel_path) == sha:
                    continue
                try:
                    unit = chunker.parse(doc.content, path=doc.rel_path)
                except ParseError as e:
                    logger.warning("%s", e)
                    failures.append(e)
                    continue
                changed += 1
                store.delete_file(doc.rel_path)
                sink.set_document(doc.rel_path, sha)
                chunker.emit_chunks(unit, sink)
                manifest.files[doc.rel_path] = sha

        try:
            sink.close()
        except Exception as e:
            raise SinkError(f"Flushing the last batch failed: {e}", path=str(loc.path)) from e
        manifest.save()
        stats = store.stats()

    label = f"{ws.name} ({ws.target})" if ws.name else str(ws.target)
    console.print(f"\n[bold green]Indexed:[/bold green] {escape(label)}")
    console.print(f"Store: {escape(str(loc.path))}")
    console.print(f"Candidate files: {len(files)}  changed: {changed}  removed: {removed}")
    console.print(f"Chunks written: {sink.written}  total in index: {stats['chunks']}")

    if failures:
        table = Table(title="Skipped files", show_header=True, header_style="bold")
        table.add_column("Stage")
        table.add_column("Error")
        for e in failures:
            table.add_row(e.stage, escape(str(e)))
        console.print(table)

    return {
        "files": len(files),
        "changed": changed,
        "removed": removed,
        "written": sink.written,
        "failed": len(failures),
        "chunks": stats["chunks"],
    }


def do_search(
    path: str,
    query: str,
    local_store: bool,
    top_k: int,
    backend: BackendOptions,
    show_text: bool = False,
    embedder: Optional[Embedder] = None,
) -> None:
    """
    List the indexed chunks closest to a free-text query.

    The query must be embedded with the backend the index was built with.
    """
    loc = _locate(path, local_store)
    embedder = embedder or make_embedder(backend)
    with SQLiteNumpyVectorStore(loc.path) as store:
        hits = store.search(embedder.embed_query(query), top_k=top_k)

    if not hits:
        console.print("[yellow]No chunks in the index. Run `javachunk index` first.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Kind")
    table.add_column("Symbol")
    table.add_column("Source")
    for h in hits:
        table.add_row(f"{h.score:.3f}", h.kind, escape(h.symbol or ""), escape(h.location))
    console.print(table)

    if show_text:
        for h in hits:
            console.rule(escape(h.symbol or h.location))
            console.print(h.text, markup=False, highlight=False)


def do_status(path: str, local_store: bool) -> dict:
    """Print and return the index statistics of a workspace."""
    loc = _locate(path, local_store)
    with SQLiteNumpyVectorStore(loc.path) as store:
        stats = store.stats()
    console.print(f"Workspace: {escape(str(loc.workspace.root))}")
    for k, v in stats.items():
        console.print(f"- {k}: {escape(str(v))}")
    return stats


def do_reset(path: str, local_store: bool) -> None:
    """Delete every stored chunk and the manifest of a workspace."""
    loc = _locate(path, local_store)
    with SQLiteNumpyVectorStore(loc.path) as store:
        store.reset()
    loc.manifest_path.unlink(missing_ok=True)
    console.print(f"[bold yellow]Index reset for[/bold yellow] {escape(str(loc.workspace.root))}")
