"""Javachunk CLI.

Commands:
  - chunk: split one Java file into self-contained chunks and print them
  - index: chunk a Java file or folder and store embeddings
  - search: query an index
  - status: show index stats
  - reset: delete index

Run without arguments to print usage. `javachunk FILE` is short for
`javachunk chunk FILE`.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from typer.core import TyperGroup

from .cli_actions import do_chunk, do_index, do_reset, do_search, do_status, fail
from .config import BackendOptions
from .errors import ChunkerError
from .log import setup_logging


class FileOrCommandGroup(TyperGroup):
    """Command group that routes a bare source file path to `chunk`.

    A first argument that is not a command name but is an existing file, or
    names a `.java` file, gets `chunk` inserted before it.
    """

    def parse_args(self, ctx: typer.Context, args: List[str]) -> List[str]:
        for i, arg in enumerate(args):
            if arg.startswith("-"):
                continue
            if arg not in self.commands and (arg.endswith(".java") or Path(arg).is_file()):
                args = args[:i] + ["chunk"] + args[i:]
            break
        return super().parse_args(ctx, args)


app = typer.Typer(
    cls=FileOrCommandGroup,
    add_completion=False,
    help="Javachunk: split Java sources into self-contained RAG chunks.",
)


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Split Java sources into self-contained RAG chunks."""
    setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


@app.command()
def chunk(
    path: str = typer.Argument(..., help="Path to the Java source file to chunk."),
    fmt: str = typer.Option("text", "--format", "-f", help="Output format: text|jsonl"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write chunks to this file instead of stdout."),
    member_imports: bool = typer.Option(False, "--member-imports", help="Repeat imports in method/constructor chunks."),
):
    """Split one Java file into chunks and print them."""
    try:
        do_chunk(path=path, fmt=fmt, output=output, member_imports=member_imports)
    except ChunkerError as e:
        raise fail(e)


@app.command()
def index(
    path: str = typer.Argument(..., help="Java file or folder to index."),
    name: Optional[str] = typer.Option(None, "--name", help="Optional friendly workspace name."),
    local_store: bool = typer.Option(False, "--local-store", help="Store index inside the folder under .javachunk/"),
    exclude_globs: Optional[str] = typer.Option(None, "--exclude-globs", help="Comma-separated glob patterns to ignore."),
    max_file_mb: Optional[float] = typer.Option(None, "--max-file-mb", help="Max file size to index (MB)."),
    member_imports: Optional[bool] = typer.Option(
        None, "--member-imports/--no-member-imports", help="Repeat imports in method/constructor chunks."
    ),
    embedder: str = typer.Option("ollama", "--embedder", help="Embedding backend: ollama|sbert"),
    embed_model: Optional[str] = typer.Option(None, "--embed-model", help="Embedding model (backend default if omitted)."),
    ollama_host: str = typer.Option("http://localhost:11434", "--ollama-host", help="Ollama host URL."),
):
    """Chunk a Java file or folder and store chunk embeddings."""
    backend = BackendOptions(embedder=embedder, embed_model=embed_model, ollama_host=ollama_host)
    try:
        do_index(
            path=path,
            local_store=local_store,
            exclude_globs=exclude_globs,
            max_file_mb=max_file_mb,
            backend=backend,
            member_imports=member_imports,
            name=name,
        )
    except ChunkerError as e:
        raise fail(e)


@app.command()
def search(
    path: str = typer.Argument(..., help="Indexed Java file or folder."),
    query: str = typer.Argument(..., help="What to look for."),
    local_store: bool = typer.Option(False, "--local-store", help="Use the index inside <path>/.javachunk/"),
    top_k: int = typer.Option(8, "--top-k", help="How many chunks to return."),
    show_text: bool = typer.Option(False, "--show-text", help="Print the text of each hit."),
    embedder: str = typer.Option("ollama", "--embedder", help="Embedding backend: ollama|sbert"),
    embed_model: Optional[str] = typer.Option(None, "--embed-model", help="Embedding model (backend default if omitted)."),
    ollama_host: str = typer.Option("http://localhost:11434", "--ollama-host", help="Ollama host URL."),
):
    """Find the chunks closest to a query."""
    backend = BackendOptions(embedder=embedder, embed_model=embed_model, ollama_host=ollama_host)
    try:
        do_search(path=path, query=query, local_store=local_store, top_k=top_k, backend=backend, show_text=show_text)
    except ChunkerError as e:
        raise fail(e)


@app.command()
def status(
    path: str = typer.Argument(..., help="Indexed Java file or folder."),
    local_store: bool = typer.Option(False, "--local-store", help="Use the index inside <path>/.javachunk/"),
):
    """Show index stats."""
    try:
        do_status(path=path, local_store=local_store)
    except ChunkerError as e:
        raise fail(e)


@app.command()
def reset(
    path: str = typer.Argument(..., help="Indexed Java file or folder."),
    local_store: bool = typer.Option(False, "--local-store", help="Use the index inside <path>/.javachunk/"),
):
    """Reset (delete) index data."""
    try:
        do_reset(path=path, local_store=local_store)
    except ChunkerError as e:
        raise fail(e)


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
