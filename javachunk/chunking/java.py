"""Structure-aware Java chunker.

Produces, for every (possibly nested) type declaration in a file:
  - one type-header chunk: package, imports, Javadoc, an `// enclosing:` marker,
    the declaration line, fields and initializer blocks
  - one chunk per method declared directly on the type
  - one chunk per constructor declared directly on the type

Member chunks are wrapped in `class Outer.Inner { ... }` so each one reads on
its own. Chunks come out in document order: types in pre-order, and per type
the header, then methods, then constructors, each in declaration order.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional

from ..config import ChunkerOptions
from ..errors import SinkError
from ..ingest.loaders import read_text_file
from ..parsing.adapter import JavaParserAdapter
from ..parsing.model import CompilationUnit, MemberDeclaration, TypeDeclaration
from ..sinks.base import ChunkSink
from .base import Chunk, ChunkKind, Chunker

logger = logging.getLogger(__name__)

KIND_KEYWORDS = {
    "class": "class",
    "interface": "interface",
    "enum": "enum",
    "record": "record",
    "annotation": "@interface",
}


def package_block(unit: CompilationUnit) -> str:
    """`package x.y;` plus a blank line, or nothing for the unnamed package."""
    if not unit.package:
        return ""
    return f"package {unit.package};\n\n"


def import_block(unit: CompilationUnit) -> str:
    """Every import as written, one per line, plus a blank line."""
    if not unit.imports:
        return ""
    return "".join(f"{imp.text}\n" for imp in unit.imports) + "\n"


def build_declaration_line(decl: TypeDeclaration) -> str:
    """
    Rebuild a type's declaration line without its body.

    Example: `public abstract class Repo<T, ID> extends Base implements A, B`.

    Args:
        decl: Type declaration.

    Returns:
        The declaration line (no trailing brace).
    """
    line = "".join(f"{m} " for m in decl.modifiers)
    line += f"{KIND_KEYWORDS.get(decl.kind, 'class')} {decl.name}"
    if decl.type_parameters:
        line += "<" + ", ".join(decl.type_parameters) + ">"
    if decl.record_components is not None:
        line += decl.record_components
    if decl.extends:
        line += " extends " + ", ".join(decl.extends)
    if decl.implements:
        line += " implements " + ", ".join(decl.implements)
    return line


class JavaChunker(Chunker):
    """
    Chunker that splits Java compilation units along declarations.

    Attributes:
        options: Chunk synthesis options.
    """

    def __init__(self, options: Optional[ChunkerOptions] = None) -> None:
        self.options = options or ChunkerOptions()
        self._adapter = JavaParserAdapter(include_local_types=self.options.include_local_types)

    # ---------------- Chunk synthesis ----------------

    def build_header_chunk(self, unit: CompilationUnit, decl: TypeDeclaration) -> str:
        """Header chunk: context, signature and state of one type, no member bodies."""
        parts = [package_block(unit), import_block(unit)]
        if decl.doc:
            parts.append(f"{decl.doc}\n")
        parts.append(f"// enclosing: {unit.qualified_name(decl)}\n")
        parts.append(f"{build_declaration_line(decl)} {{\n\n")
        if decl.kind == "enum":
            parts.append(", ".join(decl.enum_constants) + ";\n")
        parts.extend(f"{f}\n" for f in decl.fields)
        parts.extend(f"{init}\n" for init in decl.initializers)
        parts.append("}\n")
        return "".join(parts)

    def build_member_chunk(self, unit: CompilationUnit, decl: TypeDeclaration, member: MemberDeclaration) -> str:
        """Member chunk: one method or constructor wrapped in its qualified class."""
        parts = [package_block(unit)]
        if self.options.member_imports:
            parts.append(import_block(unit))
        # `class` even for interfaces and enums
        parts.append(f"class {unit.qualified_name(decl)} {{\n\n")
        if self.options.member_docs and member.doc:
            parts.append(f"{member.doc}\n")
        parts.append(f"{member.text}\n")
        parts.append("}\n")
        return "".join(parts)

    def _member_chunk(
        self,
        unit: CompilationUnit,
        decl: TypeDeclaration,
        member: MemberDeclaration,
        kind: ChunkKind,
    ) -> Chunk:
        return Chunk(
            text=self.build_member_chunk(unit, decl, member),
            kind=kind,
            start_line=member.start_line,
            end_line=member.end_line,
            symbol=f"{unit.qualified_name(decl)}#{member.name}",
        )

    # ---------------- Traversal ----------------

    def iter_chunks(self, unit: CompilationUnit) -> Iterator[Chunk]:
        """
        Yield every chunk of a compilation unit in document order.

        Args:
            unit: Parsed compilation unit.

        Yields:
            Chunks: per type (pre-order), header, methods, then constructors.
        """
        for decl in unit.iter_types():
            yield Chunk(
                text=self.build_header_chunk(unit, decl),
                kind=ChunkKind.TYPE_HEADER,
                start_line=decl.start_line,
                end_line=decl.end_line,
                symbol=unit.qualified_name(decl),
            )
            for m in decl.methods:
                yield self._member_chunk(unit, decl, m, ChunkKind.METHOD)
            for c in decl.constructors:
                yield self._member_chunk(unit, decl, c, ChunkKind.CONSTRUCTOR)

    def chunk(self, text: str) -> List[Chunk]:
        """
        Parse Java source text and return its chunks.

        Raises:
            ParseError: If the source is not valid Java.
        """
        return list(self.iter_chunks(self._adapter.parse(text)))

    def parse(self, text: str, path: Optional[str] = None) -> CompilationUnit:
        return self._adapter.parse(text, path=path)

    def emit_chunks(self, unit: CompilationUnit, sink: ChunkSink) -> int:
        """
        Hand every chunk of a unit to a sink, in order.

        Args:
            unit: Parsed compilation unit.
            sink: Chunk consumer.

        Returns:
            Number of chunks consumed.

        Raises:
            SinkError: If the sink fails; chunks consumed before stay consumed.
        """
        count = 0
        for chunk in self.iter_chunks(unit):
            try:
                sink.consume(chunk)
            except SinkError:
                raise
            except Exception as e:
                raise SinkError(
                    f"Sink failed on chunk {chunk.symbol}: {e}",
                    path=unit.path,
                    symbol=chunk.symbol,
                ) from e
            count += 1
        logger.debug("Emitted %d chunk(s) from %s", count, unit.path or "<source>")
        return count

    def parse_file(self, path: Path) -> CompilationUnit:
        """
        Read and parse one Java file.

        Raises:
            SourceReadError: If the file cannot be read.
            ParseError: If the file is not valid Java.
        """
        text, _ = read_text_file(Path(path))
        return self._adapter.parse(text, path=str(path))

    def chunk_file(self, path: Path, sink: ChunkSink) -> int:
        """Read, parse and chunk one Java file into a sink. Returns the chunk count."""
        return self.emit_chunks(self.parse_file(path), sink)
