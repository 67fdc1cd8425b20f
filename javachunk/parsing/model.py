"""AST model for one parsed Java compilation unit.

Types are stored in an arena: `CompilationUnit.types` holds every type
declaration in pre-order, and each `TypeDeclaration` refers to its enclosing
type and its nested types by arena index instead of by object reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple


@dataclass(frozen=True)
class ImportDeclaration:
    """One `import` statement.

    Attributes:
        path: Imported name, e.g. `java.util.List` or `java.util`.
        text: Exact source text, e.g. `import java.util.*;`.
        is_static: True for `import static ...`.
        is_wildcard: True for on-demand imports (`.*`).
    """

    path: str
    text: str
    is_static: bool = False
    is_wildcard: bool = False


@dataclass(frozen=True)
class MemberDeclaration:
    """A method or constructor declared directly on a type.

    Attributes:
        name: Simple name.
        kind: "method" or "constructor".
        text: Exact original source (signature + body).
        owner: Arena index of the declaring type.
        doc: Leading Javadoc comment, if any.
        start_line: 1-based first line.
        end_line: 1-based last line.
    """

    name: str
    kind: str
    text: str
    owner: int
    doc: Optional[str] = None
    start_line: int = 0
    end_line: int = 0


@dataclass(frozen=True)
class TypeDeclaration:
    """A class, interface, enum, record or annotation type.

    Attributes:
        index: Position in the owning unit's arena.
        parent: Arena index of the enclosing type, or None when the syntactic
            parent is not a type (top-level, local or anonymous-class types).
        name: Simple name.
        kind: "class" | "interface" | "enum" | "record" | "annotation".
        modifiers: Keyword modifiers in source order.
        annotations: Annotation source texts in source order.
        type_parameters: Source text of each type parameter.
        extends: Source text of each extended type.
        implements: Source text of each implemented interface.
        record_components: Record header text, e.g. `(int x, int y)`.
        enum_constants: Source text of each enum constant.
        doc: Leading Javadoc comment, if any.
        fields: Source text of each field / constant declaration.
        initializers: Source text of each instance or static initializer.
        methods: Methods declared directly on this type.
        constructors: Constructors declared directly on this type.
        nested: Arena indices of directly nested types.
    """

    index: int
    parent: Optional[int]
    name: str
    kind: str
    modifiers: Tuple[str, ...] = ()
    annotations: Tuple[str, ...] = ()
    type_parameters: Tuple[str, ...] = ()
    extends: Tuple[str, ...] = ()
    implements: Tuple[str, ...] = ()
    record_components: Optional[str] = None
    enum_constants: Tuple[str, ...] = ()
    doc: Optional[str] = None
    fields: Tuple[str, ...] = ()
    initializers: Tuple[str, ...] = ()
    methods: Tuple[MemberDeclaration, ...] = ()
    constructors: Tuple[MemberDeclaration, ...] = ()
    nested: Tuple[int, ...] = ()
    start_line: int = 0
    end_line: int = 0

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"


@dataclass(frozen=True)
class CompilationUnit:
    """Root of one parsed source file.

    Attributes:
        package: Package name, "" for the unnamed package.
        imports: Import declarations in source order.
        types: Arena of every type declaration, in pre-order.
        top_level: Arena indices of the top-level types.
        path: Source path, when parsed from a file.
    """

    package: str = ""
    imports: Tuple[ImportDeclaration, ...] = ()
    types: Tuple[TypeDeclaration, ...] = ()
    top_level: Tuple[int, ...] = ()
    path: Optional[str] = field(default=None, compare=False)

    def get(self, index: int) -> TypeDeclaration:
        return self.types[index]

    def parent_of(self, decl: TypeDeclaration) -> Optional[TypeDeclaration]:
        """Return the enclosing type declaration, or None."""
        if decl.parent is None:
            return None
        return self.types[decl.parent]

    def iter_types(self) -> Iterator[TypeDeclaration]:
        """Yield every type declaration in pre-order (document order)."""
        return iter(self.types)

    def qualified_name(self, decl: TypeDeclaration) -> str:
        """Dotted name of a type prefixed by all enclosing type names.

        `Deep` inside `Inner` inside `Outer` yields `Outer.Inner.Deep`. The walk
        stops at the first ancestor that is not a type declaration.
        """
        names = [decl.name]
        parent = self.parent_of(decl)
        while parent is not None:
            names.append(parent.name)
            parent = self.parent_of(parent)
        return ".".join(reversed(names))
