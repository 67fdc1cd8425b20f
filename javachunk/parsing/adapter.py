"""Java parser adapter built on tree-sitter.

Turns Java source text into a `CompilationUnit`: package name, imports, and an
arena of every type declaration (nested, local and anonymous-class types
included) with the original source text of their members.

Tree-sitter always produces a tree, marking bad input with ERROR / missing
nodes; any such node makes the whole file fail with `ParseError`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import tree_sitter_java as tsjava
from tree_sitter import Language, Node, Parser

from ..errors import ParseError
from ..ingest.loaders import read_text_file
from .model import CompilationUnit, ImportDeclaration, MemberDeclaration, TypeDeclaration

logger = logging.getLogger(__name__)

JAVA_LANGUAGE = Language(tsjava.language())

TYPE_NODE_KINDS: Dict[str, str] = {
    "class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "record_declaration": "record",
    "annotation_type_declaration": "annotation",
}

# Nodes whose children are members of the enclosing type.
BODY_NODES = {
    "class_body",
    "interface_body",
    "enum_body",
    "enum_body_declarations",
    "annotation_type_body",
}

COMMENT_NODES = {"block_comment", "line_comment", "comment"}

FIELD_NODES = {"field_declaration", "constant_declaration", "annotation_type_element_declaration"}
INITIALIZER_NODES = {"block", "static_initializer"}
CONSTRUCTOR_NODES = {"constructor_declaration", "compact_constructor_declaration"}
ANNOTATION_NODES = {"annotation", "marker_annotation"}
NAME_NODES = {"identifier", "scoped_identifier"}


def _text(src: bytes, node: Node) -> str:
    return src[node.start_byte: node.end_byte].decode("utf-8", errors="replace")


def _first_child_of_type(node: Node, types: set) -> Optional[Node]:
    for child in node.children:
        if child.type in types:
            return child
    return None


def _named(node: Node) -> List[Node]:
    """Named children without comments."""
    return [c for c in node.named_children if c.type not in COMMENT_NODES]


def _is_javadoc(src: bytes, node: Optional[Node]) -> bool:
    return node is not None and node.type in COMMENT_NODES and _text(src, node).startswith("/**")


def _leading_doc(src: bytes, node: Node, in_modifiers: bool = False) -> Optional[str]:
    """
    Return the `/** ... */` comment directly preceding a node, if any.

    With `in_modifiers`, a Javadoc written between the annotations and the
    rest of the declaration (`@Deprecated /** doc */ class A`) also counts.
    Only type headers need this: they are rebuilt from parts, while a
    member's or field's original text already contains such a comment.
    """
    prev = node.prev_named_sibling
    if _is_javadoc(src, prev):
        return _text(src, prev)
    if not in_modifiers:
        return None
    # comments between the annotations and the declared name
    head: List[Node] = []
    for child in node.children:
        if child.type == "identifier":
            break
        head.extend(child.children if child.type == "modifiers" else [child])
    docs = [c for c in head if _is_javadoc(src, c)]
    return _text(src, docs[-1]) if docs else None


def _char_column(src: bytes, node: Node) -> int:
    """1-based column of a node counted in characters, not UTF-8 bytes."""
    line_start = src.rfind(b"\n", 0, node.start_byte) + 1
    return len(src[line_start: node.start_byte].decode("utf-8", errors="replace")) + 1


def _first_error(root: Node) -> Optional[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


class JavaParserAdapter:
    """Parse Java source into a `CompilationUnit`.

    Attributes:
        include_local_types: Keep types declared inside method bodies and
            anonymous classes. Such types have no enclosing type.
    """

    def __init__(self, include_local_types: bool = True) -> None:
        self.include_local_types = include_local_types
        self._parser = Parser(JAVA_LANGUAGE)

    def parse(self, text: str, path: Optional[str] = None) -> CompilationUnit:
        """
        Parse source text.

        Args:
            text: Java source.
            path: Optional source path, used in errors and logs.

        Returns:
            CompilationUnit for the file.

        Raises:
            ParseError: If the source does not conform to the Java grammar.
        """
        src = text.encode("utf-8")
        tree = self._parser.parse(src)
        root = tree.root_node

        if root.has_error:
            bad = _first_error(root) or root
            line, col = bad.start_point[0] + 1, _char_column(src, bad)
            if bad.is_missing:
                msg = f"Java syntax error: missing {bad.type!r}"
            else:
                snippet = _text(src, bad).splitlines()[0][:40] if bad.end_byte > bad.start_byte else ""
                msg = f"Java syntax error near {snippet!r}"
            raise ParseError(msg, path=path, line=line, column=col)

        package = ""
        imports: List[ImportDeclaration] = []
        for child in root.named_children:
            if child.type == "package_declaration":
                name = _first_child_of_type(child, NAME_NODES)
                if name is not None:
                    package = "".join(_text(src, name).split())
            elif child.type == "import_declaration":
                imports.append(self._build_import(src, child))

        found = self._collect_types(root)
        nested: Dict[int, List[int]] = {}
        for idx, (_, parent) in enumerate(found):
            if parent is not None:
                nested.setdefault(parent, []).append(idx)

        types = tuple(
            self._build_type(src, node, idx, parent, tuple(nested.get(idx, ())))
            for idx, (node, parent) in enumerate(found)
        )
        top_level = tuple(
            idx for idx, (node, parent) in enumerate(found)
            if parent is None and node.parent is not None and node.parent.type == "program"
        )

        logger.debug(
            "Parsed %s: package=%r, %d import(s), %d type declaration(s)",
            path or "<source>", package, len(imports), len(types),
        )
        return CompilationUnit(
            package=package,
            imports=tuple(imports),
            types=types,
            top_level=top_level,
            path=path,
        )

    # ---------------- Tree walk ----------------

    def _collect_types(self, root: Node) -> List[Tuple[Node, Optional[int]]]:
        """
        Pre-order walk collecting every type declaration node.

        Each entry pairs the node with the arena index of its enclosing type.
        The enclosing index only flows through type bodies, so a type declared
        in a method body or anonymous class gets None.
        """
        found: List[Tuple[Node, Optional[int]]] = []
        # (node, enclosing type index, is top-level)
        stack: List[Tuple[Node, Optional[int], bool]] = [
            (c, None, True) for c in reversed(root.children)
        ]
        while stack:
            node, enclosing, top = stack.pop()
            if node.type in TYPE_NODE_KINDS:
                if enclosing is None and not top and not self.include_local_types:
                    continue
                idx = len(found)
                found.append((node, enclosing))
                body = node.child_by_field_name("body")
                for child in reversed(node.children):
                    stack.append((child, idx if child == body else None, False))
            elif node.type in BODY_NODES:
                for child in reversed(node.children):
                    stack.append((child, enclosing, False))
            else:
                for child in reversed(node.children):
                    stack.append((child, None, False))
        return found

    # ---------------- Builders ----------------

    def _build_import(self, src: bytes, node: Node) -> ImportDeclaration:
        name = _first_child_of_type(node, NAME_NODES)
        return ImportDeclaration(
            path="".join(_text(src, name).split()) if name is not None else "",
            text=_text(src, node),
            is_static=any(c.type == "static" for c in node.children),
            is_wildcard=any(c.type == "asterisk" for c in node.children),
        )

    def _build_member(self, src: bytes, node: Node, kind: str, owner: int) -> MemberDeclaration:
        name = node.child_by_field_name("name")
        return MemberDeclaration(
            name=_text(src, name) if name is not None else "",
            kind=kind,
            text=_text(src, node),
            owner=owner,
            doc=_leading_doc(src, node),
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
        )

    @staticmethod
    def _enum_constant(src: bytes, node: Node) -> str:
        """Name and arguments of an enum constant, without its class body."""
        name = node.child_by_field_name("name")
        args = node.child_by_field_name("arguments")
        text = _text(src, name) if name is not None else ""
        return text + (_text(src, args) if args is not None else "")

    @staticmethod
    def _type_list(src: bytes, node: Optional[Node]) -> Tuple[str, ...]:
        """Texts of the types in an extends/implements clause."""
        if node is None:
            return ()
        inner = _first_child_of_type(node, {"type_list"})
        return tuple(_text(src, t) for t in _named(inner if inner is not None else node))

    def _build_type(
        self,
        src: bytes,
        node: Node,
        idx: int,
        parent: Optional[int],
        nested: Tuple[int, ...],
    ) -> TypeDeclaration:
        kind = TYPE_NODE_KINDS[node.type]
        name = node.child_by_field_name("name")

        modifiers: List[str] = []
        annotations: List[str] = []
        mods = _first_child_of_type(node, {"modifiers"})
        if mods is not None:
            for m in mods.children:
                if m.type in ANNOTATION_NODES:
                    annotations.append(_text(src, m))
                elif not m.is_named:
                    modifiers.append(_text(src, m))

        type_params: Tuple[str, ...] = ()
        tp = _first_child_of_type(node, {"type_parameters"})
        if tp is not None:
            type_params = tuple(_text(src, p) for p in _named(tp) if p.type == "type_parameter")

        if kind == "interface":
            extends = self._type_list(src, _first_child_of_type(node, {"extends_interfaces"}))
        else:
            extends = self._type_list(src, _first_child_of_type(node, {"superclass"}))
        implements = self._type_list(src, _first_child_of_type(node, {"super_interfaces"}))

        record_components = None
        if kind == "record":
            params = _first_child_of_type(node, {"formal_parameters"})
            record_components = _text(src, params) if params is not None else "()"

        enum_constants: List[str] = []
        fields: List[str] = []
        initializers: List[str] = []
        methods: List[MemberDeclaration] = []
        constructors: List[MemberDeclaration] = []

        body = node.child_by_field_name("body")
        members: List[Node] = []
        if body is not None:
            for child in body.named_children:
                if child.type == "enum_constant":
                    enum_constants.append(self._enum_constant(src, child))
                elif child.type == "enum_body_declarations":
                    members.extend(child.named_children)
                else:
                    members.append(child)

        for m in members:
            if m.type in FIELD_NODES:
                doc = _leading_doc(src, m)
                fields.append(f"{doc}\n{_text(src, m)}" if doc else _text(src, m))
            elif m.type in INITIALIZER_NODES:
                initializers.append(_text(src, m))
            elif m.type == "method_declaration":
                methods.append(self._build_member(src, m, "method", idx))
            elif m.type in CONSTRUCTOR_NODES:
                constructors.append(self._build_member(src, m, "constructor", idx))

        return TypeDeclaration(
            index=idx,
            parent=parent,
            name=_text(src, name) if name is not None else "",
            kind=kind,
            modifiers=tuple(modifiers),
            annotations=tuple(annotations),
            type_parameters=type_params,
            extends=extends,
            implements=implements,
            record_components=record_components,
            enum_constants=tuple(enum_constants),
            doc=_leading_doc(src, node, in_modifiers=True),
            fields=tuple(fields),
            initializers=tuple(initializers),
            methods=tuple(methods),
            constructors=tuple(constructors),
            nested=nested,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
        )


def parse_source(text: str, path: Optional[str] = None, include_local_types: bool = True) -> CompilationUnit:
    """Parse Java source text into a CompilationUnit."""
    return JavaParserAdapter(include_local_types=include_local_types).parse(text, path=path)


def parse_file(path: Path, include_local_types: bool = True) -> CompilationUnit:
    """
    Read and parse one Java source file.

    Raises:
        SourceReadError: If the file cannot be read.
        ParseError: If the file is not valid Java.
    """
    text, _ = read_text_file(path)
    return parse_source(text, path=str(path), include_local_types=include_local_types)
