"""Java parser adapter and AST model."""

from .adapter import JavaParserAdapter, parse_file, parse_source
from .model import CompilationUnit, ImportDeclaration, MemberDeclaration, TypeDeclaration

__all__ = [
    "CompilationUnit",
    "ImportDeclaration",
    "JavaParserAdapter",
    "MemberDeclaration",
    "TypeDeclaration",
    "parse_file",
    "parse_source",
]
