"""Javachunk package.

Javachunk splits Java source files into self-contained chunks for RAG:
  1) One header chunk per (possibly nested) class / interface / enum / record
  2) One chunk per method
  3) One chunk per constructor

Every chunk carries its own package, import and enclosing-type context.

Entry points:
  - CLI: `javachunk`
  - Library: `javachunk.chunking.java.JavaChunker`
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
