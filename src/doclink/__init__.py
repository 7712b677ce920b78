"""
doclink - doc comment extraction for C-family languages.

Finds documentation comments in C, C++, C#, Java, JavaScript, TypeScript,
Kotlin and Rust source text and associates each with the declaration it
documents.
"""

from doclink.core import (
    AssociationIndex,
    AssociationRecord,
    Dialect,
    ScanConfig,
    ScanResult,
    dialect_for_path,
    find_declarations,
    normalize_comment_text,
    scan,
    scan_all,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "scan",
    "scan_all",
    "AssociationIndex",
    "AssociationRecord",
    "ScanResult",
    "ScanConfig",
    "Dialect",
    "dialect_for_path",
    "find_declarations",
    "normalize_comment_text",
]
