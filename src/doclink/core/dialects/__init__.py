"""
Comment dialects: rule tables and the file extension registry.
"""

from doclink.core.dialects.registry import (
    DialectRegistry,
    dialect_for_path,
    get_default_registry,
)
from doclink.core.dialects.rules import (
    DIALECT_RULES,
    Dialect,
    DialectRules,
    DocMarker,
    LiteralRule,
    get_rules,
)

__all__ = [
    "Dialect",
    "DialectRules",
    "DocMarker",
    "LiteralRule",
    "DIALECT_RULES",
    "get_rules",
    "DialectRegistry",
    "get_default_registry",
    "dialect_for_path",
]
