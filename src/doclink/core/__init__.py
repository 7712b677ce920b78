"""
Core Layer - Tokenizer, comment classifier, scope tracker, declaration
matcher, association index, dialect rules and configuration.
"""

from doclink.core.classifier import CommentClassifier, classify_marker
from doclink.core.comment_text import CommentTextFormatter, normalize_comment_text
from doclink.core.config import (
    BatchConfig,
    DoclinkConfig,
    LoggingConfig,
    ScanConfig,
    configure_logging,
    load_config,
)
from doclink.core.dialects import (
    DIALECT_RULES,
    Dialect,
    DialectRegistry,
    DialectRules,
    dialect_for_path,
    get_default_registry,
    get_rules,
)
from doclink.core.errors import (
    ConfigError,
    DoclinkError,
    MalformedCommentError,
    ScanError,
    UnbalancedScopeError,
    UnknownDialectError,
    UnterminatedLiteralError,
)
from doclink.core.index import (
    AssociationIndex,
    LookupResult,
    LookupStatus,
    ScanResult,
    find_declarations,
)
from doclink.core.matcher import DeclarationMatcher, merge_events
from doclink.core.models import (
    AssociationRecord,
    CommentPlacement,
    CommentRecord,
    CommentStyle,
    DeclarationKind,
    DeclarationSite,
    Diagnostic,
    DiagnosticKind,
    ScopeFrame,
    ScopeKind,
    ScopeRef,
    SourceSpan,
    SpanKind,
)
from doclink.core.scanner import scan, scan_all
from doclink.core.scopes import ScopeTracker
from doclink.core.tokenizer import Tokenizer, TokenizeResult, iter_code_tokens

__all__ = [
    # Scan facade
    "scan",
    "scan_all",
    "AssociationIndex",
    "ScanResult",
    "find_declarations",
    "LookupResult",
    "LookupStatus",
    "normalize_comment_text",
    "CommentTextFormatter",
    # Pipeline components
    "Tokenizer",
    "TokenizeResult",
    "iter_code_tokens",
    "CommentClassifier",
    "classify_marker",
    "ScopeTracker",
    "DeclarationMatcher",
    "merge_events",
    # Dialects
    "Dialect",
    "DialectRules",
    "DIALECT_RULES",
    "get_rules",
    "DialectRegistry",
    "get_default_registry",
    "dialect_for_path",
    # Models
    "SpanKind",
    "SourceSpan",
    "CommentStyle",
    "CommentPlacement",
    "CommentRecord",
    "ScopeKind",
    "ScopeFrame",
    "ScopeRef",
    "DeclarationKind",
    "DeclarationSite",
    "AssociationRecord",
    "Diagnostic",
    "DiagnosticKind",
    # Config
    "DoclinkConfig",
    "ScanConfig",
    "BatchConfig",
    "LoggingConfig",
    "load_config",
    "configure_logging",
    # Errors
    "DoclinkError",
    "ScanError",
    "MalformedCommentError",
    "UnterminatedLiteralError",
    "UnbalancedScopeError",
    "UnknownDialectError",
    "ConfigError",
]
