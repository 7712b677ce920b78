"""
Data models for the doc comment scanner.

Every record is an immutable value produced by a single scan pass:
spans from the tokenizer, comment records from the classifier, scope frames
and declaration sites from the scope tracker, and association records joining
a doc comment to the declaration it documents.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from doclink.core.errors import (
    MalformedCommentError,
    ScanError,
    UnbalancedScopeError,
    UnterminatedLiteralError,
)


class SpanKind(str, Enum):
    """Lexical class of a source span."""

    CODE = "code"
    STRING_LITERAL = "string_literal"
    CHAR_LITERAL = "char_literal"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"

    @property
    def is_comment(self) -> bool:
        return self in (SpanKind.LINE_COMMENT, SpanKind.BLOCK_COMMENT)

    @property
    def is_literal(self) -> bool:
        return self in (SpanKind.STRING_LITERAL, SpanKind.CHAR_LITERAL)


@dataclass(frozen=True)
class SourceSpan:
    """
    A contiguous range of the input text.

    Attributes:
        kind: Lexical class of the range
        start: Offset of the first character
        end: Offset one past the last character
        text: The covered text, markers and quotes included
    """

    kind: SpanKind
    start: int
    end: int
    text: str


class CommentStyle(str, Enum):
    """Documentation significance of a comment."""

    DOC = "doc"
    PLAIN = "plain"
    IGNORED = "ignored"


class CommentPlacement(str, Enum):
    """Which item a doc comment describes.

    OUTER comments document the declaration that follows them, INNER comments
    (``//!`` in Rust) document the item that encloses them.
    """

    OUTER = "outer"
    INNER = "inner"


@dataclass(frozen=True)
class CommentRecord:
    """
    A classified comment.

    Attributes:
        text: Raw content without the comment markers. Merged line comments
            are joined with newlines.
        style: DOC, PLAIN or IGNORED
        start: Offset of the opening marker
        end: Offset one past the closing marker (or the end of the last line)
        dialect: Dialect identifier the comment was classified under
        kind: LINE_COMMENT or BLOCK_COMMENT
        placement: OUTER or INNER
        line: 1-based line of the opening marker
    """

    text: str
    style: CommentStyle
    start: int
    end: int
    dialect: str
    kind: SpanKind = SpanKind.BLOCK_COMMENT
    placement: CommentPlacement = CommentPlacement.OUTER
    line: int = 1

    @property
    def is_doc(self) -> bool:
        return self.style is CommentStyle.DOC


class ScopeKind(str, Enum):
    """Kind of a lexical scope frame."""

    FILE = "file"
    CLASS = "class"
    FUNCTION = "function"
    ANONYMOUS_FUNCTION = "anonymous_function"
    BLOCK = "block"


@dataclass(frozen=True)
class ScopeFrame:
    """One entry of the scope stack. ``name`` is empty for anonymous scopes."""

    kind: ScopeKind
    name: str
    start: int


@dataclass(frozen=True)
class ScopeRef:
    """A scope path element: the kind and name of an enclosing frame."""

    kind: ScopeKind
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "name": self.name}


class DeclarationKind(str, Enum):
    """Kind of a documented declaration."""

    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    ANONYMOUS_FUNCTION = "anonymous_function"

    @property
    def scope_kind(self) -> ScopeKind:
        """Scope frame kind pushed for the body of this declaration."""
        if self is DeclarationKind.CLASS:
            return ScopeKind.CLASS
        if self is DeclarationKind.ANONYMOUS_FUNCTION:
            return ScopeKind.ANONYMOUS_FUNCTION
        return ScopeKind.FUNCTION


@dataclass(frozen=True)
class DeclarationSite:
    """
    A point where a class, function or method declaration begins.

    Attributes:
        kind: Declaration kind
        name: Declared name, empty for anonymous declarations
        start: Offset of the first header token
        line: 1-based line of the first header token
        scope_path: Enclosing frames from the file frame down to the parent
    """

    kind: DeclarationKind
    name: str
    start: int
    line: int
    scope_path: tuple[ScopeRef, ...]

    @property
    def depth(self) -> int:
        return len(self.scope_path)

    @property
    def qualified_name(self) -> str:
        """Dotted names of the enclosing named frames plus this declaration."""
        parts = [ref.name for ref in self.scope_path if ref.name]
        parts.append(self.name or "<anonymous>")
        return ".".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "declaration_kind": self.kind.value,
            "name": self.name or None,
            "scope_path": [ref.to_dict() for ref in self.scope_path],
        }


@dataclass(frozen=True)
class AssociationRecord:
    """
    A doc comment and the declaration it documents.

    ``target`` is None for an orphaned doc comment; orphans are kept because
    file-level and section comments are meaningful without a declaration.
    ``depth`` is the scope stack depth at the comment.
    """

    comment: CommentRecord
    target: DeclarationSite | None
    depth: int

    @property
    def is_orphan(self) -> bool:
        return self.target is None

    def to_dict(self) -> dict[str, Any]:
        """Convert the record to a JSON-friendly dictionary."""
        return {
            "comment_text": self.comment.text,
            "comment_kind": self.comment.style.value,
            "placement": self.comment.placement.value,
            "location": {
                "start_offset": self.comment.start,
                "end_offset": self.comment.end,
            },
            "depth": self.depth,
            "target": self.target.to_dict() if self.target else None,
        }


class DiagnosticKind(str, Enum):
    """Non-fatal problems reported while scanning."""

    UNTERMINATED_COMMENT = "unterminated_comment"
    UNTERMINATED_LITERAL = "unterminated_literal"
    UNBALANCED_SCOPE = "unbalanced_scope"


_DIAGNOSTIC_ERRORS: dict[DiagnosticKind, type[ScanError]] = {
    DiagnosticKind.UNTERMINATED_COMMENT: MalformedCommentError,
    DiagnosticKind.UNTERMINATED_LITERAL: UnterminatedLiteralError,
    DiagnosticKind.UNBALANCED_SCOPE: UnbalancedScopeError,
}


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal warning with the offset it refers to."""

    kind: DiagnosticKind
    message: str
    offset: int
    line: int = 1

    def to_error(self) -> ScanError:
        """Build the exception matching this diagnostic."""
        return _DIAGNOSTIC_ERRORS[self.kind](self.message, self.offset)

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"

