"""
Per-dialect rule descriptors.

A dialect is a runtime value; the scanner looks its rules up in
``DIALECT_RULES`` instead of dispatching on per-language classes, so every
component stays a pure function of (text, rules). Distinct dialects may share
identical rule tables.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence

from doclink.core.errors import ConfigError, UnknownDialectError
from doclink.core.models import CommentPlacement, SpanKind


class Dialect(str, Enum):
    """Supported C-family comment dialects."""

    C = "c"
    CPP = "cpp"
    CSHARP = "csharp"
    JAVA = "java"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    KOTLIN = "kotlin"
    RUST = "rust"


@dataclass(frozen=True)
class LiteralRule:
    """
    How one kind of string or char literal is delimited.

    Attributes:
        open: Opening delimiter
        close: Closing delimiter
        kind: STRING_LITERAL or CHAR_LITERAL
        escape: Escape character, or None for raw literals
        doubled_close: A doubled closing delimiter is an escaped delimiter
            (C# verbatim strings)
        max_length: When set, the literal must close within this many
            characters on the same line, otherwise the opener is plain code
            (Rust lifetimes share the char literal quote)
        word_prefixed: Opener starts with a letter and must not continue an
            identifier (``r"..."``, ``@"..."``)
    """

    open: str
    close: str
    kind: SpanKind = SpanKind.STRING_LITERAL
    escape: str | None = "\\"
    doubled_close: bool = False
    max_length: int | None = None
    word_prefixed: bool = False


@dataclass(frozen=True)
class DocMarker:
    """A comment prefix that makes a comment a doc comment.

    The character right after the prefix must differ from the prefix's last
    character, so ``///`` does not match ``////`` and ``/**`` does not match
    ``/***``.
    """

    prefix: str
    kind: SpanKind
    placement: CommentPlacement = CommentPlacement.OUTER


_DOUBLE_QUOTE = LiteralRule('"', '"')
_SINGLE_QUOTE_STRING = LiteralRule("'", "'")
_CHAR = LiteralRule("'", "'", kind=SpanKind.CHAR_LITERAL)
_TEXT_BLOCK = LiteralRule('"""', '"""')
_RAW_TEXT_BLOCK = LiteralRule('"""', '"""', escape=None)

_OUTER_LINE = DocMarker("///", SpanKind.LINE_COMMENT)
_OUTER_BLOCK = DocMarker("/**", SpanKind.BLOCK_COMMENT)

_CONTROL_KEYWORDS = frozenset({
    "if", "else", "for", "foreach", "while", "do", "switch", "case", "catch",
    "try", "finally", "return", "throw", "with", "synchronized", "using",
    "lock", "fixed", "unsafe", "checked", "unchecked", "when", "match", "loop",
    "sizeof", "typeof", "alignof", "decltype", "new", "delete", "await",
    "yield", "goto", "assert", "defer", "static_assert", "elif",
})

_MODIFIER_KEYWORDS = frozenset({
    "export", "default", "declare", "public", "private", "protected",
    "internal", "static", "abstract", "final", "sealed", "async", "override",
    "virtual", "readonly", "inline", "extern", "open", "data", "suspend",
    "pub", "unsafe", "const", "constexpr", "explicit", "friend", "partial",
    "native", "strictfp", "transient", "volatile", "operator", "get", "set",
})


@dataclass(frozen=True)
class DialectRules:
    """
    Immutable rule descriptor for one dialect.

    Attributes:
        dialect: Dialect this table belongs to
        line_comment: Line comment opener
        block_open: Block comment opener
        block_close: Block comment closer
        nested_block_comments: Block comments nest (Rust, Kotlin)
        doc_markers: Prefixes that make a comment a doc comment
        literals: Literal delimiters, longest opener first
        function_keywords: Keywords introducing a function
        class_keywords: Keywords introducing a class-like declaration
        modifier_keywords: Prefix keywords skipped in front of a declaration
        control_keywords: Words that look like calls but open plain blocks
        signature_functions: ``name(params) {`` declares a function without a
            keyword (C, C++, Java, C#, JS class bodies)
        lambda_arrows: Tokens that turn a parameter list into a lambda
        bracket_lambdas: ``[captures](params) {`` is a lambda (C++)
        bar_closures: ``|params| {`` is a closure (Rust)
        decorator_prefix: Character starting a decorator or annotation
        attribute_openers: Tokens opening a bracketed attribute list
        preprocessor: Lines starting with ``#`` are directives
        newline_terminates: A newline may end a statement (Kotlin)
        merge_line_comments: Merge adjacent doc line comments
    """

    dialect: Dialect
    line_comment: str = "//"
    block_open: str = "/*"
    block_close: str = "*/"
    nested_block_comments: bool = False
    doc_markers: tuple[DocMarker, ...] = (_OUTER_LINE, _OUTER_BLOCK)
    literals: tuple[LiteralRule, ...] = (_DOUBLE_QUOTE, _CHAR)
    function_keywords: frozenset[str] = frozenset()
    class_keywords: frozenset[str] = frozenset({"class", "struct", "enum", "union"})
    modifier_keywords: frozenset[str] = _MODIFIER_KEYWORDS
    control_keywords: frozenset[str] = _CONTROL_KEYWORDS
    signature_functions: bool = True
    lambda_arrows: frozenset[str] = frozenset()
    bracket_lambdas: bool = False
    bar_closures: bool = False
    decorator_prefix: str | None = None
    attribute_openers: frozenset[str] = frozenset()
    preprocessor: bool = False
    newline_terminates: bool = False
    merge_line_comments: bool = True

    def with_inner_comments(self, enabled: bool) -> "DialectRules":
        """Return a copy with INNER doc markers kept or dropped."""
        if enabled:
            return self
        markers = tuple(
            m for m in self.doc_markers if m.placement is CommentPlacement.OUTER
        )
        return replace(self, doc_markers=markers)

    def with_markers(
        self,
        outer: Sequence[str] | None = None,
        inner: Sequence[str] | None = None,
    ) -> "DialectRules":
        """
        Return a copy with the outer or inner doc markers replaced.

        A side left as None keeps this dialect's markers for that placement.
        Prefixes starting with the block opener become block markers, the
        rest line markers.

        Raises:
            ConfigError: If a prefix opens no comment in this dialect
        """
        if outer is None and inner is None:
            return self
        markers: list[DocMarker] = []
        for placement, prefixes in (
            (CommentPlacement.OUTER, outer),
            (CommentPlacement.INNER, inner),
        ):
            if prefixes is None:
                markers.extend(m for m in self.doc_markers if m.placement is placement)
            else:
                markers.extend(
                    DocMarker(prefix, self._marker_kind(prefix), placement)
                    for prefix in prefixes
                )
        return replace(self, doc_markers=tuple(markers))

    def _marker_kind(self, prefix: str) -> SpanKind:
        if prefix.startswith(self.block_open):
            return SpanKind.BLOCK_COMMENT
        if prefix.startswith(self.line_comment):
            return SpanKind.LINE_COMMENT
        raise ConfigError(f"Doc marker {prefix!r} does not open a {self.dialect.value} comment")


DIALECT_RULES: dict[Dialect, DialectRules] = {
    Dialect.C: DialectRules(
        dialect=Dialect.C,
        doc_markers=(
            _OUTER_LINE,
            _OUTER_BLOCK,
            DocMarker("//!", SpanKind.LINE_COMMENT),
            DocMarker("/*!", SpanKind.BLOCK_COMMENT),
        ),
        preprocessor=True,
    ),
    Dialect.CPP: DialectRules(
        dialect=Dialect.CPP,
        doc_markers=(
            _OUTER_LINE,
            _OUTER_BLOCK,
            DocMarker("//!", SpanKind.LINE_COMMENT),
            DocMarker("/*!", SpanKind.BLOCK_COMMENT),
        ),
        literals=(LiteralRule('R"(', ')"', escape=None, word_prefixed=True), _DOUBLE_QUOTE, _CHAR),
        class_keywords=frozenset({"class", "struct", "enum", "union"}),
        bracket_lambdas=True,
        preprocessor=True,
    ),
    Dialect.CSHARP: DialectRules(
        dialect=Dialect.CSHARP,
        literals=(
            _RAW_TEXT_BLOCK,
            LiteralRule('@"', '"', escape=None, doubled_close=True, word_prefixed=True),
            _DOUBLE_QUOTE,
            _CHAR,
        ),
        class_keywords=frozenset({"class", "struct", "interface", "enum", "record"}),
        lambda_arrows=frozenset({"=>"}),
        attribute_openers=frozenset({"["}),
        preprocessor=True,
    ),
    Dialect.JAVA: DialectRules(
        dialect=Dialect.JAVA,
        literals=(_TEXT_BLOCK, _DOUBLE_QUOTE, _CHAR),
        class_keywords=frozenset({"class", "interface", "enum", "record"}),
        lambda_arrows=frozenset({"->"}),
        decorator_prefix="@",
    ),
    Dialect.JAVASCRIPT: DialectRules(
        dialect=Dialect.JAVASCRIPT,
        literals=(LiteralRule("`", "`"), _DOUBLE_QUOTE, _SINGLE_QUOTE_STRING),
        function_keywords=frozenset({"function"}),
        class_keywords=frozenset({"class"}),
        lambda_arrows=frozenset({"=>"}),
        decorator_prefix="@",
    ),
    Dialect.TYPESCRIPT: DialectRules(
        dialect=Dialect.TYPESCRIPT,
        literals=(LiteralRule("`", "`"), _DOUBLE_QUOTE, _SINGLE_QUOTE_STRING),
        function_keywords=frozenset({"function"}),
        class_keywords=frozenset({"class", "interface", "enum"}),
        lambda_arrows=frozenset({"=>"}),
        decorator_prefix="@",
    ),
    Dialect.KOTLIN: DialectRules(
        dialect=Dialect.KOTLIN,
        nested_block_comments=True,
        literals=(_RAW_TEXT_BLOCK, _DOUBLE_QUOTE, _CHAR),
        function_keywords=frozenset({"fun"}),
        class_keywords=frozenset({"class", "interface", "object"}),
        signature_functions=False,
        decorator_prefix="@",
        newline_terminates=True,
    ),
    Dialect.RUST: DialectRules(
        dialect=Dialect.RUST,
        nested_block_comments=True,
        doc_markers=(
            _OUTER_LINE,
            _OUTER_BLOCK,
            DocMarker("//!", SpanKind.LINE_COMMENT, CommentPlacement.INNER),
            DocMarker("/*!", SpanKind.BLOCK_COMMENT, CommentPlacement.INNER),
        ),
        literals=(
            LiteralRule('r#"', '"#', escape=None, word_prefixed=True),
            LiteralRule('r"', '"', escape=None, word_prefixed=True),
            _DOUBLE_QUOTE,
            LiteralRule("'", "'", kind=SpanKind.CHAR_LITERAL, max_length=12),
        ),
        function_keywords=frozenset({"fn"}),
        class_keywords=frozenset({"struct", "enum", "trait", "impl", "union"}),
        signature_functions=False,
        bar_closures=True,
        attribute_openers=frozenset({"#"}),
    ),
}


def get_rules(dialect: "Dialect | str") -> DialectRules:
    """
    Look up the rule table for a dialect.

    Args:
        dialect: Dialect member or its string value (case-insensitive)

    Returns:
        The dialect's rule descriptor

    Raises:
        UnknownDialectError: If the dialect is not supported
    """
    try:
        key = dialect if isinstance(dialect, Dialect) else Dialect(str(dialect).lower())
    except ValueError as e:
        supported = ", ".join(d.value for d in Dialect)
        raise UnknownDialectError(
            f"Unknown dialect '{dialect}'. Supported dialects: {supported}"
        ) from e
    return DIALECT_RULES[key]
