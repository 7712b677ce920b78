"""
Lexical tokenizer for C-family source text.

Splits source text into an ordered, gap-free sequence of spans (code,
literals, line and block comments) so that comment markers inside literals
never count as comments, then splits code spans into the word and
punctuation tokens the scope tracker and declaration matcher work on.
"""

import logging
import re
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from doclink.core.dialects.rules import DialectRules, LiteralRule
from doclink.core.models import Diagnostic, DiagnosticKind, SourceSpan, SpanKind

logger = logging.getLogger(__name__)

_BLANK_LINE = re.compile(r"\n[ \t\r\f\v]*\n")

_CODE_TOKEN = re.compile(
    r"""
    (?P<word>(?:[^\W\d]|\$)[\w$]*)
    |(?P<number>\d[\w.]*)
    |(?P<operator>===|!==|\.\.\.|=>|->|::|==|!=|<=|>=|&&|\|\||\+\+|--|\+=|-=|\*=|/=|%=|\?\.|\?\?)
    |(?P<punct>\S)
    """,
    re.VERBOSE,
)


class TokenKind(str, Enum):
    """Kind of a code token."""

    WORD = "word"
    NUMBER = "number"
    OPERATOR = "operator"
    PUNCT = "punct"
    LITERAL = "literal"
    DIRECTIVE = "directive"


@dataclass(frozen=True)
class CodeToken:
    """A token from a code or literal span."""

    text: str
    start: int
    end: int
    kind: TokenKind

    @property
    def is_word(self) -> bool:
        return self.kind is TokenKind.WORD


@dataclass
class TokenizeResult:
    """Spans of one input plus the diagnostics raised while producing them."""

    spans: list[SourceSpan] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class LineIndex:
    """Maps offsets to 1-based line numbers."""

    def __init__(self, text: str):
        self._starts = [0]
        self._starts.extend(m.end() for m in re.finditer("\n", text))

    def line_of(self, offset: int) -> int:
        return bisect_right(self._starts, offset)


def has_blank_line(text: str, start: int, end: int) -> bool:
    """Check whether ``text[start:end]`` contains an empty or whitespace-only line."""
    return _BLANK_LINE.search(text, start, end) is not None


class Tokenizer:
    """
    Converts source text into classified spans for one dialect.

    The tokenizer never fails: an unterminated block comment or literal turns
    the rest of the input into one span of that kind and adds a diagnostic.
    Every loop step consumes at least one character, so any finite input
    terminates.
    """

    def __init__(self, rules: DialectRules):
        self._rules = rules
        self._literals = sorted(rules.literals, key=lambda r: len(r.open), reverse=True)
        starters = {rules.line_comment[0], rules.block_open[0]}
        starters.update(rule.open[0] for rule in self._literals)
        self._interesting = re.compile("[" + re.escape("".join(sorted(starters))) + "]")

    def tokenize(self, text: str) -> TokenizeResult:
        """
        Split text into spans.

        Args:
            text: Complete source text

        Returns:
            TokenizeResult with gap-free, offset-ordered spans and diagnostics.
        """
        result = TokenizeResult()
        lines = LineIndex(text)
        rules = self._rules
        n = len(text)
        code_start = 0
        pos = 0

        while pos < n:
            match = self._interesting.search(text, pos)
            if match is None:
                break
            pos = match.start()

            if text.startswith(rules.line_comment, pos):
                end = text.find("\n", pos)
                if end == -1:
                    end = n
                self._flush_code(text, code_start, pos, result.spans)
                result.spans.append(SourceSpan(SpanKind.LINE_COMMENT, pos, end, text[pos:end]))
                pos = code_start = end
                continue

            if text.startswith(rules.block_open, pos):
                end, closed = self._scan_block_comment(text, pos)
                self._flush_code(text, code_start, pos, result.spans)
                result.spans.append(SourceSpan(SpanKind.BLOCK_COMMENT, pos, end, text[pos:end]))
                if not closed:
                    self._report(
                        result, lines, DiagnosticKind.UNTERMINATED_COMMENT,
                        "Unterminated block comment", pos,
                    )
                pos = code_start = end
                continue

            literal = self._scan_literal(text, pos)
            if literal is not None:
                rule, end, closed = literal
                self._flush_code(text, code_start, pos, result.spans)
                result.spans.append(SourceSpan(rule.kind, pos, end, text[pos:end]))
                if not closed:
                    self._report(
                        result, lines, DiagnosticKind.UNTERMINATED_LITERAL,
                        f"Unterminated literal opened with {rule.open}", pos,
                    )
                pos = code_start = end
                continue

            pos += 1

        self._flush_code(text, code_start, n, result.spans)
        return result

    @staticmethod
    def _flush_code(text: str, start: int, end: int, spans: list[SourceSpan]) -> None:
        if end > start:
            spans.append(SourceSpan(SpanKind.CODE, start, end, text[start:end]))

    @staticmethod
    def _report(
        result: TokenizeResult,
        lines: LineIndex,
        kind: DiagnosticKind,
        message: str,
        offset: int,
    ) -> None:
        diagnostic = Diagnostic(kind, message, offset, lines.line_of(offset))
        logger.warning(f"{diagnostic}")
        result.diagnostics.append(diagnostic)

    def _scan_block_comment(self, text: str, pos: int) -> tuple[int, bool]:
        """Return (end offset, closed) of the block comment opened at pos."""
        rules = self._rules
        open_len = len(rules.block_open)
        close_len = len(rules.block_close)

        if not rules.nested_block_comments:
            close = text.find(rules.block_close, pos + open_len)
            if close == -1:
                return len(text), False
            return close + close_len, True

        depth = 1
        i = pos + open_len
        n = len(text)
        while i < n:
            if text.startswith(rules.block_close, i):
                depth -= 1
                i += close_len
                if depth == 0:
                    return i, True
            elif text.startswith(rules.block_open, i):
                depth += 1
                i += open_len
            else:
                i += 1
        return n, False

    def _scan_literal(self, text: str, pos: int) -> tuple[LiteralRule, int, bool] | None:
        """Return (rule, end offset, closed) for a literal opened at pos, or None."""
        for rule in self._literals:
            if not text.startswith(rule.open, pos):
                continue
            if rule.word_prefixed and pos > 0 and (text[pos - 1].isalnum() or text[pos - 1] == "_"):
                continue
            scanned = _scan_literal_body(text, pos, rule)
            if scanned is not None:
                return (rule, *scanned)
        return None


def _scan_literal_body(text: str, pos: int, rule: LiteralRule) -> tuple[int, bool] | None:
    n = len(text)
    i = pos + len(rule.open)
    close_len = len(rule.close)

    while i < n:
        if rule.max_length is not None and (i - pos > rule.max_length or text[i] == "\n"):
            return None
        if rule.escape is not None and text[i] == rule.escape:
            i += 2
            continue
        if text.startswith(rule.close, i):
            if rule.doubled_close and text.startswith(rule.close * 2, i):
                i += 2 * close_len
                continue
            end = i + close_len
            if rule.max_length is not None and not _is_single_char(text[pos + len(rule.open):i], rule):
                return None
            return end, True
        i += 1

    if rule.max_length is not None:
        return None
    return n, False


def _is_single_char(content: str, rule: LiteralRule) -> bool:
    """A bounded char literal holds one character or one escape sequence."""
    if len(content) == 1:
        return True
    return bool(content) and rule.escape is not None and content.startswith(rule.escape)


def iter_code_tokens(
    spans: Iterable[SourceSpan], text: str, rules: DialectRules
) -> Iterator[CodeToken]:
    """
    Yield code tokens from the code and literal spans, skipping comments.

    Each literal span becomes a single LITERAL token. In dialects with a
    preprocessor, a ``#`` that starts a line swallows the logical line
    (backslash continuations included) as one DIRECTIVE token.
    """
    directive_end = -1

    for span in spans:
        if span.kind.is_comment:
            continue
        if span.kind.is_literal:
            if span.start >= directive_end:
                yield CodeToken(span.text, span.start, span.end, TokenKind.LITERAL)
            continue

        for match in _CODE_TOKEN.finditer(text, span.start, span.end):
            start = match.start()
            if start < directive_end:
                continue
            value = match.group()
            if rules.preprocessor and value == "#" and _starts_line(text, start):
                directive_end = _logical_line_end(text, start)
                yield CodeToken(text[start:directive_end], start, directive_end, TokenKind.DIRECTIVE)
                continue
            yield CodeToken(value, start, match.end(), TokenKind(match.lastgroup))


def _starts_line(text: str, offset: int) -> bool:
    line_start = text.rfind("\n", 0, offset) + 1
    return not text[line_start:offset].strip()


def _logical_line_end(text: str, offset: int) -> int:
    """End of the line at offset, following backslash continuations."""
    n = len(text)
    end = text.find("\n", offset)
    while end != -1 and text[end - 1] == "\\":
        end = text.find("\n", end + 1)
    if end == -1:
        return n
    if text[end - 1] == "\r":
        return end - 1
    return end
