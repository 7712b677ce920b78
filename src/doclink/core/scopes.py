"""
Scope tracking over code tokens.

The tracker keeps a stack of lexical frames, one per open brace, and decides
the kind of each frame from the statement header in front of its ``{``.
Declarations found along the way are reported as events so the declaration
matcher can bind pending doc comments without re-reading the input.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum

from doclink.core.dialects.rules import DialectRules
from doclink.core.headers import HeaderMatch, analyze_header, is_decoration_only
from doclink.core.models import (
    DeclarationSite,
    Diagnostic,
    DiagnosticKind,
    ScopeFrame,
    ScopeKind,
    ScopeRef,
)
from doclink.core.tokenizer import CodeToken, LineIndex, TokenKind

logger = logging.getLogger(__name__)

# Header tokens kept per statement; older tokens are dropped first
MAX_HEADER_TOKENS = 1024

# Tokens that keep a Kotlin statement going across a newline
_CONTINUATION_BEFORE = frozenset({
    "=", ",", "(", "[", ".", "?.", ":", "::", "->", "+", "-", "*", "/", "%",
    "&&", "||", "<", "?", "@", "!",
})
_CONTINUATION_AFTER = frozenset({
    ".", "?.", ":", "{", "=", "->", ")", "]", "&&", "||", "?", "as", "where",
    "by", "else",
})


class ScopeEventKind(str, Enum):
    """What a fed token did to the scope stack."""

    PUSH = "push"
    POP = "pop"
    STATEMENT = "statement"
    DIRECTIVE = "directive"


@dataclass(frozen=True, eq=False)
class _PathNode:
    """One open frame linked to its parent, shared by every deeper frame."""

    ref: ScopeRef
    parent: "_PathNode | None" = field(default=None, repr=False)

    def refs(self) -> tuple[ScopeRef, ...]:
        refs = []
        node: _PathNode | None = self
        while node is not None:
            refs.append(node.ref)
            node = node.parent
        return tuple(reversed(refs))


@dataclass(frozen=True)
class ScopeEvent:
    """
    A scope change caused by one token.

    Attributes:
        kind: Event kind
        depth: Stack depth before a PUSH or STATEMENT, after a POP
        frame: Frame pushed or popped
        site: Declaration opened by a PUSH or ended by a STATEMENT, without
            its scope path; see ``resolved_site``
        nested: PUSH happened inside the parentheses of a header
        scope: Frames enclosing the site, as a linked path
    """

    kind: ScopeEventKind
    depth: int
    frame: ScopeFrame | None = None
    site: DeclarationSite | None = None
    nested: bool = False
    scope: _PathNode | None = field(default=None, repr=False, compare=False)

    def resolved_site(self) -> DeclarationSite | None:
        """The declaration with the frames that enclosed it filled in."""
        if self.site is None or self.scope is None:
            return self.site
        return replace(self.site, scope_path=self.scope.refs())


@dataclass
class _Level:
    """
    Stack entry: a frame plus the header state of its parent at push time.

    ``node`` is the path down to and including this frame, ``owner`` the
    stack index of the innermost non-block frame at or below it.
    """

    frame: ScopeFrame
    site: DeclarationSite | None
    saved_header: list[CodeToken]
    saved_parens: int
    node: _PathNode
    owner: int


class ScopeTracker:
    """
    Maintains the stack of lexical frames while code tokens are fed in order.

    The bottom frame is the FILE frame and is never popped. A ``}`` with
    nothing to close is reported as UNBALANCED_SCOPE and skipped; frames still
    open at ``close()`` are reported and closed implicitly.

    Example:
        >>> tracker = ScopeTracker(get_rules("java"), text)
        >>> for token in iter_code_tokens(spans, text, rules):
        ...     events = tracker.feed(token)
        >>> tracker.close(len(text))
    """

    def __init__(self, rules: DialectRules, text: str = "", lines: LineIndex | None = None):
        self._rules = rules
        self._text = text
        self._lines = lines or LineIndex(text)
        file_frame = ScopeFrame(ScopeKind.FILE, "", 0)
        self._levels: list[_Level] = [
            _Level(file_frame, None, [], 0, _PathNode(ScopeRef(ScopeKind.FILE, "")), 0)
        ]
        self._header: list[CodeToken] = []
        self._parens = 0
        self._previous: CodeToken | None = None
        self.diagnostics: list[Diagnostic] = []

    @property
    def depth(self) -> int:
        return len(self._levels)

    @property
    def header(self) -> list[CodeToken]:
        """Tokens of the statement currently being read."""
        return self._header

    @property
    def paren_depth(self) -> int:
        return self._parens

    def path(self) -> tuple[ScopeRef, ...]:
        """Kinds and names of the open frames, outermost first."""
        return self._levels[-1].node.refs()

    def frames(self) -> list[ScopeFrame]:
        return [level.frame for level in self._levels]

    def enclosing_site(self) -> DeclarationSite | None:
        """Declaration of the innermost class or function frame, skipping blocks."""
        level = self._levels[self._levels[-1].owner]
        if level.site is None:
            return None
        parent = level.node.parent
        return replace(level.site, scope_path=parent.refs() if parent else ())

    def enclosing_kind(self) -> ScopeKind:
        return self._levels[self._levels[-1].owner].frame.kind

    def feed(self, token: CodeToken) -> list[ScopeEvent]:
        """
        Advance over one token.

        Args:
            token: Next code token in source order

        Returns:
            Scope events caused by the token, usually none.
        """
        events: list[ScopeEvent] = []
        text = token.text

        if self._rules.newline_terminates and self._breaks_line(token.start, token.text):
            events.append(self._end_statement())

        self._previous = token

        if token.kind is TokenKind.DIRECTIVE:
            self._header = []
            events.append(ScopeEvent(ScopeEventKind.DIRECTIVE, self.depth))
            return events

        if token.kind is TokenKind.LITERAL:
            self._append(token)
            return events

        if text == "{":
            events.append(self._push(token))
        elif text == "}":
            event = self._pop(token)
            if event is not None:
                events.append(event)
        elif text == ";" and self._parens == 0:
            events.append(self._end_statement())
        else:
            if text in ("(", "["):
                self._parens += 1
            elif text in (")", "]"):
                self._parens = max(self._parens - 1, 0)
            self._append(token)
        return events

    def break_before(self, offset: int) -> list[ScopeEvent]:
        """
        End the current statement when a newline separates it from offset.

        Lets a comment on the next line close a newline-terminated statement
        before the next token arrives.
        """
        if self._rules.newline_terminates and self._breaks_line(offset, None):
            return [self._end_statement()]
        return []

    def flush(self) -> list[ScopeEvent]:
        """
        End the statement still open at end of input.

        Only newline-terminated dialects end a statement without a token;
        elsewhere an unterminated header declares nothing.
        """
        if self._rules.newline_terminates and self._header and self._parens == 0:
            if not is_decoration_only(self._header, self._rules):
                return [self._end_statement()]
        return []

    def close(self, end_offset: int) -> list[ScopeFrame]:
        """
        Close every frame left open at end of input.

        Reports a single UNBALANCED_SCOPE diagnostic at the innermost unclosed
        frame. Returns the frames that were closed implicitly, innermost first.
        """
        unclosed = [level.frame for level in reversed(self._levels[1:])]
        if unclosed:
            frame = unclosed[0]
            self._report(
                f"{len(unclosed)} scope(s) still open at end of input (offset {end_offset}), "
                f"innermost {frame.kind.value} opened here",
                frame.start,
            )
        del self._levels[1:]
        self._header = []
        self._parens = 0
        return unclosed

    def _append(self, token: CodeToken) -> None:
        self._header.append(token)
        if len(self._header) > MAX_HEADER_TOKENS:
            del self._header[: len(self._header) - MAX_HEADER_TOKENS]

    def _site(self, match: HeaderMatch) -> DeclarationSite:
        # The scope path is attached on demand from the event's path node
        return DeclarationSite(
            kind=match.declaration_kind(self.enclosing_kind()),
            name=match.name,
            start=match.start,
            line=self._lines.line_of(match.start),
            scope_path=(),
        )

    def _push(self, token: CodeToken) -> ScopeEvent:
        depth = self.depth
        nested = self._parens > 0
        parent = self._levels[-1]
        match = analyze_header(self._header, "{", self._rules, self.enclosing_kind())
        site = self._site(match) if match is not None else None
        if site is not None:
            frame = ScopeFrame(site.kind.scope_kind, site.name, site.start)
            owner = depth
        else:
            frame = ScopeFrame(ScopeKind.BLOCK, "", token.start)
            owner = parent.owner

        node = _PathNode(ScopeRef(frame.kind, frame.name), parent.node)
        self._levels.append(
            _Level(frame, site, self._header + [token], self._parens, node, owner)
        )
        self._header = []
        self._parens = 0
        logger.debug(f"Opened {frame.kind.value} scope '{frame.name}' at offset {token.start}")
        return ScopeEvent(ScopeEventKind.PUSH, depth, frame, site, nested, parent.node)

    def _pop(self, token: CodeToken) -> ScopeEvent | None:
        if len(self._levels) == 1:
            self._report("Closing brace without a matching opening brace", token.start)
            return None
        level = self._levels.pop()
        if level.saved_parens > 0:
            # The block sat inside a header's parentheses; resume that header
            self._header = level.saved_header + [token]
            self._parens = level.saved_parens
        else:
            self._header = []
            self._parens = 0
        return ScopeEvent(ScopeEventKind.POP, self.depth, level.frame)

    def _end_statement(self) -> ScopeEvent:
        depth = self.depth
        site = None
        if self._header:
            match = analyze_header(self._header, ";", self._rules, self.enclosing_kind())
            if match is not None:
                site = self._site(match)
        self._header = []
        self._parens = 0
        return ScopeEvent(ScopeEventKind.STATEMENT, depth, site=site, scope=self._levels[-1].node)

    def _breaks_line(self, offset: int, following: str | None) -> bool:
        """True when a newline before offset ends the current statement."""
        previous = self._previous
        if previous is None or not self._header or self._parens > 0:
            return False
        if "\n" not in self._text[previous.end:offset]:
            return False
        if previous.text in _CONTINUATION_BEFORE or following in _CONTINUATION_AFTER:
            return False
        return not is_decoration_only(self._header, self._rules)

    def _report(self, message: str, offset: int) -> None:
        diagnostic = Diagnostic(
            DiagnosticKind.UNBALANCED_SCOPE, message, offset, self._lines.line_of(offset)
        )
        logger.warning(f"{diagnostic}")
        self.diagnostics.append(diagnostic)
