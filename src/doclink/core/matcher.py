"""
Declaration matching.

Walks comment records and code tokens in source order, drives the scope
tracker and joins each doc comment to the declaration that follows it (or,
for inner doc comments, the declaration that encloses it).
"""

import heapq
import logging
import re
from typing import Iterable, Iterator, Union

from doclink.core.dialects.rules import DialectRules
from doclink.core.models import (
    AssociationRecord,
    CommentPlacement,
    CommentRecord,
    DeclarationSite,
    ScopeKind,
)
from doclink.core.scopes import ScopeEvent, ScopeEventKind, ScopeTracker
from doclink.core.tokenizer import CodeToken, LineIndex, has_blank_line

logger = logging.getLogger(__name__)

DEFAULT_MAX_WINDOW_TOKENS = 128

ScanItem = Union[CommentRecord, CodeToken]

_BRACES = frozenset({"{", "}"})


def merge_events(
    comments: Iterable[CommentRecord], tokens: Iterable[CodeToken]
) -> Iterator[ScanItem]:
    """Interleave comment records and code tokens by start offset."""
    return heapq.merge(comments, tokens, key=lambda item: item.start)


def ignored_lines(text: str, patterns: Iterable[str]) -> frozenset[int]:
    """1-based numbers of the lines that match any of the patterns."""
    compiled = [re.compile(p) for p in patterns]
    if not compiled:
        return frozenset()
    return frozenset(
        number
        for number, line in enumerate(text.split("\n"), start=1)
        if any(p.search(line) for p in compiled)
    )


class DeclarationMatcher:
    """
    Binds doc comments to declarations.

    An outer doc comment opens a window. The window binds when the scope
    tracker reports a declaration ending the statement that started after the
    comment, and orphans the comment when that statement turns out to be
    something else, when a ``}`` or directive interrupts it, when a blank line
    separates comment and code, when the token ceiling is reached or at end
    of input.

    Records come out in source order of their comments. Records decided while
    an earlier window is still open are held back until that window closes.
    """

    def __init__(
        self,
        rules: DialectRules,
        tracker: ScopeTracker,
        max_window_tokens: int = DEFAULT_MAX_WINDOW_TOKENS,
        text: str = "",
        ignore_line_patterns: Iterable[str] = (),
        lines: LineIndex | None = None,
    ):
        self._rules = rules
        self._tracker = tracker
        self._max_window_tokens = max_window_tokens
        self._text = text
        self._lines = lines or LineIndex(text)
        self._ignored = ignored_lines(text, ignore_line_patterns)

        self._pending: CommentRecord | None = None
        self._pending_depth = 0
        self._pending_in_call = False
        self._first_start: int | None = None
        self._window_tokens = 0
        self._held: list[AssociationRecord] = []
        self._last_end = 0

    def run(self, events: Iterable[ScanItem]) -> Iterator[AssociationRecord]:
        """
        Consume the merged stream and yield association records.

        Args:
            events: Comment records and code tokens ordered by start offset

        Yields:
            AssociationRecord for every doc comment, in source order
        """
        for item in events:
            if isinstance(item, CommentRecord):
                yield from self._on_comment(item)
            else:
                yield from self._on_token(item)
            self._last_end = max(self._last_end, item.end)

        for event in self._tracker.flush():
            if self._pending is not None:
                yield from self._on_event(event)
        if self._pending is not None:
            yield from self._resolve(None)
        self._tracker.close(len(self._text))
        yield from self._flush_held()

    def _on_comment(self, comment: CommentRecord) -> Iterator[AssociationRecord]:
        if self._pending is not None and not self._window_tokens:
            if has_blank_line(self._text, self._last_end, comment.start):
                yield from self._resolve(None)

        if not comment.is_doc:
            return

        for event in self._tracker.break_before(comment.start):
            if self._pending is not None:
                yield from self._on_event(event)

        if comment.placement is CommentPlacement.INNER:
            record = AssociationRecord(
                comment, self._tracker.enclosing_site(), self._tracker.depth
            )
            yield from self._emit(record)
            return

        if self._pending is not None:
            if self._window_tokens:
                # Doc comment inside a header that already started
                self._held.append(AssociationRecord(comment, None, self._tracker.depth))
                return
            yield from self._resolve(None)

        self._pending = comment
        self._pending_depth = self._tracker.depth
        self._pending_in_call = self._tracker.paren_depth > 0
        self._first_start = None
        self._window_tokens = 0

    def _on_token(self, token: CodeToken) -> Iterator[AssociationRecord]:
        if token.text not in _BRACES and self._lines.line_of(token.start) in self._ignored:
            return

        if self._pending is not None and not self._window_tokens:
            if has_blank_line(self._text, self._last_end, token.start):
                yield from self._resolve(None)
        if self._pending is not None and self._first_start is None:
            self._first_start = token.start

        events = self._tracker.feed(token)

        if self._pending is None:
            return
        for event in events:
            yield from self._on_event(event)
            if self._pending is None:
                return

        self._window_tokens += 1
        if self._window_tokens > self._max_window_tokens:
            logger.debug(
                f"Doc comment at line {self._pending.line} exceeded "
                f"{self._max_window_tokens} header tokens"
            )
            yield from self._resolve(None)

    def _on_event(self, event: ScopeEvent) -> Iterator[AssociationRecord]:
        depth = self._pending_depth

        if event.kind is ScopeEventKind.DIRECTIVE:
            yield from self._resolve(None)
        elif event.kind is ScopeEventKind.POP:
            if event.depth < depth:
                yield from self._resolve(None)
        elif event.kind is ScopeEventKind.STATEMENT:
            # A statement that ended before any token after the comment is not ours
            if event.depth == depth and self._window_tokens:
                yield from self._resolve(event.resolved_site())
        elif event.kind is ScopeEventKind.PUSH and event.depth == depth:
            if not event.nested:
                yield from self._resolve(event.resolved_site())
            elif self._documents_argument(event):
                yield from self._resolve(event.resolved_site())
            elif event.frame is not None and event.frame.kind is not ScopeKind.BLOCK:
                # Callback passed in a call that started after the comment
                yield from self._resolve(None)

    def _documents_argument(self, event: ScopeEvent) -> bool:
        """True when the comment sits in an argument list right before the callback."""
        return (
            self._pending_in_call
            and event.site is not None
            and event.site.start == self._first_start
        )

    def _resolve(self, site: DeclarationSite | None) -> Iterator[AssociationRecord]:
        comment = self._pending
        if comment is None:
            return
        self._pending = None
        self._window_tokens = 0
        if site is None:
            logger.debug(f"Orphaned doc comment at line {comment.line}")
        else:
            logger.debug(
                f"Bound doc comment at line {comment.line} to "
                f"{site.kind.value} '{site.qualified_name}'"
            )
        yield AssociationRecord(comment, site, self._pending_depth)
        yield from self._flush_held()

    def _emit(self, record: AssociationRecord) -> Iterator[AssociationRecord]:
        if self._pending is not None:
            self._held.append(record)
        else:
            yield record

    def _flush_held(self) -> Iterator[AssociationRecord]:
        held, self._held = self._held, []
        yield from held
