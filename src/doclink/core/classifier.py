"""
Comment classification.

Decides whether each comment span is a doc comment, a plain comment or a
trailing comment that documents nothing, and merges runs of adjacent doc line
comments into a single record.
"""

from typing import Iterable, Iterator

from doclink.core.dialects.rules import DialectRules, DocMarker
from doclink.core.models import (
    CommentPlacement,
    CommentRecord,
    CommentStyle,
    SourceSpan,
    SpanKind,
)
from doclink.core.tokenizer import LineIndex


def classify_marker(
    raw: str,
    kind: SpanKind,
    rules: DialectRules,
    trailing: bool = False,
) -> tuple[CommentStyle, DocMarker | None]:
    """
    Classify one comment by its opening marker.

    Args:
        raw: Comment text including its markers
        kind: LINE_COMMENT or BLOCK_COMMENT
        rules: Dialect rules
        trailing: Code precedes the comment on its line

    Returns:
        (style, marker) where marker is the matched doc marker, or None
        unless the style is DOC.
    """
    if trailing:
        return CommentStyle.IGNORED, None
    for marker in rules.doc_markers:
        if marker.kind is kind and _matches(raw, marker, rules):
            return CommentStyle.DOC, marker
    return CommentStyle.PLAIN, None


def _matches(raw: str, marker: DocMarker, rules: DialectRules) -> bool:
    prefix = marker.prefix
    if not raw.startswith(prefix):
        return False
    if raw[len(prefix):len(prefix) + 1] == prefix[-1]:
        return False
    # ``/**/`` is an empty plain comment, not a doc opener
    if marker.kind is SpanKind.BLOCK_COMMENT and raw.endswith(rules.block_close):
        return len(raw) >= len(prefix) + len(rules.block_close)
    return True


def strip_markers(raw: str, kind: SpanKind, opener: str, rules: DialectRules) -> str:
    """Remove the opener (and the block closer, when present) from a comment."""
    body = raw[len(opener):]
    if kind is SpanKind.BLOCK_COMMENT and raw.endswith(rules.block_close) and (
        len(raw) >= len(opener) + len(rules.block_close)
    ):
        body = raw[len(opener):len(raw) - len(rules.block_close)]
    return body


class CommentClassifier:
    """
    Turns comment spans into comment records.

    A comment that follows code on its own line is IGNORED. With
    ``merge_line_comments`` enabled, doc line comments on consecutive lines
    with the same marker placement become one record spanning from the first
    marker to the end of the last line.
    """

    def __init__(self, rules: DialectRules):
        self._rules = rules

    def classify(self, spans: Iterable[SourceSpan], text: str) -> Iterator[CommentRecord]:
        """
        Yield one record per comment, or per merged run, in source order.

        Args:
            spans: Tokenizer spans for text
            text: The source text the spans cover

        Yields:
            CommentRecord for every comment span
        """
        lines = LineIndex(text)
        rules = self._rules
        last_code_line = 0
        run: list[tuple[SourceSpan, DocMarker]] = []

        for span in spans:
            if not span.kind.is_comment:
                content = span.text.rstrip()
                if content.strip():
                    last_code_line = lines.line_of(span.start + len(content) - 1)
                    if run:
                        yield self._merge(run, lines)
                        run = []
                continue

            line = lines.line_of(span.start)
            style, marker = classify_marker(span.text, span.kind, rules, line == last_code_line)

            if (
                marker is not None
                and span.kind is SpanKind.LINE_COMMENT
                and rules.merge_line_comments
            ):
                if run and self._continues(run[-1], span, marker, text):
                    run.append((span, marker))
                    continue
                if run:
                    yield self._merge(run, lines)
                run = [(span, marker)]
                continue

            if run:
                yield self._merge(run, lines)
                run = []
            yield self._record(span, style, marker, line)

        if run:
            yield self._merge(run, lines)

    @staticmethod
    def _continues(
        previous: tuple[SourceSpan, DocMarker],
        span: SourceSpan,
        marker: DocMarker,
        text: str,
    ) -> bool:
        prev_span, prev_marker = previous
        if prev_marker.placement is not marker.placement:
            return False
        gap = text[prev_span.end:span.start]
        return gap.count("\n") == 1 and not gap.strip()

    def _record(
        self,
        span: SourceSpan,
        style: CommentStyle,
        marker: DocMarker | None,
        line: int,
    ) -> CommentRecord:
        rules = self._rules
        if marker is not None:
            opener = marker.prefix
        elif span.kind is SpanKind.LINE_COMMENT:
            opener = rules.line_comment
        else:
            opener = rules.block_open
        return CommentRecord(
            text=strip_markers(span.text, span.kind, opener, rules),
            style=style,
            start=span.start,
            end=span.end,
            dialect=rules.dialect.value,
            kind=span.kind,
            placement=marker.placement if marker else CommentPlacement.OUTER,
            line=line,
        )

    def _merge(
        self, run: list[tuple[SourceSpan, DocMarker]], lines: LineIndex
    ) -> CommentRecord:
        first, marker = run[0]
        last = run[-1][0]
        body = "\n".join(span.text[len(m.prefix):] for span, m in run)
        return CommentRecord(
            text=body,
            style=CommentStyle.DOC,
            start=first.start,
            end=last.end,
            dialect=self._rules.dialect.value,
            kind=SpanKind.LINE_COMMENT,
            placement=marker.placement,
            line=lines.line_of(first.start),
        )
