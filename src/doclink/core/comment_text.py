"""
Comment Text Formatter - Normalizes doc comment bodies.

Comment records keep their raw content with only the markers removed. This
module strips the remaining decoration (continuation stars, common
indentation, surrounding blank lines) so consumers get plain text. Markup such
as ``@param`` tags is left untouched.
"""

import re
import textwrap

from doclink.core.models import CommentRecord, SpanKind


class CommentTextFormatter:
    """
    Normalizes the text of comment records.

    Block comments lose the leading ``*`` of continuation lines; line
    comments lose their common indentation. Both keep their internal line
    structure.
    """

    _CONTINUATION_STAR = re.compile(r"^\s*\*(?!/)\s?")
    _EXCESS_BLANK_LINES = re.compile(r"\n{3,}")

    def normalize(self, record: CommentRecord) -> str:
        """
        Normalize one record's text.

        Args:
            record: Comment record from a scan

        Returns:
            Plain text with comment decoration removed

        Examples:
            >>> formatter = CommentTextFormatter()
            >>> formatter.normalize_text("\\n * Adds two numbers\\n ", SpanKind.BLOCK_COMMENT)
            'Adds two numbers'
        """
        return self.normalize_text(record.text, record.kind)

    def normalize_text(self, text: str, kind: SpanKind) -> str:
        if not text or not text.strip():
            return ""

        if kind is SpanKind.BLOCK_COMMENT:
            first, *rest = text.split("\n")
            # The first line follows the opener directly, e.g. "/** Title"
            parts = [first.strip()] if first.strip() else []
            if rest:
                parts.append(self._dedent([self._strip_star(line) for line in rest]))
            body = "\n".join(parts)
        else:
            body = self._dedent(text.split("\n"))

        body = self._EXCESS_BLANK_LINES.sub("\n\n", body)
        return body.strip("\n").rstrip()

    def _strip_star(self, line: str) -> str:
        match = self._CONTINUATION_STAR.match(line)
        return line[match.end():] if match else line

    @staticmethod
    def _dedent(lines: list[str]) -> str:
        return textwrap.dedent("\n".join(line.rstrip() for line in lines))


_formatter = CommentTextFormatter()


def normalize_comment_text(record: CommentRecord) -> str:
    """Return the record's text with comment decoration removed."""
    return _formatter.normalize(record)
