"""
Property-based tests for comment classification.

**Feature: doc comment scanning, comment classes**
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from doclink.core.classifier import CommentClassifier, classify_marker
from doclink.core.dialects import get_rules
from doclink.core.models import CommentStyle, SpanKind
from doclink.core.tokenizer import Tokenizer
from tests.support.source_strategies import c_family_source, comment_body, dialect_name


@given(stars=st.integers(min_value=1, max_value=6), body=comment_body, dialect=dialect_name)
@settings(max_examples=100)
def test_block_doc_needs_exactly_two_stars(stars: int, body: str, dialect: str):
    """``/**`` opens a doc comment, ``/*`` and ``/***...`` do not."""
    raw = "/" + "*" * stars + " " + body + " */"
    style, _ = classify_marker(raw, SpanKind.BLOCK_COMMENT, get_rules(dialect))
    assert (style is CommentStyle.DOC) == (stars == 2)


@given(slashes=st.integers(min_value=2, max_value=6), body=comment_body, dialect=dialect_name)
@settings(max_examples=100)
def test_line_doc_needs_exactly_three_slashes(slashes: int, body: str, dialect: str):
    """``///`` opens a doc comment, ``//`` and ``////...`` do not."""
    raw = "/" * slashes + " " + body
    style, _ = classify_marker(raw, SpanKind.LINE_COMMENT, get_rules(dialect))
    assert (style is CommentStyle.DOC) == (slashes == 3)


@given(body=comment_body, dialect=dialect_name)
@settings(max_examples=50)
def test_trailing_position_always_wins(body: str, dialect: str):
    style, marker = classify_marker(
        f"/** {body} */", SpanKind.BLOCK_COMMENT, get_rules(dialect), trailing=True
    )
    assert style is CommentStyle.IGNORED
    assert marker is None


@given(text=c_family_source(), dialect=dialect_name)
@settings(max_examples=100)
def test_records_are_ordered_and_disjoint(text: str, dialect: str):
    """Comment records come in source order and never overlap."""
    rules = get_rules(dialect)
    spans = Tokenizer(rules).tokenize(text).spans
    records = list(CommentClassifier(rules).classify(spans, text))

    for left, right in zip(records, records[1:]):
        assert left.end <= right.start
    for record in records:
        assert text[record.start:record.end].startswith(("//", "/*"))


@given(lines=st.lists(comment_body, min_size=1, max_size=8), dialect=dialect_name)
@settings(max_examples=100)
def test_adjacent_doc_lines_merge_into_one_record(lines: list[str], dialect: str):
    """A run of ``///`` lines is one record whose text keeps every line."""
    text = "\n".join(f"/// {line}" for line in lines) + "\nint x;"
    rules = get_rules(dialect)
    spans = Tokenizer(rules).tokenize(text).spans
    records = list(CommentClassifier(rules).classify(spans, text))

    assert len(records) == 1
    assert records[0].text.split("\n") == [f" {line}" for line in lines]
