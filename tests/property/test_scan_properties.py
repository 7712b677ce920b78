"""
Property-based tests for end-to-end scanning.

**Feature: doc comment scanning, association records**

Uses Hypothesis to check that every scan terminates, never raises on
malformed input and reports each doc comment exactly once.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from doclink import ScanConfig, scan_all
from doclink.core.classifier import CommentClassifier
from doclink.core.dialects import get_rules
from doclink.core.models import CommentPlacement, CommentStyle
from doclink.core.tokenizer import Tokenizer
from tests.support.source_strategies import c_family_source, dialect_name, hostile_text


def _doc_comment_starts(text: str, dialect: str) -> list[int]:
    rules = get_rules(dialect)
    spans = Tokenizer(rules).tokenize(text).spans
    return [r.start for r in CommentClassifier(rules).classify(spans, text) if r.is_doc]


@given(text=hostile_text, dialect=dialect_name)
@settings(max_examples=200)
def test_scan_never_raises_on_arbitrary_text(text: str, dialect: str):
    """Malformed input yields records and diagnostics, never an exception."""
    result = scan_all(text, dialect)
    for diagnostic in result.diagnostics:
        assert 0 <= diagnostic.offset <= len(text)


@given(text=c_family_source(), dialect=dialect_name)
@settings(max_examples=200)
def test_each_doc_comment_is_reported_once_in_order(text: str, dialect: str):
    """Records are exactly the doc comments, in source order."""
    result = scan_all(text, dialect)
    starts = [r.comment.start for r in result.records]
    assert starts == _doc_comment_starts(text, dialect)
    assert all(r.comment.style is CommentStyle.DOC for r in result.records)


@given(text=hostile_text, dialect=dialect_name)
@settings(max_examples=100)
def test_each_doc_comment_is_reported_once_on_arbitrary_text(text: str, dialect: str):
    result = scan_all(text, dialect)
    assert [r.comment.start for r in result.records] == _doc_comment_starts(text, dialect)


@given(text=c_family_source(), dialect=dialect_name)
@settings(max_examples=100)
def test_scanning_is_deterministic(text: str, dialect: str):
    """Scanning the same text twice gives equal results."""
    assert scan_all(text, dialect) == scan_all(text, dialect)


@given(text=c_family_source(), dialect=dialect_name)
@settings(max_examples=100)
def test_outer_targets_sit_at_comment_depth(text: str, dialect: str):
    """
    A bound outer doc comment documents a declaration in the scope that
    holds the comment, so both report the same depth.
    """
    for record in scan_all(text, dialect).records:
        assert record.depth >= 1
        if record.target is not None and record.comment.placement is CommentPlacement.OUTER:
            assert record.target.depth == record.depth


@given(
    text=c_family_source(),
    dialect=dialect_name,
    window=st.integers(min_value=1, max_value=8),
)
@settings(max_examples=100)
def test_window_size_never_drops_records(text: str, dialect: str, window: int):
    """The token window decides binding only, every doc comment is still reported."""
    result = scan_all(text, dialect, ScanConfig(window_max_tokens=window))
    assert [r.comment.start for r in result.records] == _doc_comment_starts(text, dialect)
