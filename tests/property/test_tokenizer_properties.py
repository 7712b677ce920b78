"""
Property-based tests for the tokenizer.

**Feature: doc comment scanning, lexical layer**
"""

from hypothesis import given, settings

from doclink.core.dialects import get_rules
from doclink.core.models import SpanKind
from doclink.core.tokenizer import TokenKind, Tokenizer, iter_code_tokens
from tests.support.source_strategies import c_family_source, dialect_name, hostile_text


@given(text=hostile_text, dialect=dialect_name)
@settings(max_examples=200)
def test_spans_cover_input_without_gaps(text: str, dialect: str):
    """
    For any input, spans are non-empty, ordered and contiguous, and their
    texts concatenate back to the input.
    """
    spans = Tokenizer(get_rules(dialect)).tokenize(text).spans

    assert "".join(span.text for span in spans) == text
    position = 0
    for span in spans:
        assert span.start == position
        assert span.end > span.start
        assert text[span.start:span.end] == span.text
        position = span.end
    assert position == len(text)


@given(text=hostile_text, dialect=dialect_name)
@settings(max_examples=200)
def test_code_spans_never_touch(text: str, dialect: str):
    """Adjacent code runs are always merged into a single span."""
    spans = Tokenizer(get_rules(dialect)).tokenize(text).spans
    for left, right in zip(spans, spans[1:]):
        assert not (left.kind is SpanKind.CODE and right.kind is SpanKind.CODE)


@given(text=hostile_text, dialect=dialect_name)
@settings(max_examples=100)
def test_only_the_last_span_can_be_unterminated(text: str, dialect: str):
    """An unterminated comment or literal always runs to the end of input."""
    result = Tokenizer(get_rules(dialect)).tokenize(text)
    assert len(result.diagnostics) <= 1
    if result.diagnostics:
        assert result.diagnostics[0].offset == result.spans[-1].start


@given(text=c_family_source(), dialect=dialect_name)
@settings(max_examples=100)
def test_code_tokens_are_ordered_and_inside_code(text: str, dialect: str):
    """Code tokens come in offset order and never overlap a comment span."""
    rules = get_rules(dialect)
    spans = Tokenizer(rules).tokenize(text).spans
    comments = [(s.start, s.end) for s in spans if s.kind.is_comment]

    previous_end = 0
    for token in iter_code_tokens(spans, text, rules):
        assert token.start >= previous_end
        assert text[token.start:token.end] == token.text
        assert not any(start < token.end and token.start < end for start, end in comments) or (
            token.kind is TokenKind.DIRECTIVE
        )
        previous_end = token.end
