"""
Scan facade.

Wires tokenizer, classifier, scope tracker and declaration matcher into one
pass over a source text. Each call builds its own components; nothing is
shared between scans.
"""

import logging
from typing import Iterator

from doclink.core.classifier import CommentClassifier
from doclink.core.config import ScanConfig
from doclink.core.dialects import Dialect, DialectRules, get_rules
from doclink.core.index import AssociationIndex, ScanResult
from doclink.core.matcher import DeclarationMatcher, merge_events
from doclink.core.models import AssociationRecord, Diagnostic, SourceSpan
from doclink.core.scopes import ScopeTracker
from doclink.core.tokenizer import LineIndex, Tokenizer, iter_code_tokens

logger = logging.getLogger(__name__)


def resolve_rules(dialect: Dialect | str, config: ScanConfig | None = None) -> DialectRules:
    """
    Look up the rules for a dialect and apply scan options to them.

    Marker overrides replace the dialect preset per placement before
    inner comments are switched on or off.

    Raises:
        UnknownDialectError: If the dialect is not supported
        ConfigError: If a marker override opens no comment in the dialect
    """
    config = config or ScanConfig()
    rules = get_rules(dialect).with_markers(config.outer_markers, config.inner_markers)
    return rules.with_inner_comments(config.include_inner_comments)


def scan(
    text: str,
    dialect: Dialect | str,
    config: ScanConfig | None = None,
) -> AssociationIndex:
    """
    Scan one source text for doc comments and their declarations.

    Tokenizing happens eagerly; classification, scope tracking and matching
    run lazily as the returned index is iterated.

    Args:
        text: Complete source text
        dialect: Dialect member or its string value
        config: Scan options, defaults when None

    Returns:
        One-shot AssociationIndex over the records in source order

    Raises:
        UnknownDialectError: If the dialect is not supported
        ConfigError: If the scan options are invalid
    """
    config = config or ScanConfig()
    config.validate()
    rules = resolve_rules(dialect, config)

    tokenized = Tokenizer(rules).tokenize(text)
    diagnostics: list[Diagnostic] = list(tokenized.diagnostics)
    records = _associate(text, rules, config, tokenized.spans, diagnostics)
    return AssociationIndex(records, diagnostics)


def scan_all(
    text: str,
    dialect: Dialect | str,
    config: ScanConfig | None = None,
) -> ScanResult:
    """Scan and materialize every record and diagnostic."""
    return scan(text, dialect, config).collect()


def _associate(
    text: str,
    rules: DialectRules,
    config: ScanConfig,
    spans: list[SourceSpan],
    diagnostics: list[Diagnostic],
) -> Iterator[AssociationRecord]:
    lines = LineIndex(text)
    tracker = ScopeTracker(rules, text, lines)
    matcher = DeclarationMatcher(
        rules,
        tracker,
        max_window_tokens=config.window_max_tokens,
        text=text,
        ignore_line_patterns=config.ignore_line_patterns,
        lines=lines,
    )
    comments = CommentClassifier(rules).classify(spans, text)
    tokens = iter_code_tokens(spans, text, rules)

    bound = orphaned = 0
    for record in matcher.run(merge_events(comments, tokens)):
        if record.target is None:
            orphaned += 1
        else:
            bound += 1
        yield record

    diagnostics.extend(tracker.diagnostics)
    logger.debug(
        f"Scanned {len(text)} chars of {rules.dialect.value}: "
        f"{bound} bound, {orphaned} orphaned, {len(diagnostics)} diagnostics"
    )
