"""
Association index and declaration lookup.

The index is the scan's output stream: association records in source order
plus the diagnostics collected while producing them. ``find_declarations``
walks the bound records like a tree of nested declarations.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Sequence

from doclink.core.models import (
    AssociationRecord,
    DeclarationSite,
    Diagnostic,
    ScopeKind,
    ScopeRef,
)


class AssociationIndex:
    """
    One-shot iterator over the association records of a scan.

    Records are produced lazily in source order of their comments. The
    ``diagnostics`` list is complete once the iterator is exhausted.

    Example:
        >>> index = scan(source, "java")
        >>> for record in index:
        ...     print(record.comment.text, record.target)
        >>> index.diagnostics
    """

    def __init__(self, records: Iterable[AssociationRecord], diagnostics: list[Diagnostic]):
        self._records = iter(records)
        self.diagnostics = diagnostics
        self._exhausted = False

    def __iter__(self) -> "AssociationIndex":
        return self

    def __next__(self) -> AssociationRecord:
        try:
            return next(self._records)
        except StopIteration:
            self._exhausted = True
            raise

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def collect(self) -> "ScanResult":
        """Drain the iterator into a ScanResult."""
        records = list(self)
        return ScanResult(records=records, diagnostics=list(self.diagnostics))


@dataclass
class ScanResult:
    """Materialized output of a scan."""

    records: list[AssociationRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def bound(self) -> list[AssociationRecord]:
        return [r for r in self.records if r.target is not None]

    @property
    def orphans(self) -> list[AssociationRecord]:
        return [r for r in self.records if r.target is None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "diagnostics": [
                {
                    "kind": d.kind.value,
                    "message": d.message,
                    "offset": d.offset,
                    "line": d.line,
                }
                for d in self.diagnostics
            ],
        }


class LookupStatus(str, Enum):
    """Outcome of a declaration lookup."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    MULTIPLE = "multiple"


@dataclass(frozen=True)
class LookupResult:
    """
    Result of ``find_declarations``.

    Attributes:
        status: FOUND, NOT_FOUND or MULTIPLE
        matches: The found declaration, or every candidate at the level that
            was ambiguous
        records: Association records documenting the found declaration
        term: The search term that matched nothing or more than one
            declaration, None when found
    """

    status: LookupStatus
    matches: tuple[DeclarationSite, ...] = ()
    records: tuple[AssociationRecord, ...] = ()
    term: str | None = None

    @property
    def declaration(self) -> DeclarationSite | None:
        if self.status is LookupStatus.FOUND:
            return self.matches[0]
        return None


def _ancestry(path: Sequence[ScopeRef]) -> tuple[ScopeRef, ...]:
    """Declaration frames of a scope path, without the file frame and blocks."""
    return tuple(
        ref for ref in path if ref.kind not in (ScopeKind.FILE, ScopeKind.BLOCK)
    )


def _key(site: DeclarationSite) -> tuple[ScopeRef, ...]:
    return _ancestry(site.scope_path) + (ScopeRef(site.kind.scope_kind, site.name),)


def _is_child(
    site: DeclarationSite,
    parent: tuple[ScopeRef, ...],
    documented: set[tuple[ScopeRef, ...]],
) -> bool:
    """
    True when site is nested in parent with no documented declaration in
    between. Undocumented intermediate frames are transparent.
    """
    ancestry = _ancestry(site.scope_path)
    if ancestry[: len(parent)] != parent:
        return False
    return not any(
        ancestry[:k] in documented for k in range(len(parent) + 1, len(ancestry) + 1)
    )


def find_declarations(
    records: Iterable[AssociationRecord], search_path: Sequence[str]
) -> LookupResult:
    """
    Find a documented declaration by a path of name fragments.

    Each term selects, among the documented declarations nested directly in
    the previous match (or at the top level for the first term), those whose
    name contains the term. Matching is case sensitive.

    Args:
        records: Association records of one scan
        search_path: One name fragment per nesting level, outermost first

    Returns:
        LookupResult; on NOT_FOUND or MULTIPLE, ``term`` names the first
        fragment that did not select exactly one declaration

    Raises:
        ValueError: If search_path is empty
    """
    if not search_path:
        raise ValueError("search_path must contain at least one term")

    by_site: dict[DeclarationSite, list[AssociationRecord]] = {}
    for record in records:
        if record.target is not None:
            by_site.setdefault(record.target, []).append(record)

    documented = {_key(site) for site in by_site}

    parent: tuple[ScopeRef, ...] = ()
    found: DeclarationSite | None = None
    for term in search_path:
        candidates = [
            site
            for site in by_site
            if term in site.name and _is_child(site, parent, documented)
        ]
        if not candidates:
            return LookupResult(LookupStatus.NOT_FOUND, term=term)
        if len(candidates) > 1:
            return LookupResult(LookupStatus.MULTIPLE, tuple(candidates), term=term)
        found = candidates[0]
        parent = _key(found)

    return LookupResult(LookupStatus.FOUND, (found,), tuple(by_site[found]))

