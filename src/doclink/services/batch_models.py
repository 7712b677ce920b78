"""
Batch scanning data models.

Contains dataclasses for documents handed to the batch scanner and the
per-document and overall results it returns.
"""

from dataclasses import dataclass, field

from doclink.core.models import AssociationRecord, Diagnostic


@dataclass(frozen=True)
class SourceDocument:
    """
    A materialized source text to scan.

    Attributes:
        source_id: Caller-chosen identifier, usually a file path
        text: Complete source text
        dialect: Dialect value; when None it is resolved from source_id's
            file extension
    """

    source_id: str
    text: str
    dialect: str | None = None


@dataclass
class DocumentScanResult:
    """Result of scanning a single document."""

    source_id: str
    dialect: str | None
    records: list[AssociationRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchScanResult:
    """Result of a batch scan, in input order."""

    documents: list[DocumentScanResult] = field(default_factory=list)
    failed_documents: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total_records(self) -> int:
        return sum(len(d.records) for d in self.documents)

    @property
    def total_diagnostics(self) -> int:
        return sum(len(d.diagnostics) for d in self.documents)
