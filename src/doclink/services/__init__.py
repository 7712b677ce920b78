"""
Service Layer - BatchScanner and its result models.
"""

from doclink.services.batch_models import (
    BatchScanResult,
    DocumentScanResult,
    SourceDocument,
)
from doclink.services.batch_scan import BatchScanner

__all__ = [
    "BatchScanner",
    "BatchScanResult",
    "DocumentScanResult",
    "SourceDocument",
]
