"""
Scan worker functions for parallel processing.

Contains worker initialization and document scanning functions that run in
separate processes via ProcessPoolExecutor.
"""

import logging
from typing import Optional

from doclink.core.config import ScanConfig
from doclink.core.dialects import dialect_for_path
from doclink.core.errors import DoclinkError
from doclink.core.models import AssociationRecord, Diagnostic
from doclink.core.scanner import scan

logger = logging.getLogger(__name__)

# Global scan configuration for worker processes
_worker_config: Optional[ScanConfig] = None


def init_worker(config: Optional[ScanConfig] = None) -> None:
    """
    Initialize a worker process with the scan configuration.

    Runs once per worker process so the configuration is shipped once
    instead of with every document.

    Args:
        config: Optional scan configuration. If None, uses defaults.
    """
    global _worker_config
    _worker_config = config or ScanConfig()


def scan_document_worker(
    source_id: str,
    text: str,
    dialect: Optional[str],
    config: Optional[ScanConfig] = None,
) -> tuple[str, Optional[str], list[AssociationRecord], list[Diagnostic], Optional[str]]:
    """
    Worker function for parallel document scanning.

    Args:
        source_id: Document identifier
        text: Source text
        dialect: Dialect value, or None to resolve it from source_id
        config: Scan options for this call; pool workers leave it unset and
            use the configuration installed by init_worker

    Returns:
        Tuple of (source_id, dialect, records, diagnostics, error). Records
        and diagnostics are frozen dataclasses and pickle as-is.
    """
    config = config or _worker_config or ScanConfig()

    try:
        resolved = dialect or dialect_for_path(source_id).value
        index = scan(text, resolved, config)
        records = list(index)
        return (source_id, resolved, records, list(index.diagnostics), None)
    except DoclinkError as e:
        logger.error(f"Error scanning {source_id}: {e}")
        return (source_id, dialect, [], [], str(e))
