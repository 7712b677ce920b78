"""
Batch Scanner for doclink.

Scans many documents, one independent scan per document. Parallelism is
across documents only: each scan is single-threaded and shares no state, so
documents are dispatched to a ProcessPoolExecutor, with sequential processing
as the fallback when a pool cannot be used.
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from typing import Callable, Iterable, List, Optional

from doclink.core.config import BatchConfig, ScanConfig
from doclink.services.batch_models import (
    BatchScanResult,
    DocumentScanResult,
    SourceDocument,
)
from doclink.services.scan_worker import init_worker, scan_document_worker

logger = logging.getLogger(__name__)


class BatchScanner:
    """
    Service for scanning many source documents.

    Results come back in input order. A document that cannot be scanned
    (unknown dialect) is recorded as failed and does not stop the batch.
    """

    def __init__(
        self,
        scan_config: Optional[ScanConfig] = None,
        batch_config: Optional[BatchConfig] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ):
        """
        Initialize the batch scanner.

        Args:
            scan_config: Options applied to every scan (default: ScanConfig())
            batch_config: Worker settings (default: BatchConfig())
            progress_callback: Optional callback(current, total, message)
        """
        self._scan_config = scan_config or ScanConfig()
        self._batch_config = batch_config or BatchConfig()
        self._progress_callback = progress_callback

        self._scan_config.validate()
        self._batch_config.validate()

    def _report_progress(self, current: int, total: int, message: str) -> None:
        if self._progress_callback:
            self._progress_callback(current, total, message)
        logger.info(f"Progress: {current}/{total} - {message}")

    def scan(self, documents: Iterable[SourceDocument]) -> BatchScanResult:
        """
        Scan every document.

        Uses a process pool when more than one worker is configured and more
        than one document is given, otherwise scans in this process.

        Args:
            documents: Documents to scan

        Returns:
            BatchScanResult with one DocumentScanResult per document
        """
        docs = list(documents)
        start_time = time.time()

        if self._batch_config.max_workers > 1 and len(docs) > 1:
            result = self._scan_parallel(docs)
        else:
            result = self._scan_sequential(docs)

        result.duration_seconds = time.time() - start_time
        logger.info(
            f"Scanned {len(docs)} documents in {result.duration_seconds:.2f}s: "
            f"{result.total_records} records, {len(result.failed_documents)} failed"
        )
        return result

    def _scan_parallel(self, docs: List[SourceDocument]) -> BatchScanResult:
        """
        Scan documents in parallel using ProcessPoolExecutor.

        Workers are initialized once with the scan configuration. Any failure
        of the pool itself falls back to sequential scanning.
        """
        result = BatchScanResult()
        total = len(docs)

        try:
            with ProcessPoolExecutor(
                max_workers=self._batch_config.max_workers,
                initializer=init_worker,
                initargs=(self._scan_config,),
            ) as executor:
                outputs = executor.map(
                    scan_document_worker,
                    [d.source_id for d in docs],
                    [d.text for d in docs],
                    [d.dialect for d in docs],
                    chunksize=self._batch_config.chunk_size,
                )
                for processed, output in enumerate(outputs, start=1):
                    self._collect(result, output)
                    if processed % 10 == 0 or processed == total:
                        self._report_progress(processed, total, f"Scanned {processed} documents")
        except Exception as exc:
            logger.warning(
                "ProcessPoolExecutor failed (%s). Falling back to sequential processing.",
                exc,
            )
            return self._scan_sequential(docs)

        return result

    def _scan_sequential(self, docs: List[SourceDocument]) -> BatchScanResult:
        """Scan documents one by one in this process."""
        result = BatchScanResult()
        total = len(docs)

        for i, doc in enumerate(docs):
            output = scan_document_worker(
                doc.source_id, doc.text, doc.dialect, self._scan_config
            )
            self._collect(result, output)
            if (i + 1) % 10 == 0 or i == total - 1:
                self._report_progress(i + 1, total, f"Scanned {i + 1} documents")

        return result

    @staticmethod
    def _collect(result: BatchScanResult, output: tuple) -> None:
        source_id, dialect, records, diagnostics, error = output
        result.documents.append(
            DocumentScanResult(
                source_id=source_id,
                dialect=dialect,
                records=records,
                diagnostics=diagnostics,
                error=error,
            )
        )
        if error:
            result.failed_documents.append(source_id)
