"""
Tests for BatchScanner and the scan worker.
"""

import doclink.services.batch_scan as batch_scan_module
import doclink.services.scan_worker as scan_worker_module
from doclink.core.config import BatchConfig, ScanConfig
from doclink.core.models import DeclarationKind
from doclink.services import BatchScanner, SourceDocument
from doclink.services.scan_worker import init_worker, scan_document_worker

DOCUMENTS = [
    SourceDocument("src/Greeter.java", "/** Greets */\nclass Greeter {}"),
    SourceDocument("lib.rs", "/// Adds\nfn add() {}\n/// dangling"),
    SourceDocument("snippet", "/** raw */\nint main() {}", dialect="c"),
]


def _sequential() -> BatchScanner:
    return BatchScanner(batch_config=BatchConfig(max_workers=1))


def test_worker_resolves_dialect_from_source_id():
    init_worker(ScanConfig())
    source_id, dialect, records, diagnostics, error = scan_document_worker(
        "Main.kt", "/** f */\nfun f() {}", None
    )
    assert source_id == "Main.kt"
    assert dialect == "kotlin"
    assert records[0].target.name == "f"
    assert diagnostics == []
    assert error is None


def test_worker_reports_unknown_dialect():
    init_worker()
    _, dialect, records, _, error = scan_document_worker("notes.txt", "text", None)
    assert dialect is None
    assert records == []
    assert "No dialect registered" in error


def test_worker_uses_initialized_config():
    init_worker(ScanConfig(window_max_tokens=1))
    _, _, records, _, _ = scan_document_worker("A.java", "/** d */\npublic void f() {}", None)
    assert records[0].is_orphan
    init_worker()


def test_explicit_config_overrides_initialized_config():
    init_worker(ScanConfig(window_max_tokens=1))
    _, _, records, _, _ = scan_document_worker(
        "A.java", "/** d */\npublic void f() {}", None, ScanConfig()
    )
    assert records[0].target.name == "f"
    init_worker()


def test_sequential_batch_keeps_input_order():
    result = _sequential().scan(DOCUMENTS)
    assert [d.source_id for d in result.documents] == [d.source_id for d in DOCUMENTS]
    assert [d.dialect for d in result.documents] == ["java", "rust", "c"]
    assert result.failed_documents == []
    assert result.total_records == 4
    assert result.duration_seconds >= 0


def test_failed_document_does_not_stop_batch():
    docs = [SourceDocument("README.md", "# title"), *DOCUMENTS]
    result = _sequential().scan(docs)
    assert result.failed_documents == ["README.md"]
    assert not result.documents[0].ok
    assert all(d.ok for d in result.documents[1:])


def test_diagnostics_are_collected():
    docs = [SourceDocument("a.c", "int f() {")]
    result = _sequential().scan(docs)
    assert result.total_diagnostics == 1


def test_progress_callback():
    calls = []
    scanner = BatchScanner(
        batch_config=BatchConfig(max_workers=1),
        progress_callback=lambda current, total, message: calls.append((current, total)),
    )
    scanner.scan(DOCUMENTS)
    assert calls == [(3, 3)]


def test_parallel_batch_matches_sequential():
    parallel = BatchScanner(batch_config=BatchConfig(max_workers=2, chunk_size=1)).scan(DOCUMENTS)
    sequential = _sequential().scan(DOCUMENTS)
    assert [d.records for d in parallel.documents] == [d.records for d in sequential.documents]
    assert parallel.documents[0].records[0].target.kind is DeclarationKind.CLASS


def test_pool_failure_falls_back_to_sequential(monkeypatch):
    class BrokenPool:
        def __init__(self, *args, **kwargs):
            raise OSError("no processes available")

    monkeypatch.setattr(batch_scan_module, "ProcessPoolExecutor", BrokenPool)
    result = BatchScanner(batch_config=BatchConfig(max_workers=4)).scan(DOCUMENTS)
    assert len(result.documents) == 3
    assert result.total_records == 4


def test_sequential_scanners_keep_their_own_config():
    docs = [SourceDocument("lib.rs", "//! Crate docs\nfn main() {}")]
    with_inner = BatchScanner(
        ScanConfig(include_inner_comments=True), BatchConfig(max_workers=1)
    )
    without_inner = BatchScanner(
        ScanConfig(include_inner_comments=False), BatchConfig(max_workers=1)
    )
    init_worker(ScanConfig(window_max_tokens=7))

    assert with_inner.scan(docs).total_records == 1
    assert without_inner.scan(docs).total_records == 0
    assert with_inner.scan(docs).total_records == 1
    assert scan_worker_module._worker_config.window_max_tokens == 7
    init_worker()
