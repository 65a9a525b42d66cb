"""
Tests Package - Unit tests for NovaXfer.
========================================

Test modules:
- test_shared: Settings, schemas, error taxonomy
- test_parsing: Credit, course-string, type and row classifiers
- test_ingestion: Fetcher and decoders
- test_indexers: UVA and CNU indexers, registry
- test_aggregator: Metrics, concurrent fan-out, persistence
- test_store: SQLite equivalency store
- test_cli: Typer commands

Run tests with:
    pytest tests/
    pytest tests/ -v --cov=src/novaxfer
"""
