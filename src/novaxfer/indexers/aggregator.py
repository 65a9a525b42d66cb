"""
Aggregator - Run every indexer and combine the results.
=======================================================

Indexers run concurrently on a thread pool since the work is dominated by
network I/O. Each institution is isolated: an exception from one indexer
becomes an IndexFailure in the report and never cancels the others.

Pipeline flow:
    find_indexers() → index_all() → IndexReport → index_institutions() → store
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

from novaxfer.indexers.base import Indexer
from novaxfer.indexers.registry import find_indexers
from novaxfer.ingestion.fetcher import Fetcher
from novaxfer.shared.config import get_settings
from novaxfer.shared.logging import get_logger
from novaxfer.shared.schemas import EquivalencyContext, IndexFailure, IndexReport
from novaxfer.storage.store import EquivalencyStore

logger = get_logger(__name__)


def index_all(
    indexers: Optional[Sequence[Indexer]] = None,
    fetcher: Optional[Fetcher] = None,
    max_workers: Optional[int] = None,
) -> IndexReport:
    """
    Run indexers concurrently and build an aggregate report.

    Args:
        indexers: Indexers to run (default: every registered indexer)
        fetcher: Shared fetcher (default: a new one, closed afterwards)
        max_workers: Thread pool width (default: from settings)

    Returns:
        IndexReport with one context per successful institution and one
        failure per institution whose indexer raised. Contexts and failures
        are ordered by acronym.
    """
    if indexers is None:
        indexers = find_indexers()
    if max_workers is None:
        max_workers = get_settings().get_effective_max_workers()

    owns_fetcher = fetcher is None
    if fetcher is None:
        fetcher = Fetcher()

    contexts: list[EquivalencyContext] = []
    failures: list[IndexFailure] = []

    logger.info(f"Indexing {len(indexers)} institutions with {max_workers} workers")

    try:
        if indexers:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                future_to_indexer = {
                    executor.submit(indexer.find_all, fetcher): indexer for indexer in indexers
                }

                for future in as_completed(future_to_indexer):
                    indexer = future_to_indexer[future]
                    try:
                        contexts.append(future.result())
                    except Exception as e:
                        logger.error(f"Indexing failed for {indexer.acronym}: {e}")
                        failures.append(
                            IndexFailure(
                                institution=indexer.institution,
                                error_type=type(e).__name__,
                                message=str(e),
                            )
                        )
    finally:
        if owns_fetcher:
            fetcher.close()

    contexts.sort(key=lambda c: c.institution.acronym)
    failures.sort(key=lambda f: f.institution.acronym)

    report = IndexReport(contexts=contexts, failures=failures)
    logger.info(
        f"Indexed {report.courses_indexed} equivalencies from "
        f"{report.institutions_indexed} institutions "
        f"({report.unparsed_rows} unparsed rows, "
        f"{report.weighted_success_rate:.1%} parsed, {len(failures)} failed)"
    )
    return report


def index_institutions(
    store: EquivalencyStore,
    indexers: Optional[Sequence[Indexer]] = None,
    fetcher: Optional[Fetcher] = None,
    max_workers: Optional[int] = None,
    reset: bool = True,
) -> IndexReport:
    """
    Index every institution and persist the results.

    Institutions are recorded first so that even a failed institution is
    listed. With ``reset`` the previously stored courses are dropped
    before the new equivalencies are written.

    Raises:
        StoreError: If the store rejects a write
    """
    if indexers is None:
        indexers = find_indexers()

    store.upsert_institutions([indexer.institution for indexer in indexers])
    if reset:
        store.reset()

    report = index_all(indexers, fetcher=fetcher, max_workers=max_workers)

    written = 0
    for context in report.contexts:
        for equivalency in context.equivalencies:
            if store.upsert_equivalency(equivalency.key_course, equivalency):
                written += 1

    logger.info(f"Stored {written} new equivalencies in {store.path}")
    return report
