"""
Indexers Module - Per-institution equivalency extraction.
=========================================================

- base: Indexer contract plus the HTML/PDF and grid-walking building blocks
- cnu: Christopher Newport University (PDF transfer guide)
- uva: University of Virginia (HTML equivalency table)
- registry: The configured set of indexers
- aggregator: Concurrent fan-out, reporting and persistence
"""

from novaxfer.indexers.aggregator import index_all, index_institutions
from novaxfer.indexers.base import GridIndexer, HtmlIndexer, Indexer, PdfIndexer
from novaxfer.indexers.registry import (
    find_indexers,
    get_indexer,
    list_institutions,
    register_indexer,
)

__all__ = [
    # Base
    "Indexer",
    "HtmlIndexer",
    "PdfIndexer",
    "GridIndexer",
    # Registry
    "register_indexer",
    "find_indexers",
    "get_indexer",
    "list_institutions",
    # Aggregator
    "index_all",
    "index_institutions",
]
