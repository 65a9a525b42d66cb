"""
NovaXfer - Transfer Equivalency Indexer
=======================================

Turns the transfer equivalency tables that four-year institutions publish
for community-college students (HTML pages, PDF guides) into one
canonical, queryable schema:

    institution source → fetch → decode → classify rows → equivalencies

Every institution is indexed independently and concurrently, and each run
reports how many rows it could not interpret.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main modules (imported on demand)
    "shared",
    "parsing",
    "ingestion",
    "indexers",
    "storage",
    "cli",
]
