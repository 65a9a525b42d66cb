"""
Storage Module - Persistence for indexed equivalencies.
=======================================================

- store: SQLite-backed per-course equivalency sets and their queries
"""

from novaxfer.storage.store import EquivalencyStore

__all__ = ["EquivalencyStore"]
