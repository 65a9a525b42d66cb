"""
Indexer Registry - The configured set of institutions.
======================================================

Concrete indexers register themselves with ``@register_indexer``. The
built-in ones are imported lazily the first time the registry is read, so
``import novaxfer.indexers.uva`` and the registry never import each other
at module load.

Usage:
    from novaxfer.indexers.registry import find_indexers

    for indexer in find_indexers():
        print(indexer.acronym)
"""

import importlib
from typing import Optional, TypeVar

from novaxfer.indexers.base import Indexer
from novaxfer.shared.logging import get_logger
from novaxfer.shared.schemas import Institution

logger = get_logger(__name__)

BUILTIN_MODULES = (
    "novaxfer.indexers.cnu",
    "novaxfer.indexers.uva",
)

IndexerClass = TypeVar("IndexerClass", bound=type)

_INDEXERS: list[type[Indexer]] = []
_builtins_loaded = False


def register_indexer(cls: IndexerClass) -> IndexerClass:
    """Class decorator adding an Indexer subclass to the registry."""
    if cls not in _INDEXERS:
        _INDEXERS.append(cls)
        logger.debug(f"Registered indexer: {cls.__name__}")
    return cls


def _load_builtin_indexers() -> None:
    global _builtins_loaded
    if _builtins_loaded:
        return
    for module in BUILTIN_MODULES:
        importlib.import_module(module)
    _builtins_loaded = True


def find_indexers() -> list[Indexer]:
    """Fresh instances of every registered indexer, ordered by acronym."""
    _load_builtin_indexers()
    return [cls() for cls in sorted(_INDEXERS, key=lambda c: c.institution.acronym)]


def get_indexer(acronym: str) -> Optional[Indexer]:
    """The indexer for one institution (case-insensitive), or None."""
    acronym = acronym.strip().upper()
    for indexer in find_indexers():
        if indexer.acronym == acronym:
            return indexer
    return None


def list_institutions() -> list[Institution]:
    """Every institution with a registered indexer."""
    return [indexer.institution for indexer in find_indexers()]
