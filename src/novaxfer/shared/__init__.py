"""
Shared Module - Common utilities, configuration, schemas, and logging.
======================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and management
- logging: Structured logging setup
- schemas: Pydantic data models
- errors: Pipeline exception taxonomy
- utils: Utility functions (hashing, whitespace, file I/O)
"""

from novaxfer.shared.config import get_settings, Settings
from novaxfer.shared.errors import (
    NovaXferError,
    FetchError,
    DecodeError,
    ParseError,
    RowClassificationError,
    StoreError,
)
from novaxfer.shared.logging import get_logger, setup_logging
from novaxfer.shared.schemas import (
    Course,
    CourseEquivalency,
    CreditRange,
    CreditStatus,
    EquivalencyContext,
    EquivType,
    IndexReport,
    Institution,
    NO_EQUIVALENT,
)
from novaxfer.shared.utils import compute_hash, normalize_whitespace, save_json

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Errors
    "NovaXferError",
    "FetchError",
    "DecodeError",
    "ParseError",
    "RowClassificationError",
    "StoreError",
    # Logging
    "get_logger",
    "setup_logging",
    # Schemas
    "Course",
    "CourseEquivalency",
    "CreditRange",
    "CreditStatus",
    "EquivalencyContext",
    "EquivType",
    "IndexReport",
    "Institution",
    "NO_EQUIVALENT",
    # Utils
    "compute_hash",
    "normalize_whitespace",
    "save_json",
]
