"""
Utilities Module - Small helpers shared across the pipeline.
============================================================

- Stable hashing of request descriptions and stored entries
- Whitespace normalization for decoded table cells
- JSON files for run reports
"""

import hashlib
import json
import re
from pathlib import Path
from typing import Any, Optional

from novaxfer.shared.logging import get_logger

logger = get_logger(__name__)

# CRLF, CR, LF, non-breaking space, space and tab all count as one gap
_WHITESPACE_RUN = re.compile("(?:\r\n|\r|\n|\u00a0| |\t)+")


# ─────────────────────────────────────────────────────────────────────────────
# Hashing
# ─────────────────────────────────────────────────────────────────────────────


def compute_hash(text: str, algorithm: str = "sha256") -> str:
    """Hex digest of ``text`` encoded as UTF-8."""
    return hashlib.new(algorithm, text.encode("utf-8")).hexdigest()


def canonical_json(data: Any) -> str:
    """
    Serialize ``data`` so that equal structures give equal strings.

    Keys are sorted and separators carry no padding, which makes the
    output usable as a dedup key via ``compute_hash``.
    """
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


# ─────────────────────────────────────────────────────────────────────────────
# Text
# ─────────────────────────────────────────────────────────────────────────────


def normalize_whitespace(text: Optional[str]) -> str:
    """
    Collapse every whitespace run in a cell to one space and trim.

    Example:
        >>> normalize_whitespace("  MTH\\u00a0263 \\r\\n 4 ")
        'MTH 263 4'
    """
    if not text:
        return ""
    return _WHITESPACE_RUN.sub(" ", text).strip()


# ─────────────────────────────────────────────────────────────────────────────
# Files
# ─────────────────────────────────────────────────────────────────────────────


def ensure_directory(path: Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_parent_directory(file_path: Path) -> Path:
    file_path = Path(file_path)
    ensure_directory(file_path.parent)
    return file_path


def save_json(file_path: Path, data: Any, indent: int = 2) -> None:
    """Write ``data`` as indented JSON, creating parent directories."""
    file_path = ensure_parent_directory(file_path)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=str)
    logger.debug(f"Wrote {file_path}")
