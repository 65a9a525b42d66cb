"""
Errors Module - Exception taxonomy for the indexing pipeline.
=============================================================

Institution-level errors (FetchError, DecodeError) abort one institution's
indexing and are isolated by the aggregator. Row-level errors (ParseError,
RowClassificationError) never leave their indexer; they are counted as
unparsed rows. StoreError surfaces to whoever runs the full pipeline.
"""

from typing import Optional


class NovaXferError(Exception):
    """Base class for all pipeline errors."""


class InstitutionError(NovaXferError):
    """An error that is fatal to a single institution's indexing."""

    def __init__(self, institution: Optional[str], message: str):
        self.institution = institution
        self.message = message
        prefix = f"[{institution}] " if institution else ""
        super().__init__(f"{prefix}{message}")


class FetchError(InstitutionError):
    """Network failure, timeout, or non-2xx status while fetching a source."""

    def __init__(
        self,
        institution: Optional[str],
        message: str,
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(institution, message)


class DecodeError(InstitutionError):
    """The fetched payload could not be structurally parsed."""


class ParseError(NovaXferError, ValueError):
    """A single cell (course or credit expression) is malformed."""


class RowClassificationError(ParseError):
    """A physical row has a shape the source's classifier does not recognize."""

    def __init__(self, message: str = "unrecognized row shape", row_index: Optional[int] = None):
        self.row_index = row_index
        prefix = f"row {row_index}: " if row_index is not None else ""
        super().__init__(f"{prefix}{message}")


class StoreError(NovaXferError):
    """A store operation failed."""
