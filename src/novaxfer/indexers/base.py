"""
Indexer Base - The per-institution indexing contract.
=====================================================

Every institution gets one Indexer. ``find_all`` runs four ordered steps,
each replaceable per institution:

1. ``prepare_request()``   stable description of the source document
2. ``decode(data)``        raw bytes → HTML tree or row grid
3. ``classify_and_extract(body)`` → (equivalencies, unparsed row count)
4. context assembly        wraps the result with the institution

Fetch and decode failures abort the institution; row failures only
increment the unparsed count.
"""

from abc import ABC, abstractmethod
from typing import ClassVar, Generic, Optional, Sequence, TypeVar

from bs4 import BeautifulSoup, Tag

from novaxfer.ingestion.decoders import Grid, decode_html, decode_pdf
from novaxfer.ingestion.fetcher import Fetcher
from novaxfer.parsing.equiv_type import determine_equiv_type
from novaxfer.parsing.rows import EquivalencyDraft, RowType, classify_row, walk_rows
from novaxfer.shared.config import get_settings
from novaxfer.shared.errors import DecodeError
from novaxfer.shared.logging import get_logger
from novaxfer.shared.schemas import (
    Course,
    CourseEquivalency,
    EquivalencyContext,
    FetchRequest,
    Institution,
)
from novaxfer.shared.utils import normalize_whitespace

logger = get_logger(__name__)

T = TypeVar("T")


class Indexer(ABC, Generic[T]):
    """
    Finds every equivalency one institution publishes.

    Subclasses set ``institution`` and implement the abstract steps.
    ``generic_suffix`` is the course-number ending this institution uses for
    generic courses; unset means the configured default.
    """

    institution: ClassVar[Institution]
    generic_suffix: ClassVar[Optional[str]] = None

    @property
    def acronym(self) -> str:
        return self.institution.acronym

    def find_all(self, fetcher: Fetcher) -> EquivalencyContext:
        """
        Fetch, decode and interpret this institution's source document.

        Raises:
            FetchError: If the document can't be retrieved
            DecodeError: If the document can't be structurally parsed
        """
        data = fetcher.fetch(self.prepare_request(), self.institution)
        body = self.decode(data)
        equivalencies, unparsed = self.classify_and_extract(body)

        context = EquivalencyContext(
            institution=self.institution,
            equivalencies=equivalencies,
            unparsed_count=unparsed,
        )

        logger.info(
            f"{self.acronym}: {len(equivalencies)} equivalencies, "
            f"{unparsed} unparsed rows ({context.parse_success_rate:.1%} parsed)"
        )
        return context

    @abstractmethod
    def prepare_request(self) -> FetchRequest:
        """
        Describe the request for this institution's source document.

        Must return an equal value on every call.
        """

    @abstractmethod
    def decode(self, data: bytes) -> T:
        """Parse the raw response body into something classify_and_extract() can walk."""

    @abstractmethod
    def classify_and_extract(self, body: T) -> tuple[list[CourseEquivalency], int]:
        """Interpret the decoded document, returning equivalencies and the unparsed row count."""

    def _generic_suffix(self) -> str:
        if self.generic_suffix is not None:
            return self.generic_suffix
        return get_settings().indexing.default_generic_suffix

    def make_equivalency(
        self,
        input: list[Course],
        output: list[Course],
        special: bool = False,
    ) -> CourseEquivalency:
        """Build an equivalency owned by this institution, classifying its type."""
        return CourseEquivalency(
            input=input,
            output=output,
            type=determine_equiv_type(output, self._generic_suffix(), special=special),
            institution=self.institution,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.acronym})"


class HtmlIndexer(Indexer[BeautifulSoup]):
    """An Indexer whose source is UTF-8 HTML."""

    def decode(self, data: bytes) -> BeautifulSoup:
        return decode_html(data, self.acronym)


class PdfIndexer(Indexer[Grid]):
    """An Indexer whose source is a PDF read as a grid of text rows."""

    def decode(self, data: bytes) -> Grid:
        return decode_pdf(data, self.acronym)


# ─────────────────────────────────────────────────────────────────────────────
# Grid Strategy
# ─────────────────────────────────────────────────────────────────────────────


def cell(row: Sequence[str], index: int) -> str:
    """Text of ``row[index]``, or an empty string past the end of the row."""
    if 0 <= index < len(row):
        return row[index] or ""
    return ""


def html_table_grid(
    soup: BeautifulSoup,
    table_index: int,
    header_rows: int = 0,
    institution: Optional[str] = None,
) -> Grid:
    """
    Locate one table on a page by position and flatten it into a grid.

    Only the row's own ``td`` cells are kept, in document order.

    Raises:
        DecodeError: If the page has no table at ``table_index``
    """
    tables = soup.find_all("table")
    if table_index >= len(tables):
        raise DecodeError(
            institution,
            f"expected a table at index {table_index}, page has {len(tables)}",
        )

    table: Tag = tables[table_index]
    grid: Grid = []
    for tr in table.find_all("tr")[header_rows:]:
        grid.append(
            [normalize_whitespace(td.get_text(" ")) for td in tr.find_all("td", recursive=False)]
        )
    return grid


class GridIndexer(ABC, Generic[T]):
    """
    Row-walking strategy for sources laid out as a table of equivalencies.

    Mix in before HtmlIndexer or PdfIndexer. Subclasses say how to get the
    grid out of the decoded body, where the source and target cells are,
    and how to turn them into courses; the shared walker handles row
    classification, supplemental rows and unparsed counting.
    """

    institution: ClassVar[Institution]

    # ── hooks ────────────────────────────────────────────────────────────────

    @abstractmethod
    def grid(self, body: T) -> Grid:
        """Physical rows of the equivalency table."""

    @abstractmethod
    def source_text(self, row: Sequence[str]) -> str:
        """Community-college cell text, empty when absent."""

    @abstractmethod
    def target_text(self, row: Sequence[str]) -> str:
        """Institution cell text, empty when absent."""

    @abstractmethod
    def parse_source(self, row: Sequence[str]) -> list[Course]:
        """Community-college courses named by the row."""

    @abstractmethod
    def parse_target(self, row: Sequence[str]) -> list[Course]:
        """Institution courses named by the row."""

    def is_valid_source(self, text: str) -> bool:
        return True

    def is_valid_target(self, text: str) -> bool:
        return True

    def is_special(self, row: Sequence[str]) -> bool:
        """Whether the source flags this row for manual review."""
        return False

    # ── RowStrategy ──────────────────────────────────────────────────────────

    def classify(self, row: Sequence[str]) -> RowType:
        return classify_row(
            self.source_text(row),
            self.target_text(row),
            source_valid=self.is_valid_source,
            target_valid=self.is_valid_target,
        )

    def build_draft(self, row: Sequence[str]) -> EquivalencyDraft:
        return EquivalencyDraft(
            input=self.parse_source(row),
            output=self.parse_target(row),
            special=self.is_special(row),
        )

    def parse_supplement(self, row: Sequence[str], row_type: RowType) -> list[Course]:
        if row_type is RowType.INPUT_SUPPLEMENT:
            return self.parse_source(row)
        return self.parse_target(row)

    def finish_draft(self, draft: EquivalencyDraft) -> CourseEquivalency:
        return self.make_equivalency(draft.input, draft.output, special=draft.special)  # type: ignore[attr-defined]

    def classify_and_extract(self, body: T) -> tuple[list[CourseEquivalency], int]:
        result = walk_rows(self.grid(body), self)
        return result.equivalencies, result.unparsed
