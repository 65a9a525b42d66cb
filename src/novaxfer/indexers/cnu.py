"""
CNU Indexer - Christopher Newport University.
=============================================

CNU publishes a PDF transfer guide. Each course row starts with the
community-college subject, number and credits in their own cells; the CNU
side is a free-text cell somewhere from the fifth column on, often naming
several courses at once ("CHEM 104 & 104L", "ENG 111/112"). When the CNU
identifier is too long for one cell it spills into the next one.
"""

import re
from typing import Optional, Sequence

from novaxfer.indexers.base import GridIndexer, PdfIndexer, cell
from novaxfer.indexers.registry import register_indexer
from novaxfer.ingestion.decoders import Grid
from novaxfer.parsing.courses import is_course_string, make_course, tokenize_courses
from novaxfer.parsing.credits import credits_from_expression
from novaxfer.parsing.rows import RowType
from novaxfer.shared.errors import RowClassificationError
from novaxfer.shared.schemas import Course, FetchRequest, Institution

DATA_URL = "http://cnu.edu/transfer/pdf/vccs_transferguide.pdf"

SUBJECT = re.compile(r"^[A-Z]{3}$")
SUBJECT_COLUMN = 0
NUMBER_COLUMN = 1
CREDITS_COLUMN = 2
FIRST_TARGET_COLUMN = 4


@register_indexer
class CnuIndexer(GridIndexer[Grid], PdfIndexer):
    institution = Institution(acronym="CNU", full_name="Christopher Newport University")

    def prepare_request(self) -> FetchRequest:
        return FetchRequest(url=DATA_URL)

    def grid(self, body: Grid) -> Grid:
        return body

    def source_text(self, row: Sequence[str]) -> str:
        subject = cell(row, SUBJECT_COLUMN).strip()
        if not SUBJECT.match(subject):
            return ""
        return " ".join(
            part for part in (subject, cell(row, NUMBER_COLUMN), cell(row, CREDITS_COLUMN)) if part
        )

    def target_text(self, row: Sequence[str]) -> str:
        return self._find_target(row) or ""

    def _find_target(self, row: Sequence[str]) -> Optional[str]:
        """Scan for the first cell (or pair of adjacent cells) holding a CNU course string."""
        for i in range(FIRST_TARGET_COLUMN, len(row)):
            base = cell(row, i).strip()
            if base and is_course_string(base):
                return base

            if i + 1 < len(row):
                appended = f"{base} {cell(row, i + 1).strip()}".strip()
                if appended and is_course_string(appended):
                    return appended

        return None

    def classify(self, row: Sequence[str]) -> RowType:
        row_type = super().classify(row)
        # Supplement rows don't occur in this layout
        if row_type is RowType.INPUT_SUPPLEMENT:
            raise RowClassificationError(
                f"{self.source_text(row)!r} has no readable CNU course"
            )
        return row_type

    def parse_source(self, row: Sequence[str]) -> list[Course]:
        return [
            make_course(
                cell(row, SUBJECT_COLUMN),
                cell(row, NUMBER_COLUMN),
                credits_from_expression(cell(row, CREDITS_COLUMN)),
            )
        ]

    def parse_target(self, row: Sequence[str]) -> list[Course]:
        return tokenize_courses(self.target_text(row))
