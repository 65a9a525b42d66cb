"""
UVA Indexer - University of Virginia.
=====================================

UVA publishes an HTML page whose fourth table lists one equivalency per
row: the community-college course in the first column and the UVA course
in the second, each written as ``SUBJECT NUMBER CREDITS``. A row with only
one column populated adds a course to the equivalency directly above it.
``(no credit)`` means the course doesn't transfer. Generic UVA courses end
in ``T``.
"""

import re
from typing import Sequence

from bs4 import BeautifulSoup

from novaxfer.indexers.base import GridIndexer, HtmlIndexer, cell, html_table_grid
from novaxfer.indexers.registry import register_indexer
from novaxfer.ingestion.decoders import Grid
from novaxfer.parsing.courses import parse_course_cell
from novaxfer.shared.schemas import NO_EQUIVALENT, Course, FetchRequest, Institution

DATA_URL = "http://ascs8.eservices.virginia.edu/AsEquivs/Home/EquivsShow"
SCHOOL_ID = "1001975"

TABLE_INDEX = 3
HEADER_ROWS = 2
SOURCE_COLUMN = 0
TARGET_COLUMN = 1

NO_CREDIT = "(no credit)"

# "ACC 211 3", "COMM 2010 3", "CS 1T 3-4"
COURSE_CELL = re.compile(r"^[A-Z]{2,4} [0-9A-Z]+(?: [0-9][0-9,\-]*)?$")


@register_indexer
class UvaIndexer(GridIndexer[BeautifulSoup], HtmlIndexer):
    institution = Institution(
        acronym="UVA",
        full_name="University of Virginia",
        location="Virginia",
    )
    generic_suffix = "T"

    def prepare_request(self) -> FetchRequest:
        return FetchRequest(url=DATA_URL, params=(("schoolId", SCHOOL_ID),))

    def grid(self, body: BeautifulSoup) -> Grid:
        return html_table_grid(body, TABLE_INDEX, HEADER_ROWS, institution=self.acronym)

    def source_text(self, row: Sequence[str]) -> str:
        return cell(row, SOURCE_COLUMN)

    def target_text(self, row: Sequence[str]) -> str:
        return cell(row, TARGET_COLUMN)

    def is_valid_source(self, text: str) -> bool:
        return bool(COURSE_CELL.match(text))

    def is_valid_target(self, text: str) -> bool:
        return text == NO_CREDIT or bool(COURSE_CELL.match(text))

    def parse_source(self, row: Sequence[str]) -> list[Course]:
        return [parse_course_cell(self.source_text(row))]

    def parse_target(self, row: Sequence[str]) -> list[Course]:
        text = self.target_text(row)
        if text == NO_CREDIT:
            # UVA doesn't offer credit for this course
            return [NO_EQUIVALENT]
        return [parse_course_cell(text)]
