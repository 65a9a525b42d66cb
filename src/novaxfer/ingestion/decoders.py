"""
Decoders Module - Turn raw payloads into traversable structures.
================================================================

Two source families are supported:
- HTML: parsed with BeautifulSoup (lxml backend) into a traversable tree
- PDF: parsed with pdfplumber into a grid of text rows, one list of cells
  per physical table row, whitespace-normalized

A payload that can't be structurally parsed raises DecodeError, which is
fatal for that institution only.
"""

from io import BytesIO
from typing import Any, Optional

import pdfplumber
from bs4 import BeautifulSoup

from novaxfer.shared.config import get_settings
from novaxfer.shared.errors import DecodeError
from novaxfer.shared.logging import get_logger
from novaxfer.shared.utils import normalize_whitespace

logger = get_logger(__name__)

Grid = list[list[str]]


def decode_html(data: bytes, institution: Optional[str] = None) -> BeautifulSoup:
    """
    Parse a UTF-8 HTML payload.

    Raises:
        DecodeError: If the payload is empty
    """
    if not data or not data.strip():
        raise DecodeError(institution, "empty HTML payload")

    return BeautifulSoup(data.decode("utf-8", errors="replace"), "lxml")


def decode_pdf(
    data: bytes,
    institution: Optional[str] = None,
    table_settings: Optional[dict[str, Any]] = None,
) -> Grid:
    """
    Parse a PDF payload into rows of text cells.

    Tables are extracted page by page with pdfplumber's text-alignment
    strategies, so PDFs without ruling lines still come out as grids.
    Missing cells become empty strings.

    Raises:
        DecodeError: If the PDF can't be opened or holds no table rows
    """
    if not data:
        raise DecodeError(institution, "empty PDF payload")

    if table_settings is None:
        table_settings = get_settings().pdf.table_settings()

    rows: Grid = []
    try:
        with pdfplumber.open(BytesIO(data)) as pdf:
            for page_num, page in enumerate(pdf.pages, start=1):
                page_rows = 0
                for table in page.extract_tables(table_settings):
                    for raw_row in table:
                        rows.append([normalize_whitespace(cell) for cell in raw_row])
                        page_rows += 1
                logger.debug(f"Page {page_num}: {page_rows} rows")
    except Exception as e:
        raise DecodeError(institution, f"could not parse PDF: {e}") from e

    if not rows:
        raise DecodeError(institution, "PDF contains no table rows")

    logger.debug(f"Decoded PDF into {len(rows)} rows")
    return rows
