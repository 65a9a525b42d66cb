"""
Ingestion Module - Fetch and decode institution source documents.
=================================================================

- fetcher: HTTP retrieval with retries, timeouts and an optional raw-byte cache
- decoders: HTML (BeautifulSoup) and PDF (pdfplumber) decoding

Pipeline flow:
    FetchRequest → Fetcher → raw bytes → Decoder → HTML tree | row grid
"""

from novaxfer.ingestion.decoders import Grid, decode_html, decode_pdf
from novaxfer.ingestion.fetcher import Fetcher, FetcherStats

__all__ = [
    # Fetcher
    "Fetcher",
    "FetcherStats",
    # Decoders
    "Grid",
    "decode_html",
    "decode_pdf",
]
