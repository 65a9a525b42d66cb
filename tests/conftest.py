"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- Sample institutions, courses and equivalencies
- Source documents (UVA-style HTML pages, CNU-style PDF grids)
- Temporary SQLite stores
- Mock fetchers
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator, Sequence
from unittest.mock import MagicMock

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Path Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Get the config file path."""
    return project_root / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Sample Data Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_institution():
    """A target institution that isn't registered with any indexer."""
    from novaxfer.shared.schemas import Institution

    return Institution(acronym="TST", full_name="Test State University", location="Virginia")


@pytest.fixture
def other_institution():
    from novaxfer.shared.schemas import Institution

    return Institution(acronym="OTH", full_name="Other College")


@pytest.fixture
def make_equivalency(sample_institution) -> Callable:
    """Build a CourseEquivalency from 'SUBJ NUM' strings."""
    from novaxfer.parsing.equiv_type import determine_equiv_type
    from novaxfer.shared.schemas import Course, CourseEquivalency

    def _make(inputs: Sequence[str], outputs: Sequence[str], institution=None, credits=3):
        def to_course(text: str) -> Course:
            subject, number = text.split()
            return Course(subject=subject, number=number, credits=credits)

        output = [to_course(o) for o in outputs]
        return CourseEquivalency(
            input=[to_course(i) for i in inputs],
            output=output,
            type=determine_equiv_type(output),
            institution=institution or sample_institution,
        )

    return _make


# ─────────────────────────────────────────────────────────────────────────────
# Source Document Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def uva_page() -> Callable[[Sequence[Sequence[str]]], bytes]:
    """
    Build a page shaped like UVA's equivalency listing.

    Three layout tables come first, then the equivalency table with two
    header rows followed by one ``<tr>`` per given row of cell texts.
    """

    def _build(rows: Sequence[Sequence[str]]) -> bytes:
        body_rows = "\n".join(
            "<tr>" + "".join(f"<td>{text}</td>" for text in row) + "</tr>" for row in rows
        )
        html = f"""
        <!DOCTYPE html>
        <html>
        <head><title>Transfer Equivalents</title></head>
        <body>
            <table><tr><td>Navigation</td></tr></table>
            <table><tr><td>Search</td></tr></table>
            <table><tr><td>School: Northern Virginia Community College</td></tr></table>
            <table>
                <tr><td colspan="3">Northern Virginia Community College</td></tr>
                <tr><td>Transfer Course</td><td>UVA Course</td><td>Effective</td></tr>
                {body_rows}
            </table>
        </body>
        </html>
        """
        return html.encode("utf-8")

    return _build


@pytest.fixture
def cnu_grid() -> list[list[str]]:
    """Rows as pdfplumber would extract them from CNU's transfer guide."""
    return [
        ["VCCS", "", "", "VCCS Title", "CNU Course", ""],
        ["ACC", "211", "3", "Principles of Accounting I", "ACCT 201", ""],
        ["CHM", "111", "4", "General Chemistry I", "CHEM 103 & 103L", ""],
        ["ENG", "111", "3", "College Composition I", "ENGL", "123"],
        ["", "", "", "", "", ""],
        ["MTH", "263", "4", "Calculus I", "MATH 140", ""],
        ["HIS", "101", "3", "History of Western Civ", "Elective", ""],
        ["CHM", "112", "4", "General Chemistry II", "CHEM 104 &", "104L"],
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Store Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def store(temp_dir: Path):
    """A connected EquivalencyStore backed by a temporary file."""
    from novaxfer.storage.store import EquivalencyStore

    with EquivalencyStore(temp_dir / "test.sqlite3") as equivalency_store:
        yield equivalency_store


# ─────────────────────────────────────────────────────────────────────────────
# Mock Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_fetcher() -> Callable[[bytes], MagicMock]:
    """Build a Fetcher stand-in whose fetch() returns the given payload."""
    from novaxfer.ingestion.fetcher import Fetcher

    def _build(payload: bytes) -> MagicMock:
        fetcher = MagicMock(spec=Fetcher)
        fetcher.fetch.return_value = payload
        return fetcher

    return _build


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that reach the live institution sites"
    )


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop cached settings so environment overrides in one test don't leak."""
    from novaxfer.shared.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
