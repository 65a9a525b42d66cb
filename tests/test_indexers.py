"""
Tests for Indexers Module.
==========================

Tests for:
- UVA: HTML equivalency table with supplemental rows
- CNU: PDF transfer guide with composite course cells
- Registry: registration and lookup
"""

from unittest.mock import patch

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# UVA Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestUvaIndexer:
    """Tests for the University of Virginia indexer."""

    def test_normal_row_with_output_supplement(self, uva_page, mock_fetcher):
        """Test that a NORMAL row followed by an OUTPUT_SUPPLEMENT is one equivalency."""
        from novaxfer.indexers.uva import UvaIndexer
        from novaxfer.shared.schemas import EquivType

        page = uva_page([
            ["MTH 263 3", "MATH 231 3"],
            ["", "MATH 232 3"],
        ])

        context = UvaIndexer().find_all(mock_fetcher(page))

        assert len(context.equivalencies) == 1
        equivalency = context.equivalencies[0]
        assert [str(c) for c in equivalency.input] == ["MTH 263"]
        assert [str(c) for c in equivalency.output] == ["MATH 231", "MATH 232"]
        assert equivalency.type == EquivType.DIRECT
        assert equivalency.institution.acronym == "UVA"
        assert context.unparsed_count == 0
        assert context.parse_success_rate == 1.0

    def test_credits_are_read_from_cells(self, uva_page, mock_fetcher):
        """Test that credits on both sides are parsed from the cell text."""
        from novaxfer.indexers.uva import UvaIndexer
        from novaxfer.shared.schemas import CreditRange

        page = uva_page([["MTH 263 4", "MATH 1310 3-4"]])

        equivalency = UvaIndexer().find_all(mock_fetcher(page)).equivalencies[0]

        assert equivalency.input[0].credits == 4
        assert equivalency.output[0].credits == CreditRange(min=3, max=4)

    def test_no_credit_is_none(self, uva_page, mock_fetcher):
        """Test that "(no credit)" maps to the NONE sentinel."""
        from novaxfer.indexers.uva import UvaIndexer
        from novaxfer.shared.schemas import NO_EQUIVALENT, EquivType

        page = uva_page([["BIO 101 4", "(no credit)"]])

        equivalency = UvaIndexer().find_all(mock_fetcher(page)).equivalencies[0]

        assert equivalency.output == [NO_EQUIVALENT]
        assert equivalency.type == EquivType.NONE

    def test_t_suffix_is_generic(self, uva_page, mock_fetcher):
        """Test that UVA numbers ending in T are GENERIC."""
        from novaxfer.indexers.uva import UvaIndexer
        from novaxfer.shared.schemas import EquivType

        page = uva_page([["CSC 110 3", "CS 1T 3"]])

        equivalency = UvaIndexer().find_all(mock_fetcher(page)).equivalencies[0]

        assert equivalency.type == EquivType.GENERIC

    def test_malformed_rows_are_counted(self, uva_page, mock_fetcher):
        """Test that an unreadable row is counted as unparsed and skipped."""
        from novaxfer.indexers.uva import UvaIndexer

        page = uva_page([
            ["MTH 263 3", "MATH 231 3"],
            ["ENG 111 3", "see advisor"],
            ["", ""],
            ["HIS 101 3", "HIUS 1501 3"],
        ])

        context = UvaIndexer().find_all(mock_fetcher(page))

        assert len(context.equivalencies) == 2
        assert context.unparsed_count == 1
        assert context.total_rows == 3
        assert context.parse_success_rate == pytest.approx(2 / 3)

    def test_header_rows_are_skipped(self, uva_page, mock_fetcher):
        """Test that header rows are not treated as data rows."""
        from novaxfer.indexers.uva import UvaIndexer

        context = UvaIndexer().find_all(mock_fetcher(uva_page([])))

        assert context.equivalencies == []
        assert context.unparsed_count == 0
        assert context.parse_success_rate == 1.0

    def test_whitespace_in_cells_is_normalized(self, uva_page, mock_fetcher):
        """Test that line breaks and non-breaking spaces in cells are collapsed."""
        from novaxfer.indexers.uva import UvaIndexer

        page = uva_page([["MTH&nbsp;263\n  3", "MATH\r\n231 3"]])

        context = UvaIndexer().find_all(mock_fetcher(page))

        assert [str(c) for c in context.equivalencies[0].output] == ["MATH 231"]

    def test_missing_table_is_decode_error(self, mock_fetcher):
        """Test that a page without the equivalency table raises DecodeError."""
        from novaxfer.indexers.uva import UvaIndexer
        from novaxfer.shared.errors import DecodeError

        page = b"<html><body><table><tr><td>Maintenance</td></tr></table></body></html>"

        with pytest.raises(DecodeError) as exc_info:
            UvaIndexer().find_all(mock_fetcher(page))

        assert exc_info.value.institution == "UVA"

    def test_empty_payload_is_decode_error(self, mock_fetcher):
        """Test that an empty response raises DecodeError."""
        from novaxfer.indexers.uva import UvaIndexer
        from novaxfer.shared.errors import DecodeError

        with pytest.raises(DecodeError):
            UvaIndexer().find_all(mock_fetcher(b""))

    def test_fetch_receives_request_and_institution(self, uva_page, mock_fetcher):
        """Test that the fetcher gets the request and the owning institution."""
        from novaxfer.indexers.uva import SCHOOL_ID, UvaIndexer

        fetcher = mock_fetcher(uva_page([]))
        indexer = UvaIndexer()

        indexer.find_all(fetcher)

        request, institution = fetcher.fetch.call_args.args
        assert ("schoolId", SCHOOL_ID) in request.params
        assert institution.acronym == "UVA"

    def test_prepare_request_is_stable(self):
        """Test that prepare_request returns the same description every time."""
        from novaxfer.indexers.uva import UvaIndexer

        indexer = UvaIndexer()

        assert indexer.prepare_request() == indexer.prepare_request()
        assert UvaIndexer().prepare_request() == indexer.prepare_request()


# ─────────────────────────────────────────────────────────────────────────────
# CNU Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestCnuIndexer:
    """Tests for the Christopher Newport University indexer."""

    def test_extracts_equivalencies(self, cnu_grid):
        """Test that every course row is extracted and the elective is unparsed."""
        from novaxfer.indexers.cnu import CnuIndexer

        equivalencies, unparsed = CnuIndexer().classify_and_extract(cnu_grid)

        assert [str(e.key_course.subject) + " " + e.key_course.number for e in equivalencies] == [
            "ACC 211",
            "CHM 111",
            "ENG 111",
            "MTH 263",
            "CHM 112",
        ]
        # "Elective" has no CNU course
        assert unparsed == 1

    def test_composite_target_cell(self, cnu_grid):
        """Test that a composite target cell yields every course it names."""
        from novaxfer.indexers.cnu import CnuIndexer

        equivalencies, _ = CnuIndexer().classify_and_extract(cnu_grid)
        chemistry = equivalencies[1]

        assert [str(c) for c in chemistry.output] == ["CHEM 103", "CHEM 103L"]

    def test_target_split_across_cells(self, cnu_grid):
        """Test that a target split over two cells is joined."""
        from novaxfer.indexers.cnu import CnuIndexer

        equivalencies, _ = CnuIndexer().classify_and_extract(cnu_grid)
        english = equivalencies[2]

        assert [str(c) for c in english.output] == ["ENGL 123"]

    def test_target_cut_after_separator_joins_next_cell(self, cnu_grid):
        """Test that a target cell ending in "&" is completed from the next cell."""
        from novaxfer.indexers.cnu import CnuIndexer

        equivalencies, _ = CnuIndexer().classify_and_extract(cnu_grid)
        chemistry = equivalencies[4]

        assert str(chemistry.key_course.subject) + " " + chemistry.key_course.number == "CHM 112"
        assert [str(c) for c in chemistry.output] == ["CHEM 104", "CHEM 104L"]

    def test_source_credits(self, cnu_grid):
        """Test that source credits are read and target credits are UNCLEAR."""
        from novaxfer.indexers.cnu import CnuIndexer
        from novaxfer.shared.schemas import CreditStatus

        equivalencies, _ = CnuIndexer().classify_and_extract(cnu_grid)

        assert equivalencies[0].input[0].credits == 3
        assert equivalencies[0].output[0].credits == CreditStatus.UNCLEAR

    def test_generic_suffix(self):
        """Test that CNU numbers ending in XX are GENERIC."""
        from novaxfer.indexers.cnu import CnuIndexer
        from novaxfer.shared.schemas import EquivType

        grid = [["HIS", "121", "3", "US History I", "HIST 1XX", ""]]

        equivalencies, _ = CnuIndexer().classify_and_extract(grid)

        assert equivalencies[0].type == EquivType.GENERIC

    @pytest.mark.parametrize(
        "row",
        [
            ["VCCS", "", "", "Title", "CNU", ""],
            ["", "", "", "", "", ""],
            ["Page 3 of 40"],
        ],
    )
    def test_non_course_rows_are_skipped(self, row):
        """Test that headers, blanks and page footers are skipped without counting."""
        from novaxfer.indexers.cnu import CnuIndexer

        equivalencies, unparsed = CnuIndexer().classify_and_extract([row])

        assert equivalencies == []
        assert unparsed == 0

    def test_find_all_decodes_pdf(self, cnu_grid, mock_fetcher):
        """Test that find_all decodes the PDF and reports its success rate."""
        from novaxfer.indexers.cnu import CnuIndexer

        with patch("novaxfer.indexers.base.decode_pdf", return_value=cnu_grid) as decode:
            context = CnuIndexer().find_all(mock_fetcher(b"%PDF-1.4"))

        decode.assert_called_once_with(b"%PDF-1.4", "CNU")
        assert len(context.equivalencies) == 5
        assert context.unparsed_count == 1
        assert context.parse_success_rate == pytest.approx(5 / 6)


# ─────────────────────────────────────────────────────────────────────────────
# GridIndexer Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestGridIndexer:
    """Tests for hooks shared by grid-shaped indexers."""

    def test_is_special_marks_equivalency_special(self):
        """Test that rows flagged by is_special become SPECIAL equivalencies."""
        from novaxfer.indexers.base import cell
        from novaxfer.indexers.cnu import CnuIndexer
        from novaxfer.shared.schemas import EquivType

        class AdvisorNoteIndexer(CnuIndexer):
            def is_special(self, row):
                return "advisor" in cell(row, 3).lower()

        grid = [
            ["BIO", "101", "4", "See advisor", "BIOL 107", ""],
            ["BIO", "102", "4", "General Biology II", "BIOL 108", ""],
        ]

        equivalencies, unparsed = AdvisorNoteIndexer().classify_and_extract(grid)

        assert unparsed == 0
        assert [e.type for e in equivalencies] == [EquivType.SPECIAL, EquivType.DIRECT]

    def test_subclass_without_decorator_is_not_registered(self):
        """Test that subclassing an indexer doesn't add it to the registry."""
        from novaxfer.indexers.cnu import CnuIndexer
        from novaxfer.indexers.registry import find_indexers

        class LocalIndexer(CnuIndexer):
            pass

        assert LocalIndexer not in {type(i) for i in find_indexers()}


# ─────────────────────────────────────────────────────────────────────────────
# Registry Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestRegistry:
    """Tests for the indexer registry."""

    def test_builtin_indexers_are_registered(self):
        """Test that the built-in indexers are registered."""
        from novaxfer.indexers.registry import find_indexers

        assert [i.acronym for i in find_indexers()] == ["CNU", "UVA"]

    def test_find_indexers_returns_fresh_instances(self):
        """Test that each lookup returns new indexer instances."""
        from novaxfer.indexers.registry import find_indexers

        assert find_indexers()[0] is not find_indexers()[0]

    def test_get_indexer_is_case_insensitive(self):
        """Test that lookup by acronym ignores case."""
        from novaxfer.indexers.registry import get_indexer
        from novaxfer.indexers.uva import UvaIndexer

        assert isinstance(get_indexer("uva"), UvaIndexer)
        assert get_indexer("XYZ") is None

    def test_register_is_idempotent(self):
        """Test that registering a class twice keeps one entry."""
        from novaxfer.indexers.registry import find_indexers, register_indexer
        from novaxfer.indexers.uva import UvaIndexer

        before = len(find_indexers())
        assert register_indexer(UvaIndexer) is UvaIndexer
        assert len(find_indexers()) == before

    def test_list_institutions(self):
        """Test that registered institutions are listed with full names."""
        from novaxfer.indexers.registry import list_institutions

        names = {i.acronym: i.full_name for i in list_institutions()}

        assert names["UVA"] == "University of Virginia"
        assert names["CNU"] == "Christopher Newport University"
