"""
Tests for Storage Module.
=========================

Tests for:
- Idempotent equivalency upserts
- Case-insensitive queries and institution filters
- Institution records
- Store lifecycle and error wrapping
"""

from concurrent.futures import ThreadPoolExecutor

import pytest


class TestUpsertEquivalency:
    """Tests for upsert_equivalency()."""

    def test_identical_upsert_is_noop(self, store, make_equivalency):
        """Test that upserting the same equivalency twice stores it once."""
        equivalency = make_equivalency(["MTH 263"], ["MATH 231"])

        assert store.upsert_equivalency(equivalency.key_course, equivalency) is True
        assert store.upsert_equivalency(equivalency.key_course, equivalency) is False

        document = store.query_equivalencies_for_course("MTH", "263")
        assert len(document.equivalencies) == 1

    def test_structurally_equal_copies_are_deduplicated(self, store, make_equivalency):
        """Test that separately built equal equivalencies are deduplicated."""
        first = make_equivalency(["MTH 263"], ["MATH 231"])
        second = make_equivalency(["MTH 263"], ["MATH 231"])

        store.upsert_equivalency(first.key_course, first)
        store.upsert_equivalency(second.key_course, second)

        assert store.count_equivalencies() == 1

    def test_different_entries_share_a_course(self, store, make_equivalency, other_institution):
        """Test that different equivalencies share one course document."""
        ours = make_equivalency(["MTH 263"], ["MATH 231"])
        theirs = make_equivalency(["MTH 263"], ["MATH 140"], institution=other_institution)
        two_course = make_equivalency(["MTH 263", "MTH 264"], ["MATH 231"])

        for equivalency in (ours, theirs, two_course):
            store.upsert_equivalency(equivalency.key_course, equivalency)

        assert store.count_courses() == 1
        assert store.count_equivalencies() == 3

    def test_entry_content_is_preserved(self, store, sample_institution):
        """Test that stored entries read back unchanged."""
        from novaxfer.shared.schemas import (
            Course,
            CourseEquivalency,
            CreditRange,
            CreditStatus,
            EquivType,
        )

        equivalency = CourseEquivalency(
            input=[Course(subject="CHM", number="111", credits=CreditRange(min=3, max=4))],
            output=[
                Course(subject="CHEM", number="103", credits=CreditStatus.UNCLEAR),
                Course(subject="CHEM", number="103L", credits=CreditStatus.UNCLEAR),
            ],
            type=EquivType.DIRECT,
            institution=sample_institution,
        )
        store.upsert_equivalency(equivalency.key_course, equivalency)

        entry = store.query_equivalencies_for_course("CHM", "111").equivalencies[0]

        assert entry == equivalency.to_entry()
        assert entry.input[0].credits == CreditRange(min=3, max=4)
        assert entry.output[1].credits == CreditStatus.UNCLEAR

    def test_concurrent_upserts_lose_nothing(self, store, make_equivalency, sample_institution):
        """Test that concurrent upserts to one course all land."""
        from novaxfer.shared.schemas import Institution

        schools = [Institution(acronym=f"S{i}", full_name=f"School {i}") for i in range(8)]
        equivalencies = [
            make_equivalency(["MTH 263"], ["MATH 231"], institution=school) for school in schools
        ] * 3

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(lambda e: store.upsert_equivalency(e.key_course, e), equivalencies))

        assert store.count_courses() == 1
        assert store.count_equivalencies() == 8


# ─────────────────────────────────────────────────────────────────────────────
# Query Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestQueries:
    """Tests for the query methods."""

    @pytest.fixture
    def populated(self, store, make_equivalency, other_institution):
        equivalencies = [
            make_equivalency(["MTH 264"], ["MATH 232"]),
            make_equivalency(["MTH 263"], ["MATH 231"]),
            make_equivalency(["MTH 263"], ["MATH 140"], institution=other_institution),
            make_equivalency(["ENG 111"], ["ENGL 123"]),
        ]
        for equivalency in equivalencies:
            store.upsert_equivalency(equivalency.key_course, equivalency)
        return store

    def test_query_by_subject_sorted(self, populated):
        """Test that courses come back sorted by number."""
        courses = populated.query_by_subject("MTH")

        assert [c.number for c in courses] == ["263", "264"]

    def test_query_by_subject_case_insensitive(self, populated):
        """Test that subject lookup ignores case."""
        assert populated.query_by_subject("mth") == populated.query_by_subject("MTH")

    def test_query_by_unknown_subject(self, populated):
        """Test that an unknown subject gives an empty list."""
        assert populated.query_by_subject("ZZZ") == []

    def test_course_document(self, populated):
        """Test that a course document holds every institution's entries."""
        document = populated.query_equivalencies_for_course("mth", "263")

        assert document.id is not None
        assert (document.subject, document.number) == ("MTH", "263")
        assert [e.institution for e in document.equivalencies] == ["TST", "OTH"]

    def test_course_document_institution_filter(self, populated):
        """Test that entries can be filtered by institution."""
        document = populated.query_equivalencies_for_course("MTH", "263", ["oth"])

        assert [e.institution for e in document.equivalencies] == ["OTH"]
        assert [str(c) for c in document.equivalencies[0].output] == ["MATH 140"]

    def test_unknown_course_is_empty_document(self, populated):
        """Test that an unknown course gives an empty document."""
        document = populated.query_equivalencies_for_course("MTH", "999")

        assert document.id is None
        assert document.equivalencies == []

    def test_institution_document(self, populated):
        """Test that an institution document covers the requested courses."""
        from novaxfer.shared.schemas import CourseKey

        document = populated.query_equivalencies_for_institution(
            "tst",
            [CourseKey(subject="MTH", number="263"), CourseKey(subject="ENG", number="111")],
        )

        assert document.institution == "TST"
        assert [(c.subject, c.number) for c in document.courses] == [("MTH", "263"), ("ENG", "111")]
        assert all(
            entry.institution == "TST" for course in document.courses for entry in course.equivalencies
        )
        assert len(document.courses[0].equivalencies) == 1

    def test_institution_document_omits_courses_without_entries(self, populated):
        """Test that courses with nothing at the institution are left out."""
        from novaxfer.shared.schemas import CourseKey

        document = populated.query_equivalencies_for_institution(
            "OTH",
            [
                CourseKey(subject="MTH", number="263"),
                CourseKey(subject="ENG", number="111"),
                CourseKey(subject="ZZZ", number="100"),
            ],
        )

        assert [(c.subject, c.number) for c in document.courses] == [("MTH", "263")]
        assert [str(c) for c in document.courses[0].equivalencies[0].output] == ["MATH 140"]


# ─────────────────────────────────────────────────────────────────────────────
# Institution Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestInstitutions:
    """Tests for institution records."""

    def test_upsert_and_list(self, store, sample_institution, other_institution):
        """Test that institutions are stored and listed by acronym."""
        store.upsert_institutions([sample_institution, other_institution])
        store.upsert_institutions([sample_institution])

        assert store.list_institutions() == [other_institution, sample_institution]

    def test_upsert_updates_names(self, store, sample_institution):
        """Test that upserting an institution again updates its name."""
        from novaxfer.shared.schemas import Institution

        store.upsert_institutions([sample_institution])
        store.upsert_institutions([Institution(acronym="TST", full_name="Renamed University")])

        assert store.list_institutions()[0].full_name == "Renamed University"

    def test_reset_keeps_institutions(self, store, sample_institution, make_equivalency):
        """Test that reset clears courses but keeps institutions."""
        equivalency = make_equivalency(["MTH 263"], ["MATH 231"])
        store.upsert_institutions([sample_institution])
        store.upsert_equivalency(equivalency.key_course, equivalency)

        store.reset()

        assert store.count_courses() == 0
        assert store.count_equivalencies() == 0
        assert store.list_institutions() == [sample_institution]


# ─────────────────────────────────────────────────────────────────────────────
# Lifecycle Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestLifecycle:
    """Tests for connect/close and error handling."""

    def test_operations_require_connection(self, temp_dir):
        """Test that using a closed store raises StoreError."""
        from novaxfer.shared.errors import StoreError
        from novaxfer.storage.store import EquivalencyStore

        store = EquivalencyStore(temp_dir / "store.sqlite3")

        with pytest.raises(StoreError):
            store.query_by_subject("MTH")

    def test_data_survives_reopen(self, temp_dir, make_equivalency):
        """Test that data persists across connections."""
        from novaxfer.storage.store import EquivalencyStore

        path = temp_dir / "nested" / "store.sqlite3"
        equivalency = make_equivalency(["MTH 263"], ["MATH 231"])

        with EquivalencyStore(path) as store:
            store.upsert_equivalency(equivalency.key_course, equivalency)
        assert not store.is_connected

        with EquivalencyStore(path) as store:
            assert store.count_equivalencies() == 1

    def test_in_memory_store(self, make_equivalency):
        """Test that the default in-memory store works."""
        from novaxfer.storage.store import EquivalencyStore

        equivalency = make_equivalency(["MTH 263"], ["MATH 231"])

        with EquivalencyStore() as store:
            store.upsert_equivalency(equivalency.key_course, equivalency)
            assert store.count_courses() == 1

    def test_unopenable_path_raises_store_error(self, temp_dir):
        """Test that an unopenable path raises StoreError."""
        from novaxfer.shared.errors import StoreError
        from novaxfer.storage.store import EquivalencyStore

        # A directory can't be opened as a database file
        with pytest.raises(StoreError):
            EquivalencyStore(temp_dir).connect()
