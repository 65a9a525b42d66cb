"""
Equivalency Store - SQLite persistence for indexed equivalencies.
=================================================================

Equivalencies are stored under the community-college course they start
from. Each course holds a set of entries, deduplicated by structural
equality of the whole entry, so writing the same equivalency twice is a
no-op.

The store is an explicit object with a connect/close lifecycle; open it
with a ``with`` block:

    with EquivalencyStore(path) as store:
        store.upsert_equivalency(eq.key_course, eq)
        doc = store.query_equivalencies_for_course("MTH", "263")

One connection is shared by every thread of a run. Writes are serialized
by a lock and each one is its own transaction, so concurrent upserts for
the same course can't lose updates.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence, Union

from novaxfer.shared.errors import StoreError
from novaxfer.shared.logging import get_logger
from novaxfer.shared.schemas import (
    Course,
    CourseDocument,
    CourseEquivalency,
    CourseKey,
    EquivalencyEntry,
    Institution,
    InstitutionDocument,
)
from novaxfer.shared.utils import canonical_json, compute_hash, ensure_parent_directory

logger = get_logger(__name__)

MEMORY = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS institutions (
    acronym    TEXT PRIMARY KEY,
    full_name  TEXT NOT NULL,
    location   TEXT
);

CREATE TABLE IF NOT EXISTS courses (
    id       INTEGER PRIMARY KEY AUTOINCREMENT,
    subject  TEXT NOT NULL,
    number   TEXT NOT NULL,
    UNIQUE (subject, number)
);

CREATE TABLE IF NOT EXISTS equivalencies (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    course_id     INTEGER NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    institution   TEXT,
    payload       TEXT NOT NULL,
    payload_hash  TEXT NOT NULL,
    UNIQUE (course_id, payload_hash)
);

CREATE INDEX IF NOT EXISTS idx_equivalencies_institution ON equivalencies (institution);
"""


class EquivalencyStore:
    """SQLite-backed store of per-course equivalency sets."""

    def __init__(self, path: Union[str, Path] = MEMORY):
        self.path = path if path == MEMORY else Path(path)
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def connect(self) -> "EquivalencyStore":
        """Open the database and create the schema if needed."""
        if self._connection is not None:
            return self

        try:
            if self.path != MEMORY:
                ensure_parent_directory(self.path)
            connection = sqlite3.connect(str(self.path), check_same_thread=False)
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys = ON")
            connection.executescript(SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"could not open store at {self.path}: {e}") from e

        self._connection = connection
        logger.debug(f"Opened store: {self.path}")
        return self

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.debug(f"Closed store: {self.path}")

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def __enter__(self) -> "EquivalencyStore":
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block atomically, translating sqlite errors to StoreError."""
        with self._lock:
            if self._connection is None:
                raise StoreError("store is not connected")
            try:
                with self._connection:
                    yield self._connection
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e

    # ─────────────────────────────────────────────────────────────────────────
    # Institutions
    # ─────────────────────────────────────────────────────────────────────────

    def upsert_institutions(self, institutions: Sequence[Institution]) -> None:
        """Insert institutions, updating the names of ones already present."""
        with self._transaction() as conn:
            conn.executemany(
                """
                INSERT INTO institutions (acronym, full_name, location)
                VALUES (?, ?, ?)
                ON CONFLICT (acronym) DO UPDATE SET
                    full_name = excluded.full_name,
                    location = excluded.location
                """,
                [(i.acronym, i.full_name, i.location) for i in institutions],
            )

    def list_institutions(self) -> list[Institution]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT acronym, full_name, location FROM institutions ORDER BY acronym"
            ).fetchall()
        return [
            Institution(acronym=row["acronym"], full_name=row["full_name"], location=row["location"])
            for row in rows
        ]

    # ─────────────────────────────────────────────────────────────────────────
    # Equivalencies
    # ─────────────────────────────────────────────────────────────────────────

    def upsert_equivalency(self, key_course: CourseKey, equivalency: CourseEquivalency) -> bool:
        """
        Add an equivalency to a course's set unless an identical one is there.

        Returns:
            True if the entry was added, False if it was already present

        Raises:
            StoreError: If the write fails
        """
        payload = canonical_json(equivalency.to_entry().model_dump(mode="json"))
        payload_hash = compute_hash(payload)

        with self._transaction() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO courses (subject, number) VALUES (?, ?)",
                (key_course.subject, key_course.number),
            )
            course_id = conn.execute(
                "SELECT id FROM courses WHERE subject = ? AND number = ?",
                (key_course.subject, key_course.number),
            ).fetchone()["id"]
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO equivalencies (course_id, institution, payload, payload_hash)
                VALUES (?, ?, ?, ?)
                """,
                (course_id, equivalency.institution.acronym, payload, payload_hash),
            )
            return cursor.rowcount == 1

    def reset(self) -> None:
        """Drop every stored course and equivalency. Institutions are kept."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM equivalencies")
            conn.execute("DELETE FROM courses")
        logger.info("Store reset")

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def query_by_subject(self, subject: str) -> list[Course]:
        """Every indexed course in a subject, ordered by number."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT subject, number FROM courses WHERE subject = ? COLLATE NOCASE ORDER BY number",
                (subject.strip(),),
            ).fetchall()
        return [Course(subject=row["subject"], number=row["number"]) for row in rows]

    def query_equivalencies_for_course(
        self,
        subject: str,
        number: str,
        institutions: Optional[Sequence[str]] = None,
    ) -> CourseDocument:
        """
        A course's equivalencies, optionally limited to some institutions.

        A course that was never indexed gives a document with no id and no
        equivalencies.
        """
        subject = subject.strip().upper()
        number = number.strip().upper()

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT id FROM courses WHERE subject = ? AND number = ?",
                (subject, number),
            ).fetchone()
            if row is None:
                return CourseDocument(subject=subject, number=number)

            query = "SELECT payload FROM equivalencies WHERE course_id = ?"
            params: list = [row["id"]]
            if institutions is not None:
                acronyms = [a.strip().upper() for a in institutions]
                query += f" AND institution IN ({', '.join('?' for _ in acronyms)})"
                params.extend(acronyms)
            query += " ORDER BY id"
            payloads = conn.execute(query, params).fetchall()

        return CourseDocument(
            id=row["id"],
            subject=subject,
            number=number,
            equivalencies=[EquivalencyEntry.model_validate_json(p["payload"]) for p in payloads],
        )

    def query_equivalencies_for_institution(
        self,
        acronym: str,
        courses: Sequence[CourseKey],
    ) -> InstitutionDocument:
        """
        What one institution grants for the given courses.

        Courses with nothing recorded at that institution are left out.
        """
        acronym = acronym.strip().upper()
        documents = (
            self.query_equivalencies_for_course(course.subject, course.number, [acronym])
            for course in courses
        )
        return InstitutionDocument(
            institution=acronym,
            courses=[document for document in documents if document.equivalencies],
        )

    def count_courses(self) -> int:
        with self._transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM courses").fetchone()[0]

    def count_equivalencies(self) -> int:
        with self._transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM equivalencies").fetchone()[0]
