"""
Row Classifier - Walk a table of physical rows into logical equivalencies.
=========================================================================

Each physical row is classified from its two canonical cells (the
community-college "source" cell and the institution "target" cell):

    NORMAL             both populated       -> a complete equivalency
    INPUT_SUPPLEMENT   only source          -> extra required source course
    OUTPUT_SUPPLEMENT  only target          -> extra granted target course
    EMPTY              neither              -> visual separator, skipped
    UNKNOWN            anything malformed   -> counted as unparsed

After a NORMAL row, the next row is inspected once. If it is a supplement,
its course is appended to the matching side and the row is consumed.
Rows are processed strictly in order since the lookahead depends on it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence, TypeVar

from novaxfer.shared.errors import ParseError, RowClassificationError
from novaxfer.shared.logging import get_logger
from novaxfer.shared.schemas import Course, CourseEquivalency

logger = get_logger(__name__)

R = TypeVar("R")
R_contra = TypeVar("R_contra", contravariant=True)


class RowType(str, Enum):
    """Shape of one physical table row."""

    NORMAL = "normal"
    INPUT_SUPPLEMENT = "input"
    OUTPUT_SUPPLEMENT = "output"
    EMPTY = "empty"
    UNKNOWN = "unknown"

    @property
    def is_supplement(self) -> bool:
        return self in (RowType.INPUT_SUPPLEMENT, RowType.OUTPUT_SUPPLEMENT)


def classify_row(
    source: Optional[str],
    target: Optional[str],
    source_valid: Optional[Callable[[str], bool]] = None,
    target_valid: Optional[Callable[[str], bool]] = None,
) -> RowType:
    """
    Classify a row from its source and target cell text.

    A populated cell that fails its validator makes the row UNKNOWN.
    """
    source = (source or "").strip()
    target = (target or "").strip()

    if source and source_valid is not None and not source_valid(source):
        return RowType.UNKNOWN
    if target and target_valid is not None and not target_valid(target):
        return RowType.UNKNOWN

    if source and target:
        return RowType.NORMAL
    if source:
        return RowType.INPUT_SUPPLEMENT
    if target:
        return RowType.OUTPUT_SUPPLEMENT
    return RowType.EMPTY


@dataclass
class EquivalencyDraft:
    """An equivalency still open to supplemental rows."""

    input: list[Course] = field(default_factory=list)
    output: list[Course] = field(default_factory=list)
    special: bool = False

    def add(self, row_type: RowType, courses: list[Course]) -> None:
        if row_type is RowType.INPUT_SUPPLEMENT:
            self.input.extend(courses)
        elif row_type is RowType.OUTPUT_SUPPLEMENT:
            self.output.extend(courses)
        else:
            raise ValueError(f"cannot supplement with a {row_type.value} row")


class RowStrategy(Protocol[R_contra]):
    """Source-specific pieces the walker needs."""

    def classify(self, row: R_contra) -> RowType: ...

    def build_draft(self, row: R_contra) -> EquivalencyDraft: ...

    def parse_supplement(self, row: R_contra, row_type: RowType) -> list[Course]: ...

    def finish_draft(self, draft: EquivalencyDraft) -> CourseEquivalency: ...


@dataclass
class WalkResult:
    """Equivalencies found in a table and the number of rows skipped as unparseable."""

    equivalencies: list[CourseEquivalency] = field(default_factory=list)
    unparsed: int = 0


def _peek(strategy: RowStrategy[R], row: R) -> RowType:
    """Classify a lookahead row; one that can't be classified is handled on its own turn."""
    try:
        return strategy.classify(row)
    except RowClassificationError:
        return RowType.UNKNOWN


def walk_rows(rows: Sequence[R], strategy: RowStrategy[R]) -> WalkResult:
    """
    Turn a sequence of physical rows into equivalencies.

    Row-level ParseErrors never escape: the offending row is skipped and
    counted. Supplement rows that don't follow a NORMAL row can't be
    attached to anything and are counted the same way. A strategy may
    raise RowClassificationError from ``classify`` instead of returning
    UNKNOWN when it can say what is wrong with a row.
    """
    result = WalkResult()
    i = 0

    while i < len(rows):
        row = rows[i]
        try:
            row_type = strategy.classify(row)
        except RowClassificationError as e:
            logger.debug(f"Unclassifiable row {i}: {e}")
            result.unparsed += 1
            i += 1
            continue

        if row_type is RowType.EMPTY:
            i += 1
            continue

        if row_type is not RowType.NORMAL:
            logger.debug(f"Skipping {row_type.value} row {i}: {row!r}")
            result.unparsed += 1
            i += 1
            continue

        try:
            draft = strategy.build_draft(row)
        except ParseError as e:
            logger.debug(f"Unparseable row {i}: {e}")
            result.unparsed += 1
            i += 1
            continue

        # One row of lookahead for a supplement
        if i + 1 < len(rows):
            next_type = _peek(strategy, rows[i + 1])
            if next_type.is_supplement:
                try:
                    draft.add(next_type, strategy.parse_supplement(rows[i + 1], next_type))
                except ParseError as e:
                    logger.debug(f"Unparseable supplement row {i + 1}: {e}")
                    result.unparsed += 1
                i += 1

        try:
            result.equivalencies.append(strategy.finish_draft(draft))
        except (ParseError, ValueError) as e:
            logger.debug(f"Could not assemble equivalency at row {i}: {e}")
            result.unparsed += 1

        i += 1

    return result
