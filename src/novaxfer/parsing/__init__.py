"""
Parsing Module - Source-independent normalization primitives.
=============================================================

- courses: Course cells and composite course strings
- credits: Credit expressions
- equiv_type: Equivalency type classification
- rows: Row classification and supplemental-row merging
"""

from novaxfer.parsing.courses import (
    is_course_string,
    make_course,
    parse_course_cell,
    tokenize_courses,
)
from novaxfer.parsing.credits import credits_from_expression, interpret_credits
from novaxfer.parsing.equiv_type import DEFAULT_GENERIC_SUFFIX, determine_equiv_type
from novaxfer.parsing.rows import (
    EquivalencyDraft,
    RowStrategy,
    RowType,
    WalkResult,
    classify_row,
    walk_rows,
)

__all__ = [
    # Courses
    "is_course_string",
    "make_course",
    "parse_course_cell",
    "tokenize_courses",
    # Credits
    "credits_from_expression",
    "interpret_credits",
    # Types
    "DEFAULT_GENERIC_SUFFIX",
    "determine_equiv_type",
    # Rows
    "EquivalencyDraft",
    "RowStrategy",
    "RowType",
    "WalkResult",
    "classify_row",
    "walk_rows",
]
