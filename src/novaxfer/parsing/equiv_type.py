"""
Equivalency Type Classifier.
============================

Rules, in order:
1. A single NONE/000 output course means the course doesn't transfer.
2. Any output number ending in the institution's generic suffix makes the
   equivalency GENERIC.
3. Everything else is DIRECT.

SPECIAL can't be derived from course numbers; indexers pass ``special=True``
when the source says so explicitly.
"""

from typing import Sequence

from novaxfer.shared.schemas import NO_EQUIVALENT, Course, EquivType

DEFAULT_GENERIC_SUFFIX = "XX"


def is_no_equivalent(courses: Sequence[Course]) -> bool:
    """Check whether the output list is just the NONE sentinel."""
    return len(courses) == 1 and courses[0] == NO_EQUIVALENT


def determine_equiv_type(
    courses: Sequence[Course],
    generic_suffix: str = DEFAULT_GENERIC_SUFFIX,
    special: bool = False,
) -> EquivType:
    """
    Classify an equivalency from its output courses.

    Args:
        courses: Output (institution) courses
        generic_suffix: Number ending that marks a generic course at this
            institution
        special: Source explicitly flagged the equivalency for manual review

    Returns:
        The equivalency type
    """
    if courses is None:
        raise ValueError("No courses passed")

    if is_no_equivalent(courses):
        return EquivType.NONE

    if special:
        return EquivType.SPECIAL

    if generic_suffix and any(c.number.endswith(generic_suffix.upper()) for c in courses):
        return EquivType.GENERIC

    return EquivType.DIRECT
