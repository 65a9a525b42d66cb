"""
Course Strings - Turn table cells into Course objects.
======================================================

Two cell shapes are handled:

- Single-course cells such as ``"MTH 263 4"`` (subject, number, optional
  credit expression), via ``parse_course_cell``.
- Composite cells where several identifiers share one string, such as
  ``"CHEM 104 & 104L"`` or ``"ENG 111/112"``, via ``tokenize_courses``.
  A number without its own subject inherits the most recent subject.
"""

import re
from typing import Optional

from pydantic import ValidationError

from novaxfer.parsing.credits import credits_from_expression
from novaxfer.shared.errors import ParseError
from novaxfer.shared.schemas import Course, Credits, CreditStatus
from novaxfer.shared.utils import normalize_whitespace

# One optional subject (2-4 letters) followed by a number token. Numbers
# start with a digit and may carry lab ("L") or wildcard ("X") characters.
COURSE_SEGMENT = re.compile(r"([A-Z]{2,4} ?)?(\d[0-9LX]{1,3})")

# Whole-string test: segments joined by "&", "/" or a space. A separator
# must be followed by another segment, so a cell cut off after "&" or "/"
# does not match on its own.
_SEGMENT = r"(?:[A-Z]{2,4} ?)?\d[0-9LX]{1,3}"
COURSE_STRING = re.compile(rf"^{_SEGMENT}(?:(?: ?& ?|/ ?| ){_SEGMENT})*$")

_FIRST_DIGIT = re.compile(r"\d")


def make_course(subject: str, number: str, credits: Credits = CreditStatus.UNKNOWN) -> Course:
    """Build a Course, reporting invalid identifiers as a ParseError."""
    try:
        return Course(subject=subject, number=number, credits=credits)
    except ValidationError as e:
        raise ParseError(f"invalid course {subject!r} {number!r}: {e.errors()[0]['msg']}") from e


def is_course_string(text: str) -> bool:
    """Check whether the whole of ``text`` is a composite course identifier."""
    return bool(COURSE_STRING.match(text.strip()))


def separate_course_parts(segment: str) -> list[str]:
    """
    Split one matched segment into subject and number tokens.

    Example:
        >>> separate_course_parts("CHEM 104")
        ['CHEM', '104']
        >>> separate_course_parts("CHEM104")
        ['CHEM', '104']
        >>> separate_course_parts("104L")
        ['104L']
    """
    segment = segment.strip()
    if " " in segment:
        return segment.split()

    match = _FIRST_DIGIT.search(segment)
    if match is None or match.start() == 0:
        return [segment]
    return [segment[: match.start()], segment[match.start():]]


def split_course_tokens(raw: str) -> list[str]:
    """Flatten a composite course string into subject and number tokens."""
    tokens: list[str] = []
    for match in COURSE_SEGMENT.finditer(raw):
        tokens.extend(separate_course_parts(match.group(0)))
    return tokens


def tokenize_courses(raw: str) -> list[Course]:
    """
    Parse a composite course string into courses.

    Credits are never present in these strings, so every course is marked
    UNCLEAR.

    Raises:
        ParseError: If nothing course-like is found, or a number appears
            before any subject
    """
    tokens = split_course_tokens(normalize_whitespace(raw))
    if not tokens:
        raise ParseError(f"no course identifiers in {raw!r}")

    courses: list[Course] = []
    subject: Optional[str] = None
    for token in tokens:
        if token[0].isalpha():
            subject = token
        elif subject is None:
            raise ParseError(f"course number {token!r} precedes any subject in {raw!r}")
        else:
            courses.append(make_course(subject, token, CreditStatus.UNCLEAR))

    if not courses:
        raise ParseError(f"subject without course number in {raw!r}")

    return courses


def parse_course_cell(text: str) -> Course:
    """
    Parse a single-course cell of the form ``SUBJECT NUMBER [CREDITS]``.

    Raises:
        ParseError: If the cell lacks a subject and number, or its credit
            expression is malformed
    """
    parts = normalize_whitespace(text).split(" ")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ParseError(f"expected 'SUBJECT NUMBER [CREDITS]', got {text!r}")

    credits: Credits = CreditStatus.UNKNOWN
    if len(parts) >= 3:
        credits = credits_from_expression(parts[2])

    return make_course(parts[0], parts[1], credits)
