"""
Credit Interpreter - Parse free-text credit expressions.
=======================================================

Examples:
    ""        -> []
    "3,3"     -> [3, 3]
    "3-4"     -> [CreditRange(min=3, max=4)]
    "4-3"     -> [CreditRange(min=3, max=4)]
    "3,1-5,4" -> [3, CreditRange(min=1, max=5), 4]
"""

import re

from novaxfer.shared.errors import ParseError
from novaxfer.shared.schemas import CreditRange, CreditSpec, CreditStatus, Credits

_INTEGER = re.compile(r"^\d+$")


def _parse_int(text: str, expression: str) -> int:
    text = text.strip()
    if not _INTEGER.match(text):
        raise ParseError(f"invalid credit value {text!r} in {expression!r}")
    return int(text)


def interpret_credits(expression: str) -> list[CreditSpec]:
    """
    Parse a credit expression into an ordered list of credit specs.

    Comma-separated segments are independent entries. A hyphenated segment
    is a range; a range whose ends are equal collapses to a scalar, and
    reversed ranges are normalized.

    Raises:
        ParseError: If any segment is not an integer or integer range
    """
    expression = expression.strip() if expression else ""
    if expression == "":
        return []

    credits: list[CreditSpec] = []
    for segment in expression.replace(" ", "").split(","):
        if "-" in segment:
            parts = segment.split("-")
            if len(parts) != 2:
                raise ParseError(f"invalid credit range {segment!r} in {expression!r}")
            a = _parse_int(parts[0], expression)
            b = _parse_int(parts[1], expression)
            if a == b:
                credits.append(a)
            else:
                credits.append(CreditRange(min=min(a, b), max=max(a, b)))
        else:
            credits.append(_parse_int(segment, expression))

    return credits


def credits_from_expression(expression: str) -> Credits:
    """
    Reduce a credit expression to the single value stored on a Course.

    No specs means the credits are unknown; several specs can't be pinned
    to one course, so they're marked unclear.
    """
    specs = interpret_credits(expression)
    if not specs:
        return CreditStatus.UNKNOWN
    if len(specs) > 1:
        return CreditStatus.UNCLEAR
    return specs[0]
