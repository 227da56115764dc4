"""
Status classification rules.

Status is free text typed by people or read off scanned documents. This module
is the only place that interprets it; everything else works with the
DisplayCategory it returns.
"""

from datetime import date
from typing import Literal

from .models import DisplayCategory
from .parsers import parse_business_date

FULFILLED_KEYWORDS = ("received", "recv'd")
EXCEPTION_KEYWORDS = ("back", "delay")
IN_TRANSIT_KEYWORDS = ("transit", "ship")

StatusTone = Literal["fulfilled", "late", "open"]


def _contains_any(status: str | None, keywords: tuple[str, ...]) -> bool:
    normalized = (status or "").lower()
    return any(k in normalized for k in keywords)


def is_fulfilled(status: str | None) -> bool:
    return _contains_any(status, FULFILLED_KEYWORDS)


def is_late(
    status: str | None,
    expected_date_str: str | None,
    today: date | None = None,
) -> bool:
    """
    An order is late only if it is not received and its expected date has passed.

    Orders with an unparseable expected date are never late.
    """
    if is_fulfilled(status):
        return False

    expected = parse_business_date(expected_date_str)
    if expected is None:
        return False

    today = today or date.today()
    return expected < today


def display_category(status: str | None) -> DisplayCategory:
    """Map free-text status to a category. First matching rule wins."""
    if _contains_any(status, FULFILLED_KEYWORDS):
        return DisplayCategory.FULFILLED
    if _contains_any(status, EXCEPTION_KEYWORDS):
        return DisplayCategory.EXCEPTIONS
    if _contains_any(status, IN_TRANSIT_KEYWORDS):
        return DisplayCategory.IN_TRANSIT
    return DisplayCategory.PENDING


def status_tone(
    status: str | None,
    expected_date_str: str | None,
    today: date | None = None,
) -> StatusTone:
    """Colour hint for the status cell."""
    if is_fulfilled(status):
        return "fulfilled"
    if is_late(status, expected_date_str, today):
        return "late"
    return "open"
