"""
Parsers for the loosely formatted text the registry receives.

These parsers handle the messy reality of scanned and exported order data:
- Business dates written as MM/DD/YY or MM/DD/YYYY, often with stray characters
- Model responses that wrap a JSON payload in prose
"""

import json
import re
from datetime import date
from functools import lru_cache
import pandas as pd


class BusinessDateParser:
    """
    Parses business dates like "01/14/26" into calendar dates.

    Anything other than digits and "/" is discarded first, so OCR noise such
    as "01/14/26*" or " 1/ 4/2026" still parses. Two-digit years are 20xx.
    Invalid input always yields None, never an exception.
    """

    def __init__(self, cache_size: int = 4096):
        # Bounded memo of raw text -> parsed date
        self._parse_cached = lru_cache(maxsize=cache_size)(self._parse_uncached)

    def parse(self, date_str: str | None) -> date | None:
        """Parse a single business date string."""
        if date_str is None or pd.isna(date_str):
            return None

        date_str = str(date_str).strip()
        if not date_str:
            return None

        return self._parse_cached(date_str)

    def cache_info(self):
        return self._parse_cached.cache_info()

    def _parse_uncached(self, date_str: str) -> date | None:
        cleaned = re.sub(r"[^\d/]", "", date_str)
        parts = cleaned.split("/")
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            return None

        month, day, year = (int(p) for p in parts)
        if year < 100:
            year += 2000

        try:
            return date(year, month, day)
        except ValueError:
            # Month 13, Feb 30, year 0...
            return None

    def parse_series(self, series: pd.Series) -> pd.Series:
        """
        Parse a column of business-date text.

        Returns an object Series of date or None, aligned with the input index.
        Each distinct string is parsed once.
        """
        parsed = {text: self.parse(text) for text in series.dropna().unique()}
        return pd.Series(
            [parsed.get(text) if pd.notna(text) else None for text in series],
            index=series.index,
            dtype="object",
        )


_default_parser = BusinessDateParser()


def parse_business_date(date_str: str | None) -> date | None:
    """Parse a business date with the shared, memoized parser."""
    return _default_parser.parse(date_str)


def parse_business_dates(series: pd.Series) -> pd.Series:
    """Parse a column of business dates with the shared parser."""
    return _default_parser.parse_series(series)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end. Positive when end is later."""
    return (end - start).days


_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def extract_json_block(text: str | None) -> dict | None:
    """
    Pull the JSON object out of a model response.

    Models sometimes add a preamble or trailing notes around the payload, so
    everything from the first "{" to the last "}" is taken as the object.
    """
    if not text:
        return None

    match = _JSON_BLOCK.search(text)
    candidate = match.group(0) if match else text
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        return None

    return payload if isinstance(payload, dict) else None
