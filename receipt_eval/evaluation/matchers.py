"""Field comparators that tolerate formatting differences between values."""

import math
import re
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from rapidfuzz.distance import Levenshtein


# =============================================================================
# Dates
# =============================================================================

def _split_parts(value: str, separator: str) -> List[str]:
    """Split on a separator, then on spaces inside each trimmed part."""
    parts = []
    for part in value.split(separator):
        parts.extend(part.strip().split(" "))
    return parts


def _to_iso(year: str, month: str, day: str) -> str:
    return "-".join([year.strip(), month.strip().zfill(2), day.strip().zfill(2)])


def _day_month_year(separator: str) -> Callable[[str], Optional[str]]:
    def normalize(value: str) -> Optional[str]:
        parts = _split_parts(value, separator)
        if len(parts) < 3 or not all(parts[:3]):
            return None
        day, month, year = parts[:3]
        return _to_iso(year, month, day)
    return normalize


def _year_month_day(separator: str) -> Callable[[str], Optional[str]]:
    def normalize(value: str) -> Optional[str]:
        parts = _split_parts(value, separator)
        if len(parts) < 3 or not all(parts[:3]):
            return None
        year, month, day = parts[:3]
        return _to_iso(year, month, day)
    return normalize


def _day_month_short_year(value: str) -> Optional[str]:
    parts = _split_parts(value, ".")
    if len(parts) < 3 or not all(parts[:3]):
        return None
    day, month, year = parts[:3]
    short_year = int(year)
    full_year = 2000 + short_year if short_year >= 20 else 1900 + short_year
    return _to_iso(str(full_year), month, day)


# Tried in this order; the first pattern found anywhere in the value decides.
DATE_FORMATS: List[Tuple[re.Pattern, Callable[[str], Optional[str]]]] = [
    # 21.02.2023, 21 . 02 . 2023, 15.11 2021
    (re.compile(r"[0-9]{1,2}(?:\s?\.\s?|\s)[0-9]{1,2}(?:\s?\.\s?|\s)[0-9]{4}"), _day_month_year(".")),
    # 2023/02/21
    (re.compile(r"[0-9]{4}\s?/\s?[0-9]{1,2}\s?/\s?[0-9]{1,2}"), _year_month_day("/")),
    # 21/02/2023
    (re.compile(r"[0-9]{1,2}\s?/\s?[0-9]{1,2}\s?/\s?[0-9]{4}"), _day_month_year("/")),
    # 2023-02-21
    (re.compile(r"[0-9]{4}(?:-|\s)[0-9]{2}(?:-|\s)[0-9]{2}"), _year_month_day("-")),
    # 21-02-2023, 21-2 2023
    (re.compile(r"[0-9]{1,2}(?:-|\s)[0-9]{1,2}(?:-|\s)[0-9]{4}"), _day_month_year("-")),
    # 21.02.23
    (re.compile(r"[0-9]{1,2}(?:\s?\.\s?|\s)[0-9]{1,2}(?:\s?\.\s?|\s)[0-9]{2}"), _day_month_short_year),
]


def normalize_date(value: str) -> Optional[str]:
    """Find a date inside a string and normalize it to YYYY-MM-DD.

    Args:
        value: Raw text that may contain a date

    Returns:
        ISO formatted date or None if no known format was found
    """
    for pattern, normalize in DATE_FORMATS:
        match = pattern.search(value)
        if match:
            return normalize(match.group(0))
    return None


# =============================================================================
# Numbers
# =============================================================================

NUMBER_PATTERN = re.compile(r"[0-9]+(?:\s?[,.]\s?[0-9]{1,2})?")


def normalize_number(value: str) -> Optional[str]:
    """Extract the largest number in a string as integer cents.

    Handles formats like:
    - "12,40 EUR" (comma as decimal separator)
    - "$12.40" (with currency symbol)
    - "42 13.72" (several candidates, the largest wins)

    Args:
        value: String containing one or more numbers

    Returns:
        Amount in cents as a string (e.g. "1240") or None if no number found
    """
    candidates = [
        float(m.group(0).replace(" ", "").replace(",", "."))
        for m in NUMBER_PATTERN.finditer(value)
    ]
    # Overlong digit runs overflow to inf and are not amounts
    candidates = [c for c in candidates if math.isfinite(c * 100)]
    if not candidates:
        return None
    return str(round(max(candidates) * 100))


# =============================================================================
# Strings
# =============================================================================

def normalize_string(value: str) -> str:
    """Trim and lower-case a string."""
    return value.strip().lower()


# =============================================================================
# Comparators
# =============================================================================

class FieldComparator(ABC):
    """Decides whether two optional field values denote the same thing.

    Two missing values are equal, a missing and a present value never are.
    """

    def compare(self, a: Optional[str], b: Optional[str]) -> bool:
        if a is None or b is None:
            return a is None and b is None
        return self._compare_present(a, b)

    __call__ = compare

    @abstractmethod
    def _compare_present(self, a: str, b: str) -> bool:
        pass


class DateComparator(FieldComparator):
    """Dates match when they normalize to the same calendar day.

    Two strings without a recognizable date normalize to None and are
    therefore considered equal.
    """

    def _compare_present(self, a: str, b: str) -> bool:
        return normalize_date(a) == normalize_date(b)


class NumberComparator(FieldComparator):
    """Amounts match when their largest numbers are equal to the cent."""

    def _compare_present(self, a: str, b: str) -> bool:
        return normalize_number(a) == normalize_number(b)


class StringComparator(FieldComparator):
    """Strings match within a Levenshtein edit distance.

    Args:
        max_edit_distance: Allowed edits. Defaults to 10% of the average
            length of the two raw strings, rounded up.
    """

    def __init__(self, max_edit_distance: Optional[int] = None):
        self.max_edit_distance = max_edit_distance

    def threshold(self, a: str, b: str) -> int:
        if self.max_edit_distance is not None:
            return self.max_edit_distance
        return math.ceil(0.1 * ((len(a) + len(b)) / 2))

    def _compare_present(self, a: str, b: str) -> bool:
        distance = Levenshtein.distance(normalize_string(a), normalize_string(b))
        return distance <= self.threshold(a, b)


_date_comparator = DateComparator()
_number_comparator = NumberComparator()


def compare_dates(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two values as dates."""
    return _date_comparator.compare(a, b)


def compare_numbers(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two values as amounts."""
    return _number_comparator.compare(a, b)


def compare_strings(
    a: Optional[str],
    b: Optional[str],
    max_edit_distance: Optional[int] = None
) -> bool:
    """Compare two values as free text within an edit distance."""
    return StringComparator(max_edit_distance).compare(a, b)
