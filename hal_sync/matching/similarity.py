from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Optional, Sequence, Union

from rapidfuzz.distance import Levenshtein

# exp(-days / k): ~0.8 for a 30-day gap, ~0.08 for a year
DATE_DECAY_DAYS = 150.0
AUTHOR_SEPARATOR = ", "

_PARTIAL_DATE = re.compile(r"^(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?$")


def parse_date(value: Any) -> Optional[dt.date]:
    """
    Convert a date-like value to a calendar date; return None when absent or
    unparseable. Accepts date/datetime objects, `YYYY`, `YYYY-MM`, `YYYY-MM-DD`
    and ISO-8601 datetimes (trailing `Z` allowed).
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        return None
    v = value.strip()
    if not v:
        return None
    m = _PARTIAL_DATE.match(v)
    if m:
        try:
            return dt.date(int(m.group(1)), int(m.group(2) or 1), int(m.group(3) or 1))
        except ValueError:
            return None
    try:
        return dt.datetime.fromisoformat(v.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def string_similarity(str1: str, str2: str) -> float:
    """
    Levenshtein distance turned into a similarity: 1 - distance / max length.

    1.0 for equal strings, 0.0 only when every position must be substituted
    (or one side is empty and the other is not).
    """
    if str1 == str2:
        return 1.0
    distance = Levenshtein.distance(str1, str2)
    max_length = max(len(str1), len(str2))
    return 1.0 - (distance / max_length)


def _as_list(value: Union[str, Sequence[str], None]) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def title_similarity(titles: Union[str, Sequence[str], None], title: Optional[str]) -> Optional[float]:
    """
    Best similarity between `title` and any of the language variants in
    `titles`. None when either side has no title.
    """
    if not title:
        return None
    variants = [t for t in _as_list(titles) if t]
    if not variants:
        return None
    return max(string_similarity(variant, title) for variant in variants)


def authors_similarity(
    authors_a: Union[str, Sequence[str], None],
    authors_b: Union[str, Sequence[str], None],
) -> Optional[float]:
    """
    Compare author lists as single joined strings, so that accents, case and
    small misalignments only cost a few edits instead of whole mismatches.
    """
    joined_a = AUTHOR_SEPARATOR.join(_as_list(authors_a))
    joined_b = AUTHOR_SEPARATOR.join(_as_list(authors_b))
    if not (joined_a and joined_b):
        return None
    return string_similarity(joined_a, joined_b)


def date_similarity(date_a: Any, date_b: Any) -> Optional[float]:
    """
    exp(-|days| / 150). Tolerant to same-month slippage, near zero after a
    year. A typo on the year alone (2021 vs 2022) is not recovered.
    """
    a = parse_date(date_a)
    b = parse_date(date_b)
    if a is None or b is None:
        return None
    difference_in_days = abs((a - b).days)
    return math.exp(-difference_in_days / DATE_DECAY_DAYS)
