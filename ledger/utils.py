from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Optional

MIN_YEAR = 1900
MAX_YEAR = 2100

MDY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
DMY_SLASH_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
DMY_DASH_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
YMD_SLASH_RE = re.compile(r"^(\d{4})/(\d{2})/(\d{2})$")

AMOUNT_STRIP_RE = re.compile(r"[^0-9.\-]")
LEADING_FLOAT_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)")

# (pattern, order of year/month/day groups)
FIXED_DATE_FORMATS = [
    (ISO_RE, (1, 2, 3)),
    (DMY_SLASH_RE, (3, 2, 1)),
    (DMY_DASH_RE, (3, 2, 1)),
    (YMD_SLASH_RE, (1, 2, 3)),
]

FALLBACK_DATE_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M",
    "%Y.%m.%d",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%B %d %Y",
    "%a %b %d %Y",
    "%d-%b-%Y",
    "%d-%b-%y",
]


def _build_date(year: int, month: int, day: int) -> Optional[str]:
    if not (MIN_YEAR <= year <= MAX_YEAR):
        return None
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[str]:
    """Parse a legacy date value into ``YYYY-MM-DD``.

    ``M/D/YYYY`` is tried first, then a fixed set of unambiguous layouts whose
    segments are reordered explicitly, and finally a list of free-form
    layouts. Returns ``None`` when nothing matches.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    match = MDY_RE.match(text)
    if match:
        month, day, year = (int(group) for group in match.groups())
        if 1 <= month <= 12 and 1 <= day <= 31 and MIN_YEAR <= year <= MAX_YEAR:
            parsed = _build_date(year, month, day)
            if parsed:
                return parsed

    for pattern, order in FIXED_DATE_FORMATS:
        match = pattern.match(text)
        if match:
            year, month, day = (int(match.group(idx)) for idx in order)
            parsed = _build_date(year, month, day)
            if parsed:
                return parsed

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            parsed_dt = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if MIN_YEAR <= parsed_dt.year <= MAX_YEAR:
            return parsed_dt.date().isoformat()
    return None


def parse_amount(value: Any) -> Optional[float]:
    """Strip currency noise and read the leading number, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    cleaned = AMOUNT_STRIP_RE.sub("", str(value))
    match = LEADING_FLOAT_RE.match(cleaned)
    if not match:
        return None
    amount = float(match.group(0))
    if not math.isfinite(amount):
        return None
    return amount


def describe_payload(payload: dict) -> str:
    return "; ".join(f"{key}: {value}" for key, value in payload.items() if isinstance(value, str) and value)


__all__ = ["parse_date", "parse_amount", "describe_payload", "MIN_YEAR", "MAX_YEAR"]
