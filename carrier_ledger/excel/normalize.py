from __future__ import annotations

import logging
import math
import re
import warnings
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd

from ..models.staged_record import Approval
from .reader import is_blank, serial_to_date

"""Cell normalizers for imported rows.

None of these raise on bad input. An unparseable date becomes today, an
unparseable amount becomes 0, an unknown approval token becomes NO. The
fallbacks are logged at DEBUG only.
"""

__all__ = [
    "ISO_DATE_FMT",
    "APPROVAL_TRUE_TOKENS",
    "cell_text",
    "today_iso",
    "us_date_to_iso",
    "normalize_date",
    "normalize_amount",
    "normalize_approval",
]

logger = logging.getLogger(__name__)

ISO_DATE_FMT = "%Y-%m-%d"
APPROVAL_TRUE_TOKENS = frozenset({"YES", "Y", "TRUE", "1"})

# leading decimal number; trailing text ("1234.50 USD", "12abc") is ignored
LEADING_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def cell_text(value: Any) -> str:
    """Stringify a cell; integral floats lose their ".0" (MC 123456.0 -> "123456")."""
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def today_iso(timezone: str = "UTC") -> str:
    return datetime.now(ZoneInfo(timezone)).strftime(ISO_DATE_FMT)


def us_date_to_iso(text: str) -> str | None:
    """Reassemble "M/D/YYYY" as "YYYY-MM-DD".

    Returns None unless the text splits into exactly three "/" parts. Parts
    are not range-checked: "13/40/2024" gives "2024-13-40".
    """
    if "/" not in text:
        return None
    parts = text.split("/")
    if len(parts) != 3:
        return None
    month, day, year = parts
    return f"{year}-{month.rjust(2, '0')}-{day.rjust(2, '0')}"


def normalize_date(value: Any, timezone: str = "UTC") -> str:
    if is_blank(value):
        return today_iso(timezone)

    if isinstance(value, (datetime, date)):
        return value.strftime(ISO_DATE_FMT)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return serial_to_date(value).strftime(ISO_DATE_FMT)
        except ValueError:
            logger.debug("date serial %r out of range, defaulting to today", value)
            return today_iso(timezone)

    text = str(value).strip()
    us = us_date_to_iso(text)
    if us is not None:
        return us

    with warnings.catch_warnings():
        # dateutil fallback warns about format inference on free text
        warnings.simplefilter("ignore", UserWarning)
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            parsed = pd.NaT
    if parsed is pd.NaT or pd.isna(parsed):
        logger.debug("unparseable date %r, defaulting to today", value)
        return today_iso(timezone)
    return parsed.strftime(ISO_DATE_FMT)


def normalize_amount(value: Any) -> str:
    """Return the amount as a decimal string: "$1,234.50" -> "1234.5", bad input -> "0".

    Only the leading number counts: "1,234.50 USD" -> "1234.5", "12abc" -> "12",
    "1_000" -> "1".
    """
    if is_blank(value):
        return "0"
    cleaned = str(value).replace("$", "").replace(",", "").strip()
    match = LEADING_NUMBER_RE.match(cleaned)
    if match is None:
        logger.debug("unparseable amount %r, defaulting to 0", value)
        return "0"
    number = float(match.group())
    if not math.isfinite(number):
        return "0"
    if number.is_integer():
        return str(int(number))
    return repr(number)


def normalize_approval(value: Any) -> str:
    if is_blank(value):
        return Approval.NO.value
    token = cell_text(value).upper().strip()
    if token in APPROVAL_TRUE_TOKENS:
        return Approval.YES.value
    return Approval.NO.value
