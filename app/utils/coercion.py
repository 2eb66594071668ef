"""Normalization helpers for loosely typed, CSV-seeded documents.

Seeded documents store flags as ``true`` or ``"True"``, ids as numbers or
strings, and amounts and dates as free text. Every reader goes through
these helpers so the rest of the application only sees clean types.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple, Union

TRUE_VALUES = {"true", "1", "yes", "y", "si", "sí", "t"}

_INTEGRAL_FLOAT_RE = re.compile(r"^-?\d+\.0+$")
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d", "%d-%m-%Y")


def to_bool(value: Any) -> bool:
    """Interpret a boolean-like value.

    Unknown strings and ``None`` are treated as False.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    return str(value).strip().lower() in TRUE_VALUES


def coerce_key(value: Any) -> Optional[str]:
    """Normalize an id to its string form so ``5``, ``5.0`` and ``"5"`` compare equal."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, Decimal):
        return str(int(value)) if value == value.to_integral_value() else str(value)
    text = str(value).strip()
    if not text:
        return None
    if _INTEGRAL_FLOAT_RE.match(text):
        return text.split(".", 1)[0]
    return text


def key_sort_value(key: Optional[str]) -> Tuple[int, Union[int, str]]:
    """Sort key that orders numeric ids numerically and puts other ids after them."""
    if key is None:
        return (2, "")
    if key.lstrip("-").isdigit():
        return (0, int(key))
    return (1, key)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse an amount; accepts numbers, ``"1500.50"`` and ``"1.500,50"`` style text."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value).strip().replace("$", "").replace(" ", "")
    if not text:
        return None
    if "," in text and "." in text:
        # 1.500,50 -> 1500.50
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    key = coerce_key(value)
    if key is None or not key.lstrip("-").isdigit():
        return None
    return int(key)


def to_date(value: Any) -> Optional[date]:
    """Parse a date from a ``date``, ``datetime`` or one of the seeded text formats."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    # ISO timestamps such as 2024-03-01T00:00:00Z
    if "T" in text:
        text = text.split("T", 1)[0]
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def one_year_before(reference: date) -> date:
    """Same calendar day one year earlier; Feb 29 falls back to Feb 28."""
    try:
        return reference.replace(year=reference.year - 1)
    except ValueError:
        return reference.replace(year=reference.year - 1, day=28)
