from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from ..models.config_models import FieldKind, FieldSpec
from .resolver import ABSENT, is_blank

"""Value normalizer: raw cell values -> canonical typed values.

Every function here degrades instead of raising: currency, percentage and
quantity fall back to zero, text and identifiers to an empty string, dates to
None. Whether a degraded value is fatal for the row (an empty natural key) is
decided by the reconciler, not here.
"""

__all__ = [
    "DEFAULT_CURRENCY_CODES",
    "DEFAULT_CURRENCY_SYMBOLS",
    "SERIAL_EPOCH_OFFSET",
    "normalize_currency",
    "normalize_date",
    "normalize_identifier",
    "normalize_percentage",
    "normalize_quantity",
    "normalize_text",
    "normalize_value",
]

DEFAULT_CURRENCY_SYMBOLS: tuple[str, ...] = ("£", "$", "€", "¥")
DEFAULT_CURRENCY_CODES: tuple[str, ...] = ("GBP", "USD", "EUR")

# Spreadsheet serial day of 1970-01-01
SERIAL_EPOCH_OFFSET = 25569
SECONDS_PER_DAY = 86400
_UNIX_EPOCH = datetime(1970, 1, 1)

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

_NON_DECIMAL_RX = re.compile(r"[^\d.]")
_NON_INTEGER_RX = re.compile(r"[^\d-]")
_ISO_DATE_RX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_DMY_RX = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _to_decimal(text: str) -> Decimal:
    try:
        result = Decimal(text)
        if not result.is_finite() or result < 0:
            return ZERO
        return result.quantize(TWO_PLACES)
    except InvalidOperation:
        return ZERO


def normalize_currency(
    value: Any,
    symbols: tuple[str, ...] = DEFAULT_CURRENCY_SYMBOLS,
    codes: tuple[str, ...] = DEFAULT_CURRENCY_CODES,
) -> Decimal:
    """'£1,234.50' -> Decimal('1234.50'); unparsable or empty -> Decimal('0.00')."""
    if is_blank(value):
        return ZERO
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return ZERO
        return _to_decimal(str(value))

    text = str(value)
    for code in codes:
        text = re.sub(re.escape(code), "", text, flags=re.IGNORECASE)
    for symbol in symbols:
        text = text.replace(symbol, "")
    text = text.replace(",", "")
    text = _NON_DECIMAL_RX.sub("", text)
    if not text:
        return ZERO
    return _to_decimal(text)


def normalize_percentage(value: Any) -> Decimal:
    """'17.5%' -> Decimal('17.50'); unparsable, empty or negative -> Decimal('0.00')."""
    if is_blank(value):
        return ZERO
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return ZERO
        return _to_decimal(str(value))
    text = str(value).strip()
    if text.endswith("%"):
        text = text[:-1].strip()
    return _to_decimal(text)


def normalize_quantity(value: Any) -> int:
    """'1,234' -> 1234, 12.7 -> 12; unparsable or empty -> 0."""
    if is_blank(value):
        return 0
    if _is_number(value):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return 0
    text = str(value).replace(",", "")
    text = text.split(".", 1)[0]
    text = _NON_INTEGER_RX.sub("", text)
    try:
        return int(text)
    except ValueError:
        return 0


def normalize_text(value: Any) -> str:
    if is_blank(value):
        return ""
    return str(value).strip()


def normalize_identifier(value: Any, strip_hyphens: bool = False) -> str:
    """Trim an SKU/ISBN; hyphens are removed only when strip_hyphens is set.

    Spreadsheets hand ISBNs back as floats (9781234567897.0); integral floats
    are rendered without the fractional part.
    """
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value).strip()
    if strip_hyphens:
        text = text.replace("-", "")
    return text


def _serial_to_date(serial: float) -> date | None:
    try:
        moment = _UNIX_EPOCH + timedelta(seconds=(serial - SERIAL_EPOCH_OFFSET) * SECONDS_PER_DAY)
    except (OverflowError, ValueError):
        return None
    return moment.date()


def _parse_dmy(text: str) -> date | None:
    match = _DMY_RX.match(text)
    if match is None:
        return None
    day, month, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_iso(text: str) -> date | None:
    if not _ISO_DATE_RX.match(text):
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def normalize_date(value: Any) -> date | None:
    """Accepts native dates, serial numbers, ISO strings and DD/MM/YYYY strings.

    Anything else, and any out-of-range result, is None.
    """
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return _serial_to_date(float(value))
    if isinstance(value, str):
        text = value.strip()
        return _parse_iso(text) or _parse_dmy(text)
    return None


def normalize_value(
    value: Any,
    spec: FieldSpec,
    currency_symbols: tuple[str, ...] = DEFAULT_CURRENCY_SYMBOLS,
    currency_codes: tuple[str, ...] = DEFAULT_CURRENCY_CODES,
) -> Any:
    """Normalize one resolved value according to its field kind.

    ABSENT (no column, blank cell) becomes None for every kind, so that a
    merge never overwrites a stored value with a default.
    """
    if value is ABSENT:
        return None
    kind = spec.kind
    if kind is FieldKind.CURRENCY:
        return normalize_currency(value, currency_symbols, currency_codes)
    if kind is FieldKind.PERCENTAGE:
        return normalize_percentage(value)
    if kind is FieldKind.QUANTITY:
        return normalize_quantity(value)
    if kind is FieldKind.DATE:
        return normalize_date(value)
    if kind is FieldKind.IDENTIFIER:
        return normalize_identifier(value, strip_hyphens=spec.strip_hyphens)
    return normalize_text(value)
