from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

_ISO_DAY_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})")

_TRUE_WORDS = {"1", "true", "yes", "y", "si", "sí", "activo", "habilitado"}
_FALSE_WORDS = {"0", "false", "no", "n", "inactivo", "deshabilitado"}


def field_value(record: Any, path: str) -> Any:
    """Read a dotted path ("caja.descripcion") from a record, None when any hop is missing."""
    current = record
    for part in str(path).split("."):
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
        if current is None:
            return None
    return current


def normalize_text(value: Any) -> str:
    text = unicodedata.normalize("NFKD", str(value))
    stripped = "".join(ch for ch in text if not unicodedata.combining(ch))
    return stripped.casefold()


def parse_number(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return None if value.is_nan() else value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))
    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text.replace(",", "."))
    except InvalidOperation:
        return None
    if number.is_nan() or number.is_infinite():
        return None
    return number


def parse_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    return None


def parse_instant(value: Any) -> datetime | None:
    """Timezone-aware instant for ordering; naive values are read as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def calendar_day(value: Any) -> date | None:
    """Calendar day as written in the value itself, without any timezone shift."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    match = _ISO_DAY_RE.match(str(value).strip())
    if not match:
        return None
    try:
        return date.fromisoformat(match.group(1))
    except ValueError:
        return None
