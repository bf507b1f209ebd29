from __future__ import annotations

import math
import sys
from typing import Any, Mapping


def get_path(record: Any, *keys: str) -> Any:
    current = record
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def as_mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, Mapping):
        return value
    return None


def as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def coerce_float(value: Any) -> float | None:
    # bool is an int subclass; a True confidence is a payload bug, not 1.0.
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # int too large for a float; saturate so range checks still clamp it.
            number = math.copysign(sys.float_info.max, value)
    elif isinstance(value, str):
        text = value.strip().rstrip("%").strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_int(value: Any) -> int | None:
    number = coerce_float(value)
    if number is None:
        return None
    return round_half_up(number)


def is_integral(value: Any) -> bool:
    number = coerce_float(value)
    return number is not None and float(number).is_integer()


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def coerce_text(value: Any) -> str | None:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return None
    text = str(value).strip()
    return text or None


def has_content(record: Mapping[str, Any]) -> bool:
    return any(value is not None for value in record.values())
