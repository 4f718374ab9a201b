"""
Normalize raw query values for chart display.

Drivers hand back datetimes, decimals, Neo4j integer and temporal structures
and nested objects. Charts need primitives, so everything is reduced to a
string, number, boolean or None.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Union

DisplayValue = Union[str, int, float, bool, None]


def _is_neo4j_integer(value: Mapping) -> bool:
    """Serialized Neo4j Integer: {"low": int, "high": int}."""
    return (
        "low" in value
        and "high" in value
        and isinstance(value["low"], (int, float))
        and not isinstance(value["low"], bool)
    )


def _is_neo4j_temporal(value: Mapping) -> bool:
    """Serialized Neo4j Date/DateTime (year, month, day) or Time (hour, minute, second)."""
    if "year" in value and "month" in value and "day" in value:
        return True
    return "hour" in value and "minute" in value and "second" in value


def _pad(part: Any) -> str:
    try:
        number = int(part or 0)
    except (TypeError, ValueError):
        number = 0
    return f"{number:02d}"


def _format_neo4j_temporal(value: Mapping) -> str:
    year, month, day = value.get("year"), value.get("month"), value.get("day")
    hour, minute, second = value.get("hour"), value.get("minute"), value.get("second")

    if year is not None and month is not None and day is not None:
        date_part = f"{year}-{_pad(month)}-{_pad(day)}"
        if hour is not None and minute is not None:
            return f"{date_part} {_pad(hour)}:{_pad(minute)}:{_pad(second)}"
        return date_part
    return f"{_pad(hour)}:{_pad(minute)}:{_pad(second)}"


def normalize_value(value: Any) -> DisplayValue:
    """
    Normalize a single value for chart display.

    - None -> None (callers decide how to render gaps)
    - str / int / float / bool -> unchanged
    - datetime -> "YYYY-MM-DD HH:MM:SS" (aware values converted to UTC)
    - date / time -> ISO format
    - Decimal -> float
    - bytes -> UTF-8 text, or hex if not decodable
    - Neo4j Integer {low, high} -> low
    - Neo4j temporal {year, month, day, ...} -> formatted string
    - anything else -> compact JSON, falling back to str()
    """
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    if isinstance(value, Mapping):
        if _is_neo4j_integer(value):
            return value["low"]
        if _is_neo4j_temporal(value):
            return _format_neo4j_temporal(value)
        value = dict(value)
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def normalize_row(row: Mapping[str, Any]) -> dict[str, DisplayValue]:
    """Normalize every column of a result row."""
    return {column: normalize_value(value) for column, value in row.items()}
