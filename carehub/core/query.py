"""
Lenient readers for optional query string filters. Blank values, the literal
"undefined" browsers send for unset fields, and unparseable input all read as
absent.
"""
from typing import Any, Optional
import math

ABSENT_VALUES = ("", "undefined", "null")


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if text in ABSENT_VALUES:
        return None
    return text


def parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = _text(value)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    text = _text(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_bool(value: Any) -> Optional[bool]:
    """Only "true" and "false" count; anything else means no filter."""
    if isinstance(value, bool):
        return value
    text = _text(value)
    if text == "true":
        return True
    if text == "false":
        return False
    return None
