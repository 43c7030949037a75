from __future__ import annotations

import math
import re
from typing import Any, Literal, Union

from pydantic import BaseModel, StrictStr, field_validator


Number = Union[int, float]

# Largest integer a double represents exactly
_MAX_SAFE_INT = 2**53
_DECIMAL = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")
_RADIX = {
    "0x": (16, re.compile(r"^[0-9a-fA-F]+$")),
    "0o": (8, re.compile(r"^[0-7]+$")),
    "0b": (2, re.compile(r"^[01]+$")),
}


def _normalize(value: Number) -> Number:
    """Collapse integral floats to int so they serialize as `1`, not `1.0`."""
    if isinstance(value, int):
        return value if abs(value) <= _MAX_SAFE_INT else float(value)
    if math.isfinite(value) and value.is_integer() and abs(value) <= _MAX_SAFE_INT:
        return int(value)
    return value


def _parse_string(text: str) -> Number:
    s = text.strip()
    if not s:
        return 0
    prefix = s[:2].lower()
    if prefix in _RADIX:
        base, digits = _RADIX[prefix]
        if not digits.match(s[2:]):
            return math.nan
        return _normalize(int(s[2:], base))
    if s in ("Infinity", "+Infinity"):
        return math.inf
    if s == "-Infinity":
        return -math.inf
    if _DECIMAL.match(s):
        return _normalize(float(s))
    return math.nan


def to_number(value: Any) -> Number:
    """Coerce a decoded JSON value the way JavaScript's ``Number()`` does.

    Never raises: anything without a numeric reading becomes NaN.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return _normalize(value)
    if isinstance(value, str):
        return _parse_string(value)
    if isinstance(value, list):
        if not value:
            return 0
        if len(value) == 1 and not isinstance(value[0], (bool, dict)):
            return to_number(value[0])
    return math.nan


class JoinMessage(BaseModel):
    t: Literal["join"]
    room: StrictStr


class HeartMessage(BaseModel):
    t: Literal["heart"]
    x: Number = math.nan
    y: Number = math.nan
    h: Number = math.nan

    @field_validator("x", "y", "h", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Number:
        return to_number(value)


class HeartBroadcast(BaseModel):
    """The only frame the relay ever emits.

    NaN and infinities serialize as ``null``.
    """

    t: Literal["heart"] = "heart"
    room: str
    x: Number
    y: Number
    h: Number
