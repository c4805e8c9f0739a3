"""Acceptance checks for input field contents."""

from __future__ import annotations

import math
import re
from typing import Callable

_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DECIMAL_FLOAT = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_HEX_FLOAT = re.compile(
    r"[+-]?0[xX]([0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+"
)
_SPECIAL_FLOAT = re.compile(r"[+-]?(inf|infinity|nan)", re.IGNORECASE)


def input_field_integer(text: str, ch: str) -> bool:
    """Accept text that is, or is on its way to being, a 64-bit integer."""
    if text == "-":
        return True
    if not _INTEGER.fullmatch(text):
        return False
    return _INT_MIN <= int(text) <= _INT_MAX


def input_field_float(text: str, ch: str) -> bool:
    """Accept text that is, or is on its way to being, a floating-point number."""
    if text in ("-", ".", "-."):
        return True
    if _SPECIAL_FLOAT.fullmatch(text):
        return True
    if _DECIMAL_FLOAT.fullmatch(text):
        value = float(text)
    elif _HEX_FLOAT.fullmatch(text):
        sign = -1.0 if text.startswith("-") else 1.0
        try:
            value = sign * float.fromhex(text.lstrip("+-"))
        except OverflowError:
            return False
    else:
        return False
    return not math.isinf(value)


def input_field_max_length(max_length: int) -> Callable[[str, str], bool]:
    """Return a check accepting text of at most ``max_length`` characters."""

    def accept(text: str, ch: str) -> bool:
        return len(text) <= max_length

    return accept