"""
Parsers for metadata range notation and scope-qualified variable names.

Range notation follows the usual interval conventions::

    [7,9]           integers 7, 8, 9
    [18.5,25)       18.5 <= x < 25
    [30,inf)        x >= 30
    NA::a, NA::b    missing-code markers
    copy, else      pass-through / otherwise markers
    Func::name      transform rule, never generated

Whether a bracketed pair holds dates or numbers is decided by the caller
(``hint="date"``), never guessed from the text.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from ..defaults import DERIVED_PREFIX, FUNCTION_PREFIX, SPECIAL_TOKENS

SINGLE = "single"
INTEGER = "integer"
CONTINUOUS = "continuous"
DATE = "date"
SPECIAL = "special"
FUNCTION = "function"

RANGE_KINDS = (INTEGER, CONTINUOUS, DATE)

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")
_INFINITY = {"inf", "+inf", "infinity", "+infinity"}
_NEG_INFINITY = {"-inf", "-infinity"}
_DATE_FORMATS = ("%Y-%m-%d", "%d%b%Y")


@dataclass(frozen=True)
class RangeToken:
    """Structured form of one notation string, tagged by ``kind``."""

    kind: str
    text: str
    lower: Any = None
    upper: Any = None
    lower_inclusive: bool = True
    upper_inclusive: bool = True
    values: tuple = ()

    @property
    def is_range(self) -> bool:
        return self.kind in RANGE_KINDS

    @property
    def is_observable(self) -> bool:
        """False for transform rules that never appear as data values."""
        return self.kind != FUNCTION and not (
            self.kind == SPECIAL and self.text == "else"
        )

    @property
    def is_fixed_date(self) -> bool:
        return self.kind == DATE and self.upper is not None and _is_inf(self.upper)


def _is_inf(value) -> bool:
    return isinstance(value, float) and math.isinf(value)


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _parse_number(text):
    lowered = text.strip().lower()
    if lowered in _INFINITY:
        return math.inf
    if lowered in _NEG_INFINITY:
        return -math.inf
    if not _NUMBER_RE.match(lowered):
        return None
    return float(lowered)


def _parse_date(text):
    lowered = text.strip().lower()
    if lowered in _INFINITY:
        return math.inf
    if lowered in _NEG_INFINITY:
        return -math.inf
    for fmt in _DATE_FORMATS:
        try:
            return pd.to_datetime(text.strip(), format=fmt)
        except (TypeError, ValueError):
            continue
    return None


def _split_bracketed(text):
    if len(text) < 2:
        return None
    left, right = text[0], text[-1]
    if left not in "[(" or right not in "])":
        return None
    inner = text[1:-1]
    if "," not in inner:
        return None
    lhs, rhs = inner.split(",", 1)
    if "," in rhs:
        return None
    return left == "[", lhs.strip(), rhs.strip(), right == "]"


def parse_range_notation(text, hint="numeric"):
    """Parse one notation string into a :class:`RangeToken`.

    Returns None for empty or malformed input instead of raising.
    """
    if _is_missing(text):
        return None
    clean = str(text).strip()
    if not clean or clean == "N/A":
        return None

    if clean in SPECIAL_TOKENS:
        return RangeToken(kind=SPECIAL, text=clean)
    if clean.startswith(FUNCTION_PREFIX):
        return RangeToken(kind=FUNCTION, text=clean)

    if hint != "date":
        number = _parse_number(clean)
        if number is not None and not math.isinf(number):
            return RangeToken(kind=SINGLE, text=clean, lower=number, upper=number)

    parts = _split_bracketed(clean)
    if parts is None:
        return None
    lower_inclusive, lhs, rhs, upper_inclusive = parts

    if hint == "date":
        lower = _parse_date(lhs)
        upper = _parse_date(rhs)
        if lower is None or upper is None or _is_inf(lower):
            return None
        if not _is_inf(upper) and upper < lower:
            return None
        return RangeToken(
            kind=DATE,
            text=clean,
            lower=lower,
            upper=upper,
            lower_inclusive=lower_inclusive,
            upper_inclusive=upper_inclusive,
        )

    lower = _parse_number(lhs)
    upper = _parse_number(rhs)
    if lower is None or upper is None:
        return None
    if lower > upper:
        return None

    continuous = (
        not lower_inclusive
        or not upper_inclusive
        or "." in lhs
        or "." in rhs
        or math.isinf(lower)
        or math.isinf(upper)
    )
    if continuous:
        return RangeToken(
            kind=CONTINUOUS,
            text=clean,
            lower=lower,
            upper=upper,
            lower_inclusive=lower_inclusive,
            upper_inclusive=upper_inclusive,
        )

    lo, hi = int(lower), int(upper)
    return RangeToken(
        kind=INTEGER,
        text=clean,
        lower=lo,
        upper=hi,
        values=tuple(range(lo, hi + 1)),
    )


def token_values(token):
    """Literal values a token stands for (integer ranges enumerate)."""
    if token is None:
        return ()
    if token.kind == INTEGER:
        return token.values
    if token.kind == SINGLE:
        value = token.lower
        return (int(value) if float(value).is_integer() else value,)
    return ()


def numeric_bounds(tokens):
    """Overall (lower, upper) across numeric range tokens, or None."""
    lows = []
    highs = []
    for token in tokens:
        if token is None or token.kind not in (INTEGER, CONTINUOUS, SINGLE):
            continue
        lows.append(float(token.lower))
        highs.append(float(token.upper))
    if not lows:
        return None
    return float(np.min(lows)), float(np.max(highs))


def parse_variable_start(text, scope):
    """Extract the raw variable name used in ``scope``.

    Resolution order: an exact ``scope::name`` segment, then a bracketed
    ``[name]`` default, then a bare name without any ``::``.
    """
    if _is_missing(text) or _is_missing(scope):
        return None
    clean = str(text).strip()
    scope = str(scope).strip()
    if not clean or not scope:
        return None

    segments = [segment.strip() for segment in clean.split(",")]
    prefix = f"{scope}::"
    for segment in segments:
        if segment.startswith(prefix):
            name = segment[len(prefix):].strip()
            if name:
                return name

    if clean.startswith("[") and clean.endswith("]") and "," not in clean:
        return clean[1:-1].strip() or None

    for segment in segments:
        if segment.startswith("[") and segment.endswith("]"):
            name = segment[1:-1].strip()
            if name:
                return name

    if (
        "::" not in clean
        and not clean.startswith(DERIVED_PREFIX)
        and not clean.startswith(FUNCTION_PREFIX)
    ):
        return clean
    return None
