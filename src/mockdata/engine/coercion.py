"""
Final conversion of a generated column to its output representation.
"""

import numpy as np
import pandas as pd

from .sampling import from_day_numbers

_TRUE_TEXT = {"1", "true", "t", "yes", "y"}
_FALSE_TEXT = {"0", "false", "f", "no", "n"}


def _to_logical(value):
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return pd.NA
    text = str(value).strip().lower()
    if text.endswith(".0"):
        text = text[:-2]
    if text in _TRUE_TEXT:
        return True
    if text in _FALSE_TEXT:
        return False
    return pd.NA


def _code_text(value):
    if value is None or value != value:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_integer(values):
    numeric = pd.to_numeric(pd.Series(values), errors="coerce")
    return numeric.round().astype("Int64")


def _date_column(values, r_type, missing_mask):
    days = pd.to_numeric(pd.Series(values), errors="coerce").to_numpy(dtype=float)
    if r_type == "double":
        return pd.Series(days, dtype=float)
    if r_type == "integer":
        return _to_integer(days)
    if r_type == "character":
        stamps = from_day_numbers(np.where(missing_mask, np.nan, days))
        text = pd.Series(stamps.strftime("%Y-%m-%d"), dtype=object)
        codes = pd.Series(values, dtype=object).map(_code_text)
        text = text.where(~missing_mask, codes)
        return text.where(text.notna() & (text != "NaT"), None)
    # Date and any unrecognized representation.
    return pd.Series(from_day_numbers(np.where(missing_mask, np.nan, days)))


def coerce_column(values, r_type, kind, missing_mask=None, categories=None):
    """Convert raw generated values to ``r_type``.

    Date columns arrive as day numbers; ``Date`` turns missing-code slots
    into NaT while ``character`` keeps the codes as text. Unrecognized
    representations pass through unchanged (dates still become datetimes).
    """
    values = np.asarray(values)
    missing_mask = (
        np.zeros(values.size, dtype=bool)
        if missing_mask is None
        else np.asarray(missing_mask, dtype=bool)
    )

    if kind == "date":
        return _date_column(values, r_type, missing_mask)

    if r_type == "integer":
        return _to_integer(values)
    if r_type == "double":
        return pd.to_numeric(pd.Series(values), errors="coerce").astype(float)
    if r_type == "character":
        series = pd.Series(values, dtype=object)
        return series.map(lambda v: None if v is None or v != v else str(v))
    if r_type == "logical":
        return pd.Series([_to_logical(v) for v in values], dtype="boolean")
    if r_type == "factor":
        series = pd.Series(values, dtype=object).map(
            lambda v: None if v is None or v != v else str(v)
        )
        levels = [str(c) for c in (categories or [])]
        for value in series.dropna():
            if value not in levels:
                levels.append(value)
        return pd.Series(pd.Categorical(series, categories=levels))
    return pd.Series(values)
