"""
Out-of-range contamination of valid rows.
"""

import numpy as np
import pandas as pd

from ..defaults import (
    CONTAMINATION_DATE_SHIFT_YEARS,
    CONTAMINATION_FUTURE_YEARS,
    CONTAMINATION_PAST_YEARS,
    CONTAMINATION_UNDERSUPPLY,
    DEFAULT_CONTAMINATION_HIGH,
    DEFAULT_CONTAMINATION_LOW,
)
from ..runtime.logging_utils import resolve_logger
from .sampling import to_day_number

_DAYS_PER_YEAR = 365.25


def _today_day_number():
    return to_day_number(pd.Timestamp.today().normalize())


def _range_values(rule, k, kind, rng):
    token = rule.parsed_range(hint="date" if kind == "date" else "numeric")
    if token is None or not token.is_range and token.kind != "single":
        return None
    if kind == "date":
        lo = to_day_number(token.lower)
        hi = lo if token.is_fixed_date else to_day_number(token.upper)
        return rng.integers(int(lo), int(hi), size=k, endpoint=True).astype(float)
    lo, hi = float(token.lower), float(token.upper)
    if not (np.isfinite(lo) and np.isfinite(hi)):
        return None
    if lo == hi:
        return np.full(k, lo)
    return rng.uniform(lo, hi, size=k)


def _date_default_values(rule_kind, k, bounds, rng):
    today = _today_day_number()
    if rule_kind == "future":
        low, high = CONTAMINATION_FUTURE_YEARS
        offsets = rng.uniform(low * _DAYS_PER_YEAR, high * _DAYS_PER_YEAR, size=k)
        return np.round(today + offsets)
    if rule_kind == "past":
        low, high = CONTAMINATION_PAST_YEARS
        offsets = rng.uniform(low * _DAYS_PER_YEAR, high * _DAYS_PER_YEAR, size=k)
        return np.round(today - offsets)

    low, high = CONTAMINATION_DATE_SHIFT_YEARS
    offsets = np.round(
        rng.uniform(low * _DAYS_PER_YEAR, high * _DAYS_PER_YEAR, size=k)
    )
    if bounds is None:
        anchor = today
        return anchor - offsets if rule_kind == "low" else anchor + offsets
    if rule_kind == "low":
        return bounds[0] - offsets
    return bounds[1] + offsets


def _numeric_default_values(rule_kind, k, bounds, rng):
    lower, upper = (-np.inf, np.inf) if bounds is None else (float(b) for b in bounds)
    lower_known, upper_known = np.isfinite(lower), np.isfinite(upper)
    if not lower_known and not upper_known:
        low, high = (
            DEFAULT_CONTAMINATION_LOW if rule_kind != "high" else DEFAULT_CONTAMINATION_HIGH
        )
        return rng.uniform(low, high, size=k)
    span = max(upper - lower, 1.0) if lower_known and upper_known else 0.0
    # An open side has no outside; offset from the finite bound instead.
    above = upper_known if rule_kind == "high" else not lower_known
    if above:
        return rng.uniform(upper + 1.0, upper + span + 100.0, size=k)
    return rng.uniform(lower - span - 100.0, lower - 1.0, size=k)


def contamination_values(rule, k, kind, bounds, rng):
    """``k`` implausible values for one rule."""
    values = _range_values(rule, k, kind, rng)
    if values is None:
        if kind == "date":
            values = _date_default_values(rule.kind, k, bounds, rng)
        else:
            values = _numeric_default_values(rule.kind, k, bounds, rng)
    if kind == "categorical":
        return np.array([str(int(v)) for v in np.round(values)], dtype=object)
    if kind == "date":
        return np.round(values).astype(float)
    return np.asarray(values, dtype=float)


def apply_contamination(values, rules, kind, missing_mask=None, bounds=None,
                        rng=None, logger=None, variable_name=None):
    """Corrupt a sized, non-overlapping subset of valid rows, rule by rule.

    Each rule takes ``round(proportion * n_valid)`` rows from the valid rows
    no earlier rule touched. When that pool runs short, fewer rows are
    contaminated and a warning is logged.

    Returns ``(values, contaminated_mask)``.
    """
    logger = resolve_logger(logger)
    column = np.array(values, copy=True)
    n = column.size
    missing_mask = (
        np.zeros(n, dtype=bool) if missing_mask is None else np.asarray(missing_mask)
    )
    touched = np.zeros(n, dtype=bool)
    if not rules:
        return column, touched

    valid_slots = ~missing_mask
    if column.dtype.kind == "f":
        valid_slots &= ~np.isnan(column)
    n_valid = int(valid_slots.sum())
    if kind == "categorical" and column.dtype != object:
        column = column.astype(object)

    label = variable_name or "column"
    for rule in rules:
        if rule.proportion is None or rule.proportion <= 0:
            continue
        k = int(round(float(rule.proportion) * n_valid))
        pool = np.flatnonzero(valid_slots & ~touched)
        if k > pool.size:
            message = (
                f"Variable '{label}' contamination '{rule.kind}' requested {k} rows "
                f"but only {pool.size} untouched valid rows remain"
            )
            if CONTAMINATION_UNDERSUPPLY == "error":
                raise ValueError(message)
            logger.warning(message)
            k = pool.size
        if k == 0:
            continue
        chosen = rng.choice(pool, size=k, replace=False)
        column[chosen] = contamination_values(rule, k, kind, bounds, rng)
        touched[chosen] = True
    return column, touched
