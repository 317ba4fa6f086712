"""
Population samplers for the valid share of a column.

Dates are carried as float day numbers (days since 1970-01-01) until final
coercion so numeric missing codes fit in the same array.
"""

import math

import numpy as np
import pandas as pd

from ..defaults import (
    DEFAULT_CONTINUOUS_RANGE,
    DEFAULT_DATE_RANGE,
    DEFAULT_GOMPERTZ_RATE,
    DEFAULT_GOMPERTZ_SHAPE,
)
from ..schema.notation import CONTINUOUS, DATE, INTEGER, SINGLE

_EPOCH = pd.Timestamp("1970-01-01")
_DAY = pd.Timedelta(days=1)


def valid_count(n, valid_share):
    """Rows drawn from the population: ``floor(n * valid_share)``."""
    share = min(max(float(valid_share), 0.0), 1.0)
    return int(math.floor(n * share + 1e-9))


def to_day_number(value):
    if value is None or (isinstance(value, float) and math.isinf(value)):
        return value
    return float((pd.Timestamp(value) - _EPOCH) // _DAY)


def to_day_numbers(values):
    """Datetime-like values to float day numbers (NaT becomes NaN)."""
    stamps = pd.to_datetime(pd.Series(values), errors="coerce")
    days = (stamps - _EPOCH) / _DAY
    return np.floor(days.to_numpy(dtype=float))


def from_day_numbers(days):
    days = np.asarray(days, dtype=float)
    return pd.to_datetime(_EPOCH) + pd.to_timedelta(days, unit="D")


def sample_categories(categories, weights, n_valid, rng):
    if n_valid <= 0:
        return np.array([], dtype=object)
    draws = rng.choice(np.asarray(categories, dtype=object), size=n_valid, p=weights)
    return np.asarray(draws, dtype=object)


def _finite_bounds(lower, upper, mean=None, sd=None):
    span = DEFAULT_CONTINUOUS_RANGE[1] - DEFAULT_CONTINUOUS_RANGE[0]
    if sd is not None and sd > 0:
        span = 6.0 * sd
    if math.isinf(lower) and math.isinf(upper):
        centre = mean if mean is not None else DEFAULT_CONTINUOUS_RANGE[0] + span / 2
        return centre - span / 2, centre + span / 2
    if math.isinf(lower):
        return (mean - span / 2 if mean is not None else upper - span), upper
    if math.isinf(upper):
        return lower, (mean + span / 2 if mean is not None else lower + span)
    return lower, upper


def _clip_to_token_bounds(values, lower, upper, lower_inclusive, upper_inclusive):
    lo = lower if lower_inclusive else np.nextafter(lower, np.inf)
    hi = upper if upper_inclusive else np.nextafter(upper, -np.inf)
    return np.clip(values, lo, hi)


def _overall(ranges):
    lower = min(float(token.lower) for token in ranges)
    upper = max(float(token.upper) for token in ranges)
    lowest = min(ranges, key=lambda token: float(token.lower))
    highest = max(ranges, key=lambda token: float(token.upper))
    return lower, upper, lowest.lower_inclusive, highest.upper_inclusive


def sample_continuous(ranges, weights, n_valid, rng, distribution=None,
                      mean=None, sd=None, rate=None):
    """Draw ``n_valid`` numbers from the valid ranges.

    Normal draws are clipped to both bounds, exponential draws only to the
    upper bound; everything else is uniform within a range picked by weight.
    """
    if n_valid <= 0:
        return np.array([], dtype=float)
    ranges = [t for t in ranges if t is not None and t.kind in (SINGLE, INTEGER, CONTINUOUS)]
    if not ranges:
        low, high = DEFAULT_CONTINUOUS_RANGE
        return rng.uniform(low, high, size=n_valid)

    lower, upper, lower_inc, upper_inc = _overall(ranges)
    lo, hi = _finite_bounds(lower, upper, mean, sd)

    if distribution == "normal":
        centre = mean if mean is not None else (lo + hi) / 2.0
        scale = sd if sd is not None and sd > 0 else max((hi - lo) / 6.0, 1e-9)
        draws = rng.normal(centre, scale, size=n_valid)
        return _clip_to_token_bounds(draws, lo, hi, lower_inc, upper_inc)

    if distribution == "exponential":
        if rate is not None and rate > 0:
            scale = 1.0 / rate
        elif mean is not None and mean > lo:
            scale = mean - lo
        else:
            scale = max((hi - lo) / 3.0, 1e-9)
        draws = lo + rng.exponential(scale, size=n_valid)
        if math.isinf(upper):
            return draws
        hi_clip = hi if upper_inc else np.nextafter(hi, -np.inf)
        return np.minimum(draws, hi_clip)

    if len(ranges) == 1:
        picks = np.zeros(n_valid, dtype=int)
    else:
        picks = rng.choice(len(ranges), size=n_valid, p=weights)
    draws = np.empty(n_valid, dtype=float)
    for index, token in enumerate(ranges):
        slots = np.flatnonzero(picks == index)
        if slots.size == 0:
            continue
        t_lo, t_hi = _finite_bounds(float(token.lower), float(token.upper), mean, sd)
        if token.kind == SINGLE or t_lo == t_hi:
            draws[slots] = t_lo
            continue
        values = rng.uniform(t_lo, t_hi, size=slots.size)
        if not token.lower_inclusive:
            values = np.maximum(values, np.nextafter(t_lo, np.inf))
        draws[slots] = values
    return draws


def _date_window(token):
    lo = to_day_number(token.lower)
    if token.is_fixed_date:
        return lo, lo
    hi = to_day_number(token.upper)
    if not token.lower_inclusive:
        lo += 1
    if not token.upper_inclusive:
        hi -= 1
    return lo, max(lo, hi)


def gompertz_unit(n, rng, rate=None, shape=None):
    """Gompertz draws rescaled to the unit window (clipped at 1)."""
    rate = rate if rate is not None and rate > 0 else DEFAULT_GOMPERTZ_RATE
    shape = shape if shape is not None and shape > 0 else DEFAULT_GOMPERTZ_SHAPE
    u = rng.uniform(0.0, 1.0, size=n)
    u = np.clip(u, 1e-12, 1.0)
    t = np.log1p(-shape * np.log(u) / rate) / shape
    return np.minimum(t, 1.0)


def sample_window_days(lo, hi, n, rng, distribution=None, rate=None, shape=None):
    """Whole-day draws inside ``[lo, hi]`` for one distribution."""
    if n <= 0:
        return np.array([], dtype=float)
    span = float(hi - lo)
    if span <= 0:
        return np.full(n, float(lo))
    if distribution == "normal":
        draws = np.round(rng.normal(lo + span / 2.0, span / 6.0, size=n))
        return np.clip(draws, lo, hi).astype(float)
    if distribution == "exponential":
        scale = 1.0 / rate if rate is not None and rate > 0 else span / 3.0
        draws = lo + np.round(rng.exponential(scale, size=n))
        return np.minimum(draws, hi).astype(float)
    if distribution == "gompertz":
        draws = lo + np.round(gompertz_unit(n, rng, rate, shape) * span)
        return np.minimum(draws, hi).astype(float)
    return rng.integers(int(lo), int(hi), size=n, endpoint=True).astype(float)


def sample_dates(ranges, weights, n_valid, rng, distribution=None, rate=None, shape=None):
    """Draw ``n_valid`` day numbers from date ranges."""
    if n_valid <= 0:
        return np.array([], dtype=float)
    ranges = [t for t in ranges if t is not None and t.kind == DATE]
    if not ranges:
        lo = to_day_number(DEFAULT_DATE_RANGE[0])
        hi = to_day_number(DEFAULT_DATE_RANGE[1])
        return sample_window_days(lo, hi, n_valid, rng, distribution, rate, shape)

    if len(ranges) == 1:
        lo, hi = _date_window(ranges[0])
        return sample_window_days(lo, hi, n_valid, rng, distribution, rate, shape)

    picks = rng.choice(len(ranges), size=n_valid, p=weights)
    draws = np.empty(n_valid, dtype=float)
    for index, token in enumerate(ranges):
        slots = np.flatnonzero(picks == index)
        if slots.size == 0:
            continue
        lo, hi = _date_window(token)
        draws[slots] = sample_window_days(
            lo, hi, slots.size, rng, distribution, rate, shape
        )
    return draws


def date_bounds(ranges):
    """Overall (lo, hi) day numbers across date ranges, or None."""
    windows = [_date_window(t) for t in ranges if t is not None and t.kind == DATE]
    if not windows:
        return None
    return min(lo for lo, _ in windows), max(hi for _, hi in windows)


def sample_anchored_days(anchor_days, followup_min, followup_max, rng,
                         distribution=None, event_prop=None, rate=None, shape=None):
    """One offset date per anchor row.

    Rows whose anchor is missing, or that have no event (probability
    ``1 - event_prop``), stay NaN.
    """
    anchor_days = np.asarray(anchor_days, dtype=float)
    n = anchor_days.size
    offsets = sample_window_days(
        float(followup_min), float(followup_max), n, rng, distribution, rate, shape
    )
    values = anchor_days + offsets
    if event_prop is not None:
        has_event = rng.random(n) < float(event_prop)
        values = np.where(has_event, values, np.nan)
    return values
