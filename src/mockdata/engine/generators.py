"""
Per-type column generators.

Each metadata-driven generator returns a one-column DataFrame named after
the variable, or None when the variable is unknown, derived, outside the
requested scope or already present in ``dataset``. The ``*_from_params``
variants take explicit scalar settings instead of metadata tables.
"""

import numpy as np
import pandas as pd

from ..defaults import (
    CONTAMINATION_DATE_SHIFT_YEARS,
    CONTINUOUS_DISTRIBUTIONS,
    DATE_DISTRIBUTIONS,
    DEFAULT_CATEGORIES,
    DEFAULT_CONTINUOUS_RANGE,
    DEFAULT_DATE_RANGE,
    DEFAULT_FOLLOWUP_DAYS,
)
from ..runtime.logging_utils import resolve_logger
from ..runtime.rng import resolve_rng
from ..schema.metadata import detail_rows, find_variable_spec, get_variable_details
from ..schema.notation import CONTINUOUS, RangeToken, numeric_bounds
from .coercion import coerce_column
from .contamination import apply_contamination
from .missing import inject_missing, missing_code_pool
from .proportions import determine_proportions, resolve_proportions
from .sampling import (
    date_bounds,
    sample_anchored_days,
    sample_categories,
    sample_continuous,
    sample_dates,
    sample_window_days,
    to_day_number,
    to_day_numbers,
    valid_count,
)


def resolve_row_count(n, dataset=None):
    if n is None:
        if dataset is not None and len(dataset.index) > 0:
            return len(dataset.index)
        raise ValueError("n must be provided when dataset is empty")
    try:
        count = int(n)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"n must be an integer, got {n!r}") from exc
    if count < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    return count


def _check_prop(name, value):
    if value < 0.0 or value > 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {value}")


def _lookup(var, variables, variable_details, dataset, scope, logger):
    if dataset is not None and var in dataset.columns:
        logger.debug(f"Variable '{var}' already present; skipping")
        return None
    spec = find_variable_spec(var, variables, variable_details, scope=scope)
    if spec is None:
        logger.debug(f"Variable '{var}' not found in variables")
        return None
    if spec.is_derived:
        logger.info(f"Variable '{var}' is derived; not generated")
        return None
    if scope is not None and spec.scopes and str(scope) not in spec.scopes:
        logger.debug(f"Variable '{var}' is not available in scope '{scope}'")
        return None
    rows = detail_rows(get_variable_details(variable_details, var, scope=scope))
    return spec, rows


def _missing_codes(result, numeric):
    return {
        label: missing_code_pool(label, numeric=numeric)
        for label in result.missing_weights
    }


def _checked_distribution(spec, allowed, logger):
    distribution = spec.distribution
    if distribution is None or distribution in allowed:
        return distribution
    logger.warning(
        f"Variable '{spec.name}' has unsupported distribution '{distribution}'; "
        "using uniform"
    )
    return "uniform"


def _is_number(text):
    try:
        float(text)
    except (TypeError, ValueError):
        return False
    return True


def build_categorical_values(spec, rows, n, rng, logger=None):
    """Raw categorical values plus missing mask and factor levels, or None."""
    logger = resolve_logger(logger)
    result = resolve_proportions(rows, spec.name, "categorical", logger)
    if result.is_default:
        logger.warning(
            f"Variable '{spec.name}' has no category rows; using default categories"
        )
        categories = list(DEFAULT_CATEGORIES)
        weights = [1.0 / len(categories)] * len(categories)
    else:
        categories = result.categories
        weights = result.category_weights
    if not categories:
        logger.warning(f"Variable '{spec.name}' has no valid categories")
        return None

    n_valid = valid_count(n, result.valid)
    draws = sample_categories(categories, weights, n_valid, rng)
    codes = _missing_codes(result, numeric=False)
    column, mask = inject_missing(draws, n, result.missing_weights, codes, rng)

    numeric = [float(c) for c in categories if _is_number(c)]
    bounds = (min(numeric), max(numeric)) if numeric else None
    rules = list(result.contamination) + list(spec.contamination)
    column, _ = apply_contamination(
        column, rules, "categorical", mask, bounds, rng, logger, spec.name
    )

    levels = list(categories)
    for pool in codes.values():
        levels.extend(str(code) for code in pool)
    return column, mask, list(dict.fromkeys(levels))


def build_continuous_values(spec, rows, n, rng, logger=None):
    logger = resolve_logger(logger)
    result = resolve_proportions(rows, spec.name, "continuous", logger)
    if not result.ranges:
        logger.warning(
            f"Variable '{spec.name}' has no valid range; using uniform "
            f"[{DEFAULT_CONTINUOUS_RANGE[0]:g}, {DEFAULT_CONTINUOUS_RANGE[1]:g}]"
        )
    distribution = _checked_distribution(spec, CONTINUOUS_DISTRIBUTIONS, logger)

    n_valid = valid_count(n, result.valid)
    draws = sample_continuous(
        result.ranges,
        result.range_weights,
        n_valid,
        rng,
        distribution=distribution,
        mean=spec.mean,
        sd=spec.sd,
        rate=spec.rate,
    )
    codes = _missing_codes(result, numeric=True)
    column, mask = inject_missing(draws, n, result.missing_weights, codes, rng)

    bounds = numeric_bounds(result.ranges) or DEFAULT_CONTINUOUS_RANGE
    rules = list(result.contamination) + list(spec.contamination)
    column, _ = apply_contamination(
        column, rules, "continuous", mask, bounds, rng, logger, spec.name
    )
    return column, mask


def anchor_day_numbers(anchor, n):
    """Anchor dates as float day numbers aligned to ``n`` rows."""
    anchor = pd.Series(anchor).reset_index(drop=True)
    if len(anchor) != n:
        raise ValueError(f"anchor has {len(anchor)} rows, expected {n}")
    if pd.api.types.is_numeric_dtype(anchor):
        return anchor.to_numpy(dtype=float)
    return to_day_numbers(anchor)


def build_date_values(spec, rows, n, rng, anchor=None, logger=None):
    """Raw day numbers and missing mask for one date variable.

    With an ``anchor`` the dates are offsets of ``followup_min``..``followup_max``
    days from each row's anchor, and rows whose offset date falls before the
    anchor are censored before contamination is applied.
    """
    logger = resolve_logger(logger)
    result = resolve_proportions(rows, spec.name, "date", logger)
    distribution = _checked_distribution(spec, DATE_DISTRIBUTIONS, logger)
    codes = _missing_codes(result, numeric=True)

    if anchor is not None:
        anchor_days = anchor_day_numbers(anchor, n)
        low = spec.followup_min if spec.followup_min is not None else DEFAULT_FOLLOWUP_DAYS[0]
        high = spec.followup_max if spec.followup_max is not None else DEFAULT_FOLLOWUP_DAYS[1]
        if low > high:
            raise ValueError(
                f"Variable '{spec.name}' followup_min must not exceed followup_max"
            )
        values = sample_anchored_days(
            anchor_days,
            low,
            high,
            rng,
            distribution=distribution,
            event_prop=spec.event_prop,
            rate=spec.rate,
            shape=spec.shape,
        )
        values = np.where(values < anchor_days, np.nan, values)
        n_missing = n - valid_count(n, result.valid)
        column, mask = inject_missing(
            values, n, result.missing_weights, codes, rng, n_missing=n_missing
        )
        finite = values[np.isfinite(values)]
        bounds = (float(finite.min()), float(finite.max())) if finite.size else None
    else:
        if not result.ranges:
            logger.warning(
                f"Variable '{spec.name}' has no valid date range; using "
                f"{DEFAULT_DATE_RANGE[0]}..{DEFAULT_DATE_RANGE[1]}"
            )
        n_valid = valid_count(n, result.valid)
        draws = sample_dates(
            result.ranges,
            result.range_weights,
            n_valid,
            rng,
            distribution=distribution,
            rate=spec.rate,
            shape=spec.shape,
        )
        column, mask = inject_missing(draws, n, result.missing_weights, codes, rng)
        bounds = date_bounds(result.ranges) or (
            to_day_number(DEFAULT_DATE_RANGE[0]),
            to_day_number(DEFAULT_DATE_RANGE[1]),
        )

    # Non-numeric missing codes cannot be day numbers; they end up as NaT.
    column = pd.to_numeric(pd.Series(column), errors="coerce").to_numpy(dtype=float)
    rules = list(result.contamination) + list(spec.contamination)
    column, _ = apply_contamination(
        column, rules, "date", mask, bounds, rng, logger, spec.name
    )
    return column, mask


def _frame(name, series):
    return pd.DataFrame({name: series.reset_index(drop=True)})


def create_cat_var(var, variables, variable_details, dataset=None, n=None,
                   rng=None, seed=None, scope=None, anchor=None, logger=None):
    """Generate one categorical column from metadata."""
    logger = resolve_logger(logger)
    n = resolve_row_count(n, dataset)
    found = _lookup(var, variables, variable_details, dataset, scope, logger)
    if found is None:
        return None
    spec, rows = found
    rng = resolve_rng(rng, seed)

    built = build_categorical_values(spec, rows, n, rng, logger)
    if built is None:
        return None
    column, mask, levels = built
    return _frame(
        spec.name,
        coerce_column(column, spec.output_type, "categorical", mask, categories=levels),
    )


def create_con_var(var, variables, variable_details, dataset=None, n=None,
                   rng=None, seed=None, scope=None, anchor=None, logger=None):
    """Generate one continuous column from metadata."""
    logger = resolve_logger(logger)
    n = resolve_row_count(n, dataset)
    found = _lookup(var, variables, variable_details, dataset, scope, logger)
    if found is None:
        return None
    spec, rows = found
    rng = resolve_rng(rng, seed)

    column, mask = build_continuous_values(spec, rows, n, rng, logger)
    return _frame(spec.name, coerce_column(column, spec.output_type, "continuous", mask))


def create_date_var(var, variables, variable_details, dataset=None, n=None,
                    rng=None, seed=None, scope=None, anchor=None, logger=None):
    """Generate one date column from metadata, optionally offset from ``anchor``."""
    built = generate_date_values(
        var, variables, variable_details, dataset, n, rng, seed, scope, anchor, logger
    )
    if built is None:
        return None
    spec, column, mask = built
    return _frame(spec.name, coerce_column(column, spec.output_type, "date", mask))


def generate_date_values(var, variables, variable_details, dataset=None, n=None,
                         rng=None, seed=None, scope=None, anchor=None, logger=None):
    """``(spec, day_numbers, missing_mask)`` for one date variable, or None."""
    logger = resolve_logger(logger)
    n = resolve_row_count(n, dataset)
    found = _lookup(var, variables, variable_details, dataset, scope, logger)
    if found is None:
        return None
    spec, rows = found
    rng = resolve_rng(rng, seed)

    column, mask = build_date_values(spec, rows, n, rng, anchor=anchor, logger=logger)
    return spec, column, mask


def _scalar_missing(missing_codes, numeric):
    if not missing_codes:
        return {}, {}
    if isinstance(missing_codes, (str, int, float)):
        missing_codes = [missing_codes]
    pool = tuple(float(c) if numeric else str(c) for c in missing_codes)
    return {"missing": 1.0}, {"missing": pool}


def create_cat_var_from_params(name, categories, n, proportions=None, prop_missing=0.0,
                               missing_codes=None, r_type="factor", rng=None, seed=None):
    """Categorical column from an explicit category list.

    ``missing_codes`` are written into the missing share (sampled uniformly
    when several are given); without codes the missing rows are NaN.
    """
    n = resolve_row_count(n)
    _check_prop("prop_missing", float(prop_missing))
    categories = [str(c) for c in categories]
    weights = determine_proportions(categories, proportions)
    rng = resolve_rng(rng, seed)

    n_valid = valid_count(n, 1.0 - float(prop_missing))
    draws = sample_categories(categories, weights, n_valid, rng)
    missing_weights, codes = _scalar_missing(missing_codes, numeric=False)
    column, mask = inject_missing(draws, n, missing_weights, codes, rng)
    levels = categories + [code for pool in codes.values() for code in pool]
    return _frame(name, coerce_column(column, r_type, "categorical", mask, levels))


def create_con_var_from_params(name, lower, upper, n, distribution="uniform", mean=None,
                               sd=None, rate=None, prop_missing=0.0, missing_codes=None,
                               r_type="double", rng=None, seed=None):
    n = resolve_row_count(n)
    _check_prop("prop_missing", float(prop_missing))
    if float(lower) > float(upper):
        raise ValueError("lower must not exceed upper")
    if distribution not in CONTINUOUS_DISTRIBUTIONS:
        raise ValueError(
            f"distribution must be one of {', '.join(CONTINUOUS_DISTRIBUTIONS)}"
        )
    rng = resolve_rng(rng, seed)

    token = RangeToken(
        kind=CONTINUOUS,
        text=f"[{lower},{upper}]",
        lower=float(lower),
        upper=float(upper),
    )
    n_valid = valid_count(n, 1.0 - float(prop_missing))
    draws = sample_continuous(
        [token], [1.0], n_valid, rng, distribution=distribution, mean=mean, sd=sd, rate=rate
    )
    missing_weights, codes = _scalar_missing(missing_codes, numeric=True)
    column, mask = inject_missing(draws, n, missing_weights, codes, rng)
    return _frame(name, coerce_column(column, r_type, "continuous", mask))


def create_date_var_from_params(name, start, end, n, distribution="uniform",
                                prop_missing=0.0, prop_invalid=0.0, r_type="Date",
                                rng=None, seed=None):
    """Date column over ``start``..``end`` with missing and out-of-window rows.

    Invalid dates fall one to five years before ``start`` or after ``end``.
    """
    n = resolve_row_count(n)
    prop_missing = float(prop_missing)
    prop_invalid = float(prop_invalid)
    _check_prop("prop_missing", prop_missing)
    _check_prop("prop_invalid", prop_invalid)
    if prop_missing + prop_invalid > 1.0:
        raise ValueError("prop_missing + prop_invalid must not exceed 1")
    if distribution not in DATE_DISTRIBUTIONS:
        raise ValueError(f"distribution must be one of {', '.join(DATE_DISTRIBUTIONS)}")
    lo = to_day_number(start)
    hi = to_day_number(end)
    if lo > hi:
        raise ValueError("start must not be after end")
    rng = resolve_rng(rng, seed)

    n_missing = int(round(n * prop_missing))
    n_invalid = min(int(round(n * prop_invalid)), n - n_missing)
    n_valid = n - n_missing - n_invalid

    valid = sample_window_days(lo, hi, n_valid, rng, distribution)
    low_years, high_years = CONTAMINATION_DATE_SHIFT_YEARS
    shifts = np.round(rng.uniform(low_years * 365.25, high_years * 365.25, size=n_invalid))
    before = rng.random(n_invalid) < 0.5
    invalid = np.where(before, lo - shifts, hi + shifts)

    values = np.concatenate([valid, invalid, np.full(n_missing, np.nan)])
    order = rng.permutation(n)
    values = values[order]
    mask = np.isnan(values)
    return _frame(name, coerce_column(values, r_type, "date", mask))
