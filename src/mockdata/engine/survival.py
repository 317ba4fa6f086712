"""
Survival/temporal date generation.

The entry date is generated first and every other role is offset from it.
A second pass then censors any date that precedes entry and, when both are
requested, any event date that falls after death.
"""

import numpy as np
import pandas as pd

from .._deprecation import warn_deprecated_argument
from ..defaults import DATE_DISTRIBUTIONS
from ..runtime.logging_utils import resolve_logger
from ..runtime.rng import resolve_rng
from .coercion import coerce_column
from .generators import (
    _lookup,
    anchor_day_numbers,
    build_date_values,
    resolve_row_count,
)
from .sampling import from_day_numbers, sample_window_days, to_day_number

SURVIVAL_ROLES = ("entry", "event", "death", "ltfu", "admin_censor")


def _censor_before_entry(values, mask, entry_days):
    observed = ~mask & np.isfinite(values) & np.isfinite(entry_days)
    early = observed & (values < entry_days)
    values = values.copy()
    values[early] = np.nan
    return values, int(early.sum())


def _censor_after_death(event_values, event_mask, death_values, death_mask):
    both = (
        ~event_mask
        & ~death_mask
        & np.isfinite(event_values)
        & np.isfinite(death_values)
    )
    preempted = both & (death_values < event_values)
    event_values = event_values.copy()
    event_values[preempted] = np.nan
    return event_values, int(preempted.sum())


def enforce_survival_order(dates, entry_days, event_var=None, death_var=None,
                           logger=None):
    """Censor anchored dates that break entry <= date and event <= death.

    ``dates`` maps each non-entry column name to ``(day_numbers, missing_mask)``;
    a new mapping with censored day numbers (NaN) is returned.
    """
    logger = resolve_logger(logger)
    ordered = {}
    for name, (values, mask) in dates.items():
        values, censored = _censor_before_entry(values, mask, entry_days)
        if censored:
            logger.info(f"Censored {censored} '{name}' dates earlier than entry")
        ordered[name] = (values, mask)

    if event_var in ordered and death_var in ordered:
        event_values, event_mask = ordered[event_var]
        death_values, death_mask = ordered[death_var]
        event_values, preempted = _censor_after_death(
            event_values, event_mask, death_values, death_mask
        )
        ordered[event_var] = (event_values, event_mask)
        if preempted:
            logger.info(f"Censored {preempted} '{event_var}' dates after death")
    return ordered


def create_wide_survival_data(entry_var, event_var=None, death_var=None, ltfu_var=None,
                              admin_censor_var=None, variables=None, variable_details=None,
                              dataset=None, n=None, rng=None, seed=None, scope=None,
                              prop_garbage=None, logger=None):
    """Generate the requested survival date columns in wide format.

    Returns a DataFrame with one column per requested role that was not
    already present in ``dataset``. No time-to-event field is derived.
    """
    logger = resolve_logger(logger)
    if prop_garbage is not None:
        warn_deprecated_argument(
            "create_wide_survival_data",
            "prop_garbage",
            "corrupt_* rows in variable_details",
        )
    if not entry_var:
        raise ValueError("entry_var is required")
    if variables is None or variable_details is None:
        raise ValueError("variables and variable_details are required")
    n = resolve_row_count(n, dataset)
    rng = resolve_rng(rng, seed)

    requested = [
        (role, name)
        for role, name in zip(
            SURVIVAL_ROLES, (entry_var, event_var, death_var, ltfu_var, admin_censor_var)
        )
        if name
    ]

    generated = {}
    if dataset is not None and entry_var in dataset.columns:
        entry_days = anchor_day_numbers(dataset[entry_var], n)
    else:
        found = _lookup(entry_var, variables, variable_details, None, scope, logger)
        if found is None:
            raise ValueError(f"Entry variable '{entry_var}' not found in variables")
        spec, rows = found
        values, mask = build_date_values(spec, rows, n, rng, logger=logger)
        generated[entry_var] = ("entry", spec, values, mask)
        entry_days = np.where(mask, np.nan, values)

    for role, name in requested[1:]:
        if dataset is not None and name in dataset.columns:
            logger.info(f"Survival variable '{name}' already present; skipping")
            continue
        found = _lookup(name, variables, variable_details, None, scope, logger)
        if found is None:
            logger.warning(f"Survival variable '{name}' not found; skipping")
            continue
        spec, rows = found
        values, mask = build_date_values(
            spec, rows, n, rng, anchor=entry_days, logger=logger
        )
        generated[name] = (role, spec, values, mask)

    anchored = {
        name: (values, mask)
        for name, (role, _, values, mask) in generated.items()
        if role != "entry"
    }
    ordered = enforce_survival_order(anchored, entry_days, event_var, death_var, logger)
    for name, (values, mask) in ordered.items():
        role, spec, _, _ = generated[name]
        generated[name] = (role, spec, values, mask)

    columns = {}
    for _, name in requested:
        if name not in generated:
            continue
        _, spec, values, mask = generated[name]
        columns[name] = coerce_column(values, spec.output_type, "date", mask).reset_index(
            drop=True
        )
    return pd.DataFrame(columns, index=pd.RangeIndex(n))


def create_survival_dates(entry_var, event_var, entry_start, entry_end, followup_min,
                          followup_max, n, event_distribution="uniform", prop_censored=0.0,
                          prop_missing=0.0, rng=None, seed=None):
    """Entry/event date pair from explicit window and follow-up settings.

    Censored rows (``prop_censored``) get a censoring date between the
    minimum follow-up and their event date, and an ``event_status`` column
    (1 event, 0 censored) is added. ``prop_missing`` of event dates are NaT.
    """
    n = resolve_row_count(n)
    if not entry_var or not event_var:
        raise ValueError("entry_var and event_var are required")
    for label, value in (("prop_censored", prop_censored), ("prop_missing", prop_missing)):
        if not 0.0 <= float(value) <= 1.0:
            raise ValueError(f"{label} must be between 0 and 1, got {value}")
    if event_distribution not in DATE_DISTRIBUTIONS:
        raise ValueError(
            f"event_distribution must be one of {', '.join(DATE_DISTRIBUTIONS)}"
        )
    if float(followup_min) > float(followup_max):
        raise ValueError("followup_min must not exceed followup_max")
    lo = to_day_number(entry_start)
    hi = to_day_number(entry_end)
    if lo > hi:
        raise ValueError("entry_start must not be after entry_end")
    rng = resolve_rng(rng, seed)

    entry = sample_window_days(lo, hi, n, rng)
    offsets = sample_window_days(
        float(followup_min), float(followup_max), n, rng, event_distribution
    )
    event = entry + offsets

    frame = pd.DataFrame({entry_var: from_day_numbers(entry)})
    status = np.ones(n, dtype=int)
    n_censored = int(round(n * float(prop_censored)))
    if n_censored:
        rows = rng.choice(n, size=n_censored, replace=False)
        low = float(followup_min)
        cut = low + rng.random(n_censored) * (offsets[rows] - low)
        event[rows] = entry[rows] + np.round(cut)
        status[rows] = 0

    n_missing = int(round(n * float(prop_missing)))
    if n_missing:
        rows = rng.choice(n, size=n_missing, replace=False)
        event[rows] = np.nan

    frame[event_var] = from_day_numbers(event)
    if float(prop_censored) > 0:
        frame["event_status"] = status
    return frame
