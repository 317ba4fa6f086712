"""
Whole-dataset assembly from metadata tables.
"""

import numpy as np
import pandas as pd

from ..defaults import DEFAULT_ROWS, DEFAULT_SEED
from ..runtime.logging_utils import resolve_logger
from ..runtime.rng import resolve_rng
from ..schema.metadata import (
    as_frame,
    build_variable_specs,
    get_enabled_variables,
    split_list,
)
from .coercion import coerce_column
from .generators import (
    anchor_day_numbers,
    create_cat_var,
    create_con_var,
    generate_date_values,
    resolve_row_count,
)
from .survival import enforce_survival_order

# Date generation returns raw day numbers so anchored columns can be
# reordered after the loop.
_GENERATORS = {
    "categorical": create_cat_var,
    "continuous": create_con_var,
    "date": generate_date_values,
}


def _first_with_role(specs, names, role):
    for name in names:
        if role in specs[name].roles:
            return name
    return None


def _order_anchored_dates(dataset, specs, anchored, raw_dates, logger):
    groups = {}
    for name, (anchor_name, entry_days) in anchored.items():
        groups.setdefault(anchor_name, (entry_days, []))[1].append(name)

    for entry_days, names in groups.values():
        dates = {name: raw_dates[name] for name in names}
        ordered = enforce_survival_order(
            dates,
            entry_days,
            event_var=_first_with_role(specs, names, "event"),
            death_var=_first_with_role(specs, names, "death"),
            logger=logger,
        )
        for name, (values, mask) in ordered.items():
            raw_dates[name] = (values, mask)
            column = coerce_column(values, specs[name].output_type, "date", mask)
            dataset[name] = column.values


def _ordered_variables(variables, scope=None):
    enabled = get_enabled_variables(variables)
    if enabled.empty:
        enabled = variables
    if scope is not None and "databaseStart" in enabled.columns:
        keep = enabled["databaseStart"].map(
            lambda cell: not split_list(cell) or str(scope) in split_list(cell)
        )
        enabled = enabled[keep.astype(bool)]
    if "position" in enabled.columns:
        positions = pd.to_numeric(enabled["position"], errors="coerce")
        enabled = enabled.assign(_position=positions).sort_values(
            "_position", kind="stable", na_position="last"
        )
        enabled = enabled.drop(columns="_position")
    return enabled.reset_index(drop=True)


def build_dataset(variables, variable_details, n=DEFAULT_ROWS, seed=None,
                  scope=None, rng=None, include_derived=False, logger=None):
    """Generate every selected variable in order.

    Returns ``(dataframe, skipped)`` where ``skipped`` maps a variable name to
    the reason it produced no column.
    """
    logger = resolve_logger(logger)
    n = resolve_row_count(n)
    variables = as_frame(variables, "variables")
    variable_details = as_frame(variable_details, "variable_details")
    if rng is None and seed is None:
        seed = DEFAULT_SEED
    rng = resolve_rng(rng, seed)

    if variables.empty or "variable" not in variables.columns:
        raise ValueError("variables must include a 'variable' column")

    ordered = _ordered_variables(variables, scope)
    specs = build_variable_specs(ordered, variable_details)
    dataset = pd.DataFrame(index=pd.RangeIndex(n))
    skipped = {}
    raw_dates = {}
    anchored = {}

    for name, spec in specs.items():
        if spec.is_derived:
            skipped[name] = "derived"
            logger.info(f"Variable '{name}' is derived from {list(spec.dependencies)}")
            if include_derived and name not in dataset.columns:
                dataset[name] = pd.Series([pd.NA] * n, dtype=object)
            continue

        generator = _GENERATORS.get(spec.generator_kind)
        if generator is None:
            skipped[name] = f"unsupported variableType '{spec.variable_type}'"
            logger.warning(
                f"Variable '{name}' has unsupported variableType "
                f"'{spec.variable_type}'; skipping"
            )
            continue

        anchor = None
        if spec.generator_kind == "date" and spec.anchor:
            if spec.anchor in raw_dates:
                values, mask = raw_dates[spec.anchor]
                anchor = np.where(mask, np.nan, values)
            elif spec.anchor in dataset.columns:
                anchor = anchor_day_numbers(dataset[spec.anchor], n)
            else:
                logger.warning(
                    f"Variable '{name}' anchor '{spec.anchor}' has not been "
                    "generated; drawing from its own date range"
                )

        try:
            built = generator(
                name,
                variables,
                variable_details,
                dataset=dataset,
                n=n,
                rng=rng,
                scope=scope,
                anchor=anchor,
                logger=logger,
            )
        except Exception as exc:
            skipped[name] = f"error: {exc}"
            logger.warning(f"Variable '{name}' failed to generate: {exc}")
            continue

        if built is None:
            skipped[name] = "not generated"
            logger.warning(
                f"Variable '{name}' was not generated "
                "(already present, out of scope or no valid categories)"
            )
            continue

        if spec.generator_kind == "date":
            _, values, mask = built
            raw_dates[name] = (values, mask)
            if anchor is not None:
                anchored[name] = (spec.anchor, anchor)
            column = coerce_column(values, spec.output_type, "date", mask)
        else:
            column = built[name]
        dataset[name] = column.values
        logger.info(f"Generated '{name}' ({spec.generator_kind}, {spec.output_type})")

    _order_anchored_dates(dataset, specs, anchored, raw_dates, logger)
    return dataset, skipped


def create_mock_data(variables, variable_details, n=DEFAULT_ROWS, seed=None,
                     scope=None, rng=None, logger=None):
    """Build a synthetic dataset from the enabled variables of the metadata."""
    dataset, _ = build_dataset(
        variables,
        variable_details,
        n=n,
        seed=seed,
        scope=scope,
        rng=rng,
        logger=logger,
    )
    return dataset
