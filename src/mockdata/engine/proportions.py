"""
Resolve per-variable detail rows into valid/missing/contamination weights.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from ..defaults import PROPORTION_TOLERANCE
from ..runtime.logging_utils import resolve_logger
from ..schema.metadata import (
    CONTAMINATION,
    MISSING,
    VALID,
    ContaminationRule,
    detail_rows,
    normalize_contamination_kind,
)
from ..schema.notation import (
    CONTINUOUS,
    DATE,
    INTEGER,
    SINGLE,
    parse_range_notation,
)


@dataclass
class ProportionResult:
    """Normalized weights for one variable.

    ``valid`` plus the values of ``missing`` sum to 1.0. ``category_weights``
    and ``missing_weights`` are each normalized within their own section.
    Contamination rules keep their declared probabilities.
    """

    valid: float = 1.0
    categories: list[str] = field(default_factory=list)
    category_weights: list[float] = field(default_factory=list)
    missing: dict[str, float] = field(default_factory=dict)
    missing_weights: dict[str, float] = field(default_factory=dict)
    contamination: list[ContaminationRule] = field(default_factory=list)
    ranges: list = field(default_factory=list)
    range_weights: list[float] = field(default_factory=list)
    is_default: bool = False

    @property
    def missing_share(self) -> float:
        return float(sum(self.missing.values()))


def _check_declared(value, variable_name):
    # Shares above 1 are rescaled with the rest of the population.
    if value is not None and value < 0.0:
        raise ValueError(f"Variable '{variable_name}' has negative proportion {value}")


def _population_weights(population, variable_name, logger):
    declared = [row.proportion for row in population]
    for value in declared:
        _check_declared(value, variable_name)

    count = len(population)
    if all(value is None for value in declared):
        return [1.0 / count] * count

    total_declared = float(sum(value for value in declared if value is not None))
    undeclared = sum(1 for value in declared if value is None)
    remainder = max(0.0, 1.0 - total_declared)
    share = remainder / undeclared if undeclared else 0.0
    weights = [share if value is None else float(value) for value in declared]

    total = float(sum(weights))
    if total <= 0.0:
        logger.warning(
            f"Variable '{variable_name}' proportions sum to 0; using uniform weights"
        )
        return [1.0 / count] * count
    if abs(total - 1.0) > PROPORTION_TOLERANCE:
        logger.warning(
            f"Variable '{variable_name}' proportions sum to {total:.4f}; "
            "rescaling to 1.0"
        )
        weights = [weight / total for weight in weights]
    return weights


def _normalize(values):
    total = float(sum(values))
    if total <= 0.0:
        return [1.0 / len(values)] * len(values) if values else []
    return [float(value) / total for value in values]


def _category_entries(row):
    """(label, share-of-row) pairs for one valid categorical row."""
    text = row.token if row.token not in (None, "copy") else row.role
    if text is None:
        return []
    token = parse_range_notation(text)
    if token is not None and token.kind == INTEGER:
        values = token.values
        return [(str(value), 1.0 / len(values)) for value in values]
    return [(text, 1.0)]


def resolve_proportions(rows, variable_name, kind="categorical", logger=None):
    """Partition detail rows and normalize their weights.

    ``rows`` is a list of :class:`DetailRow` or the details frame of one
    variable. ``kind`` selects how valid rows are read: category codes for
    ``categorical``, ranges for ``continuous`` and ``date``.
    """
    logger = resolve_logger(logger)
    if isinstance(rows, pd.DataFrame):
        rows = detail_rows(rows)
    rows = list(rows or [])
    hint = "date" if kind == "date" else "numeric"

    result = ProportionResult()
    for row in rows:
        if row.section != CONTAMINATION:
            continue
        _check_declared(row.proportion, variable_name)
        result.contamination.append(
            ContaminationRule(
                kind=normalize_contamination_kind(row.role),
                proportion=row.proportion if row.proportion is not None else 0.0,
                range_text=row.token if row.token not in (None, "copy") else None,
            )
        )

    population = [row for row in rows if row.section in (VALID, MISSING)]
    if not population:
        result.is_default = True
        return result

    weights = _population_weights(population, variable_name, logger)

    valid_share = 0.0
    labels = []
    label_weights = []
    ranges = []
    range_weights = []
    for row, weight in zip(population, weights):
        if row.section == MISSING:
            code = row.code_text or row.role
            result.missing[code] = result.missing.get(code, 0.0) + weight
            continue
        valid_share += weight
        if kind == "categorical":
            for label, share in _category_entries(row):
                labels.append(label)
                label_weights.append(weight * share)
            continue
        token = parse_range_notation(row.token, hint=hint)
        if token is None or token.kind not in (SINGLE, INTEGER, CONTINUOUS, DATE):
            if row.token not in (None, "copy"):
                logger.warning(
                    f"Variable '{variable_name}' has unparseable range "
                    f"'{row.token}'; ignoring it"
                )
            continue
        ranges.append(token)
        range_weights.append(weight)

    merged = {}
    for label, weight in zip(labels, label_weights):
        merged[label] = merged.get(label, 0.0) + weight
    result.categories = list(merged.keys())
    result.category_weights = _normalize(list(merged.values()))
    result.ranges = ranges
    result.range_weights = _normalize(range_weights)
    result.valid = float(valid_share)
    result.missing_weights = dict(
        zip(result.missing.keys(), _normalize(list(result.missing.values())))
    )
    return result


def determine_proportions(categories, proportions=None):
    """Normalized weights for ``categories`` from an explicit request.

    ``proportions`` may be None (uniform), a mapping covering every category,
    or a sequence with one entry per category.
    """
    categories = list(categories)
    if not categories:
        raise ValueError("categories must not be empty")
    if proportions is None:
        return np.full(len(categories), 1.0 / len(categories))

    if isinstance(proportions, Mapping):
        lookup = {str(key): value for key, value in proportions.items()}
        missing = [cat for cat in categories if str(cat) not in lookup]
        if missing:
            raise ValueError(f"proportions missing categories: {missing[:5]}")
        values = [lookup[str(cat)] for cat in categories]
    else:
        values = list(proportions)
        if len(values) != len(categories):
            raise ValueError(
                f"proportions has {len(values)} entries for "
                f"{len(categories)} categories"
            )

    values = np.asarray(values, dtype=float)
    if np.any(values < 0.0) or np.any(values > 1.0):
        raise ValueError("proportions must be between 0 and 1")
    total = float(values.sum())
    if total <= 0.0:
        raise ValueError("proportions must not all be zero")
    return values / total
