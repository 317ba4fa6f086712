"""
Metadata validation split into focused validators.

Each validator returns ``(warnings, errors)``. Errors make a build
meaningless (unknown types, duplicate names, impossible proportions);
warnings flag metadata the engine can still work around.
"""

from typing import Any

from ..defaults import (
    CONTINUOUS_DISTRIBUTIONS,
    DATE_DISTRIBUTIONS,
    PROPORTION_TOLERANCE,
    VALID_R_TYPES,
    VARIABLE_TYPES,
)
from .metadata import (
    CONTAMINATION,
    MISSING,
    VALID,
    as_frame,
    clean_text,
    detail_rows,
    to_float,
)
from .notation import parse_range_notation

REQUIRED_VARIABLE_COLUMNS = ("variable", "variableType")
REQUIRED_DETAIL_COLUMNS = ("variable", "recStart")


def _check_proportion(
    label: str, value: Any, errors: list[str], upper: float | None = 1.0
) -> None:
    if clean_text(value) is None:
        return
    numeric = to_float(value)
    if numeric is None:
        errors.append(f"{label} must be numeric")
    elif upper is None and numeric < 0.0:
        errors.append(f"{label} must not be negative")
    elif upper is not None and (numeric < 0.0 or numeric > upper):
        errors.append(f"{label} must be between 0 and {upper:g}")


def validate_variables(variables: Any) -> tuple[list[str], list[str]]:
    """Validate the variables table.

    Args:
        variables: Variables table (DataFrame or list of row mappings)

    Returns:
        Tuple of (warnings, errors)
    """
    warnings = []
    errors = []

    frame = as_frame(variables, "variables")
    missing_columns = [c for c in REQUIRED_VARIABLE_COLUMNS if c not in frame.columns]
    if missing_columns:
        errors.append(f"variables missing required columns: {missing_columns}")
        return warnings, errors
    if frame.empty:
        errors.append("variables has no rows")
        return warnings, errors

    names = [clean_text(name) for name in frame["variable"]]
    if any(name is None for name in names):
        errors.append("variables has rows without a 'variable' name")
    present = [name for name in names if name is not None]
    duplicates = sorted({name for name in present if present.count(name) > 1})
    if duplicates:
        errors.append(f"Duplicate variable names: {duplicates[:5]}")
    known = set(present)

    for row in frame.to_dict(orient="records"):
        name = clean_text(row.get("variable"))
        if name is None:
            continue

        variable_type = (clean_text(row.get("variableType")) or "").lower()
        if variable_type not in VARIABLE_TYPES:
            errors.append(
                f"Variable '{name}' has unsupported variableType '{variable_type}'"
            )

        r_type = clean_text(row.get("rType"))
        if r_type is not None and r_type not in VALID_R_TYPES:
            warnings.append(
                f"Variable '{name}' has unknown rType '{r_type}'; values pass through"
            )

        distribution = clean_text(row.get("distribution"))
        if distribution is not None:
            allowed = DATE_DISTRIBUTIONS if variable_type == "date" else CONTINUOUS_DISTRIBUTIONS
            if distribution.lower() not in allowed:
                warnings.append(
                    f"Variable '{name}' distribution must be one of {', '.join(allowed)}"
                )

        for kind in ("low", "high"):
            _check_proportion(
                f"Variable '{name}' corrupt_{kind}_prop",
                row.get(f"corrupt_{kind}_prop"),
                errors,
            )
            range_text = clean_text(row.get(f"corrupt_{kind}_range"))
            if range_text is not None and parse_range_notation(range_text) is None:
                warnings.append(
                    f"Variable '{name}' corrupt_{kind}_range '{range_text}' is not "
                    "valid range notation"
                )

        _check_proportion(f"Variable '{name}' event_prop", row.get("event_prop"), errors)

        low = to_float(row.get("followup_min"))
        high = to_float(row.get("followup_max"))
        if low is not None and high is not None and low > high:
            errors.append(f"Variable '{name}' followup_min exceeds followup_max")

        anchor = clean_text(row.get("anchor"))
        if anchor is not None and anchor not in known:
            warnings.append(f"Variable '{name}' anchor '{anchor}' is not a known variable")

    return warnings, errors


def validate_details(
    variable_details: Any, variables: Any = None
) -> tuple[list[str], list[str]]:
    """Validate the variable details table.

    Args:
        variable_details: Details table (DataFrame or list of row mappings)
        variables: Optional variables table used to check references and
            choose the date/numeric parse hint

    Returns:
        Tuple of (warnings, errors)
    """
    warnings = []
    errors = []

    details = as_frame(variable_details, "variable_details")
    if details.empty:
        return warnings, errors
    missing_columns = [c for c in REQUIRED_DETAIL_COLUMNS if c not in details.columns]
    if missing_columns:
        errors.append(f"variable_details missing required columns: {missing_columns}")
        return warnings, errors

    types = {}
    if variables is not None:
        frame = as_frame(variables, "variables")
        if {"variable", "variableType"}.issubset(frame.columns):
            types = {
                clean_text(row["variable"]): (clean_text(row["variableType"]) or "").lower()
                for row in frame.to_dict(orient="records")
            }

    for name, group in details.groupby(details["variable"].astype(str), sort=False):
        if types and name not in types:
            warnings.append(f"variable_details references unknown variable '{name}'")
        hint = "date" if types.get(name) == "date" else "numeric"
        check_ranges = types.get(name) in ("continuous", "date")

        if "proportion" in group.columns:
            for value in group["proportion"]:
                _check_proportion(
                    f"Variable '{name}' proportion", value, errors, upper=None
                )

        population_total = 0.0
        declared = False
        for row in detail_rows(group):
            if row.section in (VALID, MISSING) and row.proportion is not None:
                population_total += row.proportion
                declared = True
            if check_ranges and row.section == VALID and row.token not in (None, "copy"):
                if parse_range_notation(row.token, hint=hint) is None:
                    warnings.append(
                        f"Variable '{name}' recStart '{row.token}' is not valid range notation"
                    )
            if row.section == CONTAMINATION and row.proportion is None:
                warnings.append(
                    f"Variable '{name}' contamination row '{row.role}' has no proportion"
                )
        if declared and abs(population_total - 1.0) > PROPORTION_TOLERANCE:
            warnings.append(
                f"Variable '{name}' proportions sum to {population_total:.4f}; "
                "they will be rescaled"
            )

    return warnings, errors


def validate_metadata(variables: Any, variable_details: Any) -> tuple[list[str], list[str]]:
    """Validate both metadata tables together."""
    warnings, errors = validate_variables(variables)
    detail_warnings, detail_errors = validate_details(variable_details, variables)
    warnings.extend(detail_warnings)
    errors.extend(detail_errors)
    return warnings, errors
