"""
Metadata model: variable descriptors, detail rows and table lookups.

Both metadata tables arrive as ``pandas.DataFrame`` objects (lists of row
mappings are accepted too). Descriptors are resolved once per build; derived
variables are tagged here so the engine never has to re-inspect prefixes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from ..defaults import (
    CONTAMINATION_PREFIX,
    DEFAULT_R_TYPES,
    DERIVED_PREFIX,
    ENABLED_ROLE,
    FUNCTION_PREFIX,
    LEGACY_CONTAMINATION_PREFIX,
    MISSING_PREFIX,
    OTHERWISE_TOKEN,
    PARAMETER_ROLES,
)
from .notation import INTEGER, parse_range_notation, parse_variable_start

VALID = "valid"
MISSING = "missing"
CONTAMINATION = "contamination"
PARAMETER = "parameter"
EXCLUDED = "excluded"

_DERIVED_RE = re.compile(r"DerivedVar::\s*\[(.*)\]")


def _is_blank(value) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    return isinstance(value, str) and not value.strip()


def clean_text(value) -> str | None:
    """Return stripped text, or None for blank/NA cells."""
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_float(value) -> float | None:
    if _is_blank(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def split_list(value) -> list[str]:
    text = clean_text(value)
    if text is None:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def as_frame(table: Any, label: str) -> pd.DataFrame:
    """Accept a DataFrame, a list of row mappings or a column mapping."""
    if table is None:
        return pd.DataFrame()
    if isinstance(table, pd.DataFrame):
        return table
    if isinstance(table, (list, tuple)):
        if table and not all(isinstance(row, dict) for row in table):
            raise TypeError(f"{label} rows must be mappings")
        return pd.DataFrame(list(table))
    if isinstance(table, dict):
        return pd.DataFrame(table)
    raise TypeError(f"{label} must be a DataFrame, a list of rows or a mapping")


def normalize_contamination_kind(role: str) -> str:
    for prefix in (CONTAMINATION_PREFIX, LEGACY_CONTAMINATION_PREFIX):
        if role.startswith(prefix):
            return role[len(prefix):]
    return role


@dataclass(frozen=True)
class ContaminationRule:
    """One independent corruption rule: ``kind`` is low, high, future or past."""

    kind: str
    proportion: float
    range_text: str | None = None

    def parsed_range(self, hint="numeric"):
        if self.range_text is None:
            return None
        return parse_range_notation(self.range_text, hint=hint)


@dataclass(frozen=True)
class DetailRow:
    token: str | None
    role: str | None
    proportion: float | None = None
    value: str | None = None

    @property
    def section(self) -> str:
        role = self.role or ""
        token = self.token or ""
        if role.startswith(CONTAMINATION_PREFIX) or role.startswith(
            LEGACY_CONTAMINATION_PREFIX
        ):
            return CONTAMINATION
        if (
            role.startswith(FUNCTION_PREFIX)
            or role == OTHERWISE_TOKEN
            or token == OTHERWISE_TOKEN
            or token.startswith(FUNCTION_PREFIX)
            or token.startswith(DERIVED_PREFIX)
        ):
            return EXCLUDED
        if role in PARAMETER_ROLES:
            return PARAMETER
        if role.startswith(MISSING_PREFIX):
            return MISSING
        return VALID

    @property
    def code_text(self) -> str | None:
        """Literal written for a missing-code row (``value`` wins over the token)."""
        return self.value if self.value is not None else self.token


@dataclass(frozen=True)
class VariableSpec:
    """Descriptor for one raw output column."""

    name: str
    variable_type: str
    r_type: str | None = None
    roles: tuple[str, ...] = ()
    position: float | None = None
    distribution: str | None = None
    mean: float | None = None
    sd: float | None = None
    rate: float | None = None
    shape: float | None = None
    contamination: tuple[ContaminationRule, ...] = ()
    followup_min: float | None = None
    followup_max: float | None = None
    event_prop: float | None = None
    anchor: str | None = None
    scopes: tuple[str, ...] = ()
    variable_start: str | None = None

    @property
    def is_derived(self) -> bool:
        return False

    @property
    def output_type(self) -> str:
        return self.r_type or DEFAULT_R_TYPES.get(self.variable_type, "character")

    @property
    def generator_kind(self) -> str:
        if self.variable_type == "date" or any("date" in r for r in self.roles):
            return "date"
        return self.variable_type

    def raw_name(self, scope=None) -> str | None:
        if scope is None or self.variable_start is None:
            return self.name
        return parse_variable_start(self.variable_start, scope)


@dataclass(frozen=True)
class DerivedVariableSpec(VariableSpec):
    """Computed variable; never populated by the generators."""

    dependencies: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_derived(self) -> bool:
        return True


def detail_rows(details: pd.DataFrame) -> list[DetailRow]:
    rows = []
    if details is None or details.empty:
        return rows
    for record in details.to_dict(orient="records"):
        rows.append(
            DetailRow(
                token=clean_text(record.get("recStart")),
                role=clean_text(record.get("recEnd")),
                proportion=to_float(record.get("proportion")),
                value=clean_text(record.get("value")),
            )
        )
    return rows


def get_variable_details(variable_details, var, scope=None) -> pd.DataFrame:
    """Detail rows of ``var``, restricted to ``scope`` when one is given.

    Rows with a blank ``databaseStart`` apply to every scope.
    """
    details = as_frame(variable_details, "variable_details")
    if details.empty or "variable" not in details.columns:
        return details.iloc[0:0]

    selected = details[details["variable"].astype(str) == str(var)]
    if scope is not None and "databaseStart" in selected.columns:
        keep = selected["databaseStart"].map(
            lambda cell: not split_list(cell) or str(scope) in split_list(cell)
        )
        selected = selected[keep.astype(bool)]
    if "uid_detail" in selected.columns:
        selected = selected.sort_values("uid_detail", kind="stable")
    return selected.reset_index(drop=True)


def get_raw_var_dependencies(text) -> list[str]:
    """Parse ``DerivedVar::[a, b]`` into ``["a", "b"]``."""
    clean = clean_text(text)
    if clean is None:
        return []
    match = _DERIVED_RE.search(clean)
    if not match:
        return []
    return [part.strip() for part in match.group(1).split(",") if part.strip()]


def _details_by_variable(details: pd.DataFrame) -> dict[str, pd.DataFrame]:
    if details.empty or "variable" not in details.columns:
        return {}
    return {
        str(name): group
        for name, group in details.groupby(details["variable"].astype(str), sort=False)
    }


def _derived_dependencies(row: dict, details: pd.DataFrame | None):
    """Return the dependency tuple for a derived variable, or None when raw."""
    derived = False
    dependencies = []

    start = clean_text(row.get("variableStart"))
    if start and start.startswith(DERIVED_PREFIX):
        derived = True
        dependencies.extend(get_raw_var_dependencies(start))

    if details is not None and not details.empty:
        for record in details.to_dict(orient="records"):
            rec_start = clean_text(record.get("recStart")) or ""
            rec_end = clean_text(record.get("recEnd")) or ""
            if rec_start.startswith(DERIVED_PREFIX):
                derived = True
                dependencies.extend(get_raw_var_dependencies(rec_start))
            if rec_end.startswith(FUNCTION_PREFIX):
                derived = True

    if not derived:
        return None
    return tuple(dict.fromkeys(dependencies))


def identify_derived_vars(variables, variable_details) -> list[str]:
    """Names of variables computed from others (``DerivedVar::`` or ``Func::``)."""
    frame = as_frame(variables, "variables")
    details = as_frame(variable_details, "variable_details")
    grouped = _details_by_variable(details)
    names = []
    if frame.empty or "variable" not in frame.columns:
        return names
    for row in frame.to_dict(orient="records"):
        name = clean_text(row.get("variable"))
        if name is None:
            continue
        if _derived_dependencies(row, grouped.get(name)) is not None:
            names.append(name)
    return names


def _parameter_overrides(details: pd.DataFrame | None) -> dict[str, Any]:
    overrides = {}
    for row in detail_rows(details):
        if row.section != PARAMETER:
            continue
        raw = row.value if row.value is not None else row.token
        if row.role == "distribution":
            overrides["distribution"] = raw.lower() if raw else None
        else:
            overrides[row.role] = to_float(raw)
    return overrides


def _contamination_from_row(row: dict) -> tuple[ContaminationRule, ...]:
    rules = []
    for kind in ("low", "high"):
        proportion = to_float(row.get(f"corrupt_{kind}_prop"))
        if proportion is None or proportion <= 0:
            continue
        rules.append(
            ContaminationRule(
                kind=kind,
                proportion=proportion,
                range_text=clean_text(row.get(f"corrupt_{kind}_range")),
            )
        )
    return tuple(rules)


def build_variable_spec(row: dict, details: pd.DataFrame | None = None) -> VariableSpec:
    """Resolve one variables-table row (plus its details) into a descriptor."""
    name = clean_text(row.get("variable"))
    if name is None:
        raise ValueError("Variable row is missing 'variable'")
    variable_type = (clean_text(row.get("variableType")) or "").lower()
    overrides = _parameter_overrides(details)

    def _param(key):
        value = to_float(row.get(key))
        return value if value is not None else overrides.get(key)

    distribution = clean_text(row.get("distribution"))
    distribution = distribution.lower() if distribution else overrides.get("distribution")

    payload = dict(
        name=name,
        variable_type=variable_type,
        r_type=clean_text(row.get("rType")),
        roles=tuple(split_list(row.get("role"))),
        position=to_float(row.get("position")),
        distribution=distribution,
        mean=_param("mean"),
        sd=_param("sd"),
        rate=_param("rate"),
        shape=_param("shape"),
        contamination=_contamination_from_row(row),
        followup_min=_param("followup_min"),
        followup_max=_param("followup_max"),
        event_prop=_param("event_prop"),
        anchor=clean_text(row.get("anchor")),
        scopes=tuple(split_list(row.get("databaseStart"))),
        variable_start=clean_text(row.get("variableStart")),
    )

    dependencies = _derived_dependencies(row, details)
    if dependencies is not None:
        return DerivedVariableSpec(dependencies=dependencies, **payload)
    return VariableSpec(**payload)


def build_variable_specs(variables, variable_details=None) -> dict[str, VariableSpec]:
    frame = as_frame(variables, "variables")
    details = as_frame(variable_details, "variable_details")
    grouped = _details_by_variable(details)
    specs = {}
    if frame.empty:
        return specs
    for row in frame.to_dict(orient="records"):
        name = clean_text(row.get("variable"))
        if name is None:
            continue
        specs[name] = build_variable_spec(row, grouped.get(name))
    return specs


def find_variable_spec(var, variables, variable_details=None, scope=None):
    """Descriptor for ``var`` or None when the name is unknown."""
    frame = as_frame(variables, "variables")
    if frame.empty or "variable" not in frame.columns:
        return None
    matches = frame[frame["variable"].astype(str) == str(var)]
    if matches.empty:
        return None
    details = get_variable_details(variable_details, var, scope=scope)
    return build_variable_spec(matches.iloc[0].to_dict(), details)


def get_enabled_variables(variables, role=ENABLED_ROLE) -> pd.DataFrame:
    frame = as_frame(variables, "variables")
    if frame.empty or "role" not in frame.columns:
        return frame.iloc[0:0]
    keep = frame["role"].map(lambda cell: role in split_list(cell))
    return frame[keep.astype(bool)].reset_index(drop=True)


def get_cycle_variables(variables, scope) -> pd.DataFrame:
    """Variables available in ``scope`` according to ``databaseStart``."""
    frame = as_frame(variables, "variables")
    if frame.empty or "databaseStart" not in frame.columns:
        return frame.iloc[0:0]
    keep = frame["databaseStart"].map(lambda cell: str(scope) in split_list(cell))
    return frame[keep.astype(bool)].reset_index(drop=True)


def get_raw_variables(variables, variable_details, scope) -> pd.DataFrame:
    """Group the raw (non-derived) variables of ``scope`` by raw source name."""
    cycle_vars = get_cycle_variables(variables, scope)
    derived = set(identify_derived_vars(cycle_vars, variable_details))

    grouped: dict[str, dict[str, Any]] = {}
    for row in cycle_vars.to_dict(orient="records"):
        name = clean_text(row.get("variable"))
        if name is None or name in derived:
            continue
        raw = parse_variable_start(row.get("variableStart"), scope)
        if raw is None:
            continue
        entry = grouped.setdefault(
            raw,
            {
                "variable_raw": raw,
                "variableType": clean_text(row.get("variableType")),
                "harmonized": [],
            },
        )
        entry["harmonized"].append(name)

    records = [
        {
            "variable_raw": entry["variable_raw"],
            "variableType": entry["variableType"],
            "harmonized_vars": ", ".join(entry["harmonized"]),
            "n_harmonized": len(entry["harmonized"]),
        }
        for entry in grouped.values()
    ]
    return pd.DataFrame(
        records,
        columns=["variable_raw", "variableType", "harmonized_vars", "n_harmonized"],
    )


def add_contamination(
    variables,
    var,
    low_prop=None,
    low_range=None,
    high_prop=None,
    high_range=None,
) -> pd.DataFrame:
    """Return a copy of ``variables`` with contamination settings for ``var``."""
    frame = as_frame(variables, "variables").copy()
    if "variable" not in frame.columns or not (frame["variable"] == var).any():
        raise ValueError(f"Variable '{var}' not found in variables")

    for label, proportion, range_text in (
        ("low", low_prop, low_range),
        ("high", high_prop, high_range),
    ):
        if proportion is None:
            continue
        proportion = float(proportion)
        if not 0.0 <= proportion <= 1.0:
            raise ValueError(f"{label}_prop must be between 0 and 1")
        if range_text is not None and parse_range_notation(range_text) is None:
            raise ValueError(f"{label}_range '{range_text}' is not valid range notation")
        for column in (f"corrupt_{label}_prop", f"corrupt_{label}_range"):
            if column not in frame.columns:
                frame[column] = None
            frame[column] = frame[column].astype(object)
        mask = frame["variable"] == var
        frame.loc[mask, f"corrupt_{label}_prop"] = proportion
        frame.loc[mask, f"corrupt_{label}_range"] = range_text
    return frame


def get_variable_categories(rows, include_missing=False) -> list[str]:
    """Category codes listed by detail rows (integer ranges enumerated)."""
    if isinstance(rows, pd.DataFrame):
        rows = detail_rows(rows)
    sections = (VALID, MISSING) if include_missing else (VALID,)
    categories = []
    for row in rows:
        if row.section not in sections:
            continue
        text = row.code_text if row.section == MISSING else row.token
        if text is None or text == "copy":
            continue
        token = parse_range_notation(text)
        if token is not None and token.kind == INTEGER:
            categories.extend(str(value) for value in token.values)
        else:
            categories.append(text)
    return list(dict.fromkeys(categories))
