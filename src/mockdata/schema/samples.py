"""
Sample metadata stored as YAML strings.
"""

import copy
from typing import Any

import pandas as pd
import yaml

METADATA_MINIMAL = """
settings:
  name: "minimal_demo"
  n_rows: 200
  seed: 42

variables:
  - variable: "age"
    variableType: "continuous"
    rType: "integer"
    role: "enabled"
    position: 1

  - variable: "smoking"
    variableType: "categorical"
    role: "enabled"
    position: 2

  - variable: "bmi"
    variableType: "continuous"
    role: "enabled"
    position: 3
    distribution: "normal"
    mean: 27.0
    sd: 5.0

variable_details:
  - { variable: "age", recStart: "[18,100]", recEnd: "copy" }

  - { variable: "smoking", recStart: "1", recEnd: "1", proportion: 0.2 }
  - { variable: "smoking", recStart: "2", recEnd: "2", proportion: 0.3 }
  - { variable: "smoking", recStart: "3", recEnd: "3", proportion: 0.45 }
  - { variable: "smoking", recStart: "7", recEnd: "NA::a", proportion: 0.05 }

  - { variable: "bmi", recStart: "[15.0,50.0]", recEnd: "copy", proportion: 0.95 }
  - { variable: "bmi", recStart: "996", recEnd: "NA::a", proportion: 0.05 }
"""

METADATA_SURVEY = """
settings:
  name: "survey_cycles_demo"
  n_rows: 500
  seed: 2001
  scope: "cycle1"

variables:
  - variable: "age"
    variableType: "continuous"
    rType: "integer"
    role: "enabled"
    position: 1
    databaseStart: "cycle1, cycle2"
    variableStart: "cycle1::AGE_01, [AGE]"
    corrupt_low_prop: 0.01
    corrupt_low_range: "[-10,0]"
    corrupt_high_prop: 0.01
    corrupt_high_range: "[150,200]"

  - variable: "sex"
    variableType: "categorical"
    role: "enabled"
    position: 2
    databaseStart: "cycle1, cycle2"
    variableStart: "[SEX]"

  - variable: "income"
    variableType: "continuous"
    role: "enabled"
    position: 3
    databaseStart: "cycle2"
    variableStart: "cycle2::INC_02"
    distribution: "exponential"
    rate: 0.00002

  - variable: "interview_date"
    variableType: "date"
    role: "enabled, date"
    position: 4
    databaseStart: "cycle1, cycle2"
    variableStart: "[INTDATE]"

  - variable: "bmi_cat"
    variableType: "categorical"
    role: "enabled"
    position: 5
    databaseStart: "cycle1, cycle2"
    variableStart: "DerivedVar::[height, weight]"

variable_details:
  - { variable: "age", recStart: "[12,80]", recEnd: "copy", proportion: 0.97 }
  - { variable: "age", recStart: "[997,999]", recEnd: "NA::b", proportion: 0.03 }

  - { variable: "sex", recStart: "1", recEnd: "1", proportion: 0.49 }
  - { variable: "sex", recStart: "2", recEnd: "2", proportion: 0.49 }
  - { variable: "sex", recStart: "9", recEnd: "NA::b", proportion: 0.02 }

  - { variable: "income", recStart: "[0,inf)", recEnd: "copy", proportion: 0.9 }
  - { variable: "income", recStart: "99999999", recEnd: "NA::b", proportion: 0.1 }

  - variable: "interview_date"
    recStart: "[2001-01-01,2001-12-31]"
    recEnd: "copy"
    databaseStart: "cycle1"
  - variable: "interview_date"
    recStart: "[2003-01-01,2003-12-31]"
    recEnd: "copy"
    databaseStart: "cycle2"
  - { variable: "interview_date", recStart: "[2002-01-01,2002-12-31]", recEnd: "corrupt_future", proportion: 0.01 }

  - { variable: "bmi_cat", recStart: "DerivedVar::[height, weight]", recEnd: "Func::bmi_fun" }
"""

METADATA_SURVIVAL = """
settings:
  name: "survival_demo"
  n_rows: 1000
  seed: 7

variables:
  - variable: "entry_date"
    variableType: "date"
    role: "enabled"
    position: 1

  - variable: "event_date"
    variableType: "date"
    role: "enabled, event"
    position: 2
    anchor: "entry_date"
    distribution: "gompertz"
    followup_min: 30
    followup_max: 5475
    event_prop: 0.1

  - variable: "death_date"
    variableType: "date"
    role: "enabled, death"
    position: 3
    anchor: "entry_date"
    distribution: "gompertz"
    followup_min: 365
    followup_max: 7300
    event_prop: 0.2

  - variable: "ltfu_date"
    variableType: "date"
    role: "enabled, ltfu"
    position: 4
    anchor: "entry_date"
    followup_min: 365
    followup_max: 7300
    event_prop: 0.1

variable_details:
  - { variable: "entry_date", recStart: "[2001-01-01,2005-12-31]", recEnd: "copy" }
  - { variable: "event_date", recStart: "[2002-01-01,2021-12-31]", recEnd: "copy" }
  - { variable: "death_date", recStart: "[2002-01-01,2024-12-31]", recEnd: "copy" }
  - { variable: "ltfu_date", recStart: "[2002-01-01,2024-12-31]", recEnd: "copy" }
"""


_SAMPLE_METADATA = {
    "minimal": METADATA_MINIMAL,
    "survey": METADATA_SURVEY,
    "survival": METADATA_SURVIVAL,
}


def available_samples() -> list[str]:
    """Return sorted names for all built-in sample metadata sets."""

    return sorted(_SAMPLE_METADATA.keys())


def load_metadata_document(metadata: Any) -> dict[str, Any]:
    """Parse a metadata document from YAML text or dict input."""

    if isinstance(metadata, dict):
        return copy.deepcopy(metadata)

    if isinstance(metadata, str):
        parsed = yaml.safe_load(metadata)
        if parsed is None:
            raise ValueError("Metadata text is empty")
        if not isinstance(parsed, dict):
            raise ValueError("Metadata must parse to a mapping")
        return parsed

    raise TypeError("Metadata must be a dict or YAML string")


def load_metadata(metadata: Any) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Return the ``(variables, variable_details)`` tables of a metadata document."""

    document = load_metadata_document(metadata)
    variables = document.get("variables")
    if not isinstance(variables, list) or not variables:
        raise ValueError("Metadata must include a non-empty 'variables' list")
    details = document.get("variable_details") or []
    if not isinstance(details, list):
        raise ValueError("'variable_details' must be a list when provided")
    return pd.DataFrame(variables), pd.DataFrame(details)


def get_sample_metadata(name: str) -> dict[str, Any]:
    """Load one of the built-in sample metadata documents by name."""

    key = str(name).strip().lower()
    if key not in _SAMPLE_METADATA:
        options = ", ".join(available_samples())
        raise ValueError(f"Unknown sample metadata '{name}'. Available: {options}")
    return load_metadata_document(_SAMPLE_METADATA[key])
