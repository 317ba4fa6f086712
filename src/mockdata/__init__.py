"""Public package interface for mockdata."""

from importlib.metadata import PackageNotFoundError, version

from .api.models import GenerateResult, RunConfig
from .api.synthesizer import MockDataSynthesizer, generate
from .engine.assembly import create_mock_data
from .engine.generators import (
    create_cat_var,
    create_cat_var_from_params,
    create_con_var,
    create_con_var_from_params,
    create_date_var,
    create_date_var_from_params,
)
from .engine.proportions import determine_proportions, resolve_proportions
from .engine.survival import create_survival_dates, create_wide_survival_data
from .runtime.rng import RNG
from .schema.metadata import (
    DerivedVariableSpec,
    VariableSpec,
    add_contamination,
    get_cycle_variables,
    get_raw_var_dependencies,
    get_raw_variables,
    get_variable_categories,
    get_variable_details,
    identify_derived_vars,
)
from .schema.notation import parse_range_notation, parse_variable_start
from .schema.samples import available_samples, get_sample_metadata, load_metadata
from .schema.validation import validate_details, validate_metadata, validate_variables

try:
    __version__ = version("mockdata")
except PackageNotFoundError:
    __version__ = "0.1.0"


__all__ = [
    "DerivedVariableSpec",
    "GenerateResult",
    "MockDataSynthesizer",
    "RNG",
    "RunConfig",
    "VariableSpec",
    "add_contamination",
    "available_samples",
    "create_cat_var",
    "create_cat_var_from_params",
    "create_con_var",
    "create_con_var_from_params",
    "create_date_var",
    "create_date_var_from_params",
    "create_mock_data",
    "create_survival_dates",
    "create_wide_survival_data",
    "determine_proportions",
    "generate",
    "get_cycle_variables",
    "get_raw_var_dependencies",
    "get_raw_variables",
    "get_sample_metadata",
    "get_variable_categories",
    "get_variable_details",
    "identify_derived_vars",
    "load_metadata",
    "parse_range_notation",
    "parse_variable_start",
    "resolve_proportions",
    "validate_details",
    "validate_metadata",
    "validate_variables",
]
