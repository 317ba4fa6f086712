"""
Default settings and metadata conventions for the generator.
"""

DEFAULT_ROWS = 1000
DEFAULT_SEED = 42
DEFAULT_LOG_LEVEL = "info"

# Declared valid+missing proportions may drift from 1.0 by this much before
# they are rescaled (with a warning).
PROPORTION_TOLERANCE = 0.001

# When the pool of untouched valid rows is smaller than a contamination rule
# asks for, contaminate what is left and warn.
CONTAMINATION_UNDERSUPPLY = "warn"

# Metadata notation.
MISSING_PREFIX = "NA::"
CONTAMINATION_PREFIX = "corrupt_"
LEGACY_CONTAMINATION_PREFIX = "garbage_"
FUNCTION_PREFIX = "Func::"
DERIVED_PREFIX = "DerivedVar::"
SPECIAL_TOKENS = ("NA::a", "NA::b", "copy", "else")
OTHERWISE_TOKEN = "else"
ENABLED_ROLE = "enabled"

PARAMETER_ROLES = (
    "mean",
    "sd",
    "rate",
    "shape",
    "followup_min",
    "followup_max",
    "event_prop",
    "distribution",
)

VARIABLE_TYPES = ("categorical", "continuous", "date")
DEFAULT_R_TYPES = {
    "categorical": "factor",
    "continuous": "double",
    "date": "Date",
}
VALID_R_TYPES = ("integer", "double", "factor", "character", "logical", "Date")

CONTINUOUS_DISTRIBUTIONS = ("uniform", "normal", "exponential")
DATE_DISTRIBUTIONS = ("uniform", "normal", "exponential", "gompertz")

# Fallback populations used when a variable has no detail rows.
DEFAULT_CATEGORIES = ("1", "2")
DEFAULT_CONTINUOUS_RANGE = (0.0, 100.0)
DEFAULT_DATE_RANGE = ("2000-01-01", "2005-12-31")
DEFAULT_FOLLOWUP_DAYS = (365, 3650)

# Hazard parameters for gompertz draws, in units of the sampled window.
DEFAULT_GOMPERTZ_RATE = 0.5
DEFAULT_GOMPERTZ_SHAPE = 2.0

# Generic implausible values when a contamination rule has no range.
DEFAULT_CONTAMINATION_LOW = (-100.0, -1.0)
DEFAULT_CONTAMINATION_HIGH = (200.0, 1000.0)
CONTAMINATION_FUTURE_YEARS = (1, 100)
CONTAMINATION_PAST_YEARS = (1, 100)
# Date low/high contamination lands this many years outside the valid window.
CONTAMINATION_DATE_SHIFT_YEARS = (1, 5)
