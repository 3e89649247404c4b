from types import MappingProxyType
from typing import Literal

# ============================================================================
# SETTINGS & CONSTANTS
# ============================================================================

# These tables are methodological (IPCC, GHG Protocol, ISO 14001 LAIA practice).
# They are only ever passed into calculators as arguments.

DEFAULT_GWP_VERSION = "IPCC_AR6"

# 100-year global warming potentials per IPCC assessment report
GWP_VALUES_BY_VERSION = MappingProxyType({
    "IPCC_AR6": MappingProxyType({"CO2": 1.0, "CH4": 27.0, "N2O": 273.0}),
    "IPCC_AR5": MappingProxyType({"CO2": 1.0, "CH4": 28.0, "N2O": 265.0}),
    "IPCC_AR4": MappingProxyType({"CO2": 1.0, "CH4": 25.0, "N2O": 298.0}),
})

# Gases decomposed by the standard methodology, in reporting order
STANDARD_GASES = ("CO2", "CH4", "N2O")

CO2E_DECIMALS = 6

# Significance assessment (LAIA)
CONSEQUENCE_SCORES = MappingProxyType({
    ("local", "low"): 20,
    ("local", "medium"): 40,
    ("local", "high"): 60,
    ("regional", "low"): 25,
    ("regional", "medium"): 45,
    ("regional", "high"): 65,
    ("global", "low"): 30,
    ("global", "medium"): 50,
    ("global", "high"): 70,
})

FREQUENCY_PROBABILITY_SCORES = MappingProxyType({
    "low": 10,
    "medium": 20,
    "high": 30,
})

# Totals below MODERATE_MIN are negligible, totals above MODERATE_MAX are critical
MODERATE_MIN_SCORE = 50
MODERATE_MAX_SCORE = 70

# Safety frequency rate (LTIFR)
STANDARD_BLOCK_HOURS = 1_000_000

DATA_QUALITY_BY_SOURCE = MappingProxyType({
    "measured": ("high", 95),
    "estimated_from_headcount": ("medium", 70),
    "estimated_default": ("low", 50),
})

# (upper bound, upper bound inclusive, classification); the last band is open
RATE_BANDS = (
    (1.0, False, "excellent"),
    (3.0, False, "good"),
    (5.0, True, "attention"),
    (None, False, "critical"),
)

DEFAULT_HOURS_PER_EMPLOYEE = 2000.0

# Share of incidents causing lost time (%), dashboard bands (upper bound inclusive)
LOST_TIME_RATE_BANDS = (
    (10.0, "excellent"),
    (25.0, "good"),
    (50.0, "attention"),
    (None, "critical"),
)

TOP_INCIDENT_TYPES = 5

# Benchmarking
UNCHANGED_PERCENT_THRESHOLD = 0.01

# ============================================================================
# TYPES
# ============================================================================

Scope = Literal["local", "regional", "global"]
Severity = Literal["low", "medium", "high"]
FrequencyProbability = Literal["low", "medium", "high"]
Category = Literal["negligible", "moderate", "critical"]
Significance = Literal["significant", "not_significant"]
Methodology = Literal["direct_gwp", "standard_gwp"]
ExposureSource = Literal["measured", "estimated_from_headcount", "estimated_default"]
DataQuality = Literal["high", "medium", "low"]
RateClassification = Literal["excellent", "good", "attention", "critical"]
Direction = Literal["improving", "worsening", "unchanged"]

SCOPES = ("local", "regional", "global")
SEVERITIES = ("low", "medium", "high")
FREQUENCY_PROBABILITIES = ("low", "medium", "high")
CATEGORIES = ("negligible", "moderate", "critical")
