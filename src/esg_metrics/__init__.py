from .models import (
    GWPTable,
    GasFactorSet,
    GasContribution,
    CO2EquivalenceResult,
    ExposureMetricInput,
    FrequencyRateResult,
    SignificanceAssessmentInput,
    SignificanceAssessmentResult,
    BenchmarkComparison,
    LostTimeSummary,
    Settings,
    AssessmentRow
)
from .errors import ESGMetricsError, ValidationError, ConfigurationError
from .significance import classify, ScoringTables, DEFAULT_SCORING_TABLES
from .emissions import compute_co2e, format_co2e, GWP_AR6, GWP_AR5, GWP_AR4
from .safety import compute_rate, summarize_lost_time_incidents
from .utils.calculations import compare

__all__ = [
    "GWPTable",
    "GasFactorSet",
    "GasContribution",
    "CO2EquivalenceResult",
    "ExposureMetricInput",
    "FrequencyRateResult",
    "SignificanceAssessmentInput",
    "SignificanceAssessmentResult",
    "BenchmarkComparison",
    "LostTimeSummary",
    "Settings",
    "AssessmentRow",
    "ESGMetricsError",
    "ValidationError",
    "ConfigurationError",
    "classify",
    "ScoringTables",
    "DEFAULT_SCORING_TABLES",
    "compute_co2e",
    "format_co2e",
    "GWP_AR6",
    "GWP_AR5",
    "GWP_AR4",
    "compute_rate",
    "summarize_lost_time_incidents",
    "compare"
]
