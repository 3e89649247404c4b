import math
import logging
from numbers import Real

from ..constants import CO2E_DECIMALS, UNCHANGED_PERCENT_THRESHOLD
from ..models import (
    BenchmarkComparison, CO2EquivalenceResult, FrequencyRateResult, SignificanceAssessmentResult
)
from ..errors import ValidationError

logger = logging.getLogger(__name__)


def f6(x: float) -> str:
    """
    Format a float with the fixed CO2e reporting precision (CO2E_DECIMALS).
    """
    return f"{x:.{CO2E_DECIMALS}f}"


def grouped_int(x: float) -> str:
    """Whole number with thousands separators, e.g. 1430 -> '1,430'."""
    return f"{x:,.0f}"


def require_number(field_name: str, value, allow_negative: bool = False) -> float:
    """
    Validate a numeric input: a real, finite number (bools are rejected).
    Returns the value as float.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{field_name} must be a number, got {value!r}", field=field_name)
    value = float(value)
    if not math.isfinite(value):
        raise ValidationError(f"{field_name} must be finite, got {value}", field=field_name)
    if not allow_negative and value < 0:
        raise ValidationError(f"{field_name} must not be negative, got {value}", field=field_name)
    return value


def compare(current: float, baseline: float, lower_is_better: bool = True) -> BenchmarkComparison:
    """
    Compare a computed value against a sector or historical baseline.

    delta = current - baseline, percent_change relative to |baseline|.
    Changes below UNCHANGED_PERCENT_THRESHOLD percent are 'unchanged'.
    lower_is_better selects the preferred direction (True for frequency
    rates and emission intensities, False for e.g. completion rates).
    """
    current = require_number("current", current, allow_negative=True)
    baseline = require_number("baseline", baseline, allow_negative=True)

    delta = current - baseline
    if baseline == 0:
        if current == 0:
            return BenchmarkComparison(delta=0.0, percent_change=0.0, direction="unchanged", is_better=False)
        raise ValidationError("Percent change from a zero baseline is undefined", field="baseline")

    percent_change = delta / abs(baseline) * 100.0
    if abs(percent_change) < UNCHANGED_PERCENT_THRESHOLD:
        return BenchmarkComparison(delta=delta, percent_change=percent_change, direction="unchanged", is_better=False)

    is_better = (delta < 0) if lower_is_better else (delta > 0)
    direction = "improving" if is_better else "worsening"
    return BenchmarkComparison(delta=delta, percent_change=percent_change, direction=direction, is_better=is_better)


def compare_rate(result: FrequencyRateResult, baseline_rate: float) -> BenchmarkComparison:
    return compare(result.rate, baseline_rate, lower_is_better=True)


def compare_co2e(result: CO2EquivalenceResult, baseline_co2e: float) -> BenchmarkComparison:
    return compare(result.total_co2e, baseline_co2e, lower_is_better=True)


def compare_scores(result: SignificanceAssessmentResult, baseline: SignificanceAssessmentResult) -> BenchmarkComparison:
    """Re-assessment of the same aspect against its previous total score."""
    return compare(result.total_score, baseline.total_score, lower_is_better=True)
