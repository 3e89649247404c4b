import pytest

from esg_metrics.utils.calculations import compare, compare_rate, compare_co2e, compare_scores
from esg_metrics.safety import compute_rate
from esg_metrics.emissions import compute_co2e
from esg_metrics.significance import classify
from esg_metrics.models import ExposureMetricInput, GasFactorSet, SignificanceAssessmentInput
from esg_metrics.errors import ValidationError


def test_lower_is_better():
    res = compare(3.0, 4.0)
    assert res.delta == pytest.approx(-1.0)
    assert res.percent_change == pytest.approx(-25.0)
    assert res.direction == "improving"
    assert res.is_better is True

    res = compare(5.0, 4.0)
    assert res.direction == "worsening"
    assert res.is_better is False


def test_higher_is_better():
    res = compare(90.0, 80.0, lower_is_better=False)
    assert res.percent_change == pytest.approx(12.5)
    assert res.direction == "improving"
    assert res.is_better is True


def test_unchanged():
    res = compare(4.0, 4.0)
    assert res.direction == "unchanged"
    assert res.is_better is False
    assert res.delta == 0


def test_zero_baseline():
    assert compare(0, 0).direction == "unchanged"
    with pytest.raises(ValidationError) as exc:
        compare(1.0, 0)
    assert exc.value.field == "baseline"


def test_negative_baseline_uses_absolute_value():
    res = compare(-5.0, -10.0, lower_is_better=False)
    assert res.percent_change == pytest.approx(50.0)
    assert res.direction == "improving"


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        compare("4", 3.0)
    with pytest.raises(ValidationError):
        compare(float("inf"), 3.0)


def test_result_wrappers():
    rate = compute_rate(ExposureMetricInput(incident_count=2, exposure_units=500000))
    assert compare_rate(rate, 5.0).direction == "improving"

    co2e = compute_co2e(GasFactorSet(co2_factor=1, ch4_factor=0.01, n2o_factor=0.001))
    assert compare_co2e(co2e, 1.0).direction == "worsening"

    before = classify(SignificanceAssessmentInput("global", "high", "high"))
    after = classify(SignificanceAssessmentInput("global", "medium", "high"))
    res = compare_scores(after, before)
    assert res.delta == -20
    assert res.direction == "improving"
