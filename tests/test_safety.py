import pandas as pd
import pytest

from esg_metrics.safety import (
    compute_rate, classify_rate, grade_exposure_source,
    estimate_exposure_hours, summarize_lost_time_incidents
)
from esg_metrics.models import ExposureMetricInput
from esg_metrics.errors import ValidationError, ConfigurationError


def test_rate_per_million_hours():
    res = compute_rate(ExposureMetricInput(incident_count=2, exposure_units=500000))
    assert res.rate == 4.0
    assert res.classification == "attention"
    assert res.data_quality == "high"
    assert res.confidence_level == 95


def test_custom_standard_block():
    res = compute_rate(ExposureMetricInput(incident_count=1, exposure_units=100000), standard_block=200000)
    assert res.rate == pytest.approx(2.0)
    assert res.classification == "good"


def test_zero_incidents():
    res = compute_rate(ExposureMetricInput(incident_count=0, exposure_units=1000))
    assert res.rate == 0
    assert res.classification == "excellent"


@pytest.mark.parametrize("units", [0, -100, None])
def test_non_positive_exposure_rejected(units):
    with pytest.raises(ValidationError) as exc:
        compute_rate(ExposureMetricInput(incident_count=1, exposure_units=units))
    assert exc.value.field == "exposure_units"


@pytest.mark.parametrize("count", [-1, 1.5, True])
def test_bad_incident_count_rejected(count):
    with pytest.raises(ValidationError) as exc:
        compute_rate(ExposureMetricInput(incident_count=count, exposure_units=1000))
    assert exc.value.field == "incident_count"


def test_rate_band_boundaries():
    assert classify_rate(0.99) == "excellent"
    assert classify_rate(1.0) == "good"
    assert classify_rate(2.99) == "good"
    assert classify_rate(3.0) == "attention"
    assert classify_rate(5.0) == "attention"
    assert classify_rate(5.01) == "critical"


def test_quality_depends_on_source_only():
    for source, quality, confidence in [
        ("measured", "high", 95),
        ("estimated_from_headcount", "medium", 70),
        ("estimated_default", "low", 50),
    ]:
        res = compute_rate(ExposureMetricInput(incident_count=3, exposure_units=250000, exposure_source=source))
        assert res.data_quality == quality
        assert res.confidence_level == confidence
        assert res.rate == pytest.approx(12.0)
        assert res.classification == "critical"


def test_unknown_source_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        grade_exposure_source("guessed")


def test_custom_quality_table():
    table = {"payroll": ("high", 90)}
    res = compute_rate(
        ExposureMetricInput(incident_count=1, exposure_units=1000000, exposure_source="payroll"),
        quality_table=table,
    )
    assert res.confidence_level == 90


def test_estimate_exposure_hours():
    assert estimate_exposure_hours(100) == (200000.0, "estimated_default")
    assert estimate_exposure_hours(100, 1800) == (180000.0, "estimated_from_headcount")
    with pytest.raises(ValidationError):
        estimate_exposure_hours(-5)


def make_incidents():
    return pd.DataFrame({
        "incident_type": ["Fall", "Fall", "Cut", "Burn", "Cut", "Fall", "Slip", "Cut", "Cut", "Fall"],
        "severity": ["major", "minor", "minor", "major", "minor", "minor", "minor", "minor", "minor", "minor"],
        "days_lost": [10, 2, 1, 5, 0, 0, 0, 0, 0, 0],
    })


def test_lost_time_summary():
    summary = summarize_lost_time_incidents(make_incidents(), hours_worked=1000000, previous_lost_time_count=5)

    assert summary.total_incidents == 10
    assert summary.lost_time_incidents == 4
    assert summary.total_days_lost == 18.0
    assert summary.lost_time_accident_rate == pytest.approx(40.0)
    assert summary.performance_classification == "attention"

    assert summary.top_types[0].incident_type == "Fall"
    assert summary.top_types[0].count == 2
    assert summary.top_types[0].total_days_lost == 12.0
    assert summary.top_types[0].avg_days_per_incident == 6.0

    severities = {s.severity: s for s in summary.by_severity}
    assert severities["major"].count == 2
    assert severities["major"].percentage == pytest.approx(50.0)

    assert summary.ltifr.rate == pytest.approx(4.0)
    assert summary.ltifr.classification == "attention"
    assert summary.comparison.direction == "improving"


def test_lost_time_summary_without_incidents():
    summary = summarize_lost_time_incidents(pd.DataFrame({"days_lost": []}))
    assert summary.total_incidents == 0
    assert summary.lost_time_accident_rate == 0.0
    assert summary.performance_classification == "excellent"
    assert summary.top_types == []
    assert summary.ltifr is None


def test_lost_time_summary_requires_days_lost():
    with pytest.raises(ValidationError):
        summarize_lost_time_incidents(pd.DataFrame({"incident_type": ["Fall"]}))
    with pytest.raises(ValidationError):
        summarize_lost_time_incidents(pd.DataFrame({"days_lost": [-1]}))


def test_lost_time_summary_after_period_without_lost_time():
    summary = summarize_lost_time_incidents(pd.DataFrame({"days_lost": [3, 0]}), previous_lost_time_count=0)
    assert summary.lost_time_incidents == 1
    assert summary.comparison is None

    summary = summarize_lost_time_incidents(pd.DataFrame({"days_lost": [0, 0]}), previous_lost_time_count=0)
    assert summary.comparison.direction == "unchanged"


def test_rate_overflow_rejected():
    with pytest.raises(ValidationError) as exc:
        compute_rate(ExposureMetricInput(incident_count=1, exposure_units=1e-310))
    assert exc.value.field == "exposure_units"
