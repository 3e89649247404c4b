"""
Safety frequency rates (LTIFR) with data-quality banding, plus the
lost-time incident overview used for GRI 403-9 reporting.
"""
import logging
import math
from numbers import Integral
from typing import Mapping, Optional, Tuple

import pandas as pd

from .constants import (
    STANDARD_BLOCK_HOURS, DATA_QUALITY_BY_SOURCE, RATE_BANDS,
    DEFAULT_HOURS_PER_EMPLOYEE, LOST_TIME_RATE_BANDS, TOP_INCIDENT_TYPES,
    RateClassification
)
from .models import (
    ExposureMetricInput, FrequencyRateResult, DataQualityGrade,
    LostTimeSummary, IncidentTypeSummary, SeverityShare
)
from .errors import ValidationError, ConfigurationError
from .utils.calculations import require_number, compare
from .audit import audit_logger

logger = logging.getLogger(__name__)


def grade_exposure_source(
    source: str,
    quality_table: Mapping[str, Tuple[str, int]] = DATA_QUALITY_BY_SOURCE,
) -> DataQualityGrade:
    """
    Data quality and confidence (%) of an exposure figure, by provenance.
    New source kinds are added to the table, not to this function.
    """
    if source not in quality_table:
        raise ConfigurationError(
            f"No data-quality grade configured for exposure source '{source}'", key=source
        )
    quality, confidence = quality_table[source]
    return DataQualityGrade(data_quality=quality, confidence_level=confidence)


def classify_rate(rate: float, bands=RATE_BANDS) -> RateClassification:
    """
    Map a frequency rate onto its band. Each band is
    (upper bound, upper bound inclusive, label); None closes the table.
    With the default bands 1.0 is 'good' and 5.0 is 'attention'.
    """
    for upper, inclusive, label in bands:
        if upper is None:
            return label
        if rate < upper or (inclusive and rate == upper):
            return label
    raise ConfigurationError(f"Rate bands do not cover rate {rate}")


def compute_rate(
    exposure: ExposureMetricInput,
    standard_block: float = STANDARD_BLOCK_HOURS,
    quality_table: Mapping[str, Tuple[str, int]] = DATA_QUALITY_BY_SOURCE,
) -> FrequencyRateResult:
    """
    Incidents per standard exposure block (per million hours by default):
        rate = incident_count / exposure_units × standard_block

    The data-quality grade depends only on exposure.exposure_source and the
    classification only on the rate.
    """
    count = exposure.incident_count
    if isinstance(count, bool) or not isinstance(count, Integral):
        raise ValidationError(f"incident_count must be an integer, got {count!r}", field="incident_count")
    if count < 0:
        raise ValidationError(f"incident_count must not be negative, got {count}", field="incident_count")

    if exposure.exposure_units is None:
        raise ValidationError("exposure_units is required", field="exposure_units")
    units = require_number("exposure_units", exposure.exposure_units, allow_negative=True)
    if units <= 0:
        raise ValidationError(f"exposure_units must be positive, got {units}", field="exposure_units")

    block = require_number("standard_block", standard_block, allow_negative=True)
    if block <= 0:
        raise ValidationError(f"standard_block must be positive, got {block}", field="standard_block")

    grade = grade_exposure_source(exposure.exposure_source, quality_table)

    rate = int(count) * block / units
    if not math.isfinite(rate):
        raise ValidationError(
            f"exposure_units {units} is too small to produce a finite rate", field="exposure_units"
        )
    classification = classify_rate(rate)

    audit_logger.log_calculation(
        context="Frequency rate (LTIFR)",
        formula="Incidents × Block / ExposureUnits",
        variables={
            "Incidents": int(count),
            "Block": block,
            "ExposureUnits": units,
            "Source": exposure.exposure_source,
        },
        result=rate,
        unit=f"per {block:,.0f} units ({classification}, {grade.data_quality} quality)",
    )

    return FrequencyRateResult(
        rate=rate,
        data_quality=grade.data_quality,
        confidence_level=grade.confidence_level,
        classification=classification,
    )


def estimate_exposure_hours(headcount: float, hours_per_employee: Optional[float] = None) -> Tuple[float, str]:
    """
    Estimate hours worked from headcount when no time records exist.
    Returns (hours, exposure_source): a caller-supplied hours_per_employee
    yields 'estimated_from_headcount', the built-in default yields
    'estimated_default'.
    """
    heads = require_number("headcount", headcount)
    if hours_per_employee is None:
        return heads * DEFAULT_HOURS_PER_EMPLOYEE, "estimated_default"
    per_employee = require_number("hours_per_employee", hours_per_employee)
    return heads * per_employee, "estimated_from_headcount"


def _classify_lost_time_rate(rate_pct: float) -> RateClassification:
    for upper, label in LOST_TIME_RATE_BANDS:
        if upper is None or rate_pct <= upper:
            return label
    raise ConfigurationError(f"Lost-time bands do not cover {rate_pct}")


def summarize_lost_time_incidents(
    incidents: pd.DataFrame,
    hours_worked: Optional[float] = None,
    exposure_source: str = "measured",
    previous_lost_time_count: Optional[int] = None,
) -> LostTimeSummary:
    """
    Lost-time incident overview for one period.

    Expects one row per incident with a 'days_lost' column; 'incident_type'
    and 'severity' columns are optional. An incident causes lost time when
    days_lost > 0.
    """
    if "days_lost" not in incidents.columns:
        raise ValidationError("Incident records need a 'days_lost' column", field="days_lost")

    days = pd.to_numeric(incidents["days_lost"], errors="coerce").fillna(0.0)
    if (days < 0).any():
        raise ValidationError("days_lost must not be negative", field="days_lost")

    lost = incidents[days > 0].copy()
    lost["days_lost"] = days[days > 0]

    total_incidents = int(len(incidents))
    lost_count = int(len(lost))
    rate_pct = (lost_count / total_incidents * 100.0) if total_incidents > 0 else 0.0

    top_types = []
    if "incident_type" in lost.columns and lost_count > 0:
        grouped = (
            lost.groupby("incident_type")["days_lost"]
            .agg(["count", "sum"])
            .sort_values(["count", "sum"], ascending=False)
            .head(TOP_INCIDENT_TYPES)
        )
        for name, row in grouped.iterrows():
            count = int(row["count"])
            top_types.append(IncidentTypeSummary(
                incident_type=str(name),
                count=count,
                total_days_lost=float(row["sum"]),
                avg_days_per_incident=round(float(row["sum"]) / count, 1),
            ))

    by_severity = []
    if "severity" in lost.columns and lost_count > 0:
        for name, count in lost["severity"].value_counts().items():
            by_severity.append(SeverityShare(
                severity=str(name),
                count=int(count),
                percentage=count / lost_count * 100.0,
            ))

    ltifr = None
    if hours_worked is not None:
        ltifr = compute_rate(ExposureMetricInput(
            incident_count=lost_count,
            exposure_units=hours_worked,
            exposure_source=exposure_source,
        ))

    comparison = None
    if previous_lost_time_count is not None:
        if previous_lost_time_count == 0 and lost_count > 0:
            logger.debug("No lost-time incidents in the previous period; comparison skipped")
        else:
            comparison = compare(lost_count, previous_lost_time_count, lower_is_better=True)

    summary = LostTimeSummary(
        total_incidents=total_incidents,
        lost_time_incidents=lost_count,
        total_days_lost=float(lost["days_lost"].sum()) if lost_count else 0.0,
        lost_time_accident_rate=rate_pct,
        performance_classification=_classify_lost_time_rate(rate_pct),
        top_types=top_types,
        by_severity=by_severity,
        ltifr=ltifr,
        comparison=comparison,
    )
    logger.debug(
        f"Lost-time summary: {lost_count}/{total_incidents} incidents "
        f"({rate_pct:.1f}%) -> {summary.performance_classification}"
    )
    return summary
