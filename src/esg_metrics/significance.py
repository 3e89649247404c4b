"""
Environmental aspect/impact significance assessment (LAIA).

Scores an aspect on consequence (scope x severity) and likelihood
(frequency/probability), maps the total onto a three-tier category and
combines the category with the legal / stakeholder / strategic filters
into a binary significance verdict.
"""
import logging
from dataclasses import dataclass
from itertools import product
from types import MappingProxyType
from typing import Mapping, Tuple

from .constants import (
    CONSEQUENCE_SCORES, FREQUENCY_PROBABILITY_SCORES,
    MODERATE_MIN_SCORE, MODERATE_MAX_SCORE,
    SCOPES, SEVERITIES, FREQUENCY_PROBABILITIES,
    Category, Significance
)
from .models import SignificanceAssessmentInput, SignificanceAssessmentResult
from .errors import ValidationError, ConfigurationError
from .audit import audit_logger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringTables:
    """
    Lookup tables driving the classifier.
    consequence: (scope, severity) -> score
    frequency_probability: level -> score
    moderate_min / moderate_max: inclusive bounds of the moderate category
    """
    consequence: Mapping[Tuple[str, str], int]
    frequency_probability: Mapping[str, int]
    moderate_min: int = MODERATE_MIN_SCORE
    moderate_max: int = MODERATE_MAX_SCORE
    scopes: Tuple[str, ...] = SCOPES
    severities: Tuple[str, ...] = SEVERITIES
    frequency_levels: Tuple[str, ...] = FREQUENCY_PROBABILITIES

    def __post_init__(self):
        object.__setattr__(self, "consequence", MappingProxyType(dict(self.consequence)))
        object.__setattr__(self, "frequency_probability", MappingProxyType(dict(self.frequency_probability)))

    def validate(self) -> "ScoringTables":
        """Check every enum combination has a score. Returns self."""
        for key in product(self.scopes, self.severities):
            if key not in self.consequence:
                raise ConfigurationError(
                    f"Consequence table has no score for scope='{key[0]}', severity='{key[1]}'",
                    key=f"{key[0]}/{key[1]}",
                )
        for level in self.frequency_levels:
            if level not in self.frequency_probability:
                raise ConfigurationError(
                    f"Frequency/probability table has no score for '{level}'", key=level
                )
        if self.moderate_min > self.moderate_max:
            raise ConfigurationError("Moderate category lower bound exceeds its upper bound")
        return self


DEFAULT_SCORING_TABLES = ScoringTables(
    consequence=CONSEQUENCE_SCORES,
    frequency_probability=FREQUENCY_PROBABILITY_SCORES,
).validate()


def _check_choice(field_name: str, value, allowed: Tuple[str, ...]) -> str:
    if not isinstance(value, str) or value not in allowed:
        raise ValidationError(
            f"Invalid {field_name} '{value}'. Expected one of: {', '.join(allowed)}",
            field=field_name,
        )
    return value


def _check_flag(field_name: str, value) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean, got {value!r}", field=field_name)
    return value


def consequence_score(scope: str, severity: str, tables: ScoringTables = DEFAULT_SCORING_TABLES) -> int:
    _check_choice("scope", scope, tables.scopes)
    _check_choice("severity", severity, tables.severities)
    try:
        return tables.consequence[(scope, severity)]
    except KeyError:
        raise ConfigurationError(
            f"Consequence table has no score for scope='{scope}', severity='{severity}'",
            key=f"{scope}/{severity}",
        ) from None


def frequency_probability_score(level: str, tables: ScoringTables = DEFAULT_SCORING_TABLES) -> int:
    _check_choice("frequency_probability", level, tables.frequency_levels)
    try:
        return tables.frequency_probability[level]
    except KeyError:
        raise ConfigurationError(
            f"Frequency/probability table has no score for '{level}'", key=level
        ) from None


def categorize(total_score: int, tables: ScoringTables = DEFAULT_SCORING_TABLES) -> Category:
    """< moderate_min -> negligible, moderate_min..moderate_max -> moderate, above -> critical."""
    if total_score < tables.moderate_min:
        return "negligible"
    if total_score <= tables.moderate_max:
        return "moderate"
    return "critical"


def determine_significance(
    category: Category,
    has_legal_requirement: bool,
    has_stakeholder_demand: bool,
    has_strategic_option: bool,
) -> Significance:
    """
    Negligible and critical aspects are never overridden; a moderate aspect
    is significant only when at least one filter applies.
    """
    if category == "critical":
        return "significant"
    if category == "negligible":
        return "not_significant"
    if category != "moderate":
        raise ValidationError(f"Invalid category '{category}'", field="category")
    if has_legal_requirement or has_stakeholder_demand or has_strategic_option:
        return "significant"
    return "not_significant"


def classify(
    assessment: SignificanceAssessmentInput,
    tables: ScoringTables = DEFAULT_SCORING_TABLES,
) -> SignificanceAssessmentResult:
    """
    Score and classify one aspect/impact evaluation.
    Raises ValidationError naming the offending field for malformed input.
    """
    # Validate everything before scoring
    _check_choice("scope", assessment.scope, tables.scopes)
    _check_choice("severity", assessment.severity, tables.severities)
    _check_choice("frequency_probability", assessment.frequency_probability, tables.frequency_levels)
    legal = _check_flag("has_legal_requirement", assessment.has_legal_requirement)
    stakeholder = _check_flag("has_stakeholder_demand", assessment.has_stakeholder_demand)
    strategic = _check_flag("has_strategic_option", assessment.has_strategic_option)

    cons = consequence_score(assessment.scope, assessment.severity, tables)
    freq = frequency_probability_score(assessment.frequency_probability, tables)
    total = cons + freq
    category = categorize(total, tables)
    significance = determine_significance(category, legal, stakeholder, strategic)

    audit_logger.log_calculation(
        context="Significance assessment (LAIA)",
        formula="Consequence(scope, severity) + FreqProb(level) -> category -> filters",
        variables={
            "scope": assessment.scope,
            "severity": assessment.severity,
            "freq_prob": assessment.frequency_probability,
            "consequence": cons,
            "freq_prob_score": freq,
            "legal": legal,
            "stakeholder": stakeholder,
            "strategic": strategic,
        },
        result=f"{total} {category} {significance}",
    )

    return SignificanceAssessmentResult(
        consequence_score=cons,
        frequency_probability_score=freq,
        total_score=total,
        category=category,
        significance=significance,
    )
