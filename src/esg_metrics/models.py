from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .constants import (
    DEFAULT_HOURS_PER_EMPLOYEE, STANDARD_BLOCK_HOURS, DEFAULT_GWP_VERSION,
    Scope, Severity, FrequencyProbability, Category, Significance, Methodology,
    ExposureSource, DataQuality, RateClassification, Direction
)
from .errors import ConfigurationError


@dataclass(frozen=True)
class GWPTable:
    """
    Versioned table of 100-year global warming potentials (gas -> multiplier).
    Values are read-only once constructed.
    """
    version: str
    values: Mapping[str, float]

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def gwp(self, gas: str) -> float:
        if gas not in self.values:
            raise ConfigurationError(
                f"GWP table '{self.version}' has no entry for gas '{gas}'", key=gas
            )
        return self.values[gas]

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "values": dict(self.values)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GWPTable":
        return cls(version=data["version"], values=data["values"])


@dataclass(frozen=True)
class GasFactorSet:
    """
    Emission-factor profile of one activity, fuel or process.
    When direct_gwp is set (refrigerants reported in kgCO2e per kg) the
    per-gas factors are kept for display only.
    """
    co2_factor: Optional[float] = 0.0
    ch4_factor: Optional[float] = 0.0
    n2o_factor: Optional[float] = 0.0
    direct_gwp: Optional[float] = None
    direct_gwp_source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "co2Factor": self.co2_factor,
            "ch4Factor": self.ch4_factor,
            "n2oFactor": self.n2o_factor,
            "directGwp": self.direct_gwp,
            "directGwpSource": self.direct_gwp_source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GasFactorSet":
        return cls(
            co2_factor=data.get("co2Factor", 0.0),
            ch4_factor=data.get("ch4Factor", 0.0),
            n2o_factor=data.get("n2oFactor", 0.0),
            direct_gwp=data.get("directGwp"),
            direct_gwp_source=data.get("directGwpSource"),
        )


@dataclass(frozen=True)
class GasContribution:
    gas: str
    factor: float
    gwp: float
    contribution_co2e: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gas": self.gas,
            "factor": self.factor,
            "gwp": self.gwp,
            "contributionCo2e": self.contribution_co2e,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GasContribution":
        return cls(
            gas=data["gas"],
            factor=data["factor"],
            gwp=data["gwp"],
            contribution_co2e=data["contributionCo2e"],
        )


@dataclass(frozen=True)
class CO2EquivalenceResult:
    """
    Output of compute_co2e. total_co2e is the direct GWP value for the
    direct_gwp methodology, otherwise the sum of the per-gas contributions.
    """
    total_co2e: float
    per_gas_breakdown: Tuple[GasContribution, ...]
    methodology: Methodology
    methodology_label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCo2e": self.total_co2e,
            "perGasBreakdown": [c.to_dict() for c in self.per_gas_breakdown],
            "methodology": self.methodology,
            "methodologyLabel": self.methodology_label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CO2EquivalenceResult":
        return cls(
            total_co2e=data["totalCo2e"],
            per_gas_breakdown=tuple(GasContribution.from_dict(c) for c in data["perGasBreakdown"]),
            methodology=data["methodology"],
            methodology_label=data["methodologyLabel"],
        )


@dataclass(frozen=True)
class ExposureMetricInput:
    """
    Raw inputs of a frequency-rate calculation.
    exposure_units must be strictly positive (e.g. hours worked).
    """
    incident_count: int
    exposure_units: float
    exposure_source: ExposureSource = "measured"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "incidentCount": self.incident_count,
            "exposureUnits": self.exposure_units,
            "exposureSource": self.exposure_source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExposureMetricInput":
        return cls(
            incident_count=data["incidentCount"],
            exposure_units=data["exposureUnits"],
            exposure_source=data.get("exposureSource", "measured"),
        )


@dataclass(frozen=True)
class DataQualityGrade:
    data_quality: DataQuality
    confidence_level: int


@dataclass(frozen=True)
class FrequencyRateResult:
    rate: float
    data_quality: DataQuality
    confidence_level: int
    classification: RateClassification

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rate": self.rate,
            "dataQuality": self.data_quality,
            "confidenceLevel": self.confidence_level,
            "classification": self.classification,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrequencyRateResult":
        return cls(
            rate=data["rate"],
            data_quality=data["dataQuality"],
            confidence_level=data["confidenceLevel"],
            classification=data["classification"],
        )


@dataclass(frozen=True)
class SignificanceAssessmentInput:
    """
    One environmental aspect/impact evaluation (LAIA line).
    """
    scope: Scope
    severity: Severity
    frequency_probability: FrequencyProbability
    has_legal_requirement: bool = False
    has_stakeholder_demand: bool = False
    has_strategic_option: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope,
            "severity": self.severity,
            "frequencyProbability": self.frequency_probability,
            "hasLegalRequirement": self.has_legal_requirement,
            "hasStakeholderDemand": self.has_stakeholder_demand,
            "hasStrategicOption": self.has_strategic_option,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignificanceAssessmentInput":
        return cls(
            scope=data["scope"],
            severity=data["severity"],
            frequency_probability=data["frequencyProbability"],
            has_legal_requirement=data.get("hasLegalRequirement", False),
            has_stakeholder_demand=data.get("hasStakeholderDemand", False),
            has_strategic_option=data.get("hasStrategicOption", False),
        )


@dataclass(frozen=True)
class SignificanceAssessmentResult:
    consequence_score: int
    frequency_probability_score: int
    total_score: int
    category: Category
    significance: Significance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "consequenceScore": self.consequence_score,
            "frequencyProbabilityScore": self.frequency_probability_score,
            "totalScore": self.total_score,
            "category": self.category,
            "significance": self.significance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignificanceAssessmentResult":
        return cls(
            consequence_score=data["consequenceScore"],
            frequency_probability_score=data["frequencyProbabilityScore"],
            total_score=data["totalScore"],
            category=data["category"],
            significance=data["significance"],
        )


@dataclass(frozen=True)
class BenchmarkComparison:
    delta: float
    percent_change: float
    direction: Direction
    is_better: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delta": self.delta,
            "percentChange": self.percent_change,
            "direction": self.direction,
            "isBetter": self.is_better,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkComparison":
        return cls(
            delta=data["delta"],
            percent_change=data["percentChange"],
            direction=data["direction"],
            is_better=data["isBetter"],
        )


@dataclass
class IncidentTypeSummary:
    incident_type: str
    count: int
    total_days_lost: float
    avg_days_per_incident: float


@dataclass
class SeverityShare:
    severity: str
    count: int
    percentage: float


@dataclass
class LostTimeSummary:
    """
    Lost-time incident overview for one reporting period (GRI 403-9).
    """
    total_incidents: int
    lost_time_incidents: int
    total_days_lost: float
    lost_time_accident_rate: float
    performance_classification: RateClassification
    top_types: List[IncidentTypeSummary] = field(default_factory=list)
    by_severity: List[SeverityShare] = field(default_factory=list)
    ltifr: Optional[FrequencyRateResult] = None
    comparison: Optional[BenchmarkComparison] = None


@dataclass
class Settings:
    """
    Run settings loaded from the parameters workbook (see config.load_settings).
    """
    gwp_version: str = DEFAULT_GWP_VERSION
    standard_block: float = STANDARD_BLOCK_HOURS
    hours_per_employee: float = DEFAULT_HOURS_PER_EMPLOYEE
    reports_dir: str = "reports"


@dataclass
class AssessmentRow:
    """
    One aspect/impact line read from an assessment workbook. Scoring fields
    are None when the cell held an unrecognised code; errors maps the field
    name to the reason.
    """
    row_number: int
    sector_code: str
    aspect_code: str = ""
    activity_operation: str = ""
    environmental_aspect: str = ""
    environmental_impact: str = ""
    temporality: str = "current"
    operational_situation: str = "normal"
    incidence: str = "direct"
    impact_class: str = "adverse"
    scope: Optional[Scope] = None
    severity: Optional[Severity] = None
    frequency_probability: Optional[FrequencyProbability] = None
    has_legal_requirement: bool = False
    has_stakeholder_demand: bool = False
    has_strategic_option: bool = False
    control_types: List[str] = field(default_factory=list)
    existing_controls: str = ""
    legislation_reference: str = ""
    has_lifecycle_control: bool = False
    lifecycle_stages: List[str] = field(default_factory=list)
    output_actions: str = ""
    recorded_total_score: Optional[int] = None
    recorded_category: Optional[Category] = None
    recorded_significance: Optional[Significance] = None
    errors: Dict[str, str] = field(default_factory=dict)

    def to_assessment_input(self) -> SignificanceAssessmentInput:
        return SignificanceAssessmentInput(
            scope=self.scope,
            severity=self.severity,
            frequency_probability=self.frequency_probability,
            has_legal_requirement=self.has_legal_requirement,
            has_stakeholder_demand=self.has_stakeholder_demand,
            has_strategic_option=self.has_strategic_option,
        )


@dataclass
class ImportIssue:
    row: int
    field: str
    message: str


@dataclass
class ImportValidation:
    is_valid: bool
    errors: List[ImportIssue]
    warnings: List[ImportIssue]
    valid_rows: List[AssessmentRow]
    invalid_rows: List[AssessmentRow]
    stats: Dict[str, Any]
