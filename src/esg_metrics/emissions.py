"""
Multi-gas CO2-equivalent aggregation.

Standard methodology: each of CO2, CH4 and N2O is weighted by its 100-year
GWP from a versioned table and the contributions are summed. Substances
reported directly in kgCO2e per kg (HFC refrigerants) carry a direct GWP
that takes precedence over any per-gas factors on the same record.
"""
import logging

from .constants import GWP_VALUES_BY_VERSION, DEFAULT_GWP_VERSION, STANDARD_GASES, CO2E_DECIMALS
from .models import GWPTable, GasFactorSet, GasContribution, CO2EquivalenceResult
from .errors import ValidationError
from .utils.calculations import require_number, f6, grouped_int
from .audit import audit_logger

logger = logging.getLogger(__name__)

GWP_TABLES = {
    version: GWPTable(version=version, values=values)
    for version, values in GWP_VALUES_BY_VERSION.items()
}
GWP_AR6 = GWP_TABLES["IPCC_AR6"]
GWP_AR5 = GWP_TABLES["IPCC_AR5"]
GWP_AR4 = GWP_TABLES["IPCC_AR4"]
DEFAULT_GWP_TABLE = GWP_TABLES[DEFAULT_GWP_VERSION]

DIRECT_GWP_LABEL = "direct GWP"


def _gas_factors(factors: GasFactorSet):
    """(gas, factor) pairs in reporting order; None counts as 0."""
    raw = {
        "CO2": factors.co2_factor,
        "CH4": factors.ch4_factor,
        "N2O": factors.n2o_factor,
    }
    pairs = []
    for gas in STANDARD_GASES:
        value = raw[gas]
        if value is None:
            value = 0.0
        pairs.append((gas, require_number(f"{gas.lower()}_factor", value)))
    return pairs


def compute_co2e(factors: GasFactorSet, gwp_table: GWPTable = DEFAULT_GWP_TABLE) -> CO2EquivalenceResult:
    """
    Convert an emission-factor profile into a single CO2e figure.

    When factors.direct_gwp is set the result is that value verbatim
    (methodology 'direct_gwp'); the per-gas factors are never mixed in.
    Otherwise the result is Σ factor × GWP over CO2, CH4 and N2O, rounded to
    CO2E_DECIMALS (methodology 'standard_gwp').
    """
    # Per-gas factors are validated on both paths
    pairs = _gas_factors(factors)

    if factors.direct_gwp is not None:
        direct = require_number("direct_gwp", factors.direct_gwp)
        label = factors.direct_gwp_source or DIRECT_GWP_LABEL
        if any(value > 0 for _, value in pairs):
            logger.debug(f"Direct GWP {direct} supersedes per-gas factors {dict(pairs)}")

        audit_logger.log_calculation(
            context="CO2e: direct GWP",
            formula="Total = DirectGWP",
            variables={"DirectGWP": direct, "Source": label},
            result=direct,
            unit="kgCO2e/unit",
        )
        return CO2EquivalenceResult(
            total_co2e=direct,
            per_gas_breakdown=(GasContribution(gas=label, factor=1.0, gwp=direct, contribution_co2e=direct),),
            methodology="direct_gwp",
            methodology_label=label,
        )

    breakdown = []
    for gas, factor in pairs:
        gwp = gwp_table.gwp(gas)
        breakdown.append(GasContribution(
            gas=gas,
            factor=factor,
            gwp=gwp,
            contribution_co2e=round(factor * gwp, CO2E_DECIMALS),
        ))
    # Total is the sum of the reported (rounded) contributions
    total = round(sum(c.contribution_co2e for c in breakdown), CO2E_DECIMALS)

    variables = {}
    for c in breakdown:
        variables[c.gas] = c.factor
        variables[f"GWP_{c.gas}"] = c.gwp
    audit_logger.log_calculation(
        context=f"CO2e: standard GWP ({gwp_table.version})",
        formula="CO2 × GWP_CO2 + CH4 × GWP_CH4 + N2O × GWP_N2O",
        variables=variables,
        result=total,
        unit="kgCO2e/unit",
    )

    return CO2EquivalenceResult(
        total_co2e=total,
        per_gas_breakdown=tuple(breakdown),
        methodology="standard_gwp",
        methodology_label=f"{gwp_table.version} (100-year GWP)",
    )


def format_co2e(result: CO2EquivalenceResult) -> str:
    """
    Render a CO2e total with its reporting precision: 6 decimals for the
    standard methodology, a grouped whole number for direct GWP values.
    """
    if result.methodology == "direct_gwp":
        return grouped_int(result.total_co2e)
    return f6(result.total_co2e)


def fugitive_mass_balance(
    new_equipment_kg: float,
    existing_equipment_kg: float,
    disposed_equipment_kg: float,
    gwp: float,
) -> float:
    """
    GHG Protocol refrigeration & air-conditioning mass balance:
        E = (EUN + EUE + EUD) × GWP
    Masses of refrigerant released (kg) by new, existing and disposed
    equipment; returns kgCO2e.
    """
    eun = require_number("new_equipment_kg", new_equipment_kg)
    eue = require_number("existing_equipment_kg", existing_equipment_kg)
    eud = require_number("disposed_equipment_kg", disposed_equipment_kg)
    gwp = require_number("gwp", gwp)

    emissions = (eun + eue + eud) * gwp

    audit_logger.log_calculation(
        context="Fugitive emissions (mass balance)",
        formula="(EUN + EUE + EUD) × GWP",
        variables={"EUN": eun, "EUE": eue, "EUD": eud, "GWP": gwp},
        result=emissions,
        unit="kgCO2e",
    )
    return emissions


def activity_emissions(quantity: float, result: CO2EquivalenceResult) -> float:
    """Emissions of an activity: quantity × CO2e factor per unit."""
    qty = require_number("quantity", quantity)
    if result.total_co2e < 0:
        raise ValidationError("CO2e factor must not be negative", field="total_co2e")
    emissions = qty * result.total_co2e
    if result.methodology == "standard_gwp":
        emissions = round(emissions, CO2E_DECIMALS)
    return emissions
