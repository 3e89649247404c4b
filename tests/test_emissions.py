import pytest

from esg_metrics.emissions import (
    compute_co2e, format_co2e, fugitive_mass_balance, activity_emissions,
    GWP_AR6, GWP_AR5, GWP_AR4
)
from esg_metrics.models import GasFactorSet, GWPTable
from esg_metrics.errors import ValidationError, ConfigurationError


def test_standard_gwp_total():
    res = compute_co2e(GasFactorSet(co2_factor=1, ch4_factor=0.01, n2o_factor=0.001))
    assert res.total_co2e == pytest.approx(1.543)
    assert res.methodology == "standard_gwp"
    assert res.methodology_label == "IPCC_AR6 (100-year GWP)"
    assert [c.gas for c in res.per_gas_breakdown] == ["CO2", "CH4", "N2O"]
    assert res.per_gas_breakdown[1].contribution_co2e == pytest.approx(0.27)
    assert res.per_gas_breakdown[2].contribution_co2e == pytest.approx(0.273)


def test_gwp_table_version_changes_result():
    factors = GasFactorSet(co2_factor=1, ch4_factor=0.01, n2o_factor=0.001)
    assert compute_co2e(factors, GWP_AR5).total_co2e == pytest.approx(1 + 0.28 + 0.265)
    assert compute_co2e(factors, GWP_AR4).total_co2e == pytest.approx(1 + 0.25 + 0.298)


def test_direct_gwp_takes_precedence():
    res = compute_co2e(GasFactorSet(co2_factor=5, ch4_factor=1, n2o_factor=1, direct_gwp=1430))
    assert res.total_co2e == 1430
    assert res.methodology == "direct_gwp"
    assert res.methodology_label == "direct GWP"
    assert len(res.per_gas_breakdown) == 1
    assert format_co2e(res) == "1,430"


def test_direct_gwp_source_label():
    res = compute_co2e(GasFactorSet(direct_gwp=1430, direct_gwp_source="IPCC AR6 (HFC-134a)"))
    assert res.methodology_label == "IPCC AR6 (HFC-134a)"


def test_missing_factors_count_as_zero():
    res = compute_co2e(GasFactorSet(co2_factor=2.0, ch4_factor=None, n2o_factor=None))
    assert res.total_co2e == pytest.approx(2.0)


def test_all_zero_factors():
    res = compute_co2e(GasFactorSet())
    assert res.total_co2e == 0
    assert format_co2e(res) == "0.000000"


@pytest.mark.parametrize("factors, field", [
    (GasFactorSet(co2_factor=-1), "co2_factor"),
    (GasFactorSet(ch4_factor=float("nan")), "ch4_factor"),
    (GasFactorSet(n2o_factor="0.1"), "n2o_factor"),
    (GasFactorSet(direct_gwp=-5), "direct_gwp"),
    (GasFactorSet(co2_factor=-1, direct_gwp=1430), "co2_factor"),
])
def test_invalid_factors_rejected(factors, field):
    with pytest.raises(ValidationError) as exc:
        compute_co2e(factors)
    assert exc.value.field == field


def test_table_without_gas_raises_configuration_error():
    table = GWPTable(version="partial", values={"CO2": 1.0, "CH4": 27.0})
    with pytest.raises(ConfigurationError) as exc:
        compute_co2e(GasFactorSet(co2_factor=1.0), table)
    assert exc.value.key == "N2O"


def test_gwp_table_is_read_only():
    with pytest.raises(TypeError):
        GWP_AR6.values["CH4"] = 1.0


def test_format_standard_result():
    res = compute_co2e(GasFactorSet(co2_factor=1, ch4_factor=0.01, n2o_factor=0.001))
    assert format_co2e(res) == "1.543000"


def test_fugitive_mass_balance():
    # 2 kg + 0.5 kg + 1.5 kg of HFC-134a
    assert fugitive_mass_balance(2.0, 0.5, 1.5, 1430) == pytest.approx(5720.0)
    with pytest.raises(ValidationError):
        fugitive_mass_balance(-1.0, 0.0, 0.0, 1430)


def test_activity_emissions():
    res = compute_co2e(GasFactorSet(co2_factor=2.5))
    assert activity_emissions(100, res) == pytest.approx(250.0)
    with pytest.raises(ValidationError):
        activity_emissions(-1, res)


@pytest.mark.parametrize("factors", [
    GasFactorSet(co2_factor=4e-7, ch4_factor=4e-7 / 27, n2o_factor=4e-7 / 273),
    GasFactorSet(co2_factor=2.6831, ch4_factor=0.0000357, n2o_factor=0.0000214),
    GasFactorSet(co2_factor=1, ch4_factor=0.01, n2o_factor=0.001),
    GasFactorSet(co2_factor=0.0000004, ch4_factor=0.33333333, n2o_factor=0.0000007),
])
def test_total_matches_reported_contributions(factors):
    res = compute_co2e(factors)
    assert res.total_co2e == round(sum(c.contribution_co2e for c in res.per_gas_breakdown), 6)
