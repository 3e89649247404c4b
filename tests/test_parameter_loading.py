import pandas as pd
import pytest

from esg_metrics.config import (
    load_excel_config, load_settings, get_gwp_table, load_gwp_table, write_parameters_workbook
)
from esg_metrics.constants import STANDARD_BLOCK_HOURS, DEFAULT_GWP_VERSION
from esg_metrics.errors import ConfigurationError


def test_missing_config_uses_defaults(tmp_path):
    assert load_excel_config(str(tmp_path / "missing.xlsx")) == {}
    settings = load_settings(str(tmp_path / "missing.xlsx"))
    assert settings.gwp_version == DEFAULT_GWP_VERSION
    assert settings.standard_block == STANDARD_BLOCK_HOURS


def test_parameters_workbook_round_trip(tmp_path):
    path = write_parameters_workbook(str(tmp_path / "params.xlsx"))
    config = load_excel_config(path)
    assert config["GWP_VERSION"] == "IPCC_AR6"
    assert float(config["STANDARD_BLOCK_HOURS"]) == 1000000

    ar5 = pd.read_excel(path, sheet_name="IPCC_AR5")
    assert dict(zip(ar5["Gas"], ar5["GWP"]))["CH4"] == 28


def test_settings_from_edited_workbook(tmp_path):
    path = tmp_path / "params.xlsx"
    pd.DataFrame({
        "Key": ["GWP_VERSION", "STANDARD_BLOCK_HOURS", "REPORTS_DIR"],
        "Value": ["IPCC_AR5", 200000, "out"],
    }).to_excel(path, index=False)

    settings = load_settings(str(path))
    assert settings.gwp_version == "IPCC_AR5"
    assert settings.standard_block == 200000.0
    assert settings.reports_dir == "out"


def test_unknown_gwp_version_rejected(tmp_path):
    path = tmp_path / "params.xlsx"
    pd.DataFrame({"Key": ["GWP_VERSION"], "Value": ["IPCC_AR9"]}).to_excel(path, index=False)
    with pytest.raises(ConfigurationError):
        load_settings(str(path))
    with pytest.raises(ConfigurationError):
        get_gwp_table("SAR")


def test_custom_gwp_table_from_csv(tmp_path):
    path = tmp_path / "corporate_2024.csv"
    pd.DataFrame({"Gas": ["co2", "CH4", "N2O", "HFC-134a"], "GWP": [1, 29.8, 273, 1530]}).to_csv(path, index=False)

    table = load_gwp_table(str(path))
    assert table.version == "corporate_2024"
    assert table.gwp("CO2") == 1.0
    assert table.gwp("HFC-134A") == 1530.0


def test_gwp_table_missing_gas_rejected(tmp_path):
    path = tmp_path / "partial.csv"
    pd.DataFrame({"Gas": ["CO2", "CH4"], "GWP": [1, 27]}).to_csv(path, index=False)
    with pytest.raises(ConfigurationError) as exc:
        load_gwp_table(str(path))
    assert exc.value.key == "N2O"
