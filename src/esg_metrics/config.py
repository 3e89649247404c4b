import os
import logging
from typing import Dict, Any, Optional

import pandas as pd

from .constants import (
    DEFAULT_GWP_VERSION, GWP_VALUES_BY_VERSION, STANDARD_GASES,
    STANDARD_BLOCK_HOURS, DEFAULT_HOURS_PER_EMPLOYEE
)
from .models import GWPTable, Settings
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Default parameters workbook: <project root>/data/parameters_config/esg_parameters.xlsx
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "data", "parameters_config", "esg_parameters.xlsx")

# KEY: (Value, Unit, Section, Description)
PARAMETERS = [
    {
        "Key": "GWP_VERSION",
        "Value": DEFAULT_GWP_VERSION,
        "Unit": "Text",
        "Section": "1. Emissions",
        "Description": "GWP table used for CO2e conversion (IPCC_AR6, IPCC_AR5 or IPCC_AR4)."
    },
    {
        "Key": "STANDARD_BLOCK_HOURS",
        "Value": STANDARD_BLOCK_HOURS,
        "Unit": "hours",
        "Section": "2. Safety",
        "Description": "Exposure block for frequency rates (1,000,000 for LTIFR, 200,000 for OSHA-style rates)."
    },
    {
        "Key": "HOURS_PER_EMPLOYEE",
        "Value": DEFAULT_HOURS_PER_EMPLOYEE,
        "Unit": "hours/year",
        "Section": "2. Safety",
        "Description": "Annual hours per employee used when hours worked are estimated from headcount."
    },
    {
        "Key": "REPORTS_DIR",
        "Value": "reports",
        "Unit": "Path",
        "Section": "3. Output",
        "Description": "Directory for batch reports, charts and audit logs."
    },
]


def load_excel_config(path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load configuration from Excel file.
    Expected columns: Key, Value (Unit, Section, Description are informative)
    Returns a dictionary of Key -> Value
    """
    config = {}
    if not os.path.exists(path):
        logger.warning(f"Config file not found at {path}. Using defaults.")
        return config

    df = pd.read_excel(path, sheet_name=0)
    if "Key" in df.columns and "Value" in df.columns:
        for _, row in df.iterrows():
            if pd.isna(row["Key"]):
                continue
            key = str(row["Key"]).strip()
            config[key] = row["Value"]
        logger.info(f"Loaded {len(config)} parameters from {path}")
    else:
        logger.warning(f"Excel file {path} missing 'Key' or 'Value' columns.")

    return config


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Build run Settings from the parameters workbook, falling back to the
    in-code defaults for keys the workbook does not define.
    """
    config = load_excel_config(path or DEFAULT_CONFIG_PATH)
    settings = Settings()

    if "GWP_VERSION" in config:
        settings.gwp_version = str(config["GWP_VERSION"]).strip()
    if "STANDARD_BLOCK_HOURS" in config:
        settings.standard_block = float(config["STANDARD_BLOCK_HOURS"])
    if "HOURS_PER_EMPLOYEE" in config:
        settings.hours_per_employee = float(config["HOURS_PER_EMPLOYEE"])
    if "REPORTS_DIR" in config:
        settings.reports_dir = str(config["REPORTS_DIR"]).strip()

    # Fail early on an unknown table name
    get_gwp_table(settings.gwp_version)
    return settings


def get_gwp_table(version: str = DEFAULT_GWP_VERSION) -> GWPTable:
    """Resolve one of the shipped GWP table versions by name."""
    if version not in GWP_VALUES_BY_VERSION:
        raise ConfigurationError(
            f"Unknown GWP table version '{version}'. Available: {', '.join(GWP_VALUES_BY_VERSION)}",
            key=version,
        )
    return GWPTable(version=version, values=GWP_VALUES_BY_VERSION[version])


def load_gwp_table(path: str, version: Optional[str] = None, sheet_name=0) -> GWPTable:
    """
    Load a custom GWP table from an Excel (.xlsx) or CSV file with columns
    Gas, GWP. The version defaults to the file name without extension.
    Every standard gas (CO2, CH4, N2O) must be present.
    """
    if not os.path.exists(path):
        raise ConfigurationError(f"GWP table file not found: {path}", key=path)

    if path.lower().endswith(".csv"):
        df = pd.read_csv(path)
    else:
        df = pd.read_excel(path, sheet_name=sheet_name)

    if "Gas" not in df.columns or "GWP" not in df.columns:
        raise ConfigurationError(f"GWP table {path} needs 'Gas' and 'GWP' columns", key="Gas/GWP")

    values = {}
    for _, row in df.iterrows():
        if pd.isna(row["Gas"]) or pd.isna(row["GWP"]):
            continue
        values[str(row["Gas"]).strip().upper()] = float(row["GWP"])

    for gas in STANDARD_GASES:
        if gas not in values:
            raise ConfigurationError(f"GWP table {path} has no entry for {gas}", key=gas)

    if version is None:
        version = os.path.splitext(os.path.basename(path))[0]
    logger.info(f"Loaded GWP table '{version}' with {len(values)} gases from {path}")
    return GWPTable(version=version, values=values)


def write_parameters_workbook(output_path: str) -> str:
    """
    Export the default parameters and every shipped GWP table to a formatted
    workbook that can be edited and passed back to load_settings /
    load_gwp_table.
    """
    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
    # Key/Value first so load_excel_config reads the sheet directly
    columns = ["Key", "Value", "Unit", "Section", "Description"]
    df = pd.DataFrame(PARAMETERS)[columns]

    writer = pd.ExcelWriter(output_path, engine="xlsxwriter")
    df.to_excel(writer, index=False, sheet_name="Parameters")

    workbook = writer.book
    worksheet = writer.sheets["Parameters"]

    header_fmt = workbook.add_format({
        'bold': True,
        'text_wrap': True,
        'valign': 'top',
        'fg_color': '#4F81BD',
        'font_color': '#FFFFFF',
        'border': 1
    })
    key_fmt = workbook.add_format({
        'bold': True,
        'font_color': '#333333',
        'bg_color': '#F2F2F2',
        'border': 1
    })
    value_fmt = workbook.add_format({
        'bg_color': '#FFFFCC',  # editable
        'border': 1
    })
    text_fmt = workbook.add_format({
        'text_wrap': True,
        'valign': 'top',
        'border': 1
    })

    worksheet.set_column('A:A', 25)
    worksheet.set_column('B:B', 15, value_fmt)
    worksheet.set_column('C:C', 12)
    worksheet.set_column('D:D', 15)
    worksheet.set_column('E:E', 70, text_fmt)

    for col_num, value in enumerate(columns):
        worksheet.write(0, col_num, value, header_fmt)

    for row_num, row_data in enumerate(PARAMETERS):
        r = row_num + 1
        worksheet.write(r, 0, row_data["Key"], key_fmt)
        worksheet.write(r, 1, row_data["Value"], value_fmt)
        worksheet.write(r, 2, row_data["Unit"], text_fmt)
        worksheet.write(r, 3, row_data["Section"], text_fmt)
        worksheet.write(r, 4, row_data["Description"], text_fmt)

    for version, values in GWP_VALUES_BY_VERSION.items():
        gwp_df = pd.DataFrame({"Gas": list(values.keys()), "GWP": list(values.values())})
        gwp_df.to_excel(writer, index=False, sheet_name=version)
        writer.sheets[version].set_column('A:B', 12)

    writer.close()
    logger.info(f"Parameters workbook written to {output_path}")
    return output_path
