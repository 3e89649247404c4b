import logging
import os
from typing import List, Optional

import pandas as pd

from .models import (
    AssessmentRow, ExposureMetricInput, GasFactorSet, SignificanceAssessmentInput, Settings
)
from .config import load_settings, get_gwp_table, write_parameters_workbook
from .errors import ESGMetricsError, ValidationError
from .significance import classify, ScoringTables, DEFAULT_SCORING_TABLES
from .emissions import compute_co2e, format_co2e
from .safety import compute_rate, estimate_exposure_hours
from .utils.input_helpers import (
    prompt_choice, prompt_float, prompt_yes_no, print_header, style_prompt,
    read_assessment_workbook, validate_assessment_rows, format_assessment_report,
    category_counts, C_SUCCESS, C_RESET
)
from .logging_conf import setup_logging
from .visualization import Visualizer
from .audit import audit_logger

logger = logging.getLogger(__name__)

REPORT_BASENAME = "laia_assessment_report"

TEMPLATE_HEADERS = [
    'COD SET',
    'ATIVIDADE/OPERAÇÃO',
    'ASPECTO AMBIENTAL',
    'IMPACTO AMBIENTAL',
    'TEMPORALIDADE',
    'SITUAÇÃO OPERACIONAL',
    'INCIDÊNCIA',
    'CLASSE DO IMPACTO',
    'ABRANGÊNCIA',
    'SEVERIDADE',
    'FREQ/PROB',
    'REQ. LEGAIS',
    'DPI',
    'OE',
    'TIPO DE CONTROLE',
    'CONTROLES EXISTENTES',
    'LEGISLAÇÃO/NORMA',
    'CONTROLE CICLO DE VIDA',
    'ETAPAS CICLO DE VIDA',
    'AÇÕES SAÍDAS',
]

TEMPLATE_EXAMPLE_ROW = [
    'ADM',
    'Uso de ar condicionado',
    'Consumo de energia elétrica',
    'Esgotamento de recursos naturais',
    'A',
    'N',
    'SC',
    'A',
    'R',
    'M',
    'A',
    '1',
    '',
    '',
    'CO,MO',
    'Manutenção preventiva',
    'Lei 12.305/2010',
    'Sim, controle',
    'Operação/Processo Interno',
    'Reduzir consumo',
]

TEMPLATE_INSTRUCTIONS = [
    'FILLING INSTRUCTIONS',
    '',
    'TEMPORALIDADE: P=Past, A=Current, F=Future',
    'SITUAÇÃO OPERACIONAL: N=Normal, A=Abnormal, E=Emergency',
    'INCIDÊNCIA: SC=Under control (direct), SI=Under influence (indirect)',
    'CLASSE DO IMPACTO: A=Adverse, B=Beneficial',
    'ABRANGÊNCIA: L=Local, R=Regional, G=Global',
    'SEVERIDADE: B=Low, M=Medium, A=High',
    'FREQ/PROB: B=Low, M=Medium, A=High',
    'REQ. LEGAIS / DPI / OE: 1=Yes, empty=No',
    'TIPO DE CONTROLE: ST=Treatment systems, CO=Operational controls, MO=Monitoring, '
    'PRE=Emergency response plans, NC=No control',
    'CONTROLE CICLO DE VIDA: "Sim, controle", "Sim, influência" or "Não há"',
    '',
    'Scores, category and significance are calculated on import; any values already '
    'present in TOTAL / CATEGORIA / SIGNIFICÂNCIA columns are compared with the result.',
]


def _matches_recorded(row: AssessmentRow, total: int, category: str, significance: str) -> str:
    recorded = []
    if row.recorded_total_score is not None:
        recorded.append(row.recorded_total_score == total)
    if row.recorded_category is not None:
        recorded.append(row.recorded_category == category)
    if row.recorded_significance is not None:
        recorded.append(row.recorded_significance == significance)
    if not recorded:
        return ""
    return "yes" if all(recorded) else "no"


def execute_assessment_batch(
    rows: List[AssessmentRow],
    reports_dir: str,
    tables: ScoringTables = DEFAULT_SCORING_TABLES,
    existing_sectors=(),
) -> pd.DataFrame:
    """
    Classify every imported assessment row and save the report as
    <reports_dir>/laia_assessment_report.csv. Invalid rows stay in the report
    with their error and no scores. Returns the formatted report.
    """
    os.makedirs(reports_dir, exist_ok=True)
    validation = validate_assessment_rows(rows, existing_sectors=existing_sectors)
    for issue in validation.warnings:
        logger.debug(f"Row {issue.row}: {issue.message}")

    invalid_numbers = {r.row_number for r in validation.invalid_rows}
    row_errors = {}
    for issue in validation.errors:
        row_errors.setdefault(issue.row, []).append(issue.message)

    print_header(f"Scoring {len(rows)} aspects ({len(validation.valid_rows)} valid)...")

    results = []
    for row in rows:
        entry = {
            "row_number": row.row_number,
            "sector_code": row.sector_code,
            "aspect_code": row.aspect_code,
            "activity_operation": row.activity_operation,
            "environmental_aspect": row.environmental_aspect,
            "environmental_impact": row.environmental_impact,
            "scope": row.scope or "",
            "severity": row.severity or "",
            "frequency_probability": row.frequency_probability or "",
            "has_legal_requirement": row.has_legal_requirement,
            "has_stakeholder_demand": row.has_stakeholder_demand,
            "has_strategic_option": row.has_strategic_option,
        }

        if row.row_number in invalid_numbers:
            entry["error"] = "; ".join(row_errors.get(row.row_number, []))
            logger.error(f"Row {row.row_number} skipped: {entry['error']}")
            results.append(entry)
            continue

        try:
            res = classify(row.to_assessment_input(), tables)
        except ValidationError as e:
            entry["error"] = str(e)
            logger.error(f"Row {row.row_number} ({row.aspect_code or row.sector_code}): {e}")
            results.append(entry)
            continue

        entry.update({
            "consequence_score": res.consequence_score,
            "frequency_probability_score": res.frequency_probability_score,
            "total_score": res.total_score,
            "category": res.category,
            "significance": res.significance,
            "matches_recorded": _matches_recorded(row, res.total_score, res.category, res.significance),
            "error": "",
        })
        results.append(entry)

    report_df = format_assessment_report(pd.DataFrame(results))
    out_file = os.path.join(reports_dir, f"{REPORT_BASENAME}.csv")
    report_df.to_csv(out_file, index=False)
    logger.info(f"Report saved to: {out_file}")

    counts = category_counts(report_df)
    logger.info(
        f"Negligible: {counts['negligible']} | Moderate: {counts['moderate']} | "
        f"Critical: {counts['critical']} | Significant: {int((report_df['Significance'] == 'significant').sum())}"
    )
    return report_df


def write_assessment_template(path: str) -> str:
    """
    Write the assessment import template: a data sheet with the expected
    headers and one example row, and an instructions sheet.
    """
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

    writer = pd.ExcelWriter(path, engine="xlsxwriter")
    pd.DataFrame([TEMPLATE_EXAMPLE_ROW], columns=TEMPLATE_HEADERS).to_excel(
        writer, index=False, sheet_name="Data"
    )
    pd.DataFrame({"Instructions": TEMPLATE_INSTRUCTIONS}).to_excel(
        writer, index=False, header=False, sheet_name="Instructions"
    )

    header_fmt = writer.book.add_format({
        'bold': True,
        'text_wrap': True,
        'valign': 'top',
        'fg_color': '#4F81BD',
        'font_color': '#FFFFFF',
        'border': 1
    })
    data_sheet = writer.sheets["Data"]
    data_sheet.set_column(0, len(TEMPLATE_HEADERS) - 1, 25)
    for col_num, value in enumerate(TEMPLATE_HEADERS):
        data_sheet.write(0, col_num, value, header_fmt)
    writer.sheets["Instructions"].set_column('A:A', 80)

    writer.close()
    logger.info(f"Template written to {path}")
    return path


def run_batch_assessment(settings: Settings):
    """
    Batch mode: read an assessment workbook, score all rows, save report and chart.
    """
    print_header("Batch Assessment (Workbook)")
    path = input(style_prompt("Path to assessment workbook (.xlsx): ")).strip().strip('"')
    if not os.path.exists(path):
        logger.error(f"Workbook not found at {path}")
        return

    try:
        rows = read_assessment_workbook(path)
    except ValueError as e:
        logger.error(f"Could not read {path}: {e}")
        return

    print(f"\n{C_SUCCESS}Loaded {len(rows)} aspects from workbook.{C_RESET}")
    report_df = execute_assessment_batch(rows, settings.reports_dir)

    vis = Visualizer(settings.reports_dir)
    vis.plot_category_distribution(report_df, title=os.path.basename(path))


def run_single_assessment():
    print_header("Single Aspect/Impact Assessment")
    levels = ["low", "medium", "high"]
    assessment = SignificanceAssessmentInput(
        scope=prompt_choice("Scope", ["local", "regional", "global"], default="local"),
        severity=prompt_choice("Severity", levels, default="low"),
        frequency_probability=prompt_choice("Frequency/probability", levels, default="low"),
        has_legal_requirement=prompt_yes_no("Legal requirement applies?", False),
        has_stakeholder_demand=prompt_yes_no("Stakeholder demand?", False),
        has_strategic_option=prompt_yes_no("Strategic option?", False),
    )
    res = classify(assessment)
    logger.info(f"\nConsequence score : {res.consequence_score}")
    logger.info(f"Freq/Prob score   : {res.frequency_probability_score}")
    logger.info(f"Total score       : {res.total_score}")
    logger.info(f"Category          : {res.category}")
    logger.info(f"Significance      : {res.significance}")


def run_co2e_factor(settings: Settings):
    print_header("CO2e Emission Factor")
    table = get_gwp_table(settings.gwp_version)
    if prompt_yes_no("Is the substance reported with a direct GWP (e.g. HFC refrigerant)?", False):
        factors = GasFactorSet(
            direct_gwp=prompt_float("Direct GWP (kgCO2e/kg)", minimum=0.0),
            direct_gwp_source=input(style_prompt("GWP source [default=IPCC AR6]: ")).strip() or "IPCC AR6",
        )
    else:
        factors = GasFactorSet(
            co2_factor=prompt_float("CO2 factor (kg/unit)", default=0.0, minimum=0.0),
            ch4_factor=prompt_float("CH4 factor (kg/unit)", default=0.0, minimum=0.0),
            n2o_factor=prompt_float("N2O factor (kg/unit)", default=0.0, minimum=0.0),
        )

    res = compute_co2e(factors, table)
    for c in res.per_gas_breakdown:
        logger.info(f"  {c.gas:<10} {c.factor:g} × {c.gwp:g} = {c.contribution_co2e:g}")
    logger.info(f"\nTotal: {format_co2e(res)} kgCO2e/unit ({res.methodology_label})")


def run_frequency_rate(settings: Settings):
    print_header("Lost-Time Injury Frequency Rate")
    incidents = int(prompt_float("Lost-time incidents in period", minimum=0))

    mode = prompt_choice("Hours worked", ["measured", "from headcount"], default="measured")
    if mode == "measured":
        hours, source = prompt_float("Hours worked", minimum=1.0), "measured"
    else:
        headcount = prompt_float("Average headcount", minimum=1.0)
        if prompt_yes_no("Use a known hours-per-employee figure?", False):
            per_employee = prompt_float("Hours per employee", default=settings.hours_per_employee, minimum=1.0)
            hours, source = estimate_exposure_hours(headcount, per_employee)
        else:
            hours, source = estimate_exposure_hours(headcount)

    res = compute_rate(
        ExposureMetricInput(incident_count=incidents, exposure_units=hours, exposure_source=source),
        standard_block=settings.standard_block,
    )
    logger.info(f"\nRate: {res.rate:.2f} per {settings.standard_block:,.0f} hours -> {res.classification}")
    logger.info(f"Data quality: {res.data_quality} ({res.confidence_level}% confidence)")
    if res.classification == "critical":
        logger.warning("Rate above 5.0: remediation plan required.")


def export_templates(settings: Settings):
    print_header("Export Templates")
    write_assessment_template(os.path.join(settings.reports_dir, "template_laia_import.xlsx"))
    write_parameters_workbook(os.path.join(settings.reports_dir, "esg_parameters.xlsx"))


def main(config_path: Optional[str] = None):
    setup_logging(console_level=logging.INFO)
    print_header("ESG metrics calculator - Start")

    try:
        settings = load_settings(config_path)
    except ESGMetricsError as e:
        logger.error(f"Invalid configuration: {e}")
        raise SystemExit(1)

    if prompt_yes_no("Record a calculation audit log?", False):
        audit_logger.enable(settings.reports_dir)

    modes = {
        "Batch Assessment (Workbook)": lambda: run_batch_assessment(settings),
        "Single Assessment": run_single_assessment,
        "CO2e Factor": lambda: run_co2e_factor(settings),
        "Frequency Rate": lambda: run_frequency_rate(settings),
        "Export Templates": lambda: export_templates(settings),
    }
    mode = prompt_choice("Mode", list(modes), default="Batch Assessment (Workbook)")

    try:
        modes[mode]()
    except ESGMetricsError as e:
        logger.error(f"{e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
