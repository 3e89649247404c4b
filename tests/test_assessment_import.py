import os

import pandas as pd
import pytest

from esg_metrics.main import execute_assessment_batch, write_assessment_template, TEMPLATE_HEADERS
from esg_metrics.models import AssessmentRow
from esg_metrics.utils.input_helpers import (
    normalize_header, find_header_row, parse_assessment_sheet, parse_boolean,
    parse_control_types, read_assessment_workbook, validate_assessment_rows,
    format_assessment_report
)


def make_sheet(rows):
    header = [
        "COD SET", "COD", "ATIVIDADE/OPERAÇÃO", "ASPECTO AMBIENTAL", "IMPACTO AMBIENTAL",
        "ABRANGÊNCIA", "SEVERIDADE", "FREQ/PROB", "REQ. LEGAIS", "DPI", "OE",
        "TOTAL", "CATEGORIA", "SIGNIFICÂNCIA", "TIPO DE CONTROLE",
    ]
    title = ["LEVANTAMENTO DE ASPECTOS E IMPACTOS AMBIENTAIS"] + [None] * (len(header) - 1)
    return pd.DataFrame([title, header] + rows, dtype=object)


def test_normalize_header():
    assert normalize_header("3) Abrangência") == "abrangencia"
    assert normalize_header("  SITUAÇÃO OPERACIONAL ") == "situacao operacional"
    assert normalize_header(None) == ""


def test_parse_boolean_and_controls():
    assert parse_boolean("Sim") is True
    assert parse_boolean("1.0") is True
    assert parse_boolean("0") is False
    assert parse_boolean("") is False
    assert parse_control_types("co, mo / XX") == ["CO", "MO"]


def test_header_row_found_below_title():
    raw = make_sheet([])
    header_row, headers = find_header_row(raw)
    assert header_row == 1
    assert headers["sector_code"] == 0
    assert headers["scope"] == 5


def test_sheet_without_header_rejected():
    raw = pd.DataFrame([["a", "b"], ["c", "d"]], dtype=object)
    assert find_header_row(raw) is None
    with pytest.raises(ValueError):
        parse_assessment_sheet(raw)


def test_parse_codes():
    raw = make_sheet([
        ["ADM", "ADM.01", "Escritório", "Geração de resíduos", "Poluição do solo",
         "R", "M", "B", "1", None, None, "55", "Moderado", "Significativo", "CO,MO"],
        [None, None, None, None, None, None, None, None, None, None, None, None, None, None, None],
        ["MAN", "MAN.01", "Oficina", "Vazamento de óleo", "Contaminação", "X", "A", "A",
         None, None, None, None, None, None, None],
    ])
    rows = parse_assessment_sheet(raw)
    assert len(rows) == 2

    first = rows[0]
    assert first.row_number == 3
    assert (first.scope, first.severity, first.frequency_probability) == ("regional", "medium", "low")
    assert first.has_legal_requirement is True
    assert first.has_stakeholder_demand is False
    assert first.recorded_total_score == 55
    assert first.recorded_category == "moderate"
    assert first.recorded_significance == "significant"
    assert first.control_types == ["CO", "MO"]
    assert first.errors == {}

    second = rows[1]
    assert second.scope is None
    assert "scope" in second.errors


def test_validation_reports_errors_and_warnings():
    rows = [
        AssessmentRow(row_number=2, sector_code="ADM", environmental_aspect="Energia",
                      environmental_impact="Recursos", scope="local", severity="low",
                      frequency_probability="low"),
        AssessmentRow(row_number=3, sector_code="", environmental_aspect="",
                      environmental_impact="Ruído", activity_operation="Corte"),
    ]
    res = validate_assessment_rows(rows, existing_sectors=["adm"])
    assert res.is_valid is False
    assert res.stats["valid"] == 1
    assert res.stats["invalid"] == 1
    assert res.stats["new_sectors"] == []
    assert {e.field for e in res.errors} == {"sector_code", "environmental_aspect"}
    assert any(w.field == "activity_operation" and w.row == 2 for w in res.warnings)


def test_batch_scores_valid_rows_and_reports_errors(tmp_path):
    rows = [
        AssessmentRow(row_number=2, sector_code="ADM", activity_operation="Escritório",
                      environmental_aspect="Resíduos", environmental_impact="Solo",
                      scope="regional", severity="medium", frequency_probability="low",
                      has_legal_requirement=True, recorded_category="moderate"),
        AssessmentRow(row_number=3, sector_code="MAN", activity_operation="Oficina",
                      environmental_aspect="Óleo", environmental_impact="Água",
                      scope=None, severity="high", frequency_probability="high",
                      errors={"scope": "Unrecognised scope 'X'"}),
        AssessmentRow(row_number=4, sector_code="MAN", activity_operation="Pátio",
                      environmental_aspect="Ruído", environmental_impact="Incômodo",
                      scope="global", severity="high", frequency_probability="high",
                      recorded_category="moderate"),
    ]
    report = execute_assessment_batch(rows, str(tmp_path))

    assert os.path.exists(tmp_path / "laia_assessment_report.csv")
    assert len(report) == 3
    assert list(report["Category"]) == ["moderate", "", "critical"]
    assert list(report["Significance"]) == ["significant", "", "significant"]
    assert report.loc[0, "Total Score"] == 55
    assert "Unrecognised scope" in report.loc[1, "Error"]
    assert list(report["Matches Recorded"]) == ["yes", "", "no"]


def test_batch_preserves_column_order():
    df = format_assessment_report(pd.DataFrame([{"category": "critical", "row_number": 1, "note": "x"}]))
    assert list(df.columns[:3]) == ["Row", "Sector", "Aspect Code"]
    assert df.columns[-1] == "note"


def test_template_round_trip(tmp_path):
    path = write_assessment_template(str(tmp_path / "template.xlsx"))
    header = pd.read_excel(path, sheet_name="Data", nrows=0)
    assert list(header.columns) == TEMPLATE_HEADERS

    rows = read_assessment_workbook(path)
    assert len(rows) == 1
    row = rows[0]
    assert row.sector_code == "ADM"
    assert (row.scope, row.severity, row.frequency_probability) == ("regional", "medium", "high")
    assert row.has_legal_requirement is True
    assert row.errors == {}

    report = execute_assessment_batch(rows, str(tmp_path / "reports"))
    assert report.loc[0, "Total Score"] == 75
    assert report.loc[0, "Category"] == "critical"


def test_single_letter_answers_are_not_flags():
    assert parse_boolean("s") is False
    assert parse_boolean("y") is False
    assert parse_boolean("x") is True
