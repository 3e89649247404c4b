import logging
import re
import unicodedata
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd
from colorama import Fore, Style

from ..constants import CATEGORIES
from ..models import AssessmentRow, ImportIssue, ImportValidation

logger = logging.getLogger(__name__)

# Style Constants
C_HEADER = Fore.CYAN + Style.BRIGHT
C_PROMPT = Fore.YELLOW
C_CHOICE = Fore.MAGENTA
C_ERROR = Fore.RED
C_SUCCESS = Fore.GREEN
C_RESET = Style.RESET_ALL

HEADER_SEARCH_ROWS = 20
MIN_RECOGNISED_HEADERS = 5

# ============================================================================
# COLUMN & VALUE MAPPINGS (Portuguese LAIA worksheets and English headers)
# ============================================================================

COLUMN_MAP: Dict[str, str] = {
    # Sector / aspect codes
    'cod set': 'sector_code',
    'codigo setor': 'sector_code',
    'setor': 'sector_code',
    'sector': 'sector_code',
    'sector code': 'sector_code',
    'cod': 'aspect_code',
    'codigo': 'aspect_code',
    'cod set . cod asp/imp': 'aspect_code',
    'aspect code': 'aspect_code',

    # Aspect & impact
    'aspecto ambiental': 'environmental_aspect',
    'aspecto': 'environmental_aspect',
    'environmental aspect': 'environmental_aspect',
    'impacto ambiental': 'environmental_impact',
    'impacto': 'environmental_impact',
    'environmental impact': 'environmental_impact',

    # Activity
    'atividade/operacao': 'activity_operation',
    'atividade / operacao': 'activity_operation',
    'atividade': 'activity_operation',
    'operacao': 'activity_operation',
    'activity': 'activity_operation',
    'activity/operation': 'activity_operation',

    # Characterisation
    'temporalidade': 'temporality',
    'temporality': 'temporality',
    'situacao operacional': 'operational_situation',
    'situacao': 'operational_situation',
    'operational situation': 'operational_situation',
    'incidencia': 'incidence',
    'incidence': 'incidence',
    'classe do impacto': 'impact_class',
    'classe': 'impact_class',
    'impact class': 'impact_class',
    'abrangencia': 'scope',
    'scope': 'scope',
    'severidade': 'severity',
    'severity': 'severity',

    # Scoring
    'frequencia/probabilidade': 'frequency_probability',
    'freq/prob': 'frequency_probability',
    'frequencia': 'frequency_probability',
    'frequency/probability': 'frequency_probability',
    'total': 'total_score',
    'soma (cons + fre pro)': 'total_score',
    'total score': 'total_score',
    'categoria': 'category',
    'category': 'category',

    # Significance filters
    'req. legais': 'has_legal_requirement',
    'requisitos legais': 'has_legal_requirement',
    'legal requirement': 'has_legal_requirement',
    'dpi': 'has_stakeholder_demand',
    'demanda partes interessadas': 'has_stakeholder_demand',
    'stakeholder demand': 'has_stakeholder_demand',
    'oe': 'has_strategic_option',
    'opcoes estrategicas': 'has_strategic_option',
    'strategic option': 'has_strategic_option',

    # Recorded verdict
    'significancia': 'significance',
    'enquadramento': 'significance',
    'significance': 'significance',

    # Controls
    'tipo de controle': 'control_types',
    'tipos de controle': 'control_types',
    'control types': 'control_types',
    'controles existentes': 'existing_controls',
    'controle existente': 'existing_controls',
    'existing controls': 'existing_controls',

    # Legislation
    'legislacao/norma': 'legislation_reference',
    'legislacao': 'legislation_reference',
    'norma': 'legislation_reference',
    'legislation': 'legislation_reference',

    # Lifecycle
    'controle ciclo de vida': 'has_lifecycle_control',
    'ciclo de vida': 'has_lifecycle_control',
    'lifecycle control': 'has_lifecycle_control',
    'etapas ciclo de vida': 'lifecycle_stages',
    'etapas': 'lifecycle_stages',
    'lifecycle stages': 'lifecycle_stages',

    # Output
    'acoes saidas': 'output_actions',
    'acoes': 'output_actions',
    'output actions': 'output_actions',
}

TEMPORALITY_MAP = {
    'p': 'past', 'passada': 'past', 'past': 'past',
    'a': 'current', 'atual': 'current', 'current': 'current',
    'f': 'future', 'futura': 'future', 'future': 'future',
    'a/f': 'current', 'f/a': 'current',
}

OPERATIONAL_SITUATION_MAP = {
    'n': 'normal', 'normal': 'normal',
    'a': 'abnormal', 'anormal': 'abnormal', 'abnormal': 'abnormal',
    'e': 'emergency', 'emergencia': 'emergency', 'emergency': 'emergency',
}

INCIDENCE_MAP = {
    'sc': 'direct', 'sob controle': 'direct', 'controle': 'direct', 'direto': 'direct', 'direct': 'direct',
    'si': 'indirect', 'sob influencia': 'indirect', 'influencia': 'indirect',
    'indireto': 'indirect', 'indirect': 'indirect',
}

IMPACT_CLASS_MAP = {
    'a': 'adverse', 'adverso': 'adverse', 'adverse': 'adverse',
    'b': 'beneficial', 'benefico': 'beneficial', 'beneficial': 'beneficial',
}

SCOPE_MAP = {
    'l': 'local', 'local': 'local',
    'r': 'regional', 'regional': 'regional',
    'g': 'global', 'global': 'global',
}

LEVEL_MAP = {
    'b': 'low', 'baixa': 'low', 'baixo': 'low', 'low': 'low',
    'm': 'medium', 'media': 'medium', 'medio': 'medium', 'medium': 'medium',
    'a': 'high', 'alta': 'high', 'alto': 'high', 'high': 'high',
}

CATEGORY_MAP = {
    'desprezivel': 'negligible', 'negligible': 'negligible',
    'moderado': 'moderate', 'moderate': 'moderate',
    'critico': 'critical', 'critical': 'critical',
}

SIGNIFICANCE_MAP = {
    'significativo': 'significant', 'sig': 'significant', 's': 'significant',
    'significant': 'significant',
    'nao significativo': 'not_significant', 'nao sig': 'not_significant',
    'ns': 'not_significant', 'n': 'not_significant', 'not significant': 'not_significant',
    'not_significant': 'not_significant',
}

VALID_CONTROL_TYPES = ('ST', 'CO', 'MO', 'PRE', 'NC')
TRUE_VALUES = ('1', 'sim', 'yes', 'true', 'x')

# ============================================================================
# CONSOLE HELPERS
# ============================================================================

def style_prompt(prompt_text: str) -> str:
    """Helper to wrap input prompt in color."""
    return f"{C_PROMPT}{prompt_text}{C_RESET}"


def print_header(text: str):
    """Print a styled header."""
    print(f"\n{C_HEADER}{'='*60}")
    print(f"{text.center(60)}")
    print(f"{'='*60}{C_RESET}")


def prompt_choice(label: str, options: List[str], default: str) -> str:
    """
    Prompt user to pick one value from a list of options; returns the chosen option.
    Supports selecting by index (1-based) or typing the name.
    """
    display_parts = []
    for idx, opt in enumerate(options, 1):
        display_parts.append(f"[{C_SUCCESS}{idx}{C_PROMPT}] {C_CHOICE}{opt}{C_PROMPT}")
    opts_str = " / ".join(display_parts)

    while True:
        print(f"\n{C_PROMPT}{label} options:{C_RESET} {opts_str}")
        s = input(style_prompt(f"Select option (name or number) [default={default}]: ")).strip().lower()

        if not s:
            return default
        if s.isdigit():
            idx = int(s)
            if 1 <= idx <= len(options):
                return options[idx - 1]
        for opt in options:
            if s == opt.lower():
                return opt

        logger.warning(f"Invalid choice '{s}'. Please enter a number 1-{len(options)} or the option name.")


def prompt_yes_no(label: str, default: bool) -> bool:
    """
    Prompt user for yes/no answer, returning True/False.
    """
    d = "y" if default else "n"
    opts = f"{C_CHOICE}y{C_PROMPT}/{C_CHOICE}n{C_PROMPT}"
    while True:
        s = input(style_prompt(f"{label} [{opts}] (default={d}): ")).strip().lower()
        if not s:
            return default
        if s in ("y", "yes"):
            return True
        if s in ("n", "no"):
            return False
        logger.warning("Please answer y or n.")


def prompt_float(label: str, default: Optional[float] = None, minimum: Optional[float] = None) -> float:
    """
    Prompt for a number; empty input returns the default when one is given.
    """
    suffix = f" [default={default}]" if default is not None else ""
    while True:
        s = input(style_prompt(f"{label}{suffix}: ")).strip().replace(",", ".")
        if not s and default is not None:
            return default
        try:
            value = float(s)
        except ValueError:
            logger.warning(f"'{s}' is not a number.")
            continue
        if minimum is not None and value < minimum:
            logger.warning(f"Value must be at least {minimum}.")
            continue
        return value

# ============================================================================
# WORKBOOK PARSING
# ============================================================================

def clean_text(value) -> str:
    """Cell value as single-line text; HTML line breaks and tags removed."""
    if value is None:
        return ''
    if isinstance(value, float) and pd.isna(value):
        return ''
    text = str(value)
    text = re.sub(r'<br\s*/?>', ' ', text, flags=re.IGNORECASE)
    text = re.sub(r'<[^>]*>', '', text)
    return re.sub(r'\s+', ' ', text).strip()


def normalize_header(text) -> str:
    """
    Lower-case, strip numbering prefixes like '12)' and remove accents:
    '3) Abrangência' -> 'abrangencia'.
    """
    key = clean_text(text).lower().strip()
    key = re.sub(r'^\d+\)\s*', '', key)
    key = unicodedata.normalize('NFD', key)
    key = ''.join(ch for ch in key if unicodedata.category(ch) != 'Mn')
    return key.strip()


def parse_boolean(value) -> bool:
    """'1', 'sim', 'yes', 'x' ... are true; numeric cells are true when non-zero."""
    if isinstance(value, bool):
        return value
    text = normalize_header(value)
    try:
        return float(text) != 0
    except ValueError:
        return text in TRUE_VALUES


def parse_control_types(value) -> List[str]:
    text = clean_text(value)
    if not text:
        return []
    types = [t.strip().upper() for t in re.split(r'[,/;]', text)]
    return [t for t in types if t in VALID_CONTROL_TYPES]


def parse_lifecycle_stages(value) -> List[str]:
    text = clean_text(value)
    if not text:
        return []
    return [s.strip() for s in re.split(r'[,/;]', text) if s.strip()]


def parse_lifecycle_control(value) -> bool:
    text = normalize_header(value)
    if not text or text.startswith('nao'):
        return False
    return 'sim' in text or 'yes' in text or 'controle' in text or 'influencia' in text


def _parse_int(value) -> Optional[int]:
    text = clean_text(value)
    if not text:
        return None
    try:
        return int(float(text.replace(',', '.')))
    except ValueError:
        return None


def find_header_row(raw: pd.DataFrame) -> Optional[Tuple[int, Dict[str, int]]]:
    """
    Locate the header row in a sheet read with header=None.
    Searches the first HEADER_SEARCH_ROWS rows for a row with both a sector
    and an aspect column and at least MIN_RECOGNISED_HEADERS known headers.
    Returns (row index, {field: column index}) or None.
    """
    for row_idx in range(min(len(raw), HEADER_SEARCH_ROWS)):
        headers: Dict[str, int] = {}
        has_aspect = False
        has_sector = False

        for col_idx, cell in enumerate(raw.iloc[row_idx].tolist()):
            text = normalize_header(cell)
            if not text:
                continue
            mapped = COLUMN_MAP.get(text)
            if mapped and mapped not in headers:
                headers[mapped] = col_idx
            if mapped == 'environmental_aspect' or 'aspecto ambiental' in text or 'cod asp' in text:
                has_aspect = True
            if mapped == 'sector_code' or 'cod set' in text or 'setor' in text:
                has_sector = True

        if has_aspect and has_sector and len(headers) >= MIN_RECOGNISED_HEADERS:
            return row_idx, headers

    return None


def _lookup(row: AssessmentRow, field_name: str, raw_value: str, mapping: Dict[str, str]) -> Optional[str]:
    """Strict lookup for scoring fields: unknown codes become row errors."""
    key = normalize_header(raw_value)
    if key in mapping:
        return mapping[key]
    if not key:
        row.errors[field_name] = f"{field_name} is required"
    else:
        row.errors[field_name] = f"Unrecognised {field_name} '{raw_value}'"
    return None


def parse_assessment_sheet(raw: pd.DataFrame) -> List[AssessmentRow]:
    """
    Convert a raw assessment worksheet (read with header=None) into
    AssessmentRow records. Rows without sector and aspect codes are skipped.
    Descriptive fields fall back to their usual values; scoring fields never
    do.
    """
    header_info = find_header_row(raw)
    if header_info is None:
        raise ValueError(
            "Could not find the header row. The sheet needs columns such as "
            "'COD SET' and 'ASPECTO AMBIENTAL' (or 'Sector' and 'Environmental aspect')."
        )
    header_row, headers = header_info
    rows: List[AssessmentRow] = []

    for row_idx in range(header_row + 1, len(raw)):
        values = raw.iloc[row_idx].tolist()

        def cell(key: str) -> str:
            col = headers.get(key)
            if col is None or col >= len(values):
                return ''
            return clean_text(values[col])

        sector_code = cell('sector_code')
        aspect_code = cell('aspect_code')
        if not sector_code and not aspect_code:
            continue

        row = AssessmentRow(
            row_number=row_idx + 1,
            sector_code=sector_code,
            aspect_code=aspect_code,
            activity_operation=cell('activity_operation'),
            environmental_aspect=cell('environmental_aspect'),
            environmental_impact=cell('environmental_impact'),
            temporality=TEMPORALITY_MAP.get(normalize_header(cell('temporality')), 'current'),
            operational_situation=OPERATIONAL_SITUATION_MAP.get(normalize_header(cell('operational_situation')), 'normal'),
            incidence=INCIDENCE_MAP.get(normalize_header(cell('incidence')), 'direct'),
            impact_class=IMPACT_CLASS_MAP.get(normalize_header(cell('impact_class')), 'adverse'),
            has_legal_requirement=parse_boolean(cell('has_legal_requirement')),
            has_stakeholder_demand=parse_boolean(cell('has_stakeholder_demand')),
            has_strategic_option=parse_boolean(cell('has_strategic_option')),
            control_types=parse_control_types(cell('control_types')),
            existing_controls=cell('existing_controls'),
            legislation_reference=cell('legislation_reference'),
            has_lifecycle_control=parse_lifecycle_control(cell('has_lifecycle_control')),
            lifecycle_stages=parse_lifecycle_stages(cell('lifecycle_stages')),
            output_actions=cell('output_actions'),
            recorded_total_score=_parse_int(cell('total_score')),
            recorded_category=CATEGORY_MAP.get(normalize_header(cell('category'))),
            recorded_significance=SIGNIFICANCE_MAP.get(normalize_header(cell('significance'))),
        )
        row.scope = _lookup(row, 'scope', cell('scope'), SCOPE_MAP)
        row.severity = _lookup(row, 'severity', cell('severity'), LEVEL_MAP)
        row.frequency_probability = _lookup(row, 'frequency_probability', cell('frequency_probability'), LEVEL_MAP)
        rows.append(row)

    logger.info(f"Parsed {len(rows)} assessment rows (header at row {header_row + 1})")
    return rows


def read_assessment_workbook(path: str, sheet_name=0) -> List[AssessmentRow]:
    """Read the first (or given) sheet of an assessment workbook."""
    raw = pd.read_excel(path, sheet_name=sheet_name, header=None, dtype=object)
    return parse_assessment_sheet(raw)


def validate_assessment_rows(
    rows: List[AssessmentRow],
    existing_sectors: Iterable[str] = (),
    existing_aspect_codes: Iterable[str] = (),
) -> ImportValidation:
    """
    Check required fields before scoring. Errors make a row invalid;
    warnings (new sector, duplicate aspect code, missing activity) do not.
    """
    known_sectors = {s.upper() for s in existing_sectors}
    known_codes = set(existing_aspect_codes)
    errors: List[ImportIssue] = []
    warnings: List[ImportIssue] = []
    valid_rows: List[AssessmentRow] = []
    invalid_rows: List[AssessmentRow] = []
    sectors_found = set()
    new_sectors = set()

    for row in rows:
        row_errors = []

        if not row.sector_code:
            row_errors.append(ImportIssue(row.row_number, 'sector_code', 'Sector code is required'))
        else:
            code = row.sector_code.upper()
            sectors_found.add(code)
            if code not in known_sectors:
                new_sectors.add(code)
                warnings.append(ImportIssue(
                    row.row_number, 'sector_code', f'Sector "{row.sector_code}" does not exist yet'
                ))

        if not row.environmental_aspect:
            row_errors.append(ImportIssue(row.row_number, 'environmental_aspect', 'Environmental aspect is required'))
        if not row.environmental_impact:
            row_errors.append(ImportIssue(row.row_number, 'environmental_impact', 'Environmental impact is required'))

        for field_name, message in row.errors.items():
            row_errors.append(ImportIssue(row.row_number, field_name, message))

        if row.aspect_code and row.aspect_code in known_codes:
            warnings.append(ImportIssue(
                row.row_number, 'aspect_code', f'Aspect code "{row.aspect_code}" already exists'
            ))
        if not row.activity_operation:
            warnings.append(ImportIssue(row.row_number, 'activity_operation', 'Activity/operation not provided'))

        if row_errors:
            errors.extend(row_errors)
            invalid_rows.append(row)
        else:
            valid_rows.append(row)

    return ImportValidation(
        is_valid=not invalid_rows,
        errors=errors,
        warnings=warnings,
        valid_rows=valid_rows,
        invalid_rows=invalid_rows,
        stats={
            "total": len(rows),
            "valid": len(valid_rows),
            "invalid": len(invalid_rows),
            "sectors_found": sorted(sectors_found),
            "new_sectors": sorted(new_sectors),
        },
    )

# ============================================================================
# REPORT FORMATTING
# ============================================================================

REPORT_COLUMNS = [
    ("row_number", "Row"),
    ("sector_code", "Sector"),
    ("aspect_code", "Aspect Code"),
    ("activity_operation", "Activity/Operation"),
    ("environmental_aspect", "Environmental Aspect"),
    ("environmental_impact", "Environmental Impact"),
    ("scope", "Scope"),
    ("severity", "Severity"),
    ("frequency_probability", "Frequency/Probability"),
    ("consequence_score", "Consequence Score"),
    ("frequency_probability_score", "Freq/Prob Score"),
    ("total_score", "Total Score"),
    ("category", "Category"),
    ("has_legal_requirement", "Legal Requirement"),
    ("has_stakeholder_demand", "Stakeholder Demand"),
    ("has_strategic_option", "Strategic Option"),
    ("significance", "Significance"),
    ("matches_recorded", "Matches Recorded"),
    ("error", "Error"),
]


def format_assessment_report(df: pd.DataFrame) -> pd.DataFrame:
    """
    Order and rename the batch report columns. Known columns missing from the
    input are added empty; unknown columns are kept at the end.
    """
    df = df.copy()
    for key, _ in REPORT_COLUMNS:
        if key not in df.columns:
            df[key] = ""

    known = [key for key, _ in REPORT_COLUMNS]
    extra = [c for c in df.columns if c not in known]
    df = df[known + extra]

    df = df.rename(columns=dict(REPORT_COLUMNS))
    text_cols = ["Category", "Significance", "Matches Recorded", "Error"]
    df[text_cols] = df[text_cols].fillna("")
    return df


def category_counts(report: pd.DataFrame) -> Dict[str, int]:
    """Number of scored rows per category, in category order."""
    counts = report["Category"].value_counts()
    return {cat: int(counts.get(cat, 0)) for cat in CATEGORIES}
