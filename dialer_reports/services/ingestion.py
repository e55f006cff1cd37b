"""
DialedIn Report Ingestion Service

This module converts DialedIn spreadsheet exports into typed ParsedReport
payloads. It is the only place that knows vendor column headers; everything
downstream works on the row models in dialer_reports.models.

Report Recognition:
- The report type comes from the export filename, matched against an ordered
  pattern table (most specific first, since 'AgentSummary' is a prefix of
  'AgentSummaryCampaign' and 'CampaignSummary' a suffix of 'SubcampaignSummary').
- The reporting period comes from an 'MM-DD-YYYY_MM-DD-YYYY' fragment of the
  filename; the report date is the end of that range.

Row Mapping:
- Each report type has a layout of (field, vendor header, kind) entries where
  kind selects the value coercer (text, count, number, pct, duration).
- Grand-total rows ('Total:' in the key column) are dropped.
- ProductionReport treats every column outside the known set as a disposition
  and keeps only positive counts.
- SubcampaignSummary exports carry an extra leading 'S-L-A Rate Value' column
  that shifts every header one place; its layout reads the shifted headers.

Checklist:
- build_checklist compares the received report types against the full set of
  twelve to flag partial days.

File Handling:
- CSV via pandas.read_csv; XLS/XLSX via pandas.read_excel, preferring the
  'Report' sheet DialedIn writes.
"""

import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type

import pandas as pd
from pydantic import ValidationError

from dialer_reports.core.metrics import parse_duration_to_minutes, round_half_away
from dialer_reports.models import (
    AgentAnalysisRow,
    AgentPauseTimeRow,
    AgentSummaryRow,
    AgentSummarySubcampaignRow,
    CallsPerHourRow,
    CampaignCallLogRow,
    CampaignSummaryRow,
    ChecklistStatus,
    ParsedReport,
    ProductionRow,
    ProductionSubcampaignRow,
    ReportRow,
    ReportType,
    ShiftReportRow,
    SubcampaignRow,
)

logger = logging.getLogger(__name__)


class ReportParseError(ValueError):
    """Raised for an unrecognized report filename or an unreadable export file."""


# =============================================================================
# CONSTANTS - Report Recognition
# =============================================================================

# Ordered most-specific first: the first matching pattern wins.
REPORT_TYPE_PATTERNS: List[Tuple[ReportType, re.Pattern]] = [
    (ReportType.AGENT_SUMMARY_SUBCAMPAIGN, re.compile(r'AgentSummarySubcampaign', re.IGNORECASE)),
    (ReportType.AGENT_SUMMARY_CAMPAIGN, re.compile(r'AgentSummaryCampaign', re.IGNORECASE)),
    (ReportType.AGENT_SUMMARY, re.compile(r'AgentSummary_', re.IGNORECASE)),
    (ReportType.AGENT_ANALYSIS, re.compile(r'AgentAnalysis', re.IGNORECASE)),
    (ReportType.AGENT_PAUSE_TIME, re.compile(r'AgentPauseTime', re.IGNORECASE)),
    (ReportType.SUBCAMPAIGN_SUMMARY, re.compile(r'SubcampaignSummary', re.IGNORECASE)),
    (ReportType.CAMPAIGN_CALL_LOG, re.compile(r'CampaignCallLog', re.IGNORECASE)),
    (ReportType.CAMPAIGN_SUMMARY, re.compile(r'CampaignSummary', re.IGNORECASE)),
    (ReportType.PRODUCTION_REPORT_SUBCAMPAIGN, re.compile(r'ProductionReportSubcampaign', re.IGNORECASE)),
    (ReportType.PRODUCTION_REPORT, re.compile(r'ProductionReport_', re.IGNORECASE)),
    (ReportType.CALLS_PER_HOUR, re.compile(r'CallsPerHour', re.IGNORECASE)),
    (ReportType.SHIFT_REPORT, re.compile(r'ShiftReport', re.IGNORECASE)),
]

DATE_RANGE_PATTERN = re.compile(r'(\d{2}-\d{2}-\d{4})_(\d{2}-\d{2}-\d{4})')

# Sheet name DialedIn uses in its XLS exports
REPORT_SHEET_NAME = 'Report'

SUPPORTED_EXTENSIONS: Tuple[str, ...] = ('.csv', '.xls', '.xlsx')

TOTAL_ROW_LABEL = 'Total:'

# ProductionReport columns that are not dispositions
PRODUCTION_NON_DISPOSITION_COLUMNS = frozenset([
    'Rep',
    'Skill',
    'Man Hours',
    'Logged In Time',
    'Connects',
    'Contacts',
    'Contacts/ManHour',
    'Sale/Lead/App',
    'Sales/ManHour',
    '__EMPTY',
])


# =============================================================================
# Value Coercers
# =============================================================================


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_text(value: Any) -> str:
    """Stringify a cell, treating blanks and NaN as ''."""
    if _is_missing(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_number(value: Any) -> float:
    """
    Parse a numeric cell; thousands separators are ignored and anything
    unparseable is 0.

    Example:
        >>> to_number('1,234')
        1234.0
        >>> to_number('n/a')
        0.0
    """
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = str(value).replace(',', '').strip()
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_pct(value: Any) -> float:
    """Parse a percentage cell such as '45.2%' into 45.2."""
    if isinstance(value, str):
        return to_number(value.replace('%', ''))
    return to_number(value)


def to_count(value: Any) -> int:
    return int(round_half_away(to_number(value), 0))


def to_duration(value: Any) -> float:
    """
    Convert a duration cell to fractional minutes.

    Excel readers may hand back time or timedelta objects instead of the
    'HH:MM:SS' text found in CSV exports.
    """
    if isinstance(value, timedelta):
        return value.total_seconds() / 60
    if isinstance(value, time):
        return value.hour * 60 + value.minute + value.second / 60
    if isinstance(value, str):
        return parse_duration_to_minutes(value.strip())
    return 0.0


COERCERS: Dict[str, Callable[[Any], Any]] = {
    'text': to_text,
    'count': to_count,
    'number': to_number,
    'pct': parse_pct,
    'duration': to_duration,
}


# =============================================================================
# Report Layouts
# =============================================================================


@dataclass
class ReportLayout:
    """
    How to read one report type's rows.

    Attributes:
        row_field: ParsedReport attribute receiving the rows.
        model: Row model class.
        key_column: Header whose blank or total value drops the row.
        columns: (field, header, kind) triples.
        total_prefix: Drop rows whose key starts with 'Total' rather than
            equalling 'Total:' exactly.
        required_columns: Extra headers that must be non-blank to keep a row.
    """
    row_field: str
    model: Type[ReportRow]
    key_column: str
    columns: List[Tuple[str, str, str]]
    total_prefix: bool = False
    required_columns: List[str] = field(default_factory=list)


_AGENT_SUMMARY_COLUMNS: List[Tuple[str, str, str]] = [
    ('rep', 'Rep', 'text'),
    ('dialed', 'Dialed', 'count'),
    ('connects', 'Connects', 'count'),
    ('contacts', 'Contacts', 'count'),
    ('hours_worked', 'Hours Worked', 'number'),
    ('transfers', 'Sale/Lead/App', 'count'),
    ('connects_per_hour', 'Connects per Hour', 'number'),
    ('sla_hr', 'S-L-A/HR', 'number'),
    ('conversion_rate_pct', 'Conversion Rate', 'pct'),
    ('talk_time_min', 'Talk Time', 'duration'),
    ('avg_talk_time_min', 'Avg Talk Time', 'duration'),
    ('wait_time_min', 'Wait Time', 'duration'),
    ('avg_wait_time_min', 'Avg Wait Time', 'duration'),
    ('wrap_time_min', 'Wrap Up Time', 'duration'),
    ('avg_wrap_time_min', 'Avg Wrap Up Time', 'duration'),
    ('logged_in_time_min', 'Logged In Time', 'duration'),
]

REPORT_LAYOUTS: Dict[ReportType, ReportLayout] = {
    ReportType.AGENT_SUMMARY: ReportLayout(
        row_field='agent_summary',
        model=AgentSummaryRow,
        key_column='Rep',
        columns=_AGENT_SUMMARY_COLUMNS + [('team', 'Team', 'text')],
    ),
    ReportType.AGENT_SUMMARY_CAMPAIGN: ReportLayout(
        row_field='agent_summary',
        model=AgentSummaryRow,
        key_column='Rep',
        columns=_AGENT_SUMMARY_COLUMNS,
    ),
    ReportType.AGENT_SUMMARY_SUBCAMPAIGN: ReportLayout(
        row_field='agent_summary_subcampaign',
        model=AgentSummarySubcampaignRow,
        key_column='Rep',
        columns=[
            ('campaign', 'Campaign', 'text'),
            ('subcampaign', 'Subcampaign', 'text'),
        ] + _AGENT_SUMMARY_COLUMNS,
    ),
    ReportType.AGENT_ANALYSIS: ReportLayout(
        row_field='agent_analysis',
        model=AgentAnalysisRow,
        key_column='Rep',
        columns=[
            ('date', 'Date', 'text'),
            ('rep', 'Rep', 'text'),
            ('campaign', 'Campaign', 'text'),
            ('hours_worked', 'Hours Worked', 'number'),
            ('contacts', 'Contacts', 'count'),
            ('connects', 'Connects', 'count'),
            ('connects_per_hour', 'Connects per Hour', 'number'),
            ('conversion_rate_pct', 'Conversion Rate', 'pct'),
            ('conversion_factor', 'Conversion Factor', 'number'),
            ('transfers', 'Sale/Lead/App', 'count'),
            ('sla_hr', 'S-L-A/HR', 'number'),
            ('call_backs', 'Call Backs', 'count'),
            ('avg_talk_time_min', 'Avg Talk Time', 'duration'),
            ('avg_wait_time_min', 'Avg Wait Time', 'duration'),
            ('time_avail_min', 'Time Avail', 'duration'),
            ('time_paused_min', 'Time Paused', 'duration'),
            ('talk_time_min', 'Talk Time', 'duration'),
            ('wrap_time_min', 'Wrap Up Time', 'duration'),
            ('logged_in_time_min', 'Logged In Time', 'duration'),
        ],
    ),
    ReportType.AGENT_PAUSE_TIME: ReportLayout(
        row_field='agent_pause_time',
        model=AgentPauseTimeRow,
        key_column='Rep',
        total_prefix=True,
        columns=[
            ('rep', 'Rep', 'text'),
            ('campaign', 'Campaign', 'text'),
            ('session_login_time', 'Session Login Time', 'text'),
            ('session_logout_time', 'Session Logout Time', 'text'),
            ('pause_time', 'Pause Time', 'text'),
            ('break_code', 'Break Code', 'text'),
            ('unpause_time', 'UnPause Time', 'text'),
            ('time_paused', 'Time Paused', 'text'),
            ('session_man_hours', 'Session ManHours', 'number'),
        ],
    ),
    ReportType.CALLS_PER_HOUR: ReportLayout(
        row_field='calls_per_hour',
        model=CallsPerHourRow,
        key_column='Hour',
        total_prefix=True,
        columns=[
            ('hour', 'Hour', 'text'),
            ('total_calls', 'Total Calls', 'count'),
            ('connects', 'Connects', 'count'),
            ('contacts', 'Contacts', 'count'),
            ('transfers', 'Sale/Lead/App', 'count'),
            ('conversion_rate_pct', 'Conversion Rate', 'pct'),
            ('inbound', 'Inbound', 'count'),
            ('inbound_pct', 'Inbound%', 'pct'),
            ('abandoned_calls', 'Abandoned Calls', 'count'),
            ('abandon_rate_pct', 'Abandon Rate', 'pct'),
            ('outbound', 'Outbound', 'count'),
            ('outbound_pct', 'Outbound%', 'pct'),
            ('dropped', 'Dropped', 'count'),
            ('drop_rate_pct', 'Drop Rate', 'pct'),
            ('talk_time_min', 'Talk Time', 'duration'),
            ('avg_hold_time_min', 'Avg Hold Time', 'duration'),
            ('avg_wait_time_min', 'Avg Wait Time', 'duration'),
            ('contact_pct', 'Contact%', 'pct'),
        ],
    ),
    ReportType.CAMPAIGN_CALL_LOG: ReportLayout(
        row_field='campaign_call_log',
        model=CampaignCallLogRow,
        key_column='Call Status',
        total_prefix=True,
        columns=[
            ('call_status', 'Call Status', 'text'),
            ('description', 'Description', 'text'),
            ('calls', 'Calls', 'count'),
            ('percent', 'Percent', 'pct'),
        ],
    ),
    ReportType.CAMPAIGN_SUMMARY: ReportLayout(
        row_field='campaign_summary',
        model=CampaignSummaryRow,
        key_column='Period',
        columns=[
            ('period', 'Period', 'text'),
            ('campaign', 'Campaign', 'text'),
            ('campaign_type', 'Campaign Type', 'text'),
            ('lines_per_agent', 'Lines per Agent', 'number'),
            ('total_leads', 'Total Leads', 'count'),
            ('available', 'Available', 'count'),
            ('dialed', 'Dialed', 'count'),
            ('dials_per_hr', 'Dials per Hr', 'number'),
            ('avg_attempts', 'Avg Attempts', 'number'),
            ('reps', 'Reps', 'count'),
            ('man_hours', 'Man Hours', 'number'),
            ('logged_in_time_min', 'Logged In Time', 'duration'),
            ('connects', 'Connects', 'count'),
            ('connect_pct', 'Connect %', 'pct'),
            ('contacts', 'Contacts', 'count'),
            ('contact_pct', 'Contact%', 'pct'),
            ('hangups', 'Hangups', 'count'),
            ('connects_per_hour', 'Connects per Hour', 'number'),
            ('conversion_rate_pct', 'Conversion Rate', 'pct'),
            ('conversion_factor', 'Conversion Factor', 'number'),
            ('transfers', 'Sale/Lead/App', 'count'),
            ('sla_hr', 'S-L-A/HR', 'number'),
            ('noans_rate_pct', 'NoAns Rate', 'pct'),
            ('norb_rate_pct', 'Norb Rate', 'pct'),
            ('drop_rate_pct', 'Drop Rate', 'pct'),
            ('avg_wait_time_min', 'Avg Wait Time', 'duration'),
        ],
    ),
    # Headers are shifted one place right of the data by the leading
    # 'S-L-A Rate Value' column, so each field reads its neighbour's header.
    ReportType.SUBCAMPAIGN_SUMMARY: ReportLayout(
        row_field='subcampaign',
        model=SubcampaignRow,
        key_column='Period',
        required_columns=['Campaign'],
        columns=[
            ('period', 'S-L-A Rate Value', 'text'),
            ('campaign', 'Period', 'text'),
            ('subcampaign', 'Campaign', 'text'),
            ('total_leads', 'Subcampaign', 'count'),
            ('dialed', 'Total Leads', 'count'),
            ('connects', 'Man Hours', 'count'),
            ('contacts', 'Connects', 'count'),
            ('transfers', 'Connects per Hour', 'count'),
            ('man_hours', 'Avg Attempts', 'number'),
            ('connect_rate_pct', 'S-L-A/HR', 'pct'),
            ('conversion_rate_pct', 'Connect Rate', 'pct'),
            ('operator_disconnects', 'Conversion Factor', 'count'),
        ],
    ),
    ReportType.PRODUCTION_REPORT: ReportLayout(
        row_field='production',
        model=ProductionRow,
        key_column='Rep',
        columns=[
            ('rep', 'Rep', 'text'),
            ('skill', 'Skill', 'text'),
            ('man_hours', 'Man Hours', 'number'),
            ('logged_in_time_min', 'Logged In Time', 'duration'),
            ('connects', 'Connects', 'count'),
            ('contacts', 'Contacts', 'count'),
            ('transfers', 'Sale/Lead/App', 'count'),
        ],
    ),
    ReportType.PRODUCTION_REPORT_SUBCAMPAIGN: ReportLayout(
        row_field='production_subcampaign',
        model=ProductionSubcampaignRow,
        key_column='Subcampaign',
        columns=[
            ('subcampaign', 'Subcampaign', 'text'),
            ('ans_machine', 'Ans. Machine', 'count'),
            ('inbound_voicemail', 'Inbound Voicemail', 'count'),
            ('connects', 'Connects', 'count'),
            ('contacts', 'Contacts', 'count'),
            ('sales_count', 'SalesCount', 'count'),
        ],
    ),
    ReportType.SHIFT_REPORT: ReportLayout(
        row_field='shift_report',
        model=ShiftReportRow,
        key_column='Date',
        columns=[
            ('date', 'Date', 'text'),
            ('campaign', 'Campaign', 'text'),
            ('call_status', 'Call Status', 'text'),
            ('description', 'Description', 'text'),
            ('type', 'Type', 'text'),
            ('calls', 'Calls', 'count'),
            ('percent', 'Percent', 'pct'),
        ],
    ),
}


# =============================================================================
# Filename Helpers
# =============================================================================


def identify_report_type(filename: str) -> Optional[ReportType]:
    """
    Recognize the report type from an export filename.

    Example:
        >>> identify_report_type('AgentSummaryCampaign_01-28-2026_01-28-2026.xls')
        <ReportType.AGENT_SUMMARY_CAMPAIGN: 'AgentSummaryCampaign'>
    """
    for report_type, pattern in REPORT_TYPE_PATTERNS:
        if pattern.search(filename):
            return report_type
    return None


def extract_date_range(filename: str) -> Tuple[Optional[str], Optional[str]]:
    """Return the (start, end) MM-DD-YYYY strings embedded in a filename, or (None, None)."""
    match = DATE_RANGE_PATTERN.search(filename)
    if match:
        return match.group(1), match.group(2)
    return None, None


def to_iso_date(mmddyyyy: str) -> str:
    """Convert 'MM-DD-YYYY' to 'YYYY-MM-DD'."""
    month, day, year = mmddyyyy.split('-')
    return f"{year}-{month}-{day}"


def report_date_for(filename: str) -> Optional[str]:
    """ISO report date for a file: the end of its filename date range."""
    _, end = extract_date_range(filename)
    return to_iso_date(end) if end else None


# =============================================================================
# Frame Parsing
# =============================================================================


def _is_total_row(key: str, prefix: bool) -> bool:
    if prefix:
        return key.startswith('Total')
    return key == TOTAL_ROW_LABEL


def _keep_record(record: Dict[str, Any], layout: ReportLayout) -> bool:
    key = to_text(record.get(layout.key_column))
    if not key or _is_total_row(key, layout.total_prefix):
        return False
    return all(to_text(record.get(column)) for column in layout.required_columns)


def _production_dispositions(record: Dict[str, Any], columns: List[str]) -> Dict[str, int]:
    dispositions: Dict[str, int] = {}
    for column in columns:
        count = to_count(record.get(column))
        if count > 0:
            dispositions[column] = count
    return dispositions


def parse_rows(df: pd.DataFrame, report_type: ReportType) -> List[ReportRow]:
    """
    Map a report frame onto row models for the given report type.

    Args:
        df: Frame with the vendor header row as columns.
        report_type: Layout to apply.

    Returns:
        Row models in frame order, total and blank rows removed.
    """
    layout = REPORT_LAYOUTS[report_type]
    frame = df.rename(columns=lambda c: str(c).strip())
    records = frame.to_dict(orient='records')

    disposition_columns: List[str] = []
    if report_type == ReportType.PRODUCTION_REPORT:
        disposition_columns = [
            c for c in frame.columns if c not in PRODUCTION_NON_DISPOSITION_COLUMNS
        ]

    rows: List[ReportRow] = []
    for record in records:
        if not _keep_record(record, layout):
            continue
        values = {
            name: COERCERS[kind](record.get(header))
            for name, header, kind in layout.columns
        }
        if report_type == ReportType.AGENT_SUMMARY:
            values['team'] = values['team'] or None
        if disposition_columns:
            values['dispositions'] = _production_dispositions(record, disposition_columns)
        rows.append(layout.model(**values))
    return rows


def parse_report_frame(df: pd.DataFrame, filename: str) -> ParsedReport:
    """
    Parse one export (already loaded as a DataFrame) into a ParsedReport.

    Args:
        df: Report sheet with vendor headers.
        filename: Original export filename; drives type and date recognition.

    Returns:
        ParsedReport with the row list for the recognized type populated.

    Raises:
        ReportParseError: If the filename matches no known report type, or a
            row or the filename date fails model validation (e.g. a negative count).
    """
    report_type = identify_report_type(filename)
    if report_type is None:
        raise ReportParseError(f"Unrecognized report type for file: {filename}")

    start, end = extract_date_range(filename)
    if start and end:
        date_label = f"{start} to {end}"
    else:
        date_label = date.today().isoformat()

    layout = REPORT_LAYOUTS[report_type]
    try:
        rows = parse_rows(df, report_type)
        report = ParsedReport(
            report_type=report_type,
            date_label=date_label,
            date_range_start=to_iso_date(start) if start else None,
            date_range_end=to_iso_date(end) if end else None,
            filename=filename,
            **{layout.row_field: rows},
        )
    except ValidationError as e:
        raise ReportParseError(
            f"Invalid values in {filename}: {e.error_count()} validation error(s)"
        ) from e
    logger.info(f"Parsed {filename} as {report_type.value}: {len(rows)} rows")
    return report


def _read_frame(content: bytes, filename: str) -> pd.DataFrame:
    lower = filename.lower()
    buffer = io.BytesIO(content)
    if lower.endswith('.csv'):
        return pd.read_csv(buffer, dtype=str, keep_default_na=False)
    sheets = pd.read_excel(buffer, sheet_name=None)
    if not sheets:
        raise ReportParseError(f"No sheets found in {filename}")
    if REPORT_SHEET_NAME in sheets:
        return sheets[REPORT_SHEET_NAME]
    return next(iter(sheets.values()))


def read_report_file(content: bytes, filename: str) -> ParsedReport:
    """
    Read a CSV/XLS/XLSX export and parse it into a ParsedReport.

    Raises:
        ReportParseError: For unsupported extensions, unreadable content or an
            unrecognized report type.
    """
    if not filename.lower().endswith(SUPPORTED_EXTENSIONS):
        raise ReportParseError(f"Unsupported file type: {filename}")
    try:
        df = _read_frame(content, filename)
    except ReportParseError:
        raise
    except Exception as e:
        logger.exception(f"Failed to read {filename}")
        raise ReportParseError(f"Could not read {filename}: {e}") from e
    return parse_report_frame(df, filename)


# =============================================================================
# Checklist
# =============================================================================


def build_checklist(received_types: Iterable[ReportType]) -> ChecklistStatus:
    """
    Compare received report types with the full set of twelve.

    Args:
        received_types: Types that arrived for the day; duplicates are ignored.

    Returns:
        ChecklistStatus listing received and missing types in enum order.
    """
    received_set = set(received_types)
    expected = list(ReportType)
    received = [t for t in expected if t in received_set]
    missing = [t for t in expected if t not in received_set]
    complete = not missing

    return ChecklistStatus(
        received=received,
        missing=missing,
        received_count=len(received),
        expected_count=len(expected),
        is_complete=complete,
        status='complete' if complete else 'partial',
    )
