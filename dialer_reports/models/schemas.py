"""
Pydantic request/response models for the Dialer Reports backend.

This module provides type-safe data validation and serialization for the ETL
pipeline: one row model per DialedIn report type (the ingestion boundary), the
ParsedReport payload that groups rows from one export file, and the computed
outputs (DailyKPIs, AgentPerformance, SkillSummary, Anomaly, ETLResult), plus
alert-rule, checklist and API request models.

Normalization happens once, here: text fields are whitespace-stripped, numeric
fields default to 0, duration fields are fractional minutes, and production
disposition labels are canonicalized with normalize_key so every aggregator
sees stable keys such as 'dead_air', 'hung_up_transfer' and 'transfer'.

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dialer_reports.core.metrics import normalize_key
from dialer_reports.models.enums import (
    AlertOperator,
    AlertScope,
    AnomalyType,
    IngestionSource,
    ReportType,
    Severity,
)


# =============================================================================
# Report Row Models (ingestion boundary, one per report type)
# =============================================================================


class ReportRow(BaseModel):
    """Base for all report rows: strips whitespace from every text field."""
    model_config = ConfigDict(str_strip_whitespace=True)


class AgentSummaryRow(ReportRow):
    """
    One agent's totals for the day.

    Source: AgentSummary (all agents, with Team) and AgentSummaryCampaign
    (active agents only, no Team) exports share this shape.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "rep": "Jane Doe",
                "dialed": 100,
                "connects": 40,
                "contacts": 20,
                "transfers": 5,
                "hours_worked": 8.0
            }
        }
    )

    rep: str = Field(..., min_length=1, description="Agent display name")
    team: Optional[str] = Field(default=None, description="Team (AgentSummary only)")
    dialed: int = Field(default=0, ge=0)
    connects: int = Field(default=0, ge=0)
    contacts: int = Field(default=0, ge=0)
    hours_worked: float = Field(default=0.0, ge=0)
    transfers: int = Field(default=0, ge=0, description="Sale/Lead/App count")
    connects_per_hour: float = 0.0
    sla_hr: float = 0.0
    conversion_rate_pct: float = 0.0
    talk_time_min: float = 0.0
    avg_talk_time_min: float = 0.0
    wait_time_min: float = 0.0
    avg_wait_time_min: float = 0.0
    wrap_time_min: float = 0.0
    avg_wrap_time_min: float = 0.0
    logged_in_time_min: float = 0.0


class AgentSummarySubcampaignRow(AgentSummaryRow):
    """Agent totals broken down by campaign and subcampaign."""
    campaign: str = ''
    subcampaign: str = ''


class AgentAnalysisRow(ReportRow):
    """Per-agent per-campaign row carrying the export's Date column."""
    date: str = ''
    rep: str = Field(..., min_length=1)
    campaign: str = ''
    hours_worked: float = 0.0
    contacts: int = 0
    connects: int = 0
    connects_per_hour: float = 0.0
    conversion_rate_pct: float = 0.0
    conversion_factor: float = 0.0
    transfers: int = 0
    sla_hr: float = 0.0
    call_backs: int = 0
    avg_talk_time_min: float = 0.0
    avg_wait_time_min: float = 0.0
    time_avail_min: float = 0.0
    time_paused_min: float = 0.0
    talk_time_min: float = 0.0
    wrap_time_min: float = 0.0
    logged_in_time_min: float = 0.0


class AgentPauseTimeRow(ReportRow):
    """
    One pause session.

    time_paused stays the raw 'HH:MM:SS' string; pause analytics converts it.
    """
    rep: str = Field(..., min_length=1)
    campaign: str = ''
    session_login_time: str = ''
    session_logout_time: str = ''
    pause_time: str = ''
    break_code: str = ''
    unpause_time: str = ''
    time_paused: str = ''
    session_man_hours: float = 0.0


class CallsPerHourRow(ReportRow):
    """Hourly call volume. The hour label 'TOTAL' marks the summary row."""
    hour: str
    total_calls: int = 0
    connects: int = 0
    contacts: int = 0
    transfers: int = 0
    conversion_rate_pct: float = 0.0
    inbound: int = 0
    inbound_pct: float = 0.0
    abandoned_calls: int = 0
    abandon_rate_pct: float = 0.0
    outbound: int = 0
    outbound_pct: float = 0.0
    dropped: int = 0
    drop_rate_pct: float = 0.0
    talk_time_min: float = 0.0
    avg_hold_time_min: float = 0.0
    avg_wait_time_min: float = 0.0
    contact_pct: float = 0.0


class CampaignCallLogRow(ReportRow):
    call_status: str
    description: str = ''
    calls: int = 0
    percent: float = 0.0


class CampaignSummaryRow(ReportRow):
    """Campaign-level dialer metrics for the period."""
    period: str = ''
    campaign: str = ''
    campaign_type: str = ''
    lines_per_agent: float = 0.0
    total_leads: int = 0
    available: int = 0
    dialed: int = 0
    dials_per_hr: float = 0.0
    avg_attempts: float = 0.0
    reps: int = 0
    man_hours: float = 0.0
    logged_in_time_min: float = 0.0
    connects: int = 0
    connect_pct: float = 0.0
    contacts: int = 0
    contact_pct: float = 0.0
    hangups: int = 0
    connects_per_hour: float = 0.0
    conversion_rate_pct: float = 0.0
    conversion_factor: float = 0.0
    transfers: int = 0
    sla_hr: float = 0.0
    noans_rate_pct: float = 0.0
    norb_rate_pct: float = 0.0
    drop_rate_pct: float = 0.0
    avg_wait_time_min: float = 0.0


class SubcampaignRow(ReportRow):
    """Subcampaign-level dialer metrics (SubcampaignSummary export)."""
    period: str = ''
    campaign: str = ''
    subcampaign: str = ''
    total_leads: int = 0
    dialed: int = 0
    connects: int = 0
    contacts: int = 0
    transfers: int = 0
    man_hours: float = 0.0
    connect_rate_pct: float = 0.0
    conversion_rate_pct: float = 0.0
    operator_disconnects: int = 0


class ProductionRow(ReportRow):
    """
    Per-agent production row with a dynamic set of disposition counts.

    Disposition labels arrive as vendor column headers ('Dead Air',
    'Hung Up Transfer', 'Ans. Machine', ...). They are normalized on
    construction; labels that collapse to the same key are summed.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "rep": "Jane Doe",
                "skill": "Medicare",
                "man_hours": 8.0,
                "connects": 120,
                "contacts": 60,
                "transfers": 5,
                "dispositions": {"Dead Air": 20, "Transfer": 5, "Hung Up Transfer": 2}
            }
        }
    )

    rep: str = Field(..., min_length=1)
    skill: str = ''
    man_hours: float = 0.0
    logged_in_time_min: float = 0.0
    connects: int = 0
    contacts: int = 0
    transfers: int = 0
    dispositions: Dict[str, int] = Field(default_factory=dict)

    @field_validator('dispositions')
    @classmethod
    def normalize_disposition_keys(cls, value: Dict[str, int]) -> Dict[str, int]:
        # Runs after field validation, so counts are already ints.
        normalized: Dict[str, int] = {}
        for label, count in value.items():
            key = normalize_key(str(label))
            normalized[key] = normalized.get(key, 0) + count
        return normalized


class ProductionSubcampaignRow(ReportRow):
    subcampaign: str
    ans_machine: int = 0
    inbound_voicemail: int = 0
    connects: int = 0
    contacts: int = 0
    sales_count: int = 0


class ShiftReportRow(ReportRow):
    """Disposition (call status) counts by campaign and date."""
    date: str = ''
    campaign: str = ''
    call_status: str = ''
    description: str = ''
    type: str = ''
    calls: int = 0
    percent: float = 0.0


# =============================================================================
# Parsed Report Payload
# =============================================================================


class ParsedReport(BaseModel):
    """
    Rows parsed from a single DialedIn export file.

    Exactly one row list is normally populated, chosen by report_type.
    AgentSummary payloads carry the global agent_summary source; any other
    payload with agent_summary rows (AgentSummaryCampaign) is campaign-scoped.
    """
    report_type: ReportType = Field(..., description="Report type recognized from the filename")
    date_label: str = Field(default='', description="'MM-DD-YYYY to MM-DD-YYYY' or ISO date")
    date_range_start: Optional[DateType] = None
    date_range_end: Optional[DateType] = None
    filename: str = ''

    agent_summary: Optional[List[AgentSummaryRow]] = None
    agent_summary_subcampaign: Optional[List[AgentSummarySubcampaignRow]] = None
    agent_analysis: Optional[List[AgentAnalysisRow]] = None
    agent_pause_time: Optional[List[AgentPauseTimeRow]] = None
    calls_per_hour: Optional[List[CallsPerHourRow]] = None
    campaign_call_log: Optional[List[CampaignCallLogRow]] = None
    campaign_summary: Optional[List[CampaignSummaryRow]] = None
    production: Optional[List[ProductionRow]] = None
    production_subcampaign: Optional[List[ProductionSubcampaignRow]] = None
    shift_report: Optional[List[ShiftReportRow]] = None
    subcampaign: Optional[List[SubcampaignRow]] = None

    @property
    def row_count(self) -> int:
        """Total rows across every populated row list."""
        total = 0
        for name in ROW_FIELDS:
            rows = getattr(self, name)
            if rows:
                total += len(rows)
        return total


# Row-list attribute names on ParsedReport, in report-source order
ROW_FIELDS: List[str] = [
    'agent_summary',
    'agent_summary_subcampaign',
    'agent_analysis',
    'agent_pause_time',
    'production',
    'production_subcampaign',
    'subcampaign',
    'campaign_summary',
    'campaign_call_log',
    'shift_report',
    'calls_per_hour',
]


# =============================================================================
# Computed Output Models
# =============================================================================


class TPHDistribution(BaseModel):
    """
    Transfers-per-hour distribution over qualified agents.

    Every statistic is rounded to 2 decimals. Only present on DailyKPIs when at
    least one agent met min_hours_qualified.
    """
    count: int = Field(..., ge=1)
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    mean: float
    std: float


class DailyKPIs(BaseModel):
    """
    Floor-level KPIs for one reporting day.

    Rates are percentages rounded to 2 decimals, except waste_rate and
    transfer_success_rate (1 decimal). transfers_per_hour is rounded to 2
    decimals and dials_per_hour to 1. Previous-day fields stay null unless a
    previous day's KPIs were supplied.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "report_date": "2026-01-28",
                "total_agents": 1,
                "agents_with_transfers": 1,
                "total_dials": 100,
                "total_connects": 40,
                "total_contacts": 20,
                "total_transfers": 5,
                "total_man_hours": 8.0,
                "connect_rate": 40.0,
                "contact_rate": 50.0,
                "conversion_rate": 25.0,
                "transfers_per_hour": 0.63,
                "dials_per_hour": 12.5
            }
        }
    )

    report_date: str = Field(..., description="ISO date (YYYY-MM-DD) of the reporting day")
    total_agents: int = Field(default=0, ge=0)
    agents_with_transfers: int = Field(default=0, ge=0)
    total_dials: int = 0
    total_connects: int = 0
    total_contacts: int = 0
    total_transfers: int = 0
    total_man_hours: float = 0.0
    total_talk_time_min: float = 0.0
    total_wait_time_min: float = 0.0
    total_wrap_time_min: float = 0.0
    connect_rate: float = 0.0
    contact_rate: float = 0.0
    conversion_rate: float = 0.0
    transfers_per_hour: float = 0.0
    dials_per_hour: float = 0.0
    dead_air_ratio: float = 0.0
    hung_up_ratio: float = 0.0
    waste_rate: float = 0.0
    transfer_success_rate: float = 0.0
    prev_day_transfers: Optional[int] = None
    prev_day_tph: Optional[float] = None
    delta_transfers: Optional[int] = None
    delta_tph: Optional[float] = None
    dispositions: Dict[str, int] = Field(default_factory=dict)
    distribution: Optional[TPHDistribution] = None
    is_partial: bool = Field(
        default=False,
        description="True when some expected report types were missing for the day"
    )


class AgentPerformance(BaseModel):
    """
    One agent-summary row enriched with production dispositions and ranks.

    Ranks are 1-based among agents with hours_worked >= min_hours_qualified
    and are null for everyone else.
    """
    report_date: str
    agent_name: str
    employee_id: Optional[str] = None
    skill: Optional[str] = None
    subcampaign: Optional[str] = None
    dials: int = 0
    connects: int = 0
    contacts: int = 0
    transfers: int = 0
    hours_worked: float = 0.0
    talk_time_min: float = 0.0
    wait_time_min: float = 0.0
    wrap_time_min: float = 0.0
    logged_in_time_min: float = 0.0
    tph: float = 0.0
    connects_per_hour: float = 0.0
    connect_rate: float = 0.0
    conversion_rate: float = 0.0
    dead_air_ratio: float = 0.0
    dispositions: Dict[str, int] = Field(default_factory=dict)
    tph_rank: Optional[int] = Field(default=None, ge=1)
    conversion_rank: Optional[int] = Field(default=None, ge=1)
    dials_rank: Optional[int] = Field(default=None, ge=1)


class SkillSummary(BaseModel):
    """Production totals grouped by skill."""
    report_date: str
    skill: str
    subcampaign: Optional[str] = None
    agent_count: int = 0
    total_dials: int = 0
    total_connects: int = 0
    total_contacts: int = 0
    total_transfers: int = 0
    total_man_hours: float = 0.0
    avg_tph: float = 0.0
    connect_rate: float = 0.0
    conversion_rate: float = 0.0
    dispositions: Dict[str, int] = Field(default_factory=dict)


class Anomaly(BaseModel):
    """
    A flagged agent-level condition.

    metric_value is the observed value and threshold_value the cutoff it was
    judged against; details carries the supporting counts.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "report_date": "2026-01-28",
                "anomaly_type": "zero_transfers",
                "severity": "warning",
                "agent_name": "Alex Smith",
                "skill": None,
                "metric_name": "hours_worked",
                "metric_value": 6.0,
                "threshold_value": 4.0,
                "details": {"dials": 300, "contacts": 25}
            }
        }
    )

    report_date: str
    anomaly_type: AnomalyType
    severity: Severity
    agent_name: Optional[str] = None
    skill: Optional[str] = None
    metric_name: str
    metric_value: float
    threshold_value: float
    details: Dict[str, Any] = Field(default_factory=dict)


class ETLResult(BaseModel):
    """Everything computed for one reporting day."""
    daily_kpis: DailyKPIs
    agent_performance: List[AgentPerformance] = Field(default_factory=list)
    skill_summary: List[SkillSummary] = Field(default_factory=list)
    anomalies: List[Anomaly] = Field(default_factory=list)
    raw_data: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Ingestion and Checklist Models
# =============================================================================


class ChecklistStatus(BaseModel):
    """Which of the twelve report types arrived for a day."""
    received: List[ReportType] = Field(default_factory=list)
    missing: List[ReportType] = Field(default_factory=list)
    received_count: int = 0
    expected_count: int = 0
    is_complete: bool = False
    status: str = Field(default='partial', description="'complete' or 'partial'")


class FileIngestionResult(BaseModel):
    """Outcome of parsing one uploaded export file."""
    filename: str
    success: bool
    report_type: Optional[ReportType] = None
    report_date: Optional[DateType] = None
    row_count: int = Field(default=0, ge=0)
    error: Optional[str] = None


class UploadResponse(BaseModel):
    """Per-file results plus the processed day when every file shares one date."""
    source: IngestionSource = IngestionSource.MANUAL
    files: List[FileIngestionResult] = Field(default_factory=list)
    report_dates: List[DateType] = Field(default_factory=list)
    checklist: Optional[ChecklistStatus] = None
    result: Optional[ETLResult] = None


# =============================================================================
# Alert Rule Models
# =============================================================================


class AlertRule(BaseModel):
    """
    User-defined threshold rule evaluated after each ETL run.

    Critical is checked before warning. Agent-scoped rules skip agents below
    min_hours_filter and support staff.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "rule-1",
                "name": "Low TPH",
                "metric": "tph",
                "operator": "lt",
                "warning_threshold": 1.0,
                "critical_threshold": 0.5,
                "scope": "agent",
                "min_hours_filter": 2.0
            }
        }
    )

    id: str
    name: str
    description: Optional[str] = None
    metric: str = Field(..., description="Metric field name, or 'zero_transfers' / 'transfer_volume_delta'")
    operator: AlertOperator
    warning_threshold: Optional[float] = None
    critical_threshold: Optional[float] = None
    scope: AlertScope = AlertScope.AGENT
    min_hours_filter: float = Field(default=0.0, ge=0)
    is_active: bool = True
    notify_emails: List[str] = Field(default_factory=list)
    cooldown_hours: float = Field(default=24.0, ge=0)


class Alert(BaseModel):
    """A fired alert rule."""
    rule_id: str
    report_date: str
    agent_name: Optional[str] = None
    skill: Optional[str] = None
    severity: Severity
    metric_name: str
    metric_value: float
    threshold_value: Optional[float] = None
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


# =============================================================================
# API Request Models
# =============================================================================


class ProcessDayRequest(BaseModel):
    report_date: str = Field(..., description="ISO date (YYYY-MM-DD) of the reporting day")
    reports: List[ParsedReport] = Field(default_factory=list)
    previous_day: Optional[DailyKPIs] = None
    received_types: Optional[List[ReportType]] = Field(
        default=None,
        description="Report types received for the day; defaults to the types present in reports"
    )


class AlertEvaluationRequest(BaseModel):
    report_date: str
    rules: List[AlertRule] = Field(default_factory=list)
    daily_kpis: Optional[DailyKPIs] = None
    agents: List[AgentPerformance] = Field(default_factory=list)
    recent_alerts: List[Alert] = Field(
        default_factory=list,
        description="Previously stored alerts used for the cooldown check"
    )
