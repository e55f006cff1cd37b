"""
Enumeration definitions for the Dialer Reports backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization compatibility
with Pydantic models, enabling automatic serialization/deserialization in API responses.
"""

from enum import Enum


class ReportType(str, Enum):
    """
    DialedIn report export types.

    The vendor emails one spreadsheet per type per day; the type is recognized
    from the export filename (see services.ingestion.identify_report_type).

    - AgentSummary: All agents including idle ones, with a Team column. Global
      source for agent-level KPIs.
    - AgentSummaryCampaign: Active agents only, scoped to a campaign.
    - AgentSummarySubcampaign: Per-agent per-campaign/subcampaign breakdown.
    - AgentAnalysis: Per-agent per-campaign rows with a Date column.
    - AgentPauseTime: Pause/break sessions.
    - CallsPerHour: Hourly call volume distribution.
    - CampaignCallLog: System-level call status counts.
    - CampaignSummary: Campaign-level dialer metrics.
    - ProductionReport: Per-agent production with dynamic disposition columns.
    - ProductionReportSubcampaign: Subcampaign-level production.
    - ShiftReport: Disposition breakdown by campaign and date.
    - SubcampaignSummary: Subcampaign-level dialer metrics.
    """
    AGENT_SUMMARY = "AgentSummary"
    AGENT_SUMMARY_CAMPAIGN = "AgentSummaryCampaign"
    AGENT_SUMMARY_SUBCAMPAIGN = "AgentSummarySubcampaign"
    AGENT_ANALYSIS = "AgentAnalysis"
    AGENT_PAUSE_TIME = "AgentPauseTime"
    CALLS_PER_HOUR = "CallsPerHour"
    CAMPAIGN_CALL_LOG = "CampaignCallLog"
    CAMPAIGN_SUMMARY = "CampaignSummary"
    PRODUCTION_REPORT = "ProductionReport"
    PRODUCTION_REPORT_SUBCAMPAIGN = "ProductionReportSubcampaign"
    SHIFT_REPORT = "ShiftReport"
    SUBCAMPAIGN_SUMMARY = "SubcampaignSummary"


class AnomalyType(str, Enum):
    """
    Kinds of per-agent anomaly raised by the anomaly detector.

    - zero_transfers: Significant hours worked with no transfers
    - high_dead_air: Dead-air dispositions too large a share of connects
    - high_hung_up: Hung-up transfers too large a share of connects
    - low_tph: Transfers-per-hour z-score below -2 among coaching-eligible agents
    """
    ZERO_TRANSFERS = "zero_transfers"
    HIGH_DEAD_AIR = "high_dead_air"
    HIGH_HUNG_UP = "high_hung_up"
    LOW_TPH = "low_tph"


class Severity(str, Enum):
    """
    Severity of anomalies and alerts.

    Anomalies are only ever `warning` or `critical`; `info` is the result of an
    alert-rule check that did not breach any threshold.
    """
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertOperator(str, Enum):
    """
    Comparison used by an alert rule: value <op> threshold.
    """
    GTE = "gte"
    LTE = "lte"
    GT = "gt"
    LT = "lt"
    EQ = "eq"


class AlertScope(str, Enum):
    """
    What an alert rule is evaluated against.

    - agent: Each AgentPerformance record
    - daily_aggregate: The day's DailyKPIs
    - skill: Reserved for skill-level rules (not evaluated)
    """
    AGENT = "agent"
    DAILY_AGGREGATE = "daily_aggregate"
    SKILL = "skill"


class IngestionSource(str, Enum):
    """
    How a batch of report files reached the service.
    """
    MANUAL = "manual"
    EMAIL_APPS_SCRIPT = "email_apps_script"
    API = "api"
