"""
Day Processor

Orchestrates one reporting day: pools the parsed reports by type, picks the
agent-summary source, runs the aggregators and the anomaly detector, merges
shift-report dispositions and assembles the raw-data digest.

Source Selection:
- AgentSummary payloads (all agents, including idle) are the global source and
  win over AgentSummaryCampaign payloads (active agents only). The two are
  never mixed.
- With agent-summary rows: KPIs, agent performance and anomalies come from the
  agent path.
- Without them: a reduced KPI set is built from SubcampaignSummary rows;
  agent performance and anomalies are empty.

Fatal Condition:
- NoParseableDataError when agent summary, production, subcampaign and
  campaign summary are all empty. Every other missing source just drops its
  raw-data section.

Shift Report Merge:
- Shift-report call statuses are summed per normalized key and only fill keys
  that production did not provide (production wins on overlap). The
  disposition rates are then recomputed when the day has connects.
"""

import logging
from typing import Any, Dict, List, Optional

from dialer_reports.core.config import Thresholds
from dialer_reports.core.metrics import round_half_away
from dialer_reports.models import (
    AgentAnalysisRow,
    AgentPauseTimeRow,
    AgentPerformance,
    AgentSummaryRow,
    AgentSummarySubcampaignRow,
    Anomaly,
    CallsPerHourRow,
    CampaignCallLogRow,
    CampaignSummaryRow,
    DailyKPIs,
    ETLResult,
    ParsedReport,
    ProductionRow,
    ProductionSubcampaignRow,
    ReportType,
    ShiftReportRow,
    SkillSummary,
    SubcampaignRow,
)
from dialer_reports.services import raw_data
from dialer_reports.services.agent_performance import compute_agent_performance
from dialer_reports.services.anomalies import detect_anomalies
from dialer_reports.services.daily_kpis import (
    apply_disposition_rates,
    compute_daily_kpis,
    compute_subcampaign_kpis,
)
from dialer_reports.services.skill_summary import compute_skill_summary

logger = logging.getLogger(__name__)


class NoParseableDataError(ValueError):
    """Raised when none of the four primary report types has rows for the day."""

    def __init__(self, message: str = 'No parseable report data found'):
        super().__init__(message)


# =============================================================================
# Report Pooling
# =============================================================================


class DayReports:
    """
    All rows for one day, pooled by type in the order the reports were given.

    Agent-summary rows are split by scope: AgentSummary payloads feed
    agent_summary_global, any other payload carrying agent_summary rows feeds
    agent_summary_campaign.
    """

    def __init__(self) -> None:
        self.agent_summary_global: List[AgentSummaryRow] = []
        self.agent_summary_campaign: List[AgentSummaryRow] = []
        self.agent_summary_subcampaign: List[AgentSummarySubcampaignRow] = []
        self.agent_analysis: List[AgentAnalysisRow] = []
        self.agent_pause_time: List[AgentPauseTimeRow] = []
        self.production: List[ProductionRow] = []
        self.production_subcampaign: List[ProductionSubcampaignRow] = []
        self.subcampaign: List[SubcampaignRow] = []
        self.campaign_summary: List[CampaignSummaryRow] = []
        self.campaign_call_log: List[CampaignCallLogRow] = []
        self.shift_report: List[ShiftReportRow] = []
        self.calls_per_hour: List[CallsPerHourRow] = []

    @classmethod
    def from_reports(cls, reports: List[ParsedReport]) -> 'DayReports':
        pooled = cls()
        for report in reports:
            if report.agent_summary:
                if report.report_type == ReportType.AGENT_SUMMARY:
                    pooled.agent_summary_global.extend(report.agent_summary)
                else:
                    pooled.agent_summary_campaign.extend(report.agent_summary)
            pooled.agent_summary_subcampaign.extend(report.agent_summary_subcampaign or [])
            pooled.agent_analysis.extend(report.agent_analysis or [])
            pooled.agent_pause_time.extend(report.agent_pause_time or [])
            pooled.production.extend(report.production or [])
            pooled.production_subcampaign.extend(report.production_subcampaign or [])
            pooled.subcampaign.extend(report.subcampaign or [])
            pooled.campaign_summary.extend(report.campaign_summary or [])
            pooled.campaign_call_log.extend(report.campaign_call_log or [])
            pooled.shift_report.extend(report.shift_report or [])
            pooled.calls_per_hour.extend(report.calls_per_hour or [])
        return pooled

    @property
    def agent_summary(self) -> List[AgentSummaryRow]:
        """Global agent summary when present, else the campaign-scoped one."""
        return self.agent_summary_global or self.agent_summary_campaign

    def has_primary_data(self) -> bool:
        return bool(
            self.agent_summary
            or self.production
            or self.subcampaign
            or self.campaign_summary
        )

    def source_counts(self) -> Dict[str, int]:
        return {
            'agent_summary': len(self.agent_summary_global),
            'agent_summary_campaign': len(self.agent_summary_campaign),
            'agent_summary_subcampaign': len(self.agent_summary_subcampaign),
            'agent_analysis': len(self.agent_analysis),
            'agent_pause_time': len(self.agent_pause_time),
            'production': len(self.production),
            'production_subcampaign': len(self.production_subcampaign),
            'subcampaign_summary': len(self.subcampaign),
            'campaign_summary': len(self.campaign_summary),
            'campaign_call_log': len(self.campaign_call_log),
            'shift_report': len(self.shift_report),
            'calls_per_hour': len(self.calls_per_hour),
        }


# =============================================================================
# Shift Report Merge
# =============================================================================


def merge_shift_dispositions(
    kpis: DailyKPIs,
    shift_report: List[ShiftReportRow],
    thresholds: Thresholds
) -> DailyKPIs:
    """
    Fill disposition keys missing from production with shift-report counts.

    Existing keys are never overwritten. Disposition rates are recomputed from
    the merged mapping when the day has connects.
    """
    shift_dispositions = raw_data.build_shift_dispositions(shift_report)
    for key, calls in shift_dispositions.items():
        if key not in kpis.dispositions:
            kpis.dispositions[key] = calls
    return apply_disposition_rates(kpis, thresholds)


# =============================================================================
# Raw Data Assembly
# =============================================================================


def build_raw_data(
    day: DayReports,
    agents: List[AgentPerformance],
    thresholds: Thresholds
) -> Dict[str, Any]:
    """Assemble every raw-data section whose source has rows."""
    sections: Dict[str, Any] = {}

    if agents:
        sections['top_agents'] = raw_data.build_top_agents(agents, thresholds)
        sections['bottom_agents'] = raw_data.build_bottom_agents(agents, thresholds)

    if day.campaign_summary:
        sections['campaign_aggregate'] = raw_data.build_campaign_aggregate(day.campaign_summary)
        sections['campaigns'] = raw_data.build_campaigns(day.campaign_summary)

    if day.calls_per_hour:
        sections['hourly'] = raw_data.build_hourly(day.calls_per_hour)

    if day.subcampaign:
        sections['subcampaigns'] = raw_data.build_subcampaigns(day.subcampaign)

    if day.shift_report:
        sections['system_dispositions'] = raw_data.build_system_dispositions(day.shift_report)
        sections['campaign_dispositions'] = raw_data.build_campaign_dispositions(day.shift_report)

    if day.production_subcampaign:
        sections['production_subcampaigns'] = raw_data.build_production_subcampaigns(
            day.production_subcampaign
        )

    if day.agent_summary_subcampaign:
        sections['agent_campaigns'] = raw_data.build_agent_campaigns(day.agent_summary_subcampaign)

    if day.agent_analysis:
        sections['campaign_agent_analysis'] = raw_data.build_campaign_agent_analysis(
            day.agent_analysis
        )

    if day.agent_pause_time:
        sections['pause_analytics'] = raw_data.build_pause_analytics(day.agent_pause_time)

    if day.campaign_call_log:
        sections['call_log'] = raw_data.build_call_log(day.campaign_call_log)

    sections['report_sources'] = raw_data.build_report_sources(day.source_counts())

    logger.debug(f"Raw data sections: {sorted(sections)}")
    return sections


# =============================================================================
# Main Entry Points
# =============================================================================


def process_day(
    reports: List[ParsedReport],
    report_date: str,
    thresholds: Optional[Thresholds] = None
) -> ETLResult:
    """
    Process all parsed reports for one day into an ETLResult.

    Args:
        reports: Parsed payloads for the day, in any order.
        report_date: ISO date of the reporting day.
        thresholds: Threshold table; defaults to Thresholds().

    Returns:
        ETLResult with KPIs, agent performance, skill summary, anomalies and
        raw data.

    Raises:
        NoParseableDataError: If agent summary, production, subcampaign and
            campaign summary are all empty.
    """
    thresholds = thresholds or Thresholds()
    day = DayReports.from_reports(reports)

    if not day.has_primary_data():
        logger.warning(f"No parseable report data for {report_date} ({len(reports)} reports)")
        raise NoParseableDataError()

    agent_summary = day.agent_summary
    production = day.production or None

    agents: List[AgentPerformance] = []
    anomalies: List[Anomaly] = []

    if agent_summary:
        source = 'AgentSummary' if day.agent_summary_global else 'AgentSummaryCampaign'
        logger.info(f"Processing {report_date}: {len(agent_summary)} agents from {source}")

        kpis = compute_daily_kpis(agent_summary, production, report_date, thresholds)
        agents = compute_agent_performance(agent_summary, production, report_date, thresholds)
        anomalies = detect_anomalies(agent_summary, production, report_date, thresholds)

        if day.shift_report:
            merge_shift_dispositions(kpis, day.shift_report, thresholds)
    else:
        logger.info(
            f"Processing {report_date}: no agent summary, "
            f"using {len(day.subcampaign)} subcampaign rows"
        )
        kpis = compute_subcampaign_kpis(day.subcampaign, report_date)

    skills: List[SkillSummary] = (
        compute_skill_summary(day.production, report_date) if day.production else []
    )

    result = ETLResult(
        daily_kpis=kpis,
        agent_performance=agents,
        skill_summary=skills,
        anomalies=anomalies,
        raw_data=build_raw_data(day, agents, thresholds),
    )

    logger.info(
        f"Processed {report_date}: {len(agents)} agents, {len(skills)} skills, "
        f"{len(anomalies)} anomalies, {result.raw_data['report_sources']['total_source_rows']} source rows"
    )
    return result


def apply_previous_day(kpis: DailyKPIs, previous: Optional[DailyKPIs]) -> DailyKPIs:
    """
    Fill the day-over-day comparison fields from the previous day's KPIs.

    Args:
        kpis: Today's KPIs, updated in place.
        previous: The previous reporting day's KPIs, or None.

    Returns:
        The updated KPIs. Comparison fields stay null when previous is None.
    """
    if previous is None:
        return kpis

    kpis.prev_day_transfers = previous.total_transfers
    kpis.prev_day_tph = previous.transfers_per_hour
    kpis.delta_transfers = kpis.total_transfers - previous.total_transfers
    kpis.delta_tph = round_half_away(kpis.transfers_per_hour - previous.transfers_per_hour, 2)
    return kpis
