"""
Dialer Reports Services Module

This module contains the business logic for the DialedIn reporting pipeline.
Each service is stateless: inputs are validated row models and a Thresholds
table, outputs are result models. Nothing here reads global configuration.

Services:
- ingestion: Vendor export parsing (CSV / XLS / XLSX via pandas)
- daily_kpis: Floor-level KPI aggregation
- agent_performance: Per-agent metrics and ranks
- skill_summary: Production totals by skill
- anomalies: Zero-transfer, disposition-ratio and low-TPH detection
- raw_data: Digest sections for the dashboard
- day_processor: One-day orchestration and previous-day comparison
- alert_rules: Threshold rule evaluation with cooldown

All services are designed to be consumed by the API layer (dialer_reports/api/)
and the jobs layer (dialer_reports/jobs/).
"""

# =============================================================================
# Ingestion Service Exports
# Vendor export parsing - report type recognition from the filename, date
# range extraction, per-type column layouts and the daily checklist
# =============================================================================

from dialer_reports.services.ingestion import (
    ReportParseError,
    identify_report_type,
    extract_date_range,
    report_date_for,
    parse_rows,
    parse_report_frame,
    read_report_file,
    build_checklist,
    REPORT_LAYOUTS,
    SUPPORTED_EXTENSIONS,
)

# =============================================================================
# Aggregator Exports
# Daily KPIs, agent performance, and skill summary
# =============================================================================

from dialer_reports.services.daily_kpis import (
    aggregate_dispositions,
    disposition_rates,
    compute_tph_distribution,
    compute_daily_kpis,
    apply_disposition_rates,
    compute_subcampaign_kpis,
)

from dialer_reports.services.agent_performance import (
    assign_ranks,
    compute_agent_performance,
)

from dialer_reports.services.skill_summary import (
    compute_skill_summary,
)

# =============================================================================
# Anomaly Detection Exports
# =============================================================================

from dialer_reports.services.anomalies import (
    detect_zero_transfers,
    detect_high_dead_air,
    detect_high_hung_up,
    detect_low_tph,
    detect_anomalies,
)

# =============================================================================
# Day Processor Exports
# Pools the day's reports, runs every aggregator and assembles the raw data
# =============================================================================

from dialer_reports.services.day_processor import (
    NoParseableDataError,
    DayReports,
    merge_shift_dispositions,
    build_raw_data,
    process_day,
    apply_previous_day,
)

# =============================================================================
# Alert Rule Exports
# =============================================================================

from dialer_reports.services.alert_rules import (
    check_threshold,
    evaluate_alert_rules,
    filter_cooldown,
)


__all__ = [
    # Ingestion
    "ReportParseError",
    "identify_report_type",
    "extract_date_range",
    "report_date_for",
    "parse_rows",
    "parse_report_frame",
    "read_report_file",
    "build_checklist",
    "REPORT_LAYOUTS",
    "SUPPORTED_EXTENSIONS",
    # Aggregators
    "aggregate_dispositions",
    "disposition_rates",
    "compute_tph_distribution",
    "compute_daily_kpis",
    "apply_disposition_rates",
    "compute_subcampaign_kpis",
    "assign_ranks",
    "compute_agent_performance",
    "compute_skill_summary",
    # Anomalies
    "detect_zero_transfers",
    "detect_high_dead_air",
    "detect_high_hung_up",
    "detect_low_tph",
    "detect_anomalies",
    # Day processor
    "NoParseableDataError",
    "DayReports",
    "merge_shift_dispositions",
    "build_raw_data",
    "process_day",
    "apply_previous_day",
    # Alert rules
    "check_threshold",
    "evaluate_alert_rules",
    "filter_cooldown",
]
