"""
Package initialization file for dialer_reports models.

This module exports all Pydantic schemas and enumerations from schemas.py and enums.py,
making them importable from dialer_reports.models directly.

Usage:
    from dialer_reports.models import (
        ReportType,
        AgentSummaryRow,
        ProductionRow,
        ParsedReport,
        DailyKPIs,
        ETLResult,
    )
"""

# =============================================================================
# Enums - Import and re-export all enumerations from enums.py
# =============================================================================

from dialer_reports.models.enums import (
    ReportType,
    AnomalyType,
    Severity,
    AlertOperator,
    AlertScope,
    IngestionSource,
)

# =============================================================================
# Schemas - Import and re-export all Pydantic models from schemas.py
# =============================================================================

from dialer_reports.models.schemas import (
    # Report rows
    ReportRow,
    AgentSummaryRow,
    AgentSummarySubcampaignRow,
    AgentAnalysisRow,
    AgentPauseTimeRow,
    CallsPerHourRow,
    CampaignCallLogRow,
    CampaignSummaryRow,
    SubcampaignRow,
    ProductionRow,
    ProductionSubcampaignRow,
    ShiftReportRow,
    # Parsed payload
    ParsedReport,
    ROW_FIELDS,
    # Computed outputs
    TPHDistribution,
    DailyKPIs,
    AgentPerformance,
    SkillSummary,
    Anomaly,
    ETLResult,
    # Ingestion and checklist
    ChecklistStatus,
    FileIngestionResult,
    UploadResponse,
    # Alert rules
    AlertRule,
    Alert,
    # API requests
    ProcessDayRequest,
    AlertEvaluationRequest,
)

__all__ = [
    # Enums
    'ReportType',
    'AnomalyType',
    'Severity',
    'AlertOperator',
    'AlertScope',
    'IngestionSource',
    # Report rows
    'ReportRow',
    'AgentSummaryRow',
    'AgentSummarySubcampaignRow',
    'AgentAnalysisRow',
    'AgentPauseTimeRow',
    'CallsPerHourRow',
    'CampaignCallLogRow',
    'CampaignSummaryRow',
    'SubcampaignRow',
    'ProductionRow',
    'ProductionSubcampaignRow',
    'ShiftReportRow',
    # Parsed payload
    'ParsedReport',
    'ROW_FIELDS',
    # Computed outputs
    'TPHDistribution',
    'DailyKPIs',
    'AgentPerformance',
    'SkillSummary',
    'Anomaly',
    'ETLResult',
    # Ingestion and checklist
    'ChecklistStatus',
    'FileIngestionResult',
    'UploadResponse',
    # Alert rules
    'AlertRule',
    'Alert',
    # API requests
    'ProcessDayRequest',
    'AlertEvaluationRequest',
]
