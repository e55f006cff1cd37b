"""
FastAPI router module for the DialedIn ETL.

Implements POST /etl/process-day (compute a day from parsed payloads),
POST /etl/upload (multipart upload of vendor export files),
POST /etl/alerts/evaluate (threshold rules against a computed day),
GET /etl/thresholds (the active threshold table) and GET /etl/checklist
(received vs expected report types).

Storage is external: every endpoint is a pure computation over its request.

Error Mapping:
- NoParseableDataError -> 422 with the error message
- ReportParseError -> a failed entry in the upload file results
- No usable upload files -> 400 with the per-file results
- Anything else -> 500, logged with traceback
"""

import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Body, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field

from dialer_reports.core.dependencies import SettingsDep, ThresholdsDep
from dialer_reports.core.config import Thresholds
from dialer_reports.jobs.slack_digest import send_completion_digest
from dialer_reports.models import (
    Alert,
    AlertEvaluationRequest,
    ChecklistStatus,
    DailyKPIs,
    ETLResult,
    FileIngestionResult,
    IngestionSource,
    ParsedReport,
    ProcessDayRequest,
    ReportType,
    Severity,
    UploadResponse,
)
from dialer_reports.services.alert_rules import evaluate_alert_rules, filter_cooldown
from dialer_reports.services.day_processor import (
    NoParseableDataError,
    apply_previous_day,
    process_day,
)
from dialer_reports.services.ingestion import (
    ReportParseError,
    build_checklist,
    read_report_file,
)


# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# Local Pydantic Models for API Responses
# =============================================================================

class AlertEvaluationResponse(BaseModel):
    """Response model for the alert evaluation endpoint."""
    report_date: str
    evaluated: int = Field(default=0, ge=0, description="Active rules evaluated")
    alerts: List[Alert] = Field(default_factory=list, description="Alerts after cooldown filtering")
    suppressed: int = Field(default=0, ge=0, description="Alerts dropped by cooldown")
    critical_count: int = Field(default=0, ge=0)


# =============================================================================
# Shared Processing
# =============================================================================

def run_day(
    reports: List[ParsedReport],
    report_date: str,
    thresholds: Thresholds,
    previous_day: Optional[DailyKPIs] = None,
    received_types: Optional[List[ReportType]] = None,
) -> Tuple[ETLResult, ChecklistStatus]:
    """
    Process one day and attach the checklist and previous-day comparison.

    Returns:
        (ETLResult, ChecklistStatus). daily_kpis.is_partial is set when the
        checklist is incomplete.
    """
    if received_types is None:
        received_types = [report.report_type for report in reports]
    checklist = build_checklist(received_types)

    result = process_day(reports, report_date, thresholds)
    result.daily_kpis.is_partial = not checklist.is_complete
    apply_previous_day(result.daily_kpis, previous_day)

    if not checklist.is_complete:
        logger.info(
            f"Day {report_date} is partial: {checklist.received_count}/"
            f"{checklist.expected_count} report types received"
        )
    return result, checklist


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


@router.post("/process-day", response_model=ETLResult)
async def process_day_endpoint(
    thresholds: ThresholdsDep,
    request: ProcessDayRequest = Body(...),
) -> ETLResult:
    """
    Compute KPIs, agent performance, skill summary, anomalies and raw data
    for one day from already-parsed report payloads.

    Returns:
        ETLResult with is_partial from the checklist and previous-day deltas
        when previous_day is supplied.

    Raises:
        HTTPException(422) if none of the primary report types has rows.
    """
    try:
        result, _ = run_day(
            request.reports,
            request.report_date,
            thresholds,
            previous_day=request.previous_day,
            received_types=request.received_types,
        )
        return result

    except NoParseableDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception(f"Error processing day {request.report_date}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process day: {str(e)}"
        )


@router.post("/upload", response_model=UploadResponse)
async def upload_endpoint(
    thresholds: ThresholdsDep,
    settings: SettingsDep,
    files: List[UploadFile] = File(...),
    notify: bool = Query(default=False, description="Post the Slack completion digest"),
) -> UploadResponse:
    """
    Parse uploaded vendor exports and process the day they cover.

    Files that fail to parse are reported individually and do not stop the
    others. The day is processed only when every parsed file carries the same
    report date; otherwise the per-file results are returned without a result.

    Raises:
        HTTPException(400) if no file could be parsed or no report date could
            be recognized from the filenames.
        HTTPException(422) if the parsed files hold no primary report rows.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files provided")

    file_results: List[FileIngestionResult] = []
    parsed: List[ParsedReport] = []

    for upload in files:
        filename = upload.filename or ''
        try:
            content = await upload.read()
            report = read_report_file(content, filename)
        except ReportParseError as e:
            logger.warning(f"Skipping {filename}: {e}")
            file_results.append(FileIngestionResult(filename=filename, success=False, error=str(e)))
            continue

        parsed.append(report)
        file_results.append(FileIngestionResult(
            filename=filename,
            success=True,
            report_type=report.report_type,
            report_date=report.date_range_end,
            row_count=report.row_count,
        ))

    report_dates = sorted({r.date_range_end for r in parsed if r.date_range_end is not None})

    if not parsed or not report_dates:
        raise HTTPException(
            status_code=400,
            detail={
                'error': 'No valid report files could be processed',
                'files': [f.model_dump(mode='json') for f in file_results],
            }
        )

    response = UploadResponse(
        source=IngestionSource.MANUAL,
        files=file_results,
        report_dates=report_dates,
    )

    if len(report_dates) > 1:
        logger.info(f"Upload spans {len(report_dates)} report dates; not processing")
        response.checklist = build_checklist(r.report_type for r in parsed)
        return response

    report_date = report_dates[0].isoformat()
    try:
        result, checklist = run_day(parsed, report_date, thresholds)
    except NoParseableDataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception(f"Error processing uploaded day {report_date}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process upload: {str(e)}"
        )

    response.checklist = checklist
    response.result = result

    if notify:
        digest = send_completion_digest(result, checklist=checklist, settings=settings)
        if not digest['success']:
            logger.warning(f"Completion digest not sent: {digest.get('error')}")

    return response


@router.post("/alerts/evaluate", response_model=AlertEvaluationResponse)
async def evaluate_alerts_endpoint(
    request: AlertEvaluationRequest = Body(...),
) -> AlertEvaluationResponse:
    """
    Evaluate alert rules against a computed day.

    Alerts whose rule (and agent) already fired within the rule's cooldown
    window, according to request.recent_alerts, are suppressed.
    """
    try:
        active_rules = [rule for rule in request.rules if rule.is_active]
        alerts = evaluate_alert_rules(
            active_rules,
            request.daily_kpis,
            request.agents,
            request.report_date,
        )
        kept = filter_cooldown(alerts, active_rules, request.recent_alerts)

        return AlertEvaluationResponse(
            report_date=request.report_date,
            evaluated=len(active_rules),
            alerts=kept,
            suppressed=len(alerts) - len(kept),
            critical_count=sum(1 for a in kept if a.severity == Severity.CRITICAL),
        )

    except Exception as e:
        logger.exception(f"Error evaluating alerts for {request.report_date}")
        raise HTTPException(
            status_code=500,
            detail=f"Alert evaluation failed: {str(e)}"
        )


@router.get("/thresholds", response_model=Thresholds)
async def get_thresholds(thresholds: ThresholdsDep) -> Thresholds:
    """Return the threshold table in effect for this deployment."""
    return thresholds


@router.get("/checklist", response_model=ChecklistStatus)
async def get_checklist(
    received: List[ReportType] = Query(default=[], description="Report types received for the day"),
) -> ChecklistStatus:
    """Compare received report types against the twelve expected ones."""
    return build_checklist(received)
