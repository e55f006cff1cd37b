"""
Anomaly Detector

Four independent passes over the day's rows, pooled into one list in pass order:

1. zero_transfers (warning): agents with hours_worked >= zero_transfer_min_hours
   and no transfers, excluding QA/HR support staff.
2. high_dead_air: production rows with connects >= min_connects_anomaly whose
   dead-air share of connects reaches the warning percentage. Top 10 by ratio;
   critical at or above the critical percentage.
3. high_hung_up: same shape for hung-up transfers; rows with no hung-up
   transfers are never considered.
4. low_tph: z-score of transfers-per-hour among agents with hours_worked >=
   min_hours_coaching. Needs more than 5 such agents and a non-zero std.
   z < -2 is a warning, z < -3 critical. The reported threshold is mean - 2*std.

The same agent may be flagged by several passes.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from dialer_reports.core.config import Thresholds
from dialer_reports.core.metrics import (
    is_support_staff,
    mean,
    round_half_away,
    safe_div,
    std,
)
from dialer_reports.models import (
    AgentSummaryRow,
    Anomaly,
    AnomalyType,
    ProductionRow,
    Severity,
)
from dialer_reports.services.daily_kpis import DEAD_AIR_KEY, HUNG_UP_KEY

logger = logging.getLogger(__name__)

# Maximum anomalies reported per disposition-ratio pass
MAX_RATIO_ANOMALIES: int = 10

# Minimum coaching-eligible agents before z-scores are meaningful (strictly more than this)
MIN_AGENTS_FOR_ZSCORE: int = 5

LOW_TPH_WARNING_Z: float = -2.0
LOW_TPH_CRITICAL_Z: float = -3.0


# =============================================================================
# Individual Passes
# =============================================================================


def detect_zero_transfers(
    agent_summary: List[AgentSummaryRow],
    report_date: str,
    thresholds: Thresholds
) -> List[Anomaly]:
    """Flag non-support agents with significant hours and no transfers."""
    anomalies: List[Anomaly] = []
    for row in agent_summary:
        if row.hours_worked < thresholds.zero_transfer_min_hours:
            continue
        if row.transfers != 0 or is_support_staff(row.rep):
            continue
        anomalies.append(Anomaly(
            report_date=report_date,
            anomaly_type=AnomalyType.ZERO_TRANSFERS,
            severity=Severity.WARNING,
            agent_name=row.rep,
            metric_name='hours_worked',
            metric_value=row.hours_worked,
            threshold_value=thresholds.zero_transfer_min_hours,
            details={'dials': row.dialed, 'contacts': row.contacts},
        ))
    return anomalies


def _detect_disposition_ratio(
    production: List[ProductionRow],
    report_date: str,
    disposition_key: str,
    anomaly_type: AnomalyType,
    metric_name: str,
    count_detail: str,
    warning: float,
    critical: float,
    min_connects: int,
    require_count: bool
) -> List[Anomaly]:
    candidates: List[Tuple[float, ProductionRow]] = []
    for row in production:
        if row.connects < min_connects:
            continue
        count = row.dispositions.get(disposition_key, 0)
        if require_count and count <= 0:
            continue
        ratio = safe_div(count, row.connects) * 100
        if ratio >= warning:
            candidates.append((ratio, row))

    candidates.sort(key=lambda item: item[0], reverse=True)

    anomalies: List[Anomaly] = []
    for ratio, row in candidates[:MAX_RATIO_ANOMALIES]:
        details: Dict[str, Any] = {
            count_detail: row.dispositions.get(disposition_key, 0),
            'connects': row.connects,
        }
        anomalies.append(Anomaly(
            report_date=report_date,
            anomaly_type=anomaly_type,
            severity=Severity.CRITICAL if ratio >= critical else Severity.WARNING,
            agent_name=row.rep,
            skill=row.skill,
            metric_name=metric_name,
            metric_value=round_half_away(ratio, 1),
            threshold_value=warning,
            details=details,
        ))
    return anomalies


def detect_high_dead_air(
    production: List[ProductionRow],
    report_date: str,
    thresholds: Thresholds
) -> List[Anomaly]:
    """Flag the worst dead-air ratios among production rows with enough connects."""
    return _detect_disposition_ratio(
        production,
        report_date,
        disposition_key=DEAD_AIR_KEY,
        anomaly_type=AnomalyType.HIGH_DEAD_AIR,
        metric_name='dead_air_ratio',
        count_detail='dead_air_count',
        warning=thresholds.dead_air_ratio_warning,
        critical=thresholds.dead_air_ratio_critical,
        min_connects=thresholds.min_connects_anomaly,
        require_count=False,
    )


def detect_high_hung_up(
    production: List[ProductionRow],
    report_date: str,
    thresholds: Thresholds
) -> List[Anomaly]:
    """Flag the worst hung-up-transfer ratios among production rows with enough connects."""
    return _detect_disposition_ratio(
        production,
        report_date,
        disposition_key=HUNG_UP_KEY,
        anomaly_type=AnomalyType.HIGH_HUNG_UP,
        metric_name='hung_up_ratio',
        count_detail='hung_up_count',
        warning=thresholds.hung_up_ratio_warning,
        critical=thresholds.hung_up_ratio_critical,
        min_connects=thresholds.min_connects_anomaly,
        require_count=True,
    )


def detect_low_tph(
    agent_summary: List[AgentSummaryRow],
    report_date: str,
    thresholds: Thresholds
) -> List[Anomaly]:
    """
    Flag statistically low transfers-per-hour among coaching-eligible agents.

    Args:
        agent_summary: Agent rows for the day.
        report_date: ISO date of the reporting day.
        thresholds: Supplies min_hours_coaching.

    Returns:
        One anomaly per agent with z-score below -2, in input order. Empty when
        the population is too small or has no spread.
    """
    eligible = [
        (row.rep, safe_div(row.transfers, row.hours_worked), row.hours_worked)
        for row in agent_summary
        if row.hours_worked >= thresholds.min_hours_coaching
    ]
    if len(eligible) <= MIN_AGENTS_FOR_ZSCORE:
        return []

    tph_values = [tph for _, tph, _ in eligible]
    m = mean(tph_values)
    s = std(tph_values)
    if s <= 0:
        return []

    anomalies: List[Anomaly] = []
    for rep, tph, hours in eligible:
        z_score = (tph - m) / s
        if z_score >= LOW_TPH_WARNING_Z:
            continue
        anomalies.append(Anomaly(
            report_date=report_date,
            anomaly_type=AnomalyType.LOW_TPH,
            severity=Severity.CRITICAL if z_score < LOW_TPH_CRITICAL_Z else Severity.WARNING,
            agent_name=rep,
            metric_name='tph',
            metric_value=round_half_away(tph, 2),
            threshold_value=round_half_away(m - 2 * s, 2),
            details={
                'z_score': round_half_away(z_score, 2),
                'mean_tph': round_half_away(m, 2),
                'hours': hours,
            },
        ))
    return anomalies


# =============================================================================
# Combined Detection
# =============================================================================


def detect_anomalies(
    agent_summary: List[AgentSummaryRow],
    production: Optional[List[ProductionRow]],
    report_date: str,
    thresholds: Optional[Thresholds] = None
) -> List[Anomaly]:
    """
    Run all four anomaly passes and pool the results.

    The disposition passes only run when production rows are supplied.
    """
    thresholds = thresholds or Thresholds()

    anomalies = detect_zero_transfers(agent_summary, report_date, thresholds)
    if production:
        anomalies.extend(detect_high_dead_air(production, report_date, thresholds))
        anomalies.extend(detect_high_hung_up(production, report_date, thresholds))
    anomalies.extend(detect_low_tph(agent_summary, report_date, thresholds))

    if anomalies:
        logger.info(f"Detected {len(anomalies)} anomalies for {report_date}")
    return anomalies
