"""
Alert Rule Evaluation

Evaluates user-defined threshold rules against one day's ETL output and
produces Alert records. Storage of rules and alerts and e-mail delivery are
handled by the caller; this module is pure.

Rule Scopes:
- daily_aggregate: reads one metric from DailyKPIs. The derived metric
  'transfer_volume_delta' is delta_transfers as a percentage of the previous
  day's transfers and is unavailable when there is no delta.
- agent: reads one metric from each AgentPerformance. Agents below the rule's
  min_hours_filter and QA/HR support staff are skipped. 'zero_transfers' is a
  boolean condition that always fires as a warning. 'hung_up_ratio' is derived
  from the agent's dispositions.
- skill: accepted on the model but not evaluated.

Threshold Check:
- Critical is tested before warning, so a value breaching both fires once as
  critical. A rule with neither threshold never fires.

Cooldown:
- An alert is dropped when an alert for the same rule (and the same agent,
  for agent alerts) was created within the rule's cooldown window.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from dialer_reports.core.metrics import is_support_staff
from dialer_reports.models import (
    AgentPerformance,
    Alert,
    AlertOperator,
    AlertRule,
    AlertScope,
    DailyKPIs,
    Severity,
)
from dialer_reports.services.daily_kpis import HUNG_UP_KEY

logger = logging.getLogger(__name__)

ZERO_TRANSFERS_METRIC = 'zero_transfers'
TRANSFER_VOLUME_DELTA_METRIC = 'transfer_volume_delta'
HUNG_UP_RATIO_METRIC = 'hung_up_ratio'

DEFAULT_COOLDOWN_HOURS: float = 24.0


def _as_utc(moment: datetime) -> datetime:
    """Naive datetimes are treated as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


# =============================================================================
# Threshold Check
# =============================================================================


def _compare(operator: AlertOperator, value: float, threshold: float) -> bool:
    if operator == AlertOperator.GTE:
        return value >= threshold
    if operator == AlertOperator.LTE:
        return value <= threshold
    if operator == AlertOperator.GT:
        return value > threshold
    if operator == AlertOperator.LT:
        return value < threshold
    if operator == AlertOperator.EQ:
        return value == threshold
    return False


def check_threshold(rule: AlertRule, value: float) -> Tuple[Severity, bool, float]:
    """
    Test a metric value against a rule's thresholds.

    Args:
        rule: The rule supplying operator and thresholds.
        value: The metric value.

    Returns:
        (severity, breached, threshold). When nothing is breached the severity
        is info and the threshold is the warning threshold, else the critical
        one, else 0.
    """
    if rule.critical_threshold is not None and _compare(rule.operator, value, rule.critical_threshold):
        return Severity.CRITICAL, True, rule.critical_threshold

    if rule.warning_threshold is not None and _compare(rule.operator, value, rule.warning_threshold):
        return Severity.WARNING, True, rule.warning_threshold

    return Severity.INFO, False, rule.warning_threshold or rule.critical_threshold or 0.0


# =============================================================================
# Metric Lookup
# =============================================================================


def aggregate_metric_value(metric: str, kpis: DailyKPIs) -> Optional[float]:
    """Read a daily-aggregate metric, or None when it is unavailable."""
    if metric == TRANSFER_VOLUME_DELTA_METRIC:
        if not kpis.delta_transfers:
            return None
        return kpis.delta_transfers / max(kpis.prev_day_transfers or 1, 1) * 100

    value = getattr(kpis, metric, None)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def agent_metric_value(metric: str, agent: AgentPerformance) -> Optional[float]:
    """Read an agent metric, or None when it is unavailable or not applicable."""
    if metric == ZERO_TRANSFERS_METRIC:
        return 0.0 if agent.transfers == 0 else None

    if metric == HUNG_UP_RATIO_METRIC:
        if agent.connects <= 0:
            return 0.0
        return agent.dispositions.get(HUNG_UP_KEY, 0) / agent.connects * 100

    value = getattr(agent, metric, None)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


# =============================================================================
# Rule Evaluation
# =============================================================================


def evaluate_aggregate_rule(rule: AlertRule, kpis: DailyKPIs, report_date: str) -> Optional[Alert]:
    value = aggregate_metric_value(rule.metric, kpis)
    if value is None:
        return None

    severity, breached, threshold = check_threshold(rule, value)
    if not breached:
        return None

    return Alert(
        rule_id=rule.id,
        report_date=report_date,
        severity=severity,
        metric_name=rule.metric,
        metric_value=value,
        threshold_value=threshold,
        message=f"{rule.name}: {rule.metric} is {value:.2f} (threshold: {threshold:g})",
        details={'rule_name': rule.name, 'scope': AlertScope.DAILY_AGGREGATE.value},
    )


def evaluate_agent_rule(
    rule: AlertRule,
    agents: List[AgentPerformance],
    report_date: str
) -> List[Alert]:
    alerts: List[Alert] = []
    for agent in agents:
        if agent.hours_worked < rule.min_hours_filter:
            continue
        if is_support_staff(agent.agent_name):
            continue

        value = agent_metric_value(rule.metric, agent)
        if value is None:
            continue

        if rule.metric == ZERO_TRANSFERS_METRIC:
            alerts.append(Alert(
                rule_id=rule.id,
                report_date=report_date,
                agent_name=agent.agent_name,
                skill=agent.skill,
                severity=Severity.WARNING,
                metric_name='transfers',
                metric_value=0.0,
                threshold_value=0.0,
                message=f"{agent.agent_name} worked {agent.hours_worked:.1f}h with zero transfers",
                details={
                    'hours_worked': agent.hours_worked,
                    'dials': agent.dials,
                    'contacts': agent.contacts,
                },
            ))
            continue

        severity, breached, threshold = check_threshold(rule, value)
        if not breached:
            continue

        alerts.append(Alert(
            rule_id=rule.id,
            report_date=report_date,
            agent_name=agent.agent_name,
            skill=agent.skill,
            severity=severity,
            metric_name=rule.metric,
            metric_value=value,
            threshold_value=threshold,
            message=(
                f"{agent.agent_name}: {rule.name} - {rule.metric} is {value:.2f} "
                f"(threshold: {threshold:g})"
            ),
            details={'hours_worked': agent.hours_worked},
        ))
    return alerts


def evaluate_alert_rules(
    rules: List[AlertRule],
    kpis: Optional[DailyKPIs],
    agents: List[AgentPerformance],
    report_date: str
) -> List[Alert]:
    """
    Evaluate every active rule against one day's KPIs and agents.

    Args:
        rules: Rules to evaluate; inactive rules are ignored.
        kpis: The day's KPIs, or None when none were computed.
        agents: The day's agent performance rows.
        report_date: ISO date of the reporting day.

    Returns:
        Alerts in rule order, before cooldown filtering.
    """
    alerts: List[Alert] = []
    for rule in rules:
        if not rule.is_active:
            continue
        if rule.scope == AlertScope.DAILY_AGGREGATE:
            if kpis is None:
                continue
            alert = evaluate_aggregate_rule(rule, kpis, report_date)
            if alert is not None:
                alerts.append(alert)
        elif rule.scope == AlertScope.AGENT:
            alerts.extend(evaluate_agent_rule(rule, agents, report_date))
        else:
            logger.debug(f"Skipping rule {rule.id}: scope {rule.scope.value} is not evaluated")

    logger.info(f"Evaluated {len(rules)} rules for {report_date}: {len(alerts)} alerts")
    return alerts


# =============================================================================
# Cooldown
# =============================================================================


def filter_cooldown(
    alerts: List[Alert],
    rules: List[AlertRule],
    recent_alerts: List[Alert],
    now: Optional[datetime] = None
) -> List[Alert]:
    """
    Drop alerts whose rule (and agent) already fired within the cooldown window.

    Args:
        alerts: Newly evaluated alerts.
        rules: The rules the alerts came from; supplies cooldown_hours.
        recent_alerts: Previously stored alerts. Entries without created_at
            are ignored.
        now: Reference time; defaults to the current UTC time. Naive
            datetimes are treated as UTC.

    Returns:
        The surviving alerts, stamped with created_at = now when unset.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    rules_by_id: Dict[str, AlertRule] = {rule.id: rule for rule in rules}

    kept: List[Alert] = []
    for alert in alerts:
        rule = rules_by_id.get(alert.rule_id)
        cooldown_hours = (rule.cooldown_hours if rule else 0) or DEFAULT_COOLDOWN_HOURS
        cutoff = now - timedelta(hours=cooldown_hours)

        in_cooldown = any(
            previous.rule_id == alert.rule_id
            and previous.created_at is not None
            and _as_utc(previous.created_at) >= cutoff
            and (not alert.agent_name or previous.agent_name == alert.agent_name)
            for previous in recent_alerts
        )
        if in_cooldown:
            logger.debug(f"Alert for rule {alert.rule_id} ({alert.agent_name}) is in cooldown")
            continue

        if alert.created_at is None:
            alert = alert.model_copy(update={'created_at': now})
        kept.append(alert)
    return kept
