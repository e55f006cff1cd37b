"""
Slack completion digest for the DialedIn ETL.

This module posts a Slack notification after a reporting day has been
processed. It integrates with Slack using the WebhookClient from slack-sdk.

Message Contents:
- Header: full or partial run, with the report date
- Agent summary totals: agents, transfers, TPH, connect and conversion rates
- Day-over-day delta when previous-day KPIs were applied
- Campaign totals when CampaignSummary rows were present
- Source rows and the number of raw-data sections built
- Anomaly counts by severity
- Missing report types when the checklist is incomplete
- Link to the dashboard

Environment Requirements:
- SLACK_WEBHOOK_URL: Slack incoming webhook URL. When unset the digest is
  skipped and reported as not sent.
- DASHBOARD_URL: Base link included in the message footer.

Usage:
    result = send_completion_digest(etl_result, checklist=checklist)
    if not result['success']:
        logger.warning(result['error'])

Dependencies:
    - slack-sdk (WebhookClient)
    - dialer_reports.core.config.get_settings (for SLACK_WEBHOOK_URL)
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from slack_sdk.webhook import WebhookClient

from dialer_reports.core.config import Settings, get_settings
from dialer_reports.models import ChecklistStatus, ETLResult, Severity

logger = logging.getLogger(__name__)

# raw_data keys that are bookkeeping rather than digest sections
NON_SECTION_KEYS = frozenset(['report_sources'])


# =============================================================================
# Message Formatting
# =============================================================================


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _format_delta(delta: Optional[float], suffix: str = "") -> str:
    if delta is None:
        return ""
    sign = "+" if delta >= 0 else ""
    return f"{sign}{delta:g}{suffix}"


def format_completion_message(
    result: ETLResult,
    checklist: Optional[ChecklistStatus] = None,
    dashboard_url: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Format an ETL result into a Slack Block Kit message.

    Args:
        result: The processed day.
        checklist: Report checklist for the day; a partial checklist marks the
            header as partial and lists the missing report types.
        dashboard_url: Optional link appended to the footer.

    Returns:
        List of Slack Block Kit block dicts ready to send via WebhookClient.
    """
    kpis = result.daily_kpis
    is_partial = kpis.is_partial or bool(checklist and not checklist.is_complete)

    blocks: List[Dict[str, Any]] = []

    title = "DialedIn ETL (partial)" if is_partial else "DialedIn ETL complete"
    blocks.append({
        "type": "header",
        "text": {
            "type": "plain_text",
            "text": f"{title} - {kpis.report_date}",
            "emoji": True
        }
    })
    blocks.append({"type": "divider"})

    # Agent summary totals
    summary_text = (
        f"*:bar_chart: Floor Summary*\n\n"
        f"Agents: *{kpis.total_agents:,}* ({kpis.agents_with_transfers:,} with transfers)\n"
        f"Transfers: *{kpis.total_transfers:,}*  |  TPH: *{kpis.transfers_per_hour:g}*  |  "
        f"Man-hours: *{kpis.total_man_hours:g}*\n"
        f"Connect rate: *{kpis.connect_rate:g}%*  |  Conversion: *{kpis.conversion_rate:g}%*"
    )
    if kpis.delta_transfers is not None:
        summary_text += (
            f"\nVs previous day: transfers {_format_delta(kpis.delta_transfers)}, "
            f"TPH {_format_delta(kpis.delta_tph)}"
        )
    blocks.append(_section(summary_text))

    # Campaign totals
    campaign_aggregate = result.raw_data.get('campaign_aggregate')
    if campaign_aggregate:
        blocks.append(_section(
            f"*:telephone_receiver: Campaigns*\n\n"
            f"Campaigns: *{campaign_aggregate['total_campaigns']:,}*  |  "
            f"System dials: *{campaign_aggregate['total_system_dials']:,}*  |  "
            f"System connects: *{campaign_aggregate['total_system_connects']:,}*\n"
            f"Avg drop rate: *{campaign_aggregate['avg_drop_rate']:g}%*"
        ))

    # Source rows -> sections
    sources = result.raw_data.get('report_sources', {})
    section_count = len([key for key in result.raw_data if key not in NON_SECTION_KEYS])
    blocks.append(_section(
        f"*:inbox_tray: Sources*\n\n"
        f"{sources.get('total_source_rows', 0):,} source rows -> {section_count} sections"
    ))

    # Anomalies
    blocks.append({"type": "divider"})
    if result.anomalies:
        by_severity = Counter(a.severity for a in result.anomalies)
        blocks.append(_section(
            f"*:rotating_light: Anomalies: {len(result.anomalies)}*\n\n"
            f"Critical: *{by_severity.get(Severity.CRITICAL, 0)}*  |  "
            f"Warning: *{by_severity.get(Severity.WARNING, 0)}*"
        ))
    else:
        blocks.append(_section("*:white_check_mark: No anomalies detected*"))

    if checklist and checklist.missing:
        missing = ", ".join(t.value for t in checklist.missing)
        blocks.append(_section(
            f"*Missing reports ({checklist.received_count}/{checklist.expected_count} received)*\n{missing}"
        ))

    blocks.append({"type": "divider"})

    timestamp = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')
    footer = f"Generated at {timestamp}"
    if dashboard_url:
        footer += f" | <{dashboard_url}|Open dashboard>"
    blocks.append({
        "type": "context",
        "elements": [{"type": "mrkdwn", "text": footer}]
    })

    return blocks


# =============================================================================
# Main Entry Point
# =============================================================================


def send_completion_digest(
    result: ETLResult,
    checklist: Optional[ChecklistStatus] = None,
    settings: Optional[Settings] = None
) -> Dict[str, Any]:
    """
    Post the completion digest for one processed day.

    Args:
        result: The processed day.
        checklist: Optional report checklist for the day.
        settings: Settings override; defaults to get_settings().

    Returns:
        Dict with:
        - success: True if the message was accepted by Slack
        - date: The report date
        - error: Error message (if not sent)

    Raises:
        No exceptions are raised - all errors are captured in the return dict.
    """
    settings = settings or get_settings()
    report_date = result.daily_kpis.report_date

    if not settings.slack_webhook_url:
        return {
            'success': False,
            'date': report_date,
            'error': 'SLACK_WEBHOOK_URL not configured. Set this environment variable to enable Slack digests.'
        }

    blocks = format_completion_message(result, checklist, settings.dashboard_url)

    try:
        client = WebhookClient(settings.slack_webhook_url)
        response = client.send(blocks=blocks)
    except Exception as e:
        logger.error(f"Failed to send Slack digest for {report_date}: {e}")
        return {
            'success': False,
            'date': report_date,
            'error': f'Failed to send Slack message: {str(e)}'
        }

    if response.status_code != 200:
        logger.warning(f"Slack digest for {report_date} rejected with status {response.status_code}")
        return {
            'success': False,
            'date': report_date,
            'error': f'Slack API returned status {response.status_code}: {response.body}'
        }

    logger.info(f"Sent Slack digest for {report_date}")
    return {
        'success': True,
        'date': report_date,
        'total_transfers': result.daily_kpis.total_transfers,
        'anomaly_count': len(result.anomalies),
    }
