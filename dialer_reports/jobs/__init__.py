"""
Notification Jobs for the Dialer Reports backend.

This module provides the job functions that run after a reporting day has
been processed:
- Slack completion digest (slack_digest.py)

Environment Requirements:
-------------------------
- SLACK_WEBHOOK_URL: Slack incoming webhook URL in format:
  https://hooks.slack.com/services/xxx/yyy/zzz
  When unset the digest is skipped.
- DASHBOARD_URL: Dashboard link included in the message footer.

Usage Examples:
---------------

    from dialer_reports.jobs import send_completion_digest

    result = send_completion_digest(etl_result, checklist=checklist)
    if not result['success']:
        print(result['error'])
"""

from dialer_reports.jobs.slack_digest import (
    format_completion_message,
    send_completion_digest,
)


__all__ = [
    "format_completion_message",
    "send_completion_digest",
]
