"""
Pytest Configuration and Shared Fixtures for Dialer Reports Backend Tests.

This module provides fixtures and configuration for all backend tests, supporting:
- Threshold fixtures (defaults and tightened variants)
- Row fixtures for each report type, matching the vendor export semantics
- ParsedReport payload fixtures for day-processor and API tests
- A mock Settings object and Slack WebhookClient for the digest job

Row builders are plain functions (make_agent, make_production) so tests can
build small populations inline; fixtures wrap the common cases.

Dependencies:
- pytest
- httpx (FastAPI TestClient)
"""

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock, Mock

import pytest

from dialer_reports.core.config import Thresholds
from dialer_reports.models import (
    AgentSummaryRow,
    CampaignSummaryRow,
    ParsedReport,
    ProductionRow,
    ReportType,
    ShiftReportRow,
    SubcampaignRow,
)


REPORT_DATE = '2026-01-28'


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - scenario: End-to-end day scenarios over the full pipeline
    - api: Tests going through the FastAPI TestClient

    Usage:
        pytest -m scenario
        pytest -m "not api"
    """
    config.addinivalue_line(
        'markers',
        'scenario: marks end-to-end day-processing scenarios'
    )
    config.addinivalue_line(
        'markers',
        'api: marks tests exercising the HTTP surface'
    )


# ============================================================
# ROW BUILDERS
# ============================================================

def make_agent(
    rep: str,
    dialed: int = 0,
    connects: int = 0,
    contacts: int = 0,
    transfers: int = 0,
    hours_worked: float = 0.0,
    **extra: Any
) -> AgentSummaryRow:
    """Build an AgentSummaryRow with only the fields a test cares about."""
    return AgentSummaryRow(
        rep=rep,
        dialed=dialed,
        connects=connects,
        contacts=contacts,
        transfers=transfers,
        hours_worked=hours_worked,
        **extra
    )


def make_production(
    rep: str,
    skill: str = 'Medicare',
    connects: int = 0,
    contacts: int = 0,
    transfers: int = 0,
    man_hours: float = 0.0,
    dispositions: Optional[Dict[str, int]] = None
) -> ProductionRow:
    """Build a ProductionRow; disposition labels may be raw vendor headers."""
    return ProductionRow(
        rep=rep,
        skill=skill,
        connects=connects,
        contacts=contacts,
        transfers=transfers,
        man_hours=man_hours,
        dispositions=dispositions or {},
    )


def make_shift(call_status: str, calls: int, campaign: str = 'Medicare Outbound') -> ShiftReportRow:
    return ShiftReportRow(
        date='01/28/2026',
        campaign=campaign,
        call_status=call_status,
        calls=calls,
    )


# ============================================================
# THRESHOLD FIXTURES
# ============================================================

@pytest.fixture
def thresholds() -> Thresholds:
    """Default threshold table."""
    return Thresholds()


# ============================================================
# ROW FIXTURES
# ============================================================

@pytest.fixture
def jane_doe() -> AgentSummaryRow:
    """The single-agent row used for the basic KPI scenario."""
    return make_agent('Jane Doe', dialed=100, connects=40, contacts=20, transfers=5, hours_worked=8)


@pytest.fixture
def agent_floor() -> List[AgentSummaryRow]:
    """
    Eight agents with a mix of hours and performance.

    - Six coaching-eligible agents (hours >= 4); 'Low Performer' is far below
      the others' transfers-per-hour
    - 'Part Timer' is under min_hours_qualified
    - 'QA Reviewer' is support staff with zero transfers
    """
    return [
        make_agent('Alice Adams', dialed=400, connects=160, contacts=80, transfers=16, hours_worked=8),
        make_agent('Bob Brown', dialed=380, connects=150, contacts=75, transfers=15, hours_worked=8),
        make_agent('Carol Chen', dialed=420, connects=170, contacts=85, transfers=17, hours_worked=8),
        make_agent('Dan Diaz', dialed=390, connects=155, contacts=78, transfers=16, hours_worked=8),
        make_agent('Eve Evans', dialed=410, connects=165, contacts=82, transfers=15, hours_worked=8),
        make_agent('Low Performer', dialed=300, connects=120, contacts=60, transfers=1, hours_worked=8),
        make_agent('Part Timer', dialed=50, connects=20, contacts=10, transfers=3, hours_worked=1.5),
        make_agent('QA Reviewer', dialed=0, connects=0, contacts=0, transfers=0, hours_worked=6),
    ]


@pytest.fixture
def production_rows() -> List[ProductionRow]:
    """Production rows for two skills with vendor-style disposition headers."""
    return [
        make_production(
            'Alice Adams', skill='Medicare', connects=160, contacts=80, transfers=16, man_hours=8,
            dispositions={'Dead Air': 20, 'Transfer': 16, 'Hung Up Transfer': 2, 'Ans. Machine': 30},
        ),
        make_production(
            'Bob Brown', skill='Medicare', connects=150, contacts=75, transfers=15, man_hours=8,
            dispositions={'Dead Air': 90, 'Transfer': 15, 'Hung Up Transfer': 5},
        ),
        make_production(
            'Carol Chen', skill='ACA', connects=170, contacts=85, transfers=17, man_hours=8,
            dispositions={'Dead Air': 10, 'Transfer': 17, 'Hung Up Transfer': 60},
        ),
    ]


@pytest.fixture
def campaign_rows() -> List[CampaignSummaryRow]:
    return [
        CampaignSummaryRow(
            period='01/28/2026', campaign='Medicare Outbound', dialed=1000, connects=400,
            contacts=200, transfers=40, man_hours=50, hangups=12, connect_pct=40.0,
            drop_rate_pct=1.5,
        ),
        CampaignSummaryRow(
            period='01/28/2026', campaign='ACA Inbound', dialed=0, connects=0,
            contacts=0, transfers=0, man_hours=0, drop_rate_pct=0.5,
        ),
    ]


@pytest.fixture
def subcampaign_rows() -> List[SubcampaignRow]:
    return [
        SubcampaignRow(
            period='01/28/2026', campaign='Medicare Outbound', subcampaign='MA-1',
            dialed=600, connects=240, contacts=120, transfers=24, man_hours=30,
        ),
        SubcampaignRow(
            period='01/28/2026', campaign='Medicare Outbound', subcampaign='MA-2',
            dialed=400, connects=160, contacts=80, transfers=16, man_hours=20,
        ),
    ]


# ============================================================
# PAYLOAD FIXTURES
# ============================================================

@pytest.fixture
def agent_summary_report(agent_floor: List[AgentSummaryRow]) -> ParsedReport:
    return ParsedReport(
        report_type=ReportType.AGENT_SUMMARY,
        date_label='01-28-2026 to 01-28-2026',
        agent_summary=agent_floor,
    )


@pytest.fixture
def production_report(production_rows: List[ProductionRow]) -> ParsedReport:
    return ParsedReport(
        report_type=ReportType.PRODUCTION_REPORT,
        date_label='01-28-2026 to 01-28-2026',
        production=production_rows,
    )


# ============================================================
# EXTERNAL SERVICE MOCKS
# ============================================================

@pytest.fixture
def mock_settings() -> Mock:
    """Settings stand-in with a Slack webhook configured."""
    settings = Mock()
    settings.slack_webhook_url = 'https://hooks.slack.com/services/T000/B000/XXXX'
    settings.dashboard_url = 'http://localhost:3000/executive/dialedin'
    return settings


@pytest.fixture
def mock_slack_client() -> MagicMock:
    """WebhookClient stand-in whose send() returns a 200 response."""
    client = MagicMock()
    response = Mock()
    response.status_code = 200
    response.body = 'ok'
    client.send.return_value = response
    return client
