"""
HTTP-level tests for the DialedIn ETL router.

Requests go through FastAPI's TestClient (httpx). Settings are replaced via
app.dependency_overrides so no environment configuration is needed, and the
Slack WebhookClient is patched wherever a digest could be sent.

Covered endpoints:
- GET  /health, GET /
- POST /etl/process-day
- POST /etl/upload
- POST /etl/alerts/evaluate
- GET  /etl/thresholds, GET /etl/checklist
"""

from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Tuple
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from dialer_reports import __version__
from dialer_reports.core.config import Settings
from dialer_reports.core.dependencies import get_settings_dependency
from dialer_reports.main import app
from dialer_reports.models import DailyKPIs, ParsedReport, ReportType
from dialer_reports.tests.conftest import REPORT_DATE

pytestmark = pytest.mark.api

WEBHOOK_URL = 'https://hooks.slack.com/services/T000/B000/XXXX'

AGENT_SUMMARY_CSV = pd.DataFrame([
    {'Rep': 'Jane Doe', 'Team': 'Blue', 'Dialed': '100', 'Connects': '40', 'Contacts': '20',
     'Hours Worked': '8', 'Sale/Lead/App': '5'},
    {'Rep': 'Total:', 'Team': '', 'Dialed': '100', 'Connects': '40', 'Contacts': '20',
     'Hours Worked': '8', 'Sale/Lead/App': '5'},
]).to_csv(index=False).encode('utf-8')


def _csv_upload(filename: str, content: bytes = AGENT_SUMMARY_CSV) -> Tuple[str, Tuple[str, bytes, str]]:
    return ('files', (filename, content, 'text/csv'))


@pytest.fixture
def api_settings() -> Settings:
    return Settings(slack_webhook_url=None, min_hours_qualified=1.0)


@pytest.fixture
def client(api_settings: Settings) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings_dependency] = lambda: api_settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def jane_payload(jane_doe) -> List[dict]:
    report = ParsedReport(report_type=ReportType.AGENT_SUMMARY, agent_summary=[jane_doe])
    return [report.model_dump(mode='json')]


class TestServiceEndpoints:

    def test_health(self, client: TestClient):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.json() == {'status': 'healthy'}

    def test_root(self, client: TestClient):
        body = client.get('/').json()
        assert body['version'] == __version__
        assert body['docs'] == '/docs'

    def test_thresholds_follow_settings(self, client: TestClient):
        response = client.get('/etl/thresholds')

        assert response.status_code == 200
        body = response.json()
        assert body['min_hours_qualified'] == 1.0
        assert body['dead_air_ratio_warning'] == 30.0

    def test_checklist(self, client: TestClient):
        response = client.get('/etl/checklist', params=[('received', 'AgentSummary'), ('received', 'ShiftReport')])

        assert response.status_code == 200
        body = response.json()
        assert body['received'] == ['AgentSummary', 'ShiftReport']
        assert body['received_count'] == 2
        assert body['status'] == 'partial'

    def test_checklist_rejects_unknown_type(self, client: TestClient):
        response = client.get('/etl/checklist', params={'received': 'WeeklySummary'})
        assert response.status_code == 422


class TestProcessDay:

    def test_single_agent_day(self, client: TestClient, jane_payload):
        response = client.post('/etl/process-day', json={
            'report_date': REPORT_DATE,
            'reports': jane_payload,
        })

        assert response.status_code == 200
        body = response.json()
        kpis = body['daily_kpis']
        assert kpis['report_date'] == REPORT_DATE
        assert kpis['total_transfers'] == 5
        assert kpis['transfers_per_hour'] == 0.63
        assert kpis['connect_rate'] == 40.0
        assert kpis['is_partial'] is True
        assert kpis['delta_transfers'] is None
        assert [a['agent_name'] for a in body['agent_performance']] == ['Jane Doe']
        assert body['anomalies'] == []

    def test_previous_day_and_complete_checklist(self, client: TestClient, jane_payload):
        previous = DailyKPIs(report_date='2026-01-27', total_transfers=3, transfers_per_hour=0.5)

        response = client.post('/etl/process-day', json={
            'report_date': REPORT_DATE,
            'reports': jane_payload,
            'previous_day': previous.model_dump(mode='json'),
            'received_types': [t.value for t in ReportType],
        })

        assert response.status_code == 200
        kpis = response.json()['daily_kpis']
        assert kpis['is_partial'] is False
        assert kpis['prev_day_transfers'] == 3
        assert kpis['delta_transfers'] == 2

    def test_empty_day_is_unprocessable(self, client: TestClient):
        response = client.post('/etl/process-day', json={'report_date': REPORT_DATE, 'reports': []})

        assert response.status_code == 422
        assert response.json()['detail'] == 'No parseable report data found'

    def _production_day(self, dispositions: dict) -> dict:
        return {
            'report_date': REPORT_DATE,
            'reports': [{
                'report_type': 'ProductionReport',
                'production': [{
                    'rep': 'Jane Doe', 'skill': 'ACA', 'connects': 10, 'transfers': 1,
                    'dispositions': dispositions,
                }],
            }],
        }

    def test_string_disposition_counts_are_coerced(self, client: TestClient):
        response = client.post('/etl/process-day', json=self._production_day({'Dead Air': '5'}))

        assert response.status_code == 200
        [skill] = response.json()['skill_summary']
        assert skill['dispositions'] == {'dead_air': 5}

    def test_non_numeric_disposition_count_is_rejected(self, client: TestClient):
        response = client.post('/etl/process-day', json=self._production_day({'Dead Air': 'many'}))
        assert response.status_code == 422


class TestUpload:

    def test_upload_processes_single_day(self, client: TestClient):
        response = client.post('/etl/upload', files=[
            _csv_upload('AgentSummary_01-28-2026_01-28-2026.csv'),
        ])

        assert response.status_code == 200
        body = response.json()
        assert body['source'] == 'manual'
        assert body['report_dates'] == [REPORT_DATE]
        assert body['files'][0]['success'] is True
        assert body['files'][0]['report_type'] == 'AgentSummary'
        assert body['files'][0]['row_count'] == 1
        assert body['checklist']['received_count'] == 1
        assert body['result']['daily_kpis']['total_transfers'] == 5
        assert body['result']['daily_kpis']['is_partial'] is True

    def test_bad_file_does_not_block_others(self, client: TestClient):
        response = client.post('/etl/upload', files=[
            _csv_upload('AgentSummary_01-28-2026_01-28-2026.csv'),
            _csv_upload('notes.csv'),
        ])

        assert response.status_code == 200
        files = response.json()['files']
        assert [f['success'] for f in files] == [True, False]
        assert 'Unrecognized report type' in files[1]['error']

    def test_invalid_values_fail_only_that_file(self, client: TestClient):
        negative_dials = pd.DataFrame([
            {'Rep': 'Bob Brown', 'Dialed': '-3', 'Connects': '10', 'Contacts': '5',
             'Hours Worked': '4', 'Sale/Lead/App': '1'},
        ]).to_csv(index=False).encode('utf-8')

        response = client.post('/etl/upload', files=[
            _csv_upload('AgentSummary_01-28-2026_01-28-2026.csv'),
            _csv_upload('AgentSummaryCampaign_01-28-2026_01-28-2026.csv', negative_dials),
        ])

        assert response.status_code == 200
        body = response.json()
        assert [f['success'] for f in body['files']] == [True, False]
        assert 'Invalid values' in body['files'][1]['error']
        assert body['result']['daily_kpis']['total_transfers'] == 5

    def test_no_usable_files(self, client: TestClient):
        response = client.post('/etl/upload', files=[_csv_upload('notes.csv')])

        assert response.status_code == 400
        detail = response.json()['detail']
        assert detail['error'] == 'No valid report files could be processed'
        assert detail['files'][0]['filename'] == 'notes.csv'

    def test_multiple_dates_are_not_processed(self, client: TestClient):
        response = client.post('/etl/upload', files=[
            _csv_upload('AgentSummary_01-27-2026_01-27-2026.csv'),
            _csv_upload('AgentSummary_01-28-2026_01-28-2026.csv'),
        ])

        assert response.status_code == 200
        body = response.json()
        assert body['report_dates'] == ['2026-01-27', REPORT_DATE]
        assert body['result'] is None
        assert body['checklist']['received'] == ['AgentSummary']

    def test_notify_sends_digest(self, client: TestClient, api_settings: Settings):
        api_settings.slack_webhook_url = WEBHOOK_URL
        slack_client = MagicMock()
        slack_client.send.return_value.status_code = 200

        with patch('dialer_reports.jobs.slack_digest.WebhookClient', return_value=slack_client):
            response = client.post(
                '/etl/upload',
                params={'notify': 'true'},
                files=[_csv_upload('AgentSummary_01-28-2026_01-28-2026.csv')],
            )

        assert response.status_code == 200
        slack_client.send.assert_called_once()

    def test_digest_not_sent_without_notify(self, client: TestClient, api_settings: Settings):
        api_settings.slack_webhook_url = WEBHOOK_URL

        with patch('dialer_reports.jobs.slack_digest.WebhookClient') as client_cls:
            response = client.post('/etl/upload', files=[
                _csv_upload('AgentSummary_01-28-2026_01-28-2026.csv'),
            ])

        assert response.status_code == 200
        client_cls.assert_not_called()


class TestAlertEvaluation:

    def _request(self, recent_alerts=None) -> dict:
        return {
            'report_date': REPORT_DATE,
            'rules': [
                {'id': 'low-tph', 'name': 'Low TPH', 'metric': 'tph', 'operator': 'lt',
                 'warning_threshold': 1.0, 'critical_threshold': 0.5, 'scope': 'agent'},
                {'id': 'paused', 'name': 'Paused', 'metric': 'tph', 'operator': 'lt',
                 'warning_threshold': 5.0, 'is_active': False},
            ],
            'agents': [
                {'report_date': REPORT_DATE, 'agent_name': 'Jane Doe', 'tph': 0.4, 'hours_worked': 8},
                {'report_date': REPORT_DATE, 'agent_name': 'John Roe', 'tph': 0.8, 'hours_worked': 8},
            ],
            'recent_alerts': recent_alerts or [],
        }

    def test_evaluates_active_rules(self, client: TestClient):
        response = client.post('/etl/alerts/evaluate', json=self._request())

        assert response.status_code == 200
        body = response.json()
        assert body['evaluated'] == 1
        assert body['suppressed'] == 0
        assert body['critical_count'] == 1
        assert [(a['agent_name'], a['severity']) for a in body['alerts']] == [
            ('Jane Doe', 'critical'),
            ('John Roe', 'warning'),
        ]
        assert all(a['created_at'] for a in body['alerts'])

    def test_cooldown_suppresses_recent(self, client: TestClient):
        recent = [{
            'rule_id': 'low-tph',
            'report_date': '2026-01-27',
            'agent_name': 'Jane Doe',
            'severity': 'critical',
            'metric_name': 'tph',
            'metric_value': 0.3,
            'message': 'Jane Doe: Low TPH - tph is 0.30 (threshold: 0.5)',
            'created_at': (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat(),
        }]

        body = client.post('/etl/alerts/evaluate', json=self._request(recent)).json()

        assert body['suppressed'] == 1
        assert [a['agent_name'] for a in body['alerts']] == ['John Roe']
        assert body['critical_count'] == 0
