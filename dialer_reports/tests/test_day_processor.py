"""
Tests for the day processor: source selection, the fatal empty-day
condition, shift-report disposition merging, raw-data sections and the
previous-day comparison.
"""

import pytest

from dialer_reports.models import (
    AgentAnalysisRow,
    AgentPauseTimeRow,
    AgentSummarySubcampaignRow,
    CallsPerHourRow,
    CampaignCallLogRow,
    ParsedReport,
    ReportType,
)
from dialer_reports.services.daily_kpis import compute_daily_kpis
from dialer_reports.services.day_processor import (
    DayReports,
    NoParseableDataError,
    apply_previous_day,
    merge_shift_dispositions,
    process_day,
)
from dialer_reports.tests.conftest import REPORT_DATE, make_agent, make_production, make_shift


def _report(report_type: ReportType, **rows) -> ParsedReport:
    return ParsedReport(report_type=report_type, **rows)


# =============================================================================
# Fatal Condition
# =============================================================================


@pytest.mark.scenario
class TestNoParseableData:

    def test_no_reports_raises(self):
        with pytest.raises(NoParseableDataError, match='No parseable report data found'):
            process_day([], REPORT_DATE)

    def test_only_secondary_sources_raises(self):
        reports = [
            _report(ReportType.SHIFT_REPORT, shift_report=[make_shift('Transfer', 10)]),
            _report(ReportType.CALLS_PER_HOUR, calls_per_hour=[CallsPerHourRow(hour='09:00', total_calls=5)]),
        ]

        with pytest.raises(NoParseableDataError):
            process_day(reports, REPORT_DATE)

    def test_empty_primary_lists_raise(self):
        reports = [_report(ReportType.AGENT_SUMMARY, agent_summary=[], production=[])]

        with pytest.raises(NoParseableDataError):
            process_day(reports, REPORT_DATE)

    def test_is_a_value_error(self):
        assert issubclass(NoParseableDataError, ValueError)


# =============================================================================
# Source Selection
# =============================================================================


class TestSourceSelection:

    def test_global_summary_wins_over_campaign_summary(self):
        reports = [
            _report(ReportType.AGENT_SUMMARY_CAMPAIGN, agent_summary=[make_agent('Campaign Only', transfers=9)]),
            _report(ReportType.AGENT_SUMMARY, agent_summary=[
                make_agent('Global One', transfers=1),
                make_agent('Global Two', transfers=2),
            ]),
        ]

        result = process_day(reports, REPORT_DATE)

        assert result.daily_kpis.total_agents == 2
        assert result.daily_kpis.total_transfers == 3
        assert [a.agent_name for a in result.agent_performance] == ['Global One', 'Global Two']

    def test_campaign_summary_used_when_no_global(self):
        reports = [
            _report(ReportType.AGENT_SUMMARY_CAMPAIGN, agent_summary=[make_agent('Campaign Only', transfers=9)]),
        ]

        result = process_day(reports, REPORT_DATE)

        assert result.daily_kpis.total_transfers == 9
        assert result.raw_data['report_sources']['agent_summary'] == 0
        assert result.raw_data['report_sources']['agent_summary_campaign'] == 1

    def test_subcampaign_fallback(self, subcampaign_rows):
        reports = [_report(ReportType.SUBCAMPAIGN_SUMMARY, subcampaign=subcampaign_rows)]

        result = process_day(reports, REPORT_DATE)

        assert result.daily_kpis.total_dials == 1000
        assert result.daily_kpis.total_agents == 0
        assert result.agent_performance == []
        assert result.anomalies == []
        assert 'subcampaigns' in result.raw_data

    def test_production_only_day_is_not_fatal(self, production_report):
        result = process_day([production_report], REPORT_DATE)

        assert result.daily_kpis.total_agents == 0
        assert [s.skill for s in result.skill_summary] == ['Medicare', 'ACA']

    def test_pooling_keeps_report_order(self):
        day = DayReports.from_reports([
            _report(ReportType.AGENT_SUMMARY, agent_summary=[make_agent('A')]),
            _report(ReportType.AGENT_SUMMARY, agent_summary=[make_agent('B')]),
        ])
        assert [r.rep for r in day.agent_summary] == ['A', 'B']


# =============================================================================
# Shift Report Merge
# =============================================================================


class TestShiftMerge:

    def test_disjoint_keys_yield_union(self, thresholds):
        agents = [make_agent('Jane Doe', connects=100, hours_worked=8)]
        production = [make_production('Jane Doe', dispositions={'Dead Air': 10, 'Transfer': 5})]
        kpis = compute_daily_kpis(agents, production, REPORT_DATE, thresholds)

        merge_shift_dispositions(kpis, [make_shift('DNC', 7), make_shift('Wrong Number', 3)], thresholds)

        assert kpis.dispositions == {'dead_air': 10, 'transfer': 5, 'dnc': 7, 'wrong_number': 3}

    def test_production_wins_on_overlap(self, thresholds):
        agents = [make_agent('Jane Doe', connects=100, hours_worked=8)]
        production = [make_production('Jane Doe', dispositions={'Transfer': 5})]
        kpis = compute_daily_kpis(agents, production, REPORT_DATE, thresholds)

        merge_shift_dispositions(kpis, [make_shift('Transfer', 50)], thresholds)

        assert kpis.dispositions['transfer'] == 5

    def test_shift_statuses_summed_across_campaigns(self, thresholds):
        kpis = compute_daily_kpis([make_agent('Jane Doe', connects=100)], None, REPORT_DATE, thresholds)

        merge_shift_dispositions(kpis, [
            make_shift('Dead Air', 10, campaign='A'),
            make_shift('Dead Air', 15, campaign='B'),
        ], thresholds)

        assert kpis.dispositions == {'dead_air': 25}
        assert kpis.dead_air_ratio == 25.0

    def test_rates_recomputed_after_merge(self, thresholds):
        agents = [make_agent('Jane Doe', connects=200, hours_worked=8)]
        reports = [
            _report(ReportType.AGENT_SUMMARY, agent_summary=agents),
            _report(ReportType.SHIFT_REPORT, shift_report=[
                make_shift('Hung Up Transfer', 10),
                make_shift('Transfer', 30),
            ]),
        ]

        result = process_day(reports, REPORT_DATE, thresholds)

        assert result.daily_kpis.hung_up_ratio == 5.0
        assert result.daily_kpis.transfer_success_rate == 75.0


# =============================================================================
# Raw Data
# =============================================================================


class TestRawData:

    def test_missing_sources_omit_sections(self, agent_summary_report):
        result = process_day([agent_summary_report], REPORT_DATE)

        assert set(result.raw_data) == {'top_agents', 'bottom_agents', 'report_sources'}

    def test_report_sources_total(self, agent_summary_report, production_report):
        result = process_day([agent_summary_report, production_report], REPORT_DATE)

        sources = result.raw_data['report_sources']
        assert sources['agent_summary'] == 8
        assert sources['production'] == 3
        assert sources['total_source_rows'] == 11

    def test_bottom_agents_exclude_support_staff(self, agent_summary_report):
        result = process_day([agent_summary_report], REPORT_DATE)

        bottom = [entry['name'] for entry in result.raw_data['bottom_agents']]
        assert 'QA Reviewer' not in bottom
        assert 'Part Timer' not in bottom
        assert bottom[0] == 'Low Performer'

    def test_top_agents_sorted_by_tph(self, agent_summary_report):
        result = process_day([agent_summary_report], REPORT_DATE)

        top = result.raw_data['top_agents']
        assert top[0]['name'] == 'Carol Chen'
        assert [e['tph'] for e in top] == sorted((e['tph'] for e in top), reverse=True)

    def test_campaign_sections(self, agent_summary_report, campaign_rows):
        reports = [agent_summary_report, _report(ReportType.CAMPAIGN_SUMMARY, campaign_summary=campaign_rows)]

        result = process_day(reports, REPORT_DATE)

        aggregate = result.raw_data['campaign_aggregate']
        assert aggregate['total_campaigns'] == 2
        assert aggregate['total_system_dials'] == 1000
        assert aggregate['avg_drop_rate'] == 1.0
        # only campaigns that dialed count toward the connect-rate average
        assert aggregate['avg_connect_rate'] == 40.0
        assert [c['campaign'] for c in result.raw_data['campaigns']] == ['Medicare Outbound']

    def test_secondary_sections(self, agent_summary_report):
        reports = [
            agent_summary_report,
            _report(ReportType.CALLS_PER_HOUR, calls_per_hour=[
                CallsPerHourRow(hour='09:00', total_calls=120, connects=40),
                CallsPerHourRow(hour='10:00', total_calls=0),
                CallsPerHourRow(hour='TOTAL', total_calls=120),
            ]),
            _report(ReportType.AGENT_PAUSE_TIME, agent_pause_time=[
                AgentPauseTimeRow(rep='Jane Doe', break_code='Lunch', time_paused='00:30:00'),
                AgentPauseTimeRow(rep='Jane Doe', break_code='', time_paused='00:10:30'),
                AgentPauseTimeRow(rep='John Roe', break_code='Lunch', time_paused='bad'),
            ]),
            _report(ReportType.CAMPAIGN_CALL_LOG, campaign_call_log=[
                CampaignCallLogRow(call_status='A', calls=5),
                CampaignCallLogRow(call_status='B', calls=0),
                CampaignCallLogRow(call_status='C', calls=9),
            ]),
            _report(ReportType.AGENT_SUMMARY_SUBCAMPAIGN, agent_summary_subcampaign=[
                AgentSummarySubcampaignRow(rep='Jane Doe', campaign='X', transfers=2, hours_worked=2),
                AgentSummarySubcampaignRow(rep='Jane Doe', campaign='Y', transfers=3, hours_worked=3),
                AgentSummarySubcampaignRow(rep='Jane Doe', campaign='X', transfers=1, hours_worked=1),
                AgentSummarySubcampaignRow(rep='Idle Ivan', campaign='X', transfers=0, hours_worked=0),
            ]),
            _report(ReportType.AGENT_ANALYSIS, agent_analysis=[
                AgentAnalysisRow(rep='Jane Doe', campaign='', transfers=4, hours_worked=4, contacts=0),
            ]),
        ]

        raw = process_day(reports, REPORT_DATE).raw_data

        assert [h['hour'] for h in raw['hourly']] == ['09:00']

        pauses = raw['pause_analytics']
        assert pauses['total_sessions'] == 3
        assert pauses['agents_with_pauses'] == 2
        assert pauses['total_pause_minutes'] == 40.5
        assert pauses['break_codes'] == {'Lunch': 2, 'Unknown': 1}
        assert pauses['top_pausers'][0] == {'agent': 'Jane Doe', 'sessions': 2, 'pause_minutes': 40.5}

        assert [c['status'] for c in raw['call_log']] == ['C', 'A']

        [jane] = raw['agent_campaigns']
        assert jane['campaigns'] == ['X', 'Y']
        assert jane['campaign_count'] == 2
        assert jane['transfers'] == 6
        assert jane['tph'] == 1.0

        [analysis] = raw['campaign_agent_analysis']
        assert analysis['campaign'] == 'Unknown'
        assert analysis['conversion_rate'] == 400.0

    def test_shift_sections(self, agent_summary_report):
        reports = [
            agent_summary_report,
            _report(ReportType.SHIFT_REPORT, shift_report=[
                make_shift('Transfer', 30, campaign='A'),
                make_shift('Dead Air', 10, campaign='A'),
                make_shift('Transfer', 60, campaign='B'),
            ]),
        ]

        raw = process_day(reports, REPORT_DATE).raw_data

        assert raw['system_dispositions'] == [
            {'status': 'transfer', 'calls': 90, 'percent': 90.0},
            {'status': 'dead_air', 'calls': 10, 'percent': 10.0},
        ]
        assert [c['campaign'] for c in raw['campaign_dispositions']] == ['B', 'A']
        assert raw['campaign_dispositions'][1]['statuses'] == {'transfer': 30, 'dead_air': 10}


# =============================================================================
# Previous Day
# =============================================================================


class TestPreviousDay:

    def test_deltas(self, jane_doe):
        today = compute_daily_kpis([jane_doe], None, REPORT_DATE)
        yesterday = compute_daily_kpis(
            [make_agent('Jane Doe', transfers=8, hours_worked=8)], None, '2026-01-27'
        )

        apply_previous_day(today, yesterday)

        assert today.prev_day_transfers == 8
        assert today.prev_day_tph == 1.0
        assert today.delta_transfers == -3
        assert today.delta_tph == -0.37

    def test_no_previous_day_leaves_fields_null(self, jane_doe):
        today = compute_daily_kpis([jane_doe], None, REPORT_DATE)

        apply_previous_day(today, None)

        assert today.delta_transfers is None
        assert today.prev_day_tph is None
