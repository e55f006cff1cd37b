"""
Tests for the agent performance computer: per-agent metrics, the
case-insensitive production join and qualified-agent ranking.
"""

from dialer_reports.core.config import Thresholds
from dialer_reports.services.agent_performance import assign_ranks, compute_agent_performance
from dialer_reports.services.daily_kpis import compute_tph_distribution
from dialer_reports.tests.conftest import REPORT_DATE, make_agent, make_production


class TestAgentMetrics:

    def test_rates_for_single_agent(self, jane_doe):
        [agent] = compute_agent_performance([jane_doe], None, REPORT_DATE)

        assert agent.agent_name == 'Jane Doe'
        assert agent.tph == 0.63
        assert agent.connect_rate == 40.0
        assert agent.conversion_rate == 25.0
        assert agent.dispositions == {}
        assert agent.skill is None
        assert agent.dead_air_ratio == 0

    def test_output_keeps_summary_order_and_duplicates(self):
        rows = [make_agent('B', hours_worked=3), make_agent('A', hours_worked=3), make_agent('B', hours_worked=3)]

        agents = compute_agent_performance(rows, None, REPORT_DATE)

        assert [a.agent_name for a in agents] == ['B', 'A', 'B']


class TestProductionJoin:

    def test_join_is_case_insensitive(self):
        rows = [make_agent('Jane Doe', connects=40, hours_worked=8)]
        production = [make_production('JANE DOE', skill='ACA', dispositions={'Dead Air': 10})]

        [agent] = compute_agent_performance(rows, production, REPORT_DATE)

        assert agent.skill == 'ACA'
        assert agent.dispositions == {'dead_air': 10}
        assert agent.dead_air_ratio == 25.0

    def test_multiple_production_rows_are_summed(self):
        rows = [make_agent('Jane Doe', connects=100, hours_worked=8)]
        production = [
            make_production('Jane Doe', skill='Medicare', dispositions={'Dead Air': 10, 'Transfer': 2}),
            make_production('jane doe', skill='ACA', dispositions={'Dead Air': 5}),
        ]

        [agent] = compute_agent_performance(rows, production, REPORT_DATE)

        assert agent.skill == 'Medicare'
        assert agent.dispositions == {'dead_air': 15, 'transfer': 2}
        assert agent.dead_air_ratio == 15.0


class TestRanking:

    def test_unqualified_agents_have_null_ranks(self, agent_floor, thresholds):
        agents = compute_agent_performance(agent_floor, None, REPORT_DATE, thresholds)

        for agent in agents:
            if agent.hours_worked < thresholds.min_hours_qualified:
                assert agent.tph_rank is None
                assert agent.conversion_rank is None
                assert agent.dials_rank is None

    def test_ranks_are_dense_over_qualified_agents(self, agent_floor, thresholds):
        agents = compute_agent_performance(agent_floor, None, REPORT_DATE, thresholds)
        qualified = [a for a in agents if a.tph_rank is not None]

        assert sorted(a.tph_rank for a in qualified) == list(range(1, len(qualified) + 1))
        assert sorted(a.dials_rank for a in qualified) == list(range(1, len(qualified) + 1))

    def test_best_tph_ranks_first(self, agent_floor):
        agents = compute_agent_performance(agent_floor, None, REPORT_DATE)
        by_name = {a.agent_name: a for a in agents}

        # Carol: 17 transfers / 8h is the best tph, and she has the most dials
        assert by_name['Carol Chen'].tph_rank == 1
        assert by_name['Carol Chen'].dials_rank == 1
        assert by_name['QA Reviewer'].tph_rank == 7

    def test_ties_keep_input_order(self):
        rows = [
            make_agent('First', dialed=10, contacts=10, transfers=4, hours_worked=4),
            make_agent('Second', dialed=10, contacts=10, transfers=4, hours_worked=4),
        ]

        agents = compute_agent_performance(rows, None, REPORT_DATE)

        assert [a.tph_rank for a in agents] == [1, 2]
        assert [a.conversion_rank for a in agents] == [1, 2]
        assert [a.dials_rank for a in agents] == [1, 2]

    def test_threshold_controls_qualification(self):
        rows = [make_agent('Half Day', transfers=2, hours_worked=3)]

        default = compute_agent_performance(rows, None, REPORT_DATE)
        strict = compute_agent_performance(rows, None, REPORT_DATE, Thresholds(min_hours_qualified=3.5))

        assert default[0].tph_rank == 1
        assert strict[0].tph_rank is None

    def test_assign_ranks_only_touches_qualified(self, thresholds):
        agents = compute_agent_performance(
            [make_agent('Long', transfers=8, hours_worked=8), make_agent('Short', transfers=8, hours_worked=1)],
            None,
            REPORT_DATE,
            Thresholds(min_hours_qualified=100),
        )

        assign_ranks(agents, thresholds)

        assert agents[0].tph_rank == 1
        assert agents[1].tph_rank is None

    def test_rank_gate_uses_rounded_hours(self, thresholds):
        rows = [make_agent('Almost Two', transfers=4, hours_worked=1.996)]

        [agent] = compute_agent_performance(rows, None, REPORT_DATE, thresholds)

        assert agent.hours_worked == 2.0
        assert agent.tph_rank == 1
        assert compute_tph_distribution(rows, thresholds) is None
