"""
Agent Performance Computer

Builds one AgentPerformance record per agent-summary row, enriched with that
agent's production dispositions and skill, then ranks qualified agents.

Joining:
    Production rows are matched by agent name, case-insensitively. All
    matching production rows contribute their dispositions (summed); the skill
    comes from the first matching row. Two different people with the same
    display name are therefore merged; see DESIGN.md.

Ranking:
    Among agents with hours_worked >= min_hours_qualified, three independent
    1-based ranks are assigned by descending tph, conversion_rate and dials.
    Sorting is stable, so ties keep input order. Everyone else keeps null ranks.

No deduplication: an agent appearing twice in the summary yields two records.
"""

import logging
from typing import Dict, List, Optional

from dialer_reports.core.config import Thresholds
from dialer_reports.core.metrics import merge_counts, round_half_away, safe_div
from dialer_reports.models import AgentPerformance, AgentSummaryRow, ProductionRow
from dialer_reports.services.daily_kpis import DEAD_AIR_KEY

logger = logging.getLogger(__name__)


def _production_by_agent(production: Optional[List[ProductionRow]]) -> Dict[str, List[ProductionRow]]:
    lookup: Dict[str, List[ProductionRow]] = {}
    for row in production or []:
        lookup.setdefault(row.rep.lower(), []).append(row)
    return lookup


def assign_ranks(agents: List[AgentPerformance], thresholds: Thresholds) -> None:
    """
    Assign tph, conversion and dials ranks to qualified agents in place.

    Args:
        agents: Records to rank; non-qualified records are untouched.
        thresholds: Supplies min_hours_qualified.
    """
    # hours_worked is already rounded to 2 decimals here, while the TPH
    # distribution gates on raw hours; 1.996h ranks but is not in the distribution.
    qualified = [a for a in agents if a.hours_worked >= thresholds.min_hours_qualified]

    by_tph = sorted(qualified, key=lambda a: a.tph, reverse=True)
    for position, agent in enumerate(by_tph):
        agent.tph_rank = position + 1

    by_conversion = sorted(by_tph, key=lambda a: a.conversion_rate, reverse=True)
    for position, agent in enumerate(by_conversion):
        agent.conversion_rank = position + 1

    by_dials = sorted(by_tph, key=lambda a: a.dials, reverse=True)
    for position, agent in enumerate(by_dials):
        agent.dials_rank = position + 1


def compute_agent_performance(
    agent_summary: List[AgentSummaryRow],
    production: Optional[List[ProductionRow]],
    report_date: str,
    thresholds: Optional[Thresholds] = None
) -> List[AgentPerformance]:
    """
    Compute per-agent performance records for the day.

    Args:
        agent_summary: One row per agent for the day.
        production: Optional production rows to join by name.
        report_date: ISO date of the reporting day.
        thresholds: Threshold table; defaults to Thresholds().

    Returns:
        AgentPerformance records in agent-summary order.
    """
    thresholds = thresholds or Thresholds()
    production_lookup = _production_by_agent(production)

    agents: List[AgentPerformance] = []
    for row in agent_summary:
        matched = production_lookup.get(row.rep.lower(), [])

        dispositions: Dict[str, int] = {}
        for production_row in matched:
            merge_counts(dispositions, production_row.dispositions)
        dead_air = dispositions.get(DEAD_AIR_KEY, 0)

        agents.append(AgentPerformance(
            report_date=report_date,
            agent_name=row.rep,
            skill=matched[0].skill if matched else None,
            dials=row.dialed,
            connects=row.connects,
            contacts=row.contacts,
            transfers=row.transfers,
            hours_worked=round_half_away(row.hours_worked, 2),
            talk_time_min=round_half_away(row.talk_time_min, 2),
            wait_time_min=round_half_away(row.wait_time_min, 2),
            wrap_time_min=round_half_away(row.wrap_time_min, 2),
            logged_in_time_min=round_half_away(row.logged_in_time_min, 2),
            tph=round_half_away(safe_div(row.transfers, row.hours_worked), 2),
            connects_per_hour=round_half_away(row.connects_per_hour, 2),
            connect_rate=round_half_away(safe_div(row.connects, row.dialed) * 100, 2),
            conversion_rate=round_half_away(safe_div(row.transfers, row.contacts) * 100, 2),
            dead_air_ratio=round_half_away(safe_div(dead_air, row.connects) * 100, 2),
            dispositions=dispositions,
        ))

    assign_ranks(agents, thresholds)

    logger.debug(
        f"Computed performance for {len(agents)} agents on {report_date} "
        f"({len(production_lookup)} with production rows)"
    )
    return agents
