"""
Skill Summary Aggregator

Groups production rows by skill. Rows without a skill fall into 'Unknown',
which is dropped from the output together with any empty skill name.

Rates use a denominator-or-1 floor (connects / (dials or 1)) rather than the
safe_div-returns-0 convention. Production exports carry no dial counts, so
total_dials is always 0 and connect_rate is effectively connects * 100.
"""

from typing import Dict, List, Set

from dialer_reports.core.metrics import merge_counts, round_half_away, safe_div
from dialer_reports.models import ProductionRow, SkillSummary

UNKNOWN_SKILL = 'Unknown'


class _SkillAccumulator:
    """Running totals for one skill."""

    def __init__(self) -> None:
        self.agents: Set[str] = set()
        self.dials = 0
        self.connects = 0
        self.contacts = 0
        self.transfers = 0
        self.man_hours = 0.0
        self.dispositions: Dict[str, int] = {}

    def add(self, row: ProductionRow) -> None:
        self.agents.add(row.rep)
        self.connects += row.connects
        self.contacts += row.contacts
        self.transfers += row.transfers
        self.man_hours += row.man_hours
        merge_counts(self.dispositions, row.dispositions)


def compute_skill_summary(production: List[ProductionRow], report_date: str) -> List[SkillSummary]:
    """
    Summarize production by skill, largest transfer count first.

    Args:
        production: Production rows for the day.
        report_date: ISO date of the reporting day.

    Returns:
        One SkillSummary per named skill, sorted by total_transfers descending.
    """
    by_skill: Dict[str, _SkillAccumulator] = {}
    for row in production:
        skill = row.skill or UNKNOWN_SKILL
        by_skill.setdefault(skill, _SkillAccumulator()).add(row)

    summaries = [
        SkillSummary(
            report_date=report_date,
            skill=skill,
            agent_count=len(acc.agents),
            total_dials=acc.dials,
            total_connects=acc.connects,
            total_contacts=acc.contacts,
            total_transfers=acc.transfers,
            total_man_hours=round_half_away(acc.man_hours, 1),
            avg_tph=round_half_away(safe_div(acc.transfers, acc.man_hours), 2),
            connect_rate=round_half_away(safe_div(acc.connects, acc.dials or 1) * 100, 2),
            conversion_rate=round_half_away(safe_div(acc.transfers, acc.contacts or 1) * 100, 2),
            dispositions=acc.dispositions,
        )
        for skill, acc in by_skill.items()
        if skill not in (UNKNOWN_SKILL, '')
    ]

    summaries.sort(key=lambda s: s.total_transfers, reverse=True)
    return summaries
