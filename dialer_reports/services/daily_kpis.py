"""
Daily KPI Aggregator

Rolls one day of agent-summary rows (plus optional production dispositions)
up into a single DailyKPIs record for the floor.

Computation:
- Totals: dials, connects, contacts, transfers summed; hours and talk/wait/wrap
  minutes summed and rounded to 1 decimal
- Rates (percent, 2 decimals): connect = connects/dials, contact =
  contacts/connects, conversion = transfers/contacts
- Per hour: transfers_per_hour (2 decimals), dials_per_hour (1 decimal)
- Disposition rates (percent of connects): dead_air and hung_up (2 decimals),
  waste (1 decimal, sum of the configured waste dispositions), and
  transfer_success = transfer / (transfer + hung_up) (1 decimal)
- TPH distribution over agents with hours_worked >= min_hours_qualified

Without production data the disposition mapping is empty and all disposition
rates are 0. Previous-day fields are left null; see
services.day_processor.apply_previous_day.
"""

import logging
from typing import Dict, List, Optional

from dialer_reports.core.config import Thresholds
from dialer_reports.core.metrics import (
    mean,
    merge_counts,
    normalize_key,
    quantile,
    round_half_away,
    safe_div,
    std,
)
from dialer_reports.models import (
    AgentSummaryRow,
    DailyKPIs,
    ProductionRow,
    SubcampaignRow,
    TPHDistribution,
)

logger = logging.getLogger(__name__)

# Canonical disposition keys used by the ratio calculations
DEAD_AIR_KEY = 'dead_air'
HUNG_UP_KEY = 'hung_up_transfer'
TRANSFER_KEY = 'transfer'


# =============================================================================
# Disposition Helpers
# =============================================================================


def aggregate_dispositions(production: Optional[List[ProductionRow]]) -> Dict[str, int]:
    """Sum disposition counts across production rows under normalized keys."""
    dispositions: Dict[str, int] = {}
    for row in production or []:
        merge_counts(dispositions, row.dispositions)
    return dispositions


def disposition_rates(
    dispositions: Dict[str, int],
    total_connects: int,
    thresholds: Thresholds
) -> Dict[str, float]:
    """
    Compute dead-air, hung-up, waste and transfer-success rates.

    Args:
        dispositions: Normalized disposition counts for the day.
        total_connects: Denominator for the per-connect ratios.
        thresholds: Supplies the waste disposition labels.

    Returns:
        Dict with dead_air_ratio, hung_up_ratio, waste_rate and
        transfer_success_rate, already rounded.
    """
    dead_air = dispositions.get(DEAD_AIR_KEY, 0)
    hung_up = dispositions.get(HUNG_UP_KEY, 0)
    transfer = dispositions.get(TRANSFER_KEY, 0)
    waste = sum(
        dispositions.get(normalize_key(label), 0)
        for label in thresholds.waste_dispositions
    )

    return {
        'dead_air_ratio': round_half_away(safe_div(dead_air, total_connects) * 100, 2),
        'hung_up_ratio': round_half_away(safe_div(hung_up, total_connects) * 100, 2),
        'waste_rate': round_half_away(safe_div(waste, total_connects) * 100, 1),
        'transfer_success_rate': round_half_away(
            safe_div(transfer, transfer + hung_up) * 100, 1
        ),
    }


def compute_tph_distribution(
    agent_summary: List[AgentSummaryRow],
    thresholds: Thresholds
) -> Optional[TPHDistribution]:
    """
    Distribution of per-agent transfers-per-hour among qualified agents.

    Returns:
        TPHDistribution with every statistic rounded to 2 decimals, or None when
        no agent reached min_hours_qualified.
    """
    qualified = sorted(
        safe_div(row.transfers, row.hours_worked)
        for row in agent_summary
        if row.hours_worked >= thresholds.min_hours_qualified
    )
    if not qualified:
        return None

    return TPHDistribution(
        count=len(qualified),
        p10=round_half_away(quantile(qualified, 0.10), 2),
        p25=round_half_away(quantile(qualified, 0.25), 2),
        p50=round_half_away(quantile(qualified, 0.50), 2),
        p75=round_half_away(quantile(qualified, 0.75), 2),
        p90=round_half_away(quantile(qualified, 0.90), 2),
        mean=round_half_away(mean(qualified), 2),
        std=round_half_away(std(qualified), 2),
    )


# =============================================================================
# Main Aggregation
# =============================================================================


def compute_daily_kpis(
    agent_summary: List[AgentSummaryRow],
    production: Optional[List[ProductionRow]],
    report_date: str,
    thresholds: Optional[Thresholds] = None
) -> DailyKPIs:
    """
    Aggregate agent-summary rows into the day's DailyKPIs.

    Args:
        agent_summary: One row per agent for the day.
        production: Optional production rows supplying dispositions.
        report_date: ISO date of the reporting day.
        thresholds: Threshold table; defaults to Thresholds().

    Returns:
        DailyKPIs with previous-day fields null and is_partial False.

    Example:
        >>> row = AgentSummaryRow(rep='Jane Doe', dialed=100, connects=40,
        ...                       contacts=20, transfers=5, hours_worked=8)
        >>> compute_daily_kpis([row], None, '2026-01-28').transfers_per_hour
        0.63
    """
    thresholds = thresholds or Thresholds()

    total_dials = sum(row.dialed for row in agent_summary)
    total_connects = sum(row.connects for row in agent_summary)
    total_contacts = sum(row.contacts for row in agent_summary)
    total_transfers = sum(row.transfers for row in agent_summary)
    total_hours = sum(row.hours_worked for row in agent_summary)
    total_talk = sum(row.talk_time_min for row in agent_summary)
    total_wait = sum(row.wait_time_min for row in agent_summary)
    total_wrap = sum(row.wrap_time_min for row in agent_summary)

    dispositions = aggregate_dispositions(production)
    rates = disposition_rates(dispositions, total_connects, thresholds)

    kpis = DailyKPIs(
        report_date=report_date,
        total_agents=len(agent_summary),
        agents_with_transfers=sum(1 for row in agent_summary if row.transfers > 0),
        total_dials=total_dials,
        total_connects=total_connects,
        total_contacts=total_contacts,
        total_transfers=total_transfers,
        total_man_hours=round_half_away(total_hours, 1),
        total_talk_time_min=round_half_away(total_talk, 1),
        total_wait_time_min=round_half_away(total_wait, 1),
        total_wrap_time_min=round_half_away(total_wrap, 1),
        connect_rate=round_half_away(safe_div(total_connects, total_dials) * 100, 2),
        contact_rate=round_half_away(safe_div(total_contacts, total_connects) * 100, 2),
        conversion_rate=round_half_away(safe_div(total_transfers, total_contacts) * 100, 2),
        transfers_per_hour=round_half_away(safe_div(total_transfers, total_hours), 2),
        dials_per_hour=round_half_away(safe_div(total_dials, total_hours), 1),
        dispositions=dispositions,
        distribution=compute_tph_distribution(agent_summary, thresholds),
        **rates,
    )

    logger.debug(
        f"Daily KPIs for {report_date}: {kpis.total_agents} agents, "
        f"{kpis.total_transfers} transfers, tph={kpis.transfers_per_hour}"
    )
    return kpis


def apply_disposition_rates(kpis: DailyKPIs, thresholds: Optional[Thresholds] = None) -> DailyKPIs:
    """
    Recompute the disposition rates from kpis.dispositions in place.

    Used after shift-report dispositions have been merged in. Rates are only
    recomputed when the day has connects; otherwise they are left unchanged.
    """
    thresholds = thresholds or Thresholds()
    if kpis.total_connects > 0:
        rates = disposition_rates(kpis.dispositions, kpis.total_connects, thresholds)
        for name, value in rates.items():
            setattr(kpis, name, value)
    return kpis


def compute_subcampaign_kpis(subcampaign: List[SubcampaignRow], report_date: str) -> DailyKPIs:
    """
    Reduced KPI set built from SubcampaignSummary rows.

    Used when a day has no agent-summary data: agent counts, time totals and
    disposition rates are zero, dispositions are empty and there is no
    distribution.
    """
    total_dials = sum(row.dialed for row in subcampaign)
    total_connects = sum(row.connects for row in subcampaign)
    total_contacts = sum(row.contacts for row in subcampaign)
    total_transfers = sum(row.transfers for row in subcampaign)
    total_hours = sum(row.man_hours for row in subcampaign)

    return DailyKPIs(
        report_date=report_date,
        total_dials=total_dials,
        total_connects=total_connects,
        total_contacts=total_contacts,
        total_transfers=total_transfers,
        total_man_hours=round_half_away(total_hours, 1),
        connect_rate=round_half_away(safe_div(total_connects, total_dials) * 100, 2),
        contact_rate=round_half_away(safe_div(total_contacts, total_connects) * 100, 2),
        conversion_rate=round_half_away(safe_div(total_transfers, total_contacts) * 100, 2),
        transfers_per_hour=round_half_away(safe_div(total_transfers, total_hours), 2),
        dials_per_hour=round_half_away(safe_div(total_dials, total_hours), 1),
    )
