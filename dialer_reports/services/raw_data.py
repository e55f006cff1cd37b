"""
Raw Data Digest Builders

Each builder compresses one optional report source into a JSON-ready section
of ETLResult.raw_data. The day processor calls a builder only when its source
has rows, so a missing report type just omits its section.

Sections:
- top_agents / bottom_agents: best 15 qualified agents by tph, and worst 15
  coaching-eligible non-support agents
- campaign_aggregate / campaigns: CampaignSummary totals and per-campaign detail
- hourly: CallsPerHour without the TOTAL row or empty hours
- subcampaigns: SubcampaignSummary top 30 by connects
- system_dispositions / campaign_dispositions: ShiftReport status breakdowns
- production_subcampaigns: ProductionReportSubcampaign top 20 by connects
- agent_campaigns: AgentSummarySubcampaign rolled up per agent, top 50 by transfers
- campaign_agent_analysis: AgentAnalysis rolled up per campaign, top 20 by transfers
- pause_analytics: AgentPauseTime sessions, break codes and top pausers
- call_log: CampaignCallLog statuses with calls
- report_sources: row counts per source

All sorts are stable and descending unless noted.
"""

from typing import Any, Dict, List

from dialer_reports.core.config import Thresholds
from dialer_reports.core.metrics import (
    is_support_staff,
    mean,
    normalize_key,
    parse_duration_to_minutes,
    round_half_away,
    safe_div,
)
from dialer_reports.models import (
    AgentAnalysisRow,
    AgentPauseTimeRow,
    AgentPerformance,
    AgentSummarySubcampaignRow,
    CallsPerHourRow,
    CampaignCallLogRow,
    CampaignSummaryRow,
    ProductionSubcampaignRow,
    ShiftReportRow,
    SubcampaignRow,
)

# =============================================================================
# Section Limits
# =============================================================================

TOP_AGENTS_LIMIT: int = 15
BOTTOM_AGENTS_LIMIT: int = 15
SUBCAMPAIGNS_LIMIT: int = 30
CAMPAIGN_DISPOSITIONS_LIMIT: int = 10
PRODUCTION_SUBCAMPAIGNS_LIMIT: int = 20
AGENT_CAMPAIGNS_LIMIT: int = 50
CAMPAIGN_AGENT_ANALYSIS_LIMIT: int = 20
TOP_PAUSERS_LIMIT: int = 10

UNKNOWN = 'Unknown'


# =============================================================================
# Agent Rankings
# =============================================================================


def _agent_entry(agent: AgentPerformance) -> Dict[str, Any]:
    return {
        'name': agent.agent_name,
        'tph': agent.tph,
        'transfers': agent.transfers,
        'hours': agent.hours_worked,
        'skill': agent.skill,
        'connects': agent.connects,
        'conversion_rate': agent.conversion_rate,
    }


def build_top_agents(agents: List[AgentPerformance], thresholds: Thresholds) -> List[Dict[str, Any]]:
    qualified = [a for a in agents if a.hours_worked >= thresholds.min_hours_qualified]
    qualified.sort(key=lambda a: a.tph, reverse=True)
    return [_agent_entry(a) for a in qualified[:TOP_AGENTS_LIMIT]]


def build_bottom_agents(agents: List[AgentPerformance], thresholds: Thresholds) -> List[Dict[str, Any]]:
    """Lowest tph first, among coaching-eligible agents who are not QA/HR."""
    coaching = [
        a for a in agents
        if a.hours_worked >= thresholds.min_hours_coaching and not is_support_staff(a.agent_name)
    ]
    coaching.sort(key=lambda a: a.tph)
    return [_agent_entry(a) for a in coaching[:BOTTOM_AGENTS_LIMIT]]


# =============================================================================
# Campaign Summary
# =============================================================================


def build_campaign_aggregate(campaigns: List[CampaignSummaryRow]) -> Dict[str, Any]:
    """
    System-wide totals across CampaignSummary rows.

    avg_connect_rate only averages campaigns that dialed; the other averages
    include every campaign.
    """
    return {
        'total_campaigns': len(campaigns),
        'total_system_connects': sum(c.connects for c in campaigns),
        'total_system_dials': sum(c.dialed for c in campaigns),
        'total_hangups': sum(c.hangups for c in campaigns),
        'total_leads': sum(c.total_leads for c in campaigns),
        'total_transfers': sum(c.transfers for c in campaigns),
        'total_man_hours': round_half_away(sum(c.man_hours for c in campaigns), 1),
        'avg_drop_rate': round_half_away(mean([c.drop_rate_pct for c in campaigns]), 2),
        'avg_connect_rate': round_half_away(
            mean([c.connect_pct for c in campaigns if c.dialed > 0]), 2
        ),
        'avg_noans_rate': round_half_away(mean([c.noans_rate_pct for c in campaigns]), 2),
        'avg_norb_rate': round_half_away(mean([c.norb_rate_pct for c in campaigns]), 2),
    }


def build_campaigns(campaigns: List[CampaignSummaryRow]) -> List[Dict[str, Any]]:
    connected = sorted(
        (c for c in campaigns if c.connects > 0),
        key=lambda c: c.connects,
        reverse=True,
    )
    return [
        {
            'campaign': c.campaign,
            'campaign_type': c.campaign_type,
            'reps': c.reps,
            'man_hours': c.man_hours,
            'dialed': c.dialed,
            'dials_per_hr': c.dials_per_hr,
            'total_leads': c.total_leads,
            'available': c.available,
            'connects': c.connects,
            'contacts': c.contacts,
            'transfers': c.transfers,
            'hangups': c.hangups,
            'connect_pct': c.connect_pct,
            'contact_pct': c.contact_pct,
            'conversion_rate_pct': c.conversion_rate_pct,
            'drop_rate_pct': c.drop_rate_pct,
            'noans_rate_pct': c.noans_rate_pct,
            'norb_rate_pct': c.norb_rate_pct,
            'avg_wait_time_min': c.avg_wait_time_min,
            'lines_per_agent': c.lines_per_agent,
        }
        for c in connected
    ]


# =============================================================================
# Hourly and Subcampaign Detail
# =============================================================================


def build_hourly(hours: List[CallsPerHourRow]) -> List[Dict[str, Any]]:
    """Hourly distribution in export order, without TOTAL and zero-call hours."""
    return [
        {
            'hour': h.hour,
            'total_calls': h.total_calls,
            'connects': h.connects,
            'contacts': h.contacts,
            'transfers': h.transfers,
            'conversion_rate_pct': h.conversion_rate_pct,
            'inbound': h.inbound,
            'outbound': h.outbound,
            'abandoned': h.abandoned_calls,
            'abandon_rate_pct': h.abandon_rate_pct,
            'dropped': h.dropped,
            'drop_rate_pct': h.drop_rate_pct,
            'avg_wait_time_min': h.avg_wait_time_min,
            'contact_pct': h.contact_pct,
        }
        for h in hours
        if h.hour != 'TOTAL' and h.total_calls > 0
    ]


def build_subcampaigns(subcampaigns: List[SubcampaignRow]) -> List[Dict[str, Any]]:
    connected = sorted(
        (s for s in subcampaigns if s.connects > 0),
        key=lambda s: s.connects,
        reverse=True,
    )
    return [
        {
            'campaign': s.campaign,
            'subcampaign': s.subcampaign,
            'dialed': s.dialed,
            'connects': s.connects,
            'contacts': s.contacts,
            'transfers': s.transfers,
            'man_hours': s.man_hours,
            'connect_rate_pct': s.connect_rate_pct,
            'conversion_rate_pct': s.conversion_rate_pct,
            'operator_disconnects': s.operator_disconnects,
        }
        for s in connected[:SUBCAMPAIGNS_LIMIT]
    ]


def build_production_subcampaigns(rows: List[ProductionSubcampaignRow]) -> List[Dict[str, Any]]:
    active = sorted(
        (p for p in rows if p.connects > 0 or p.sales_count > 0),
        key=lambda p: p.connects,
        reverse=True,
    )
    return [
        {
            'subcampaign': p.subcampaign,
            'connects': p.connects,
            'contacts': p.contacts,
            'sales': p.sales_count,
            'ans_machine': p.ans_machine,
            'inbound_voicemail': p.inbound_voicemail,
        }
        for p in active[:PRODUCTION_SUBCAMPAIGNS_LIMIT]
    ]


# =============================================================================
# Shift Report Dispositions
# =============================================================================


def build_shift_dispositions(shift_report: List[ShiftReportRow]) -> Dict[str, int]:
    """Sum calls per normalized call status across all campaigns."""
    dispositions: Dict[str, int] = {}
    for row in shift_report:
        if row.calls > 0 and row.call_status:
            key = normalize_key(row.call_status)
            dispositions[key] = dispositions.get(key, 0) + row.calls
    return dispositions


def build_system_dispositions(shift_report: List[ShiftReportRow]) -> List[Dict[str, Any]]:
    dispositions = build_shift_dispositions(shift_report)
    total = sum(dispositions.values())
    ordered = sorted(
        ((status, calls) for status, calls in dispositions.items() if calls > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    return [
        {
            'status': status,
            'calls': calls,
            'percent': round_half_away(safe_div(calls, total) * 100, 1),
        }
        for status, calls in ordered
    ]


def build_campaign_dispositions(shift_report: List[ShiftReportRow]) -> List[Dict[str, Any]]:
    """Per-campaign status breakdown for the 10 busiest campaigns."""
    by_campaign: Dict[str, Dict[str, Any]] = {}
    for row in shift_report:
        if not row.campaign or row.calls <= 0:
            continue
        entry = by_campaign.setdefault(row.campaign, {'total': 0, 'statuses': {}})
        entry['total'] += row.calls
        key = normalize_key(row.call_status)
        entry['statuses'][key] = entry['statuses'].get(key, 0) + row.calls

    ordered = sorted(by_campaign.items(), key=lambda item: item[1]['total'], reverse=True)
    return [
        {
            'campaign': campaign,
            'total_calls': entry['total'],
            'statuses': entry['statuses'],
        }
        for campaign, entry in ordered[:CAMPAIGN_DISPOSITIONS_LIMIT]
    ]


# =============================================================================
# Agent / Campaign Allocation
# =============================================================================


def build_agent_campaigns(rows: List[AgentSummarySubcampaignRow]) -> List[Dict[str, Any]]:
    """
    Roll per-subcampaign agent rows up to one entry per agent.

    Agents are keyed by exact name. Campaign names are listed in first-seen order.
    """
    by_agent: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        entry = by_agent.setdefault(row.rep, {
            'campaigns': [],
            'transfers': 0,
            'hours': 0.0,
            'dials': 0,
            'connects': 0,
            'contacts': 0,
        })
        if row.campaign and row.campaign not in entry['campaigns']:
            entry['campaigns'].append(row.campaign)
        entry['transfers'] += row.transfers
        entry['hours'] += row.hours_worked
        entry['dials'] += row.dialed
        entry['connects'] += row.connects
        entry['contacts'] += row.contacts

    worked = sorted(
        ((name, e) for name, e in by_agent.items() if e['hours'] > 0),
        key=lambda item: item[1]['transfers'],
        reverse=True,
    )
    return [
        {
            'agent': name,
            'campaigns': e['campaigns'],
            'campaign_count': len(e['campaigns']),
            'dials': e['dials'],
            'connects': e['connects'],
            'contacts': e['contacts'],
            'transfers': e['transfers'],
            'hours': round_half_away(e['hours'], 1),
            'tph': round_half_away(safe_div(e['transfers'], e['hours']), 2),
        }
        for name, e in worked[:AGENT_CAMPAIGNS_LIMIT]
    ]


def build_campaign_agent_analysis(rows: List[AgentAnalysisRow]) -> List[Dict[str, Any]]:
    """Roll AgentAnalysis rows up per campaign; blank campaigns group as 'Unknown'."""
    by_campaign: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        entry = by_campaign.setdefault(row.campaign or UNKNOWN, {
            'agents': set(),
            'hours': 0.0,
            'transfers': 0,
            'connects': 0,
            'contacts': 0,
            'call_backs': 0,
        })
        entry['agents'].add(row.rep)
        entry['hours'] += row.hours_worked
        entry['transfers'] += row.transfers
        entry['connects'] += row.connects
        entry['contacts'] += row.contacts
        entry['call_backs'] += row.call_backs

    worked = sorted(
        ((campaign, e) for campaign, e in by_campaign.items() if e['hours'] > 0),
        key=lambda item: item[1]['transfers'],
        reverse=True,
    )
    return [
        {
            'campaign': campaign,
            'agents': len(e['agents']),
            'hours': round_half_away(e['hours'], 1),
            'transfers': e['transfers'],
            'connects': e['connects'],
            'contacts': e['contacts'],
            'call_backs': e['call_backs'],
            'tph': round_half_away(safe_div(e['transfers'], e['hours']), 2),
            'conversion_rate': round_half_away(
                safe_div(e['transfers'], e['contacts'] or 1) * 100, 2
            ),
        }
        for campaign, e in worked[:CAMPAIGN_AGENT_ANALYSIS_LIMIT]
    ]


# =============================================================================
# Pause Analytics and Call Log
# =============================================================================


def build_pause_analytics(sessions: List[AgentPauseTimeRow]) -> Dict[str, Any]:
    """
    Summarize pause sessions.

    break_codes maps each code ('Unknown' when blank) to its session count,
    most frequent first. top_pausers lists the 10 agents with the most paused
    minutes.
    """
    by_agent: Dict[str, Dict[str, Any]] = {}
    break_codes: Dict[str, int] = {}
    for row in sessions:
        entry = by_agent.setdefault(row.rep, {'sessions': 0, 'pause_minutes': 0.0})
        entry['sessions'] += 1
        entry['pause_minutes'] += parse_duration_to_minutes(row.time_paused)

        code = row.break_code or UNKNOWN
        break_codes[code] = break_codes.get(code, 0) + 1

    total_pause = sum(e['pause_minutes'] for e in by_agent.values())
    pausers = sorted(by_agent.items(), key=lambda item: item[1]['pause_minutes'], reverse=True)

    return {
        'total_sessions': len(sessions),
        'agents_with_pauses': len(by_agent),
        'total_pause_minutes': round_half_away(total_pause, 1),
        'avg_pause_per_agent_min': round_half_away(safe_div(total_pause, len(by_agent)), 1),
        'break_codes': dict(sorted(break_codes.items(), key=lambda item: item[1], reverse=True)),
        'top_pausers': [
            {
                'agent': name,
                'sessions': e['sessions'],
                'pause_minutes': round_half_away(e['pause_minutes'], 1),
            }
            for name, e in pausers[:TOP_PAUSERS_LIMIT]
        ],
    }


def build_call_log(rows: List[CampaignCallLogRow]) -> List[Dict[str, Any]]:
    with_calls = sorted((c for c in rows if c.calls > 0), key=lambda c: c.calls, reverse=True)
    return [
        {
            'status': c.call_status,
            'description': c.description,
            'calls': c.calls,
            'percent': c.percent,
        }
        for c in with_calls
    ]


def build_report_sources(counts: Dict[str, int]) -> Dict[str, int]:
    """Per-source row counts plus total_source_rows."""
    sources = dict(counts)
    sources['total_source_rows'] = sum(counts.values())
    return sources
