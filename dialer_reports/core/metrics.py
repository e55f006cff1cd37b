"""
Metric primitives shared by every aggregator and detector.

These helpers are pure and never raise on degenerate input: empty sequences,
zero denominators and malformed duration strings all yield 0. That lets a day
with partial or missing report types degrade to zeros instead of aborting.

Functions:
- safe_div: Division returning 0 for a zero denominator
- round_half_away: Half-away-from-zero rounding (Python's round() is half-even)
- mean / std / quantile: Summary statistics over plain float lists
- parse_duration_to_minutes: 'HH:MM:SS' -> fractional minutes
- normalize_key: Canonical disposition key ('Hung Up Transfer' -> 'hung_up_transfer')
- merge_counts: Upsert-with-sum of one count mapping into another
- is_support_staff: QA / HR role-name filter used by anomaly and coaching lists

Statistics follow numpy conventions: std is the population std (ddof=0) and
quantile uses linear interpolation between closest ranks (numpy's default
'linear' method), but both are computed on the caller's list so that empty and
single-element inputs return 0 instead of NaN.
"""

import math
import re
from typing import Any, Dict, Mapping, Sequence

import numpy as np


# =============================================================================
# Constants
# =============================================================================

# Agents whose display name carries one of these words are support staff and are
# never flagged for zero transfers or listed for coaching.
SUPPORT_STAFF_PATTERN = re.compile(r'\b(QA|HR)\b', re.IGNORECASE)

_WHITESPACE_RUN = re.compile(r'\s+')


# =============================================================================
# Arithmetic
# =============================================================================

def safe_div(numerator: float, denominator: float) -> float:
    """Return numerator / denominator, or 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def round_half_away(value: float, decimals: int) -> float:
    """
    Round half away from zero at the given number of decimals.

    Python's built-in round() uses banker's rounding, so 0.625 would become
    0.62; reports expect 0.63.

    Args:
        value: Number to round.
        decimals: Decimal places to keep.

    Returns:
        The rounded value as a float.

    Example:
        >>> round_half_away(0.625, 2)
        0.63
        >>> round_half_away(-2.5, 0)
        -3.0
    """
    factor = 10 ** decimals
    scaled = abs(value) * factor
    rounded = math.floor(scaled + 0.5) / factor
    return math.copysign(rounded, value) if value != 0 else 0.0


# =============================================================================
# Statistics
# =============================================================================

def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def std(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0); 0 for fewer than two values."""
    if len(values) <= 1:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64)))


def quantile(sorted_values: Sequence[float], q: float) -> float:
    """
    Linearly interpolated quantile of an ascending sequence.

    The caller sorts; the position is (n - 1) * q and the result interpolates
    between the two neighbouring ranks.

    Args:
        sorted_values: Values in ascending order.
        q: Quantile in [0, 1].

    Returns:
        The interpolated quantile, or 0 for an empty sequence.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    pos = (n - 1) * q
    low = math.floor(pos)
    high = math.ceil(pos)
    if low == high:
        return float(sorted_values[low])
    low_val = float(sorted_values[low])
    high_val = float(sorted_values[high])
    return low_val + (high_val - low_val) * (pos - low)


# =============================================================================
# Parsing and Keys
# =============================================================================

def parse_duration_to_minutes(value: Any) -> float:
    """
    Convert an 'HH:MM:SS' duration string to fractional minutes.

    Hours may exceed two digits ('123:04:05'). Anything that is not a string
    with exactly three colon-separated integer parts yields 0.

    Example:
        >>> parse_duration_to_minutes('01:30:30')
        90.5
        >>> parse_duration_to_minutes('30:00')
        0.0
    """
    if not isinstance(value, str) or ':' not in value:
        return 0.0
    parts = value.strip().split(':')
    if len(parts) != 3:
        return 0.0
    try:
        hours, minutes, seconds = (int(p) for p in parts)
    except ValueError:
        return 0.0
    return hours * 60 + minutes + seconds / 60


def normalize_key(label: str) -> str:
    """
    Canonicalize a disposition or call-status label into a mapping key.

    Lower-cases, removes periods, and turns whitespace runs, hyphens and
    slashes into underscores. Idempotent.

    Example:
        >>> normalize_key('Ans. Machine')
        'ans_machine'
        >>> normalize_key('DQ/Medicare')
        'dq_medicare'
    """
    key = label.lower().replace('.', '')
    key = _WHITESPACE_RUN.sub('_', key)
    return key.replace('-', '_').replace('/', '_')


def merge_counts(
    target: Dict[str, float],
    source: Mapping[str, float]
) -> Dict[str, float]:
    """
    Add every count in source into target under its normalized key.

    Args:
        target: Accumulator mapping, updated in place.
        source: Counts to add; keys are normalized before merging.

    Returns:
        The target mapping, for chaining.
    """
    for label, count in source.items():
        key = normalize_key(label)
        target[key] = target.get(key, 0) + count
    return target


def is_support_staff(name: str) -> bool:
    """True when the agent name contains the word QA or HR (case-insensitive)."""
    return SUPPORT_STAFF_PATTERN.search(name or '') is not None
