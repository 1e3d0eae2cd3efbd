from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

# Reporting periods, newest first: the current quarter plus the previous ones.
PERIODS: Tuple[str, ...] = ("Q3 '25", "Q2 '25", "Q1 '25", "Q4 '24", "Q3 '24", "Q2 '24")
CURRENT_PERIOD = PERIODS[0]


def previous_period(period: str, periods: Sequence[str] = PERIODS) -> Optional[str]:
    """Return the period that precedes ``period`` in the fixed sequence, if any."""
    try:
        idx = list(periods).index(period)
    except ValueError:
        return None
    if idx + 1 >= len(periods):
        return None
    return periods[idx + 1]


def period_rank(period: str, periods: Sequence[str] = PERIODS) -> int:
    """Sort key placing known periods newest first and unknown periods after them."""
    try:
        return list(periods).index(period)
    except ValueError:
        return len(periods)


def chronological(labels: Iterable[str], periods: Sequence[str] = PERIODS) -> List[str]:
    """Known periods oldest -> newest (for trend charts); unknown labels are dropped."""
    present = set(labels)
    return [p for p in reversed(periods) if p in present]
