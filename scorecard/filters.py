from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from scorecard.periods import CURRENT_PERIOD, PERIODS

STATUS_ALL = "All"
STATUS_GREAT = "Great"
STATUS_AVERAGE = "Average"
STATUS_NEEDS_ATTENTION = "Needs attention"
STATUS_OPTIONS = [STATUS_ALL, STATUS_GREAT, STATUS_AVERAGE, STATUS_NEEDS_ATTENTION]


@dataclass(frozen=True)
class ScoringSettings:
    great: float = 0.9
    average: float = 0.7
    bonus_cap: float = 1.5
    weight_tolerance: float = 0.001


DEFAULT_SETTINGS = ScoringSettings()


@dataclass(frozen=True)
class DashboardFilters:
    team: Optional[str] = None
    period: str = CURRENT_PERIOD
    status_filter: str = STATUS_ALL
    settings: ScoringSettings = DEFAULT_SETTINGS


def normalize_filters(
    raw: dict,
    *,
    available_teams: Optional[Iterable[str]] = None,
    periods: Sequence[str] = PERIODS,
) -> DashboardFilters:
    teams: List[str] = [str(t) for t in (available_teams or [])]

    team = (raw.get("team") or "").strip() or None
    if teams and team not in teams:
        team = teams[0]

    period = (raw.get("period") or "").strip()
    if period not in periods:
        period = periods[0] if periods else CURRENT_PERIOD

    status_filter = (raw.get("status_filter") or STATUS_ALL).strip()
    if status_filter not in STATUS_OPTIONS:
        status_filter = STATUS_ALL

    return DashboardFilters(
        team=team,
        period=period,
        status_filter=status_filter,
        settings=DEFAULT_SETTINGS,
    )
