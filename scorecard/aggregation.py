from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd

from scorecard.filters import DEFAULT_SETTINGS, ScoringSettings
from scorecard.models import Employee, EntityGraph
from scorecard.parsing import round_half_up
from scorecard.periods import PERIODS, chronological, previous_period
from scorecard.scoring import bonus_for, performance_tag, score_for


@dataclass(frozen=True)
class TeamSummary:
    headcount: int = 0
    avg_score: float = 0.0
    avg_bonus: float = 0.0
    total_bonus: float = 0.0


def team_summary(
    employees: Iterable[Employee],
    team: str,
    period: str,
    settings: ScoringSettings = DEFAULT_SETTINGS,
) -> TeamSummary:
    reports = [e for e in employees if e.team == team]
    headcount = len(reports)
    if headcount == 0:
        return TeamSummary()
    scores = [score_for(e, period) for e in reports]
    bonuses = [round_half_up(bonus_for(e, period, settings), 0) or 0.0 for e in reports]
    total = sum(bonuses)
    return TeamSummary(
        headcount=headcount,
        avg_score=sum(scores) / headcount,
        avg_bonus=total / headcount,
        total_bonus=float(round_half_up(total, 0) or 0.0),
    )


def score_delta(employee: Employee, period: str) -> Optional[float]:
    """Change in overall achievement vs. the previous period, in percentage points."""
    prev = previous_period(period, PERIODS)
    if prev is None:
        return None
    prev_rec = employee.record(prev)
    if prev_rec is None:
        return None
    return (score_for(employee, period) - prev_rec.score) * 100


def team_overview(graph: EntityGraph, period: str, settings: ScoringSettings = DEFAULT_SETTINGS) -> pd.DataFrame:
    rows: List[dict] = []
    for team in graph.teams:
        summary = team_summary(graph.employees, team, period, settings)
        pool = graph.team_settings.get(team)
        bonus_pool = pool.bonus_pool if pool is not None else 0.0
        rows.append(
            {
                "team": team,
                "headcount": summary.headcount,
                "avg_score": summary.avg_score,
                "avg_bonus": summary.avg_bonus,
                "total_bonus": summary.total_bonus,
                "bonus_pool": bonus_pool,
                "pool_utilisation": summary.total_bonus / bonus_pool if bonus_pool else pd.NA,
                "status": performance_tag(summary.avg_score, settings),
            }
        )
    columns = ["team", "headcount", "avg_score", "avg_bonus", "total_bonus", "bonus_pool", "pool_utilisation", "status"]
    return pd.DataFrame(rows, columns=columns)


def history_frame(employee: Employee, settings: ScoringSettings = DEFAULT_SETTINGS) -> pd.DataFrame:
    """Score and bonus per known period, oldest first."""
    periods = chronological([rec.period for rec in employee.history], PERIODS)
    rows = [
        {
            "period": p,
            "order": i,
            "score": score_for(employee, p),
            "achievement_pct": score_for(employee, p) * 100,
            "bonus": bonus_for(employee, p, settings),
        }
        for i, p in enumerate(periods)
    ]
    return pd.DataFrame(rows, columns=["period", "order", "score", "achievement_pct", "bonus"])
