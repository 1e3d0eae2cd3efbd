from __future__ import annotations

from typing import Dict, Iterable, Mapping

from scorecard.errors import UnknownEmployeeError
from scorecard.filters import (
    DEFAULT_SETTINGS,
    STATUS_AVERAGE,
    STATUS_GREAT,
    STATUS_NEEDS_ATTENTION,
    ScoringSettings,
)
from scorecard.models import Employee, EntityGraph, KpiDefinition


def kpi_weights(kpis: Iterable[KpiDefinition]) -> Dict[str, float]:
    weights: Dict[str, float] = {}
    for kpi in kpis:
        # First definition of a KPI id wins.
        weights.setdefault(kpi.id, float(kpi.weight or 0.0))
    return weights


def kpi_weight_total(kpis: Iterable[KpiDefinition]) -> float:
    return float(sum(float(k.weight or 0.0) for k in kpis))


def weights_balanced(kpis: Iterable[KpiDefinition], settings: ScoringSettings = DEFAULT_SETTINGS) -> bool:
    return abs(kpi_weight_total(kpis) - 1.0) < settings.weight_tolerance


def weighted_score(achievements: Mapping[str, float], kpis: Iterable[KpiDefinition]) -> float:
    """Weighted mean of KPI achievements; KPIs missing from the catalog weigh nothing."""
    weights = kpi_weights(kpis)
    total_weighted = 0.0
    total_weight = 0.0
    for kpi_id, achievement in achievements.items():
        weight = weights.get(kpi_id, 0.0)
        total_weighted += float(achievement) * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0
    return total_weighted / total_weight


def estimate_bonus(
    base_salary: float,
    target_pct: float,
    achievement: float,
    settings: ScoringSettings = DEFAULT_SETTINGS,
) -> float:
    """``base_salary * target_pct * min(achievement, cap)``; no floor below zero."""
    return float(base_salary or 0.0) * float(target_pct or 0.0) * min(float(achievement or 0.0), settings.bonus_cap)


def performance_tag(score: float, settings: ScoringSettings = DEFAULT_SETTINGS) -> str:
    s = float(score or 0.0)
    if s >= settings.great:
        return STATUS_GREAT
    if s >= settings.average:
        return STATUS_AVERAGE
    return STATUS_NEEDS_ATTENTION


def score_for(employee: Employee, period: str) -> float:
    rec = employee.record(period)
    return rec.score if rec is not None else 0.0


def bonus_for(employee: Employee, period: str, settings: ScoringSettings = DEFAULT_SETTINGS) -> float:
    """Recorded payout for the period if there is one (0 included), else the live estimate."""
    rec = employee.record(period)
    if rec is not None and rec.bonus_paid is not None:
        return float(rec.bonus_paid)
    achievement = rec.score if rec is not None else 0.0
    return estimate_bonus(employee.base_salary, employee.bonus_target_pct, achievement, settings)


def compute_score(graph: EntityGraph, employee_id: str, period: str) -> float:
    """Recompute an employee's overall achievement for ``period`` from the current KPI catalog."""
    employee = graph.employee(employee_id)
    if employee is None:
        raise UnknownEmployeeError(f"Unknown employee: {employee_id}")
    rec = employee.record(period)
    if rec is None:
        return 0.0
    return weighted_score(rec.kpis, graph.kpis_for(employee.team))


compute_bonus = estimate_bonus
