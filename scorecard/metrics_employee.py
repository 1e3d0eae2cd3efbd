from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd

from scorecard.aggregation import history_frame, score_delta
from scorecard.charts import kpi_breakdown_chart, score_trend_chart, to_vega_spec
from scorecard.errors import UnknownEmployeeError
from scorecard.filters import DEFAULT_SETTINGS, ScoringSettings
from scorecard.models import EntityGraph, KpiDefinition, PeriodRecord
from scorecard.notes import NoteStore
from scorecard.periods import PERIODS
from scorecard.scoring import bonus_for, estimate_bonus, performance_tag


def kpi_achievement(record: Optional[PeriodRecord], kpi_id: str) -> float:
    """Achievement for one KPI; without period data for it, the overall score stands in."""
    if record is None:
        return 0.0
    if kpi_id in record.kpis:
        return record.kpis[kpi_id]
    return record.score


def detail_achievement(record: Optional[PeriodRecord], kpis: List[KpiDefinition]) -> float:
    overall = record.score if record is not None else 0.0
    if not kpis:
        return overall
    total_weighted = 0.0
    total_weight = 0.0
    for kpi in kpis:
        weight = float(kpi.weight or 0.0)
        total_weighted += kpi_achievement(record, kpi.id) * weight
        total_weight += weight
    return total_weighted / total_weight if total_weight > 0 else overall


def compute_employee_detail(
    graph: EntityGraph,
    employee_id: str,
    period: str,
    notes: Optional[NoteStore] = None,
    settings: ScoringSettings = DEFAULT_SETTINGS,
) -> Dict[str, Any]:
    employee = graph.employee(employee_id)
    if employee is None:
        raise UnknownEmployeeError(f"Unknown employee: {employee_id}")

    record = employee.record(period)
    kpis = list(graph.kpis_for(employee.team))
    period_notes = notes.notes_for(employee.id, period) if notes is not None else {}
    overall = detail_achievement(record, kpis)

    kpi_rows = [
        {
            "id": k.id,
            "name": k.name,
            "description": k.description,
            "weight": k.weight,
            "weight_pct": k.weight * 100,
            "target": k.target,
            "unit": k.unit,
            "source": k.source,
            "direction": k.direction,
            "achievement": kpi_achievement(record, k.id),
            "achievement_pct": kpi_achievement(record, k.id) * 100,
            "has_data": record is not None and k.id in record.kpis,
            "note": period_notes.get(k.id, ""),
        }
        for k in kpis
    ]
    history = history_frame(employee, settings)

    charts: Dict[str, Any] = {}
    if not history.empty:
        charts["trend"] = to_vega_spec(score_trend_chart(history))
    if kpi_rows:
        charts["kpis"] = to_vega_spec(kpi_breakdown_chart(pd.DataFrame(kpi_rows)))

    return {
        "employee": {
            "id": employee.id,
            "name": employee.name,
            "title": employee.title,
            "team": employee.team,
            "base_salary": employee.base_salary,
            "bonus_target_pct": employee.bonus_target_pct,
        },
        "period": period,
        "periods": list(PERIODS),
        "has_record": record is not None,
        "overall_achievement": overall,
        "status": performance_tag(overall, settings),
        "estimated_bonus": estimate_bonus(employee.base_salary, employee.bonus_target_pct, overall, settings),
        "bonus": bonus_for(employee, period, settings),
        "delta_pp": score_delta(employee, period),
        "kpis": kpi_rows,
        "history": history.to_dict(orient="records"),
        "charts": charts,
    }
