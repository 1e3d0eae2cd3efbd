from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from scorecard.aggregation import team_overview, team_summary
from scorecard.charts import achievement_bar_chart, to_vega_spec
from scorecard.editing import kpis_as_records
from scorecard.filters import DashboardFilters
from scorecard.models import EntityGraph, Manager, TeamSettings
from scorecard.projection import project, projection_frame
from scorecard.scoring import kpi_weight_total, weights_balanced


def compute_dashboard(filters: DashboardFilters, graph: EntityGraph) -> Dict[str, Any]:
    team = filters.team
    if team is None or team not in graph.teams:
        return {
            "filters": asdict(filters),
            "teams": list(graph.teams),
            "summary": asdict(team_summary([], "", filters.period)),
            "rows": [],
            "charts": {},
        }

    settings = filters.settings
    kpis = graph.kpis_for(team)
    summary = team_summary(graph.employees, team, filters.period, settings)
    rows = project(graph.employees, team, filters.period, filters.status_filter, settings)
    frame = projection_frame(rows)

    charts: Dict[str, Any] = {}
    if not frame.empty:
        charts["achievement"] = to_vega_spec(achievement_bar_chart(frame))

    overview = team_overview(graph, filters.period, settings)
    return {
        "filters": asdict(filters),
        "teams": list(graph.teams),
        "manager": asdict(graph.managers.get(team, Manager())),
        "bonus_pool": graph.team_settings.get(team, TeamSettings()).bonus_pool,
        "summary": asdict(summary),
        "kpis": kpis_as_records(kpis),
        "kpi_weight_total": kpi_weight_total(kpis),
        "kpi_weights_balanced": weights_balanced(kpis, settings),
        "rows": frame.to_dict(orient="records"),
        "team_overview": overview.to_dict(orient="records"),
        "charts": charts,
    }
