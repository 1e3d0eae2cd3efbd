"""Copy-on-write edits of an imported entity graph (KPI editor surface)."""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Union

from scorecard.errors import UnknownTeamError
from scorecard.filters import DEFAULT_SETTINGS, ScoringSettings
from scorecard.models import DIRECTION_HIGHER, EntityGraph, KpiDefinition, TeamSettings
from scorecard.normalize import DEFAULT_KPI_SOURCE, kpi_id_for, parse_direction
from scorecard.parsing import clean_text, parse_amount
from scorecard.scoring import kpi_weight_total, weighted_score, weights_balanced

KpiInput = Union[KpiDefinition, Mapping[str, object]]


def new_kpi(team: str) -> KpiDefinition:
    return KpiDefinition(
        id=f"{team}_kpi_{uuid.uuid4().hex[:8]}",
        team=team,
        name="New KPI",
        weight=0.1,
        source=DEFAULT_KPI_SOURCE,
        direction=DIRECTION_HIGHER,
    )


def coerce_kpi(team: str, item: KpiInput) -> KpiDefinition:
    if isinstance(item, KpiDefinition):
        return replace(item, team=team)
    name = clean_text(item.get("name"))
    return KpiDefinition(
        id=kpi_id_for(team, item.get("id"), name),
        team=team,
        name=name,
        description=clean_text(item.get("description")),
        weight=parse_amount(item.get("weight")),
        target=parse_amount(item.get("target")),
        unit=clean_text(item.get("unit")),
        source=clean_text(item.get("source")) or DEFAULT_KPI_SOURCE,
        direction=parse_direction(item.get("direction")),
    )


def replace_team_kpis(
    graph: EntityGraph,
    team: str,
    kpis: Iterable[KpiInput],
    bonus_pool: Optional[float] = None,
) -> EntityGraph:
    """Return a new graph with ``team``'s KPI set (and optionally its bonus pool) replaced.

    Stored scores of the team's period records follow the new weights; recorded
    bonus payouts are kept as they were.
    """
    if team not in graph.teams:
        raise UnknownTeamError(f"Unknown team: {team}")

    new_kpis = tuple(coerce_kpi(team, k) for k in kpis)
    catalog = dict(graph.kpi_catalog)
    catalog[team] = new_kpis

    team_settings = dict(graph.team_settings)
    if bonus_pool is not None:
        team_settings[team] = TeamSettings(bonus_pool=parse_amount(bonus_pool))

    employees = tuple(
        replace(
            emp,
            history=tuple(replace(rec, score=weighted_score(rec.kpis, new_kpis)) for rec in emp.history),
        )
        if emp.team == team
        else emp
        for emp in graph.employees
    )
    return replace(graph, kpi_catalog=catalog, team_settings=team_settings, employees=employees)


def weight_issues(graph: EntityGraph, settings: ScoringSettings = DEFAULT_SETTINGS) -> Dict[str, float]:
    """Teams whose KPI weights do not add up to 100%, with their current total."""
    issues: Dict[str, float] = {}
    for team in graph.teams:
        kpis = graph.kpis_for(team)
        if kpis and not weights_balanced(kpis, settings):
            issues[team] = kpi_weight_total(kpis)
    return issues


def kpis_as_records(kpis: Iterable[KpiDefinition]) -> List[dict]:
    return [
        {
            "id": k.id,
            "name": k.name,
            "description": k.description,
            "weight": k.weight,
            "target": k.target,
            "unit": k.unit,
            "source": k.source,
            "direction": k.direction,
        }
        for k in kpis
    ]
