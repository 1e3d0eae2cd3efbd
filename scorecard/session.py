"""Which screen is active, modelled as an explicit closed state machine.

    START --import--> DASHBOARD <--open/close editor--> EDITOR
                      DASHBOARD <--select/close employee--> DETAIL

Every transition returns a new ``SessionState``; nothing is mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional

from scorecard.editing import KpiInput, replace_team_kpis
from scorecard.errors import InvalidTransitionError, UnknownEmployeeError, UnknownTeamError
from scorecard.filters import STATUS_ALL, STATUS_OPTIONS
from scorecard.models import EntityGraph
from scorecard.periods import CURRENT_PERIOD, PERIODS


class Screen(str, Enum):
    START = "start"
    DASHBOARD = "dashboard"
    EDITOR = "editor"
    DETAIL = "detail"


@dataclass(frozen=True)
class SessionState:
    screen: Screen = Screen.START
    graph: Optional[EntityGraph] = None
    team: Optional[str] = None
    period: str = CURRENT_PERIOD
    status_filter: str = STATUS_ALL
    employee_id: Optional[str] = None


def _require(state: SessionState, *screens: Screen) -> None:
    if state.screen not in screens:
        allowed = ", ".join(s.value for s in screens)
        raise InvalidTransitionError(f"Action requires screen {allowed}, current screen is {state.screen.value}.")


def imported(state: SessionState, graph: EntityGraph) -> SessionState:
    """Publish a freshly normalized graph; the selected team survives if it still exists."""
    team = state.team if state.team in graph.teams else (graph.teams[0] if graph.teams else None)
    return SessionState(
        screen=Screen.DASHBOARD,
        graph=graph,
        team=team,
        period=state.period,
        status_filter=state.status_filter,
    )


def select_team(state: SessionState, team: str) -> SessionState:
    _require(state, Screen.DASHBOARD)
    if state.graph is None or team not in state.graph.teams:
        raise UnknownTeamError(f"Unknown team: {team}")
    return replace(state, team=team)


def select_period(state: SessionState, period: str) -> SessionState:
    _require(state, Screen.DASHBOARD, Screen.DETAIL)
    if period not in PERIODS:
        raise InvalidTransitionError(f"Unknown period: {period}")
    return replace(state, period=period)


def select_status(state: SessionState, status_filter: str) -> SessionState:
    _require(state, Screen.DASHBOARD)
    if status_filter not in STATUS_OPTIONS:
        raise InvalidTransitionError(f"Unknown status filter: {status_filter}")
    return replace(state, status_filter=status_filter)


def open_editor(state: SessionState) -> SessionState:
    _require(state, Screen.DASHBOARD)
    return replace(state, screen=Screen.EDITOR)


def cancel_editor(state: SessionState) -> SessionState:
    _require(state, Screen.EDITOR)
    return replace(state, screen=Screen.DASHBOARD)


def save_editor(state: SessionState, kpis: Iterable[KpiInput], bonus_pool: Optional[float] = None) -> SessionState:
    _require(state, Screen.EDITOR)
    if state.graph is None or state.team is None:
        raise InvalidTransitionError("No team selected.")
    graph = replace_team_kpis(state.graph, state.team, kpis, bonus_pool=bonus_pool)
    return replace(state, screen=Screen.DASHBOARD, graph=graph)


def open_employee(state: SessionState, employee_id: str, period: Optional[str] = None) -> SessionState:
    _require(state, Screen.DASHBOARD)
    if state.graph is None or state.graph.employee(employee_id) is None:
        raise UnknownEmployeeError(f"Unknown employee: {employee_id}")
    return replace(state, screen=Screen.DETAIL, employee_id=employee_id, period=period or state.period)


def close_employee(state: SessionState) -> SessionState:
    _require(state, Screen.DETAIL)
    return replace(state, screen=Screen.DASHBOARD, employee_id=None)
