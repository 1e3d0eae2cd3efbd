from __future__ import annotations

from dataclasses import replace
import logging
import math
import threading
from typing import Callable, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from scorecard import session as sm
from scorecard.data import TEMPLATE_FILENAME, load_workbook, template_workbook
from scorecard.editing import replace_team_kpis, weight_issues
from scorecard.errors import ScorecardError, UnknownEmployeeError, UnknownTeamError
from scorecard.filters import DashboardFilters, normalize_filters
from scorecard.metrics_dashboard import compute_dashboard
from scorecard.metrics_employee import compute_employee_detail
from scorecard.models import EntityGraph
from scorecard.notes import InMemoryNoteStore
from scorecard.periods import CURRENT_PERIOD, PERIODS
from scorecard.projection import export_csv, export_filename, project
from scorecard_api.schemas import DashboardFiltersModel, KpiEditModel, NoteModel

app = FastAPI(title="KPI Scorecard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SessionStore:
    """The single in-memory session; each update publishes a whole new state.

    Every read-modify-write of ``state`` happens under ``lock`` so a transition
    never publishes a graph another request has already replaced.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.state = sm.SessionState()
        self.notes = InMemoryNoteStore()

    def update(self, transition: Callable[[sm.SessionState], sm.SessionState]) -> sm.SessionState:
        with self.lock:
            self.state = transition(self.state)
            return self.state

    def publish_import(self, graph: EntityGraph) -> sm.SessionState:
        return self.update(lambda state: sm.imported(state, graph))

    def reset(self) -> None:
        with self.lock:
            self.state = sm.SessionState()
        self.notes = InMemoryNoteStore()


store = SessionStore()


class NoWorkbookError(ScorecardError):
    message = "No workbook has been imported yet."


def _current_graph() -> EntityGraph:
    graph = store.state.graph
    if graph is None:
        raise NoWorkbookError()
    return graph


def _filters_from_model(model: DashboardFiltersModel, graph: EntityGraph) -> DashboardFilters:
    raw = model.model_dump()
    if not raw.get("team"):
        raw["team"] = store.state.team
    return normalize_filters(raw, available_teams=graph.teams)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception, where: str) -> JSONResponse:
    if isinstance(exc, (UnknownTeamError, UnknownEmployeeError)):
        return JSONResponse(status_code=404, content={"error": str(exc), "type": type(exc).__name__})
    if isinstance(exc, NoWorkbookError):
        return JSONResponse(status_code=409, content={"error": str(exc), "type": type(exc).__name__})
    if isinstance(exc, ScorecardError):
        return JSONResponse(status_code=400, content={"error": str(exc), "type": type(exc).__name__})
    logger.exception("%s failed", where)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _session_payload(state: Optional[sm.SessionState] = None) -> dict:
    state = state or store.state
    return {
        "screen": state.screen.value,
        "team": state.team,
        "period": state.period,
        "status_filter": state.status_filter,
        "employee_id": state.employee_id,
        "teams": list(state.graph.teams) if state.graph is not None else [],
        "weight_issues": weight_issues(state.graph) if state.graph is not None else {},
    }


@app.post("/import")
async def import_workbook(file: UploadFile = File(...)):
    try:
        content = await file.read()
        graph = load_workbook(content, filename=file.filename or "")
        # Built completely before it replaces the published state.
        return _json(_session_payload(store.publish_import(graph)))
    except Exception as exc:
        return _error(exc, "import")


@app.get("/template")
def download_template():
    try:
        content = template_workbook()
    except Exception as exc:
        return _error(exc, "template")
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@app.get("/meta/teams")
def meta_teams():
    graph = store.state.graph
    return _json({"teams": list(graph.teams) if graph is not None else []})


@app.get("/meta/periods")
def meta_periods():
    return _json({"periods": list(PERIODS), "current": CURRENT_PERIOD})


@app.get("/session")
def get_session():
    return _json(_session_payload())


@app.post("/session/{action}")
def session_action(
    action: str,
    team: Optional[str] = Query(default=None),
    period: Optional[str] = Query(default=None),
    status_filter: Optional[str] = Query(default=None),
    employee_id: Optional[str] = Query(default=None),
):
    transitions = {
        "select-team": lambda s: sm.select_team(s, team or ""),
        "select-period": lambda s: sm.select_period(s, period or ""),
        "select-status": lambda s: sm.select_status(s, status_filter or ""),
        "open-editor": sm.open_editor,
        "cancel-editor": sm.cancel_editor,
        "open-employee": lambda s: sm.open_employee(s, employee_id or "", period),
        "close-employee": sm.close_employee,
    }
    if action not in transitions:
        return JSONResponse(status_code=404, content={"error": f"Unknown action: {action}", "type": "NotFound"})
    try:
        return _json(_session_payload(store.update(transitions[action])))
    except Exception as exc:
        return _error(exc, "session_action")


@app.post("/dashboard")
def dashboard(filters: DashboardFiltersModel):
    try:
        graph = _current_graph()
        f = _filters_from_model(filters, graph)
        return _json(compute_dashboard(f, graph))
    except Exception as exc:
        return _error(exc, "dashboard")


@app.post("/export")
def export(filters: DashboardFiltersModel):
    try:
        graph = _current_graph()
        f = _filters_from_model(filters, graph)
        rows = project(graph.employees, f.team or "", f.period, f.status_filter, f.settings)
        csv_bytes = export_csv(rows).encode("utf-8")
        filename = export_filename(f.team or "team", f.period)
    except Exception as exc:
        return _error(exc, "export")
    return Response(
        content=csv_bytes,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/employees/{employee_id}")
def employee_detail(employee_id: str, period: str = Query(default=CURRENT_PERIOD)):
    try:
        graph = _current_graph()
        return _json(compute_employee_detail(graph, employee_id, period, store.notes))
    except Exception as exc:
        return _error(exc, "employee_detail")


@app.put("/teams/{team}/kpis")
def update_team_kpis(team: str, body: KpiEditModel):
    kpis = [k.model_dump() for k in body.kpis]

    def edit(state: sm.SessionState) -> sm.SessionState:
        if state.graph is None:
            raise NoWorkbookError()
        # An open editor for this team is closed by the save.
        if state.screen == sm.Screen.EDITOR and state.team == team:
            return sm.save_editor(state, kpis, bonus_pool=body.bonus_pool)
        return replace(state, graph=replace_team_kpis(state.graph, team, kpis, bonus_pool=body.bonus_pool))

    try:
        state = store.update(edit)
        return _json({"team": team, "screen": state.screen.value, "weight_issues": weight_issues(state.graph)})
    except Exception as exc:
        return _error(exc, "update_team_kpis")


@app.put("/notes")
def put_note(body: NoteModel):
    try:
        graph = _current_graph()
        if graph.employee(body.employee_id) is None:
            raise UnknownEmployeeError(f"Unknown employee: {body.employee_id}")
        store.notes.set_note(body.employee_id, body.period, body.kpi_id, body.note)
        return _json({"notes": store.notes.notes_for(body.employee_id, body.period)})
    except Exception as exc:
        return _error(exc, "put_note")
