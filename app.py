import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import List, Optional

from scorecard import session as sm
from scorecard.aggregation import team_summary
from scorecard.charts import achievement_bar_chart, kpi_breakdown_chart, score_trend_chart
from scorecard.data import TEMPLATE_FILENAME, load_workbook, template_workbook, workbook_fingerprint
from scorecard.editing import kpis_as_records, new_kpi
from scorecard.errors import ScorecardError
from scorecard.filters import STATUS_OPTIONS
from scorecard.metrics_employee import compute_employee_detail
from scorecard.models import Manager, TeamSettings
from scorecard.notes import InMemoryNoteStore
from scorecard.parsing import format_currency_0, format_delta_pp, format_percent_0
from scorecard.periods import PERIODS
from scorecard.projection import export_csv, export_filename, project, projection_frame

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def chips(values: List[str]) -> str:
    return "".join([f"<span class='chip'>{txt}</span>" for txt in values])


def render_page_header(title: str, breadcrumb: str, chip_values: List[str]):
    inject_base_styles()
    st.markdown(
        f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
        unsafe_allow_html=True,
    )
    st.markdown(f"<div class='chip-row'>{chips(chip_values)}</div>", unsafe_allow_html=True)


def get_state() -> sm.SessionState:
    return st.session_state.setdefault("scorecard_state", sm.SessionState())


def set_state(state: sm.SessionState) -> None:
    st.session_state["scorecard_state"] = state


def get_notes() -> InMemoryNoteStore:
    return st.session_state.setdefault("scorecard_notes", InMemoryNoteStore())


def handle_upload(uploaded) -> None:
    if uploaded is None:
        return
    content = uploaded.getvalue()
    token = workbook_fingerprint(content)
    if st.session_state.get("_last_upload") == token:
        return
    st.session_state["_last_upload"] = token
    try:
        graph = load_workbook(content, filename=uploaded.name)
    except ScorecardError as exc:
        st.error(f"Import failed: {exc}")
        return
    set_state(sm.imported(get_state(), graph))


# ---------- Screens ----------
def render_start():
    render_page_header("KPI & Bonus", "Start", ["Sheets: Teams, KPIs, Employees, KPIHistory, KPIData"])
    st.write("Import an Excel workbook to build the team scorecards.")
    st.download_button(
        "Download Excel Template",
        data=template_workbook(),
        file_name=TEMPLATE_FILENAME,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    handle_upload(st.file_uploader("Workbook (.xlsx / .xls)", type=["xlsx", "xls"]))


def render_dashboard(state: sm.SessionState):
    graph = state.graph
    team = state.team or ""
    manager = graph.managers.get(team, Manager())
    settings = graph.team_settings.get(team, TeamSettings())

    with st.sidebar:
        st.markdown("### Scorecard")
        handle_upload(st.file_uploader("Import data", type=["xlsx", "xls"]))
        new_team = st.selectbox("Team", options=list(graph.teams), index=list(graph.teams).index(team) if team in graph.teams else 0)
        new_period = st.selectbox("Period", options=list(PERIODS), index=list(PERIODS).index(state.period) if state.period in PERIODS else 0)
        new_status = st.selectbox("Status", options=STATUS_OPTIONS, index=STATUS_OPTIONS.index(state.status_filter))
    if (new_team, new_period, new_status) != (state.team, state.period, state.status_filter):
        state = sm.select_status(sm.select_period(sm.select_team(state, new_team), new_period), new_status)
        set_state(state)
        st.rerun()

    title = f"{manager.name or '—'}{' · ' + manager.title if manager.title else ''}"
    render_page_header(title, f"Team · {team} — Period: {state.period}", [f"Bonus pool: {format_currency_0(settings.bonus_pool)}"])

    summary = team_summary(graph.employees, team, state.period)
    cols = st.columns(4)
    cols[0].metric("Headcount", str(summary.headcount))
    cols[1].metric("Avg Achievement", format_percent_0(summary.avg_score))
    cols[2].metric("Avg Bonus", format_currency_0(summary.avg_bonus))
    cols[3].metric("Total Bonus", format_currency_0(summary.total_bonus))

    kpis = graph.kpis_for(team)
    with st.expander(f"Current KPI system — {team}"):
        st.dataframe(pd.DataFrame(kpis_as_records(kpis)), hide_index=True, use_container_width=True)
        if st.button("Edit KPIs"):
            set_state(sm.open_editor(state))
            st.rerun()

    rows = project(graph.employees, team, state.period, state.status_filter)
    frame = projection_frame(rows)
    with card(f"Direct Reports — {state.period}"):
        st.download_button(
            "Export CSV",
            data=export_csv(rows).encode("utf-8"),
            file_name=export_filename(team, state.period),
            mime="text/csv",
        )
        if frame.empty:
            st.info("No employees match the selected filters.")
            return
        display = frame.assign(
            achievement=frame["achievement_pct"].map(lambda v: f"{v}%"),
            delta=[format_delta_pp(r.delta_pp) for r in rows],
            bonus=frame["est_bonus"].map(format_currency_0),
        )[["name", "title", "team", "achievement", "delta", "bonus", "status"]]
        st.dataframe(display, hide_index=True, use_container_width=True)
        st.altair_chart(achievement_bar_chart(frame), use_container_width=True)
        picked = st.selectbox("Open employee", options=[""] + [r.employee_id for r in rows],
                              format_func=lambda v: next((r.name for r in rows if r.employee_id == v), "—"))
        if picked:
            set_state(sm.open_employee(state, picked))
            st.rerun()


def render_editor(state: sm.SessionState):
    graph = state.graph
    team = state.team or ""
    render_page_header(f"Edit KPI System — {team}", "Dashboard / Editor", ["Adjust KPIs and bonus pool"])
    key = f"_editor_rows_{team}"
    if key not in st.session_state:
        st.session_state[key] = pd.DataFrame(kpis_as_records(graph.kpis_for(team)))
    pool = st.number_input("Bonus pool (EUR)", value=float(graph.team_settings.get(team, TeamSettings()).bonus_pool), step=1000.0)
    if st.button("Add KPI"):
        st.session_state[key] = pd.concat(
            [st.session_state[key], pd.DataFrame(kpis_as_records([new_kpi(team)]))], ignore_index=True
        )
    edited = st.data_editor(st.session_state[key], num_rows="dynamic", hide_index=True, use_container_width=True)
    records = edited.to_dict(orient="records")
    total = float(pd.to_numeric(edited.get("weight", pd.Series(dtype=float)), errors="coerce").fillna(0).sum())
    if abs(total - 1) < 0.001:
        st.success(f"Total weight: {total * 100:.0f}% ✓")
    else:
        st.warning(f"Total weight: {total * 100:.0f}% (should be 100%)")

    cols = st.columns(2)
    if cols[0].button("Cancel"):
        st.session_state.pop(key, None)
        set_state(sm.cancel_editor(state))
        st.rerun()
    if cols[1].button("Save changes"):
        st.session_state.pop(key, None)
        set_state(sm.save_editor(state, records, bonus_pool=pool))
        st.rerun()


def render_detail(state: sm.SessionState):
    graph = state.graph
    notes = get_notes()
    period = st.selectbox("Period", options=list(PERIODS), index=list(PERIODS).index(state.period) if state.period in PERIODS else 0)
    detail = compute_employee_detail(graph, state.employee_id or "", period, notes)
    emp = detail["employee"]
    render_page_header(emp["name"], f"{emp['title']} · {emp['team']} — {period}", [detail["status"]])
    if st.button("← Back to Team"):
        set_state(sm.close_employee(state))
        st.rerun()

    cols = st.columns(3)
    cols[0].metric("Overall Achievement", format_percent_0(detail["overall_achievement"]), delta=format_delta_pp(detail["delta_pp"]))
    cols[1].metric("Base Salary & Bonus Target", f"{format_currency_0(emp['base_salary'])} · {format_percent_0(emp['bonus_target_pct'])}")
    cols[2].metric("Estimated Bonus", format_currency_0(detail["estimated_bonus"]))

    if detail["kpis"]:
        kpi_df = pd.DataFrame(detail["kpis"])
        st.altair_chart(kpi_breakdown_chart(kpi_df), use_container_width=True)
        for kpi in detail["kpis"]:
            with card(f"{kpi['name']} · Weight {kpi['weight_pct']:.0f}%"):
                st.caption(f"{kpi['description']} · Target: {kpi['target']} {kpi['unit']} · Source: {kpi['source']}")
                st.write(f"Achievement: {kpi['achievement_pct']:.0f}%")
                note = st.text_area("Notes", value=kpi["note"], key=f"note_{emp['id']}_{period}_{kpi['id']}")
                if note != kpi["note"]:
                    notes.set_note(emp["id"], period, kpi["id"], note)
    if detail["history"]:
        st.altair_chart(score_trend_chart(pd.DataFrame(detail["history"])), use_container_width=True)


def main(state: Optional[sm.SessionState] = None):
    st.set_page_config(page_title="KPI & Bonus Scorecard", layout="wide")
    inject_base_styles()
    state = state or get_state()
    if state.screen == sm.Screen.START or state.graph is None:
        render_start()
    elif state.screen == sm.Screen.EDITOR:
        render_editor(state)
    elif state.screen == sm.Screen.DETAIL:
        render_detail(state)
    else:
        render_dashboard(state)


main()
