import pytest

from scorecard.filters import DEFAULT_SETTINGS, DashboardFilters, normalize_filters
from scorecard.metrics_dashboard import compute_dashboard
from scorecard.metrics_employee import compute_employee_detail, kpi_achievement
from scorecard.models import PeriodRecord
from scorecard.notes import InMemoryNoteStore


def test_normalize_filters_defaults():
    f = normalize_filters({"team": "Nope", "period": "Q1 '99"}, available_teams=["Sales", "Ops"])
    assert f.team == "Sales"
    assert f.period == "Q3 '25"
    assert f.status_filter == "All"
    assert f.settings.bonus_cap == 1.5


def test_normalize_filters_ignores_scoring_overrides():
    f = normalize_filters({"team": "Sales", "settings": {"great": 0.5, "average": 0.1, "bonus_cap": 9}})
    assert f.settings == DEFAULT_SETTINGS


def test_compute_dashboard(graph):
    payload = compute_dashboard(DashboardFilters(team="Ops", period="Q3 '25"), graph)
    assert payload["manager"] == {"name": "Sam Berg", "title": "Ops Lead"}
    assert payload["summary"]["total_bonus"] == 3000.0
    assert payload["kpi_weight_total"] == pytest.approx(1.0)
    assert payload["charts"]["achievement"]["mark"]["type"] == "bar"


def test_compute_dashboard_without_team(graph):
    payload = compute_dashboard(DashboardFilters(team=None), graph)
    assert payload["rows"] == []
    assert payload["summary"]["headcount"] == 0


def test_kpi_achievement_falls_back_to_overall_score():
    rec = PeriodRecord(period="Q3 '25", kpis={"rev": 0.9}, score=0.8)
    assert kpi_achievement(rec, "rev") == 0.9
    assert kpi_achievement(rec, "nps") == 0.8
    assert kpi_achievement(None, "rev") == 0.0


def test_employee_detail(graph):
    notes = InMemoryNoteStore()
    notes.set_note("3", "Q3 '25", "sla", "Paging load")
    detail = compute_employee_detail(graph, "3", "Q3 '25", notes)
    assert detail["status"] == "Needs attention"
    assert detail["estimated_bonus"] == pytest.approx(3000.0)
    assert detail["delta_pp"] is None
    assert detail["kpis"][0]["note"] == "Paging load"
    assert detail["kpis"][0]["direction"] == "lower"
    assert set(detail["charts"]) == {"trend", "kpis"}


def test_employee_detail_period_without_record(graph):
    detail = compute_employee_detail(graph, "E2", "Q4 '24")
    assert detail["has_record"] is False
    assert detail["overall_achievement"] == 0.0
    assert detail["bonus"] == 0.0
