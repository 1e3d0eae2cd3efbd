import copy
import logging

import pytest

from scorecard.errors import EmptyDatasetError, NoRecognizedSheetError, NoTeamsResolvedError
from scorecard.models import DIRECTION_LOWER, Manager, TeamSettings
from scorecard.normalize import normalize


def test_team_universe_and_settings(graph):
    assert graph.teams == ("Sales", "Ops")
    assert graph.team_settings["Sales"] == TeamSettings(bonus_pool=100000.0)
    assert graph.team_settings["Ops"].bonus_pool == 20000.0
    assert graph.managers["Sales"] == Manager(name="Maria Lopez", title="Head of Sales")


def test_team_missing_from_teams_rows_gets_defaults(kpi_rows, employee_rows):
    rows = employee_rows + [{"EmployeeID": "E9", "Name": "Zoe", "Team": "  Legal ", "BaseSalary": 1}]
    g = normalize([], kpi_rows, rows)
    assert "Legal" in g.teams
    assert g.team_settings["Legal"] == TeamSettings()
    assert g.managers["Legal"] == Manager()


def test_kpi_catalog(graph):
    sales = graph.kpis_for("Sales")
    assert [k.id for k in sales] == ["rev", "nps"]
    assert sales[0].weight == 0.6
    assert sales[0].source == "Manual"
    assert graph.kpis_for("Ops")[0].direction == DIRECTION_LOWER


def test_kpi_without_id_uses_team_and_name():
    g = normalize([], [{"Team": "Sales", "Name": "Calls"}], [])
    kpi = g.kpis_for("Sales")[0]
    assert kpi.id == "Sales_Calls"
    assert kpi.weight == 0.0
    assert kpi.target == 0.0


def test_employees_without_id_or_team_are_dropped(teams_rows, kpi_rows, employee_rows):
    rows = employee_rows + [
        {"EmployeeID": "", "Name": "Ghost", "Team": "Sales"},
        {"EmployeeID": "E5", "Name": "Nomad", "Team": None},
    ]
    g = normalize(teams_rows, kpi_rows, rows)
    assert [e.id for e in g.employees] == ["E1", "E2", "3"]


def test_employee_fields(graph):
    ann = graph.employee("E1")
    assert ann.base_salary == 50000.0
    assert ann.bonus_target_pct == 0.2
    assert graph.employee("3").team == "Ops"


def test_achievements_stored_as_fractions(graph):
    rec = graph.employee("E1").record("Q3 '25")
    assert rec.kpis == pytest.approx({"rev": 0.9, "nps": 0.5})


def test_scores_and_bonuses_always_computed(teams_rows, kpi_rows, employee_rows, kpi_data_rows):
    history = [
        {"EmployeeID": "E1", "Period": "Q3 '25", "Score": 0.1, "BonusPaid": 1},
        {"EmployeeID": "E1", "Period": "Q3 '25", "Score": 0.2, "BonusPaid": 2},
    ]
    g = normalize(teams_rows, kpi_rows, employee_rows, history, kpi_data_rows)
    ann = g.employee("E1")
    assert len(ann.history) == 1
    assert ann.history[0].score == pytest.approx(0.74)
    assert ann.history[0].bonus_paid == 7400.0


def test_records_follow_period_order(graph):
    assert [r.period for r in graph.employee("E1").history] == ["Q3 '25", "Q2 '25"]


def test_history_without_kpi_data_scores_zero(teams_rows, kpi_rows, employee_rows):
    g = normalize(teams_rows, kpi_rows, employee_rows, [{"EmployeeID": "E2", "Period": "Q1 '25"}])
    rec = g.employee("E2").record("Q1 '25")
    assert rec.score == 0.0
    assert rec.bonus_paid == 0.0


def test_inputs_are_not_mutated(teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows):
    before = copy.deepcopy([teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows])
    normalize(teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows)
    assert [teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows] == before


def test_normalize_is_idempotent(teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows):
    first = normalize(teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows)
    second = normalize(teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows)
    assert first == second


def test_all_sources_empty():
    with pytest.raises(NoRecognizedSheetError):
        normalize([], [], [], [{"EmployeeID": "E1", "Period": "Q3 '25"}])


def test_no_teams_resolved():
    with pytest.raises(NoTeamsResolvedError) as exc_info:
        normalize([{"Team": "  ", "BonusPoolEUR": 10}], [], [{"EmployeeID": "E1", "Team": None}])
    assert isinstance(exc_info.value, EmptyDatasetError)


def test_unbalanced_weights_are_logged(caplog):
    rows = [{"Team": "Sales", "KPI_ID": "a", "Name": "A", "Weight": 0.5}]
    with caplog.at_level(logging.WARNING, logger="scorecard.normalize"):
        normalize([], rows, [])
    assert "sum to 0.500" in caplog.text
