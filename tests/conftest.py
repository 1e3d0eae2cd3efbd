from __future__ import annotations

import io

import pandas as pd
import pytest

from scorecard.normalize import normalize


@pytest.fixture
def teams_rows():
    return [
        {"Team": "Sales", "BonusPoolEUR": "€ 100.000,00", "ManagerName": "Maria Lopez", "ManagerTitle": "Head of Sales"},
        {"Team": "Ops", "BonusPoolEUR": 20000, "ManagerName": "Sam Berg", "ManagerTitle": "Ops Lead"},
    ]


@pytest.fixture
def kpi_rows():
    return [
        {"Team": "Sales", "KPI_ID": "rev", "Name": "Revenue", "Weight": 0.6, "Target": 100000, "Unit": "EUR"},
        {"Team": "Sales", "KPI_ID": "nps", "Name": "NPS", "Weight": 0.4, "Target": 50, "Unit": "pts"},
        {"Team": "Ops", "KPI_ID": "sla", "Name": "SLA", "Weight": 1.0, "Target": 99, "Unit": "%", "Direction": "Lower is better"},
    ]


@pytest.fixture
def employee_rows():
    return [
        {"EmployeeID": "E1", "Name": "Ann", "Title": "AE", "Team": "Sales", "BaseSalary": "50,000.00", "BonusTargetPct": 0.2},
        {"EmployeeID": "E2", "Name": "Bob", "Title": "AE", "Team": "Sales", "BaseSalary": 40000, "BonusTargetPct": 0.1},
        {"EmployeeID": 3.0, "Name": "Cid", "Title": "Engineer", "Team": "Ops", "BaseSalary": 60000, "BonusTargetPct": 0.1},
    ]


@pytest.fixture
def history_rows():
    return [
        {"EmployeeID": "E1", "Period": "Q3 '25"},
        {"EmployeeID": "E1", "Period": "Q2 '25"},
        {"EmployeeID": "E2", "Period": "Q3 '25"},
        {"EmployeeID": "3", "Period": "Q3 '25"},
    ]


@pytest.fixture
def kpi_data_rows():
    return [
        {"EmployeeID": "E1", "Period": "Q3 '25", "KPI_ID": "rev", "AchievementPercent": 90},
        {"EmployeeID": "E1", "Period": "Q3 '25", "KPI_ID": "nps", "AchievementPercent": 50},
        {"EmployeeID": "E1", "Period": "Q2 '25", "KPI_ID": "rev", "AchievementPercent": 64},
        {"EmployeeID": "E1", "Period": "Q2 '25", "KPI_ID": "nps", "AchievementPercent": 64},
        {"EmployeeID": "E2", "Period": "Q3 '25", "KPI_ID": "rev", "AchievementPercent": 100},
        {"EmployeeID": "E2", "Period": "Q3 '25", "KPI_ID": "nps", "AchievementPercent": 100},
        {"EmployeeID": "3", "Period": "Q3 '25", "KPI_ID": "sla", "AchievementPercent": 50},
    ]


@pytest.fixture
def graph(teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows):
    return normalize(teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows)


def write_workbook(sheets):
    """Serialize ``{sheet name: rows}`` to xlsx bytes."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()


@pytest.fixture
def make_workbook():
    return write_workbook


@pytest.fixture
def workbook_bytes(teams_rows, kpi_rows, employee_rows, history_rows, kpi_data_rows):
    return write_workbook(
        {
            "Teams": teams_rows,
            "KPIs": kpi_rows,
            "Employees": employee_rows,
            "KPIHistory": history_rows,
            "KPIData": kpi_data_rows,
            "Notes": [{"Anything": "ignored"}],
        }
    )
