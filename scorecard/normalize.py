"""Build the entity graph from the five workbook row sources.

Rows are loosely typed (``{column header: cell value}``). Structural problems
raise; row-level defects are dropped or defaulted so a single bad row never
aborts an import.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from scorecard.errors import NoRecognizedSheetError, NoTeamsResolvedError
from scorecard.models import (
    DIRECTION_HIGHER,
    DIRECTION_LOWER,
    Employee,
    EntityGraph,
    KpiDefinition,
    Manager,
    PeriodRecord,
    TeamSettings,
)
from scorecard.parsing import clean_key, clean_text, parse_amount, round_half_up
from scorecard.periods import PERIODS, period_rank
from scorecard.scoring import estimate_bonus, kpi_weight_total, weighted_score, weights_balanced

logger = logging.getLogger(__name__)

Rows = Optional[Iterable[Mapping[str, object]]]

TEAMS_COLUMNS = ["Team", "BonusPoolEUR", "ManagerName", "ManagerTitle"]
KPI_COLUMNS = ["Team", "KPI_ID", "Name", "Description", "Weight", "Target", "Unit", "Source", "Direction"]
EMPLOYEE_COLUMNS = ["EmployeeID", "Name", "Title", "Team", "BaseSalary", "BonusTargetPct"]
HISTORY_COLUMNS = ["EmployeeID", "Period"]
KPI_DATA_COLUMNS = ["EmployeeID", "Period", "KPI_ID", "AchievementPercent"]

DEFAULT_KPI_SOURCE = "Manual"

Achievements = Dict[str, Dict[str, Dict[str, float]]]


def to_frame(rows: Rows, columns: Sequence[str]) -> pd.DataFrame:
    """Copy rows into an object-typed frame holding exactly ``columns``."""
    records = [dict(r) for r in (rows or [])]
    df = pd.DataFrame.from_records(records) if records else pd.DataFrame()
    for col in columns:
        if col not in df.columns:
            df[col] = None
    return df[list(columns)].astype(object).reset_index(drop=True)


def text_columns(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        df[col] = df[col].map(clean_text).astype(object)
    return df


def key_columns(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        df[col] = df[col].map(clean_key).astype(object)
    return df


def amount_columns(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        df[col] = df[col].map(parse_amount).astype(float)
    return df


def parse_direction(value: object) -> str:
    return DIRECTION_LOWER if clean_text(value).lower().startswith("lower") else DIRECTION_HIGHER


def kpi_id_for(team: str, raw_id: object, name: str) -> str:
    return clean_key(raw_id) or f"{team}_{name}"


# ---------------- Team universe / settings ----------------
def resolve_teams(teams: pd.DataFrame, kpis: pd.DataFrame, employees: pd.DataFrame) -> Tuple[str, ...]:
    seen = pd.concat([teams["Team"], kpis["Team"], employees["Team"]], ignore_index=True)
    return tuple(str(t) for t in pd.unique(seen) if t)


def build_team_settings(
    teams: pd.DataFrame, universe: Sequence[str]
) -> Tuple[Dict[str, TeamSettings], Dict[str, Manager]]:
    settings: Dict[str, TeamSettings] = {}
    managers: Dict[str, Manager] = {}
    rows = teams[teams["Team"].ne("")].drop_duplicates(subset=["Team"], keep="last")
    for row in rows.to_dict(orient="records"):
        team = row["Team"]
        settings[team] = TeamSettings(bonus_pool=float(row["BonusPoolEUR"]))
        managers[team] = Manager(name=row["ManagerName"], title=row["ManagerTitle"])
    for team in universe:
        settings.setdefault(team, TeamSettings())
        managers.setdefault(team, Manager())
    return settings, managers


# ---------------- KPI catalog ----------------
def build_kpi_catalog(kpis: pd.DataFrame) -> Dict[str, Tuple[KpiDefinition, ...]]:
    catalog: Dict[str, List[KpiDefinition]] = {}
    for row in kpis.to_dict(orient="records"):
        team = row["Team"]
        if not team:
            logger.debug("Dropping KPI row without team: %s", row.get("Name"))
            continue
        catalog.setdefault(team, []).append(
            KpiDefinition(
                id=kpi_id_for(team, row["KPI_ID"], row["Name"]),
                team=team,
                name=row["Name"],
                description=row["Description"],
                weight=float(row["Weight"]),
                target=float(row["Target"]),
                unit=row["Unit"],
                source=row["Source"] or DEFAULT_KPI_SOURCE,
                direction=parse_direction(row["Direction"]),
            )
        )
    return {team: tuple(items) for team, items in catalog.items()}


# ---------------- Achievements / history ----------------
def build_achievements(kpi_data: pd.DataFrame) -> Achievements:
    """Group KPIData rows as employee -> period -> KPI id -> achievement fraction."""
    out: Achievements = {}
    valid = kpi_data[kpi_data["EmployeeID"].ne("") & kpi_data["Period"].ne("") & kpi_data["KPI_ID"].ne("")]
    dropped = len(kpi_data) - len(valid)
    if dropped:
        logger.debug("Dropped %d KPIData rows missing employee, period or KPI id", dropped)
    cols = ["EmployeeID", "Period", "KPI_ID", "AchievementPercent"]
    for emp_id, period, kpi_id, pct in valid[cols].itertuples(index=False, name=None):
        out.setdefault(emp_id, {}).setdefault(period, {})[kpi_id] = float(pct) / 100.0
    return out


def build_history_periods(history: pd.DataFrame) -> Dict[str, List[str]]:
    """Distinct periods per employee in first-seen order; repeated rows coalesce."""
    valid = history[history["EmployeeID"].ne("") & history["Period"].ne("")]
    valid = valid.drop_duplicates(subset=["EmployeeID", "Period"], keep="first")
    periods: Dict[str, List[str]] = {}
    for emp_id, period in valid[["EmployeeID", "Period"]].itertuples(index=False, name=None):
        periods.setdefault(emp_id, []).append(period)
    return periods


def build_period_records(
    employee_row: Mapping[str, object],
    periods: Sequence[str],
    achievements: Mapping[str, Mapping[str, float]],
    kpis: Sequence[KpiDefinition],
) -> Tuple[PeriodRecord, ...]:
    records: List[PeriodRecord] = []
    for period in periods:
        kpi_values = dict(achievements.get(period, {}))
        score = weighted_score(kpi_values, kpis)
        bonus = estimate_bonus(float(employee_row["BaseSalary"]), float(employee_row["BonusTargetPct"]), score)
        records.append(PeriodRecord(period=period, kpis=kpi_values, score=score, bonus_paid=round_half_up(bonus, 0)))
    records.sort(key=lambda r: period_rank(r.period, PERIODS))
    return tuple(records)


def build_employees(
    employees: pd.DataFrame,
    catalog: Mapping[str, Sequence[KpiDefinition]],
    history_periods: Mapping[str, Sequence[str]],
    achievements: Achievements,
) -> Tuple[Employee, ...]:
    out: List[Employee] = []
    seen_ids = set()
    for row in employees.to_dict(orient="records"):
        emp_id, team = row["EmployeeID"], row["Team"]
        if not emp_id or not team:
            logger.debug("Dropping employee row without id or team: %r", row.get("Name"))
            continue
        if emp_id in seen_ids:
            logger.debug("Ignoring duplicate employee id %s", emp_id)
            continue
        seen_ids.add(emp_id)
        history = build_period_records(
            row,
            history_periods.get(emp_id, []),
            achievements.get(emp_id, {}),
            catalog.get(team, ()),
        )
        out.append(
            Employee(
                id=emp_id,
                team=team,
                name=row["Name"],
                title=row["Title"],
                base_salary=float(row["BaseSalary"]),
                bonus_target_pct=float(row["BonusTargetPct"]),
                history=history,
            )
        )
    return tuple(out)


# ---------------- Public API ----------------
def normalize(
    teams_rows: Rows,
    kpi_rows: Rows,
    employee_rows: Rows,
    history_rows: Rows = None,
    kpi_data_rows: Rows = None,
) -> EntityGraph:
    teams = to_frame(teams_rows, TEAMS_COLUMNS)
    kpis = to_frame(kpi_rows, KPI_COLUMNS)
    employees = to_frame(employee_rows, EMPLOYEE_COLUMNS)
    history = to_frame(history_rows, HISTORY_COLUMNS)
    kpi_data = to_frame(kpi_data_rows, KPI_DATA_COLUMNS)

    if teams.empty and kpis.empty and employees.empty:
        raise NoRecognizedSheetError()

    teams = amount_columns(text_columns(teams, ["Team", "ManagerName", "ManagerTitle"]), ["BonusPoolEUR"])
    kpis = text_columns(kpis, ["Team", "Name", "Description", "Unit", "Source"])
    kpis = amount_columns(kpis, ["Weight", "Target"])
    employees = key_columns(text_columns(employees, ["Name", "Title", "Team"]), ["EmployeeID"])
    employees = amount_columns(employees, ["BaseSalary", "BonusTargetPct"])
    history = key_columns(history, ["EmployeeID", "Period"])
    kpi_data = amount_columns(key_columns(kpi_data, ["EmployeeID", "Period", "KPI_ID"]), ["AchievementPercent"])

    universe = resolve_teams(teams, kpis, employees)
    if not universe:
        raise NoTeamsResolvedError()

    team_settings, managers = build_team_settings(teams, universe)
    catalog = build_kpi_catalog(kpis)
    achievements = build_achievements(kpi_data)
    history_periods = build_history_periods(history)
    people = build_employees(employees, catalog, history_periods, achievements)

    for team, items in catalog.items():
        if not weights_balanced(items):
            logger.warning("KPI weights for team %r sum to %.3f, expected 1.0", team, kpi_weight_total(items))

    logger.info(
        "Normalized %d teams, %d KPIs, %d employees (%d dropped)",
        len(universe),
        sum(len(v) for v in catalog.values()),
        len(people),
        len(employees) - len(people),
    )
    return EntityGraph(
        teams=universe,
        kpi_catalog=catalog,
        employees=people,
        team_settings=team_settings,
        managers=managers,
    )
