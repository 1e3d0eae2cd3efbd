from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

DIRECTION_HIGHER = "higher"
DIRECTION_LOWER = "lower"


@dataclass(frozen=True)
class TeamSettings:
    bonus_pool: float = 0.0


@dataclass(frozen=True)
class Manager:
    name: str = ""
    title: str = ""


@dataclass(frozen=True)
class KpiDefinition:
    id: str
    team: str
    name: str = ""
    description: str = ""
    weight: float = 0.0
    target: float = 0.0
    unit: str = ""
    source: str = "Manual"
    direction: str = DIRECTION_HIGHER


@dataclass(frozen=True)
class PeriodRecord:
    """One reporting period of an employee.

    ``kpis`` maps KPI id -> achievement fraction (1.0 == 100%). ``bonus_paid``
    is the recorded payout; ``None`` means no payout was recorded and the
    bonus is estimated from the score when displayed.
    """

    period: str
    kpis: Dict[str, float] = field(default_factory=dict)
    score: float = 0.0
    bonus_paid: Optional[float] = None


@dataclass(frozen=True)
class Employee:
    id: str
    team: str
    name: str = ""
    title: str = ""
    base_salary: float = 0.0
    bonus_target_pct: float = 0.0
    history: Tuple[PeriodRecord, ...] = ()

    def record(self, period: str) -> Optional[PeriodRecord]:
        for rec in self.history:
            if rec.period == period:
                return rec
        return None


@dataclass(frozen=True)
class EntityGraph:
    teams: Tuple[str, ...] = ()
    kpi_catalog: Dict[str, Tuple[KpiDefinition, ...]] = field(default_factory=dict)
    employees: Tuple[Employee, ...] = ()
    team_settings: Dict[str, TeamSettings] = field(default_factory=dict)
    managers: Dict[str, Manager] = field(default_factory=dict)

    def kpis_for(self, team: str) -> Tuple[KpiDefinition, ...]:
        return self.kpi_catalog.get(team, ())

    def employee(self, employee_id: str) -> Optional[Employee]:
        for emp in self.employees:
            if emp.id == employee_id:
                return emp
        return None

    def members(self, team: str) -> Tuple[Employee, ...]:
        return tuple(e for e in self.employees if e.team == team)
