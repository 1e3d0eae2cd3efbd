from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from scorecard.periods import CURRENT_PERIOD


class DashboardFiltersModel(BaseModel):
    team: Optional[str] = None
    period: str = CURRENT_PERIOD
    status_filter: str = "All"


class KpiModel(BaseModel):
    id: Optional[str] = None
    name: str = ""
    description: str = ""
    weight: float = 0.0
    target: float = 0.0
    unit: str = ""
    source: str = "Manual"
    direction: str = "higher"


class KpiEditModel(BaseModel):
    kpis: List[KpiModel] = Field(default_factory=list)
    bonus_pool: Optional[float] = None


class NoteModel(BaseModel):
    employee_id: str
    period: str
    kpi_id: str
    note: str = ""
