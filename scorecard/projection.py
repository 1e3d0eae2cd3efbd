from __future__ import annotations

import csv
import re
from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from scorecard.aggregation import score_delta
from scorecard.filters import DEFAULT_SETTINGS, STATUS_ALL, ScoringSettings
from scorecard.models import Employee
from scorecard.parsing import round_int
from scorecard.scoring import bonus_for, performance_tag, score_for

EXPORT_COLUMNS = {
    "name": "Name",
    "title": "Title",
    "team": "Team",
    "achievement_pct": "Achievement %",
    "est_bonus": "Est. Bonus EUR",
    "status": "Status",
}


@dataclass(frozen=True)
class ProjectedRow:
    employee_id: str
    name: str
    title: str
    team: str
    achievement_pct: int
    est_bonus: int
    status: str
    score: float
    delta_pp: Optional[float] = None


def project(
    employees: Iterable[Employee],
    team: str,
    period: str,
    status_filter: str = STATUS_ALL,
    settings: ScoringSettings = DEFAULT_SETTINGS,
) -> List[ProjectedRow]:
    rows: List[ProjectedRow] = []
    for emp in employees:
        if emp.team != team:
            continue
        score = score_for(emp, period)
        status = performance_tag(score, settings)
        if status_filter != STATUS_ALL and status != status_filter:
            continue
        rows.append(
            ProjectedRow(
                employee_id=emp.id,
                name=emp.name,
                title=emp.title,
                team=emp.team,
                achievement_pct=round_int(score * 100),
                est_bonus=round_int(bonus_for(emp, period, settings)),
                status=status,
                score=score,
                delta_pp=score_delta(emp, period),
            )
        )
    # sorted() is stable; equal names keep roster order.
    return sorted(rows, key=lambda r: r.name)


def projection_frame(rows: Sequence[ProjectedRow]) -> pd.DataFrame:
    columns = list(ProjectedRow.__dataclass_fields__)
    return pd.DataFrame([asdict(r) for r in rows], columns=columns)


def export_frame(rows: Sequence[ProjectedRow]) -> pd.DataFrame:
    df = projection_frame(rows)[list(EXPORT_COLUMNS)]
    return df.rename(columns=EXPORT_COLUMNS)


def export_csv(rows: Sequence[ProjectedRow]) -> str:
    """Serialize rows as CSV with every field double-quoted (header included)."""
    return export_frame(rows).to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def export_filename(team: str, period: str) -> str:
    stem = re.sub(r"[^\w\-' ]+", "_", f"{team}_{period}", flags=re.ASCII).strip()
    return f"{stem}_team_report.csv"
