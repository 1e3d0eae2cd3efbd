from __future__ import annotations

import hashlib
import io
import logging
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Union

import pandas as pd

from scorecard.errors import InvalidFileTypeError, WorkbookReadError
from scorecard.models import EntityGraph
from scorecard.normalize import (
    EMPLOYEE_COLUMNS,
    HISTORY_COLUMNS,
    KPI_COLUMNS,
    KPI_DATA_COLUMNS,
    TEAMS_COLUMNS,
    normalize,
)

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".xlsx", ".xls"}

TEAMS_SHEET = "Teams"
KPIS_SHEET = "KPIs"
EMPLOYEES_SHEET = "Employees"
HISTORY_SHEET = "KPIHistory"
KPI_DATA_SHEET = "KPIData"
RECOGNIZED_SHEETS = [TEAMS_SHEET, KPIS_SHEET, EMPLOYEES_SHEET, HISTORY_SHEET, KPI_DATA_SHEET]
SHEET_COLUMNS = {
    TEAMS_SHEET: TEAMS_COLUMNS,
    KPIS_SHEET: KPI_COLUMNS,
    EMPLOYEES_SHEET: EMPLOYEE_COLUMNS,
    HISTORY_SHEET: HISTORY_COLUMNS,
    KPI_DATA_SHEET: KPI_DATA_COLUMNS,
}
TEMPLATE_FILENAME = "kpi_scorecard_template.xlsx"

WorkbookSource = Union[str, Path, bytes, BinaryIO]
SheetRows = Dict[str, List[Dict[str, object]]]


def check_workbook_name(filename: str) -> None:
    if Path(str(filename or "")).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise InvalidFileTypeError()


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, object]]:
    """Rows as ``{header: value}`` with blank cells as ``None`` and fully blank rows removed."""
    if df.empty:
        return []
    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def workbook_fingerprint(content: bytes) -> str:
    """Content hash of an uploaded workbook; edits of equal size still differ."""
    return hashlib.sha256(content).hexdigest()


def read_workbook_sheets(source: WorkbookSource) -> SheetRows:
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        xls = pd.ExcelFile(source)
    except Exception as exc:
        raise WorkbookReadError(f"The workbook could not be read: {exc}") from exc

    sheets: SheetRows = {}
    for name in RECOGNIZED_SHEETS:
        if name not in xls.sheet_names:
            sheets[name] = []
            continue
        sheets[name] = frame_to_rows(pd.read_excel(xls, sheet_name=name))
        logger.debug("Read %d rows from sheet %s", len(sheets[name]), name)
    return sheets


def normalize_sheets(sheets: SheetRows) -> EntityGraph:
    return normalize(
        sheets.get(TEAMS_SHEET, []),
        sheets.get(KPIS_SHEET, []),
        sheets.get(EMPLOYEES_SHEET, []),
        sheets.get(HISTORY_SHEET, []),
        sheets.get(KPI_DATA_SHEET, []),
    )


def load_workbook(source: WorkbookSource, filename: Optional[str] = None) -> EntityGraph:
    """Validate, read and normalize a workbook into a new entity graph."""
    if filename is None and isinstance(source, (str, Path)):
        filename = str(source)
    check_workbook_name(filename or "")
    graph = normalize_sheets(read_workbook_sheets(source))
    logger.info("Imported %s: %d teams, %d employees", filename, len(graph.teams), len(graph.employees))
    return graph


def template_workbook() -> bytes:
    """An empty workbook with every recognized sheet and its header row."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name in RECOGNIZED_SHEETS:
            pd.DataFrame(columns=SHEET_COLUMNS[name]).to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()
