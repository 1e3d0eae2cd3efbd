from __future__ import annotations

from typing import Dict, Protocol, Tuple


class NoteStore(Protocol):
    """Free-text notes keyed by (employee id, period, KPI id)."""

    def get_note(self, employee_id: str, period: str, kpi_id: str) -> str: ...

    def set_note(self, employee_id: str, period: str, kpi_id: str, note: str) -> None: ...

    def notes_for(self, employee_id: str, period: str) -> Dict[str, str]: ...


class InMemoryNoteStore:
    def __init__(self) -> None:
        self._notes: Dict[Tuple[str, str, str], str] = {}

    def get_note(self, employee_id: str, period: str, kpi_id: str) -> str:
        return self._notes.get((employee_id, period, kpi_id), "")

    def set_note(self, employee_id: str, period: str, kpi_id: str, note: str) -> None:
        key = (employee_id, period, kpi_id)
        if note:
            self._notes[key] = note
        else:
            self._notes.pop(key, None)

    def notes_for(self, employee_id: str, period: str) -> Dict[str, str]:
        return {k: v for (e, p, k), v in self._notes.items() if e == employee_id and p == period}
