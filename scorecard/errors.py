from __future__ import annotations


class ScorecardError(Exception):
    """Base class for errors surfaced to the user as a single message."""

    message = "Import failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class InvalidFileTypeError(ScorecardError):
    message = "Please select a valid Excel file (.xlsx or .xls)."


class WorkbookReadError(ScorecardError):
    message = "The workbook could not be read."


class EmptyDatasetError(ScorecardError):
    message = "No valid data found. Please check your Excel file format."


class NoRecognizedSheetError(EmptyDatasetError):
    message = (
        "No valid data found. Please ensure your Excel file contains at least one of: "
        "Teams, KPIs, or Employees sheets."
    )


class NoTeamsResolvedError(EmptyDatasetError):
    message = "No valid teams found in the data."


class UnknownTeamError(ScorecardError, KeyError):
    message = "Unknown team."

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else self.message


class UnknownEmployeeError(ScorecardError, KeyError):
    message = "Unknown employee."

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else self.message


class InvalidTransitionError(ScorecardError):
    message = "That action is not available on the current screen."
