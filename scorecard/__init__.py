"""Core (UI-agnostic) scorecard logic.

This package contains:
- workbook loading (XLSX -> rows -> entity graph)
- amount parsing and row normalization
- scoring, bonus estimation and team aggregation
- filter normalization and the tabular projection / CSV export
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
