from __future__ import annotations

import math
import numbers
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import pandas as pd

_NON_NUMERIC = re.compile(r"[^0-9.,\-]")


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _resolve_separators(s: str) -> str:
    has_dot = "." in s
    has_comma = "," in s
    if has_dot and has_comma:
        # Whichever separator comes last is the decimal point.
        decimal_sep = "." if s.rfind(".") > s.rfind(",") else ","
        group_sep = "," if decimal_sep == "." else "."
        return s.replace(group_sep, "").replace(decimal_sep, ".")
    if has_comma:
        return s.replace(",", ".")
    return s


def parse_amount(raw: object) -> float:
    """Parse a numeric or currency cell such as ``"€ 43.810,04"`` or ``"1,234.56"``.

    Never raises: anything that cannot be read as a number becomes ``0.0``.
    Values that are already numeric are returned as floats unchanged.
    """
    if _is_missing(raw) or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, numbers.Real):
        out = float(raw)
        return out if math.isfinite(out) else 0.0

    s = _NON_NUMERIC.sub("", str(raw))
    if not s:
        return 0.0
    try:
        return float(_resolve_separators(s))
    except ValueError:
        return 0.0


def clean_text(value: object) -> str:
    if _is_missing(value):
        return ""
    s = str(value).strip()
    if s.lower() in {"nan", "none", "<na>"}:
        return ""
    return s


def clean_key(value: object) -> str:
    """Normalize an identifier cell; spreadsheet ids like ``101.0`` become ``"101"``."""
    if isinstance(value, numbers.Real) and not isinstance(value, bool) and not _is_missing(value):
        as_float = float(value)
        if as_float.is_integer():
            return str(int(as_float))
    return clean_text(value)


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def round_int(value: object) -> int:
    rounded = round_half_up(value, 0)
    return int(rounded) if rounded is not None else 0


def format_currency_0(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"€{float(value):,.0f}"


def format_percent_0(value: object) -> str:
    if value is None or pd.isna(value):
        return ""
    return f"{round_int(float(value) * 100)}%"


def format_delta_pp(value: Optional[float]) -> str:
    if value is None:
        return "—"
    return f"{'+' if value >= 0 else ''}{value:.1f}pp"
