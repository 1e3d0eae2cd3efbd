from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

from scorecard.models import DIRECTION_HIGHER

alt.data_transformers.disable_max_rows()

TAG_COLORS = alt.Scale(
    domain=["Great", "Average", "Needs attention"],
    range=["#10b981", "#f59e0b", "#ef4444"],
)


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def achievement_bar_chart(rows: pd.DataFrame) -> alt.Chart:
    """Achievement % per employee, coloured by performance tag."""
    hover = alt.selection_point(fields=["name"], on="mouseover", empty="all")
    return (
        alt.Chart(rows)
        .mark_bar()
        .encode(
            x=alt.X("name:N", title="Employee", sort=None, axis=alt.Axis(grid=False)),
            y=alt.Y("achievement_pct:Q", title="Achievement %", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("status:N", title="Status", scale=TAG_COLORS),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[
                alt.Tooltip("name:N", title="Employee"),
                alt.Tooltip("achievement_pct:Q", title="Achievement %"),
                alt.Tooltip("est_bonus:Q", title="Est. Bonus", format=",.0f"),
                alt.Tooltip("status:N", title="Status"),
            ],
        )
        .add_params(hover)
    )


def score_trend_chart(history: pd.DataFrame) -> alt.Chart:
    """Area chart of overall achievement across periods, oldest on the left."""
    return (
        alt.Chart(history)
        .mark_area(line={"color": "#6366f1"}, opacity=0.3, point={"filled": True})
        .encode(
            x=alt.X("period:N", title="Period", sort=alt.EncodingSortField(field="order", order="ascending")),
            y=alt.Y("achievement_pct:Q", title="Achievement %", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[
                alt.Tooltip("period:N", title="Period"),
                alt.Tooltip("achievement_pct:Q", title="Achievement %", format=".0f"),
                alt.Tooltip("bonus:Q", title="Bonus", format=",.0f"),
            ],
        )
    )


def kpi_breakdown_chart(kpis: pd.DataFrame) -> alt.Chart:
    """Horizontal bars of per-KPI achievement with a 100% reference rule."""
    base = alt.Chart(kpis)
    bars = base.mark_bar().encode(
        y=alt.Y("name:N", title="KPI", sort=None),
        x=alt.X("achievement_pct:Q", title="Achievement %"),
        color=alt.condition(
            alt.datum.direction == DIRECTION_HIGHER,
            alt.value("#10b981"),
            alt.value("#f59e0b"),
        ),
        tooltip=[
            alt.Tooltip("name:N", title="KPI"),
            alt.Tooltip("weight_pct:Q", title="Weight %", format=".0f"),
            alt.Tooltip("achievement_pct:Q", title="Achievement %", format=".0f"),
        ],
    )
    rule = alt.Chart(pd.DataFrame({"x": [100]})).mark_rule(strokeDash=[4, 4]).encode(x="x:Q")
    return bars + rule
