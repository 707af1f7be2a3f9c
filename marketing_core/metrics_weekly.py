from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import altair as alt

from marketing_core.aggregate import aggregate_weekly
from marketing_core.charts import line_chart, to_vega_spec
from marketing_core.data import format_currency
from marketing_core.filters import DashboardFilters

REVENUE_LINE_COLOR = "rgb(75, 192, 192)"
SPEND_LINE_COLOR = "rgb(255, 99, 132)"


def compute_weekly(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    weekly = aggregate_weekly(ctx.get("weekly_campaigns", ctx.get("campaigns", [])))
    if weekly.empty:
        return {"filters": asdict(filters), "labels": [], "weeks": [], "table": [], "charts": {}}

    order = weekly["week_start"].tolist()
    week_tooltip = [alt.Tooltip("label:N", title="Week"), alt.Tooltip("week_end:N", title="Week End")]
    revenue_chart = line_chart(
        weekly,
        x="week_start",
        y="revenue",
        title="Weekly Revenue Over Time",
        order=order,
        color=REVENUE_LINE_COLOR,
        tooltip_extra=week_tooltip,
    )
    spend_chart = line_chart(
        weekly,
        x="week_start",
        y="spend",
        title="Weekly Spend Over Time",
        order=order,
        color=SPEND_LINE_COLOR,
        tooltip_extra=week_tooltip,
    )

    table = [
        {
            "week": r["label"],
            "week_start": r["week_start"],
            "week_end": r["week_end"] or "",
            "revenue": format_currency(r["revenue"]),
            "spend": format_currency(r["spend"]),
        }
        for r in weekly.to_dict(orient="records")
    ]
    return {
        "filters": asdict(filters),
        "labels": weekly["label"].tolist(),
        "weeks": weekly.to_dict(orient="records"),
        "table": table,
        "charts": {"revenue_by_week": to_vega_spec(revenue_chart), "spend_by_week": to_vega_spec(spend_chart)},
    }
