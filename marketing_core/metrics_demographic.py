from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from marketing_core.aggregate import aggregate_demographics, age_group_table, totals_by_age_group
from marketing_core.charts import REVENUE_COLOR, SPEND_COLOR, bar_chart, to_vega_spec
from marketing_core.data import format_currency, format_number, format_rate
from marketing_core.filters import DashboardFilters

DISPLAY_GENDERS = ("male", "female")


def _table_rows(summary, gender: str) -> List[Dict[str, str]]:
    table = age_group_table(summary, gender)
    return [
        {
            "age_group": str(r["age_group"]),
            "impressions": format_number(r["impressions"]),
            "clicks": format_number(r["clicks"]),
            "conversions": format_number(r["conversions"]),
            "ctr": format_rate(r["ctr"]),
            "conversion_rate": format_rate(r["conversion_rate"]),
        }
        for r in table.to_dict(orient="records")
    ]


def compute_demographic(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    summary = aggregate_demographics(ctx.get("campaigns", []))

    gender_metrics: Dict[str, Dict[str, float]] = {g: {"clicks": 0.0, "spend": 0.0, "revenue": 0.0} for g in DISPLAY_GENDERS}
    for r in summary.genders.to_dict(orient="records"):
        gender_metrics[r["gender"]] = {
            "clicks": float(r["clicks"]),
            "spend": float(r["spend"]),
            "revenue": float(r["revenue"]),
        }

    cards = {
        gender: {
            "total_clicks": format_number(m["clicks"]),
            "total_spend": format_currency(m["spend"], 2),
            "total_revenue": format_currency(m["revenue"], 2),
        }
        for gender, m in gender_metrics.items()
    }
    tables = {gender: _table_rows(summary, gender) for gender in gender_metrics}

    charts: Dict[str, Any] = {}
    if summary.age_axis:
        spend = totals_by_age_group(summary, "spend")
        revenue = totals_by_age_group(summary, "revenue")
        charts["spend_by_age_group"] = to_vega_spec(
            bar_chart(spend, x="age_group", y="spend", title="Spend by Age Group", order=summary.age_axis, color=SPEND_COLOR)
        )
        charts["revenue_by_age_group"] = to_vega_spec(
            bar_chart(revenue, x="age_group", y="revenue", title="Revenue by Age Group", order=summary.age_axis, color=REVENUE_COLOR)
        )

    return {
        "filters": asdict(filters),
        "age_groups": list(summary.age_axis),
        "gender_metrics": gender_metrics,
        "cards": cards,
        "tables": tables,
        "charts": charts,
    }
