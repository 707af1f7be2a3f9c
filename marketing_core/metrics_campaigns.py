from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from marketing_core.aggregate import aggregate_campaigns, aggregate_weekly, campaign_weekly
from marketing_core.charts import line_chart, to_vega_spec
from marketing_core.data import format_currency
from marketing_core.filters import DashboardFilters


def compute_campaigns(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    campaigns = ctx.get("campaigns", [])
    labels = ctx.get("campaign_labels")
    summary = aggregate_campaigns(campaigns, labels)
    if summary.empty:
        return {"filters": asdict(filters), "kpis": {}, "top": [], "charts": {}}

    total_spend = float(summary["spend"].sum())
    total_revenue = float(summary["revenue"].sum())
    kpis = {
        "campaign_count": int(len(summary)),
        "total_spend": total_spend,
        "total_revenue": total_revenue,
        "roas": total_revenue / total_spend if total_spend else 0.0,
    }

    top = summary.sort_values("revenue", ascending=False, kind="mergesort").head(filters.top_n).reset_index(drop=True)
    top.insert(0, "rank", top.index + 1)
    top["spend_display"] = top["spend"].apply(format_currency)
    top["revenue_display"] = top["revenue"].apply(format_currency)
    top["roas_display"] = top["roas"].apply(lambda v: f"{v:.2f}x")

    charts: Dict[str, Any] = {}
    weekly = campaign_weekly(ctx.get("weekly_campaigns", campaigns), labels)
    weekly = weekly[weekly["campaign"].isin(set(top["campaign"]))]
    if not weekly.empty:
        order = aggregate_weekly(ctx.get("weekly_campaigns", campaigns))["week_start"].tolist()
        charts["revenue_trend"] = to_vega_spec(
            line_chart(weekly, x="week_start", y="revenue", title="Campaign Revenue by Week", order=order, series="campaign")
        )

    return {
        "filters": asdict(filters),
        "kpis": kpis,
        "top": top.to_dict(orient="records"),
        "charts": charts,
    }
