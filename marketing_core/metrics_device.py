from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from marketing_core.aggregate import aggregate_devices
from marketing_core.charts import doughnut_chart, grouped_bar_chart, to_vega_spec
from marketing_core.data import format_currency, format_number, format_rate
from marketing_core.filters import DashboardFilters

CTR_LABEL = "CTR (%)"
CONVERSION_RATE_LABEL = "Conversion Rate (%)"


def compute_device(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    devices = aggregate_devices(ctx.get("campaigns", []))
    if devices.empty:
        return {"filters": asdict(filters), "devices": [], "cards": {}, "table": [], "metrics": [], "charts": {}}

    order = devices["device"].tolist()
    cards = {
        r["device"]: {
            "total_spend": format_currency(r["spend"]),
            "total_revenue": format_currency(r["revenue"]),
            "total_conversions": format_number(r["conversions"]),
        }
        for r in devices.to_dict(orient="records")
    }
    table = [
        {
            "device": r["device"],
            "revenue": format_currency(r["revenue"]),
            "spend": format_currency(r["spend"]),
            "impressions": format_number(r["impressions"]),
            "clicks": format_number(r["clicks"]),
            "conversions": format_number(r["conversions"]),
            "ctr": format_rate(r["ctr"]),
            "conversion_rate": format_rate(r["conversion_rate"]),
        }
        for r in devices.to_dict(orient="records")
    ]

    rates = devices[["device", "ctr", "conversion_rate"]].rename(
        columns={"ctr": CTR_LABEL, "conversion_rate": CONVERSION_RATE_LABEL}
    )
    rates_long = rates.melt(id_vars="device", var_name="metric", value_name="rate")

    charts = {
        "revenue_by_device": to_vega_spec(
            doughnut_chart(devices[["device", "revenue"]], theta="revenue", category="device", title="Revenue by Device", order=order)
        ),
        "performance_by_device": to_vega_spec(
            grouped_bar_chart(
                rates_long,
                x="device",
                group="metric",
                y="rate",
                title="CTR & Conversion Rate by Device",
                order=order,
            )
        ),
    }

    return {
        "filters": asdict(filters),
        "devices": order,
        "cards": cards,
        "table": table,
        "metrics": devices.drop(columns=["weighted_ctr", "weighted_conversion_rate"]).to_dict(orient="records"),
        "charts": charts,
    }
