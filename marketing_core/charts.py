from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

THEME_NAME = "campaign_dark"

SPEND_COLOR = "rgba(75, 192, 192, 0.6)"
REVENUE_COLOR = "rgba(153, 102, 255, 0.6)"
DEVICE_COLORS = ["rgba(59, 130, 246, 0.7)", "rgba(16, 185, 129, 0.7)", "rgba(239, 68, 68, 0.7)"]

_CHARTS_CONFIGURED = False


def _dashboard_theme() -> Dict[str, Any]:
    return {
        "config": {
            "background": "#1F2937",
            "title": {"color": "#F9FAFB"},
            "axis": {
                "labelColor": "#9CA3AF",
                "titleColor": "#D1D5DB",
                "gridColor": "rgba(255, 255, 255, 0.1)",
                "domainColor": "#4B5563",
            },
            "legend": {"labelColor": "#D1D5DB", "titleColor": "#D1D5DB", "orient": "top"},
            "view": {"stroke": None},
        }
    }


def configure_charts() -> bool:
    """Apply process-wide Altair settings once.

    Returns True when the settings were applied by this call, False when an
    earlier call already did it.
    """
    global _CHARTS_CONFIGURED
    if _CHARTS_CONFIGURED:
        return False
    alt.data_transformers.disable_max_rows()
    alt.theme.register(THEME_NAME, enable=True)(_dashboard_theme)
    _CHARTS_CONFIGURED = True
    return True


def charts_configured() -> bool:
    return _CHARTS_CONFIGURED


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    configure_charts()
    return chart.to_dict()


def bar_chart(
    df: pd.DataFrame,
    *,
    x: str,
    y: str,
    title: str,
    order: Optional[Sequence[str]] = None,
    color: str = SPEND_COLOR,
    value_format: str = "$,.2f",
) -> alt.Chart:
    return (
        alt.Chart(df, title=title)
        .mark_bar(color=color)
        .encode(
            x=alt.X(f"{x}:N", title=None, sort=list(order) if order is not None else None, axis=alt.Axis(grid=False)),
            y=alt.Y(f"{y}:Q", title=None, axis=alt.Axis(format=value_format, gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[alt.Tooltip(f"{x}:N"), alt.Tooltip(f"{y}:Q", format=value_format)],
        )
    )


def line_chart(
    df: pd.DataFrame,
    *,
    x: str,
    y: str,
    title: str,
    order: Optional[Sequence[str]] = None,
    series: Optional[str] = None,
    color: str = "rgb(75, 192, 192)",
    value_format: str = "$,.0f",
    tooltip_extra: Optional[List[alt.Tooltip]] = None,
) -> alt.Chart:
    """Filled line chart over an ordinal x axis, one line per ``series`` value when given."""
    encoding: Dict[str, Any] = {
        "x": alt.X(f"{x}:O", title=None, sort=list(order) if order is not None else None, axis=alt.Axis(labelAngle=-45, grid=False)),
        "y": alt.Y(f"{y}:Q", title=None, axis=alt.Axis(format=value_format, gridDash=[4, 4], domain=False, ticks=False)),
        "tooltip": list(tooltip_extra or []) + [alt.Tooltip(f"{y}:Q", format=value_format)],
    }
    if series is None:
        mark = alt.Chart(df, title=title).mark_area(
            line={"color": color},
            color=color,
            opacity=0.2,
            interpolate="monotone",
            point={"filled": True, "color": color},
        )
        return mark.encode(**encoding)

    hover = alt.selection_point(fields=[series], on="mouseover", empty="all")
    encoding["color"] = alt.Color(f"{series}:N", title=None)
    encoding["opacity"] = alt.condition(hover, alt.value(1), alt.value(0.2))
    encoding["tooltip"] = [alt.Tooltip(f"{series}:N")] + encoding["tooltip"]
    return (
        alt.Chart(df, title=title)
        .mark_line(point={"filled": True, "size": 60}, interpolate="monotone")
        .encode(**encoding)
        .add_params(hover)
    )


def doughnut_chart(df: pd.DataFrame, *, theta: str, category: str, title: str, order: Sequence[str]) -> alt.Chart:
    return (
        alt.Chart(df, title=title)
        .mark_arc(innerRadius=60, stroke="#1F2937", strokeWidth=2)
        .encode(
            theta=alt.Theta(f"{theta}:Q"),
            color=alt.Color(f"{category}:N", sort=list(order), scale=alt.Scale(domain=list(order), range=DEVICE_COLORS), title=None),
            order=alt.Order(f"{theta}:Q", sort="descending"),
            tooltip=[alt.Tooltip(f"{category}:N"), alt.Tooltip(f"{theta}:Q", format="$,.0f")],
        )
    )


def grouped_bar_chart(
    df: pd.DataFrame,
    *,
    x: str,
    group: str,
    y: str,
    title: str,
    order: Sequence[str],
    value_format: str = ".2f",
) -> alt.Chart:
    """Bars for each ``group`` value side by side within every ``x`` category (long-format input)."""
    return (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(
            x=alt.X(f"{x}:N", title=None, sort=list(order), axis=alt.Axis(grid=False)),
            xOffset=alt.XOffset(f"{group}:N"),
            y=alt.Y(f"{y}:Q", title=None, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color(f"{group}:N", title=None, scale=alt.Scale(range=[SPEND_COLOR, REVENUE_COLOR])),
            tooltip=[alt.Tooltip(f"{x}:N"), alt.Tooltip(f"{group}:N"), alt.Tooltip(f"{y}:Q", format=value_format)],
        )
    )


def region_map_chart(df: pd.DataFrame, *, title: str = "Revenue by Region") -> alt.Chart:
    """Circle markers at each region's coordinates, area derived from ``marker_radius``."""
    plotted = df.assign(marker_area=lambda d: math.pi * d["marker_radius"] ** 2)
    return (
        alt.Chart(plotted, title=title)
        .mark_circle(color="red", stroke="red", strokeWidth=1, opacity=0.6)
        .encode(
            longitude="lng:Q",
            latitude="lat:Q",
            size=alt.Size("marker_area:Q", scale=None, legend=None),
            tooltip=[
                alt.Tooltip("region:N", title="Region"),
                alt.Tooltip("country:N", title="Country"),
                alt.Tooltip("revenue:Q", title="Revenue", format="$,.2f"),
                alt.Tooltip("spend:Q", title="Spend", format="$,.2f"),
            ],
        )
        .project(type="mercator")
        .properties(height=600)
    )
