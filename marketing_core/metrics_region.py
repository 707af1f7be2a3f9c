from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from marketing_core.charts import region_map_chart, to_vega_spec
from marketing_core.data import format_currency, load_regional_performance
from marketing_core.filters import DashboardFilters

MAP_CENTER = (25.0, 50.0)
MAP_ZOOM = 5
MARKER_RADIUS_DIVISOR = 20.0
TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = "&copy; OpenStreetMap contributors"


def marker_radius(revenue: pd.Series) -> pd.Series:
    """Marker radius grows with the square root of revenue; negative revenue draws nothing."""
    return np.sqrt(revenue.clip(lower=0)) / MARKER_RADIUS_DIVISOR


def compute_region(filters: DashboardFilters, ctx: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    regions: pd.DataFrame = (ctx or {}).get("regions")
    if regions is None:
        regions = load_regional_performance()
    regions = regions.copy()

    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "map": {"center": list(MAP_CENTER), "zoom": MAP_ZOOM, "tile_url": TILE_URL, "attribution": TILE_ATTRIBUTION},
        "regions": [],
        "table": [],
        "charts": {},
    }
    if regions.empty:
        return payload

    regions["marker_radius"] = marker_radius(regions["revenue"])
    payload["regions"] = regions.to_dict(orient="records")
    payload["table"] = [
        {
            "region": r["region"],
            "country": r["country"],
            "revenue": format_currency(r["revenue"], 3),
            "spend": format_currency(r["spend"], 3),
        }
        for r in payload["regions"]
    ]
    payload["charts"] = {"region_map": to_vega_spec(region_map_chart(regions))}
    return payload
