from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from marketing_api.schemas import DashboardFiltersModel, MetaListResponse
from marketing_core.aggregate import (
    aggregate_campaigns,
    aggregate_devices,
    aggregate_weekly,
    age_group_axis,
    flatten_demographics,
)
from marketing_core.charts import configure_charts
from marketing_core.data import (
    MarketingDataUnavailable,
    load_regional_performance,
    prepare_context,
    require_marketing_data,
)
from marketing_core.filters import DashboardFilters, normalize_filters
from marketing_core.metrics_campaigns import compute_campaigns
from marketing_core.metrics_demographic import compute_demographic
from marketing_core.metrics_device import compute_device
from marketing_core.metrics_region import compute_region
from marketing_core.metrics_weekly import compute_weekly


app = FastAPI(title="Campaign Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)
configure_charts()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: DashboardFiltersModel) -> DashboardFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _view(name: str, filters: DashboardFiltersModel, compute: Callable[[DashboardFilters, Dict[str, Any]], Dict[str, Any]]) -> JSONResponse:
    try:
        data = require_marketing_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data)
        return _json(compute(f, ctx))
    except MarketingDataUnavailable as exc:
        logger.warning("%s: %s", name, exc)
        return _error(503, exc)
    except Exception as exc:
        logger.exception("%s failed", name)
        return _error(500, exc)


@app.get("/meta/campaigns", response_model=MetaListResponse)
def meta_campaigns():
    try:
        data = require_marketing_data()
        ctx = prepare_context({}, data)
        return _json({"values": ctx["all_campaign_labels"]})
    except MarketingDataUnavailable as exc:
        return _error(503, exc)
    except Exception as exc:
        logger.exception("meta_campaigns failed")
        return _error(500, exc)


@app.get("/meta/age-groups", response_model=MetaListResponse)
def meta_age_groups():
    try:
        data = require_marketing_data()
        return _json({"values": age_group_axis(data.get("campaigns", []))})
    except MarketingDataUnavailable as exc:
        return _error(503, exc)
    except Exception as exc:
        logger.exception("meta_age_groups failed")
        return _error(500, exc)


@app.post("/demographic")
def demographic(filters: DashboardFiltersModel):
    return _view("demographic", filters, compute_demographic)


@app.post("/device")
def device(filters: DashboardFiltersModel):
    return _view("device", filters, compute_device)


@app.post("/weekly")
def weekly(filters: DashboardFiltersModel):
    return _view("weekly", filters, compute_weekly)


@app.post("/campaigns")
def campaigns(filters: DashboardFiltersModel):
    return _view("campaigns", filters, compute_campaigns)


@app.get("/region")
def region():
    try:
        return _json(compute_region(DashboardFilters()))
    except Exception as exc:
        logger.exception("region failed")
        return _error(500, exc)


@app.post("/export/{view}")
def export_view(view: str, filters: DashboardFiltersModel):
    if view == "region":
        export_df = load_regional_performance()
        return _csv(export_df, "region.csv")

    try:
        data = require_marketing_data()
    except MarketingDataUnavailable as exc:
        return _error(503, exc)
    f = _filters_from_model(filters)
    ctx = prepare_context(f, data)

    if view == "demographic":
        export_df = flatten_demographics(ctx["campaigns"])
    elif view == "device":
        export_df = aggregate_devices(ctx["campaigns"])
    elif view == "weekly":
        export_df = aggregate_weekly(ctx["weekly_campaigns"])
    elif view == "campaigns":
        export_df = aggregate_campaigns(ctx["campaigns"], ctx["campaign_labels"])
    else:
        export_df = pd.DataFrame()
    return _csv(export_df, f"{view}.csv")


def _csv(export_df: pd.DataFrame, filename: str) -> Response:
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
