from __future__ import annotations

import json

import pandas as pd
import pytest

from marketing_core.data import prepare_context
from marketing_core.filters import DashboardFilters, normalize_filters
from marketing_core.metrics_campaigns import compute_campaigns
from marketing_core.metrics_demographic import compute_demographic
from marketing_core.metrics_device import compute_device
from marketing_core.metrics_region import compute_region, marker_radius
from marketing_core.metrics_weekly import compute_weekly


@pytest.fixture
def ctx(campaigns):
    return prepare_context({}, {"campaigns": campaigns})


@pytest.fixture
def empty_ctx():
    return prepare_context({}, {"campaigns": []})


def test_demographic_payload(ctx):
    payload = compute_demographic(ctx["filters"], ctx)
    assert payload["age_groups"] == ["18-24", "25-34"]
    assert payload["cards"]["male"] == {"total_clicks": "400", "total_spend": "$1,400", "total_revenue": "$4,000"}
    male_rows = payload["tables"]["male"]
    assert [r["age_group"] for r in male_rows] == ["18-24", "25-34"]
    assert male_rows[0]["ctr"] == "6.25%"
    assert male_rows[0]["conversion_rate"] == "8.75%"
    assert male_rows[1] == {
        "age_group": "25-34",
        "impressions": "0",
        "clicks": "0",
        "conversions": "0",
        "ctr": "0.00%",
        "conversion_rate": "0.00%",
    }
    assert set(payload["charts"]) == {"spend_by_age_group", "revenue_by_age_group"}
    json.dumps(payload)


def test_demographic_payload_empty(empty_ctx):
    payload = compute_demographic(empty_ctx["filters"], empty_ctx)
    assert payload["age_groups"] == []
    assert payload["cards"]["female"] == {"total_clicks": "0", "total_spend": "$0", "total_revenue": "$0"}
    assert payload["tables"] == {"male": [], "female": []}
    assert payload["charts"] == {}


def test_device_payload(ctx):
    payload = compute_device(ctx["filters"], ctx)
    assert payload["devices"] == ["Mobile", "Desktop", "Tablet"]
    assert payload["cards"]["Mobile"] == {"total_spend": "$2,100", "total_revenue": "$5,500", "total_conversions": "3"}
    assert payload["table"][0]["ctr"] == "3.00%"
    assert payload["table"][0]["conversion_rate"] == "5.00%"
    assert set(payload["charts"]) == {"revenue_by_device", "performance_by_device"}
    json.dumps(payload)


def test_device_payload_empty(empty_ctx):
    payload = compute_device(empty_ctx["filters"], empty_ctx)
    assert payload["devices"] == []
    assert payload["charts"] == {}


def test_weekly_payload(ctx):
    payload = compute_weekly(ctx["filters"], ctx)
    assert payload["labels"] == ["Jan 1", "Jan 8", "Feb 5"]
    assert [w["revenue"] for w in payload["weeks"]] == pytest.approx([250, 300, 100])
    assert payload["table"][0]["revenue"] == "$250"
    assert set(payload["charts"]) == {"revenue_by_week", "spend_by_week"}


def test_weekly_payload_respects_week_range(campaigns):
    filters = normalize_filters({"week_from": "2024-01-08"})
    ctx = prepare_context(filters, {"campaigns": campaigns})
    payload = compute_weekly(filters, ctx)
    assert payload["labels"] == ["Jan 8", "Feb 5"]
    assert payload["filters"]["week_from"] == "2024-01-08"


def test_campaigns_payload(campaigns):
    filters = normalize_filters({"top_n": 1})
    ctx = prepare_context(filters, {"campaigns": campaigns})
    payload = compute_campaigns(filters, ctx)
    assert payload["kpis"]["campaign_count"] == 2
    assert payload["kpis"]["roas"] == pytest.approx(3.0)
    assert len(payload["top"]) == 1
    top = payload["top"][0]
    assert (top["rank"], top["campaign"], top["roas_display"]) == (1, "Search", "5.00x")
    assert "revenue_trend" in payload["charts"]


def test_campaigns_payload_empty(empty_ctx):
    payload = compute_campaigns(empty_ctx["filters"], empty_ctx)
    assert payload["top"] == []
    assert payload["kpis"] == {}


def test_marker_radius_is_sqrt_revenue_over_twenty():
    radius = marker_radius(pd.Series([40000.0, 0.0, -100.0]))
    assert radius.tolist() == pytest.approx([10.0, 0.0, 0.0])


def test_region_payload_from_seed():
    payload = compute_region(DashboardFilters())
    assert payload["map"]["center"] == [25.0, 50.0]
    assert payload["map"]["zoom"] == 5
    assert [r["region"] for r in payload["regions"]][:2] == ["Abu Dhabi", "Dubai"]
    assert payload["table"][0]["revenue"] == "$96,818.4"
    assert "region_map" in payload["charts"]


def test_region_payload_from_context_fixture():
    regions = pd.DataFrame(
        [{"region": "Doha", "country": "Qatar", "lat": 25.2854, "lng": 51.531, "revenue": 400.0, "spend": 10.0}]
    )
    payload = compute_region(DashboardFilters(), {"regions": regions})
    assert payload["regions"][0]["marker_radius"] == pytest.approx(1.0)
    assert payload["table"] == [{"region": "Doha", "country": "Qatar", "revenue": "$400", "spend": "$10"}]


def test_campaign_trend_keeps_same_named_campaigns_apart():
    campaigns = [
        {"name": "Search", "revenue": 500, "weekly_performance": [{"week_start": "2024-01-01", "revenue": 500}]},
        {"name": "Search", "revenue": 10, "weekly_performance": [{"week_start": "2024-01-01", "revenue": 10}]},
    ]
    filters = normalize_filters({"top_n": 1})
    ctx = prepare_context(filters, {"campaigns": campaigns})
    payload = compute_campaigns(filters, ctx)
    assert [r["campaign"] for r in payload["top"]] == ["Search"]
    spec = payload["charts"]["revenue_trend"]
    rows = [row for dataset in spec["datasets"].values() for row in dataset]
    assert {row["campaign"] for row in rows} == {"Search"}
    assert [row["revenue"] for row in rows] == [500]


def test_demographic_payload_without_breakdowns():
    ctx = prepare_context({}, {"campaigns": [{"spend": 10, "revenue": 5}]})
    payload = compute_demographic(ctx["filters"], ctx)
    assert payload["tables"] == {"male": [], "female": []}
    json.dumps(payload)


def test_weekly_payload_with_timezone_aware_dates():
    campaigns = [{"weekly_performance": [{"week_start": "2024-01-08T00:00:00Z", "revenue": 1}, {"week_start": "2024-01-01"}]}]
    ctx = prepare_context({}, {"campaigns": campaigns})
    payload = compute_weekly(ctx["filters"], ctx)
    assert payload["labels"] == ["Jan 1", "Jan 8"]
