from __future__ import annotations

import copy
import json
import math

import pytest

from marketing_core.data import (
    MarketingDataUnavailable,
    as_number,
    format_currency,
    format_number,
    format_rate,
    load_marketing_data,
    load_regional_performance,
    prepare_context,
    require_marketing_data,
)
from marketing_core.filters import DashboardFilters


@pytest.mark.parametrize(
    "value, expected",
    [(None, 0.0), ("12.5", 12.5), (3, 3.0), ("abc", 0.0), (float("nan"), 0.0), (math.inf, 0.0), ([1], 0.0)],
)
def test_as_number(value, expected):
    assert as_number(value) == expected


def test_formatting():
    assert format_number(1234) == "1,234"
    assert format_number(1234.5678) == "1,234.568"
    assert format_number(None) == "0"
    assert format_currency(1234.4) == "$1,234"
    assert format_currency(1234.567, 2) == "$1,234.57"
    assert format_currency(0, 2) == "$0"
    assert format_rate(2.5) == "2.50%"
    assert format_rate(None) == "0.00%"


def test_load_marketing_data_from_env(monkeypatch, payload_file):
    monkeypatch.setenv("MARKETING_DATA_PATH", str(payload_file))
    data = load_marketing_data()
    assert data is not None
    assert [c["id"] for c in data["campaigns"]] == ["cmp-1", "cmp-2"]


def test_load_marketing_data_missing_file(tmp_path):
    assert load_marketing_data(tmp_path / "missing.json") is None
    with pytest.raises(MarketingDataUnavailable, match="Failed to load data."):
        require_marketing_data(tmp_path / "missing.json")


@pytest.mark.parametrize("content", ["{not json", "null", "[1, 2]"])
def test_load_marketing_data_unusable_payload(tmp_path, content):
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    assert load_marketing_data(path) is None


def test_load_marketing_data_without_campaigns(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"campaigns": None}), encoding="utf-8")
    assert load_marketing_data(path) == {"campaigns": []}


def test_load_regional_seed():
    regions = load_regional_performance()
    assert list(regions.columns) == ["region", "country", "lat", "lng", "revenue", "spend"]
    assert len(regions) == 7
    assert regions.iloc[0]["region"] == "Abu Dhabi"


def test_load_regional_missing_file(tmp_path):
    regions = load_regional_performance(tmp_path / "nope.csv")
    assert regions.empty


def test_prepare_context_selects_by_name_or_id(campaigns):
    ctx = prepare_context({"selected_campaigns": ["cmp-2"]}, {"campaigns": campaigns})
    assert [c["name"] for c in ctx["campaigns"]] == ["Social"]
    assert ctx["campaign_labels"] == ["Social"]
    assert ctx["all_campaign_labels"] == ["Search", "Social"]

    ctx = prepare_context(DashboardFilters(selected_campaigns=["Search"]), {"campaigns": campaigns})
    assert [c["id"] for c in ctx["campaigns"]] == ["cmp-1"]


def test_prepare_context_week_range_leaves_source_untouched(campaigns):
    original = copy.deepcopy(campaigns)
    ctx = prepare_context({"week_from": "2024-01-02", "week_to": "2024-01-31"}, {"campaigns": campaigns})
    weeks = [w["week_start"] for c in ctx["weekly_campaigns"] for w in c["weekly_performance"]]
    assert weeks == ["2024-01-08"]
    assert ctx["campaigns"] == original
    assert campaigns == original


def test_prepare_context_makes_duplicate_labels_unique():
    campaigns = [{"name": "Search"}, {"name": "Search"}, {"id": "cmp-9"}]
    ctx = prepare_context({"selected_campaigns": ["Search (2)"]}, {"campaigns": campaigns})
    assert ctx["all_campaign_labels"] == ["Search", "Search (2)", "cmp-9"]
    assert ctx["campaign_labels"] == ["Search (2)"]
    assert ctx["campaigns"] == [campaigns[1]]


def test_prepare_context_week_range_accepts_timezone_aware_dates():
    campaigns = [{"weekly_performance": [{"week_start": "2024-01-08T00:00:00Z"}, {"week_start": "2024-01-01"}]}]
    ctx = prepare_context({"week_from": "2024-01-02"}, {"campaigns": campaigns})
    weeks = [w["week_start"] for w in ctx["weekly_campaigns"][0]["weekly_performance"]]
    assert weeks == ["2024-01-08T00:00:00Z"]


def test_prepare_context_handles_null_payload():
    ctx = prepare_context({}, None)
    assert ctx["campaigns"] == []
    assert ctx["weekly_campaigns"] == []
