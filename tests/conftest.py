from __future__ import annotations

import json

import pytest

from marketing_core.data import _load_marketing_data_cached


@pytest.fixture(autouse=True)
def _clear_payload_cache():
    _load_marketing_data_cached.cache_clear()
    yield
    _load_marketing_data_cached.cache_clear()


@pytest.fixture
def campaigns():
    return [
        {
            "id": "cmp-1",
            "name": "Search",
            "platform": "Google Ads",
            "status": "Active",
            "spend": 1000,
            "revenue": 5000,
            "demographic_breakdown": [
                {
                    "gender": "Male",
                    "age_group": "18-24",
                    "percentage_of_audience": 40,
                    "performance": {"clicks": 100, "impressions": 1000, "conversions": 5, "ctr": 10, "conversion_rate": 5},
                },
                {
                    "gender": "Female",
                    "age_group": "25-34",
                    "percentage_of_audience": 60,
                    "performance": {"clicks": 50, "impressions": 2000, "conversions": 2, "ctr": 2.5, "conversion_rate": 4},
                },
            ],
            "device_performance": [
                {"device": "Mobile", "impressions": 1000, "clicks": 50, "conversions": 2, "spend": 600, "revenue": 3000, "ctr": 5, "conversion_rate": 4},
                {"device": "Desktop", "impressions": 3000, "clicks": 30, "conversions": 3, "spend": 400, "revenue": 2000, "ctr": 1, "conversion_rate": 10},
            ],
            "weekly_performance": [
                {"week_start": "2024-02-05", "week_end": "2024-02-11", "revenue": 100, "spend": 10},
                {"week_start": "2024-01-01", "week_end": "2024-01-07", "revenue": 200, "spend": 20},
            ],
        },
        {
            "id": "cmp-2",
            "name": "Social",
            "platform": "Meta",
            "status": "Paused",
            "spend": 2000,
            "revenue": 4000,
            "demographic_breakdown": [
                {
                    "gender": "MALE",
                    "age_group": "18-24",
                    "percentage_of_audience": 50,
                    "performance": {"clicks": 300, "impressions": 3000, "conversions": 30, "ctr": 5, "conversion_rate": 10},
                },
                {
                    "gender": "female",
                    "age_group": "",
                    "percentage_of_audience": 10,
                    "performance": {"clicks": 10, "impressions": 100},
                },
            ],
            "device_performance": [
                {"device": "Mobile", "impressions": 1000, "clicks": 10, "conversions": 1, "spend": 1500, "revenue": 2500, "ctr": 1, "conversion_rate": 10},
                {"device": "Tablet", "impressions": 500, "clicks": 5, "conversions": 0, "spend": 500, "revenue": 1500, "ctr": 1, "conversion_rate": 0},
            ],
            "weekly_performance": [
                {"week_start": "2024-01-08", "week_end": "2024-01-14", "revenue": 300, "spend": 30},
                {"week_start": "2024-01-01", "week_end": "2024-01-07", "revenue": 50, "spend": 5},
            ],
        },
    ]


@pytest.fixture
def payload_file(tmp_path, campaigns):
    path = tmp_path / "marketing_data.json"
    path.write_text(json.dumps({"campaigns": campaigns}), encoding="utf-8")
    return path
