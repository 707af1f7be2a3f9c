"""Pure reductions over campaign records.

Every function here takes the campaign sequence (plain dicts, as decoded from
JSON) and returns pandas frames. Missing numbers count as zero and missing
collections as empty, so these never raise on incomplete data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from marketing_core.data import as_label, as_number, as_records, campaign_label

UNKNOWN_GENDER = "unknown"
UNKNOWN_DEVICE = "Unknown"

GENDER_COLUMNS = ["gender", "clicks", "spend", "revenue"]
AGE_GROUP_COLUMNS = [
    "gender",
    "age_group",
    "clicks",
    "spend",
    "revenue",
    "impressions",
    "conversions",
    "weighted_ctr",
    "weighted_conversion_rate",
    "ctr",
    "conversion_rate",
]
DEVICE_COLUMNS = [
    "device",
    "impressions",
    "clicks",
    "conversions",
    "spend",
    "revenue",
    "weighted_ctr",
    "weighted_conversion_rate",
    "ctr",
    "conversion_rate",
]
WEEKLY_COLUMNS = ["week_start", "week_end", "revenue", "spend", "label"]
CAMPAIGN_COLUMNS = ["campaign", "platform", "status", "spend", "revenue", "roas"]


@dataclass(frozen=True)
class DemographicSummary:
    genders: pd.DataFrame
    age_groups: pd.DataFrame
    age_axis: List[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.genders.empty and self.age_groups.empty and not self.age_axis


def safe_ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """numerator / denominator, 0 wherever the denominator is 0."""
    return (numerator / denominator.where(denominator != 0)).fillna(0.0)


def finalize_rates(df: pd.DataFrame) -> pd.DataFrame:
    """Turn weighted accumulators into CTR (per impression) and conversion rate (per click)."""
    df["ctr"] = safe_ratio(df["weighted_ctr"], df["impressions"])
    df["conversion_rate"] = safe_ratio(df["weighted_conversion_rate"], df["clicks"])
    return df


# ---------------- Demographics ----------------
def flatten_demographics(campaigns: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """One row per demographic slice, spend/revenue allocated by audience share."""
    rows: List[Dict[str, Any]] = []
    for campaign in as_records(list(campaigns or [])):
        spend = as_number(campaign.get("spend"))
        revenue = as_number(campaign.get("revenue"))
        for demo in as_records(campaign.get("demographic_breakdown")):
            perf = demo.get("performance")
            perf = perf if isinstance(perf, dict) else {}
            share = as_number(demo.get("percentage_of_audience")) / 100
            gender = as_label(demo.get("gender"))
            clicks = as_number(perf.get("clicks"))
            impressions = as_number(perf.get("impressions"))
            rows.append(
                {
                    "gender": gender.lower() if gender is not None else UNKNOWN_GENDER,
                    "age_group": as_label(demo.get("age_group")),
                    "clicks": clicks,
                    "spend": spend * share,
                    "revenue": revenue * share,
                    "impressions": impressions,
                    "conversions": as_number(perf.get("conversions")),
                    "weighted_ctr": as_number(perf.get("ctr")) * impressions,
                    "weighted_conversion_rate": as_number(perf.get("conversion_rate")) * clicks,
                }
            )
    return pd.DataFrame(rows, columns=AGE_GROUP_COLUMNS[:-2])


def age_group_axis(campaigns: Iterable[Dict[str, Any]]) -> List[str]:
    seen = set()
    for campaign in as_records(list(campaigns or [])):
        for demo in as_records(campaign.get("demographic_breakdown")):
            age_group = as_label(demo.get("age_group"))
            if age_group is not None:
                seen.add(age_group)
    return sorted(seen)


def aggregate_demographics(campaigns: Iterable[Dict[str, Any]]) -> DemographicSummary:
    campaigns = list(campaigns or [])
    slices = flatten_demographics(campaigns)
    if slices.empty:
        return DemographicSummary(
            genders=pd.DataFrame(columns=GENDER_COLUMNS),
            age_groups=pd.DataFrame(columns=AGE_GROUP_COLUMNS),
            age_axis=[],
        )

    genders = slices.groupby("gender", sort=True)[["clicks", "spend", "revenue"]].sum().reset_index()

    aged = slices.dropna(subset=["age_group"])
    age_groups = (
        aged.groupby(["gender", "age_group"], sort=True)[
            ["clicks", "spend", "revenue", "impressions", "conversions", "weighted_ctr", "weighted_conversion_rate"]
        ]
        .sum()
        .reset_index()
    )
    age_groups = finalize_rates(age_groups)
    return DemographicSummary(
        genders=genders[GENDER_COLUMNS],
        age_groups=age_groups[AGE_GROUP_COLUMNS],
        age_axis=age_group_axis(campaigns),
    )


def age_group_table(summary: DemographicSummary, gender: str) -> pd.DataFrame:
    """Rows for one gender over the full age axis, zero-filled where the gender has no data."""
    subset = summary.age_groups[summary.age_groups["gender"] == gender.lower()].drop(columns=["gender"])
    table = subset.set_index("age_group").reindex(list(summary.age_axis)).rename_axis("age_group").reset_index()
    value_cols = [c for c in AGE_GROUP_COLUMNS if c not in {"gender", "age_group"}]
    table[value_cols] = table[value_cols].astype(float).fillna(0.0)
    return table


def totals_by_age_group(summary: DemographicSummary, metric: str) -> pd.DataFrame:
    """Sum of ``metric`` across genders for each age group on the axis."""
    summed = summary.age_groups.groupby("age_group")[metric].sum()
    values = [float(summed.get(age_group, 0.0)) for age_group in summary.age_axis]
    return pd.DataFrame({"age_group": summary.age_axis, metric: values})


# ---------------- Devices ----------------
def flatten_devices(campaigns: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for campaign in as_records(list(campaigns or [])):
        for entry in as_records(campaign.get("device_performance")):
            impressions = as_number(entry.get("impressions"))
            clicks = as_number(entry.get("clicks"))
            rows.append(
                {
                    "device": as_label(entry.get("device")) or UNKNOWN_DEVICE,
                    "impressions": impressions,
                    "clicks": clicks,
                    "conversions": as_number(entry.get("conversions")),
                    "spend": as_number(entry.get("spend")),
                    "revenue": as_number(entry.get("revenue")),
                    "weighted_ctr": as_number(entry.get("ctr")) * impressions,
                    "weighted_conversion_rate": as_number(entry.get("conversion_rate")) * clicks,
                }
            )
    return pd.DataFrame(rows, columns=DEVICE_COLUMNS[:-2])


def aggregate_devices(campaigns: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Per-device totals ordered by revenue, highest first (ties by device name)."""
    entries = flatten_devices(campaigns)
    if entries.empty:
        return pd.DataFrame(columns=DEVICE_COLUMNS)
    devices = entries.groupby("device", sort=True)[DEVICE_COLUMNS[1:-2]].sum().reset_index()
    devices = finalize_rates(devices)
    devices = devices.sort_values("revenue", ascending=False, kind="mergesort").reset_index(drop=True)
    return devices[DEVICE_COLUMNS]


# ---------------- Weekly ----------------
def week_label(week_start: object) -> str:
    parsed = pd.to_datetime(as_label(week_start), errors="coerce", utc=True)
    if pd.isna(parsed):
        return str(week_start)
    return f"{parsed:%b} {parsed.day}"


def aggregate_weekly(campaigns: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Revenue and spend summed per ``week_start``, in chronological order."""
    weeks: Dict[str, Dict[str, Any]] = {}
    for campaign in as_records(list(campaigns or [])):
        for week in as_records(campaign.get("weekly_performance")):
            key = as_label(week.get("week_start"))
            if key is None:
                continue
            acc = weeks.setdefault(key, {"week_start": key, "week_end": None, "revenue": 0.0, "spend": 0.0})
            if acc["week_end"] is None:
                acc["week_end"] = as_label(week.get("week_end"))
            acc["revenue"] += as_number(week.get("revenue"))
            acc["spend"] += as_number(week.get("spend"))

    if not weeks:
        return pd.DataFrame(columns=WEEKLY_COLUMNS)

    df = pd.DataFrame(list(weeks.values()))
    df["_parsed"] = pd.to_datetime(df["week_start"], errors="coerce", format="mixed", utc=True)
    df = df.sort_values("_parsed", kind="mergesort", na_position="last").drop(columns=["_parsed"])
    df["label"] = df["week_start"].apply(week_label)
    return df.reset_index(drop=True)[WEEKLY_COLUMNS]


# ---------------- Campaigns ----------------
def aggregate_campaigns(
    campaigns: Sequence[Dict[str, Any]],
    labels: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """One row per campaign in input order with spend, revenue and ROAS."""
    records = as_records(list(campaigns or []))
    rows: List[Dict[str, Any]] = []
    for i, campaign in enumerate(records):
        spend = as_number(campaign.get("spend"))
        revenue = as_number(campaign.get("revenue"))
        rows.append(
            {
                "campaign": labels[i] if labels is not None and i < len(labels) else campaign_label(campaign, i),
                "platform": as_label(campaign.get("platform")) or "",
                "status": as_label(campaign.get("status")) or "",
                "spend": spend,
                "revenue": revenue,
                "roas": revenue / spend if spend else 0.0,
            }
        )
    return pd.DataFrame(rows, columns=CAMPAIGN_COLUMNS)


def campaign_weekly(
    campaigns: Sequence[Dict[str, Any]],
    labels: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Long table of (campaign, week_start) revenue and spend, weeks chronological within each campaign."""
    records = as_records(list(campaigns or []))
    frames: List[pd.DataFrame] = []
    for i, campaign in enumerate(records):
        weekly = aggregate_weekly([campaign])
        if weekly.empty:
            continue
        label = labels[i] if labels is not None and i < len(labels) else campaign_label(campaign, i)
        frames.append(weekly.assign(campaign=label))
    columns = ["campaign"] + WEEKLY_COLUMNS
    if not frames:
        return pd.DataFrame(columns=columns)
    return pd.concat(frames, ignore_index=True)[columns]
