from __future__ import annotations

import json
import logging
import math
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from marketing_core.filters import DashboardFilters, normalize_filters

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DATA_FILE_NAME = "marketing_data.json"
DATA_PATH_ENV = "MARKETING_DATA_PATH"

SEED_DIR = Path(__file__).resolve().parent / "seeds"
REGIONS_SEED_PATH = SEED_DIR / "regional_performance.csv"
REGIONS_PATH_ENV = "MARKETING_REGIONS_PATH"

LOAD_FAILED_MESSAGE = "Failed to load data."

REGION_COLUMNS = ["region", "country", "lat", "lng", "revenue", "spend"]


class MarketingDataUnavailable(RuntimeError):
    """Raised when the campaign payload is missing, unreadable or null."""

    def __init__(self, message: str = LOAD_FAILED_MESSAGE):
        super().__init__(message)


# ---------------- Coercion ----------------
def as_number(value: object) -> float:
    """Coerce a JSON value to float; anything missing or non-numeric counts as 0."""
    if value is None:
        return 0.0
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(out) or math.isinf(out):
        return 0.0
    return out


def as_records(value: object) -> List[Dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    return [v for v in value if isinstance(v, dict)]


def as_label(value: object) -> Optional[str]:
    """Return ``value`` as a string, or None for falsy values ("", None, 0)."""
    if not value:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return str(value)


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
    return df


# ---------------- Formatting ----------------
def format_number(value: object, max_decimals: int = 3) -> str:
    """Thousands-separated number with at most ``max_decimals`` fraction digits, trailing zeros dropped."""
    n = as_number(value)
    s = f"{n:,.{max_decimals}f}"
    if max_decimals > 0:
        s = s.rstrip("0").rstrip(".")
    if s in {"-0", ""}:
        s = "0"
    return s


def format_currency(value: object, max_decimals: int = 0) -> str:
    return f"${format_number(value, max_decimals)}"


def format_rate(value: object) -> str:
    """Rates are stored in percent units already (2.5 means 2.5%)."""
    return f"{as_number(value):.2f}%"


# ---------------- Loaders ----------------
def get_data_path() -> Path:
    override = os.environ.get(DATA_PATH_ENV, "").strip()
    return Path(override) if override else DATA_DIR / DATA_FILE_NAME


def file_signature(path: Path) -> Optional[Tuple[str, float]]:
    try:
        return (str(path), path.stat().st_mtime)
    except OSError:
        return None


@lru_cache(maxsize=4)
def _load_marketing_data_cached(file_sig: Tuple[str, float]) -> Optional[Dict[str, Any]]:
    path = Path(file_sig[0])
    try:
        with path.open(encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read marketing data from %s: %s", path, exc)
        return None
    if not isinstance(payload, dict):
        logger.warning("Marketing data in %s is not an object (got %s)", path, type(payload).__name__)
        return None
    campaigns = as_records(payload.get("campaigns"))
    logger.debug("Loaded %d campaigns from %s", len(campaigns), path)
    return {**payload, "campaigns": campaigns}


def load_marketing_data(path: Optional[Path] = None) -> Optional[Dict[str, Any]]:
    """Read the campaign payload, cached per file version. Returns None when it cannot be loaded."""
    path = Path(path) if path is not None else get_data_path()
    sig = file_signature(path)
    if sig is None:
        logger.warning("Marketing data file not found: %s", path)
        return None
    return _load_marketing_data_cached(sig)


def require_marketing_data(path: Optional[Path] = None) -> Dict[str, Any]:
    data = load_marketing_data(path)
    if data is None:
        raise MarketingDataUnavailable()
    return data


def get_regions_path() -> Path:
    override = os.environ.get(REGIONS_PATH_ENV, "").strip()
    return Path(override) if override else REGIONS_SEED_PATH


def load_regional_performance(path: Optional[Path] = None) -> pd.DataFrame:
    path = Path(path) if path is not None else get_regions_path()
    try:
        df = pd.read_csv(path)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read regional seed data from %s: %s", path, exc)
        return pd.DataFrame(columns=REGION_COLUMNS)
    for col in REGION_COLUMNS:
        if col not in df.columns:
            df[col] = pd.NA
    df = df[REGION_COLUMNS].copy()
    df["region"] = df["region"].fillna("").astype(str)
    df["country"] = df["country"].fillna("").astype(str)
    return numericize(df, ["lat", "lng", "revenue", "spend"])


# ---------------- Context ----------------
def campaign_label(campaign: Dict[str, Any], position: int) -> str:
    return as_label(campaign.get("name")) or as_label(campaign.get("id")) or f"Campaign {position + 1}"


def unique_labels(campaigns: Sequence[Dict[str, Any]]) -> List[str]:
    """Display labels with repeats suffixed by occurrence, e.g. 'Search (2)'."""
    counts: Dict[str, int] = {}
    labels: List[str] = []
    for i, campaign in enumerate(campaigns):
        base = campaign_label(campaign, i)
        counts[base] = counts.get(base, 0) + 1
        labels.append(base if counts[base] == 1 else f"{base} ({counts[base]})")
    return labels


def _matches_campaign(campaign: Dict[str, Any], position: int, selected: set, label: str) -> bool:
    keys = {campaign_label(campaign, position), label}
    for field_name in ("id", "name"):
        value = as_label(campaign.get(field_name))
        if value is not None:
            keys.add(value)
    return bool(keys & selected)


def _week_in_range(week_start: object, week_from: str, week_to: str) -> bool:
    if not week_from and not week_to:
        return True
    parsed = pd.to_datetime(as_label(week_start), errors="coerce", utc=True)
    if pd.isna(parsed):
        return False
    iso = parsed.date().isoformat()
    if week_from and iso < week_from:
        return False
    if week_to and iso > week_to:
        return False
    return True


def prepare_context(filters: dict | DashboardFilters, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Apply filters to the payload without touching the source records."""
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    all_campaigns = as_records((data or {}).get("campaigns"))

    all_labels = unique_labels(all_campaigns)
    selected = set(filt.selected_campaigns)
    if selected:
        kept = [i for i, c in enumerate(all_campaigns) if _matches_campaign(c, i, selected, all_labels[i])]
    else:
        kept = list(range(len(all_campaigns)))
    campaigns = [all_campaigns[i] for i in kept]
    labels = [all_labels[i] for i in kept]

    if filt.week_from or filt.week_to:
        weekly_campaigns = [
            {
                **c,
                "weekly_performance": [
                    w
                    for w in as_records(c.get("weekly_performance"))
                    if _week_in_range(w.get("week_start"), filt.week_from, filt.week_to)
                ],
            }
            for c in campaigns
        ]
    else:
        weekly_campaigns = campaigns

    return {
        "filters": filt,
        "campaigns": campaigns,
        "campaign_labels": labels,
        "weekly_campaigns": weekly_campaigns,
        "all_campaign_labels": all_labels,
    }
