from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

DEFAULT_TOP_N = 15


@dataclass(frozen=True)
class DashboardFilters:
    selected_campaigns: List[str] = field(default_factory=list)
    week_from: str = ""
    week_to: str = ""
    top_n: int = DEFAULT_TOP_N


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values or isinstance(values, (str, bytes)):
        return []
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return out


def _as_iso_date(value: object) -> str:
    if value is None:
        return ""
    s = str(value).strip()
    if not s:
        return ""
    try:
        return date.fromisoformat(s[:10]).isoformat()
    except ValueError:
        return ""


def normalize_filters(raw: Optional[Dict[str, Any]]) -> DashboardFilters:
    raw = raw or {}
    selected_campaigns = _as_str_list(raw.get("selected_campaigns"))

    week_from = _as_iso_date(raw.get("week_from"))
    week_to = _as_iso_date(raw.get("week_to"))
    if week_from and week_to and week_from > week_to:
        week_from, week_to = week_to, week_from

    top_n = raw.get("top_n", DEFAULT_TOP_N)
    try:
        top_n = int(top_n)
    except (TypeError, ValueError):
        top_n = DEFAULT_TOP_N
    top_n = max(1, min(200, top_n))

    return DashboardFilters(
        selected_campaigns=selected_campaigns,
        week_from=week_from,
        week_to=week_to,
        top_n=top_n,
    )
