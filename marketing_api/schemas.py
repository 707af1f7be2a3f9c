from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class DashboardFiltersModel(BaseModel):
    selected_campaigns: List[str] = Field(default_factory=list)
    week_from: str = ""
    week_to: str = ""
    top_n: int = 15


class MetaListResponse(BaseModel):
    values: List[str]
