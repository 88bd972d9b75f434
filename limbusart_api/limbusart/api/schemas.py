from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ReloadResponse(BaseModel):
    added: int = Field(..., description="Entries appended by this reload")
    total: int = Field(..., description="Registry size after the reload")


class StatsResponse(BaseModel):
    arts_total: int
    cached_links: int
    arts_path: str


class ResolveResponse(BaseModel):
    source_url: str
    kind: str
    image_url: str
    replacement_source: Optional[str] = None
    cached: bool = False
