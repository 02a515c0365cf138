"""Pydantic models for API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SourceModel(BaseModel):
    """A registered source."""

    name: str = Field(..., description="Source identifier used in request paths")
    kind: str = Field(..., description="static, community or private")


class SourcesListResponse(BaseModel):
    """Response for GET /v1/sources."""

    sources: List[SourceModel] = Field(..., description="Registered sources in order")


class RequestEntryModel(BaseModel):
    """A dataset or narrative that can be requested."""

    request: str = Field(..., description="Request path, e.g. 'inrb-drc/ebola'")


class ListingResponse(BaseModel):
    """Response for GET /v1/sources/{name}/datasets and /narratives."""

    source: str = Field(..., description="Source identifier")
    entries: List[RequestEntryModel] = Field(..., description="Available requests")


class AvailableResponse(BaseModel):
    """Response for GET /v1/available."""

    datasets: List[RequestEntryModel] = Field(default_factory=list)
    narratives: List[RequestEntryModel] = Field(default_factory=list)


class LocatorResponse(BaseModel):
    """Response for GET /v1/resolve."""

    source: str = Field(..., description="Source identifier")
    path: List[str] = Field(..., description="Dataset path parts")
    resource_type: str = Field(..., description="Resource type tag")
    url: str = Field(..., description="Fetchable URL")
    signed: bool = Field(False, description="True if the URL is time-limited")
    object_key: Optional[str] = Field(None, description="Object key (private sources)")
    expires_at: Optional[datetime] = Field(
        None, description="Expiry of a signed URL; do not cache past it"
    )
