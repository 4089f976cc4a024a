"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class SetLinkRequest(BaseModel):
    """JSON body for creating or updating a go link."""

    url: str = Field(..., description="Target URL, with or without http(s)://", min_length=1, max_length=2048)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://example.com/very/long/path/to/docs"},
                {"url": "example.com/docs"},
            ]
        }
    }


class LinkResponse(BaseModel):
    """A go link record."""

    key: str = Field(..., description="The go link key")
    target: str = Field(..., description="Stored target URL")
    created_at: int = Field(..., description="Creation time, seconds since epoch")
    updated_at: int = Field(..., description="Last update time, seconds since epoch")
    short_url: Optional[str] = Field(None, description="Public URL that redirects to the target")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "key": "docs",
                    "target": "example.com/docs",
                    "created_at": 1700000000,
                    "updated_at": 1700000500,
                    "short_url": "http://localhost:8085/v/docs",
                }
            ]
        }
    }


class LinkListResponse(BaseModel):
    """Most recently updated go links."""

    links: List[LinkResponse]
    count: int


class DeleteResponse(BaseModel):
    """Result of a delete."""

    key: str
    deleted: bool


class FlushResponse(BaseModel):
    """Result of an explicit snapshot request."""

    written: bool


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    worker: str = Field(..., description="Persistence worker status")
    persistence: str = Field(..., description="Whether the last snapshot write succeeded")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str = Field(..., description="Error message")


class StatisticsResponse(BaseModel):
    """Statistics response."""

    total_links: int
    storage: str
    running: bool
    accepting: bool
    pending: int
    submissions_applied: int
    snapshots_written: int
    snapshot_failures: int
    last_snapshot_at: Optional[float] = None
    last_snapshot_ok: Optional[bool] = None
    sync_interval_seconds: float
