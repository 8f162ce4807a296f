"""Shared pagination I/O models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Pagination block of a list response."""

    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)


class CountResponse(BaseModel):
    count: int


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool = True
    message: str


class HealthStatus(BaseModel):
    status: str = "ok"


class VersionInfo(BaseModel):
    version: str
    schema_version: str
