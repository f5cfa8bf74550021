"""Schemas for the bot trigger endpoints and the health probes they call."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class AutoHealerResponse(BaseModel):
    success: Literal[True] = True
    report: dict[str, Any]
    notification: Optional[dict[str, Any]] = None


class MonitoringResponse(BaseModel):
    success: Literal[True] = True
    message: str = "Monitoring completed"
    results: dict[str, Any]
    notification: Optional[dict[str, Any]] = None


class BotFailureResponse(BaseModel):
    success: Literal[False] = False
    error: str
    results: Optional[dict[str, Any]] = None


class SiteHealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    timestamp: datetime


class DbHealthResponse(BaseModel):
    connected: bool
    timestamp: datetime
    error: Optional[str] = None


class ErrorLogEntry(BaseModel):
    id: str
    message: str
    error_level: str
    created_at: datetime


class RecentErrorsResponse(BaseModel):
    errors: list[ErrorLogEntry] = Field(default_factory=list)
    count: int
    timestamp: datetime
