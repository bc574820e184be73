"""Pydantic response schemas for the document store REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SessionCreatedResponse(BaseModel):
    session_id: str
    version: int


class SessionSummaryResponse(BaseModel):
    session_id: str
    version: int
    users: int
    trips: int
    transactions: int
    updated_at: Optional[datetime] = None


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
