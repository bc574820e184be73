"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health                 -- simple health check
GET /api/v1/admin/sessions/{session_id}  -- version and counts of one session
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from roninride.api.dependencies import get_repository
from roninride.api.middleware import limiter
from roninride.api.schemas import (
    ErrorResponse,
    HealthResponse,
    SessionSummaryResponse,
)
from roninride.infrastructure.repositories import DocumentRepository

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/sessions/{session_id}",
    response_model=SessionSummaryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Summarise one session document",
)
@limiter.limit("100/minute")
async def get_session_summary(
    request: Request,
    session_id: str,
    repo: DocumentRepository = Depends(get_repository),
):
    document = await repo.get(session_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Session not found")
    body = document.body or {}
    return SessionSummaryResponse(
        session_id=document.session_id,
        version=document.version,
        users=len(body.get("users", [])),
        trips=len(body.get("trips", [])),
        transactions=len(body.get("transactions", [])),
        updated_at=document.updated_at,
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
