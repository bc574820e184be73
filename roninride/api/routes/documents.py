"""
Document endpoints
==================

POST /api/v1/documents/create       -- store an initial document, 201 + Location
GET  /api/v1/documents/{session_id} -- current document, version in ``ETag``
PUT  /api/v1/documents/{session_id} -- replace the whole document

A ``PUT`` carrying ``If-Match`` only succeeds when the stored version still
equals the one given (``412`` otherwise).  Without ``If-Match`` the write is
unconditional: last writer wins.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from roninride.api.dependencies import get_repository
from roninride.api.middleware import limiter
from roninride.api.schemas import ErrorResponse, SessionCreatedResponse
from roninride.config import settings
from roninride.infrastructure.repositories import DocumentRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _etag(version: int) -> str:
    return f'"{version}"'


def _parse_if_match(value: Optional[str]) -> Optional[int]:
    """Return the expected version, or ``None`` for an unconditional write."""
    if value is None or value.strip() == "*":
        return None
    tag = value.strip()
    if tag.startswith("W/"):
        tag = tag[2:]
    try:
        return int(tag.strip('"'))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Malformed If-Match: {value}")


@router.post(
    "/create",
    status_code=201,
    response_model=SessionCreatedResponse,
    summary="Create a new session document",
)
@limiter.limit(settings.rate_limit)
async def create_document(
    request: Request,
    body: dict = Body(...),
    repo: DocumentRepository = Depends(get_repository),
):
    document = await repo.create(body)
    await repo.session.commit()
    location = str(request.url_for("read_document", session_id=document.session_id))
    logger.info("Created session %s", document.session_id)
    return JSONResponse(
        status_code=201,
        content={"session_id": document.session_id, "version": document.version},
        headers={"Location": location, "ETag": _etag(document.version)},
    )


@router.get(
    "/{session_id}",
    summary="Read the whole document",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def read_document(
    request: Request,
    session_id: str,
    repo: DocumentRepository = Depends(get_repository),
):
    document = await repo.get(session_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return JSONResponse(content=document.body, headers={"ETag": _etag(document.version)})


@router.put(
    "/{session_id}",
    summary="Replace the whole document",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed If-Match"},
        404: {"model": ErrorResponse},
        412: {"model": ErrorResponse, "description": "Document version changed"},
    },
)
@limiter.limit(settings.rate_limit)
async def replace_document(
    request: Request,
    session_id: str,
    body: dict = Body(...),
    if_match: Optional[str] = Header(None),
    repo: DocumentRepository = Depends(get_repository),
):
    expected = _parse_if_match(if_match)

    version = await repo.replace(session_id, body, expected_version=expected)
    if version is None:
        await repo.session.rollback()
        if await repo.get(session_id) is None:
            raise HTTPException(status_code=404, detail="Session not found")
        logger.info("Stale write to %s (expected version %s)", session_id, expected)
        raise HTTPException(status_code=412, detail="Document version changed")

    await repo.session.commit()
    return JSONResponse(content=body, headers={"ETag": _etag(version)})
