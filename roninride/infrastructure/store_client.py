"""
HTTP client for the shared document store.

Speaks the three-call protocol (create / read / replace) and nothing else.
Every transport-level failure, non-success answer or undecodable body is
reported as ``TransportError`` so callers deal with one failure type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from roninride.config import settings
from roninride.domain.errors import TransportError

logger = logging.getLogger(__name__)


class PreconditionFailed(TransportError):
    """The document changed since it was read (HTTP 412)."""


@dataclass(frozen=True)
class VersionedDocument:
    body: dict
    etag: Optional[str] = None


class DocumentStoreClient:
    def __init__(
        self,
        base_url: str = settings.document_store_url,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = settings.http_timeout_seconds,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.http = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "DocumentStoreClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    def document_url(self, session_id: str) -> str:
        return f"{self.base_url}/{session_id}"

    # ── Protocol ──────────────────────────────────────────────────────

    async def create(self, initial: dict) -> str:
        """Store *initial* as a new document and return its session id."""
        response = await self._send("POST", f"{self.base_url}/create", json=initial)
        location = response.headers.get("Location")
        if not location:
            raise TransportError("Store did not return a Location for the new session")
        session_id = location.rstrip("/").rsplit("/", 1)[-1]
        if not session_id:
            raise TransportError(f"Could not parse session id from {location!r}")
        return session_id

    async def read(self, session_id: str) -> VersionedDocument:
        response = await self._send("GET", self.document_url(session_id))
        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError("Store returned a body that is not JSON") from exc
        if not isinstance(body, dict):
            raise TransportError("Store returned a document that is not an object")
        return VersionedDocument(body=body, etag=response.headers.get("ETag"))

    async def replace(
        self, session_id: str, body: dict, *, if_match: Optional[str] = None
    ) -> Optional[str]:
        """Overwrite the document; returns the new ETag when the store sends one."""
        headers = {"If-Match": if_match} if if_match else {}
        response = await self._send(
            "PUT", self.document_url(session_id), json=body, headers=headers
        )
        return response.headers.get("ETag")

    # ── Internals ─────────────────────────────────────────────────────

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Store unreachable: {exc}") from exc

        if response.status_code == 412:
            raise PreconditionFailed("Document changed since it was read")
        if response.is_error:
            raise TransportError(
                f"Store request failed: {response.status_code} {response.reason_phrase}"
            )
        return response
