"""Session bootstrap: join a shared document by URL, or start a new one."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from roninride.config import settings

from .store_client import DocumentStoreClient

logger = logging.getLogger(__name__)

SESSION_PARAM = "session"


def empty_document() -> dict:
    return {"users": [], "trips": [], "transactions": []}


def session_from_url(url: str) -> Optional[str]:
    values = parse_qs(urlsplit(url).query).get(SESSION_PARAM)
    return values[0] if values and values[0] else None


def share_url_for(session_id: str, base_url: str = settings.share_base_url) -> str:
    """*base_url* with ``?session=<id>`` set, other query params kept."""
    parts = urlsplit(base_url)
    query = {k: v[0] for k, v in parse_qs(parts.query).items()}
    query[SESSION_PARAM] = session_id
    return urlunsplit(parts._replace(query=urlencode(query)))


async def open_session(
    store: DocumentStoreClient, share_url: Optional[str] = None
) -> tuple[str, str]:
    """Return ``(session_id, share_url)``.

    The session named in *share_url* is joined as-is; without one a fresh
    empty document is created and a share URL pointing at it is built.
    """
    session_id = session_from_url(share_url) if share_url else None
    if session_id:
        return session_id, share_url

    session_id = await store.create(empty_document())
    logger.info("Started new session %s", session_id)
    return session_id, share_url_for(session_id, share_url or settings.share_base_url)
