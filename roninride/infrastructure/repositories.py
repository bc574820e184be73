"""
Repository Pattern -- abstracts DB access so the HTTP layer stays DB-agnostic.

The repository receives an ``AsyncSession`` (unit-of-work) and exposes the
three primitives of the document store: create, read, replace.  Replace comes
in two flavours: unconditional (last writer wins) and conditional on the
version the caller read.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DocumentModel


def new_session_id() -> str:
    return uuid.uuid4().hex


class DocumentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, body: dict) -> DocumentModel:
        document = DocumentModel(session_id=new_session_id(), body=body, version=1)
        self.session.add(document)
        await self.session.flush()
        return document

    async def get(self, session_id: str) -> Optional[DocumentModel]:
        return await self.session.get(DocumentModel, session_id)

    async def replace(
        self,
        session_id: str,
        body: dict,
        expected_version: int | None = None,
    ) -> Optional[int]:
        """Overwrite the body; with *expected_version* only if it still matches.

        The version check, the write and reading back the new version are one
        UPDATE ... RETURNING statement, so two writers holding the same version
        cannot both succeed and each learns the version it wrote.  Returns
        ``None`` when no row was updated.
        """
        query = update(DocumentModel).where(DocumentModel.session_id == session_id)
        if expected_version is not None:
            query = query.where(DocumentModel.version == expected_version)
        result = await self.session.execute(
            query.values(body=body, version=DocumentModel.version + 1)
            .returning(DocumentModel.version)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()
