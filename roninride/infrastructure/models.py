"""
SQLAlchemy ORM models.

Tables
------
* ``documents`` -- one JSON document per session, with a version counter.

The version is bumped by every replace and exposed to clients as an ETag,
which is what turns a conditional replace into a real compare-and-swap.

Indexes
-------
* primary key on ``session_id`` (the only lookup path).
"""

from sqlalchemy import JSON, Column, DateTime, Integer, String, func

from .database import Base


class DocumentModel(Base):
    __tablename__ = "documents"

    session_id = Column(String(64), primary_key=True)
    body = Column(JSON, nullable=False)
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
