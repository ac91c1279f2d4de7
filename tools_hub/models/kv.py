"""Key-value entries: whole JSON documents stored under a single key."""
from sqlalchemy import Column, String, DateTime, Integer, Text
from sqlalchemy.sql import func
from tools_hub.db import Base


class KeyValueEntry(Base):
    """One JSON document per key.

    The tool collection and the audit log each live in a single row and are
    rewritten in full on every change. ``version`` is bumped on every write so
    that a writer holding a stale copy can be detected. ``expires_at`` is only
    used for short-lived entries such as login codes.
    """

    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
