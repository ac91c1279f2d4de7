"""Login session model."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
import uuid
from tools_hub.db import Base


class Session(Base):
    """Cookie session issued after a one-time passcode is verified.

    Identity is the verified email address; there is no separate user table.
    """

    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, nullable=False, index=True)
    session_token = Column(String, unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
