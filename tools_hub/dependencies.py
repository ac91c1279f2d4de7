"""FastAPI dependencies for authentication.

Identity is the verified email address stored on the session.
"""
from typing import Optional
from fastapi import Cookie, Depends
from sqlalchemy.orm import Session

from tools_hub import permissions
from tools_hub.db import get_db
from tools_hub.errors import Forbidden, Unauthorized
from tools_hub.services.auth import get_session
from tools_hub.services.tools import ToolService
from tools_hub.settings import settings


async def get_current_user(
    session_token: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
    db: Session = Depends(get_db)
) -> Optional[str]:
    """
    Get the signed-in email from the session cookie (optional).

    Returns:
        Email if authenticated, None otherwise
    """
    if not session_token:
        return None

    session = get_session(db, session_token)
    return session.email if session else None


async def require_auth(
    session_token: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
    db: Session = Depends(get_db)
) -> str:
    """
    Require authentication.

    Raises:
        Unauthorized: If there is no valid session
    """
    if not session_token:
        raise Unauthorized("Not authenticated")

    session = get_session(db, session_token)
    if not session:
        raise Unauthorized("Invalid or expired session")

    return session.email


async def require_admin(user: str = Depends(require_auth)) -> str:
    """
    Require an administrator.

    Raises:
        Forbidden: If the signed-in user is not an admin
    """
    if not permissions.is_admin(user):
        raise Forbidden("Unauthorized")
    return user


def get_tool_service(db: Session = Depends(get_db)) -> ToolService:
    return ToolService(db)
