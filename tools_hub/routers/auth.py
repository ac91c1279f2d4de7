"""Email login code authentication routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response
from sqlalchemy.orm import Session

from tools_hub import permissions
from tools_hub.db import get_db
from tools_hub.dependencies import get_current_user
from tools_hub.schemas.auth import (
    AuthResponse,
    SendOTPRequest,
    SessionResponse,
    SessionUser,
    VerifyOTPRequest,
)
from tools_hub.services.auth import delete_session, request_otp, verify_otp
from tools_hub.services.email import EmailClient
from tools_hub.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_email_client() -> EmailClient:
    return EmailClient()


@router.post("/send-otp", response_model=AuthResponse, response_model_exclude_none=True)
async def send_otp(
    payload: SendOTPRequest,
    db: Session = Depends(get_db),
    mailer: EmailClient = Depends(get_email_client),
):
    """Email a one-time login code to a company address."""
    email = request_otp(db, payload.email, mailer=mailer)
    return AuthResponse(success=True, message="Verification code sent to your email", email=email)


@router.post("/verify-otp", response_model=AuthResponse, response_model_exclude_none=True)
async def verify(
    payload: VerifyOTPRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    """Check a login code and start a session."""
    session = verify_otp(db, payload.email, payload.code)

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.session_token,
        httponly=settings.COOKIE_HTTPONLY,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        max_age=settings.SESSION_MAX_AGE
    )
    return AuthResponse(success=True, message="Successfully authenticated", email=session.email)


@router.get("/session", response_model=SessionResponse, response_model_exclude_none=True)
async def current_session(user: Optional[str] = Depends(get_current_user)):
    if not user:
        return SessionResponse(authenticated=False)
    return SessionResponse(
        authenticated=True,
        user=SessionUser(email=user, is_admin=permissions.is_admin(user)),
    )


@router.post("/logout", response_model=AuthResponse, response_model_exclude_none=True)
async def logout(
    response: Response,
    session_token: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
    db: Session = Depends(get_db),
):
    if session_token:
        delete_session(db, session_token)

    response.delete_cookie(key=settings.SESSION_COOKIE_NAME)
    return AuthResponse(success=True, message="Logged out successfully")
