"""Email one-time passcode login and cookie sessions.

Login is passwordless: a company address requests a short numeric code,
receives it by email and exchanges it for a session cookie. Codes are stored
bcrypt-hashed in the key-value store under ``otp:<email>``.
"""
import logging
import secrets
import time
from datetime import timedelta
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from tools_hub import permissions
from tools_hub.errors import (
    Forbidden,
    Gone,
    InvalidInput,
    NotFound,
    RateLimited,
    Unauthorized,
)
from tools_hub.middleware.rate_limit import rate_limiter
from tools_hub.models.auth import Session as SessionModel
from tools_hub.services.email import EmailClient
from tools_hub.services.kv_store import KeyValueStore
from tools_hub.settings import settings
from tools_hub.templates_engine import render_email
from tools_hub.timeutil import as_utc, utcnow

logger = logging.getLogger(__name__)

OTP_KEY_PREFIX = "otp:"
OTP_RATE_LIMIT_ENDPOINT = "send-otp"
# Keep expired records around briefly so a late attempt reads as expired, not unknown
OTP_RECORD_GRACE_SECONDS = 10 * 60


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def hash_code(code: str) -> str:
    """Hash a login code using bcrypt."""
    hashed = bcrypt.hashpw(code.encode('utf-8'), bcrypt.gensalt())
    return hashed.decode('utf-8')


def verify_code(code: str, hashed_code: str) -> bool:
    return bcrypt.checkpw(code.encode('utf-8'), hashed_code.encode('utf-8'))


def generate_code(length: Optional[int] = None) -> str:
    """Random numeric code, zero padded to ``length`` digits."""
    length = length or settings.OTP_LENGTH
    return str(secrets.randbelow(10 ** length)).zfill(length)


def _otp_key(email: str) -> str:
    return f"{OTP_KEY_PREFIX}{email}"


def request_otp(db: Session, email: str, mailer: Optional[EmailClient] = None) -> str:
    """
    Issue a login code and email it.

    Args:
        db: Database session
        email: Address requesting to sign in
        mailer: Email client (defaults to the configured Resend client)

    Returns:
        The normalized email the code was sent to

    Raises:
        InvalidInput: If the address is malformed
        Forbidden: If the address is outside the company domain
        RateLimited: If too many codes were requested for this address
        DependencyFailure: If the email could not be sent
    """
    email = normalize_email(email)
    if "@" not in email:
        raise InvalidInput("A valid email address is required")
    if not permissions.is_allowed_domain(email):
        raise Forbidden(f"Only @{settings.ALLOWED_EMAIL_DOMAIN} email addresses are allowed")

    allowed, retry_after = rate_limiter.is_allowed(
        client_key=email,
        endpoint=OTP_RATE_LIMIT_ENDPOINT,
        max_requests=settings.OTP_RATE_LIMIT_REQUESTS,
        window_seconds=settings.OTP_RATE_LIMIT_WINDOW,
    )
    if not allowed:
        logger.warning(f"Login code rate limit hit for {email}")
        raise RateLimited(f"Too many code requests. Try again in {retry_after} seconds.")

    code = generate_code()
    expiry_seconds = settings.OTP_EXPIRY_MINUTES * 60
    record = {
        "codeHash": hash_code(code),
        "expiresAt": int((time.time() + expiry_seconds) * 1000),
        "attempts": 0,
    }
    kv = KeyValueStore(db)
    kv.set(_otp_key(email), record, ttl_seconds=expiry_seconds + OTP_RECORD_GRACE_SECONDS)

    mailer = mailer or EmailClient()
    if not mailer.configured and settings.ENV != "prod":
        logger.warning(f"Email not configured; login code for {email} is {code}")
        return email

    html = render_email(
        "otp",
        code=code,
        expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        site_url=settings.SITE_URL,
    )
    try:
        mailer.send(email, "Your CMG Tools Hub login code", html)
    except Exception:
        kv.delete(_otp_key(email))
        raise

    logger.info(f"Login code sent to {email}")
    return email


def verify_otp(db: Session, email: str, code: str) -> SessionModel:
    """
    Exchange a login code for a session.

    Raises:
        NotFound: If no code is outstanding for the address
        Gone: If the code has expired
        Forbidden: If the attempt limit was reached
        Unauthorized: If the code is wrong (attempts remain)
    """
    email = normalize_email(email)
    code = (code or "").strip()
    kv = KeyValueStore(db)
    key = _otp_key(email)

    record = kv.get(key)
    if not record:
        raise NotFound("No verification code found. Please request a new code.")

    if int(time.time() * 1000) > record.get("expiresAt", 0):
        kv.delete(key)
        raise Gone("Verification code expired. Please request a new code.")

    attempts = record.get("attempts", 0)
    if attempts >= settings.OTP_MAX_ATTEMPTS:
        kv.delete(key)
        raise Forbidden("Too many failed attempts. Please request a new code.")

    if not code or not verify_code(code, record["codeHash"]):
        attempts += 1
        remaining = settings.OTP_MAX_ATTEMPTS - attempts
        if remaining <= 0:
            kv.delete(key)
            raise Forbidden("Too many failed attempts. Please request a new code.")
        record["attempts"] = attempts
        remaining_ms = record["expiresAt"] - int(time.time() * 1000)
        kv.set(key, record, ttl_seconds=max(remaining_ms // 1000, 1) + OTP_RECORD_GRACE_SECONDS)
        logger.info(f"Wrong login code for {email} ({remaining} attempts left)")
        raise Unauthorized(f"Invalid code. {remaining} attempts remaining.")

    kv.delete(key)
    session = create_session(db, email)
    logger.info(f"User signed in: {email}")
    return session


def create_session(db: Session, email: str, max_age_seconds: Optional[int] = None) -> SessionModel:
    """
    Create a new session for a verified address.

    Args:
        db: Database session
        email: Verified email
        max_age_seconds: Lifetime of the session (defaults to ``SESSION_MAX_AGE``)

    Returns:
        Created Session object
    """
    max_age_seconds = max_age_seconds or settings.SESSION_MAX_AGE
    session = SessionModel(
        email=normalize_email(email),
        session_token=secrets.token_urlsafe(32),
        expires_at=utcnow() + timedelta(seconds=max_age_seconds),
    )

    db.add(session)
    db.commit()
    db.refresh(session)

    return session


def get_session(db: Session, session_token: str) -> Optional[SessionModel]:
    """
    Get a session by token.

    Returns:
        Session object if valid and not expired, None otherwise
    """
    if not session_token:
        return None

    session = db.query(SessionModel).filter(
        SessionModel.session_token == session_token
    ).first()

    if not session:
        return None

    if as_utc(session.expires_at) < utcnow():
        db.delete(session)
        db.commit()
        return None

    return session


def delete_session(db: Session, session_token: str) -> None:
    """Delete a session (logout)."""
    session = db.query(SessionModel).filter(
        SessionModel.session_token == session_token
    ).first()

    if session:
        db.delete(session)
        db.commit()
