"""Authentication schemas."""
from typing import Optional
from pydantic import BaseModel, Field

from tools_hub.schemas.tool import CamelModel


class SendOTPRequest(BaseModel):
    """Request a login code by email."""
    email: str = Field(..., min_length=3, max_length=320)


class VerifyOTPRequest(BaseModel):
    """Exchange a login code for a session."""
    email: str = Field(..., min_length=3, max_length=320)
    code: str = Field(..., min_length=1, max_length=12)


class AuthResponse(BaseModel):
    """Result of a login step."""
    success: bool
    message: str
    email: Optional[str] = None


class SessionUser(CamelModel):
    email: str
    is_admin: bool


class SessionResponse(BaseModel):
    """Current session state."""
    authenticated: bool
    user: Optional[SessionUser] = None
