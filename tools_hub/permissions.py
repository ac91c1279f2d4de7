"""Role-based access rules.

Administrators are configured by email in ``settings.ADMIN_EMAILS``. Every
other authenticated employee may submit tools, resubmit their own rejected
tools, vote and rate.
"""
from typing import Optional

from tools_hub.settings import settings


def _normalize(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def is_admin(email: Optional[str]) -> bool:
    return bool(email) and _normalize(email) in settings.ADMIN_EMAILS


def can_approve(email: Optional[str]) -> bool:
    return is_admin(email)


def can_publish(email: Optional[str]) -> bool:
    return is_admin(email)


def can_edit(email: Optional[str]) -> bool:
    """Direct edits are reserved to admins; owners edit via resubmission."""
    return is_admin(email)


def can_delete(email: Optional[str]) -> bool:
    return is_admin(email)


def is_owner(email: Optional[str], created_by: Optional[str]) -> bool:
    """Ownership is an exact match on the submitter identity."""
    return bool(email) and bool(created_by) and email == created_by


def is_real_user(email: Optional[str]) -> bool:
    """True for a mailbox that can receive notifications.

    Seeded and imported tools carry placeholder submitters that must never be
    emailed.
    """
    normalized = _normalize(email)
    if not normalized or "@" not in normalized:
        return False
    return normalized not in settings.SYSTEM_SUBMITTERS


def is_allowed_domain(email: Optional[str]) -> bool:
    """Only company addresses may sign in."""
    return _normalize(email).endswith(f"@{settings.ALLOWED_EMAIL_DOMAIN.lower()}")
