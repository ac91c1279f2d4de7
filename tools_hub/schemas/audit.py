"""Audit log schemas."""
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from tools_hub.schemas.tool import CamelModel


class AuditAction(str, Enum):
    """Moderation actions recorded in the audit log."""
    TOOL_CREATED = "tool_created"
    TOOL_APPROVED = "tool_approved"
    TOOL_REJECTED = "tool_rejected"
    TOOL_PUBLISHED = "tool_published"
    TOOL_UNPUBLISHED = "tool_unpublished"
    TOOL_DELETED = "tool_deleted"
    TOOL_RESUBMITTED = "tool_resubmitted"
    TOOL_UPDATED = "tool_updated"


class AuditMetadata(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    rejection_reason: Optional[str] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None


class AuditLogEntry(CamelModel):
    """One recorded moderation action."""
    id: str
    timestamp: int  # epoch milliseconds
    action: AuditAction
    tool_id: str
    tool_title: str
    performed_by: str
    metadata: Optional[AuditMetadata] = None


class AuditLogResponse(CamelModel):
    success: bool = True
    logs: List[AuditLogEntry]
    count: int
