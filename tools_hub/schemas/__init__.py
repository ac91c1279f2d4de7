"""Pydantic schemas."""
from tools_hub.schemas.tool import Tool, ToolStatus, ToolEdits, ToolResponse, MessageResponse
from tools_hub.schemas.audit import AuditAction, AuditLogEntry

__all__ = [
    "Tool",
    "ToolStatus",
    "ToolEdits",
    "ToolResponse",
    "MessageResponse",
    "AuditAction",
    "AuditLogEntry",
]
