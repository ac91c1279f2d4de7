"""Audit log API (admin only)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tools_hub.db import get_db
from tools_hub.dependencies import require_admin
from tools_hub.schemas.audit import AuditLogResponse
from tools_hub.services.audit import AuditRecorder
from tools_hub.services.kv_store import KeyValueStore

router = APIRouter(prefix="/api/audit-logs", tags=["audit"])


def get_audit_recorder(db: Session = Depends(get_db)) -> AuditRecorder:
    return AuditRecorder(KeyValueStore(db))


@router.get("", response_model=AuditLogResponse, response_model_exclude_none=True)
async def list_audit_logs(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    admin: str = Depends(require_admin),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Most recent moderation actions, newest first."""
    logs = recorder.get_logs(limit)
    return AuditLogResponse(logs=logs, count=len(logs))


@router.get("/tools/{tool_id}", response_model=AuditLogResponse, response_model_exclude_none=True)
async def tool_audit_logs(
    tool_id: str,
    admin: str = Depends(require_admin),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """History of one tool, newest first."""
    logs = recorder.get_logs_for_tool(tool_id)
    return AuditLogResponse(logs=logs, count=len(logs))
