"""Audit log of moderation actions.

The log is a single newest-first JSON array under ``settings.AUDIT_LOG_KEY``,
capped at ``settings.AUDIT_LOG_MAX_ENTRIES`` entries. Recording never raises:
a failed audit write must not undo or block the change being audited.
"""
import logging
import secrets
import string
import time
from typing import List, Optional

from tools_hub.schemas.audit import AuditAction, AuditLogEntry
from tools_hub.services.kv_store import KeyValueStore
from tools_hub.settings import settings

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _entry_id(timestamp_ms: int) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"audit_{timestamp_ms}_{suffix}"


class AuditRecorder:
    """Append-only, capped audit log."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv
        self.key = settings.AUDIT_LOG_KEY
        self.max_entries = settings.AUDIT_LOG_MAX_ENTRIES

    def record(
        self,
        action: AuditAction,
        tool_id: str,
        tool_title: str,
        performed_by: str,
        metadata: Optional[dict] = None,
    ) -> Optional[AuditLogEntry]:
        """
        Prepend an entry and trim the log.

        Returns:
            The stored entry, or None if it could not be written
        """
        try:
            timestamp = int(time.time() * 1000)
            entry = AuditLogEntry(
                id=_entry_id(timestamp),
                timestamp=timestamp,
                action=action,
                tool_id=tool_id,
                tool_title=tool_title or "",
                performed_by=performed_by,
                metadata=metadata or None,
            )

            logs = self.kv.get(self.key, default=[])
            logs.insert(0, entry.model_dump(mode="json", by_alias=True, exclude_none=True))
            self.kv.set(self.key, logs[:self.max_entries])

            logger.info(f"Audit: {action.value} for tool '{tool_title}' by {performed_by}")
            return entry
        except Exception as e:
            logger.error(f"Audit log write failed for {action.value} on {tool_id}: {e}", exc_info=True)
            return None

    def get_logs(self, limit: Optional[int] = None) -> List[AuditLogEntry]:
        """All entries, newest first, optionally limited."""
        logs = self.kv.get(self.key, default=[])
        if limit and limit > 0:
            logs = logs[:limit]
        return [AuditLogEntry.model_validate(item) for item in logs]

    def get_logs_for_tool(self, tool_id: str) -> List[AuditLogEntry]:
        return [entry for entry in self.get_logs() if entry.tool_id == tool_id]
