"""Tool moderation lifecycle.

Pure decision logic: every operation takes the current tool snapshot and the
acting identity and returns a ``Transition`` describing the new snapshot, what
to write to the audit log and which notifications to send. Nothing here reads
or writes storage or talks to the network; callers persist the result and
hand the notifications to the dispatcher.

    [pending] --approve--> [published] <--publish/unpublish--> [unpublished]
        |
    reject(reason)
        |
        v
    [rejected] --resubmit--> [pending]

Deletion removes the tool from the collection and is not a status.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from tools_hub import permissions
from tools_hub.errors import Forbidden, InvalidInput, InvalidState
from tools_hub.schemas.audit import AuditAction
from tools_hub.schemas.tool import Tool, ToolCreate, ToolEdits, ToolStatus
from tools_hub.timeutil import isoformat_now


class NotificationKind(str, Enum):
    """Emails triggered by lifecycle transitions."""
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    UNPUBLISHED = "unpublished"


@dataclass(frozen=True)
class Notification:
    """A notification owed after a transition has been persisted."""
    kind: NotificationKind
    tool: Tool
    actor: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class Transition:
    """Outcome of a lifecycle operation."""
    tool: Tool
    action: Optional[AuditAction] = None
    previous_status: Optional[ToolStatus] = None
    metadata: dict = field(default_factory=dict)
    notifications: List[Notification] = field(default_factory=list)
    removed: bool = False

    def audit_metadata(self) -> dict:
        data = dict(self.metadata)
        if self.previous_status is not None:
            data.setdefault("previousStatus", self.previous_status.value)
        if not self.removed:
            data.setdefault("newStatus", self.tool.status.value)
        return data


def new_tool_id() -> str:
    return uuid.uuid4().hex


_CLEARED_REJECTION = {"rejected_by": None, "rejected_at": None, "rejection_reason": None}


def _edits(edits: Optional[ToolEdits]) -> dict:
    return edits.changes() if edits is not None else {}


def submit(payload: ToolCreate, actor: str) -> Transition:
    """Create a tool. Every submission, including an admin's, starts pending."""
    now = isoformat_now()
    data = payload.model_dump(exclude_none=True, exclude={"status", "send_email_notification"})
    tool = Tool(
        **data,
        id=new_tool_id(),
        status=ToolStatus.PENDING,
        created_by=actor,
        created_at=now,
        updated_at=now,
    )
    return Transition(
        tool=tool,
        action=AuditAction.TOOL_CREATED,
        notifications=[Notification(NotificationKind.PENDING_APPROVAL, tool, actor=actor)],
    )


def approve(tool: Tool, actor: str, edits: Optional[ToolEdits] = None) -> Transition:
    """Publish a tool, applying any moderator edits first."""
    if not permissions.can_approve(actor):
        raise Forbidden("Unauthorized")

    now = isoformat_now()
    approved = tool.model_copy(update={
        **_edits(edits),
        "id": tool.id,
        "status": ToolStatus.PUBLISHED,
        "approved_by": actor,
        "approved_at": now,
        "updated_at": now,
        **_CLEARED_REJECTION,
    })

    notifications = []
    if permissions.is_real_user(tool.created_by):
        notifications.append(Notification(NotificationKind.APPROVED, approved, actor=actor))

    return Transition(
        tool=approved,
        action=AuditAction.TOOL_APPROVED,
        previous_status=tool.status,
        notifications=notifications,
    )


def reject(tool: Tool, actor: str, reason: Optional[str]) -> Transition:
    """Send a tool back to its owner with feedback. The tool is kept."""
    if not permissions.can_approve(actor):
        raise Forbidden("Unauthorized")

    reason = (reason or "").strip()
    if not reason:
        raise InvalidInput("A rejection reason is required")

    now = isoformat_now()
    rejected = tool.model_copy(update={
        "status": ToolStatus.REJECTED,
        "rejected_by": actor,
        "rejected_at": now,
        "rejection_reason": reason,
        "updated_at": now,
    })

    notifications = []
    if permissions.is_real_user(tool.created_by):
        notifications.append(Notification(NotificationKind.REJECTED, rejected, actor=actor, reason=reason))

    return Transition(
        tool=rejected,
        action=AuditAction.TOOL_REJECTED,
        previous_status=tool.status,
        metadata={"rejectionReason": reason},
        notifications=notifications,
    )


def delete(tool: Tool, actor: str) -> Transition:
    """Permanently remove a tool. Irreversible."""
    if not permissions.can_delete(actor):
        raise Forbidden("Unauthorized")

    return Transition(
        tool=tool,
        action=AuditAction.TOOL_DELETED,
        previous_status=tool.status,
        removed=True,
    )


def resubmit(tool: Tool, actor: str, edits: Optional[ToolEdits] = None) -> Transition:
    """Return a rejected tool to the queue. Only its owner may do this."""
    if tool.status != ToolStatus.REJECTED:
        raise InvalidState("Tool is not in rejected status")

    if not permissions.is_owner(actor, tool.created_by):
        raise Forbidden("You can only resubmit your own tools")

    now = isoformat_now()
    resubmitted = tool.model_copy(update={
        **_edits(edits),
        "id": tool.id,
        "status": ToolStatus.PENDING,
        "resubmitted_at": now,
        "updated_at": now,
        **_CLEARED_REJECTION,
    })

    return Transition(
        tool=resubmitted,
        action=AuditAction.TOOL_RESUBMITTED,
        previous_status=tool.status,
        notifications=[Notification(NotificationKind.PENDING_APPROVAL, resubmitted, actor=actor)],
    )


def set_publication(tool: Tool, actor: str, target_status: str, notify: bool = False) -> Transition:
    """Toggle a tool between published and unpublished.

    Approval metadata from an earlier publication is left in place when a tool
    is unpublished.
    """
    if not permissions.can_publish(actor):
        raise Forbidden("Unauthorized")

    if target_status not in (ToolStatus.PUBLISHED.value, ToolStatus.UNPUBLISHED.value):
        raise InvalidInput('Invalid status. Must be "published" or "unpublished"')

    now = isoformat_now()
    update = {"status": ToolStatus(target_status), "updated_at": now, **_CLEARED_REJECTION}
    if target_status == ToolStatus.PUBLISHED.value:
        update.update({"approved_by": actor, "approved_at": now})
    changed = tool.model_copy(update=update)

    notifications = []
    if (
        target_status == ToolStatus.UNPUBLISHED.value
        and notify
        and permissions.is_real_user(tool.created_by)
    ):
        notifications.append(Notification(NotificationKind.UNPUBLISHED, changed, actor=actor))

    action = AuditAction.TOOL_PUBLISHED if target_status == ToolStatus.PUBLISHED.value else AuditAction.TOOL_UNPUBLISHED
    return Transition(
        tool=changed,
        action=action,
        previous_status=tool.status,
        notifications=notifications,
    )


def update(tool: Tool, actor: str, edits: ToolEdits) -> Transition:
    """Edit descriptive fields without touching the moderation state."""
    if not permissions.can_edit(actor):
        raise Forbidden("Unauthorized")

    changes = _edits(edits)
    edited = tool.model_copy(update={**changes, "id": tool.id, "updated_at": isoformat_now()})
    return Transition(
        tool=edited,
        action=AuditAction.TOOL_UPDATED,
        previous_status=tool.status,
        metadata={"fields": sorted(changes)},
    )


def vote(tool: Tool, vote_type: str) -> Transition:
    """Count an up or down vote. Independent of moderation status."""
    if vote_type == "up":
        changed = tool.model_copy(update={"upvotes": (tool.upvotes or 0) + 1})
    elif vote_type == "down":
        changed = tool.model_copy(update={"downvotes": (tool.downvotes or 0) + 1})
    else:
        raise InvalidInput('Invalid vote type. Must be "up" or "down"')
    return Transition(tool=changed)


def rate(tool: Tool, score: int) -> Transition:
    """Fold a 1-5 star rating into the running average (one decimal)."""
    if isinstance(score, bool) or not isinstance(score, int) or not 1 <= score <= 5:
        raise InvalidInput("Invalid rating. Must be between 1 and 5")

    count = tool.rating_count or 0
    total = (tool.rating or 0) * count
    new_count = count + 1
    average = (total + score) / new_count
    changed = tool.model_copy(update={
        "rating": round_half_up(average, 1),
        "rating_count": new_count,
    })
    return Transition(tool=changed)


def round_half_up(value: float, digits: int) -> float:
    """Round like ``Math.round`` does for positive values (``round`` is banker's)."""
    factor = 10 ** digits
    return int(value * factor + 0.5) / factor
