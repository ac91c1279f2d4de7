"""Moderation email notifications.

The lifecycle emits ``Notification`` events; routes schedule
``NotificationDispatcher.dispatch`` as a background task so the HTTP response
is sent before any email goes out. Delivery is best effort: every failure is
logged and swallowed, and the moderation change stands regardless.
"""
import logging
from typing import Iterable, Optional

from tools_hub.schemas.tool import Tool
from tools_hub.services.email import EmailClient
from tools_hub.services.lifecycle import Notification, NotificationKind
from tools_hub.settings import settings
from tools_hub.templates_engine import render_email

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Turns lifecycle events into emails."""

    def __init__(self, email: Optional[EmailClient] = None, site_url: Optional[str] = None):
        self.email = email or EmailClient()
        self.site_url = (site_url or settings.SITE_URL).rstrip("/")

    def dispatch(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            try:
                self._route(notification)
            except Exception as e:
                logger.error(
                    f"Failed to send {notification.kind.value} notification for tool "
                    f"'{notification.tool.title}' (non-blocking): {e}",
                    exc_info=True,
                )

    def _route(self, notification: Notification) -> None:
        tool = notification.tool
        if notification.kind == NotificationKind.PENDING_APPROVAL:
            self.notify_pending_approval(tool)
        elif notification.kind == NotificationKind.APPROVED:
            self.notify_approved(tool, notification.actor)
        elif notification.kind == NotificationKind.REJECTED:
            self.notify_rejected(tool, notification.actor, notification.reason)
        elif notification.kind == NotificationKind.UNPUBLISHED:
            self.notify_unpublished(tool, notification.actor)

    def _tool_link(self, tool: Tool) -> str:
        return f"{self.site_url}#{tool.id}"

    def notify_pending_approval(self, tool: Tool) -> None:
        """Tell the admin inbox a tool is waiting in the queue."""
        recipient = settings.admin_inbox
        if not recipient:
            logger.warning("No admin inbox configured; skipping pending approval email")
            return
        html = render_email(
            "pending_approval",
            tool=tool,
            review_link=f"{self.site_url}?view=pending#{tool.id}",
        )
        self.email.send(recipient, f"New Tool Pending Approval: {tool.title}", html)

    def notify_approved(self, tool: Tool, approver: Optional[str]) -> None:
        html = render_email("approved", tool=tool, actor=approver, tool_link=self._tool_link(tool))
        self.email.send(tool.created_by, f'Your tool "{tool.title}" has been approved!', html)

    def notify_rejected(self, tool: Tool, rejecter: Optional[str], reason: Optional[str]) -> None:
        html = render_email(
            "rejected",
            tool=tool,
            actor=rejecter,
            reason=reason,
            tool_link=f"{self.site_url}?view=rejected#{tool.id}",
        )
        self.email.send(tool.created_by, f'Your tool "{tool.title}" needs revision', html)

    def notify_unpublished(self, tool: Tool, actor: Optional[str]) -> None:
        html = render_email("unpublished", tool=tool, actor=actor)
        self.email.send(tool.created_by, f'Your tool "{tool.title}" has been unpublished', html)


def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency; overridden in tests with a recording fake."""
    return NotificationDispatcher()
