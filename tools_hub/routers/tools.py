"""Tool directory API: listing, submission and moderation."""
import logging
from functools import partial
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from tools_hub import permissions
from tools_hub.dependencies import get_current_user, get_tool_service, require_admin, require_auth
from tools_hub.errors import InvalidInput, NotFound
from tools_hub.schemas.tool import (
    ApproveRequest,
    BackfillTagsRequest,
    BackfillTagsResponse,
    DeleteRequest,
    MessageResponse,
    PublishRequest,
    RateRequest,
    RejectRequest,
    ResubmitRequest,
    ToolCreate,
    ToolListResponse,
    ToolResponse,
    ToolStatus,
    ToolUpdateRequest,
    VoteRequest,
)
from tools_hub.services import lifecycle
from tools_hub.services.lifecycle import Transition
from tools_hub.services.notifications import NotificationDispatcher, get_notification_dispatcher
from tools_hub.services.tools import ToolService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tools", tags=["tools"])


def _notify(background_tasks: BackgroundTasks, dispatcher: NotificationDispatcher, transition: Transition) -> None:
    """Send a transition's emails after the response has gone out."""
    if transition.notifications:
        background_tasks.add_task(dispatcher.dispatch, transition.notifications)


@router.get("", response_model=ToolListResponse, response_model_exclude_none=True)
async def list_tools(
    status: Optional[str] = Query(None, description='Status filter, or "all"'),
    user: Optional[str] = Depends(get_current_user),
    service: ToolService = Depends(get_tool_service),
):
    """
    List tools visible to the caller.

    Anonymous callers and regular users see published tools and their own
    submissions; admins see every tool.
    """
    return ToolListResponse(tools=service.list_visible(user, status))


@router.post("/backfill-tags", response_model=BackfillTagsResponse, response_model_exclude_none=True)
async def backfill_tags(
    payload: Optional[BackfillTagsRequest] = None,
    admin: str = Depends(require_admin),
    service: ToolService = Depends(get_tool_service),
):
    """Assign keyword-rule tags to every tool that has none."""
    overwrite = payload.overwrite if payload else False
    updated, skipped, tools = service.backfill_tags(overwrite=overwrite)
    logger.info(f"Tag backfill run by {admin}")
    return BackfillTagsResponse(updated=updated, skipped=skipped, tools=tools)


@router.get("/{tool_id}", response_model=ToolResponse, response_model_exclude_none=True)
async def get_tool(
    tool_id: str,
    user: Optional[str] = Depends(get_current_user),
    service: ToolService = Depends(get_tool_service),
):
    tool = service.get(tool_id)
    if not (
        tool.status == ToolStatus.PUBLISHED
        or permissions.is_admin(user)
        or permissions.is_owner(user, tool.created_by)
    ):
        raise NotFound()
    return ToolResponse(tool=tool)


@router.post("", response_model=ToolResponse, response_model_exclude_none=True)
async def create_tool(
    payload: ToolCreate,
    background_tasks: BackgroundTasks,
    user: str = Depends(require_auth),
    service: ToolService = Depends(get_tool_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Submit a tool for review. New tools always start pending."""
    transition = service.create(payload, user)
    _notify(background_tasks, dispatcher, transition)
    return ToolResponse(tool=transition.tool, message="Tool submitted for approval")


@router.put("/{tool_id}/approve", response_model=ToolResponse, response_model_exclude_none=True)
async def approve_tool(
    tool_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[ApproveRequest] = None,
    user: str = Depends(require_auth),
    service: ToolService = Depends(get_tool_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    edits = payload.updates if payload else None
    transition = service.apply(tool_id, partial(lifecycle.approve, actor=user, edits=edits), actor=user)
    _notify(background_tasks, dispatcher, transition)
    return ToolResponse(tool=transition.tool, message="Tool approved and published")


@router.post("/{tool_id}/reject", response_model=ToolResponse, response_model_exclude_none=True)
async def reject_tool(
    tool_id: str,
    payload: RejectRequest,
    background_tasks: BackgroundTasks,
    user: str = Depends(require_auth),
    service: ToolService = Depends(get_tool_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    transition = service.apply(tool_id, partial(lifecycle.reject, actor=user, reason=payload.reason), actor=user)
    _notify(background_tasks, dispatcher, transition)
    return ToolResponse(tool=transition.tool, message="Tool rejected")


@router.put("/{tool_id}/publish", response_model=ToolResponse, response_model_exclude_none=True)
async def publish_tool(
    tool_id: str,
    payload: PublishRequest,
    background_tasks: BackgroundTasks,
    user: str = Depends(require_auth),
    service: ToolService = Depends(get_tool_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Publish or unpublish a tool."""
    transition = service.apply(
        tool_id,
        partial(
            lifecycle.set_publication,
            actor=user,
            target_status=payload.status,
            notify=payload.send_email_notification,
        ),
        actor=user,
    )
    _notify(background_tasks, dispatcher, transition)
    return ToolResponse(tool=transition.tool, message=f"Tool {payload.status}")


@router.put("/{tool_id}/resubmit", response_model=ToolResponse, response_model_exclude_none=True)
async def resubmit_tool(
    tool_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[ResubmitRequest] = None,
    user: str = Depends(require_auth),
    service: ToolService = Depends(get_tool_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Send a rejected tool back to the approval queue (owner only)."""
    edits = payload.updates if payload else None
    transition = service.apply(tool_id, partial(lifecycle.resubmit, actor=user, edits=edits), actor=user)
    _notify(background_tasks, dispatcher, transition)
    return ToolResponse(tool=transition.tool, message="Tool resubmitted for approval")


@router.put("/{tool_id}/vote", response_model=ToolResponse, response_model_exclude_none=True)
async def vote_tool(
    tool_id: str,
    payload: VoteRequest,
    service: ToolService = Depends(get_tool_service),
):
    transition = service.apply(tool_id, partial(lifecycle.vote, vote_type=payload.vote_type))
    return ToolResponse(tool=transition.tool)


@router.put("/{tool_id}/rate", response_model=ToolResponse, response_model_exclude_none=True)
async def rate_tool(
    tool_id: str,
    payload: RateRequest,
    service: ToolService = Depends(get_tool_service),
):
    transition = service.apply(tool_id, partial(lifecycle.rate, score=payload.rating))
    return ToolResponse(tool=transition.tool)


@router.put("/{tool_id}", response_model=ToolResponse, response_model_exclude_none=True)
async def update_tool(
    tool_id: str,
    payload: ToolUpdateRequest,
    background_tasks: BackgroundTasks,
    user: str = Depends(require_auth),
    service: ToolService = Depends(get_tool_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Edit a tool (admin only).

    A ``status`` of published/unpublished is applied through the publication
    rules after any field edits. Other status values are rejected; use the
    dedicated approve, reject and resubmit endpoints.
    """
    if payload.status is not None and payload.status not in (
        ToolStatus.PUBLISHED.value,
        ToolStatus.UNPUBLISHED.value,
    ):
        raise InvalidInput(
            'Status can only be set to "published" or "unpublished" here; '
            "use the approve, reject or resubmit endpoints"
        )

    operations = []
    if payload.changes() or payload.status is None:
        operations.append(partial(lifecycle.update, actor=user, edits=payload))
    if payload.status is not None:
        operations.append(partial(
            lifecycle.set_publication,
            actor=user,
            target_status=payload.status,
            notify=payload.send_email_notification,
        ))

    # Edits and the status change are saved together or not at all
    transition = service.apply(tool_id, *operations, actor=user)
    _notify(background_tasks, dispatcher, transition)
    return ToolResponse(tool=transition.tool, message="Tool updated")


@router.delete("/{tool_id}", response_model=MessageResponse)
async def delete_tool(
    tool_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[DeleteRequest] = None,
    user: str = Depends(require_auth),
    service: ToolService = Depends(get_tool_service),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Reject or delete a tool.

    With a non-empty ``rejectionReason`` the tool is rejected and kept for its
    owner to revise; without one it is permanently removed.
    """
    reason = (payload.rejection_reason or "").strip() if payload else ""

    if reason:
        transition = service.apply(tool_id, partial(lifecycle.reject, actor=user, reason=reason), actor=user)
        _notify(background_tasks, dispatcher, transition)
        return MessageResponse(message="Tool rejected")

    service.apply(tool_id, partial(lifecycle.delete, actor=user), actor=user)
    return MessageResponse(message="Tool deleted")
