"""Tool directory service: runs lifecycle operations against the store.

Each mutating call is one load-mutate-save cycle over the whole collection,
followed by an audit record. Notifications are returned to the caller (inside
the ``Transition``) rather than sent here.
"""
import logging
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from tools_hub import permissions
from tools_hub.errors import InvalidInput
from tools_hub.schemas.tool import Tool, ToolCreate, ToolStatus
from tools_hub.services import lifecycle
from tools_hub.services.audit import AuditRecorder
from tools_hub.services.kv_store import KeyValueStore
from tools_hub.services.lifecycle import Transition
from tools_hub.services.tagging import rule_based_tags
from tools_hub.services.tool_store import ToolStore, find_index_by_id

logger = logging.getLogger(__name__)

STATUS_FILTER_ALL = "all"


class ToolService:
    """Moderation workflow over the stored tool collection."""

    def __init__(self, db: Session):
        kv = KeyValueStore(db)
        self.store = ToolStore(kv)
        self.audit = AuditRecorder(kv)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, tool_id: str) -> Tool:
        tools = self.store.load()
        return tools[find_index_by_id(tools, tool_id)]

    def list_visible(self, viewer: Optional[str], status_filter: Optional[str] = None) -> List[Tool]:
        """
        Tools a viewer may see, optionally filtered by status.

        Admins see everything. Everyone else sees published tools plus their
        own submissions in any status.

        Args:
            viewer: Email of the signed-in user, or None
            status_filter: A status value, or None/"all" for no filter
        """
        status_filter = status_filter or STATUS_FILTER_ALL
        if status_filter != STATUS_FILTER_ALL and status_filter not in {s.value for s in ToolStatus}:
            raise InvalidInput(f"Invalid status filter: {status_filter}")

        admin = permissions.is_admin(viewer)
        visible = []
        for tool in self.store.load():
            if status_filter != STATUS_FILTER_ALL and tool.status.value != status_filter:
                continue
            if admin or tool.status == ToolStatus.PUBLISHED or permissions.is_owner(viewer, tool.created_by):
                visible.append(tool)
        return visible

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, payload: ToolCreate, actor: str) -> Transition:
        transition = lifecycle.submit(payload, actor)
        tools = self.store.load()
        tools.append(transition.tool)
        self.store.save(tools)
        self._audit(transition, actor)
        logger.info(f"Tool '{transition.tool.title}' submitted by {actor} ({transition.tool.id})")
        return transition

    def apply(
        self,
        tool_id: str,
        *operations: Callable[[Tool], Transition],
        actor: Optional[str] = None,
    ) -> Transition:
        """
        Run lifecycle operations on one tool and persist the collection once.

        Operations run in order, each on the snapshot the previous one
        produced. Nothing is saved unless all of them succeed.

        Args:
            tool_id: Tool to operate on
            operations: Functions from current snapshot to ``Transition``
            actor: Identity recorded in the audit log

        Returns:
            The last transition, carrying the notifications of all of them

        Raises:
            NotFound: If the tool does not exist
            Conflict: If the collection changed while this request ran
        """
        tools = self.store.load()
        index = find_index_by_id(tools, tool_id)

        transitions = []
        current = tools[index]
        for operation in operations:
            transition = operation(current)
            transitions.append(transition)
            current = transition.tool

        transition = transitions[-1]
        if transition.removed:
            del tools[index]
        else:
            tools[index] = transition.tool

        self.store.save(tools)
        if actor:
            for step in transitions:
                self._audit(step, actor)

        if len(transitions) > 1:
            transition = replace(
                transition,
                notifications=[n for step in transitions for n in step.notifications],
            )
        return transition

    def backfill_tags(self, overwrite: bool = False) -> Tuple[int, int, List[Tool]]:
        """
        Give every untagged tool rule-based tags.

        Returns:
            Tuple of (updated_count, skipped_count, tools)
        """
        tools = self.store.load()
        updated = 0
        skipped = 0
        for index, tool in enumerate(tools):
            if tool.tags and not overwrite:
                skipped += 1
                continue
            tools[index] = tool.model_copy(update={"tags": rule_based_tags(tool)})
            updated += 1

        self.store.save(tools)
        logger.info(f"Tag backfill complete - updated: {updated}, skipped: {skipped}")
        return updated, skipped, tools

    def _audit(self, transition: Transition, actor: str) -> None:
        if transition.action is None:
            return
        self.audit.record(
            transition.action,
            transition.tool.id,
            transition.tool.title,
            actor,
            metadata=transition.audit_metadata(),
        )
