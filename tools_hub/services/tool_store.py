"""Tool collection repository.

All tools live in one JSON array under ``settings.TOOLS_KEY``. Every change
loads the whole array, edits one element and writes the whole array back.
The version read by ``load`` is remembered and ``save`` only succeeds if
nobody else wrote in between, so concurrent edits surface as ``Conflict``
instead of silently overwriting each other.
"""
import logging
from typing import List, Optional

from pydantic import ValidationError

from tools_hub.errors import NotFound, StoreUnavailable
from tools_hub.schemas.tool import Tool
from tools_hub.services.kv_store import KeyValueStore
from tools_hub.settings import settings

logger = logging.getLogger(__name__)


class ToolStore:
    """Load/save the full tool collection."""

    def __init__(self, kv: KeyValueStore, key: Optional[str] = None):
        self.kv = kv
        self.key = key or settings.TOOLS_KEY
        self._version: Optional[int] = None

    def load(self) -> List[Tool]:
        """Return every tool in stored order; an absent key means no tools yet."""
        stored = self.kv.get_versioned(self.key)
        self._version = stored.version

        if stored.value is None:
            return []
        if not isinstance(stored.value, list):
            logger.error(f"Tool document under {self.key} is not a list")
            raise StoreUnavailable("Tool data is corrupted")

        try:
            return [Tool.model_validate(item) for item in stored.value]
        except ValidationError as e:
            logger.error(f"Tool document under {self.key} failed validation: {e}")
            raise StoreUnavailable("Tool data is corrupted") from e

    def save(self, tools: List[Tool]) -> None:
        """Overwrite the stored collection.

        Raises:
            Conflict: If the collection changed since ``load``
        """
        document = [tool.to_document() for tool in tools]
        self._version = self.kv.set(self.key, document, expected_version=self._version)


def find_index_by_id(tools: List[Tool], tool_id: str) -> int:
    """Position of a tool in the collection.

    Raises:
        NotFound: If no tool has this id
    """
    for index, tool in enumerate(tools):
        if tool.id == tool_id:
            return index
    raise NotFound("Tool not found")
