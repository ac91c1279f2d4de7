"""Database models."""
from tools_hub.models.kv import KeyValueEntry
from tools_hub.models.auth import Session

__all__ = [
    "KeyValueEntry",
    "Session",
]
