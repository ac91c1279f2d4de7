"""Tool Pydantic schemas.

Tools are stored and served with camelCase keys (``createdBy``,
``rejectionReason``...) so the persisted document stays readable by the
existing front end. Python code uses the snake_case attribute names.
"""
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ToolStatus(str, Enum):
    """Moderation status of a tool."""
    PENDING = "pending"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"
    REJECTED = "rejected"


AccentColor = Literal["green", "blue", "purple"]


class CamelModel(BaseModel):
    """Base model accepting either camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Tool(CamelModel):
    """A cataloged internal tool or chatbot.

    Unknown keys found in the stored document are kept as extras so that a
    load/save cycle never drops data written by older versions.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    title: str = ""
    description: str = ""
    full_description: Optional[str] = None
    url: str = ""
    category: str = ""
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    accent_color: Optional[str] = None
    category_color: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    # Moderation
    status: ToolStatus = ToolStatus.PENDING
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    resubmitted_at: Optional[str] = None

    # Engagement
    upvotes: int = 0
    downvotes: int = 0
    rating: float = 0
    rating_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def default_legacy_status(cls, data):
        """Records written before moderation existed were live on the site."""
        if isinstance(data, dict) and data.get("status") is None:
            data = {**data, "status": ToolStatus.PUBLISHED.value}
        return data

    def to_document(self) -> dict:
        """Serialize for storage and responses (cleared fields are omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Request Schemas
class ToolEdits(CamelModel):
    """Allow-listed descriptive fields a moderator or owner may change.

    Lifecycle fields (status, approval and rejection stamps, owner, counters)
    are not accepted here; unknown keys are ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    full_description: Optional[str] = Field(None, max_length=10000)
    url: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[str] = Field(None, max_length=100)
    video_url: Optional[str] = Field(None, max_length=2000)
    thumbnail_url: Optional[str] = Field(None, max_length=2000)
    accent_color: Optional[AccentColor] = None
    category_color: Optional[str] = Field(None, max_length=50)
    features: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    @field_validator("title", "url")
    @classmethod
    def required_fields_not_null(cls, v: Optional[str]) -> Optional[str]:
        """Title and URL may be left out of an edit but never cleared."""
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("features", "tags")
    @classmethod
    def strip_blank_items(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return [item.strip() for item in v if item and item.strip()]

    def changes(self) -> dict:
        """Fields explicitly provided by the caller, keyed by attribute name."""
        return self.model_dump(exclude_unset=True, exclude={"status", "send_email_notification"})


class ToolCreate(ToolEdits):
    """Schema for submitting a new tool."""
    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1, max_length=2000)
    description: str = Field("", max_length=1000)
    category: str = Field("", max_length=100)


class ToolUpdateRequest(ToolEdits):
    """Schema for the generic admin edit.

    ``status`` is accepted for compatibility; only ``published`` and
    ``unpublished`` are honoured and they go through the publication rules.
    """
    status: Optional[str] = None
    send_email_notification: bool = False


class ApproveRequest(CamelModel):
    """Schema for approving a tool, optionally with moderator edits."""
    updates: Optional[ToolEdits] = None


class ResubmitRequest(CamelModel):
    """Schema for resubmitting a rejected tool, optionally with edits."""
    updates: Optional[ToolEdits] = None


class RejectRequest(CamelModel):
    """Schema for rejecting a tool."""
    reason: str = Field(..., max_length=2000, description="Feedback sent to the submitter")


class DeleteRequest(CamelModel):
    """Schema for the combined reject/delete call.

    A non-empty ``rejectionReason`` rejects the tool; without one the tool is
    permanently removed.
    """
    rejection_reason: Optional[str] = Field(None, max_length=2000)


class PublishRequest(CamelModel):
    """Schema for toggling publication."""
    status: Literal["published", "unpublished"]
    send_email_notification: bool = False


class VoteRequest(CamelModel):
    """Schema for an up/down vote."""
    vote_type: Literal["up", "down"]


class RateRequest(CamelModel):
    """Schema for a star rating."""
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")


class BackfillTagsRequest(CamelModel):
    """Schema for re-tagging tools from keyword rules."""
    overwrite: bool = False


# Response Schemas
class ToolResponse(CamelModel):
    """Schema for a single-tool response."""
    success: bool = True
    tool: Tool
    message: Optional[str] = None


class ToolListResponse(CamelModel):
    """Schema for tool listings."""
    tools: List[Tool]


class MessageResponse(CamelModel):
    """Generic success message."""
    success: bool = True
    message: str


class BackfillTagsResponse(CamelModel):
    """Schema for the tag backfill summary."""
    success: bool = True
    updated: int
    skipped: int
    tools: List[Tool]
