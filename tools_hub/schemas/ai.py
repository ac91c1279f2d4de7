"""Schemas for AI-assisted metadata generation."""
from typing import List, Optional
from pydantic import BaseModel, Field

from tools_hub.schemas.tool import CamelModel


class GenerateTagsRequest(CamelModel):
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    description: str = ""
    full_description: str = ""
    category: str = ""


class GenerateTagsResponse(CamelModel):
    success: bool = True
    tags: List[str]
    ai_generated: bool


class UrlRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2000)


class GeneratedToolContent(CamelModel):
    """Draft listing content suggested by the language model."""
    title: str = ""
    description: str = ""
    full_description: str = ""
    category: str = ""
    accent_color: Optional[str] = None
    features: List[str] = Field(default_factory=list)


class ScreenshotResponse(CamelModel):
    success: bool
    screenshot_url: Optional[str] = None
    error: Optional[str] = None
