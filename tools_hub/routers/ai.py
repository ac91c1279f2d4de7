"""AI helpers used by the submission wizard."""
import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from tools_hub.dependencies import require_auth
from tools_hub.schemas.ai import (
    GeneratedToolContent,
    GenerateTagsRequest,
    GenerateTagsResponse,
    ScreenshotResponse,
    UrlRequest,
)
from tools_hub.services import ai

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ai"])


@router.post("/generate-tags", response_model=GenerateTagsResponse)
async def generate_tags(payload: GenerateTagsRequest, user: str = Depends(require_auth)):
    """Suggest search tags for a draft tool."""
    tags = await run_in_threadpool(
        ai.generate_tool_tags,
        payload.title,
        payload.url,
        payload.description,
        payload.full_description,
        payload.category,
    )
    return GenerateTagsResponse(tags=tags, ai_generated=True)


@router.post("/generate-tool", response_model=GeneratedToolContent)
async def generate_tool(payload: UrlRequest, user: str = Depends(require_auth)):
    """Draft a tool listing from its URL."""
    return await run_in_threadpool(ai.generate_tool_content, payload.url)


@router.post("/capture-screenshot", response_model=ScreenshotResponse)
async def capture_screenshot(payload: UrlRequest, user: str = Depends(require_auth)):
    screenshot_url = await run_in_threadpool(ai.capture_screenshot, payload.url)
    if not screenshot_url:
        return ScreenshotResponse(success=False, error="Failed to capture screenshot")
    return ScreenshotResponse(success=True, screenshot_url=screenshot_url)
