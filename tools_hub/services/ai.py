"""AI helpers for drafting tool listings.

Tag suggestions and listing drafts come from the OpenAI chat API; page
previews come from a hosted screenshot API. Tag generation never fails the
caller: any model problem falls back to keyword tags.
"""
import json
import logging
import re
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup
from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from tools_hub.errors import DependencyFailure
from tools_hub.schemas.ai import GeneratedToolContent
from tools_hub.services.tagging import fallback_tags
from tools_hub.settings import settings

logger = logging.getLogger(__name__)

MIN_TAGS = 3
MAX_TAGS = 7

TAG_SYSTEM_PROMPT = "You are a tagging expert for business software tools. Return only valid JSON arrays."

TAG_PROMPT = """You are an expert at categorizing business tools for a mortgage company (CMG Financial).

Analyze this tool and suggest 3-7 relevant tags for search and categorization:

Title: {title}
Category: {category}
Description: {description}
Full Description: {full_description}
URL: {url}

Choose tags from these groups (you can also suggest new ones if highly relevant):

Departments: Sales, Operations, Underwriting, Processing, Closing, IT/Technology,
HR/People, Marketing, Finance, Legal/Compliance, Executive/Management

User Types: Loan Officers, Loan Officer Assistants, Branch Managers, Underwriters,
Processors, Closers, Operations Staff, Marketing Team, HR Team, IT Team, Executives

Functions: Communication, Documentation, Training, Analytics, Reporting, Automation,
AI/Machine Learning, Customer Service, Lead Generation, CRM, Workflow Management,
Data Management, Compliance, Integration, Collaboration

Use Cases: Loan Origination, Document Processing, Guideline Research, Income Verification,
Property Valuation, Rate Shopping, Pipeline Management, Borrower Communication,
Team Coordination, Change Management

Return ONLY a JSON array of 3-7 tag strings, nothing else.
Example: ["Sales", "Loan Officers", "AI/Machine Learning", "Guideline Research", "Automation"]"""

CONTENT_SYSTEM_PROMPT = """You are an expert at analyzing web applications and writing product descriptions
for an internal tools directory. Given a URL (and the page text when available), describe what the tool does.

Return a JSON object with this structure:
{
    "title": "Tool Name (2-4 words)",
    "description": "Brief one-line description (under 150 characters)",
    "fullDescription": "Detailed description (2-3 sentences)",
    "category": "One of: Operations, Marketing, Engineering, Finance, HR, Analytics",
    "accentColor": "One of: green, blue, purple",
    "features": ["6 key features as short bullet points"]
}

Be factual and do not invent features you cannot infer from the URL or page text."""

_client: Optional[OpenAI] = None


def get_openai_client() -> Optional[OpenAI]:
    """Shared OpenAI client, or None when no API key is configured."""
    global _client
    if _client is None and settings.OPENAI_API_KEY:
        _client = OpenAI(api_key=settings.OPENAI_API_KEY)
    return _client


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def generate_tool_tags(
    title: str,
    url: str,
    description: str = "",
    full_description: str = "",
    category: str = "",
) -> List[str]:
    """
    Suggest 3-7 search tags for a tool.

    Returns:
        Tags from the model, or keyword-based tags if the model is unavailable
        or answers with something unusable
    """
    client = get_openai_client()
    if client is None:
        logger.warning("OpenAI client not available - using keyword tags")
        return fallback_tags(title, description, full_description, category)

    prompt = TAG_PROMPT.format(
        title=title,
        category=category,
        description=description,
        full_description=full_description or "N/A",
        url=url,
    )

    try:
        response = client.chat.completions.create(
            model=settings.OPENAI_TAG_MODEL,
            messages=[
                {"role": "system", "content": TAG_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=settings.OPENAI_TEMPERATURE,
            max_tokens=200,
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("Empty response from model")

        tags = json.loads(_strip_code_fence(content))
        if not isinstance(tags, list):
            raise ValueError("Model did not return a JSON array")
    except (OpenAIError, ValueError) as e:
        logger.error(f"Tag generation failed for '{title}': {e}")
        return fallback_tags(title, description, full_description, category)

    cleaned = [tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()][:MAX_TAGS]
    if len(cleaned) < MIN_TAGS:
        return [tag for tag in (category, "Tools", "CMG") if tag]
    return cleaned


def fetch_page_text(url: str, timeout: float = 10.0) -> Optional[str]:
    """Visible text of a web page, or None if it cannot be fetched."""
    try:
        response = httpx.get(
            url,
            headers={"User-Agent": "Mozilla/5.0 (compatible; CMGToolsHub/1.0)"},
            timeout=timeout,
            follow_redirects=True,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch {url}: {e}")
        return None

    soup = BeautifulSoup(response.text, "html.parser")
    for element in soup(["script", "style", "nav", "footer", "header"]):
        element.decompose()

    text = re.sub(r'\s+', ' ', soup.get_text(separator=" ", strip=True))
    return text[:4000] if text else None


def generate_tool_content(url: str) -> GeneratedToolContent:
    """
    Draft listing content for a tool from its URL.

    Raises:
        DependencyFailure: If no model is configured or the model call fails
    """
    client = get_openai_client()
    if client is None:
        raise DependencyFailure("OpenAI API key not configured")

    user_message = f"Analyze this tool and generate content for it: {url}"
    page_text = fetch_page_text(url)
    if page_text:
        user_message += f"\n\nPage text:\n{page_text}"

    try:
        response = client.chat.completions.create(
            model=settings.OPENAI_CONTENT_MODEL,
            messages=[
                {"role": "system", "content": CONTENT_SYSTEM_PROMPT},
                {"role": "user", "content": user_message},
            ],
            response_format={"type": "json_object"},
            temperature=settings.OPENAI_TEMPERATURE,
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("No content generated")
        return GeneratedToolContent.model_validate(json.loads(content))
    except (OpenAIError, ValueError, ValidationError) as e:
        logger.error(f"Tool content generation failed for {url}: {e}")
        raise DependencyFailure("Failed to generate tool data") from e


def capture_screenshot(url: str) -> Optional[str]:
    """
    Render a page through the screenshot API.

    Returns:
        URL of the captured image, or None if capture is unavailable or failed
    """
    if not settings.SCREENSHOT_API_KEY:
        logger.warning("SCREENSHOT_API_KEY not configured, skipping screenshot capture")
        return None

    params = {
        "token": settings.SCREENSHOT_API_KEY,
        "url": url,
        "output": "json",
        "file_type": "png",
        "wait_for_event": "load",
        "width": "1920",
        "height": "1080",
        "fresh": "true",
    }

    try:
        response = httpx.get(settings.SCREENSHOT_API_URL, params=params, timeout=settings.SCREENSHOT_TIMEOUT)
        response.raise_for_status()
        screenshot = response.json().get("screenshot")
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Screenshot capture failed for {url}: {e}")
        return None

    if not screenshot:
        logger.error(f"Screenshot API returned no image for {url}")
        return None
    return screenshot
