"""Keyword rules for tagging tools without calling the language model.

Used to backfill tags on tools that predate AI tagging, and as the fallback
when the model is unavailable.
"""
from typing import List

from tools_hub.schemas.tool import Tool

MAX_RULE_TAGS = 5

CATEGORY_TAGS = {
    "CMG Product": ["AI", "Automation", "CMG Internal"],
    "Sales AI Agents": ["AI", "Sales", "Chat"],
    "Sales Voice Agents": ["AI", "Voice", "Sales"],
}

# Checked in order; first matches win when the tag limit is reached
KEYWORD_TAGS = [
    ("guideline", "Guidelines"),
    ("construction", "Construction"),
    ("bank statement", "Income Verification"),
    ("income", "Income Verification"),
    ("document", "Documents"),
    ("classification", "Documents"),
    ("loan", "Lending"),
    ("mortgage", "Lending"),
    ("jumbo", "Jumbo"),
    ("non-qm", "Non-QM"),
    ("va loan", "VA Loans"),
    ("va guideline", "VA Loans"),
    ("chatbot", "Chat"),
    ("voice", "Voice"),
    ("phone", "Voice"),
    ("call", "Voice"),
    ("communication", "Communication"),
    ("training", "Training"),
    ("release", "Release Management"),
    ("change management", "Change Management"),
    ("intake", "Change Management"),
    ("underwriting", "Underwriting"),
    ("compliance", "Compliance"),
    ("automation", "Automation"),
    ("ai-powered", "AI"),
    ("artificial intelligence", "AI"),
    ("analysis", "Analytics"),
    ("calculator", "Calculators"),
    ("qualification", "Qualification"),
    ("eligibility", "Qualification"),
    ("processing", "Processing"),
    ("self-employed", "Self-Employed"),
    ("foreign national", "Foreign National"),
    ("veteran", "VA Loans"),
    ("conventional", "Conventional"),
    ("fannie", "Conventional"),
    ("freddie", "Conventional"),
]

TITLE_TAGS = [
    ("Builder", "Content Creation"),
    ("Analyzer", "Analytics"),
    ("Assistant", "Assistant"),
]

FEATURE_TAGS = [
    ("real-time", "Real-time"),
    ("24/7", "24/7 Available"),
    ("integration", "Integration"),
]


def rule_based_tags(tool: Tool) -> List[str]:
    """Derive up to five tags from category, keywords, title and features."""
    tags: List[str] = []

    def add(tag: str) -> None:
        if tag not in tags:
            tags.append(tag)

    for tag in CATEGORY_TAGS.get(tool.category, []):
        add(tag)

    text = f"{tool.title} {tool.description} {tool.full_description or ''} {tool.category}".lower()
    for keyword, tag in KEYWORD_TAGS:
        if keyword in text:
            add(tag)

    for marker, tag in TITLE_TAGS:
        if marker in tool.title:
            add(tag)

    features_text = " ".join(tool.features).lower()
    for marker, tag in FEATURE_TAGS:
        if marker in features_text:
            add(tag)

    return tags[:MAX_RULE_TAGS]


def fallback_tags(title: str, description: str, full_description: str, category: str) -> List[str]:
    """Tags used when the model call fails: category plus obvious keywords, at least three."""
    tags = [category] if category else []
    text = f"{title} {description} {full_description}".lower()
    words = set(text.replace("/", " ").split())

    if "ai" in words or "artificial intelligence" in text:
        tags.append("AI/Machine Learning")
    if "loan officer" in text or "lo" in words:
        tags.append("Loan Officers")
    if "sales" in text:
        tags.append("Sales")
    if "document" in text:
        tags.append("Document Processing")
    if "guideline" in text:
        tags.append("Guideline Research")
    if "automation" in text or "automated" in text:
        tags.append("Automation")

    for filler in ("Tools", "CMG", "Internal"):
        if len(tags) >= 3:
            break
        if filler not in tags:
            tags.append(filler)

    return tags[:7]
