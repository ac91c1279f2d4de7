"""Jinja2 environment for email bodies."""
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).parent / "templates"

email_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR / "emails")),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_email(name: str, **context) -> str:
    """Render ``templates/emails/<name>.html`` with the given context."""
    return email_templates.get_template(f"{name}.html").render(**context)
