"""
Render a form payload into the plain-text and HTML email bodies.

Payload keys and values are untrusted. The HTML template is rendered with
autoescaping on, so nothing from the payload can inject markup.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

TEMPLATES_DIR = Path(__file__).parent / "templates"
FOOTER = "This email was sent automatically by your Handl application."

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=True),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


@dataclass(frozen=True)
class RenderedField:
    label: str
    value: str


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    text: str
    html: str


def humanize_key(key: str) -> str:
    """
    "firstName" -> "First Name", "email" -> "Email".
    """
    key = str(key)
    if not key:
        return key
    spaced = key[0].upper() + _CAMEL_BOUNDARY.sub(r" \1", key[1:])
    return spaced.replace("_", " ").strip()


def display_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_submission(form_id: str, payload: dict[str, Any]) -> RenderedEmail:
    fields = [RenderedField(label=humanize_key(k), value=display_value(v)) for k, v in payload.items()]
    context = {"form_id": form_id, "fields": fields, "footer": FOOTER}
    return RenderedEmail(
        subject=f"A new message from {form_id}",
        text=_env.get_template("submission.txt").render(**context),
        html=_env.get_template("submission.html").render(**context),
    )
