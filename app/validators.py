"""
OP-Blog API: Input Sanitizing and Password Rules
================================================

Shared by the Pydantic schemas (JSON bodies) and the multipart post form.

Sanitizing uses nh3 (ammonia bindings):
    - plain text fields (username, category title, comment text) keep no
      tags and are stored unescaped
    - rich text fields (post title, description) keep <p> and <strong>
    In both cases <script>/<style> content is dropped entirely and every
    attribute, including on* event handlers, is removed.
"""

import html
import re
from typing import Any, Optional

import nh3

RICH_TEXT_TAGS = {"p", "strong"}
_PLAIN_TEXT_ROUNDS = 4

PASSWORD_MIN_LENGTH = 8

_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile(r"[^A-Za-z0-9]"), "one symbol"),
)


def sanitize_text(value: Any) -> Any:
    """
    Strips all markup and returns plain text with entities decoded, so
    "Tips & Tricks" is stored as typed. Markup hidden behind entities
    ("&lt;script&gt;") is stripped on the next round.

    Non-strings pass through for the type check to reject.
    """
    if not isinstance(value, str):
        return value
    text = value
    for _ in range(_PLAIN_TEXT_ROUNDS):
        cleaned = html.unescape(nh3.clean(text, tags=set(), attributes={}))
        if cleaned == text:
            return cleaned.strip()
        text = cleaned
    return nh3.clean(text, tags=set(), attributes={}).strip()


def sanitize_rich_text(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    return nh3.clean(value, tags=RICH_TEXT_TAGS, attributes={}).strip()


def password_problem(password: str) -> Optional[str]:
    """Returns a description of what the password lacks, or None if it is strong."""
    missing = []
    if len(password) < PASSWORD_MIN_LENGTH:
        missing.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    missing.extend(label for pattern, label in _PASSWORD_RULES if not pattern.search(password))
    if not missing:
        return None
    return "Password must contain " + ", ".join(missing)


def check_password_strength(password: str) -> str:
    """Pydantic-friendly validator: raises ValueError for weak passwords."""
    problem = password_problem(password)
    if problem:
        raise ValueError(problem)
    return password
