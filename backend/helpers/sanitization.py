"""
HTML sanitization for user-authored content.

Post and comment bodies keep a small formatting whitelist (code blocks and
links included, since this is a Q&A forum); titles and tag names are
stripped to plain text.
"""

from typing import Optional

import bleach

ALLOWED_TAGS = [
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "ul",
    "ol",
    "li",
    "blockquote",
    "code",
    "pre",
    "a",
]

ALLOWED_ATTRIBUTES: dict[str, list[str]] = {"a": ["href", "title"]}

ALLOWED_PROTOCOLS = ["http", "https", "mailto"]


def sanitize_html(content: Optional[str]) -> Optional[str]:
    """
    Sanitize rich text.

    Args:
        content: Raw HTML from the client

    Returns:
        HTML limited to ALLOWED_TAGS, or None if input is None

    Examples:
        >>> sanitize_html('<a href="javascript:alert(1)">x</a>')
        '<a>x</a>'
    """
    if content is None:
        return None

    return bleach.clean(
        content,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )


def sanitize_plain_text(content: Optional[str]) -> Optional[str]:
    """
    Strip all HTML tags.

    Examples:
        >>> sanitize_plain_text('<b>Bold</b> title')
        'Bold title'
    """
    if content is None:
        return None

    return bleach.clean(content, tags=[], strip=True).strip()
