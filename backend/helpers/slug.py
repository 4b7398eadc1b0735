"""
URL slug generation for posts and tags.
"""

import re
import unicodedata
import uuid
from collections.abc import Callable

MAX_SLUG_LENGTH = 200


def slugify(text: str) -> str:
    """
    Create a URL-friendly slug, folding accents to ASCII.

    Args:
        text: Title or name

    Returns:
        Lowercase slug, possibly empty
    """
    normalized = unicodedata.normalize("NFKD", text)
    slug = normalized.encode("ascii", "ignore").decode("ascii").lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")[:MAX_SLUG_LENGTH]


def unique_slug(text: str, exists: Callable[[str], bool]) -> str:
    """
    Slugify and append -2, -3 ... until `exists` reports the slug is free.

    Args:
        text: Title or name
        exists: Predicate telling whether a slug is already taken

    Returns:
        An unused slug
    """
    base = slugify(text) or uuid.uuid4().hex[:8]
    candidate = base
    suffix = 2
    while exists(candidate):
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate
