"""SEO metadata derived from article text: slugs, meta fields, excerpts, tags."""

import re
from typing import Iterable, List, Optional

from content_agent.config import constants as C
from content_agent.utils import plain_text


def generate_slug(title: str) -> str:
    slug = (title or "").lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def truncate_text(text: str, max_length: int) -> str:
    text = text or ""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3].strip() + "..."


def generate_meta_title(title: str, suffix: str = C.META_TITLE_SUFFIX) -> str:
    return truncate_text(title, C.META_TITLE_MAX - len(suffix)) + suffix


def generate_meta_description(excerpt: str) -> str:
    return truncate_text(excerpt, C.META_DESCRIPTION_MAX)


def extract_excerpt(html: str, max_length: int = C.EXCERPT_MAX) -> str:
    return truncate_text(plain_text(html), max_length)


def normalize_tags(tags: Iterable[str]) -> List[str]:
    normalized = []
    for tag in tags or []:
        t = re.sub(r"[^a-z0-9\s-]", "", (tag or "").lower().strip())
        t = re.sub(r"\s+", "-", t)
        if t and t not in normalized:
            normalized.append(t)
    return normalized


def suggest_tags(content: str, vendor_type: Optional[str] = None) -> List[str]:
    """Keyword-driven tags for a piece of content; ``wedding-vendors`` is always kept."""
    tags: List[str] = []
    if vendor_type:
        tags.append(vendor_type.lower())
    lowered = (content or "").lower()
    for keyword, tag in C.TAG_KEYWORDS.items():
        if keyword in lowered and tag not in tags:
            tags.append(tag)
    tags = [t for t in tags if t != C.BASE_TAG][: C.MAX_SUGGESTED_TAGS - 1]
    tags.append(C.BASE_TAG)
    return tags
