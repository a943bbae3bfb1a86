"""Competitor domains that must never be cited or linked from generated content."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Sequence, TypeVar
from urllib.parse import urlparse

from content_agent.utils import get_logger, load_json_resource

logger = get_logger(__name__)

T = TypeVar("T")


@lru_cache(maxsize=1)
def blocked_domains() -> tuple[str, ...]:
    try:
        data = load_json_resource("config/blocklist.json")
    except (OSError, ValueError) as e:
        logger.warning("blocklist unavailable, using empty list: %s", e)
        return ()
    return tuple(d.strip().lower() for d in data.get("domains", []) if d and d.strip())


def _host(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def is_blocked_domain(url: str, domains: Sequence[str] | None = None) -> bool:
    host = _host(url)
    if not host:
        return False
    for domain in blocked_domains() if domains is None else domains:
        if host == domain or host.endswith("." + domain):
            return True
    return False


def filter_blocked(results: Iterable[T], domains: Sequence[str] | None = None) -> List[T]:
    """Drop results (anything with a ``url`` attribute or key) hosted on a blocked domain."""
    kept = []
    for result in results:
        url = result.get("url", "") if isinstance(result, dict) else getattr(result, "url", "")
        if is_blocked_domain(url, domains):
            logger.debug("blocked result url=%s", url)
            continue
        kept.append(result)
    return kept


def sanitize_blocked_links(html: str, domains: Sequence[str] | None = None) -> str:
    """Replace ``<a>`` tags pointing at blocked domains with their inner text."""
    domains = blocked_domains() if domains is None else domains
    if not html or not domains:
        return html
    pattern = "|".join(re.escape(d) for d in domains)
    link_re = re.compile(
        rf"<a\s[^>]*href=[\"'][^\"']*(?:{pattern})[^\"']*[\"'][^>]*>(.*?)</a>",
        re.IGNORECASE | re.DOTALL,
    )
    return link_re.sub(r"\1", html)
