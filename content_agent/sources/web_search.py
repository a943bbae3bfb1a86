"""Web research through the Tavily search API."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
from urllib.parse import urlparse

import requests

from content_agent.blocklist import blocked_domains, filter_blocked
from content_agent.config.constants import TAVILY_API_URL
from content_agent.models import SearchResult
from content_agent.net import retry_session
from content_agent.utils import get_logger, redact_secrets

logger = get_logger(__name__)

NO_RESULTS = "No research results available."


def format_results(results: Sequence[SearchResult]) -> str:
    return "\n\n---\n\n".join(
        f"[Source {i}: {r.source}] ({r.url})\n{r.title}\n{r.snippet}"
        for i, r in enumerate(results, start=1)
    )


class TavilySearch:
    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        retries: int = 3,
        max_results: int = 5,
        exclude_domains: Optional[Iterable[str]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.max_results = max_results
        self.exclude_domains = list(blocked_domains() if exclude_domains is None else exclude_domains)
        self.session = session or retry_session(total=retries)

    def search(self, query: str, max_results: int = 5) -> List[SearchResult]:
        """Search with the wedding-industry qualifier; blocked hosts never come back."""
        payload = {
            "api_key": self.api_key,
            "query": f"{query} wedding industry",
            "search_depth": "advanced",
            "max_results": max_results * 2,
            "exclude_domains": self.exclude_domains,
        }
        response = self.session.post(TAVILY_API_URL, json=payload, timeout=self.timeout)
        if response.status_code != 200:
            logger.error(
                "tavily search failed status=%s body=%s",
                response.status_code,
                redact_secrets(response.text),
            )
            raise RuntimeError(f"Tavily API error: {response.status_code}")

        results = []
        for item in response.json().get("results") or []:
            url = item.get("url") or ""
            if not url:
                continue
            results.append(
                SearchResult(
                    title=item.get("title") or "",
                    url=url,
                    snippet=item.get("content") or item.get("snippet") or "",
                    source=urlparse(url).hostname or "",
                )
            )
        kept = filter_blocked(results, self.exclude_domains)[:max_results]
        logger.info("tavily: query=%r results=%d kept=%d", query, len(results), len(kept))
        return kept

    def _safe_search(self, query: str, max_results: int) -> List[SearchResult]:
        try:
            return self.search(query, max_results)
        except (requests.RequestException, RuntimeError, ValueError) as e:
            logger.warning("research search failed query=%r err=%s", query, redact_secrets(str(e)))
            return []

    def research_topic(self, topic: str, max_results: Optional[int] = None) -> str:
        results = self._safe_search(topic, max_results or self.max_results)
        if not results:
            return NO_RESULTS
        return f'Research findings on "{topic}":\n\n{format_results(results)}'

    def research_keywords(self, keywords: Sequence[str]) -> str:
        seen = set()
        unique: List[SearchResult] = []
        for keyword in list(keywords)[:3]:
            for result in self._safe_search(keyword, 3):
                if result.url not in seen:
                    seen.add(result.url)
                    unique.append(result)
        if not unique:
            return NO_RESULTS
        return f"Research findings:\n\n{format_results(unique[:8])}"
