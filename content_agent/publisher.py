"""Ghost Admin API publishing store."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Optional

import jwt
import requests

from content_agent.config.constants import GHOST_API_VERSION, GHOST_PAGE_SIZE
from content_agent.matching import check_exists
from content_agent.metadata import generate_slug
from content_agent.models import ArticleDraft, DraftReceipt, DuplicateCheck, ExistingArticle
from content_agent.net import retry_session
from content_agent.utils import get_logger, parse_datetime_safe, redact_secrets

logger = get_logger(__name__)

POST_FIELDS = "id,title,slug,published_at"
STATUS_FILTER = "status:[draft,published,scheduled]"
TOKEN_TTL_SEC = 300


def admin_token(admin_api_key: str, now: Optional[int] = None) -> str:
    """Short-lived HS256 JWT for the Admin API from an ``<id>:<hex secret>`` key."""
    try:
        key_id, secret = admin_api_key.split(":", 1)
        secret_bytes = bytes.fromhex(secret)
    except ValueError as e:
        raise ValueError("Ghost admin API key must look like '<id>:<hex secret>'") from e
    iat = int(now if now is not None else time.time())
    payload = {"iat": iat, "exp": iat + TOKEN_TTL_SEC, "aud": "/admin/"}
    return jwt.encode(payload, secret_bytes, algorithm="HS256", headers={"kid": key_id})


@dataclass
class GhostConfig:
    url: str
    admin_api_key: str
    timeout: float = 30.0
    retries: int = 3


class GhostPublisher:
    def __init__(self, cfg: GhostConfig, session: Optional[requests.Session] = None):
        if not (cfg.url and cfg.admin_api_key):
            raise RuntimeError("ghost: url or admin_api_key missing")
        self.cfg = cfg
        # a retried POST after a 5xx can file the same draft twice
        self.session = session or retry_session(total=cfg.retries, allowed_methods=frozenset({"GET"}))
        self.posts_url = f"{cfg.url.rstrip('/')}/ghost/api/admin/posts/"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Ghost {admin_token(self.cfg.admin_api_key)}",
            "Accept-Version": GHOST_API_VERSION,
        }

    def _check(self, response: requests.Response, action: str) -> dict:
        if response.status_code not in (200, 201):
            logger.error(
                "ghost %s failed status=%s body=%s",
                action,
                response.status_code,
                redact_secrets(response.text),
            )
            raise RuntimeError(f"Ghost {action} failed: {response.status_code} {redact_secrets(response.text)[:256]}")
        return response.json()

    def list_articles(self) -> List[ExistingArticle]:
        """Every draft, published and scheduled post, flattened across pages."""
        articles: List[ExistingArticle] = []
        page = 1
        while page:
            params = {
                "limit": GHOST_PAGE_SIZE,
                "page": page,
                "fields": POST_FIELDS,
                "filter": STATUS_FILTER,
            }
            response = self.session.get(self.posts_url, headers=self._headers(), params=params, timeout=self.cfg.timeout)
            data = self._check(response, "browse")
            for post in data.get("posts") or []:
                articles.append(
                    ExistingArticle(
                        id=post.get("id") or "",
                        title=post.get("title") or "",
                        slug=post.get("slug") or "",
                        published_at=parse_datetime_safe(post.get("published_at")),
                    )
                )
            page = ((data.get("meta") or {}).get("pagination") or {}).get("next")
        logger.info("ghost: loaded articles=%d", len(articles))
        return articles

    def search_articles(self, query: str) -> List[ExistingArticle]:
        lowered = (query or "").lower()
        slug_query = "-".join(lowered.split())
        return [
            a for a in self.list_articles()
            if lowered in a.title.lower() or slug_query in a.slug
        ]

    def check_exists(self, title: str) -> DuplicateCheck:
        return check_exists(title, self.list_articles())

    def create_draft(self, draft: ArticleDraft) -> DraftReceipt:
        post = {
            "title": draft.title,
            "slug": draft.slug or generate_slug(draft.title),
            "html": draft.html,
            "status": "draft",
        }
        if draft.excerpt:
            post["custom_excerpt"] = draft.excerpt
        if draft.meta_title:
            post["meta_title"] = draft.meta_title
        if draft.meta_description:
            post["meta_description"] = draft.meta_description
        if draft.feature_image:
            post["feature_image"] = draft.feature_image
        if draft.tags:
            post["tags"] = [{"name": tag} for tag in draft.tags]

        response = self.session.post(
            self.posts_url,
            headers=self._headers(),
            params={"source": "html"},
            json={"posts": [post]},
            timeout=self.cfg.timeout,
        )
        created = (self._check(response, "create").get("posts") or [{}])[0]
        receipt = DraftReceipt(id=created.get("id") or "", url=created.get("url") or "")
        logger.info("ghost: draft created id=%s slug=%s", receipt.id, post["slug"])
        return receipt
