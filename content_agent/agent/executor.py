"""Executes model-requested tool calls against the run's collaborators.

Nothing raised by a collaborator escapes this module: every request yields
exactly one ToolResult, error or not, and batches preserve request order.
"""

from __future__ import annotations

import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any, Callable, Dict, List, Sequence

from pydantic import BaseModel

from content_agent.agent.tools import TOOLS_BY_NAME, ToolName
from content_agent.blocklist import sanitize_blocked_links
from content_agent.config.settings import AgentContext, FolderScope
from content_agent.matching import check_exists
from content_agent.metadata import generate_meta_title, generate_slug, normalize_tags
from content_agent.models import ArticleDraft, ToolCallRequest, ToolResult, ToolSpec
from content_agent.sources.web_search import NO_RESULTS
from content_agent.utils import get_logger, redact_secrets

logger = get_logger(__name__)

TRUNCATION_MARKER = "\n\n[... truncated {omitted} characters ...]"


class ToolInputError(ValueError):
    """Tool input that cannot be coerced to the tool's schema."""


def _coerce_value(value: Any, prop: Dict[str, Any]) -> Any:
    kind = prop.get("type")
    if kind in ("number", "integer") and isinstance(value, str):
        text = value.strip()
        try:
            return int(text) if kind == "integer" else float(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise ToolInputError(f"Expected a number, got {value!r}") from None
            return int(number) if kind == "integer" else number
    if kind == "array" and isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if kind == "string" and isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def coerce_input(spec: ToolSpec, raw: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unknown fields, coerce loosely-typed values and enforce required fields."""
    properties = spec.properties
    raw = raw or {}
    unknown = sorted(set(raw) - set(properties))
    if unknown:
        logger.debug("tool=%s dropping unknown input fields=%s", spec.name, unknown)
    coerced = {key: _coerce_value(value, properties[key]) for key, value in raw.items() if key in properties}
    missing = [key for key in spec.required if coerced.get(key) in (None, "", [])]
    if missing:
        raise ToolInputError(f"Missing required field: {', '.join(missing)}")
    return coerced


def serialize(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    elif isinstance(value, (list, tuple)):
        value = [v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value]
    return json.dumps(value, ensure_ascii=False, indent=2, default=str)


def truncate_result(content: str, max_chars: int) -> str:
    if len(content) <= max_chars:
        return content
    omitted = len(content) - max_chars
    return content[:max_chars] + TRUNCATION_MARKER.format(omitted=omitted)


class ToolExecutor:
    def __init__(self, context: AgentContext, scope: FolderScope):
        self.context = context
        self.scope = scope
        self.settings = context.settings
        # check-then-create must not interleave within a batch
        self._draft_lock = threading.Lock()
        self._handlers: Dict[ToolName, Callable[..., Any]] = {
            ToolName.LIST_INTERVIEWS: self._list_interviews,
            ToolName.READ_INTERVIEW: self._read_interview,
            ToolName.SEARCH_INTERVIEWS: self._search_interviews,
            ToolName.LIST_ARTICLES: self._list_articles,
            ToolName.SEARCH_ARTICLES: self._search_articles,
            ToolName.CHECK_DUPLICATE: self._check_duplicate,
            ToolName.CREATE_DRAFT: self._create_draft,
            ToolName.WEB_SEARCH: self._web_search,
            ToolName.RESEARCH_TOPIC: self._research_topic,
            ToolName.LIST_IDEAS: self._list_ideas,
            ToolName.READ_IDEA: self._read_idea,
        }
        missing = set(ToolName) - set(self._handlers)
        if missing or set(TOOLS_BY_NAME) != {name.value for name in ToolName}:
            raise RuntimeError(f"tool handlers out of sync with catalog: missing={sorted(m.value for m in missing)}")

    # ---------- execution ----------

    def execute(self, request: ToolCallRequest) -> ToolResult:
        try:
            name = ToolName(request.name)
        except ValueError:
            logger.warning("tool: unknown name=%s id=%s", request.name, request.id)
            return ToolResult(request_id=request.id, content=f"No such tool: {request.name}", is_error=True)

        t0 = time.monotonic()
        try:
            args = coerce_input(TOOLS_BY_NAME[name.value], request.input)
            output = self._handlers[name](**args)
            content = truncate_result(serialize(output), self.settings.max_result_chars) or "(empty result)"
        except Exception as e:
            message = redact_secrets(str(e)) or e.__class__.__name__
            logger.error("tool: %s failed id=%s err=%s", name.value, request.id, message)
            return ToolResult(request_id=request.id, content=f"Error: {message}", is_error=True)

        logger.info(
            "tool: %s ok id=%s chars=%d took_ms=%d",
            name.value,
            request.id,
            len(content),
            int((time.monotonic() - t0) * 1000),
        )
        return ToolResult(request_id=request.id, content=content)

    def execute_batch(self, requests: Sequence[ToolCallRequest]) -> List[ToolResult]:
        """Run one model turn's tool calls concurrently; results come back in request order."""
        if not requests:
            return []
        timeout = self.settings.tool_timeout_sec
        pool = ThreadPoolExecutor(
            max_workers=max(1, min(len(requests), self.settings.max_workers)),
            thread_name_prefix="tool",
        )
        try:
            futures = [pool.submit(self.execute, request) for request in requests]
            deadline = time.monotonic() + timeout
            results: List[ToolResult] = []
            for request, future in zip(requests, futures):
                remaining = max(0.0, deadline - time.monotonic())
                try:
                    results.append(future.result(timeout=remaining))
                except FuturesTimeout:
                    logger.error("tool: %s timed out id=%s after %.1fs", request.name, request.id, timeout)
                    results.append(
                        ToolResult(
                            request_id=request.id,
                            content=f"Error: tool {request.name} timed out after {timeout:g}s",
                            is_error=True,
                        )
                    )
                except Exception as e:
                    results.append(ToolResult(request_id=request.id, content=f"Error: {e}", is_error=True))
            return results
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    # ---------- handlers ----------

    def _list_interviews(self):
        return [
            {
                "id": i.id,
                "title": i.title,
                "vendor_name": i.vendor_name,
                "vendor_type": i.vendor_type,
                "created_at": i.created_at.date().isoformat() if i.created_at else None,
            }
            for i in self.context.documents.list_interviews(self.scope.folder_id)
        ]

    def _read_interview(self, document_id: str):
        interview = self.context.documents.get_interview(document_id)
        return interview.model_dump(mode="json", include={"id", "title", "vendor_name", "vendor_type", "content"})

    def _search_interviews(self, keywords: List[str]):
        matches = self.context.documents.search_interviews(self.scope.folder_id, keywords)
        if not matches:
            return f"No interview mentions any of: {', '.join(keywords)}"
        return matches

    def _list_articles(self, limit: int = 20):
        articles = self.context.publisher.list_articles()[: max(1, limit)]
        return [a.model_dump(mode="json", include={"title", "slug", "published_at"}) for a in articles]

    def _search_articles(self, query: str):
        return [
            a.model_dump(mode="json", include={"title", "slug", "published_at"})
            for a in self.context.publisher.search_articles(query)
        ]

    def _check_duplicate(self, title: str):
        check = check_exists(title, self.context.publisher.list_articles())
        return {"exact_match": check.exact_match, "similar_articles": check.similar[:5]}

    def _create_draft(self, title: str, html: str, excerpt: str = "", meta_description: str = "", tags=None):
        with self._draft_lock:
            return self._create_draft_locked(title, html, excerpt, meta_description, tags)

    def _create_draft_locked(self, title, html, excerpt, meta_description, tags):
        existing = self.context.publisher.list_articles()
        if check_exists(title, existing).exact_match:
            raise ValueError(f'An article titled "{title}" already exists; not creating a duplicate')
        draft = ArticleDraft(
            title=title,
            slug=generate_slug(title),
            html=sanitize_blocked_links(html),
            excerpt=excerpt,
            meta_title=generate_meta_title(title, self.settings.meta_title_suffix),
            meta_description=meta_description,
            tags=normalize_tags(tags),
        )
        receipt = self.context.publisher.create_draft(draft)
        return {
            "success": True,
            "id": receipt.id,
            "url": receipt.url,
            "message": f'Draft created: "{title}"',
        }

    def _web_search(self, query: str, max_results: int = 5):
        if self.context.search is None:
            logger.warning("web_search requested but research is not configured")
            return []
        return self.context.search.search(query, max(1, min(max_results, 20)))

    def _research_topic(self, topic: str):
        if self.context.search is None:
            return NO_RESULTS
        return self.context.search.research_topic(topic)

    def _list_ideas(self):
        if not self.scope.ideas_folder_id:
            raise ValueError("Ideas folder not configured")
        return [
            {
                "id": d.id,
                "title": d.title,
                "created_at": d.created_at.date().isoformat() if d.created_at else None,
            }
            for d in self.context.documents.list_documents(self.scope.ideas_folder_id)
        ]

    def _read_idea(self, document_id: str):
        doc = self.context.documents.get_document(document_id)
        return doc.model_dump(mode="json", include={"id", "title", "content"})
