"""One-shot article generation: prompt, parse, enrich, and optionally file a draft.

``generate_article`` produces an :class:`ArticleDraft` for one of four kinds
(interview, theme, insight, seo). The ``draft_*`` workflows wrap it with
duplicate checks and publishing and always return a
:class:`GenerationOutcome`; failures are reported, not raised.
"""

import json
import re
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from content_agent.blocklist import blocked_domains, sanitize_blocked_links
from content_agent.config import constants as C
from content_agent.config.settings import AgentContext
from content_agent.matching import check_exists
from content_agent.metadata import (
    extract_excerpt,
    generate_meta_description,
    generate_meta_title,
    generate_slug,
    normalize_tags,
    suggest_tags,
)
from content_agent.models import ArticleDraft, ExistingArticle, GenerationOutcome, Interview
from content_agent.parser import parse_article_response
from content_agent.prompt_loader import render_prompt
from content_agent.sources.web_search import NO_RESULTS
from content_agent.utils import get_logger

logger = get_logger(__name__)

ARTICLE_KINDS = ("interview", "theme", "insight", "seo")
MIN_INTERVIEW_CHARS = 100
INTERVIEW_SUMMARY_CHARS = 500
NO_RESEARCH = "No additional research available."


# ---------- LLM helpers ----------

def _write(context: AgentContext, prompt_name: str, with_rules: bool = True, **variables) -> str:
    settings = context.settings
    system = ""
    if with_rules:
        system, _ = render_prompt(
            "article_rules",
            settings.prompts_dir,
            brand_name=settings.brand_name,
            competitors=list(blocked_domains()),
        )
    _, task = render_prompt(prompt_name, settings.prompts_dir, **variables)
    return context.writer.write(task, system=system)


def salvage_json(raw: str, opener: str = "[", closer: str = "]") -> Any:
    """Parse JSON from model text, falling back to the outermost bracketed span."""
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        pass
    try:
        start = raw.index(opener)
        end = raw.rindex(closer) + 1
        return json.loads(raw[start:end])
    except (ValueError, AttributeError):
        return None


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def analyze_themes(interviews: Sequence[Interview], context: AgentContext) -> List[str]:
    summary = "\n\n".join(
        f"Interview {i} ({iv.display_name}): {iv.content[:INTERVIEW_SUMMARY_CHARS]}..."
        for i, iv in enumerate(interviews, start=1)
    )
    raw = _write(context, "themes_analysis", with_rules=False, interviews_summary=summary)
    themes = _string_list(salvage_json(raw))
    if not themes:
        logger.error("themes: could not parse model output: %s", raw[:200])
    return themes


def extract_insights(interview: Interview, context: AgentContext) -> List[str]:
    raw = _write(
        context,
        "insights_extraction",
        with_rules=False,
        vendor_name=interview.display_name,
        interview_content=interview.content,
    )
    insights = _string_list(salvage_json(raw))
    if not insights:
        logger.error("insights: could not parse model output: %s", raw[:200])
    return insights


def extract_keywords_from_topic(topic: str) -> List[str]:
    lowered = topic.lower()
    keywords: List[str] = []
    for pattern, related in C.SEO_KEYWORD_PATTERNS.items():
        if pattern in lowered:
            keywords.extend(related)
    keywords.extend([lowered, "wedding vendors", "wedding business"])
    return list(dict.fromkeys(keywords))[:5]


# ---------- Drafts ----------

def enrich_metadata(
    draft: ArticleDraft,
    context: AgentContext,
    fallback_title: str,
    tag_source: str,
    vendor_type: Optional[str] = None,
    extra_tags: Iterable[str] = (),
) -> ArticleDraft:
    """Fill what the parser leaves empty: title fallback, slug, meta fields, excerpt, tags."""
    title = draft.title or fallback_title
    excerpt = draft.excerpt or extract_excerpt(draft.html)
    tags = normalize_tags([*draft.tags, *suggest_tags(tag_source, vendor_type), *extra_tags])
    return draft.model_copy(
        update={
            "title": title,
            "slug": generate_slug(title),
            "html": sanitize_blocked_links(draft.html),
            "excerpt": excerpt,
            "meta_title": draft.meta_title or generate_meta_title(title, context.settings.meta_title_suffix),
            "meta_description": draft.meta_description or generate_meta_description(excerpt),
            "tags": tags,
        }
    )


def _research(context: AgentContext, topic: Optional[str] = None, keywords: Optional[Sequence[str]] = None) -> str:
    if context.search is None:
        return NO_RESEARCH
    if keywords:
        return context.search.research_keywords(keywords)
    return context.search.research_topic(topic or "")


def generate_article(kind: str, params: Dict[str, Any], context: AgentContext) -> ArticleDraft:
    """Generate an article draft of ``kind`` without publishing it.

    params per kind:
      interview: interview (Interview)
      theme:     interviews (list of Interview), theme (optional str)
      insight:   insight, vendor_name, research_context (optional)
      seo:       topic, keywords (optional), research_context (optional)
    """
    t0 = time.monotonic()
    if kind == "interview":
        interview: Interview = params["interview"]
        text = _write(
            context,
            "interview",
            vendor_name=interview.vendor_name or "Unknown Vendor",
            vendor_type=interview.vendor_type or "Wedding Professional",
            interview_content=interview.content,
        )
        draft = enrich_metadata(
            parse_article_response(text),
            context,
            fallback_title=interview.display_name,
            tag_source=interview.content,
            vendor_type=interview.vendor_type,
        )
    elif kind == "theme":
        interviews: Sequence[Interview] = params["interviews"]
        theme = params.get("theme") or ""
        joined = "\n\n".join(
            f"--- Interview {i}: {iv.display_name} ({iv.vendor_type or 'Wedding Professional'}) ---\n{iv.content}"
            for i, iv in enumerate(interviews, start=1)
        )
        text = _write(context, "theme", theme=theme, interviews=joined)
        draft = parse_article_response(text)
        draft = enrich_metadata(
            draft,
            context,
            fallback_title=theme,
            tag_source=draft.html,
            vendor_type="industry-insights",
            extra_tags=["roundup"],
        )
    elif kind == "insight":
        insight = params["insight"]
        research_context = params.get("research_context") or _research(context, topic=insight)
        text = _write(
            context,
            "insight",
            insight=insight,
            vendor_name=params.get("vendor_name") or "wedding industry leaders",
            research_context=research_context,
        )
        draft = parse_article_response(text)
        draft = enrich_metadata(draft, context, fallback_title=insight[:50], tag_source=draft.html, extra_tags=["insights"])
    elif kind == "seo":
        topic = params["topic"]
        keywords = list(params.get("keywords") or extract_keywords_from_topic(topic))
        research_context = params.get("research_context") or _research(context, keywords=[topic, *keywords])
        text = _write(
            context,
            "seo",
            topic=topic,
            keywords=", ".join(keywords),
            research_context=research_context,
        )
        draft = parse_article_response(text)
        keyword_tags = [re.sub(r"\s+", "-", k.lower().strip()) for k in keywords]
        draft = enrich_metadata(draft, context, fallback_title=topic, tag_source=draft.html, extra_tags=keyword_tags)
    else:
        raise ValueError(f"Unknown article kind: {kind} (expected one of {', '.join(ARTICLE_KINDS)})")

    logger.info(
        "generate: kind=%s title=%r html_chars=%d took_ms=%d",
        kind,
        draft.title,
        len(draft.html),
        int((time.monotonic() - t0) * 1000),
    )
    return draft


# ---------- Workflows ----------

def render_preview(draft: ArticleDraft) -> str:
    return (
        f"**Title:** {draft.title}\n\n"
        f"**Tags:** {', '.join(draft.tags)}\n\n"
        f"**Meta Description:** {draft.meta_description}\n\n"
        f"**Excerpt:** {draft.excerpt}\n\n"
        f"---\n\n"
        f"**Article HTML Preview:**\n\n{draft.html}"
    )


def _publish(
    draft: ArticleDraft,
    context: AgentContext,
    existing: Sequence[ExistingArticle],
    label: str,
    dry_run: bool,
    detail: str = "",
) -> GenerationOutcome:
    if dry_run:
        return GenerationOutcome(
            success=True,
            message=f'[DRY RUN] Would create {label}: "{draft.title}"{detail}\nTags: {", ".join(draft.tags)}',
            preview=render_preview(draft),
            draft=draft,
        )

    check = check_exists(draft.title, existing)
    if check.exact_match:
        return GenerationOutcome(
            success=False,
            message=f'An article with exact title "{draft.title}" already exists. Check Ghost for duplicates.',
            draft=draft,
        )
    note = ""
    if check.similar:
        note = f"\n\nNote: Found similar articles: {', '.join(check.similar[:3])}"

    receipt = context.publisher.create_draft(draft)
    return GenerationOutcome(
        success=True,
        message=f'Created {label}: "{draft.title}"{detail}{note}',
        article_url=receipt.url or None,
        draft=draft,
    )


def draft_from_interview(document_id: str, context: AgentContext, dry_run: bool = False) -> GenerationOutcome:
    try:
        interview = context.documents.get_interview(document_id)
        if len((interview.content or "").strip()) < MIN_INTERVIEW_CHARS:
            return GenerationOutcome(success=False, message="Interview document appears to be empty or too short.")
        draft = generate_article("interview", {"interview": interview}, context)
        existing = [] if dry_run else context.publisher.list_articles()
        return _publish(draft, context, existing, "draft article", dry_run)
    except Exception as e:
        logger.error("interview draft failed document=%s err=%s", document_id, e)
        return GenerationOutcome(success=False, message=f"Failed to generate article: {e}")


def draft_theme_roundup(
    context: AgentContext,
    folder_id: Optional[str] = None,
    theme: Optional[str] = None,
    dry_run: bool = False,
    interviews: Optional[Sequence[Interview]] = None,
) -> GenerationOutcome:
    try:
        if interviews is None:
            interviews = context.documents.all_interviews_with_content(folder_id or context.settings.interviews_folder_id)
        if len(interviews) < 2:
            return GenerationOutcome(success=False, message="Need at least 2 interviews to create a theme roundup.")

        if not theme:
            themes = analyze_themes(interviews, context)
            if not themes:
                return GenerationOutcome(success=False, message="Could not identify compelling themes from the interviews.")
            theme = themes[0]
            logger.info("themes: using theme=%r", theme)

        existing = context.publisher.list_articles()
        if check_exists(theme, existing).exact_match:
            return GenerationOutcome(
                success=False,
                message=f'An article about "{theme}" already exists. Check Ghost for duplicates.',
            )

        draft = generate_article("theme", {"interviews": interviews, "theme": theme}, context)
        return _publish(
            draft, context, existing, "theme roundup", dry_run, detail=f" (based on {len(interviews)} interviews)"
        )
    except Exception as e:
        logger.error("theme roundup failed err=%s", e)
        return GenerationOutcome(success=False, message=f"Failed to generate theme roundup: {e}")


def draft_from_insight(insight: str, vendor_name: str, context: AgentContext, dry_run: bool = False) -> GenerationOutcome:
    try:
        existing = context.publisher.list_articles()
        if check_exists(insight[:50], existing).exact_match:
            return GenerationOutcome(success=False, message="An article on this insight already exists. Check Ghost for duplicates.")
        draft = generate_article("insight", {"insight": insight, "vendor_name": vendor_name}, context)
        return _publish(draft, context, existing, "insight article", dry_run, detail=f"\nBased on insight from {vendor_name}")
    except Exception as e:
        logger.error("insight article failed err=%s", e)
        return GenerationOutcome(success=False, message=f"Failed to generate insight article: {e}")


def draft_seo_article(
    topic: str,
    context: AgentContext,
    keywords: Optional[Sequence[str]] = None,
    dry_run: bool = False,
) -> GenerationOutcome:
    try:
        existing = context.publisher.list_articles()
        if check_exists(topic, existing).exact_match:
            return GenerationOutcome(
                success=False,
                message=f'An article about "{topic}" already exists. Check Ghost for duplicates.',
            )
        keywords = list(keywords or extract_keywords_from_topic(topic))
        draft = generate_article("seo", {"topic": topic, "keywords": keywords}, context)
        return _publish(draft, context, existing, "SEO article", dry_run, detail=f"\nTarget keywords: {', '.join(keywords)}")
    except Exception as e:
        logger.error("seo article failed topic=%r err=%s", topic, e)
        return GenerationOutcome(success=False, message=f"Failed to generate SEO article: {e}")
