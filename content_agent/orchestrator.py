import json
import math
import time
import uuid
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from content_agent.agent import run_agent
from content_agent.config import constants as C
from content_agent.config.settings import AgentContext, FolderScope, build_context, load_config, state_path
from content_agent.generators import (
    analyze_themes,
    draft_from_insight,
    draft_from_interview,
    draft_seo_article,
    draft_theme_roundup,
    extract_insights,
    salvage_json,
)
from content_agent.matching import (
    article_matches_idea,
    article_matches_interview,
    idea_key_terms,
    interview_key_terms,
    is_topic_covered,
)
from content_agent.models import ExistingArticle, GenerationOutcome, Interview
from content_agent.prompt_loader import render_prompt
from content_agent.utils import get_logger, now_utc

logger = get_logger(__name__)


# ---------- State ----------

def load_processed_interviews(context: AgentContext) -> Set[str]:
    path = state_path(context.settings, C.PROCESSED_INTERVIEWS_FILE)
    if not path.exists():
        return set()
    data = json.loads(path.read_text(encoding="utf-8"))
    return set(data.get("processed") or [])


def save_processed_interview(context: AgentContext, document_id: str) -> None:
    processed = load_processed_interviews(context)
    processed.add(document_id)
    path = state_path(context.settings, C.PROCESSED_INTERVIEWS_FILE)
    path.write_text(json.dumps({"processed": sorted(processed)}, indent=2), encoding="utf-8")


def get_week_counter(context: AgentContext) -> int:
    path = state_path(context.settings, C.WEEK_COUNTER_FILE)
    if not path.exists():
        return 0
    return int(json.loads(path.read_text(encoding="utf-8")).get("week") or 0)


def increment_week_counter(context: AgentContext, persist: bool = True) -> int:
    week = get_week_counter(context) + 1
    if persist:
        path = state_path(context.settings, C.WEEK_COUNTER_FILE)
        payload = {"week": week, "last_run": now_utc().isoformat()}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return week


# ---------- Ask ----------

def run_ask(request: str, context: AgentContext, scope: Optional[FolderScope] = None) -> str:
    return run_agent(request, scope or context.settings.default_scope, context)


# ---------- Daily ----------

def _agent_request(context: AgentContext, prompt_name: str, **variables) -> str:
    _, task = render_prompt(prompt_name, context.settings.prompts_dir, brand_name=context.settings.brand_name, **variables)
    return task


def process_new_interviews(context: AgentContext, existing: Sequence[ExistingArticle], scope: FolderScope) -> int:
    interviews = context.documents.list_interviews(scope.folder_id)
    fresh = []
    for interview in interviews:
        terms = interview_key_terms(interview.title)
        if any(article_matches_interview(a.title, terms) for a in existing):
            logger.info("daily: interview %r already has an article", interview.title)
            continue
        fresh.append(interview)

    if not fresh:
        logger.info("daily: no new interviews")
        return 0

    done = 0
    for interview in fresh:
        logger.info("daily: new interview %r id=%s", interview.title, interview.id)
        request = _agent_request(context, "daily_interview", title=interview.title, document_id=interview.id)
        try:
            run_agent(request, scope, context)
        except Exception as e:
            logger.error("daily: agent failed for interview %r: %s", interview.title, e)
            continue
        done += 1
    return done


def process_new_ideas(context: AgentContext, existing: Sequence[ExistingArticle], scope: FolderScope) -> int:
    if not scope.ideas_folder_id:
        logger.info("daily: ideas folder not configured")
        return 0

    fresh = []
    for idea in context.documents.list_documents(scope.ideas_folder_id):
        terms = idea_key_terms(idea.title)
        if any(article_matches_idea(a.title, terms) for a in existing):
            logger.info("daily: idea %r already has an article", idea.title)
            continue
        fresh.append(idea)

    if not fresh:
        logger.info("daily: no new ideas")
        return 0

    done = 0
    for summary in fresh:
        try:
            idea = context.documents.get_document(summary.id)
            logger.info("daily: new idea %r instructions=%r", idea.title, idea.content[:200])
            request = _agent_request(context, "daily_idea", title=idea.title, instructions=idea.content)
            run_agent(request, scope, context)
        except Exception as e:
            logger.error("daily: agent failed for idea %r: %s", summary.title, e)
            continue
        done += 1
    return done


def run_daily(context: AgentContext, scope: Optional[FolderScope] = None) -> Dict[str, int]:
    scope = scope or context.settings.default_scope
    existing = context.publisher.list_articles()
    logger.info("daily: existing articles=%d", len(existing))
    summary = {
        "interviews": process_new_interviews(context, existing, scope),
        "ideas": process_new_ideas(context, existing, scope),
    }
    logger.info("daily: complete interviews=%d ideas=%d", summary["interviews"], summary["ideas"])
    return summary


# ---------- Weekly ----------

def research_current_trends(week: int, context: AgentContext) -> Tuple[str, List[str], str]:
    """Pick this week's research query, then let the model turn findings into a topic."""
    vendor_focus = week % 2 == 0
    queries = C.VENDOR_TREND_QUERIES if vendor_focus else C.GENERAL_TREND_QUERIES
    query = queries[math.floor((week / 2) % len(queries))]

    research = ""
    if context.search is not None:
        try:
            results = context.search.search(query, 5)
        except Exception as e:
            logger.warning("weekly: trend research failed query=%r err=%s", query, e)
            results = []
        research = "\n\n".join(f"[{r.source}]: {r.title}\n{r.snippet}" for r in results)

    _, prompt = render_prompt(
        "topic_suggestion",
        context.settings.prompts_dir,
        research_context=research,
        vendor_focus=vendor_focus,
    )
    raw = context.writer.write(prompt)
    parsed = salvage_json(raw, "{", "}")
    if isinstance(parsed, dict) and isinstance(parsed.get("topic"), str) and parsed["topic"].strip():
        keywords = [str(k) for k in parsed.get("keywords") or [] if str(k).strip()]
        return parsed["topic"].strip(), keywords, research

    logger.warning("weekly: could not parse topic suggestion, using fallback")
    topic = C.FALLBACK_VENDOR_TOPIC if vendor_focus else C.FALLBACK_GENERAL_TOPIC
    return topic, list(C.FALLBACK_TOPIC_KEYWORDS), research


def weekly_seo(week: int, context: AgentContext, existing: Sequence[ExistingArticle], dry_run: bool = False) -> Optional[GenerationOutcome]:
    key_phrases = context.settings.key_phrases
    topic, keywords, _ = research_current_trends(week, context)
    if is_topic_covered(topic, existing, key_phrases):
        logger.info("weekly: topic %r covered, trying an alternative", topic)
        topic, keywords, _ = research_current_trends(week + C.ALTERNATE_TOPIC_WEEK_OFFSET, context)
        if is_topic_covered(topic, existing, key_phrases):
            logger.warning("weekly: skipping SEO article, similar topics already covered")
            return None
    logger.info("weekly: seo topic=%r keywords=%s", topic, keywords)
    return draft_seo_article(topic, context, keywords=keywords or None, dry_run=dry_run)


def weekly_theme(context: AgentContext, existing: Sequence[ExistingArticle], dry_run: bool = False) -> Optional[GenerationOutcome]:
    interviews = context.documents.all_interviews_with_content(context.settings.interviews_folder_id)
    if len(interviews) < 2:
        logger.warning("weekly: not enough interviews for theme analysis")
        return None
    themes = analyze_themes(interviews, context)
    if not themes:
        logger.warning("weekly: no themes discovered")
        return None
    selected = next((t for t in themes if not is_topic_covered(t, existing, context.settings.key_phrases)), None)
    if selected is None:
        logger.warning("weekly: all discovered themes already covered")
        return None
    logger.info("weekly: theme=%r", selected)
    return draft_theme_roundup(context, theme=selected, dry_run=dry_run, interviews=interviews)


def _vendor_key(interview: Interview) -> str:
    # "Michele Interview" -> "michele"
    return interview.title.lower().replace("interview", " ").strip(" -–—")


def weekly_interview(context: AgentContext, existing: Sequence[ExistingArticle], dry_run: bool = False) -> Optional[GenerationOutcome]:
    processed = load_processed_interviews(context)
    titles = [a.title.lower() for a in existing]
    candidates = []
    for interview in context.documents.list_interviews(context.settings.interviews_folder_id):
        if interview.id in processed:
            continue
        vendor = " ".join(_vendor_key(interview).split())
        if vendor and any(vendor in t for t in titles):
            logger.info("weekly: skipping %r, article already exists", interview.title)
            if not dry_run:
                save_processed_interview(context, interview.id)
            continue
        candidates.append(interview)

    if not candidates:
        logger.info("weekly: no new interviews")
        return None

    interview = candidates[0]
    logger.info("weekly: new interview %r", interview.title)
    outcome = draft_from_interview(interview.id, context, dry_run=dry_run)
    if outcome.success and not dry_run:
        save_processed_interview(context, interview.id)
    return outcome


def run_weekly(context: AgentContext, dry_run: bool = False) -> Dict[str, Optional[GenerationOutcome]]:
    week = increment_week_counter(context, persist=not dry_run)
    logger.info("weekly: week=%d", week)
    existing = context.publisher.list_articles()
    logger.info("weekly: existing articles=%d", len(existing))

    outcomes: Dict[str, Optional[GenerationOutcome]] = {}
    steps = (
        ("seo", lambda: weekly_seo(week, context, existing, dry_run)),
        ("theme", lambda: weekly_theme(context, existing, dry_run)),
        ("interview", lambda: weekly_interview(context, existing, dry_run)),
    )
    for name, step in steps:
        try:
            outcome = step()
        except Exception as e:
            logger.error("weekly: %s step failed: %s", name, e)
            outcome = GenerationOutcome(success=False, message=f"{name} step failed: {e}")
        if outcome is not None:
            log = logger.info if outcome.success else logger.warning
            log("weekly: %s -> %s", name, outcome.message)
        outcomes[name] = outcome
    return outcomes


# ---------- Entry point ----------

def _execute(job: str, context: AgentContext, options: Dict[str, Any]) -> Any:
    dry_run = bool(options.get("dry_run"))
    if job == "ask":
        return run_ask(options["request"], context)
    if job == "daily":
        return run_daily(context)
    if job == "weekly":
        return run_weekly(context, dry_run=dry_run)
    if job == "interview":
        return draft_from_interview(options["document_id"], context, dry_run=dry_run)
    if job == "themes":
        if options.get("list_only"):
            interviews = context.documents.all_interviews_with_content(context.settings.interviews_folder_id)
            return analyze_themes(interviews, context) if len(interviews) >= 2 else []
        return draft_theme_roundup(context, theme=options.get("theme"), dry_run=dry_run)
    if job == "insights":
        interview = context.documents.get_interview(options["document_id"])
        insights = extract_insights(interview, context)
        pick = options.get("pick")
        if pick is None:
            return insights
        if not 1 <= pick <= len(insights):
            raise ValueError(f"--pick must be between 1 and {len(insights)}")
        return draft_from_insight(insights[pick - 1], interview.display_name, context, dry_run=dry_run)
    if job == "seo":
        return draft_seo_article(options["topic"], context, keywords=options.get("keywords"), dry_run=dry_run)
    raise ValueError(f"Unknown job: {job}")


def run_once(config_path: str, job: str, **options) -> Any:
    """Load config, wire collaborators and run a single job."""
    run_id = uuid.uuid4().hex[:8]
    logger.info("=== run start id=%s job=%s ===", run_id, job)
    t0 = time.monotonic()
    try:
        cfg = load_config(config_path)
        context = build_context(cfg)
        return _execute(job, context, options)
    except Exception as e:
        logger.error("Run failed job=%s: %s", job, e)
        raise
    finally:
        logger.info("=== run end id=%s took_ms=%d ===", run_id, int((time.monotonic() - t0) * 1000))
