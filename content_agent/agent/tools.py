"""Static tool catalog offered to the model on every agent turn."""

from enum import Enum
from typing import Dict, Tuple

from content_agent.models import ToolSpec


class ToolName(str, Enum):
    LIST_INTERVIEWS = "list_interviews"
    READ_INTERVIEW = "read_interview"
    SEARCH_INTERVIEWS = "search_interviews"
    LIST_ARTICLES = "list_articles"
    SEARCH_ARTICLES = "search_articles"
    CHECK_DUPLICATE = "check_duplicate"
    CREATE_DRAFT = "create_draft"
    WEB_SEARCH = "web_search"
    RESEARCH_TOPIC = "research_topic"
    LIST_IDEAS = "list_ideas"
    READ_IDEA = "read_idea"


def _schema(properties=None, required=()):
    return {"type": "object", "properties": properties or {}, "required": list(required)}


_DOCUMENT_ID = {"document_id": {"type": "string", "description": "The Google Docs document ID"}}

TOOL_SPECS: Tuple[ToolSpec, ...] = (
    ToolSpec(
        name=ToolName.LIST_INTERVIEWS.value,
        description="List all interview documents from Google Drive. Returns id, title, vendor name, vendor type and date for each.",
        input_schema=_schema(),
    ),
    ToolSpec(
        name=ToolName.READ_INTERVIEW.value,
        description="Read the full content of a specific interview document by its ID.",
        input_schema=_schema(_DOCUMENT_ID, ["document_id"]),
    ),
    ToolSpec(
        name=ToolName.SEARCH_INTERVIEWS.value,
        description=(
            "Search ALL interviews at once for keywords. Returns, per matching vendor, short snippets "
            "around each hit. Use it to gather quotes for topic-based articles."
        ),
        input_schema=_schema(
            {"keywords": {"type": "array", "items": {"type": "string"}, "description": "Keywords or phrases to look for"}},
            ["keywords"],
        ),
    ),
    ToolSpec(
        name=ToolName.LIST_ARTICLES.value,
        description="List existing articles on the Ghost blog (drafts, published and scheduled). Returns title, slug and publish date.",
        input_schema=_schema({"limit": {"type": "integer", "description": "Max articles to return (default 20)"}}),
    ),
    ToolSpec(
        name=ToolName.SEARCH_ARTICLES.value,
        description="Search existing articles by title or slug.",
        input_schema=_schema({"query": {"type": "string", "description": "Search query"}}, ["query"]),
    ),
    ToolSpec(
        name=ToolName.CHECK_DUPLICATE.value,
        description="Check whether an article with this or a similar title already exists. Returns exact match status and similar titles.",
        input_schema=_schema({"title": {"type": "string", "description": "The proposed article title"}}, ["title"]),
    ),
    ToolSpec(
        name=ToolName.CREATE_DRAFT.value,
        description="Create a draft article in Ghost. Provide the complete HTML content ready to publish.",
        input_schema=_schema(
            {
                "title": {"type": "string", "description": "Article title"},
                "html": {"type": "string", "description": "Complete HTML content"},
                "excerpt": {"type": "string", "description": "Article excerpt/summary"},
                "meta_description": {"type": "string", "description": "SEO meta description"},
                "tags": {"type": "array", "items": {"type": "string"}, "description": "Article tags"},
            },
            ["title", "html"],
        ),
    ),
    ToolSpec(
        name=ToolName.WEB_SEARCH.value,
        description="Search the web for wedding industry trends, statistics or background information. Competitor sites are excluded.",
        input_schema=_schema(
            {
                "query": {"type": "string", "description": "Search query"},
                "max_results": {"type": "integer", "description": "Maximum results to return (default 5)"},
            },
            ["query"],
        ),
    ),
    ToolSpec(
        name=ToolName.RESEARCH_TOPIC.value,
        description="Research a topic and get a formatted summary of findings with sources.",
        input_schema=_schema({"topic": {"type": "string", "description": "Topic to research"}}, ["topic"]),
    ),
    ToolSpec(
        name=ToolName.LIST_IDEAS.value,
        description='List article ideas from the ideas folder. Each idea doc holds a request like "Piece on AI - look for interview quotes".',
        input_schema=_schema(),
    ),
    ToolSpec(
        name=ToolName.READ_IDEA.value,
        description="Read the full content of an idea document by its ID. The content describes the article to create.",
        input_schema=_schema(_DOCUMENT_ID, ["document_id"]),
    ),
)

TOOLS_BY_NAME: Dict[str, ToolSpec] = {spec.name: spec for spec in TOOL_SPECS}
