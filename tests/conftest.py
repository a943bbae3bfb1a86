import os
import sys
from typing import Dict, List, Optional

import pytest

# Ensure logger writes to a temp folder within tests
os.environ.setdefault("LOG_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "_logs"))

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from content_agent.config.settings import AgentContext, AgentSettings
from content_agent.models import (
    STOP_END,
    STOP_TOOL_USE,
    DraftReceipt,
    ExistingArticle,
    Interview,
    ModelResponse,
    SearchResult,
    SourceDocument,
    TextBlock,
    ToolCallRequest,
)


class FakeDocuments:
    def __init__(self, interviews=(), ideas=()):
        self.interviews: List[Interview] = list(interviews)
        self.ideas: List[SourceDocument] = list(ideas)
        self.calls: List[str] = []

    def list_interviews(self, folder_id):
        self.calls.append(f"list_interviews:{folder_id}")
        return [i.model_copy(update={"content": ""}) for i in self.interviews]

    def get_interview(self, document_id):
        self.calls.append(f"get_interview:{document_id}")
        for interview in self.interviews:
            if interview.id == document_id:
                return interview
        raise RuntimeError(f"document {document_id} not found")

    def list_documents(self, folder_id):
        self.calls.append(f"list_documents:{folder_id}")
        return [d.model_copy(update={"content": ""}) for d in self.ideas]

    def get_document(self, document_id):
        self.calls.append(f"get_document:{document_id}")
        for doc in [*self.ideas, *self.interviews]:
            if doc.id == document_id:
                return SourceDocument(id=doc.id, title=doc.title, content=doc.content)
        raise RuntimeError(f"document {document_id} not found")

    def all_interviews_with_content(self, folder_id):
        return list(self.interviews)

    def search_interviews(self, folder_id, keywords):
        lowered = [k.lower() for k in keywords]
        return [
            {"id": i.id, "title": i.title, "vendor_name": i.vendor_name, "vendor_type": i.vendor_type, "snippets": [i.content[:40]]}
            for i in self.interviews
            if any(k in i.content.lower() for k in lowered)
        ]


class FakePublisher:
    def __init__(self, titles=()):
        self.articles = [
            ExistingArticle(id=str(n), title=t, slug=t.lower().replace(" ", "-")) for n, t in enumerate(titles, 1)
        ]
        self.created = []

    def list_articles(self):
        return list(self.articles)

    def search_articles(self, query):
        return [a for a in self.articles if query.lower() in a.title.lower()]

    def create_draft(self, draft):
        self.created.append(draft)
        self.articles.append(ExistingArticle(id=f"new-{len(self.created)}", title=draft.title, slug=draft.slug))
        return DraftReceipt(id=f"new-{len(self.created)}", url=f"https://blog.example.com/{draft.slug}/")


class FakeWriter:
    """Returns scripted replies in order; the last reply repeats."""

    def __init__(self, *replies: str):
        self.replies = list(replies) or [""]
        self.prompts: List[Dict[str, str]] = []

    def write(self, prompt, system="", max_tokens=None):
        self.prompts.append({"prompt": prompt, "system": system})
        index = min(len(self.prompts) - 1, len(self.replies) - 1)
        return self.replies[index]


class FakeSearch:
    def __init__(self, results=()):
        self.results = list(results)
        self.queries: List[str] = []

    def search(self, query, max_results=5):
        self.queries.append(query)
        return self.results[:max_results]

    def research_topic(self, topic, max_results=None):
        self.queries.append(topic)
        return f'Research findings on "{topic}"'

    def research_keywords(self, keywords):
        self.queries.extend(keywords)
        return "Research findings: keywords"


class ScriptedModel:
    """Replays ModelResponses; records the number of turns seen on each call."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def complete(self, system_prompt, tools, conversation):
        self.calls.append({"system": system_prompt, "tools": [t.name for t in tools], "turns": conversation.turns})
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        return self.responses[index]


def tool_response(*calls, text: Optional[str] = None) -> ModelResponse:
    blocks = [TextBlock(text=text)] if text else []
    blocks += [ToolCallRequest(id=f"tu_{name}_{n}", name=name, input=args) for n, (name, args) in enumerate(calls)]
    return ModelResponse(stop_reason=STOP_TOOL_USE, content=blocks)


def text_response(text: str) -> ModelResponse:
    return ModelResponse(stop_reason=STOP_END, content=[TextBlock(text=text)])


def make_interview(doc_id, title, content="", created_at=None) -> Interview:
    return Interview.from_document(SourceDocument(id=doc_id, title=title, content=content, created_at=created_at))


@pytest.fixture
def settings(tmp_path):
    return AgentSettings(
        interviews_folder_id="folder-interviews",
        ideas_folder_id="folder-ideas",
        ghost_url="https://blog.example.com",
        state_dir=str(tmp_path / "state"),
        max_iterations=3,
        tool_timeout_sec=5,
    )


@pytest.fixture
def make_context(settings):
    def _make(model=None, writer=None, documents=None, publisher=None, search=None, **overrides):
        for key, value in overrides.items():
            setattr(settings, key, value)
        return AgentContext(
            settings=settings,
            model=model or ScriptedModel([text_response("done")]),
            writer=writer or FakeWriter(),
            documents=documents or FakeDocuments(),
            publisher=publisher or FakePublisher(),
            search=search,
        )

    return _make


@pytest.fixture
def sample_results():
    return [
        SearchResult(title="Trends", url="https://www.theknot.com/trends", snippet="x", source="www.theknot.com"),
        SearchResult(title="Stats", url="https://example.org/stats", snippet="Couples spend more", source="example.org"),
    ]
