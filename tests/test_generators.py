"""Tests for one-shot article generation workflows."""

import pytest

from conftest import FakeDocuments, FakePublisher, FakeSearch, FakeWriter, make_interview
from content_agent.config import constants as C
from content_agent.generators import (
    analyze_themes,
    draft_from_insight,
    draft_from_interview,
    draft_seo_article,
    draft_theme_roundup,
    extract_insights,
    extract_keywords_from_topic,
    generate_article,
    salvage_json,
)

ARTICLE = """**Title:** Jane Doe on Raising Prices
**Meta Description:** Why one florist doubled her rates.
**Excerpt:** Jane Doe shares how she priced for value.
**Tags:** florals

```html
<h1>Jane Doe on Raising Prices</h1>
<p>Unlike <a href="https://zola.com/pricing">Zola's advice</a>, Jane went bold.</p>
```
"""

LONG_CONTENT = "We raised our prices twice this year and booked more weddings. " * 5


@pytest.fixture
def documents():
    return FakeDocuments(
        interviews=[
            make_interview("doc-1", "Interview - Jane Doe - Florist", LONG_CONTENT),
            make_interview("doc-2", "Interview - Sam Lee - Planner", "Referrals drive everything. " * 10),
            make_interview("doc-3", "Interview - Tiny - Baker", "Too short"),
        ]
    )


def test_draft_from_interview_publishes_enriched_draft(make_context, documents):
    writer = FakeWriter(ARTICLE)
    publisher = FakePublisher(["Unrelated Post"])
    context = make_context(writer=writer, documents=documents, publisher=publisher)

    outcome = draft_from_interview("doc-1", context)

    assert outcome.success is True
    assert outcome.message == 'Created draft article: "Jane Doe on Raising Prices"'
    assert outcome.article_url == "https://blog.example.com/jane-doe-on-raising-prices/"
    draft = publisher.created[0]
    assert "zola.com" not in draft.html
    assert "Zola's advice" in draft.html
    assert draft.slug == "jane-doe-on-raising-prices"
    assert draft.meta_title == "Jane Doe on Raising Prices" + C.META_TITLE_SUFFIX
    assert draft.tags[:2] == ["florals", "florist"]
    assert draft.tags[-1] == C.BASE_TAG

    prompt = writer.prompts[0]
    assert "Jane Doe" in prompt["prompt"]
    assert "theknot.com" in prompt["system"]


def test_draft_from_interview_dry_run_previews_only(make_context, documents):
    publisher = FakePublisher()
    context = make_context(writer=FakeWriter(ARTICLE), documents=documents, publisher=publisher)

    outcome = draft_from_interview("doc-1", context, dry_run=True)

    assert outcome.success is True
    assert outcome.message.startswith('[DRY RUN] Would create draft article: "Jane Doe on Raising Prices"')
    assert outcome.preview.startswith("**Title:** Jane Doe on Raising Prices")
    assert publisher.created == []


def test_draft_from_interview_blocks_exact_duplicate(make_context, documents):
    publisher = FakePublisher(["Jane Doe on Raising Prices"])
    context = make_context(writer=FakeWriter(ARTICLE), documents=documents, publisher=publisher)

    outcome = draft_from_interview("doc-1", context)

    assert outcome.success is False
    assert "already exists" in outcome.message
    assert publisher.created == []


def test_draft_from_interview_reports_similar(make_context, documents):
    publisher = FakePublisher(["Jane Doe on Raising Prices in 2024"])
    context = make_context(writer=FakeWriter(ARTICLE), documents=documents, publisher=publisher)
    outcome = draft_from_interview("doc-1", context)
    assert outcome.success is True
    assert "Found similar articles: Jane Doe on Raising Prices in 2024" in outcome.message


def test_short_interview_is_rejected(make_context, documents):
    writer = FakeWriter(ARTICLE)
    outcome = draft_from_interview("doc-3", make_context(writer=writer, documents=documents))
    assert outcome.success is False
    assert "too short" in outcome.message
    assert writer.prompts == []


def test_failures_become_outcomes(make_context, documents):
    outcome = draft_from_interview("missing", make_context(documents=documents))
    assert outcome.success is False
    assert outcome.message.startswith("Failed to generate article:")


def test_generate_article_unknown_kind(make_context):
    with pytest.raises(ValueError, match="Unknown article kind"):
        generate_article("poem", {}, make_context())


def test_generate_article_falls_back_to_interview_name(make_context, documents):
    context = make_context(writer=FakeWriter("```html\n<p>Body only</p>\n```"), documents=documents)
    draft = generate_article("interview", {"interview": documents.interviews[0]}, context)
    assert draft.title == "Jane Doe"
    assert draft.excerpt == "Body only"
    assert draft.meta_description == "Body only"


def test_salvage_json():
    assert salvage_json('["a", "b"]') == ["a", "b"]
    assert salvage_json('Themes:\n["a", "b"]\nThanks') == ["a", "b"]
    assert salvage_json('Sure! {"topic": "T", "keywords": []} done', "{", "}") == {"topic": "T", "keywords": []}
    assert salvage_json("nothing here") is None
    assert salvage_json(None) is None


def test_analyze_themes_and_insights(make_context, documents):
    context = make_context(writer=FakeWriter('Here you go: ["Pricing With Confidence", "Referral Engines"]'))
    assert analyze_themes(documents.interviews, context) == ["Pricing With Confidence", "Referral Engines"]
    summary_prompt = context.writer.prompts[0]
    assert "Interview 1 (Jane Doe)" in summary_prompt["prompt"]
    assert summary_prompt["system"] == ""

    context = make_context(writer=FakeWriter("no json at all"))
    assert extract_insights(documents.interviews[0], context) == []


def test_extract_keywords_from_topic():
    assert extract_keywords_from_topic("Pricing trends") == [
        "wedding pricing",
        "how to price wedding services",
        "wedding vendor pricing",
        "wedding trends",
        "wedding industry trends",
    ]
    assert extract_keywords_from_topic("Elopements") == ["elopements", "wedding vendors", "wedding business"]


def test_theme_roundup(make_context, documents):
    publisher = FakePublisher()
    context = make_context(writer=FakeWriter(ARTICLE), documents=documents, publisher=publisher)

    outcome = draft_theme_roundup(context, theme="Pricing With Confidence", interviews=documents.interviews[:2])

    assert outcome.success is True
    assert outcome.message.endswith("(based on 2 interviews)")
    tags = publisher.created[0].tags
    assert "industry-insights" in tags and "roundup" in tags
    assert "Pricing With Confidence" in context.writer.prompts[0]["prompt"]


def test_theme_roundup_discovers_theme(make_context, documents):
    writer = FakeWriter('["Referral Engines"]', ARTICLE)
    context = make_context(writer=writer, documents=documents)
    outcome = draft_theme_roundup(context, dry_run=True)
    assert outcome.success is True
    assert "Referral Engines" in writer.prompts[1]["prompt"]


def test_theme_roundup_needs_two_interviews(make_context, documents):
    outcome = draft_theme_roundup(make_context(), interviews=documents.interviews[:1])
    assert outcome.success is False
    assert "at least 2 interviews" in outcome.message


def test_theme_roundup_blocks_existing_theme(make_context, documents):
    context = make_context(publisher=FakePublisher(["Referral Engines"]))
    outcome = draft_theme_roundup(context, theme="Referral Engines", interviews=documents.interviews)
    assert outcome.success is False


def test_seo_article_uses_keyword_research(make_context):
    search = FakeSearch()
    publisher = FakePublisher()
    context = make_context(writer=FakeWriter(ARTICLE), publisher=publisher, search=search)

    outcome = draft_seo_article("Pricing trends", context, keywords=["Wedding Pricing", "rates"])

    assert outcome.success is True
    assert "Target keywords: Wedding Pricing, rates" in outcome.message
    assert search.queries == ["Pricing trends", "Wedding Pricing", "rates"]
    assert "wedding-pricing" in publisher.created[0].tags
    assert "Research findings: keywords" in context.writer.prompts[0]["prompt"]


def test_seo_article_without_search(make_context):
    context = make_context(writer=FakeWriter(ARTICLE))
    outcome = draft_seo_article("Elopements", context, dry_run=True)
    assert outcome.success is True
    assert "No additional research available." in context.writer.prompts[0]["prompt"]


def test_insight_article(make_context):
    search = FakeSearch()
    context = make_context(writer=FakeWriter(ARTICLE), search=search)
    outcome = draft_from_insight("Raise prices before you feel ready", "Jane Doe", context)
    assert outcome.success is True
    assert "Based on insight from Jane Doe" in outcome.message
    assert search.queries == ["Raise prices before you feel ready"]
    assert "insights" in context.publisher.created[0].tags
