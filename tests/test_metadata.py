from content_agent.config import constants as C
from content_agent.metadata import (
    extract_excerpt,
    generate_meta_description,
    generate_meta_title,
    generate_slug,
    normalize_tags,
    suggest_tags,
    truncate_text,
)


def test_generate_slug():
    assert generate_slug("Sarah Chen's Floral Journey!") == "sarah-chens-floral-journey"
    assert generate_slug("  Venues -- and   Vibes ") == "venues-and-vibes"
    assert generate_slug("") == ""


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("abcdefghij", 8) == "abcde..."


def test_meta_title_fits_budget_with_suffix():
    short = generate_meta_title("Bloom Studio")
    assert short == "Bloom Studio" + C.META_TITLE_SUFFIX

    long = generate_meta_title("How Wedding Photographers Can Use AI Editing Tools to Scale")
    assert long.endswith("..." + C.META_TITLE_SUFFIX)
    assert len(long) <= C.META_TITLE_MAX


def test_meta_description_limit():
    description = generate_meta_description("word " * 60)
    assert len(description) <= C.META_DESCRIPTION_MAX
    assert description.endswith("...")


def test_extract_excerpt_strips_markup():
    excerpt = extract_excerpt("<h2>Intro</h2><p>Hello <b>there</b></p>")
    assert "Hello there" in excerpt
    assert "<" not in excerpt and "#" not in excerpt


def test_normalize_tags_dedupes():
    assert normalize_tags(["Vendor Tips", "vendor tips", "Florals!", ""]) == ["vendor-tips", "florals"]


def test_suggest_tags_keeps_vendor_type_and_base_tag():
    tags = suggest_tags("Our florist loves flowers and marketing", "Florist")
    assert tags[0] == "florist"
    assert "florals" in tags
    assert "vendor-tips" in tags
    assert tags[-1] == C.BASE_TAG


def test_suggest_tags_capped():
    content = " ".join(C.TAG_KEYWORDS)
    tags = suggest_tags(content, "Planner")
    assert len(tags) == C.MAX_SUGGESTED_TAGS
    assert tags[-1] == C.BASE_TAG
    assert len(set(tags)) == len(tags)
