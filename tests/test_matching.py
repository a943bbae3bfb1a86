"""Tests for duplicate and coverage heuristics."""

from content_agent.matching import (
    article_matches_idea,
    article_matches_interview,
    check_exists,
    extract_key_phrases,
    idea_key_terms,
    interview_key_terms,
    is_topic_covered,
)
from content_agent.models import ExistingArticle


def test_check_exists_slug_equality_against_plain_strings():
    check = check_exists("Sarah Chen Floral Journey", ["sarah-chen-floral-journey"])
    assert check.exact_match is True


def test_check_exists_title_is_case_insensitive():
    corpus = [ExistingArticle(title="Why Couples Book Early", slug="why-couples-book-early-2")]
    assert check_exists("why couples book EARLY", corpus).exact_match is True


def test_check_exists_similar_is_advisory():
    corpus = [ExistingArticle(title="Instagram Tips for Florists", slug="instagram-tips-for-florists")]
    check = check_exists("Instagram Tips", corpus)
    assert check.exact_match is False
    assert check.similar == ["Instagram Tips for Florists"]


def test_check_exists_unrelated_title():
    check = check_exists("New Topic", ["Completely Different Title"])
    assert check.exact_match is False
    assert check.similar == []


def test_check_exists_empty_corpus():
    check = check_exists("Anything", [])
    assert check.exact_match is False
    assert check.similar == []


def test_extract_key_phrases_uses_vocabulary():
    assert extract_key_phrases("Instagram pricing for florists") == ["instagram", "pricing", "florist"]
    assert extract_key_phrases("Instagram pricing", ["pricing"]) == ["pricing"]


def test_single_shared_phrase_is_not_covered():
    existing = [ExistingArticle(title="Instagram for Photographers")]
    assert is_topic_covered("Instagram Reels", existing) is False


def test_two_shared_phrases_are_covered():
    existing = [ExistingArticle(title="Instagram pricing for florists")]
    assert is_topic_covered("Instagram Pricing Strategies That Convert", existing) is True


def test_word_overlap_covers_topic():
    existing = ["Destination Elopement Packages"]
    assert is_topic_covered("Destination Elopement Packages Explained", existing) is True


def test_custom_key_phrases_override_defaults():
    existing = [ExistingArticle(title="Pinterest boards and referrals")]
    assert is_topic_covered("Pinterest Referrals Guide for Beginners Today", existing, ["pinterest", "referrals"]) is True
    assert is_topic_covered("Pinterest Referrals Guide for Beginners Today", existing, ["pinterest"]) is False


def test_interview_key_terms_strip_interview_word():
    assert interview_key_terms("Nigel - Gloster House Interview") == ["nigel", "gloster", "house"]
    assert interview_key_terms("Interview (Ana) - Bloom Studio") == ["ana", "bloom", "studio"]


def test_article_matches_interview_on_any_term():
    terms = interview_key_terms("Nigel - Gloster House Interview")
    assert article_matches_interview("Inside Gloster House with its owner", terms) is True
    assert article_matches_interview("Pricing for planners", terms) is False


def test_idea_key_terms_drop_stop_words():
    assert idea_key_terms("The Future of Wedding Florals") == ["future", "wedding", "florals"]


def test_article_matches_idea_needs_half_the_terms():
    terms = idea_key_terms("The Future of Wedding Florals")
    assert article_matches_idea("Wedding Florals Are Changing", terms) is True
    assert article_matches_idea("The Future of Cake", terms) is False


def test_article_matches_idea_without_terms_is_false():
    assert article_matches_idea("Anything at all", []) is False
