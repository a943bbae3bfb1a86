"""Heuristics deciding whether a candidate article already exists or is already covered.

Three tiers are used, from strictest to loosest:

* ``check_exists``: slug or case-insensitive title equality (blocking), plus
  substring similarity in either direction (advisory only).
* ``is_topic_covered``: two or more shared key phrases, or more than 60% of
  the candidate's long words appearing in an existing title.
* the daily-run matchers, which compare an interview or idea document title
  against existing article titles by key terms.
"""

import math
import re
from typing import Iterable, List, Optional, Sequence, Union

from content_agent.config import constants as C
from content_agent.metadata import generate_slug
from content_agent.models import DuplicateCheck, ExistingArticle
from content_agent.utils import get_logger

logger = get_logger(__name__)

CorpusEntry = Union[ExistingArticle, str]


def _title_and_slug(entry: CorpusEntry) -> tuple[str, str]:
    if isinstance(entry, str):
        return entry, entry
    return entry.title or "", entry.slug or generate_slug(entry.title or "")


def check_exists(candidate: str, corpus: Iterable[CorpusEntry]) -> DuplicateCheck:
    """Compare a candidate title against existing titles/slugs.

    A plain string entry is treated as both a title and a slug, so
    ``check_exists("Sarah Chen Floral Journey", ["sarah-chen-floral-journey"])``
    is an exact match.
    """
    slug = generate_slug(candidate)
    lowered = (candidate or "").lower()
    exact = False
    similar: List[str] = []
    for entry in corpus:
        title, entry_slug = _title_and_slug(entry)
        title_lower = title.lower()
        if entry_slug == slug or title_lower == lowered:
            exact = True
        if title_lower and lowered and (lowered in title_lower or title_lower in lowered):
            similar.append(title)
    return DuplicateCheck(exact_match=exact, similar=similar)


def extract_key_phrases(text: str, vocabulary: Optional[Sequence[str]] = None) -> List[str]:
    lowered = (text or "").lower()
    return [term for term in (vocabulary or C.DEFAULT_KEY_PHRASES) if term in lowered]


def _long_words(text: str) -> List[str]:
    return [w for w in text.split() if len(w) > C.OVERLAP_MIN_WORD_LENGTH]


def is_topic_covered(
    topic: str,
    existing: Iterable[CorpusEntry],
    key_phrases: Optional[Sequence[str]] = None,
) -> bool:
    topic_lower = (topic or "").lower()
    topic_phrases = extract_key_phrases(topic_lower, key_phrases)
    topic_words = _long_words(topic_lower)

    for entry in existing:
        title, _ = _title_and_slug(entry)
        title_lower = title.lower()
        title_phrases = extract_key_phrases(title_lower, key_phrases)

        shared = [
            p for p in topic_phrases
            if any(tp == p or p in tp or tp in p for tp in title_phrases)
        ]
        if len(shared) >= C.KEY_PHRASE_MIN_MATCHES:
            logger.info("topic covered by key phrases topic=%r title=%r shared=%s", topic, title, shared)
            return True

        if topic_words:
            title_words = set(_long_words(title_lower))
            overlap = sum(1 for w in topic_words if w in title_words) / len(topic_words)
            if overlap > C.WORD_OVERLAP_THRESHOLD:
                logger.info("topic covered by word overlap topic=%r title=%r overlap=%.2f", topic, title, overlap)
                return True
    return False


# ---------- Daily-run matchers ----------

def interview_key_terms(interview_title: str) -> List[str]:
    # "Nigel - Gloster House Interview" -> ["nigel", "gloster", "house"]
    cleaned = re.sub(r"\s*interview\s*", " ", interview_title or "", flags=re.IGNORECASE)
    cleaned = re.sub(r"[()\[\]]", " ", cleaned)
    cleaned = re.sub(r"[-–—]", " ", cleaned).lower()
    return [w for w in cleaned.split() if len(w) > 2]


def article_matches_interview(article_title: str, key_terms: Sequence[str]) -> bool:
    lowered = (article_title or "").lower()
    return any(term in lowered for term in key_terms)


def idea_key_terms(idea_title: str) -> List[str]:
    cleaned = re.sub(r"[()\[\]]", " ", idea_title or "")
    cleaned = re.sub(r"[-–—]", " ", cleaned).lower()
    return [w for w in cleaned.split() if len(w) > 2 and w not in C.IDEA_STOP_WORDS]


def article_matches_idea(article_title: str, key_terms: Sequence[str]) -> bool:
    if not key_terms:
        return False
    lowered = (article_title or "").lower()
    matches = sum(1 for term in key_terms if term in lowered)
    return matches >= math.ceil(len(key_terms) / 2)
