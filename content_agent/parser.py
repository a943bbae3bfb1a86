"""Best-effort extraction of article fields from free-form model output.

The parser never raises: fields it cannot find come back as empty strings and
are reported at warning level. ``meta_title`` is always left empty here; the
generators derive it from the title and the brand suffix.
"""

import re
from typing import List, Optional, Sequence

from content_agent.models import ArticleDraft
from content_agent.utils import get_logger

logger = get_logger(__name__)

_FENCED_HTML = re.compile(r"```html\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_BARE_HTML = re.compile(r"<[^>]+>.*</[^>]+>", re.DOTALL)

# Labels are matched at line start so "Meta Title:" never satisfies "Title:".
_LABEL_TITLE_PATTERNS = [
    re.compile(r"^[ \t*]*Title[ \t*]*:[ \t*]*(.+)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^#[ \t]+(.+)$", re.MULTILINE),
    re.compile(r"^[ \t*]*Suggested[ \t]+Title[ \t*]*:[ \t*]*(.+)$", re.IGNORECASE | re.MULTILINE),
]
_H1 = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
_H2 = re.compile(r"<h2[^>]*>(.*?)</h2>", re.IGNORECASE | re.DOTALL)
_BOLD_TITLE = re.compile(r"\*\*([A-Z][^*\n]{9,79})\*\*")

_TAGS = re.compile(r"^[ \t*]*Tags?[ \t*]*:[ \t*]*(.+)$", re.IGNORECASE | re.MULTILINE)
_META_DESCRIPTION_PATTERNS = [
    re.compile(r"^[ \t*]*Meta[ \t]*Description[ \t*]*:[ \t*]*(.+)$", re.IGNORECASE | re.MULTILINE),
]
_EXCERPT_PATTERNS = [
    re.compile(r"^[ \t*]*Excerpt[ \t*]*:[ \t*]*(.+)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^[ \t*]*Custom[ \t]*Excerpt[ \t*]*:[ \t*]*(.+)$", re.IGNORECASE | re.MULTILINE),
]

_WRAPPING = "\"'* \t"
_TAG_RE = re.compile(r"<[^>]*>")

_UNESCAPES = {
    '\\"': '"',
    "\\'": "'",
    "\\_": "_",
    "\\*": "*",
    "\\n": "\n",
    "&amp;quot;": '"',
    "&amp;#39;": "'",
}
_UNESCAPE_RE = re.compile("|".join(re.escape(k) for k in _UNESCAPES))


def unescape_html(html: str) -> str:
    """Undo escaping artifacts models leave in HTML, in a single pass."""
    if not html:
        return ""
    return _UNESCAPE_RE.sub(lambda m: _UNESCAPES[m.group(0)], html)


def _strip_wrapping(value: str) -> str:
    return value.strip().strip(_WRAPPING).replace('\\"', '"').strip()


def _first_match(patterns: Sequence[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            value = _strip_wrapping(m.group(1))
            if value:
                return value
    return None


def extract_html(text: str) -> str:
    m = _FENCED_HTML.search(text)
    if m:
        return m.group(1).strip()
    m = _BARE_HTML.search(text)
    return m.group(0) if m else ""


def extract_title(text: str, html: str = "") -> str:
    title = _first_match(_LABEL_TITLE_PATTERNS, text)
    if title:
        return title
    for heading in (_H1, _H2):
        m = heading.search(html)
        if m:
            value = _strip_wrapping(_TAG_RE.sub("", m.group(1)))
            if value:
                return value
    m = _BOLD_TITLE.search(text)
    return _strip_wrapping(m.group(1)) if m else ""


def extract_tags(text: str) -> List[str]:
    m = _TAGS.search(text)
    if not m:
        return []
    tags = []
    for raw in m.group(1).split(","):
        tag = _strip_wrapping(raw).lower()
        if tag:
            tags.append(tag)
    return tags


def parse_article_response(text: str) -> ArticleDraft:
    text = text or ""
    html = unescape_html(extract_html(text))
    draft = ArticleDraft(
        title=extract_title(text, html),
        html=html,
        tags=extract_tags(text),
        meta_description=_first_match(_META_DESCRIPTION_PATTERNS, text) or "",
        excerpt=_first_match(_EXCERPT_PATTERNS, text) or "",
    )
    missing = [name for name in ("title", "html", "excerpt", "meta_description") if not getattr(draft, name)]
    if not draft.tags:
        missing.append("tags")
    if missing:
        logger.warning("parser: fields not found in model output: %s", ", ".join(missing))
    return draft
