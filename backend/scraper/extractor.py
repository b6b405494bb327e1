"""Content extraction: turns raw landing-page HTML into marketing text.

Navigation, scripts, consent banners and hidden elements are removed from
the tree first.  The remaining headings, paragraphs, list items, sections,
marketing containers and links are then walked selector by selector, and
each candidate is kept only if it reads like copy (see :func:`_keep_fragment`).
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from backend.errors import AnalysisError, ErrorKind
from backend.scraper.models import ExtractedText
from backend.scraper.rules import DEFAULT_RULES, ExtractionRuleSet

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

FALLBACK_WARNING = (
    "Body content was empty after cleaning; using title/meta description as fallback."
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _parse(html: str) -> Optional[BeautifulSoup]:
    """Parse *html*, returning ``None`` when the parser rejects it."""
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as exc:  # noqa: BLE001
        logger.warning("HTML parsing failed: %s", exc)
        return None


def _head_fields(soup: BeautifulSoup) -> tuple[str, str]:
    """Return ``(title, meta description)`` from the document head."""
    title = soup.title.get_text(strip=True) if soup.title else ""
    meta = soup.find("meta", attrs={"name": "description"})
    description = ""
    if isinstance(meta, Tag):
        description = (meta.get("content") or "").strip()
    return title, description


def _remove_excluded(soup: BeautifulSoup, rules: ExtractionRuleSet) -> None:
    """Detach excluded and inline-hidden elements from the tree."""
    for tag in soup.select(", ".join(rules.exclude_selectors)):
        tag.extract()

    for tag in soup.find_all(style=True):
        style = _WHITESPACE.sub("", str(tag.get("style", "")))
        if rules.hidden_style_pattern.search(style):
            tag.extract()


def _is_marketing_container(tag: Tag, rules: ExtractionRuleSet) -> bool:
    class_name = " ".join(tag.get("class") or []).lower()
    return any(hint in class_name for hint in rules.container_class_hints)


def _keep_fragment(text: str, rules: ExtractionRuleSet) -> bool:
    """Decide whether a normalised fragment is marketing copy.

    Disclaimers are dropped at any length.  Short fragments survive only if
    they contain a CTA keyword.
    """
    if not text:
        return False
    if rules.disclaimer_pattern.search(text):
        return False
    if len(text.split()) >= rules.min_words:
        return True
    lower = text.lower()
    return any(keyword in lower for keyword in rules.cta_keywords)


def _collect_fragments(soup: BeautifulSoup, rules: ExtractionRuleSet) -> List[str]:
    seen: set[str] = set()
    fragments: List[str] = []
    for selector in rules.include_selectors:
        for tag in soup.select(selector):
            if tag.name in rules.container_tags and not _is_marketing_container(tag, rules):
                continue
            text = _WHITESPACE.sub(" ", tag.get_text(" ")).strip()
            if text in seen or not _keep_fragment(text, rules):
                continue
            seen.add(text)
            fragments.append(text)
    return fragments


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_content(html: str, rules: ExtractionRuleSet = DEFAULT_RULES) -> ExtractedText:
    """Extract deduplicated marketing fragments from *html*.

    Never raises: unparseable input yields an empty :class:`ExtractedText`.
    The title and meta description are captured alongside the fragments so
    the caller can fall back to them.
    """
    soup = _parse(html)
    if soup is None:
        return ExtractedText()

    title, description = _head_fields(soup)
    _remove_excluded(soup, rules)
    fragments = _collect_fragments(soup, rules)

    return ExtractedText(fragments=fragments, title=title, meta_description=description)


def resolve_text(extracted: ExtractedText) -> tuple[str, str | None]:
    """Return ``(text, warning)`` for an extraction result.

    Uses the body fragments when there are any, otherwise the title/meta
    fallback with :data:`FALLBACK_WARNING`.

    Raises:
        AnalysisError: ``NoContentFound`` when both are empty.
    """
    text = extracted.text
    if text:
        return text, None

    fallback = extracted.fallback_text
    if fallback:
        logger.info("No body text extracted; using title/meta fallback")
        return fallback, FALLBACK_WARNING

    raise AnalysisError(
        ErrorKind.NO_CONTENT_FOUND,
        "The page was fetched but no meaningful text was found to analyze.",
    )
