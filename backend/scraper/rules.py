"""Inclusion / exclusion rules for marketing-text extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Pattern, Tuple


@dataclass(frozen=True)
class ExtractionRuleSet:
    """Immutable configuration handed to :func:`extract_content`.

    Attributes:
        exclude_selectors: CSS selectors whose matches are removed from the
            tree before any text is collected.
        include_selectors: CSS selectors walked in order to collect
            candidate fragments.
        container_tags: Tags only kept when their class names contain one of
            ``container_class_hints`` (generic ``div`` wrappers).
        container_class_hints: Class-name substrings marking marketing
            containers.
        cta_keywords: Lower-case phrases that exempt a fragment from the
            minimum word count.
        disclaimer_pattern: Fragments matching this are always dropped.
        hidden_style_pattern: Inline ``style`` values that hide an element.
        min_words: Minimum word count for non-CTA fragments.
    """

    exclude_selectors: Tuple[str, ...] = (
        "script",
        "style",
        "noscript",
        "svg",
        "path",
        "iframe",
        "header",
        "nav",
        "footer",
        "aside",
        "menu",
        ".cookie",
        ".gdpr",
        ".consent",
        ".banner",
        ".popup",
        ".modal",
        ".advert",
        ".ad",
        ".ads",
        ".newsletter",
        '[aria-hidden="true"]',
    )
    include_selectors: Tuple[str, ...] = (
        "h1",
        "h2",
        "h3",
        "p",
        "li",
        "section",
        "main",
        "article",
        "div",
        "a",
    )
    container_tags: Tuple[str, ...] = ("div",)
    container_class_hints: Tuple[str, ...] = ("hero", "content")
    cta_keywords: Tuple[str, ...] = (
        "sign up",
        "signup",
        "get started",
        "start free",
        "join now",
        "try now",
        "see pricing",
        "buy now",
        "learn more",
        "start now",
    )
    disclaimer_pattern: Pattern[str] = field(
        default=re.compile(
            r"privacy|cookies?|gdpr|terms|copyright|all rights reserved",
            re.IGNORECASE,
        )
    )
    hidden_style_pattern: Pattern[str] = field(
        default=re.compile(r"display:none|visibility:hidden", re.IGNORECASE)
    )
    min_words: int = 3


DEFAULT_RULES = ExtractionRuleSet()
