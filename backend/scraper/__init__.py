"""Scraper package — page fetch & marketing-text extraction."""

from backend.scraper.extractor import extract_content, resolve_text
from backend.scraper.fetcher import fetch_page, validate_url
from backend.scraper.headers import (
    DEFAULT_PROFILES,
    GeneratedHeaderProfile,
    HeaderProfileSource,
    StaticHeaderProfile,
)
from backend.scraper.models import ExtractedText, PageContent
from backend.scraper.rules import DEFAULT_RULES, ExtractionRuleSet

__all__ = [
    "fetch_page",
    "validate_url",
    "extract_content",
    "resolve_text",
    "PageContent",
    "ExtractedText",
    "ExtractionRuleSet",
    "DEFAULT_RULES",
    "HeaderProfileSource",
    "StaticHeaderProfile",
    "GeneratedHeaderProfile",
    "DEFAULT_PROFILES",
]
