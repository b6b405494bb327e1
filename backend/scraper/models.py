"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class PageContent:
    """Decoded HTML of a single successful page fetch."""

    url: str
    html: str
    status_code: int


@dataclass
class ExtractedText:
    """Marketing text pulled out of a page, plus the head fallback fields.

    ``fragments`` is already deduplicated and in first-seen order.
    """

    fragments: List[str] = field(default_factory=list)
    title: str = ""
    meta_description: str = ""

    @property
    def text(self) -> str:
        return " ".join(self.fragments).strip()

    @property
    def fallback_text(self) -> str:
        """``title`` and ``meta_description`` joined, skipping empty parts."""
        return " ".join(p for p in (self.title, self.meta_description) if p).strip()
