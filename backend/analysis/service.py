"""End-to-end pipeline: URL or text → prompts → model → validated result.

Functions here compose the scraper and analysis stages.  Each stage raises
its own :class:`~backend.errors.AnalysisError`; nothing is caught and
re-wrapped on the way through.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Sequence

from backend.analysis.client import CompletionModelClient, ModelClient, require_api_key
from backend.analysis.models import AnalysisRequest, AnalysisResult, MissionContext
from backend.analysis.prompts import build_prompts
from backend.analysis.validator import validate_result
from backend.config import settings
from backend.errors import AnalysisError, ErrorKind
from backend.scraper.extractor import extract_content, resolve_text
from backend.scraper.fetcher import fetch_page
from backend.scraper.headers import DEFAULT_PROFILES, HeaderProfileSource
from backend.scraper.rules import DEFAULT_RULES, ExtractionRuleSet

logger = logging.getLogger(__name__)


async def fetch_text(
    url: str,
    timeout_ms: int | None = None,
    rules: ExtractionRuleSet = DEFAULT_RULES,
    profiles: Sequence[HeaderProfileSource] = DEFAULT_PROFILES,
) -> tuple[str, str | None]:
    """Fetch *url* and return ``(text, warning)``.

    ``warning`` is set when the title/meta fallback was used.
    """
    page = await fetch_page(url, timeout_ms=timeout_ms, profiles=profiles)
    extracted = extract_content(page.html, rules)
    return resolve_text(extracted)


async def prepare_request(
    text: str | None,
    url: str | None,
    mission: MissionContext | None = None,
) -> AnalysisRequest:
    """Build an :class:`AnalysisRequest` from pasted text or a URL.

    Non-empty *text* wins; otherwise *url* is fetched and extracted.

    Raises:
        AnalysisError: ``InvalidInput`` when neither is usable or the
            effective text is shorter than ``settings.min_text_length``,
            plus any fetch/extract failure.
    """
    if text and text.strip():
        effective = text
    elif url and url.strip():
        effective, _warning = await fetch_text(url)
    else:
        raise AnalysisError(ErrorKind.INVALID_INPUT, "Provide the text or a URL to analyze.")

    if len(effective.strip()) < settings.min_text_length:
        raise AnalysisError(
            ErrorKind.INVALID_INPUT,
            "The text to analyze is too short or missing.",
            details=f"At least {settings.min_text_length} characters are required.",
        )
    return AnalysisRequest(text=effective, mission=mission or MissionContext())


async def analyze(
    request: AnalysisRequest,
    client: ModelClient | None = None,
) -> AnalysisResult:
    """Run the model once and validate its output."""
    if client is None:
        client = CompletionModelClient(require_api_key())
    prompts = build_prompts(request.text, request.mission)
    raw = await client.complete(prompts)
    return validate_result(raw)


def stream_analysis(request: AnalysisRequest, client: ModelClient) -> AsyncIterator[str]:
    """Return the model's raw output chunks for *request*.

    The chunks form one JSON document only once the iterator is exhausted;
    pass the joined text to :func:`validate_result` at that point.
    """
    prompts = build_prompts(request.text, request.mission)
    return client.stream(prompts)
