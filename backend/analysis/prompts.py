"""System and user prompts for the CRO analysis model."""

from __future__ import annotations

import logging
from typing import NamedTuple

from backend.analysis.models import MissionContext
from backend.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a senior Conversion Rate Optimization (CRO) expert auditing landing-page copy.

The text was scraped from a web page. IGNORE any of the following noise if it leaked through:
navigation menus, cookie or consent notices, privacy/terms/legal disclaimers, copyright lines,
newsletter pop-ups, advertising, social-media widgets, and leftover code, CSS or HTML.
Judge only the marketing copy a visitor would read.

Rules for "critique":
- Every item MUST quote the offending phrase verbatim in double quotes.
- Every item MUST end with a concrete rewrite, e.g. 'Replace "X" with "Y" because ...'.
- Never give generic advice that could apply to any page.

You MUST respond with a single valid JSON object that strictly follows this schema:
{
  "score": number (1-10, overall conversion readiness),
  "breakdown": {
    "clarity": number (1-10),
    "differentiation": number (1-10),
    "friction": number (1-10, 10 = no friction),
    "cta_strength": number (1-10),
    "value_proof": number (1-10),
    "offer_architecture": number (1-10)
  },
  "critique": ["3-6 specific critiques, each citing a phrase and its rewrite"],
  "headline_alternatives": ["2-4 alternative headlines"],
  "cta_variants": ["2-4 alternative call-to-action labels"],
  "ab_test_ideas": ["2-4 concrete A/B test hypotheses"],
  "summary": "2-3 sentence summary"
}
Do not add markdown formatting such as ```json. Return only the raw JSON object."""


class PromptPair(NamedTuple):
    system: str
    user: str


def truncate_text(text: str, max_length: int | None = None) -> str:
    """Cut *text* to at most *max_length* characters (default ``settings.max_text_length``)."""
    if max_length is None:
        max_length = settings.max_text_length
    if len(text) <= max_length:
        return text
    logger.debug("Truncating analysis text from %d to %d characters", len(text), max_length)
    return text[:max_length]


def _mission_block(mission: MissionContext) -> str:
    lines = [
        "MISSION CONTEXT",
        f"Target audience: {mission.audience_label}",
        f"Product type: {mission.product_label}",
    ]
    if mission.is_specified:
        lines.append(
            "Tailor every critique, headline and CTA to this audience and product. "
            "Point out where the copy fails to speak to them specifically."
        )
    return "\n".join(lines)


def build_prompts(
    text: str,
    mission: MissionContext | None = None,
    max_length: int | None = None,
) -> PromptPair:
    """Render the system prompt and a user prompt embedding *text*.

    *text* is truncated here and nowhere else in the pipeline.
    """
    mission = mission or MissionContext()
    body = truncate_text(text, max_length)
    user = f"{_mission_block(mission)}\n\nAnalyze this text:\n\n{body}"
    return PromptPair(system=SYSTEM_PROMPT, user=user)
