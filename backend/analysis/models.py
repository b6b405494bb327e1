"""Data models for the analysis pipeline."""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict

NOT_SPECIFIED = "Not specified"


class MissionContext(BaseModel):
    """Optional audience / product hints that personalise the critique."""

    target_audience: str | None = None
    product_type: str | None = None

    @property
    def audience_label(self) -> str:
        return (self.target_audience or "").strip() or NOT_SPECIFIED

    @property
    def product_label(self) -> str:
        return (self.product_type or "").strip() or NOT_SPECIFIED

    @property
    def is_specified(self) -> bool:
        return bool((self.target_audience or "").strip() or (self.product_type or "").strip())


class AnalysisRequest(BaseModel):
    text: str
    mission: MissionContext = MissionContext()


class AnalysisResult(BaseModel):
    """Structured CRO evaluation returned by the model.

    Only ``score``, ``breakdown`` and ``critique`` are shape-checked; every
    other field (including unknown ones) is passed through as-is.
    """

    model_config = ConfigDict(extra="allow")

    score: Union[int, float]
    breakdown: dict[str, Any]
    critique: list[Any]
    headline_alternatives: Any = None
    cta_variants: Any = None
    ab_test_ideas: Any = None
    summary: Any = None

    def to_json_dict(self) -> dict[str, Any]:
        """The result as the model produced it, without unset defaults."""
        keep = set(self.model_fields_set) | set(self.model_extra or {})
        return {k: v for k, v in self.model_dump().items() if k in keep}
