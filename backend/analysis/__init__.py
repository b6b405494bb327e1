"""CRO analysis pipeline package."""

from backend.analysis.client import (
    CompletionModelClient,
    ModelClient,
    StreamingModelClient,
    require_api_key,
)
from backend.analysis.models import AnalysisRequest, AnalysisResult, MissionContext
from backend.analysis.prompts import build_prompts, truncate_text
from backend.analysis.service import analyze, fetch_text, prepare_request, stream_analysis
from backend.analysis.validator import strip_code_fence, validate_result

__all__ = [
    "ModelClient",
    "CompletionModelClient",
    "StreamingModelClient",
    "require_api_key",
    "MissionContext",
    "AnalysisRequest",
    "AnalysisResult",
    "build_prompts",
    "truncate_text",
    "strip_code_fence",
    "validate_result",
    "fetch_text",
    "prepare_request",
    "analyze",
    "stream_analysis",
]
