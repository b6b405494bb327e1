"""Parse and shape-check the model's raw JSON output."""

from __future__ import annotations

import json
import math
import re
from typing import Any

from pydantic import ValidationError

from backend.analysis.models import AnalysisResult
from backend.config import settings
from backend.errors import AnalysisError, ErrorKind

# Opening fence with optional language tag, closing fence at the very end.
_FENCE_OPEN = re.compile(r"^```[\w+-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if *text* starts with one."""
    text = text.strip()
    if not text.startswith("```"):
        return text
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def _preview(text: str) -> str:
    return text[: settings.raw_response_preview]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name!r}")


def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_result(raw_text: str) -> AnalysisResult:
    """Turn raw model output into an :class:`AnalysisResult`.

    Only the shape downstream consumers rely on is enforced: ``score`` is a
    number, ``breakdown`` is an object and ``critique`` is a list.  Score
    ranges and list lengths are not checked.

    Raises:
        AnalysisError: ``InvalidJson`` if the text does not parse as
            standard JSON (``NaN``, ``Infinity`` and overflowing numbers included),
            ``SchemaMismatch`` if the parsed value has the wrong shape.
    """
    cleaned = strip_code_fence(raw_text or "")
    try:
        data = json.loads(
            cleaned, parse_constant=_reject_constant, parse_float=_parse_float
        )
    except ValueError as exc:
        raise AnalysisError(
            ErrorKind.INVALID_JSON,
            "The model returned invalid JSON.",
            details=str(exc),
            raw_response=_preview(cleaned),
        ) from exc

    problem = None
    if not isinstance(data, dict):
        problem = "expected a JSON object"
    elif not _is_number(data.get("score")):
        problem = "'score' must be a number"
    elif not isinstance(data.get("breakdown"), dict):
        problem = "'breakdown' must be an object"
    elif not isinstance(data.get("critique"), list):
        problem = "'critique' must be a list"

    if problem is None:
        try:
            return AnalysisResult.model_validate(data)
        except ValidationError as exc:
            problem = str(exc)

    raise AnalysisError(
        ErrorKind.SCHEMA_MISMATCH,
        "The model response does not match the expected schema.",
        details=problem,
        raw_response=_preview(json.dumps(data)),
    )
