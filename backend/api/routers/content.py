"""Content fetch endpoint.

Routes
------
POST /fetch-content    Body: {"url": "https://..."}    → {"text": "...", "warning"?: "..."}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.analysis.service import fetch_text

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class FetchContentRequest(BaseModel):
    # Left untyped so a missing or non-string URL gets the same
    # "URL is required" error as an empty one.
    url: Any = None


class FetchContentResponse(BaseModel):
    text: str
    warning: Optional[str] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/fetch-content", response_model=FetchContentResponse)
async def fetch_content_endpoint(body: FetchContentRequest) -> JSONResponse:
    """Fetch a landing page and return its extracted marketing text.

    ``warning`` is only present when the page body was empty and the
    title/meta description was used instead.
    """
    text, warning = await fetch_text(body.url)
    payload: dict[str, Any] = {"text": text}
    if warning:
        payload["warning"] = warning
    return JSONResponse(payload)
