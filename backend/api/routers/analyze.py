"""CRO analysis endpoint, JSON or streamed.

Routes
------
POST /analyze                Body: {"text"?, "url"?, "targetAudience"?, "productType"?}
                             → AnalysisResult JSON (unwrapped)
POST /analyze?stream=true    Same body (``completion`` accepted as alias of ``text``)
                             → chunked text/plain body of raw model output

In streaming mode the client joins the chunks and parses the JSON itself
once the body is complete.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from backend.analysis.client import CompletionModelClient, StreamingModelClient, require_api_key
from backend.analysis.models import MissionContext
from backend.analysis.service import analyze, prepare_request, stream_analysis
from backend.errors import AnalysisError, ErrorKind

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    completion: Optional[str] = None
    url: Optional[str] = None
    target_audience: Optional[str] = Field(default=None, alias="targetAudience")
    product_type: Optional[str] = Field(default=None, alias="productType")

    @property
    def effective_text(self) -> Optional[str]:
        if self.text and self.text.strip():
            return self.text
        return self.completion

    @property
    def mission(self) -> MissionContext:
        return MissionContext(
            target_audience=self.target_audience, product_type=self.product_type
        )


# ---------------------------------------------------------------------------
# Streaming helper
# ---------------------------------------------------------------------------

async def _relay(first: str, chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    """Re-emit an already-started chunk stream.

    The status line has been sent by now, so a late failure can only be
    logged and end the body early.
    """
    try:
        yield first
        async for chunk in chunks:
            yield chunk
    except AnalysisError as exc:
        logger.warning("Analysis stream aborted: %s: %s", exc.kind.value, exc.message)
    finally:
        await chunks.aclose()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/analyze")
async def analyze_endpoint(body: AnalyzeRequest, stream: bool = False):
    """Analyze landing-page copy and return the CRO evaluation.

    The model credential is checked before anything touches the network.
    Pass ``?stream=true`` to receive the raw model output as it is generated.
    """
    api_key = require_api_key()
    request = await prepare_request(body.effective_text, body.url, body.mission)

    if not stream:
        result = await analyze(request, CompletionModelClient(api_key))
        return JSONResponse(result.to_json_dict())

    chunks = stream_analysis(request, StreamingModelClient(api_key))
    # Pull the first chunk up front so setup failures still get a real status.
    try:
        first = await chunks.__anext__()
    except StopAsyncIteration:
        raise AnalysisError(
            ErrorKind.MODEL_UNAVAILABLE, "The model returned an empty response."
        ) from None

    return StreamingResponse(
        _relay(first, chunks),
        media_type="text/plain; charset=utf-8",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )
