"""FastAPI application factory.

Errors
------
Every pipeline failure is an :class:`~backend.errors.AnalysisError`.  A
single exception handler turns it into ``{error, details?, rawResponse?}``
with the status code its kind maps to.  Malformed request bodies are
reported as ``400`` in the same shape.

Routers
-------
    /fetch-content  — fetch a URL and extract its marketing text
    /analyze        — CRO analysis of pasted text or a URL (optionally streamed)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.config import settings
from backend.errors import AnalysisError

from backend.api.routers import analyze as analyze_router
from backend.api.routers import content as content_router

logger = logging.getLogger(__name__)


async def _analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    logger.warning("%s %s failed: %s: %s", request.method, request.url.path, exc.kind.value, exc.message)
    headers = {"Retry-After": exc.retry_after} if exc.retry_after else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": details},
    )


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Landing Page CRO Analyzer API",
        description=(
            "Fetches landing pages, extracts their marketing copy and returns a "
            "structured conversion-rate-optimization evaluation from an LLM."
        ),
        version="0.1.0",
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AnalysisError, _analysis_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(content_router.router, tags=["content"])
    app.include_router(analyze_router.router, tags=["analyze"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
