"""LLM client in two variants: one-shot completion and token streaming.

Both variants expose the same async generator, :meth:`ModelClient.stream`.
:class:`CompletionModelClient` yields the whole completion as a single chunk,
:class:`StreamingModelClient` yields tokens as the model produces them.
:meth:`ModelClient.complete` concatenates either into the final text, so the
prompt building and result validation around them are shared.

Upstream failures are translated into :class:`~backend.errors.AnalysisError`
here and nowhere else.  No request is retried automatically.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

import openai
from langchain_core.messages import HumanMessage, SystemMessage

from backend.analysis.prompts import PromptPair
from backend.config import settings
from backend.errors import AnalysisError, ErrorKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# LLM helpers
# ---------------------------------------------------------------------------

def require_api_key() -> str:
    """Return the model credential or raise ``ConfigurationMissing``.

    Called before any network activity so a missing key never costs a fetch.
    """
    api_key = settings.model_api_key()
    if api_key is None:
        raise AnalysisError(
            ErrorKind.CONFIGURATION_MISSING,
            f"Model API key is missing. Set {settings.api_key_env_var} in your .env file.",
        )
    return api_key


def _get_llm(api_key: str, streaming: bool = False) -> Any:
    """Return a LangChain chat model for the configured provider."""
    from langchain_openai import ChatOpenAI

    llm = ChatOpenAI(
        model=settings.chat_model,
        api_key=api_key,
        base_url=settings.llm_base_url,
        temperature=settings.llm_temperature,
        timeout=settings.model_timeout,
        max_retries=0,
        streaming=streaming,
    )
    if settings.llm_json_mode:
        return llm.bind(response_format={"type": "json_object"})
    return llm


def _messages(prompts: PromptPair) -> list[Any]:
    return [SystemMessage(content=prompts.system), HumanMessage(content=prompts.user)]


def _content_text(content: Any) -> str:
    """Flatten a LangChain message ``content`` (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(str(part.get("text", "")))
            else:
                parts.append(str(part))
        return "".join(parts)
    return str(content or "")


def _translate_error(exc: openai.OpenAIError) -> AnalysisError:
    """Map an OpenAI SDK exception onto the closed error taxonomy."""
    if isinstance(exc, openai.AuthenticationError):
        return AnalysisError(
            ErrorKind.MODEL_AUTH_FAILURE,
            (
                "The model service rejected the API key. "
                f"Check that {settings.api_key_env_var} holds a valid, active key "
                f"for the {settings.llm_provider} API, then restart the server."
            ),
            details=exc.message,
        )
    if isinstance(exc, openai.RateLimitError):
        return AnalysisError(
            ErrorKind.MODEL_RATE_LIMITED,
            "The model service is rate limiting requests. Please wait and try again later.",
            details=exc.message,
            retry_after=exc.response.headers.get("retry-after"),
        )
    if isinstance(exc, openai.APIStatusError):
        return AnalysisError(
            ErrorKind.MODEL_UNAVAILABLE,
            f"The model service returned HTTP {exc.status_code}.",
            details=exc.message,
        )
    if isinstance(exc, openai.APITimeoutError):
        return AnalysisError(
            ErrorKind.MODEL_UNAVAILABLE,
            "The model service did not respond in time.",
            details=f"Request timed out after {settings.model_timeout:g}s",
        )
    return AnalysisError(
        ErrorKind.MODEL_UNAVAILABLE,
        "Could not communicate with the model service.",
        details=str(exc),
    )


# ---------------------------------------------------------------------------
# Client variants
# ---------------------------------------------------------------------------

class ModelClient(ABC):
    """Abstract model client.  Construct with a credential from :func:`require_api_key`."""

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    @abstractmethod
    def stream(self, prompts: PromptPair) -> AsyncIterator[str]:
        """Yield the model output as ordered, non-empty text chunks."""

    async def complete(self, prompts: PromptPair) -> str:
        """Return the full model output once every chunk has arrived.

        Raises:
            AnalysisError: ``ModelUnavailable`` when the output is empty, or
                whichever kind the upstream failure maps to.
        """
        parts = [chunk async for chunk in self.stream(prompts)]
        text = "".join(parts)
        if not text.strip():
            raise AnalysisError(
                ErrorKind.MODEL_UNAVAILABLE, "The model returned an empty response."
            )
        logger.info("Model returned %d characters", len(text))
        return text


class CompletionModelClient(ModelClient):
    """One round trip; the whole completion arrives as a single chunk."""

    async def stream(self, prompts: PromptPair) -> AsyncIterator[str]:
        llm = _get_llm(self._api_key)
        logger.info("Requesting completion from %s", settings.chat_model)
        try:
            response = await llm.ainvoke(_messages(prompts))
        except openai.OpenAIError as exc:
            raise _translate_error(exc) from exc

        text = _content_text(getattr(response, "content", response))
        if text:
            yield text


class StreamingModelClient(ModelClient):
    """Tokens are yielded as the model generates them."""

    async def stream(self, prompts: PromptPair) -> AsyncIterator[str]:
        llm = _get_llm(self._api_key, streaming=True)
        logger.info("Opening completion stream from %s", settings.chat_model)
        upstream = llm.astream(_messages(prompts))
        try:
            async for chunk in upstream:
                text = _content_text(getattr(chunk, "content", chunk))
                if text:
                    yield text
        except openai.OpenAIError as exc:
            raise _translate_error(exc) from exc
        finally:
            await upstream.aclose()
