"""Tests for the completion / streaming model clients.

``_get_llm`` is patched to return a ``MagicMock`` chat model, so no request
ever leaves the process.  Upstream failures are simulated with real
``openai`` SDK exceptions built around ``httpx`` responses.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from backend.analysis.client import (
    CompletionModelClient,
    StreamingModelClient,
    _get_llm,
    require_api_key,
)
from backend.analysis.prompts import PromptPair
from backend.config import settings
from backend.errors import AnalysisError, ErrorKind


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

PROMPTS = PromptPair(system="system prompt", user="user prompt")

_REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def _status_error(cls, status: int, headers: dict[str, str] | None = None):
    response = httpx.Response(status, request=_REQUEST, headers=headers or {})
    return cls("upstream says no", response=response, body=None)


async def _make_astream(*tokens: str):
    """Async generator that yields fake LLM chunk objects."""
    for token in tokens:
        chunk = MagicMock()
        chunk.content = token
        yield chunk


async def _failing_astream(*tokens: str, error: Exception):
    for token in tokens:
        chunk = MagicMock()
        chunk.content = token
        yield chunk
    raise error


def _completion_llm(content=None, error: Exception | None = None) -> MagicMock:
    llm = MagicMock()
    if error is not None:
        llm.ainvoke = AsyncMock(side_effect=error)
    else:
        llm.ainvoke = AsyncMock(return_value=MagicMock(content=content))
    return llm


@pytest.fixture(autouse=True)
def _groq(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "llm_provider", "groq")


# ---------------------------------------------------------------------------
# Credential
# ---------------------------------------------------------------------------

class TestRequireApiKey:
    def test_missing_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        with pytest.raises(AnalysisError) as info:
            require_api_key()
        assert info.value.kind is ErrorKind.CONFIGURATION_MISSING
        assert "GROQ_API_KEY" in info.value.message
        assert info.value.status_code == 500

    @pytest.mark.parametrize("value", ["", "   ", "your_api_key_here", "<your-key>", "gsk_..."])
    def test_placeholder_counts_as_missing(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        monkeypatch.setenv("GROQ_API_KEY", value)
        with pytest.raises(AnalysisError) as info:
            require_api_key()
        assert info.value.kind is ErrorKind.CONFIGURATION_MISSING

    def test_read_at_call_time(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        with pytest.raises(AnalysisError):
            require_api_key()
        monkeypatch.setenv("GROQ_API_KEY", "gsk_live_123")
        assert require_api_key() == "gsk_live_123"

    def test_openai_provider_uses_openai_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "llm_provider", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-real")
        assert require_api_key() == "sk-real"


# ---------------------------------------------------------------------------
# LLM construction
# ---------------------------------------------------------------------------

class TestGetLlm:
    def test_no_automatic_retries_and_json_mode(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "llm_json_mode", True)
        with patch("langchain_openai.ChatOpenAI") as chat_cls:
            llm = _get_llm("gsk_live_123", streaming=True)

        kwargs = chat_cls.call_args.kwargs
        assert kwargs["max_retries"] == 0
        assert kwargs["api_key"] == "gsk_live_123"
        assert kwargs["base_url"] == settings.groq_base_url
        assert kwargs["model"] == settings.groq_chat_model
        assert kwargs["streaming"] is True
        assert kwargs["timeout"] == settings.model_timeout
        chat_cls.return_value.bind.assert_called_once_with(
            response_format={"type": "json_object"}
        )
        assert llm is chat_cls.return_value.bind.return_value

    def test_json_mode_off(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "llm_json_mode", False)
        with patch("langchain_openai.ChatOpenAI") as chat_cls:
            llm = _get_llm("gsk_live_123")
        chat_cls.return_value.bind.assert_not_called()
        assert llm is chat_cls.return_value


# ---------------------------------------------------------------------------
# Completion client
# ---------------------------------------------------------------------------

class TestCompletionModelClient:
    async def test_complete_returns_content(self) -> None:
        llm = _completion_llm(content='{"score": 7}')
        with patch("backend.analysis.client._get_llm", return_value=llm):
            text = await CompletionModelClient("key").complete(PROMPTS)

        assert text == '{"score": 7}'
        messages = llm.ainvoke.call_args.args[0]
        assert messages[0].content == "system prompt"
        assert messages[1].content == "user prompt"

    async def test_stream_yields_single_chunk(self) -> None:
        llm = _completion_llm(content="whole answer")
        with patch("backend.analysis.client._get_llm", return_value=llm):
            chunks = [c async for c in CompletionModelClient("key").stream(PROMPTS)]
        assert chunks == ["whole answer"]

    async def test_list_content_flattened(self) -> None:
        llm = _completion_llm(content=[{"type": "text", "text": '{"a"'}, {"type": "text", "text": ": 1}"}])
        with patch("backend.analysis.client._get_llm", return_value=llm):
            text = await CompletionModelClient("key").complete(PROMPTS)
        assert text == '{"a": 1}'

    async def test_empty_content_is_model_unavailable(self) -> None:
        llm = _completion_llm(content="")
        with patch("backend.analysis.client._get_llm", return_value=llm):
            with pytest.raises(AnalysisError) as info:
                await CompletionModelClient("key").complete(PROMPTS)
        assert info.value.kind is ErrorKind.MODEL_UNAVAILABLE

    async def test_auth_failure_has_remediation(self) -> None:
        llm = _completion_llm(error=_status_error(openai.AuthenticationError, 401))
        with patch("backend.analysis.client._get_llm", return_value=llm):
            with pytest.raises(AnalysisError) as info:
                await CompletionModelClient("key").complete(PROMPTS)
        assert info.value.kind is ErrorKind.MODEL_AUTH_FAILURE
        assert "GROQ_API_KEY" in info.value.message
        assert "restart" in info.value.message
        assert info.value.status_code == 500

    async def test_rate_limit_propagates_retry_after(self) -> None:
        error = _status_error(openai.RateLimitError, 429, headers={"retry-after": "20"})
        llm = _completion_llm(error=error)
        with patch("backend.analysis.client._get_llm", return_value=llm):
            with pytest.raises(AnalysisError) as info:
                await CompletionModelClient("key").complete(PROMPTS)
        assert info.value.kind is ErrorKind.MODEL_RATE_LIMITED
        assert info.value.retry_after == "20"
        assert info.value.status_code == 429
        llm.ainvoke.assert_awaited_once()

    async def test_other_status_is_model_unavailable(self) -> None:
        llm = _completion_llm(error=_status_error(openai.InternalServerError, 503))
        with patch("backend.analysis.client._get_llm", return_value=llm):
            with pytest.raises(AnalysisError) as info:
                await CompletionModelClient("key").complete(PROMPTS)
        assert info.value.kind is ErrorKind.MODEL_UNAVAILABLE
        assert "503" in info.value.message
        assert info.value.details == "upstream says no"

    async def test_connection_error_is_model_unavailable(self) -> None:
        llm = _completion_llm(error=openai.APIConnectionError(request=_REQUEST))
        with patch("backend.analysis.client._get_llm", return_value=llm):
            with pytest.raises(AnalysisError) as info:
                await CompletionModelClient("key").complete(PROMPTS)
        assert info.value.kind is ErrorKind.MODEL_UNAVAILABLE

    async def test_timeout_is_model_unavailable(self) -> None:
        llm = _completion_llm(error=openai.APITimeoutError(request=_REQUEST))
        with patch("backend.analysis.client._get_llm", return_value=llm):
            with pytest.raises(AnalysisError) as info:
                await CompletionModelClient("key").complete(PROMPTS)
        assert info.value.kind is ErrorKind.MODEL_UNAVAILABLE
        assert "in time" in info.value.message


# ---------------------------------------------------------------------------
# Streaming client
# ---------------------------------------------------------------------------

class TestStreamingModelClient:
    async def test_stream_yields_tokens_in_order(self) -> None:
        llm = MagicMock()
        llm.astream.return_value = _make_astream('{"score"', "", ": 7}")
        with patch("backend.analysis.client._get_llm", return_value=llm) as get_llm:
            chunks = [c async for c in StreamingModelClient("key").stream(PROMPTS)]

        assert chunks == ['{"score"', ": 7}"]
        get_llm.assert_called_once_with("key", streaming=True)

    async def test_complete_reassembles_stream(self) -> None:
        llm = MagicMock()
        llm.astream.return_value = _make_astream("Hel", "lo")
        with patch("backend.analysis.client._get_llm", return_value=llm):
            assert await StreamingModelClient("key").complete(PROMPTS) == "Hello"

    async def test_mid_stream_error_translated(self) -> None:
        llm = MagicMock()
        llm.astream.return_value = _failing_astream(
            "partial", error=_status_error(openai.RateLimitError, 429)
        )
        received: list[str] = []
        with patch("backend.analysis.client._get_llm", return_value=llm):
            with pytest.raises(AnalysisError) as info:
                async for chunk in StreamingModelClient("key").stream(PROMPTS):
                    received.append(chunk)

        assert received == ["partial"]
        assert info.value.kind is ErrorKind.MODEL_RATE_LIMITED

    async def test_early_close_releases_upstream(self) -> None:
        closed: list[bool] = []

        async def _upstream():
            try:
                for token in ("a", "b", "c"):
                    chunk = MagicMock()
                    chunk.content = token
                    yield chunk
            finally:
                closed.append(True)

        llm = MagicMock()
        llm.astream.return_value = _upstream()
        with patch("backend.analysis.client._get_llm", return_value=llm):
            stream = StreamingModelClient("key").stream(PROMPTS)
            assert await stream.__anext__() == "a"
            await stream.aclose()

        assert closed == [True]
