"""Tests for the ``fetch`` and ``analyze`` CLI commands."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from backend.analysis.models import AnalysisResult
from backend.config import settings
from backend.errors import AnalysisError, ErrorKind
from cli.main import app

runner = CliRunner()

RESULT = AnalysisResult.model_validate(
    {
        "score": 7,
        "breakdown": {"clarity": 8, "cta_strength": 6},
        "critique": ['Replace "Learn more" with "Book a demo".'],
        "headline_alternatives": ["Ship twice as fast"],
        "summary": "Solid copy.",
    }
)

LANDING_TEXT = "Acme turns raw product events into clear answers for busy growth teams."


@pytest.fixture
def api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "llm_provider", "groq")
    monkeypatch.setattr(settings, "min_text_length", 20)
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test_key")


def test_fetch_prints_text():
    with patch("cli.main.fetch_text", new=AsyncMock(return_value=(LANDING_TEXT, None))):
        result = runner.invoke(app, ["fetch", "https://example.com/"])

    assert result.exit_code == 0, result.output
    assert LANDING_TEXT in result.output


def test_fetch_shows_fallback_warning():
    with patch("cli.main.fetch_text", new=AsyncMock(return_value=("Acme", "Used fallback."))):
        result = runner.invoke(app, ["fetch", "https://example.com/"])

    assert result.exit_code == 0
    assert "Warning: Used fallback." in result.output


def test_fetch_error_exits_1():
    error = AnalysisError(ErrorKind.BOT_PROTECTED, "The page is bot-protected or blocked. Manual paste required.")
    with patch("cli.main.fetch_text", new=AsyncMock(side_effect=error)):
        result = runner.invoke(app, ["fetch", "https://example.com/"])

    assert result.exit_code == 1
    assert "BotProtected" in result.output


def test_analyze_renders_report(api_key):
    with patch("cli.main.analyze", new=AsyncMock(return_value=RESULT)) as analyze:
        result = runner.invoke(
            app, ["analyze", "--text", LANDING_TEXT, "--audience", "Founders"]
        )

    assert result.exit_code == 0, result.output
    assert "Score: 7/10" in result.output
    assert "clarity" in result.output
    assert 'Replace "Learn more"' in result.output
    assert "Ship twice as fast" in result.output
    assert "Summary: Solid copy." in result.output
    request = analyze.call_args.args[0]
    assert request.mission.target_audience == "Founders"


def test_analyze_json_output(api_key):
    with patch("cli.main.analyze", new=AsyncMock(return_value=RESULT)):
        result = runner.invoke(app, ["analyze", "--text", LANDING_TEXT, "--json"])

    assert result.exit_code == 0, result.output
    start = result.output.index("{")
    assert json.loads(result.output[start:]) == RESULT.to_json_dict()


def test_analyze_reads_file(api_key, tmp_path):
    copy = tmp_path / "copy.txt"
    copy.write_text(LANDING_TEXT, encoding="utf-8")
    with patch("cli.main.analyze", new=AsyncMock(return_value=RESULT)) as analyze:
        result = runner.invoke(app, ["analyze", "--file", str(copy)])

    assert result.exit_code == 0, result.output
    assert analyze.call_args.args[0].text == LANDING_TEXT


def test_analyze_stream_validates_after_exhaustion(api_key):
    raw = json.dumps(RESULT.to_json_dict())

    async def _chunks(*args, **kwargs):
        for i in range(0, len(raw), 10):
            yield raw[i : i + 10]

    with patch("cli.main.stream_analysis", side_effect=_chunks):
        result = runner.invoke(app, ["analyze", "--text", LANDING_TEXT, "--stream"])

    assert result.exit_code == 0, result.output
    assert "Score: 7/10" in result.output


def test_analyze_without_key_exits_1(monkeypatch):
    monkeypatch.setattr(settings, "llm_provider", "groq")
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    with patch("cli.main.analyze", new=AsyncMock()) as analyze:
        result = runner.invoke(app, ["analyze", "--text", LANDING_TEXT])

    assert result.exit_code == 1
    assert "ConfigurationMissing" in result.output
    analyze.assert_not_called()


def test_analyze_short_text_exits_1(api_key):
    result = runner.invoke(app, ["analyze", "--text", "tiny"])
    assert result.exit_code == 1
    assert "InvalidInput" in result.output
