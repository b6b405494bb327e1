"""CRO analyzer CLI — entry-point for the fetch and analysis pipeline.

Usage:
    python cli/main.py --help

Commands:
    fetch    → fetch a landing page and print its extracted marketing text
    analyze  → run the CRO analysis on pasted text, a file or a URL
    serve    → start the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
from typing import NoReturn, Optional

import typer

from backend.analysis.client import StreamingModelClient, require_api_key
from backend.analysis.models import AnalysisResult, MissionContext
from backend.analysis.service import analyze, fetch_text, prepare_request, stream_analysis
from backend.analysis.validator import validate_result
from backend.errors import AnalysisError

app = typer.Typer(
    name="cro",
    help="Landing-page CRO analyzer CLI.",
    no_args_is_help=True,
)


def _fail(prefix: str, exc: AnalysisError) -> NoReturn:
    typer.echo(f"[{prefix}] {exc.kind.value}: {exc.message}", err=True)
    if exc.details:
        typer.echo(f"[{prefix}] {exc.details}", err=True)
    raise typer.Exit(1)


def _render(result: AnalysisResult) -> None:
    data = result.to_json_dict()
    typer.echo(f"Score: {result.score}/10")
    typer.echo("")
    typer.echo("Breakdown:")
    for name, value in result.breakdown.items():
        typer.echo(f"  {name:<20} {value}")

    sections = [
        ("Critique", "critique"),
        ("Headline alternatives", "headline_alternatives"),
        ("CTA variants", "cta_variants"),
        ("A/B test ideas", "ab_test_ideas"),
    ]
    for title, key in sections:
        items = data.get(key)
        if not items:
            continue
        typer.echo("")
        typer.echo(f"{title}:")
        if isinstance(items, list):
            for item in items:
                typer.echo(f"  - {item}")
        else:
            typer.echo(f"  {items}")

    if data.get("summary"):
        typer.echo("")
        typer.echo(f"Summary: {data['summary']}")


async def _stream_to_result(text: str | None, url: str | None, mission: MissionContext) -> AnalysisResult:
    client = StreamingModelClient(require_api_key())
    request = await prepare_request(text, url, mission)
    parts: list[str] = []
    async for chunk in stream_analysis(request, client):
        parts.append(chunk)
        typer.echo(f"\r[analyze] Received {sum(len(p) for p in parts)} characters …", err=True, nl=False)
    typer.echo("", err=True)
    return validate_result("".join(parts))


async def _analyze_once(text: str | None, url: str | None, mission: MissionContext) -> AnalysisResult:
    require_api_key()
    request = await prepare_request(text, url, mission)
    return await analyze(request)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command("fetch")
def fetch(
    url: str = typer.Argument(..., help="Landing page URL."),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Overall fetch deadline."),
) -> None:
    """Fetch a URL and print its extracted marketing text to stdout."""
    typer.echo(f"[fetch] Fetching {url!r} …", err=True)
    try:
        text, warning = asyncio.run(fetch_text(url, timeout_ms=timeout_ms))
    except AnalysisError as exc:
        _fail("fetch", exc)

    if warning:
        typer.echo(f"[fetch] Warning: {warning}", err=True)
    typer.echo(f"[fetch] Words  : {len(text.split())}", err=True)
    typer.echo(text)


@app.command("analyze")
def analyze_cmd(
    text: Optional[str] = typer.Option(None, "--text", help="Landing-page copy to analyze."),
    file: Optional[Path] = typer.Option(None, "--file", help="Read the copy from a text file."),
    url: Optional[str] = typer.Option(None, "--url", help="Fetch and analyze this URL instead."),
    audience: Optional[str] = typer.Option(None, "--audience", help="Target audience."),
    product: Optional[str] = typer.Option(None, "--product", help="Product type."),
    stream: bool = typer.Option(False, "--stream", help="Stream the model output."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result JSON."),
) -> None:
    """Run a CRO analysis and print the evaluation."""
    if file is not None:
        text = file.read_text(encoding="utf-8")
    mission = MissionContext(target_audience=audience, product_type=product)

    runner = _stream_to_result if stream else _analyze_once
    try:
        result = asyncio.run(runner(text, url, mission))
    except AnalysisError as exc:
        _fail("analyze", exc)

    if as_json:
        typer.echo(json.dumps(result.to_json_dict(), indent=2, ensure_ascii=False))
    else:
        _render(result)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Start the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("backend.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
