"""Centralised settings for the landing-page CRO analyzer backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

The model credential is the one exception: it is read from the process
environment on every call to :meth:`Settings.model_api_key` so that a key
added while the server is running is picked up without a restart.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

# Values shipped in example .env files; treated the same as an unset key.
_PLACEHOLDER_KEYS = frozenset(
    {
        "your_api_key_here",
        "your-api-key",
        "changeme",
        "sk-...",
        "gsk_...",
        "xxx",
    }
)

_API_KEY_ENV_VARS = {
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Chat / analysis model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "groq")
    )
    groq_chat_model: str = field(
        default_factory=lambda: os.environ.get("GROQ_CHAT_MODEL", "llama-3.1-8b-instant")
    )
    groq_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "GROQ_BASE_URL", "https://api.groq.com/openai/v1"
        )
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )
    llm_temperature: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TEMPERATURE", "0.5"))
    )
    llm_json_mode: bool = field(
        default_factory=lambda: _env_bool("LLM_JSON_MODE", "true")
    )
    model_timeout: float = field(
        default_factory=lambda: float(os.environ.get("MODEL_TIMEOUT", "60.0"))
    )

    # ------------------------------------------------------------------
    # Page fetcher
    # ------------------------------------------------------------------
    fetch_timeout_ms: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_TIMEOUT_MS", "12000"))
    )

    # ------------------------------------------------------------------
    # Analysis input / output limits
    # ------------------------------------------------------------------
    max_text_length: int = field(
        default_factory=lambda: int(os.environ.get("MAX_TEXT_LENGTH", "6000"))
    )
    min_text_length: int = field(
        default_factory=lambda: int(os.environ.get("MIN_TEXT_LENGTH", "20"))
    )
    raw_response_preview: int = field(
        default_factory=lambda: int(os.environ.get("RAW_RESPONSE_PREVIEW", "500"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    @property
    def chat_model(self) -> str:
        """Model name for the active provider."""
        if self.llm_provider == "openai":
            return self.openai_chat_model
        return self.groq_chat_model

    @property
    def llm_base_url(self) -> str | None:
        """OpenAI-compatible base URL, or ``None`` for the OpenAI default."""
        if self.llm_provider == "openai":
            return None
        return self.groq_base_url

    @property
    def api_key_env_var(self) -> str:
        """Name of the environment variable holding the model credential."""
        return _API_KEY_ENV_VARS.get(self.llm_provider, "GROQ_API_KEY")

    def model_api_key(self) -> str | None:
        """Return the model credential, or ``None`` if it is unset or a placeholder."""
        value = os.environ.get(self.api_key_env_var, "").strip()
        if not value or value.lower() in _PLACEHOLDER_KEYS:
            return None
        if value.startswith("<") and value.endswith(">"):
            return None
        return value


# Module-level singleton, import this everywhere:
#   from backend.config import settings
settings = Settings()
