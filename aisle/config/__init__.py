"""
Aisle configuration module.

Central configuration for the AI feature gateway. Settings are read from
environment variables (and ``.env``) once, at import time, and treated as
read-only for the life of the process.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"

CATALOG_PATH = Path(os.getenv("CATALOG_PATH", str(DATA_DIR / "catalog.json")))


# ---------------------------------------------------------------------------
# Provider credentials
# ---------------------------------------------------------------------------

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or None
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or None

PROVIDER_GEMINI = "gemini"
PROVIDER_OPENAI = "openai"


@dataclass(frozen=True)
class ProviderCredentials:
    """
    Provider API keys, captured once at process start.

    Presence of a key is the only signal used to route a feature to its
    provider; a missing key is permanent for the life of the process.
    """

    gemini_api_key: str | None = None
    openai_api_key: str | None = None

    @classmethod
    def from_env(cls) -> "ProviderCredentials":
        return cls(gemini_api_key=GEMINI_API_KEY, openai_api_key=OPENAI_API_KEY)

    def key_for(self, provider: str) -> str | None:
        if provider == PROVIDER_GEMINI:
            return self.gemini_api_key
        if provider == PROVIDER_OPENAI:
            return self.openai_api_key
        raise ValueError(f"Unknown provider: {provider}")

    def has(self, provider: str) -> bool:
        return bool(self.key_for(provider))


# ---------------------------------------------------------------------------
# LLM Settings
# ---------------------------------------------------------------------------

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")

LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "2"))

# Sampling / output limits per feature
CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 4000
DESCRIPTION_TEMPERATURE = 0.8
DESCRIPTION_MAX_TOKENS = 2000
RECOMMEND_TEMPERATURE = 0.7
RECOMMEND_MAX_TOKENS = 200
SEARCH_TEMPERATURE = 0.3
SEARCH_MAX_TOKENS = 300
SENTIMENT_TEMPERATURE = 0.3
SENTIMENT_MAX_TOKENS = 100


# ---------------------------------------------------------------------------
# Timeouts (seconds)
# ---------------------------------------------------------------------------

# Conversational and long-form generation can be slow on the provider side
CHAT_TIMEOUT = float(os.getenv("CHAT_TIMEOUT", "60"))
DESCRIPTION_TIMEOUT = float(os.getenv("DESCRIPTION_TIMEOUT", "90"))
RANKING_TIMEOUT = float(os.getenv("RANKING_TIMEOUT", "15"))
SENTIMENT_TIMEOUT = float(os.getenv("SENTIMENT_TIMEOUT", "10"))


# ---------------------------------------------------------------------------
# Input / output bounds
# ---------------------------------------------------------------------------

MAX_MESSAGE_CHARS = 500
MAX_HISTORY_TURNS = 50
MAX_TURN_CHARS = 20_000
MAX_SNAPSHOT_PRODUCTS = 100

CHAT_PROMPT_PRODUCTS = 50
CHAT_DESCRIPTION_CHARS = 150
RECOMMEND_PROMPT_PRODUCTS = 50
RECOMMEND_DESCRIPTION_CHARS = 100
SEARCH_PROMPT_PRODUCTS = 100
SEARCH_DESCRIPTION_CHARS = 150

MAX_RECOMMENDATIONS = 8
MAX_SEARCH_RESULTS = 20

MAX_DESCRIPTION_CHARS = 5000  # catalog storage limit
ELLIPSIS = "..."
DEFAULT_CATEGORY = "General"

MIN_REVIEW_CHARS = 10


# ---------------------------------------------------------------------------
# Support contact (canned chat fallback)
# ---------------------------------------------------------------------------

SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@aisle.shop")
SUPPORT_PHONE = os.getenv("SUPPORT_PHONE", "1-800-555-0199")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

from aisle.config.logging import (  # noqa: E402
    LOG_FORMAT,
    LOG_LEVEL,
    configure_logging,
    get_logger,
)


__all__ = [
    # Paths
    "PROJECT_ROOT",
    "DATA_DIR",
    "CATALOG_PATH",
    # Credentials
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
    "PROVIDER_GEMINI",
    "PROVIDER_OPENAI",
    "ProviderCredentials",
    # LLM
    "GEMINI_MODEL",
    "OPENAI_MODEL",
    "LLM_MAX_RETRIES",
    "CHAT_TEMPERATURE",
    "CHAT_MAX_TOKENS",
    "DESCRIPTION_TEMPERATURE",
    "DESCRIPTION_MAX_TOKENS",
    "RECOMMEND_TEMPERATURE",
    "RECOMMEND_MAX_TOKENS",
    "SEARCH_TEMPERATURE",
    "SEARCH_MAX_TOKENS",
    "SENTIMENT_TEMPERATURE",
    "SENTIMENT_MAX_TOKENS",
    # Timeouts
    "CHAT_TIMEOUT",
    "DESCRIPTION_TIMEOUT",
    "RANKING_TIMEOUT",
    "SENTIMENT_TIMEOUT",
    # Bounds
    "MAX_MESSAGE_CHARS",
    "MAX_HISTORY_TURNS",
    "MAX_TURN_CHARS",
    "MAX_SNAPSHOT_PRODUCTS",
    "CHAT_PROMPT_PRODUCTS",
    "CHAT_DESCRIPTION_CHARS",
    "RECOMMEND_PROMPT_PRODUCTS",
    "RECOMMEND_DESCRIPTION_CHARS",
    "SEARCH_PROMPT_PRODUCTS",
    "SEARCH_DESCRIPTION_CHARS",
    "MAX_RECOMMENDATIONS",
    "MAX_SEARCH_RESULTS",
    "MAX_DESCRIPTION_CHARS",
    "ELLIPSIS",
    "DEFAULT_CATEGORY",
    "MIN_REVIEW_CHARS",
    # Support
    "SUPPORT_EMAIL",
    "SUPPORT_PHONE",
    # Logging
    "get_logger",
    "configure_logging",
    "LOG_LEVEL",
    "LOG_FORMAT",
]
