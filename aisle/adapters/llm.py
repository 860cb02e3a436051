"""
LLM client adapters.

Two provider shapes behind two small protocols:
- ConversationalClient (Google Gemini): ``generate(prompt, history, options)``
- CompletionClient (OpenAI chat completions): ``complete(messages, options)``

Adapters own no feature logic. They marshal the request, attach the
credential, pass the per-call token and time limits, and pull the first
textual candidate out of the reply. SDK errors are translated to
``ProviderError``; a reply with no recognizable text raises ``ParseError``.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import Any, NoReturn, Protocol, Sequence

from aisle.api.metrics import provider_observer
from aisle.config import (
    GEMINI_API_KEY,
    GEMINI_MODEL,
    LLM_MAX_RETRIES,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    PROVIDER_GEMINI,
    PROVIDER_OPENAI,
    ProviderCredentials,
    get_logger,
)
from aisle.core.errors import (
    ConfigurationError,
    FailureKind,
    ParseError,
    ProviderError,
)
from aisle.core.models import ConversationTurn, Role
from aisle.core.parsing import extract_reply_text
from aisle.utils import require_import, timed_operation

logger = get_logger(__name__)


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call sampling and limits."""

    temperature: float = 0.7
    max_tokens: int = 1000
    timeout: float = 30.0


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class ConversationalClient(Protocol):
    """Provider that can continue a multi-turn conversation."""

    model: str

    def generate(
        self,
        prompt: str,
        history: Sequence[ConversationTurn] | None = None,
        options: GenerationOptions | None = None,
    ) -> str:
        """
        Generate a reply to ``prompt``.

        Args:
            prompt: The new user message (or a standalone prompt).
            history: Earlier turns, oldest first. None for single-shot.
            options: Sampling and limits for this call.

        Returns:
            Raw reply text (may be empty).
        """
        ...


class CompletionClient(Protocol):
    """Provider that answers a single chat-completion request."""

    model: str

    def complete(
        self,
        messages: Sequence[dict],
        options: GenerationOptions | None = None,
    ) -> str:
        """
        Run one completion.

        Args:
            messages: ``[{"role": ..., "content": ...}, ...]``.
            options: Sampling and limits for this call.

        Returns:
            Raw reply text (may be empty).
        """
        ...


# ---------------------------------------------------------------------------
# Base class with shared logic
# ---------------------------------------------------------------------------


class LLMClientBase(ABC):
    """Shared error translation and reply extraction."""

    provider: str
    model: str
    _api_errors: tuple[type[BaseException], ...]
    _timeout_errors: tuple[type[BaseException], ...]

    def _translate_error(self, exc: BaseException) -> NoReturn:
        """Re-raise an SDK error as ProviderError."""
        if isinstance(exc, self._timeout_errors):
            raise ProviderError(
                f"{self.provider} request timed out: {exc}",
                kind=FailureKind.TIMEOUT,
                provider=self.provider,
            ) from exc
        raise ProviderError(
            f"{self.provider} request failed: {exc}",
            provider=self.provider,
        ) from exc

    def _extract(self, reply: Any) -> str:
        text = extract_reply_text(reply)
        if text is None:
            raise ParseError(
                f"No text found in {self.provider} reply", provider=self.provider
            )
        return text


# ---------------------------------------------------------------------------
# Gemini Client
# ---------------------------------------------------------------------------


class GeminiClient(LLMClientBase):
    """
    Google Gemini client for chat support and description generation.

    Implements ConversationalClient. With a history it opens a chat session
    seeded with those turns; without one it issues a single generate call.
    """

    provider = PROVIDER_GEMINI

    def __init__(self, api_key: str | None = None, model: str = GEMINI_MODEL):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key. Defaults to GEMINI_API_KEY from config.
            model: Model ID to use. Defaults to GEMINI_MODEL from config.

        Raises:
            ConfigurationError: If no API key is available.
            ImportError: If google-generativeai is not installed.
        """
        api_key = api_key or GEMINI_API_KEY
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")

        genai = require_import("google.generativeai", pip_name="google-generativeai")
        api_exceptions = require_import(
            "google.api_core.exceptions", pip_name="google-api-core"
        )

        genai.configure(api_key=api_key)
        self._genai = genai
        self.model = model
        self._api_errors = (
            api_exceptions.GoogleAPIError,
            genai.types.BlockedPromptException,
            genai.types.StopCandidateException,
        )
        self._timeout_errors = (api_exceptions.DeadlineExceeded,)

    @staticmethod
    def _to_content(turn: ConversationTurn) -> dict:
        role = "user" if turn.role is Role.USER else "model"
        return {"role": role, "parts": [turn.text]}

    def _model(self, options: GenerationOptions):
        return self._genai.GenerativeModel(
            self.model,
            generation_config={
                "temperature": options.temperature,
                "max_output_tokens": options.max_tokens,
            },
        )

    def generate(
        self,
        prompt: str,
        history: Sequence[ConversationTurn] | None = None,
        options: GenerationOptions | None = None,
    ) -> str:
        """
        Generate text with Gemini.

        Raises:
            ProviderError: On any SDK failure (kind=timeout for deadlines).
            ParseError: If the reply carries no recognizable text.
        """
        options = options or GenerationOptions()
        model = self._model(options)
        request_options = {"timeout": options.timeout}

        try:
            with timed_operation(
                "Gemini generate", logger, provider_observer(self.provider)
            ):
                if history:
                    chat = model.start_chat(
                        history=[self._to_content(t) for t in history]
                    )
                    reply = chat.send_message(prompt, request_options=request_options)
                else:
                    reply = model.generate_content(
                        prompt, request_options=request_options
                    )
        except self._api_errors as exc:
            self._translate_error(exc)

        return self._extract(reply)


# ---------------------------------------------------------------------------
# OpenAI Client
# ---------------------------------------------------------------------------


class OpenAIClient(LLMClientBase):
    """
    OpenAI client for ranking, classification and short generation.

    Implements CompletionClient.
    """

    provider = PROVIDER_OPENAI

    def __init__(
        self,
        api_key: str | None = None,
        model: str = OPENAI_MODEL,
        max_retries: int = LLM_MAX_RETRIES,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. Defaults to OPENAI_API_KEY from config.
            model: Model ID to use. Defaults to OPENAI_MODEL from config.
            max_retries: SDK retry count for transient failures. The per-call
                timeout is split across the first try and every retry.

        Raises:
            ConfigurationError: If no API key is available.
            ImportError: If openai package is not installed.
        """
        api_key = api_key or OPENAI_API_KEY
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set")

        openai = require_import("openai")
        self.client = openai.OpenAI(api_key=api_key, max_retries=max_retries)
        self.model = model
        self.max_retries = max_retries
        self._api_errors = (openai.OpenAIError,)
        self._timeout_errors = (openai.APITimeoutError,)

    def _attempt_timeout(self, budget: float) -> float:
        return budget / (self.max_retries + 1)

    def complete(
        self,
        messages: Sequence[dict],
        options: GenerationOptions | None = None,
    ) -> str:
        """
        Run one chat completion.

        Raises:
            ProviderError: On any SDK failure (kind=timeout for timeouts).
            ParseError: If the reply carries no recognizable text.
        """
        options = options or GenerationOptions()
        try:
            with timed_operation(
                "OpenAI completion", logger, provider_observer(self.provider)
            ):
                reply = self.client.chat.completions.create(
                    model=self.model,
                    messages=list(messages),
                    temperature=options.temperature,
                    max_tokens=options.max_tokens,
                    timeout=self._attempt_timeout(options.timeout),
                )
        except self._api_errors as exc:
            self._translate_error(exc)

        return self._extract(reply)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------


def build_clients(
    credentials: ProviderCredentials,
) -> tuple[GeminiClient | None, OpenAIClient | None]:
    """
    Build the adapters whose credentials are present.

    Returns:
        (gemini, openai); either is None when its key is missing.
    """
    gemini = None
    openai_client = None

    if credentials.has(PROVIDER_GEMINI):
        gemini = GeminiClient(api_key=credentials.gemini_api_key)
        logger.info("Gemini client ready (%s)", gemini.model)
    else:
        logger.warning("GEMINI_API_KEY not set -- chat and descriptions use fallbacks")

    if credentials.has(PROVIDER_OPENAI):
        openai_client = OpenAIClient(api_key=credentials.openai_api_key)
        logger.info("OpenAI client ready (%s)", openai_client.model)
    else:
        logger.warning(
            "OPENAI_API_KEY not set -- recommendations, search and sentiment use fallbacks"
        )

    return gemini, openai_client


__all__ = [
    "GenerationOptions",
    "ConversationalClient",
    "CompletionClient",
    "LLMClientBase",
    "GeminiClient",
    "OpenAIClient",
    "build_clients",
]
