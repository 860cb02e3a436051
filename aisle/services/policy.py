"""
Fallback policy engine.

Every feature answers through ``FallbackPolicy.invoke``:

1. No credential for the feature's provider -> fallback, primary never runs
2. Otherwise run the primary on a worker thread, bounded by the feature timeout
3. Failed outcome, timeout, or an empty value -> fallback
4. Fallback runs lazily, after the primary has finished or been abandoned

Primary calls report provider trouble by returning a failed ``Outcome``
(see ``attempt``). Any other exception escaping a primary is a bug and
propagates to the caller unchanged.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, TypeVar

from aisle.api.metrics import record_resolution
from aisle.config import (
    CHAT_TIMEOUT,
    DESCRIPTION_TIMEOUT,
    PROVIDER_GEMINI,
    PROVIDER_OPENAI,
    RANKING_TIMEOUT,
    SENTIMENT_TIMEOUT,
    ProviderCredentials,
    get_logger,
)
from aisle.core.errors import FailureKind, ProviderError
from aisle.core.models import Outcome, Resolution, Source

logger = get_logger(__name__)

T = TypeVar("T")


class Feature(Enum):
    """The five gateway features."""

    CHAT = "chat"
    RECOMMEND = "recommendations"
    SEARCH = "search"
    DESCRIBE = "description"
    SENTIMENT = "sentiment"


@dataclass(frozen=True)
class FeatureRoute:
    """Which provider serves a feature, and how long to wait for it."""

    provider: str
    timeout: float


DEFAULT_ROUTES: dict[Feature, FeatureRoute] = {
    Feature.CHAT: FeatureRoute(PROVIDER_GEMINI, CHAT_TIMEOUT),
    Feature.DESCRIBE: FeatureRoute(PROVIDER_GEMINI, DESCRIPTION_TIMEOUT),
    Feature.RECOMMEND: FeatureRoute(PROVIDER_OPENAI, RANKING_TIMEOUT),
    Feature.SEARCH: FeatureRoute(PROVIDER_OPENAI, RANKING_TIMEOUT),
    Feature.SENTIMENT: FeatureRoute(PROVIDER_OPENAI, SENTIMENT_TIMEOUT),
}


def attempt(call: Callable[[], T]) -> Outcome[T]:
    """Run a provider call, turning ProviderError (and ParseError) into a failed Outcome."""
    try:
        return Outcome.success(call())
    except ProviderError as exc:
        return Outcome.failed(exc.kind, str(exc))


def is_empty(value: Any) -> bool:
    """True for None, blank strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


class FallbackPolicy:
    """
    Decide provider vs. heuristic per feature and normalize both paths.

    Built once at startup with the process credentials. Holds no per-request
    state. Each primary gets its own single-thread executor, so a provider
    call abandoned after a timeout never delays an unrelated feature.
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        routes: Mapping[Feature, FeatureRoute] | None = None,
    ):
        self.credentials = credentials
        self.routes = {**DEFAULT_ROUTES, **(routes or {})}

    def route(self, feature: Feature) -> FeatureRoute:
        return self.routes[feature]

    def is_configured(self, feature: Feature) -> bool:
        """True if the feature's provider credential is present."""
        return self.credentials.has(self.route(feature).provider)

    def invoke(
        self,
        feature: Feature,
        primary: Callable[[], Outcome[T]],
        fallback: Callable[[], T],
    ) -> Resolution[T]:
        """
        Resolve a feature through its provider or its deterministic fallback.

        Args:
            feature: Which feature is being served.
            primary: Provider call returning an explicit Outcome.
            fallback: Deterministic, network-free computation.

        Returns:
            Resolution with the value and which path produced it.
        """
        route = self.route(feature)

        if not self.credentials.has(route.provider):
            logger.info(
                "%s: %s not configured, using fallback", feature.value, route.provider
            )
            return self._fallback(feature, fallback, FailureKind.UNCONFIGURED)

        outcome = self._run(primary, route.timeout)

        if outcome.ok and is_empty(outcome.value):
            outcome = Outcome.failed(FailureKind.EMPTY, "provider returned no content")

        if not outcome.ok:
            logger.warning(
                "%s: %s %s, using fallback: %s",
                feature.value,
                route.provider,
                outcome.failure.value,
                outcome.detail,
            )
            return self._fallback(feature, fallback, outcome.failure)

        record_resolution(feature.value, Source.PROVIDER.value)
        return Resolution(value=outcome.value, source=Source.PROVIDER)

    @staticmethod
    def _run(primary: Callable[[], Outcome[T]], timeout: float) -> Outcome[T]:
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="aisle-provider")
        future = pool.submit(primary)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            future.cancel()
            return Outcome.failed(
                FailureKind.TIMEOUT, f"no reply within {timeout:.1f}s"
            )
        finally:
            # A hung call keeps only its own thread; the SDK timeout ends it
            pool.shutdown(wait=False)

    @staticmethod
    def _fallback(
        feature: Feature,
        fallback: Callable[[], T],
        reason: FailureKind,
    ) -> Resolution[T]:
        value = fallback()
        record_resolution(feature.value, Source.FALLBACK.value, reason.value)
        return Resolution(value=value, source=Source.FALLBACK, failure=reason)


__all__ = [
    "Feature",
    "FeatureRoute",
    "DEFAULT_ROUTES",
    "FallbackPolicy",
    "attempt",
    "is_empty",
]
