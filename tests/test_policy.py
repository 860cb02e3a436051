"""Tests for aisle.services.policy — provider vs. fallback resolution."""

import threading
from unittest.mock import MagicMock

import pytest

from aisle.config import PROVIDER_GEMINI, PROVIDER_OPENAI, ProviderCredentials
from aisle.core.errors import FailureKind, ParseError, ProviderError
from aisle.core.models import Outcome, Source
from aisle.services.policy import (
    DEFAULT_ROUTES,
    FallbackPolicy,
    Feature,
    FeatureRoute,
    attempt,
    is_empty,
)

BOTH = ProviderCredentials(gemini_api_key="g-key", openai_api_key="o-key")
NONE = ProviderCredentials()


@pytest.fixture
def policy():
    return FallbackPolicy(BOTH)


class TestRoutes:
    def test_default_providers(self):
        assert DEFAULT_ROUTES[Feature.CHAT].provider == PROVIDER_GEMINI
        assert DEFAULT_ROUTES[Feature.DESCRIBE].provider == PROVIDER_GEMINI
        assert DEFAULT_ROUTES[Feature.RECOMMEND].provider == PROVIDER_OPENAI
        assert DEFAULT_ROUTES[Feature.SEARCH].provider == PROVIDER_OPENAI
        assert DEFAULT_ROUTES[Feature.SENTIMENT].provider == PROVIDER_OPENAI

    def test_default_timeouts(self):
        assert DEFAULT_ROUTES[Feature.CHAT].timeout == 60
        assert DEFAULT_ROUTES[Feature.DESCRIBE].timeout == 90
        assert DEFAULT_ROUTES[Feature.RECOMMEND].timeout == 15
        assert DEFAULT_ROUTES[Feature.SEARCH].timeout == 15
        assert DEFAULT_ROUTES[Feature.SENTIMENT].timeout == 10

    def test_override_one_route(self):
        p = FallbackPolicy(BOTH, routes={Feature.CHAT: FeatureRoute(PROVIDER_OPENAI, 5)})
        assert p.route(Feature.CHAT) == FeatureRoute(PROVIDER_OPENAI, 5)
        assert p.route(Feature.SEARCH) == DEFAULT_ROUTES[Feature.SEARCH]

    def test_is_configured(self):
        p = FallbackPolicy(ProviderCredentials(openai_api_key="o-key"))
        assert p.is_configured(Feature.SEARCH)
        assert not p.is_configured(Feature.CHAT)


class TestAttempt:
    def test_success(self):
        assert attempt(lambda: "ok") == Outcome.success("ok")

    def test_provider_error(self):
        def boom():
            raise ProviderError("down", kind=FailureKind.TIMEOUT)

        outcome = attempt(boom)
        assert outcome.failure is FailureKind.TIMEOUT
        assert "down" in outcome.detail

    def test_parse_error(self):
        def bad():
            raise ParseError("garbled")

        assert attempt(bad).failure is FailureKind.PARSE

    def test_other_errors_propagate(self):
        def bug():
            raise KeyError("oops")

        with pytest.raises(KeyError):
            attempt(bug)


class TestIsEmpty:
    @pytest.mark.parametrize("value", [None, "", "   ", [], (), {}])
    def test_empty(self, value):
        assert is_empty(value)

    @pytest.mark.parametrize("value", ["x", ["p1"], 0, 0.0])
    def test_not_empty(self, value):
        assert not is_empty(value)


class TestInvoke:
    def test_unconfigured_never_calls_primary(self):
        primary = MagicMock()
        resolution = FallbackPolicy(NONE).invoke(Feature.CHAT, primary, lambda: "canned")
        primary.assert_not_called()
        assert resolution.value == "canned"
        assert resolution.source is Source.FALLBACK
        assert resolution.failure is FailureKind.UNCONFIGURED

    def test_success_uses_provider_and_skips_fallback(self, policy):
        fallback = MagicMock()
        resolution = policy.invoke(
            Feature.SEARCH, lambda: Outcome.success(["p1"]), fallback
        )
        assert resolution.value == ["p1"]
        assert resolution.source is Source.PROVIDER
        fallback.assert_not_called()

    def test_failed_outcome_uses_fallback(self, policy):
        resolution = policy.invoke(
            Feature.SENTIMENT,
            lambda: Outcome.failed(FailureKind.PROVIDER, "503"),
            lambda: "fallback",
        )
        assert resolution.value == "fallback"
        assert resolution.failure is FailureKind.PROVIDER

    @pytest.mark.parametrize("empty", ["", "  ", [], None])
    def test_empty_value_uses_fallback(self, policy, empty):
        resolution = policy.invoke(
            Feature.CHAT, lambda: Outcome.success(empty), lambda: "canned"
        )
        assert resolution.value == "canned"
        assert resolution.failure is FailureKind.EMPTY

    def test_timeout_uses_fallback(self):
        release = threading.Event()
        p = FallbackPolicy(BOTH, routes={Feature.SEARCH: FeatureRoute(PROVIDER_OPENAI, 0.05)})

        def hung():
            release.wait(5)
            return Outcome.success(["late"])

        try:
            resolution = p.invoke(Feature.SEARCH, hung, lambda: ["lexical"])
        finally:
            release.set()
        assert resolution.value == ["lexical"]
        assert resolution.failure is FailureKind.TIMEOUT

    def test_hung_calls_do_not_delay_other_features(self):
        release = threading.Event()
        p = FallbackPolicy(
            BOTH,
            routes={
                Feature.CHAT: FeatureRoute(PROVIDER_GEMINI, 0.05),
                Feature.SENTIMENT: FeatureRoute(PROVIDER_OPENAI, 0.5),
            },
        )

        def hung():
            release.wait(5)
            return Outcome.success("late")

        try:
            for _ in range(10):
                assert p.invoke(Feature.CHAT, hung, lambda: "canned").used_fallback
            resolution = p.invoke(
                Feature.SENTIMENT, lambda: Outcome.success("ok"), lambda: "fb"
            )
        finally:
            release.set()
        assert resolution.value == "ok"
        assert resolution.source is Source.PROVIDER

    def test_fallback_runs_after_primary(self, policy):
        calls = []

        def primary():
            calls.append("primary")
            return Outcome.failed(FailureKind.PARSE)

        def fallback():
            calls.append("fallback")
            return "x"

        policy.invoke(Feature.SENTIMENT, primary, fallback)
        assert calls == ["primary", "fallback"]

    def test_primary_bug_propagates(self, policy):
        def bug():
            raise RuntimeError("not a provider problem")

        with pytest.raises(RuntimeError):
            policy.invoke(Feature.CHAT, bug, lambda: "canned")
