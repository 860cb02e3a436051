"""Tests for aisle.services.features — the five gateway operations.

Provider adapters are MagicMocks; no network access.
"""

from unittest.mock import MagicMock

import pytest

from aisle.config import (
    MAX_DESCRIPTION_CHARS,
    MAX_HISTORY_TURNS,
    ProviderCredentials,
)
from aisle.core.errors import FailureKind, ParseError, ProviderError, ValidationError
from aisle.core.heuristics import CANNED_CHAT_REPLY, CHAT_TROUBLE_REPLY
from aisle.core.models import (
    ConversationTurn,
    Product,
    RecommendationContext,
    Role,
    Sentiment,
)
from aisle.core.prompts import CHAT_ACKNOWLEDGEMENT
from aisle.services.features import AIFeatures, merge_ids, validate_product_fields
from aisle.services.policy import FallbackPolicy

BOTH = ProviderCredentials(gemini_api_key="g-key", openai_api_key="o-key")


def _catalog(n=10):
    return [
        Product(
            id=f"p{i}",
            name=f"Item {i}",
            category="Audio" if i <= 3 else "Home",
            description="wireless headphones" if i == 7 else "",
            rating=5.0 - i * 0.1,
            units_sold=100 - i,
        )
        for i in range(1, n + 1)
    ]


@pytest.fixture
def gemini():
    client = MagicMock()
    client.generate.return_value = "Happy to help!"
    return client


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.complete.return_value = ""
    return client


@pytest.fixture
def features(gemini, openai_client):
    return AIFeatures(FallbackPolicy(BOTH), gemini=gemini, openai=openai_client)


@pytest.fixture
def offline():
    return AIFeatures(FallbackPolicy(ProviderCredentials()))


class TestMergeIds:
    def test_keeps_first_occurrence(self):
        assert merge_ids(["a", "b"], ["b", "c", "a"]) == ["a", "b", "c"]


class TestChat:
    def test_provider_reply(self, features, gemini):
        reply = features.chat("Where is my order?", catalog=_catalog(3))
        assert reply == "Happy to help!"

        prompt, history, options = gemini.generate.call_args.args
        assert prompt == "Where is my order?"
        assert history[0].role is Role.USER
        assert "AVAILABLE PRODUCTS" in history[0].text
        assert history[1] == ConversationTurn(Role.ASSISTANT, CHAT_ACKNOWLEDGEMENT)
        assert options.timeout == 60

    def test_caller_history_follows_preamble(self, features, gemini):
        features.chat(
            "And shipping?",
            history=[
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello!"},
            ],
        )
        history = gemini.generate.call_args.args[1]
        assert [t.text for t in history[2:]] == ["Hi", "Hello!"]

    def test_message_is_trimmed(self, features, gemini):
        features.chat("  hello  ")
        assert gemini.generate.call_args.args[0] == "hello"

    @pytest.mark.parametrize("message", ["", "   ", "x" * 501, None, 42])
    def test_invalid_message_rejected_before_provider(self, features, gemini, message):
        with pytest.raises(ValidationError):
            features.chat(message)
        gemini.generate.assert_not_called()

    def test_message_at_limit_accepted(self, features):
        assert features.chat("x" * 500) == "Happy to help!"

    def test_history_over_limit_rejected(self, features, gemini):
        history = [{"role": "user", "content": "hi"}] * (MAX_HISTORY_TURNS + 1)
        with pytest.raises(ValidationError):
            features.chat("hello", history=history)
        gemini.generate.assert_not_called()

    def test_bad_history_item_rejected(self, features):
        with pytest.raises(ValidationError):
            features.chat("hello", history=["not a turn"])

    def test_provider_failure_gives_apology(self, features, gemini):
        gemini.generate.side_effect = ProviderError("503")
        assert features.chat("hello") == CHAT_TROUBLE_REPLY

    def test_empty_reply_gives_apology(self, features, gemini):
        gemini.generate.return_value = "   "
        assert features.chat("hello") == CHAT_TROUBLE_REPLY

    def test_unconfigured_gives_canned_reply(self, offline):
        assert offline.chat("hello") == CANNED_CHAT_REPLY

    def test_snapshot_capped_in_prompt(self, features, gemini):
        features.chat("hello", catalog=_catalog(120))
        preamble = gemini.generate.call_args.args[1][0].text
        assert '"id": "p50"' in preamble
        assert '"id": "p51"' not in preamble


class TestRecommend:
    def test_empty_catalog_skips_provider(self, features, openai_client):
        assert features.recommend(RecommendationContext(), []) == []
        openai_client.complete.assert_not_called()

    def test_provider_order_kept_and_topped_up(self, features, openai_client):
        openai_client.complete.return_value = "p9, p3"
        ids = features.recommend(RecommendationContext(), _catalog())
        assert ids[:2] == ["p9", "p3"]
        assert len(ids) == 8
        assert len(set(ids)) == 8

    def test_provider_ids_filtered(self, features, openai_client):
        openai_client.complete.return_value = "p1, ghost, p2, p6"
        context = RecommendationContext.build(viewed_ids=["p1"], cart_ids=["p2"])
        ids = features.recommend(context, _catalog())
        assert ids[0] == "p6"
        assert "ghost" not in ids
        assert not context.excluded_ids & set(ids)

    def test_unusable_reply_falls_back(self, features, openai_client):
        openai_client.complete.return_value = "ghost1, ghost2"
        ids = features.recommend(RecommendationContext(), _catalog())
        assert ids == [f"p{i}" for i in range(1, 9)]

    def test_end_to_end_fallback_exclusions(self, offline):
        context = RecommendationContext.build(
            viewed_ids=["p1", "p2", "p3"], cart_ids=["p4", "p5"]
        )
        ids = offline.recommend(context, _catalog())
        assert ids == ["p6", "p7", "p8", "p9", "p10"]

    def test_options_use_ranking_timeout(self, features, openai_client):
        openai_client.complete.return_value = "p1"
        features.recommend(RecommendationContext(), _catalog())
        options = openai_client.complete.call_args.args[1]
        assert options.timeout == 15
        assert options.max_tokens == 200


class TestSearch:
    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query_rejected(self, features, openai_client, query):
        with pytest.raises(ValidationError):
            features.search(query, _catalog())
        openai_client.complete.assert_not_called()

    def test_empty_catalog(self, features, openai_client):
        assert features.search("audio", []) == []
        openai_client.complete.assert_not_called()

    def test_provider_ranking_then_lexical(self, features, openai_client):
        openai_client.complete.return_value = "p7, p2, ghost, p7"
        ids = features.search("audio", _catalog())
        # Provider order first, then lexical matches not already listed
        assert ids == ["p7", "p2", "p1", "p3"]

    def test_offline_lexical_only(self, offline):
        assert offline.search("headphones", _catalog()) == ["p7"]

    def test_provider_failure_lexical_only(self, features, openai_client):
        openai_client.complete.side_effect = ProviderError("timeout", kind=FailureKind.TIMEOUT)
        assert features.search("audio", _catalog()) == ["p1", "p2", "p3"]


class TestDescribe:
    def test_provider_text(self, features, gemini):
        gemini.generate.return_value = "  A lovely lamp.  "
        result = features.describe("Lamp", "Home", 20, ["LED"])
        assert result.body == "A lovely lamp."
        assert result.truncated is False
        prompt, history, options = gemini.generate.call_args.args
        assert "Lamp" in prompt
        assert history is None
        assert options.timeout == 90

    def test_over_long_reply_truncated(self, features, gemini):
        gemini.generate.return_value = "x" * 6000
        result = features.describe("Lamp")
        assert result.truncated is True
        assert len(result.body) == MAX_DESCRIPTION_CHARS
        assert result.body.endswith("...")

    def test_offline_template(self, offline):
        result = offline.describe("Lamp", None, 12.5, ["LED", "dimmable"])
        assert result.body.startswith("Discover the Lamp - a premium General product")
        assert "Key features include: LED, dimmable." in result.body
        assert "$12.50" in result.body

    def test_provider_failure_template(self, features, gemini):
        gemini.generate.side_effect = ProviderError("blocked")
        assert features.describe("Lamp").body.startswith("Discover the Lamp")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": ""},
            {"name": "Lamp", "price": -1},
            {"name": "Lamp", "price": "cheap"},
            {"name": "Lamp", "price": True},
            {"name": "Lamp", "price": float("nan")},
            {"name": "Lamp", "features": "LED"},
            {"name": "Lamp", "features": ["LED", 3]},
            {"name": "Lamp", "features": 5},
            {"name": "Lamp", "features": {"LED": True}},
        ],
    )
    def test_invalid_input_rejected(self, features, gemini, kwargs):
        with pytest.raises(ValidationError):
            features.describe(**kwargs)
        gemini.generate.assert_not_called()


class TestValidateProductFields:
    def test_defaults(self):
        assert validate_product_fields(" Lamp ", None, None, None) == (
            "Lamp",
            "General",
            0.0,
            [],
        )

    def test_blank_features_dropped(self):
        _, _, _, features = validate_product_fields("Lamp", "Home", 1, ["LED", " "])
        assert features == ["LED"]

    def test_non_list_features_rejected(self):
        with pytest.raises(ValidationError):
            validate_product_fields("Lamp", "Home", 1, 5)


class TestSentiment:
    def test_provider_json(self, features, openai_client):
        openai_client.complete.return_value = '{"sentiment": "negative", "confidence": 0.8}'
        result = features.sentiment("The strap broke after a week.")
        assert result.label is Sentiment.NEGATIVE
        assert result.confidence == 0.8

    def test_malformed_reply_uses_keywords(self, features, openai_client):
        openai_client.complete.return_value = "I think it's positive!"
        result = features.sentiment("Great product, I love it")
        assert result.label is Sentiment.POSITIVE
        assert result.confidence == 1.0

    def test_empty_reply_uses_keywords(self, features, openai_client):
        openai_client.complete.return_value = ""
        result = features.sentiment("Terrible, a waste of money")
        assert result.label is Sentiment.NEGATIVE

    def test_parse_error_from_adapter_uses_keywords(self, features, openai_client):
        openai_client.complete.side_effect = ParseError("no text")
        result = features.sentiment("It arrived on time and works")
        assert result.label is Sentiment.NEUTRAL

    @pytest.mark.parametrize("text", ["", "short", "   too short  ", None])
    def test_short_review_rejected(self, features, openai_client, text):
        with pytest.raises(ValidationError):
            features.sentiment(text)
        openai_client.complete.assert_not_called()

    def test_offline(self, offline):
        assert offline.sentiment("Best purchase ever").label is Sentiment.POSITIVE
