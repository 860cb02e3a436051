"""
Feature façade: the five AI operations exposed to the storefront.

Each operation validates its input (raising ``ValidationError`` before any
provider is touched), then hands a primary call and a fallback to the
``FallbackPolicy``. Provider trouble never surfaces to the caller.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Sequence

from aisle.adapters.llm import CompletionClient, ConversationalClient, GenerationOptions
from aisle.config import (
    CHAT_DESCRIPTION_CHARS,
    CHAT_MAX_TOKENS,
    CHAT_PROMPT_PRODUCTS,
    CHAT_TEMPERATURE,
    DEFAULT_CATEGORY,
    DESCRIPTION_MAX_TOKENS,
    DESCRIPTION_TEMPERATURE,
    MAX_HISTORY_TURNS,
    MAX_MESSAGE_CHARS,
    MAX_RECOMMENDATIONS,
    MAX_SEARCH_RESULTS,
    MAX_SNAPSHOT_PRODUCTS,
    MAX_TURN_CHARS,
    MIN_REVIEW_CHARS,
    RECOMMEND_DESCRIPTION_CHARS,
    RECOMMEND_MAX_TOKENS,
    RECOMMEND_PROMPT_PRODUCTS,
    RECOMMEND_TEMPERATURE,
    SEARCH_DESCRIPTION_CHARS,
    SEARCH_MAX_TOKENS,
    SEARCH_PROMPT_PRODUCTS,
    SEARCH_TEMPERATURE,
    SENTIMENT_MAX_TOKENS,
    SENTIMENT_TEMPERATURE,
    get_logger,
)
from aisle.core.errors import FailureKind, ValidationError
from aisle.core.heuristics import (
    canned_chat_reply,
    cap_length,
    keyword_sentiment,
    lexical_matches,
    rank_recommendations,
    template_description,
)
from aisle.core.models import (
    ConversationTurn,
    GeneratedText,
    Outcome,
    Product,
    RecommendationContext,
    Role,
    SentimentResult,
    Source,
)
from aisle.core.parsing import parse_id_list, parse_sentiment_json
from aisle.core.prompts import (
    CHAT_ACKNOWLEDGEMENT,
    build_chat_preamble,
    build_description_prompt,
    build_recommend_messages,
    build_search_messages,
    build_sentiment_messages,
)
from aisle.services.policy import FallbackPolicy, Feature, attempt, is_empty

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def validate_message(message: Any) -> str:
    if not isinstance(message, str):
        raise ValidationError("Message must be a string")
    message = message.strip()
    if not 1 <= len(message) <= MAX_MESSAGE_CHARS:
        raise ValidationError(
            f"Message must be between 1 and {MAX_MESSAGE_CHARS} characters"
        )
    return message


def validate_history(
    history: Iterable[ConversationTurn | Mapping[str, Any]] | None,
) -> list[ConversationTurn]:
    turns = []
    for item in history or ():
        if isinstance(item, ConversationTurn):
            turn = item
        elif isinstance(item, Mapping):
            turn = ConversationTurn.from_dict(item)
        else:
            raise ValidationError("Conversation turns must be objects")
        if len(turn.text) > MAX_TURN_CHARS:
            raise ValidationError(
                f"Conversation turn exceeds {MAX_TURN_CHARS} characters"
            )
        turns.append(turn)
    if len(turns) > MAX_HISTORY_TURNS:
        raise ValidationError(
            f"Conversation history is limited to {MAX_HISTORY_TURNS} turns"
        )
    return turns


def validate_query(query: Any) -> str:
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("Search query is required")
    return query.strip()


def validate_product_fields(
    name: Any,
    category: Any,
    price: Any,
    features: Any,
) -> tuple[str, str, float, list[str]]:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Product name is required")

    if category is None:
        category = DEFAULT_CATEGORY
    if not isinstance(category, str):
        raise ValidationError("Category must be a string")
    category = category.strip() or DEFAULT_CATEGORY

    if price is None:
        price = 0
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValidationError("Price must be a number")
    if not math.isfinite(price) or price < 0:
        raise ValidationError("Price must be a positive number")

    if features is None:
        features = []
    if not isinstance(features, (list, tuple)) or not all(isinstance(f, str) for f in features):
        raise ValidationError("Features must be a list of strings")
    features = [f.strip() for f in features if f.strip()]

    return name.strip(), category, float(price), features


def validate_review(review_text: Any) -> str:
    if not isinstance(review_text, str) or len(review_text.strip()) < MIN_REVIEW_CHARS:
        raise ValidationError(
            f"Review text must be at least {MIN_REVIEW_CHARS} characters"
        )
    return review_text.strip()


def merge_ids(*groups: Iterable[str]) -> list[str]:
    """Concatenate id groups, keeping the first occurrence of each id."""
    merged: list[str] = []
    seen: set[str] = set()
    for group in groups:
        for product_id in group:
            if product_id not in seen:
                seen.add(product_id)
                merged.append(product_id)
    return merged


# ---------------------------------------------------------------------------
# Façade
# ---------------------------------------------------------------------------


class AIFeatures:
    """
    The gateway's five operations.

    Built once at startup from a policy and whichever adapters have
    credentials; either adapter may be None.
    """

    def __init__(
        self,
        policy: FallbackPolicy,
        gemini: ConversationalClient | None = None,
        openai: CompletionClient | None = None,
    ):
        self.policy = policy
        self.gemini = gemini
        self.openai = openai

    def _options(self, feature: Feature, temperature: float, max_tokens: int):
        return GenerationOptions(
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=self.policy.route(feature).timeout,
        )

    def _generate(self, prompt: str, history, options) -> Outcome[str]:
        if self.gemini is None:
            return Outcome.failed(FailureKind.UNCONFIGURED, "no Gemini client")
        return attempt(lambda: self.gemini.generate(prompt, history, options))

    def _complete(self, messages: list[dict], options) -> Outcome[str]:
        if self.openai is None:
            return Outcome.failed(FailureKind.UNCONFIGURED, "no OpenAI client")
        return attempt(lambda: self.openai.complete(messages, options))

    # -- chat ---------------------------------------------------------------

    def chat(
        self,
        message: str,
        history: Iterable[ConversationTurn | Mapping[str, Any]] | None = None,
        catalog: Sequence[Product] = (),
    ) -> str:
        """
        Answer a support chat message.

        Args:
            message: The shopper's message, 1-500 characters.
            history: Earlier turns, oldest first (at most 50).
            catalog: Product snapshot for context (first 100 used).

        Returns:
            Reply text from Gemini, or a canned support-contact message
            (an apology when Gemini was tried and failed).

        Raises:
            ValidationError: On an empty/over-long message or a bad history.
        """
        message = validate_message(message)
        turns = validate_history(history)
        snapshot = list(catalog)[:MAX_SNAPSHOT_PRODUCTS]
        options = self._options(Feature.CHAT, CHAT_TEMPERATURE, CHAT_MAX_TOKENS)

        def primary() -> Outcome[str]:
            digests = [
                p.digest(CHAT_DESCRIPTION_CHARS)
                for p in snapshot[:CHAT_PROMPT_PRODUCTS]
            ]
            seeded = [
                ConversationTurn(Role.USER, build_chat_preamble(digests)),
                ConversationTurn(Role.ASSISTANT, CHAT_ACKNOWLEDGEMENT),
                *turns,
            ]
            return self._generate(message, seeded, options)

        resolution = self.policy.invoke(Feature.CHAT, primary, canned_chat_reply)
        if resolution.used_fallback:
            return canned_chat_reply(resolution.failure)
        return resolution.value

    # -- recommendations ----------------------------------------------------

    def recommend(
        self,
        context: RecommendationContext,
        catalog: Sequence[Product],
    ) -> list[str]:
        """
        Recommend up to 8 products the shopper has not viewed or carted.

        Provider order is kept; a short provider list is topped up from the
        heuristic ranking.
        """
        products = list(catalog)
        if not products:
            return []

        known = {p.id for p in products}
        excluded = context.excluded_ids
        options = self._options(
            Feature.RECOMMEND, RECOMMEND_TEMPERATURE, RECOMMEND_MAX_TOKENS
        )

        def fallback() -> list[str]:
            return rank_recommendations(products, context, MAX_RECOMMENDATIONS)

        def primary() -> Outcome[list[str]]:
            digests = [
                p.digest(RECOMMEND_DESCRIPTION_CHARS)
                for p in products[:RECOMMEND_PROMPT_PRODUCTS]
            ]
            messages = build_recommend_messages(context, digests, MAX_RECOMMENDATIONS)
            reply = self._complete(messages, options)
            if not reply.ok:
                return reply
            ids = [
                i
                for i in parse_id_list(reply.value)[:MAX_RECOMMENDATIONS]
                if i in known and i not in excluded
            ]
            return Outcome.success(ids)

        resolution = self.policy.invoke(Feature.RECOMMEND, primary, fallback)
        ids = resolution.value
        if resolution.source is Source.PROVIDER and len(ids) < MAX_RECOMMENDATIONS:
            ids = merge_ids(ids, fallback())[:MAX_RECOMMENDATIONS]
        return ids

    # -- search -------------------------------------------------------------

    def search(self, query: str, catalog: Sequence[Product]) -> list[str]:
        """
        Rank catalog products for a free-text query.

        Provider ranking (up to 20 ids) is always followed by every lexical
        match not already listed. Without a provider: lexical matches only,
        in catalog order.

        Raises:
            ValidationError: If the query is blank.
        """
        query = validate_query(query)
        products = list(catalog)
        if not products:
            return []

        known = {p.id for p in products}
        options = self._options(Feature.SEARCH, SEARCH_TEMPERATURE, SEARCH_MAX_TOKENS)

        def fallback() -> list[str]:
            return lexical_matches(products, query)

        def primary() -> Outcome[list[str]]:
            digests = [
                p.digest(SEARCH_DESCRIPTION_CHARS)
                for p in products[:SEARCH_PROMPT_PRODUCTS]
            ]
            reply = self._complete(build_search_messages(query, digests), options)
            if not reply.ok:
                return reply
            ids = [i for i in parse_id_list(reply.value)[:MAX_SEARCH_RESULTS] if i in known]
            return Outcome.success(ids)

        resolution = self.policy.invoke(Feature.SEARCH, primary, fallback)
        if resolution.source is Source.PROVIDER:
            return merge_ids(resolution.value, lexical_matches(products, query))
        return resolution.value

    # -- description --------------------------------------------------------

    def describe(
        self,
        name: str,
        category: str | None = DEFAULT_CATEGORY,
        price: float | None = 0,
        features: Sequence[str] | None = (),
    ) -> GeneratedText:
        """
        Write a product description, capped at the catalog's 5000-char limit.

        Raises:
            ValidationError: On a blank name, negative price or bad features.
        """
        name, category, price, features = validate_product_fields(
            name, category, price, features
        )
        options = self._options(
            Feature.DESCRIBE, DESCRIPTION_TEMPERATURE, DESCRIPTION_MAX_TOKENS
        )

        def fallback() -> str:
            return template_description(name, category, price, features)

        def primary() -> Outcome[str]:
            prompt = build_description_prompt(name, category, price, features)
            return self._generate(prompt, None, options)

        text = self.policy.invoke(Feature.DESCRIBE, primary, fallback).value
        result = cap_length(text)
        if result.truncated:
            logger.warning("Description for %r truncated to %d chars", name, len(result.body))
        return result

    # -- sentiment ----------------------------------------------------------

    def sentiment(self, review_text: str) -> SentimentResult:
        """
        Classify a review as positive, negative or neutral.

        Raises:
            ValidationError: If the review is shorter than 10 characters.
        """
        review_text = validate_review(review_text)
        options = self._options(
            Feature.SENTIMENT, SENTIMENT_TEMPERATURE, SENTIMENT_MAX_TOKENS
        )

        def primary() -> Outcome[SentimentResult]:
            reply = self._complete(build_sentiment_messages(review_text), options)
            if not reply.ok:
                return reply
            if is_empty(reply.value):
                return Outcome.failed(FailureKind.EMPTY, "empty classification")
            return attempt(lambda: parse_sentiment_json(reply.value))

        return self.policy.invoke(
            Feature.SENTIMENT, primary, lambda: keyword_sentiment(review_text)
        ).value


__all__ = [
    "AIFeatures",
    "merge_ids",
    "validate_message",
    "validate_history",
    "validate_query",
    "validate_product_fields",
    "validate_review",
]
