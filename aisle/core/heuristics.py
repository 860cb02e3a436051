"""
Deterministic, network-free answers for every feature.

These run when a provider is not configured or its call failed. They are
also used to complete provider answers: recommendations are topped up from
``rank_recommendations`` and search results from ``lexical_matches``.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from aisle.config import (
    ELLIPSIS,
    MAX_DESCRIPTION_CHARS,
    MAX_RECOMMENDATIONS,
    SUPPORT_EMAIL,
    SUPPORT_PHONE,
)
from aisle.core.errors import FailureKind
from aisle.core.models import (
    GeneratedText,
    Product,
    RecommendationContext,
    Sentiment,
    SentimentResult,
)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

CANNED_CHAT_REPLY = (
    "I'm here to help! Our customer support team is available 24/7. "
    f"For immediate assistance, please contact {SUPPORT_EMAIL} "
    f"or call {SUPPORT_PHONE}."
)

CHAT_TROUBLE_REPLY = (
    "I apologize, but I'm experiencing technical difficulties. "
    f"Please contact our support team at {SUPPORT_EMAIL} for assistance."
)


def canned_chat_reply(failure: FailureKind | None = None) -> str:
    """Support-contact reply; an apology when the provider was tried and failed."""
    if failure is None or failure is FailureKind.UNCONFIGURED:
        return CANNED_CHAT_REPLY
    return CHAT_TROUBLE_REPLY


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


def matches_interest(product: Product, interests: Iterable[str]) -> bool:
    """True if any interest is a case-insensitive substring of category or name."""
    category = product.category.lower()
    name = product.name.lower()
    return any(
        interest.lower() in category or interest.lower() in name
        for interest in interests
    )


def rank_recommendations(
    catalog: Sequence[Product],
    context: RecommendationContext,
    limit: int = MAX_RECOMMENDATIONS,
) -> list[str]:
    """
    Rank catalog products for a shopper without a provider.

    Drops viewed and in-cart products, keeps only products matching an
    interest when any interests are given, then orders by rating and units
    sold (both descending). The sort is stable, so ties keep catalog order.
    """
    excluded = context.excluded_ids
    candidates = [p for p in catalog if p.id not in excluded]
    if context.interests:
        candidates = [p for p in candidates if matches_interest(p, context.interests)]
    candidates.sort(key=lambda p: (-p.rating, -p.units_sold))
    return [p.id for p in candidates[:limit]]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def matches_query(product: Product, query: str) -> bool:
    """True if the query is a case-insensitive substring of name, description or category."""
    needle = query.lower()
    return (
        needle in product.name.lower()
        or needle in product.description.lower()
        or needle in product.category.lower()
    )


def lexical_matches(catalog: Sequence[Product], query: str) -> list[str]:
    """Ids of products matching the query, in catalog order."""
    return [p.id for p in catalog if matches_query(p, query)]


# ---------------------------------------------------------------------------
# Description generation
# ---------------------------------------------------------------------------


def _format_price(price: float) -> str:
    return f"${price:,.2f}"


def template_description(
    name: str,
    category: str,
    price: float,
    features: Sequence[str] = (),
) -> str:
    """Fixed product blurb interpolating name, category, features and price."""
    sentences = [
        f"Discover the {name} - a premium {category} product that combines "
        "quality and value."
    ]
    if features:
        sentences.append(f"Key features include: {', '.join(features)}.")
    sentences.append(
        f"Priced at {_format_price(price)}, this product offers exceptional "
        "value for money. Perfect for your needs."
    )
    return " ".join(sentences)


def cap_length(text: str, limit: int = MAX_DESCRIPTION_CHARS) -> GeneratedText:
    """
    Trim and cap text at the catalog storage limit.

    Over-long text is cut to ``limit - len(ELLIPSIS)`` characters and the
    ellipsis marker is appended.
    """
    body = text.strip()
    if len(body) <= limit:
        return GeneratedText(body=body, truncated=False)
    return GeneratedText(body=body[: limit - len(ELLIPSIS)] + ELLIPSIS, truncated=True)


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------

POSITIVE_WORDS = frozenset(
    {
        "good",
        "great",
        "excellent",
        "amazing",
        "love",
        "perfect",
        "wonderful",
        "fantastic",
        "awesome",
        "best",
    }
)

NEGATIVE_WORDS = frozenset(
    {
        "bad",
        "terrible",
        "awful",
        "hate",
        "worst",
        "disappointed",
        "poor",
        "horrible",
        "waste",
    }
)


def keyword_sentiment(review_text: str) -> SentimentResult:
    """
    Classify a review by counting positive and negative keywords.

    Each keyword counts once if it appears anywhere in the text
    (case-insensitive substring). Confidence is the count margin over the
    total hits, so a review with no hits is neutral with confidence 0.
    """
    text = review_text.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in text)
    negative = sum(1 for word in NEGATIVE_WORDS if word in text)

    if positive > negative:
        label = Sentiment.POSITIVE
    elif negative > positive:
        label = Sentiment.NEGATIVE
    else:
        label = Sentiment.NEUTRAL

    confidence = abs(positive - negative) / max(positive + negative, 1)
    return SentimentResult(label=label, confidence=confidence)


__all__ = [
    "CANNED_CHAT_REPLY",
    "CHAT_TROUBLE_REPLY",
    "POSITIVE_WORDS",
    "NEGATIVE_WORDS",
    "canned_chat_reply",
    "matches_interest",
    "rank_recommendations",
    "matches_query",
    "lexical_matches",
    "template_description",
    "cap_length",
    "keyword_sentiment",
]
