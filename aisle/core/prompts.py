"""
LLM prompt templates for the storefront features.

Prompt design notes:
1. Ranking prompts ask for bare comma-separated ids - the parser is simple
   and anything else is treated as a failed call
2. Catalog context is sent as truncated digests, never full records
3. Sentiment asks for a single JSON object so it can be parsed strictly
4. Chat carries the catalog inside a seeded first turn, so the provider's
   own conversation history mechanism can be used for the rest
"""

from __future__ import annotations

import json
from typing import Sequence

from aisle.core.models import ProductDigest, RecommendationContext


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

CHAT_SYSTEM_PROMPT = """You are a helpful customer support assistant for an e-commerce platform.
You help customers with:
- Product inquiries and recommendations (you have access to our product database)
- Order tracking
- Shipping information
- Returns and refunds
- General shopping questions
- Technical support

Be friendly, helpful, and detailed. When customers ask about products, suggest specific products by name, price, and features.
Provide comprehensive, helpful responses. You can give longer explanations when needed."""

CHAT_CATALOG_TEMPLATE = """

AVAILABLE PRODUCTS IN OUR STORE:
{catalog_json}

When customers ask about products (like "show me a watch", "find headphones", etc.), you should:
1. Search through the available products above
2. Suggest specific products by name that match their request
3. Mention key details like price, category, and features
4. Provide helpful recommendations based on their needs
5. If exact products aren't found, suggest similar items from the same category"""

CHAT_ACKNOWLEDGEMENT = (
    "I understand. I'm here to help you with any questions about products, "
    "orders, shipping, returns, or anything else related to your shopping "
    "experience. How can I assist you today?"
)


def format_catalog_json(digests: Sequence[ProductDigest]) -> str:
    """Serialize digests as pretty-printed JSON for prompt inclusion."""
    return json.dumps([d.to_prompt_dict() for d in digests], indent=2)


def build_chat_preamble(digests: Sequence[ProductDigest]) -> str:
    """Fixed support instructions, plus the catalog snippet when there is one."""
    if not digests:
        return CHAT_SYSTEM_PROMPT
    return CHAT_SYSTEM_PROMPT + CHAT_CATALOG_TEMPLATE.format(
        catalog_json=format_catalog_json(digests)
    )


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

RECOMMEND_SYSTEM_PROMPT = (
    "You are a product recommendation engine. "
    "Return only product IDs separated by commas."
)

RECOMMEND_USER_TEMPLATE = """Based on the following information, recommend {limit} products from the available products list:

User Interests: {interests}
Viewed Products: {viewed_count} products
Cart Items: {cart_count} items

Available Products:
{product_lines}

Please recommend {limit} products that the user would likely be interested in. Consider:
1. User interests and preferences
2. Products similar to viewed products
3. Complementary products to cart items
4. High-rated and popular products

Do not recommend products the user has already viewed or added to the cart: {excluded}

Return only the product IDs separated by commas, like: id1,id2,id3"""


def format_product_lines(digests: Sequence[ProductDigest]) -> str:
    """One compact JSON object per line."""
    return "\n".join(json.dumps(d.to_prompt_dict()) for d in digests)


def build_recommend_messages(
    context: RecommendationContext,
    digests: Sequence[ProductDigest],
    limit: int,
) -> list[dict]:
    user = RECOMMEND_USER_TEMPLATE.format(
        limit=limit,
        interests=", ".join(sorted(context.interests)) or "None specified",
        viewed_count=len(context.viewed_ids),
        cart_count=len(context.cart_ids),
        product_lines=format_product_lines(digests),
        excluded=", ".join(sorted(context.excluded_ids)) or "None",
    )
    return [
        {"role": "system", "content": RECOMMEND_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

SEARCH_SYSTEM_PROMPT = (
    "You are a product search engine. "
    "Return only product IDs in order of relevance, separated by commas."
)

SEARCH_USER_TEMPLATE = """Given the search query: "{query}"

Find and rank the most relevant products from this list:

{product_lines}

Return the product IDs in order of relevance (most relevant first), separated by commas."""


def build_search_messages(query: str, digests: Sequence[ProductDigest]) -> list[dict]:
    user = SEARCH_USER_TEMPLATE.format(
        query=query,
        product_lines=format_product_lines(digests),
    )
    return [
        {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


# ---------------------------------------------------------------------------
# Description generation
# ---------------------------------------------------------------------------

DESCRIPTION_PROMPT_TEMPLATE = """You are a professional product description writer for an e-commerce platform.

TASK: Write a comprehensive, SEO-friendly product description for an e-commerce website.

Product Information:
- Product Name: "{name}"
- Category: {category}
- Price: ${price}
- Features: {features}

INSTRUCTIONS:
1. Use your knowledge of "{name}" and similar products in the {category} category to write an accurate description.
2. Write a compelling, detailed product description (200-300 words, maximum 4500 characters) that:
   - Is engaging and persuasive
   - Highlights key features and benefits typical for this type of product
   - Includes SEO-friendly keywords naturally (use terms like "{name}", "{category}", and related search terms)
   - Mentions specific technical details or capabilities similar products typically have
   - Explains why customers would want this product and what problems it solves
   - Uses a professional, sales-oriented tone
   - Includes the price point (${price}) naturally in the description
   - Uses no markdown formatting, just plain text"""


def build_description_prompt(
    name: str,
    category: str,
    price: float,
    features: Sequence[str],
) -> str:
    return DESCRIPTION_PROMPT_TEMPLATE.format(
        name=name,
        category=category,
        price=f"{price:,.2f}",
        features=", ".join(features) or "None specified",
    )


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------

SENTIMENT_SYSTEM_PROMPT = "You are a sentiment analysis tool. Return only valid JSON."

SENTIMENT_USER_TEMPLATE = """Analyze the sentiment of this product review and return only a JSON object with "sentiment" (positive, negative, or neutral) and "confidence" (0-1) fields.

Review: "{review}"

Return only JSON, no other text."""


def build_sentiment_messages(review_text: str) -> list[dict]:
    return [
        {"role": "system", "content": SENTIMENT_SYSTEM_PROMPT},
        {"role": "user", "content": SENTIMENT_USER_TEMPLATE.format(review=review_text)},
    ]


__all__ = [
    "CHAT_SYSTEM_PROMPT",
    "CHAT_ACKNOWLEDGEMENT",
    "RECOMMEND_SYSTEM_PROMPT",
    "SEARCH_SYSTEM_PROMPT",
    "SENTIMENT_SYSTEM_PROMPT",
    "build_chat_preamble",
    "build_recommend_messages",
    "build_search_messages",
    "build_description_prompt",
    "build_sentiment_messages",
    "format_catalog_json",
    "format_product_lines",
]
