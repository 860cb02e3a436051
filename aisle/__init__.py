"""
Aisle: AI feature gateway for an e-commerce storefront.

Chat support, recommendations, search ranking, description generation and
review sentiment, each served by an LLM provider when one is configured and
by a deterministic local fallback otherwise.

Architecture:
    aisle.core      - Pure domain logic (models, parsing, heuristics, prompts)
    aisle.adapters  - External service wrappers (Gemini, OpenAI, catalog)
    aisle.services  - Fallback policy engine and feature façade
    aisle.api       - FastAPI application
    aisle.config    - Configuration and logging
"""

__version__ = "0.1.0"

from aisle.core import (
    ConversationTurn,
    GeneratedText,
    Product,
    ProductDigest,
    RecommendationContext,
    Sentiment,
    SentimentResult,
    ValidationError,
)

from aisle.services import (
    AIFeatures,
    FallbackPolicy,
    Feature,
)

__all__ = [
    "__version__",
    # Models
    "ConversationTurn",
    "GeneratedText",
    "Product",
    "ProductDigest",
    "RecommendationContext",
    "Sentiment",
    "SentimentResult",
    "ValidationError",
    # Services
    "AIFeatures",
    "FallbackPolicy",
    "Feature",
]
