"""
Aisle core domain layer.

Pure domain logic with no external service dependencies.
Contains models, errors, reply parsing, deterministic fallbacks and prompts.
"""

# Errors
from aisle.core.errors import (
    AisleError,
    ConfigurationError,
    FailureKind,
    ParseError,
    ProviderError,
    ValidationError,
)

# Models
from aisle.core.models import (
    ConversationTurn,
    GeneratedText,
    Outcome,
    Product,
    ProductDigest,
    RecommendationContext,
    Resolution,
    Role,
    Sentiment,
    SentimentResult,
    Source,
)

# Reply parsing
from aisle.core.parsing import (
    extract_reply_text,
    parse_id_list,
    parse_sentiment_json,
)

# Deterministic fallbacks
from aisle.core.heuristics import (
    canned_chat_reply,
    cap_length,
    keyword_sentiment,
    lexical_matches,
    rank_recommendations,
    template_description,
)

__all__ = [
    # Errors
    "AisleError",
    "ConfigurationError",
    "FailureKind",
    "ParseError",
    "ProviderError",
    "ValidationError",
    # Models
    "ConversationTurn",
    "GeneratedText",
    "Outcome",
    "Product",
    "ProductDigest",
    "RecommendationContext",
    "Resolution",
    "Role",
    "Sentiment",
    "SentimentResult",
    "Source",
    # Parsing
    "extract_reply_text",
    "parse_id_list",
    "parse_sentiment_json",
    # Heuristics
    "canned_chat_reply",
    "cap_length",
    "keyword_sentiment",
    "lexical_matches",
    "rank_recommendations",
    "template_description",
]
