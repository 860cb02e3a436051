"""
Core domain models for the Aisle gateway.

Every model here is transient: built per request, handed back to the caller,
never stored by the gateway itself. Persistence belongs to the catalog.

Models are organized by domain area.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Mapping, TypeVar

from aisle.config import MAX_DESCRIPTION_CHARS, MAX_TURN_CHARS
from aisle.core.errors import FailureKind, ValidationError

T = TypeVar("T")


# ============================================================================
# CONVERSATION MODELS
# ============================================================================


class Role(Enum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """One message of a caller-owned conversation history."""

    role: Role
    text: str

    def __post_init__(self):
        if not isinstance(self.role, Role):
            raise ValidationError(f"Invalid conversation role: {self.role!r}")
        if not isinstance(self.text, str):
            raise ValidationError("Conversation turn text must be a string")
        if not self.text.strip():
            raise ValidationError("Conversation turn text is empty")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConversationTurn:
        """
        Build a caller-supplied turn from ``{"role": ..., "content" | "text": ...}``.

        Caller turns are bounded to MAX_TURN_CHARS.
        """
        raw_role = str(data.get("role", "")).lower()
        try:
            role = Role(raw_role)
        except ValueError:
            raise ValidationError(f"Invalid conversation role: {raw_role!r}") from None
        text = data.get("content", data.get("text", ""))
        if isinstance(text, str) and len(text) > MAX_TURN_CHARS:
            raise ValidationError(
                f"Conversation turn exceeds {MAX_TURN_CHARS} characters"
            )
        return cls(role=role, text=text)


# ============================================================================
# CATALOG MODELS
# ============================================================================

_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _as_bool(value: Any) -> bool:
    """Read a JSON flag that may arrive as a string ('false' is false)."""
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)



@dataclass(frozen=True)
class ProductDigest:
    """
    Read-only, truncated projection of a catalog record.

    This is what gets serialized into provider prompts, so descriptions are
    cut to bound prompt size.
    """

    id: str
    name: str
    category: str
    price: float
    rating: float
    short_description: str
    features: tuple[str, ...] = ()

    def to_prompt_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "rating": self.rating,
            "description": self.short_description,
            "features": list(self.features),
        }


@dataclass(frozen=True)
class Product:
    """
    A catalog record as the gateway sees it.

    The catalog store owns these; the gateway only reads them.
    """

    id: str
    name: str
    category: str = ""
    price: float = 0.0
    rating: float = 0.0
    units_sold: int = 0
    description: str = ""
    stock: int = 0
    features: tuple[str, ...] = ()
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Product:
        """Build from catalog JSON, accepting the storefront's field names."""
        product_id = data.get("id", data.get("_id"))
        if product_id is None or not data.get("name"):
            raise ValueError(f"Catalog record missing id or name: {dict(data)!r}")
        return cls(
            id=str(product_id),
            name=str(data["name"]),
            category=str(data.get("category") or ""),
            price=float(data.get("price") or 0.0),
            rating=float(data.get("rating", data.get("ratings")) or 0.0),
            units_sold=int(data.get("units_sold", data.get("sold")) or 0),
            description=str(data.get("description") or ""),
            stock=int(data.get("stock") or 0),
            features=tuple(str(f) for f in data.get("features") or ()),
            is_active=_as_bool(data.get("is_active", data.get("isActive", True))),
        )

    def digest(self, max_description: int = 150) -> ProductDigest:
        return ProductDigest(
            id=self.id,
            name=self.name,
            category=self.category,
            price=self.price,
            rating=self.rating,
            short_description=self.description[:max_description],
            features=self.features,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "rating": self.rating,
            "units_sold": self.units_sold,
            "description": self.description,
            "stock": self.stock,
            "features": list(self.features),
        }


# ============================================================================
# RECOMMENDATION MODELS
# ============================================================================


@dataclass(frozen=True)
class RecommendationContext:
    """Per-request signals used to personalize recommendations."""

    interests: frozenset[str] = field(default_factory=frozenset)
    viewed_ids: frozenset[str] = field(default_factory=frozenset)
    cart_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(cls, interests=(), viewed_ids=(), cart_ids=()) -> RecommendationContext:
        """Build from any iterables, dropping blanks."""

        def _clean(values) -> frozenset[str]:
            return frozenset(str(v).strip() for v in values if str(v).strip())

        return cls(
            interests=_clean(interests),
            viewed_ids=_clean(viewed_ids),
            cart_ids=_clean(cart_ids),
        )

    @property
    def excluded_ids(self) -> frozenset[str]:
        """Products the shopper has already seen or is already buying."""
        return self.viewed_ids | self.cart_ids


# ============================================================================
# SENTIMENT MODELS
# ============================================================================


class Sentiment(Enum):
    """Review sentiment label."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class SentimentResult:
    """Sentiment label with a confidence in [0, 1]."""

    label: Sentiment
    confidence: float

    def __post_init__(self):
        if not isinstance(self.label, Sentiment):
            raise ValueError(f"Invalid sentiment label: {self.label!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence out of range: {self.confidence}")

    def to_dict(self) -> dict:
        return {"sentiment": self.label.value, "confidence": self.confidence}


# ============================================================================
# GENERATION MODELS
# ============================================================================


@dataclass(frozen=True)
class GeneratedText:
    """Generated text capped at the catalog's storage limit."""

    body: str
    truncated: bool = False

    def __post_init__(self):
        if len(self.body) > MAX_DESCRIPTION_CHARS:
            raise ValueError(
                f"Generated text exceeds {MAX_DESCRIPTION_CHARS} characters"
            )


# ============================================================================
# POLICY MODELS
# ============================================================================


class Source(Enum):
    """Which path produced a feature result."""

    PROVIDER = "provider"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Explicit result of a primary (provider) call.

    Either carries a value, or a failure kind with a short detail. Primary
    calls return these instead of raising, so the policy branches on them
    rather than catching exceptions.
    """

    value: T | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failed(cls, kind: FailureKind, detail: str = "") -> Outcome[T]:
        return cls(failure=kind, detail=detail)

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """What the fallback policy hands back to a feature."""

    value: T
    source: Source
    failure: FailureKind | None = None

    @property
    def used_fallback(self) -> bool:
        return self.source is Source.FALLBACK
