"""
API route definitions.

Endpoints:
    POST /ai/chat                   Customer support chat
    GET  /ai/recommendations        Personalized product recommendations
    GET  /ai/search                 AI-ranked product search
    POST /ai/generate-description   Product description generation
    POST /ai/analyze-sentiment      Review sentiment
    GET  /health                    Provider configuration and catalog size
    GET  /metrics                   Prometheus metrics

Input bounds are enforced by the feature façade; its ValidationError is
mapped to HTTP 400 by the app. Provider failures never reach this layer.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import AliasChoices, BaseModel, Field

from aisle.api.metrics import metrics_response
from aisle.config import PROVIDER_GEMINI, PROVIDER_OPENAI, get_logger
from aisle.core.models import RecommendationContext
from aisle.utils import split_csv

# How often a pending feature call checks whether the client went away
DISCONNECT_POLL_SECONDS = 0.5

# Non-standard "client closed request" status, never actually delivered
CLIENT_CLOSED_REQUEST = 499

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", include_in_schema=False)
async def root():
    """Redirect root to Swagger UI."""
    return RedirectResponse(url="/docs")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ChatTurnIn(BaseModel):
    role: str
    content: str = Field(validation_alias=AliasChoices("content", "text"))


class ChatRequest(BaseModel):
    """Request body for /ai/chat."""

    message: str = ""
    conversation_history: list[ChatTurnIn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("conversation_history", "conversationHistory"),
    )


class DescriptionRequest(BaseModel):
    """Request body for /ai/generate-description."""

    name: str = ""
    category: str | None = None
    price: float | None = None
    features: list[str] | None = None


class SentimentRequest(BaseModel):
    """Request body for /ai/analyze-sentiment."""

    review_text: str = Field(
        "", validation_alias=AliasChoices("review_text", "reviewText")
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ChatResponse(BaseModel):
    success: bool
    response: str
    timestamp: str


class ProductsResponse(BaseModel):
    success: bool
    product_ids: list[str]
    products: list[dict]
    count: int


class SearchResponse(ProductsResponse):
    query: str


class DescriptionResponse(BaseModel):
    success: bool
    description: str
    truncated: bool


class SentimentAnalysis(BaseModel):
    sentiment: str
    confidence: float


class SentimentResponse(BaseModel):
    success: bool
    analysis: SentimentAnalysis


class HealthResponse(BaseModel):
    status: str
    providers: dict[str, bool]
    catalog_size: int


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


async def _run_feature(request: Request, fn: Callable[..., Any], *args) -> Any:
    """Run a blocking façade call off the event loop.

    If the client disconnects first, stop waiting: the result (or fallback)
    is no longer owed to anyone.
    """
    task = asyncio.ensure_future(asyncio.to_thread(fn, *args))
    while True:
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
        if done:
            return task.result()
        if await request.is_disconnected():
            task.cancel()
            logger.info("Client disconnected, abandoning %s", fn.__name__)
            return None


def _products_payload(app, ids: list[str]) -> dict:
    products = app.state.catalog.get(ids)
    return {
        "success": True,
        "product_ids": ids,
        "products": [p.to_dict() for p in products],
        "count": len(products),
    }


def _closed() -> Response:
    return Response(status_code=CLIENT_CLOSED_REQUEST)


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------


@router.post("/ai/chat", response_model=ChatResponse)
async def chat(request: Request, body: ChatRequest):
    """Customer support chat with the active catalog as context."""
    app = request.app
    history = [turn.model_dump() for turn in body.conversation_history]
    reply = await _run_feature(
        request,
        app.state.features.chat,
        body.message,
        history,
        app.state.catalog.active_products(),
    )
    if reply is None:
        return _closed()
    return {
        "success": True,
        "response": reply,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ai/recommendations", response_model=ProductsResponse)
async def recommendations(
    request: Request,
    interests: str | None = Query(None, description="Comma-separated interests"),
    viewed: str | None = Query(None, description="Comma-separated viewed product ids"),
    cart: str | None = Query(None, description="Comma-separated cart product ids"),
):
    """Recommend up to 8 products the shopper has not viewed or carted."""
    app = request.app
    context = RecommendationContext.build(
        interests=split_csv(interests),
        viewed_ids=split_csv(viewed),
        cart_ids=split_csv(cart),
    )
    ids = await _run_feature(
        request,
        app.state.features.recommend,
        context,
        app.state.catalog.active_products(),
    )
    if ids is None:
        return _closed()
    return _products_payload(app, ids)


@router.get("/ai/search", response_model=SearchResponse)
async def search(request: Request, query: str = Query("", description="Search query")):
    """AI-ranked search, completed with lexical matches."""
    app = request.app
    ids = await _run_feature(
        request,
        app.state.features.search,
        query,
        app.state.catalog.active_products(),
    )
    if ids is None:
        return _closed()
    return {**_products_payload(app, ids), "query": query}


@router.post("/ai/generate-description", response_model=DescriptionResponse)
async def generate_description(request: Request, body: DescriptionRequest):
    """Generate a catalog-safe product description."""
    result = await _run_feature(
        request,
        request.app.state.features.describe,
        body.name,
        body.category,
        body.price,
        body.features,
    )
    if result is None:
        return _closed()
    return {"success": True, "description": result.body, "truncated": result.truncated}


@router.post("/ai/analyze-sentiment", response_model=SentimentResponse)
async def analyze_sentiment(request: Request, body: SentimentRequest):
    """Classify review sentiment."""
    result = await _run_feature(
        request, request.app.state.features.sentiment, body.review_text
    )
    if result is None:
        return _closed()
    return {"success": True, "analysis": result.to_dict()}


# ---------------------------------------------------------------------------
# Health & metrics
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Report which providers are configured.

    Missing providers only mean the deterministic fallbacks answer, so the
    service is "degraded" rather than unhealthy.
    """
    app = request.app
    credentials = app.state.credentials
    providers = {
        PROVIDER_GEMINI: credentials.has(PROVIDER_GEMINI),
        PROVIDER_OPENAI: credentials.has(PROVIDER_OPENAI),
    }
    status = "healthy" if all(providers.values()) else "degraded"
    return {
        "status": status,
        "providers": providers,
        "catalog_size": len(app.state.catalog.active_products()),
    }


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    body, content_type = metrics_response()
    return Response(content=body, media_type=content_type)
