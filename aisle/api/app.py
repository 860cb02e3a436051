"""
FastAPI application factory.

Creates the app with lifespan-managed singletons (provider credentials,
Gemini/OpenAI adapters, fallback policy, feature façade, catalog) so they
are built once at startup and shared across requests.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from aisle import __version__
from aisle.api.middleware import LatencyMiddleware
from aisle.api.routes import router
from aisle.config import ProviderCredentials, get_logger
from aisle.core.errors import ValidationError

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")]

logger = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Initialize shared resources at startup, release at shutdown."""
    logger.info("Starting Aisle API...")

    credentials = ProviderCredentials.from_env()
    app.state.credentials = credentials

    # Adapters -- a missing key only means the feature answers from its fallback
    from aisle.adapters.llm import build_clients

    try:
        gemini, openai_client = build_clients(credentials)
    except ImportError:
        logger.exception("Provider SDK missing -- cannot start")
        raise

    from aisle.services.features import AIFeatures
    from aisle.services.policy import FallbackPolicy

    policy = FallbackPolicy(credentials)
    app.state.policy = policy
    app.state.features = AIFeatures(policy, gemini=gemini, openai=openai_client)

    # Catalog snapshot
    from aisle.adapters.catalog import load_catalog

    app.state.catalog = load_catalog()

    logger.info("Aisle API ready")
    yield
    logger.info("Aisle API shutting down")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


async def _validation_error_handler(request: Request, exc: ValidationError):
    return _error_response(400, str(exc))


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{where}: {first.get('msg', 'invalid value')}" if where else first.get("msg", "")
    else:
        message = "Invalid request"
    return _error_response(400, message)


def register_error_handlers(app: FastAPI) -> None:
    """Map input errors to 400 with the {success, message} envelope."""
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)


def create_app() -> FastAPI:
    """Application factory."""
    app = FastAPI(
        title="Aisle",
        description="AI features for an e-commerce storefront with deterministic fallbacks",
        version=__version__,
        lifespan=_lifespan,
    )
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router)
    return app
