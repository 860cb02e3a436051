"""
Aisle adapters layer.

External service wrappers: LLM provider clients and the catalog collaborator.
"""

# LLM clients
from aisle.adapters.llm import (
    CompletionClient,
    ConversationalClient,
    GeminiClient,
    GenerationOptions,
    OpenAIClient,
    build_clients,
)

# Catalog
from aisle.adapters.catalog import (
    Catalog,
    InMemoryCatalog,
    load_catalog,
)

__all__ = [
    # LLM
    "CompletionClient",
    "ConversationalClient",
    "GeminiClient",
    "GenerationOptions",
    "OpenAIClient",
    "build_clients",
    # Catalog
    "Catalog",
    "InMemoryCatalog",
    "load_catalog",
]
