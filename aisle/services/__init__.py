"""
Aisle services layer.

Orchestration between the core domain logic and the provider adapters:
the fallback policy engine and the five-operation feature façade.
"""

# Fallback policy
from aisle.services.policy import (
    DEFAULT_ROUTES,
    FallbackPolicy,
    Feature,
    FeatureRoute,
    attempt,
)

# Feature façade
from aisle.services.features import (
    AIFeatures,
    merge_ids,
)

__all__ = [
    # Policy
    "DEFAULT_ROUTES",
    "FallbackPolicy",
    "Feature",
    "FeatureRoute",
    "attempt",
    # Features
    "AIFeatures",
    "merge_ids",
]
