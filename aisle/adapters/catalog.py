"""
Catalog collaborator.

The storefront's product store owns the records; the gateway only needs to
read the active catalog and resolve ranked ids back to full records. The
bundled implementation loads a JSON export once at startup.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping, Protocol, Sequence

from aisle.config import CATALOG_PATH, get_logger
from aisle.core.models import Product

logger = get_logger(__name__)


class Catalog(Protocol):
    """Read-only view of the product store."""

    def active_products(self) -> list[Product]:
        """All active products, in catalog order."""
        ...

    def get(self, ids: Sequence[str]) -> list[Product]:
        """Products for ``ids`` in the same order; unknown ids are skipped."""
        ...


class InMemoryCatalog:
    """Catalog backed by a list of products held in memory."""

    def __init__(self, products: Iterable[Product] = ()):
        self._products = [p for p in products if p.is_active]
        self._by_id = {p.id: p for p in self._products}

    def __len__(self) -> int:
        return len(self._products)

    def active_products(self) -> list[Product]:
        return list(self._products)

    def get(self, ids: Sequence[str]) -> list[Product]:
        return [self._by_id[i] for i in ids if i in self._by_id]


def load_catalog(path: Path | str = CATALOG_PATH) -> InMemoryCatalog:
    """
    Load a catalog export from JSON.

    Accepts either a top-level array of product objects or an object with a
    ``products`` array. Malformed records are skipped with a warning.

    Args:
        path: JSON file path. Defaults to CATALOG_PATH from config.

    Returns:
        InMemoryCatalog with the active products. Empty if the file is missing.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Catalog file not found at %s -- starting empty", path)
        return InMemoryCatalog()

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    records = data.get("products", []) if isinstance(data, dict) else data

    products = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Skipping non-object catalog record: %r", record)
            continue
        try:
            products.append(Product.from_dict(record))
        except (TypeError, ValueError) as e:
            logger.warning("Skipping malformed catalog record: %s", e)

    catalog = InMemoryCatalog(products)
    logger.info("Loaded %d active products from %s", len(catalog), path)
    return catalog


__all__ = ["Catalog", "InMemoryCatalog", "load_catalog"]
