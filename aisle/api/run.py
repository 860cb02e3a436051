"""
Server entry point.

Usage:
    python -m aisle.api.run
    python -m aisle.api.run --port 5000

For auto-reload during development, use uvicorn directly:
    uvicorn aisle.api.app:create_app --factory --reload --port 5000
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from aisle.api.app import create_app
from aisle.config import configure_logging


def main():
    parser = argparse.ArgumentParser(description="Aisle API server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument(
        "--port", type=int,
        default=int(os.getenv("PORT", "5000")),
        help="Port (defaults to PORT env var, then 5000)",
    )
    parser.add_argument(
        "--workers", type=int,
        default=int(os.getenv("WEB_CONCURRENCY", "1")),
        help="Worker processes (defaults to WEB_CONCURRENCY, then 1)",
    )
    args = parser.parse_args()

    configure_logging()

    if args.workers > 1:
        # Multiple workers need an import string so each process builds its own app
        uvicorn.run(
            "aisle.api.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            workers=args.workers,
            log_level="info",
        )
    else:
        uvicorn.run(create_app(), host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
