#!/usr/bin/env python
"""Serve the stock sync API (POST/GET /api/sync/stocks, /health)."""
import os

import uvicorn

from stocksync.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    port = int(os.environ.get("PORT", 8000))

    print(f"Starting stock sync API on port {port} ({settings.ENVIRONMENT})")

    uvicorn.run(
        "stocksync.main:app",
        host="0.0.0.0",
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.DEBUG,
    )
