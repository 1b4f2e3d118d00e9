"""Shopify UTM Dashboard - Main Entry Point."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env before the logger and settings read the environment
load_dotenv(Path.cwd() / ".env")

from shopify_utm.config.settings import settings  # noqa: E402
from shopify_utm.server.app import create_app  # noqa: E402

# Create FastAPI application
app = create_app()


def run() -> None:
    """Serve the dashboard with uvicorn."""
    import uvicorn

    reload = os.getenv("RELOAD", "false").lower() == "true"

    uvicorn.run(
        "shopify_utm.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=5,
        access_log=False,  # Disable uvicorn access log (we use structured logging)
    )


if __name__ == "__main__":
    run()
