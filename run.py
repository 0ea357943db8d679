"""Entry point for the Service Portal API.

Launches the FastAPI application under Uvicorn.  It is intended to be
executed from the project root, for example under Docker, where you
only specify a single Python file to run.

Configuration such as SECRET_KEY, ADMIN_TOKEN, STORE_BACKEND and
DATABASE_URL is read from environment variables; see
``service_portal_api/app/core/config.py`` for the full list.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from service_portal_api.app.core.config import settings
from service_portal_api.app.main import app


async def main() -> None:
    """Serve the API on ``settings.host``:``settings.port``."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
        # Handlers come from setup_logging, run when the app was created.
        log_config=None,
    )
    server = Server(config)
    try:
        await server.serve()
    except Exception:
        logging.exception("API server stopped with an error")
        raise


if __name__ == "__main__":
    asyncio.run(main())
