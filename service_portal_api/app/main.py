"""
Main entrypoint for the Service Portal API.

This module assembles the FastAPI application, sets up logging,
builds the document store and the services, and includes versioned
routers.  The ``create_app`` function builds and configures the app,
which is then instantiated at module import time as ``app``.  Importing
the app here makes it easy to run with uvicorn or another ASGI server,
e.g.::

    uvicorn service_portal_api.app.main:app --reload
"""

from typing import Optional

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.logging_config import setup_logging
from .services.identity_service import IdentityService
from .services.record_service import RecordService
from .store import DocumentStore, build_store


def create_app(settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use; defaults to the environment-derived
        module-level settings.
    store : Optional[DocumentStore]
        Document store to use; defaults to the backend named in
        ``settings.store_backend``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.  Services are
        available on ``app.state``.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that the setup below
    # can log.
    setup_logging(settings.log_level, settings.log_file or None)

    store = store if store is not None else build_store(settings)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.settings = settings
    app.state.store = store
    app.state.record_service = RecordService(store, settings.collection_path)
    app.state.identity_service = IdentityService(settings)

    app.include_router(v1_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file and applies migrations for SQLite.
        await store.open()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        await store.close()

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
