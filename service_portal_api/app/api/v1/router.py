"""
Top‑level router for version 1 of the API.

This router aggregates the routers of the three portal views (public
request form, customer asset portal, administration panel) plus the
session and info endpoints under a unified prefix.
"""

from fastapi import APIRouter

from .endpoints import assets, info, service_requests, session

router = APIRouter()

router.include_router(session.router, prefix="/session", tags=["session"])
router.include_router(service_requests.router, prefix="/service-requests", tags=["service-requests"])
router.include_router(assets.router, prefix="/assets", tags=["assets"])
router.include_router(info.router, prefix="/info", tags=["info"])
