"""
Information endpoint for API v1.

Returns the project name and version together with the configured
store backend and collection path.  Useful as a liveness probe and to
check which deployment a client is talking to.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
async def get_info(request: Request) -> Dict[str, Any]:
    settings = request.app.state.settings
    return {
        "project": settings.project_name,
        "version": settings.api_version,
        "store": request.app.state.store.backend,
        "collection": settings.collection_path,
    }
