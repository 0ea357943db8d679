"""
Asset endpoints for API v1.

The customer portal registers assets for the current session and
lists them (``/assets/mine``).  The administration panel sees every
asset regardless of owner.  Both views are available as a snapshot
and as a live WebSocket feed.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, WebSocket, status

from service_portal_api.app.api.deps import get_record_service, to_http_error
from service_portal_api.app.api.streaming import serve_feed
from service_portal_api.app.core.exceptions import RecordValidationError, StorageError
from service_portal_api.app.core.security import (
    check_admin_token,
    get_current_session,
    require_admin,
    resolve_session,
)
from service_portal_api.app.schemas.asset import Asset
from service_portal_api.app.services.record_service import RecordService

router = APIRouter()

ASSET_EXAMPLE = {"assetType": "HVAC Unit", "modelOrSerial": "SN-9981", "setupDate": "2024-01-15"}


@router.post("", response_model=Asset, status_code=status.HTTP_201_CREATED)
async def register_asset(
    asset_in: Dict[str, Any] = Body(..., examples=[ASSET_EXAMPLE]),
    user_id: str = Depends(get_current_session),
    service: RecordService = Depends(get_record_service),
) -> Asset:
    """Register an asset owned by the current session."""
    try:
        return await service.register_asset(user_id, asset_in)
    except (RecordValidationError, StorageError) as exc:
        raise to_http_error(exc)


@router.get("/mine", response_model=List[Asset])
async def list_own_assets(
    user_id: str = Depends(get_current_session),
    service: RecordService = Depends(get_record_service),
) -> List[Asset]:
    """Return the current session's assets, newest first."""
    try:
        return await service.list_own_assets(user_id)
    except StorageError as exc:
        raise to_http_error(exc)


@router.get("", response_model=List[Asset], dependencies=[Depends(require_admin)])
async def list_assets(
    service: RecordService = Depends(get_record_service),
) -> List[Asset]:
    """Return every asset, newest first (admin)."""
    try:
        return await service.list_assets()
    except StorageError as exc:
        raise to_http_error(exc)


@router.websocket("/mine/live")
async def live_own_assets(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
) -> None:
    """Stream snapshots of the assets owned by the session in ``token``."""
    try:
        user_id = resolve_session(token, websocket.app.state.settings)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    service: RecordService = websocket.app.state.record_service
    await serve_feed(websocket, service.subscribe_own_assets(user_id))


@router.websocket("/live")
async def live_assets(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
) -> None:
    """Stream snapshots of every asset (admin)."""
    try:
        check_admin_token(token, websocket.app.state.settings)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    service: RecordService = websocket.app.state.record_service
    await serve_feed(websocket, service.subscribe_all_assets())

