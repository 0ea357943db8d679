"""
Service request endpoints for API v1.

Anyone may submit a request through the public form; a session token
is optional and, when present, records who submitted it.  Listing
requests belongs to the administration panel, either as a one-off
snapshot (``GET``) or as a live WebSocket feed.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, WebSocket, status

from service_portal_api.app.api.deps import get_record_service, to_http_error
from service_portal_api.app.api.streaming import serve_feed
from service_portal_api.app.core.exceptions import RecordValidationError, StorageError
from service_portal_api.app.core.security import (
    check_admin_token,
    get_optional_session,
    require_admin,
)
from service_portal_api.app.schemas.service_request import ServiceRequest
from service_portal_api.app.services.record_service import RecordService

router = APIRouter()

SERVICE_REQUEST_EXAMPLE = {
    "clientName": "John Smith",
    "clientEmail": "john@example.com",
    "serviceType": "maintenance",
    "description": "The unit is leaking near the intake valve",
}


@router.post("", response_model=ServiceRequest, status_code=status.HTTP_201_CREATED)
async def submit_service_request(
    request_in: Dict[str, Any] = Body(..., examples=[SERVICE_REQUEST_EXAMPLE]),
    user_id: Optional[str] = Depends(get_optional_session),
    service: RecordService = Depends(get_record_service),
) -> ServiceRequest:
    """Submit a service request from the public form.

    The body is validated by the record service, so a rejected field is
    reported as ``{"field": ..., "message": ...}`` with HTTP 422.
    """
    try:
        return await service.submit_service_request(request_in, submitter_id=user_id)
    except (RecordValidationError, StorageError) as exc:
        raise to_http_error(exc)


@router.get("", response_model=List[ServiceRequest], dependencies=[Depends(require_admin)])
async def list_service_requests(
    service: RecordService = Depends(get_record_service),
) -> List[ServiceRequest]:
    """Return all service requests, newest first (admin)."""
    try:
        return await service.list_service_requests()
    except StorageError as exc:
        raise to_http_error(exc)


@router.websocket("/live")
async def live_service_requests(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
) -> None:
    """Stream snapshots of all service requests (admin).

    The admin token, when one is configured, is passed as the ``token``
    query parameter.
    """
    try:
        check_admin_token(token, websocket.app.state.settings)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    service: RecordService = websocket.app.state.record_service
    await serve_feed(websocket, service.subscribe_all_service_requests())
