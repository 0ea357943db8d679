"""
Session endpoints for API v1.

Clients call ``POST /session`` once to sign in anonymously and keep
the returned token.  Posting a previously issued token resumes the same
user id, which is how a returning browser finds its registered assets
again.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from service_portal_api.app.api.deps import get_identity_service
from service_portal_api.app.core.security import get_current_session
from service_portal_api.app.schemas.session import SessionCreate, SessionRead
from service_portal_api.app.services.identity_service import IdentityService

router = APIRouter()


@router.post("", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def start_session(
    body: Optional[SessionCreate] = None,
    identity: IdentityService = Depends(get_identity_service),
) -> SessionRead:
    """Sign in anonymously, or resume the session of ``body.token``.

    Returns HTTP 401 if the supplied token is invalid or expired.
    """
    if body is not None and body.token:
        session = identity.resume(body.token)
        if session is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
            )
    else:
        session = identity.sign_in_anonymously()
    return SessionRead(user_id=session.user_id, token=session.token, expires_in=session.expires_in)


@router.get("/me", response_model=SessionRead)
async def read_session(user_id: str = Depends(get_current_session)) -> SessionRead:
    """Return the user id of the bearer token."""
    return SessionRead(user_id=user_id)
