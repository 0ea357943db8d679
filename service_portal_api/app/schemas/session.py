"""
Pydantic schemas for anonymous sessions.

A session is the only notion of identity in the portal: an opaque
user id wrapped in a signed token.  Clients keep the token and send it
back as a bearer token.
"""

from typing import Optional

from pydantic import BaseModel, Field


class SessionCreate(BaseModel):
    """Request body for starting or resuming a session.

    Without ``token`` a fresh anonymous session is issued.  With a
    previously issued token the same user id is returned.
    """

    token: Optional[str] = Field(None, description="Previously issued session token")


class SessionRead(BaseModel):
    user_id: str = Field(..., alias="userId")
    token: Optional[str] = None
    expires_in: Optional[int] = Field(None, alias="expiresIn", description="Token lifetime in seconds")

    model_config = {
        "populate_by_name": True,
    }
