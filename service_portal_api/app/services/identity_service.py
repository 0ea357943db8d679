"""
Anonymous identity provider.

Every browser session signs in anonymously and receives an opaque,
random user id.  The id is wrapped in a signed session token so that
a client can resume the same identity later, which is what scopes the
ownership of registered assets.  No account data is stored.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from ..core.config import Settings
from ..core.security import create_access_token, decode_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """An anonymous session: the opaque user id and its token."""

    user_id: str
    token: str
    expires_in: int


class IdentityService:
    """Issues and resumes anonymous sessions."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def lifetime(self) -> int:
        return self.settings.session_expire_minutes * 60

    def sign_in_anonymously(self) -> Session:
        """Create a new session with a fresh user id."""
        user_id = secrets.token_hex(14)
        token = create_access_token({"sub": user_id}, self.settings.secret_key, self.lifetime)
        logger.info("Issued anonymous session %s", user_id)
        return Session(user_id=user_id, token=token, expires_in=self.lifetime)

    def resume(self, token: str) -> Optional[Session]:
        """Return a session for the user id in ``token``.

        A new token with a fresh expiry is issued for the same user id.
        Returns ``None`` if the token is invalid or expired.
        """
        payload = decode_access_token(token, self.settings.secret_key)
        if not payload or not payload.get("sub"):
            return None
        user_id = str(payload["sub"])
        refreshed = create_access_token({"sub": user_id}, self.settings.secret_key, self.lifetime)
        return Session(user_id=user_id, token=refreshed, expires_in=self.lifetime)
