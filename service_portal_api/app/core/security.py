"""
Security helpers for anonymous session tokens.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens embed
the anonymous user id (``sub``) and an expiration timestamp
(``exp``).  The secret key from the application settings is used to
sign and verify tokens.

The FastAPI dependencies at the bottom of the module resolve the
current session from the ``Authorization`` header and guard the
administration views with an optional static token.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], secret: str, expires_delta: int) -> str:
    """Create a signed JWT token with the given payload.

    The payload is extended with an ``exp`` field representing the
    expiration time as a UNIX timestamp.  The token is a string of the
    form ``header.payload.signature``, where each part is base64url
    encoded.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"sub": "<user id>"}``).
    secret : str
        Signing key.
    expires_delta : int
        Lifetime of the token in seconds.

    Returns
    -------
    str
        A signed JWT token.
    """
    to_encode = data.copy()
    to_encode["exp"] = int(time.time()) + expires_delta
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(',', ':')).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(',', ':')).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, secret))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Splits the token into header, payload and signature, verifies the
    HMAC signature and checks the ``exp`` field.  Returns the payload
    dictionary if the token is valid, otherwise ``None``.
    """
    parts = token.split('.')
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, secret)
    try:
        actual_sig = _b64_url_decode(signature_b64)
    except ValueError:
        return None
    if not hmac.compare_digest(expected_sig, actual_sig):
        return None
    try:
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    exp = data.get("exp")
    if not isinstance(exp, int) or exp < int(time.time()):
        return None
    return data


def get_settings(request: Request) -> Settings:
    """Dependency returning the settings the running app was built with."""
    return request.app.state.settings


def resolve_session(token: Optional[str], settings: Settings) -> str:
    """Return the anonymous user id carried by ``token``.

    Raises an HTTP 401 error when the token is missing, malformed or
    expired.
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(token, settings.secret_key)
    if not payload or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(payload["sub"])


security = HTTPBearer(auto_error=False)


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """Dependency that yields the current anonymous user id."""
    token = credentials.credentials if credentials is not None else None
    return resolve_session(token, settings)


def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Like ``get_current_session`` but ``None`` when no token is sent.

    A token that is present but invalid is still rejected with 401.
    """
    if credentials is None:
        return None
    return resolve_session(credentials.credentials, settings)


def check_admin_token(token: Optional[str], settings: Settings) -> None:
    """Raise HTTP 403 unless ``token`` unlocks the administration views.

    When ``settings.admin_token`` is empty every caller is admitted.
    """
    if not settings.admin_token:
        return
    if not token or not hmac.compare_digest(token.encode("utf-8"), settings.admin_token.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> None:
    """Dependency guarding the administration endpoints."""
    token = credentials.credentials if credentials is not None else None
    check_admin_token(token, settings)
