"""
Access tokens for back-office and portal users.

Tokens are issued by the identity service; this backend only needs to
sign tokens for tooling and tests and to verify incoming ones.
"""

from datetime import timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from boreal.app.core.config import settings
from boreal.app.core.clock import utcnow


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign `claims` (sub, user_id, role) into a bearer token.

    Expiry defaults to settings.access_token_expire_minutes.
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {**claims, "exp": utcnow() + lifetime}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid token, or None if it is malformed, forged or expired."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
