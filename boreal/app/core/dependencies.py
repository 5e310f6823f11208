"""
Request authentication dependency.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from boreal.app.core.jwt import decode_access_token

# auto_error=False so a missing header gets our 401 instead of FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> dict:
    """
    Resolve the caller from the bearer token.

    Users live in the identity service, so the verified claims
    (sub, user_id, role) are the whole user record here.

    Raises:
        HTTPException: 401 if the token is missing, invalid or has no user_id
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise _unauthorized("Could not validate credentials")

    if not claims.get("user_id"):
        raise _unauthorized("Token has no user_id")

    return claims
