"""Bearer Token Auth — decodes access tokens issued by the hosted auth platform.

Invariants:
    - HS256 tokens signed with settings.jwt_secret, audience settings.jwt_audience
    - `sub` must be a UUID; it becomes CurrentUser.id (== profiles.id)
    - Admin iff app_metadata.role == "admin" (user_metadata is user-editable, never trusted)
    - Missing/invalid token -> AuthenticationError (401); non-admin on admin route -> 403
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from marketplace.config import get_settings
from marketplace.core.errors import AuthenticationError, PermissionDeniedError

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: uuid.UUID
    email: str | None = None
    is_admin: bool = False


def decode_access_token(token: str) -> CurrentUser:
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise AuthenticationError("Invalid token")

    try:
        user_id = uuid.UUID(str(claims.get("sub")))
    except ValueError:
        raise AuthenticationError("Invalid token subject")

    app_metadata = claims.get("app_metadata") or {}
    return CurrentUser(
        id=user_id,
        email=claims.get("email"),
        is_admin=app_metadata.get("role") == "admin",
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> CurrentUser:
    """FastAPI dependency — the authenticated caller."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return decode_access_token(credentials.credentials)


async def require_admin(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    if not user.is_admin:
        raise PermissionDeniedError("Administrator access required")
    return user
