"""
Authentication dependencies for FastAPI.

Turns a Bearer token into the authenticated caller context
({"sub", "user_id", "role"}) consumed by the scheduler.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.core.exceptions import AuthenticationError
from backend.app.core.jwt import decode_access_token
from backend.app.core.token_revocation import is_token_revoked
from backend.app.db.session import get_db
from backend.app.models.user import User

# auto_error=False so a missing header is a 401, not the HTTPBearer default
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Checks, in order:
    1. A Bearer token is present
    2. Token signature and expiry are valid
    3. Token has not been revoked (logout)
    4. User still exists and is active

    Returns:
        Decoded token payload, with "role" refreshed from the database

    Raises:
        AuthenticationError: 401 if authentication fails for any reason
    """
    if credentials is None:
        raise AuthenticationError("Authentication required")

    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    if await is_token_revoked(token):
        raise AuthenticationError("Token has been revoked")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    # The database is authoritative for the role; the token may be stale
    payload["role"] = user.role.value
    payload["token"] = token
    return payload
