"""
Authentication API endpoints.

Caller-context endpoints: who am I, and logout by token revocation.
Credentials are issued elsewhere.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.auth import UserResponse, LogoutResponse
from backend.app.core.dependencies import get_current_user
from backend.app.core.token_revocation import revoke_token
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Requires valid JWT token in Authorization header.

    Raises:
        404: If user not found in database
    """
    user_id = current_user.get("user_id")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Revoke the presented token.

    The token is blacklisted until it would have expired anyway.
    """
    revoked = await revoke_token(current_user["token"], current_user["user_id"])

    await log_event(
        db=db,
        action=AuditAction.TOKEN_REVOKED,
        actor=current_user,
        entity_type="user",
        entity_id=current_user["user_id"],
        metadata={"revoked": revoked}
    )

    return LogoutResponse(
        message="Logged out" if revoked else "Logout recorded, token could not be revoked",
        token_revoked=revoked
    )
