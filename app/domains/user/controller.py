"""User profile controller endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, validate_token
from app.database import get_db
from app.domains.user.service import UserService
from app.schemas.user import UserResponse, UserUpdateRequest
from models.user import User

router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication"],
    dependencies=[Depends(validate_token)],
)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return UserResponse.model_validate(current_user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    update_data: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update the authenticated user's profile."""
    user_service = UserService(db)
    user = await user_service.update_user(
        current_user.id,
        username=update_data.username,
        email=str(update_data.email) if update_data.email else None,
    )
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)
