from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.database import get_db
from memoria.api.deps import get_current_user_id
from memoria.schemas.profile import Profile
from memoria.repositories.profile import ProfileRepository

router = APIRouter()


@router.get("/me", response_model=Profile)
async def get_current_user_profile(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get current user profile"""
    profile = await ProfileRepository(db).get_by_id(current_user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return profile


@router.get("/{username}", response_model=Profile)
async def get_profile_by_username(
    username: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get a user's public profile by username"""
    profile = await ProfileRepository(db).get_by_username(username)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return profile
