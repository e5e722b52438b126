from typing import Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from memoria.models.profile import Profile


class ProfileRepository:
    """User directory backed by the profiles table"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> Optional[Profile]:
        """Get profile by user ID"""
        query = select(Profile).filter(Profile.id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[Profile]:
        """Get profile by username (case-insensitive)"""
        query = select(Profile).filter(func.lower(Profile.username) == username.lower())
        result = await self.db.execute(query)
        return result.scalars().first()

    async def find_by_name_substring(self, query: str, exclude_id: str, limit: int) -> List[Profile]:
        """Case-insensitive substring search on username, excluding one user"""
        stmt = select(Profile).where(
            Profile.id != exclude_id,
            func.lower(Profile.username).contains(query.lower(), autoescape=True)
        ).order_by(Profile.username).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_ids(self, user_ids: Iterable[str]) -> List[Profile]:
        """Batch lookup; ids with no profile are silently absent from the result"""
        ids = list(set(user_ids))
        if not ids:
            return []

        stmt = select(Profile).where(Profile.id.in_(ids))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
