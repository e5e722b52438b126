from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.database import get_db
from memoria.core.security import resolve_caller
from memoria.services.friendship import FriendshipService
from memoria.utils.exceptions import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """Resolve the verified caller id once per request"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Not authenticated")
    return resolve_caller(credentials.credentials)


def get_friendship_service(db: AsyncSession = Depends(get_db)) -> FriendshipService:
    return FriendshipService(db)
