from typing import Optional
from pydantic import BaseModel, ConfigDict
from datetime import datetime


class ProfileSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    avatar_url: Optional[str] = None


class Profile(ProfileSummary):
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
