from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional
from enum import Enum

from memoria.schemas.profile import ProfileSummary


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class RelationshipStatus(str, Enum):
    """Status between the caller and another user, derived from their pair record"""
    NONE = "none"
    FRIENDS = "friends"
    SENT = "sent"  # caller sent a request that is still pending
    PENDING = "pending"  # awaiting the caller's decision


class FriendRequestCreate(BaseModel):
    receiver_id: str


class Friendship(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    requester_id: str
    receiver_id: str
    status: FriendshipStatus
    created_at: datetime
    updated_at: Optional[datetime] = None


class IncomingFriendRequest(BaseModel):
    friendship_id: str
    requester: ProfileSummary
    created_at: datetime


class UserSearchResult(ProfileSummary):
    friendship_status: Optional[RelationshipStatus] = None


class FriendsList(BaseModel):
    friends: List[ProfileSummary]
    total_count: int


class PendingRequests(BaseModel):
    requests: List[IncomingFriendRequest]
    total_count: int


class FriendshipStatusResponse(BaseModel):
    user_id: str
    status: RelationshipStatus
