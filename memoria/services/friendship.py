import logging
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.config import settings
from memoria.models.friendship import Friendship
from memoria.repositories.friendship import FriendshipRepository
from memoria.repositories.profile import ProfileRepository
from memoria.schemas.friendship import (
    Friendship as FriendshipSchema, FriendsList, PendingRequests,
    IncomingFriendRequest, UserSearchResult, FriendshipStatus, RelationshipStatus
)
from memoria.schemas.profile import ProfileSummary
from memoria.services.results import FriendshipError, ServiceResult

logger = logging.getLogger(__name__)


def classify(friendship: Optional[Friendship], user_id: str) -> RelationshipStatus:
    """Status of the pair record as seen from user_id's side"""
    if friendship is None:
        return RelationshipStatus.NONE
    if friendship.status == FriendshipStatus.ACCEPTED:
        return RelationshipStatus.FRIENDS
    if friendship.requester_id == user_id:
        return RelationshipStatus.SENT
    return RelationshipStatus.PENDING


def _conflict_for(existing: Friendship) -> FriendshipError:
    if existing.status == FriendshipStatus.ACCEPTED:
        return FriendshipError.ALREADY_FRIENDS
    return FriendshipError.REQUEST_ALREADY_PENDING


class FriendshipService:
    """Friend request lifecycle and friendship queries.

    Every operation receives the verified caller id explicitly. Domain
    conflicts come back as failed ``ServiceResult`` values; only store
    failures raise (``StoreError``).
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = FriendshipRepository(db)
        self.profiles = ProfileRepository(db)

    async def send_friend_request(self, caller_id: str, receiver_id: str) -> ServiceResult[FriendshipSchema]:
        """Send a friend request"""
        if caller_id == receiver_id:
            return ServiceResult.failure(FriendshipError.CANNOT_REQUEST_SELF)

        existing = await self.repo.get_between(caller_id, receiver_id)
        if existing:
            error = _conflict_for(existing)
            logger.info(f"Friend request {caller_id} -> {receiver_id} refused: {error.value}")
            return ServiceResult.failure(error)

        friendship = await self.repo.create_friend_request(caller_id, receiver_id)
        if friendship is None:
            # Lost the race against a concurrent insert for the same pair
            existing = await self.repo.get_between(caller_id, receiver_id)
            error = _conflict_for(existing) if existing else FriendshipError.REQUEST_ALREADY_PENDING
            logger.info(f"Friend request {caller_id} -> {receiver_id} refused by store: {error.value}")
            return ServiceResult.failure(error)

        logger.info(f"User {caller_id} sent friend request {friendship.id} to {receiver_id}")
        return ServiceResult.success(FriendshipSchema.model_validate(friendship))

    async def accept_friend_request(self, caller_id: str, friendship_id: str) -> ServiceResult[FriendshipSchema]:
        """Accept a friend request (only the receiver can accept)"""
        friendship = await self.repo.get_by_id(friendship_id)
        if not friendship:
            return ServiceResult.failure(FriendshipError.NOT_FOUND)
        if friendship.receiver_id != caller_id:
            logger.info(f"User {caller_id} may not accept friend request {friendship_id}")
            return ServiceResult.failure(FriendshipError.FORBIDDEN)

        accepted = await self.repo.accept_friend_request(friendship_id, caller_id)
        if not accepted:
            return ServiceResult.failure(FriendshipError.NOT_FOUND)

        logger.info(f"User {caller_id} accepted friend request {friendship_id}")
        return ServiceResult.success(FriendshipSchema.model_validate(accepted))

    async def reject_friend_request(self, caller_id: str, friendship_id: str) -> ServiceResult[None]:
        """Reject a friend request by deleting it (only the receiver can reject).

        The status is not checked, so an accepted friendship passed here is
        removed as well.
        """
        friendship = await self.repo.get_by_id(friendship_id)
        if not friendship:
            return ServiceResult.failure(FriendshipError.NOT_FOUND)
        if friendship.receiver_id != caller_id:
            logger.info(f"User {caller_id} may not reject friend request {friendship_id}")
            return ServiceResult.failure(FriendshipError.FORBIDDEN)

        deleted = await self.repo.delete_for_receiver(friendship_id, caller_id)
        if not deleted:
            return ServiceResult.failure(FriendshipError.NOT_FOUND)

        logger.info(f"User {caller_id} rejected friend request {friendship_id}")
        return ServiceResult.success()

    async def get_friends_list(self, caller_id: str) -> FriendsList:
        """Get list of the caller's accepted friends"""
        friendships = await self.repo.get_accepted(caller_id)
        friend_ids = [f.other_participant(caller_id) for f in friendships]

        profiles = {p.id: p for p in await self.profiles.find_by_ids(friend_ids)}
        friends = [
            ProfileSummary.model_validate(profiles[friend_id])
            for friend_id in friend_ids
            if friend_id in profiles
        ]
        return FriendsList(friends=friends, total_count=len(friends))

    async def get_pending_requests(self, caller_id: str) -> PendingRequests:
        """Get incoming pending friend requests"""
        incoming = await self.repo.get_incoming_pending(caller_id)
        profiles = {
            p.id: p for p in await self.profiles.find_by_ids(f.requester_id for f in incoming)
        }

        requests = []
        for req in incoming:
            profile = profiles.get(req.requester_id)
            requester = (
                ProfileSummary.model_validate(profile)
                if profile
                else ProfileSummary(id=req.requester_id, username=req.requester_id)
            )
            requests.append(
                IncomingFriendRequest(
                    friendship_id=req.id,
                    requester=requester,
                    created_at=req.created_at
                )
            )

        return PendingRequests(requests=requests, total_count=len(requests))

    async def search_users(self, caller_id: str, query: str, with_status: bool = False) -> List[UserSearchResult]:
        """Search users by username, optionally annotated with their status to the caller"""
        query = query or ""
        if len(query) < settings.SEARCH_MIN_QUERY_LENGTH:
            return []

        users = await self.profiles.find_by_name_substring(query, caller_id, settings.SEARCH_RESULT_LIMIT)
        results = [UserSearchResult.model_validate(user) for user in users]
        if not with_status or not results:
            return results

        statuses: Dict[str, RelationshipStatus] = {}
        for friendship in await self.repo.get_between_many(caller_id, (r.id for r in results)):
            statuses[friendship.other_participant(caller_id)] = classify(friendship, caller_id)

        for result in results:
            result.friendship_status = statuses.get(result.id, RelationshipStatus.NONE)
        return results

    async def check_friendship_status(self, caller_id: str, target_id: str) -> RelationshipStatus:
        """Relationship status between the caller and another user"""
        friendship = await self.repo.get_between(caller_id, target_id)
        return classify(friendship, caller_id)
