import logging
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_, and_, select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from memoria.models.friendship import Friendship, pair_key
from memoria.schemas.friendship import FriendshipStatus
from memoria.utils.exceptions import StoreError

logger = logging.getLogger(__name__)

PENDING = FriendshipStatus.PENDING.value
ACCEPTED = FriendshipStatus.ACCEPTED.value


class FriendshipRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, friendship_id: str) -> Optional[Friendship]:
        """Get a specific friendship record by ID"""
        stmt = select(Friendship).where(Friendship.id == friendship_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_between(self, user1_id: str, user2_id: str) -> Optional[Friendship]:
        """Get the record for the unordered pair {user1, user2}, if any"""
        low, high = pair_key(user1_id, user2_id)
        stmt = select(Friendship).where(
            Friendship.user_low_id == low,
            Friendship.user_high_id == high
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_between_many(self, user_id: str, other_ids: Iterable[str]) -> List[Friendship]:
        """Get every record pairing user_id with one of other_ids"""
        ids = list(set(other_ids))
        if not ids:
            return []

        stmt = select(Friendship).where(
            or_(
                and_(Friendship.requester_id == user_id, Friendship.receiver_id.in_(ids)),
                and_(Friendship.receiver_id == user_id, Friendship.requester_id.in_(ids))
            )
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_friend_request(self, requester_id: str, receiver_id: str) -> Optional[Friendship]:
        """Insert a pending request; None when the pair already has a record"""
        friendship = Friendship(
            requester_id=requester_id,
            receiver_id=receiver_id,
            status=PENDING
        )
        self.db.add(friendship)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(f"Pair {requester_id}/{receiver_id} already has a record: {e.orig}")
            return None
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create friend request {requester_id} -> {receiver_id}: {e}")
            raise StoreError("Could not create friend request") from e

        await self.db.refresh(friendship)
        return friendship

    async def accept_friend_request(self, friendship_id: str, receiver_id: str) -> Optional[Friendship]:
        """Mark a request accepted in a single update scoped to its receiver"""
        stmt = update(Friendship).where(
            and_(
                Friendship.id == friendship_id,
                Friendship.receiver_id == receiver_id
            )
        ).values(status=ACCEPTED)

        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to accept friend request {friendship_id}: {e}")
            raise StoreError("Could not accept friend request") from e

        if result.rowcount == 0:
            return None

        stmt = select(Friendship).where(
            Friendship.id == friendship_id
        ).execution_options(populate_existing=True)
        refreshed = await self.db.execute(stmt)
        return refreshed.scalar_one_or_none()

    async def delete_for_receiver(self, friendship_id: str, receiver_id: str) -> bool:
        """Delete a record in a single statement scoped to its receiver"""
        stmt = delete(Friendship).where(
            and_(
                Friendship.id == friendship_id,
                Friendship.receiver_id == receiver_id
            )
        )

        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete friend request {friendship_id}: {e}")
            raise StoreError("Could not delete friend request") from e

        return result.rowcount > 0

    async def get_accepted(self, user_id: str) -> List[Friendship]:
        """Accepted friendships where the user is either participant"""
        stmt = select(Friendship).where(
            and_(
                or_(
                    Friendship.requester_id == user_id,
                    Friendship.receiver_id == user_id
                ),
                Friendship.status == ACCEPTED
            )
        ).order_by(Friendship.created_at, Friendship.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_incoming_pending(self, user_id: str) -> List[Friendship]:
        """Pending requests received by the user"""
        stmt = select(Friendship).where(
            and_(
                Friendship.receiver_id == user_id,
                Friendship.status == PENDING
            )
        ).order_by(Friendship.created_at, Friendship.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
