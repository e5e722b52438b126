import uuid

from sqlalchemy import Column, String, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func

from memoria.core.database import Base


def pair_key(user1_id: str, user2_id: str) -> tuple[str, str]:
    """Canonical key of the unordered pair {user1, user2}"""
    return (user1_id, user2_id) if user1_id <= user2_id else (user2_id, user1_id)


class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    requester_id = Column(String, nullable=False, index=True)
    receiver_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="pending", index=True)  # pending, accepted

    # Canonical pair, always (min, max) of the two participants
    user_low_id = Column(String, nullable=False)
    user_high_id = Column(String, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Constraints
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_friendship_pair"),
        CheckConstraint("requester_id <> receiver_id", name="ck_friendship_not_self"),
        CheckConstraint("status IN ('pending', 'accepted')", name="ck_friendship_status"),
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.requester_id is not None and self.receiver_id is not None:
            self.user_low_id, self.user_high_id = pair_key(self.requester_id, self.receiver_id)

    def other_participant(self, user_id: str) -> str:
        return self.receiver_id if self.requester_id == user_id else self.requester_id

    def __repr__(self):
        return f"<Friendship id={self.id} requester={self.requester_id} receiver={self.receiver_id} status={self.status}>"
