from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from memoria.core.database import Base


class Profile(Base):
    """Public profile of a user, keyed by the identity provider's user id"""
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    username = Column(String, unique=True, nullable=False, index=True)
    avatar_url = Column(String, nullable=True)
    bio = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
