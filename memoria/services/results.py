from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FriendshipError(str, Enum):
    """Expected domain outcomes of the friendship operations"""
    ALREADY_FRIENDS = "already_friends"
    REQUEST_ALREADY_PENDING = "request_already_pending"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CANNOT_REQUEST_SELF = "cannot_request_self"


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    data: Optional[T] = None
    error: Optional[FriendshipError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "ServiceResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: FriendshipError) -> "ServiceResult[T]":
        return cls(error=error)
