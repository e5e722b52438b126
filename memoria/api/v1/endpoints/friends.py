from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Dict, List

from memoria.api.deps import get_current_user_id, get_friendship_service
from memoria.schemas.friendship import (
    Friendship, FriendRequestCreate, FriendsList, PendingRequests,
    UserSearchResult, FriendshipStatusResponse
)
from memoria.services.friendship import FriendshipService
from memoria.services.results import FriendshipError, ServiceResult

router = APIRouter()

ERROR_RESPONSES = {
    FriendshipError.FORBIDDEN: (
        status.HTTP_403_FORBIDDEN,
        "Only the receiver can respond to this friend request"
    ),
    FriendshipError.NOT_FOUND: (
        status.HTTP_404_NOT_FOUND,
        "Friend request not found"
    ),
    FriendshipError.ALREADY_FRIENDS: (
        status.HTTP_409_CONFLICT,
        "You are already friends with this user"
    ),
    FriendshipError.REQUEST_ALREADY_PENDING: (
        status.HTTP_409_CONFLICT,
        "A friend request between you and this user is already pending"
    ),
    FriendshipError.CANNOT_REQUEST_SELF: (
        status.HTTP_400_BAD_REQUEST,
        "Cannot send a friend request to yourself"
    ),
}


def unwrap(result: ServiceResult):
    """Return the payload of a successful result or raise the matching HTTP error"""
    if result.ok:
        return result.data
    status_code, message = ERROR_RESPONSES[result.error]
    raise HTTPException(
        status_code=status_code,
        detail={"error": result.error.value, "message": message}
    )


@router.get("/search", response_model=List[UserSearchResult])
async def search_users(
    q: str = Query("", description="Search query (username substring)"),
    with_status: bool = Query(False, description="Annotate each result with its friendship status"),
    current_user_id: str = Depends(get_current_user_id),
    service: FriendshipService = Depends(get_friendship_service)
):
    """Search for users by username; queries shorter than two characters return nothing"""
    return await service.search_users(current_user_id, q, with_status)


@router.post("/requests", response_model=Friendship, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    request_data: FriendRequestCreate,
    current_user_id: str = Depends(get_current_user_id),
    service: FriendshipService = Depends(get_friendship_service)
):
    """Send a friend request to another user"""
    return unwrap(await service.send_friend_request(current_user_id, request_data.receiver_id))


@router.post("/requests/{friendship_id}/accept", response_model=Friendship)
async def accept_friend_request(
    friendship_id: str,
    current_user_id: str = Depends(get_current_user_id),
    service: FriendshipService = Depends(get_friendship_service)
):
    """Accept a friend request addressed to the current user"""
    return unwrap(await service.accept_friend_request(current_user_id, friendship_id))


@router.delete("/requests/{friendship_id}")
async def reject_friend_request(
    friendship_id: str,
    current_user_id: str = Depends(get_current_user_id),
    service: FriendshipService = Depends(get_friendship_service)
) -> Dict[str, str]:
    """Reject a friend request addressed to the current user"""
    unwrap(await service.reject_friend_request(current_user_id, friendship_id))
    return {"message": "Friend request rejected successfully"}


@router.get("/requests", response_model=PendingRequests)
async def get_pending_requests(
    current_user_id: str = Depends(get_current_user_id),
    service: FriendshipService = Depends(get_friendship_service)
):
    """Get incoming pending friend requests"""
    return await service.get_pending_requests(current_user_id)


@router.get("/status/{user_id}", response_model=FriendshipStatusResponse)
async def check_friendship_status(
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    service: FriendshipService = Depends(get_friendship_service)
):
    """Get the friendship status between the current user and another user"""
    relationship_status = await service.check_friendship_status(current_user_id, user_id)
    return FriendshipStatusResponse(user_id=user_id, status=relationship_status)


@router.get("/", response_model=FriendsList)
async def get_friends(
    current_user_id: str = Depends(get_current_user_id),
    service: FriendshipService = Depends(get_friendship_service)
):
    """Get list of current user's friends"""
    return await service.get_friends_list(current_user_id)
