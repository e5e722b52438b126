import asyncio

import pytest

from memoria.models.profile import Profile
from memoria.schemas.friendship import FriendshipStatus, RelationshipStatus
from memoria.services.friendship import FriendshipService
from memoria.services.results import FriendshipError

ALICE, BOB, CAROL = "user_alice", "user_bob", "user_carol"


@pytest.fixture
def service(db_session, profiles):
    return FriendshipService(db_session)


async def befriend(service, requester, receiver):
    sent = await service.send_friend_request(requester, receiver)
    accepted = await service.accept_friend_request(receiver, sent.data.id)
    assert accepted.ok
    return accepted.data


class TestSendFriendRequest:

    async def test_creates_pending_request(self, service):
        result = await service.send_friend_request(ALICE, BOB)

        assert result.ok
        assert result.data.requester_id == ALICE
        assert result.data.receiver_id == BOB
        assert result.data.status == FriendshipStatus.PENDING

    @pytest.mark.parametrize("requester, receiver", [(ALICE, BOB), (BOB, ALICE)])
    async def test_duplicate_in_either_direction_is_pending_conflict(
        self, service, count_friendships, requester, receiver
    ):
        assert (await service.send_friend_request(ALICE, BOB)).ok

        result = await service.send_friend_request(requester, receiver)

        assert result.error == FriendshipError.REQUEST_ALREADY_PENDING
        assert await count_friendships() == 1

    @pytest.mark.parametrize("requester, receiver", [(ALICE, BOB), (BOB, ALICE)])
    async def test_existing_friendship_is_already_friends(
        self, service, count_friendships, requester, receiver
    ):
        await befriend(service, ALICE, BOB)

        result = await service.send_friend_request(requester, receiver)

        assert result.error == FriendshipError.ALREADY_FRIENDS
        assert await count_friendships() == 1

    async def test_self_request_is_refused(self, service, count_friendships):
        result = await service.send_friend_request(ALICE, ALICE)

        assert result.error == FriendshipError.CANNOT_REQUEST_SELF
        assert await count_friendships() == 0

    async def test_store_constraint_closes_the_check_then_insert_race(
        self, service, monkeypatch, count_friendships
    ):
        assert (await service.send_friend_request(ALICE, BOB)).ok

        # Simulate a pre-check that ran before the concurrent insert committed
        lookups = []
        real_get_between = service.repo.get_between

        async def stale_get_between(user1_id, user2_id):
            lookups.append((user1_id, user2_id))
            if len(lookups) == 1:
                return None
            return await real_get_between(user1_id, user2_id)

        monkeypatch.setattr(service.repo, "get_between", stale_get_between)

        result = await service.send_friend_request(BOB, ALICE)

        assert result.error == FriendshipError.REQUEST_ALREADY_PENDING
        assert len(lookups) == 2
        assert await count_friendships() == 1

    async def test_concurrent_crossed_requests_create_one_record(self, session_factory, count_friendships):
        async with session_factory() as first, session_factory() as second:
            results = await asyncio.gather(
                FriendshipService(first).send_friend_request(ALICE, BOB),
                FriendshipService(second).send_friend_request(BOB, ALICE),
            )

        assert sorted(r.ok for r in results) == [False, True]
        assert [r.error for r in results if not r.ok] == [FriendshipError.REQUEST_ALREADY_PENDING]
        assert await count_friendships() == 1


class TestAcceptFriendRequest:

    async def test_receiver_accepts(self, service):
        sent = await service.send_friend_request(ALICE, BOB)

        result = await service.accept_friend_request(BOB, sent.data.id)

        assert result.ok
        assert result.data.id == sent.data.id
        assert result.data.status == FriendshipStatus.ACCEPTED

    async def test_requester_cannot_accept_own_request(self, service):
        sent = await service.send_friend_request(ALICE, BOB)

        result = await service.accept_friend_request(ALICE, sent.data.id)

        assert result.error == FriendshipError.FORBIDDEN
        assert await service.check_friendship_status(ALICE, BOB) == RelationshipStatus.SENT

    async def test_third_party_cannot_accept(self, service):
        sent = await service.send_friend_request(ALICE, BOB)

        result = await service.accept_friend_request(CAROL, sent.data.id)

        assert result.error == FriendshipError.FORBIDDEN

    async def test_unknown_request(self, service):
        result = await service.accept_friend_request(BOB, "missing-id")

        assert result.error == FriendshipError.NOT_FOUND


class TestRejectFriendRequest:

    async def test_receiver_rejects_and_pair_can_start_over(self, service):
        sent = await service.send_friend_request(ALICE, BOB)

        result = await service.reject_friend_request(BOB, sent.data.id)

        assert result.ok
        assert await service.check_friendship_status(ALICE, BOB) == RelationshipStatus.NONE
        assert (await service.send_friend_request(ALICE, BOB)).ok

    async def test_requester_cannot_reject(self, service):
        sent = await service.send_friend_request(ALICE, BOB)

        result = await service.reject_friend_request(ALICE, sent.data.id)

        assert result.error == FriendshipError.FORBIDDEN
        assert await service.check_friendship_status(BOB, ALICE) == RelationshipStatus.PENDING

    async def test_unknown_request(self, service):
        result = await service.reject_friend_request(BOB, "missing-id")

        assert result.error == FriendshipError.NOT_FOUND

    async def test_rejecting_twice_is_not_found(self, service):
        sent = await service.send_friend_request(ALICE, BOB)
        assert (await service.reject_friend_request(BOB, sent.data.id)).ok

        result = await service.reject_friend_request(BOB, sent.data.id)

        assert result.error == FriendshipError.NOT_FOUND

    async def test_receiver_can_remove_accepted_friendship(self, service):
        friendship = await befriend(service, ALICE, BOB)

        result = await service.reject_friend_request(BOB, friendship.id)

        assert result.ok
        assert (await service.get_friends_list(ALICE)).total_count == 0


class TestQueries:

    async def test_friends_list_is_symmetric_and_excludes_pending(self, service):
        await befriend(service, ALICE, BOB)
        await befriend(service, CAROL, ALICE)
        await service.send_friend_request(BOB, CAROL)

        alice_friends = await service.get_friends_list(ALICE)
        bob_friends = await service.get_friends_list(BOB)

        assert {f.id for f in alice_friends.friends} == {BOB, CAROL}
        assert alice_friends.total_count == 2
        assert [f.id for f in bob_friends.friends] == [ALICE]
        assert bob_friends.friends[0].username == "alice"

    async def test_friends_list_empty(self, service):
        result = await service.get_friends_list(ALICE)

        assert result.friends == []
        assert result.total_count == 0

    async def test_friends_without_profile_are_skipped(self, service):
        sent = await service.send_friend_request("user_ghost", ALICE)
        await service.accept_friend_request(ALICE, sent.data.id)

        result = await service.get_friends_list(ALICE)

        assert result.friends == []

    async def test_pending_requests_are_incoming_only(self, service):
        incoming = await service.send_friend_request(BOB, ALICE)
        await service.send_friend_request(ALICE, CAROL)

        result = await service.get_pending_requests(ALICE)

        assert result.total_count == 1
        assert result.requests[0].friendship_id == incoming.data.id
        assert result.requests[0].requester.id == BOB
        assert result.requests[0].requester.username == "bob"

    async def test_accepted_requests_leave_pending_list(self, service):
        await befriend(service, BOB, ALICE)

        assert (await service.get_pending_requests(ALICE)).total_count == 0

    async def test_status_from_both_sides(self, service):
        assert await service.check_friendship_status(ALICE, BOB) == RelationshipStatus.NONE
        assert await service.check_friendship_status(BOB, ALICE) == RelationshipStatus.NONE

        sent = await service.send_friend_request(ALICE, BOB)
        assert await service.check_friendship_status(ALICE, BOB) == RelationshipStatus.SENT
        assert await service.check_friendship_status(BOB, ALICE) == RelationshipStatus.PENDING

        await service.accept_friend_request(BOB, sent.data.id)
        assert await service.check_friendship_status(ALICE, BOB) == RelationshipStatus.FRIENDS
        assert await service.check_friendship_status(BOB, ALICE) == RelationshipStatus.FRIENDS


class TestSearchUsers:

    @pytest.mark.parametrize("query", ["", "a", " "])
    async def test_short_query_skips_directory(self, service, monkeypatch, query):
        async def fail(*args, **kwargs):
            raise AssertionError("directory should not be queried")

        monkeypatch.setattr(service.profiles, "find_by_name_substring", fail)

        assert await service.search_users(ALICE, query) == []

    async def test_matches_substring_and_excludes_caller(self, service):
        results = await service.search_users(ALICE, "li")

        assert [r.id for r in results] == ["user_alicia"]
        assert all(r.friendship_status is None for r in results)

    async def test_query_is_matched_unstripped(self, service, db_session):
        db_session.add(Profile(id="user_ann", username="ann a"))
        await db_session.commit()

        results = await service.search_users(ALICE, " a")

        assert [r.id for r in results] == ["user_ann"]

    async def test_result_size_is_capped(self, service, db_session):
        db_session.add_all(
            Profile(id=f"user_fan_{i:02d}", username=f"fan{i:02d}") for i in range(15)
        )
        await db_session.commit()

        results = await service.search_users(ALICE, "fan")

        assert len(results) == 10

    async def test_annotates_status(self, service):
        await befriend(service, ALICE, BOB)
        await service.send_friend_request(CAROL, ALICE)

        results = await service.search_users(BOB, "a", with_status=True)
        assert results == []

        results = await service.search_users(ALICE, "ob", with_status=True)
        assert [(r.id, r.friendship_status) for r in results] == [(BOB, RelationshipStatus.FRIENDS)]

        results = await service.search_users(ALICE, "ar", with_status=True)
        assert [(r.id, r.friendship_status) for r in results] == [(CAROL, RelationshipStatus.PENDING)]

        results = {r.id: r.friendship_status for r in await service.search_users(CAROL, "ali", with_status=True)}
        assert results == {
            ALICE: RelationshipStatus.SENT,
            "user_alicia": RelationshipStatus.NONE,
        }
