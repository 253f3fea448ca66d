"""Unit tests for the user analytics operation."""

import pytest

from kvlab.batch.config import BatchConfig, RetryPolicy
from kvlab.batch.core import StoreRejectedError
from kvlab.batch.operations import get_user_analytics
from kvlab.batch.stores import InMemoryStore


def _profile(uid, name, tier="basic"):
    return {
        "PK": f"USER#{uid}",
        "SK": f"PROFILE#{uid}",
        "entity_type": "PROFILE",
        "name": name,
        "subscription_tier": tier,
    }


def _history(uid, movie_id, duration=120):
    return {
        "PK": f"USER#{uid}",
        "SK": "VIEWING#",
        "entity_type": "VIEWING",
        "movie_id": movie_id,
        "watch_duration": duration,
        "completed": True,
        "watch_date": "2024-03-01",
    }


FAST = BatchConfig(retry=RetryPolicy(max_attempts=2, base_delay=0.0, max_delay=0.0))


@pytest.fixture
def library():
    return InMemoryStore(
        [_profile("1", "Ann", "premium"), _history("1", "m7"), _profile("2", "Bo")]
    )


class TestGetUserAnalytics:
    """Test get_user_analytics."""

    @pytest.mark.asyncio
    async def test_joins_profiles_and_history(self, library):
        """Test each user gets their profile and viewing history."""
        response = await get_user_analytics(library, ["1", "2"], FAST)

        assert response.success is True
        assert response.message == "All items retrieved successfully"
        assert [u.user_id for u in response.data] == ["1", "2"]
        ann, bo = response.data
        assert ann.subscription_tier == "premium"
        assert [h.movie_id for h in ann.viewing_history] == ["m7"]
        assert bo.viewing_history == []

    @pytest.mark.asyncio
    async def test_two_keys_per_user_in_one_call(self, library):
        """Test profile and history keys are read together."""
        await get_user_analytics(library, ["1", "2"], FAST)

        assert library.calls[0].identities == (
            ("USER#1", "PROFILE#1"),
            ("USER#1", "VIEWING#"),
            ("USER#2", "PROFILE#2"),
            ("USER#2", "VIEWING#"),
        )

    @pytest.mark.asyncio
    async def test_duplicate_ids_deduplicated(self, library):
        """Test repeated ids are read once."""
        response = await get_user_analytics(library, ["1", "1"], FAST)

        assert [u.user_id for u in response.data] == ["1"]
        assert len(library.calls[0].identities) == 2

    @pytest.mark.asyncio
    async def test_missing_profile_skipped(self, library):
        """Test users without a profile are left out of data."""
        response = await get_user_analytics(library, ["1", "99"], FAST)

        assert response.success is True
        assert [u.user_id for u in response.data] == ["1"]

    @pytest.mark.asyncio
    async def test_unprocessed_keys_reported(self, library):
        """Test keys the store keeps declining are reported, not dropped."""
        library.schedule_unprocessed(1, times=2)

        response = await get_user_analytics(library, ["1", "2"], FAST)

        assert response.success is False
        assert response.message == "Some items could not be retrieved after maximum retries"
        assert [str(u.request.key) for u in response.result.unprocessed] == ["USER#2/VIEWING#"]
        assert [u.user_id for u in response.data] == ["1", "2"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_ids,error",
        [
            ([], "User IDs array cannot be empty"),
            ([str(i) for i in range(101)], "Cannot process more than 100 items in a batch"),
            (["1", "abc"], "Invalid user ID format detected"),
        ],
    )
    async def test_validation(self, library, user_ids, error):
        """Test invalid input returns an error without store calls."""
        response = await get_user_analytics(library, user_ids, FAST)

        assert response.success is False
        assert response.error == error
        assert library.calls == []

    @pytest.mark.asyncio
    async def test_store_fault_reported(self, library):
        """Test a non-retryable fault comes back as a top-level error."""
        library.schedule_fault(StoreRejectedError("access denied"))

        response = await get_user_analytics(library, ["1"], FAST)

        assert response.success is False
        assert response.data == []
        assert response.error == "No entries completed: non-retryable store fault: access denied"
