"""Tests for the Redis entry-list cache."""

import json
from unittest.mock import MagicMock

import pytest
import redis
from httpx import AsyncClient

from pain_tracker.core.redis_client import CacheManager


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    assert cache_manager.get_json("test_key") is None
    mock_redis.get.assert_called_once_with("test_key")

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '[{"id": "e1", "pain_level": 4}]'
    assert cache_manager.get_json("test_key") == [{"id": "e1", "pain_level": 4}]


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.set_json("test_key", {"value": 1}) is True
    mock_redis.set.assert_called_once_with("test_key", '{"value": 1}')

    mock_redis.reset_mock()
    assert cache_manager.set_json("test_key", {"value": 1}, ttl=300) is True
    mock_redis.setex.assert_called_once_with("test_key", 300, '{"value": 1}')


def test_cache_manager_fails_open():
    """Redis outages read as misses and never raise."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = redis.ConnectionError("down")
    mock_redis.setex.side_effect = redis.ConnectionError("down")
    mock_redis.delete.side_effect = redis.ConnectionError("down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("test_key") is None
    assert cache_manager.set_json("test_key", [], ttl=60) is False
    assert cache_manager.delete("test_key") is False


def test_cache_manager_ignores_corrupt_values():
    mock_redis = MagicMock()
    mock_redis.get.return_value = "{not json"
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("test_key") is None


@pytest.fixture
def dict_redis(mock_redis: MagicMock) -> dict:
    """Back the Redis double with a dict so cached lists can be read back."""
    store: dict[str, str] = {}
    mock_redis.get.side_effect = store.get
    mock_redis.setex.side_effect = lambda key, ttl, value: store.__setitem__(key, value)
    mock_redis.delete.side_effect = lambda key: store.pop(key, None)
    return store


@pytest.mark.asyncio
async def test_entry_list_is_cached_per_user(
    client: AsyncClient,
    auth_headers: dict,
    dict_redis: dict,
):
    """Listing entries stores them under the user's cache key."""
    await client.post(
        "/api/v1/pain-entries",
        json={"pain_level": 6, "date": "2024-03-01"},
        headers=auth_headers,
    )

    response = await client.get("/api/v1/pain-entries", headers=auth_headers)
    assert response.status_code == 200

    cached = json.loads(dict_redis["pain_entries:user-123"])
    assert [item["pain_level"] for item in cached] == [6]


@pytest.mark.asyncio
async def test_cached_entries_are_served_without_firestore(
    client: AsyncClient,
    auth_headers: dict,
    dict_redis: dict,
    firestore_db,
):
    """A warm cache answers even when Firestore is unavailable."""
    await client.post(
        "/api/v1/pain-entries",
        json={"pain_level": 6, "date": "2024-03-01"},
        headers=auth_headers,
    )
    await client.get("/api/v1/pain-entries", headers=auth_headers)

    firestore_db.fail_on.add("stream")
    response = await client.get("/api/v1/pain-entries", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_entry_cache_invalidated_on_write(
    client: AsyncClient,
    auth_headers: dict,
    dict_redis: dict,
):
    """Creating and deleting entries drops the stale list."""
    await client.get("/api/v1/pain-entries", headers=auth_headers)
    assert json.loads(dict_redis["pain_entries:user-123"]) == []

    created = await client.post(
        "/api/v1/pain-entries",
        json={"pain_level": 3, "date": "2024-03-02"},
        headers=auth_headers,
    )
    assert "pain_entries:user-123" not in dict_redis

    response = await client.get("/api/v1/pain-entries", headers=auth_headers)
    assert response.json()["total"] == 1

    deleted = await client.delete(
        f"/api/v1/pain-entries/{created.json()['id']}",
        headers=auth_headers,
    )
    assert deleted.json()["total"] == 0
    assert json.loads(dict_redis["pain_entries:user-123"]) == []
