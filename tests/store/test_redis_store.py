"""Unit tests for the Redis test-case store."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import RedisError

from formpilot.models.step_models import StepAction, TestCase, TestStep
from formpilot.store.redis_store import RedisTestCaseStore

DOCUMENT = {
    "_id": "enrollment",
    "title": "Enrollment success",
    "testSteps": [
        {"step": 1, "action": "NAVIGATE", "target": "http://localhost:4200/enroll"},
        {"step": 2, "action": "CLICK_ELEMENT", "target": "submit"},
    ],
}


async def _scan(keys):
    for key in keys:
        yield key


@pytest.fixture
def store():
    return RedisTestCaseStore(redis_url="redis://localhost:6379/0", prefix="testcase")


@pytest.mark.asyncio
class TestRedisTestCaseStore:
    """Test suite for RedisTestCaseStore."""

    async def test_init(self, store):
        assert store.prefix == "testcase"
        assert store._redis is None

    @patch("formpilot.store.redis_store.Redis")
    @patch("formpilot.store.redis_store.ConnectionPool")
    async def test_find_test_case(self, mock_pool_class, mock_redis_class, store):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=json.dumps(DOCUMENT))
        mock_redis_class.return_value = mock_redis

        test_case = await store.find_test_case("enrollment")

        mock_redis.get.assert_awaited_once_with("testcase:enrollment")
        mock_pool_class.from_url.assert_called_once_with(
            "redis://localhost:6379/0", max_connections=10, decode_responses=True
        )
        assert test_case.title == "Enrollment success"
        assert [step.action for step in test_case.steps] == [
            StepAction.NAVIGATE,
            StepAction.CLICK_ELEMENT,
        ]

    @patch("formpilot.store.redis_store.Redis")
    @patch("formpilot.store.redis_store.ConnectionPool")
    async def test_find_missing(self, mock_pool_class, mock_redis_class, store):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=None)
        mock_redis_class.return_value = mock_redis

        assert await store.find_test_case("nope") is None

    @patch("formpilot.store.redis_store.Redis")
    @patch("formpilot.store.redis_store.ConnectionPool")
    async def test_find_fills_missing_id(self, mock_pool_class, mock_redis_class, store):
        document = {key: value for key, value in DOCUMENT.items() if key != "_id"}
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=json.dumps(document))
        mock_redis_class.return_value = mock_redis

        test_case = await store.find_test_case("enrollment")

        assert test_case.id == "enrollment"

    @patch("formpilot.store.redis_store.Redis")
    @patch("formpilot.store.redis_store.ConnectionPool")
    async def test_save_test_case(self, mock_pool_class, mock_redis_class, store):
        mock_redis = AsyncMock()
        mock_redis_class.return_value = mock_redis
        test_case = TestCase(
            id="smoke",
            title="Smoke",
            steps=[TestStep(index=1, action=StepAction.NAVIGATE, target="http://localhost")],
        )

        assert await store.save_test_case(test_case) == "smoke"

        key, payload = mock_redis.set.call_args[0]
        assert key == "testcase:smoke"
        document = json.loads(payload)
        assert document["_id"] == "smoke"
        assert document["testSteps"][0]["action"] == "NAVIGATE"
        assert document["testSteps"][0]["step"] == 1

    @patch("formpilot.store.redis_store.Redis")
    @patch("formpilot.store.redis_store.ConnectionPool")
    async def test_list_ids(self, mock_pool_class, mock_redis_class, store):
        mock_redis = MagicMock()
        mock_redis.scan_iter = MagicMock(return_value=_scan(["testcase:b", "testcase:a"]))
        mock_redis_class.return_value = mock_redis

        assert await store.list_test_case_ids() == ["a", "b"]
        mock_redis.scan_iter.assert_called_once_with(match="testcase:*", count=100)

    @patch("formpilot.store.redis_store.Redis")
    @patch("formpilot.store.redis_store.ConnectionPool")
    async def test_redis_error_propagates(self, mock_pool_class, mock_redis_class, store):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(side_effect=RedisError("connection refused"))
        mock_redis_class.return_value = mock_redis

        with pytest.raises(RedisError):
            await store.find_test_case("enrollment")

    @patch("formpilot.store.redis_store.Redis")
    @patch("formpilot.store.redis_store.ConnectionPool")
    async def test_close(self, mock_pool_class, mock_redis_class, store):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=None)
        mock_redis_class.return_value = mock_redis
        mock_pool = MagicMock()
        mock_pool.disconnect = AsyncMock()
        mock_pool_class.from_url.return_value = mock_pool

        await store.find_test_case("x")
        await store.close()

        mock_redis.aclose.assert_awaited_once()
        mock_pool.disconnect.assert_awaited_once()
        assert store._redis is None
