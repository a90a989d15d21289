"""Redis-backed test-case store.

Test cases are stored as JSON documents under ``{prefix}:{id}`` keys, in the
document shape ``{"_id", "title", "testSteps": [...]}``.
"""

import json
import logging
import uuid
from typing import List, Optional

from redis.asyncio import Redis, ConnectionPool
from redis.exceptions import RedisError

from formpilot.models.step_models import TestCase, decode_test_case
from formpilot.store.base import BaseTestCaseStore

logger = logging.getLogger(__name__)


class RedisTestCaseStore(BaseTestCaseStore):
    """Test-case store on Redis with a lazily created connection pool."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "testcase",
        max_connections: int = 10,
    ):
        """
        Initialize the store without connecting.

        Args:
            redis_url: Redis connection URL
            prefix: Key prefix for test-case documents
            max_connections: Connection pool size
        """
        self.redis_url = redis_url
        self.prefix = prefix
        self.max_connections = max_connections
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = None

    async def _get_redis(self) -> Redis:
        if self._redis is None:
            self._pool = ConnectionPool.from_url(
                self.redis_url,
                max_connections=self.max_connections,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)
            logger.debug(f"Created Redis client for {self.redis_url}")
        return self._redis

    def _key(self, test_case_id: str) -> str:
        return f"{self.prefix}:{test_case_id}"

    async def find_test_case(self, test_case_id: str) -> Optional[TestCase]:
        redis = await self._get_redis()
        try:
            data = await redis.get(self._key(test_case_id))
        except RedisError as e:
            logger.error(f"Failed to load test case {test_case_id}: {e}")
            raise

        if not data:
            logger.debug(f"Test case {test_case_id} not found")
            return None

        test_case = decode_test_case(json.loads(data))
        if not test_case.id:
            test_case = test_case.model_copy(update={"id": test_case_id})
        if test_case.rejected_steps:
            logger.warning(
                f"Test case {test_case_id} has {len(test_case.rejected_steps)} undecodable step(s)"
            )
        logger.info(f"Loaded test case {test_case_id}: {test_case.title}")
        return test_case

    async def save_test_case(self, test_case: TestCase) -> str:
        redis = await self._get_redis()
        test_case_id = test_case.id or uuid.uuid4().hex
        document = test_case.model_copy(update={"id": test_case_id}).to_document()
        try:
            await redis.set(self._key(test_case_id), json.dumps(document))
        except RedisError as e:
            logger.error(f"Failed to store test case {test_case_id}: {e}")
            raise
        logger.debug(f"Stored test case {test_case_id}")
        return test_case_id

    async def list_test_case_ids(self) -> List[str]:
        redis = await self._get_redis()
        marker = f"{self.prefix}:"
        ids = []
        try:
            async for key in redis.scan_iter(match=f"{marker}*", count=100):
                ids.append(key[len(marker):])
        except RedisError as e:
            logger.error(f"Failed to list test cases: {e}")
            raise
        return sorted(ids)

    async def close(self) -> None:
        """Close the Redis client and its connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None
