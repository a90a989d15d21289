"""Test-case storage."""

from formpilot.store.base import BaseTestCaseStore
from formpilot.store.files import load_test_case_file
from formpilot.store.memory import InMemoryTestCaseStore
from formpilot.store.redis_store import RedisTestCaseStore

__all__ = [
    "BaseTestCaseStore",
    "InMemoryTestCaseStore",
    "RedisTestCaseStore",
    "load_test_case_file",
]
