"""Abstract base class for test-case stores."""

from abc import ABC, abstractmethod
from typing import List, Optional

from formpilot.models.step_models import TestCase


class BaseTestCaseStore(ABC):
    """Abstract base class defining the test-case store interface."""

    @abstractmethod
    async def find_test_case(self, test_case_id: str) -> Optional[TestCase]:
        """
        Retrieve a test case by id.

        Args:
            test_case_id: Document identifier

        Returns:
            Decoded test case if found, None otherwise. Steps that cannot be
            decoded are kept as RejectedStep entries
        """
        pass

    @abstractmethod
    async def save_test_case(self, test_case: TestCase) -> str:
        """
        Store a test case, replacing any document with the same id.

        Args:
            test_case: Test case to store; an id is assigned when missing

        Returns:
            Id of the stored test case
        """
        pass

    @abstractmethod
    async def list_test_case_ids(self) -> List[str]:
        """
        List the ids of all stored test cases.

        Returns:
            Sorted list of ids
        """
        pass

    async def close(self) -> None:
        """Release any connections held by the store."""
        pass
