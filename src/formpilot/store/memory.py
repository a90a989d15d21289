"""In-memory test-case store."""

import uuid
from typing import Any, Dict, List, Mapping, Optional

from formpilot.models.step_models import TestCase, decode_test_case
from formpilot.store.base import BaseTestCaseStore


class InMemoryTestCaseStore(BaseTestCaseStore):
    """Keeps test-case documents in a dict, in the same shape Redis holds them."""

    def __init__(self, documents: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._documents: Dict[str, Dict[str, Any]] = {
            str(key): dict(document) for key, document in (documents or {}).items()
        }

    async def find_test_case(self, test_case_id: str) -> Optional[TestCase]:
        document = self._documents.get(test_case_id)
        if document is None:
            return None
        test_case = decode_test_case(document)
        return test_case if test_case.id else test_case.model_copy(update={"id": test_case_id})

    async def save_test_case(self, test_case: TestCase) -> str:
        test_case_id = test_case.id or uuid.uuid4().hex
        stored = test_case.model_copy(update={"id": test_case_id})
        self._documents[test_case_id] = stored.to_document()
        return test_case_id

    async def list_test_case_ids(self) -> List[str]:
        return sorted(self._documents)
