"""
Result Index - the test_results fact table.

Every graded attempt is appended here as an immutable row:
    {test_id, student_id, score, passed, answers, completed_at, application_id}

Rows are never updated. Several rows may exist for the same
(test_id, student_id) pair when a student re-submits, so readers
pick the most relevant one:
    1. a row carrying the exact application_id
    2. otherwise the first row for (test_id, student_id)
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from edumatch.core.exceptions import NotFoundError, PermissionDeniedError
from edumatch.db.mongodb import COLLECTIONS
from edumatch.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

RESULTS = COLLECTIONS["test_results"]


class ResultIndex:
    """Read/append access to test results."""

    def __init__(self, store: DocumentStore = None):
        self.store = store if store is not None else DocumentStore()

    def insert(
        self,
        test_id: str,
        student_id: str,
        score: int,
        passed: bool,
        answers: Dict[str, Any],
        completed_at: datetime,
        application_id: Optional[str] = None
    ) -> dict:
        """Append a result row. Returns the stored row including its id."""
        row = {
            "test_id": test_id,
            "student_id": student_id,
            "score": score,
            "passed": passed,
            "answers": answers,
            "completed_at": completed_at,
            "application_id": application_id
        }
        row["id"] = self.store.add(RESULTS, row)
        logger.info(
            "Test result %s saved: test=%s student=%s score=%s passed=%s",
            row["id"], test_id, student_id, score, passed
        )
        return row

    def get(self, result_id: str) -> Optional[dict]:
        return self.store.get(f"{RESULTS}/{result_id}")

    def find_for_student(self, student_id: str) -> List[dict]:
        return self.store.query(RESULTS, student_id=student_id)

    def find_for_test(self, test_id: str, student_id: str) -> List[dict]:
        return self.store.query(RESULTS, test_id=test_id, student_id=student_id)

    def find_for_application(self, application_id: str) -> List[dict]:
        return self.store.query(RESULTS, application_id=application_id)

    def find_relevant(
        self,
        test_id: str,
        student_id: str,
        application_id: Optional[str] = None
    ) -> Optional[dict]:
        """
        Pick the result that best answers "did this student take this test".

        Prefers a row linked to application_id (scoped to the same student),
        then falls back to the first (test_id, student_id) row.
        """
        if application_id:
            for row in self.find_for_application(application_id):
                if row.get("student_id") == student_id:
                    return row
        rows = self.find_for_test(test_id, student_id)
        return rows[0] if rows else None

    def get_owned_result(self, result_or_test_id: str, student_id: str) -> dict:
        """
        Result page lookup.

        The id is tried as a result id first. A result that belongs to
        another student is refused. If no result has that id, the id is
        treated as a test id and the student's first row for it is used.
        """
        row = self.get(result_or_test_id)
        if row is not None:
            if row.get("student_id") != student_id:
                raise PermissionDeniedError("You can only view your own test results")
            return row

        logger.info("No result with id %s, trying it as a test id", result_or_test_id)
        rows = self.find_for_test(result_or_test_id, student_id)
        if not rows:
            raise NotFoundError("Test result not found")
        return rows[0]
