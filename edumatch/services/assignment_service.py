"""
Test Assignment Service

Works out which aptitude tests a student still owes.

A test is owed when an approved application names it in
aptitude_test_id and none of these say it was already taken:
1. the application's embedded test_result snapshot
2. a result row linked to the application id
3. a result row for the same test id and student

Applications and results live in separate collections with no
referential integrity, so all three signals are checked; any one of
them is enough to suppress the test.

The dashboard then merges the owed (required) tests with the global
list of elective tests.
"""

import logging
from typing import Dict, Iterable, List, Set, Tuple

from edumatch.db.mongodb import COLLECTIONS
from edumatch.schemas.schemas import ApplicationStatus, DashboardTest, PendingTest
from edumatch.services.application_service import applications_path
from edumatch.services.document_store import DocumentStore
from edumatch.services.profile_service import CollegeService
from edumatch.services.result_index import ResultIndex

logger = logging.getLogger(__name__)

DEFAULT_TEST_TITLE = "Aptitude Test"


def merge_dashboard_tests(
    electives: List[dict],
    required: List[PendingTest],
    results: List[dict],
    completed_required: Iterable[str] = ()
) -> List[DashboardTest]:
    """
    Combine elective tests with required ones.

    - every elective is listed, flagged completed if a result exists
    - a required test replaces the elective with the same id
    - a required test that was already completed is removed altogether,
      including its elective entry (completed_required holds those ids)
    """
    first_result: Dict[str, dict] = {}
    for row in results:
        first_result.setdefault(row.get("test_id"), row)
    completed_required = set(completed_required)

    merged: Dict[str, DashboardTest] = {}

    for test in electives:
        if test["id"] in completed_required:
            logger.info("Removing completed required test %s from dashboard", test["id"])
            continue
        result = first_result.get(test["id"])
        merged[test["id"]] = DashboardTest(
            test_id=test["id"],
            title=test.get("title") or "Untitled Test",
            description=test.get("description") or "",
            completed=result is not None,
            is_required=False,
            score=result.get("score") if result else None,
            result_id=result.get("id") if result else None
        )

    for pending in required:
        if pending.test_id in first_result or pending.test_id in completed_required:
            logger.info("Removing completed required test %s from dashboard", pending.test_id)
            merged.pop(pending.test_id, None)
            continue
        merged[pending.test_id] = DashboardTest(
            test_id=pending.test_id,
            title=pending.title,
            description=pending.description,
            completed=False,
            is_required=True,
            application_id=pending.application_id,
            college_name=pending.college_name
        )

    return list(merged.values())


def _completion_signals(results: List[dict]) -> Tuple[Set[str], Set[str]]:
    """(completed test ids, application ids linked to a result)"""
    completed_test_ids = {row.get("test_id") for row in results}
    completed_application_ids = {
        row["application_id"] for row in results if row.get("application_id")
    }
    return completed_test_ids, completed_application_ids


def _is_taken(application: dict, completed_test_ids: Set[str],
              completed_application_ids: Set[str]) -> bool:
    return bool(
        application.get("test_result")
        or application["id"] in completed_application_ids
        or application.get("aptitude_test_id") in completed_test_ids
    )


class TestAssignmentResolver:

    # not a pytest test class
    __test__ = False

    def __init__(self, store: DocumentStore = None):
        self.store = store if store is not None else DocumentStore()
        self.results = ResultIndex(self.store)
        self.colleges = CollegeService(self.store)

    def _approved_applications(self, student_id: str) -> List[dict]:
        return self.store.query(
            applications_path(student_id), status=ApplicationStatus.approved.value
        )

    def get_pending_tests(self, student_id: str) -> List[PendingTest]:
        """Tests required by the student's approved applications and not yet taken."""
        return self._resolve_pending(
            student_id,
            self._approved_applications(student_id),
            self.results.find_for_student(student_id)
        )

    def _resolve_pending(self, student_id: str, applications: List[dict],
                         results: List[dict]) -> List[PendingTest]:
        completed_test_ids, completed_application_ids = _completion_signals(results)
        logger.info("Student %s: %d approved applications, %d test results",
                    student_id, len(applications), len(results))

        pending: List[PendingTest] = []
        for application in applications:
            application_id = application["id"]
            test_id = application.get("aptitude_test_id")

            if application.get("test_result"):
                logger.debug("Skipping application %s - embedded test result", application_id)
                continue
            if application_id in completed_application_ids:
                logger.debug("Skipping application %s - result linked to application", application_id)
                continue
            if not test_id:
                logger.debug("Skipping application %s - no aptitude test assigned", application_id)
                continue
            if test_id in completed_test_ids:
                logger.debug("Skipping application %s - test %s already completed", application_id, test_id)
                continue

            test = self.store.get(f"{COLLECTIONS['aptitude_tests']}/{test_id}")
            if test is None:
                logger.warning("Application %s references missing test %s", application_id, test_id)
                continue

            pending.append(PendingTest(
                test_id=test_id,
                title=test.get("title") or DEFAULT_TEST_TITLE,
                description=test.get("description") or "",
                application_id=application_id,
                college_name=self.colleges.get_name(application.get("college_id")),
                is_required=True
            ))

        return pending

    def get_dashboard_tests(self, student_id: str) -> List[DashboardTest]:
        """Elective and required tests as the student dashboard lists them."""
        electives = self.store.list(COLLECTIONS["aptitude_tests"])
        applications = self._approved_applications(student_id)
        results = self.results.find_for_student(student_id)
        required = self._resolve_pending(student_id, applications, results)

        # required tests already taken never come back, not even as electives
        completed_test_ids, completed_application_ids = _completion_signals(results)
        completed_required = {
            application["aptitude_test_id"]
            for application in applications
            if application.get("aptitude_test_id")
            and _is_taken(application, completed_test_ids, completed_application_ids)
        }
        return merge_dashboard_tests(electives, required, results, completed_required)
