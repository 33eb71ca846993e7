"""
Application Service - applications and their owners.

Applications live in a per-student sub-collection:
    students/{student_id}/applications/{application_id}

Callers that only know the application id (e.g. the grader) go through
ApplicationLocator, which uses the application_index collection
(application id -> student id) and falls back to scanning every
student when the index has no usable entry.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from pymongo.errors import PyMongoError

from edumatch.core.config import get_settings
from edumatch.core.exceptions import NotFoundError
from edumatch.db.mongodb import COLLECTIONS
from edumatch.schemas.schemas import ApplicationStatus
from edumatch.services.document_store import DocumentStore
from edumatch.services.profile_service import CollegeService, StudentService
from edumatch.services.result_index import ResultIndex

logger = logging.getLogger(__name__)


def application_path(student_id: str, application_id: str) -> str:
    return f"{COLLECTIONS['students']}/{student_id}/applications/{application_id}"


def applications_path(student_id: str) -> str:
    return f"{COLLECTIONS['students']}/{student_id}/applications"


def index_path(application_id: str) -> str:
    return f"{COLLECTIONS['application_index']}/{application_id}"


# ============================================================
# OWNER LOOKUP
# ============================================================

class ApplicationLocator:
    """Finds the student that owns an application id."""

    def __init__(self, store: DocumentStore = None, use_index: Optional[bool] = None):
        self.store = store if store is not None else DocumentStore()
        if use_index is None:
            use_index = get_settings().use_application_index
        self.use_index = use_index

    def remember(self, application_id: str, student_id: str) -> None:
        """Write (or overwrite) the index entry for an application."""
        self.store.set(index_path(application_id), {"student_id": student_id})

    def locate(self, application_id: str) -> Tuple[str, dict]:
        """
        Return (student_id, application document).

        Raises NotFoundError if no student owns the application.
        Nothing is written in that case.
        """
        if self.use_index:
            entry = self.store.get(index_path(application_id))
            if entry is not None:
                student_id = entry.get("student_id")
                application = self.store.get(application_path(student_id, application_id))
                if application is not None:
                    return student_id, application
                logger.warning(
                    "Index entry for application %s points at student %s but the application is not there",
                    application_id, student_id
                )

        students = self.store.list(COLLECTIONS["students"])
        logger.info("Searching for application %s in %d student documents", application_id, len(students))

        for student in students:
            student_id = student["id"]
            application = self.store.get(application_path(student_id, application_id))
            if application is not None:
                logger.info("Found application %s under student %s", application_id, student_id)
                if self.use_index:
                    self.remember(application_id, student_id)
                return student_id, application

        logger.error("Application %s not found in any student subcollection", application_id)
        raise NotFoundError("Application not found in any student subcollection")


# ============================================================
# APPLICATION LIFECYCLE
# ============================================================

class ApplicationService:
    """
    Student applications: submit, review, list.
    """

    def __init__(self, store: DocumentStore = None):
        self.store = store if store is not None else DocumentStore()
        self.students = StudentService(self.store)
        self.colleges = CollegeService(self.store)
        self.results = ResultIndex(self.store)
        self.locator = ApplicationLocator(self.store)

    def get(self, student_id: str, application_id: str) -> Optional[dict]:
        return self.store.get(application_path(student_id, application_id))

    def create(self, student_id: str, college_id: str, course_id: str) -> dict:
        """
        Submit a new application (status 'pending').

        The application_index entry is written alongside so that the
        reconciler can find the owner without a scan.
        """
        student = self.students.get(student_id)
        if student is None:
            raise NotFoundError("Student not found")
        if self.colleges.get(college_id) is None:
            raise NotFoundError("College not found")

        now = datetime.now(timezone.utc)
        application = {
            "student_id": student_id,
            "student_profile": {"full_name": student.get("full_name") or "Unknown Student"},
            "college_id": college_id,
            "course_id": course_id,
            "course_name": self.colleges.get_course_name(college_id, course_id),
            "status": ApplicationStatus.pending.value,
            "created_at": now,
            "updated_at": now
        }
        application["id"] = self.store.add(applications_path(student_id), application)
        self.locator.remember(application["id"], student_id)

        logger.info("Application %s submitted by student %s to college %s",
                    application["id"], student_id, college_id)
        return application

    def review(
        self,
        college_id: str,
        student_id: str,
        application_id: str,
        status: ApplicationStatus,
        notes: Optional[str] = None,
        aptitude_test_id: Optional[str] = None
    ) -> dict:
        """
        Reviewer decision on an application.

        The aptitude test is only attached when the application is
        approved; it must be one of the reviewing college's tests.
        """
        path = application_path(student_id, application_id)
        application = self.store.get(path)
        if application is None or application.get("college_id") != college_id:
            raise NotFoundError("Application not found")

        update = {
            "status": status.value,
            "notes": notes,
            "updated_at": datetime.now(timezone.utc)
        }

        if status == ApplicationStatus.approved and aptitude_test_id:
            test = self.store.get(f"{COLLECTIONS['aptitude_tests']}/{aptitude_test_id}")
            if test is None or test.get("college_id") != college_id:
                raise NotFoundError("Aptitude test not found")
            update["aptitude_test_id"] = aptitude_test_id

        self.store.update(path, update)
        logger.info("Application %s reviewed: %s -> %s (test=%s)",
                    application_id, application.get("status"), status.value,
                    update.get("aptitude_test_id"))

        application.update(update)
        return application

    def list_for_student(self, student_id: str) -> List[dict]:
        """
        All applications of a student.

        Test-gated applications without an embedded test_result get
        it back-filled from the results table. A failed back-fill
        write is logged and the listing carries on.
        """
        applications = self.store.list(applications_path(student_id))

        for application in applications:
            test_id = application.get("aptitude_test_id")
            if not test_id or application.get("test_result"):
                continue

            row = self.results.find_relevant(test_id, student_id, application["id"])
            if row is None:
                continue

            snapshot = {
                "score": row["score"],
                "passed": row["passed"],
                "completed_at": row["completed_at"]
            }
            application["test_result"] = snapshot
            try:
                self.store.update(
                    application_path(student_id, application["id"]),
                    {"test_result": snapshot, "updated_at": datetime.now(timezone.utc)}
                )
                logger.info("Back-filled test result of application %s from result %s",
                            application["id"], row["id"])
            except PyMongoError as e:
                logger.warning("Could not back-fill application %s: %s", application["id"], e)

        return applications
