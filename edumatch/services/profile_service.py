"""
Profile lookups shared by the other services.

The auth provider hands us an opaque identity (token `sub`). Student
and college documents carry it in their `profile_id` field; the
document id is never assumed to equal the identity.
"""

import logging
from typing import Optional

from pymongo.errors import PyMongoError

from edumatch.core.exceptions import NotFoundError
from edumatch.db.mongodb import COLLECTIONS
from edumatch.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

UNKNOWN_COLLEGE = "Unknown College"
UNKNOWN_COURSE = "Unknown Course"


class StudentService:

    def __init__(self, store: DocumentStore = None):
        self.store = store if store is not None else DocumentStore()

    def get(self, student_id: str) -> Optional[dict]:
        return self.store.get(f"{COLLECTIONS['students']}/{student_id}")

    def resolve_student_id(self, profile_id: str) -> str:
        """Map an auth identity to the student document id."""
        docs = self.store.query(COLLECTIONS["students"], profile_id=profile_id)
        if not docs:
            raise NotFoundError("Student profile not found. Please complete your profile first.")
        return docs[0]["id"]


class CollegeService:

    def __init__(self, store: DocumentStore = None):
        self.store = store if store is not None else DocumentStore()

    def get(self, college_id: str) -> Optional[dict]:
        return self.store.get(f"{COLLECTIONS['colleges']}/{college_id}")

    def resolve_college_id(self, profile_id: str) -> str:
        """Map an auth identity to the college document id."""
        docs = self.store.query(COLLECTIONS["colleges"], profile_id=profile_id)
        if not docs:
            raise NotFoundError("College profile not found. Please complete your profile first.")
        return docs[0]["id"]

    def get_name(self, college_id: Optional[str]) -> str:
        """Display name, best effort: any miss yields a placeholder."""
        if not college_id:
            return UNKNOWN_COLLEGE
        try:
            college = self.get(college_id)
        except PyMongoError as e:
            logger.warning("College lookup for %s failed: %s", college_id, e)
            return UNKNOWN_COLLEGE
        if college is None:
            logger.warning("College %s not found, using placeholder name", college_id)
            return UNKNOWN_COLLEGE
        return college.get("name") or UNKNOWN_COLLEGE

    def get_course_name(self, college_id: str, course_id: str) -> str:
        course = self.store.get(f"{COLLECTIONS['colleges']}/{college_id}/courses/{course_id}")
        if course is None:
            logger.warning("Course %s not found under college %s", course_id, college_id)
            return UNKNOWN_COURSE
        return course.get("name") or UNKNOWN_COURSE
