"""
Student Routes

GET /students/me/tests - Dashboard: elective + required tests
GET /students/me/tests/pending - Tests owed because of approved applications
GET /students/me/applications - My applications (with test results)
POST /students/me/applications - Apply to a course
"""

from fastapi import APIRouter, Depends
from typing import List

from edumatch.api.errors import http_error
from edumatch.core.auth import get_current_student
from edumatch.core.exceptions import EduMatchError
from edumatch.services.application_service import ApplicationService
from edumatch.services.assignment_service import TestAssignmentResolver
from edumatch.services.document_store import DocumentStore, get_document_store
from edumatch.schemas.schemas import (
    ApplicationCreate, ApplicationResponse, DashboardTest, PendingTest
)

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("/me/tests", response_model=List[DashboardTest])
async def get_dashboard_tests(
    student: dict = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store)
):
    """
    All tests shown on the student dashboard.

    Required tests (from approved applications) replace the elective
    entry for the same test; required tests already taken are hidden.
    """
    resolver = TestAssignmentResolver(store)
    return resolver.get_dashboard_tests(student["student_id"])


@router.get("/me/tests/pending", response_model=List[PendingTest])
async def get_pending_tests(
    student: dict = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store)
):
    """Tests the student must take for approved applications."""
    resolver = TestAssignmentResolver(store)
    return resolver.get_pending_tests(student["student_id"])


@router.get("/me/applications", response_model=List[ApplicationResponse])
async def get_my_applications(
    student: dict = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store)
):
    """Get all applications for current student."""
    service = ApplicationService(store)
    return service.list_for_student(student["student_id"])


@router.post("/me/applications", response_model=ApplicationResponse, status_code=201)
async def apply(
    data: ApplicationCreate,
    student: dict = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store)
):
    """Submit an application to a college course."""
    service = ApplicationService(store)
    try:
        return service.create(student["student_id"], data.college_id, data.course_id)
    except EduMatchError as e:
        raise http_error(e)
