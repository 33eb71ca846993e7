"""
College Routes

POST /colleges/me/questions - Add a question to the college bank
GET /colleges/me/tests - List own aptitude tests
POST /colleges/me/tests - Create aptitude test
POST /colleges/me/tests/{test_id}/questions - Add questions to a test
DELETE /colleges/me/tests/{test_id}/questions - Remove questions from a test
PUT /colleges/me/applications/{student_id}/{application_id} - Review application
"""

from fastapi import APIRouter, Depends
from typing import List

from edumatch.api.errors import http_error
from edumatch.core.auth import get_current_college
from edumatch.core.exceptions import EduMatchError
from edumatch.services.application_service import ApplicationService
from edumatch.services.catalog_service import CatalogService
from edumatch.services.document_store import DocumentStore, get_document_store
from edumatch.schemas.schemas import (
    ApplicationResponse, ApplicationReview, AptitudeTestCreate, AptitudeTestResponse,
    Question, QuestionCreate, TestQuestionsUpdate
)

router = APIRouter(prefix="/colleges", tags=["Colleges"])


@router.post("/me/questions", response_model=Question, status_code=201)
async def add_question(
    data: QuestionCreate,
    college: dict = Depends(get_current_college),
    store: DocumentStore = Depends(get_document_store)
):
    """Add a question. Single-choice needs exactly one correct option."""
    try:
        question_id = CatalogService(store).add_question(college["college_id"], data)
    except EduMatchError as e:
        raise http_error(e)
    return Question(id=question_id, **data.model_dump(mode="json"))


@router.get("/me/tests", response_model=List[AptitudeTestResponse])
async def list_tests(
    college: dict = Depends(get_current_college),
    store: DocumentStore = Depends(get_document_store)
):
    return CatalogService(store).list_tests(college["college_id"])


@router.post("/me/tests", response_model=AptitudeTestResponse, status_code=201)
async def create_test(
    data: AptitudeTestCreate,
    college: dict = Depends(get_current_college),
    store: DocumentStore = Depends(get_document_store)
):
    """Create an aptitude test from questions of this college."""
    try:
        return CatalogService(store).create_test(
            college["college_id"], data.title, data.description, data.question_ids
        )
    except EduMatchError as e:
        raise http_error(e)


@router.post("/me/tests/{test_id}/questions", response_model=List[str])
async def add_test_questions(
    test_id: str,
    data: TestQuestionsUpdate,
    college: dict = Depends(get_current_college),
    store: DocumentStore = Depends(get_document_store)
):
    try:
        return CatalogService(store).add_questions_to_test(
            college["college_id"], test_id, data.question_ids
        )
    except EduMatchError as e:
        raise http_error(e)


@router.delete("/me/tests/{test_id}/questions", response_model=List[str])
async def remove_test_questions(
    test_id: str,
    data: TestQuestionsUpdate,
    college: dict = Depends(get_current_college),
    store: DocumentStore = Depends(get_document_store)
):
    try:
        return CatalogService(store).remove_questions_from_test(
            college["college_id"], test_id, data.question_ids
        )
    except EduMatchError as e:
        raise http_error(e)


@router.put("/me/applications/{student_id}/{application_id}", response_model=ApplicationResponse)
async def review_application(
    student_id: str,
    application_id: str,
    data: ApplicationReview,
    college: dict = Depends(get_current_college),
    store: DocumentStore = Depends(get_document_store)
):
    """
    Update application status.

    An aptitude test is only attached when approving; the student must
    then pass it to keep the approved status.
    """
    try:
        return ApplicationService(store).review(
            college["college_id"], student_id, application_id,
            data.status, data.notes, data.aptitude_test_id
        )
    except EduMatchError as e:
        raise http_error(e)
