"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Domain records read from the document store are parsed with the
same models (extra stored fields are ignored).
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    college = "college"


class ApplicationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    declined = "declined"


class QuestionType(str, Enum):
    mcq_single = "mcq-single"
    mcq_multiple = "mcq-multiple"
    short_answer = "short-answer"
    long_answer = "long-answer"


class DifficultyLevel(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


# Only these types can be graded automatically
GRADABLE_TYPES = {QuestionType.mcq_single.value, QuestionType.mcq_multiple.value}


# ============================================================
# QUESTION SCHEMAS
# ============================================================

class Option(BaseModel):
    id: str
    text: str = ""
    # older question documents spell it isCorrect
    is_correct: bool = Field(False, validation_alias=AliasChoices("is_correct", "isCorrect"))
    explanation: Optional[str] = None


class Question(BaseModel):
    """A stored question. `type` stays a plain string so unknown types still load."""
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str = ""
    text: str = ""
    options: List[Option] = []
    difficulty_level: Optional[str] = None
    categories: List[str] = []


class QuestionCreate(BaseModel):
    type: QuestionType
    text: str = Field(..., min_length=1)
    options: List[Option] = []
    difficulty_level: DifficultyLevel = DifficultyLevel.medium
    categories: List[str] = []


class PublicOption(BaseModel):
    id: str
    text: str = ""


class PublicQuestion(BaseModel):
    """Question as shown to a test taker (no correctness flags)."""
    id: str
    type: str
    text: str
    options: List[PublicOption] = []
    difficulty_level: Optional[str] = None
    categories: List[str] = []


# ============================================================
# APTITUDE TEST SCHEMAS
# ============================================================

class AptitudeTestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    question_ids: List[str] = []


class TestQuestionsUpdate(BaseModel):
    question_ids: List[str] = Field(..., min_length=1)


class AptitudeTestResponse(BaseModel):
    id: str
    college_id: Optional[str] = None
    title: str
    description: str = ""
    questions: List[str] = []


class PendingTest(BaseModel):
    """A test a student still owes because of an approved application."""
    test_id: str
    title: str
    description: str = ""
    application_id: str
    college_name: str
    is_required: bool = True


class DashboardTest(BaseModel):
    """One row of the student's test dashboard (elective or required)."""
    test_id: str
    title: str
    description: str = ""
    completed: bool = False
    is_required: bool = False
    application_id: Optional[str] = None
    college_name: Optional[str] = None
    score: Optional[int] = None
    result_id: Optional[str] = None


# ============================================================
# RESULT SCHEMAS
# ============================================================

class TestResultSnapshot(BaseModel):
    """Copy of a result embedded in the application document."""
    score: int
    passed: bool
    completed_at: datetime


class ReconcileOutcome(BaseModel):
    application_id: str
    student_id: str
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    passed: bool


class TestResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    test_id: str
    student_id: str
    score: int
    passed: bool
    answers: Dict[str, Any] = {}
    completed_at: datetime
    application_id: Optional[str] = None


class GradedResult(TestResult):
    """A freshly written result plus the reconciliation it triggered, if any."""
    application_update: Optional[ReconcileOutcome] = None


class SubmitAnswersRequest(BaseModel):
    # questionId -> optionId | [optionId, ...]; left unvalidated on purpose,
    # the grader treats malformed entries as wrong answers
    answers: Dict[str, Any] = {}
    application_id: Optional[str] = None


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    college_id: str
    course_id: str


class ApplicationReview(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None
    aptitude_test_id: Optional[str] = None


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    student_id: str
    college_id: str
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    status: str
    notes: Optional[str] = None
    aptitude_test_id: Optional[str] = None
    test_result: Optional[TestResultSnapshot] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

