"""
Test Grading Service

PURPOSE:
Resolve the questions of an aptitude test, score a submitted answer
set against the answer key and store the result.

QUESTION RESOLUTION:
- The test names its college -> load that college's question bank and
  keep the ids the test references
- No college on the test (legacy data) -> look each id up in the flat
  top-level questions collection
- Ids that resolve nowhere are dropped (lenient) or fail the call
  (STRICT_QUESTION_RESOLUTION=true)

SCORING (no partial credit):
- mcq-single: the answer must be a correct option id
- mcq-multiple: the answer must be exactly the set of correct option ids
- any other type is not auto-gradable and is left out of the score
- score = round_half_up(100 * correct / gradable), 0 if nothing gradable
- passed = score >= 60
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

import pydantic

from edumatch.core.config import Settings, get_settings
from edumatch.core.exceptions import DuplicateSubmissionError, NotFoundError, PermissionDeniedError
from edumatch.db.mongodb import COLLECTIONS
from edumatch.schemas.schemas import (
    GRADABLE_TYPES, GradedResult, Question, QuestionType
)
from edumatch.services.application_service import application_path
from edumatch.services.document_store import DocumentStore
from edumatch.services.reconciliation_service import ApplicationStatusReconciler, is_passing
from edumatch.services.result_index import ResultIndex

logger = logging.getLogger(__name__)


# ============================================================
# SCORING (pure functions)
# ============================================================

def correct_option_ids(question: Question) -> set:
    return {opt.id for opt in question.options if opt.is_correct}


def is_answer_correct(question: Question, answer: Any) -> bool:
    """Check one answer. Missing or malformed answers are simply wrong."""
    correct = correct_option_ids(question)

    if question.type == QuestionType.mcq_single.value:
        return isinstance(answer, str) and answer in correct

    if question.type == QuestionType.mcq_multiple.value:
        if not isinstance(answer, (list, tuple)):
            return False
        if not all(isinstance(a, str) for a in answer):
            return False
        return len(answer) == len(correct) and set(answer) == correct

    return False


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score_answers(questions: List[Question], answers: Dict[str, Any]) -> Tuple[int, int, int]:
    """
    Score an answer map against resolved questions.

    Returns (score, correct_count, gradable_count).
    """
    if not isinstance(answers, dict):
        answers = {}

    gradable = [q for q in questions if q.type in GRADABLE_TYPES]
    correct = sum(1 for q in gradable if is_answer_correct(q, answers.get(q.id)))

    if not gradable:
        return 0, 0, 0

    score = round_half_up(Decimal(100 * correct) / Decimal(len(gradable)))
    return score, correct, len(gradable)


# ============================================================
# GRADER
# ============================================================

class TestGrader:
    """
    Loads test questions, grades submissions and records results.
    """

    # not a pytest test class
    __test__ = False

    def __init__(self, store: DocumentStore = None, settings: Settings = None):
        self.store = store if store is not None else DocumentStore()
        self.settings = settings if settings is not None else get_settings()
        self.results = ResultIndex(self.store)
        self.reconciler = ApplicationStatusReconciler(self.store)

    def _load_test(self, test_id: str) -> dict:
        test = self.store.get(f"{COLLECTIONS['aptitude_tests']}/{test_id}")
        if test is None:
            raise NotFoundError("Test not found")
        return test

    def get_questions(self, test_id: str) -> List[Question]:
        """
        Questions of a test, in the order the test lists them.
        """
        test = self._load_test(test_id)
        college_id = test.get("college_id")
        question_ids = test.get("questions") or []
        if not isinstance(question_ids, list):
            question_ids = []
        # dedupe, keep order
        question_ids = list(dict.fromkeys(question_ids))

        if not question_ids:
            logger.warning("No questions specified for test %s", test_id)
            return []

        if not college_id:
            logger.warning("Test %s is not associated with a college, using the flat question store", test_id)
            found = {}
            for qid in question_ids:
                doc = self.store.get(f"{COLLECTIONS['legacy_questions']}/{qid}")
                if doc is not None:
                    found[qid] = doc
        else:
            bank = self.store.list(f"{COLLECTIONS['colleges']}/{college_id}/questions")
            wanted = set(question_ids)
            found = {doc["id"]: doc for doc in bank if doc["id"] in wanted}
            logger.info("Test %s: %d of %d referenced questions found in college %s",
                        test_id, len(found), len(question_ids), college_id)

        # malformed documents are treated like missing ones
        parsed: Dict[str, Question] = {}
        for qid, doc in found.items():
            try:
                parsed[qid] = Question.model_validate(doc)
            except pydantic.ValidationError as e:
                logger.warning("Question %s of test %s is malformed: %s", qid, test_id, e)

        missing = [qid for qid in question_ids if qid not in parsed]
        if missing:
            if self.settings.strict_question_resolution:
                raise NotFoundError(f"Questions not found for test {test_id}: {', '.join(missing)}")
            logger.warning("Dropping unresolved questions of test %s: %s", test_id, missing)

        return [parsed[qid] for qid in question_ids if qid in parsed]

    def _check_duplicate(self, test_id: str, student_id: str) -> None:
        if self.settings.duplicate_submission_policy != "reject":
            return
        if self.results.find_for_test(test_id, student_id):
            raise DuplicateSubmissionError("You have already submitted this test")

    def _check_application(self, test_id: str, student_id: str, application_id: str) -> None:
        """The application must be the submitting student's own and require this test."""
        application = self.store.get(application_path(student_id, application_id))
        if application is None:
            raise NotFoundError("Application not found")
        if application.get("aptitude_test_id") != test_id:
            logger.warning("Application %s does not require test %s (requires %s)",
                           application_id, test_id, application.get("aptitude_test_id"))
            raise PermissionDeniedError("This application does not require this test")

    def grade_and_save(
        self,
        test_id: str,
        student_id: str,
        answers: Dict[str, Any],
        application_id: Optional[str] = None
    ) -> GradedResult:
        """
        Grade a submission and append the result.

        If application_id is given the owning application is reconciled
        right away and the outcome is attached to the returned result.
        The application must belong to the student and require test_id;
        otherwise nothing is written.
        """
        questions = self.get_questions(test_id)
        score, correct, gradable = score_answers(questions, answers)
        passed = is_passing(score)
        logger.info("Test %s graded for student %s: %d/%d correct, score %d",
                    test_id, student_id, correct, gradable, score)

        self._check_duplicate(test_id, student_id)
        if application_id:
            self._check_application(test_id, student_id, application_id)

        row = self.results.insert(
            test_id=test_id,
            student_id=student_id,
            score=score,
            passed=passed,
            answers=answers if isinstance(answers, dict) else {},
            completed_at=datetime.now(timezone.utc),
            application_id=application_id or None
        )

        application_update = None
        if application_id:
            logger.info("Updating application %s based on test result", application_id)
            application_update = self.reconciler.reconcile(application_id, score)

        return GradedResult(**row, application_update=application_update)
