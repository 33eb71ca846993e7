"""
Catalog Service - college question banks and aptitude tests.

Questions are stored per college:
    colleges/{college_id}/questions/{question_id}
Aptitude tests are top-level and reference questions by id:
    aptitude_tests/{test_id} -> {college_id, title, description, questions: [...]}

Writes here enforce the invariants the grader relies on:
- mcq-single: exactly one correct option
- mcq-multiple: at least one correct option
- option ids unique within a question
- a test only references questions of its own college
"""

import logging
from datetime import datetime, timezone
from typing import List

from edumatch.core.exceptions import NotFoundError, ValidationError
from edumatch.db.mongodb import COLLECTIONS
from edumatch.schemas.schemas import QuestionCreate, QuestionType
from edumatch.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


def validate_question(question: QuestionCreate) -> None:
    option_ids = [opt.id for opt in question.options]
    if len(option_ids) != len(set(option_ids)):
        raise ValidationError("Option ids must be unique within a question")

    correct = sum(1 for opt in question.options if opt.is_correct)
    if question.type == QuestionType.mcq_single and correct != 1:
        raise ValidationError("A single-choice question needs exactly one correct option")
    if question.type == QuestionType.mcq_multiple and correct < 1:
        raise ValidationError("A multiple-choice question needs at least one correct option")


class CatalogService:

    def __init__(self, store: DocumentStore = None):
        self.store = store if store is not None else DocumentStore()

    def _questions_path(self, college_id: str) -> str:
        return f"{COLLECTIONS['colleges']}/{college_id}/questions"

    def _test_path(self, test_id: str) -> str:
        return f"{COLLECTIONS['aptitude_tests']}/{test_id}"

    # ------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------

    def add_question(self, college_id: str, question: QuestionCreate) -> str:
        """Validate and store a question in the college's bank. Returns its id."""
        validate_question(question)
        now = datetime.now(timezone.utc)
        doc = question.model_dump(mode="json")
        doc["created_at"] = now
        doc["updated_at"] = now
        question_id = self.store.add(self._questions_path(college_id), doc)
        logger.info("Question %s saved to college %s", question_id, college_id)
        return question_id

    def _require_own_questions(self, college_id: str, question_ids: List[str]) -> None:
        bank = {doc["id"] for doc in self.store.list(self._questions_path(college_id))}
        unknown = [qid for qid in question_ids if qid not in bank]
        if unknown:
            raise NotFoundError(f"Questions not found in this college: {', '.join(unknown)}")

    # ------------------------------------------------------------
    # Aptitude tests
    # ------------------------------------------------------------

    def list_tests(self, college_id: str = None) -> List[dict]:
        if college_id is None:
            return self.store.list(COLLECTIONS["aptitude_tests"])
        return self.store.query(COLLECTIONS["aptitude_tests"], college_id=college_id)

    def get_test(self, test_id: str, college_id: str = None) -> dict:
        """Load a test; with college_id, only that college's tests are visible."""
        test = self.store.get(self._test_path(test_id))
        if test is None or (college_id is not None and test.get("college_id") != college_id):
            raise NotFoundError(f"Aptitude test with ID {test_id} not found")
        return test

    def create_test(self, college_id: str, title: str, description: str = "",
                    question_ids: List[str] = None) -> dict:
        question_ids = list(dict.fromkeys(question_ids or []))
        self._require_own_questions(college_id, question_ids)

        now = datetime.now(timezone.utc)
        test = {
            "college_id": college_id,
            "title": title,
            "description": description,
            "questions": question_ids,
            "created_at": now,
            "updated_at": now
        }
        test["id"] = self.store.add(COLLECTIONS["aptitude_tests"], test)
        logger.info("Aptitude test %s created for college %s", test["id"], college_id)
        return test

    def add_questions_to_test(self, college_id: str, test_id: str, question_ids: List[str]) -> List[str]:
        test = self.get_test(test_id, college_id)
        self._require_own_questions(college_id, question_ids)

        current = test.get("questions") or []
        updated = list(dict.fromkeys(current + list(question_ids)))
        self.store.update(self._test_path(test_id), {
            "questions": updated,
            "updated_at": datetime.now(timezone.utc)
        })
        logger.info("Added %d questions to aptitude test %s", len(question_ids), test_id)
        return updated

    def remove_questions_from_test(self, college_id: str, test_id: str, question_ids: List[str]) -> List[str]:
        test = self.get_test(test_id, college_id)

        removed = set(question_ids)
        updated = [qid for qid in (test.get("questions") or []) if qid not in removed]
        self.store.update(self._test_path(test_id), {
            "questions": updated,
            "updated_at": datetime.now(timezone.utc)
        })
        logger.info("Removed %d questions from aptitude test %s", len(question_ids), test_id)
        return updated
