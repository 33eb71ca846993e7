import mongomock
import pytest

from edumatch.services.document_store import DocumentStore


class Seeder:
    """Writes fixture documents straight into the store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def college(self, name="Springfield College", profile_id=None):
        return self.store.add("colleges", {"name": name, "profile_id": profile_id})

    def course(self, college_id, name="Computer Science"):
        return self.store.add(f"colleges/{college_id}/courses", {"name": name})

    def student(self, full_name="Ada Lovelace", profile_id=None):
        return self.store.add("students", {"full_name": full_name, "profile_id": profile_id})

    @staticmethod
    def _question_doc(qtype, options, correct):
        return {
            "type": qtype,
            "text": "Pick wisely",
            "options": [{"id": o, "text": o.upper(), "is_correct": o in correct} for o in options],
            "difficulty_level": "medium",
            "categories": ["logic"],
        }

    def question(self, college_id, qtype="mcq-single", options=("a", "b", "c"), correct=("a",)):
        return self.store.add(
            f"colleges/{college_id}/questions", self._question_doc(qtype, options, correct)
        )

    def legacy_question(self, qtype="mcq-single", options=("a", "b"), correct=("a",)):
        return self.store.add("questions", self._question_doc(qtype, options, correct))

    def test(self, college_id, question_ids, title="Logical Reasoning", description="30 minutes"):
        doc = {"title": title, "description": description, "questions": list(question_ids)}
        if college_id is not None:
            doc["college_id"] = college_id
        return self.store.add("aptitude_tests", doc)

    def application(self, student_id, college_id, status="approved", aptitude_test_id=None,
                    indexed=True, **extra):
        doc = {"student_id": student_id, "college_id": college_id, "course_id": "c1",
               "status": status, **extra}
        if aptitude_test_id:
            doc["aptitude_test_id"] = aptitude_test_id
        application_id = self.store.add(f"students/{student_id}/applications", doc)
        if indexed:
            self.store.set(f"application_index/{application_id}", {"student_id": student_id})
        return application_id


@pytest.fixture
def db():
    return mongomock.MongoClient()["edumatch_test"]


@pytest.fixture
def store(db):
    return DocumentStore(db)


@pytest.fixture
def seed(store):
    return Seeder(store)


@pytest.fixture
def dump_db(db):
    """Every document of every collection, for before/after comparisons."""
    def dump():
        return {
            name: sorted(db[name].find(), key=lambda d: str(d["_id"]))
            for name in sorted(db.list_collection_names())
        }
    return dump
