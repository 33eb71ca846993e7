import pytest

from edumatch.core.exceptions import NotFoundError
from edumatch.services.application_service import ApplicationLocator
from edumatch.services.document_store import DocumentStore
from edumatch.services.reconciliation_service import ApplicationStatusReconciler


def app_doc(store, student, application):
    return store.get(f"students/{student}/applications/{application}")


def test_pass_leaves_approved_status(store, seed):
    college, student = seed.college(), seed.student()
    application = seed.application(student, college, status="approved")

    outcome = ApplicationStatusReconciler(store).reconcile(application, 80)

    assert outcome.passed
    assert outcome.previous_status == "approved"
    assert outcome.new_status == "approved"
    assert outcome.student_id == student
    doc = app_doc(store, student, application)
    assert doc["status"] == "approved"
    assert doc["test_result"]["passed"] is True
    assert doc["test_result"]["score"] == 80
    assert "completed_at" in doc["test_result"]
    assert "updated_at" in doc


def test_fail_forces_declined(store, seed):
    college, student = seed.college(), seed.student()
    application = seed.application(student, college, status="approved")

    outcome = ApplicationStatusReconciler(store).reconcile(application, 45)

    assert not outcome.passed
    assert outcome.new_status == "declined"
    doc = app_doc(store, student, application)
    assert doc["status"] == "declined"
    assert doc["test_result"]["passed"] is False


@pytest.mark.parametrize("score,status", [(60, "approved"), (59, "declined")])
def test_threshold_boundary(store, seed, score, status):
    college, student = seed.college(), seed.student()
    application = seed.application(student, college)

    ApplicationStatusReconciler(store).reconcile(application, score)

    assert app_doc(store, student, application)["status"] == status


def test_passing_never_revives_a_declined_application(store, seed):
    college, student = seed.college(), seed.student()
    application = seed.application(student, college, status="declined")

    outcome = ApplicationStatusReconciler(store).reconcile(application, 95)

    assert outcome.new_status == "declined"


def test_missing_application_fails_without_writes(store, seed, dump_db):
    college = seed.college()
    for _ in range(3):
        seed.application(seed.student(), college)
    before = dump_db()

    with pytest.raises(NotFoundError):
        ApplicationStatusReconciler(store).reconcile("nonexistent-id", 80)

    assert dump_db() == before


def test_unindexed_application_is_found_by_scan_and_indexed(store, seed):
    college = seed.college()
    seed.student()
    owner = seed.student()
    seed.student()
    application = seed.application(owner, college, indexed=False)

    outcome = ApplicationStatusReconciler(store).reconcile(application, 70)

    assert outcome.student_id == owner
    assert store.get(f"application_index/{application}")["student_id"] == owner


def test_stale_index_entry_falls_back_to_scan(store, seed):
    college = seed.college()
    other, owner = seed.student(), seed.student()
    application = seed.application(owner, college, indexed=False)
    store.set(f"application_index/{application}", {"student_id": other})

    student_id, _ = ApplicationLocator(store).locate(application)

    assert student_id == owner
    assert store.get(f"application_index/{application}")["student_id"] == owner


def test_scan_only_mode_leaves_index_alone(store, seed):
    college, student = seed.college(), seed.student()
    application = seed.application(student, college, indexed=False)

    student_id, _ = ApplicationLocator(store, use_index=False).locate(application)

    assert student_id == student
    assert store.get(f"application_index/{application}") is None


class StatusDroppingStore(DocumentStore):
    """Loses the status field of the first write, like a concurrent overwrite would."""

    def __init__(self, db):
        super().__init__(db)
        self.updates = []

    def update(self, path, fields):
        self.updates.append(dict(fields))
        if len(self.updates) == 1:
            fields = {k: v for k, v in fields.items() if k != "status"}
        return super().update(path, fields)


def test_divergent_status_gets_one_corrective_write(db, seed):
    store = StatusDroppingStore(db)
    college, student = seed.college(), seed.student()
    application = seed.application(student, college, status="approved")

    outcome = ApplicationStatusReconciler(store).reconcile(application, 30)

    assert outcome.new_status == "declined"
    assert len(store.updates) == 2
    assert store.updates[1]["status"] == "declined"
    assert app_doc(store, student, application)["status"] == "declined"


def test_no_corrective_write_when_passed(db, seed):
    store = StatusDroppingStore(db)
    college, student = seed.college(), seed.student()
    application = seed.application(student, college, status="approved")

    ApplicationStatusReconciler(store).reconcile(application, 90)

    assert len(store.updates) == 1
