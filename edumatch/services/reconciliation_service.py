"""
Application Status Reconciliation

Propagates a freshly computed test score into the application that
required the test.

Decision rule:
- passed (score >= 60): status is left as it is
- failed: status is forced to 'declined', whatever it was before

The write is read back once; if the stored status does not match and
the test was failed, a single corrective write sets 'declined'.
There are no further retries and no locking, so concurrent
reconciliations of the same application end with the last write.
"""

import logging
from datetime import datetime, timezone

from edumatch.schemas.schemas import ApplicationStatus, ReconcileOutcome
from edumatch.services.application_service import ApplicationLocator, application_path
from edumatch.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

PASSING_SCORE = 60


def is_passing(score: int) -> bool:
    return score >= PASSING_SCORE


class ApplicationStatusReconciler:

    def __init__(self, store: DocumentStore = None, locator: ApplicationLocator = None):
        self.store = store if store is not None else DocumentStore()
        self.locator = locator if locator is not None else ApplicationLocator(self.store)

    def reconcile(self, application_id: str, score: int) -> ReconcileOutcome:
        """
        Apply a test score to its application.

        Raises NotFoundError (before any write) if no student owns
        the application.
        """
        student_id, application = self.locator.locate(application_id)
        path = application_path(student_id, application_id)

        previous_status = application.get("status")
        passed = is_passing(score)
        new_status = previous_status if passed else ApplicationStatus.declined.value

        if application.get("test_result"):
            logger.info("Application %s already has a test result, overwriting it", application_id)

        now = datetime.now(timezone.utc)
        self.store.update(path, {
            "test_result": {
                "score": score,
                "completed_at": now,
                "passed": passed
            },
            "status": new_status,
            "updated_at": now
        })
        logger.info("Test %s for application %s (score %s). Status: %s -> %s",
                    "passed" if passed else "failed", application_id, score,
                    previous_status, new_status)

        stored = self.store.get(path)
        if stored is not None and stored.get("status") != new_status and not passed:
            logger.warning("Status of application %s reads back as %r, forcing 'declined'",
                           application_id, stored.get("status"))
            self.store.update(path, {
                "status": ApplicationStatus.declined.value,
                "updated_at": datetime.now(timezone.utc)
            })

        return ReconcileOutcome(
            application_id=application_id,
            student_id=student_id,
            previous_status=previous_status,
            new_status=new_status,
            passed=passed
        )
