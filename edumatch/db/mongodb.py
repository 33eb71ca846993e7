"""
MongoDB Connection Utility

MongoDB stores every record of the portal:
- students and their applications (sub-collection)
- colleges, their courses and question banks (sub-collections)
- aptitude tests
- test results (append-only fact table)
- application_index (application id -> owning student id)

WHY MongoDB?
- Hierarchical documents map directly to collections/sub-collections
- No joins needed: lookups go by id or by a single field
- Single-document updates are atomic, which is all the core relies on
"""
import logging

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from edumatch.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the edumatch database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str, db: Database = None) -> Collection:
    """
    Get a specific collection.
    Sub-collections are named by their collection segments joined
    with a dot, e.g. students.applications, colleges.questions.
    """
    if db is None:
        db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "students": "students",
    "applications": "students.applications",
    "colleges": "colleges",
    "courses": "colleges.courses",
    "college_questions": "colleges.questions",
    "legacy_questions": "questions",
    "aptitude_tests": "aptitude_tests",
    "test_results": "test_results",
    "application_index": "application_index",
}

# Field holding the parent document path of a sub-collection document
PARENT_FIELD = "_parent"


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    if db is None:
        db = get_mongo_db()

    # Auth identity -> profile lookups
    db[COLLECTIONS["students"]].create_index("profile_id")
    db[COLLECTIONS["colleges"]].create_index("profile_id")

    # Approved applications per student
    db[COLLECTIONS["applications"]].create_index([
        (PARENT_FIELD, ASCENDING),
        ("status", ASCENDING)
    ])
    db[COLLECTIONS["college_questions"]].create_index(PARENT_FIELD)

    # Result lookups by test, student and application
    results = db[COLLECTIONS["test_results"]]
    results.create_index("test_id")
    results.create_index("student_id")
    results.create_index("application_id")

    if get_settings().duplicate_submission_policy == "reject":
        results.create_index([
            ("test_id", ASCENDING),
            ("student_id", ASCENDING)
        ], unique=True)

    logger.info("MongoDB indexes created successfully")
