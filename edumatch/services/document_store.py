"""
Document Store - hierarchical collections on top of MongoDB.

Records are addressed by slash-separated paths that alternate
collection and document segments:

    students                              -> collection
    students/s1                           -> document
    students/s1/applications              -> sub-collection
    students/s1/applications/a1           -> document

Each (sub-)collection maps to one MongoDB collection named by its
collection segments joined with '.', e.g. students.applications.
Sub-collection documents keep their parent document path in the
`_parent` field, so a lookup under the wrong parent finds nothing
(exactly like a real sub-collection).

Operations: get, query, list, set, update, add.
There are no joins and no multi-document transactions; each write
touches a single document.
"""

from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.database import Database

from edumatch.db.mongodb import PARENT_FIELD, get_collection, get_mongo_db


# ============================================================
# HELPER: Convert MongoDB documents to plain dicts
# ============================================================

def serialize_doc(doc: dict) -> Optional[dict]:
    """Convert MongoDB document to a plain dict with an 'id' key."""
    if doc is None:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    doc.pop(PARENT_FIELD, None)
    return doc


def serialize_docs(docs) -> List[dict]:
    """Convert an iterable of MongoDB documents to a list of plain dicts."""
    return [serialize_doc(doc) for doc in docs]


def new_id() -> str:
    """Generate a fresh document id."""
    return str(ObjectId())


def _segments(path: str) -> List[str]:
    segments = [s for s in path.strip("/").split("/") if s]
    if not segments:
        raise ValueError("Empty path")
    return segments


class DocumentStore:
    """
    Thin path-based facade over a pymongo Database.

    Usage:
        store = DocumentStore()
        app = store.get(f"students/{sid}/applications/{aid}")
        approved = store.query(f"students/{sid}/applications", status="approved")
    """

    def __init__(self, db: Database = None):
        self.db: Database = db if db is not None else get_mongo_db()

    # ------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------

    def _resolve_collection(self, collection_path: str) -> Tuple[Collection, Optional[str]]:
        """Return (mongo collection, parent document path) for a collection path."""
        segments = _segments(collection_path)
        if len(segments) % 2 == 0:
            raise ValueError(f"'{collection_path}' is a document path, not a collection path")
        name = ".".join(segments[0::2])
        parent = "/".join(segments[:-1]) or None
        return get_collection(name, self.db), parent

    def _resolve_document(self, path: str) -> Tuple[Collection, dict]:
        """Return (mongo collection, filter selecting exactly that document)."""
        segments = _segments(path)
        if len(segments) % 2 == 1:
            raise ValueError(f"'{path}' is a collection path, not a document path")
        collection, parent = self._resolve_collection("/".join(segments[:-1]))
        selector = {"_id": segments[-1]}
        if parent is not None:
            selector[PARENT_FIELD] = parent
        return collection, selector

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------

    def get(self, path: str) -> Optional[dict]:
        """Point lookup. Returns None if the document does not exist."""
        collection, selector = self._resolve_document(path)
        return serialize_doc(collection.find_one(selector))

    def query(self, collection_path: str, **equals: Any) -> List[dict]:
        """All documents of a (sub-)collection whose fields equal the given values."""
        collection, parent = self._resolve_collection(collection_path)
        selector: Dict[str, Any] = dict(equals)
        if parent is not None:
            selector[PARENT_FIELD] = parent
        return serialize_docs(collection.find(selector))

    def list(self, collection_path: str) -> List[dict]:
        """Every document of a (sub-)collection."""
        return self.query(collection_path)

    # ------------------------------------------------------------
    # Writes (single document each)
    # ------------------------------------------------------------

    def add(self, collection_path: str, fields: dict) -> str:
        """Insert a new document with a generated id. Returns the id."""
        collection, parent = self._resolve_collection(collection_path)
        doc = {k: v for k, v in fields.items() if k != "id"}
        doc["_id"] = new_id()
        if parent is not None:
            doc[PARENT_FIELD] = parent
        collection.insert_one(doc)
        return doc["_id"]

    def set(self, path: str, fields: dict) -> str:
        """Create or fully replace the document at path. Returns its id."""
        collection, selector = self._resolve_document(path)
        doc = {k: v for k, v in fields.items() if k != "id"}
        doc.update(selector)
        collection.replace_one(selector, doc, upsert=True)
        return selector["_id"]

    def update(self, path: str, fields: dict) -> bool:
        """
        Merge fields into an existing document.
        Returns False if the document does not exist (nothing is created).
        """
        collection, selector = self._resolve_document(path)
        result = collection.update_one(selector, {"$set": fields})
        return result.matched_count > 0


def get_document_store() -> DocumentStore:
    """FastAPI dependency - store bound to the configured database."""
    return DocumentStore()
