import pytest


def test_add_and_get(store):
    student = store.add("students", {"full_name": "Ada", "id": "ignored"})

    doc = store.get(f"students/{student}")

    assert doc == {"id": student, "full_name": "Ada"}


def test_subcollections_are_scoped_to_their_parent(store, db):
    application = store.add("students/s1/applications", {"status": "pending"})
    store.add("students/s2/applications", {"status": "pending"})

    assert store.get(f"students/s1/applications/{application}")["status"] == "pending"
    assert store.get(f"students/s2/applications/{application}") is None
    assert len(store.query("students/s1/applications", status="pending")) == 1
    assert db["students.applications"].count_documents({}) == 2


def test_update_merges_and_never_creates(store):
    application = store.add("students/s1/applications", {"status": "approved", "notes": "ok"})

    assert store.update(f"students/s1/applications/{application}", {"status": "declined"})
    assert not store.update("students/s1/applications/missing", {"status": "declined"})

    assert store.get(f"students/s1/applications/{application}") == {
        "id": application, "status": "declined", "notes": "ok"
    }
    assert store.get("students/s1/applications/missing") is None


def test_set_replaces_or_creates(store):
    store.set("application_index/a1", {"student_id": "s1", "extra": True})
    store.set("application_index/a1", {"student_id": "s2"})

    assert store.get("application_index/a1") == {"id": "a1", "student_id": "s2"}


@pytest.mark.parametrize("path", ["", "students", "students/s1/applications"])
def test_get_needs_a_document_path(store, path):
    with pytest.raises(ValueError):
        store.get(path)


def test_add_needs_a_collection_path(store):
    with pytest.raises(ValueError):
        store.add("students/s1", {})
