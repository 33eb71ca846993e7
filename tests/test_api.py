import pytest
from fastapi.testclient import TestClient

from edumatch.core.auth import create_access_token
from edumatch.main import app
from edumatch.services.document_store import get_document_store


@pytest.fixture
def client(store):
    app.dependency_overrides[get_document_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(sub, role):
    return {"Authorization": f"Bearer {create_access_token({'sub': sub, 'role': role})}"}


@pytest.fixture
def profiles(seed):
    college = seed.college("Riverside Institute", profile_id="auth-college")
    return {
        "college": college,
        "course": seed.course(college),
        "student": seed.student(profile_id="auth-student"),
        "college_headers": auth("auth-college", "college"),
        "student_headers": auth("auth-student", "student"),
    }


def mcq(text="2 + 2?"):
    return {
        "type": "mcq-single",
        "text": text,
        "options": [{"id": "a", "text": "4", "is_correct": True}, {"id": "b", "text": "5"}],
    }


def test_full_aptitude_flow(client, profiles):
    college_h, student_h = profiles["college_headers"], profiles["student_headers"]

    question_ids = []
    for i in range(4):
        res = client.post("/api/colleges/me/questions", json=mcq(f"Question {i}"), headers=college_h)
        assert res.status_code == 201
        question_ids.append(res.json()["id"])

    res = client.post("/api/colleges/me/tests", headers=college_h,
                      json={"title": "Numeracy", "question_ids": question_ids})
    assert res.status_code == 201
    test_id = res.json()["id"]

    res = client.post("/api/students/me/applications", headers=student_h,
                      json={"college_id": profiles["college"], "course_id": profiles["course"]})
    assert res.status_code == 201
    assert res.json()["status"] == "pending"
    application_id = res.json()["id"]

    res = client.put(f"/api/colleges/me/applications/{profiles['student']}/{application_id}",
                     headers=college_h, json={"status": "approved", "aptitude_test_id": test_id})
    assert res.status_code == 200
    assert res.json()["aptitude_test_id"] == test_id

    dashboard = client.get("/api/students/me/tests", headers=student_h).json()
    assert [(t["test_id"], t["is_required"]) for t in dashboard] == [(test_id, True)]
    assert dashboard[0]["college_name"] == "Riverside Institute"

    questions = client.get(f"/api/tests/{test_id}/questions", headers=student_h).json()
    assert [q["id"] for q in questions] == question_ids
    assert all("is_correct" not in o for q in questions for o in q["options"])

    answers = {qid: "a" for qid in question_ids[:3]}
    answers[question_ids[3]] = "b"
    res = client.post(f"/api/tests/{test_id}/submit", headers=student_h,
                      json={"answers": answers, "application_id": application_id})
    assert res.status_code == 201
    graded = res.json()
    assert graded["score"] == 75
    assert graded["passed"] is True
    assert graded["application_update"]["new_status"] == "approved"

    assert client.get("/api/students/me/tests/pending", headers=student_h).json() == []
    assert client.get("/api/students/me/tests", headers=student_h).json() == []

    [application] = client.get("/api/students/me/applications", headers=student_h).json()
    assert application["status"] == "approved"
    assert application["test_result"]["score"] == 75

    res = client.get(f"/api/tests/results/{graded['id']}", headers=student_h)
    assert res.status_code == 200
    assert res.json()["answers"] == answers


def test_failing_submission_declines(client, profiles, seed):
    college, student = profiles["college"], profiles["student"]
    q = seed.question(college)
    test_id = seed.test(college, [q])
    application = seed.application(student, college, aptitude_test_id=test_id)

    res = client.post(f"/api/tests/{test_id}/submit", headers=profiles["student_headers"],
                      json={"answers": {q: "c"}, "application_id": application})

    assert res.json()["score"] == 0
    [listed] = client.get("/api/students/me/applications", headers=profiles["student_headers"]).json()
    assert listed["status"] == "declined"


def test_remove_questions_from_test(client, profiles, seed):
    college = profiles["college"]
    q1, q2 = seed.question(college), seed.question(college)
    test_id = seed.test(college, [q1, q2])

    res = client.request("DELETE", f"/api/colleges/me/tests/{test_id}/questions",
                         headers=profiles["college_headers"], json={"question_ids": [q1]})

    assert res.status_code == 200
    assert res.json() == [q2]


def test_error_mapping(client, profiles, seed):
    student_h, college_h = profiles["student_headers"], profiles["college_headers"]
    foreign_question = seed.question(seed.college())

    assert client.post("/api/tests/nope/submit", headers=student_h, json={"answers": {}}).status_code == 404

    bad = mcq()
    bad["options"][1]["is_correct"] = True
    assert client.post("/api/colleges/me/questions", json=bad, headers=college_h).status_code == 400

    res = client.post("/api/colleges/me/tests", headers=college_h,
                      json={"title": "Stolen", "question_ids": [foreign_question]})
    assert res.status_code == 404


def test_result_of_another_student_is_forbidden(client, profiles, seed):
    classmate = seed.student()
    test_id = seed.test(profiles["college"], [])
    result_id = seed.store.add("test_results", {
        "test_id": test_id, "student_id": classmate, "score": 90, "passed": True,
        "answers": {}, "completed_at": "2026-01-05T10:00:00", "application_id": None,
    })

    res = client.get(f"/api/tests/results/{result_id}", headers=profiles["student_headers"])

    assert res.status_code == 403


def test_auth_failures(client, profiles):
    assert client.get("/api/students/me/tests", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/students/me/tests", headers=profiles["college_headers"]).status_code == 403
    assert client.get("/api/colleges/me/tests", headers=profiles["student_headers"]).status_code == 403

    orphan = auth("auth-nobody", "student")
    assert client.get("/api/students/me/tests", headers=orphan).status_code == 404


def test_submit_against_another_students_application(client, profiles, seed):
    college = profiles["college"]
    q = seed.question(college)
    test_id = seed.test(college, [q])
    classmate = seed.student()
    their_application = seed.application(classmate, college, aptitude_test_id=test_id)

    res = client.post(f"/api/tests/{test_id}/submit", headers=profiles["student_headers"],
                      json={"answers": {q: "b"}, "application_id": their_application})

    assert res.status_code == 404
    stored = seed.store.get(f"students/{classmate}/applications/{their_application}")
    assert stored["status"] == "approved"
    assert seed.store.list("test_results") == []


def test_submit_for_a_test_the_application_does_not_require(client, profiles, seed):
    college, student = profiles["college"], profiles["student"]
    q = seed.question(college)
    required_test, other_test = seed.test(college, [q]), seed.test(college, [q])
    application = seed.application(student, college, aptitude_test_id=required_test)

    res = client.post(f"/api/tests/{other_test}/submit", headers=profiles["student_headers"],
                      json={"answers": {q: "b"}, "application_id": application})

    assert res.status_code == 403
