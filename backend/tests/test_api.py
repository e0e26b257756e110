"""
HTTP contract tests via FastAPI's TestClient.

The store and LLM gateway are swapped through ``app.dependency_overrides``
(see conftest.py), so these run without LM Studio or a data directory.
"""

import pytest

from conftest import DOCX_MIME_TYPE
from core.errors import UpstreamUnavailable
from registration.questions import interview_questions


def _submit(client, make_docx, *, registration_id="REG-001", email="ada@example.com", name="Ada Lovelace"):
    return client.post(
        "/api/submit-interview-form",
        data={"name": name, "email": email, "registrationId": registration_id},
        files={"resume": ("resume.docx", make_docx("Ada Lovelace", "Mathematics tutor"), DOCX_MIME_TYPE)},
    )


@pytest.fixture
def submitted(client, make_docx):
    response = _submit(client, make_docx)
    assert response.status_code == 201
    return response.json()["data"]


# ============================================================================
# Registration
# ============================================================================

class TestSubmitForm:
    def test_created(self, client, make_docx, store):
        response = _submit(client, make_docx)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert set(data) == {
            "id", "name", "email", "registrationId", "submittedAt", "status", "sessionToken", "summary",
        }
        assert data["status"] == "processing"
        assert data["sessionToken"].startswith("session_")
        assert data["summary"] == "Experienced mathematics tutor."
        assert store.find_by_registration_id("REG-001").resume_data.extracted_text == (
            "Ada Lovelace\nMathematics tutor"
        )

    def test_missing_fields(self, client, make_docx):
        response = _submit(client, make_docx, name="")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "detail": "All fields are required: name, email, registrationId",
            "code": "missing_fields",
        }

    def test_missing_file(self, client):
        response = client.post(
            "/api/submit-interview-form",
            data={"name": "Ada", "email": "ada@example.com", "registrationId": "REG-001"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Resume file (.docx) is required"

    def test_wrong_file_type(self, client, store):
        response = client.post(
            "/api/submit-interview-form",
            data={"name": "Ada", "email": "ada@example.com", "registrationId": "REG-001"},
            files={"resume": ("resume.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 400
        assert store.list_registrations() == []

    def test_invalid_email(self, client, make_docx):
        response = _submit(client, make_docx, email="not-an-email")

        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter a valid email"

    def test_duplicates_conflict(self, client, make_docx):
        _submit(client, make_docx)

        same_id = _submit(client, make_docx, email="other@example.com")
        same_email = _submit(client, make_docx, registration_id="REG-002")

        assert same_id.status_code == 409
        assert same_id.json()["detail"] == "Registration ID already exists"
        assert same_email.status_code == 409
        assert same_email.json()["detail"] == "Email already registered"

    def test_llm_outage_still_registers(self, client, make_docx, gateway):
        gateway.error = UpstreamUnavailable("connection refused")

        response = _submit(client, make_docx)

        assert response.status_code == 201
        assert response.json()["data"]["summary"] == "Ada Lovelace Mathematics tutor"


# ============================================================================
# Interview session
# ============================================================================

class TestInterviewRoutes:
    def test_full_interview(self, client, submitted):
        token = submitted["sessionToken"]
        catalog = interview_questions()

        start = client.post("/api/interview/start", json={"sessionToken": token})
        assert start.status_code == 200
        assert start.json()["data"]["status"] == "in_progress"

        for index, question in enumerate(catalog):
            nxt = client.get("/api/interview/next-question/REG-001").json()
            assert nxt["questionId"] == index
            assert nxt["question"] == question
            assert nxt["isLastQuestion"] is (index == len(catalog) - 1)

            answer = client.post("/api/interview/answer", json={"sessionToken": token, "answer": f"answer {index}"})
            assert answer.json() == {"success": True, "nextQuestionIndex": index + 1}

        done = client.get("/api/interview/next-question/REG-001").json()
        assert done == {"interviewCompleted": True, "message": "Interview completed successfully"}

        complete = client.post("/api/interview/complete", json={"registrationId": "REG-001"})
        assert complete.json()["message"] == "Interview already completed"
        assert complete.json()["data"]["status"] == "completed"

        session = client.get(f"/api/interview/session/{token}").json()
        assert session["status"] == "completed"
        assert [q["answer"] for q in session["interviewData"]["questions"]] == ["answer 0", "answer 1"]
        assert "extractedText" not in session["resumeData"]

    def test_complete_marks_completed(self, client, submitted):
        response = client.post("/api/interview/complete", json={"sessionToken": submitted["sessionToken"]})

        assert response.status_code == 200
        assert response.json()["message"] == "Interview marked as completed"
        assert response.json()["data"]["completedAt"] is not None

    def test_answer_with_explicit_index(self, client, submitted):
        response = client.post(
            "/api/interview/answer",
            json={"registrationId": "REG-001", "answer": "Yes", "questionIndex": 3, "questionText": "Follow-up"},
        )

        assert response.json()["nextQuestionIndex"] == 4
        session = client.get("/api/interview/session/REG-001").json()
        assert session["interviewData"]["questions"][2]["question"] == "Question 3"
        assert session["interviewData"]["questions"][3]["question"] == "Follow-up"
        assert session["currentQuestion"]["answer"] == "Yes"

    def test_invalid_question_index(self, client, submitted):
        response = client.post(
            "/api/interview/answer",
            json={"sessionToken": submitted["sessionToken"], "answer": "x", "questionIndex": -1},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid question index"

    def test_huge_question_index_rejected(self, client, submitted, store):
        version = store.find_by_registration_id("REG-001").version

        response = client.post(
            "/api/interview/answer",
            json={"sessionToken": submitted["sessionToken"], "answer": "x", "questionIndex": 2000000},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid question index"
        assert store.find_by_registration_id("REG-001").version == version

    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("post", "/api/interview/start", {"sessionToken": "session_unknown"}),
            ("post", "/api/interview/answer", {"registrationId": "REG-404", "answer": "x"}),
            ("post", "/api/interview/complete", {}),
            ("get", "/api/interview/next-question/REG-404", None),
        ],
    )
    def test_unknown_registration(self, client, method, path, body):
        if method == "post":
            response = client.post(path, json=body)
        else:
            response = client.get(path)

        assert response.status_code == 404
        assert response.json() == {"success": False, "detail": "Registration not found"}

    def test_unknown_session(self, client):
        response = client.get("/api/interview/session/session_unknown")

        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found or expired"


# ============================================================================
# Admin
# ============================================================================

class TestAdminRoutes:
    def test_requires_credentials(self, client, admin_auth):
        assert client.get("/api/registrations").status_code == 401
        assert client.get("/api/registrations", auth=("admin", "wrong")).status_code == 401

    def test_rejects_everything_without_configured_password(self, client, monkeypatch):
        import main

        monkeypatch.setattr(main, "admin_credentials", lambda: ("admin", None))

        assert client.get("/api/registrations", auth=("admin", "")).status_code == 401
        assert client.post("/api/admin/login", json={"username": "admin", "password": ""}).status_code == 401

    def test_login(self, client, admin_auth):
        ok = client.post("/api/admin/login", json={"username": "admin", "password": "s3cret"})
        bad = client.post("/api/admin/login", json={"username": "admin", "password": "guess"})

        assert ok.status_code == 200
        assert ok.json()["success"] is True
        assert bad.status_code == 401

    def test_list_newest_first_and_sanitized(self, client, make_docx, admin_auth):
        _submit(client, make_docx, registration_id="REG-001", email="first@example.com")
        _submit(client, make_docx, registration_id="REG-002", email="second@example.com")

        body = client.get("/api/registrations", auth=admin_auth).json()

        assert body["count"] == 2
        assert [r["registrationId"] for r in body["data"]] == ["REG-002", "REG-001"]
        assert all("extractedText" not in r["resumeData"] for r in body["data"])

    def test_get_single(self, client, submitted, admin_auth):
        response = client.get(f"/api/registrations/{submitted['id']}", auth=admin_auth)

        assert response.status_code == 200
        assert response.json()["data"]["registrationId"] == "REG-001"
        assert client.get("/api/registrations/missing", auth=admin_auth).status_code == 404

    def test_status_update(self, client, submitted, admin_auth):
        response = client.patch(
            f"/api/registrations/{submitted['id']}/status", json={"status": "interviewed"}, auth=admin_auth
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "interviewed"

    @pytest.mark.parametrize("body", [{"status": "archived"}, {}])
    def test_status_update_rejects_unknown_status(self, client, submitted, admin_auth, body):
        response = client.patch(f"/api/registrations/{submitted['id']}/status", json=body, auth=admin_auth)

        assert response.status_code == 400
        assert response.json()["detail"] == (
            "Valid status is required: pending, processing, in_progress, completed, or interviewed"
        )

    def test_status_update_unknown_record(self, client, admin_auth):
        response = client.patch("/api/registrations/missing/status", json={"status": "pending"}, auth=admin_auth)
        assert response.status_code == 404


# ============================================================================
# Classifier, LLM connectivity, health
# ============================================================================

class TestUtilityRoutes:
    def test_yes_no(self, client, gateway):
        gateway.replies = ['{"label": "yes", "confidence": 0.92}']

        response = client.post("/api/nlu/yesno", json={"text": "yeah sure"})

        assert response.json() == {"success": True, "label": "yes", "confidence": 0.92}

    def test_yes_no_requires_text(self, client):
        response = client.post("/api/nlu/yesno", json={"text": "  "})

        assert response.status_code == 400
        assert response.json()["detail"] == "text is required"

    def test_llm_ping(self, client):
        response = client.get("/api/llm/ping")

        assert response.json() == {"ok": True, "provider": "fake", "models": ["fake-model"]}

    def test_llm_unreachable(self, client, gateway):
        gateway.error = UpstreamUnavailable("LLM server unreachable")

        assert client.get("/api/llm/ping").status_code == 502
        assert client.get("/api/llm/test").status_code == 502

    def test_llm_test(self, client):
        response = client.get("/api/llm/test")

        assert response.json()["success"] is True
        assert response.json()["response"] == "Experienced mathematics tutor."

    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "OK"

