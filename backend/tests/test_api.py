import time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from conftest import RELEVANT_ANSWER, SCRIPTED_QUESTIONS
from core.state import SessionStatus
from interview_assistant.db.interview_repo import JsonInterviewStore
from interview_assistant.interview.models import CandidateInfo, Session
from interview_assistant.resume.contact import ContactInfo
from interview_assistant.session.registry import SessionRegistry


RESUME_BYTES = b"Jane Developer\nReact, Node.js and PostgreSQL engineer\n"


@pytest.fixture
def api(tmp_path, make_machine, monkeypatch: pytest.MonkeyPatch):
    from interview_assistant import main
    from interview_assistant.api import interviews

    store = JsonInterviewStore(tmp_path / "store.json")
    machine = make_machine(store=store)
    registry = SessionRegistry()

    async def _contact(text):
        return ContactInfo(name="Jane Developer", email="jane@example.com")

    monkeypatch.setattr(interviews, "interview_store", store)
    monkeypatch.setattr(interviews, "interview_machine", machine)
    monkeypatch.setattr(interviews, "session_registry", registry)
    monkeypatch.setattr(interviews, "extract_contact_info", _contact)
    monkeypatch.setattr(main, "session_registry", registry)

    with TestClient(main.app) as client:
        yield SimpleNamespace(client=client, store=store, machine=machine, registry=registry)


def _start(client: TestClient) -> dict:
    response = client.post(
        "/api/interviews",
        files={"file": ("resume.txt", RESUME_BYTES, "text/plain")},
        data={"phone": "+1 555 0100"},
    )
    assert response.status_code == 200, response.text
    return response.json()


def _wait_for_record(store: JsonInterviewStore, session_id: str, predicate, timeout_sec: float = 2.0) -> dict:
    deadline = time.time() + timeout_sec
    while time.time() < deadline:
        record = store.get_session_record_sync(session_id)
        if record is not None and predicate(record):
            return record
        time.sleep(0.01)
    raise AssertionError(f"store never reached expected state for {session_id}")


def test_healthz(api):
    response = api.client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_interview_returns_first_question(api):
    payload = _start(api.client)

    assert payload["status"] == SessionStatus.IN_PROGRESS.value
    assert payload["candidate"]["name"] == "Jane Developer"
    assert payload["candidate"]["email"] == "jane@example.com"
    assert payload["candidate"]["phone"] == "+1 555 0100"
    assert payload["candidate"]["resume_file_name"] == "resume.txt"
    assert payload["current_question"]["text"] == SCRIPTED_QUESTIONS[0]
    assert payload["current_question"]["difficulty"] == "easy"
    assert payload["time_left"] == 20
    assert payload["total_questions"] == 6
    assert api.registry.get(payload["session_id"]) is not None


def test_create_interview_rejects_unsupported_upload(api):
    response = api.client.post(
        "/api/interviews",
        files={"file": ("resume.rtf", b"{\\rtf1 hello}", "application/rtf")},
    )
    assert response.status_code == 400
    assert "Unsupported file format" in response.json()["detail"]


def test_unknown_session_is_404(api):
    assert api.client.get("/api/interviews/nope").status_code == 404
    assert api.client.post("/api/interviews/nope/pause").status_code == 404
    assert api.client.get("/api/interviews/nope/welcome-back").status_code == 404


def test_draft_answer_and_next_question(api):
    session_id = _start(api.client)["session_id"]

    draft = api.client.put(f"/api/interviews/{session_id}/draft", json={"text": "closures capture"})
    assert draft.status_code == 200
    assert draft.json()["chars"] == len("closures capture")

    response = api.client.post(f"/api/interviews/{session_id}/answers", json={"answer": RELEVANT_ANSWER})
    assert response.status_code == 200
    body = response.json()
    assert body["answer"]["score"] > 0
    assert body["answer"]["question"] == SCRIPTED_QUESTIONS[0]
    assert body["session"]["current_question_index"] == 1
    assert body["session"]["current_question"]["text"] == SCRIPTED_QUESTIONS[1]
    assert len(body["session"]["answers"]) == 1


def test_pause_and_resume_conflicts(api):
    session_id = _start(api.client)["session_id"]

    assert api.client.post(f"/api/interviews/{session_id}/resume").status_code == 409

    paused = api.client.post(f"/api/interviews/{session_id}/pause")
    assert paused.status_code == 200
    assert paused.json()["status"] == "paused"
    assert api.client.post(f"/api/interviews/{session_id}/pause").status_code == 409
    assert api.client.post(f"/api/interviews/{session_id}/answers", json={"answer": "x"}).status_code == 409

    resumed = api.client.post(f"/api/interviews/{session_id}/resume")
    assert resumed.status_code == 200
    assert resumed.json()["status"] == "in-progress"
    assert resumed.json()["time_left"] == 20


def test_welcome_back_rehydrates_discarded_paused_session(api):
    session_id = _start(api.client)["session_id"]
    api.client.post(f"/api/interviews/{session_id}/pause")
    _wait_for_record(
        api.store, session_id,
        lambda r: r["status"] == "paused" and len(r["questions"]) == 1,
    )

    discarded = api.client.post(f"/api/interviews/{session_id}/discard")
    assert discarded.json()["status"] == "discarded"
    assert api.registry.get(session_id) is None
    assert api.client.get(f"/api/interviews/{session_id}").status_code == 404

    offer = api.client.get(f"/api/interviews/{session_id}/welcome-back")
    assert offer.status_code == 200
    assert offer.json() == {
        "offer": True,
        "session_id": session_id,
        "progress": 0,
        "total_questions": 6,
        "status": "paused",
        "name": "Jane Developer",
    }

    resumed = api.client.post(f"/api/interviews/{session_id}/resume")
    assert resumed.status_code == 200
    assert resumed.json()["current_question"]["text"] == SCRIPTED_QUESTIONS[0]


def test_welcome_back_not_offered_for_live_session(api):
    session_id = _start(api.client)["session_id"]
    offer = api.client.get(f"/api/interviews/{session_id}/welcome-back").json()
    assert offer["offer"] is False
    assert offer["status"] == "in-progress"


def _seed(store: JsonInterviewStore, name: str, email: str, score, start_time: float) -> Session:
    session = Session(
        candidate=CandidateInfo(name=name, email=email, resume_text="secret resume"),
        status=SessionStatus.COMPLETED if score is not None else SessionStatus.PAUSED,
        final_score=score,
        start_time=start_time,
        summary=f"{name} summary",
    )
    store.save_session_sync(session.to_dict())
    return session


def test_candidates_search_and_sort(api):
    _seed(api.store, "Zed Zero", "zed@example.com", 4, 300.0)
    _seed(api.store, "Amy Adams", "amy@corp.io", 9, 100.0)
    _seed(api.store, "Bob Brown", "bob@example.com", None, 200.0)

    by_score = api.client.get("/api/candidates").json()["items"]
    assert [r["name"] for r in by_score] == ["Amy Adams", "Zed Zero", "Bob Brown"]
    assert by_score[0]["recommendation"] == "Strong Hire"
    assert by_score[2]["recommendation"] is None

    by_date = api.client.get("/api/candidates", params={"sort": "date"}).json()["items"]
    assert [r["name"] for r in by_date] == ["Zed Zero", "Bob Brown", "Amy Adams"]

    by_name = api.client.get("/api/candidates", params={"sort": "name"}).json()["items"]
    assert [r["name"] for r in by_name] == ["Amy Adams", "Bob Brown", "Zed Zero"]

    searched = api.client.get("/api/candidates", params={"search": "EXAMPLE.com"}).json()
    assert searched["count"] == 2

    assert api.client.get("/api/candidates", params={"sort": "height"}).status_code == 400


def test_candidate_detail_hides_resume_text(api):
    seeded = _seed(api.store, "Amy Adams", "amy@corp.io", 9, 100.0)

    detail = api.client.get(f"/api/candidates/{seeded.id}")
    assert detail.status_code == 200
    body = detail.json()
    assert body["summary"] == "Amy Adams summary"
    assert "resume_text" not in body["candidate"]
    assert body["answers"] == []

    assert api.client.get("/api/candidates/missing").status_code == 404


def test_metrics_endpoint(api):
    _start(api.client)
    metrics = api.client.get("/api/metrics").json()

    assert metrics["sessions_started"] >= 1
    assert metrics["sessions_registered"] == 1
    assert metrics["total_questions"] == 6
    assert "avg_question_generation_ms" in metrics
