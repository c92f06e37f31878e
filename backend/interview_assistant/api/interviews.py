from __future__ import annotations

import logging
import time

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from core.config import GRADING_STRATEGY
from core.state import SessionStatus
from interview_assistant.ai_reasoning.question_writer import generate_question_text
from interview_assistant.db.interview_repo import InterviewStore, JsonInterviewStore
from interview_assistant.interview.engine import SessionHandle, SessionStateError, SessionStateMachine
from interview_assistant.interview.evaluator import evaluate_answer
from interview_assistant.interview.models import CandidateInfo
from interview_assistant.interview.questions import QuestionSequencer
from interview_assistant.interview.scorer import ScoringEngine, recommendation_for, score_answer
from interview_assistant.resume.contact import extract_contact_info
from interview_assistant.resume.parser import DocumentExtractionError, extract_text
from interview_assistant.schemas import AnswerRequest, CandidateSummary, DraftRequest, WelcomeBackResponse
from interview_assistant.session.registry import session_registry

router = APIRouter()
logger = logging.getLogger("interview_assistant.api.interviews")

CANDIDATE_SORTS = {"score", "date", "name"}


def build_interview_machine(store: InterviewStore | None = None) -> SessionStateMachine:
    strategy = evaluate_answer if GRADING_STRATEGY == "llm" else score_answer
    return SessionStateMachine(
        sequencer=QuestionSequencer(generate_fn=generate_question_text),
        scoring=ScoringEngine(strategy),
        store=store,
    )


interview_store = JsonInterviewStore()
interview_machine = build_interview_machine(interview_store)


def _live_handle(session_id: str) -> SessionHandle:
    handle = session_registry.get(session_id)
    if handle is None:
        raise HTTPException(status_code=404, detail="Interview session not found")
    session_registry.touch(session_id)
    return handle


def _candidate_summary(record: dict) -> dict:
    candidate = dict(record.get("candidate") or {})
    final_score = record.get("final_score")
    return CandidateSummary(
        session_id=str(record.get("id") or ""),
        name=str(candidate.get("name") or "Candidate"),
        email=str(candidate.get("email") or ""),
        phone=str(candidate.get("phone") or "Not provided"),
        status=str(record.get("status") or SessionStatus.COLLECTING_INFO.value),
        final_score=final_score,
        recommendation=recommendation_for(int(final_score)) if final_score is not None else None,
        answers_count=len(record.get("answers") or []),
        start_time=record.get("start_time"),
        end_time=record.get("end_time"),
    ).model_dump()


# -------------------------
# INTERVIEWS
# -------------------------

@router.post("/api/interviews")
async def create_interview(
    file: UploadFile = File(...),
    name: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
):
    content = await file.read()
    try:
        text = extract_text(file.filename, content)
    except DocumentExtractionError as exc:
        logger.warning("resume extraction failed | filename=%s err=%s", file.filename, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    if not text.strip():
        raise HTTPException(status_code=400, detail="No readable text found in the uploaded resume.")

    contact = await extract_contact_info(text)
    candidate = CandidateInfo(
        name=(name or "").strip() or contact.name or "Candidate",
        email=(email or "").strip() or contact.email or f"candidate{int(time.time() * 1000)}@example.com",
        phone=(phone or "").strip() or contact.phone or "Not provided",
        resume_file_name=str(file.filename or ""),
        resume_text=text,
    )

    handle = await interview_machine.start(candidate)
    session_registry.register(handle)
    await interview_machine.wait_for_question(handle)
    return interview_machine.snapshot(handle)


@router.get("/api/interviews/{session_id}")
def get_interview(session_id: str):
    return interview_machine.snapshot(_live_handle(session_id))


@router.put("/api/interviews/{session_id}/draft")
async def update_draft(session_id: str, req: DraftRequest):
    handle = _live_handle(session_id)
    try:
        interview_machine.update_draft(handle, req.text)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"status": "draft_saved", "chars": len(handle.draft)}


@router.post("/api/interviews/{session_id}/answers")
async def submit_answer(session_id: str, req: AnswerRequest, wait_for_next: bool = True):
    handle = _live_handle(session_id)
    try:
        answer = await interview_machine.submit_answer(handle, req.answer)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    if wait_for_next:
        await interview_machine.wait_for_question(handle)
    if handle.session.status == SessionStatus.COMPLETED:
        session_registry.mark_inactive(session_id)
    return {"answer": answer.to_dict(), "session": interview_machine.snapshot(handle)}


@router.post("/api/interviews/{session_id}/pause")
async def pause_interview(session_id: str):
    handle = _live_handle(session_id)
    try:
        interview_machine.pause(handle)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return interview_machine.snapshot(handle)


@router.post("/api/interviews/{session_id}/resume")
async def resume_interview(session_id: str):
    handle = _live_handle(session_id)
    try:
        interview_machine.resume(handle)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return interview_machine.snapshot(handle)


@router.get("/api/interviews/{session_id}/welcome-back")
async def welcome_back(session_id: str):
    handle = session_registry.get(session_id)
    if handle is None:
        handle = await interview_machine.resume_unfinished_session(session_id)
        if handle is not None:
            session_registry.register(handle)

    if handle is not None:
        session = handle.session
        offer = interview_machine.should_offer_resume(session)
        return WelcomeBackResponse(
            offer=offer,
            session_id=session.id,
            progress=len(session.answers),
            total_questions=interview_machine.total_questions,
            status=session.status.value,
            name=session.candidate.name,
        ).model_dump()

    record = await interview_store.get_session_record(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Interview session not found")
    return WelcomeBackResponse(
        offer=False,
        session_id=session_id,
        progress=len(record.get("answers") or []),
        total_questions=interview_machine.total_questions,
        status=str(record.get("status") or SessionStatus.COLLECTING_INFO.value),
        name=str((record.get("candidate") or {}).get("name") or "Candidate"),
    ).model_dump()


@router.post("/api/interviews/{session_id}/discard")
async def discard_interview(session_id: str):
    handle = session_registry.discard(session_id)
    if handle is not None:
        interview_machine.close(handle)
    return {"status": "discarded", "session_id": session_id}


# -------------------------
# INTERVIEWER VIEW
# -------------------------

@router.get("/api/candidates")
async def list_candidates(search: str = "", sort: str = "score"):
    sort_key = str(sort or "score").strip().lower()
    if sort_key not in CANDIDATE_SORTS:
        raise HTTPException(status_code=400, detail=f"sort must be one of {sorted(CANDIDATE_SORTS)}")

    rows = [_candidate_summary(record) for record in await interview_store.list_sessions()]

    needle = str(search or "").strip().lower()
    if needle:
        rows = [r for r in rows if needle in r["name"].lower() or needle in r["email"].lower()]

    if sort_key == "score":
        rows.sort(key=lambda r: r["final_score"] if r["final_score"] is not None else -1, reverse=True)
    elif sort_key == "date":
        rows.sort(key=lambda r: float(r["start_time"] or 0.0), reverse=True)
    else:
        rows.sort(key=lambda r: r["name"].lower())

    return {"items": rows, "count": len(rows)}


@router.get("/api/candidates/{session_id}")
async def get_candidate(session_id: str):
    record = await interview_store.get_session_record(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Candidate not found")
    summary = _candidate_summary(record)
    candidate = dict(record.get("candidate") or {})
    candidate.pop("resume_text", None)
    return {
        **summary,
        "candidate": candidate,
        "summary": record.get("summary"),
        "answers": record.get("answers") or [],
        "questions": record.get("questions") or [],
    }
