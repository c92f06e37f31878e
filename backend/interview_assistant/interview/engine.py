from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from core.config import COUNTDOWN_TICK_SEC, INTERVIEW_TOTAL_QUESTIONS
from core.logger import log_event
from core.state import SessionStatus
from interview_assistant.db.interview_repo import InterviewStore
from interview_assistant.interview.background import BackgroundTasks
from interview_assistant.interview.models import (
    TIME_EXPIRED_ANSWER,
    Answer,
    CandidateInfo,
    Question,
    Session,
)
from interview_assistant.interview.questions import QuestionSequencer, reconcile_question_id
from interview_assistant.interview.scorer import ScoringEngine, calculate_final_score, recommendation_for
from interview_assistant.interview.summary import generate_summary
from interview_assistant.interview.timer import Countdown
from interview_assistant.system_metrics import decrement_metric, increment_metric

logger = logging.getLogger("interview_assistant.interview.engine")

SummarizeFn = Callable[[str, list[Answer], int], Awaitable[str]]


class SessionStateError(Exception):
    """Raised when an operation is not valid in the session's current status."""


class SessionHandle:
    """Runtime side of one session: its questions, countdown and in-flight work."""

    def __init__(self, session: Session, questions: list[Question] | None = None):
        self.session = session
        self.questions: list[Question] = list(questions or [])
        self.draft: str = ""
        self.submitting = False
        self.closed = False
        self.countdown: Countdown | None = None
        self.question_task: asyncio.Task | None = None
        self.question_task_index: Optional[int] = None
        self.question_persist: dict[str, asyncio.Task] = {}

    @property
    def session_id(self) -> str:
        return self.session.id

    def question_at(self, index: int) -> Question | None:
        for question in self.questions:
            if question.index == index:
                return question
        return None

    @property
    def current_question(self) -> Question | None:
        if self.session.status in (SessionStatus.COLLECTING_INFO, SessionStatus.COMPLETED):
            return None
        return self.question_at(self.session.current_question_index)


class SessionStateMachine:
    def __init__(
        self,
        sequencer: QuestionSequencer,
        scoring: ScoringEngine,
        store: InterviewStore | None = None,
        summarize: SummarizeFn | None = None,
        total_questions: int = INTERVIEW_TOTAL_QUESTIONS,
        tick_interval_sec: float = COUNTDOWN_TICK_SEC,
        clock: Callable[[], float] = time.time,
        background: BackgroundTasks | None = None,
    ):
        self.sequencer = sequencer
        self.scoring = scoring
        self.store = store
        self.summarize = summarize or generate_summary
        self.total_questions = max(1, int(total_questions))
        self.tick_interval_sec = float(tick_interval_sec)
        self.clock = clock
        self.background = background or BackgroundTasks()

    # -------------------------
    # HANDLES
    # -------------------------

    def _new_handle(self, session: Session, questions: list[Question] | None = None) -> SessionHandle:
        handle = SessionHandle(session, questions)

        async def _on_tick():
            await self.tick(handle)

        handle.countdown = Countdown(_on_tick, self.tick_interval_sec, name=f"countdown-{session.id}")
        return handle

    def _save(self, handle: SessionHandle) -> None:
        session = handle.session
        session.revision += 1
        if self.store is None:
            return
        self.background.dispatch("persist_session", session.id, self.store.save_session(session.to_dict()))

    # -------------------------
    # START
    # -------------------------

    async def start(self, candidate: CandidateInfo) -> SessionHandle:
        session = Session(candidate=candidate)
        handle = self._new_handle(session)
        self._save(handle)

        now = self.clock()
        session.status = SessionStatus.IN_PROGRESS
        session.start_time = now
        session.current_question_start_time = now
        self._save(handle)

        increment_metric("sessions_started")
        increment_metric("sessions_active")
        log_event("interview", "session_started", session.id, total_questions=self.total_questions)

        self._request_question(handle)
        return handle

    # -------------------------
    # QUESTIONS
    # -------------------------

    def _request_question(self, handle: SessionHandle) -> asyncio.Task | None:
        session = handle.session
        index = session.current_question_index
        if session.status == SessionStatus.COMPLETED or index >= self.total_questions:
            return None
        if handle.question_at(index) is not None:
            return None

        pending = handle.question_task
        if pending is not None and not pending.done() and handle.question_task_index == index:
            return pending

        previous = [q.text for q in handle.questions]
        task = self.background.dispatch(
            "next_question",
            session.id,
            self._fetch_question(handle, index, previous),
        )
        handle.question_task = task
        handle.question_task_index = index
        return task

    async def _fetch_question(self, handle: SessionHandle, index: int, previous: list[str]) -> None:
        session = handle.session
        question = await self.sequencer.next_question(session, previous)

        if (
            handle.closed
            or session.status == SessionStatus.COMPLETED
            or session.current_question_index != index
            or handle.question_at(index) is not None
        ):
            log_event("interview", "question_discarded", session.id, index=index)
            return

        handle.questions.append(question)
        session.time_left = question.time_limit
        log_event(
            "interview",
            "question_ready",
            session.id,
            index=index,
            difficulty=question.difficulty.value,
            time_limit=question.time_limit,
        )

        if self.store is not None:
            handle.question_persist[question.id] = self.background.dispatch(
                "persist_question",
                session.id,
                self._persist_question(handle, question),
            )

        if session.status == SessionStatus.IN_PROGRESS:
            handle.countdown.start()
        self._save(handle)

    async def _persist_question(self, handle: SessionHandle, question: Question) -> str:
        placeholder_id = question.id
        durable_id = await self.store.create_question(handle.session_id, question)
        if reconcile_question_id(handle.questions, placeholder_id, durable_id):
            log_event("interview", "question_id_reconciled", handle.session_id, index=question.index)
        return durable_id

    async def wait_for_question(self, handle: SessionHandle) -> Question | None:
        task = handle.question_task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return handle.current_question

    # -------------------------
    # COUNTDOWN
    # -------------------------

    async def tick(self, handle: SessionHandle) -> int:
        session = handle.session
        if handle.closed or session.status != SessionStatus.IN_PROGRESS or handle.submitting:
            return session.time_left
        if handle.current_question is None or session.time_left <= 0:
            return session.time_left

        session.time_left = max(0, session.time_left - 1)
        if session.time_left > 0:
            return session.time_left

        handle.countdown.cancel()
        increment_metric("answers_auto_submitted")
        log_event("interview", "time_expired", session.id, index=session.current_question_index)

        draft = handle.draft if handle.draft.strip() else TIME_EXPIRED_ANSWER
        await self.submit_answer(handle, draft)
        return 0

    def update_draft(self, handle: SessionHandle, text: str) -> None:
        if handle.session.status == SessionStatus.COMPLETED:
            raise SessionStateError("interview already completed")
        handle.draft = str(text or "")

    # -------------------------
    # PAUSE / RESUME
    # -------------------------

    def pause(self, handle: SessionHandle) -> None:
        session = handle.session
        if session.status != SessionStatus.IN_PROGRESS:
            raise SessionStateError(f"cannot pause a session that is {session.status.value}")

        handle.countdown.cancel()
        session.status = SessionStatus.PAUSED
        self._save(handle)
        log_event("interview", "paused", session.id, index=session.current_question_index, time_left=session.time_left)

    def resume(self, handle: SessionHandle) -> None:
        session = handle.session
        if handle.closed:
            raise SessionStateError("session handle is closed")
        if session.status != SessionStatus.PAUSED:
            raise SessionStateError(f"cannot resume a session that is {session.status.value}")

        session.status = SessionStatus.IN_PROGRESS
        # elapsed time restarts for display; the countdown keeps its value
        session.current_question_start_time = self.clock()

        question = handle.current_question
        if question is not None:
            if session.time_left <= 0:
                session.time_left = question.time_limit
            handle.countdown.start()
        else:
            self._request_question(handle)

        self._save(handle)
        log_event("interview", "resumed", session.id, index=session.current_question_index, time_left=session.time_left)

    # -------------------------
    # ANSWERS
    # -------------------------

    async def submit_answer(self, handle: SessionHandle, text: str) -> Answer:
        session = handle.session
        question = handle.current_question
        if session.status != SessionStatus.IN_PROGRESS or question is None:
            raise SessionStateError("no active question to answer")
        if handle.closed:
            raise SessionStateError("session handle is closed")
        if handle.submitting:
            raise SessionStateError("an answer is already being submitted")

        handle.submitting = True
        handle.countdown.cancel()
        try:
            if session.current_question_start_time is not None:
                time_spent = max(0, int(self.clock() - session.current_question_start_time))
            else:
                time_spent = question.time_limit

            result = await self.scoring.score(question.text, text, question.difficulty)
            if handle.closed:
                log_event("interview", "answer_dropped_after_close", session.id, index=session.current_question_index)
                raise SessionStateError("session handle was closed while grading")

            answer = Answer(
                question_id=question.id,
                question=question.text,
                difficulty=question.difficulty,
                time_limit=question.time_limit,
                answer=str(text or ""),
                time_spent=time_spent,
                score=result.score,
                feedback=result.feedback,
            )

            index = session.current_question_index
            session.answers.append(answer)
            handle.draft = ""
            increment_metric("answers_submitted")
            log_event(
                "interview",
                "answer_submitted",
                session.id,
                index=index,
                score=answer.score,
                time_spent=time_spent,
                answer=answer.answer,
            )

            if self.store is not None:
                self.background.dispatch(
                    "persist_answer",
                    session.id,
                    self._persist_answer(handle, question, index, answer),
                )

            if index >= self.total_questions - 1:
                await self._complete(handle)
            else:
                session.current_question_index = index + 1
                session.current_question_start_time = self.clock()
                session.time_left = 0
                self._save(handle)
                self._request_question(handle)

            return answer
        finally:
            handle.submitting = False

    async def _persist_answer(self, handle: SessionHandle, question: Question, index: int, answer: Answer) -> str:
        pending = handle.question_persist.get(answer.question_id)
        if pending is not None:
            await asyncio.gather(pending, return_exceptions=True)

        payload = answer.to_dict()
        payload["question_id"] = question.id
        return await self.store.create_answer(handle.session_id, index, payload)

    async def _complete(self, handle: SessionHandle) -> None:
        session = handle.session
        final_score = calculate_final_score(a.score for a in session.answers)

        try:
            summary = await self.summarize(session.candidate.name, list(session.answers), final_score)
        except Exception as exc:
            logger.warning("summary collaborator failed | session_id=%s err=%s", session.id, exc)
            summary = await generate_summary(session.candidate.name, list(session.answers), final_score)

        if handle.closed:
            log_event("interview", "completion_dropped_after_close", session.id)
            return

        handle.countdown.cancel()
        session.final_score = final_score
        session.summary = summary
        session.status = SessionStatus.COMPLETED
        session.end_time = self.clock()
        session.time_left = 0
        self._save(handle)

        increment_metric("sessions_completed")
        decrement_metric("sessions_active")
        log_event(
            "interview",
            "session_completed",
            session.id,
            final_score=final_score,
            recommendation=recommendation_for(final_score),
            summary=summary,
        )

    # -------------------------
    # WELCOME BACK
    # -------------------------

    def should_offer_resume(self, session: Session | None) -> bool:
        if session is None:
            return False
        return (
            session.status == SessionStatus.PAUSED
            and session.current_question_index < self.total_questions
        )

    async def resume_unfinished_session(self, session_id: str) -> SessionHandle | None:
        if self.store is None:
            return None

        loaded = await self.store.load_session(session_id)
        if loaded is None:
            return None

        session, questions = loaded
        if not self.should_offer_resume(session):
            return None

        if len(session.answers) != session.current_question_index:
            logger.warning(
                "stored answers out of step with index | session_id=%s answers=%s index=%s",
                session.id, len(session.answers), session.current_question_index,
            )
            session.current_question_index = min(len(session.answers), session.current_question_index)

        increment_metric("sessions_resumed")
        increment_metric("sessions_active")
        log_event("interview", "welcome_back_offered", session.id, index=session.current_question_index)
        return self._new_handle(session, questions)

    # -------------------------
    # VIEW / TEARDOWN
    # -------------------------

    def snapshot(self, handle: SessionHandle) -> dict:
        session = handle.session
        question = handle.current_question
        elapsed = 0
        if question is not None and session.current_question_start_time is not None:
            elapsed = max(0, int(self.clock() - session.current_question_start_time))

        return {
            "session_id": session.id,
            "candidate": {
                "name": session.candidate.name,
                "email": session.candidate.email,
                "phone": session.candidate.phone,
                "resume_file_name": session.candidate.resume_file_name,
            },
            "status": session.status.value,
            "current_question_index": session.current_question_index,
            "total_questions": self.total_questions,
            "current_question": question.to_dict() if question is not None else None,
            "is_generating_question": bool(handle.question_task is not None and not handle.question_task.done()),
            "time_left": session.time_left,
            "elapsed": elapsed,
            "answers": [a.to_dict() for a in session.answers],
            "start_time": session.start_time,
            "end_time": session.end_time,
            "final_score": session.final_score,
            "summary": session.summary,
            "recommendation": recommendation_for(session.final_score) if session.final_score is not None else None,
        }

    def close(self, handle: SessionHandle) -> None:
        if handle.closed:
            return
        handle.closed = True
        handle.countdown.cancel()
        task = handle.question_task
        if task is not None and not task.done():
            task.cancel()
        if handle.session.status != SessionStatus.COMPLETED:
            decrement_metric("sessions_active")
