from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from core.config import INTERVIEW_STORE_PATH
from interview_assistant.interview.models import Question, Session

logger = logging.getLogger("interview_assistant.db.interview_repo")


class InterviewStore(Protocol):
    async def save_session(self, snapshot: dict[str, Any]) -> None:
        ...

    async def create_question(self, session_id: str, question: Question) -> str:
        ...

    async def create_answer(self, session_id: str, question_index: int, answer: dict[str, Any]) -> str:
        ...

    async def load_session(self, session_id: str) -> tuple[Session, list[Question]] | None:
        ...

    async def get_session_record(self, session_id: str) -> dict[str, Any] | None:
        ...

    async def list_sessions(self) -> list[dict[str, Any]]:
        ...


class JsonInterviewStore:
    """
    Sessions, questions and answers in one JSON document.

    Writes may arrive late or twice: session snapshots older than the stored
    revision are dropped, and questions/answers are keyed by session and
    position so repeats return the existing record.
    """

    def __init__(self, path: Path | str = INTERVIEW_STORE_PATH):
        self._lock = Lock()
        self._path = Path(path)
        self._sessions: dict[str, dict[str, Any]] = {}
        self._questions: dict[str, dict[str, Any]] = {}
        self._answers: dict[str, dict[str, Any]] = {}
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except Exception as exc:
            logger.warning("interview store unreadable, starting empty | path=%s err=%s", self._path, exc)
            return
        if not isinstance(payload, dict):
            return
        self._sessions = {str(k): v for k, v in dict(payload.get("sessions") or {}).items() if isinstance(v, dict)}
        self._questions = {str(k): v for k, v in dict(payload.get("questions") or {}).items() if isinstance(v, dict)}
        self._answers = {str(k): v for k, v in dict(payload.get("answers") or {}).items() if isinstance(v, dict)}

    def _persist(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        document = {
            "sessions": self._sessions,
            "questions": self._questions,
            "answers": self._answers,
        }
        temp_path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        temp_path.replace(self._path)

    # ---------- sync API ----------

    def save_session_sync(self, snapshot: dict[str, Any]) -> None:
        sid = str((snapshot or {}).get("id") or "").strip()
        if not sid:
            return
        record = dict(snapshot)
        record.pop("answers", None)
        with self._lock:
            current = self._sessions.get(sid)
            if current is not None and int(current.get("revision") or 0) > int(record.get("revision") or 0):
                return
            record.setdefault("created_at", (current or {}).get("created_at") or time.time())
            record["updated_at"] = time.time()
            self._sessions[sid] = record
            self._persist()

    def create_question_sync(self, session_id: str, question: Question) -> str:
        key = f"{session_id}:{int(question.index)}"
        with self._lock:
            existing = self._questions.get(key)
            if existing is not None:
                return str(existing["id"])
            record = question.to_dict()
            record["id"] = str(uuid.uuid4())
            record["session_id"] = session_id
            record["created_at"] = time.time()
            self._questions[key] = record
            self._persist()
            return record["id"]

    def create_answer_sync(self, session_id: str, question_index: int, answer: dict[str, Any]) -> str:
        key = f"{session_id}:{int(question_index)}"
        with self._lock:
            existing = self._answers.get(key)
            if existing is not None:
                return str(existing["id"])
            record = dict(answer or {})
            record["id"] = str(uuid.uuid4())
            record["session_id"] = session_id
            record["question_index"] = int(question_index)
            record["created_at"] = time.time()
            self._answers[key] = record
            self._persist()
            return record["id"]

    def _answers_for(self, session_id: str) -> list[dict[str, Any]]:
        rows = [dict(a) for a in self._answers.values() if a.get("session_id") == session_id]
        rows.sort(key=lambda item: int(item.get("question_index") or 0))
        return rows

    def _questions_for(self, session_id: str) -> list[dict[str, Any]]:
        rows = [dict(q) for q in self._questions.values() if q.get("session_id") == session_id]
        rows.sort(key=lambda item: int(item.get("index") or 0))
        return rows

    def load_session_sync(self, session_id: str) -> tuple[Session, list[Question]] | None:
        sid = str(session_id or "").strip()
        with self._lock:
            record = self._sessions.get(sid)
            if record is None:
                return None
            data = dict(record)
            data["answers"] = self._answers_for(sid)
            questions = [Question.from_dict(q) for q in self._questions_for(sid)]
        return Session.from_dict(data), questions

    def get_session_record_sync(self, session_id: str) -> dict[str, Any] | None:
        sid = str(session_id or "").strip()
        with self._lock:
            record = self._sessions.get(sid)
            if record is None:
                return None
            item = dict(record)
            item["answers"] = self._answers_for(sid)
            item["questions"] = self._questions_for(sid)
        return item

    def list_sessions_sync(self) -> list[dict[str, Any]]:
        with self._lock:
            rows = []
            for sid, record in self._sessions.items():
                item = dict(record)
                item["answers"] = self._answers_for(sid)
                rows.append(item)
        rows.sort(key=lambda item: float(item.get("created_at") or 0.0), reverse=True)
        return rows

    # ---------- async API ----------

    async def save_session(self, snapshot: dict[str, Any]) -> None:
        await asyncio.to_thread(self.save_session_sync, snapshot)

    async def create_question(self, session_id: str, question: Question) -> str:
        return await asyncio.to_thread(self.create_question_sync, session_id, question)

    async def create_answer(self, session_id: str, question_index: int, answer: dict[str, Any]) -> str:
        return await asyncio.to_thread(self.create_answer_sync, session_id, question_index, answer)

    async def load_session(self, session_id: str) -> tuple[Session, list[Question]] | None:
        return await asyncio.to_thread(self.load_session_sync, session_id)

    async def get_session_record(self, session_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self.get_session_record_sync, session_id)

    async def list_sessions(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.list_sessions_sync)
