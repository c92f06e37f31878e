from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional
import time
import uuid

from core.state import Difficulty, SessionStatus


TIME_EXPIRED_ANSWER = "No answer provided (time expired)"


@dataclass
class CandidateInfo:
    name: str = "Candidate"
    email: str = ""
    phone: str = "Not provided"
    resume_file_name: str = ""
    resume_text: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> "CandidateInfo":
        data = dict(data or {})
        return cls(
            name=str(data.get("name") or "Candidate"),
            email=str(data.get("email") or ""),
            phone=str(data.get("phone") or "Not provided"),
            resume_file_name=str(data.get("resume_file_name") or ""),
            resume_text=str(data.get("resume_text") or ""),
        )


@dataclass
class Question:
    """
    One generated question. `id` starts as a placeholder and is the only
    field swapped once the store hands back a durable id.
    """
    id: str
    text: str
    difficulty: Difficulty
    time_limit: int
    index: int = 0

    @property
    def is_placeholder(self) -> bool:
        return self.id.startswith("temp-")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "difficulty": self.difficulty.value,
            "time_limit": self.time_limit,
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=str(data.get("id") or ""),
            text=str(data.get("text") or ""),
            difficulty=Difficulty(str(data.get("difficulty") or "easy")),
            time_limit=int(data.get("time_limit") or 0),
            index=int(data.get("index") or 0),
        )


def placeholder_question_id(index: int) -> str:
    return f"temp-{int(time.time() * 1000)}-{index}"


@dataclass(frozen=True)
class Answer:
    question_id: str
    question: str
    difficulty: Difficulty
    time_limit: int
    answer: str
    time_spent: int
    score: int = 0
    feedback: str = ""

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "question": self.question,
            "difficulty": self.difficulty.value,
            "time_limit": self.time_limit,
            "answer": self.answer,
            "time_spent": self.time_spent,
            "score": self.score,
            "feedback": self.feedback,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Answer":
        return cls(
            question_id=str(data.get("question_id") or ""),
            question=str(data.get("question") or ""),
            difficulty=Difficulty(str(data.get("difficulty") or "easy")),
            time_limit=int(data.get("time_limit") or 0),
            answer=str(data.get("answer") or ""),
            time_spent=max(0, int(data.get("time_spent") or 0)),
            score=int(data.get("score") or 0),
            feedback=str(data.get("feedback") or ""),
        )


@dataclass
class Session:
    candidate: CandidateInfo
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: SessionStatus = SessionStatus.COLLECTING_INFO
    current_question_index: int = 0
    answers: list[Answer] = field(default_factory=list)
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    current_question_start_time: Optional[float] = None
    final_score: Optional[int] = None
    summary: Optional[str] = None
    time_left: int = 0
    revision: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "candidate": self.candidate.to_dict(),
            "status": self.status.value,
            "current_question_index": self.current_question_index,
            "answers": [a.to_dict() for a in self.answers],
            "start_time": self.start_time,
            "end_time": self.end_time,
            "current_question_start_time": self.current_question_start_time,
            "final_score": self.final_score,
            "summary": self.summary,
            "time_left": self.time_left,
            "revision": self.revision,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        final_score = data.get("final_score")
        return cls(
            candidate=CandidateInfo.from_dict(data.get("candidate")),
            id=str(data.get("id") or uuid.uuid4()),
            status=SessionStatus(str(data.get("status") or SessionStatus.COLLECTING_INFO.value)),
            current_question_index=int(data.get("current_question_index") or 0),
            answers=[Answer.from_dict(a) for a in list(data.get("answers") or []) if isinstance(a, dict)],
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            current_question_start_time=data.get("current_question_start_time"),
            final_score=int(final_score) if final_score is not None else None,
            summary=data.get("summary"),
            time_left=max(0, int(data.get("time_left") or 0)),
            revision=int(data.get("revision") or 0),
        )
