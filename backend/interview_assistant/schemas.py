from pydantic import BaseModel


class DraftRequest(BaseModel):
    text: str = ""


class AnswerRequest(BaseModel):
    answer: str = ""


class WelcomeBackResponse(BaseModel):
    offer: bool
    session_id: str
    progress: int
    total_questions: int
    status: str
    name: str | None = None


class CandidateSummary(BaseModel):
    session_id: str
    name: str
    email: str
    phone: str
    status: str
    final_score: int | None = None
    recommendation: str | None = None
    answers_count: int = 0
    start_time: float | None = None
    end_time: float | None = None
