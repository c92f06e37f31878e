import inspect
import logging
import math
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from core.state import Difficulty
from interview_assistant.interview.models import TIME_EXPIRED_ANSWER
from interview_assistant.system_metrics import increment_metric

logger = logging.getLogger("interview_assistant.interview.scorer")


NO_ANSWER_FEEDBACK = "No answer provided. (Score: 0/10)"
GRADING_UNAVAILABLE_FEEDBACK = "Grading unavailable; answer recorded without a score. (Score: 0/10)"


@dataclass(frozen=True)
class AnswerScore:
    score: int
    feedback: str


GradingStrategy = Callable[[str, str, Difficulty], Union[AnswerScore, Awaitable[AnswerScore]]]


# ---------- REFERENCE HEURISTIC ----------

_LENGTH_STEPS = {
    Difficulty.EASY: ((50, 2), (100, 4), (200, 6), (None, 8)),
    Difficulty.MEDIUM: ((80, 2), (150, 4), (250, 6), (None, 8)),
    Difficulty.HARD: ((100, 1), (200, 3), (300, 5), (None, 7)),
}

_TECHNICAL_TERMS = {
    Difficulty.EASY: re.compile(
        r"\b(javascript|react|html|css|dom|function|variable|array|object|string|number|jsx|component|props|state)\b",
        re.IGNORECASE,
    ),
    Difficulty.MEDIUM: re.compile(
        r"\b(api|state|props|hooks|async|promise|node|express|database|component|event|callback|middleware|route|query)\b",
        re.IGNORECASE,
    ),
    Difficulty.HARD: re.compile(
        r"\b(architecture|scalability|performance|security|optimization|microservices|design|pattern|algorithm|cache|load|balancing|distributed|concurrency)\b",
        re.IGNORECASE,
    ),
}

_EXPLANATION = re.compile(
    r"\b(because|since|due to|therefore|so|thus|as a result|this means|which allows|by using|through|via)\b",
    re.IGNORECASE,
)
_EXAMPLES = re.compile(
    r"\b(for example|such as|like|e\.g\.|i\.e\.|specifically|in particular|instance|case)\b",
    re.IGNORECASE,
)
_CODE = re.compile(r"[`<>(){}\[\]=]|\bconst\b|\blet\b|\bfunction\b|\bclass\b|\bimport\b|\bexport\b")
_HEDGING = re.compile(r"\b(i don't know|no idea|not sure|maybe|perhaps|guess|unclear|confused)\b", re.IGNORECASE)
_SELF_REPORTED_WRONG = re.compile(r"\b(wrong|incorrect|mistake|error|faulty)\b", re.IGNORECASE)

_FEEDBACK_TIERS = (
    (9, "Outstanding! Comprehensive, technically accurate, and well-explained answer."),
    (7, "Excellent answer with strong technical understanding and good examples."),
    (5, "Good answer showing solid knowledge. Could use more depth and examples."),
    (3, "Basic answer with some correct information but lacking depth and accuracy."),
    (1, "Poor answer. Shows minimal understanding of the topic."),
)


def is_blank_answer(answer: str) -> bool:
    text = str(answer or "").strip()
    return (
        text == ""
        or text == TIME_EXPIRED_ANSWER
        or "no answer" in text.lower()
        or len(text) < 5
    )


def _base_score(length: int, difficulty: Difficulty) -> int:
    for limit, value in _LENGTH_STEPS[difficulty]:
        if limit is None or length < limit:
            return value
    return 0


def feedback_for(score: int) -> str:
    for threshold, sentence in _FEEDBACK_TIERS:
        if score >= threshold:
            return f"{sentence} (Score: {score}/10)"
    return f"No answer provided or completely incorrect. (Score: {score}/10)"


def score_answer(question: str, answer: str, difficulty: Difficulty) -> AnswerScore:
    text = str(answer or "").strip()
    if is_blank_answer(text):
        return AnswerScore(score=0, feedback=NO_ANSWER_FEEDBACK)

    difficulty = Difficulty(difficulty)
    score = _base_score(len(text), difficulty)

    if _TECHNICAL_TERMS[difficulty].search(text):
        score += 1
    else:
        score = max(0, score - 3)

    if _EXPLANATION.search(text):
        score += 1
    if _EXAMPLES.search(text):
        score += 1
    if _CODE.search(text) and difficulty != Difficulty.EASY:
        score += 1

    if _HEDGING.search(text):
        score = max(0, score - 2)
    if _SELF_REPORTED_WRONG.search(text):
        score = max(0, score - 3)

    score = max(0, min(10, score))
    return AnswerScore(score=score, feedback=feedback_for(score))


# ---------- ENGINE ----------

class ScoringEngine:
    """
    Grades one answer with a pluggable strategy.

    Blank answers never reach the strategy. A strategy that raises yields a
    zero score with an explicit "grading unavailable" feedback so the session
    keeps moving.
    """

    def __init__(self, strategy: GradingStrategy | None = None):
        self.strategy = strategy or score_answer

    async def score(self, question: str, answer: str, difficulty: Difficulty) -> AnswerScore:
        if is_blank_answer(answer):
            return AnswerScore(score=0, feedback=NO_ANSWER_FEEDBACK)

        try:
            result = self.strategy(question, answer, Difficulty(difficulty))
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            increment_metric("grading_fallbacks")
            logger.warning("grading strategy failed | difficulty=%s err=%s", difficulty, exc)
            return AnswerScore(score=0, feedback=GRADING_UNAVAILABLE_FEEDBACK)

        score = max(0, min(10, int(result.score)))
        return AnswerScore(score=score, feedback=str(result.feedback or feedback_for(score)))


# ---------- AGGREGATE ----------

def calculate_final_score(scores) -> int:
    values = [max(0, min(10, int(s or 0))) for s in list(scores or [])]
    if not values:
        return 0
    return int(math.floor(sum(values) / len(values) + 0.5))


def recommendation_for(final_score: int) -> str:
    if final_score >= 8:
        return "Strong Hire"
    if final_score >= 6:
        return "Hire"
    if final_score >= 4:
        return "Maybe"
    return "No Hire"
