import logging
import random
import re
import time
from typing import Awaitable, Callable, Iterable

from core.config import QUESTION_GENERATION_ATTEMPTS
from core.state import Difficulty
from interview_assistant.interview.models import Question, Session, placeholder_question_id
from interview_assistant.system_metrics import increment_metric, observe_question_generation_ms

logger = logging.getLogger("interview_assistant.interview.questions")

GenerateFn = Callable[[Difficulty, str, list[str]], Awaitable[str]]

SIMILARITY_THRESHOLD = 0.6
MIN_QUESTION_LENGTH = 10


# ---------- DIFFICULTY TIERS ----------

TIME_LIMITS = {
    Difficulty.EASY: 20,
    Difficulty.MEDIUM: 60,
    Difficulty.HARD: 120,
}


def difficulty_for_index(index: int) -> tuple[Difficulty, int]:
    if index < 2:
        difficulty = Difficulty.EASY
    elif index < 4:
        difficulty = Difficulty.MEDIUM
    else:
        difficulty = Difficulty.HARD
    return difficulty, TIME_LIMITS[difficulty]


# ---------- UNIQUENESS ----------

_TOKEN_ALIASES = {
    "js": "javascript",
    "ts": "typescript",
    "db": "database",
    "dbs": "databases",
    "k8s": "kubernetes",
    "py": "python",
}

_TOKEN_RE = re.compile(r"[a-z0-9+#-]+")


def _significant_words(text: str) -> set[str]:
    words = set()
    for token in _TOKEN_RE.findall(str(text or "").lower()):
        token = _TOKEN_ALIASES.get(token.strip("-"), token.strip("-"))
        if len(token) > 3:
            words.add(token)
    return words


def question_similarity(first: str, second: str) -> float:
    a = _significant_words(first)
    b = _significant_words(second)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def is_question_unique(question: str, previous_questions: Iterable[str]) -> bool:
    normalized = str(question or "").strip().lower()
    for previous in previous_questions or []:
        if normalized == str(previous or "").strip().lower():
            return False
        if question_similarity(question, previous) > SIMILARITY_THRESHOLD:
            return False
    return True


# ---------- STATIC BANK ----------

FALLBACK_QUESTIONS = {
    Difficulty.EASY: [
        "Explain the difference between var, let, and const in JavaScript.",
        "What is the purpose of the useState hook in React?",
        "How do you handle events in React components?",
        "What is the difference between props and state in React?",
        "How do you create a functional component in React?",
        "What is JSX and how does it work?",
        "Explain the component lifecycle in React.",
        "How do you pass data between parent and child components?",
    ],
    Difficulty.MEDIUM: [
        "How would you optimize a React component's performance?",
        "Explain how you would implement error handling in a React application.",
        "What are the benefits of using TypeScript in a React project?",
        "How do you manage state in a complex React application?",
        "Explain the concept of React Context and when to use it.",
        "How would you implement routing in a React application?",
        "What are React hooks and how do they differ from class components?",
        "How do you handle asynchronous operations in React?",
    ],
    Difficulty.HARD: [
        "Design a scalable architecture for a React application with multiple data sources.",
        "How would you implement authentication and authorization in a full-stack application?",
        "Explain your approach to testing a complex React application.",
        "How would you optimize bundle size and loading performance in a large React app?",
        "Describe your strategy for state management in a large-scale React application.",
        "How would you implement code splitting and lazy loading in React?",
        "Explain how you would handle security vulnerabilities in a React application.",
        "Design a microservices architecture for a complex web application.",
    ],
}


def synthetic_question(difficulty: Difficulty) -> str:
    return f"Describe your experience with {Difficulty(difficulty).value} level development tasks."


def _clean(text: str) -> str:
    return re.sub(r"^[\"']|[\"']$", "", str(text or "").strip()).strip()


# ---------- SEQUENCER ----------

class QuestionSequencer:
    """
    Picks the next question for a session.

    Difficulty and time limit come from the question position. Text comes from
    the generation collaborator, retried while it repeats an earlier question,
    then from the static bank, then from a synthetic template. Never raises.
    """

    def __init__(
        self,
        generate_fn: GenerateFn | None = None,
        max_attempts: int = QUESTION_GENERATION_ATTEMPTS,
        bank: dict[Difficulty, list[str]] | None = None,
        rng: random.Random | None = None,
    ):
        self.generate_fn = generate_fn
        self.max_attempts = max(1, int(max_attempts))
        self.bank = bank if bank is not None else FALLBACK_QUESTIONS
        self.rng = rng or random.Random()

    async def next_question(self, session: Session, previous_questions: list[str]) -> Question:
        index = session.current_question_index
        difficulty, time_limit = difficulty_for_index(index)
        previous = list(previous_questions or [])

        text = await self._generate(difficulty, session.candidate.resume_text, previous, session.id)
        if text is None:
            text = self.fallback_question(difficulty, previous)

        return Question(
            id=placeholder_question_id(index),
            text=text,
            difficulty=difficulty,
            time_limit=time_limit,
            index=index,
        )

    async def _generate(self, difficulty: Difficulty, candidate_text: str, previous: list[str], session_id: str) -> str | None:
        if self.generate_fn is None:
            return None

        started = time.perf_counter()
        try:
            for attempt in range(self.max_attempts):
                try:
                    text = _clean(await self.generate_fn(difficulty, candidate_text, previous))
                except Exception as exc:
                    logger.warning(
                        "question generation failed | session_id=%s attempt=%s err=%s",
                        session_id, attempt + 1, exc,
                    )
                    continue

                if len(text) >= MIN_QUESTION_LENGTH and is_question_unique(text, previous):
                    return text

                logger.info(
                    "question rejected | session_id=%s attempt=%s reason=%s",
                    session_id, attempt + 1, "too_short" if len(text) < MIN_QUESTION_LENGTH else "duplicate",
                )
        finally:
            observe_question_generation_ms((time.perf_counter() - started) * 1000.0)

        return None

    def fallback_question(self, difficulty: Difficulty, previous: list[str]) -> str:
        increment_metric("question_fallbacks")
        available = [q for q in self.bank.get(difficulty, []) if is_question_unique(q, previous)]
        if available:
            return self.rng.choice(available)

        increment_metric("question_synthetic")
        return synthetic_question(difficulty)


def reconcile_question_id(questions: list[Question], placeholder_id: str, durable_id: str) -> bool:
    """Swap a placeholder id for the durable one in place. Safe to repeat."""
    if not placeholder_id or not durable_id:
        return False
    for question in questions:
        if question.id == placeholder_id:
            question.id = durable_id
            return True
    return False
