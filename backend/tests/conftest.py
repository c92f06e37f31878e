import random
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


SCRIPTED_QUESTIONS = [
    "Explain closures in JavaScript.",
    "What does the virtual DOM do for rendering?",
    "How would you paginate a REST endpoint?",
    "Describe optimistic locking in relational databases.",
    "Design a rate limiter for a public gateway.",
    "How would you shard a multi-tenant Postgres cluster?",
]

RELEVANT_ANSWER = (
    "I would split the work into components and reason about state, because clear ownership keeps the "
    "design simple. For example, a cache in front of the database improves performance and scalability "
    "under load, and an async function like `fetchPage(cursor)` keeps the api responsive."
)


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ENV", "development")
    monkeypatch.setenv("QA_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "")


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def scripted_generator(texts):
    remaining = list(texts)

    async def _generate(difficulty, candidate_text, previous_questions):
        return remaining.pop(0)

    return _generate


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_machine(clock: FakeClock):
    from interview_assistant.interview.engine import SessionStateMachine
    from interview_assistant.interview.questions import QuestionSequencer
    from interview_assistant.interview.scorer import ScoringEngine

    def _make(
        store=None,
        total_questions: int = 6,
        generate_fn=None,
        strategy=None,
        summarize=None,
        tick_interval_sec: float = 3600.0,
    ):
        return SessionStateMachine(
            sequencer=QuestionSequencer(
                generate_fn=generate_fn or scripted_generator(SCRIPTED_QUESTIONS),
                rng=random.Random(7),
            ),
            scoring=ScoringEngine(strategy),
            store=store,
            summarize=summarize,
            total_questions=total_questions,
            tick_interval_sec=tick_interval_sec,
            clock=clock,
        )

    return _make


@pytest.fixture
def candidate():
    from interview_assistant.interview.models import CandidateInfo

    return CandidateInfo(
        name="Ada Lovelace",
        email="ada@example.com",
        phone="+1 555 010 2000",
        resume_file_name="ada.txt",
        resume_text="Ada Lovelace\nFull-stack engineer: React, Node.js, PostgreSQL.",
    )
