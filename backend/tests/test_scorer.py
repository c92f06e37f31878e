import pytest

from core.state import Difficulty
from interview_assistant.interview.models import TIME_EXPIRED_ANSWER
from interview_assistant.interview.scorer import (
    GRADING_UNAVAILABLE_FEEDBACK,
    NO_ANSWER_FEEDBACK,
    AnswerScore,
    ScoringEngine,
    calculate_final_score,
    recommendation_for,
    score_answer,
)
from interview_assistant.system_metrics import get_metric


@pytest.mark.parametrize("difficulty", list(Difficulty))
@pytest.mark.parametrize("blank", ["", "   ", "idk", TIME_EXPIRED_ANSWER, "No answer from me"])
def test_blank_answers_score_zero_for_every_difficulty(difficulty, blank):
    result = score_answer("Explain closures in JavaScript.", blank, difficulty)
    assert result == AnswerScore(score=0, feedback=NO_ANSWER_FEEDBACK)


def test_short_answer_with_technical_term():
    result = score_answer("What is a function?", "A function returns a value.", Difficulty.EASY)
    assert result.score == 3
    assert result.feedback.endswith("(Score: 3/10)")
    assert result.feedback.startswith("Basic answer")


def test_hedging_lowers_score():
    confident = score_answer("q", "A function returns a value.", Difficulty.EASY)
    hedged = score_answer("q", "I'm not sure, a function returns a value.", Difficulty.EASY)
    assert hedged.score == confident.score - 2


def test_missing_technical_terms_penalised_to_zero():
    result = score_answer("Design a cache.", "I would just write some code quickly", Difficulty.HARD)
    assert result.score == 0
    assert result.feedback == "No answer provided or completely incorrect. (Score: 0/10)"


def test_scores_are_clamped_to_ten():
    answer = (
        "Because the state lives in one component, for example a counter built with a function and an object, "
        "the DOM only updates where props change. This means React can batch work, such as several setState "
        "calls in one handler, and therefore render once. " * 2
    )
    result = score_answer("Explain React state.", answer, Difficulty.EASY)
    assert result.score == 10
    assert result.feedback.startswith("Outstanding!")


@pytest.mark.asyncio
async def test_engine_never_calls_strategy_for_blank_answers():
    calls = []

    def _strategy(question, answer, difficulty):
        calls.append(answer)
        return AnswerScore(score=9, feedback="great")

    engine = ScoringEngine(_strategy)
    result = await engine.score("q", "   ", Difficulty.MEDIUM)

    assert result.score == 0
    assert result.feedback == NO_ANSWER_FEEDBACK
    assert calls == []


@pytest.mark.asyncio
async def test_engine_accepts_async_strategy_and_clamps():
    async def _strategy(question, answer, difficulty):
        return AnswerScore(score=14, feedback="")

    result = await ScoringEngine(_strategy).score("q", "a real answer here", Difficulty.HARD)
    assert result.score == 10
    assert result.feedback.endswith("(Score: 10/10)")


@pytest.mark.asyncio
async def test_engine_reports_grading_unavailable_when_strategy_fails():
    async def _strategy(question, answer, difficulty):
        raise TimeoutError("grader timed out")

    before = get_metric("grading_fallbacks")
    result = await ScoringEngine(_strategy).score("q", "a real answer here", Difficulty.EASY)

    assert result == AnswerScore(score=0, feedback=GRADING_UNAVAILABLE_FEEDBACK)
    assert get_metric("grading_fallbacks") == before + 1


@pytest.mark.parametrize(
    "scores, expected",
    [
        ([7, 8, 6], 7),
        ([5, 6], 6),
        ([0, 1], 1),
        ([0, 0, 0], 0),
        ([], 0),
        ([10, 10, 10, 10, 10, 9], 10),
    ],
)
def test_final_score_rounds_half_up(scores, expected):
    assert calculate_final_score(scores) == expected


@pytest.mark.parametrize(
    "score, expected",
    [(10, "Strong Hire"), (8, "Strong Hire"), (7, "Hire"), (6, "Hire"), (5, "Maybe"), (4, "Maybe"), (3, "No Hire"), (0, "No Hire")],
)
def test_recommendation_bands(score, expected):
    assert recommendation_for(score) == expected
