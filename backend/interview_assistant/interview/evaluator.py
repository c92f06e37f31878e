from core.state import Difficulty
from interview_assistant.ai_reasoning.llm import call_llm, extract_json_dict
from interview_assistant.interview.scorer import AnswerScore, feedback_for
from interview_assistant.prompts import build_grading_prompt


class GradingUnavailableError(RuntimeError):
    pass


def _clamp_score(value) -> int:
    try:
        return max(0, min(10, int(round(float(value)))))
    except Exception as exc:
        raise GradingUnavailableError(f"unusable score: {value!r}") from exc


async def evaluate_answer(question: str, answer: str, difficulty: Difficulty) -> AnswerScore:
    """Remote grading strategy for ScoringEngine; raises when the model output is unusable."""
    raw = await call_llm(build_grading_prompt(question, answer, Difficulty(difficulty).value), temperature=0.2)

    parsed = extract_json_dict(raw)
    if not parsed or parsed.get("score") is None:
        raise GradingUnavailableError("model returned no score")

    score = _clamp_score(parsed.get("score"))
    feedback = str(parsed.get("feedback") or "").strip()
    if feedback:
        feedback = f"{feedback} (Score: {score}/10)"
    else:
        feedback = feedback_for(score)
    return AnswerScore(score=score, feedback=feedback)
