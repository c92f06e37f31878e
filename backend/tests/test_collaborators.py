import json

import pytest

from core.state import Difficulty
from interview_assistant.ai_reasoning import question_writer
from interview_assistant.context import resume_parser
from interview_assistant.interview import evaluator
from interview_assistant.interview.models import Answer
from interview_assistant.interview.summary import generate_summary


@pytest.mark.asyncio
async def test_extract_skills_normalises_model_output(monkeypatch: pytest.MonkeyPatch):
    async def _fake_llm(prompt, **kwargs):
        return json.dumps({"technologies": ["React", "", 3, "Node.js"], "experienceLevel": "Senior", "domains": "web"})

    monkeypatch.setattr(resume_parser, "call_llm", _fake_llm)
    skills = await resume_parser.ResumeParser().extract_skills("React and Node.js for eight years")

    assert skills == {"technologies": ["React", "Node.js"], "experience_level": "senior", "domains": []}


@pytest.mark.asyncio
async def test_extract_skills_defaults_for_empty_resume():
    skills = await resume_parser.ResumeParser().extract_skills("   ")
    assert skills == {"technologies": [], "experience_level": "mid", "domains": []}


@pytest.mark.asyncio
async def test_generate_question_text_includes_previous_questions(monkeypatch: pytest.MonkeyPatch):
    prompts = []

    async def _fake_llm(prompt, **kwargs):
        prompts.append(prompt)
        if "STRICTLY FORBIDDEN QUESTIONS" in prompt:
            return '{"question": "How does the event loop schedule microtasks?"}'
        return '{"technologies": ["JavaScript"], "experience_level": "mid", "domains": ["web"]}'

    monkeypatch.setattr(resume_parser, "call_llm", _fake_llm)
    monkeypatch.setattr(question_writer, "call_llm", _fake_llm)
    monkeypatch.setattr(question_writer, "_skills_cache", {})

    text = await question_writer.generate_question_text(
        Difficulty.MEDIUM, "JavaScript developer", ["Explain closures in JavaScript."],
    )

    assert text == "How does the event loop schedule microtasks?"
    assert "Explain closures in JavaScript." in prompts[-1]
    assert "medium" in prompts[-1].lower()


@pytest.mark.asyncio
async def test_generate_question_text_raises_without_question(monkeypatch: pytest.MonkeyPatch):
    async def _fake_llm(prompt, **kwargs):
        return "{}"

    monkeypatch.setattr(resume_parser, "call_llm", _fake_llm)
    monkeypatch.setattr(question_writer, "call_llm", _fake_llm)
    monkeypatch.setattr(question_writer, "_skills_cache", {})

    with pytest.raises(question_writer.QuestionGenerationError):
        await question_writer.generate_question_text(Difficulty.EASY, "", [])


@pytest.mark.asyncio
async def test_generate_question_text_reuses_skill_profile_across_retries(monkeypatch: pytest.MonkeyPatch):
    skill_calls = []
    question_calls = []

    async def _fake_skills_llm(prompt, **kwargs):
        skill_calls.append(prompt)
        return '{"technologies": ["Python"], "experience_level": "senior", "domains": ["api"]}'

    async def _fake_question_llm(prompt, **kwargs):
        question_calls.append(prompt)
        if len(question_calls) == 1:
            return "not json"
        return '{"question": "How would you profile a slow FastAPI endpoint?"}'

    monkeypatch.setattr(resume_parser, "call_llm", _fake_skills_llm)
    monkeypatch.setattr(question_writer, "call_llm", _fake_question_llm)
    monkeypatch.setattr(question_writer, "_skills_cache", {})

    with pytest.raises(question_writer.QuestionGenerationError):
        await question_writer.generate_question_text(Difficulty.HARD, "Senior Python engineer", [])
    text = await question_writer.generate_question_text(Difficulty.HARD, "Senior Python engineer", [])

    assert text == "How would you profile a slow FastAPI endpoint?"
    assert len(skill_calls) == 1
    assert len(question_calls) == 2
    assert "Technologies: Python" in question_calls[-1]


@pytest.mark.asyncio
async def test_evaluate_answer_clamps_and_formats(monkeypatch: pytest.MonkeyPatch):
    async def _fake_llm(prompt, **kwargs):
        return '{"score": 12.4, "feedback": "Thorough and precise."}'

    monkeypatch.setattr(evaluator, "call_llm", _fake_llm)
    result = await evaluator.evaluate_answer("q", "a detailed answer", Difficulty.HARD)

    assert result.score == 10
    assert result.feedback == "Thorough and precise. (Score: 10/10)"


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{}", '{"score": "high"}', "not json"])
async def test_evaluate_answer_raises_on_unusable_output(monkeypatch: pytest.MonkeyPatch, raw):
    async def _fake_llm(prompt, **kwargs):
        return raw

    monkeypatch.setattr(evaluator, "call_llm", _fake_llm)
    with pytest.raises(evaluator.GradingUnavailableError):
        await evaluator.evaluate_answer("q", "a detailed answer", Difficulty.EASY)


@pytest.mark.asyncio
async def test_summary_names_candidate_and_recommendation():
    answers = [
        Answer(question_id=f"q{i}", question="q", difficulty=Difficulty.EASY, time_limit=20,
               answer="a", time_spent=5, score=s, feedback="")
        for i, s in enumerate([7, 6, 5])
    ]

    summary = await generate_summary("Ada", answers, 6)

    assert summary.startswith("Ada completed the technical interview with an overall score of 6/10")
    assert "good full-stack development skills" in summary
    assert "solid technical knowledge" in summary
    assert summary.endswith("our recommendation is: Hire.")
