import hashlib
import logging

from core.state import Difficulty
from interview_assistant.ai_reasoning.llm import call_llm, extract_json_dict
from interview_assistant.context.resume_parser import ResumeParser
from interview_assistant.prompts import build_question_prompt

logger = logging.getLogger("interview_assistant.ai_reasoning.question_writer")

_resume_parser = ResumeParser()

_SKILLS_CACHE_MAX = 128
_skills_cache: dict[str, dict] = {}


class QuestionGenerationError(RuntimeError):
    pass


async def _skills_for(candidate_text: str) -> dict:
    """Skill profile per resume text; only profiles with technologies are kept."""
    key = hashlib.sha256(str(candidate_text or "").encode("utf-8")).hexdigest()
    cached = _skills_cache.get(key)
    if cached is not None:
        return cached

    skills = await _resume_parser.extract_skills(candidate_text)
    if skills.get("technologies"):
        if len(_skills_cache) >= _SKILLS_CACHE_MAX:
            _skills_cache.pop(next(iter(_skills_cache)))
        _skills_cache[key] = skills
    return skills


async def generate_question_text(
    difficulty: Difficulty,
    candidate_text: str,
    previous_questions: list[str],
) -> str:
    skills = await _skills_for(candidate_text)
    prompt = build_question_prompt(
        Difficulty(difficulty).value,
        skills,
        candidate_text,
        list(previous_questions or []),
    )

    raw = await call_llm(prompt, temperature=0.8)
    parsed = extract_json_dict(raw) or {}
    question = str(parsed.get("question") or "").strip()
    if not question:
        raise QuestionGenerationError("model returned no question")
    return question
