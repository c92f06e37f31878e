from interview_assistant.ai_reasoning.llm import call_llm, extract_json_dict
from interview_assistant.prompts import build_skills_prompt


EXPERIENCE_LEVELS = ("junior", "mid", "senior")


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, str) and item.strip()]


class ResumeParser:
    async def extract_skills(self, resume_text: str) -> dict:
        empty = {"technologies": [], "experience_level": "mid", "domains": []}
        if not str(resume_text or "").strip():
            return empty

        raw = await call_llm(build_skills_prompt(resume_text))
        parsed = extract_json_dict(raw)
        if not parsed:
            return empty

        level = str(parsed.get("experience_level") or parsed.get("experienceLevel") or "").strip().lower()
        return {
            "technologies": _string_list(parsed.get("technologies")),
            "experience_level": level if level in EXPERIENCE_LEVELS else "mid",
            "domains": _string_list(parsed.get("domains")),
        }
