# ----------- Question Generation -----------

DIFFICULTY_GUIDANCE = {
    "easy": "Generate a basic technical question suitable for a junior developer. Focus on fundamental concepts, syntax, and basic problem-solving.",
    "medium": "Generate an intermediate technical question suitable for a mid-level developer. Include practical implementation, best practices, and architectural decisions.",
    "hard": "Generate an advanced technical question suitable for a senior developer. Focus on system design, scalability, performance optimization, and complex problem-solving.",
}


def build_question_prompt(difficulty: str, skills: dict, resume_text: str, previous_questions: list[str]) -> str:
    forbidden = ""
    if previous_questions:
        numbered = "\n".join(f"{i + 1}. {q}" for i, q in enumerate(previous_questions))
        forbidden = f"""
STRICTLY FORBIDDEN QUESTIONS (DO NOT ASK ANY OF THESE):
{numbered}

Choose a different topic, technology, or concept that has not been tested yet.
"""

    return f"""
You are an expert technical interviewer. Generate ONE unique technical interview
question based on the candidate's resume and skills.

CANDIDATE SKILLS & EXPERIENCE:
- Technologies: {", ".join(skills.get("technologies") or []) or "not stated"}
- Experience Level: {skills.get("experience_level") or "mid"}
- Domains: {", ".join(skills.get("domains") or []) or "not stated"}

QUESTION REQUIREMENTS:
- Difficulty: {difficulty.upper()}
- {DIFFICULTY_GUIDANCE.get(difficulty, DIFFICULTY_GUIDANCE["medium"])}
- Relevant to the technologies in the resume
- Practical and job-related, concise but complete
{forbidden}
Return JSON:
{{"question": "the question text"}}

RESUME CONTEXT:
{str(resume_text or "")[:1500]}
"""


# ----------- Candidate Skills -----------

def build_skills_prompt(resume_text: str) -> str:
    return f"""
Analyze the following resume and extract:
1. Key technologies and programming languages mentioned
2. Experience level (junior/mid/senior) based on years of experience and complexity of projects
3. Main domains/industries mentioned

Resume Text:
{str(resume_text or "")[:2000]}

Return JSON:
{{
  "technologies": ["React", "Node.js"],
  "experience_level": "mid",
  "domains": ["web development"]
}}
"""


# ----------- Contact Info -----------

def build_contact_prompt(resume_text: str) -> str:
    return f"""
Extract the candidate's contact information from this resume.

RESUME TEXT:
{str(resume_text or "")[:4000]}

- NAME: the person's full name, usually at the very top
- EMAIL: an address containing @
- PHONE: a phone number in any format

Only extract information that actually appears. Use null for anything missing.

Return JSON:
{{"name": "John Smith", "email": "john@email.com", "phone": "(555) 123-4567"}}
"""


# ----------- Answer Grading -----------

def build_grading_prompt(question: str, answer: str, difficulty: str) -> str:
    return f"""
You are a senior technical interviewer.

Difficulty: {difficulty}

Question:
{question}

Candidate Answer:
{answer}

Give evaluation strictly in JSON:
{{
  "score": 0-10,
  "feedback": "one or two sentences of feedback"
}}
"""
