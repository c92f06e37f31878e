import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)

OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
MODEL_NAME = str(os.getenv("MODEL_NAME") or "gpt-4o-mini").strip()
QA_MODE = os.getenv("QA_MODE", "false").lower() == "true"

# interview shape
INTERVIEW_TOTAL_QUESTIONS = max(1, int(os.getenv("INTERVIEW_TOTAL_QUESTIONS", "6")))
QUESTION_GENERATION_ATTEMPTS = max(1, int(os.getenv("QUESTION_GENERATION_ATTEMPTS", "3")))
COUNTDOWN_TICK_SEC = max(0.01, float(os.getenv("COUNTDOWN_TICK_SEC", "1.0")))
GRADING_STRATEGY = str(os.getenv("GRADING_STRATEGY") or "heuristic").strip().lower()

INTERVIEW_STORE_PATH = Path(
    os.getenv("INTERVIEW_STORE_PATH") or (_BACKEND_ROOT / "data" / "interview_store.json")
)
MAX_RESUME_BYTES = max(1024, int(os.getenv("MAX_RESUME_BYTES", str(10 * 1024 * 1024))))
