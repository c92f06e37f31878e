from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import asyncio
import logging
import os

from interview_assistant.api import interviews
from interview_assistant.api.interviews import router as interviews_router
from interview_assistant.session.registry import session_registry
from interview_assistant.system_metrics import get_metrics_snapshot
from core.config import GRADING_STRATEGY, INTERVIEW_TOTAL_QUESTIONS, QA_MODE

app = FastAPI(title="Timed Interview Assistant")
logger = logging.getLogger("interview_assistant.main")


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]


_allowed_origins = _get_allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(interviews_router)

SESSION_CLEANUP_TTL_SEC = max(60, int(os.getenv("SESSION_CLEANUP_TTL_SEC", "1800")))
SESSION_CLEANUP_INTERVAL_SEC = max(30, int(os.getenv("SESSION_CLEANUP_INTERVAL_SEC", "120")))
_session_cleanup_task: asyncio.Task | None = None


def cleanup_inactive_sessions(ttl_sec: float = SESSION_CLEANUP_TTL_SEC) -> int:
    removed = session_registry.cleanup_inactive(ttl_sec)
    for handle in removed:
        interviews.interview_machine.close(handle)
    return len(removed)


@app.on_event("startup")
async def startup_banner():
    global _session_cleanup_task
    if QA_MODE:
        logger.info("[SYSTEM] QA_MODE ENABLED")
    logger.info("[SYSTEM] CORS allow_origins=%s", _allowed_origins)
    logger.info(
        "[SYSTEM] interview total_questions=%s grading=%s",
        INTERVIEW_TOTAL_QUESTIONS,
        GRADING_STRATEGY,
    )

    async def _session_cleanup_loop():
        while True:
            await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SEC)
            removed = cleanup_inactive_sessions()
            if removed > 0:
                logger.info("[SYSTEM] cleaned inactive sessions=%s", removed)

    _session_cleanup_task = asyncio.create_task(_session_cleanup_loop())


@app.on_event("shutdown")
async def shutdown_handler():
    global _session_cleanup_task
    if _session_cleanup_task is not None:
        _session_cleanup_task.cancel()
        try:
            await _session_cleanup_task
        except asyncio.CancelledError:
            pass
        finally:
            _session_cleanup_task = None

    machine = interviews.interview_machine
    for handle in session_registry.handles():
        machine.close(handle)
    await machine.background.drain()
    logger.info("[SYSTEM] shutdown complete")


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "service": "interview-assistant"}


@app.get("/api/metrics")
def system_metrics_route():
    return get_metrics_snapshot(extra={
        "sessions_registered": len(session_registry.handles()),
        "total_questions": interviews.interview_machine.total_questions,
        "grading_strategy": GRADING_STRATEGY,
    })
