import threading
import time
from typing import Any


_lock = threading.Lock()
_metrics: dict[str, float] = {
    "sessions_started": 0.0,
    "sessions_completed": 0.0,
    "sessions_active": 0.0,
    "sessions_resumed": 0.0,
    "answers_submitted": 0.0,
    "answers_auto_submitted": 0.0,
    "question_fallbacks": 0.0,
    "question_synthetic": 0.0,
    "grading_fallbacks": 0.0,
    "background_failures": 0.0,
    "question_generation_total_ms": 0.0,
    "question_generation_samples": 0.0,
}


def increment_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = float(_metrics.get(key, 0.0)) + float(amount)


def decrement_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        next_value = float(_metrics.get(key, 0.0)) - float(amount)
        _metrics[key] = max(0.0, next_value)


def set_metric(name: str, value: float) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = max(0.0, float(value))


def get_metric(name: str) -> float:
    with _lock:
        return float(_metrics.get(str(name or "").strip(), 0.0))


def observe_question_generation_ms(value_ms: float) -> None:
    latency = max(0.0, float(value_ms or 0.0))
    with _lock:
        _metrics["question_generation_total_ms"] = float(_metrics.get("question_generation_total_ms", 0.0)) + latency
        _metrics["question_generation_samples"] = float(_metrics.get("question_generation_samples", 0.0)) + 1.0


def get_metrics_snapshot(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    with _lock:
        data = dict(_metrics)

    generation_samples = max(1.0, float(data.get("question_generation_samples") or 0.0))

    payload: dict[str, Any] = {
        "generated_at": time.time(),
        "sessions_started": int(data.get("sessions_started") or 0.0),
        "sessions_completed": int(data.get("sessions_completed") or 0.0),
        "sessions_active": int(data.get("sessions_active") or 0.0),
        "sessions_resumed": int(data.get("sessions_resumed") or 0.0),
        "answers_submitted": int(data.get("answers_submitted") or 0.0),
        "answers_auto_submitted": int(data.get("answers_auto_submitted") or 0.0),
        "question_fallbacks": int(data.get("question_fallbacks") or 0.0),
        "question_synthetic": int(data.get("question_synthetic") or 0.0),
        "grading_fallbacks": int(data.get("grading_fallbacks") or 0.0),
        "background_failures": int(data.get("background_failures") or 0.0),
        "avg_question_generation_ms": round(
            float(data.get("question_generation_total_ms") or 0.0) / generation_samples, 2
        ),
    }

    if extra:
        payload.update(extra)
    return payload
