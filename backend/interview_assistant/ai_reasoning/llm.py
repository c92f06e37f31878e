import asyncio
import json
import logging
import re
from openai import AsyncOpenAI
from core.config import MODEL_NAME, OPENAI_API_KEY

logger = logging.getLogger("interview_assistant.ai_reasoning.llm")

JSON_SYSTEM_PROMPT = "You are a strict JSON generator. Output JSON only."

client = AsyncOpenAI(api_key=OPENAI_API_KEY or "missing-key")


async def call_llm(
    prompt: str,
    timeout_sec: float = 12.0,
    retries: int = 2,
    temperature: float = 0.4,
    model: str | None = None,
) -> str:
    """
    Sends prompt to LLM and returns raw text response.
    MUST return JSON string (caller parses).
    """
    if not str(prompt or "").strip():
        return "{}"

    if not OPENAI_API_KEY:
        logger.info("call_llm skipped | reason=no_api_key")
        return "{}"

    last_error: Exception | None = None
    for attempt in range(max(1, retries + 1)):
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=model or MODEL_NAME,
                    messages=[
                        {
                            "role": "system",
                            "content": JSON_SYSTEM_PROMPT
                        },
                        {
                            "role": "user",
                            "content": prompt
                        }
                    ],
                    temperature=temperature,
                ),
                timeout=timeout_sec,
            )
            message = response.choices[0].message.content
            return str(message or "{}").strip() or "{}"
        except asyncio.TimeoutError as exc:
            last_error = exc
            logger.warning("call_llm timeout | attempt=%s", attempt + 1)
        except Exception as exc:
            last_error = exc
            logger.warning("call_llm failure | attempt=%s err=%s", attempt + 1, exc)

        if attempt < retries:
            await asyncio.sleep(0.35 * (attempt + 1))

    logger.warning("call_llm fallback activated | err=%s", last_error)
    return "{}"


def extract_json_dict(text: str) -> dict | None:
    text = (text or "").strip()
    if not text:
        return None

    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else None
    except Exception:
        pass

    fenced = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text, re.IGNORECASE)
    if fenced:
        try:
            parsed = json.loads(fenced.group(1))
            return parsed if isinstance(parsed, dict) else None
        except Exception:
            pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            parsed = json.loads(text[start:end + 1])
            return parsed if isinstance(parsed, dict) else None
        except Exception:
            return None

    return None
