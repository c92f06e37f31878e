import logging
import re
from dataclasses import dataclass
from typing import Optional

from interview_assistant.ai_reasoning.llm import call_llm, extract_json_dict
from interview_assistant.prompts import build_contact_prompt

logger = logging.getLogger("interview_assistant.resume.contact")


@dataclass
class ContactInfo:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.email or self.phone)


_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_PHONE_PATTERNS = (
    re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?(\d{3})\)?[-.\s]?(\d{3})[-.\s]?(\d{4})"),
    re.compile(r"(\+?\d{1,3}[-.\s]?)?(\d{3})\.(\d{3})\.(\d{4})"),
    re.compile(r"(\+?\d{1,3}[-.\s]?)?(\d{10})"),
)
_NOT_A_NAME = re.compile(r"\b(email|phone|address|linkedin|github|website|summary|objective)\b", re.IGNORECASE)


def _validated(data: dict) -> ContactInfo:
    name = data.get("name")
    email = data.get("email")
    phone = data.get("phone")
    return ContactInfo(
        name=name.strip() if isinstance(name, str) and len(name.strip()) > 1 else None,
        email=email.strip() if isinstance(email, str) and "@" in email else None,
        phone=phone.strip() if isinstance(phone, str) and re.search(r"\d", phone) else None,
    )


def extract_contact_info_manually(text: str) -> ContactInfo:
    text = str(text or "")
    info = ContactInfo()

    email = _EMAIL_RE.search(text)
    if email:
        info.email = email.group(0).lower()

    for pattern in _PHONE_PATTERNS:
        phone = pattern.search(text)
        if phone:
            info.phone = phone.group(0).strip()
            break

    lines = [line.strip() for line in text[:1000].split("\n") if line.strip()]
    for line in lines[:5]:
        if len(line) < 3 or len(line) > 50:
            continue
        if _NOT_A_NAME.search(line) or re.search(r"\d{4}", line):
            continue
        words = line.split()
        if 1 <= len(words) <= 4:
            title_case = [w for w in words if len(w) > 1 and w[0] == w[0].upper()]
            if len(title_case) >= len(words) * 0.5:
                info.name = line
                break

    return info


async def extract_contact_info(text: str) -> ContactInfo:
    """Best effort; never raises, returns an empty ContactInfo on total failure."""
    if not str(text or "").strip():
        return ContactInfo()

    try:
        parsed = extract_json_dict(await call_llm(build_contact_prompt(text), temperature=0.0))
        if parsed:
            info = _validated(parsed)
            if not info.is_empty:
                return info
    except Exception as exc:
        logger.warning("contact extraction via model failed | err=%s", exc)

    try:
        return extract_contact_info_manually(text)
    except Exception as exc:
        logger.warning("manual contact extraction failed | err=%s", exc)
        return ContactInfo()
