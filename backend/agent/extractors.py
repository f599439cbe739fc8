from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable

from agent.intent_keywords import (
    MOTIVATED_MOOD_PATTERN,
    NEGATIVE_MOOD_PATTERN,
    POSITIVE_MOOD_PATTERN,
    TIRED_MOOD_PATTERN,
)


EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
MISSING_AT_DOMAIN_PATTERN = re.compile(r"(gmail\.com|yahoo\.com|hotmail\.com|outlook\.com)$")
QUOTED_PATTERN = re.compile(r"\"([^\"]+)\"|'([^']+)'")

EMAIL_DOMAIN_TYPOS: dict[str, str] = {
    "gamil.com": "gmail.com",
    "gmial.com": "gmail.com",
    "gmal.com": "gmail.com",
    "gmai.com": "gmail.com",
    "yaho.com": "yahoo.com",
    "yhaoo.com": "yahoo.com",
    "hotmai.com": "hotmail.com",
    "hotmal.com": "hotmail.com",
}


def extract_email(text: str) -> str:
    clean = str(text or "").strip().lower()
    # "johngmail.com" -> "john@gmail.com" for the big providers only.
    if "@" not in clean:
        domain_match = MISSING_AT_DOMAIN_PATTERN.search(clean)
        if domain_match:
            domain = domain_match.group(0)
            local = clean[: len(clean) - len(domain)]
            if local:
                clean = f"{local}@{domain}"
    match = EMAIL_PATTERN.search(clean)
    return match.group(0) if match else ""


def contains_email(text: str) -> bool:
    return bool(EMAIL_PATTERN.search(text or ""))


def suggest_email_correction(email: str) -> str | None:
    local, sep, domain = str(email or "").partition("@")
    if not sep:
        return None
    corrected = EMAIL_DOMAIN_TYPOS.get(domain.lower())
    if not corrected:
        return None
    return f"{local}@{corrected}"


def validate_email(email: str) -> tuple[bool, str | None]:
    suggestion = suggest_email_correction(email)
    if suggestion:
        return False, suggestion
    return True, None


def extract_title_after_verb(message: str, verbs: Iterable[str]) -> str:
    text = (message or "").strip()
    for verb in verbs:
        pattern = re.compile(rf"^(please\s+)?{re.escape(verb)}\s+", flags=re.IGNORECASE)
        if pattern.search(text):
            return pattern.sub("", text, count=1).strip()
    quoted = QUOTED_PATTERN.search(message or "")
    if quoted:
        return (quoted.group(1) or quoted.group(2) or "").strip()
    return ""


def detect_user_mood(message: str) -> str:
    lower = (message or "").lower()
    if POSITIVE_MOOD_PATTERN.search(lower):
        return "positive"
    if NEGATIVE_MOOD_PATTERN.search(lower):
        return "negative"
    if TIRED_MOOD_PATTERN.search(lower):
        return "tired"
    if MOTIVATED_MOOD_PATTERN.search(lower):
        return "motivated"
    return "neutral"


def get_time_of_day(now: datetime | None = None) -> str:
    hour = (now or datetime.now()).hour
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "night"
