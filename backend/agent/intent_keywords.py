from __future__ import annotations

import re
from typing import Iterable, Pattern


# Account domain. Verb + noun patterns are matched against lower-cased text.
ACCOUNT_UPDATE_PATTERN = re.compile(r"(update|modify|change|edit)\s+.*(account|user|profile|role)\b")
ACCOUNT_DELETE_PATTERN = re.compile(r"(delete|remove)\s+.*(account|user|profile)\b")
ACCOUNT_CREATE_PATTERN = re.compile(r"(create|add|register|make)\s+.*(account|user|profile)\b")
ACCOUNT_LIST_PATTERN = re.compile(r"(show|list|view|get)\s+.*(account|user|profile)s?\b")
PASSWORD_WORD_PATTERN = re.compile(r"\bpassword\b")
PASSWORD_CHANGE_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"\bchange\s+password\b"),
    re.compile(r"\b(reset|update|modify)\s+password\b"),
    re.compile(r"\bpassword\s+(change|reset|update|modify)\b"),
    re.compile(r"\breset the password\b"),
    re.compile(r"\bcreate a new password\b"),
)

# Task domain.
TASK_LIST_PATTERN = re.compile(r"(show|list|view|all tasks|tasks|todos|what|how many)\b")
TASK_COMPLETE_PATTERN = re.compile(r"(complete|completed|done|finish|mark (it|this)? complete|check off|tick off)")
TASK_DELETE_PATTERN = re.compile(r"(delete|remove|clear|get rid of|drop|cancel)\b")
TASK_DELETE_PREFIX_PATTERN = re.compile(r"\bdelete\s+task\b")
TASK_CREATE_PATTERN = re.compile(
    r"(add|create|make|note|remember|schedule|start|new task|new todo|need to|have to|want to|going to)\b"
)
LEADING_TO_PATTERN = re.compile(r"^to\s+")
ALL_PATTERN = re.compile(r"all")
ACCOUNT_TOKEN_PATTERN = re.compile(r"(account|user|profile|email|password)\b")
ACCOUNT_NOUN_PATTERN = re.compile(r"(account|user|profile|email)\b")
ACCOUNT_MENTION_PATTERN = re.compile(r"(account|user|profile)\b")

# Bare task statements: a time or action cue with no verb prefix.
TASK_CUE_PATTERN = re.compile(r"(at|by|before|after|on|message|call|meet|remind|reminder|todo|task)")
TIME_EXPRESSION_PATTERN = re.compile(r"\d+['’]?\s*(o'clock|am|pm|hour|minute)")
BREAKOUT_ACCOUNT_TOKEN_PATTERN = re.compile(r"(account|user|email|password)")

# Conversation domain.
GREETING_PATTERN = re.compile(
    r"(hello|hi|hey|good morning|good afternoon|good evening|how are you|what's up|sup|greetings)"
)
WELLBEING_PATTERN = re.compile(r"(how are you|how do you feel|are you ok|are you well)")
GRATITUDE_PATTERN = re.compile(r"(thank you|thanks|thx|appreciate it|grateful)")
FAREWELL_PATTERN = re.compile(r"(bye|goodbye|see you|later|take care|farewell)")
OPEN_QUESTION_PATTERN = re.compile(
    r"(explain|what is|how does|tell me about|describe|what are|how do|can you|could you)\b"
)

# Breakout and guard-rail phrases.
EXPLICIT_ACCOUNT_DELETE_PATTERN = re.compile(r"(delete|remove)\s+(the\s+)?(account|user)\b")
EXPLICIT_TASK_CREATE_PATTERN = re.compile(r"(add|create|new)\s+(task|todo)\b")
LEADING_ADD_PATTERN = re.compile(r"^(please\s+)?add\s+\S")
FORCED_ACCOUNT_DELETE_PATTERN = re.compile(r"(^|\b)(delete|remove)\s+account\b")

# Pending-slot guards.
NAME_REJECT_PATTERN = re.compile(r"(delete|remove|account|user)")

# Mood cues for reply wording.
POSITIVE_MOOD_PATTERN = re.compile(r"(happy|joy|excited|great|awesome|wonderful|amazing|fantastic)")
NEGATIVE_MOOD_PATTERN = re.compile(r"(sad|upset|angry|frustrated|overwhelmed|stressed|worried|anxious)")
TIRED_MOOD_PATTERN = re.compile(r"(tired|exhausted|sleepy|drained)")
MOTIVATED_MOOD_PATTERN = re.compile(r"(motivated|inspired|energized|pumped|ready)")

COMPLETION_VERBS = ("complete", "completed", "finish", "mark", "check", "tick")
DELETION_VERBS = ("delete", "remove", "clear", "get rid of", "drop", "cancel")
CREATION_VERB_PREFIX_PATTERN = re.compile(r"^(please\s+)?(add|create|make|note|remember|schedule|start)\s+")
CREATION_NEW_PREFIX_PATTERN = re.compile(r"^(new task|new todo)\s+")
CREATION_INTENT_PREFIX_PATTERN = re.compile(r"^(need to|have to|want to|going to)\s+")
PLACEHOLDER_TITLES = frozenset({"task", "todo"})


def normalize_text(text: str) -> str:
    return (text or "").strip().lower()


def matches_any(text: str, patterns: Iterable[Pattern[str]]) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def is_password_change_intent(text: str) -> bool:
    return matches_any(normalize_text(text), PASSWORD_CHANGE_PATTERNS)


def has_account_token(text: str) -> bool:
    return bool(ACCOUNT_TOKEN_PATTERN.search(normalize_text(text)))


def has_task_cue(text: str) -> bool:
    lower = normalize_text(text)
    return bool(TASK_CUE_PATTERN.search(lower) or TIME_EXPRESSION_PATTERN.search(lower))


def is_task_create_intent(text: str) -> bool:
    lower = normalize_text(text)
    return bool(TASK_CREATE_PATTERN.search(lower) or LEADING_TO_PATTERN.search(lower))


def is_task_delete_intent(text: str) -> bool:
    return bool(TASK_DELETE_PATTERN.search(normalize_text(text)))


def is_natural_language_task(text: str) -> bool:
    lower = normalize_text(text)
    if BREAKOUT_ACCOUNT_TOKEN_PATTERN.search(lower):
        return False
    return has_task_cue(lower)


def is_explicit_account_delete(text: str) -> bool:
    return bool(EXPLICIT_ACCOUNT_DELETE_PATTERN.search(normalize_text(text)))


def is_explicit_task_create(text: str) -> bool:
    lower = normalize_text(text)
    if EXPLICIT_TASK_CREATE_PATTERN.search(lower):
        return True
    return bool(LEADING_ADD_PATTERN.search(lower) and not ACCOUNT_TOKEN_PATTERN.search(lower))


def is_forced_account_delete(text: str) -> bool:
    return bool(FORCED_ACCOUNT_DELETE_PATTERN.search(normalize_text(text)))


def is_open_question(text: str) -> bool:
    return bool(OPEN_QUESTION_PATTERN.search(normalize_text(text)))
