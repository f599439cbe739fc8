from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from agent.extractors import contains_email, extract_email, extract_title_after_verb
from agent.intent_keywords import (
    ACCOUNT_CREATE_PATTERN,
    ACCOUNT_DELETE_PATTERN,
    ACCOUNT_LIST_PATTERN,
    ACCOUNT_MENTION_PATTERN,
    ACCOUNT_NOUN_PATTERN,
    ACCOUNT_TOKEN_PATTERN,
    ACCOUNT_UPDATE_PATTERN,
    ALL_PATTERN,
    COMPLETION_VERBS,
    CREATION_INTENT_PREFIX_PATTERN,
    CREATION_NEW_PREFIX_PATTERN,
    CREATION_VERB_PREFIX_PATTERN,
    DELETION_VERBS,
    FAREWELL_PATTERN,
    GRATITUDE_PATTERN,
    GREETING_PATTERN,
    LEADING_TO_PATTERN,
    OPEN_QUESTION_PATTERN,
    PASSWORD_CHANGE_PATTERNS,
    PASSWORD_WORD_PATTERN,
    PLACEHOLDER_TITLES,
    TASK_COMPLETE_PATTERN,
    TASK_CREATE_PATTERN,
    TASK_DELETE_PATTERN,
    TASK_DELETE_PREFIX_PATTERN,
    TASK_LIST_PATTERN,
    WELLBEING_PATTERN,
    has_task_cue,
    matches_any,
    normalize_text,
)
from agent.types import ActionKind, Category, Intent


logger = logging.getLogger("taskchat-backend.classifier")

DOMAIN_ACCOUNT = "account"
DOMAIN_TASK = "task"
DOMAIN_CONVERSATION = "conversation"

DEFAULT_MIN_LENGTH = 3
DEFAULT_MAX_LENGTH = 200


@dataclass(frozen=True)
class HeuristicRule:
    name: str
    domain: str
    matches: Callable[[str, str], bool]
    build: Callable[[str, str], Intent]


def _account_intent(action: ActionKind, data: dict | None = None) -> Intent:
    return Intent(action=action, data=dict(data or {}), category=Category.ACCOUNT_MANAGEMENT)


def _task_intent(action: ActionKind, data: dict | None = None) -> Intent:
    return Intent(action=action, data=dict(data or {}), category=Category.TASK_MANAGEMENT)


def _chat_intent(message: str, *, topic: str | None = None, mood: str = "friendly", follow_up: str | None = None) -> Intent:
    data = {"message": message.strip()}
    if topic:
        data["topic"] = topic
    return Intent(
        action=ActionKind.CHAT,
        data=data,
        category=Category.CONVERSATION,
        mood=mood,
        follow_up=follow_up,
    )


def _with_title(title: str) -> dict:
    return {"title": title} if title else {}


# --- account rules -------------------------------------------------------

def _is_account_update(message: str, lower: str) -> bool:
    # Password changes have their own rule further down.
    return bool(ACCOUNT_UPDATE_PATTERN.search(lower)) and not PASSWORD_WORD_PATTERN.search(lower)


def _build_account_delete(message: str, lower: str) -> Intent:
    email = extract_email(message)
    return _account_intent(ActionKind.DELETE_ACCOUNT, {"email": email} if email else {})


# --- task rules ----------------------------------------------------------

def _build_task_complete(message: str, lower: str) -> Intent:
    if ALL_PATTERN.search(lower):
        return _task_intent(ActionKind.COMPLETE_ALL)
    title = extract_title_after_verb(message, COMPLETION_VERBS)
    return _task_intent(ActionKind.MARK_COMPLETED, _with_title(title))


def _build_task_delete(message: str, lower: str) -> Intent:
    if ALL_PATTERN.search(lower):
        return _task_intent(ActionKind.DELETE_ALL)
    if TASK_DELETE_PREFIX_PATTERN.search(lower):
        title = TASK_DELETE_PREFIX_PATTERN.sub("", lower, count=1).strip()
        if title:
            return _task_intent(ActionKind.DELETE_TODO, {"title": title})
    title = extract_title_after_verb(message, DELETION_VERBS)
    return _task_intent(ActionKind.DELETE_TODO, _with_title(title))


def _is_task_create(message: str, lower: str) -> bool:
    if ACCOUNT_TOKEN_PATTERN.search(lower):
        return False
    return bool(TASK_CREATE_PATTERN.search(lower) or LEADING_TO_PATTERN.search(lower))


def strip_creation_prefixes(lower: str) -> str:
    title = CREATION_VERB_PREFIX_PATTERN.sub("", lower, count=1)
    title = LEADING_TO_PATTERN.sub("", title, count=1)
    title = CREATION_NEW_PREFIX_PATTERN.sub("", title, count=1)
    title = CREATION_INTENT_PREFIX_PATTERN.sub("", title, count=1)
    return title.strip()


def _build_task_create(message: str, lower: str) -> Intent:
    title = strip_creation_prefixes(lower)
    if ACCOUNT_NOUN_PATTERN.search(title):
        return _chat_intent(message, follow_up="Let me know if you want to manage accounts!")
    if title and title not in PLACEHOLDER_TITLES:
        return _task_intent(ActionKind.CREATE_TODO, {"title": title})
    return _task_intent(ActionKind.CREATE_TODO)


def _is_bare_task_statement(message: str, lower: str) -> bool:
    if ACCOUNT_TOKEN_PATTERN.search(lower):
        return False
    if TASK_CREATE_PATTERN.search(lower) or LEADING_TO_PATTERN.search(lower):
        return False
    if TASK_DELETE_PATTERN.search(lower):
        return False
    return has_task_cue(lower)


# Order is precedence: first match wins.
HEURISTIC_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        name="account_update",
        domain=DOMAIN_ACCOUNT,
        matches=_is_account_update,
        build=lambda message, lower: _account_intent(ActionKind.UPDATE_ACCOUNT),
    ),
    HeuristicRule(
        name="account_delete",
        domain=DOMAIN_ACCOUNT,
        matches=lambda message, lower: bool(ACCOUNT_DELETE_PATTERN.search(lower)),
        build=_build_account_delete,
    ),
    HeuristicRule(
        name="account_create",
        domain=DOMAIN_ACCOUNT,
        matches=lambda message, lower: bool(ACCOUNT_CREATE_PATTERN.search(lower)),
        build=lambda message, lower: _account_intent(ActionKind.CREATE_ACCOUNT),
    ),
    HeuristicRule(
        name="account_list",
        domain=DOMAIN_ACCOUNT,
        matches=lambda message, lower: bool(ACCOUNT_LIST_PATTERN.search(lower)),
        build=lambda message, lower: _account_intent(ActionKind.READ_ACCOUNTS),
    ),
    HeuristicRule(
        name="password_change",
        domain=DOMAIN_ACCOUNT,
        matches=lambda message, lower: matches_any(lower, PASSWORD_CHANGE_PATTERNS),
        build=lambda message, lower: _account_intent(ActionKind.CHANGE_PASSWORD),
    ),
    HeuristicRule(
        name="task_list",
        domain=DOMAIN_TASK,
        matches=lambda message, lower: bool(TASK_LIST_PATTERN.search(lower)),
        build=lambda message, lower: _task_intent(ActionKind.READ_TODOS),
    ),
    HeuristicRule(
        name="task_complete",
        domain=DOMAIN_TASK,
        matches=lambda message, lower: bool(TASK_COMPLETE_PATTERN.search(lower)),
        build=_build_task_complete,
    ),
    HeuristicRule(
        name="task_delete",
        domain=DOMAIN_TASK,
        matches=lambda message, lower: bool(TASK_DELETE_PATTERN.search(lower)),
        build=_build_task_delete,
    ),
    HeuristicRule(
        name="task_create",
        domain=DOMAIN_TASK,
        matches=_is_task_create,
        build=_build_task_create,
    ),
    HeuristicRule(
        name="task_statement",
        domain=DOMAIN_TASK,
        matches=_is_bare_task_statement,
        build=lambda message, lower: _task_intent(ActionKind.CREATE_TODO, {"title": message.strip()}),
    ),
    HeuristicRule(
        name="greeting",
        domain=DOMAIN_CONVERSATION,
        matches=lambda message, lower: bool(GREETING_PATTERN.search(lower)),
        build=lambda message, lower: _chat_intent(
            message, topic="greeting", mood="excited", follow_up="How are you doing today?"
        ),
    ),
    HeuristicRule(
        name="wellbeing",
        domain=DOMAIN_CONVERSATION,
        matches=lambda message, lower: bool(WELLBEING_PATTERN.search(lower)),
        build=lambda message, lower: _chat_intent(
            message, topic="wellbeing", follow_up="I'm doing great! How about you?"
        ),
    ),
    HeuristicRule(
        name="gratitude",
        domain=DOMAIN_CONVERSATION,
        matches=lambda message, lower: bool(GRATITUDE_PATTERN.search(lower)),
        build=lambda message, lower: _chat_intent(
            message,
            topic="gratitude",
            mood="excited",
            follow_up="You're very welcome! It's my pleasure to help!",
        ),
    ),
    HeuristicRule(
        name="farewell",
        domain=DOMAIN_CONVERSATION,
        matches=lambda message, lower: bool(FAREWELL_PATTERN.search(lower)),
        build=lambda message, lower: _chat_intent(
            message, topic="farewell", follow_up="Take care! I'll be here when you need me!"
        ),
    ),
)


def match_rule(text: str) -> HeuristicRule | None:
    message = text or ""
    lower = normalize_text(message)
    for rule in HEURISTIC_RULES:
        if rule.matches(message, lower):
            return rule
    return None


def _is_plausible_statement(lower: str) -> bool:
    return "?" not in lower and DEFAULT_MIN_LENGTH <= len(lower) <= DEFAULT_MAX_LENGTH


def _default_intent(message: str, lower: str, *, force_create_if_unknown: bool) -> Intent:
    if force_create_if_unknown or _is_plausible_statement(lower):
        if ACCOUNT_MENTION_PATTERN.search(lower) or contains_email(message):
            return _account_intent(ActionKind.CREATE_ACCOUNT)
        if OPEN_QUESTION_PATTERN.search(lower):
            return _chat_intent(message, topic="information", mood="helpful")
        # Unclear statement: start a todo and ask for its title.
        return _task_intent(ActionKind.CREATE_TODO)
    return _chat_intent(message, follow_up="That's interesting! Tell me more about that.")


def classify(text: str, *, force_create_if_unknown: bool = False) -> Intent:
    message = text or ""
    lower = normalize_text(message)
    rule = match_rule(message)
    if rule is not None:
        intent = rule.build(message, lower)
        logger.debug("heuristic_rule_matched rule=%s domain=%s action=%s", rule.name, rule.domain, intent.action)
        return intent
    intent = _default_intent(message, lower, force_create_if_unknown=force_create_if_unknown)
    logger.debug("heuristic_default action=%s forced=%s", intent.action, force_create_if_unknown)
    return intent
