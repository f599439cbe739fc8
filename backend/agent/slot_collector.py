from __future__ import annotations

import logging
from dataclasses import dataclass

from agent.classifier import classify
from agent.extractors import extract_email
from agent.intent_keywords import (
    NAME_REJECT_PATTERN,
    is_explicit_account_delete,
    is_explicit_task_create,
    is_natural_language_task,
    normalize_text,
)
from agent.slot_schema import build_prompt_for_missing
from agent.types import (
    FIELD_EMAIL,
    FIELD_NAME,
    FIELD_NEW_NAME,
    FIELD_NEW_PASSWORD,
    FIELD_NEW_ROLE,
    FIELD_PASSWORD,
    FIELD_TITLE,
    FIELD_UPDATE_FIELD,
    ActionKind,
    Intent,
    NeedMoreInfo,
    PendingAction,
)


logger = logging.getLogger("taskchat-backend.slot_collector")

RESOLUTION_BREAKOUT = "breakout"
RESOLUTION_COMPLETE = "complete"
RESOLUTION_NEED_MORE_INFO = "need_more_info"

UPDATE_FIELD_SELECTORS = {
    "role": FIELD_NEW_ROLE,
    "name": FIELD_NEW_NAME,
}


@dataclass
class PendingResolution:
    kind: str
    intent: Intent | None = None
    need_more_info: NeedMoreInfo | None = None
    filled_slot: str | None = None
    breakout_reason: str | None = None

    @property
    def is_breakout(self) -> bool:
        return self.kind == RESOLUTION_BREAKOUT


def detect_breakout(user_text: str) -> str | None:
    if is_explicit_account_delete(user_text):
        return "account_delete"
    if is_explicit_task_create(user_text):
        return "task_create"
    if is_natural_language_task(user_text):
        return "task_statement"
    return None


def _next_slot_to_fill(user_text: str, pending: PendingAction, email: str) -> tuple[str, str] | None:
    missing = pending.missing
    raw = user_text.strip()
    lower = normalize_text(user_text)
    # Order matters: an email answer must never land in password or name.
    if FIELD_NEW_ROLE in missing:
        return FIELD_NEW_ROLE, raw
    if FIELD_NEW_NAME in missing:
        return FIELD_NEW_NAME, raw
    if pending.action == ActionKind.CREATE_TODO and FIELD_TITLE in missing:
        return FIELD_TITLE, raw
    if email and FIELD_EMAIL in missing:
        return FIELD_EMAIL, email
    if FIELD_PASSWORD in missing:
        return FIELD_PASSWORD, raw
    if FIELD_NEW_PASSWORD in missing:
        return FIELD_NEW_PASSWORD, raw
    if FIELD_NAME in missing and "@" not in user_text and not NAME_REJECT_PATTERN.search(lower):
        return FIELD_NAME, raw
    return None


def fill_pending_slots(user_text: str, pending: PendingAction) -> tuple[list[str], dict, str | None]:
    still_missing = list(pending.missing)
    updated = dict(pending.partial_data)

    if FIELD_UPDATE_FIELD in still_missing:
        selected = UPDATE_FIELD_SELECTORS.get(normalize_text(user_text))
        if selected:
            return [selected], updated, FIELD_UPDATE_FIELD
        return still_missing, updated, None

    slot = _next_slot_to_fill(user_text, pending, extract_email(user_text))
    if slot is None:
        return still_missing, updated, None
    slot_name, value = slot
    if not value:
        return still_missing, updated, None
    updated[slot_name] = value
    still_missing = [item for item in still_missing if item != slot_name]
    return still_missing, updated, slot_name


def resolve_pending(user_text: str, pending: PendingAction) -> PendingResolution:
    breakout_reason = detect_breakout(user_text)
    if breakout_reason:
        logger.info(
            "pending_breakout action=%s reason=%s missing=%s",
            pending.action,
            breakout_reason,
            ",".join(pending.missing),
        )
        return PendingResolution(
            kind=RESOLUTION_BREAKOUT,
            intent=classify(user_text),
            breakout_reason=breakout_reason,
        )

    still_missing, updated, filled_slot = fill_pending_slots(user_text, pending)
    if still_missing:
        prompt = build_prompt_for_missing(pending.action, still_missing)
        return PendingResolution(
            kind=RESOLUTION_NEED_MORE_INFO,
            need_more_info=NeedMoreInfo(missing=still_missing, partial_data=updated, prompt=prompt),
            filled_slot=filled_slot,
        )

    return PendingResolution(
        kind=RESOLUTION_COMPLETE,
        intent=Intent(action=pending.action, data=updated),
        filled_slot=filled_slot,
    )
