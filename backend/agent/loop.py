from __future__ import annotations

import logging

from agent.classifier import classify
from agent.classifier_llm import REASON_ACTION_MISSING, REASON_DISABLED, try_classify_with_llm
from agent.executor import execute_action
from agent.extractors import extract_email
from agent.intent_keywords import is_forced_account_delete
from agent.reply import build_reply_text
from agent.slot_collector import RESOLUTION_NEED_MORE_INFO, resolve_pending
from agent.types import ActionKind, ActionResult, ChatTurnResult, Intent, PendingAction
from app.store.base import RecordStore
from app.store.factory import get_record_store


logger = logging.getLogger("taskchat-backend.loop")

INTENT_SOURCE_PENDING = "pending"
INTENT_SOURCE_LLM = "llm"
INTENT_SOURCE_RULE = "rule"
INTENT_SOURCE_GUARD = "guard"


def keep_pending_password_flow(pending: PendingAction | None, action_less_data: dict | None) -> Intent | None:
    if pending is None or pending.action != ActionKind.CHANGE_PASSWORD:
        return None
    data = dict(pending.partial_data)
    data.update(action_less_data or {})
    return Intent(action=ActionKind.CHANGE_PASSWORD, data=data)


def force_account_delete(user_text: str, intent: Intent) -> Intent:
    if not is_forced_account_delete(user_text):
        return intent
    email = extract_email(user_text)
    data = {"email": email} if email else dict(intent.data)
    return Intent(action=ActionKind.DELETE_ACCOUNT, data=data)


def _coerce_pending(pending: PendingAction | dict | None) -> PendingAction | None:
    if pending is None or isinstance(pending, PendingAction):
        return pending
    return PendingAction.from_dict(pending)


def _next_pending(intent: Intent, result: ActionResult) -> PendingAction | None:
    if result.need_more_info is None:
        return None
    return PendingAction(
        action=intent.action,
        missing=list(result.need_more_info.missing),
        partial_data=dict(result.need_more_info.partial_data),
    )


async def run_chat_turn(
    *,
    user_text: str,
    history: list[dict] | None = None,
    pending: PendingAction | dict | None = None,
    store: RecordStore | None = None,
) -> ChatTurnResult:
    history = list(history or [])
    pending_action = _coerce_pending(pending)
    notes: list[str] = []
    intent: Intent | None = None
    breakout_intent: Intent | None = None
    intent_source = INTENT_SOURCE_RULE

    if pending_action is not None:
        resolution = resolve_pending(user_text, pending_action)
        if resolution.kind == RESOLUTION_NEED_MORE_INFO:
            need_more_info = resolution.need_more_info
            intent = Intent(action=pending_action.action, data=dict(need_more_info.partial_data))
            result = ActionResult(success=False, message="More info required", need_more_info=need_more_info)
            notes.append(f"pending_reprompt filled={resolution.filled_slot or 'none'}")
            logger.info(
                "chat_turn pending_reprompt action=%s missing=%s",
                pending_action.action,
                ",".join(need_more_info.missing),
            )
            return ChatTurnResult(
                resolved_intent=intent,
                action_result=result,
                reply_text=need_more_info.prompt,
                pending=_next_pending(intent, result),
                intent_source=INTENT_SOURCE_PENDING,
                notes=notes,
            )
        if resolution.is_breakout:
            breakout_intent = resolution.intent
            notes.append(
                f"pending_breakout reason={resolution.breakout_reason} action={breakout_intent.action}"
            )
        else:
            intent = resolution.intent
            intent_source = INTENT_SOURCE_PENDING

    if intent is None:
        outcome = await try_classify_with_llm(user_text=user_text, history=history)
        if outcome.ok:
            intent = outcome.intent
            intent_source = INTENT_SOURCE_LLM
            notes.append(f"llm_intent provider={outcome.provider} model={outcome.model}")
        else:
            if outcome.reason != REASON_DISABLED:
                notes.append(f"llm_fallback reason={outcome.reason}")
            if outcome.reason == REASON_ACTION_MISSING:
                intent = keep_pending_password_flow(pending_action, outcome.action_less_data)
                if intent is not None:
                    intent_source = INTENT_SOURCE_GUARD
                    notes.append("guard_rail=pending_password_flow")
            if intent is None and breakout_intent is not None and not outcome.invalid_output:
                # The resolver already ran the unforced heuristics on this utterance.
                intent = breakout_intent
                intent_source = INTENT_SOURCE_RULE
            if intent is None:
                intent = classify(user_text, force_create_if_unknown=outcome.invalid_output)
                intent_source = INTENT_SOURCE_RULE

    guarded = force_account_delete(user_text, intent)
    if guarded is not intent:
        notes.append("guard_rail=account_delete")
        intent_source = INTENT_SOURCE_GUARD
        intent = guarded

    if store is None:
        store = get_record_store()
    result = await execute_action(intent, store)
    reply_text = build_reply_text(user_text, intent, result, history)
    next_pending = _next_pending(intent, result)
    logger.info(
        "chat_turn action=%s source=%s success=%s pending=%s",
        intent.action,
        intent_source,
        result.success,
        next_pending.action if next_pending else "-",
    )
    return ChatTurnResult(
        resolved_intent=intent,
        action_result=result,
        reply_text=reply_text,
        pending=next_pending,
        intent_source=intent_source,
        notes=notes,
    )
