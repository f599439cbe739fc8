from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from agent.loop import run_chat_turn
from app.store.factory import get_record_store

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger(__name__)


def _history_from_payload(value: object) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@router.post("")
async def chat(payload: dict):
    message = str(payload.get("message") or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    history = _history_from_payload(payload.get("history"))
    pending = payload.get("pending") if isinstance(payload.get("pending"), dict) else None

    try:
        turn = await run_chat_turn(
            user_text=message,
            history=history,
            pending=pending,
            store=get_record_store(),
        )
    except Exception as exc:
        logger.exception("chat turn failed: %s", exc)
        raise HTTPException(status_code=500, detail="Server error while processing chat command") from exc

    logger.info(
        "chat turn action=%s source=%s success=%s notes=%s",
        turn.resolved_intent.action,
        turn.intent_source,
        turn.action_result.success,
        ";".join(turn.notes),
    )
    return {
        "success": True,
        "data": {
            "originalMessage": message,
            "aiResponse": turn.resolved_intent.to_dict(),
            "result": turn.action_result.to_dict(),
            "replyText": turn.reply_text,
            "pending": turn.pending.to_dict() if turn.pending else None,
        },
    }
