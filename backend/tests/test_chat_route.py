import asyncio

from fastapi import HTTPException

from agent.classifier_llm import REASON_DISABLED, OracleOutcome
from app.routes.chat import chat
from app.store.memory import build_memory_store


def _disable_oracle(monkeypatch):
    async def _fake_try_classify(**_kwargs):
        return OracleOutcome(reason=REASON_DISABLED)

    monkeypatch.setattr("agent.loop.try_classify_with_llm", _fake_try_classify)


def test_chat_requires_message():
    try:
        asyncio.run(chat({"message": "   "}))
    except HTTPException as exc:
        assert exc.status_code == 400
        assert exc.detail == "Message is required"
    else:
        assert False, "expected HTTPException"


def test_chat_returns_envelope_and_pending(monkeypatch):
    _disable_oracle(monkeypatch)
    store = build_memory_store()
    monkeypatch.setattr("app.routes.chat.get_record_store", lambda: store)

    out = asyncio.run(chat({"message": "create an account", "history": [{"role": "user", "content": "hi"}, "junk"]}))

    assert out["success"] is True
    data = out["data"]
    assert data["originalMessage"] == "create an account"
    assert data["aiResponse"]["action"] == "create_account"
    assert data["aiResponse"]["category"] == "account_management"
    assert data["result"]["needMoreInfo"]["missing"] == ["email", "password", "name"]
    assert data["replyText"] == "What email would you like to use for your account?"
    assert data["pending"] == {
        "action": "create_account",
        "missing": ["email", "password", "name"],
        "partialData": {},
    }

    follow_up = asyncio.run(chat({"message": "jane@example.com", "pending": data["pending"]}))
    assert follow_up["data"]["pending"]["partialData"] == {"email": "jane@example.com"}


def test_chat_creates_todo(monkeypatch):
    _disable_oracle(monkeypatch)
    store = build_memory_store()
    monkeypatch.setattr("app.routes.chat.get_record_store", lambda: store)

    out = asyncio.run(chat({"message": "add buy groceries"}))

    assert out["data"]["result"]["success"] is True
    assert out["data"]["result"]["todo"]["title"] == "buy groceries"
    assert out["data"]["replyText"] == "- **Your Tasks**:\n  • buy groceries ⏳"
    assert out["data"]["pending"] is None


def test_chat_wraps_unexpected_errors(monkeypatch):
    async def _boom(**_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("app.routes.chat.run_chat_turn", _boom)
    monkeypatch.setattr("app.routes.chat.get_record_store", build_memory_store)

    try:
        asyncio.run(chat({"message": "hello"}))
    except HTTPException as exc:
        assert exc.status_code == 500
        assert exc.detail == "Server error while processing chat command"
    else:
        assert False, "expected HTTPException"
