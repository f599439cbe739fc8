from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from agent.intent_contract import (
    IntentValidationError,
    extract_action_less_data,
    parse_intent_json,
    validate_intent_json,
)
from agent.types import Intent
from app.core.config import get_settings


logger = logging.getLogger("taskchat-backend.classifier_llm")

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_GENERATE_CONTENT_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={api_key}"

REASON_DISABLED = "llm_classifier_disabled"
REASON_ACTION_MISSING = "intent_action_missing"

SYSTEM_PROMPT = (
    "You are the intent classifier of a chat assistant that manages a to-do list and user accounts. "
    "Read the conversation and the latest user message and decide which single operation the user wants. "
    "Be friendly, but reply with a JSON object only.\n\n"
    "Task actions: create_todo, read_todos, update_todo, delete_todo, mark_completed, complete_all, delete_all.\n"
    "Account actions: create_account, read_accounts, update_account, delete_account, change_password.\n"
    "Anything else is action \"chat\".\n\n"
    "Account creation needs email, then password, then a username; never reuse the password as the name. "
    "A password change needs the account email and the new password. "
    "An account update needs the email and either newName or newRole. "
    "Deleting an account needs the email. Do not assume every message is about passwords."
)

RESPONSE_FORMAT_HINT = (
    "JSON format:\n"
    "{\n"
    '  "action": "create_todo",\n'
    '  "data": {"title": "buy groceries"},\n'
    '  "category": "task_management",\n'
    '  "mood": "helpful",\n'
    '  "follow_up": "Anything else to add?"\n'
    "}\n"
    "category is one of task_management, account_management, conversation. "
    "mood is one of friendly, excited, concerned, helpful, encouraging. "
    "For chat put the user's words in data.message and a short data.topic.\n"
    "Examples: \"add buy groceries\" -> create_todo; \"create account for John\" -> create_account; "
    "\"hello\" -> chat with topic greeting; \"I'm feeling overwhelmed\" -> chat with mood concerned."
)


@dataclass
class OracleOutcome:
    intent: Intent | None = None
    reason: str | None = None
    invalid_output: bool = False
    action_less_data: dict = field(default_factory=dict)
    provider: str | None = None
    model: str | None = None

    @property
    def ok(self) -> bool:
        return self.intent is not None


def _is_gemini_provider(provider: str) -> bool:
    return provider in {"gemini", "google"}


def build_conversation_context(history: list[dict] | None, window: int = 12) -> str:
    if window <= 0:
        return ""
    lines: list[str] = []
    for item in list(history or [])[-window:]:
        if not isinstance(item, dict):
            continue
        role = str(item.get("role") or "").strip() or "user"
        content = str(item.get("content") or "").strip()
        if not content:
            continue
        lines.append(f"{role}: {content}")
    return "\n".join(lines)


def build_user_prompt(user_text: str, history: list[dict] | None, window: int = 12) -> str:
    context = build_conversation_context(history, window) or "(none)"
    return (
        f"Previous conversation:\n{context}\n\n"
        f'User: "{user_text}"\n\n'
        f"{RESPONSE_FORMAT_HINT}"
    )


def _provider_attempts(settings) -> list[tuple[str, str]]:
    attempts: list[tuple[str, str]] = []
    primary_provider = (getattr(settings, "llm_classifier_provider", "") or "gemini").strip().lower()
    primary_model = (getattr(settings, "llm_classifier_model", "") or "gemini-1.5-flash").strip()
    attempts.append((primary_provider, primary_model))
    fallback_provider = (getattr(settings, "llm_classifier_fallback_provider", "") or "").strip().lower()
    fallback_model = (getattr(settings, "llm_classifier_fallback_model", "") or "").strip()
    if fallback_provider and fallback_model and (fallback_provider, fallback_model) not in attempts:
        attempts.append((fallback_provider, fallback_model))
    return attempts


async def try_classify_with_llm(
    *,
    user_text: str,
    history: list[dict] | None = None,
) -> OracleOutcome:
    settings = get_settings()
    if not bool(getattr(settings, "llm_classifier_enabled", False)):
        return OracleOutcome(reason=REASON_DISABLED)

    window = int(getattr(settings, "chat_history_window", 12) or 0)
    timeout_sec = float(getattr(settings, "llm_classifier_timeout_sec", 20) or 20)
    user_prompt = build_user_prompt(user_text, history, window)
    openai_api_key = getattr(settings, "openai_api_key", None)
    google_api_key = getattr(settings, "google_api_key", None)

    errors: list[str] = []
    for provider, model in _provider_attempts(settings):
        if provider == "openai" and not openai_api_key:
            errors.append("openai_api_key_missing")
            continue
        if _is_gemini_provider(provider) and not google_api_key:
            errors.append("google_api_key_missing")
            continue

        content, err = await _request_intent_with_provider(
            provider=provider,
            model=model,
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
            openai_api_key=openai_api_key,
            google_api_key=google_api_key,
            timeout_sec=timeout_sec,
        )
        if err:
            errors.append(f"{provider}:{err}")
            continue

        try:
            payload = parse_intent_json(content or "")
        except IntentValidationError as exc:
            # Unparseable answers count as an outage, not as a bad action.
            logger.warning("llm_classifier unparseable output provider=%s reason=%s", provider, exc)
            return OracleOutcome(reason=str(exc), provider=provider, model=model)
        try:
            intent = validate_intent_json(payload)
        except IntentValidationError as exc:
            if exc.code == REASON_ACTION_MISSING:
                logger.info("llm_classifier answer without action provider=%s", provider)
                return OracleOutcome(
                    reason=REASON_ACTION_MISSING,
                    invalid_output=True,
                    action_less_data=extract_action_less_data(payload),
                    provider=provider,
                    model=model,
                )
            logger.warning("llm_classifier rejected output provider=%s reason=%s", provider, exc)
            return OracleOutcome(reason=str(exc), invalid_output=True, provider=provider, model=model)

        logger.info("llm_classifier ok provider=%s model=%s action=%s", provider, model, intent.action)
        return OracleOutcome(intent=intent, provider=provider, model=model)

    reason = "|".join(errors) if errors else "llm_unknown_error"
    logger.warning("llm_classifier unavailable reason=%s", reason)
    return OracleOutcome(reason=reason)


async def _request_intent_with_provider(
    *,
    provider: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    openai_api_key: str | None,
    google_api_key: str | None,
    timeout_sec: float = 20,
) -> tuple[str | None, str | None]:
    if provider == "openai":
        request_payload = {
            "model": model,
            "temperature": 0,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        headers = {"Authorization": f"Bearer {openai_api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=timeout_sec) as client:
                response = await client.post(OPENAI_CHAT_COMPLETIONS_URL, headers=headers, json=request_payload)
            if response.status_code >= 400:
                return None, f"http_{response.status_code}"
            data = response.json()
            content = data.get("choices", [{}])[0].get("message", {}).get("content", "").strip()
            if not content:
                return None, "empty_content"
            return content, None
        except Exception as exc:  # pragma: no cover
            return None, f"error:{exc.__class__.__name__}"

    if _is_gemini_provider(provider):
        url = GEMINI_GENERATE_CONTENT_URL.format(model=model, api_key=google_api_key)
        request_payload = {
            "contents": [{"role": "user", "parts": [{"text": f"{system_prompt}\n\n{user_prompt}"}]}],
            "generationConfig": {"temperature": 0, "responseMimeType": "application/json"},
        }
        try:
            async with httpx.AsyncClient(timeout=timeout_sec) as client:
                response = await client.post(url, json=request_payload, headers={"Content-Type": "application/json"})
            if response.status_code >= 400:
                return None, f"http_{response.status_code}"
            data = response.json()
            parts = (
                data.get("candidates", [{}])[0]
                .get("content", {})
                .get("parts", [])
            )
            content = "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()
            if not content:
                return None, "empty_content"
            return content, None
        except Exception as exc:  # pragma: no cover
            return None, f"error:{exc.__class__.__name__}"

    return None, "unsupported_provider"
