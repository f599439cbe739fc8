from __future__ import annotations

import json

from agent.types import ActionKind, Intent, category_for_action, parse_action_kind


ERROR_INVALID_INTENT_JSON = "invalid_intent_json"

ALLOWED_MOODS = {"friendly", "excited", "concerned", "helpful", "encouraging"}

# Fields the oracle may set per action; everything else is dropped.
ACTION_FIELD_ALLOWLIST: dict[ActionKind, frozenset[str]] = {
    ActionKind.CREATE_TODO: frozenset({"title", "description"}),
    ActionKind.READ_TODOS: frozenset(),
    ActionKind.UPDATE_TODO: frozenset({"title", "description", "isCompleted", "status"}),
    ActionKind.DELETE_TODO: frozenset({"title"}),
    ActionKind.MARK_COMPLETED: frozenset({"title"}),
    ActionKind.COMPLETE_ALL: frozenset(),
    ActionKind.DELETE_ALL: frozenset(),
    ActionKind.CREATE_ACCOUNT: frozenset({"email", "password", "name", "role"}),
    ActionKind.READ_ACCOUNTS: frozenset(),
    ActionKind.UPDATE_ACCOUNT: frozenset({"email", "id", "newName", "newRole", "isActive"}),
    ActionKind.DELETE_ACCOUNT: frozenset({"email", "id"}),
    ActionKind.CHANGE_PASSWORD: frozenset({"email", "id", "newPassword"}),
    ActionKind.CHAT: frozenset({"message", "topic", "mood"}),
}


class IntentValidationError(ValueError):
    def __init__(self, message: str, *, code: str = ERROR_INVALID_INTENT_JSON) -> None:
        self.code = code
        super().__init__(message)


def extract_first_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON strings are ignored so a title such as ``"fix {x}"``
    does not end the object early.
    """
    raw = text or ""
    start = raw.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(raw)):
            char = raw[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return raw[start : index + 1]
        start = raw.find("{", start + 1)
    return None


def parse_intent_json(raw: str) -> dict:
    text = (raw or "").strip()
    if not text:
        raise IntentValidationError("empty_intent_json")
    candidate = extract_first_json_object(text)
    if candidate is None:
        raise IntentValidationError("intent_json_object_missing")
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise IntentValidationError("invalid_json_syntax") from exc
    if not isinstance(payload, dict):
        raise IntentValidationError("intent_json_must_be_object")
    return payload


def _is_scalar(value: object) -> bool:
    return value is None or isinstance(value, (str, bool, int, float))


def validate_intent_json(payload: dict) -> Intent:
    if not isinstance(payload, dict):
        raise IntentValidationError("intent_json_must_be_object")

    if "action" not in payload or payload.get("action") in (None, ""):
        raise IntentValidationError("intent_action_missing", code="intent_action_missing")
    action = parse_action_kind(payload.get("action"))
    if action is None:
        raise IntentValidationError("intent_action_invalid")

    data_raw = payload.get("data", {})
    if data_raw is None:
        data_raw = {}
    if not isinstance(data_raw, dict):
        raise IntentValidationError("intent_data_must_be_object")
    allowed = ACTION_FIELD_ALLOWLIST[action]
    data: dict = {}
    for key, value in data_raw.items():
        if key not in allowed:
            continue
        if not _is_scalar(value):
            raise IntentValidationError("intent_data_value_must_be_scalar")
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        data[key] = value.strip() if isinstance(value, str) else value

    # Category always follows the action; the oracle's own label is ignored.
    category = category_for_action(action)
    mood_raw = str(payload.get("mood") or "").strip().lower()
    mood = mood_raw if mood_raw in ALLOWED_MOODS else None
    follow_up = str(payload.get("follow_up") or "").strip() or None

    return Intent(action=action, data=data, category=category, mood=mood, follow_up=follow_up)


def extract_action_less_data(payload: dict) -> dict:
    """Scalar fields of an oracle answer that named no action."""
    data_raw = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data_raw, dict):
        return {}
    allowed = ACTION_FIELD_ALLOWLIST[ActionKind.CHANGE_PASSWORD]
    return {
        key: value.strip() if isinstance(value, str) else value
        for key, value in data_raw.items()
        if key in allowed and _is_scalar(value) and value not in (None, "")
    }
