from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ActionKind(StrEnum):
    CREATE_TODO = "create_todo"
    READ_TODOS = "read_todos"
    UPDATE_TODO = "update_todo"
    DELETE_TODO = "delete_todo"
    MARK_COMPLETED = "mark_completed"
    COMPLETE_ALL = "complete_all"
    DELETE_ALL = "delete_all"
    CREATE_ACCOUNT = "create_account"
    READ_ACCOUNTS = "read_accounts"
    UPDATE_ACCOUNT = "update_account"
    DELETE_ACCOUNT = "delete_account"
    CHANGE_PASSWORD = "change_password"
    CHAT = "chat"


class Category(StrEnum):
    TASK_MANAGEMENT = "task_management"
    ACCOUNT_MANAGEMENT = "account_management"
    CONVERSATION = "conversation"


TASK_ACTIONS = frozenset(
    {
        ActionKind.CREATE_TODO,
        ActionKind.READ_TODOS,
        ActionKind.UPDATE_TODO,
        ActionKind.DELETE_TODO,
        ActionKind.MARK_COMPLETED,
        ActionKind.COMPLETE_ALL,
        ActionKind.DELETE_ALL,
    }
)
ACCOUNT_ACTIONS = frozenset(
    {
        ActionKind.CREATE_ACCOUNT,
        ActionKind.READ_ACCOUNTS,
        ActionKind.UPDATE_ACCOUNT,
        ActionKind.DELETE_ACCOUNT,
        ActionKind.CHANGE_PASSWORD,
    }
)

# Slot names as they travel on the wire (camelCase kept for the web client).
FIELD_TITLE = "title"
FIELD_EMAIL = "email"
FIELD_PASSWORD = "password"
FIELD_NAME = "name"
FIELD_NEW_PASSWORD = "newPassword"
FIELD_NEW_ROLE = "newRole"
FIELD_NEW_NAME = "newName"
FIELD_UPDATE_FIELD = "updateField"  # virtual: selects newRole or newName

FIELD_NAMES = frozenset(
    {
        FIELD_TITLE,
        FIELD_EMAIL,
        FIELD_PASSWORD,
        FIELD_NAME,
        FIELD_NEW_PASSWORD,
        FIELD_NEW_ROLE,
        FIELD_NEW_NAME,
        FIELD_UPDATE_FIELD,
    }
)


def parse_action_kind(value: object) -> ActionKind | None:
    try:
        return ActionKind(str(value or "").strip())
    except ValueError:
        return None


def category_for_action(action: ActionKind) -> Category:
    if action in TASK_ACTIONS:
        return Category.TASK_MANAGEMENT
    if action in ACCOUNT_ACTIONS:
        return Category.ACCOUNT_MANAGEMENT
    return Category.CONVERSATION


def _ordered_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


@dataclass
class Intent:
    action: ActionKind
    data: dict[str, Any] = field(default_factory=dict)
    category: Category | None = None
    mood: str | None = None
    follow_up: str | None = None

    def __post_init__(self) -> None:
        if self.category is None:
            self.category = category_for_action(self.action)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "action": str(self.action),
            "data": dict(self.data),
            "category": str(self.category),
        }
        if self.mood:
            payload["mood"] = self.mood
        if self.follow_up:
            payload["follow_up"] = self.follow_up
        return payload


@dataclass
class NeedMoreInfo:
    missing: list[str]
    partial_data: dict[str, Any]
    prompt: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "missing": list(self.missing),
            "partialData": dict(self.partial_data),
            "prompt": self.prompt,
        }


@dataclass
class PendingAction:
    action: ActionKind
    missing: list[str] = field(default_factory=list)
    partial_data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.missing = _ordered_unique([str(item) for item in self.missing])

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": str(self.action),
            "missing": list(self.missing),
            "partialData": dict(self.partial_data),
        }

    @classmethod
    def from_dict(cls, payload: object) -> PendingAction | None:
        if not isinstance(payload, dict):
            return None
        action = parse_action_kind(payload.get("action"))
        if action is None:
            return None
        missing_raw = payload.get("missing") or []
        if not isinstance(missing_raw, list):
            missing_raw = []
        partial_raw = payload.get("partialData") or payload.get("partial_data") or {}
        if not isinstance(partial_raw, dict):
            partial_raw = {}
        return cls(
            action=action,
            missing=[str(item).strip() for item in missing_raw if str(item).strip()],
            partial_data=dict(partial_raw),
        )


@dataclass
class ActionResult:
    success: bool
    message: str = ""
    todos: list[Any] | None = None
    todo: Any | None = None
    accounts: list[Any] | None = None
    account: Any | None = None
    count: int | None = None
    deleted: dict[str, Any] | None = None
    need_more_info: NeedMoreInfo | None = None

    @property
    def needs_more_info(self) -> bool:
        return self.need_more_info is not None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.todos is not None:
            payload["todos"] = [_record_dict(item) for item in self.todos]
        if self.todo is not None:
            payload["todo"] = _record_dict(self.todo)
        if self.accounts is not None:
            payload["accounts"] = [_record_dict(item) for item in self.accounts]
        if self.account is not None:
            payload["account"] = _record_dict(self.account)
        if self.count is not None:
            payload["count"] = self.count
        if self.deleted is not None:
            payload["deleted"] = dict(self.deleted)
        if self.need_more_info is not None:
            payload["needMoreInfo"] = self.need_more_info.to_dict()
        return payload


def _record_dict(item: Any) -> Any:
    to_dict = getattr(item, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return item


@dataclass
class ChatTurnResult:
    resolved_intent: Intent
    action_result: ActionResult
    reply_text: str
    pending: PendingAction | None = None
    intent_source: str = "rule"
    notes: list[str] = field(default_factory=list)
