from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from agent.extractors import validate_email
from agent.slot_schema import build_prompt_for_missing, find_missing_slots
from agent.types import (
    ACCOUNT_ACTIONS,
    FIELD_EMAIL,
    FIELD_NAME,
    FIELD_NEW_PASSWORD,
    FIELD_PASSWORD,
    FIELD_TITLE,
    ActionKind,
    ActionResult,
    Intent,
    NeedMoreInfo,
)
from app.store.base import (
    DEFAULT_ACCOUNT_ROLE,
    DEFAULT_TODO_PRIORITY,
    TODO_STATUS_COMPLETED,
    TODO_STATUS_PENDING,
    AccountFilter,
    DuplicateRecordError,
    RecordStore,
    StoreError,
    utcnow,
)


logger = logging.getLogger("taskchat-backend.executor")

RECENTLY_COMPLETED_LIMIT = 5

# Wire keys accepted by update_todo, mapped onto record fields.
TODO_UPDATE_FIELDS = {
    "title": "title",
    "description": "description",
    "isCompleted": "is_completed",
    "status": "status",
}

FAILURE_VERBS: dict[ActionKind, str] = {
    ActionKind.CREATE_TODO: "create todo",
    ActionKind.READ_TODOS: "retrieve todos",
    ActionKind.UPDATE_TODO: "update todo",
    ActionKind.DELETE_TODO: "delete todo",
    ActionKind.MARK_COMPLETED: "complete todo",
    ActionKind.COMPLETE_ALL: "complete todos",
    ActionKind.DELETE_ALL: "delete todos",
    ActionKind.CREATE_ACCOUNT: "create account",
    ActionKind.READ_ACCOUNTS: "retrieve accounts",
    ActionKind.UPDATE_ACCOUNT: "update account",
    ActionKind.DELETE_ACCOUNT: "delete account",
    ActionKind.CHANGE_PASSWORD: "change password",
}

Handler = Callable[[dict[str, Any], RecordStore], Awaitable[ActionResult]]


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _coerce_bool(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    lowered = str(value or "").strip().lower()
    if lowered in {"true", "yes", "1", "active"}:
        return True
    if lowered in {"false", "no", "0", "inactive"}:
        return False
    return None


def _need_more_info(
    action: ActionKind,
    missing: list[str],
    partial_data: dict[str, Any],
    message: str,
    *,
    prompt: str | None = None,
) -> ActionResult:
    prompt_text = prompt or build_prompt_for_missing(action, missing)
    return ActionResult(
        success=False,
        message=message,
        need_more_info=NeedMoreInfo(missing=list(missing), partial_data=dict(partial_data), prompt=prompt_text),
    )


# --- tasks ---------------------------------------------------------------

async def _create_todo(data: dict[str, Any], store: RecordStore) -> ActionResult:
    title = _text(data, FIELD_TITLE)
    if not title:
        return _need_more_info(ActionKind.CREATE_TODO, [FIELD_TITLE], {}, "More info required")
    description = _text(data, "description") or None
    todo = await store.todos.create(
        title,
        description=description,
        status=TODO_STATUS_PENDING,
        priority=DEFAULT_TODO_PRIORITY,
    )
    todos = await store.todos.find_all()
    return ActionResult(success=True, message="Todo created successfully", todo=todo, todos=todos)


async def _read_todos(data: dict[str, Any], store: RecordStore) -> ActionResult:
    todos = await store.todos.find_all()
    return ActionResult(success=True, message="Todos retrieved successfully", todos=todos, count=len(todos))


async def _update_todo(data: dict[str, Any], store: RecordStore) -> ActionResult:
    target = await store.todos.find_latest()
    if target is None:
        return ActionResult(success=False, message="No todos found to update")
    changes: dict[str, Any] = {}
    for wire_key, field_name in TODO_UPDATE_FIELDS.items():
        if wire_key not in data:
            continue
        value = data[wire_key]
        if field_name == "is_completed":
            value = _coerce_bool(value)
            if value is None:
                continue
        changes[field_name] = value
    todo = await store.todos.update_by_id(target.id, changes)
    if todo is None:
        return ActionResult(success=False, message="No todos found to update")
    return ActionResult(success=True, message="Todo updated successfully", todo=todo)


async def _delete_todo(data: dict[str, Any], store: RecordStore) -> ActionResult:
    title = _text(data, FIELD_TITLE) or None
    target = await store.todos.find_latest(title_pattern=title)
    if target is None:
        return ActionResult(success=False, message="No matching todo found to delete")
    deleted = await store.todos.delete_by_id(target.id)
    if deleted is None:
        return ActionResult(success=False, message="No matching todo found to delete")
    return ActionResult(success=True, message="Todo deleted successfully", deleted=deleted.to_dict())


async def _mark_completed(data: dict[str, Any], store: RecordStore) -> ActionResult:
    title = _text(data, FIELD_TITLE)
    target = None
    if title:
        target = await store.todos.find_latest(title_pattern=title, incomplete_only=True)
    if target is None:
        target = await store.todos.find_latest(incomplete_only=True)
    if target is None:
        return ActionResult(success=False, message="No incomplete todos found to complete")
    todo = await store.todos.update_by_id(
        target.id,
        {"is_completed": True, "status": TODO_STATUS_COMPLETED, "completed_at": utcnow()},
    )
    if todo is None:
        return ActionResult(success=False, message="No incomplete todos found to complete")
    return ActionResult(success=True, message="Todo marked as completed", todo=todo)


async def _complete_all(data: dict[str, Any], store: RecordStore) -> ActionResult:
    count = await store.todos.complete_all(utcnow())
    todos = await store.todos.find_recently_completed(RECENTLY_COMPLETED_LIMIT)
    return ActionResult(
        success=True,
        message=f"Marked {count} incomplete tasks as completed",
        count=count,
        todos=todos,
    )


async def _delete_all(data: dict[str, Any], store: RecordStore) -> ActionResult:
    count = await store.todos.delete_all()
    return ActionResult(success=True, message="All todos deleted", count=count)


# --- accounts ------------------------------------------------------------

async def _create_account(data: dict[str, Any], store: RecordStore) -> ActionResult:
    missing: list[str] = []
    payload: dict[str, Any] = {}
    for slot_name in (FIELD_EMAIL, FIELD_PASSWORD, FIELD_NAME):
        value = _text(data, slot_name)
        if value:
            payload[slot_name] = value
        else:
            missing.append(slot_name)
    if missing:
        logger.info("create_account need_more_info missing=%s", ",".join(missing))
        return _need_more_info(ActionKind.CREATE_ACCOUNT, missing, payload, "More account info required")

    try:
        account = await store.accounts.create(
            email=payload[FIELD_EMAIL],
            password=payload[FIELD_PASSWORD],
            name=payload[FIELD_NAME],
            role=_text(data, "role") or DEFAULT_ACCOUNT_ROLE,
        )
    except DuplicateRecordError:
        return ActionResult(success=False, message="Account with this email already exists")
    return ActionResult(success=True, message="Account created successfully", account=account)


async def _read_accounts(data: dict[str, Any], store: RecordStore) -> ActionResult:
    accounts = await store.accounts.find_all()
    return ActionResult(
        success=True,
        message="Accounts retrieved successfully",
        accounts=accounts,
        count=len(accounts),
    )


async def _update_account(data: dict[str, Any], store: RecordStore) -> ActionResult:
    # Ask for the identifier first, then for what to change.
    missing = find_missing_slots(ActionKind.UPDATE_ACCOUNT, data)
    if missing:
        return _need_more_info(
            ActionKind.UPDATE_ACCOUNT,
            missing[:1],
            data,
            "More account info required" if missing[0] == FIELD_EMAIL else "More update info required",
        )

    changes: dict[str, Any] = {}
    if _text(data, "newName"):
        changes["name"] = _text(data, "newName")
    if _text(data, "newRole"):
        changes["role"] = _text(data, "newRole")
    if "isActive" in data:
        is_active = _coerce_bool(data.get("isActive"))
        if is_active is not None:
            changes["is_active"] = is_active

    try:
        account = await store.accounts.update_one(AccountFilter.from_data(data), changes)
    except DuplicateRecordError:
        return ActionResult(success=False, message="Email already exists")
    if account is None:
        return ActionResult(success=False, message="Account not found")
    return ActionResult(success=True, message="Account updated successfully", account=account)


async def _delete_account(data: dict[str, Any], store: RecordStore) -> ActionResult:
    account_filter = AccountFilter.from_data(data)
    if account_filter.is_empty:
        return _need_more_info(ActionKind.DELETE_ACCOUNT, [FIELD_EMAIL], {}, "More account info required")
    account = await store.accounts.delete_one(account_filter)
    if account is None:
        return ActionResult(success=False, message="Account not found")
    return ActionResult(
        success=True,
        message="Account deleted successfully",
        deleted={"email": account.email, "name": account.name},
    )


async def _change_password(data: dict[str, Any], store: RecordStore) -> ActionResult:
    missing = find_missing_slots(ActionKind.CHANGE_PASSWORD, data)
    if missing:
        payload = {key: data[key] for key in (FIELD_EMAIL, "id", FIELD_NEW_PASSWORD) if _text(data, key)}
        logger.info("change_password need_more_info missing=%s", ",".join(missing))
        return _need_more_info(ActionKind.CHANGE_PASSWORD, missing, payload, "More password change info required")

    email = _text(data, FIELD_EMAIL)
    if email:
        is_valid, suggestion = validate_email(email)
        if not is_valid:
            prompt = f"Did you mean {suggestion}? Please provide the correct email address."
            return _need_more_info(ActionKind.CHANGE_PASSWORD, [FIELD_EMAIL], {}, prompt, prompt=prompt)

    account_filter = AccountFilter.from_data(data)
    account = await store.accounts.find_one(account_filter)
    if account is None:
        prompt = "Account not found. Please provide a valid email address."
        return _need_more_info(ActionKind.CHANGE_PASSWORD, [FIELD_EMAIL], {}, prompt, prompt=prompt)

    await store.accounts.set_password(AccountFilter(account_id=account.id), _text(data, FIELD_NEW_PASSWORD))
    return ActionResult(success=True, message="Password changed successfully")


async def _chat(data: dict[str, Any], store: RecordStore) -> ActionResult:
    return ActionResult(success=True)


ACTION_HANDLERS: dict[ActionKind, Handler] = {
    ActionKind.CREATE_TODO: _create_todo,
    ActionKind.READ_TODOS: _read_todos,
    ActionKind.UPDATE_TODO: _update_todo,
    ActionKind.DELETE_TODO: _delete_todo,
    ActionKind.MARK_COMPLETED: _mark_completed,
    ActionKind.COMPLETE_ALL: _complete_all,
    ActionKind.DELETE_ALL: _delete_all,
    ActionKind.CREATE_ACCOUNT: _create_account,
    ActionKind.READ_ACCOUNTS: _read_accounts,
    ActionKind.UPDATE_ACCOUNT: _update_account,
    ActionKind.DELETE_ACCOUNT: _delete_account,
    ActionKind.CHANGE_PASSWORD: _change_password,
    ActionKind.CHAT: _chat,
}


def _failure(action: ActionKind, exc: Exception) -> ActionResult:
    verb = FAILURE_VERBS.get(action, "execute action")
    return ActionResult(success=False, message=f"Failed to {verb}: {exc}")


async def execute_action(intent: Intent, store: RecordStore) -> ActionResult:
    handler = ACTION_HANDLERS.get(intent.action)
    if handler is None:
        return ActionResult(success=False, message="Unknown action")
    data = dict(intent.data or {})
    try:
        result = await handler(data, store)
    except StoreError as exc:
        logger.warning("action_store_error action=%s error=%s", intent.action, exc)
        return _failure(intent.action, exc)
    except Exception as exc:
        logger.exception("action_execution_error action=%s", intent.action)
        if intent.action in ACCOUNT_ACTIONS:
            return _failure(intent.action, exc)
        return ActionResult(success=False, message="Failed to execute action")
    logger.info(
        "action_executed action=%s success=%s need_more_info=%s",
        intent.action,
        result.success,
        result.needs_more_info,
    )
    return result
