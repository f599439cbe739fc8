from agent.classifier import classify
from agent.slot_collector import (
    RESOLUTION_BREAKOUT,
    RESOLUTION_COMPLETE,
    RESOLUTION_NEED_MORE_INFO,
    detect_breakout,
    fill_pending_slots,
    resolve_pending,
)
from agent.types import ActionKind, PendingAction


def _pending(action: str, missing: list[str], partial: dict | None = None) -> PendingAction:
    return PendingAction(action=ActionKind(action), missing=missing, partial_data=dict(partial or {}))


def test_detect_breakout_reasons():
    assert detect_breakout("delete the user") == "account_delete"
    assert detect_breakout("add buy milk") == "task_create"
    assert detect_breakout("call mom tomorrow") == "task_statement"
    assert detect_breakout("jane@example.com") is None
    assert detect_breakout("hunter2") is None


def test_create_account_flow_fills_one_slot_per_turn():
    pending = _pending("create_account", ["email", "password", "name"])

    first = resolve_pending("jane@example.com", pending)
    assert first.kind == RESOLUTION_NEED_MORE_INFO
    assert first.filled_slot == "email"
    assert first.need_more_info.missing == ["password", "name"]
    assert first.need_more_info.partial_data == {"email": "jane@example.com"}
    assert first.need_more_info.prompt == "What password would you like to set for your account?"

    pending = _pending("create_account", first.need_more_info.missing, first.need_more_info.partial_data)
    second = resolve_pending("hunter2", pending)
    assert second.filled_slot == "password"
    assert second.need_more_info.prompt == "What username would you like to use for your account?"

    pending = _pending("create_account", second.need_more_info.missing, second.need_more_info.partial_data)
    third = resolve_pending("Jane", pending)
    assert third.kind == RESOLUTION_COMPLETE
    assert third.intent.action == ActionKind.CREATE_ACCOUNT
    assert third.intent.data == {"email": "jane@example.com", "password": "hunter2", "name": "Jane"}


def test_slot_filling_converges_in_missing_count_turns():
    answers = {"email": "bob@example.com", "newPassword": "hunter2"}
    pending = _pending("change_password", ["email", "newPassword"])
    turns = 0
    while True:
        turns += 1
        slot = pending.missing[0]
        resolution = resolve_pending(answers[slot], pending)
        if resolution.kind == RESOLUTION_COMPLETE:
            break
        info = resolution.need_more_info
        pending = _pending("change_password", info.missing, info.partial_data)
    assert turns == 2
    assert resolution.intent.data == answers


def test_email_answer_never_lands_in_name():
    pending = _pending("create_account", ["name"], {"email": "a@b.io", "password": "x"})
    still_missing, updated, filled = fill_pending_slots("bob@example.com", pending)
    assert still_missing == ["name"]
    assert "name" not in updated
    assert filled is None


def test_name_rejects_account_words():
    pending = _pending("create_account", ["name"], {"email": "a@b.io", "password": "x"})
    resolution = resolve_pending("remove it", pending)
    assert resolution.kind == RESOLUTION_NEED_MORE_INFO
    assert resolution.filled_slot is None
    assert resolution.need_more_info.missing == ["name"]


def test_update_field_selector_moves_to_role_then_completes():
    pending = _pending("update_account", ["updateField"], {"email": "bob@example.com"})
    selected = resolve_pending("Role", pending)
    assert selected.kind == RESOLUTION_NEED_MORE_INFO
    assert selected.need_more_info.missing == ["newRole"]
    assert selected.need_more_info.prompt == "What should the new role be? (e.g., 'admin' or 'user')"

    pending = _pending("update_account", ["newRole"], selected.need_more_info.partial_data)
    done = resolve_pending("admin", pending)
    assert done.kind == RESOLUTION_COMPLETE
    assert done.intent.data == {"email": "bob@example.com", "newRole": "admin"}


def test_update_field_selector_name_and_unknown_answer():
    pending = _pending("update_account", ["updateField"], {"email": "bob@example.com"})
    assert resolve_pending("name", pending).need_more_info.missing == ["newName"]

    unknown = resolve_pending("colour", pending)
    assert unknown.need_more_info.missing == ["updateField"]
    assert unknown.need_more_info.prompt.startswith("I've found that account.")


def test_todo_title_is_taken_verbatim():
    pending = _pending("create_todo", ["title"])
    resolution = resolve_pending("buy eggs", pending)
    assert resolution.kind == RESOLUTION_COMPLETE
    assert resolution.intent.action == ActionKind.CREATE_TODO
    assert resolution.intent.data == {"title": "buy eggs"}


def test_breakout_discards_pending_for_new_task():
    pending = _pending("create_account", ["password", "name"], {"email": "jane@example.com"})
    resolution = resolve_pending("add buy milk", pending)
    assert resolution.kind == RESOLUTION_BREAKOUT
    assert resolution.is_breakout
    assert resolution.intent.action == ActionKind.CREATE_TODO
    assert resolution.intent.data == {"title": "buy milk"}


def test_breakout_matches_direct_classification():
    pending = _pending("change_password", ["newPassword"], {"email": "bob@example.com"})
    for text in ("add buy milk", "delete the user bob@example.com", "call mom tomorrow", "create task report"):
        resolution = resolve_pending(text, pending)
        assert resolution.is_breakout
        direct = classify(text)
        assert resolution.intent.action == direct.action
        assert resolution.intent.data == direct.data
