import asyncio

from agent.executor import execute_action
from agent.types import ActionKind, Intent
from app.store.base import AccountFilter, RecordStore, StoreError
from app.store.memory import build_memory_store


def _run(action: str, data: dict | None = None, store: RecordStore | None = None):
    return asyncio.run(execute_action(Intent(action=ActionKind(action), data=dict(data or {})), store))


def _seed_todos(store: RecordStore, *titles: str) -> None:
    for title in titles:
        asyncio.run(store.todos.create(title))


def _seed_account(store: RecordStore, email: str = "bob@example.com", name: str = "Bob") -> None:
    asyncio.run(store.accounts.create(email=email, password="old-pass", name=name))


def test_create_todo_requires_title_and_does_not_mutate():
    store = build_memory_store()
    result = _run("create_todo", {}, store)
    assert result.success is False
    assert result.message == "More info required"
    assert result.need_more_info.missing == ["title"]
    assert result.need_more_info.prompt == "What task would you like me to add to your list?"
    assert asyncio.run(store.todos.find_all()) == []


def test_create_todo_returns_created_and_full_list():
    store = build_memory_store()
    _seed_todos(store, "older")
    result = _run("create_todo", {"title": "buy groceries"}, store)
    assert result.success is True
    assert result.todo.title == "buy groceries"
    assert result.todo.status == "pending"
    assert result.todo.priority == "medium"
    assert [todo.title for todo in result.todos] == ["buy groceries", "older"]


def test_read_todos_newest_first_with_count():
    store = build_memory_store()
    _seed_todos(store, "a", "b", "c")
    result = _run("read_todos", {}, store)
    assert [todo.title for todo in result.todos] == ["c", "b", "a"]
    assert result.count == 3
    assert result.to_dict()["todos"][0]["isCompleted"] is False


def test_update_todo_targets_most_recent():
    store = build_memory_store()
    assert _run("update_todo", {"title": "x"}, store).message == "No todos found to update"

    _seed_todos(store, "first", "second")
    result = _run("update_todo", {"title": "renamed", "isCompleted": "true", "priority": "high"}, store)
    assert result.success is True
    assert result.todo.title == "renamed"
    assert result.todo.is_completed is True
    assert result.todo.priority == "medium"


def test_delete_todo_matches_title_case_insensitively_and_literally():
    store = build_memory_store()
    _seed_todos(store, "learn c++", "buy milk", "walk dog")
    result = _run("delete_todo", {"title": "MILK"}, store)
    assert result.success is True
    assert result.deleted["title"] == "buy milk"

    assert _run("delete_todo", {"title": "c++"}, store).deleted["title"] == "learn c++"
    assert _run("delete_todo", {"title": "piano"}, store).message == "No matching todo found to delete"
    assert _run("delete_todo", {}, store).deleted["title"] == "walk dog"


def test_mark_completed_falls_back_to_latest_incomplete():
    store = build_memory_store()
    _seed_todos(store, "laundry", "dishes")

    matched = _run("mark_completed", {"title": "laundry"}, store)
    assert matched.todo.title == "laundry"
    assert matched.todo.status == "completed"
    assert matched.todo.completed_at is not None

    fallback = _run("mark_completed", {"title": "piano"}, store)
    assert fallback.todo.title == "dishes"

    assert _run("mark_completed", {}, store).message == "No incomplete todos found to complete"


def test_complete_all_and_delete_all_report_counts():
    store = build_memory_store()
    _seed_todos(store, "a", "b", "c")
    _run("mark_completed", {"title": "a"}, store)

    completed = _run("complete_all", {}, store)
    assert completed.count == 2
    assert completed.message == "Marked 2 incomplete tasks as completed"
    assert len(completed.todos) == 3

    deleted = _run("delete_all", {}, store)
    assert deleted.count == 3
    assert deleted.message == "All todos deleted"


def test_create_account_lists_every_missing_field_in_order():
    store = build_memory_store()
    result = _run("create_account", {}, store)
    assert result.need_more_info.missing == ["email", "password", "name"]
    assert result.need_more_info.prompt == "What email would you like to use for your account?"

    partial = _run("create_account", {"email": "jane@example.com"}, store)
    assert partial.need_more_info.missing == ["password", "name"]
    assert partial.need_more_info.partial_data == {"email": "jane@example.com"}


def test_revalidation_reports_exactly_the_absent_field():
    full = {"email": "jane@example.com", "password": "hunter2", "name": "Jane"}
    for field in full:
        data = {key: value for key, value in full.items() if key != field}
        result = _run("create_account", data, build_memory_store())
        assert result.need_more_info.missing == [field]

    result = _run("change_password", {"email": "bob@example.com"}, build_memory_store())
    assert result.need_more_info.missing == ["newPassword"]


def test_create_account_duplicate_and_success():
    store = build_memory_store()
    created = _run("create_account", {"email": "Jane@Example.com", "password": "hunter2", "name": "Jane"}, store)
    assert created.success is True
    assert created.account.email == "jane@example.com"
    assert created.account.role == "user"
    assert "password" not in created.to_dict()["account"]

    duplicate = _run("create_account", {"email": "jane@example.com", "password": "x", "name": "J"}, store)
    assert duplicate.success is False
    assert duplicate.message == "Account with this email already exists"


def test_read_accounts_without_passwords():
    store = build_memory_store()
    _seed_account(store, "a@example.com", "A")
    _seed_account(store, "b@example.com", "B")
    result = _run("read_accounts", {}, store)
    assert [account.email for account in result.accounts] == ["b@example.com", "a@example.com"]
    assert result.count == 2
    assert all("password" not in item for item in result.to_dict()["accounts"])


def test_update_account_asks_identifier_then_field():
    store = build_memory_store()
    first = _run("update_account", {}, store)
    assert first.need_more_info.missing == ["email"]
    assert first.message == "More account info required"

    second = _run("update_account", {"email": "bob@example.com"}, store)
    assert second.need_more_info.missing == ["updateField"]
    assert second.message == "More update info required"
    assert second.need_more_info.partial_data == {"email": "bob@example.com"}


def test_update_account_applies_changes_or_reports_not_found():
    store = build_memory_store()
    assert _run("update_account", {"email": "bob@example.com", "newRole": "admin"}, store).message == "Account not found"

    _seed_account(store)
    result = _run("update_account", {"email": "bob@example.com", "newRole": "admin", "isActive": False}, store)
    assert result.success is True
    assert result.account.role == "admin"
    assert result.account.is_active is False


def test_delete_account_flow():
    store = build_memory_store()
    missing = _run("delete_account", {}, store)
    assert missing.need_more_info.missing == ["email"]
    assert missing.need_more_info.prompt == "Which account should I delete? Please provide the email."

    assert _run("delete_account", {"email": "bob@example.com"}, store).message == "Account not found"

    _seed_account(store)
    deleted = _run("delete_account", {"email": "bob@example.com"}, store)
    assert deleted.success is True
    assert deleted.deleted == {"email": "bob@example.com", "name": "Bob"}


class _UntouchableAccounts:
    def __getattr__(self, name):
        raise AssertionError(f"store must not be touched: {name}")


def test_change_password_typo_is_caught_without_store_access():
    store = RecordStore(todos=None, accounts=_UntouchableAccounts())
    result = _run("change_password", {"email": "foo@gamil.com", "newPassword": "hunter2"}, store)
    assert result.success is False
    assert result.need_more_info.missing == ["email"]
    assert result.need_more_info.partial_data == {}
    assert result.need_more_info.prompt == "Did you mean foo@gmail.com? Please provide the correct email address."


def test_change_password_unknown_account_keeps_flow_alive():
    result = _run("change_password", {"email": "ghost@example.com", "newPassword": "hunter2"}, build_memory_store())
    assert result.need_more_info.missing == ["email"]
    assert result.need_more_info.prompt == "Account not found. Please provide a valid email address."


def test_change_password_updates_stored_password():
    store = build_memory_store()
    _seed_account(store)
    result = _run("change_password", {"email": "bob@example.com", "newPassword": "hunter2"}, store)
    assert result.success is True
    assert result.message == "Password changed successfully"
    assert store.accounts.password_for("bob@example.com") == "hunter2"
    assert asyncio.run(store.accounts.find_one(AccountFilter(email="bob@example.com"))) is not None


def test_chat_is_a_no_op_success():
    result = _run("chat", {"message": "hi"}, build_memory_store())
    assert result.success is True
    assert result.message == ""


class _FailingTodos:
    def __init__(self, exc: Exception):
        self._exc = exc

    async def find_all(self):
        raise self._exc


class _FailingAccounts:
    async def create(self, **kwargs):
        raise RuntimeError("connection reset")


def test_store_errors_become_failures():
    store = RecordStore(todos=_FailingTodos(StoreError("table missing")), accounts=_FailingAccounts())
    result = _run("read_todos", {}, store)
    assert result.success is False
    assert result.message == "Failed to retrieve todos: table missing"

    account = _run("create_account", {"email": "a@b.io", "password": "x", "name": "A"}, store)
    assert account.message == "Failed to create account: connection reset"


def test_unexpected_task_errors_are_generic():
    store = RecordStore(todos=_FailingTodos(RuntimeError("boom")), accounts=None)
    result = _run("read_todos", {}, store)
    assert result.success is False
    assert result.message == "Failed to execute action"
