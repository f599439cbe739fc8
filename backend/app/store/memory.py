from __future__ import annotations

import re
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any

from app.store.base import (
    ACCOUNT_MUTABLE_FIELDS,
    DEFAULT_ACCOUNT_ROLE,
    DEFAULT_TODO_PRIORITY,
    TODO_MUTABLE_FIELDS,
    TODO_STATUS_COMPLETED,
    TODO_STATUS_PENDING,
    AccountFilter,
    AccountRecord,
    DuplicateRecordError,
    RecordStore,
    TodoRecord,
    normalize_email,
    utcnow,
)


def _new_id() -> str:
    return uuid.uuid4().hex


class MemoryTodoRepository:
    def __init__(self) -> None:
        # Insertion order is creation order; newest is last.
        self._items: list[TodoRecord] = []

    def _newest_first(self) -> list[TodoRecord]:
        return list(reversed(self._items))

    def _index_of(self, todo_id: str) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == todo_id:
                return index
        return None

    async def create(
        self,
        title: str,
        *,
        description: str | None = None,
        status: str = TODO_STATUS_PENDING,
        priority: str = DEFAULT_TODO_PRIORITY,
    ) -> TodoRecord:
        record = TodoRecord(
            id=_new_id(),
            title=title,
            description=description,
            status=status,
            priority=priority,
            is_completed=status == TODO_STATUS_COMPLETED,
        )
        self._items.append(record)
        return replace(record)

    async def find_all(self) -> list[TodoRecord]:
        return [replace(item) for item in self._newest_first()]

    async def get_by_id(self, todo_id: str) -> TodoRecord | None:
        index = self._index_of(todo_id)
        return replace(self._items[index]) if index is not None else None

    async def find_latest(
        self, *, title_pattern: str | None = None, incomplete_only: bool = False
    ) -> TodoRecord | None:
        matcher = re.compile(re.escape(title_pattern), re.IGNORECASE) if title_pattern else None
        for item in self._newest_first():
            if incomplete_only and item.is_completed:
                continue
            if matcher and not matcher.search(item.title):
                continue
            return replace(item)
        return None

    async def update_by_id(self, todo_id: str, changes: dict[str, Any]) -> TodoRecord | None:
        index = self._index_of(todo_id)
        if index is None:
            return None
        allowed = {key: value for key, value in changes.items() if key in TODO_MUTABLE_FIELDS}
        updated = replace(self._items[index], **allowed, updated_at=utcnow())
        self._items[index] = updated
        return replace(updated)

    async def delete_by_id(self, todo_id: str) -> TodoRecord | None:
        index = self._index_of(todo_id)
        if index is None:
            return None
        return self._items.pop(index)

    async def delete_all(self) -> int:
        count = len(self._items)
        self._items.clear()
        return count

    async def complete_all(self, completed_at: datetime) -> int:
        count = 0
        for index, item in enumerate(self._items):
            if item.is_completed:
                continue
            self._items[index] = replace(
                item,
                is_completed=True,
                status=TODO_STATUS_COMPLETED,
                completed_at=completed_at,
                updated_at=completed_at,
            )
            count += 1
        return count

    async def find_recently_completed(self, limit: int = 5) -> list[TodoRecord]:
        completed = [
            item
            for item in self._newest_first()
            if item.is_completed and item.status == TODO_STATUS_COMPLETED
        ]
        # sorted() is stable, so equal timestamps keep newest-created first.
        completed = sorted(completed, key=lambda item: item.updated_at, reverse=True)
        return [replace(item) for item in completed[: max(0, limit)]]


class MemoryAccountRepository:
    def __init__(self) -> None:
        self._items: list[AccountRecord] = []
        self._passwords: dict[str, str] = {}

    def _index_of(self, account_filter: AccountFilter) -> int | None:
        if account_filter.is_empty:
            return None
        for index, item in enumerate(self._items):
            if account_filter.account_id:
                if item.id == account_filter.account_id:
                    return index
                continue
            if item.email == account_filter.email:
                return index
        return None

    def _email_taken(self, email: str, *, exclude_id: str | None = None) -> bool:
        return any(item.email == email and item.id != exclude_id for item in self._items)

    async def create(self, *, email: str, password: str, name: str, role: str = DEFAULT_ACCOUNT_ROLE) -> AccountRecord:
        normalized = normalize_email(email)
        if self._email_taken(normalized):
            raise DuplicateRecordError(f"duplicate email: {normalized}")
        record = AccountRecord(id=_new_id(), email=normalized, name=name, role=role or DEFAULT_ACCOUNT_ROLE)
        self._items.append(record)
        self._passwords[record.id] = password
        return replace(record)

    async def find_all(self) -> list[AccountRecord]:
        return [replace(item) for item in reversed(self._items)]

    async def find_one(self, account_filter: AccountFilter) -> AccountRecord | None:
        index = self._index_of(account_filter)
        return replace(self._items[index]) if index is not None else None

    async def update_one(self, account_filter: AccountFilter, changes: dict[str, Any]) -> AccountRecord | None:
        index = self._index_of(account_filter)
        if index is None:
            return None
        current = self._items[index]
        allowed = {key: value for key, value in changes.items() if key in ACCOUNT_MUTABLE_FIELDS}
        if "email" in allowed:
            allowed["email"] = normalize_email(allowed["email"])
            if self._email_taken(allowed["email"], exclude_id=current.id):
                raise DuplicateRecordError(f"duplicate email: {allowed['email']}")
        updated = replace(current, **allowed, updated_at=utcnow())
        self._items[index] = updated
        return replace(updated)

    async def delete_one(self, account_filter: AccountFilter) -> AccountRecord | None:
        index = self._index_of(account_filter)
        if index is None:
            return None
        removed = self._items.pop(index)
        self._passwords.pop(removed.id, None)
        return removed

    async def set_password(self, account_filter: AccountFilter, password: str) -> bool:
        index = self._index_of(account_filter)
        if index is None:
            return False
        account_id = self._items[index].id
        self._passwords[account_id] = password
        self._items[index] = replace(self._items[index], updated_at=utcnow())
        return True

    def password_for(self, email: str) -> str | None:
        index = self._index_of(AccountFilter(email=normalize_email(email)))
        if index is None:
            return None
        return self._passwords.get(self._items[index].id)


def build_memory_store() -> RecordStore:
    return RecordStore(todos=MemoryTodoRepository(), accounts=MemoryAccountRepository(), backend="memory")
