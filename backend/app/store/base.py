from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol


TODO_STATUS_PENDING = "pending"
TODO_STATUS_COMPLETED = "completed"
DEFAULT_TODO_PRIORITY = "medium"
DEFAULT_ACCOUNT_ROLE = "user"

# Account fields the store lets callers change; ``password`` goes through set_password.
ACCOUNT_MUTABLE_FIELDS = frozenset({"email", "name", "role", "is_active"})
TODO_MUTABLE_FIELDS = frozenset({"title", "description", "is_completed", "status", "priority", "completed_at"})


class StoreError(Exception):
    pass


class DuplicateRecordError(StoreError):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def normalize_email(email: str | None) -> str:
    return str(email or "").strip().lower()


@dataclass
class TodoRecord:
    id: str
    title: str
    is_completed: bool = False
    status: str = TODO_STATUS_PENDING
    priority: str = DEFAULT_TODO_PRIORITY
    description: str | None = None
    completed_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "isCompleted": self.is_completed,
            "status": self.status,
            "priority": self.priority,
            "completedAt": _iso(self.completed_at),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> TodoRecord:
        return cls(
            id=str(row.get("id", "")),
            title=str(row.get("title") or ""),
            is_completed=bool(row.get("is_completed", False)),
            status=str(row.get("status") or TODO_STATUS_PENDING),
            priority=str(row.get("priority") or DEFAULT_TODO_PRIORITY),
            description=row.get("description"),
            completed_at=parse_timestamp(row.get("completed_at")),
            created_at=parse_timestamp(row.get("created_at")) or utcnow(),
            updated_at=parse_timestamp(row.get("updated_at")) or utcnow(),
        )


@dataclass
class AccountRecord:
    id: str
    email: str
    name: str
    role: str = DEFAULT_ACCOUNT_ROLE
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> AccountRecord:
        return cls(
            id=str(row.get("id", "")),
            email=str(row.get("email") or ""),
            name=str(row.get("name") or ""),
            role=str(row.get("role") or DEFAULT_ACCOUNT_ROLE),
            is_active=bool(row.get("is_active", True)),
            created_at=parse_timestamp(row.get("created_at")) or utcnow(),
            updated_at=parse_timestamp(row.get("updated_at")) or utcnow(),
        )


@dataclass(frozen=True)
class AccountFilter:
    """Selects one account by id (preferred) or email."""

    account_id: str | None = None
    email: str | None = None

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> AccountFilter:
        account_id = str(data.get("id") or "").strip() or None
        email = normalize_email(data.get("email")) or None
        return cls(account_id=account_id, email=email)

    @property
    def is_empty(self) -> bool:
        return not self.account_id and not self.email


class TodoRepository(Protocol):
    async def create(
        self,
        title: str,
        *,
        description: str | None = None,
        status: str = TODO_STATUS_PENDING,
        priority: str = DEFAULT_TODO_PRIORITY,
    ) -> TodoRecord: ...

    async def find_all(self) -> list[TodoRecord]: ...

    async def get_by_id(self, todo_id: str) -> TodoRecord | None: ...

    async def find_latest(
        self, *, title_pattern: str | None = None, incomplete_only: bool = False
    ) -> TodoRecord | None: ...

    async def update_by_id(self, todo_id: str, changes: dict[str, Any]) -> TodoRecord | None: ...

    async def delete_by_id(self, todo_id: str) -> TodoRecord | None: ...

    async def delete_all(self) -> int: ...

    async def complete_all(self, completed_at: datetime) -> int: ...

    async def find_recently_completed(self, limit: int = 5) -> list[TodoRecord]: ...


class AccountRepository(Protocol):
    async def create(self, *, email: str, password: str, name: str, role: str = DEFAULT_ACCOUNT_ROLE) -> AccountRecord: ...

    async def find_all(self) -> list[AccountRecord]: ...

    async def find_one(self, account_filter: AccountFilter) -> AccountRecord | None: ...

    async def update_one(self, account_filter: AccountFilter, changes: dict[str, Any]) -> AccountRecord | None: ...

    async def delete_one(self, account_filter: AccountFilter) -> AccountRecord | None: ...

    async def set_password(self, account_filter: AccountFilter, password: str) -> bool: ...


@dataclass
class RecordStore:
    todos: TodoRepository
    accounts: AccountRepository
    backend: str = "memory"
