from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from supabase import create_client

from app.security.password_vault import PasswordVault
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
    StoreError,
    TodoRecord,
    normalize_email,
    utcnow,
)


logger = logging.getLogger("taskchat-backend.supabase_store")

UNIQUE_VIOLATION_CODE = "23505"
ACCOUNT_PUBLIC_COLUMNS = "id,email,name,role,is_active,created_at,updated_at"


def escape_like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _is_unique_violation(exc: Exception) -> bool:
    code = getattr(exc, "code", None)
    if str(code or "") == UNIQUE_VIOLATION_CODE:
        return True
    return "duplicate key" in str(exc).lower()


def _serialize_changes(changes: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in changes.items():
        payload[key] = value.isoformat() if isinstance(value, datetime) else value
    return payload


def _first_row(response) -> dict[str, Any] | None:
    rows = getattr(response, "data", None) or []
    return rows[0] if rows else None


class SupabaseTodoRepository:
    def __init__(self, client, table: str = "todos") -> None:
        self._client = client
        self._table = table

    def _query(self):
        return self._client.table(self._table)

    async def create(
        self,
        title: str,
        *,
        description: str | None = None,
        status: str = TODO_STATUS_PENDING,
        priority: str = DEFAULT_TODO_PRIORITY,
    ) -> TodoRecord:
        payload = {
            "title": title,
            "description": description,
            "status": status,
            "priority": priority,
            "is_completed": status == TODO_STATUS_COMPLETED,
        }
        row = _first_row(self._query().insert(payload).execute())
        if row is None:
            raise StoreError("todo insert returned no row")
        return TodoRecord.from_row(row)

    async def find_all(self) -> list[TodoRecord]:
        response = self._query().select("*").order("created_at", desc=True).execute()
        return [TodoRecord.from_row(row) for row in response.data or []]

    async def get_by_id(self, todo_id: str) -> TodoRecord | None:
        row = _first_row(self._query().select("*").eq("id", todo_id).limit(1).execute())
        return TodoRecord.from_row(row) if row else None

    async def find_latest(
        self, *, title_pattern: str | None = None, incomplete_only: bool = False
    ) -> TodoRecord | None:
        query = self._query().select("*")
        if title_pattern:
            query = query.ilike("title", escape_like_pattern(title_pattern))
        if incomplete_only:
            query = query.eq("is_completed", False)
        row = _first_row(query.order("created_at", desc=True).limit(1).execute())
        return TodoRecord.from_row(row) if row else None

    async def update_by_id(self, todo_id: str, changes: dict[str, Any]) -> TodoRecord | None:
        payload = _serialize_changes({key: value for key, value in changes.items() if key in TODO_MUTABLE_FIELDS})
        payload["updated_at"] = utcnow().isoformat()
        row = _first_row(self._query().update(payload).eq("id", todo_id).execute())
        return TodoRecord.from_row(row) if row else None

    async def delete_by_id(self, todo_id: str) -> TodoRecord | None:
        row = _first_row(self._query().delete().eq("id", todo_id).execute())
        return TodoRecord.from_row(row) if row else None

    async def delete_all(self) -> int:
        # PostgREST refuses an unfiltered delete.
        response = self._query().delete().not_.is_("id", "null").execute()
        return len(response.data or [])

    async def complete_all(self, completed_at: datetime) -> int:
        payload = {
            "is_completed": True,
            "status": TODO_STATUS_COMPLETED,
            "completed_at": completed_at.isoformat(),
            "updated_at": completed_at.isoformat(),
        }
        response = self._query().update(payload).eq("is_completed", False).execute()
        return len(response.data or [])

    async def find_recently_completed(self, limit: int = 5) -> list[TodoRecord]:
        response = (
            self._query()
            .select("*")
            .eq("is_completed", True)
            .eq("status", TODO_STATUS_COMPLETED)
            .order("updated_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [TodoRecord.from_row(row) for row in response.data or []]


class SupabaseAccountRepository:
    def __init__(self, client, table: str = "accounts", vault: PasswordVault | None = None) -> None:
        self._client = client
        self._table = table
        self._vault = vault or PasswordVault(None)

    def _query(self):
        return self._client.table(self._table)

    @staticmethod
    def _apply_filter(query, account_filter: AccountFilter):
        if account_filter.account_id:
            return query.eq("id", account_filter.account_id)
        return query.eq("email", account_filter.email)

    async def create(self, *, email: str, password: str, name: str, role: str = DEFAULT_ACCOUNT_ROLE) -> AccountRecord:
        payload = {
            "email": normalize_email(email),
            "password": self._vault.seal(password),
            "name": name,
            "role": role or DEFAULT_ACCOUNT_ROLE,
            "is_active": True,
        }
        try:
            response = self._query().insert(payload).execute()
        except Exception as exc:
            if _is_unique_violation(exc):
                raise DuplicateRecordError(f"duplicate email: {payload['email']}") from exc
            raise
        row = _first_row(response)
        if row is None:
            raise StoreError("account insert returned no row")
        return AccountRecord.from_row(row)

    async def find_all(self) -> list[AccountRecord]:
        response = self._query().select(ACCOUNT_PUBLIC_COLUMNS).order("created_at", desc=True).execute()
        return [AccountRecord.from_row(row) for row in response.data or []]

    async def find_one(self, account_filter: AccountFilter) -> AccountRecord | None:
        if account_filter.is_empty:
            return None
        query = self._apply_filter(self._query().select(ACCOUNT_PUBLIC_COLUMNS), account_filter)
        row = _first_row(query.limit(1).execute())
        return AccountRecord.from_row(row) if row else None

    async def update_one(self, account_filter: AccountFilter, changes: dict[str, Any]) -> AccountRecord | None:
        if account_filter.is_empty:
            return None
        payload = {key: value for key, value in changes.items() if key in ACCOUNT_MUTABLE_FIELDS}
        if "email" in payload:
            payload["email"] = normalize_email(payload["email"])
        payload["updated_at"] = utcnow().isoformat()
        query = self._apply_filter(self._query().update(payload), account_filter)
        try:
            response = query.execute()
        except Exception as exc:
            if _is_unique_violation(exc):
                raise DuplicateRecordError(f"duplicate email: {payload.get('email')}") from exc
            raise
        row = _first_row(response)
        return AccountRecord.from_row(row) if row else None

    async def delete_one(self, account_filter: AccountFilter) -> AccountRecord | None:
        if account_filter.is_empty:
            return None
        query = self._apply_filter(self._query().delete(), account_filter)
        row = _first_row(query.execute())
        return AccountRecord.from_row(row) if row else None

    async def set_password(self, account_filter: AccountFilter, password: str) -> bool:
        if account_filter.is_empty:
            return False
        payload = {"password": self._vault.seal(password), "updated_at": utcnow().isoformat()}
        query = self._apply_filter(self._query().update(payload), account_filter)
        return _first_row(query.execute()) is not None


def build_supabase_store(settings) -> RecordStore:
    client = create_client(settings.supabase_url, settings.supabase_service_role_key)
    vault = PasswordVault(getattr(settings, "account_password_encryption_key", None))
    if not vault.enabled:
        logger.warning("account password encryption key missing; passwords stored unsealed")
    todos_table = (getattr(settings, "todos_table", "") or "todos").strip() or "todos"
    accounts_table = (getattr(settings, "accounts_table", "") or "accounts").strip() or "accounts"
    return RecordStore(
        todos=SupabaseTodoRepository(client, todos_table),
        accounts=SupabaseAccountRepository(client, accounts_table, vault),
        backend="db",
    )
