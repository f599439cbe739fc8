from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from app.store.base import DEFAULT_ACCOUNT_ROLE, AccountFilter, DuplicateRecordError
from app.store.factory import get_record_store

router = APIRouter(prefix="/api/accounts", tags=["accounts"])
logger = logging.getLogger(__name__)


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Account not found")


def _store_failure(detail: str, exc: Exception) -> HTTPException:
    logger.exception("%s: %s", detail, exc)
    return HTTPException(status_code=500, detail=detail)


@router.get("")
async def list_accounts():
    try:
        accounts = await get_record_store().accounts.find_all()
    except Exception as exc:
        raise _store_failure("Error fetching accounts", exc) from exc
    return {"success": True, "data": [account.to_dict() for account in accounts]}


@router.post("", status_code=201)
async def create_account(payload: dict):
    email = str(payload.get("email") or "").strip()
    password = str(payload.get("password") or "")
    name = str(payload.get("name") or "").strip()
    if not email or not password or not name:
        raise HTTPException(status_code=400, detail="Email, password, and name are required")
    role = str(payload.get("role") or "").strip() or DEFAULT_ACCOUNT_ROLE
    try:
        account = await get_record_store().accounts.create(email=email, password=password, name=name, role=role)
    except DuplicateRecordError as exc:
        raise HTTPException(status_code=400, detail="Account with this email already exists") from exc
    except Exception as exc:
        raise _store_failure("Error creating account", exc) from exc
    return {"success": True, "data": account.to_dict()}


@router.put("/{account_id}")
async def update_account(account_id: str, payload: dict):
    changes: dict = {}
    for wire_key, field_name in (("email", "email"), ("name", "name"), ("role", "role"), ("isActive", "is_active")):
        if wire_key in payload:
            changes[field_name] = payload[wire_key]
    if "is_active" in changes:
        changes["is_active"] = bool(changes["is_active"])
    password = payload.get("password")
    account_filter = AccountFilter(account_id=account_id)
    store = get_record_store()
    try:
        account = await store.accounts.update_one(account_filter, changes)
        if account is not None and password:
            await store.accounts.set_password(account_filter, str(password))
    except DuplicateRecordError as exc:
        raise HTTPException(status_code=400, detail="Email already exists") from exc
    except Exception as exc:
        raise _store_failure("Error updating account", exc) from exc
    if account is None:
        raise _not_found()
    return {"success": True, "data": account.to_dict()}


@router.delete("/{account_id}")
async def delete_account(account_id: str):
    try:
        account = await get_record_store().accounts.delete_one(AccountFilter(account_id=account_id))
    except Exception as exc:
        raise _store_failure("Error deleting account", exc) from exc
    if account is None:
        raise _not_found()
    return {"success": True, "message": "Account deleted successfully"}


@router.get("/email/{email}")
async def get_account_by_email(email: str):
    try:
        account = await get_record_store().accounts.find_one(AccountFilter(email=email.strip().lower()))
    except Exception as exc:
        raise _store_failure("Error fetching account", exc) from exc
    if account is None:
        raise _not_found()
    return {"success": True, "data": account.to_dict()}
