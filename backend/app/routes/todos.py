from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from app.store.base import TODO_STATUS_COMPLETED, TODO_STATUS_PENDING, utcnow
from app.store.factory import get_record_store

router = APIRouter(prefix="/api/todos", tags=["todos"])
logger = logging.getLogger(__name__)


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Todo not found")


def _store_failure(detail: str, exc: Exception) -> HTTPException:
    logger.exception("%s: %s", detail, exc)
    return HTTPException(status_code=500, detail=detail)


@router.get("")
async def list_todos():
    try:
        todos = await get_record_store().todos.find_all()
    except Exception as exc:
        raise _store_failure("Error fetching todos", exc) from exc
    return {"success": True, "data": [todo.to_dict() for todo in todos]}


@router.post("", status_code=201)
async def create_todo(payload: dict):
    title = str(payload.get("title") or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    description = str(payload.get("description") or "").strip() or None
    try:
        todo = await get_record_store().todos.create(title, description=description)
    except Exception as exc:
        raise _store_failure("Error creating todo", exc) from exc
    return {"success": True, "data": todo.to_dict()}


@router.put("/{todo_id}")
async def update_todo(todo_id: str, payload: dict):
    changes: dict = {}
    if "title" in payload:
        changes["title"] = str(payload.get("title") or "").strip()
    if "description" in payload:
        changes["description"] = payload.get("description")
    if "isCompleted" in payload:
        is_completed = bool(payload.get("isCompleted"))
        changes["is_completed"] = is_completed
        changes["status"] = TODO_STATUS_COMPLETED if is_completed else TODO_STATUS_PENDING
        changes["completed_at"] = utcnow() if is_completed else None
    try:
        todo = await get_record_store().todos.update_by_id(todo_id, changes)
    except Exception as exc:
        raise _store_failure("Error updating todo", exc) from exc
    if todo is None:
        raise _not_found()
    return {"success": True, "data": todo.to_dict()}


@router.delete("/{todo_id}")
async def delete_todo(todo_id: str):
    try:
        todo = await get_record_store().todos.delete_by_id(todo_id)
    except Exception as exc:
        raise _store_failure("Error deleting todo", exc) from exc
    if todo is None:
        raise _not_found()
    return {"success": True, "message": "Todo deleted successfully"}


@router.patch("/{todo_id}/toggle")
async def toggle_todo(todo_id: str):
    store = get_record_store()
    try:
        current = await store.todos.get_by_id(todo_id)
        if current is None:
            raise _not_found()
        is_completed = not current.is_completed
        todo = await store.todos.update_by_id(
            todo_id,
            {
                "is_completed": is_completed,
                "status": TODO_STATUS_COMPLETED if is_completed else TODO_STATUS_PENDING,
                "completed_at": utcnow() if is_completed else None,
            },
        )
    except HTTPException:
        raise
    except Exception as exc:
        raise _store_failure("Error toggling todo", exc) from exc
    if todo is None:
        raise _not_found()
    return {"success": True, "data": todo.to_dict()}
