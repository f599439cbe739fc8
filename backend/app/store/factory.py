from __future__ import annotations

import logging
from functools import lru_cache

from app.core.config import get_settings
from app.store.base import RecordStore, StoreError
from app.store.memory import build_memory_store
from app.store.supabase_store import build_supabase_store


logger = logging.getLogger("taskchat-backend.store")

STORAGE_MODES = {"auto", "db", "memory"}


def _storage_mode(settings) -> str:
    mode = (getattr(settings, "record_storage", "") or "auto").strip().lower()
    if mode in STORAGE_MODES:
        return mode
    return "auto"


def _has_supabase_credentials(settings) -> bool:
    return bool(getattr(settings, "supabase_url", None) and getattr(settings, "supabase_service_role_key", None))


def build_record_store(settings) -> RecordStore:
    mode = _storage_mode(settings)
    if mode == "memory":
        logger.info("record_store backend=memory mode=%s", mode)
        return build_memory_store()
    if _has_supabase_credentials(settings):
        logger.info("record_store backend=db mode=%s", mode)
        return build_supabase_store(settings)
    if mode == "db":
        raise StoreError("record_storage=db requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY")
    logger.warning("record_store supabase credentials missing; falling back to memory")
    return build_memory_store()


@lru_cache
def get_record_store() -> RecordStore:
    return build_record_store(get_settings())
