from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None

    record_storage: str = "auto"
    todos_table: str = "todos"
    accounts_table: str = "accounts"
    account_password_encryption_key: str | None = None

    openai_api_key: str | None = None
    google_api_key: str | None = None
    llm_classifier_enabled: bool = False
    llm_classifier_provider: str = "gemini"
    llm_classifier_model: str = "gemini-1.5-flash"
    llm_classifier_fallback_provider: str | None = None
    llm_classifier_fallback_model: str | None = None
    llm_classifier_timeout_sec: float = 20
    chat_history_window: int = 12

    frontend_url: str = "http://localhost:3000"
    allowed_origins: str = "http://localhost:3000"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
