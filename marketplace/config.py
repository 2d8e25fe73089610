from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    database_url: str = "sqlite:///./marketplace.db"
    sql_echo: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Proveedor de descripciones: "disabled", "mock", "gemini" u "openai"
    ia_provider: str = "disabled"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    description_timeout_sec: float = 10.0
    description_max_words: int = 30
    description_summary_max_chars: int = 8000

    # Variante estricta: publicar exige permiso de edición, no solo lectura
    publish_requires_update_scope: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()  # reads from env
