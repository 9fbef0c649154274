"""Configuracion de la aplicacion usando Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuracion principal de SyncLife."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Gemini (LLM)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.7

    # Assistant
    max_tool_iterations: int = 10
    context_task_limit: int = 15
    context_transaction_limit: int = 10

    # Sesiones
    session_idle_minutes: int = 120

    # Finanzas
    invoice_due_soon_days: int = 3

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "synclife"
    postgres_user: str = "synclife"
    postgres_password: str = ""
    database_dsn: str = ""

    # Timezone
    tz: str = "America/Sao_Paulo"

    @property
    def database_url(self) -> str:
        """URL de conexion async (PostgreSQL salvo override explicito)."""
        if self.database_dsn:
            return self.database_dsn
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_development(self) -> bool:
        return self.app_env in ("development", "test")

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuracion cacheada."""
    return Settings()
