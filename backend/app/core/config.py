from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Stockroom"
    environment: str = "development"
    api_v1_prefix: str = "/api/v1"

    secret_key: str = "change-this-secret-key"
    access_token_expire_minutes: int = 60

    database_url: str = "postgresql+psycopg2://stockroom:stockroom@db:5432/stockroom"
    database_echo: bool = False
    cors_origins: str = "http://localhost:5173"

    log_level: str = "INFO"
    log_json: bool = True

    default_reorder_level: int = 10
    default_max_level: int = 100
    default_currency: str = "INR"
    default_timezone: str = "Asia/Kolkata"
    org_name: str = "Stockroom"

    bootstrap_admin_email: str = "admin@stockroom.local"
    bootstrap_admin_password: str = "Admin123!"

    model_config = SettingsConfigDict(
        env_prefix="STOCKROOM_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
