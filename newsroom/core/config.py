from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    db_path: str = Field(default="/data/app.db", alias="DB_PATH")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    default_locale: str = Field(default="pl", alias="DEFAULT_LOCALE")

    # Seed admin, created on startup when both are set and the user is missing
    admin_username: str | None = Field(default=None, alias="ADMIN_USERNAME")
    admin_password: str | None = Field(default=None, alias="ADMIN_PASSWORD")

    session_cookie_name: str = Field(default="newsroom_session", alias="SESSION_COOKIE_NAME")
    session_ttl_hours: int = Field(default=168, alias="SESSION_TTL_HOURS")
    session_cookie_secure: bool = Field(default=True, alias="SESSION_COOKIE_SECURE")
    session_purge_at_utc: str = Field(default="03:00", alias="SESSION_PURGE_AT_UTC")

    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")
    request_timeout_seconds: int = Field(default=20, alias="REQUEST_TIMEOUT_SECONDS")
    public_cache_control: str = Field(
        default="s-maxage=60, stale-while-revalidate=30", alias="PUBLIC_CACHE_CONTROL"
    )

    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
