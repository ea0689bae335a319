from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Auth
    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Database
    DATABASE_URL: str = "sqlite:///./staffplan.db"

    # Scheduling
    DEFAULT_TIMEZONE: str = "Asia/Ho_Chi_Minh"

    # Upstream schedule/template API (used by the HTTP stores)
    UPSTREAM_API_URL: str = "http://localhost:5000/api"
    UPSTREAM_TIMEOUT_SECONDS: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
