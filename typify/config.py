from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./typify.db"
    timezone: str = "Asia/Seoul"
    default_language: str = "ko"

    # Token signing
    secret_key: str = Field(default="change-me-in-production-for-jwt", validation_alias="JWT_SECRET")
    session_secret: str = "change-me-session-secret"
    access_token_days: int = 7
    cookie_secure: bool = True

    google_client_id: str | None = None
    google_client_secret: str | None = None
    oauth_popup_timeout_seconds: int = 300
    oauth_popup_poll_seconds: int = 1

    openai_api_key: str | None = None
    openai_model: str = "gpt-3.5-turbo"

    superadmin_email: str | None = None

    log_level: str = "INFO"
    log_format: str = "json" # json, text
    # Optional HTTP ingest endpoint for log batches
    log_ship_url: str | None = None
    log_ship_token: str | None = None
    log_ship_batch_size: int = 50

settings = Settings()
