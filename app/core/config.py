"""Application configuration from environment."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Incident Response Simulator"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./incident_sim.db"
    seed_on_startup: bool = True

    # Session cookie carrying the caller's identity
    session_cookie_name: str = "irs_session_id"
    session_cookie_max_age: int = 60 * 60 * 24 * 30  # 30 days

    # Narrative analysis (Gemini)
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    analysis_temperature: float = 0.4

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()

