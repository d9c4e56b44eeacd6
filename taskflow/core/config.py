from functools import lru_cache
import os


class Settings:
    app_name: str = "TaskFlow"
    environment: str = os.getenv("APP_ENV", "development")
    secret_key: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./taskflow.db")
    token_max_age_seconds: int = int(os.getenv("TOKEN_MAX_AGE_SECONDS", str(7 * 24 * 3600)))
    log_level: str = os.getenv("LOG_LEVEL", "")
    log_format: str = os.getenv("LOG_FORMAT", "")
    cors_origins: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
