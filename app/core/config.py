from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://hugfeed:hugfeed@db:5432/hugfeed"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # Quiet period before a burst of mutations is written back.
    SAVE_DEBOUNCE_SECONDS: float = 1.0
    # Sample calendar for new identities. Unset: on everywhere except production.
    SEED_DEMO_DATA: Optional[bool] = None
    # Directory for guest (local-only) snapshots.
    LOCAL_STORE_DIR: str = "user_data"
    # Base URL of this service, used by the HTTP persistence / coach adapters.
    API_BASE_URL: str = "http://localhost:8000"

    COACH_API_KEY: str = ""
    COACH_BASE_URL: str | None = None
    COACH_MODEL: str = "gpt-4o-mini"
    COACH_TIMEOUT_SECONDS: float = 30.0
    # "auto": tasks returned by the coach go straight into the calendar.
    # "suggest": they are offered on the assistant message for one-click adding.
    COACH_TASK_MODE: Literal["auto", "suggest"] = "auto"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

    @property
    def seed_demo_data(self) -> bool:
        if self.SEED_DEMO_DATA is not None:
            return self.SEED_DEMO_DATA
        return not self.is_production


settings = Settings()
