from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "cajas-dashboard"
    LOG_LEVEL: str = "INFO"

    # Remote cash-management API
    API_URL: str = "http://localhost:3001"
    API_TIMEOUT_SECONDS: float = 15.0

    CORS_ORIGINS: str = "http://localhost:3000"

    TOKEN_COOKIE_NAME: str = "token"
    USER_COOKIE_NAME: str = "user"

    DEFAULT_PAGE_SIZE: int = 10
    PAGE_SIZE_OPTIONS: str = "10,25,50,100"
    MAX_PAGE_SIZE: int = 500

    DASHBOARD_TIMEZONE: str = "America/Argentina/Buenos_Aires"
    VIEW_SESSION_TTL_SECONDS: int = 3600

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def page_size_options_list(self) -> List[int]:
        sizes = []
        for raw in self.PAGE_SIZE_OPTIONS.split(","):
            raw = raw.strip()
            if raw.isdigit() and int(raw) > 0:
                sizes.append(int(raw))
        return sizes or [self.DEFAULT_PAGE_SIZE]

settings = Settings()
