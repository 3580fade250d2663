from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Linkguard URL Shortener"

    # Infrastructure Configs (Env Vars)
    DATABASE_URL: Optional[str] = None  # overrides the POSTGRES_* parts when set
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "linkguard"

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    BASE_URL: str = "http://localhost:8080"

    # Safe Browsing (threat intelligence)
    SAFE_BROWSING_API_KEY: Optional[str] = None
    SAFE_BROWSING_ENDPOINT: str = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
    SAFE_BROWSING_CLIENT_ID: str = "linkguard"
    SAFE_BROWSING_CLIENT_VERSION: str = "1.0"
    SAFE_BROWSING_TIMEOUT: float = 10.0

    # Validation pipeline
    PROBE_TIMEOUT: float = 10.0
    MAX_URL_LENGTH: int = 2048
    MALICIOUS_RISK_SCORE: int = 5

    # Short codes
    SHORT_CODE_LENGTH: int = 8
    SHORT_CODE_MAX_ATTEMPTS: int = 5

    DEFAULT_CHECK_INTERVAL_HOURS: int = 24

    # Redirect cache
    REDIS_CACHE_ENABLED: bool = True
    CACHE_TTL: int = 86400

    # Rate limiting (creation + admin paths)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_LIMIT: int = 100
    RATE_LIMIT_WINDOW: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()
