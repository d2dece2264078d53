from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./vendorcheck.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    APP_BASE_URL: str = "http://localhost:8000"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # renewal history window (rows of renewal_email_queue per vendor)
    HISTORY_LOOKBACK_ROWS: int = 50
    # neutral prior when a vendor has no cached compliance score yet
    DEFAULT_RULE_SCORE: int = 70

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
