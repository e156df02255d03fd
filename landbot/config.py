import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    LANDBOT_DB_URL: str = "sqlite+aiosqlite:///./landbot.db"
    LOG_LEVEL: str = "INFO"

    # --- Minimal auth for mutating routes ---
    # Send: X-API-Key: <key>
    API_KEY: str | None = None

    # --- Scraping ---
    SCRAPE_DEFAULT_RATE_LIMIT_MS: int = 2500
    BROWSER_HEADLESS: bool = False  # listing sites block headless chromium more often
    BROWSER_STEALTH: bool = True
    BROWSER_USER_AGENT: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    )
    BROWSER_NAV_TIMEOUT_MS: int = 30000
    BROWSER_NAV_RETRIES: int = 3

    # --- Profiles ---
    PROFILES_PATH: str = "~/.landbot/search-criteria.json"

    # --- Offline source fixtures ---
    STUB_LISTINGS_DIR: str = "data/stub_listings"

    # --- Monitoring ---
    MONITOR_OUTPUT_DIR: str = "~/.landbot/monitoring"
    MONITOR_WEBHOOK_URL: str | None = None
    MONITOR_WEBHOOK_SECRET: str | None = None
    MONITOR_WEBHOOK_TIMEOUT_S: int = 20


settings = Settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(levelname)s:%(name)s:%(message)s",
    )

    # Quiet the usual offenders
    for name in ("httpx", "apscheduler", "uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
