from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = None

    # Unset secret disables webhook signature checks (test mode)
    ship24_webhook_secret: Optional[str] = None
    ship24_api_key: Optional[str] = None
    ship24_api_url: str = "https://api.ship24.com/public/v1"

    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    telegram_api_url: str = "https://api.telegram.org"

    log_level: str = "INFO"
    log_file: Optional[str] = "logs/app.log"
    log_format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    # JSON list in the environment, e.g. LOG_QUIET_LOGGERS='["httpx"]'
    log_quiet_loggers: List[str] = ["httpx", "httpcore", "sqlalchemy.engine"]

    class Config:
        env_file = ".env"


settings = Settings()
