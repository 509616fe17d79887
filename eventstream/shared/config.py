"""
MODULE OVERVIEW:
Process-wide defaults for every reader, loaded with Pydantic Settings.
Where it fits: `ReaderConfig` falls back to these values for any option the caller leaves out.

WHAT IS HAPPENING HERE:
The reconnect timing and retry cap live in one place instead of being hardcoded
inside the reader. Setting `EVENTSTREAM_MAX_RETRIES=10` in the environment
(or in a `.env` file) changes the default for every reader built afterwards.
"""
import sys

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"

    # Reconnect policy
    RECONNECT_INTERVAL_MS: int = 3000
    MAX_RETRIES: int = 5

    # Start the first attempt inside the constructor
    AUTO_CONNECT: bool = True

    model_config = SettingsConfigDict(
        env_prefix="EVENTSTREAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{message}</cyan>"
)

def configure_logging(level: str | None = None) -> None:
    """Replaces loguru's default sink with a console sink at `level` (defaults to LOG_LEVEL)."""
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=(level or settings.LOG_LEVEL).upper())
