"""
Configuration settings for CVE ingest

Values come from the process environment and an optional .env file.
Environment variables win over the .env file.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..sources.base.exceptions import ConfigException

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_URL_TEMPLATE = "https://nvd.nist.gov/feeds/json/cve/1.1/nvdcve-1.1-{year}.json.gz"
DEFAULT_DELTA_URL = "https://cve.circl.lu/api/last"


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Database configuration
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "cve"
    DB_USER: str = ""
    DB_PASSWORD: str = ""

    # Feeds
    ARCHIVE_URL_TEMPLATE: str = DEFAULT_ARCHIVE_URL_TEMPLATE
    DELTA_URL: str = DEFAULT_DELTA_URL
    HTTP_TIMEOUT: int = 300  # seconds

    # Archive cache and year range
    CACHE_DIR: Path = Path("/tmp/parse-cve-cache")
    FIRST_YEAR: int = 2002
    LAST_YEAR: Optional[int] = None

    LOG_LEVEL: str = "INFO"

    def archive_years(self) -> List[int]:
        """Years to ingest from the archive feed, ascending"""
        last_year = self.LAST_YEAR or datetime.now(timezone.utc).year
        if last_year < self.FIRST_YEAR:
            raise ConfigException(
                f"LAST_YEAR ({last_year}) is before FIRST_YEAR ({self.FIRST_YEAR})",
                config_key="LAST_YEAR")
        return list(range(self.FIRST_YEAR, last_year + 1))


@dataclass
class DBConfig:
    host: str
    port: int
    database: str
    user: str
    password: str


def get_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load settings from the environment and the .env file (or env_file when given)

    Raises:
        ConfigException: If a value does not parse, e.g. a non-numeric DB_PORT
    """
    try:
        if env_file:
            return Settings(_env_file=env_file)
        return Settings()
    except ValidationError as e:
        errors = e.errors()
        config_key = str(errors[0]["loc"][0]) if errors and errors[0]["loc"] else None
        raise ConfigException(
            f"Invalid configuration: {e.error_count()} validation errors (first: {config_key})",
            config_key=config_key) from e


def get_db_config(settings: Settings) -> DBConfig:
    """Build the connection parameters, rejecting an incomplete configuration"""
    missing = [key for key in ("DB_NAME", "DB_USER") if not getattr(settings, key)]
    if missing:
        logger.error(f"Missing required database configuration: {missing}")
        raise ConfigException(
            f"Missing required database configuration fields: {missing}",
            config_key=missing[0])

    return DBConfig(
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        database=settings.DB_NAME,
        user=settings.DB_USER,
        password=settings.DB_PASSWORD,
    )
