import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

DEFAULT_SQLITE_URL = "sqlite:///./relations.db"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: Optional[str] = Field(default=None)
    # Same variables the Postgres setup in .env has always used.
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432

    app_name: str = "ORM Relations Demo"
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    sql_echo: bool = False
    reset_schema: bool = True

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        if self.db_name:
            url = URL.create(
                "postgresql+psycopg",
                username=self.db_user,
                password=self.db_password,
                host=self.db_host,
                port=self.db_port,
                database=self.db_name,
            )
            return url.render_as_string(hide_password=False)
        return DEFAULT_SQLITE_URL


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger for the console entry points.

    The format is only installed if nothing else has configured the root
    logger yet; the level is always applied.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())
