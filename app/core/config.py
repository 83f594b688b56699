import re
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]
DEFAULT_SECRET_KEY = "change-this-secret-key-in-production"

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _split_hosts(value: Any) -> list[str]:
    """ALLOWED_HOSTS may arrive as "a.com, b.com" from the environment."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        return []
    return [host for host in (str(item).strip() for item in value) if host]


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and ``.env``."""

    # Storage
    DATABASE_URL: str = "sqlite+aiosqlite:///./stash.db"

    # HTTP surface
    APP_NAME: str = "Stash"
    ENV: str = "development"
    DEBUG: bool = False
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALLOWED_HOSTS: list[str] = Field(default_factory=lambda: DEFAULT_ALLOWED_HOSTS.copy())

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Savings boxes and ledger
    DEFAULT_CURRENCY: str = "BRL"
    DEFAULT_BOX_COLOR: str = "#3B82F6"
    DEFAULT_BOX_ICON: str = "piggy-bank"
    SUMMARY_LIMIT: int = Field(default=5, ge=1)
    TRANSACTIONS_PAGE_LIMIT: int = Field(default=100, ge=1)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, value: Any) -> list[str]:
        return _split_hosts(value)

    @field_validator("DEFAULT_BOX_COLOR")
    @classmethod
    def check_box_color(cls, value: str) -> str:
        if not _HEX_COLOR.match(value):
            raise ValueError("DEFAULT_BOX_COLOR must be a #RRGGBB color")
        return value.upper()

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


def _validate_security(current: Settings) -> None:
    """Refuse to boot a production deployment that still runs on defaults."""
    if not current.is_production:
        return

    problems = []
    if current.SECRET_KEY == DEFAULT_SECRET_KEY or len(current.SECRET_KEY or "") < 32:
        problems.append("SECRET_KEY must be a strong secret (32+ characters)")
    if not current.ALLOWED_HOSTS or current.ALLOWED_HOSTS == DEFAULT_ALLOWED_HOSTS:
        problems.append("ALLOWED_HOSTS must list the public host names")
    if current.DATABASE_URL.startswith("sqlite"):
        problems.append("DATABASE_URL must point to PostgreSQL; sqlite has no row locks")
    if problems:
        raise ValueError("Insecure production configuration: " + "; ".join(problems))


settings = Settings()

_validate_security(settings)
