import getpass

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import USERNAME_SIZE, clip_text


def current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "anonymous"


class ClientConfig(BaseSettings):
    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=0, le=65535)
    username: str = Field(default_factory=current_user)
    quiet: bool = False
    log_level: str = "ERROR"
    logger_name: str = "chat_client"
    log_dir: str = "logs"

    model_config = SettingsConfigDict(
        env_prefix="CHAT_CLIENT_", env_file=".env", extra="ignore", frozen=True
    )

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str) -> str:
        value = clip_text(value.strip(), USERNAME_SIZE)
        if not value:
            raise ValueError("username must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return value

    @property
    def mention(self) -> str:
        """The tag other users write to get this user's attention."""
        return f"@{self.username}"
