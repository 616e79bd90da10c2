"""Configuration management for Fixie."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


def default_script_path() -> Path:
    return Path.home() / ".fixie" / "list"


class Settings(BaseSettings):
    """Application settings."""

    # Script Configuration
    script_path: Path = Field(default_factory=default_script_path, description="Path of the function script")

    # Shell Configuration
    shell: str = Field(default="/bin/bash", description="Shell used for the session and the syntax check")
    shell_args: list[str] = Field(default_factory=lambda: ["-l"], description="Arguments for the session shell")
    stderr_prefix: str = Field(default="‼︎ ", description="Prefix for forwarded shell error output")

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Log level")

    class Config:
        """Pydantic configuration."""

        env_prefix = "FIXIE_"
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"


def load_settings() -> Settings:
    """Load settings from the environment and the optional `.env` file."""
    return Settings()
