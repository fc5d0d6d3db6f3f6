"""Configuration settings for the agent core."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pydantic settings class for the agent core."""

    # Loaded from LIBRA_AI_* environment variables or a .env file if not provided
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # Profile discovery
    TOOL_NAME: str = "libra"
    AGENTS_DIR_NAME: str = "agents"
    PROFILE_EXTENSION: str = ".md"
    MAX_PROFILE_FILE_BYTES: int = 1024 * 1024
    USER_CONFIG_DIR: str | None = None  # Falls back to $XDG_CONFIG_HOME, then ~/.config

    # Routing
    MIN_MATCH_SCORE: int = 2

    # Model registry
    DEFAULT_MODEL: str = "default"

    class Config:
        """Configuration for Pydantic settings."""

        env_prefix = "LIBRA_AI_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    def project_agents_dir(self, working_dir: Path) -> Path:
        """Return ``{working_dir}/.{toolname}/agents``."""
        return working_dir / f".{self.TOOL_NAME}" / self.AGENTS_DIR_NAME

    def user_agents_dir(self) -> Path:
        """Return ``{user-config-dir}/{toolname}/agents``."""
        if self.USER_CONFIG_DIR:
            base = Path(self.USER_CONFIG_DIR)
        else:
            import os  # pylint: disable=import-outside-toplevel

            xdg = os.environ.get("XDG_CONFIG_HOME")
            base = Path(xdg) if xdg else Path.home() / ".config"
        return base / self.TOOL_NAME / self.AGENTS_DIR_NAME


settings = Settings()
