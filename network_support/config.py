"""Configuration management for the network-support log collector"""

import logging
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"
    debug: bool = False  # Same effect as the --debug CLI flag

    # Storage Settings
    logs_dir: Path = Path("/logs")  # Flat directory of collected archives
    artifact_prefix: str = "rancher-logs"
    archive_extension: str = "zip"

    # Collector Settings
    collector_command: str = "logs-collector.sh"
    history_length: int = -1  # -1 = no limit, forwarded as-is to the collector

    # If False, a failed collection leaves the log in "creating" forever
    mark_failed_jobs: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def effective_log_level(self) -> str:
        """Log level after applying the debug switch"""
        return "DEBUG" if self.debug else self.log_level.upper()

    def ensure_directories(self):
        """
        Create the archive directory if it doesn't exist.

        Failure is logged only: the reconciler treats an unreadable
        directory as an empty registry.
        """
        try:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create logs directory {self.logs_dir}: {e}")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.ensure_directories()
    return _settings


def reload_settings(**overrides) -> Settings:
    """
    Force reload settings from environment.

    Args:
        overrides: Field values that take precedence over the environment

    Returns:
        New settings instance
    """
    global _settings
    _settings = Settings(**overrides)
    _settings.ensure_directories()
    return _settings
