"""
LabTerm Configuration Module

Loads settings from config/settings.yaml and environment variables.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file from project root
load_dotenv()


class ServerConfig(BaseModel):
    """Server configuration."""
    host: str = "127.0.0.1"
    port: int = 8000


class TerminalConfig(BaseModel):
    """Simulated shell identity."""
    user: str = "user"
    hostname: str = "cloud-lab"
    home_path: str = "/home/user"
    default_environment: str = "ubuntu"


class SessionConfig(BaseModel):
    """Lab session limits and countdown settings."""
    default_duration_minutes: int = Field(default=60, gt=0)
    max_sessions: int = Field(default=10, gt=0)
    idle_timeout_seconds: int = 3600
    retention_seconds: int = 600  # keep ended sessions around for transcript download
    tick_interval_seconds: float = Field(default=1.0, gt=0)
    low_time_warning_seconds: int = 300


class ProvisioningConfig(BaseModel):
    """Scripted environment startup timing."""
    step_delay_seconds: float = 0.6
    ready_delay_seconds: float = 0.5


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    """Application settings."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    provisioning: ProvisioningConfig = Field(default_factory=ProvisioningConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file and environment variables."""
        if config_path is None:
            # Look for config in standard locations
            possible_paths = [
                Path("config/settings.yaml"),
                Path(__file__).parent.parent / "config" / "settings.yaml",
            ]
            for path in possible_paths:
                if path.exists():
                    config_path = path
                    break

        config_data: Dict[str, Any] = {}
        if config_path and config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        # Override with environment variables
        if os.getenv("LABTERM_HOST"):
            config_data.setdefault("server", {})["host"] = os.getenv("LABTERM_HOST")
        if os.getenv("LABTERM_PORT"):
            config_data.setdefault("server", {})["port"] = int(os.getenv("LABTERM_PORT"))
        if os.getenv("LABTERM_SESSION_DURATION"):
            config_data.setdefault("session", {})["default_duration_minutes"] = int(
                os.getenv("LABTERM_SESSION_DURATION")
            )
        if os.getenv("LABTERM_LOG_LEVEL"):
            config_data.setdefault("logging", {})["level"] = os.getenv("LABTERM_LOG_LEVEL")

        return cls(**config_data)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
