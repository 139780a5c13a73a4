"""
Application settings loaded from environment variables (and .env).
"""
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


class ConfigurationError(RuntimeError):
    """Required configuration is missing or malformed."""


def _get_int_env(name: str, default: int) -> int:
    """Read an int from the environment. Raises ConfigurationError if it is not a valid integer."""
    raw_value = os.getenv(name)
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        return int(raw_value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name}={raw_value} is not a valid integer")


def _get_float_env(name: str, default: float) -> float:
    """Read a float from the environment. Raises ConfigurationError if it is not a valid float."""
    raw_value = os.getenv(name)
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        return float(raw_value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name}={raw_value} is not a valid float")


@dataclass
class Settings:
    """Runtime configuration for the support bot service."""

    # Azure AI Language
    language_endpoint: str = ""
    language_key: str = ""
    analysis_timeout_seconds: float = 10.0

    # Sessions
    session_ttl_minutes: int = 45
    session_sweep_interval_seconds: int = 300
    session_max_count: int = 1000

    # Bot Framework channel credentials (empty for the local emulator)
    bot_app_id: str = ""
    bot_app_password: str = ""

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3978
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000", "http://localhost:3978"])

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Build Settings from environment variables.

        Args:
            env_file: Optional path to .env file. If None, looks for .env in project root.

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv(Path(__file__).parent.parent / ".env")

        return cls(
            language_endpoint=os.getenv("LANGUAGE_ENDPOINT", "").strip(),
            language_key=os.getenv("LANGUAGE_KEY", "").strip(),
            analysis_timeout_seconds=_get_float_env("ANALYSIS_TIMEOUT_SECONDS", 10.0),
            session_ttl_minutes=_get_int_env("SESSION_TTL_MINUTES", 45),
            session_sweep_interval_seconds=_get_int_env("SESSION_SWEEP_INTERVAL_SECONDS", 300),
            session_max_count=_get_int_env("SESSION_MAX_COUNT", 1000),
            bot_app_id=os.getenv("BOT_APP_ID", "").strip(),
            bot_app_password=os.getenv("BOT_APP_PASSWORD", "").strip(),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=_get_int_env("API_PORT", 3978),
            cors_origins=[
                os.getenv("CORS_ORIGIN_1", "http://localhost:3000"),
                os.getenv("CORS_ORIGIN_2", "http://localhost:3978"),
            ],
        )

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(minutes=self.session_ttl_minutes)

    def validate(self) -> None:
        """
        Check the settings needed to talk to Azure AI Language.

        Raises:
            ConfigurationError: Naming every missing variable
        """
        missing = []
        if not self.language_endpoint:
            missing.append("LANGUAGE_ENDPOINT")
        if not self.language_key:
            missing.append("LANGUAGE_KEY")
        if missing:
            raise ConfigurationError(f"Missing required environment variable(s): {', '.join(missing)}")

        if self.analysis_timeout_seconds <= 0:
            raise ConfigurationError("ANALYSIS_TIMEOUT_SECONDS must be positive")
        if self.session_ttl_minutes <= 0:
            raise ConfigurationError("SESSION_TTL_MINUTES must be positive")
        if self.session_sweep_interval_seconds <= 0:
            raise ConfigurationError("SESSION_SWEEP_INTERVAL_SECONDS must be positive")
        if self.session_max_count <= 0:
            raise ConfigurationError("SESSION_MAX_COUNT must be positive")
