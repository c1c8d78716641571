"""Configuration management for polar_toolkit."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from polar_toolkit.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()


def _get_float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def preview(value: Optional[str], length: int = 10) -> str:
    """Return the first characters of a secret for logs and summaries."""
    if not value:
        return ""
    return f"{value[:length]}..."


class Config:
    """Application configuration."""

    # Paths
    OUTPUT_DIR = Path(os.environ.get("POLAR_OUTPUT_DIR", "docs/continuous-heart-rate"))
    LOG_FILE = Path(os.environ.get("POLAR_LOG_FILE", "polar_download.log"))

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Polar endpoints
    AUTHORIZATION_URL = "https://flow.polar.com/oauth2/authorization"
    TOKEN_URL = "https://polarremote.com/v2/oauth2/token"
    API_BASE_URL = "https://www.polaraccesslink.com"
    API_V3_URL = f"{API_BASE_URL}/v3"

    # API Settings
    DAYS_TO_DOWNLOAD = 30  # AccessLink keeps continuous heart rate for 30 days
    REQUEST_DELAY = _get_float_env("POLAR_REQUEST_DELAY", 0.1)  # seconds between dates
    USER_INFO_TIMEOUT = (30, 60)  # (connect, read) seconds
    USER_INFO_DEADLINE = 60  # seconds for the whole user info exchange
    CONNECTIVITY_TIMEOUT = 10  # seconds

    @classmethod
    def ensure_directories(cls, output_dir: Optional[Path] = None):
        """Ensure the download directory exists."""
        Path(output_dir or cls.OUTPUT_DIR).mkdir(parents=True, exist_ok=True)

    def __repr__(self):
        return f"Config(OUTPUT_DIR={self.OUTPUT_DIR}, LOG_FILE={self.LOG_FILE})"


class PolarSettings:
    """Credentials and identifiers for one run.

    Built once at process start and passed to every client and service, so
    nothing below the CLI touches the environment.
    """

    ENV_NAMES = {
        "client_id": "CLIENT_ID",
        "client_secret": "CLIENT_SECRET",
        "member_id": "MEMBER_ID",
        "auth_code": "AUTH_CODE",
    }

    def __init__(
        self,
        client_id: str = "",
        client_secret: str = "",
        member_id: str = "",
        auth_code: str = "",
    ):
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self.member_id = member_id or ""
        self.auth_code = auth_code or ""

    @classmethod
    def from_env(cls, environ=None) -> "PolarSettings":
        """Read settings from the process environment (or a given mapping)."""
        environ = os.environ if environ is None else environ
        values = {
            attr: environ.get(name, "").strip()
            for attr, name in cls.ENV_NAMES.items()
        }
        return cls(**values)

    def missing(self, require_member_id: bool = True) -> list:
        """Names of required environment variables that are not set."""
        required = ["client_id", "client_secret"]
        if require_member_id:
            required.append("member_id")
        return [self.ENV_NAMES[attr] for attr in required if not getattr(self, attr)]

    def validate(self, require_member_id: bool = True) -> "PolarSettings":
        """Raise ConfigurationError if any required value is empty."""
        missing = self.missing(require_member_id)
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        return self

    def masked(self) -> dict:
        """Configuration summary safe to print or log."""
        if self.auth_code:
            auth_code = f"{preview(self.auth_code)} ({len(self.auth_code)} characters)"
        else:
            auth_code = "(not set - will require parameter)"
        return {
            "CLIENT_ID": self.client_id,
            "CLIENT_SECRET": preview(self.client_secret),
            "MEMBER_ID": self.member_id,
            "AUTH_CODE": auth_code,
        }

    def __repr__(self):
        return (
            f"PolarSettings(client_id={self.client_id!r}, "
            f"member_id={self.member_id!r})"
        )
