"""Runtime configuration read from the environment (and a local .env file)."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:8081/api"
DEFAULT_STATE_DIR = "~/.vdiamond"


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Client settings. Build with get_settings() rather than directly."""
    api_url: str = DEFAULT_API_URL
    state_dir: Path = Path(DEFAULT_STATE_DIR).expanduser()
    http_timeout: float = 10.0
    connect_timeout: float = 5.0
    currency: str = "USD"

    @property
    def durable_store_path(self) -> Path:
        """Location of the durable store (token and cached profile)."""
        return self.state_dir / "session.json"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_url=os.environ.get("STOREFRONT_API_URL", DEFAULT_API_URL).rstrip("/"),
            state_dir=Path(os.environ.get("STOREFRONT_STATE_DIR", DEFAULT_STATE_DIR)).expanduser(),
            http_timeout=_get_float("STOREFRONT_HTTP_TIMEOUT", 10.0),
            connect_timeout=_get_float("STOREFRONT_CONNECT_TIMEOUT", 5.0),
            currency=os.environ.get("STOREFRONT_CURRENCY", "USD").upper(),
        )


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get Settings singleton, loading .env on first use."""
    global _settings
    if _settings is None:
        load_dotenv()
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
