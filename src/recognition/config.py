# src/recognition/config.py

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()   # <-- This reads AIP_API_KEY, AIP_SECRET_KEY and friends

DEFAULT_BASE_URL = "https://aip.baidubce.com"
DEFAULT_HTTP_TIMEOUT = 60.0       # seconds per HTTP call
DEFAULT_POLL_INTERVAL = 2.0       # seconds between polls
DEFAULT_POLL_TIMEOUT = 60.0       # maximum total polling time


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}.") from None


@dataclass(frozen=True)
class Settings:
    app_id: Optional[str] = None
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    access_token: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: float = DEFAULT_POLL_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            app_id=os.getenv("AIP_APP_ID"),
            api_key=os.getenv("AIP_API_KEY"),
            secret_key=os.getenv("AIP_SECRET_KEY"),
            access_token=os.getenv("AIP_ACCESS_TOKEN"),
            base_url=(os.getenv("AIP_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            http_timeout=_float_env("AIP_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            poll_interval=_float_env("AIP_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            poll_timeout=_float_env("AIP_POLL_TIMEOUT", DEFAULT_POLL_TIMEOUT),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_token or (self.api_key and self.secret_key))
