# app/core/config.py
from __future__ import annotations

import logging
from typing import Any, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.exchange.coinstore.signing import Credentials

log = logging.getLogger("coinstore.config")

DEFAULT_BASE_URL = "https://api.coinstore.com/api"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _parse_symbol(v: Any) -> str:
    """
    Accepts None / "" / " ppousdt " and returns a trimmed uppercase symbol.
    """
    if v is None:
        return ""
    return str(v).strip().upper()


class Settings(BaseSettings):
    """Runtime configuration loaded from .env / environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # --- Exchange / API ---
    CS_API_KEY: str = ""
    CS_API_SECRET: str = ""
    CS_BASE_URL: str = DEFAULT_BASE_URL
    CS_TIMEOUT_SECONDS: float = 10.0

    # Default trading pair used when a route is called without ?symbol=
    CS_SYMBOL: str = ""

    # --- Server ---
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    @field_validator("CS_SYMBOL", mode="before")
    @classmethod
    def parse_symbol(cls, v: Any) -> str:
        return _parse_symbol(v)

    def model_post_init(self, __context: Any) -> None:
        self.CS_API_KEY = (self.CS_API_KEY or "").strip()
        self.CS_API_SECRET = (self.CS_API_SECRET or "").strip()
        self.CS_BASE_URL = (self.CS_BASE_URL or DEFAULT_BASE_URL).strip().rstrip("/")
        self.LOG_LEVEL = (self.LOG_LEVEL or "INFO").strip().upper()

    def credentials(self) -> Credentials:
        return Credentials(api_key=self.CS_API_KEY, api_secret=self.CS_API_SECRET)

    def public_dict(self) -> dict:
        data = self.model_dump()
        # mask secrets
        for k in SENSITIVE_KEYS:
            if k in data:
                data[k] = "***" if data[k] else ""
        return data

    def validate_runtime(self) -> List[str]:
        """
        Fail-fast validation. Returns warnings (non-fatal).
        Raises ValueError for fatal misconfiguration.
        """
        errors: List[str] = []
        warnings: List[str] = []

        if not self.CS_BASE_URL.startswith(("http://", "https://")):
            errors.append("CS_BASE_URL must start with http:// or https://.")

        if self.CS_TIMEOUT_SECONDS <= 0:
            errors.append("CS_TIMEOUT_SECONDS must be > 0.")

        if self.LOG_LEVEL not in _LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}.")

        if not (0 < self.PORT < 65536):
            errors.append("PORT must be between 1 and 65535.")

        # Signed calls fail per request with ConfigurationError, the proxy can still boot
        if not self.CS_API_KEY or not self.CS_API_SECRET:
            warnings.append(
                "CS_API_KEY or CS_API_SECRET is missing. Signed endpoints will fail."
            )

        if self.CS_BASE_URL.startswith("http://"):
            warnings.append("CS_BASE_URL is plain http; credentials headers travel unencrypted.")

        if errors:
            msg = "Config validation failed:\n" + "\n".join([f"- {e}" for e in errors])
            raise ValueError(msg)

        return warnings


SENSITIVE_KEYS = ("CS_API_KEY", "CS_API_SECRET")

# Pydantic v2 + postponed annotations safety
Settings.model_rebuild()
settings = Settings()
