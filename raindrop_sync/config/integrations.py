from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_RAINDROP_API_URL = "https://api.raindrop.io/rest/v1"


class RaindropConfig(BaseModel):
    """Raindrop.io API access configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_url: str = Field(default=DEFAULT_RAINDROP_API_URL, validation_alias="RAINDROP_API_URL")
    access_token: str = Field(default="", validation_alias="RAINDROP_ACCESS_TOKEN")
    request_timeout_sec: float = Field(
        default=30.0, validation_alias="RAINDROP_REQUEST_TIMEOUT_SEC"
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def _validate_api_url(cls, value: Any) -> str:
        url = str(value or DEFAULT_RAINDROP_API_URL).strip()
        if not url:
            return DEFAULT_RAINDROP_API_URL
        if not url.startswith(("http://", "https://")):
            msg = "Raindrop API URL must start with http:// or https://"
            raise ValueError(msg)
        return url.rstrip("/")

    @field_validator("access_token", mode="before")
    @classmethod
    def _validate_access_token(cls, value: Any) -> str:
        if value in (None, ""):
            return ""
        token = str(value).strip()
        if len(token) > 500:
            msg = "Raindrop access token appears to be too long"
            raise ValueError(msg)
        return token

    @field_validator("request_timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> float:
        try:
            parsed = float(str(value if value not in (None, "") else 30.0))
        except ValueError as exc:
            msg = "Raindrop request timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0 or parsed > 600:
            msg = "Raindrop request timeout must be between 0 and 600 seconds"
            raise ValueError(msg)
        return parsed
