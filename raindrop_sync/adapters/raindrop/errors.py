"""Exceptions raised by the Raindrop adapter."""

from __future__ import annotations


class RaindropClientError(Exception):
    """Base exception for Raindrop client errors."""


class RaindropAuthError(RaindropClientError):
    """The API rejected our credentials (HTTP 401)."""

    def __init__(self, message: str = "Raindrop credentials rejected", status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


class RaindropNetworkError(RaindropClientError):
    """Transport-level failure: DNS, connect, read timeout, reset."""


class RaindropApiError(RaindropClientError):
    """Non-2xx response the caller decided it cannot continue with."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
