"""Bearer-token persistence and the refresh contract."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from raindrop_sync.db.session import DatabaseSessionManager

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "raindrop_access_token"


class TokenRefresher(Protocol):
    """Obtains a fresh bearer token, or None when the user must re-authenticate."""

    async def refresh(self) -> str | None: ...


class NoopTokenRefresher:
    """Refresher for static API tokens: there is nothing to refresh."""

    async def refresh(self) -> str | None:
        return None


class TokenStore:
    """Stored bearer token, seeded from configuration on first use."""

    def __init__(self, db: DatabaseSessionManager, *, initial_token: str = "") -> None:
        self._db = db
        self._initial_token = initial_token

    def get(self) -> str | None:
        token = self._db.kv_get(ACCESS_TOKEN_KEY)
        if token:
            return str(token)
        if self._initial_token:
            self.save(self._initial_token)
            # seed only once so an invalidated token is not resurrected
            self._initial_token = ""
            return self.get()
        return None

    def save(self, token: str) -> None:
        self._db.kv_set_many({ACCESS_TOKEN_KEY: token})

    def invalidate(self) -> None:
        self._db.kv_delete(ACCESS_TOKEN_KEY)
        self._initial_token = ""
        logger.warning("raindrop_credentials_invalidated")
