"""OAuth2-style tokens, token sources and a store of reusable sources."""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

_EXPIRY_DELTA = timedelta(seconds=10)


@dataclass(frozen=True)
class Token:
    """An access token with an optional expiry."""

    access_token: str
    expiry: datetime | None = None
    token_type: str = "Bearer"

    def is_valid(self) -> bool:
        """True when the token is non-empty and not about to expire."""
        if not self.access_token:
            return False
        if self.expiry is None:
            return True
        return self.expiry - _EXPIRY_DELTA >= datetime.now(timezone.utc)


class TokenSource(Protocol):
    def token(self) -> Token: ...


class StaticTokenSource:
    """Always returns the same token."""

    def __init__(self, token: Token) -> None:
        self._token = token

    def token(self) -> Token:
        return self._token


class ReuseTokenSource:
    """Returns a cached token while valid, fetching a new one otherwise."""

    def __init__(self, initial: Token | None, src: TokenSource) -> None:
        self._current = initial
        self._src = src
        self._lock = threading.Lock()

    def token(self) -> Token:
        with self._lock:
            if self._current is not None and self._current.is_valid():
                return self._current
            fresh = self._src.token()
            self._current = fresh
            return fresh


def hash_token(token: str) -> str:
    """Hex SHA-256 of a token, used as a store key."""
    return hashlib.sha256(token.encode()).hexdigest()


class ReuseSourceStore:
    """Keeps one reusing source per refresh token."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sources: dict[str, ReuseTokenSource] = {}

    def __len__(self) -> int:
        return len(self._sources)

    def source_for_refresh_token(self, refresh_token: str, src: TokenSource) -> ReuseTokenSource:
        key = hash_token(refresh_token)
        with self._lock:
            source = self._sources.get(key)
            if source is None:
                source = ReuseTokenSource(None, src)
                self._sources[key] = source
            return source