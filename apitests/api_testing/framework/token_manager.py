"""
================================================================================
Token Manager with Expiry-Aware Caching
================================================================================

Manages bearer tokens per credential pair:
    - Fetches tokens from the auth endpoint (<auth_url>/token)
    - Caches tokens in memory for the process lifetime
    - Treats tokens as stale once they are within the refresh threshold
    - Serializes fetch-or-refresh per credential pair

The cache is an explicit object: whoever issues authenticated requests owns
one and clears it at teardown.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from loguru import logger

from .http_client import HttpClient, HttpError


# Refresh token when less than this many seconds remain
TOKEN_REFRESH_THRESHOLD = 30.0


class AuthError(Exception):
    """
    Raised when authentication fails or yields no usable token.

    Attributes:
        status: HTTP status of the failed auth call, if any
        body: Parsed response body of the failed auth call, if any
    """

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


@dataclass(frozen=True)
class TokenEntry:
    """Cached token. Replaced on refresh, never mutated."""
    token: str
    issued_at: float
    expires_at: float


class TokenManager:
    """
    In-memory bearer token cache keyed by "username:password".

    Usage:
        >>> manager = TokenManager("https://auth.example.com", "client", "secret")
        >>> token = manager.get_token("alice", "s3cret")
        >>> manager.get_token("alice", "s3cret") == token   # served from cache
        True
        >>> manager.invalidate("alice", "s3cret")            # next call re-authenticates
    """

    def __init__(
        self,
        auth_url: str,
        client_id: str,
        client_secret: str,
        http_client: Optional[HttpClient] = None,
        refresh_threshold: float = TOKEN_REFRESH_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize token manager.

        Args:
            auth_url: Auth service base URL; tokens are requested from <auth_url>/token
            client_id: OAuth client id sent with every token request
            client_secret: OAuth client secret sent with every token request
            http_client: HTTP client to use; one is created (and owned) if omitted
            refresh_threshold: Seconds before expiry at which a token is stale
            clock: Time source returning epoch seconds
        """
        self.token_url = f"{auth_url.rstrip('/')}/token"
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_threshold = refresh_threshold
        self._clock = clock

        self._owns_client = http_client is None
        self.http_client = http_client or HttpClient(auth_url)

        self._tokens: Dict[str, TokenEntry] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @staticmethod
    def get_token_key(username: str, password: str) -> str:
        """Composite cache key for a credential pair."""
        return f"{username}:{password}"

    def get_token(self, username: str, password: str) -> str:
        """
        Return a usable token, fetching a new one if needed.

        Raises:
            AuthError: The auth call failed or returned no token
        """
        key = self.get_token_key(username, password)

        entry = self._usable_entry(key)
        if entry is not None:
            return entry.token

        with self._lock_for(key):
            # Another caller may have refreshed while we waited
            entry = self._usable_entry(key)
            if entry is not None:
                return entry.token
            return self._fetch_token(key, username, password)

    def is_valid(self, key: str) -> bool:
        """True iff an entry exists and it is not within the refresh threshold."""
        return self._usable_entry(key) is not None

    def _usable_entry(self, key: str) -> Optional[TokenEntry]:
        # Read once: invalidate() may run concurrently without the key lock
        entry = self._tokens.get(key)
        if entry is None or entry.expires_at - self._clock() <= self.refresh_threshold:
            return None
        return entry

    def is_token_expired(self, username: str, password: str) -> bool:
        """True when no token is cached or its expiry has passed."""
        entry = self._tokens.get(self.get_token_key(username, password))
        if entry is None:
            return True
        return self._clock() > entry.expires_at

    def get_token_expiry(self, username: str, password: str) -> Optional[float]:
        """Epoch seconds at which the cached token expires, or None."""
        entry = self._tokens.get(self.get_token_key(username, password))
        return entry.expires_at if entry else None

    def invalidate(self, username: str, password: str) -> None:
        """Drop the cached token, forcing re-authentication on next use."""
        self._tokens.pop(self.get_token_key(username, password), None)

    def clear_all(self) -> None:
        """Drop every cached token."""
        self._tokens.clear()

    def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client:
            self.http_client.close()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def _fetch_token(self, key: str, username: str, password: str) -> str:
        """
        Request a new token from the auth endpoint and cache it.

        Expects a JSON body of the form
        {"access_token": "...", "token_type": "Bearer", "expires_in": 3600}.
        """
        if self.http_client.session is None:
            self.http_client.open()

        payload = {
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
            "username": username,
            "password": password,
        }

        try:
            response = self.http_client.post(self.token_url, payload)
        except HttpError as e:
            logger.error(f"Token fetch failed with status {e.status}")
            raise AuthError(
                f"Failed to fetch token: status {e.status}",
                status=e.status,
                body=e.body,
            ) from e

        data = response.data if isinstance(response.data, dict) else {}
        token = data.get("access_token")
        if not token:
            raise AuthError(
                "Failed to fetch token: response contained no access_token",
                status=response.status,
                body=response.data,
            )

        try:
            expires_in = float(data.get("expires_in", 0))
        except (TypeError, ValueError) as e:
            raise AuthError(
                f"Failed to fetch token: invalid expires_in {data.get('expires_in')!r}",
                status=response.status,
                body=response.data,
            ) from e

        now = self._clock()
        self._tokens[key] = TokenEntry(
            token=token,
            issued_at=now,
            expires_at=now + expires_in,
        )
        logger.info(f"Token fetched for user '{username}' (expires in {expires_in:.0f}s)")
        return token


__all__ = [
    "AuthError",
    "TokenEntry",
    "TokenManager",
    "TOKEN_REFRESH_THRESHOLD",
]
