"""
================================================================================
Auth Handler
================================================================================

Holds the active credentials, asks the TokenManager for bearer tokens and
builds the headers every authenticated request carries.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from loguru import logger

from .token_manager import AuthError, TokenManager


class AuthHandler:
    """
    Credentials + token cache -> request headers.

    Usage:
        >>> auth = AuthHandler("https://auth.example.com", "client", "secret")
        >>> auth.set_credentials("alice", "s3cret")
        >>> auth.build_request_headers({"X-Trace": "1"})
        {'X-Client-ID': 'client', 'Content-Type': 'application/json',
         'Authorization': 'Bearer ...', 'X-Trace': '1'}
    """

    def __init__(
        self,
        auth_url: str,
        client_id: str,
        client_secret: str,
        token_manager: Optional[TokenManager] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_manager = token_manager or TokenManager(auth_url, client_id, client_secret)

        self._credentials: Optional[Tuple[str, str]] = None
        self._current_token: Optional[str] = None

    def set_credentials(self, username: str, password: str) -> None:
        self._credentials = (username, password)

    def get_credentials(self) -> Optional[Tuple[str, str]]:
        return self._credentials

    @property
    def current_token(self) -> Optional[str]:
        """Last token handed out, without fetching."""
        return self._current_token

    def get_bearer_token(self) -> str:
        """
        Get a bearer token for the active credentials (cached when possible).

        Raises:
            AuthError: No credentials set, or authentication failed
        """
        if self._credentials is None:
            raise AuthError("Credentials not set. Call set_credentials() first.")

        token = self.token_manager.get_token(*self._credentials)
        self._current_token = token
        return token

    def get_auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.get_bearer_token()}"}

    def get_additional_headers(self) -> Dict[str, str]:
        return {
            "X-Client-ID": self.client_id,
            "Content-Type": "application/json",
        }

    def build_request_headers(
        self,
        additional_headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Default headers, then auth headers, then caller-supplied headers."""
        return {
            **self.get_additional_headers(),
            **self.get_auth_headers(),
            **(additional_headers or {}),
        }

    def is_token_expired(self) -> bool:
        if self._credentials is None:
            return True
        return self.token_manager.is_token_expired(*self._credentials)

    def refresh_token(self) -> str:
        """
        Drop the cached token and fetch a new one.

        Raises:
            AuthError: No credentials set, or authentication failed
        """
        if self._credentials is None:
            raise AuthError("Credentials not set. Cannot refresh token.")

        logger.info(f"Refreshing token for user '{self._credentials[0]}'")
        self.token_manager.invalidate(*self._credentials)
        return self.get_bearer_token()

    def clear_auth(self) -> None:
        """Forget credentials and every cached token."""
        self._credentials = None
        self._current_token = None
        self.token_manager.clear_all()


__all__ = ["AuthHandler"]
