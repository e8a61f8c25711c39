"""
================================================================================
Request Service
================================================================================

Authenticated request orchestration on top of HttpClient + AuthHandler.

A 401 from request_with_retry() triggers exactly one token refresh and one
retry; every other failure propagates unchanged.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from loguru import logger

from .auth_handler import AuthHandler
from .http_client import ApiResponse, HttpClient, HttpError


SUPPORTED_METHODS = ("get", "post", "put", "delete", "patch")


class RequestService:
    """
    Unified request handler with automatic auth header injection.

    Usage:
        >>> service = RequestService(http_client, auth_handler)
        >>> response = service.request_with_retry("get", "/api/v1/users")
    """

    def __init__(self, http_client: HttpClient, auth_handler: AuthHandler) -> None:
        self.http_client = http_client
        self.auth_handler = auth_handler

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        headers = self.auth_handler.build_request_headers()
        return self.http_client.get(endpoint, headers=headers, params=params)

    def post(self, endpoint: str, data: Any = None, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        headers = self.auth_handler.build_request_headers()
        return self.http_client.post(endpoint, data, headers=headers, params=params)

    def put(self, endpoint: str, data: Any = None, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        headers = self.auth_handler.build_request_headers()
        return self.http_client.put(endpoint, data, headers=headers, params=params)

    def delete(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        headers = self.auth_handler.build_request_headers()
        return self.http_client.delete(endpoint, headers=headers, params=params)

    def patch(self, endpoint: str, data: Any = None, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        headers = self.auth_handler.build_request_headers()
        return self.http_client.patch(endpoint, data, headers=headers, params=params)

    def public_get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        """Unauthenticated GET."""
        return self.http_client.get(endpoint, params=params)

    def public_post(self, endpoint: str, data: Any = None, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        """Unauthenticated POST."""
        return self.http_client.post(endpoint, data, params=params)

    def request_with_retry(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse:
        """
        Authenticated request with one refresh-and-retry on 401.

        Args:
            method: One of get, post, put, delete, patch (case-insensitive)
            endpoint: Request path
            data: JSON body for post/put/patch
            params: Query parameters

        Raises:
            ValueError: Unsupported method
            HttpError: The request failed (after the single 401 retry)
            AuthError: Token refresh failed
        """
        method = method.lower()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported method: {method}")

        try:
            return self._dispatch(method, endpoint, data, params)
        except HttpError as e:
            if e.status != 401:
                raise
            logger.warning(f"{method.upper()} {endpoint} -> 401, refreshing token and retrying once")

        self.auth_handler.refresh_token()
        return self._dispatch(method, endpoint, data, params)

    def _dispatch(
        self,
        method: str,
        endpoint: str,
        data: Any,
        params: Optional[Dict[str, Any]],
    ) -> ApiResponse:
        if method in ("get", "delete"):
            return getattr(self, method)(endpoint, params)
        return getattr(self, method)(endpoint, data, params)


__all__ = ["RequestService"]
