"""
================================================================================
SRA Request Service
================================================================================

Authentication and API calls for the SRA endpoints:
    1. POST {"email": ...} to auth_url to obtain a JWT
    2. GET base_url + endpoint_path with "Authorization: Bearer <jwt>"

The endpoint path is settable, so the same service covers any SRA endpoint
that uses the email-based JWT.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from .auth_handler import AuthHandler
from .config_loader import ConfigError, ConfigLoader
from .http_client import ApiResponse, HttpClient, HttpError
from .token_manager import AuthError


DEFAULT_ENDPOINT_PATH = "/api/srasprcopyparam/getSraSprCopyParam"


class SraRequestService:
    """
    Email-based JWT authentication plus authenticated GETs.

    Usage:
        >>> service = SraRequestService(http_client, ConfigLoader.load("dev"))
        >>> token = service.authenticate_sra()
        >>> response = service.get_sra_spr_copy_param(token, "/api/education")
    """

    endpoint_path: str = DEFAULT_ENDPOINT_PATH

    def __init__(
        self,
        http_client: HttpClient,
        config: ConfigLoader,
        auth_handler: Optional[AuthHandler] = None,
    ) -> None:
        self.http_client = http_client
        self.auth_handler = auth_handler
        self.base_url = config.get("base_url", "https://localhost:3000")
        self.auth_url = config.get("auth_url", "")
        self.email = config.get("email", "")
        self._sra_token: Optional[str] = None

        logger.info("SraRequestService initialized")
        logger.info(f"  - Base URL: {self.base_url}")
        logger.info(f"  - Auth URL: {self.auth_url}")
        logger.info(f"  - Endpoint Path: {self.endpoint_path}")

    def set_endpoint_path(self, endpoint_path: str) -> None:
        self.endpoint_path = endpoint_path
        logger.info(f"Endpoint path updated to: {endpoint_path}")

    @property
    def sra_token(self) -> Optional[str]:
        return self._sra_token

    def set_sra_token(self, token: str) -> None:
        self._sra_token = token

    def clear_sra_token(self) -> None:
        self._sra_token = None

    def authenticate_sra(self, email: Optional[str] = None) -> str:
        """
        Obtain a JWT for an email address.

        Args:
            email: Email to authenticate; defaults to the configured email

        Returns:
            The JWT token

        Raises:
            ConfigError: No email or auth URL configured
            AuthError: Auth call failed or returned an unexpected status
        """
        sra_email = email or self.email
        if not sra_email:
            raise ConfigError("Email not provided and not configured in environment")
        if not self.auth_url:
            raise ConfigError("Auth URL not configured")

        logger.info(f"Authenticating with SRA API for email: {sra_email}")

        try:
            response = self.http_client.post(self.auth_url, {"email": sra_email})
        except HttpError as e:
            logger.error(f"SRA authentication error: {e.to_dict()}")
            raise AuthError(
                f"SRA authentication failed with status {e.status}",
                status=e.status,
                body=e.body,
            ) from e

        if response.status not in (200, 201):
            raise AuthError(
                f"Authentication failed with status {response.status}",
                status=response.status,
                body=response.data,
            )

        data = response.data
        if isinstance(data, dict):
            token = data.get("token") or data.get("access_token")
        else:
            token = data
        if not token:
            raise AuthError(
                "Authentication response contained no token",
                status=response.status,
                body=data,
            )

        self._sra_token = token
        logger.info("SRA authentication successful - JWT token received")
        return token

    def get_sra_spr_copy_param(
        self,
        token: Optional[str] = None,
        endpoint_path: Optional[str] = None,
    ) -> ApiResponse:
        """
        Authenticated GET against base_url + endpoint path.

        Args:
            token: JWT to use; defaults to the token from authenticate_sra()
            endpoint_path: Path to call; defaults to the current endpoint path

        Raises:
            AuthError: No token available
            ConfigError: No endpoint path configured
            HttpError: The request failed
        """
        auth_token = token or self._sra_token
        if not auth_token:
            raise AuthError("SRA token not available. Please authenticate first.")

        path = endpoint_path or self.endpoint_path
        if not path:
            raise ConfigError("Endpoint path not configured")

        full_url = f"{self.base_url.rstrip('/')}{path}"
        logger.info(f"Making GET request to: {full_url}")

        headers = {
            "Authorization": f"Bearer {auth_token}",
            "Content-Type": "application/json",
        }

        try:
            response = self.http_client.get(full_url, headers=headers)
        except HttpError as e:
            logger.error(f"API request failed: {e.to_dict()}")
            raise

        logger.info(f"API request successful. Status: {response.status}")
        return response

    def fetch_sra_data(self, email: Optional[str] = None) -> ApiResponse:
        """Authenticate, then fetch the current endpoint."""
        token = self.authenticate_sra(email)
        return self.get_sra_spr_copy_param(token)


__all__ = [
    "DEFAULT_ENDPOINT_PATH",
    "SraRequestService",
]
