"""
================================================================================
Scenario World
================================================================================

Per-scenario context shared by every step of a BDD scenario: configuration,
HTTP client, auth handler, request services and scratch test data.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from .auth_handler import AuthHandler
from .config_loader import ConfigLoader
from .http_client import DEFAULT_TIMEOUT, HttpClient, HttpError
from .request_service import RequestService
from .sra_request_service import SraRequestService
from .token_manager import TokenManager


class ApiWorld:
    """
    Shared context across all step definitions of one scenario.

    The OAuth auth handler and request service are only built when auth_url,
    client_id and client_secret are all configured; SRA-only environments
    authenticate through SraRequestService instead.
    """

    def __init__(
        self,
        config: ConfigLoader,
        environment: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        self.environment = environment or config.environment

        self.scenario_name: str = ""
        self.test_data: Dict[str, Any] = {}
        self.last_error: Any = None
        self.step_count: int = 0
        self.failure_message: Optional[str] = None
        self.authenticated_user: Optional[Dict[str, str]] = None

        self.auth_handler: Optional[AuthHandler] = None
        self.request_service: Optional[RequestService] = None

        self._initialize_clients(transport)

    def _initialize_clients(self, transport: Optional[httpx.BaseTransport]) -> None:
        api_url = self.config.get("base_url", "https://localhost:3000")
        allow_insecure = os.environ.get("SRA_ALLOW_INSECURE", "").lower() == "true"

        self.http_client = HttpClient(
            api_url,
            timeout=float(self.config.get("timeout", DEFAULT_TIMEOUT)),
            allow_insecure_tls=allow_insecure,
            retry_count=int(self.config.get("retry_count", 1)),
            transport=transport,
        ).open()

        auth_url = self.config.get("auth_url")
        client_id = self.config.get("client_id")
        client_secret = self.config.get("client_secret")
        if auth_url and client_id and client_secret:
            token_manager = TokenManager(
                auth_url,
                client_id,
                client_secret,
                http_client=self.http_client,
            )
            self.auth_handler = AuthHandler(
                auth_url, client_id, client_secret, token_manager=token_manager
            )
            self.request_service = RequestService(self.http_client, self.auth_handler)
        else:
            logger.debug("OAuth credentials not configured - SRA-only mode")

        self.sra_request_service = SraRequestService(
            self.http_client, self.config, self.auth_handler
        )

        logger.info(f"Initialized API clients for environment: {self.environment}")

    def setup_auth(self, username: Optional[str] = None, password: Optional[str] = None) -> None:
        """
        Set credentials and fetch the first token.

        Credentials default to the configured credentials.username/password.
        Does nothing in SRA-only mode.
        """
        if self.auth_handler is None:
            logger.info("OAuth credentials not required for SRA API")
            return

        user = username or self.config.get("credentials.username")
        pwd = password or self.config.get("credentials.password")

        self.auth_handler.set_credentials(user, pwd)
        self.authenticated_user = {"username": user, "password": pwd}

        self.auth_handler.get_bearer_token()
        logger.info(f"Authentication setup for user: {user}")

    def store_test_data(self, key: str, value: Any) -> None:
        self.test_data[key] = value
        logger.debug(f"Test data stored: {key}")

    def get_test_data(self, key: str, default: Any = None) -> Any:
        return self.test_data.get(key, default)

    def clear_test_data(self) -> None:
        self.test_data.clear()
        self.last_error = None
        self.step_count = 0
        self.failure_message = None
        logger.debug("Test data cleared")

    def handle_error(self, error: Exception) -> None:
        """Remember the error for the after-scenario hooks and log it."""
        self.last_error = error
        details = error.to_dict() if isinstance(error, HttpError) else str(error)
        logger.error(f"Error occurred: {json.dumps(details, default=str)}")

    def cleanup(self) -> None:
        """Reset auth, drop test data and close the HTTP session."""
        if self.auth_handler is not None:
            self.auth_handler.clear_auth()
        self.sra_request_service.clear_sra_token()
        self.clear_test_data()
        self.authenticated_user = None
        self.http_client.close()
        logger.info("World cleaned up")

    def get_scenario_info(self) -> str:
        return f"Scenario: {self.scenario_name} | Environment: {self.environment}"


__all__ = ["ApiWorld"]
