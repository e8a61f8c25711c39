"""
================================================================================
API Testing Framework
================================================================================

Components of the BDD API test harness.

Modules:
    - config_loader: Per-environment YAML configuration
    - http_client: httpx client with error normalization and Allure logging
    - token_manager: In-memory bearer token cache
    - auth_handler: Credentials and auth header building
    - request_service: Authenticated requests with one retry on 401
    - responses: Response wrappers for assertions
    - sra_request_service: Email-based JWT auth against SRA endpoints
    - world: Per-scenario shared context
    - wait_helpers: Retry and bounded polling helpers

Author: Automation Team
License: MIT
================================================================================
"""

from .auth_handler import AuthHandler
from .config_loader import ConfigError, ConfigLoader
from .http_client import ApiResponse, HttpClient, HttpClientError, HttpError
from .request_service import RequestService
from .responses import BaseResponse, SraResponse
from .sra_request_service import SraRequestService
from .token_manager import AuthError, TokenEntry, TokenManager
from .world import ApiWorld

__all__ = [
    "ApiResponse",
    "ApiWorld",
    "AuthError",
    "AuthHandler",
    "BaseResponse",
    "ConfigError",
    "ConfigLoader",
    "HttpClient",
    "HttpClientError",
    "HttpError",
    "RequestService",
    "SraRequestService",
    "SraResponse",
    "TokenEntry",
    "TokenManager",
]
