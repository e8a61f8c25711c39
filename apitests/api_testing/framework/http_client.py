"""
================================================================================
HTTP Client with Allure Integration
================================================================================

The single network boundary of the harness:
    - Normalized responses ({status, data, headers}) for 2xx
    - Normalized HttpError ({status, body, headers, message}) for everything else
    - Optional retry with exponential backoff on network errors
    - Allure reporting with cURL command generation
    - Sensitive header/body redaction before anything is logged

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import allure
import httpx
from allure_commons.types import AttachmentType
from loguru import logger


# Maximum response length to include in Allure reports
MAX_RESPONSE_LENGTH = 3000

# Default request settings
DEFAULT_TIMEOUT = 5.0
DEFAULT_RETRY_COUNT = 1
DEFAULT_RETRY_BACKOFF = 0.5
DEFAULT_RETRY_MAX_WAIT = 5.0

MASK = "***MASKED***"


class HttpClientError(Exception):
    """Raised when the client is misused (e.g. no open session)."""
    pass


class HttpError(Exception):
    """
    Normalized error for non-2xx responses and network failures.

    Attributes:
        status: HTTP status code (500 for network failures)
        body: Parsed JSON body, raw text, or {"message": ...}
        headers: Response headers (empty for network failures)
        message: Human readable description
    """

    def __init__(
        self,
        status: int,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        message: str = "",
    ) -> None:
        self.status = status
        self.body = body
        self.headers = headers or {}
        self.message = message or f"Request failed with status code {status}"
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "body": self.body,
            "headers": self.headers,
            "message": self.message,
        }


@dataclass
class ApiResponse:
    """Normalized successful response."""
    status: int
    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


class HttpClient:
    """
    HTTP client built on httpx with error normalization and reporting.

    Usage:
        >>> with HttpClient("https://api.example.com") as client:
        ...     response = client.get("/api/v1/users")
        ...     print(response.status, response.data)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        allow_insecure_tls: bool = False,
        retry_count: int = DEFAULT_RETRY_COUNT,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        retry_max_wait: float = DEFAULT_RETRY_MAX_WAIT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize HTTP client.

        Args:
            base_url: Base URL for relative request paths
            timeout: Default request timeout in seconds
            allow_insecure_tls: Disable TLS verification (internal/test envs only)
            retry_count: Total attempts for network errors (1 = no retry)
            retry_backoff: Base wait for exponential backoff
            retry_max_wait: Cap for a single backoff wait
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.base_url = base_url
        self.timeout = float(timeout)
        self.allow_insecure_tls = allow_insecure_tls
        self.retry_count = max(1, int(retry_count))
        self.retry_backoff = float(retry_backoff)
        self.retry_max_wait = float(retry_max_wait)
        self.transport = transport

        self.default_headers: Dict[str, str] = {"Content-Type": "application/json"}
        self.session: Optional[httpx.Client] = None

    def open(self) -> "HttpClient":
        """Create the underlying httpx session (idempotent)."""
        if self.session is None:
            self.session = httpx.Client(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                verify=not self.allow_insecure_tls,
                transport=self.transport,
            )
        return self

    def close(self) -> None:
        """Close the underlying httpx session."""
        if self.session:
            self.session.close()
            self.session = None

    def __enter__(self) -> "HttpClient":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Default headers
    # ------------------------------------------------------------------

    def set_auth_header(self, token: str) -> None:
        """Send a bearer token with every request."""
        self.default_headers["Authorization"] = f"Bearer {token}"

    def remove_auth_header(self) -> None:
        self.default_headers.pop("Authorization", None)

    def set_headers(self, headers: Dict[str, str]) -> None:
        self.default_headers.update(headers)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """
        Execute an HTTP request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, PATCH)
            url: Path relative to base_url, or an absolute URL
            json: JSON request body
            params: Query parameters
            headers: Per-request headers (merged over default headers)
            timeout: Per-request timeout in seconds

        Returns:
            ApiResponse for 2xx responses

        Raises:
            HttpError: Non-2xx response, or network failure after all attempts
            HttpClientError: Called outside an open session
        """
        if self.session is None:
            raise HttpClientError(
                "HttpClient must be opened before use. "
                "Use 'with HttpClient(...) as client:' or call open()."
            )

        method = method.upper()
        merged_headers = {**self.default_headers, **(headers or {})}
        kwargs: Dict[str, Any] = {"headers": merged_headers}
        if json is not None:
            kwargs["json"] = json
        if params:
            kwargs["params"] = params
        if timeout is not None:
            kwargs["timeout"] = timeout

        response = self._send_with_retry(method, url, kwargs)
        self._log_to_allure(method, url, kwargs, response)

        body = self._parse_body(response)
        if not response.is_success:
            logger.warning(f"{method} {url} -> {response.status_code}")
            raise HttpError(
                status=response.status_code,
                body=body,
                headers=dict(response.headers),
                message=f"Request failed with status code {response.status_code}",
            )

        logger.debug(f"{method} {url} -> {response.status_code}")
        return ApiResponse(
            status=response.status_code,
            data=body,
            headers=dict(response.headers),
        )

    def get(self, url: str, **kwargs: Any) -> ApiResponse:
        """Execute GET request."""
        return self.request("GET", url, **kwargs)

    def post(self, url: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        """Execute POST request."""
        return self.request("POST", url, json=data, **kwargs)

    def put(self, url: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        """Execute PUT request."""
        return self.request("PUT", url, json=data, **kwargs)

    def patch(self, url: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        """Execute PATCH request."""
        return self.request("PATCH", url, json=data, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> ApiResponse:
        """Execute DELETE request."""
        return self.request("DELETE", url, **kwargs)

    def _send_with_retry(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
    ) -> httpx.Response:
        for attempt in range(self.retry_count):
            try:
                return self.session.request(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt < self.retry_count - 1:
                    wait_time = self._calculate_backoff(attempt)
                    logger.warning(
                        f"Network error: {e}. Retrying in {wait_time}s. "
                        f"Attempt {attempt + 1}/{self.retry_count}"
                    )
                    time.sleep(wait_time)
                    continue
                logger.error(f"{method} {url} failed: {e}")
                raise HttpError(
                    status=500,
                    body={"message": str(e)},
                    message=str(e),
                ) from e
        # retry_count is always >= 1, the loop either returns or raises
        raise HttpClientError("unreachable")

    def _calculate_backoff(self, attempt: int) -> float:
        """
        Calculate exponential backoff wait time.

        Formula: base * (2 ^ attempt), capped at max_wait
        """
        wait_time = self.retry_backoff * (2 ** attempt)
        return min(wait_time, self.retry_max_wait)

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _log_to_allure(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
        response: httpx.Response,
    ) -> None:
        """
        Attach the request/response exchange to the Allure report.

        Attaches the full URL, redacted headers and body, query params,
        a cURL command, the response status and the (truncated) body.
        """
        full_url = str(response.request.url)

        status_emoji = "✅" if response.status_code < 400 else "❌"
        step_title = f"{status_emoji} {method} {url} → {response.status_code}"

        with allure.step(step_title):
            allure.attach(
                full_url,
                name="🔗 Request URL",
                attachment_type=AttachmentType.TEXT
            )

            safe_headers = self._redact_headers(kwargs.get("headers", {}))
            if safe_headers:
                allure.attach(
                    json.dumps(safe_headers, ensure_ascii=False, indent=2),
                    name="📤 Request Headers",
                    attachment_type=AttachmentType.JSON
                )

            safe_body = self._redact_body(kwargs.get("json"))
            if safe_body:
                allure.attach(
                    json.dumps(safe_body, ensure_ascii=False, indent=2, default=str),
                    name="📤 Request Body",
                    attachment_type=AttachmentType.JSON
                )

            params = kwargs.get("params")
            if params:
                allure.attach(
                    json.dumps(params, ensure_ascii=False, indent=2, default=str),
                    name="📤 Query Params",
                    attachment_type=AttachmentType.JSON
                )

            allure.attach(
                self._build_curl(method, full_url, safe_headers, safe_body),
                name="🔧 cURL Command",
                attachment_type=AttachmentType.TEXT
            )

            allure.attach(
                f"{status_emoji} {response.status_code}",
                name="📥 Response Status",
                attachment_type=AttachmentType.TEXT
            )

            try:
                response_content = json.dumps(
                    response.json(), ensure_ascii=False, indent=2
                )
            except ValueError:
                response_content = response.text or "<empty>"

            if len(response_content) > MAX_RESPONSE_LENGTH:
                response_content = (
                    f"{response_content[:MAX_RESPONSE_LENGTH]}\n\n"
                    f"... [Truncated, full length: {len(response_content)} chars] ..."
                )

            allure.attach(
                response_content,
                name="📥 Response Body",
                attachment_type=AttachmentType.JSON
            )

    def _redact_headers(self, headers: Dict[str, Any]) -> Dict[str, Any]:
        """
        Mask sensitive header values before logging.
        """
        sensitive_keys = {"authorization", "x-api-key", "x-client-id", "cookie", "set-cookie"}
        return {
            key: MASK if key.lower() in sensitive_keys else value
            for key, value in headers.items()
        }

    def _redact_body(self, payload: Any) -> Any:
        """
        Recursively mask sensitive fields in request bodies.
        """
        if isinstance(payload, dict):
            redacted = {}
            for key, value in payload.items():
                if any(token in key.lower() for token in [
                    "password", "secret", "token", "api_key", "authorization", "session"
                ]):
                    redacted[key] = MASK
                else:
                    redacted[key] = self._redact_body(value)
            return redacted
        if isinstance(payload, list):
            return [self._redact_body(item) for item in payload]
        return payload

    def _build_curl(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Any,
    ) -> str:
        """Build a copy-paste ready cURL command from already redacted parts."""
        parts = [f"curl -X {method}"]

        for key, value in headers.items():
            parts.append(f"-H '{key}: {value}'")

        if body:
            body_json = json.dumps(body, ensure_ascii=False, default=str)
            parts.append(f"-d '{body_json}'")

        parts.append(f"'{url}'")

        return " \\\n  ".join(parts)


__all__ = [
    "ApiResponse",
    "HttpClient",
    "HttpClientError",
    "HttpError",
]
