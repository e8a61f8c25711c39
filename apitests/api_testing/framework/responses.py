"""
================================================================================
Response Wrappers
================================================================================

Thin wrappers around ApiResponse for assertions in step definitions:
status classification, field access, header lookup and expected-value checks.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from .http_client import ApiResponse


class BaseResponse:
    """
    Generic response structure for all API calls.

    Usage:
        >>> response = BaseResponse(client.get("/api/v1/users/1"))
        >>> response.is_success()
        True
        >>> response.validate(200, {"id": 1})
        True
    """

    def __init__(self, response: ApiResponse) -> None:
        self.status = response.status
        self.data = response.data
        self.headers = response.headers or {}
        self.timestamp = datetime.now()

    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    def is_server_error(self) -> bool:
        return 500 <= self.status < 600

    def get_body(self) -> Any:
        return self.data

    def get_header(self, key: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        key = key.lower()
        for name, value in self.headers.items():
            if name.lower() == key:
                return value
        return None

    def get_headers(self) -> Dict[str, str]:
        return self.headers

    def get_field(self, field_name: str) -> Any:
        if isinstance(self.data, dict):
            return self.data.get(field_name)
        return None

    def validate(
        self,
        expected_status: int,
        expected_fields: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """True when the status and every expected top-level field match."""
        if self.status != expected_status:
            return False

        for key, expected_value in (expected_fields or {}).items():
            if self.get_field(key) != expected_value:
                return False

        return True

    def to_string(self) -> str:
        return json.dumps(
            {
                "status": self.status,
                "data": self.data,
                "timestamp": self.timestamp.isoformat(),
            },
            indent=2,
            default=str,
        )

    def __str__(self) -> str:
        return self.to_string()


class SraResponse(BaseResponse):
    """
    Response from the SRA endpoints.

    Successful bodies are either a list of records, an object wrapping the
    list under "data", or a single record object.
    """

    def __init__(self, response: ApiResponse) -> None:
        super().__init__(response)
        self._sra_data: List[Dict[str, Any]] = []
        self._single_data: Optional[Dict[str, Any]] = None
        self._extract_sra_data()

    def _extract_sra_data(self) -> None:
        if not self.is_success():
            return

        if isinstance(self.data, list):
            self._sra_data = self.data
        elif isinstance(self.data, dict):
            if isinstance(self.data.get("data"), list):
                self._sra_data = self.data["data"]
            else:
                self._single_data = self.data

    def get_sra_data(self) -> List[Dict[str, Any]]:
        return self._sra_data

    def get_single_data(self) -> Optional[Dict[str, Any]]:
        return self._single_data

    def has_data(self) -> bool:
        return bool(self._sra_data) or self._single_data is not None


__all__ = [
    "BaseResponse",
    "SraResponse",
]
