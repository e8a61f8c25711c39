"""
================================================================================
Test Data Helpers
================================================================================

Random data generators, payload validators and the static fixture data used
by step definitions.

================================================================================
"""

import copy
import random
import re
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

USER_REQUIRED_FIELDS = ("id", "firstName", "lastName", "email")
USER_COMPARED_FIELDS = ("firstName", "lastName", "email")


# ================================================================================
# Generators
# ================================================================================

def generate_random_string(length: int = 10) -> str:
    """Random lowercase alphanumeric string."""
    chars = string.ascii_lowercase + string.digits
    return ''.join(random.choice(chars) for _ in range(length))


def generate_random_email() -> str:
    timestamp = int(time.time() * 1000)
    return f"test.{timestamp}.{uuid4().hex[:5]}@example.com"


def generate_random_user_id() -> str:
    return str(random.randint(0, 9_999_999))


# ================================================================================
# Validators
# ================================================================================

def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def validate_user_structure(user: Dict[str, Any]) -> bool:
    """True when every required user field is present."""
    return all(field in user for field in USER_REQUIRED_FIELDS)


def compare_users(user1: Dict[str, Any], user2: Dict[str, Any]) -> bool:
    """Compare the identifying fields of two user payloads."""
    return all(user1.get(field) == user2.get(field) for field in USER_COMPARED_FIELDS)


def shallow_equal(obj1: Any, obj2: Any) -> bool:
    """
    Shallow equality: same keys, and values compared by identity.

    Non-dict inputs fall back to ==.
    """
    if not isinstance(obj1, dict) or not isinstance(obj2, dict):
        return obj1 == obj2

    if obj1.keys() != obj2.keys():
        return False

    return all(obj1[key] is obj2[key] or obj1[key] == obj2[key] for key in obj1)


def deep_clone(obj: Any) -> Any:
    return copy.deepcopy(obj)


# ================================================================================
# Time helpers
# ================================================================================

def format_timestamp(date: Optional[datetime] = None) -> str:
    """'YYYY-MM-DD HH:MM:SS' in UTC."""
    date = date or datetime.now(timezone.utc)
    return date.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def current_timestamp() -> int:
    """Current epoch time in whole seconds."""
    return int(time.time())


# ================================================================================
# Static fixtures
# ================================================================================

USER_FIXTURES: Dict[str, Dict[str, Any]] = {
    "valid_user": {
        "firstName": "John",
        "lastName": "Doe",
        "email": "john.doe@example.com",
        "phone": "+1234567890",
    },
    "valid_user_2": {
        "firstName": "Jane",
        "lastName": "Smith",
        "email": "jane.smith@example.com",
        "phone": "+0987654321",
    },
    "update_data": {
        "firstName": "Johnny",
        "lastName": "Updated",
    },
    "invalid_email": {
        "firstName": "Invalid",
        "lastName": "User",
        "email": "not-an-email",
    },
    "missing_required": {
        "firstName": "Missing",
    },
    "special_characters": {
        "firstName": "José",
        "lastName": "O'Brien",
        "email": "jose.obrien@example.com",
    },
    "long_name": {
        "firstName": "A" * 100,
        "lastName": "Z" * 100,
        "email": "long.name@example.com",
    },
}

ERROR_MESSAGES = {
    "invalid_email": "Invalid email format",
    "missing_field": "Required field missing",
    "unauthorized": "Unauthorized",
    "forbidden": "Forbidden",
    "not_found": "Not found",
    "conflict": "Resource already exists",
    "server_error": "Internal server error",
}

STATUS_CODES = {
    "ok": 200,
    "created": 201,
    "no_content": 204,
    "bad_request": 400,
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
    "server_error": 500,
}


def get_user_fixture(name: str) -> Dict[str, Any]:
    """Return a copy of a named user fixture so callers can mutate it."""
    return deep_clone(USER_FIXTURES[name])
