"""
Repository-level pytest configuration (showcase-safe).

Why this exists:
  - Provide safe defaults for demo environments (no secrets embedded)
  - Configure logging once for the whole test process (console + test.log)

Important:
  Values below are placeholders. Real projects should load secrets from a
  secure secret manager in CI/CD.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from harness_tools.common import init_logger


def pytest_configure(config):
    init_logger()


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Set demo-safe environment defaults if not already provided by the user/CI.

    This prevents accidental leakage and keeps local runs predictable.
    """
    defaults = {
        "ENVIRONMENT": "dev",
        "SRA_ALLOW_INSECURE": "false",
        "RUN_EXTERNAL_TESTS": "false",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield
