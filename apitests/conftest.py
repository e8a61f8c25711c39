"""
================================================================================
Suite Pytest Configuration
================================================================================

Registers the markers used by unit tests and by feature-file tags, and keeps
scenarios that need live services out of default runs.

================================================================================
"""

import os

import pytest


EXTERNAL_TESTS_ENV = "RUN_EXTERNAL_TESTS"


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "critical: Failures are escalated with the last recorded error"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "api: API-specific tests"
    )
    config.addinivalue_line(
        "markers", "auth: Tests related to authentication"
    )
    config.addinivalue_line(
        "markers", "sra: Tests against the SRA education endpoints"
    )

    # Dependency markers
    config.addinivalue_line(
        "markers", "requires_external: Tests requiring external services"
    )


def external_tests_enabled() -> bool:
    return os.environ.get(EXTERNAL_TESTS_ENV, "").lower() == "true"


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    - Tests in api_testing get the 'api' marker
    - requires_external tests are skipped unless RUN_EXTERNAL_TESTS=true
    """
    skip_external = pytest.mark.skip(
        reason=f"needs external services (set {EXTERNAL_TESTS_ENV}=true to run)"
    )
    run_external = external_tests_enabled()

    for item in items:
        if "api_testing" in str(item.path):
            item.add_marker(pytest.mark.api)

        if not run_external and "requires_external" in item.keywords:
            item.add_marker(skip_external)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "API BDD Test Harness",
        f"Environment: {os.environ.get('ENVIRONMENT', 'dev')} | "
        f"External tests: {'on' if external_tests_enabled() else 'off'}",
        "=" * 60,
        "",
    ]
