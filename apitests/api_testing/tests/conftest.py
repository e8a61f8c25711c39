"""
================================================================================
API Testing Pytest Configuration
================================================================================

Shared fixtures and pytest-bdd hooks for the API scenarios.

Fixtures:
    - config: Environment configuration (ENVIRONMENT, default dev)
    - report_tracker: One ReportRunTracker for the whole session
    - http_transport: httpx transport override (None = real network)
    - world: Per-scenario ApiWorld
    - fake_api: In-process auth server and API for network-free scenarios

Hooks:
    - before scenario: reset world data, allocate the run directory
    - after step / step error: count steps, record the failure
    - after scenario: metadata.json, index.html, world cleanup

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Generator, List, Optional

import allure
import httpx
import pytest
from loguru import logger

from apitests.api_testing.framework import ApiWorld, ConfigLoader
from harness_tools.report_tools import FilesystemError, ReportRunTracker, RunStatus


FAKE_BASE_URL = "https://api.test"
FAKE_OAUTH_URL = f"{FAKE_BASE_URL}/api/auth"
FAKE_SRA_AUTH_URL = f"{FAKE_BASE_URL}/api/auth/token"
FAKE_EDUCATION_ENDPOINT = "/api/education/getEducationDetails"
FAKE_EMAIL = "demo.user@example.com"
FAKE_ORDER_NUMBER = 8345413


# =============================================================================
# Fake API (network-free scenarios)
# =============================================================================

class FakeApi:
    """
    Stub of the auth server and the API behind an httpx.MockTransport.

    - POST .../api/auth/token with clientId/username/password issues OAuth
      tokens (token-1, token-2, ...).
    - POST .../api/auth/token with {"email"} issues a JWT for known emails.
    - GET education endpoint requires an issued JWT.
    - Any other GET requires an issued OAuth token and is recorded.
    """

    def __init__(self, emails: Optional[List[str]] = None, expires_in: int = 3600):
        self.emails = set(emails or [FAKE_EMAIL])
        self.expires_in = expires_in
        self.issued_tokens: List[str] = []
        self.issued_jwts: List[str] = []
        self.api_requests: List[Dict[str, Any]] = []
        self._reject_next: Optional[int] = None
        self._reject_always: Optional[int] = None

    @property
    def tokens_issued(self) -> int:
        return len(self.issued_tokens)

    def reject_next(self, status: int = 401) -> None:
        self._reject_next = status

    def reject_always(self, status: int = 401) -> None:
        self._reject_always = status

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path.endswith("/auth/token"):
            body = json.loads(request.content or b"{}")
            if "email" in body:
                return self._issue_jwt(body["email"])
            return self._issue_token(body)

        bearer = request.headers.get("authorization", "").removeprefix("Bearer ")
        if request.url.path == FAKE_EDUCATION_ENDPOINT:
            if bearer not in self.issued_jwts:
                return httpx.Response(401, json={"message": "Invalid token"})
            return httpx.Response(
                200,
                json={"orderNumber": FAKE_ORDER_NUMBER, "degree": "BSc", "status": "VERIFIED"},
            )

        self.api_requests.append({"path": request.url.path, "authorization": bearer})
        if self._reject_always is not None:
            return httpx.Response(self._reject_always, json={"message": "Unauthorized"})
        if self._reject_next is not None:
            status, self._reject_next = self._reject_next, None
            return httpx.Response(status, json={"message": "Token expired"})
        if bearer not in self.issued_tokens:
            return httpx.Response(401, json={"message": "Unknown token"})
        return httpx.Response(200, json={"path": request.url.path, "token": bearer})

    def _issue_token(self, body: Dict[str, Any]) -> httpx.Response:
        if not body.get("clientId") or not body.get("username"):
            return httpx.Response(400, json={"message": "Missing credentials"})
        token = f"token-{len(self.issued_tokens) + 1}"
        self.issued_tokens.append(token)
        return httpx.Response(
            200,
            json={"access_token": token, "token_type": "Bearer", "expires_in": self.expires_in},
        )

    def _issue_jwt(self, email: str) -> httpx.Response:
        if email not in self.emails:
            return httpx.Response(401, json={"message": f"Unknown email: {email}"})
        jwt = f"jwt-{len(self.issued_jwts) + 1}"
        self.issued_jwts.append(jwt)
        return httpx.Response(200, json={"token": jwt})


def build_fake_config(environment: str = "dev", oauth: bool = True) -> ConfigLoader:
    """Configuration pointing every endpoint at the fake API."""
    loader = ConfigLoader(environment)
    loader.set("base_url", FAKE_BASE_URL)
    loader.set("email", FAKE_EMAIL)
    loader.set("education_endpoint", FAKE_EDUCATION_ENDPOINT)
    loader.set("retry_count", 1)
    if oauth:
        loader.set("auth_url", FAKE_OAUTH_URL)
        loader.set("client_id", "fake-client")
        loader.set("client_secret", "fake-secret")
        loader.set("credentials.username", "demo_user")
        loader.set("credentials.password", "demo_password")
    else:
        loader.set("auth_url", FAKE_SRA_AUTH_URL)
    return loader


# =============================================================================
# Session-Scoped Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def environment() -> str:
    return os.environ.get("ENVIRONMENT", "dev")


@pytest.fixture(scope="session")
def config(environment: str) -> ConfigLoader:
    """
    Provide configuration loader instance.

    Session-scoped to ensure configuration is loaded only once.
    """
    return ConfigLoader.load(environment)


@pytest.fixture(scope="session")
def report_tracker(environment: str) -> Optional[ReportRunTracker]:
    """
    One report tracker for the session, handed to the scenario hooks.

    None when the reports root cannot be created; scenarios still run.
    """
    try:
        return ReportRunTracker(environment=environment)
    except FilesystemError as e:
        logger.warning(f"Report tracking disabled: {e}")
        return None


# =============================================================================
# Function-Scoped Fixtures
# =============================================================================

@pytest.fixture
def http_transport() -> Optional[httpx.BaseTransport]:
    """Transport for the world's HTTP client. Bindings override this to stub the network."""
    return None


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def fake_oauth_config(environment: str) -> ConfigLoader:
    return build_fake_config(environment, oauth=True)


@pytest.fixture
def fake_sra_config(environment: str) -> ConfigLoader:
    return build_fake_config(environment, oauth=False)


@pytest.fixture
def world(config: ConfigLoader, http_transport) -> Generator[ApiWorld, None, None]:
    """Provide the per-scenario world. Full cleanup happens in the after-scenario hook."""
    api_world = ApiWorld(config, transport=http_transport)
    yield api_world
    api_world.http_client.close()


# =============================================================================
# pytest-bdd Hooks
# =============================================================================

def _scenario_tags(feature, scenario) -> set:
    return set(getattr(scenario, "tags", ()) or ()) | set(getattr(feature, "tags", ()) or ())


def pytest_bdd_before_scenario(request, feature, scenario):
    world: ApiWorld = request.getfixturevalue("world")
    logger.info(f">>> Starting Scenario: {scenario.name}")

    world.scenario_name = scenario.name
    world.clear_test_data()

    tags = _scenario_tags(feature, scenario)
    if "api" in tags:
        logger.info("API test scenario initiated")
    if "auth" in tags:
        logger.info("Auth test scenario initiated")

    tracker: Optional[ReportRunTracker] = request.getfixturevalue("report_tracker")
    if tracker is not None:
        try:
            tracker.initialize_test_run(scenario.name)
        except FilesystemError as e:
            logger.warning(f"Could not initialize report directory: {e}")

    logger.info("Scenario initialized")


def pytest_bdd_after_step(request, feature, scenario, step, step_func, step_func_args):
    world: ApiWorld = request.getfixturevalue("world")
    world.step_count += 1


def pytest_bdd_step_error(request, feature, scenario, step, step_func, step_func_args, exception):
    world: ApiWorld = request.getfixturevalue("world")
    world.step_count += 1
    world.failure_message = f"{step.keyword.strip()} {step.name}: {exception}"
    if world.last_error is None:
        world.last_error = exception
    logger.error(f"Step failed: {world.failure_message}")


def pytest_bdd_after_scenario(request, feature, scenario):
    world: ApiWorld = request.getfixturevalue("world")
    failed = world.failure_message is not None
    logger.info(f"<<< Scenario: {scenario.name} Completed")

    if failed:
        logger.error(f"Failure: {world.failure_message}")
        if "critical" in _scenario_tags(feature, scenario):
            logger.error(f"CRITICAL TEST FAILED: {scenario.name}")
            logger.error(f"Last Error: {json.dumps(_describe_error(world.last_error), default=str)}")

    tracker: Optional[ReportRunTracker] = request.getfixturevalue("report_tracker")
    if tracker is not None and tracker.current_test_run_dir is not None:
        metadata: Dict[str, Any] = {
            "status": RunStatus.FAILED if failed else RunStatus.PASSED,
            "steps": world.step_count,
        }
        if failed:
            metadata["failureMessage"] = world.failure_message
        try:
            tracker.save_test_metadata(metadata)
            tracker.generate_index(wait_timeout=0)
        except FilesystemError as e:
            logger.warning(f"Could not write scenario report: {e}")

    logger.info(f"Scenario Summary:\n{world.get_scenario_info()}")
    try:
        world.cleanup()
    except Exception as e:
        logger.error(f"Error during cleanup: {e}")


def _describe_error(error: Any) -> Any:
    if error is None:
        return None
    to_dict = getattr(error, "to_dict", None)
    return to_dict() if callable(to_dict) else str(error)


# =============================================================================
# Allure Reporting Hooks
# =============================================================================

def pytest_exception_interact(node, call, report):
    """Attach additional info on test failure."""
    if report.failed:
        allure.attach(
            str(call.excinfo.value),
            name="Error Details",
            attachment_type=allure.attachment_type.TEXT,
        )
