import httpx
import pytest

from apitests.api_testing.framework.auth_handler import AuthHandler
from apitests.api_testing.framework.http_client import HttpClient
from apitests.api_testing.framework.token_manager import AuthError, TokenManager


AUTH_URL = "https://auth.test/api/auth"


def make_handler():
    issued = []

    def handler(request):
        issued.append(request)
        return httpx.Response(
            200,
            json={"access_token": f"token-{len(issued)}", "token_type": "Bearer", "expires_in": 3600},
        )

    client = HttpClient(AUTH_URL, transport=httpx.MockTransport(handler)).open()
    manager = TokenManager(AUTH_URL, "client-id", "client-secret", http_client=client)
    return AuthHandler(AUTH_URL, "client-id", "client-secret", token_manager=manager), issued


def test_bearer_token_requires_credentials():
    auth, _ = make_handler()

    with pytest.raises(AuthError, match="Credentials not set"):
        auth.get_bearer_token()
    assert auth.is_token_expired()


def test_build_request_headers_order_and_contents():
    auth, _ = make_handler()
    auth.set_credentials("alice", "pw")

    headers = auth.build_request_headers({"X-Trace": "1", "Content-Type": "text/plain"})

    assert headers["Authorization"] == "Bearer token-1"
    assert headers["X-Client-ID"] == "client-id"
    assert headers["X-Trace"] == "1"
    assert headers["Content-Type"] == "text/plain"
    assert auth.current_token == "token-1"


def test_refresh_token_fetches_a_new_token():
    auth, issued = make_handler()
    auth.set_credentials("alice", "pw")

    assert auth.get_bearer_token() == "token-1"
    assert auth.get_bearer_token() == "token-1"
    assert auth.refresh_token() == "token-2"
    assert len(issued) == 2


def test_clear_auth_forgets_credentials_and_tokens():
    auth, _ = make_handler()
    auth.set_credentials("alice", "pw")
    auth.get_bearer_token()

    auth.clear_auth()

    assert auth.get_credentials() is None
    assert auth.current_token is None
    assert auth.token_manager.get_token_expiry("alice", "pw") is None
    with pytest.raises(AuthError):
        auth.refresh_token()
