"""
================================================================================
Authentication Step Definitions
================================================================================

Steps exercising the bearer token cache through the request service:
authentication, cache reuse, invalidation and the single refresh-and-retry
on 401.

These steps expect a `fake_api` fixture exposing counters of the stubbed
auth server and API (see the scenario bindings' conftest).

Author: Automation Team
License: MIT
================================================================================
"""

from loguru import logger
from pytest_bdd import given, parsers, then, when

from apitests.api_testing.framework import ApiWorld, HttpError


@given("the API user is authenticated")
def api_user_is_authenticated(world: ApiWorld):
    assert world.auth_handler is not None, "OAuth client credentials are not configured"
    world.setup_auth()
    assert world.auth_handler.current_token, "No token after authentication"


@given(parsers.parse("the API rejects the next request with {status:d}"))
def api_rejects_next_request(fake_api, status: int):
    fake_api.reject_next(status)


@given(parsers.parse("the API rejects every request with {status:d}"))
def api_rejects_every_request(fake_api, status: int):
    fake_api.reject_always(status)


@when("I invalidate the cached token")
def invalidate_cached_token(world: ApiWorld):
    username, password = world.auth_handler.get_credentials()
    world.auth_handler.token_manager.invalidate(username, password)
    logger.info(f"Token invalidated for user: {username}")


@when(parsers.parse('I request "{endpoint}"'))
def request_endpoint(world: ApiWorld, endpoint: str):
    world.store_test_data("last_response", world.request_service.get(endpoint))


@when(parsers.parse('I request "{endpoint}" twice'))
def request_endpoint_twice(world: ApiWorld, endpoint: str):
    for _ in range(2):
        world.store_test_data("last_response", world.request_service.get(endpoint))


@when(parsers.parse('I request "{endpoint}" with retry'))
def request_endpoint_with_retry(world: ApiWorld, endpoint: str):
    try:
        response = world.request_service.request_with_retry("get", endpoint)
    except HttpError as e:
        world.handle_error(e)
    else:
        world.store_test_data("last_response", response)


@then(parsers.re(r"the auth server should have issued (?P<count>\d+) tokens?"), converters={"count": int})
def auth_server_issued(fake_api, count: int):
    assert fake_api.tokens_issued == count, (
        f"Expected {count} token(s) issued, but got {fake_api.tokens_issued}"
    )


@then(parsers.parse("the API should have received {count:d} requests"))
def api_received_requests(fake_api, count: int):
    assert len(fake_api.api_requests) == count, (
        f"Expected {count} API request(s), but got {len(fake_api.api_requests)}"
    )


@then("every API request should carry the same bearer token")
def same_bearer_token(fake_api):
    tokens = {request["authorization"] for request in fake_api.api_requests}
    assert len(tokens) == 1, f"Expected one bearer token, saw {sorted(tokens)}"
