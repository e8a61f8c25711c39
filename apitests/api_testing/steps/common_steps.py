"""
Steps shared by every API feature: outcome checks on the last response or
the last recorded error.
"""

from loguru import logger
from pytest_bdd import parsers, then

from apitests.api_testing.framework import ApiWorld


@then(parsers.parse("the response status should be {status:d}"))
def response_status_should_be(world: ApiWorld, status: int):
    response = world.get_test_data("last_response")
    assert response is not None, f"No response recorded (last error: {world.last_error})"
    assert response.status == status, f"Expected status {status}, but got {response.status}"


@then(parsers.parse("the request should fail with status {status:d}"))
def request_should_fail_with(world: ApiWorld, status: int):
    error = world.last_error
    assert error is not None, "Expected the request to fail, but it succeeded"
    actual = getattr(error, "status", None)
    assert actual == status, f"Expected failure status {status}, but got {actual}: {error}"
    logger.info(f"✓ Request failed with status {status}")
