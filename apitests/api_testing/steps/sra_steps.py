"""
================================================================================
SRA Step Definitions
================================================================================

Steps for the email-issued JWT flow: authenticate, fetch education details
and verify the payload.

Author: Automation Team
License: MIT
================================================================================
"""

import json

import allure
from loguru import logger
from pytest_bdd import given, parsers, then, when

from apitests.api_testing.framework import ApiWorld, AuthError, HttpError, SraResponse


EXPECTED_ORDER_ID = 8345413


@given("Generate JWT token")
def generate_jwt_token(world: ApiWorld):
    token = world.sra_request_service.authenticate_sra()
    world.store_test_data("jwt_token", token)
    logger.info("JWT token generated.")


@then("Use the token to get the Education details using education end point")
def get_education_details(world: ApiWorld):
    jwt_token = world.get_test_data("jwt_token")
    assert jwt_token, "JWT token should be available"

    endpoint = world.config.get("education_endpoint")
    logger.info(f"  - Endpoint Path: {endpoint}")
    response = world.sra_request_service.get_sra_spr_copy_param(jwt_token, endpoint)
    world.store_test_data("education_response", response)

    logger.info(f"Education details fetched. Status: {response.status}")


@then("Verify the status code should be 200")
def verify_education_status(world: ApiWorld):
    response = world.get_test_data("education_response")
    assert response is not None, "Education response should exist"
    assert response.status == 200, f"Expected status 200, but got {response.status}"
    logger.info("✓ Education response status is 200")


@then("Print the response payload we are getting in Json file")
def print_education_payload(world: ApiWorld):
    response = world.get_test_data("education_response")
    payload = json.dumps(response.data, indent=2, default=str)
    logger.info("Full Education response payload:")
    logger.info(payload)
    allure.attach(
        payload,
        name="Education Response",
        attachment_type=allure.attachment_type.JSON,
    )


@then(parsers.parse("Verify the Order id should be equal to {order_id:d}"))
def verify_order_id(world: ApiWorld, order_id: int):
    response = world.get_test_data("education_response")
    assert response is not None and response.data, "Education response data should exist"

    record = SraResponse(response).get_single_data() or {}
    actual = record.get("orderNumber")
    assert actual == order_id, f"Expected order id {order_id}, but got {actual}"
    logger.info(f"✓ Order id is {order_id}")


@when(parsers.parse('I request a JWT token for email "{email}"'))
def request_jwt_for_email(world: ApiWorld, email: str):
    try:
        world.store_test_data("jwt_token", world.sra_request_service.authenticate_sra(email))
    except AuthError as e:
        world.handle_error(e)


@when(parsers.parse('I request the education details with token "{token}"'))
def request_education_with_token(world: ApiWorld, token: str):
    endpoint = world.config.get("education_endpoint")
    try:
        response = world.sra_request_service.get_sra_spr_copy_param(token, endpoint)
    except HttpError as e:
        world.handle_error(e)
    else:
        world.store_test_data("education_response", response)
