"""
SRA education scenarios against the configured environment.

Tagged requires_external: skipped unless RUN_EXTERNAL_TESTS=true.
"""

from pytest_bdd import scenarios

from apitests.api_testing.steps.common_steps import *  # noqa: F401, F403
from apitests.api_testing.steps.sra_steps import *  # noqa: F401, F403

scenarios("../features/sra_education.feature")
