"""
Step definitions for the API feature files.

Binding modules import these with a star import so pytest-bdd can find the
step fixtures:

    from apitests.api_testing.steps.sra_steps import *  # noqa: F401, F403
"""
