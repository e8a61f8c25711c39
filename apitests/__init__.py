"""
API test suites package.

Kept importable so that:
  - step definition modules can be loaded by the scenario bindings
  - programmatic runners (e.g., `run_tests.py`) can reference the suite
  - unit tests can import the framework by absolute path

All configuration shipped here is demo-safe and contains no secrets.
"""
