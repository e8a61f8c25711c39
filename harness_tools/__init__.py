"""
Harness Tools

Tooling shared by the test process and the runner script: logging, bounded
polling and report handling.
"""
