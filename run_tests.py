#!/usr/bin/env python3
# ================================================================================
# Test Runner Script
# ================================================================================
#
# Main entry point for executing the BDD API suite.
#
# Features:
#   - Run feature scenarios, unit tests, or both
#   - Cucumber JSON report into reports/current for the post-processor
#   - Allure results (and HTML report when the Allure CLI is installed)
#   - Per-scenario report relocation and index.html after every run
#   - Unknown arguments are passed to pytest untouched
#
# The process exits with pytest's exit code, whatever post-processing does.
#
# Usage:
#   python run_tests.py --suite bdd --tags smoke
#   python run_tests.py --env qa -- -k education
#   RUN_EXTERNAL_TESTS=true python run_tests.py --suite bdd
#
# ================================================================================

import argparse
import os
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from loguru import logger

from harness_tools.common import init_logger
from harness_tools.report_tools import ReportProcessor


SUITE_PATHS = {
    "bdd": ["apitests/api_testing/tests"],
    "unit": ["apitests/unit"],
    "all": ["apitests"],
}


class TestRunner:
    """
    Orchestrates one test run.

    This class handles:
    - Building and executing the pytest command
    - Allure report generation
    - Report post-processing
    """

    def __init__(
        self,
        suite: str = "bdd",
        tags: Optional[List[str]] = None,
        environment: Optional[str] = None,
        allure_report: bool = True,
        verbose: bool = False,
        pytest_args: Optional[List[str]] = None,
    ):
        """
        Initialize test runner.

        Args:
            suite: Test suite to run - "bdd", "unit", "all"
            tags: Markers/feature tags to select (joined with "or")
            environment: ENVIRONMENT for the test process
            allure_report: Collect Allure results and try to render the report
            verbose: Enable verbose output
            pytest_args: Extra arguments passed to pytest untouched
        """
        self.suite = suite
        self.tags = tags or []
        self.environment = environment
        self.allure_report = allure_report
        self.verbose = verbose
        self.pytest_args = pytest_args or []

        # Paths
        self.root_dir = Path(__file__).parent
        self.reports_dir = self.root_dir / "reports"
        self.working_dir = self.reports_dir / "current"
        self.json_report = self.working_dir / "report.json"
        self.allure_results = self.reports_dir / "allure-results"
        self.allure_report_dir = self.reports_dir / "allure-report"

    def run(self) -> int:
        """
        Execute the test run.

        Returns:
            pytest's exit code
        """
        logger.info("=" * 60)
        logger.info("Starting Test Execution")
        logger.info("=" * 60)
        logger.info(f"Suite: {self.suite}")
        logger.info(f"Tags: {self.tags or 'All'}")
        logger.info(f"Environment: {self.environment or os.getenv('ENVIRONMENT', 'dev')}")
        logger.info("=" * 60)

        self._prepare_environment()

        cmd = self._build_pytest_command()
        logger.info(f"Executing: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, cwd=str(self.root_dir), env=self._child_env())
            exit_code = result.returncode
        except OSError as e:
            logger.error(f"Test execution failed: {e}")
            exit_code = 1

        self._process_reports()

        if self.allure_report:
            self._generate_allure_report()

        self._print_summary(exit_code)
        return exit_code

    def _prepare_environment(self) -> None:
        """Create report directories."""
        self.working_dir.mkdir(parents=True, exist_ok=True)
        if self.allure_report:
            self.allure_results.mkdir(parents=True, exist_ok=True)
        logger.debug("Environment prepared")

    def _child_env(self) -> dict:
        env = dict(os.environ)
        if self.environment:
            env["ENVIRONMENT"] = self.environment
        return env

    def _build_pytest_command(self) -> List[str]:
        """Build the pytest command with all options."""
        cmd = [sys.executable, "-m", "pytest"]
        cmd.extend(SUITE_PATHS[self.suite])

        if self.tags:
            cmd.extend(["-m", " or ".join(self.tags)])

        cmd.extend(["--cucumberjson", str(self.json_report)])

        if self.allure_report:
            cmd.extend(["--alluredir", str(self.allure_results)])

        cmd.append("-v" if self.verbose else "-q")
        cmd.extend(self.pytest_args)
        return cmd

    def _process_reports(self) -> None:
        """Move the runner output into the latest run directory."""
        logger.info("Processing reports...")
        try:
            processed = ReportProcessor(self.root_dir).process()
        except Exception as e:
            logger.warning(f"Report processing failed: {e}")
            return
        if not processed:
            logger.warning("Report processing finished with warnings")

    def _generate_allure_report(self) -> None:
        """Generate Allure HTML report."""
        logger.info("Generating Allure report...")

        try:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            report_path = self.reports_dir / f"allure-report-{timestamp}"

            subprocess.run([
                "allure", "generate",
                str(self.allure_results),
                "-o", str(report_path),
                "--clean"
            ], check=True)

            logger.info(f"Report generated: {report_path}")

        except FileNotFoundError:
            logger.warning("Allure CLI not found. Please install Allure to generate reports.")
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to generate Allure report: {e}")

    def _print_summary(self, exit_code: int) -> None:
        """Print test execution summary."""
        logger.info("=" * 60)
        if exit_code == 0:
            logger.info("✅ TEST EXECUTION COMPLETED SUCCESSFULLY")
        else:
            logger.error(f"❌ TEST EXECUTION FAILED (exit code: {exit_code})")
        logger.info("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="API BDD Test Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run all feature scenarios
  python run_tests.py

  # Run smoke scenarios against qa
  python run_tests.py --env qa --tags smoke

  # Pass options straight to pytest
  python run_tests.py --suite all -x -k token
        """
    )

    parser.add_argument(
        "--suite",
        choices=sorted(SUITE_PATHS),
        default="bdd",
        help="Test suite to run (default: bdd)"
    )

    parser.add_argument(
        "--tags",
        nargs="+",
        default=[],
        help="Markers / feature tags to select (e.g., smoke auth)"
    )

    parser.add_argument(
        "--env",
        dest="environment",
        default=None,
        help="Environment name from config/environment.yaml (default: ENVIRONMENT or dev)"
    )

    parser.add_argument(
        "--no-allure",
        action="store_true",
        help="Disable Allure results and report generation"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    init_logger(log_file=None)

    args, pytest_args = build_parser().parse_known_args(argv)
    if pytest_args[:1] == ["--"]:
        pytest_args = pytest_args[1:]

    runner = TestRunner(
        suite=args.suite,
        tags=args.tags,
        environment=args.environment,
        allure_report=not args.no_allure,
        verbose=args.verbose,
        pytest_args=pytest_args,
    )
    return runner.run()


if __name__ == "__main__":
    sys.exit(main())
