"""
================================================================================
Report Run Tracker
================================================================================

Gives every scenario execution an isolated, discoverable output directory:

    <reports_root>/<Sanitized_Scenario_Name>_<YYYY-MM-DD_HH-mm-ss>/
        metadata.json   run summary written at scenario end
        report.json     cucumber JSON produced by the BDD runner
        report.html     human-readable step report
        index.html      summary combining metadata and report.json

One tracker is created per test session and handed to the scenario hooks.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
import re
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from harness_tools.common.polling import wait_for_file

from .html_report import extract_steps, render_index


MAX_SCENARIO_NAME_LENGTH = 50
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
FALLBACK_SCENARIO_NAME = "Scenario"

METADATA_FILE = "metadata.json"
JSON_REPORT_FILE = "report.json"
HTML_REPORT_FILE = "report.html"
INDEX_FILE = "index.html"


class FilesystemError(Exception):
    """Raised when a report file or directory cannot be read or written."""
    pass


class RunStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"


def default_reports_root() -> Path:
    """REPORTS_ROOT_DIR, else C:\\Reports on Windows and /tmp/Reports elsewhere."""
    env_root = os.environ.get("REPORTS_ROOT_DIR")
    if env_root:
        return Path(env_root)
    if sys.platform == "win32":
        return Path("C:\\Reports")
    return Path("/tmp/Reports")


def sanitize_scenario_name(scenario_name: str) -> str:
    """
    Make a scenario name safe for use as a directory name.

    Drops everything but ASCII letters, digits, whitespace and hyphens,
    replaces whitespace runs with underscores and truncates to 50 characters.
    """
    name = re.sub(r"[^a-zA-Z0-9\s-]", "", scenario_name)
    name = re.sub(r"\s+", "_", name)
    name = name[:MAX_SCENARIO_NAME_LENGTH]
    return name or FALLBACK_SCENARIO_NAME


def _iso_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _start_time_key(metadata: Dict[str, Any]) -> float:
    """Epoch seconds of metadata["startTime"]; 0 when missing or unparseable."""
    value = metadata.get("startTime") if isinstance(metadata, dict) else None
    if not value:
        return 0.0
    try:
        moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


class ReportRunTracker:
    """
    Allocates run directories and records run metadata.

    Usage:
        >>> tracker = ReportRunTracker(Path("/tmp/Reports"), environment="dev")
        >>> run_dir = tracker.initialize_test_run("Login: edge/case?")
        >>> run_dir.name
        'Login_edgecase_2024-01-01_10-00-00'
        >>> tracker.save_test_metadata({"status": "PASSED", "steps": 4})
    """

    def __init__(
        self,
        reports_root: Optional[Path] = None,
        environment: Optional[str] = None,
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    ) -> None:
        """
        Args:
            reports_root: Root directory for run directories (see default_reports_root)
            environment: Environment name recorded in metadata (default: ENVIRONMENT or dev)
            clock: Returns the current timezone-aware datetime
        """
        self.reports_root = Path(reports_root) if reports_root else default_reports_root()
        self.environment = environment or os.environ.get("ENVIRONMENT", "dev")
        self._clock = clock

        self.current_test_run_dir: Optional[Path] = None
        self.current_scenario_name: str = ""
        self.test_run_start_time: Optional[datetime] = None

        self._ensure_reports_directory()

    def _ensure_reports_directory(self) -> None:
        if self.reports_root.exists():
            return
        try:
            self.reports_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(
                f"Cannot create reports directory {self.reports_root}: {e}"
            ) from e
        logger.info(f"Reports directory created: {self.reports_root}")

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def initialize_test_run(self, scenario_name: str) -> Path:
        """
        Create the run directory for a scenario and make it current.

        Directory names are claimed atomically: a name already present on
        disk (another tracker's run, or any earlier run) gets a numeric
        suffix (_2, _3, ...). The only directory reused is this tracker's own
        previous run dir when it never received a metadata.json.

        A failed call leaves no current run.

        Raises:
            FilesystemError: The directory cannot be created
        """
        previous_run_dir = self.current_test_run_dir
        self.current_test_run_dir = None

        start_time = self._clock()
        folder_name = f"{sanitize_scenario_name(scenario_name)}_{start_time.strftime(TIMESTAMP_FORMAT)}"

        self._ensure_reports_directory()
        run_dir = self._claim_run_dir(folder_name, previous_run_dir)

        self.current_scenario_name = scenario_name
        self.test_run_start_time = start_time
        self.current_test_run_dir = run_dir
        logger.info(f"Test run directory created: {run_dir}")
        return run_dir

    def _claim_run_dir(self, folder_name: str, previous_run_dir: Optional[Path]) -> Path:
        run_dir = self.reports_root / folder_name
        suffix = 2
        while True:
            if run_dir == previous_run_dir and not (run_dir / METADATA_FILE).exists():
                return run_dir
            try:
                run_dir.mkdir()
                return run_dir
            except FileExistsError:
                run_dir = self.reports_root / f"{folder_name}_{suffix}"
                suffix += 1
            except OSError as e:
                raise FilesystemError(f"Cannot create run directory {run_dir}: {e}") from e

    def _require_run_dir(self) -> Path:
        if self.current_test_run_dir is None:
            raise FilesystemError(
                "Test run not initialized. Call initialize_test_run() first."
            )
        return self.current_test_run_dir

    @property
    def metadata_path(self) -> Path:
        return self._require_run_dir() / METADATA_FILE

    @property
    def json_report_path(self) -> Path:
        return self._require_run_dir() / JSON_REPORT_FILE

    @property
    def html_report_path(self) -> Path:
        return self._require_run_dir() / HTML_REPORT_FILE

    @property
    def index_path(self) -> Path:
        return self._require_run_dir() / INDEX_FILE

    def save_test_metadata(
        self, metadata: Optional[Dict[str, Any]] = None, **fields: Any
    ) -> Dict[str, Any]:
        """
        Write metadata.json for the current run.

        Caller fields (status, steps, failureMessage, ...) are merged over the
        recorded scenarioName, startTime, endTime, duration (ms) and environment.

        Returns:
            The record that was written

        Raises:
            FilesystemError: No current run, or the file cannot be written
        """
        metadata_path = self.metadata_path
        end_time = self._clock()
        start_time = self.test_run_start_time or end_time

        record: Dict[str, Any] = {
            "scenarioName": self.current_scenario_name,
            "startTime": _iso_utc(start_time),
            "endTime": _iso_utc(end_time),
            "duration": int((end_time - start_time).total_seconds() * 1000),
            "environment": self.environment,
            "status": RunStatus.UNKNOWN.value,
        }
        for key, value in {**(metadata or {}), **fields}.items():
            record[key] = value.value if isinstance(value, Enum) else value

        try:
            metadata_path.write_text(json.dumps(record, indent=2), encoding="utf-8")
        except OSError as e:
            raise FilesystemError(f"Cannot write metadata {metadata_path}: {e}") from e

        logger.info(f"Test metadata saved: {metadata_path}")
        return record

    def get_all_test_runs(self) -> List[Dict[str, Any]]:
        """
        Summaries of every run under the reports root, newest first.

        Each summary is {"name", "path", "metadata"}. Runs without readable
        metadata get {} and sort last.
        """
        if not self.reports_root.exists():
            return []

        try:
            entries = list(self.reports_root.iterdir())
        except OSError as e:
            raise FilesystemError(f"Cannot list {self.reports_root}: {e}") from e

        test_runs = []
        for folder in entries:
            if not folder.is_dir():
                continue
            test_runs.append({
                "name": folder.name,
                "path": folder,
                "metadata": self._read_metadata(folder / METADATA_FILE),
            })

        test_runs.sort(key=lambda run: _start_time_key(run["metadata"]), reverse=True)
        return test_runs

    @staticmethod
    def _read_metadata(metadata_path: Path) -> Dict[str, Any]:
        if not metadata_path.exists():
            return {}
        try:
            data = json.loads(metadata_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read metadata from {metadata_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # Index page
    # ------------------------------------------------------------------

    def parse_test_steps(
        self,
        fallback_report: Optional[Path] = None,
        wait_timeout: float = 3.0,
    ) -> List[Dict[str, Any]]:
        """
        Steps of the run's cucumber JSON report.

        Uses the run's report.json, else fallback_report. Waits briefly for the
        file to be flushed; returns [] when it never shows up or cannot be parsed.
        """
        report_path = self.json_report_path
        if not report_path.exists() and fallback_report is not None:
            report_path = Path(fallback_report)

        wait_for_file(report_path, timeout=wait_timeout, interval=0.2, min_size=10)
        if not report_path.exists():
            return []

        try:
            report_data = json.loads(report_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Error parsing test steps from {report_path}: {e}")
            return []
        return extract_steps(report_data)

    def generate_index(
        self,
        fallback_report: Optional[Path] = None,
        log_content: Optional[str] = None,
        wait_timeout: float = 3.0,
    ) -> Path:
        """
        Write index.html for the current run.

        Raises:
            FilesystemError: No current run, or the file cannot be written
        """
        index_path = self.index_path
        steps = self.parse_test_steps(fallback_report, wait_timeout=wait_timeout)
        metadata = self._read_metadata(self.metadata_path)
        metadata.setdefault("scenarioName", self.current_scenario_name)

        html = render_index(
            metadata,
            steps,
            run_id=self._require_run_dir().name,
            generated_at=self._clock().strftime("%Y-%m-%d %H:%M:%S"),
            log_content=log_content,
        )
        try:
            index_path.write_text(html, encoding="utf-8")
        except OSError as e:
            raise FilesystemError(f"Cannot write index {index_path}: {e}") from e

        logger.info(f"Test report index created: {index_path}")
        return index_path


__all__ = [
    "FilesystemError",
    "ReportRunTracker",
    "RunStatus",
    "default_reports_root",
    "sanitize_scenario_name",
]
