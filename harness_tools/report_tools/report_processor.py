"""
================================================================================
Report Post-Processor
================================================================================

Runs after the BDD test process exits. The runner writes its reports into a
shared working directory (reports/current); this module moves them into the
most recent run directory, renders index.html and removes the working
directory.

Nothing here raises: every filesystem problem is logged as a warning so the
runner can always return the test process's own exit code.

Usage:
    processor = ReportProcessor(project_root)
    processor.process()

================================================================================
"""

import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger

from harness_tools.common.log_config import DEFAULT_LOG_FILE
from harness_tools.common.polling import WaitResult
from harness_tools.common.polling import wait_for_file as _wait_for_file

from .html_report import extract_steps, render_index, render_step_report
from .report_tracker import (
    HTML_REPORT_FILE,
    INDEX_FILE,
    JSON_REPORT_FILE,
    METADATA_FILE,
    TIMESTAMP_FORMAT,
    default_reports_root,
)


WORKING_DIR_NAME = "current"
REPORT_WAIT_TIMEOUT = 20.0
REPORT_WAIT_INTERVAL = 0.3
REPORT_MIN_SIZE = 20


class ReportProcessor:
    """
    Relocates runner output into the latest run directory.
    """

    def __init__(
        self,
        project_root: Union[str, Path],
        reports_root: Optional[Union[str, Path]] = None,
        log_file: Optional[Union[str, Path]] = DEFAULT_LOG_FILE,
    ):
        self.project_root = Path(project_root)
        self.reports_root = Path(reports_root) if reports_root else default_reports_root()
        self.working_dir = self.project_root / "reports" / WORKING_DIR_NAME
        self.log_file = Path(log_file) if log_file else None

    def find_latest_run_dir(self) -> Path:
        """
        Newest run directory under the reports root by modification time.

        Falls back to a fresh manual_run_<timestamp> directory when there is
        none (for example when the runner was started outside a scenario).
        """
        candidates = []
        if self.reports_root.exists():
            try:
                for entry in self.reports_root.iterdir():
                    if entry.is_dir() and entry.name != WORKING_DIR_NAME:
                        candidates.append((entry.stat().st_mtime, entry))
            except OSError as e:
                logger.warning(f"Cannot scan reports root {self.reports_root}: {e}")

        if candidates:
            candidates.sort(key=lambda item: item[0], reverse=True)
            return candidates[0][1]

        fallback = self.reports_root / f"manual_run_{datetime.now().strftime(TIMESTAMP_FORMAT)}"
        fallback.mkdir(parents=True, exist_ok=True)
        logger.info(f"No run directory found, using fallback: {fallback}")
        return fallback

    @staticmethod
    def wait_for_file(
        path: Union[str, Path],
        timeout: float = REPORT_WAIT_TIMEOUT,
        interval: float = REPORT_WAIT_INTERVAL,
        min_size: int = REPORT_MIN_SIZE,
    ) -> WaitResult:
        return _wait_for_file(path, timeout=timeout, interval=interval, min_size=min_size)

    def process(self, wait_timeout: float = REPORT_WAIT_TIMEOUT) -> bool:
        """
        Move working reports into the latest run directory and render its index.

        Returns:
            True when every step succeeded, False if anything was skipped or failed
        """
        ok = True
        try:
            target = self.find_latest_run_dir()
        except OSError as e:
            logger.warning(f"Cannot determine target run directory: {e}")
            return False

        logger.info(f"Processing reports into: {target}")

        json_source = self.working_dir / JSON_REPORT_FILE
        wait = self.wait_for_file(json_source, timeout=wait_timeout)
        if not wait:
            logger.warning(
                f"JSON report not ready after {wait.elapsed:.1f}s ({wait.attempts} checks)"
            )
            ok = False

        report_data = self._load_report(json_source) if json_source.exists() else None
        if json_source.exists():
            ok = self._copy(json_source, target / JSON_REPORT_FILE) and ok

        html_source = self.working_dir / HTML_REPORT_FILE
        if html_source.exists():
            ok = self._copy(html_source, target / HTML_REPORT_FILE) and ok
        elif report_data is not None:
            ok = self._write(target / HTML_REPORT_FILE, render_step_report(report_data)) and ok

        ok = self._write_index(target, report_data) and ok
        ok = self._remove_working_dir() and ok
        return ok

    def _load_report(self, path: Path) -> Optional[Any]:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Cannot parse JSON report {path}: {e}")
            return None

    def _read_metadata(self, run_dir: Path) -> Dict[str, Any]:
        metadata_path = run_dir / METADATA_FILE
        if not metadata_path.exists():
            return {}
        try:
            data = json.loads(metadata_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Cannot read metadata {metadata_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _read_log(self) -> Optional[str]:
        if self.log_file is None or not self.log_file.exists():
            return None
        try:
            return self.log_file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Cannot read log file {self.log_file}: {e}")
            return None

    def _write_index(self, run_dir: Path, report_data: Optional[Any]) -> bool:
        metadata = self._read_metadata(run_dir)
        html = render_index(
            metadata,
            extract_steps(report_data),
            run_id=run_dir.name,
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            log_content=self._read_log(),
        )
        return self._write(run_dir / INDEX_FILE, html)

    @staticmethod
    def _copy(source: Path, destination: Path) -> bool:
        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            logger.warning(f"Failed to copy {source} -> {destination}: {e}")
            return False
        logger.info(f"Copied {source.name} to {destination.parent}")
        return True

    @staticmethod
    def _write(path: Path, content: str) -> bool:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to write {path}: {e}")
            return False
        logger.info(f"Wrote {path}")
        return True

    def _remove_working_dir(self) -> bool:
        if not self.working_dir.exists():
            return True
        try:
            shutil.rmtree(self.working_dir)
        except OSError as e:
            logger.warning(f"Failed to remove working directory {self.working_dir}: {e}")
            return False
        logger.debug(f"Removed working directory: {self.working_dir}")
        return True


__all__ = [
    "ReportProcessor",
]
