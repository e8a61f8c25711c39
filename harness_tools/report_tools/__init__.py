"""
================================================================================
Report Tools
================================================================================

Per-scenario report directories and HTML rendering.

Modules:
    - report_tracker: Run directory allocation and metadata.json
    - report_processor: Post-run relocation of runner output and index.html
    - html_report: index.html / report.html rendering from cucumber JSON

================================================================================
"""

from .html_report import calculate_stats, extract_steps, render_index, render_step_report
from .report_processor import ReportProcessor
from .report_tracker import (
    FilesystemError,
    ReportRunTracker,
    RunStatus,
    default_reports_root,
    sanitize_scenario_name,
)

__all__ = [
    "FilesystemError",
    "ReportProcessor",
    "ReportRunTracker",
    "RunStatus",
    "calculate_stats",
    "default_reports_root",
    "extract_steps",
    "render_index",
    "render_step_report",
    "sanitize_scenario_name",
]
