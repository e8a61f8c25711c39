"""
================================================================================
HTML Report Rendering
================================================================================

Renders the human-readable pages of a run directory from cucumber JSON
(report.json) and run metadata (metadata.json):
    - index.html: run summary, step statistics, step table, captured log
    - report.html: every feature/scenario/step of the cucumber JSON

================================================================================
"""

from html import escape
from string import Template
from typing import Any, Dict, List, Optional

# Cucumber JSON durations are nanoseconds
NANOS_PER_MILLI = 1_000_000

STATUS_COLORS = {
    "PASSED": "#28a745",
    "FAILED": "#dc3545",
    "UNKNOWN": "#6c757d",
}

STATUS_ICONS = {
    "passed": "✓",
    "failed": "✗",
    "skipped": "⊘",
}


# ================================================================================
# Cucumber JSON helpers
# ================================================================================

def extract_steps(report_data: Any) -> List[Dict[str, Any]]:
    """Steps of the first scenario of the first feature, or []."""
    if not isinstance(report_data, list) or not report_data or not isinstance(report_data[0], dict):
        return []
    elements = report_data[0].get("elements") or []
    if not elements or not isinstance(elements[0], dict):
        return []
    return elements[0].get("steps") or []


def step_status(step: Dict[str, Any]) -> str:
    return (step.get("result") or {}).get("status") or "unknown"


def calculate_stats(steps: List[Dict[str, Any]]) -> Dict[str, int]:
    """
    Count steps by outcome.

    Anything that is neither passed nor failed counts as skipped.
    """
    stats = {"total": 0, "passed": 0, "failed": 0, "skipped": 0}
    for step in steps:
        stats["total"] += 1
        status = step_status(step)
        if status == "passed":
            stats["passed"] += 1
        elif status == "failed":
            stats["failed"] += 1
        else:
            stats["skipped"] += 1
    return stats


def overall_status(metadata: Dict[str, Any], stats: Dict[str, int]) -> str:
    if metadata.get("status"):
        return str(metadata["status"]).upper()
    if stats["failed"]:
        return "FAILED"
    if stats["total"]:
        return "PASSED"
    return "UNKNOWN"


def _format_duration(step: Dict[str, Any]) -> str:
    duration = (step.get("result") or {}).get("duration")
    if not duration:
        return "N/A"
    return f"{duration / NANOS_PER_MILLI:.2f}ms"


def _step_rows(steps: List[Dict[str, Any]]) -> str:
    rows = []
    for index, step in enumerate(steps, start=1):
        status = step_status(step)
        css = status if status in ("passed", "failed") else "skipped"
        text = f"{step.get('keyword', '')}{step.get('name', '')}"
        rows.append(
            f'<tr class="step-{css}">'
            f'<td><span class="status-icon {css}">{STATUS_ICONS[css]}</span></td>'
            f"<td>{index}</td>"
            f"<td>{escape(text)}</td>"
            f"<td>{escape(status.upper())}</td>"
            f"<td>{_format_duration(step)}</td>"
            "</tr>"
        )
        error = (step.get("result") or {}).get("error_message")
        if error:
            rows.append(
                '<tr class="error-row"><td colspan="5">'
                f'<div class="error-details">{escape(str(error))}</div>'
                "</td></tr>"
            )
    return "\n".join(rows)


def _steps_table(steps: List[Dict[str, Any]]) -> str:
    if not steps:
        return '<div class="no-steps">No steps data available</div>'
    return (
        '<table class="steps-table"><thead><tr>'
        "<th>Status</th><th>Step #</th><th>Step Description</th>"
        "<th>Result</th><th>Duration</th>"
        f"</tr></thead><tbody>{_step_rows(steps)}</tbody></table>"
    )


# ================================================================================
# Templates
# ================================================================================

_STYLE = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: 'Segoe UI', Tahoma, Verdana, sans-serif; background: #eef0f7; padding: 20px; }
.container { max-width: 1200px; margin: 0 auto; background: white; border-radius: 10px;
             box-shadow: 0 10px 40px rgba(0, 0, 0, 0.15); overflow: hidden; }
.header { background: #4b5bb5; color: white; padding: 30px; text-align: center; }
.header h1 { font-size: 2em; margin-bottom: 10px; }
.test-status { font-size: 1.8em; font-weight: bold; margin-top: 15px; }
.content { padding: 30px; }
.stats-grid, .info-section { display: grid; grid-template-columns: repeat(auto-fit, minmax(160px, 1fr));
                             gap: 20px; margin-bottom: 30px; }
.stat-card, .info-item { background: #f8f9fa; padding: 20px; border-radius: 8px; }
.stat-card .label, .info-item label { color: #666; font-size: 0.85em; text-transform: uppercase; font-weight: 600; }
.stat-card .value { font-size: 2.2em; font-weight: bold; color: #333; }
h2 { color: #333; margin: 20px 0; border-bottom: 2px solid #4b5bb5; padding-bottom: 10px; }
.steps-table { width: 100%; border-collapse: collapse; }
.steps-table th, .steps-table td { padding: 10px 14px; border-bottom: 1px solid #e9ecef; text-align: left; }
.status-icon { display: inline-block; width: 24px; height: 24px; border-radius: 50%; text-align: center;
               line-height: 24px; color: white; font-weight: bold; }
.status-icon.passed { background: #28a745; }
.status-icon.failed { background: #dc3545; }
.status-icon.skipped { background: #ffc107; color: #333; }
.step-passed { background: #f0fff4; }
.step-failed, .error-row { background: #fff5f5; }
.step-skipped { background: #fffbf0; }
.error-details { color: #dc3545; font-family: 'Courier New', monospace; font-size: 0.85em;
                 white-space: pre-wrap; border-left: 3px solid #dc3545; padding: 10px; }
.no-steps { text-align: center; padding: 40px; color: #999; }
pre.log { background: #f4f4f4; padding: 1em; border: 1px solid #ccc; max-height: 400px; overflow: auto; }
.footer { background: #f8f9fa; padding: 20px; text-align: center; color: #999; font-size: 0.9em; }
"""

_INDEX_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Test Report - $title</title>
  <style>$style</style>
</head>
<body>
  <div class="container">
    <div class="header" style="border-bottom: 5px solid $status_color;">
      <h1>Test Report</h1>
      <div class="scenario-name">$title</div>
      <div class="test-status" style="color: $status_color;">$status</div>
    </div>
    <div class="content">
      <div class="stats-grid">
        <div class="stat-card"><div class="label">Total Steps</div><div class="value">$total</div></div>
        <div class="stat-card"><div class="label">Passed</div><div class="value">$passed</div></div>
        <div class="stat-card"><div class="label">Failed</div><div class="value">$failed</div></div>
        <div class="stat-card"><div class="label">Skipped</div><div class="value">$skipped</div></div>
      </div>
      <div class="info-section">
        <div class="info-item"><label>Start Time</label><div class="value">$start_time</div></div>
        <div class="info-item"><label>Duration</label><div class="value">$duration</div></div>
        <div class="info-item"><label>Environment</label><div class="value">$environment</div></div>
        <div class="info-item"><label>Test Run ID</label><div class="value">$run_id</div></div>
      </div>
      $failure
      <h2>Test Steps ($passed/$total Passed)</h2>
      $steps
      $log
    </div>
    <div class="footer"><p>Generated on $generated_at</p></div>
  </div>
</body>
</html>
""")

_STEP_REPORT_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Step Report</title>
  <style>$style</style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>Step Report</h1></div>
    <div class="content">$body</div>
  </div>
</body>
</html>
""")


def render_index(
    metadata: Dict[str, Any],
    steps: List[Dict[str, Any]],
    run_id: str,
    generated_at: str,
    log_content: Optional[str] = None,
) -> str:
    """Render index.html for one run directory."""
    stats = calculate_stats(steps)
    status = overall_status(metadata, stats)
    duration = metadata.get("duration")

    failure = ""
    if metadata.get("failureMessage"):
        failure = (
            "<h2>Failure</h2>"
            f'<div class="error-details">{escape(str(metadata["failureMessage"]))}</div>'
        )

    log = ""
    if log_content:
        log = f'<h2>Logger Output</h2><pre class="log">{escape(log_content)}</pre>'

    return _INDEX_TEMPLATE.substitute(
        style=_STYLE,
        title=escape(str(metadata.get("scenarioName") or "Test Run")),
        status=escape(status),
        status_color=STATUS_COLORS.get(status, STATUS_COLORS["UNKNOWN"]),
        start_time=escape(str(metadata.get("startTime", "N/A"))),
        duration=f"{duration}ms" if duration is not None else "N/A",
        environment=escape(str(metadata.get("environment", "dev"))),
        run_id=escape(run_id),
        failure=failure,
        steps=_steps_table(steps),
        log=log,
        generated_at=escape(generated_at),
        **stats,
    )


def render_step_report(report_data: Any) -> str:
    """Render report.html covering every feature and scenario of cucumber JSON."""
    sections = []
    for feature in report_data if isinstance(report_data, list) else []:
        sections.append(f"<h2>Feature: {escape(str(feature.get('name', '')))}</h2>")
        for element in feature.get("elements") or []:
            steps = element.get("steps") or []
            stats = calculate_stats(steps)
            sections.append(
                f"<h3>{escape(str(element.get('keyword', 'Scenario')))}: "
                f"{escape(str(element.get('name', '')))} "
                f"({stats['passed']}/{stats['total']} passed)</h3>"
            )
            sections.append(_steps_table(steps))

    body = "\n".join(sections) or '<div class="no-steps">No features in report</div>'
    return _STEP_REPORT_TEMPLATE.substitute(style=_STYLE, body=body)


__all__ = [
    "calculate_stats",
    "extract_steps",
    "overall_status",
    "render_index",
    "render_step_report",
]
