"""
Text Report Generator

Renders a sealed DiagnosticPass (and optionally the error log) into a
plain-text block suitable for the clipboard or a terminal. Rendering is
a pure function of its inputs: the only timestamp shown is the pass's
own finished_at, so the same pass always renders byte-identically.

Example:
    === OpenCode Diagnostics Report ===
    Time: 2026-10-16 12:00:05
    Overall: CRITICAL

    [OK] LOCAL RESOURCES - NOMINAL
         CPU: 12% :: RAM: 48% :: DISK: OK

    [XX] CLAUDE API - OVERLOADED
         HOST: api.anthropic.com :: STATUS: 503 :: MESSAGE: server at capacity

    DIAGNOSIS: CLAUDE API OVERLOADED - Claude API is over capacity. Try again later.
"""

from typing import List, Optional, Sequence

from .models import CheckResult, DiagnosticPass, ErrorLogEntry

REPORT_TITLE = "=== OpenCode Diagnostics Report ==="
DETAIL_SEPARATOR = " :: "
INDENT = "     "
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_TIME_FORMAT = "%H:%M:%S"

ALL_CLEAR = "All systems operational."
NO_CHECKS = "No checks enabled."


def select_diagnosis(diagnostic_pass: DiagnosticPass) -> Optional[CheckResult]:
    """Highest-severity non-OK result; the first in registry order wins ties."""
    worst: Optional[CheckResult] = None
    for result in diagnostic_pass.results:
        if result.is_ok():
            continue
        if worst is None or result.status > worst.status:
            worst = result
    return worst


def format_diagnosis(diagnostic_pass: DiagnosticPass) -> str:
    """The single DIAGNOSIS line for a pass."""
    if not diagnostic_pass.results:
        return f"DIAGNOSIS: {NO_CHECKS}"
    culprit = select_diagnosis(diagnostic_pass)
    if culprit is None:
        return f"DIAGNOSIS: {ALL_CLEAR}"
    line = f"DIAGNOSIS: {culprit.display_name} {culprit.headline}"
    if culprit.fix_hint:
        line += f" - {culprit.fix_hint}"
    return line


def _flat(text: str) -> str:
    """Collapse whitespace so each value stays on its line."""
    return " ".join(str(text).split())


def format_detail(result: CheckResult) -> str:
    return DETAIL_SEPARATOR.join(f"{key}: {_flat(value)}" for key, value in result.detail.items())


def format_result(result: CheckResult) -> List[str]:
    lines = [f"{result.status.glyph} {result.display_name} - {result.headline}"]
    detail = format_detail(result)
    if detail:
        lines.append(f"{INDENT}{detail}")
    if result.error:
        lines.append(f"{INDENT}Error: {_flat(result.error)}")
    return lines


def format_error_log(entries: Sequence[ErrorLogEntry]) -> List[str]:
    if not entries:
        return ["ERROR LOG: none"]
    lines = [f"ERROR LOG ({len(entries)}):"]
    for entry in entries:
        lines.append(
            f"  {entry.status.glyph} {entry.display_name} x{entry.occurrence_count}"
            f"{DETAIL_SEPARATOR}first {entry.first_seen.strftime(LOG_TIME_FORMAT)}"
            f"{DETAIL_SEPARATOR}last {entry.last_seen.strftime(LOG_TIME_FORMAT)}"
            f"{DETAIL_SEPARATOR}{_flat(entry.last_message)}"
        )
    return lines


def render_report(
    diagnostic_pass: DiagnosticPass,
    error_log: Optional[Sequence[ErrorLogEntry]] = None,
    title: str = REPORT_TITLE,
) -> str:
    """Render a pass as text. error_log entries are appended when given."""
    lines = [
        title,
        f"Time: {diagnostic_pass.finished_at.strftime(TIME_FORMAT)}",
        f"Overall: {diagnostic_pass.overall_status.label}",
        "",
    ]

    for result in diagnostic_pass.results:
        lines.extend(format_result(result))
        lines.append("")

    lines.append(format_diagnosis(diagnostic_pass))

    if error_log is not None:
        lines.append("")
        lines.extend(format_error_log(error_log))

    return "\n".join(lines) + "\n"
