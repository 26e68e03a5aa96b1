"""
Tests for the text report generator.

Run: python3 -m pytest tests/test_report.py -v
"""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))
sys.path.insert(0, str(Path(__file__).parent))

from opencode_diag.core.error_log import ErrorLog
from opencode_diag.core.models import Status
from opencode_diag.core.orchestrator import Orchestrator
from opencode_diag.core.registry import CheckRegistry
from opencode_diag.core.report import (
    DETAIL_SEPARATOR,
    REPORT_TITLE,
    format_diagnosis,
    render_report,
    select_diagnosis,
)
from opencode_diag.probes.api import CLAUDE, ApiProbe
from opencode_diag.sources.http import HttpResponse
from fakes import FakeProbe, make_pass, make_result


class TestRenderReport:
    """Tests for render_report()."""

    def test_layout(self):
        """Header, one block per result, then the diagnosis."""
        diagnostic_pass = make_pass(1, [
            make_result("local", Status.OK, headline="NOMINAL", detail={"CPU": "12%", "RAM": "48%"}),
            make_result("vpn", Status.OK, headline="INACTIVE"),
        ])
        report = render_report(diagnostic_pass)
        assert report == (
            f"{REPORT_TITLE}\n"
            "Time: 2026-10-16 12:00:02\n"
            "Overall: OK\n"
            "\n"
            "[OK] LOCAL - NOMINAL\n"
            "     CPU: 12% :: RAM: 48%\n"
            "\n"
            "[OK] VPN - INACTIVE\n"
            "\n"
            "DIAGNOSIS: All systems operational.\n"
        )

    def test_deterministic(self):
        """Rendering the same pass twice is byte-identical."""
        diagnostic_pass = make_pass(3, [
            make_result("a", Status.WARNING, detail={"X": "1"}, error="slow"),
            make_result("b", Status.CRITICAL, fix_hint="Restart it."),
        ])
        assert render_report(diagnostic_pass) == render_report(diagnostic_pass)

    def test_error_line(self):
        """A result with an error gets an Error: line."""
        diagnostic_pass = make_pass(1, [
            make_result("internet", Status.CRITICAL, headline="TIMEOUT", error="timed out"),
        ])
        assert "     Error: timed out\n" in render_report(diagnostic_pass)

    def test_error_log_section(self):
        """Error log entries are appended when given."""
        diagnostic_pass = make_pass(1, [make_result("api", Status.WARNING, headline="RATE_LIMITED")])
        log = ErrorLog.from_passes([diagnostic_pass])
        report = render_report(diagnostic_pass, log.entries())
        assert "ERROR LOG (1):" in report
        assert "[!!] API x1" in report
        assert report.endswith("RATE_LIMITED\n")

    def test_multiline_values_stay_on_one_line(self):
        """Line breaks inside detail values and errors are collapsed."""
        diagnostic_pass = make_pass(1, [
            make_result("api", Status.CRITICAL, headline="OVERLOADED",
                        detail={"MESSAGE": "server at\ncapacity"}, error="reset\r\n by peer"),
        ])
        report = render_report(diagnostic_pass)
        assert "     MESSAGE: server at capacity\n" in report
        assert "     Error: reset by peer\n" in report

    def test_empty_error_log(self):
        """An empty log renders as 'none'; None omits the section."""
        diagnostic_pass = make_pass(1, [make_result("a", Status.OK)])
        assert "ERROR LOG: none" in render_report(diagnostic_pass, [])
        assert "ERROR LOG" not in render_report(diagnostic_pass)

    def test_empty_pass(self):
        """A pass with no checks says so."""
        report = render_report(make_pass(1, []))
        assert "Overall: UNKNOWN" in report
        assert "DIAGNOSIS: No checks enabled." in report


class TestDiagnosis:
    """Tests for picking the DIAGNOSIS line."""

    def test_highest_severity_wins(self):
        """The most severe non-OK result is named."""
        diagnostic_pass = make_pass(1, [
            make_result("a", Status.WARNING),
            make_result("b", Status.CRITICAL, headline="DOWN"),
            make_result("c", Status.UNKNOWN),
        ])
        assert select_diagnosis(diagnostic_pass).check_id == "b"
        assert format_diagnosis(diagnostic_pass) == "DIAGNOSIS: B DOWN"

    def test_first_in_order_wins_ties(self):
        """Among equally severe results the first registered is named."""
        diagnostic_pass = make_pass(1, [
            make_result("first", Status.CRITICAL),
            make_result("second", Status.CRITICAL),
        ])
        assert select_diagnosis(diagnostic_pass).check_id == "first"

    def test_fix_hint_appended(self):
        """A fix hint follows the culprit."""
        diagnostic_pass = make_pass(1, [
            make_result("vpn", Status.CRITICAL, headline="BLOCKING", fix_hint="Disconnect the VPN."),
        ])
        assert format_diagnosis(diagnostic_pass) == "DIAGNOSIS: VPN BLOCKING - Disconnect the VPN."

    def test_unknown_only(self):
        """UNKNOWN results are still named over an all-clear."""
        diagnostic_pass = make_pass(1, [make_result("vpn", Status.UNKNOWN, headline="ACTIVE")])
        assert format_diagnosis(diagnostic_pass) == "DIAGNOSIS: VPN ACTIVE"


class TestOverloadedProviderScenario:
    """End to end: a 503 from the Claude API through a full pass."""

    def test_503_names_claude(self):
        """HTTP 503 'server at capacity' gives a CRITICAL OVERLOADED diagnosis."""
        def http(url, timeout, method):
            return HttpResponse(503, 42.0, '{"error": {"message": "server at capacity"}}')

        registry = CheckRegistry()
        registry.register(FakeProbe("local_resources", "LOCAL RESOURCES", headline="NOMINAL"))
        registry.register(ApiProbe(CLAUDE, http=http))
        orchestrator = Orchestrator(registry, probe_timeout=2.0,
                                    clock=lambda: datetime(2026, 10, 16, 9, 30, 0))

        diagnostic_pass = orchestrator.run_pass()
        report = render_report(diagnostic_pass)

        assert diagnostic_pass.overall_status is Status.CRITICAL
        assert "[XX] CLAUDE API - OVERLOADED" in report
        assert f"STATUS: 503{DETAIL_SEPARATOR}" in report
        assert "MESSAGE: server at capacity" in report
        assert "DIAGNOSIS: CLAUDE API OVERLOADED" in report
        assert "Time: 2026-10-16 09:30:00" in report
