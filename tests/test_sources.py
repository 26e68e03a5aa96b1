"""
Tests for the default collaborators (psutil, nvidia-smi, sockets, requests).

All system and network calls are patched.

Run: python3 -m pytest tests/test_sources.py -v
"""

import socket
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import psutil
import pytest
import requests

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from opencode_diag.core.errors import (
    ProbeTimeout,
    ProbeUnavailable,
    SinkUnavailable,
    TransportFailure,
)
from opencode_diag.sources.clipboard import CommandClipboard
from opencode_diag.sources.gpu import parse_nvidia_smi, read_gpu_usage, shorten_gpu_name
from opencode_diag.sources.http import extract_error_message, http_probe
from opencode_diag.sources.metrics import DiskState, disk_state_for, read_system_metrics
from opencode_diag.sources.network import detect_vpn, is_vpn_interface, ping
from opencode_diag.sources.processes import count_terminals, find_process, terminal_group

MB = 1024 * 1024


def fake_proc(pid, name, rss_mb):
    proc = MagicMock()
    proc.info = {'pid': pid, 'name': name, 'memory_info': MagicMock(rss=rss_mb * MB)}
    return proc


class TestMetrics:
    """Tests for system metrics."""

    @pytest.mark.parametrize("pct,state", [
        (40.0, DiskState.OK),
        (85.0, DiskState.LOW),
        (94.9, DiskState.LOW),
        (95.0, DiskState.FULL),
    ])
    def test_disk_state(self, pct, state):
        """Disk usage thresholds at 85% and 95%."""
        assert disk_state_for(pct) is state

    def test_read_system_metrics(self):
        """Metrics are read from psutil."""
        with patch('psutil.cpu_percent', return_value=23.0), \
                patch('psutil.virtual_memory', return_value=MagicMock(percent=61.0, used=4096 * MB, total=8192 * MB)), \
                patch('psutil.disk_usage', return_value=MagicMock(percent=90.0)):
            metrics = read_system_metrics(sample_interval=0)

        assert metrics.cpu_pct == 23.0
        assert metrics.ram_pct == 61.0
        assert metrics.disk_state is DiskState.LOW
        assert metrics.ram_total_mb == 8192

    def test_read_failure(self):
        """psutil errors become ProbeUnavailable."""
        with patch('psutil.cpu_percent', side_effect=psutil.AccessDenied()):
            with pytest.raises(ProbeUnavailable):
                read_system_metrics(sample_interval=0)


class TestGpu:
    """Tests for GPU helpers."""

    @pytest.mark.parametrize("name,short", [
        ("NVIDIA GeForce RTX 4090", "RTX 4090"),
        ("NVIDIA GeForce GTX 1080 Ti", "GTX 1080 Ti"),
        ("Intel(R) UHD Graphics 630", "Intel UHD 630"),
        ("Intel(R) Iris(R) Xe Graphics", "Intel Iris"),
        ("AMD Radeon RX 6800 XT", "RX 6800 XT"),
        ("NVIDIA Tesla T4", "Tesla T4"),
        ("Some Very Long Generic Display Adapter", "Some Very Long Gener..."),
    ])
    def test_shorten_gpu_name(self, name, short):
        """Common vendor names are compacted."""
        assert shorten_gpu_name(name) == short

    def test_parse_nvidia_smi(self):
        """CSV rows become GpuInfo entries; bad numbers become None."""
        gpus = parse_nvidia_smi("NVIDIA GeForce RTX 3080, 42, 1024\nTesla T4, [N/A], 10\n\n")
        assert len(gpus) == 2
        assert gpus[0].usage_pct == 42.0
        assert gpus[0].memory_mb == 1024
        assert gpus[1].usage_pct is None

    def test_no_nvidia_smi(self):
        """Without nvidia-smi there are simply no GPUs."""
        with patch('shutil.which', return_value=None):
            assert read_gpu_usage() == []

    def test_nvidia_smi_failure(self):
        """A failing nvidia-smi is ProbeUnavailable."""
        failed = subprocess.CompletedProcess([], 9, stdout="", stderr="NVIDIA-SMI has failed\n")
        with patch('shutil.which', return_value='/usr/bin/nvidia-smi'), \
                patch('subprocess.run', return_value=failed):
            with pytest.raises(ProbeUnavailable, match="NVIDIA-SMI has failed"):
                read_gpu_usage()

    def test_nvidia_smi_timeout(self):
        """A hung nvidia-smi is ProbeUnavailable."""
        with patch('shutil.which', return_value='/usr/bin/nvidia-smi'), \
                patch('subprocess.run', side_effect=subprocess.TimeoutExpired('nvidia-smi', 5)):
            with pytest.raises(ProbeUnavailable):
                read_gpu_usage()


class TestPing:
    """Tests for TCP reachability."""

    def test_reachable(self):
        """A successful connect is reachable with latency."""
        with patch('socket.create_connection') as mock_connect:
            result = ping("example.com", timeout=1.0)
        mock_connect.assert_called_once_with(("example.com", 443), timeout=1.0)
        assert result.reachable is True
        assert result.latency_ms is not None

    def test_refused(self):
        """Connection errors are unreachable, not raised."""
        with patch('socket.create_connection', side_effect=ConnectionRefusedError("refused")):
            result = ping("example.com")
        assert result.reachable is False
        assert "refused" in result.error

    def test_timeout(self):
        """Timeouts are unreachable with a timeout message."""
        with patch('socket.create_connection', side_effect=socket.timeout()):
            result = ping("example.com", timeout=2.0)
        assert result.reachable is False
        assert "timed out" in result.error


class TestVpnDetection:
    """Tests for VPN interface heuristics."""

    @pytest.mark.parametrize("name,expected", [
        ("tun0", True),
        ("wg0", True),
        ("utun3", True),
        ("ppp0", True),
        ("ProtonVPN", True),
        ("eth0", False),
        ("wlan0", False),
        ("lo", False),
    ])
    def test_is_vpn_interface(self, name, expected):
        """Known VPN prefixes and names containing 'vpn' match."""
        assert is_vpn_interface(name) is expected

    def test_detect_only_up_interfaces(self):
        """Down VPN interfaces are ignored."""
        stats = {
            'eth0': MagicMock(isup=True),
            'wg0': MagicMock(isup=True),
            'tun1': MagicMock(isup=False),
        }
        with patch('psutil.net_if_stats', return_value=stats):
            state = detect_vpn()
        assert state.active is True
        assert state.interfaces == ('wg0',)

    def test_no_vpn(self):
        """No VPN interfaces is inactive."""
        with patch('psutil.net_if_stats', return_value={'eth0': MagicMock(isup=True)}):
            assert detect_vpn().active is False


class TestHttpProbe:
    """Tests for the requests-based HTTP probe."""

    def test_returns_status(self):
        """Any HTTP answer is returned, including errors."""
        response = MagicMock(status_code=503, text='{"error": "busy"}')
        with patch('requests.request', return_value=response) as mock_request:
            result = http_probe("https://api.example.com", timeout=3.0, method="GET")
        assert result.status_code == 503
        assert result.body_excerpt == '{"error": "busy"}'
        assert mock_request.call_args[1]['timeout'] == 3.0

    def test_head_has_no_body(self):
        """HEAD requests carry no excerpt."""
        with patch('requests.request', return_value=MagicMock(status_code=200, text="")):
            assert http_probe("https://api.example.com").body_excerpt == ""

    def test_timeout(self):
        """requests timeouts become ProbeTimeout."""
        with patch('requests.request', side_effect=requests.exceptions.ReadTimeout()):
            with pytest.raises(ProbeTimeout):
                http_probe("https://api.example.com", timeout=1.0)

    def test_connection_error(self):
        """Connection failures become TransportFailure."""
        with patch('requests.request', side_effect=requests.exceptions.ConnectionError("dns")):
            with pytest.raises(TransportFailure):
                http_probe("https://api.example.com")

    @pytest.mark.parametrize("body,message", [
        ('{"error": {"message": "Overloaded"}}', "Overloaded"),
        ('{"error": "bad key"}', "bad key"),
        ('{"message": "quota"}', "quota"),
        ('{"status": "fine"}', None),
        ('[1, 2]', None),
        ('{"error": {"message": "server at\\ncapacity"}}', "server at capacity"),
        ('{"message": "  spaced\\t out  "}', "spaced out"),
        ('{"error": "   "}', None),
        ('\nService Unavailable\nmore', "Service Unavailable"),
        ('', None),
    ])
    def test_extract_error_message(self, body, message):
        """Provider messages are found in common JSON shapes or plain text."""
        assert extract_error_message(body) == message


class TestProcesses:
    """Tests for process enumeration."""

    def test_find_process(self):
        """Matches are case-insensitive and summed."""
        procs = [
            fake_proc(10, "bash", 5),
            fake_proc(20, "OpenCode", 300),
            fake_proc(21, "opencode-helper", 200),
        ]
        with patch('psutil.process_iter', return_value=procs):
            info = find_process("opencode")
        assert info.pid == 20
        assert info.memory_mb == 500
        assert info.count == 2

    def test_find_process_absent(self):
        """No match returns None."""
        with patch('psutil.process_iter', return_value=[fake_proc(1, "init", 1)]):
            assert find_process("opencode") is None

    @pytest.mark.parametrize("name,group", [
        ("cmd.exe", "cmd"),
        ("powershell.exe", "ps"),
        ("pwsh", "ps"),
        ("WindowsTerminal.exe", "wt"),
        ("zsh", "sh"),
        ("kitty", "term"),
        ("sshd", None),
        ("python3", None),
    ])
    def test_terminal_group(self, name, group):
        """Shell and terminal names map to their group."""
        assert terminal_group(name) == group

    def test_count_terminals(self):
        """Terminals are counted per group with their memory."""
        procs = [
            fake_proc(1, "cmd.exe", 10),
            fake_proc(2, "cmd.exe", 10),
            fake_proc(3, "powershell.exe", 80),
            fake_proc(4, "chrome.exe", 900),
        ]
        with patch('psutil.process_iter', return_value=procs):
            terminals = count_terminals()
        assert terminals.total == 3
        assert terminals.describe() == "cmd:2 ps:1"
        assert terminals.memory_mb == 100


class TestClipboard:
    """Tests for the clipboard sink."""

    def test_write_text(self):
        """Text is piped to the copy command."""
        done = subprocess.CompletedProcess(['xclip'], 0, stdout="", stderr="")
        with patch('subprocess.run', return_value=done) as mock_run:
            CommandClipboard(command=['xclip', '-selection', 'clipboard']).write_text("report")
        assert mock_run.call_args[0][0] == ['xclip', '-selection', 'clipboard']
        assert mock_run.call_args[1]['input'] == "report"

    def test_no_command_available(self):
        """Without any copy command the sink is unavailable."""
        with patch('shutil.which', return_value=None), patch('sys.platform', 'linux'):
            with pytest.raises(SinkUnavailable):
                CommandClipboard().write_text("report")

    def test_command_failure(self):
        """A failing copy command is reported."""
        failed = subprocess.CompletedProcess(['pbcopy'], 1, stdout="", stderr="no display")
        with patch('subprocess.run', return_value=failed):
            with pytest.raises(SinkUnavailable, match="no display"):
                CommandClipboard(command=['pbcopy']).write_text("report")
