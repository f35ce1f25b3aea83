import subprocess

from netprobe.agent import probes
from netprobe.agent.ping_stats import ping_statistics
from netprobe.agent.probes import DiagnosticKind, build_command, run_diagnostic


def test_fixed_command_lines():
    assert build_command(DiagnosticKind.REACHABILITY, "1.1.1.1") == ["ping", "-O", "-c", "10", "1.1.1.1"]
    assert build_command(DiagnosticKind.PATH, "1.1.1.1") == ["mtr", "-z", "-j", "1.1.1.1"]


def test_captures_output_and_exit(monkeypatch):
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        return subprocess.CompletedProcess(cmd, 1, stdout=b"PING 1.1.1.1\n", stderr=b"")

    monkeypatch.setattr(probes.subprocess, "run", fake_run)
    result = run_diagnostic("1.1.1.1", DiagnosticKind.REACHABILITY)
    assert seen["cmd"][0] == "ping"
    assert result.output == "PING 1.1.1.1\n"
    assert result.ok is False
    assert result.returncode == 1


def test_missing_program_is_a_failed_run(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(probes.subprocess, "run", fake_run)
    result = run_diagnostic("1.1.1.1", DiagnosticKind.PATH)
    assert result.ok is False
    assert result.output == ""
    assert result.returncode is None


def test_undecodable_bytes_do_not_lose_the_run(monkeypatch):
    stdout = (
        b"PING 1.1.1.1 (1.1.1.1) 56(84) bytes of data.\n"
        b"64 bytes from h\xffst.example (1.1.1.1): icmp_seq=1 ttl=57 time=10.0 ms\n"
        b"64 bytes from h\xffst.example (1.1.1.1): icmp_seq=2 ttl=57 time=14.0 ms\n"
        b"\n"
    )

    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr=b"\xfe")

    monkeypatch.setattr(probes.subprocess, "run", fake_run)
    result = run_diagnostic("1.1.1.1", DiagnosticKind.REACHABILITY)
    assert "�" in result.output
    stats = ping_statistics(result.output)
    assert stats.loss == 0
    assert stats.avg == 12.0
