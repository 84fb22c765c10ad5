import subprocess

from wingetctl.infra import subprocess_runner
from wingetctl.infra.subprocess_runner import CommandResult, decode_output, run_command


class _DummyCompletedProcess:
    def __init__(self, stdout: bytes, stderr: bytes, returncode: int) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


def test_run_command_returns_decoded_result_on_non_windows(monkeypatch) -> None:
    monkeypatch.setattr(subprocess_runner.os, "name", "posix", raising=False)

    def fake_run(argv: list[str], **kwargs: dict) -> _DummyCompletedProcess:
        assert argv == ["example", "arg"]
        assert kwargs == {"capture_output": True, "timeout": 15}
        return _DummyCompletedProcess(b"stdout", b"stderr", 3)

    monkeypatch.setattr(subprocess_runner.subprocess, "run", fake_run)

    result = run_command(["example", "arg"], timeout_sec=15)

    assert result == CommandResult(["example", "arg"], 3, "stdout", "stderr")
    assert not result.succeeded


def test_run_command_adds_creationflags_on_windows(monkeypatch) -> None:
    monkeypatch.setattr(subprocess_runner.os, "name", "nt", raising=False)

    def fake_run(argv: list[str], **kwargs: dict) -> _DummyCompletedProcess:
        assert argv == ["example"]
        assert kwargs == {
            "capture_output": True,
            "timeout": 8,
            "creationflags": subprocess_runner._CREATE_NO_WINDOW,
        }
        return _DummyCompletedProcess(b"", b"", 0)

    monkeypatch.setattr(subprocess_runner.subprocess, "run", fake_run)

    result = run_command(["example"], timeout_sec=8)

    assert result.succeeded


def test_run_command_reports_timeout_as_code_124(monkeypatch) -> None:
    def fake_run(argv: list[str], **kwargs: object) -> _DummyCompletedProcess:
        timeout = kwargs.get("timeout")
        assert isinstance(timeout, (int, float))
        raise subprocess.TimeoutExpired(cmd=argv, timeout=timeout)

    monkeypatch.setattr(subprocess_runner.subprocess, "run", fake_run)

    result = run_command(["slow-command"], timeout_sec=4)

    assert (result.returncode, result.stdout, result.stderr) == (
        124,
        "",
        "timeout: command exceeded limit",
    )


def test_run_command_reports_unexpected_exception_as_code_1(monkeypatch) -> None:
    def fake_run(argv: list[str], **kwargs: dict) -> _DummyCompletedProcess:
        raise FileNotFoundError("no such executable")

    monkeypatch.setattr(subprocess_runner.subprocess, "run", fake_run)

    result = run_command(["broken-command"], timeout_sec=4)

    assert (result.returncode, result.stderr) == (1, "no such executable")


def test_decode_output_falls_back_to_cp1252() -> None:
    assert decode_output("café".encode("utf-8")) == "café"
    assert decode_output(b"caf\xe9") == "café"


def test_command_result_output_joins_stdout_and_stderr() -> None:
    assert CommandResult(["x"], 0, "out\n", "err").output == "out\nerr"
    assert CommandResult(["x"], 0, "", "err").output == "err"
    assert CommandResult(["x"], 0, "out", "").output == "out"
