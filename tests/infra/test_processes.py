from wingetctl.infra import processes
from wingetctl.infra.processes import HelperProcessWait, find_processes


class _FakeProcess:
    def __init__(self, name: str | None) -> None:
        self.info = {"name": name}


def test_find_processes_matches_names_case_insensitively(monkeypatch) -> None:
    procs = [_FakeProcess("MsiExec.exe"), _FakeProcess("explorer.exe"), _FakeProcess(None)]
    monkeypatch.setattr(processes.psutil, "process_iter", lambda attrs: iter(procs))

    assert find_processes(["msiexec.exe"]) == [procs[0]]


def test_helper_process_wait_sleeps_when_no_helper_runs(monkeypatch) -> None:
    sleeps: list[float] = []
    monkeypatch.setattr(processes, "find_processes", lambda names: [])
    monkeypatch.setattr(processes.time, "sleep", sleeps.append)

    HelperProcessWait(settle_seconds=2.5)()

    assert sleeps == [2.5]


def test_helper_process_wait_blocks_on_running_helper(monkeypatch) -> None:
    helper = _FakeProcess("msiexec.exe")
    waited: list[tuple[list, float]] = []
    sleeps: list[float] = []

    def fake_wait_procs(procs, timeout):
        waited.append((list(procs), timeout))
        return list(procs), []

    monkeypatch.setattr(processes, "find_processes", lambda names: [helper])
    monkeypatch.setattr(processes.psutil, "wait_procs", fake_wait_procs)
    monkeypatch.setattr(processes.time, "sleep", sleeps.append)

    HelperProcessWait(timeout_sec=30)()

    assert waited == [([helper], 30)]
    assert sleeps == []
