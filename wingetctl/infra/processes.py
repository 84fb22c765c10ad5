import time
from typing import Iterable

import psutil
from logly import logger


def find_processes(names: Iterable[str]) -> list[psutil.Process]:
    """Returns running processes whose executable name is in `names` (case-insensitive)."""
    wanted = {name.lower() for name in names}
    found: list[psutil.Process] = []
    for proc in psutil.process_iter(["name"]):
        name = (proc.info.get("name") or "").lower()
        if name in wanted:
            found.append(proc)
    return found


class HelperProcessWait:
    """Waits once for an installer helper process, or sleeps a fixed interval.

    Installers launched by winget can keep finalizing in a separate process (e.g.
    `msiexec.exe`) after winget itself has exited. When such a process is running
    this blocks until it exits, bounded by `timeout_sec`; otherwise it sleeps
    `settle_seconds`.
    """

    def __init__(
        self,
        process_names: Iterable[str] = ("msiexec.exe",),
        settle_seconds: float = 5.0,
        timeout_sec: float = 600,
    ):
        self._process_names = tuple(process_names)
        self._settle_seconds = settle_seconds
        self._timeout_sec = timeout_sec

    def __call__(self) -> None:
        try:
            helpers = find_processes(self._process_names)
        except psutil.Error:
            logger.exception("Failed to enumerate processes")
            helpers = []

        if not helpers:
            logger.debug(f"No helper process running, sleeping {self._settle_seconds}s")
            time.sleep(self._settle_seconds)
            return

        logger.info(
            f"Waiting for {len(helpers)} installer helper process(es) to exit "
            f"(timeout={self._timeout_sec}s)"
        )
        _, alive = psutil.wait_procs(helpers, timeout=self._timeout_sec)
        if alive:
            logger.warning(f"{len(alive)} helper process(es) still running after timeout")
