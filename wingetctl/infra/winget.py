import os
import shutil
from pathlib import Path
from typing import Callable, Final, Sequence

from wingetctl.core.winget_table_parser import parse_winget_table
from wingetctl.core.winget_types import ParseResult

from .subprocess_runner import CommandResult, run_command

Runner = Callable[[Sequence[str], int], CommandResult]

SOURCE_AGREEMENT: Final[str] = "--accept-source-agreements"
PACKAGE_AGREEMENT: Final[str] = "--accept-package-agreements"
NON_INTERACTIVE: Final[str] = "--disable-interactivity"


class WingetNotFoundError(RuntimeError):
    pass


def find_winget_executable() -> str | None:
    """Finds the winget executable.

    Looks on PATH first, then in the per-user WindowsApps directory where the App
    Installer places its execution alias.

    Returns:
        The executable path, or None if winget is not installed.
    """
    found = shutil.which("winget")
    if found:
        return found
    local_appdata = os.environ.get("LOCALAPPDATA")
    if local_appdata:
        candidate = Path(local_appdata) / "Microsoft" / "WindowsApps" / "winget.exe"
        if candidate.exists():
            return str(candidate)
    return None


def build_winget_argv(executable: str, verb: str, *args: str) -> list[str]:
    """Builds an argv list for one winget invocation.

    Args:
        executable: winget path/name.
        verb: Subcommand (`list`, `upgrade`, `install`, `uninstall`).
        *args: Extra arguments appended after the verb.

    Returns:
        Argument vector suitable for `subprocess.run(...)`.
    """
    return [executable, verb, *args]


class WingetClient:
    """Thin wrapper around the winget CLI.

    Listing calls return parsed reports; mutating calls return the raw
    `CommandResult` because their exit code is not trusted as the success signal.
    """

    def __init__(
        self,
        executable: str | None = None,
        *,
        runner: Runner = run_command,
        list_timeout_sec: int = 120,
        operation_timeout_sec: int = 1800,
    ):
        self._executable = executable or find_winget_executable()
        self._runner = runner
        self._list_timeout_sec = list_timeout_sec
        self._operation_timeout_sec = operation_timeout_sec

    @property
    def executable(self) -> str | None:
        return self._executable

    def is_available(self) -> bool:
        return self._executable is not None

    def version(self) -> str:
        result = self._run(["--version"], self._list_timeout_sec)
        return result.stdout.strip()

    def list_packages(self, package_id: str | None = None) -> ParseResult:
        args = ["list"]
        if package_id:
            args.extend(["--id", package_id, "--exact"])
        args.extend([SOURCE_AGREEMENT, NON_INTERACTIVE])
        result = self._run(args, self._list_timeout_sec)
        return parse_winget_table(result.stdout)

    def list_upgrades(self) -> ParseResult:
        result = self._run(
            ["upgrade", SOURCE_AGREEMENT, NON_INTERACTIVE], self._list_timeout_sec
        )
        return parse_winget_table(result.stdout)

    def install(self, package_id: str, *, force: bool = False) -> CommandResult:
        args = ["install", *self._target(package_id), "--silent"]
        if force:
            args.append("--force")
        args.extend([PACKAGE_AGREEMENT, SOURCE_AGREEMENT, NON_INTERACTIVE])
        return self._run(args, self._operation_timeout_sec)

    def uninstall(self, package_id: str, *, force: bool = False) -> CommandResult:
        args = ["uninstall", *self._target(package_id), "--silent"]
        if force:
            args.append("--force")
        args.extend([SOURCE_AGREEMENT, NON_INTERACTIVE])
        return self._run(args, self._operation_timeout_sec)

    def upgrade(self, package_id: str) -> CommandResult:
        args = [
            "upgrade",
            *self._target(package_id),
            "--silent",
            PACKAGE_AGREEMENT,
            SOURCE_AGREEMENT,
            NON_INTERACTIVE,
        ]
        return self._run(args, self._operation_timeout_sec)

    @staticmethod
    def _target(package_id: str) -> list[str]:
        return ["--id", package_id, "--exact"]

    def _run(self, args: list[str], timeout_sec: int) -> CommandResult:
        if not self._executable:
            raise WingetNotFoundError("winget executable not found in PATH")
        argv = build_winget_argv(self._executable, args[0], *args[1:])
        return self._runner(argv, timeout_sec)
