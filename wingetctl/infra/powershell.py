import shutil
from pathlib import Path


def find_powershell_executable() -> str:
    """Finds a usable PowerShell executable.

    Prefers PowerShell 7 (`pwsh`) when available, otherwise falls back to Windows
    PowerShell (`powershell`).
    """
    return shutil.which("pwsh") or shutil.which("powershell") or "powershell"


def ps_quote(value: str) -> str:
    """Quotes a value for PowerShell single-quoted literals."""
    return "'" + value.replace("'", "''") + "'"


def build_powershell_argv(command: str, shell: str | None = None) -> list[str]:
    """Builds an argv list to execute a PowerShell command.

    Args:
        command: PowerShell command string to execute.
        shell: PowerShell executable path/name. If omitted, it will be auto-detected.

    Returns:
        Argument vector suitable for `subprocess.run(...)`.
    """
    exe = shell or find_powershell_executable()
    return [
        exe,
        "-NoLogo",
        "-NoProfile",
        "-NonInteractive",
        "-ExecutionPolicy",
        "Bypass",
        "-Command",
        f"$ErrorActionPreference='Stop'; {command}",
    ]


def build_appx_install_argv(package_path: Path, shell: str | None = None) -> list[str]:
    """Builds the argv that registers an `.msixbundle` for the current user."""
    return build_powershell_argv(f"Add-AppxPackage -Path {ps_quote(str(package_path))}", shell)
