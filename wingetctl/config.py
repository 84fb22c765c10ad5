import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final, Mapping

from logly import logger

DEFAULT_LOG_DIR: Final[Path] = Path(__file__).parent.parent / "logs"
DEFAULT_LOG_SIZE_LIMIT: Final[str] = "10MB"
DEFAULT_LOG_RETENTION: Final[int] = 3
DEFAULT_LIST_TIMEOUT_SEC: Final[int] = 120
DEFAULT_OPERATION_TIMEOUT_SEC: Final[int] = 1800
DEFAULT_HELPER_PROCESS_NAMES: Final[tuple[str, ...]] = ("msiexec.exe",)
DEFAULT_SETTLE_SECONDS: Final[float] = 5.0
DEFAULT_HELPER_WAIT_TIMEOUT_SEC: Final[int] = 600
DEFAULT_BOOTSTRAP_URL: Final[str] = "https://aka.ms/getwinget"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Settings shared by every component, built once at startup.

    Attributes:
        executable: Explicit winget path. Auto-detected when None.
        log_dir: Directory holding `wingetctl.log` and its rotated copies.
        log_size_limit: Size above which the log file is rotated.
        log_retention: Number of rotated log files to keep.
        list_timeout_sec: Timeout for `list`/`upgrade` listing calls.
        operation_timeout_sec: Timeout for install/uninstall/upgrade calls.
        helper_process_names: Installer helper processes waited on before re-checking.
        settle_seconds: Fixed wait when no helper process is running.
        helper_wait_timeout_sec: Upper bound for waiting on helper processes.
        bootstrap_url: Download location of the App Installer bundle.
    """

    executable: str | None = None
    log_dir: Path = DEFAULT_LOG_DIR
    log_size_limit: str = DEFAULT_LOG_SIZE_LIMIT
    log_retention: int = DEFAULT_LOG_RETENTION
    list_timeout_sec: int = DEFAULT_LIST_TIMEOUT_SEC
    operation_timeout_sec: int = DEFAULT_OPERATION_TIMEOUT_SEC
    helper_process_names: tuple[str, ...] = DEFAULT_HELPER_PROCESS_NAMES
    settle_seconds: float = DEFAULT_SETTLE_SECONDS
    helper_wait_timeout_sec: int = DEFAULT_HELPER_WAIT_TIMEOUT_SEC
    bootstrap_url: str = DEFAULT_BOOTSTRAP_URL

    @property
    def log_path(self) -> Path:
        return self.log_dir / "wingetctl.log"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Builds a config from defaults overridden by `WINGETCTL_*` variables."""
        env = os.environ if environ is None else environ
        config = cls()

        executable = env.get("WINGETCTL_EXECUTABLE", "").strip()
        if executable:
            config = replace(config, executable=executable)

        log_dir = env.get("WINGETCTL_LOG_DIR", "").strip()
        if log_dir:
            config = replace(config, log_dir=Path(log_dir))

        size_limit = env.get("WINGETCTL_LOG_SIZE_LIMIT", "").strip()
        if size_limit:
            config = replace(config, log_size_limit=size_limit)

        retention = _read_number(env, "WINGETCTL_LOG_RETENTION", int)
        if retention is not None:
            config = replace(config, log_retention=retention)

        settle = _read_number(env, "WINGETCTL_SETTLE_SECONDS", float)
        if settle is not None:
            config = replace(config, settle_seconds=settle)

        helper_timeout = _read_number(env, "WINGETCTL_HELPER_WAIT_TIMEOUT", int)
        if helper_timeout is not None:
            config = replace(config, helper_wait_timeout_sec=helper_timeout)

        return config


def _read_number(env: Mapping[str, str], key: str, kind: type[int] | type[float]):
    raw = env.get(key, "").strip()
    if not raw:
        return None
    try:
        value = kind(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {key}={raw!r}")
        return None
    if value < 0:
        logger.warning(f"Ignoring negative {key}={raw!r}")
        return None
    return value
