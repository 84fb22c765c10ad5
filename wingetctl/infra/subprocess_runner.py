import os
import subprocess
from dataclasses import dataclass
from typing import Final, Sequence

from logly import logger

_CREATE_NO_WINDOW: Final[int] = 0x08000000


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: Sequence[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr}"
        return self.stdout or self.stderr


def decode_output(data: bytes) -> str:
    """Decodes process output bytes with a small encoding fallback list.

    Args:
        data: Raw bytes to decode.

    Returns:
        Decoded text.
    """
    for enc in ("utf-8", "cp1252"):
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")


def run_command(argv: Sequence[str], timeout_sec: int = 60) -> CommandResult:
    """Runs a command to completion and captures its output.

    Timeouts are reported as return code 124 and launch failures as return code 1,
    with the error text in `stderr`; neither raises.
    """
    argv = list(argv)
    try:
        logger.debug(f"Starting subprocess timeout={timeout_sec}s argv={' '.join(argv)}")
        kwargs: dict = {
            "capture_output": True,
            "timeout": timeout_sec,
        }

        if os.name == "nt":
            kwargs["creationflags"] = _CREATE_NO_WINDOW

        result = subprocess.run(argv, **kwargs)
        logger.debug(f"Subprocess finished returncode={result.returncode}")
        return CommandResult(
            argv,
            result.returncode,
            decode_output(result.stdout),
            decode_output(result.stderr),
        )

    except subprocess.TimeoutExpired:
        logger.warning(f"Subprocess timed out after {timeout_sec}s: {argv[0]}")
        return CommandResult(argv, 124, "", "timeout: command exceeded limit")
    except Exception as e:
        logger.exception("Subprocess execution failed")
        return CommandResult(argv, 1, "", str(e))
