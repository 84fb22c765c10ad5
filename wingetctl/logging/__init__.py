from datetime import datetime
from pathlib import Path

from logly import logger

from wingetctl.config import AppConfig


def rotate_log_at_start(log_path: Path, now: datetime | None = None) -> Path | None:
    """Renames a leftover non-empty log file with a timestamp suffix.

    Args:
        log_path: Active log file path.
        now: Timestamp used for the suffix. Defaults to the current time.

    Returns:
        The path the old log was moved to, or None if nothing was rotated.
    """
    if not log_path.is_file() or log_path.stat().st_size == 0:
        return None

    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    target = log_path.with_name(f"{log_path.stem}-{stamp}{log_path.suffix}")
    counter = 1
    while target.exists():
        target = log_path.with_name(f"{log_path.stem}-{stamp}-{counter}{log_path.suffix}")
        counter += 1
    log_path.rename(target)
    return target


def init_logger(config: AppConfig, verbose: bool = False):
    """Initialize the logger.

    Console output goes to the terminal; every record is also appended to
    `config.log_path`, which is rotated at startup and whenever it grows past
    `config.log_size_limit`.

    """
    config.log_dir.mkdir(parents=True, exist_ok=True)
    rotated = rotate_log_at_start(config.log_path)

    logger.configure(
        level="DEBUG" if verbose else "INFO",
        color=True,
        console=True,
        auto_sink=True,
    )

    logger.add(
        str(config.log_path),
        size_limit=config.log_size_limit,
        retention=config.log_retention,
    )

    if rotated is not None:
        logger.info(f"previous log moved to {rotated.name}")
    logger.success("logger initialized!")

    return logger
