import urllib.request
from pathlib import Path

from logly import logger


def download_file(url: str, destination: Path, *, timeout_sec: int = 60) -> Path:
    """Downloads `url` to `destination`.

    A partially written file is removed before the error is re-raised.

    Raises:
        urllib.error.URLError: Network failure.
        OSError: Local write failure or connection error.
    """
    request = urllib.request.Request(url, headers={"User-Agent": "Mozilla/5.0"})
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        with urllib.request.urlopen(request, timeout=timeout_sec) as response, destination.open(
            "wb"
        ) as handle:
            while True:
                chunk = response.read(256 * 1024)
                if not chunk:
                    break
                handle.write(chunk)
    except OSError:
        if destination.exists():
            logger.warning(f"Removing partial download {destination}")
            destination.unlink()
        raise
    logger.info(f"Downloaded {url} to {destination}")
    return destination
