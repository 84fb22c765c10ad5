import re

from .winget_table_parser import sanitize

# Download progress such as "  ████▒▒▒▒  1.00 MB / 4.20 MB" or "  42%".
_PROGRESS_RE = re.compile(
    r"^[\s█▒▓░#=>.\-]*("
    r"\d{1,3}\s*%"
    r"|[\d.,]+\s*[KMG]?i?B\s*/\s*[\d.,]+\s*[KMG]?i?B"
    r")\s*$",
    re.IGNORECASE,
)
_SPINNER_RE = re.compile(r"^[\s\-\\|/]*$")
_NON_BASIC_RE = re.compile(r"[^\x20-\x7e\t]")


def filter_output_for_log(text: str) -> str:
    """Reduces raw winget output to the lines worth keeping in the log.

    Blank lines, spinner frames, progress bars and percentage lines are dropped,
    and characters outside printable ASCII are removed from the remaining lines.

    Args:
        text: Raw stdout/stderr text.

    Returns:
        The filtered text, one kept line per line.
    """
    kept: list[str] = []
    for line in sanitize(text).split("\n"):
        if _SPINNER_RE.match(line):
            continue
        if _PROGRESS_RE.match(line):
            continue
        cleaned = _NON_BASIC_RE.sub("", line).rstrip()
        if not cleaned.strip():
            continue
        if _PROGRESS_RE.match(cleaned):
            continue
        kept.append(cleaned)
    return "\n".join(kept)
