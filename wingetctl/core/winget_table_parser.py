import re
from typing import Final, Iterable

from .winget_types import ColumnOffsets, PackageRecord, ParseResult, ParseStatus

# winget draws its spinner with bare CRs and may colour output with ANSI sequences.
_ANSI_OSC_RE = re.compile(r"\x1b\][^\x07]*(?:\x07|\x1b\\)")
_ANSI_CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_ANSI_2CHAR_RE = re.compile(r"\x1b[@-Z\\-_]")

# Control characters, zero-width padding, BOM and the truncation ellipsis, both
# as U+2026 and as its cp437 mojibake.
_ARTIFACT_RE = re.compile(r"\u0393\u00c7\u00aa|[\x00-\x1f\x7f\u200b-\u200f\ufeff\u2026]")

# Rows shorter than `source_start + _MIN_SOURCE_WIDTH` cannot hold a source field.
_MIN_SOURCE_WIDTH: Final[int] = 5

_NO_DATA_MARKERS: Final[tuple[str, ...]] = (
    "no installed package found",
    "no available upgrade found",
    "no applicable upgrade found",
    "no applicable update found",
    "no package found",
)


def sanitize(text: str) -> str:
    """Normalizes newlines and strips common ANSI escape sequences."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ANSI_OSC_RE.sub("", text)
    text = _ANSI_CSI_RE.sub("", text)
    text = _ANSI_2CHAR_RE.sub("", text)
    return text


def is_separator_line(line: str) -> bool:
    s = line.strip()
    return len(s) >= 3 and all(ch == "-" for ch in s)


def compute_column_offsets(header: str) -> ColumnOffsets | None:
    """Computes column start offsets from a report header line.

    Labels are read positionally in the order Name, Id, Version, Available, Source,
    so localized headers work as long as the column order is unchanged. A header
    without the Available column (plain `winget list` output) yields an empty
    Available slice.

    Args:
        header: The line directly above the dashed separator.

    Returns:
        The column offsets, or None if the header has fewer than four labels or the
        labels cannot be located in order.
    """
    labels = header.split()
    if len(labels) < 4:
        return None

    if len(labels) >= 5:
        wanted = labels[1:5]
    else:
        wanted = [labels[1], labels[2], labels[3]]

    starts: list[int] = []
    position = header.find(labels[0])
    for label in wanted:
        position = header.find(label, position + 1)
        if position < 0:
            return None
        starts.append(position)

    if len(starts) == 3:
        id_start, version_start, source_start = starts
        available_start = source_start
    else:
        id_start, version_start, available_start, source_start = starts

    return ColumnOffsets(
        id_start=id_start,
        version_start=version_start,
        available_start=available_start,
        source_start=source_start,
    )


def _clean(value: str) -> str:
    return _ARTIFACT_RE.sub("", value).strip()


def split_row(line: str, offsets: ColumnOffsets) -> PackageRecord | None:
    """Slices one data row at the given offsets.

    Returns:
        The record, or None when the Id slice is empty.
    """
    package_id = _clean(line[offsets.id_start : offsets.version_start])
    if not package_id:
        return None

    installed = _clean(line[offsets.version_start : offsets.available_start])
    available = _clean(line[offsets.available_start : offsets.source_start])
    source = _clean(line[offsets.source_start :])

    return PackageRecord(
        name=_clean(line[: offsets.id_start]),
        id=package_id,
        installed_version=installed or None,
        available_version=available or None,
        source=source or None,
    )


def _looks_empty(text: str) -> bool:
    lower = text.lower()
    return not lower.strip() or any(marker in lower for marker in _NO_DATA_MARKERS)


def parse_winget_table(text: str) -> ParseResult:
    """Parses a `winget list` / `winget upgrade` report into records.

    Lines repeating the header are skipped. The table ends at the first blank line,
    so trailing sections (such as the "require explicit targeting" table of
    `winget upgrade`) are not merged in.

    Args:
        text: Raw stdout of the listing command.

    Returns:
        EMPTY for "no data" reports, PARSE_FAILURE when the text does not have the
        header/separator shape, ROWS otherwise.
    """
    lines = sanitize(text).split("\n")

    separator_index = next(
        (i for i, line in enumerate(lines) if is_separator_line(line)), None
    )
    if separator_index is None:
        if _looks_empty(text):
            return ParseResult(ParseStatus.EMPTY)
        return ParseResult(ParseStatus.PARSE_FAILURE)

    if separator_index == 0:
        return ParseResult(ParseStatus.PARSE_FAILURE)

    header = lines[separator_index - 1]
    offsets = compute_column_offsets(header)
    if offsets is None:
        return ParseResult(ParseStatus.PARSE_FAILURE)

    min_length = offsets.source_start + _MIN_SOURCE_WIDTH
    records: list[PackageRecord] = []
    for line in lines[separator_index + 1 :]:
        if not line.strip():
            break
        if len(line) < min_length or is_separator_line(line):
            continue
        if line.strip() == header.strip():
            continue
        record = split_row(line, offsets)
        if record is not None:
            records.append(record)

    if not records:
        return ParseResult(ParseStatus.EMPTY)
    return ParseResult(ParseStatus.ROWS, tuple(records))


def find_by_id(records: Iterable[PackageRecord], package_id: str) -> PackageRecord | None:
    """Returns the first record whose id equals `package_id` (case-insensitive)."""
    target = package_id.casefold()
    for record in records:
        if record.id.casefold() == target:
            return record
    return None


def find_by_prefix(records: Iterable[PackageRecord], prefix: str) -> list[PackageRecord]:
    """Returns records whose id starts with `prefix` (case-insensitive)."""
    needle = prefix.casefold()
    return [record for record in records if record.id.casefold().startswith(needle)]
