from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


@dataclass(frozen=True, slots=True)
class PackageRecord:
    """Represents one row of a `winget list` or `winget upgrade` report.

    Attributes:
        name: Display name.
        id: Package identifier (unique per source, not across sources).
        installed_version: Installed version string, if the report has one.
        available_version: Newer version string (upgrade listings only).
        source: Source name (e.g. "winget", "msstore").
    """

    name: str
    id: str
    installed_version: str | None = None
    available_version: str | None = None
    source: str | None = None


class ParseStatus(Enum):
    """Distinguishes a genuinely empty report from text that could not be read."""

    EMPTY = "empty"
    PARSE_FAILURE = "parse_failure"
    ROWS = "rows"


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of parsing one report."""

    status: ParseStatus
    records: tuple[PackageRecord, ...] = ()

    def __iter__(self) -> Iterator[PackageRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> bool:
        return self.status is ParseStatus.PARSE_FAILURE


@dataclass(frozen=True, slots=True)
class ColumnOffsets:
    """Start offsets of the columns after `Name` (which starts at 0)."""

    id_start: int
    version_start: int
    available_start: int
    source_start: int


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of one install/uninstall/upgrade attempt.

    Attributes:
        target_id: Package identifier the operation was aimed at.
        operation: "install", "uninstall" or "upgrade".
        succeeded: Whether the post-operation state check confirmed the change.
        attempted_retries: Number of extra verification passes performed.
        raw_output: Captured tool output, kept for diagnosis.
        message: Short human-readable outcome.
    """

    target_id: str
    operation: str
    succeeded: bool
    attempted_retries: int = 0
    raw_output: str = ""
    message: str = ""


@dataclass(slots=True)
class BatchSummary:
    """Aggregate of several operations, in processing order.

    `listing_failed` is set when the upgrade listing could not be read, in which
    case nothing was attempted and the batch does not count as successful.
    """

    results: list[OperationResult] = field(default_factory=list)
    listing_failed: bool = False

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.succeeded)

    @property
    def succeeded(self) -> bool:
        return not self.listing_failed and self.failure_count == 0

    def add(self, result: OperationResult) -> None:
        self.results.append(result)
