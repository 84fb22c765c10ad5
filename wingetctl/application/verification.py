from dataclasses import dataclass
from typing import Callable, Protocol

from logly import logger

from wingetctl.core.winget_table_parser import find_by_id
from wingetctl.core.winget_types import ParseResult


class PackageQueries(Protocol):
    def list_packages(self, package_id: str | None = None) -> ParseResult: ...

    def list_upgrades(self) -> ParseResult: ...


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    succeeded: bool
    attempted_retries: int = 0


class Verifier:
    """Confirms the effect of a mutating operation by re-querying winget.

    An unconfirmed first check is followed by one call to `wait` and exactly one
    more check. There is no further retry.
    """

    def __init__(self, queries: PackageQueries, wait: Callable[[], None]):
        self._queries = queries
        self._wait = wait

    def verify_installed(self, package_id: str) -> VerificationOutcome:
        return self._check_twice(lambda: self._is_listed(package_id), f"{package_id} installed")

    def verify_absent(self, package_id: str) -> VerificationOutcome:
        return self._check_twice(lambda: self._is_absent(package_id), f"{package_id} absent")

    def verify_upgraded(self, package_id: str) -> VerificationOutcome:
        return self._check_twice(
            lambda: self._no_longer_upgradable(package_id), f"{package_id} upgraded"
        )

    def _is_listed(self, package_id: str) -> bool:
        report = self._queries.list_packages(package_id)
        return find_by_id(report, package_id) is not None

    def _is_absent(self, package_id: str) -> bool:
        report = self._queries.list_packages(package_id)
        if report.failed:
            return False
        return find_by_id(report, package_id) is None

    def _no_longer_upgradable(self, package_id: str) -> bool:
        report = self._queries.list_upgrades()
        if report.failed:
            return False
        return find_by_id(report, package_id) is None

    def _check_twice(self, check: Callable[[], bool], label: str) -> VerificationOutcome:
        if check():
            return VerificationOutcome(True, 0)

        logger.info(f"Could not confirm {label} yet, waiting before re-checking")
        self._wait()
        confirmed = check()
        if not confirmed:
            logger.warning(f"Could not confirm {label} after re-check")
        return VerificationOutcome(confirmed, 1)
