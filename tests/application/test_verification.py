from wingetctl.application.verification import VerificationOutcome, Verifier
from wingetctl.core.winget_types import PackageRecord, ParseResult, ParseStatus


def _rows(*ids: str) -> ParseResult:
    if not ids:
        return ParseResult(ParseStatus.EMPTY)
    return ParseResult(ParseStatus.ROWS, tuple(PackageRecord(name=i, id=i) for i in ids))


class _ScriptedQueries:
    """Returns the scripted reports in order, repeating the last one."""

    def __init__(self, listings: list[ParseResult], upgrades: list[ParseResult] | None = None):
        self._listings = listings
        self._upgrades = upgrades or [_rows()]
        self.list_calls = 0
        self.upgrade_calls = 0

    def list_packages(self, package_id: str | None = None) -> ParseResult:
        report = self._listings[min(self.list_calls, len(self._listings) - 1)]
        self.list_calls += 1
        return report

    def list_upgrades(self) -> ParseResult:
        report = self._upgrades[min(self.upgrade_calls, len(self._upgrades) - 1)]
        self.upgrade_calls += 1
        return report


class _CountingWait:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def test_verify_installed_confirms_immediately_without_waiting() -> None:
    queries = _ScriptedQueries([_rows("Foo.App")])
    wait = _CountingWait()

    outcome = Verifier(queries, wait).verify_installed("Foo.App")

    assert outcome == VerificationOutcome(True, 0)
    assert wait.calls == 0
    assert queries.list_calls == 1


def test_verify_installed_waits_then_rechecks_once() -> None:
    queries = _ScriptedQueries([_rows(), _rows("Foo.App")])
    wait = _CountingWait()

    outcome = Verifier(queries, wait).verify_installed("Foo.App")

    assert outcome == VerificationOutcome(True, 1)
    assert wait.calls == 1
    assert queries.list_calls == 2


def test_verify_installed_gives_up_after_one_extra_check() -> None:
    queries = _ScriptedQueries([_rows()])
    wait = _CountingWait()

    outcome = Verifier(queries, wait).verify_installed("Foo.App")

    assert outcome == VerificationOutcome(False, 1)
    assert wait.calls == 1
    assert queries.list_calls == 2


def test_verify_installed_requires_exact_id() -> None:
    queries = _ScriptedQueries([_rows("Foo.App.Beta")])

    assert not Verifier(queries, _CountingWait()).verify_installed("Foo.App").succeeded


def test_verify_absent_treats_parse_failure_as_unconfirmed() -> None:
    queries = _ScriptedQueries([ParseResult(ParseStatus.PARSE_FAILURE)])

    outcome = Verifier(queries, _CountingWait()).verify_absent("Foo.App")

    assert outcome == VerificationOutcome(False, 1)


def test_verify_absent_confirms_when_listing_is_empty() -> None:
    queries = _ScriptedQueries([_rows()])

    assert Verifier(queries, _CountingWait()).verify_absent("Foo.App") == VerificationOutcome(
        True, 0
    )


def test_verify_upgraded_checks_upgrade_listing() -> None:
    queries = _ScriptedQueries([_rows()], upgrades=[_rows("Foo.App"), _rows("Bar.Tool")])
    wait = _CountingWait()

    outcome = Verifier(queries, wait).verify_upgraded("Foo.App")

    assert outcome == VerificationOutcome(True, 1)
    assert queries.upgrade_calls == 2
    assert queries.list_calls == 0
