import tempfile
import urllib.error
from pathlib import Path
from typing import Callable

from logly import logger

from wingetctl.config import AppConfig
from wingetctl.core.output_filter import filter_output_for_log
from wingetctl.core.winget_table_parser import find_by_id, find_by_prefix
from wingetctl.core.winget_types import (
    BatchSummary,
    OperationResult,
    PackageRecord,
    ParseResult,
    ParseStatus,
)
from wingetctl.infra.download import download_file
from wingetctl.infra.powershell import build_appx_install_argv
from wingetctl.infra.processes import HelperProcessWait
from wingetctl.infra.subprocess_runner import CommandResult, run_command
from wingetctl.infra.winget import WingetClient, WingetNotFoundError, find_winget_executable

from .verification import VerificationOutcome, Verifier

_APP_INSTALLER_ID = "Microsoft.AppInstaller"


class PackageController:
    """Orchestrates winget operations and confirms their effect.

    Every mutating verb re-queries winget afterwards; the tool's exit code is
    logged but not trusted as the outcome.
    """

    def __init__(
        self,
        config: AppConfig,
        client: WingetClient | None = None,
        verifier: Verifier | None = None,
        *,
        downloader: Callable[[str, Path], Path] = download_file,
        runner: Callable[[list[str], int], CommandResult] = run_command,
    ):
        """Initializes the controller.

        Args:
            config: Shared application settings.
            client: winget wrapper. Built from `config` if omitted.
            verifier: Post-operation checker. Built with a helper-process wait if omitted.
            downloader: Used by `bootstrap` to fetch the App Installer bundle.
            runner: Used by `bootstrap` to run PowerShell.
        """
        self._config = config
        self._client = client or WingetClient(
            config.executable,
            list_timeout_sec=config.list_timeout_sec,
            operation_timeout_sec=config.operation_timeout_sec,
        )
        self._verifier = verifier or Verifier(self._client, self._verifier_wait())
        self._downloader = downloader
        self._runner = runner

    def is_available(self) -> bool:
        return self._client.is_available()

    def version(self) -> str:
        try:
            return self._client.version()
        except WingetNotFoundError as e:
            logger.error(f"[error] {e}")
            return ""

    def list_packages(self, package_id: str | None = None) -> ParseResult:
        """Lists installed packages, optionally filtered to one exact id."""
        try:
            report = self._client.list_packages(package_id)
        except WingetNotFoundError as e:
            logger.error(f"[error] {e}")
            return ParseResult(ParseStatus.PARSE_FAILURE)
        self._log_report("list", report)
        return report

    def list_upgrades(self) -> ParseResult:
        """Lists installed packages that have a newer version available."""
        try:
            report = self._client.list_upgrades()
        except WingetNotFoundError as e:
            logger.error(f"[error] {e}")
            return ParseResult(ParseStatus.PARSE_FAILURE)
        self._log_report("upgrade", report)
        return report

    def search_installed(self, prefix: str) -> list[PackageRecord]:
        """Returns installed packages whose id starts with `prefix`."""
        return find_by_prefix(self.list_packages(), prefix)

    def install(self, package_id: str, force: bool = False) -> OperationResult:
        logger.info(f"$ install {package_id}{' (force)' if force else ''}")
        try:
            if not force:
                current = self._client.list_packages(package_id)
                self._log_report("list", current)
                if find_by_id(current, package_id):
                    logger.info(f"[skip] {package_id} is already installed")
                    return OperationResult(
                        package_id, "install", True, message="already installed"
                    )

            result = self._client.install(package_id, force=force)
            outcome = self._verifier.verify_installed(package_id)
        except WingetNotFoundError as e:
            return self._tool_missing(package_id, "install", e)
        return self._finish(package_id, "install", result, outcome)

    def uninstall(self, package_id: str, force: bool = False) -> OperationResult:
        logger.info(f"$ uninstall {package_id}{' (force)' if force else ''}")
        try:
            current = self._client.list_packages(package_id)
            self._log_report("list", current)
            if not current.failed and find_by_id(current, package_id) is None:
                logger.info(f"[skip] {package_id} is not installed")
                return OperationResult(package_id, "uninstall", True, message="not installed")

            result = self._client.uninstall(package_id, force=force)
            outcome = self._verifier.verify_absent(package_id)
        except WingetNotFoundError as e:
            return self._tool_missing(package_id, "uninstall", e)
        return self._finish(package_id, "uninstall", result, outcome)

    def upgrade(self, package_id: str) -> OperationResult:
        logger.info(f"$ upgrade {package_id}")
        try:
            upgrades = self._client.list_upgrades()
        except WingetNotFoundError as e:
            return self._tool_missing(package_id, "upgrade", e)

        if upgrades.failed:
            logger.error(f"[error] could not read upgrade listing for {package_id}")
            return OperationResult(
                package_id, "upgrade", False, message="could not read upgrade listing"
            )
        if find_by_id(upgrades, package_id) is None:
            logger.info(f"[skip] no upgrade available for {package_id}")
            return OperationResult(package_id, "upgrade", True, message="no upgrade available")
        return self._upgrade_one(package_id)

    def upgrade_all(self) -> BatchSummary:
        """Upgrades every package in a single snapshot of the upgrade listing.

        The listing is not re-queried between packages, and a failed package does not
        stop the remaining ones. An unreadable listing marks the summary as failed.
        """
        summary = BatchSummary()
        snapshot = self.list_upgrades()
        if snapshot.failed:
            logger.error("[error] upgrade --all: could not read upgrade listing")
            summary.listing_failed = True
            return summary

        package_ids = [record.id for record in snapshot]
        logger.info(f"$ upgrade --all ({len(package_ids)} packages)")

        for package_id in package_ids:
            summary.add(self._upgrade_one(package_id))

        log = logger.info if summary.succeeded else logger.warning
        log(
            f"[done] upgrade --all succeeded={summary.success_count} "
            f"failed={summary.failure_count}"
        )
        return summary

    def bootstrap(self) -> OperationResult:
        """Downloads and registers the App Installer bundle that provides winget."""
        logger.info(f"$ bootstrap from {self._config.bootstrap_url}")
        with tempfile.TemporaryDirectory(prefix="wingetctl-") as tmp:
            bundle = Path(tmp) / "Microsoft.DesktopAppInstaller.msixbundle"
            try:
                self._downloader(self._config.bootstrap_url, bundle)
            except (urllib.error.URLError, OSError) as e:
                logger.error(f"[error] download failed: {e}")
                return OperationResult(
                    _APP_INSTALLER_ID, "install", False, message=f"download failed: {e}"
                )

            result = self._runner(
                build_appx_install_argv(bundle), self._config.operation_timeout_sec
            )

        executable = find_winget_executable()
        succeeded = result.succeeded and executable is not None
        if succeeded:
            self._client = WingetClient(
                executable,
                list_timeout_sec=self._config.list_timeout_sec,
                operation_timeout_sec=self._config.operation_timeout_sec,
            )
            self._verifier = Verifier(self._client, self._verifier_wait())
        return self._finish(
            _APP_INSTALLER_ID, "install", result, VerificationOutcome(succeeded)
        )

    def _verifier_wait(self) -> HelperProcessWait:
        return HelperProcessWait(
            self._config.helper_process_names,
            self._config.settle_seconds,
            self._config.helper_wait_timeout_sec,
        )

    def _upgrade_one(self, package_id: str) -> OperationResult:
        try:
            result = self._client.upgrade(package_id)
            outcome = self._verifier.verify_upgraded(package_id)
        except WingetNotFoundError as e:
            return self._tool_missing(package_id, "upgrade", e)
        return self._finish(package_id, "upgrade", result, outcome)

    @staticmethod
    def _tool_missing(package_id: str, operation: str, error: Exception) -> OperationResult:
        logger.error(f"[error] {operation} {package_id}: {error}")
        return OperationResult(package_id, operation, False, message=str(error))

    @staticmethod
    def _finish(
        package_id: str,
        operation: str,
        result: CommandResult,
        outcome: VerificationOutcome,
    ) -> OperationResult:
        raw_output = result.output
        filtered = filter_output_for_log(raw_output)

        if outcome.succeeded:
            logger.info(f"[ok] {operation} {package_id} (code={result.returncode})")
            if filtered:
                logger.debug(filtered)
            message = f"{operation} confirmed"
        else:
            logger.error(
                f"[error] {operation} {package_id} not confirmed (code={result.returncode})"
                + (f"\n{filtered}" if filtered else "")
            )
            message = f"{operation} not confirmed"

        return OperationResult(
            package_id,
            operation,
            outcome.succeeded,
            attempted_retries=outcome.attempted_retries,
            raw_output=raw_output,
            message=message,
        )

    @staticmethod
    def _log_report(label: str, report: ParseResult) -> None:
        if report.failed:
            logger.warning(f"[warn] could not parse winget {label} output")
        else:
            logger.debug(f"[loaded] {len(report)} packages from winget {label}")
