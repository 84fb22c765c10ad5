"""Command-line entrypoint for scripted winget operations."""
import argparse
import sys
from typing import Sequence

from logly import logger

from wingetctl.application.package_controller import PackageController
from wingetctl.config import AppConfig
from wingetctl.core.winget_types import BatchSummary, OperationResult, PackageRecord, ParseResult
from wingetctl.logging import init_logger

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_TOOL_MISSING = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wingetctl",
        description="Install, upgrade and uninstall winget packages with verified outcomes.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List installed packages")
    p_list.add_argument("id", nargs="?", help="Only show this exact package id")

    sub.add_parser("upgrades", help="List packages with an available upgrade")

    p_find = sub.add_parser("find", help="List installed packages whose id starts with a prefix")
    p_find.add_argument("prefix")

    p_install = sub.add_parser("install", help="Install a package")
    p_install.add_argument("id")
    p_install.add_argument("--force", action="store_true", help="Install even if already present")

    p_uninstall = sub.add_parser("uninstall", help="Uninstall a package")
    p_uninstall.add_argument("id")
    p_uninstall.add_argument("--force", action="store_true", help="Pass --force to winget")

    p_upgrade = sub.add_parser("upgrade", help="Upgrade one package or all of them")
    p_upgrade.add_argument("id", nargs="?")
    p_upgrade.add_argument("--all", action="store_true", dest="all_packages")

    sub.add_parser("version", help="Print the winget version")
    sub.add_parser("check", help="Exit 0 if winget is available")
    sub.add_parser("bootstrap", help="Download and register winget (App Installer)")
    return parser


def format_records(records: Sequence[PackageRecord]) -> str:
    rows = [("Name", "Id", "Version", "Available", "Source")]
    rows.extend(
        (
            r.name,
            r.id,
            r.installed_version or "",
            r.available_version or "",
            r.source or "",
        )
        for r in records
    )
    widths = [max(len(row[i]) for row in rows) for i in range(5)]
    lines = ["  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip() for row in rows]
    lines.insert(1, "-" * len(lines[0]))
    return "\n".join(lines)


def _print_report(report: ParseResult) -> int:
    if report.failed:
        print("could not parse winget output", file=sys.stderr)
        return EXIT_FAILED
    if not report.records:
        print("no packages")
        return EXIT_OK
    print(format_records(report.records))
    return EXIT_OK


def _print_result(result: OperationResult) -> int:
    status = "ok" if result.succeeded else "FAILED"
    print(f"{result.operation} {result.target_id}: {status} ({result.message})")
    return EXIT_OK if result.succeeded else EXIT_FAILED


def _print_summary(summary: BatchSummary) -> int:
    if summary.listing_failed:
        print("could not parse winget upgrade output", file=sys.stderr)
        return EXIT_FAILED
    for result in summary.results:
        _print_result(result)
    print(f"{summary.success_count} succeeded, {summary.failure_count} failed")
    return EXIT_OK if summary.succeeded else EXIT_FAILED


def run(args: argparse.Namespace, controller: PackageController) -> int:
    if args.command == "check":
        available = controller.is_available()
        print("winget available" if available else "winget not found")
        return EXIT_OK if available else EXIT_TOOL_MISSING

    if args.command == "bootstrap":
        return _print_result(controller.bootstrap())

    if not controller.is_available():
        logger.error("winget executable not found; run `wingetctl bootstrap` first")
        return EXIT_TOOL_MISSING

    if args.command == "list":
        return _print_report(controller.list_packages(args.id))
    if args.command == "upgrades":
        return _print_report(controller.list_upgrades())
    if args.command == "find":
        records = controller.search_installed(args.prefix)
        print(format_records(records) if records else "no packages")
        return EXIT_OK
    if args.command == "install":
        return _print_result(controller.install(args.id, force=args.force))
    if args.command == "uninstall":
        return _print_result(controller.uninstall(args.id, force=args.force))
    if args.command == "upgrade":
        if args.all_packages:
            return _print_summary(controller.upgrade_all())
        if not args.id:
            print("upgrade needs a package id or --all", file=sys.stderr)
            return EXIT_FAILED
        return _print_result(controller.upgrade(args.id))
    if args.command == "version":
        version = controller.version()
        print(version)
        return EXIT_OK if version else EXIT_FAILED
    return EXIT_FAILED


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = AppConfig.from_env()
    init_logger(config, verbose=args.verbose)
    return run(args, PackageController(config))


if __name__ == "__main__":
    raise SystemExit(main())
