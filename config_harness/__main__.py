"""
Config Harness - Command Line Runner

Usage:
    python -m config_harness --format graphdef --all
    python -m config_harness --format plan --repository path/to/repo --platform tensorrt_plan
    python -m config_harness --format custom --repository path/to/repo --autofill
    python -m config_harness --format savedmodel --all --copy-fixtures --metrics-file run.prom

Exit codes:
    0  every model matched one of its golden files
    1  one or more models failed
    2  fixture error (repository could not be listed or rewritten)
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from config_harness.config import get_config
from config_harness.observability import write_metrics
from config_harness.observability.logging import configure_logging, get_logger
from config_harness.runtime import (
    BundleFormat,
    FixtureError,
    RepositoryReport,
    RepositoryWalker,
    get_initializer,
)

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FIXTURE_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="config_harness",
        description="Validate model configurations against golden outputs",
    )

    parser.add_argument(
        "--format",
        required=True,
        choices=[f.value for f in BundleFormat],
        help="Bundle format whose initializer loads each model",
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--all",
        action="store_true",
        help="Run both sanity repositories (explicit configs, then autofill)",
    )
    target.add_argument(
        "--repository",
        type=str,
        help="Repository path relative to TEST_SRCDIR",
    )

    parser.add_argument("--platform", type=str, default=None, help="Platform to force into config.yaml files")
    parser.add_argument("--autofill", action="store_true", help="Autofill unspecified fields (with --repository)")
    parser.add_argument("--source-root", type=str, default=None, help="Override TEST_SRCDIR")
    parser.add_argument("--copy-fixtures", action="store_true", help="Validate a temporary copy of the fixtures")
    parser.add_argument("--metrics-file", type=str, default=None, help="Write Prometheus metrics to this file")
    parser.add_argument("--log-format", choices=["text", "json"], default=None, help="Log output format")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    return parser


def print_summary(reports: Sequence[RepositoryReport]) -> None:
    print("\n" + "=" * 80)
    print("MODEL CONFIG VALIDATION SUMMARY")
    print("=" * 80)

    for report in reports:
        posture = "autofill" if report.autofill else f"platform={report.platform or '-'}"
        print(f"{report.base_path} ({posture})")
        for outcome in report.outcomes:
            status = "PASS" if outcome.passed else "FAIL"
            print(f"  [{status}] {outcome.model_name} ({outcome.duration_ms}ms)")

    tested = sum(r.models_tested for r in reports)
    failed = sum(r.models_failed for r in reports)
    print("-" * 80)
    print(f"Total: {tested} | Passed: {tested - failed} | Failed: {failed}")
    print("=" * 80)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()

    configure_logging(
        level="DEBUG" if args.verbose else config.log_level,
        format=args.log_format or config.log_format,
    )

    walker = RepositoryWalker.from_config(config, get_initializer(args.format))
    if args.source_root:
        walker.source_root = Path(args.source_root)
    if args.copy_fixtures:
        walker.copy_fixtures = True

    platform = args.platform
    if args.all and platform is None:
        platform = get_initializer(args.format).platform.value

    try:
        if args.all:
            reports = walker.validate_all(platform)
        else:
            reports = [
                walker.validate_one(args.repository, autofill=args.autofill, platform=platform or "")
            ]
    except FixtureError as e:
        logger.critical("Fixture error, run aborted: %s", e, extra=e.to_log_dict())
        return EXIT_FIXTURE_ERROR
    finally:
        metrics_file = args.metrics_file or config.metrics_file
        if metrics_file and config.metrics_enabled:
            write_metrics(metrics_file)

    print_summary(reports)
    return EXIT_OK if all(r.ok for r in reports) else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
