"""Main module entrypoint for local runtime execution.

This module validates startup configuration and either runs one auto-deny job
from the command line or launches the FastAPI service.
"""

from __future__ import annotations

import argparse
import sys

import structlog
import uvicorn

from autodeny.bootstrap import APP_METADATA, bootstrap_create_application, bootstrap_create_orchestrator, bootstrap_create_transport
from autodeny.config import SettingsLoadError, config_load_settings
from autodeny.telemetry import telemetry_setup_logging

logger = structlog.get_logger(__name__)

_EXIT_CODES = {"success": 0, "failed": 1, "partial": 2}


def main_build_argument_parser() -> argparse.ArgumentParser:
    """Build the command-line parser.

    Returns:
        argparse.ArgumentParser: Parser for `run` and `api` commands.
    """

    argument_parser = argparse.ArgumentParser(
        prog="auto-deny-rules",
        description="Create deny rules for risky services with no observed traffic per environment and application.",
    )
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=("run", "api"),
        help="Runtime command: `run` executes one auto-deny run, `api` starts the HTTP server",
        type=str,
    )
    argument_parser.add_argument(
        "-b",
        "--exclude-broadcast",
        dest="exclude_broadcast",
        action="store_true",
        default=None,
        help="Exclude broadcast transmissions from traffic query destinations",
    )
    argument_parser.add_argument(
        "-m",
        "--exclude-multicast",
        dest="exclude_multicast",
        action="store_true",
        default=None,
        help="Exclude multicast transmissions from traffic query destinations",
    )
    argument_parser.add_argument(
        "-i",
        "--include",
        dest="include_labels",
        type=str,
        help="Comma-separated environment and application label values to include",
    )
    argument_parser.add_argument(
        "-e",
        "--exclude",
        dest="exclude_labels",
        type=str,
        help="Comma-separated environment and application label values to exclude",
    )
    argument_parser.add_argument(
        "-c",
        "--max-concurrency",
        dest="max_concurrent_queries",
        type=int,
        help="Maximum number of traffic queries in flight at once",
    )
    argument_parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        default=None,
        help="Log request payloads and raw responses",
    )
    argument_parser.add_argument(
        "--version",
        action="version",
        version=f"{APP_METADATA.application_name} v{APP_METADATA.application_version}",
    )
    return argument_parser


def main(argv: list[str] | None = None) -> None:
    """Run selected runtime command with validated startup configuration.

    Args:
        argv: Optional argument list; defaults to `sys.argv[1:]`.

    Raises:
        SystemExit: Raised with a non-zero code when configuration is invalid or a run is not fully successful.
    """

    parsed_arguments = main_build_argument_parser().parse_args(argv)
    try:
        settings = config_load_settings(
            exclude_broadcast=parsed_arguments.exclude_broadcast,
            exclude_multicast=parsed_arguments.exclude_multicast,
            include_labels=parsed_arguments.include_labels,
            exclude_labels=parsed_arguments.exclude_labels,
            max_concurrent_queries=parsed_arguments.max_concurrent_queries,
            verbose=parsed_arguments.verbose,
        )
    except SettingsLoadError as error:
        print(str(error), file=sys.stderr)
        raise SystemExit(1) from error

    telemetry_setup_logging(level=settings.log_level, log_format=settings.log_format, verbose=settings.verbose)

    if parsed_arguments.command == "api":
        uvicorn.run(
            bootstrap_create_application(settings),
            host=settings.application_host,
            port=settings.application_port,
        )
        return

    transport = bootstrap_create_transport(settings)
    try:
        orchestrator = bootstrap_create_orchestrator(settings, transport)
        execution_result = orchestrator.job_execute(job_name="auto_deny_run")
    finally:
        transport.transport_close()

    summary = execution_result.summary
    logger.info(
        "auto_deny_summary",
        status=summary.status,
        queries_run=summary.completed_queries,
        query_failures=summary.failed_queries,
        findings_synthesized=summary.rules_created,
        rule_failures=summary.rule_failures,
        rule_set_href=summary.rule_set_href,
        rule_set_empty=summary.rule_set_empty,
    )
    exit_code = _EXIT_CODES.get(execution_result.status, 1)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
