from __future__ import annotations

import argparse
import sys
from typing import Sequence

from sloreport import __version__
from sloreport.config import get_settings
from sloreport.core.errors import ExitCode, main_with_error_handling
from sloreport.logging import configure_logging


def _add_config_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        dest="config_path",
        help="Report config YAML (default: .sloreport/config.yaml, then ~/.sloreport/config.yaml)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sloreport", description="Dynatrace SLO status reports")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    fetch_parser = subparsers.add_parser("fetch", help="Fetch SLO data into a JSON snapshot")
    _add_config_arg(fetch_parser)
    fetch_parser.add_argument("--output", "-o", required=True, help="Snapshot file to write")

    render_parser = subparsers.add_parser("render", help="Render a report from a snapshot")
    _add_config_arg(render_parser)
    render_parser.add_argument("--snapshot", "-s", required=True, help="Snapshot written by fetch")
    render_parser.add_argument("--output", "-o", help="Markdown file (default: stdout)")
    render_parser.add_argument("--ticket-output", help="Write the breach ticket JSON here")
    render_parser.add_argument(
        "--fail-on-breach", action="store_true", help="Exit 1 when any SLO is below target"
    )

    run_parser = subparsers.add_parser("run", help="Fetch and render in one step")
    _add_config_arg(run_parser)
    run_parser.add_argument("--output", "-o", help="Markdown file (default: stdout)")
    run_parser.add_argument("--ticket-output", help="Write the breach ticket JSON here")
    run_parser.add_argument("--snapshot", "-s", help="Also keep the fetched snapshot")
    run_parser.add_argument(
        "--fail-on-breach", action="store_true", help="Exit 1 when any SLO is below target"
    )

    summary_parser = subparsers.add_parser("summary", help="Show evaluated SLOs in the terminal")
    _add_config_arg(summary_parser)
    summary_parser.add_argument("--snapshot", "-s", required=True, help="Snapshot written by fetch")
    summary_parser.add_argument(
        "--format", "-f", choices=["table", "json"], default="table", help="Output format"
    )

    init_parser = subparsers.add_parser("init", help="Write a starter report config")
    init_parser.add_argument("--output", "-o", help="Config path (default: .sloreport/config.yaml)")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser


@main_with_error_handling()
def setup_logging() -> int:
    settings = get_settings()
    configure_logging(settings.log_level.upper(), settings.log_format)
    return ExitCode.SUCCESS


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    code = setup_logging()
    if code != ExitCode.SUCCESS:
        sys.exit(code)

    if args.command == "fetch":
        from sloreport.cli.fetch import fetch_command

        sys.exit(fetch_command(args.config_path, args.output))

    if args.command == "render":
        from sloreport.cli.render import render_command

        sys.exit(
            render_command(
                args.config_path,
                args.snapshot,
                output=args.output,
                ticket_output=args.ticket_output,
                fail_on_breach=args.fail_on_breach,
            )
        )

    if args.command == "run":
        from sloreport.cli.render import run_command

        sys.exit(
            run_command(
                args.config_path,
                output=args.output,
                ticket_output=args.ticket_output,
                snapshot=args.snapshot,
                fail_on_breach=args.fail_on_breach,
            )
        )

    if args.command == "summary":
        from sloreport.cli.summary import summary_command

        sys.exit(summary_command(args.config_path, args.snapshot, format=args.format))

    if args.command == "init":
        from sloreport.cli.init import init_command

        sys.exit(init_command(args.output, force=args.force))

    parser.print_help()
    sys.exit(0)


if __name__ == "__main__":
    main()
