#!/usr/bin/env python3
"""
Command-line interface for formprobe.

Usage:
    formprobe wait-ready [URL] [--timeout-ms N] [--interval-ms N]
    formprobe check-inbox QUERY [--timeout-ms N] [--step-ms N]
                                [--expect TEXT ...] [--most-recent]

Options:
    --debug         Enable debug logging
    --version       Show version and exit
    --help          Show this message and exit
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from formprobe import __version__
from formprobe.config import Settings, get_settings
from formprobe.credentials import credential_from_settings
from formprobe.exceptions import FormProbeError, ReadinessTimeoutError
from formprobe.gmail import GmailSearch
from formprobe.mailbox import MailSearchQuery, SelectionPolicy, await_matching_message
from formprobe.matching import missing_fragments
from formprobe.readiness import resolve_target, wait_for_ready

logger = logging.getLogger("formprobe.cli")


def positive_int(value: str) -> int:
    """argparse type accepting integers greater than zero."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def setup_logging(debug: bool = False, settings: Optional[Settings] = None) -> None:
    """
    Configure logging for the command-line tool.

    Args:
        debug: Enable debug logging.
        settings: Settings providing the default level and format.
    """
    if debug:
        log_level = logging.DEBUG
    elif settings is not None:
        log_level = getattr(logging, settings.logging.level)
    else:
        log_level = logging.INFO
    log_format = (
        settings.logging.format if settings is not None
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Reduce noise from third-party libraries in non-debug mode
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="formprobe",
        description="Verify a website and the emails its contact form sends",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Wait for the configured site to come up:
        formprobe wait-ready

    Wait for a contact-form email and check its body:
        formprobe check-inbox "from:jbloggo96@gmail.com subject:John Doe" \\
            --expect "Name: John Doe" --expect "From: validmail@gmail.com"

Environment Variables:
    SITE_TARGET             remote or local deployment
    READINESS_TIMEOUT_MS    Readiness timeout window in ms
    MAILBOX_TIMEOUT_MS      Mail search timeout window in ms
    CLIENT_ID, CLIENT_SECRET, REFRESH_TOKEN
                            OAuth secrets used to read the mailbox
    FORMPROBE_CONFIG_FILE   Path to a TOML configuration file
        """,
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"formprobe {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ready = subparsers.add_parser("wait-ready", help="Wait until a URL answers 2xx")
    ready.add_argument(
        "url",
        nargs="?",
        default=None,
        help="URL to probe (default: configured site base URL + readiness path)",
    )
    ready.add_argument("--timeout-ms", type=positive_int, default=None, help="Timeout window in ms")
    ready.add_argument("--interval-ms", type=positive_int, default=None, help="Pause between probes in ms")

    inbox = subparsers.add_parser("check-inbox", help="Wait for a matching email")
    inbox.add_argument("query", help="Mail search expression, e.g. 'from:a@b.com subject:Hi'")
    inbox.add_argument("--timeout-ms", type=positive_int, default=None, help="Timeout window in ms")
    inbox.add_argument("--step-ms", type=positive_int, default=None, help="Pause between searches in ms")
    inbox.add_argument(
        "--expect",
        action="append",
        default=[],
        metavar="TEXT",
        help="Text the decoded body must contain (repeatable)",
    )
    inbox.add_argument(
        "--most-recent",
        action="store_true",
        help="Pick the newest match instead of the first one returned",
    )

    return parser.parse_args(argv)


def _or_default(value: Optional[int], default: int) -> int:
    return default if value is None else value


async def run_wait_ready(args: argparse.Namespace, settings: Settings) -> int:
    url = args.url or resolve_target(settings.site.base_url, settings.readiness.path)
    try:
        await wait_for_ready(
            url,
            _or_default(args.timeout_ms, settings.readiness.timeout_ms),
            _or_default(args.interval_ms, settings.readiness.interval_ms),
        )
    except ReadinessTimeoutError as e:
        logger.error("%s", e)
        return 1
    logger.info("%s is ready", url)
    return 0


async def run_check_inbox(args: argparse.Namespace, settings: Settings) -> int:
    credential = credential_from_settings(settings.oauth)
    if args.most_recent:
        selection = SelectionPolicy.MOST_RECENT
    else:
        selection = SelectionPolicy(settings.mailbox.selection)
    query = MailSearchQuery(
        credential=credential,
        query=args.query,
        timeout_ms=_or_default(args.timeout_ms, settings.mailbox.timeout_ms),
        step_ms=_or_default(args.step_ms, settings.mailbox.step_ms),
        selection=selection,
    )

    async with GmailSearch() as search:
        message = await await_matching_message(query, search)

    if message is None:
        logger.error("No message matched %r", args.query)
        return 1

    body = message.decoded_body()
    missing = missing_fragments(body, args.expect)
    if missing:
        logger.error("Message %s is missing expected text: %s", message.id, missing)
        return 1

    logger.info("Message %s matched (subject: %s)", message.id, message.subject)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the formprobe command.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(args.debug, settings)

    handlers = {
        "wait-ready": run_wait_ready,
        "check-inbox": run_check_inbox,
    }

    try:
        return asyncio.run(handlers[args.command](args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except FormProbeError as e:
        logger.error("%s", e)
        return 1
    except ValueError as e:
        # Timing options that contradict each other or the configuration
        logger.error("Invalid arguments: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
