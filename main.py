#!/usr/bin/env python3
"""Bulk Asset Subscription CLI.

Subscribes every identifier listed in a queue file to the configured offer,
using a fixed number of concurrent workers. Progress is persisted in the
queue file itself: each identifier whose request succeeds is removed, so an
interrupted run is resumed by running the same command again.

Identifiers that time out or are rejected with a non-200 status are also
appended to a failure log (./failed.txt by default).

Environment Variables Required (usually from local.env):
    - AUTH_BASE_URL, AUTH_GRANT_TYPE, AUTH_USERNAME, AUTH_PASSWORD
    - SUB_BASE_URL, SUB_OFFER, SUB_ACCOUNT
    - SUB_REBOOT_AFTER_NEXT_TRIP (optional, default false)

Example Usage:
    $ python main.py 12 ./assets.txt
    $ python main.py 4 ./assets.txt --env-file prod.env --failed-log ./prod-failed.txt

Exit Status:
    0 - run finished, or arguments were missing or malformed (usage printed)
    1 - run aborted before dispatch (configuration or token failure)
"""
import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime

from src.fleetsub.api import FleetSubError, TokenManager
from src.fleetsub.config import (
    DEFAULT_ENV_FILE,
    DEFAULT_FAILED_LOG,
    SubscribeSettings,
    load_env_file,
)
from src.fleetsub.dispatch import (
    RequestTemplate,
    Result,
    RunSummary,
    Success,
    dispatch,
)

logger = logging.getLogger(__name__)


def print_summary(summary: RunSummary) -> None:
    print("\n" + "=" * 40)
    print(f"Total     : {summary.total}")
    print(f"Succeeded : {summary.succeeded}")
    print(f"Failed    : {summary.failed}")
    for kind, count in sorted(summary.by_kind.items()):
        print(f"  {kind:<20} {count}")
    print("=" * 40)


def report(result: Result) -> None:
    """Print a success value or log a failure."""
    if isinstance(result, Success):
        print(f"{result.identifier}: {result.value}")
    else:
        logger.error(f"{result.identifier}: {result.error}")


async def run(args: argparse.Namespace) -> int:
    """Run one bulk subscription.

    Returns:
        Process exit status (1 only if the run aborted before dispatch)
    """
    start_time = datetime.now(UTC)
    print(f"[Main] Starting at {start_time.isoformat()}")

    load_env_file(args.env_file)

    results: list[Result] = []
    try:
        settings = SubscribeSettings.from_env()
        token_manager = TokenManager()
        template = RequestTemplate(
            url_pattern=settings.url_pattern,
            payload=settings.payload(),
        )

        async for result in dispatch(
            workers=args.workers,
            queue_path=args.queue_file,
            template=template,
            get_token=token_manager.get_token,
            failure_log_path=args.failed_log,
        ):
            report(result)
            results.append(result)

    except FleetSubError as e:
        logger.error(f"Run aborted: {e}")
        return 1

    print_summary(RunSummary.from_results(results))

    duration = (datetime.now(UTC) - start_time).total_seconds()
    print(f"[Main] Completed in {duration:.1f} seconds")
    print("Done")
    return 0


class UsageParser(argparse.ArgumentParser):
    """Prints usage for missing or malformed arguments and exits with status 0."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(0, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = UsageParser(
        description="Subscribe every asset listed in a queue file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py 12 ./assets.txt                  # 12 workers
  python main.py 4 ./assets.txt --env-file prod.env
        """
    )
    parser.add_argument(
        "workers",
        type=int,
        help="Number of concurrent workers (positive integer)"
    )
    parser.add_argument(
        "queue_file",
        help="File with one identifier per line; succeeded lines are removed"
    )
    parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_FILE,
        metavar="FILE",
        help=f"Env file with credentials and settings (default: {DEFAULT_ENV_FILE})"
    )
    parser.add_argument(
        "--failed-log",
        default=DEFAULT_FAILED_LOG,
        metavar="FILE",
        help=f"Append timed-out/rejected identifiers here (default: {DEFAULT_FAILED_LOG})"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
