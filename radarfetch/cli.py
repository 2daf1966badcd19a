"""Command-line entry point for radarfetch.

Usage:
    radarfetch --site ATL --image-type PRECIPET_RAIN_WEATHEROFFICE \\
        --start-year 2021 --start-month 2 --start-day 1 \\
        --end-year 2021 --end-month 2 --end-day 3 \\
        --directory ./radar
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence

from radarfetch import __version__
from radarfetch.archive import catalog, time_index
from radarfetch.archive.fetch_loop import FetchConfig, FetchLoop
from radarfetch.exceptions import RadarFetchError
from radarfetch.utils import log

LOGGER = log.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

DEFAULT_START_HOUR = 0
DEFAULT_END_HOUR = 23


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="radarfetch",
        description="Downloads historical weather radar images from Environment and Climate Change Canada.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--list-sites",
        action="store_true",
        help="Print the known site and image type codes and exit.",
    )
    parser.add_argument(
        "-s",
        "--site",
        help="Which site to pull data for, e.g. ATL for Atlantic Canada. See --list-sites.",
    )
    parser.add_argument(
        "--image-type",
        help="What kind of image to request, e.g. PRECIPET_RAIN_WEATHEROFFICE.",
    )
    parser.add_argument(
        "--directory",
        help="Where downloaded images are stored. Created if it does not exist; "
        "images already present are not downloaded again.",
    )

    range_group = parser.add_argument_group("date range (UTC, inclusive)")
    for edge in ("start", "end"):
        range_group.add_argument(f"--{edge}-year", type=int, help=f"Collection will {edge} with this year")
        range_group.add_argument(
            f"--{edge}-month", type=int, help=f"Collection will {edge} with this month (numeric, 1-12)"
        )
        range_group.add_argument(f"--{edge}-day", type=int, help=f"Collection will {edge} with this day")
    range_group.add_argument(
        "--start-hour",
        type=int,
        default=DEFAULT_START_HOUR,
        help="Collection will start with this hour (default: %(default)s)",
    )
    range_group.add_argument(
        "--end-hour",
        type=int,
        default=DEFAULT_END_HOUR,
        help="Collection will end with this hour (default: %(default)s)",
    )

    network = parser.add_argument_group("network (defaults come from config.toml)")
    network.add_argument("--concurrency", type=int, default=None, help="Maximum requests in flight")
    network.add_argument("--timeout", type=int, default=None, help="Per-request timeout in seconds")
    network.add_argument(
        "--retries", type=int, default=None, help="Extra attempts for timeouts, network and 5xx errors"
    )
    network.add_argument("--url-template", default=None, help="Override the archive URL template")

    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Download every hour even if its file already exists.",
    )
    parser.add_argument(
        "--fail-on-missing",
        action="store_true",
        help="Exit with status 1 if any hour could not be fetched.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser


REQUIRED_FOR_FETCH = (
    "site",
    "image_type",
    "directory",
    "start_year",
    "start_month",
    "start_day",
    "end_year",
    "end_month",
    "end_day",
)


def print_catalog() -> None:
    print("Sites:")
    for site in catalog.known_sites().values():
        print(f"  {site.code:<6} {site.name} ({site.kind.value})")
    print("Image types:")
    for code, description in catalog.known_image_types().items():
        print(f"  {code:<30} {description}")


def config_from_args(args: argparse.Namespace) -> FetchConfig:
    """Turn parsed arguments into the run's FetchConfig.

    Raises:
        DateRangeError: For impossible calendar values
        ConfigurationError: For missing codes or invalid options
    """
    start = time_index.build_timestamp(args.start_year, args.start_month, args.start_day, args.start_hour)
    end = time_index.build_timestamp(args.end_year, args.end_month, args.end_day, args.end_hour)
    return FetchConfig.from_settings(
        start,
        end,
        args.site,
        args.image_type,
        args.directory,
        concurrency=args.concurrency,
        timeout=args.timeout,
        retries=args.retries,
        url_template=args.url_template,
        overwrite=args.overwrite,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        log.set_level(debug_mode=True)

    if args.list_sites:
        try:
            print_catalog()
        except ValueError as e:
            LOGGER.error("%s", e)
            return EXIT_FAILURE
        return EXIT_OK

    missing = [name for name in REQUIRED_FOR_FETCH if getattr(args, name) is None]
    if missing:
        parser.error(
            "the following arguments are required: "
            + ", ".join("--" + name.replace("_", "-") for name in missing)
        )

    try:
        fetch_config = config_from_args(args)
    except (RadarFetchError, ValueError) as e:
        # ValueError: unreadable or invalid config.toml
        LOGGER.error("%s", e)
        return EXIT_FAILURE

    try:
        report = asyncio.run(FetchLoop(fetch_config).run_async())
    except RadarFetchError as e:
        LOGGER.error("%s", e)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        LOGGER.warning("Interrupted; images already saved are kept and will be skipped next run")
        return EXIT_INTERRUPTED

    LOGGER.info(
        "Done: %d written, %d already present, %d failed (of %d hours)",
        report.written_count,
        len(report.skipped),
        len(report.failed),
        report.expected,
    )
    if LOGGER.isEnabledFor(logging.DEBUG):
        for failure in report.failed:
            LOGGER.debug("  %s %s: %s", failure.timestamp.isoformat(), failure.reason, failure.message)
    if report.failed and args.fail_on_missing:
        return EXIT_FAILURE
    return EXIT_OK
