"""corpweb CLI: fetch corporation summary records from the registry.

Usage:
    corpweb run                              # Ids 0..99, JSON lines to stdout
    corpweb run --start 100 --end 199 --dates typed
    corpweb run --driver async --workers 4 --output records.jsonl
    corpweb show 7                           # One record, or one diagnostic
    corpweb parse saved_page.html --id 7     # Extract from a saved page
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import BinaryIO, NoReturn, TextIO

import click

from corpweb.common.exceptions import CorpwebError, format_error_report
from corpweb.common.page_element import parse_html
from corpweb.common.request_manager import (
    AsyncRequestManager,
    SyncRequestManager,
)
from corpweb.data_types import DEFAULT_BASE_URL, DateMode
from corpweb.driver.async_driver import AsyncDriver
from corpweb.driver.callbacks import (
    as_async,
    write_error_reports,
    write_json_lines,
)
from corpweb.driver.sync_driver import (
    RunSummary,
    SyncDriver,
    serialize_record,
)
from corpweb.registry.assembler import extract_corporation

DEFAULT_START = 0
DEFAULT_END = 99

_DATE_MODES = [mode.value for mode in DateMode]


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _report_and_exit(
    corp_id: int, error: CorpwebError, backtrace: bool
) -> NoReturn:
    click.echo(format_error_report(corp_id, error, backtrace), err=True)
    sys.exit(1)


@click.group()
@click.version_option(package_name="corpweb")
def cli() -> None:
    """corpweb: corporation registry scraper CLI."""


@cli.command()
@click.option(
    "--start",
    type=click.IntRange(min=0),
    default=DEFAULT_START,
    show_default=True,
    help="First corporation id.",
)
@click.option(
    "--end",
    type=click.IntRange(min=0),
    default=DEFAULT_END,
    show_default=True,
    help="Last corporation id (inclusive).",
)
@click.option(
    "--dates",
    type=click.Choice(_DATE_MODES),
    default=DateMode.RAW.value,
    show_default=True,
    help="Keep dates as page text (raw) or parse them (typed).",
)
@click.option(
    "--base-url",
    default=DEFAULT_BASE_URL,
    show_default=True,
    help="Corporation summary page URL.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds.",
)
@click.option(
    "--driver",
    "driver_name",
    type=click.Choice(["sync", "async"]),
    default="sync",
    show_default=True,
    help="Driver to use.",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of concurrent ids (async only).",
)
@click.option(
    "--backtrace",
    is_flag=True,
    help="Append tracebacks to diagnostic reports.",
)
@click.option(
    "--output",
    type=click.File("w"),
    default="-",
    help="JSON lines output file (default: stdout).",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def run(
    start: int,
    end: int,
    dates: str,
    base_url: str,
    timeout: float | None,
    driver_name: str,
    workers: int,
    backtrace: bool,
    output: TextIO,
    verbose: bool,
) -> None:
    """Fetch every corporation id from START to END in order.

    Records go to stdout (or --output) as JSON lines and diagnostics go to
    stderr. Ids for which the registry reports an error are skipped; any
    other failure halts the batch with exit status 1.

    \b
    Examples:
        corpweb run
        corpweb run --start 100 --end 199 --dates typed
        corpweb run --driver async --workers 4 --output records.jsonl
    """
    _configure_logging(verbose)

    if end < start:
        raise click.BadParameter(
            f"--end ({end}) must not be less than --start ({start})"
        )

    ids = range(start, end + 1)
    date_mode = DateMode(dates)

    if driver_name == "async":
        summary = _run_async(
            ids, date_mode, base_url, timeout, workers, backtrace, output
        )
    else:
        summary = _run_sync(
            ids, date_mode, base_url, timeout, backtrace, output
        )

    if summary.halted:
        sys.exit(1)


# ------------------------------------------------------------------
# Driver runners
# ------------------------------------------------------------------


def _run_sync(
    ids: range,
    date_mode: DateMode,
    base_url: str,
    timeout: float | None,
    backtrace: bool,
    output: TextIO,
) -> RunSummary:
    with SyncRequestManager(timeout=timeout) as request_manager:
        driver = SyncDriver(
            base_url=base_url,
            date_mode=date_mode,
            request_manager=request_manager,
            on_data=write_json_lines(output),
            on_error=write_error_reports(sys.stderr, backtrace),
        )
        return driver.run(ids)


def _run_async(
    ids: range,
    date_mode: DateMode,
    base_url: str,
    timeout: float | None,
    workers: int,
    backtrace: bool,
    output: TextIO,
) -> RunSummary:
    async def _go() -> RunSummary:
        async with AsyncRequestManager(timeout=timeout) as request_manager:
            driver = AsyncDriver(
                base_url=base_url,
                date_mode=date_mode,
                request_manager=request_manager,
                on_data=as_async(write_json_lines(output)),
                on_error=as_async(write_error_reports(sys.stderr, backtrace)),
                num_workers=workers,
            )
            return await driver.run(ids)

    return asyncio.run(_go())


@cli.command()
@click.argument("corp_id", metavar="ID", type=click.IntRange(min=0))
@click.option(
    "--dates",
    type=click.Choice(_DATE_MODES),
    default=DateMode.RAW.value,
    show_default=True,
    help="Keep dates as page text (raw) or parse them (typed).",
)
@click.option(
    "--base-url",
    default=DEFAULT_BASE_URL,
    show_default=True,
    help="Corporation summary page URL.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds.",
)
@click.option(
    "--backtrace",
    is_flag=True,
    help="Append the traceback to the diagnostic report.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def show(
    corp_id: int,
    dates: str,
    base_url: str,
    timeout: float | None,
    backtrace: bool,
    verbose: bool,
) -> None:
    """Fetch a single corporation ID and print its record."""
    _configure_logging(verbose)

    with SyncRequestManager(timeout=timeout) as request_manager:
        driver = SyncDriver(
            base_url=base_url,
            date_mode=DateMode(dates),
            request_manager=request_manager,
        )
        try:
            line = driver.run_one(corp_id)
        except CorpwebError as e:
            _report_and_exit(corp_id, e, backtrace)
    click.echo(line)


@cli.command()
@click.argument("page_file", metavar="FILE", type=click.File("rb"))
@click.option(
    "--id",
    "corp_id",
    type=click.IntRange(min=0),
    required=True,
    help="Corporation id to record in the output.",
)
@click.option(
    "--dates",
    type=click.Choice(_DATE_MODES),
    default=DateMode.RAW.value,
    show_default=True,
    help="Keep dates as page text (raw) or parse them (typed).",
)
@click.option(
    "--backtrace",
    is_flag=True,
    help="Append the traceback to the diagnostic report.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def parse(
    page_file: BinaryIO,
    corp_id: int,
    dates: str,
    backtrace: bool,
    verbose: bool,
) -> None:
    """Extract a record from a saved summary page FILE.

    Useful for checking a captured page against the current extractors
    without touching the network.
    """
    _configure_logging(verbose)

    content = page_file.read()
    source = getattr(page_file, "name", "")
    try:
        page = parse_html(content, source)
        record = extract_corporation(corp_id, page, DateMode(dates))
        line = serialize_record(corp_id, record)
    except CorpwebError as e:
        _report_and_exit(corp_id, e, backtrace)
    click.echo(line)


def main() -> None:
    """Entry point for the ``corpweb`` console script."""
    cli()
