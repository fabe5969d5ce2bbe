"""Callback functions for the driver's on_data and on_error parameters.

This module provides the callbacks the CLI wires into the drivers: one that
writes serialized records as JSON lines and one that writes diagnostic
reports. Both are factories that close over an open file handle; the caller
is responsible for opening and closing it.

Example::

    import sys

    from corpweb.driver.callbacks import write_error_reports, write_json_lines
    from corpweb.driver.sync_driver import SyncDriver

    with open("output.jsonl", "w") as f:
        driver = SyncDriver(
            on_data=write_json_lines(f),
            on_error=write_error_reports(sys.stderr),
        )
        summary = driver.run(range(0, 100))
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TextIO, TypeVar

from corpweb.common.exceptions import CorpwebError, format_error_report

T = TypeVar("T")


def write_json_lines(file_handle: TextIO) -> Callable[[int, str], None]:
    """Create a callback that writes each serialized record as one line.

    Args:
        file_handle: An open text handle to write JSON lines to.

    Returns:
        A callback that can be passed to a driver's on_data parameter.
    """

    def callback(corp_id: int, line: str) -> None:
        file_handle.write(line)
        file_handle.write("\n")
        file_handle.flush()  # Ensure data is written immediately

    return callback


def write_error_reports(
    file_handle: TextIO, backtrace: bool = False
) -> Callable[[int, CorpwebError], None]:
    """Create a callback that writes a diagnostic report per failed id.

    Args:
        file_handle: An open text handle, normally sys.stderr.
        backtrace: Whether to append the formatted traceback to each report.

    Returns:
        A callback that can be passed to a driver's on_error parameter.

    Example::

        driver = SyncDriver(on_error=write_error_reports(sys.stderr))
        # stderr:
        # error on 8: corporation database error: "No records found"
    """

    def callback(corp_id: int, error: CorpwebError) -> None:
        file_handle.write(format_error_report(corp_id, error, backtrace))
        file_handle.write("\n")
        file_handle.flush()

    return callback


def as_async(
    callback: Callable[[int, T], None],
) -> Callable[[int, T], Awaitable[None]]:
    """Adapt a synchronous callback for AsyncDriver's awaitable hooks."""

    async def wrapper(corp_id: int, value: T) -> None:
        callback(corp_id, value)

    return wrapper
