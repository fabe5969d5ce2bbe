"""Test utilities for driver tests.

This module provides reusable callbacks that record what a driver reports,
so tests can assert on emitted records and diagnostics after a run.
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any

from corpweb.common.exceptions import CorpwebError


def collect_results() -> tuple[
    Callable[[int, str], None],
    Callable[[int, CorpwebError], None],
    list[tuple[int, str]],
    list[tuple[int, CorpwebError]],
]:
    """Create on_data/on_error callbacks that collect into lists.

    Returns:
        A tuple of (on_data, on_error, records, errors). ``records`` holds
        (corp_id, json_line) pairs and ``errors`` holds (corp_id, error)
        pairs, both in the order the driver reported them.

    Example:
        on_data, on_error, records, errors = collect_results()
        driver = SyncDriver(on_data=on_data, on_error=on_error)
        driver.run([7, 8, 9])
        assert [corp_id for corp_id, _ in records] == [7, 9]
    """
    records: list[tuple[int, str]] = []
    errors: list[tuple[int, CorpwebError]] = []

    def on_data(corp_id: int, line: str) -> None:
        records.append((corp_id, line))

    def on_error(corp_id: int, error: CorpwebError) -> None:
        errors.append((corp_id, error))

    return on_data, on_error, records, errors


def collect_results_async() -> tuple[
    Callable[[int, str], Awaitable[None]],
    Callable[[int, CorpwebError], Awaitable[None]],
    list[tuple[int, str]],
    list[tuple[int, CorpwebError]],
]:
    """Async version of collect_results for use with AsyncDriver."""
    records: list[tuple[int, str]] = []
    errors: list[tuple[int, CorpwebError]] = []

    async def on_data(corp_id: int, line: str) -> None:
        records.append((corp_id, line))

    async def on_error(corp_id: int, error: CorpwebError) -> None:
        errors.append((corp_id, error))

    return on_data, on_error, records, errors


def decoded(records: list[tuple[int, str]]) -> list[dict[str, Any]]:
    """Decode collected JSON lines."""
    return [json.loads(line) for _, line in records]
