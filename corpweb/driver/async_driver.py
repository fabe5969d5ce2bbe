"""Asynchronous batch driver.

AsyncDriver runs the same per-id pipeline as SyncDriver on an
httpx.AsyncClient, with up to ``num_workers`` ids in flight at once. Three
differences from SyncDriver:

1. Fetches for consecutive ids overlap, bounded by num_workers.
2. Results are still reported strictly in id order, so the success and
   diagnostic streams match a sync run of the same batch.
3. After a halting failure, in-flight ids are cancelled and never reported.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable, Iterator
from typing import Any

from corpweb.common.exceptions import CorpwebError
from corpweb.common.page_element import parse_html
from corpweb.common.request_manager import AsyncRequestManager
from corpweb.data_types import (
    DEFAULT_BASE_URL,
    CorporationRequest,
    DateMode,
    Response,
)
from corpweb.driver.sync_driver import (
    STATUS_HALTED,
    STATUS_STOPPED,
    RunSummary,
    describe_ids,
    is_recoverable,
    serialize_record,
    unexpected_failure,
)
from corpweb.registry.assembler import extract_corporation

logger = logging.getLogger(__name__)


class AsyncDriver:
    """Asynchronous driver for corporation batches with concurrent fetches.

    Example usage:
        driver = AsyncDriver(on_data=on_data, on_error=on_error, num_workers=4)
        summary = await driver.run(range(0, 100))
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        date_mode: DateMode = DateMode.RAW,
        request_manager: AsyncRequestManager | None = None,
        on_data: Callable[[int, str], Awaitable[None]] | None = None,
        on_error: Callable[[int, CorpwebError], Awaitable[None]]
        | None = None,
        on_run_start: Callable[[str], Awaitable[None]] | None = None,
        on_run_complete: Callable[
            [str, CorpwebError | None], Awaitable[None]
        ]
        | None = None,
        stop_event: asyncio.Event | None = None,
        num_workers: int = 1,
    ) -> None:
        """Initialize the driver.

        Args:
            base_url: Summary page URL the ``?FEIN=`` parameter is appended to.
            date_mode: Whether record dates stay as page text or are parsed.
            request_manager: AsyncRequestManager for fetching pages. If None,
                the driver creates one and closes it when a run finishes.
            on_data: Async callback invoked with (corp_id, json_line) for
                every serialized record, in id order.
            on_error: Async callback invoked with (corp_id, error) for every
                reported failure, in id order.
            on_run_start: Async callback invoked when a run starts.
            on_run_complete: Async callback invoked when a run finishes with
                the status and the halting error, if any.
            stop_event: Optional asyncio.Event for graceful shutdown. When
                set, no further ids are started and in-flight ids are
                cancelled.
            num_workers: Maximum number of ids processed concurrently.
                Defaults to 1.

        Raises:
            ValueError: If num_workers is less than 1.
        """
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")

        self.base_url = base_url
        self.date_mode = date_mode

        if request_manager is not None:
            self.request_manager = request_manager
            self._owns_request_manager = False
        else:
            self.request_manager = AsyncRequestManager()
            self._owns_request_manager = True

        self.on_data = on_data
        self.on_error = on_error
        self.on_run_start = on_run_start
        self.on_run_complete = on_run_complete
        self.stop_event = stop_event
        self.num_workers = num_workers

    async def resolve_request(self, request: CorporationRequest) -> Response:
        return await self.request_manager.resolve_request(request)

    async def process_id(self, corp_id: int) -> str:
        """Run the whole per-id pipeline and return the JSON line.

        Raises:
            CorpwebError: Whatever stage failed first.
        """
        request = CorporationRequest.for_id(corp_id, self.base_url)
        try:
            response = await self.resolve_request(request)
            page = parse_html(response.content, response.url)
            record = extract_corporation(corp_id, page, self.date_mode)
            return serialize_record(corp_id, record)
        except CorpwebError:
            raise
        except Exception as e:
            raise unexpected_failure(corp_id, request.url) from e

    async def run_one(self, corp_id: int) -> str:
        """Single-id mode: return the JSON line or raise the error."""
        try:
            return await self.process_id(corp_id)
        finally:
            if self._owns_request_manager:
                await self.request_manager.close()

    async def run(self, ids: Iterable[int]) -> RunSummary:
        """Process ``ids`` with up to num_workers in flight.

        Returns:
            A RunSummary identical to what SyncDriver.run would produce for
            the same pages.
        """
        description = describe_ids(ids)
        if self.on_run_start:
            await self.on_run_start(description)
        logger.info(
            f"Starting run over {description} "
            f"with {self.num_workers} worker(s)"
        )

        summary = RunSummary()
        pending: deque[tuple[int, asyncio.Task[str]]] = deque()
        id_iter = iter(ids)

        try:
            self._fill(pending, id_iter)
            while pending:
                corp_id, task = pending.popleft()
                try:
                    line = await task
                except CorpwebError as e:
                    await self._report_error(corp_id, e)
                    if not is_recoverable(e):
                        summary.halted_on = corp_id
                        summary.error = e
                        summary.status = STATUS_HALTED
                        break
                    summary.skipped.append(corp_id)
                else:
                    summary.succeeded.append(corp_id)
                    if self.on_data:
                        await self.on_data(corp_id, line)

                if self._stopping():
                    break
                self._fill(pending, id_iter)

            if self._stopping() and summary.status != STATUS_HALTED:
                summary.status = STATUS_STOPPED
        finally:
            await self._cancel(pending)
            if self._owns_request_manager:
                await self.request_manager.close()

            logger.info(
                f"Run over {description} {summary.status}: "
                f"{len(summary.succeeded)} emitted, "
                f"{len(summary.skipped)} skipped"
            )
            if self.on_run_complete:
                await self.on_run_complete(summary.status, summary.error)

        return summary

    def _stopping(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    def _fill(
        self,
        pending: deque[tuple[int, asyncio.Task[str]]],
        id_iter: Iterator[int],
    ) -> None:
        """Start ids until num_workers are in flight or ids run out."""
        while len(pending) < self.num_workers and not self._stopping():
            corp_id = next(id_iter, None)
            if corp_id is None:
                return
            logger.debug(f"Processing corporation #{corp_id}")
            pending.append(
                (corp_id, asyncio.create_task(self.process_id(corp_id)))
            )

    async def _cancel(
        self, pending: deque[tuple[int, asyncio.Task[str]]]
    ) -> None:
        if not pending:
            return
        logger.debug(f"Cancelling {len(pending)} in-flight id(s)")
        tasks = [task for _, task in pending]
        for task in tasks:
            task.cancel()
        # Outcomes of cancelled ids are discarded, never reported.
        await asyncio.gather(*tasks, return_exceptions=True)
        pending.clear()

    async def _report_error(self, corp_id: int, error: CorpwebError) -> None:
        extra: dict[str, Any] = {
            "corp_id": corp_id,
            "error_type": type(error).__name__,
        }
        if is_recoverable(error):
            logger.info(
                f"Skipping corporation #{corp_id}: {error}", extra=extra
            )
        else:
            logger.error(
                f"Halting on corporation #{corp_id}: {error}", extra=extra
            )
        if self.on_error:
            await self.on_error(corp_id, error)
