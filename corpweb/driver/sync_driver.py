"""Synchronous batch driver.

SyncDriver walks a sequence of corporation ids in order. Each id is one
unit of work: fetch the summary page, parse it, check for the registry
error banner, assemble the record and serialize it to a JSON line. No id
starts before the previous one has finished.

Outcomes are reported through callbacks rather than return values:

- on_data(corp_id, json_line) for every serialized record.
- on_error(corp_id, exc) for every failed id.

RemoteError is the only recoverable failure; the batch continues with the
next id. Any other failure is reported and then halts the batch.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from corpweb.common.exceptions import (
    CorpwebError,
    RemoteError,
    SerializationError,
)
from corpweb.common.page_element import parse_html
from corpweb.common.request_manager import SyncRequestManager
from corpweb.data_types import (
    DEFAULT_BASE_URL,
    CorporationRequest,
    DateMode,
    Response,
)
from corpweb.registry.assembler import extract_corporation

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_HALTED = "halted"
STATUS_STOPPED = "stopped"


@dataclass
class RunSummary:
    """What happened during one batch run.

    Attributes:
        succeeded: Ids whose records were emitted, in emission order.
        skipped: Ids that failed with a recoverable RemoteError.
        halted_on: The id whose failure halted the batch, if any.
        error: The halting error, if any.
        status: "completed", "halted" or "stopped" (stop_event was set).
    """

    succeeded: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    halted_on: int | None = None
    error: CorpwebError | None = None
    status: str = STATUS_COMPLETED

    @property
    def halted(self) -> bool:
        return self.status == STATUS_HALTED


def describe_ids(ids: Iterable[int] | range) -> str:
    """Short description of an id sequence for lifecycle hooks and logs."""
    if isinstance(ids, range) and ids.step == 1 and len(ids):
        return f"{ids.start}..{ids.stop - 1}"
    return "ids"


def is_recoverable(error: CorpwebError) -> bool:
    """Whether the batch may continue after ``error``."""
    return isinstance(error, RemoteError)


def serialize_record(corp_id: int, record: BaseModel) -> str:
    """Dump a record to one compact JSON line.

    Raises:
        SerializationError: If pydantic cannot serialize the record.
    """
    try:
        return record.model_dump_json()
    except (ValueError, TypeError) as e:
        raise SerializationError(
            f"could not serialize corporation #{corp_id}", corp_id=corp_id
        ) from e


def unexpected_failure(corp_id: int, url: str) -> CorpwebError:
    """Error raised in place of a collaborator exception outside the taxonomy.

    Callers chain the original exception so diagnostics show it on a
    "caused by" line.
    """
    return CorpwebError(
        f"unexpected failure processing corporation #{corp_id} at {url}"
    )


class SyncDriver:
    """Synchronous driver for corporation batches.

    Example usage:
        from tests.utils import collect_results

        on_data, on_error, records, errors = collect_results()
        driver = SyncDriver(on_data=on_data, on_error=on_error)
        summary = driver.run(range(0, 100))
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        date_mode: DateMode = DateMode.RAW,
        request_manager: SyncRequestManager | None = None,
        on_data: Callable[[int, str], None] | None = None,
        on_error: Callable[[int, CorpwebError], None] | None = None,
        on_run_start: Callable[[str], None] | None = None,
        on_run_complete: Callable[[str, CorpwebError | None], None]
        | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            base_url: Summary page URL the ``?FEIN=`` parameter is appended to.
            date_mode: Whether record dates stay as page text or are parsed.
            request_manager: SyncRequestManager for fetching pages. If None,
                the driver creates one and closes it when a run finishes.
            on_data: Callback invoked with (corp_id, json_line) for every
                serialized record.
            on_error: Callback invoked with (corp_id, error) for every failed
                id, recoverable or not.
            on_run_start: Callback invoked when a run starts. Receives a
                description of the id range.
            on_run_complete: Callback invoked when a run finishes. Receives
                the status ("completed" | "halted" | "stopped") and the
                halting error, if any.
            stop_event: Optional threading.Event for graceful shutdown. When
                set, the driver stops before starting the next id.
        """
        self.base_url = base_url
        self.date_mode = date_mode

        if request_manager is not None:
            self.request_manager = request_manager
            self._owns_request_manager = False
        else:
            self.request_manager = SyncRequestManager()
            self._owns_request_manager = True

        self.on_data = on_data
        self.on_error = on_error
        self.on_run_start = on_run_start
        self.on_run_complete = on_run_complete
        self.stop_event = stop_event

    def resolve_request(self, request: CorporationRequest) -> Response:
        return self.request_manager.resolve_request(request)

    def process_id(self, corp_id: int) -> str:
        """Run the whole per-id pipeline and return the JSON line.

        Raises:
            CorpwebError: Whatever stage failed first. Exceptions from
                collaborators outside the taxonomy are wrapped.
        """
        request = CorporationRequest.for_id(corp_id, self.base_url)
        try:
            response = self.resolve_request(request)
            page = parse_html(response.content, response.url)
            record = extract_corporation(corp_id, page, self.date_mode)
            return serialize_record(corp_id, record)
        except CorpwebError:
            raise
        except Exception as e:
            raise unexpected_failure(corp_id, request.url) from e

    def run_one(self, corp_id: int) -> str:
        """Single-id mode: return the JSON line or raise the error.

        No callbacks are invoked.
        """
        try:
            return self.process_id(corp_id)
        finally:
            if self._owns_request_manager:
                self.request_manager.close()

    def run(self, ids: Iterable[int]) -> RunSummary:
        """Process ``ids`` in order.

        Returns:
            A RunSummary. The halting error is reported through on_error and
            recorded on the summary; it is not raised.

        Raises:
            ValueError: If an id is negative.
        """
        description = describe_ids(ids)
        if self.on_run_start:
            self.on_run_start(description)
        logger.info(f"Starting run over {description}")

        summary = RunSummary()
        try:
            for corp_id in ids:
                if self.stop_event and self.stop_event.is_set():
                    summary.status = STATUS_STOPPED
                    break

                logger.debug(f"Processing corporation #{corp_id}")
                try:
                    line = self.process_id(corp_id)
                except CorpwebError as e:
                    self._report_error(corp_id, e)
                    if is_recoverable(e):
                        summary.skipped.append(corp_id)
                        continue
                    summary.halted_on = corp_id
                    summary.error = e
                    summary.status = STATUS_HALTED
                    break

                summary.succeeded.append(corp_id)
                if self.on_data:
                    self.on_data(corp_id, line)
        finally:
            if self._owns_request_manager:
                self.request_manager.close()

            logger.info(
                f"Run over {description} {summary.status}: "
                f"{len(summary.succeeded)} emitted, "
                f"{len(summary.skipped)} skipped"
            )
            if self.on_run_complete:
                self.on_run_complete(summary.status, summary.error)

        return summary

    def _report_error(self, corp_id: int, error: CorpwebError) -> None:
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
            self.on_error(corp_id, error)
