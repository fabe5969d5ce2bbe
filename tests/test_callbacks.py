"""Tests for the driver callback factories."""

import io

import pytest

from corpweb.common.exceptions import RemoteError, TransportError
from corpweb.driver.callbacks import (
    as_async,
    write_error_reports,
    write_json_lines,
)


class TestWriteJsonLines:
    """Tests for write_json_lines()."""

    def test_one_line_per_record(self):
        """Each record shall be written followed by a newline."""
        out = io.StringIO()
        callback = write_json_lines(out)

        callback(7, '{"id":7}')
        callback(9, '{"id":9}')

        assert out.getvalue() == '{"id":7}\n{"id":9}\n'


class TestWriteErrorReports:
    """Tests for write_error_reports()."""

    def test_report_line(self):
        """A report shall name the id and the error."""
        err = io.StringIO()
        callback = write_error_reports(err)

        callback(8, RemoteError("No records found for the FEIN entered."))

        assert err.getvalue() == (
            'error on 8: corporation database error: '
            '"No records found for the FEIN entered."\n'
        )

    def test_causes_are_listed(self):
        """Each cause shall get its own caused-by line."""
        err = io.StringIO()
        callback = write_error_reports(err)
        try:
            try:
                raise ValueError("connection reset")
            except ValueError as e:
                raise TransportError(
                    "Could not fetch corporation #000000007",
                    "http://registry.test/",
                    7,
                ) from e
        except TransportError as e:
            callback(7, e)

        lines = err.getvalue().splitlines()
        assert lines == [
            "error on 7: Could not fetch corporation #000000007",
            "caused by: connection reset",
        ]

    def test_backtrace(self):
        """With backtrace the traceback shall follow the report."""
        err = io.StringIO()
        callback = write_error_reports(err, backtrace=True)
        try:
            raise RemoteError("No records found")
        except RemoteError as e:
            callback(8, e)

        assert "backtrace:" in err.getvalue()
        assert "test_backtrace" in err.getvalue()


class TestAsAsync:
    """Tests for as_async()."""

    @pytest.mark.asyncio
    async def test_as_async(self):
        """as_async shall produce an awaitable wrapper around the callback."""
        out = io.StringIO()
        callback = as_async(write_json_lines(out))

        await callback(7, '{"id":7}')

        assert out.getvalue() == '{"id":7}\n'
