"""Tests for logging module."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger

from imbue.imbue_common.logging import format_value_for_log
from imbue.imbue_common.logging import log_span
from imbue.imbue_common.logging import setup_logging


class _SpanTestError(Exception):
    pass


@contextmanager
def _capture_records() -> Iterator[list[dict[str, Any]]]:
    records: list[dict[str, Any]] = []

    def sink(message: Any) -> None:
        record = message.record
        records.append(
            {
                "message": record["message"],
                "level": record["level"].name,
                "extra": dict(record["extra"]),
            }
        )

    handler_id = logger.add(sink, level="TRACE", format="{message}")
    try:
        yield records
    finally:
        logger.remove(handler_id)


def test_setup_logging_with_custom_level() -> None:
    """setup_logging should accept log levels in any case."""
    setup_logging(level="DEBUG")
    setup_logging(level="info")


def test_format_value_for_log_keeps_short_values() -> None:
    assert format_value_for_log("ready") == "'ready'"


def test_format_value_for_log_truncates_long_values() -> None:
    formatted = format_value_for_log("x" * 1000)

    assert len(formatted) == 200
    assert formatted.endswith("...")


def test_log_span_emits_debug_on_entry_and_trace_on_exit() -> None:
    with _capture_records() as records:
        with log_span("waiting for {}", "job-1"):
            pass

    assert len(records) == 2
    assert records[0]["message"] == "waiting for job-1"
    assert records[0]["level"] == "DEBUG"
    assert "waiting for job-1 [done in " in records[1]["message"]
    assert records[1]["level"] == "TRACE"


def test_log_span_passes_context_kwargs_via_contextualize() -> None:
    with _capture_records() as records:
        with log_span("waiting", waiter="JobWaiter"):
            logger.info("inside")
        logger.info("outside")

    assert records[0]["extra"]["waiter"] == "JobWaiter"
    assert records[1]["extra"]["waiter"] == "JobWaiter"
    assert "waiter" not in records[3]["extra"]


def test_log_span_logs_failure_timing_on_exception() -> None:
    with _capture_records() as records:
        try:
            with log_span("risky wait"):
                raise _SpanTestError("boom")
        except _SpanTestError:
            pass

    assert len(records) == 2
    assert "risky wait [failed after " in records[1]["message"]
    assert records[1]["level"] == "TRACE"
