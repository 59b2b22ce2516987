"""Unit tests for log sink adapters."""

from __future__ import annotations

import io
import json
from uuid import uuid7

import pytest

from taming_core.ports.storage import LogStoreProtocol
from taming_io.storage.log_sink import (
    CompositeLogSink,
    ConsoleLogSink,
    FilteredLogSink,
    NoopLogSink,
    RunFileLogSink,
    build_log_sink,
)
from taming_schemas.config import LoggingConfig, LogSinkConfig
from taming_schemas.logs import LogEntry
from taming_schemas.primitives import LogLevel, LogSinkType, PhaseName


class _StubLogStore(LogStoreProtocol):
    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    async def append_log(self, entry: LogEntry) -> None:
        self.entries.append(entry)


def _config(*types: LogSinkType) -> LoggingConfig:
    return LoggingConfig(sinks=[LogSinkConfig(type=sink_type) for sink_type in types])


@pytest.fixture
def entry() -> LogEntry:
    """Sample log entry.

    Returns:
        LogEntry: Run start entry.
    """
    return LogEntry(
        timestamp="2026-01-26T12:00:00Z",
        level=LogLevel.INFO,
        event="run_started",
        run_id=uuid7(),
        message="Run started",
    )


def test_single_sink_is_returned_directly() -> None:
    """One configured sink is not wrapped."""
    file_sink = build_log_sink(_config(LogSinkType.FILE), _StubLogStore())
    noop_sink = build_log_sink(_config(LogSinkType.NOOP), _StubLogStore())

    assert isinstance(file_sink, RunFileLogSink)
    assert isinstance(noop_sink, NoopLogSink)


@pytest.mark.asyncio
async def test_composite_sink_fans_out(entry: LogEntry) -> None:
    """Multiple sinks each receive the entry."""
    store = _StubLogStore()
    stream = io.StringIO()

    sink = build_log_sink(
        _config(LogSinkType.FILE, LogSinkType.CONSOLE), store, stream=stream
    )
    await sink.emit_log(entry)

    assert isinstance(sink, CompositeLogSink)
    assert store.entries == [entry]
    assert json.loads(stream.getvalue())["event"] == "run_started"


@pytest.mark.asyncio
async def test_console_sink_writes_one_line_per_entry(entry: LogEntry) -> None:
    """Console entries are newline-terminated JSON."""
    stream = io.StringIO()
    sink = ConsoleLogSink(stream=stream)

    await sink.emit_log(entry)
    await sink.emit_log(entry)

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    assert json.loads(lines[1])["message"] == "Run started"


def _phase_entry(phase: PhaseName, level: LogLevel = LogLevel.INFO) -> LogEntry:
    return LogEntry(
        timestamp="2026-01-26T12:00:00Z",
        level=level,
        event=f"{phase}_started",
        run_id=uuid7(),
        phase=phase,
        message="Phase started",
    )


@pytest.mark.asyncio
async def test_console_sink_omits_unset_fields(entry: LogEntry) -> None:
    """Run-level entries are written without phase or data keys."""
    stream = io.StringIO()

    await ConsoleLogSink(stream=stream).emit_log(entry)

    payload = json.loads(stream.getvalue())
    assert "phase" not in payload
    assert "data" not in payload


@pytest.mark.asyncio
async def test_phase_filter_keeps_run_events(entry: LogEntry) -> None:
    """Only listed phases pass; run-level entries are always forwarded."""
    store = _StubLogStore()
    sink = FilteredLogSink(RunFileLogSink(store), phases=[PhaseName.VISUAL])
    visual = _phase_entry(PhaseName.VISUAL)

    await sink.emit_log(entry)
    await sink.emit_log(_phase_entry(PhaseName.COPY))
    await sink.emit_log(visual)

    assert store.entries == [entry, visual]


def test_level_threshold() -> None:
    """Entries below the minimum level are dropped."""
    sink = FilteredLogSink(NoopLogSink(), min_level=LogLevel.WARN)

    assert not sink.accepts(_phase_entry(PhaseName.COPY, LogLevel.INFO))
    assert sink.accepts(_phase_entry(PhaseName.COPY, LogLevel.WARN))
    assert sink.accepts(_phase_entry(PhaseName.COPY, LogLevel.ERROR))


@pytest.mark.asyncio
async def test_configured_filters_wrap_the_sink() -> None:
    """Phase and level settings from TOML narrow the console stream."""
    config = LoggingConfig.model_validate(
        {"sinks": [{"type": "console", "phases": ["copy"], "min_level": "warn"}]},
        strict=False,
    )
    stream = io.StringIO()
    sink = build_log_sink(config, _StubLogStore(), stream=stream)

    await sink.emit_log(_phase_entry(PhaseName.COPY, LogLevel.INFO))
    await sink.emit_log(_phase_entry(PhaseName.VISUAL, LogLevel.ERROR))
    await sink.emit_log(_phase_entry(PhaseName.COPY, LogLevel.WARN))

    assert isinstance(sink, FilteredLogSink)
    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["phase"] == "copy"
