"""Log sinks routing run and phase events to per-run files or a stream."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from taming_core.ports.orchestrator import LogSinkProtocol
from taming_core.ports.storage import LogStoreProtocol
from taming_schemas.config import LoggingConfig, LogSinkConfig
from taming_schemas.logs import LogEntry
from taming_schemas.primitives import LogLevel, LogSinkType, PhaseName

_LEVEL_RANK = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


class RunFileLogSink(LogSinkProtocol):
    """Append every entry to the JSONL file of the run it belongs to."""

    def __init__(self, store: LogStoreProtocol) -> None:
        """Initialize the sink with the store that owns the run files."""
        self._store = store

    async def emit_log(self, entry: LogEntry) -> None:
        """Append the entry to its run's log."""
        await self._store.append_log(entry)


class ConsoleLogSink(LogSinkProtocol):
    """Write entries to a text stream as compact JSON lines (stderr default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize the console log sink.

        Args:
            stream: Output stream for JSONL log entries.
        """
        self._stream = stream or sys.stderr

    async def emit_log(self, entry: LogEntry) -> None:
        """Write the entry as one JSON line without unset fields."""
        self._stream.write(entry.model_dump_json(exclude_none=True) + "\n")
        self._stream.flush()


class NoopLogSink(LogSinkProtocol):
    """Log sink that drops all log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Ignore log entries."""
        return None


class FilteredLogSink(LogSinkProtocol):
    """Forward entries that meet a level threshold and a phase filter.

    Run-level entries carry no phase and always pass the phase filter, so a
    narrowed log still shows where each run starts and how it ends.
    """

    def __init__(
        self,
        delegate: LogSinkProtocol,
        *,
        phases: Iterable[PhaseName] | None = None,
        min_level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        """Initialize the filter.

        Args:
            delegate: Sink receiving accepted entries.
            phases: Phases whose events are forwarded; None forwards all.
            min_level: Lowest level forwarded.
        """
        self._delegate = delegate
        self._phases = (
            frozenset(PhaseName(phase) for phase in phases)
            if phases is not None
            else None
        )
        self._min_rank = _LEVEL_RANK[LogLevel(min_level)]

    def accepts(self, entry: LogEntry) -> bool:
        """Whether the entry passes the level and phase filters."""
        if _LEVEL_RANK[LogLevel(entry.level)] < self._min_rank:
            return False
        if self._phases is None or entry.phase is None:
            return True
        return PhaseName(entry.phase) in self._phases

    async def emit_log(self, entry: LogEntry) -> None:
        """Forward the entry when it is accepted."""
        if self.accepts(entry):
            await self._delegate.emit_log(entry)


class CompositeLogSink(LogSinkProtocol):
    """Log sink that forwards entries to multiple sinks in order."""

    def __init__(self, sinks: Iterable[LogSinkProtocol]) -> None:
        """Initialize the composite log sink."""
        self._sinks = list(sinks)

    async def emit_log(self, entry: LogEntry) -> None:
        """Forward the entry to each sink."""
        for sink in self._sinks:
            await sink.emit_log(entry)


def build_log_sink(
    logging_config: LoggingConfig,
    log_store: LogStoreProtocol,
    *,
    stream: TextIO | None = None,
) -> LogSinkProtocol:
    """Build the run log sink from configuration.

    Sinks configured with a phase list or a level above debug are wrapped in
    a :class:`FilteredLogSink`.

    Args:
        logging_config: Logging configuration.
        log_store: Store holding one JSONL file per run.
        stream: Optional stream for console logging.

    Returns:
        LogSinkProtocol: Configured sink, wrapped in a composite when more
            than one sink is enabled.
    """
    sinks = [
        _filtered(sink_config, _base_sink(sink_config, log_store, stream))
        for sink_config in logging_config.sinks
    ]
    if len(sinks) == 1:
        return sinks[0]
    return CompositeLogSink(sinks)


def _base_sink(
    sink_config: LogSinkConfig,
    log_store: LogStoreProtocol,
    stream: TextIO | None,
) -> LogSinkProtocol:
    match LogSinkType(sink_config.type):
        case LogSinkType.FILE:
            return RunFileLogSink(log_store)
        case LogSinkType.CONSOLE:
            return ConsoleLogSink(stream=stream)
        case LogSinkType.NOOP:
            return NoopLogSink()


def _filtered(sink_config: LogSinkConfig, sink: LogSinkProtocol) -> LogSinkProtocol:
    min_level = LogLevel(sink_config.min_level)
    if sink_config.phases is None and min_level == LogLevel.DEBUG:
        return sink
    return FilteredLogSink(sink, phases=sink_config.phases, min_level=min_level)
