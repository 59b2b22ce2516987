"""Filesystem adapters for taming: snapshots, logs and exports."""

from taming_io.export import JsonExportWriter
from taming_io.storage import (
    CompositeLogSink,
    ConsoleLogSink,
    FileSystemLogStore,
    FileSystemSnapshotStore,
    FilteredLogSink,
    NoopLogSink,
    RunFileLogSink,
    build_log_sink,
)

__all__ = [
    "CompositeLogSink",
    "ConsoleLogSink",
    "FileSystemLogStore",
    "FileSystemSnapshotStore",
    "FilteredLogSink",
    "JsonExportWriter",
    "NoopLogSink",
    "RunFileLogSink",
    "build_log_sink",
]
