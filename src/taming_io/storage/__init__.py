"""Storage adapters for snapshots and logs."""

from taming_io.storage.filesystem import FileSystemLogStore, FileSystemSnapshotStore
from taming_io.storage.log_sink import (
    CompositeLogSink,
    ConsoleLogSink,
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
    "NoopLogSink",
    "RunFileLogSink",
    "build_log_sink",
]
