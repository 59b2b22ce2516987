"""Export adapters."""

from taming_io.export.json_writer import JsonExportWriter

__all__ = ["JsonExportWriter"]
