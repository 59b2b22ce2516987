"""Taming: structured judgment, copy and visual prompt pipeline."""

from taming_core import VERSION

__version__ = str(VERSION)
