"""Pydantic schemas for the taming protocol."""

from taming_schemas.base import BaseSchema
from taming_schemas.version import VERSION, VersionInfo

__all__ = ["VERSION", "BaseSchema", "VersionInfo"]
