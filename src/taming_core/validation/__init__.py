"""Structural validation of copy and visual outputs."""

from taming_core.validation.engine import ValidationEngine, to_finding
from taming_core.validation.protocol import (
    ValidationCheckResult,
    VisualCheckContext,
)
from taming_core.validation.registry import CheckRegistry, get_default_registry

__all__ = [
    "CheckRegistry",
    "ValidationCheckResult",
    "ValidationEngine",
    "VisualCheckContext",
    "get_default_registry",
    "to_finding",
]
