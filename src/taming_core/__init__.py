"""Core orchestration, validation and protocol state for taming."""

from taming_core.orchestrator import PipelineOrchestrator
from taming_core.session import ProtocolSession
from taming_core.state_machine import apply, default_state
from taming_schemas.version import VERSION

__all__ = [
    "VERSION",
    "PipelineOrchestrator",
    "ProtocolSession",
    "apply",
    "default_state",
]
