"""Registry for structural validation checks."""

from __future__ import annotations

from collections.abc import Callable

from taming_core.validation.checks.anchor_binding import AnchorBindingCheck
from taming_core.validation.checks.anomaly_context import AnomalyContextCheck
from taming_core.validation.checks.anti_cliche import AntiClicheCheck
from taming_core.validation.checks.bilingual_hint import BilingualHintCheck
from taming_core.validation.checks.forbidden_terms import ForbiddenTermsCheck
from taming_core.validation.checks.prompt_length import PromptLengthCheck
from taming_core.validation.checks.scene_count import SceneCountCheck
from taming_core.validation.checks.style_marker import StyleMarkerCheck
from taming_core.validation.protocol import CopyCheck, VisualCheck

type CopyCheckFactory = Callable[[], CopyCheck]
type VisualCheckFactory = Callable[[], VisualCheck]

DEFAULT_COPY_CHECKS = ("anchor_binding", "anti_cliche")
DEFAULT_VISUAL_CHECKS = (
    "scene_count",
    "bilingual_hint",
    "prompt_length",
    "forbidden_terms",
    "anomaly_context",
    "style_marker",
)


class CheckRegistry:
    """Registry of copy and visual check factories keyed by name."""

    def __init__(self) -> None:
        """Initialize an empty check registry."""
        self._copy_factories: dict[str, CopyCheckFactory] = {}
        self._visual_factories: dict[str, VisualCheckFactory] = {}

    def register_copy(self, name: str, factory: CopyCheckFactory) -> None:
        """Register a copy check factory.

        Raises:
            ValueError: If a check with this name is already registered.
        """
        self._ensure_unique(name)
        self._copy_factories[name] = factory

    def register_visual(self, name: str, factory: VisualCheckFactory) -> None:
        """Register a visual check factory.

        Raises:
            ValueError: If a check with this name is already registered.
        """
        self._ensure_unique(name)
        self._visual_factories[name] = factory

    def create_copy(self, name: str) -> CopyCheck:
        """Create a copy check instance by name.

        Raises:
            ValueError: If the check name is not registered.
        """
        factory = self._copy_factories.get(name)
        if factory is None:
            raise ValueError(f"Unknown copy check: {name}")
        return factory()

    def create_visual(self, name: str) -> VisualCheck:
        """Create a visual check instance by name.

        Raises:
            ValueError: If the check name is not registered.
        """
        factory = self._visual_factories.get(name)
        if factory is None:
            raise ValueError(f"Unknown visual check: {name}")
        return factory()

    def list_checks(self) -> list[str]:
        """List all registered check names.

        Returns:
            Sorted list of registered check names.
        """
        return sorted([*self._copy_factories, *self._visual_factories])

    def _ensure_unique(self, name: str) -> None:
        if name in self._copy_factories or name in self._visual_factories:
            raise ValueError(f"Check already registered: {name}")


def get_default_registry() -> CheckRegistry:
    """Get a registry with all built-in checks.

    Returns:
        CheckRegistry with the standard copy and visual checks registered.
    """
    registry = CheckRegistry()
    registry.register_copy("anchor_binding", AnchorBindingCheck)
    registry.register_copy("anti_cliche", AntiClicheCheck)
    registry.register_visual("scene_count", SceneCountCheck)
    registry.register_visual("bilingual_hint", BilingualHintCheck)
    registry.register_visual("prompt_length", PromptLengthCheck)
    registry.register_visual("forbidden_terms", ForbiddenTermsCheck)
    registry.register_visual("anomaly_context", AnomalyContextCheck)
    registry.register_visual("style_marker", StyleMarkerCheck)
    return registry
