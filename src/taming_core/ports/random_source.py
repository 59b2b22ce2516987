"""Injectable random source used for jitter and stylistic selection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class RandomSourceProtocol(Protocol):
    """Subset of ``random.Random`` the core depends on."""

    def uniform(self, a: float, b: float) -> float:
        """Return a float in [a, b]."""
        raise NotImplementedError

    def choice[T](self, seq: Sequence[T]) -> T:
        """Return one element of a non-empty sequence."""
        raise NotImplementedError
