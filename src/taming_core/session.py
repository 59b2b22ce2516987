"""Host session serializing intents and persisting snapshots."""

from __future__ import annotations

import asyncio
import logging

from taming_core.ports.storage import SnapshotStoreProtocol
from taming_core.state_machine import apply, default_state, is_accepted
from taming_schemas.intents import Intent
from taming_schemas.protocol import ProtocolState

_log = logging.getLogger(__name__)


class ProtocolSession:
    """Single writer around the protocol state machine.

    Intents are applied one at a time under a lock. Every accepted intent
    is followed by a snapshot write, so the stored snapshot always matches
    the most recent accepted intent.
    """

    def __init__(
        self,
        state: ProtocolState | None = None,
        snapshot_store: SnapshotStoreProtocol | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            state: Initial state (defaults to the protocol defaults).
            snapshot_store: Optional store receiving a snapshot after every
                accepted intent.
        """
        self._state = state or default_state()
        self._store = snapshot_store
        self._lock = asyncio.Lock()

    @classmethod
    async def open(
        cls, snapshot_store: SnapshotStoreProtocol | None = None
    ) -> ProtocolSession:
        """Create a session from the stored snapshot, if one exists.

        Args:
            snapshot_store: Store to load from and save to.

        Returns:
            ProtocolSession: Session seeded with the snapshot or defaults.
        """
        state: ProtocolState | None = None
        if snapshot_store is not None:
            state = await snapshot_store.load_snapshot()
        if state is None:
            _log.debug("No usable snapshot, starting from defaults")
        return cls(state=state, snapshot_store=snapshot_store)

    @property
    def state(self) -> ProtocolState:
        """Current protocol state."""
        return self._state

    async def dispatch(self, intent: Intent) -> ProtocolState:
        """Apply an intent and persist the resulting state.

        Args:
            intent: Intent to apply.

        Returns:
            ProtocolState: State after the intent (unchanged if rejected).
        """
        async with self._lock:
            if not is_accepted(self._state, intent):
                _log.info("Ignoring %s while replaying", intent.kind)
                return self._state
            self._state = apply(self._state, intent)
            if self._store is not None:
                await self._store.save_snapshot(self._state)
            return self._state
