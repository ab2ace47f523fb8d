"""TransferStore - the single pending-transfer slot shared by both phases."""

import logging
import threading
from enum import Enum

from projdup.domain.shared.error import InvalidStateError
from projdup.domain.transfer.model.snapshot import TransferSnapshot

logger = logging.getLogger(__name__)


class TransferState(Enum):
    """Two-state transfer machine.

    IDLE -> ARMED on arm() after a save; ARMED -> IDLE on the first disarm().
    """

    IDLE = "idle"
    ARMED = "armed"


class TransferStore:
    """Holds at most one snapshot plus the armed flag.

    The slot is last-write-wins and survives an apply run unless cleared.
    disarm() is an atomic check-and-clear: exactly one caller observes the
    ARMED -> IDLE transition, so concurrent project-change notifications
    trigger at most one apply.
    """

    def __init__(self) -> None:
        self._snapshot: TransferSnapshot | None = None
        self._state = TransferState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> TransferState:
        return self._state

    @property
    def armed(self) -> bool:
        return self._state is TransferState.ARMED

    def save(self, snapshot: TransferSnapshot) -> None:
        with self._lock:
            if self._snapshot is not None:
                logger.debug("Overwriting pending snapshot captured at %s", self._snapshot.captured_at)
            self._snapshot = snapshot

    def load(self) -> TransferSnapshot | None:
        return self._snapshot

    def arm(self) -> None:
        with self._lock:
            if self._snapshot is None:
                raise InvalidStateError("Cannot arm transfer: no snapshot saved")
            self._state = TransferState.ARMED
        logger.info("Transfer armed, waiting for project change")

    def disarm(self) -> bool:
        """Move ARMED -> IDLE. Returns True only for the caller that made the move."""
        with self._lock:
            if self._state is not TransferState.ARMED:
                return False
            self._state = TransferState.IDLE
            return True

    def discard(self, snapshot: TransferSnapshot) -> bool:
        """Empty the slot if it still holds this snapshot and nothing is armed."""
        with self._lock:
            if self._snapshot is not snapshot or self._state is TransferState.ARMED:
                return False
            self._snapshot = None
            return True

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None
            self._state = TransferState.IDLE
