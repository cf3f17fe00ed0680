"""Single-flight lock guarding batch processing runs."""

import logging
import threading
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class LockState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class ProcessingLock:
    """Non-reentrant flag that allows one batch run at a time."""

    def __init__(self):
        self._guard = threading.Lock()
        self._state = LockState.IDLE
        self._owner: Optional[str] = None

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def is_locked(self) -> bool:
        return self._state is LockState.RUNNING

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    def acquire(self, owner: Optional[str] = None) -> bool:
        """Move Idle -> Running. Returns False if a run already holds the lock."""
        with self._guard:
            if self._state is LockState.RUNNING:
                logger.info(f"Processing lock held by {self._owner}, cannot acquire")
                return False
            self._state = LockState.RUNNING
            self._owner = owner
        logger.debug(f"Processing lock acquired by {owner}")
        return True

    def release(self, owner: Optional[str] = None) -> None:
        """Move Running -> Idle. Idempotent.

        When ``owner`` is given, the lock is only released if that owner still
        holds it, so a run that was force-released cannot free a newer run's lock.
        """
        with self._guard:
            if self._state is LockState.IDLE:
                return
            if owner is not None and owner != self._owner:
                logger.warning(f"Lock release by {owner} ignored, held by {self._owner}")
                return
            self._state = LockState.IDLE
            self._owner = None
        logger.debug("Processing lock released")

    def force_release(self) -> None:
        """Release regardless of owner (the UI closed the batch)."""
        if self.is_locked:
            logger.warning(f"Force releasing processing lock held by {self._owner}")
        self.release()
