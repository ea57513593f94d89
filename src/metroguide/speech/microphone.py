"""
Exclusive microphone ownership.

Two consumers compete for the microphone: the home dialogue and the vision
test flow. Ownership is a guarded swap; there is never more than one owner.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class MicOwner(Enum):
    """Possible microphone owners."""
    NONE = "NONE"
    HOME_DIALOGUE = "HOME_DIALOGUE"
    VISION_TEST = "VISION_TEST"


class MicrophoneArbiter:
    """
    Owner state machine for the microphone.

    ``acquire`` succeeds when the mic is free or already held by the caller.
    With ``force=True`` the current owner is evicted and its revoke callback
    runs (outside the lock) so it can stop its recognizer.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._owner = MicOwner.NONE
        self._revoke_callbacks: Dict[MicOwner, Callable[[], None]] = {}

    @property
    def owner(self) -> MicOwner:
        with self._lock:
            return self._owner

    def on_revoke(self, owner: MicOwner, callback: Callable[[], None]):
        """Register what to do when ``owner`` is forcibly evicted."""
        self._revoke_callbacks[owner] = callback

    def acquire(self, owner: MicOwner, force: bool = False) -> bool:
        """
        Try to take the microphone.

        Args:
            owner: Requesting owner (not NONE)
            force: Evict a different current owner

        Returns:
            True if ``owner`` holds the microphone afterwards
        """
        if owner is MicOwner.NONE:
            raise ValueError("NONE cannot acquire the microphone")

        evicted: Optional[MicOwner] = None
        with self._lock:
            if self._owner in (MicOwner.NONE, owner):
                self._owner = owner
                return True
            if not force:
                logger.debug(f"Microphone busy: {owner.value} denied, held by {self._owner.value}")
                return False
            evicted = self._owner
            self._owner = owner

        logger.info(f"Microphone taken by {owner.value}, evicting {evicted.value}")
        callback = self._revoke_callbacks.get(evicted)
        if callback is not None:
            callback()
        return True

    def release(self, owner: MicOwner) -> bool:
        """Release if ``owner`` currently holds the microphone."""
        with self._lock:
            if self._owner is not owner:
                return False
            self._owner = MicOwner.NONE
            return True

    def is_held_by(self, owner: MicOwner) -> bool:
        return self.owner is owner
