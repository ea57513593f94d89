"""
Continuous-listening controller for the home dialogue.

Wraps the external speech recognizer (``is_available()``, ``start()``,
``stop()``) and owns the restart timer. The microphone is taken as
HOME_DIALOGUE through the MicrophoneArbiter; if the vision test flow takes it
by force, listening is switched off.
"""

import logging
import time
from typing import Callable, Optional, Sequence

from ..config import SpeechConfig
from ..speech.microphone import MicOwner, MicrophoneArbiter
from ..utils.scheduling import ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Speech recognition is not available on this device."


def choose_alternative(alternatives: Sequence[str], confidences: Optional[Sequence[float]] = None) -> Optional[str]:
    """
    Highest-confidence recognition hypothesis.

    Without usable confidences the first alternative wins; blank hypotheses
    are never chosen.
    """
    candidates = [(i, a) for i, a in enumerate(alternatives or []) if a and a.strip()]
    if not candidates:
        return None
    if confidences and len(confidences) == len(alternatives):
        return max(candidates, key=lambda c: confidences[c[0]])[1]
    return candidates[0][1]


class ListeningController:
    """
    Starts, pauses and restarts the recognizer.

    Attributes:
        continuous: Restart automatically after results, errors and speech
        is_listening: Recognizer currently capturing audio
        recognized_text: Latest partial/final text for UI display
        error_message: Terminal error surfaced once (recognizer unavailable)
    """

    def __init__(
        self,
        recognizer,
        microphone: MicrophoneArbiter,
        config: Optional[SpeechConfig] = None,
        scheduler=None,
        clock: Callable[[], float] = time.monotonic,
        continuous: bool = True,
        is_speaking: Callable[[], bool] = lambda: False,
    ):
        self.recognizer = recognizer
        self.microphone = microphone
        self.config = config or SpeechConfig()
        self.scheduler = scheduler or ThreadingScheduler()
        self.clock = clock
        self.continuous = continuous
        self.is_speaking = is_speaking

        self.is_listening = False
        self.recognized_text = ""
        self.error_message: Optional[str] = None
        self._last_start: Optional[float] = None
        self._restart: Optional[TimerHandle] = None

        self.microphone.on_revoke(MicOwner.HOME_DIALOGUE, self._on_revoked)

    def start_listening(self) -> bool:
        """
        Begin capturing speech.

        Returns:
            False when the mic belongs to another flow, the recognizer is
            unavailable, or the recognizer failed to start
        """
        if self.recognizer is None:
            return False
        if self.is_speaking():
            return False
        if not self.microphone.acquire(MicOwner.HOME_DIALOGUE):
            return False

        if not self.recognizer.is_available():
            if self.error_message is None:
                logger.error(UNAVAILABLE_MESSAGE)
                self.error_message = UNAVAILABLE_MESSAGE
            self.continuous = False
            self.microphone.release(MicOwner.HOME_DIALOGUE)
            return False

        try:
            self.recognizer.start()
        except Exception as e:
            logger.error(f"Failed to start recognizer: {e}")
            self.is_listening = False
            self.recognized_text = "Could not start the microphone"
            return False

        self.is_listening = True
        self.recognized_text = "Listening..."
        self._last_start = self.clock()
        logger.debug("Recognizer started")
        return True

    def stop_listening(self):
        """Stop listening and give the microphone back; disables auto-restart."""
        self.continuous = False
        self._cancel_restart()
        self._stop_recognizer()
        self.microphone.release(MicOwner.HOME_DIALOGUE)

    def pause(self):
        """Silence the recognizer while the speaker is active (keeps ownership)."""
        self._cancel_restart()
        if self.is_listening:
            self._stop_recognizer()

    def set_continuous(self, enabled: bool):
        self.continuous = enabled
        if not enabled:
            self._cancel_restart()

    def schedule_restart(self, delay_s: float):
        """Restart after ``delay_s`` if continuous listening is still on."""
        if not self.continuous or self.recognizer is None:
            return
        self._cancel_restart()
        self._restart = self.scheduler.call_later(delay_s, self._safe_restart)

    def _safe_restart(self):
        self._restart = None
        if not self.continuous or self.is_speaking():
            return
        if self._last_start is not None:
            since_start = self.clock() - self._last_start
            if since_start < self.config.min_restart_spacing_s:
                self._restart = self.scheduler.call_later(self.config.restart_retry_s, self._safe_restart)
                return
        self.start_listening()

    def on_partial_result(self, text: str):
        if text and text.strip():
            self.recognized_text = text

    def on_final_result(self, alternatives: Sequence[str], confidences: Optional[Sequence[float]] = None) -> Optional[str]:
        """
        Final recognition result.

        Returns:
            The chosen hypothesis, or None if nothing usable was heard
        """
        self.is_listening = False
        text = choose_alternative(alternatives, confidences)
        self.recognized_text = text if text else "Not understood"
        return text

    def on_error(self, error_code: Optional[int] = None):
        """Transient recognizer error: retry after the error delay."""
        logger.debug(f"Recognizer error: {error_code}")
        self.is_listening = False
        self.recognized_text = "Recognition error"
        self.schedule_restart(self.config.error_restart_delay_s)

    def _on_revoked(self):
        logger.info("Home dialogue lost the microphone")
        self.continuous = False
        self._cancel_restart()
        self._stop_recognizer()

    def _stop_recognizer(self):
        if self.recognizer is not None:
            try:
                self.recognizer.stop()
            except Exception as e:
                logger.warning(f"Recognizer stop failed: {e}")
        self.is_listening = False

    def _cancel_restart(self):
        if self._restart is not None:
            self._restart.cancel()
            self._restart = None

    @property
    def restart_pending(self) -> bool:
        return self._restart is not None
