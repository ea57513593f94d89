"""
Speech Output Arbiter - the single gate to the speaker.

Every phrase passes through ``speak``. At most one utterance is in flight;
keyed cooldowns suppress repeated announcements; the end of each utterance
releases deferred side effects and schedules the microphone to resume.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ..config import SpeechConfig
from .cooldown import CooldownStore

logger = logging.getLogger(__name__)

DIALOGUE_KEY = "dialogue"


class PhraseKind(Enum):
    """Source of a phrase; selects the cooldown window."""
    PERCEPTION = "PERCEPTION"
    NAVIGATION = "NAVIGATION"
    DIALOGUE = "DIALOGUE"


@dataclass(frozen=True)
class Announcement:
    """Record of an accepted phrase."""
    utterance_id: str
    timestamp: float
    kind: PhraseKind
    key: str
    phrase: str


class SpeechOutputArbiter:
    """
    Owns the TTS sink, cooldown state and the speaking flag.

    Args:
        tts_sink: External TTS with ``speak(text, utterance_id)`` (and
                  optionally ``stop()``); completion is reported back
                  through ``on_speech_done``
        config: Cooldown and restart timing
        clock: Monotonic time source in seconds
        listening: Optional listening controller with ``pause()`` and
                   ``schedule_restart(delay_s)``, for half-duplex audio
    """

    def __init__(
        self,
        tts_sink,
        config: Optional[SpeechConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        listening=None,
    ):
        self.tts_sink = tts_sink
        self.config = config or SpeechConfig()
        self.clock = clock
        self.listening = listening
        self.cooldowns = CooldownStore()
        self.is_speaking = False
        self.current: Optional[Announcement] = None
        self.history: List[Announcement] = []
        self._pending: List[Callable[[], None]] = []
        self._counter = 0

    def _window(self, kind: PhraseKind) -> float:
        if kind is PhraseKind.PERCEPTION:
            return self.config.perception_cooldown_s
        if kind is PhraseKind.NAVIGATION:
            return self.config.navigation_cooldown_s
        return self.config.dialogue_cooldown_s

    def speak(self, phrase: str, kind: PhraseKind = PhraseKind.DIALOGUE, key: Optional[str] = None) -> bool:
        """
        Speak a phrase unless a rule rejects it.

        Rejected when the phrase is blank, another utterance is in flight, or
        the cooldown key was spoken within its window. Dialogue responses
        share one global key.

        Returns:
            True if the phrase was handed to the TTS sink
        """
        if not phrase or not phrase.strip():
            return False
        if self.is_speaking:
            logger.debug(f"Speaker busy, dropping: {phrase!r}")
            return False

        if kind is PhraseKind.DIALOGUE:
            key = DIALOGUE_KEY
        elif key is None:
            key = phrase
        now = self.clock()
        if self.cooldowns.is_cooling(key, self._window(kind), now):
            logger.debug(f"Cooldown active for {key!r}, dropping: {phrase!r}")
            return False

        self._counter += 1
        announcement = Announcement(
            utterance_id=f"utt-{self._counter}",
            timestamp=now,
            kind=kind,
            key=key,
            phrase=phrase,
        )

        self.is_speaking = True
        self.current = announcement
        if self.listening is not None:
            self.listening.pause()
        try:
            self.tts_sink.speak(phrase, announcement.utterance_id)
        except Exception as e:
            logger.error(f"TTS failed for {phrase!r}: {e}")
            self.is_speaking = False
            self.current = None
            if self.listening is not None:
                self.listening.schedule_restart(self.config.restart_delay_s)
            return False

        self.cooldowns.record(key, phrase, now)
        self.history.append(announcement)
        logger.info(f"Speaking [{kind.value}] {phrase}")
        return True

    def defer_until_done(self, callback: Callable[[], None]):
        """Run ``callback`` once the current utterance finishes (now if idle)."""
        if self.is_speaking:
            self._pending.append(callback)
        else:
            callback()

    def on_speech_done(self, utterance_id: Optional[str] = None):
        """
        TTS completion signal.

        Clears the speaking flag, runs deferred callbacks and schedules the
        listening restart. Signals for an utterance other than the current one
        are ignored.
        """
        if not self.is_speaking:
            return
        if utterance_id is not None and self.current is not None and utterance_id != self.current.utterance_id:
            logger.debug(f"Ignoring completion for stale utterance {utterance_id}")
            return

        self.is_speaking = False
        self.current = None
        pending, self._pending = self._pending, []
        for callback in pending:
            callback()
        if self.listening is not None:
            self.listening.schedule_restart(self.config.restart_delay_s)

    def on_speech_error(self, utterance_id: Optional[str] = None):
        """TTS failure mid-utterance; frees the speaker like a completion."""
        logger.warning(f"TTS reported an error for {utterance_id or 'current utterance'}")
        self.on_speech_done(utterance_id)

    def stop(self):
        """Interrupt the current utterance."""
        stop = getattr(self.tts_sink, "stop", None)
        if stop is not None:
            stop()
        self.on_speech_done()

    @property
    def last_phrase(self) -> Optional[str]:
        return self.history[-1].phrase if self.history else None
