"""TTS sinks usable without a platform speech engine."""

import logging
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class LoggingSpeechSink:
    """
    Writes phrases to the log instead of a speaker.

    Completion is reported immediately through ``on_done`` (normally a
    session method that queues the signal).
    """

    def __init__(self, on_done: Optional[Callable[[str], None]] = None):
        self.on_done = on_done
        self.spoken: List[Tuple[str, str]] = []

    def speak(self, text: str, utterance_id: str):
        self.spoken.append((utterance_id, text))
        logger.info(f"🔊 {text}")
        if self.on_done is not None:
            self.on_done(utterance_id)

    def stop(self):
        pass
