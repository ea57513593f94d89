"""Speech module: output arbitration, cooldowns and microphone ownership."""
from .arbiter import Announcement, PhraseKind, SpeechOutputArbiter
from .cooldown import CooldownEntry, CooldownStore
from .microphone import MicOwner, MicrophoneArbiter
from .sinks import LoggingSpeechSink

__all__ = [
    'Announcement',
    'CooldownEntry',
    'CooldownStore',
    'LoggingSpeechSink',
    'MicOwner',
    'MicrophoneArbiter',
    'PhraseKind',
    'SpeechOutputArbiter',
]
