"""Keyed anti-flood state owned by the speech arbiter."""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class CooldownEntry:
    """Last time a key was spoken, and what was said."""
    last_spoken_at: float
    last_content: str


class CooldownStore:
    """
    One entry per cooldown key.

    Keys are composite strings: ``label|POSITION|DISTANCE`` for perception
    phrases, ``nav:<TYPE>`` for navigation phrases, and a single global key
    for dialogue responses.
    """

    def __init__(self):
        self.entries: Dict[str, CooldownEntry] = {}

    def is_cooling(self, key: str, window_s: float, now: float) -> bool:
        """True if the key was spoken less than ``window_s`` seconds ago."""
        entry = self.entries.get(key)
        if entry is None or window_s <= 0:
            return False
        return now - entry.last_spoken_at < window_s

    def record(self, key: str, content: str, now: float):
        self.entries[key] = CooldownEntry(last_spoken_at=now, last_content=content)

    def get(self, key: str) -> Optional[CooldownEntry]:
        return self.entries.get(key)

    def reset(self):
        self.entries.clear()
