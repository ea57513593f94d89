"""
Voice-command catalog.

Each entry holds pipe-delimited phrase variants and an intent. A variant
matches when all of its tokens appear somewhere in the utterance (token-set
containment, order-independent). Load order is match priority.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import yaml

from ..utils.text import normalize_text, tokens


class Intent:
    """Intent names used in the catalog."""
    SEARCH_OBJECT = "search_object"
    LOCATE = "locate"
    ACTIVATE_GUIDANCE_MODE = "activate_guidance_mode"
    GO_TO_STATION = "go_to_station"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    MODIFY = "modify"
    REPEAT = "repeat"
    DESCRIBE_ENVIRONMENT = "describe_environment"
    OPEN_CAMERA = "open_camera"
    MUTE_GUIDANCE = "mute_guidance"
    UNMUTE_GUIDANCE = "unmute_guidance"
    CLEAR_TARGET = "clear_target"
    STATUS = "status"


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandCatalogEntry:
    """One configured voice command."""
    variants: Tuple[str, ...]  # Normalized phrase variants, in order
    intent: str
    object: Optional[str] = None
    mode: Optional[str] = None
    station: Optional[str] = None

    @classmethod
    def create(
        cls,
        phrases: Union[str, Iterable[str]],
        intent: str,
        object: Optional[str] = None,
        mode: Optional[str] = None,
        station: Optional[str] = None,
    ) -> "CommandCatalogEntry":
        """Build an entry from raw ``"a|b"`` phrases (or a list of them)."""
        if isinstance(phrases, str):
            phrases = [phrases]
        variants = []
        for phrase in phrases:
            for variant in str(phrase).split("|"):
                normalized = normalize_text(variant)
                if normalized and normalized not in variants:
                    variants.append(normalized)
        if not variants:
            raise ValueError(f"Command {intent!r} has no usable phrase variants")
        return cls(
            variants=tuple(variants),
            intent=intent,
            object=object or None,
            mode=mode or None,
            station=station or None,
        )

    def matches(self, text: str) -> bool:
        """True iff some variant's token set is a subset of the text's tokens."""
        text_tokens = tokens(text)
        return any(set(v.split(" ")) <= text_tokens for v in self.variants)


class CommandCatalog:
    """Ordered list of catalog entries; first match wins."""

    def __init__(self, entries: Optional[Iterable[CommandCatalogEntry]] = None):
        self.entries: List[CommandCatalogEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self.entries)

    def match(self, text: str) -> Optional[CommandCatalogEntry]:
        """First entry (in load order) with a matching variant."""
        for entry in self.entries:
            if entry.matches(text):
                return entry
        return None

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "CommandCatalog":
        """Build from dict records; malformed records are skipped."""
        entries = []
        for i, record in enumerate(records or []):
            try:
                entries.append(CommandCatalogEntry.create(
                    phrases=record["phrases"],
                    intent=str(record["intent"]),
                    object=record.get("object"),
                    mode=record.get("mode"),
                    station=record.get("station"),
                ))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping catalog record #{i}: {e}")
        return cls(entries)

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]]) -> "CommandCatalog":
        """
        Load a YAML (or JSON) catalog with a top-level ``commands`` list.

        A missing or unparseable file degrades to an empty catalog.
        """
        if not path:
            return cls()
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Command catalog unavailable ({path}): {e}; continuing without commands")
            return cls()

        records = data.get("commands", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            logger.warning(f"Command catalog {path} has no 'commands' list")
            return cls()

        catalog = cls.from_records(records)
        logger.info(f"Loaded {len(catalog)} voice commands from {path}")
        return catalog
