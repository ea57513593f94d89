"""
Declarative slot-extraction table.

Patterns are evaluated in priority order against normalized text; the first
match wins. English and Spanish phrasings sit side by side.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ..utils.text import normalize_text

ORIGIN = "origin"
DESTINATION = "destination"

_ARTICLE = r"(?:the |la |el )?"
_STATION = r"(?:station |estacion )?"


@dataclass(frozen=True)
class SlotPattern:
    """One sentence pattern capturing a station name."""
    name: str
    kind: str  # ORIGIN or DESTINATION
    regex: "re.Pattern"


def _pattern(name: str, kind: str, body: str) -> SlotPattern:
    return SlotPattern(name, kind, re.compile(r"\b" + body + r"(.+)$"))


SLOT_PATTERNS = (
    _pattern("go_to_station", DESTINATION, r"go to " + _ARTICLE + r"station "),
    _pattern("ir_a_estacion", DESTINATION, r"ir a " + _ARTICLE + r"estacion "),
    _pattern("heading_to_station", DESTINATION, r"heading to " + _ARTICLE + r"station "),
    _pattern("voy_a_estacion", DESTINATION, r"voy a " + _ARTICLE + r"estacion "),
    _pattern("im_headed_to", DESTINATION, r"i ?m headed to " + _ARTICLE + _STATION),
    _pattern("me_dirijo_a", DESTINATION, r"me dirijo a " + _ARTICLE + _STATION),
    _pattern("want_to_go_to", DESTINATION, r"i want to go to " + _ARTICLE + _STATION),
    _pattern("quiero_ir_a", DESTINATION, r"quiero ir a " + _ARTICLE + _STATION),
    _pattern("destination", DESTINATION, r"(?:destination|destino) (?:is |es )?"),
    _pattern("i_am_at", ORIGIN, r"(?:i am at|i m at|estoy en) " + _ARTICLE + _STATION),
)

_TRAILING_PUNCT = re.compile(r"[\s.,;:!?]+$")


def clean_slot(value: str) -> str:
    """Trim and strip trailing punctuation."""
    return _TRAILING_PUNCT.sub("", value.strip())


def extract_slot(text: str, kinds: Iterable[str] = (DESTINATION, ORIGIN)) -> Optional[str]:
    """
    First station name captured by a pattern of the requested kinds.

    Args:
        text: Raw or normalized utterance
        kinds: Pattern kinds to try (table order is preserved)

    Returns:
        Extracted station text, or None if no pattern matches
    """
    normalized = normalize_text(text)
    if not normalized:
        return None
    kinds = set(kinds)
    for pattern in SLOT_PATTERNS:
        if pattern.kind not in kinds:
            continue
        match = pattern.regex.search(normalized)
        if match:
            value = clean_slot(match.group(1))
            if value:
                return value
    return None


def extract_origin(text: str) -> Optional[str]:
    """Station named in an "I am at X" utterance."""
    return extract_slot(text, kinds=(ORIGIN,))


def extract_destination(text: str) -> Optional[str]:
    """Station named in a free-form destination utterance."""
    return extract_slot(text, kinds=(DESTINATION,))
