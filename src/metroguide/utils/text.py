"""Utterance / OCR text normalization."""

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """
    Canonical form used before any matching.

    Lowercases, strips combining diacritics after NFD decomposition
    ("Estación" -> "estacion", "ñuñoa" -> "nunoa"), turns every character
    that is not a letter or digit into a space, collapses whitespace and
    trims. Idempotent.

    Args:
        text: Raw utterance or OCR text

    Returns:
        Normalized text ("" for None / blank input)
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    chars = []
    for ch in decomposed:
        if unicodedata.combining(ch):
            continue
        chars.append(ch if ch.isalnum() else " ")
    return _WHITESPACE.sub(" ", "".join(chars)).strip()


def tokens(text: str) -> set:
    """Token set of the normalized text."""
    normalized = normalize_text(text)
    return set(normalized.split(" ")) if normalized else set()
