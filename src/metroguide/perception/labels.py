"""Class-label table: resolves synthetic ``obj<N>`` labels to names."""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..utils.path_utils import resolve_data_path

logger = logging.getLogger(__name__)

_INDEX_LABEL = re.compile(r"^obj(\d+)$")


class LabelTable:
    """
    Ordered class-name table supplied alongside the detection model.

    A detector that cannot name a class emits ``obj<N>``; this table maps
    ``N`` back to the model's class name. Anything else passes through.
    """

    def __init__(self, names: Optional[Sequence[str]] = None):
        self.names: List[str] = [n.strip() for n in (names or []) if n.strip()]

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]]) -> "LabelTable":
        """
        Load one class name per line.

        A missing or unreadable file yields an empty table (raw labels are
        then used verbatim).
        """
        path = resolve_data_path(path)
        if path is None:
            return cls()
        try:
            with open(path, encoding="utf-8") as f:
                names = f.read().splitlines()
        except OSError as e:
            logger.warning(f"Label table unavailable ({path}): {e}; using raw labels")
            return cls()
        logger.info(f"Loaded {len(names)} class labels from {path}")
        return cls(names)

    def __len__(self) -> int:
        return len(self.names)

    def resolve(self, label: str) -> str:
        """Resolve ``obj<N>`` to the N-th name; unresolved labels pass through."""
        match = _INDEX_LABEL.match(label.strip().lower()) if label else None
        if match is None:
            return label
        idx = int(match.group(1))
        if 0 <= idx < len(self.names):
            return self.names[idx]
        return label


def display_label(label: str, display_names: Optional[Dict[str, str]] = None) -> str:
    """Spoken form of a label: explicit display name, else separators as spaces."""
    if not label or not label.strip():
        return "object"
    if display_names:
        named = display_names.get(label.lower())
        if named:
            return named
    return " ".join(label.replace("_", " ").replace("-", " ").split())
