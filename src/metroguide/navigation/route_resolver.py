"""
Route Direction Resolver - which terminal to head toward.

The line is a single ordered sequence of stations; the decision is which end
of the line the rider must travel toward to reach the destination.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from ..utils.text import normalize_text

logger = logging.getLogger(__name__)


class StationNotFoundError(LookupError):
    """Raised when a station name is not on the line."""

    def __init__(self, name: str):
        super().__init__(f"Station not found: {name!r}")
        self.name = name


class Direction(Enum):
    """Coarse travel decision."""
    ALREADY_THERE = "ALREADY_THERE"
    TOWARD_LAST = "TOWARD_LAST"
    TOWARD_FIRST = "TOWARD_FIRST"


@dataclass(frozen=True)
class Station:
    """Named station with its fixed index on the line."""
    name: str
    index: int


@dataclass(frozen=True)
class RouteDecision:
    """Result of resolving an origin/destination pair."""
    direction: Direction
    terminal: Optional[str]  # Terminal station name, None when already there

    @property
    def phrase(self) -> str:
        if self.direction is Direction.ALREADY_THERE:
            return "You are already at your destination."
        return f"Head toward {self.terminal}."


class RouteDirectionResolver:
    """
    Resolves origin/destination names against an ordered line topology.

    Station names are compared after normalization, so "Ñuñoa", "nunoa" and
    "ÑUÑOA" are the same station.
    """

    def __init__(self, stations: Sequence[str]):
        if not stations:
            raise ValueError("A line needs at least one station")
        self._stations: List[Station] = [
            Station(name=name, index=idx) for idx, name in enumerate(stations)
        ]
        self._index: Dict[str, int] = {
            normalize_text(s.name): s.index for s in self._stations
        }
        if len(self._index) != len(self._stations):
            raise ValueError("Station names must be unique after normalization")

    @property
    def stations(self) -> List[Station]:
        return list(self._stations)

    @property
    def first(self) -> Station:
        return self._stations[0]

    @property
    def last(self) -> Station:
        return self._stations[-1]

    def index_of(self, name: str) -> Optional[int]:
        """Index of a station on the line, or None if unknown."""
        return self._index.get(normalize_text(name))

    def find_station(self, text: str) -> Optional[Station]:
        """Station whose normalized name equals the normalized text."""
        idx = self.index_of(text)
        return self._stations[idx] if idx is not None else None

    def resolve(self, origin: str, destination: str) -> RouteDecision:
        """
        Decide which terminal to head toward.

        Raises:
            StationNotFoundError: If either name is not on the line
        """
        origin_idx = self.index_of(origin)
        if origin_idx is None:
            raise StationNotFoundError(origin)
        destination_idx = self.index_of(destination)
        if destination_idx is None:
            raise StationNotFoundError(destination)

        if origin_idx == destination_idx:
            decision = RouteDecision(Direction.ALREADY_THERE, None)
        elif origin_idx < destination_idx:
            decision = RouteDecision(Direction.TOWARD_LAST, self.last.name)
        else:
            decision = RouteDecision(Direction.TOWARD_FIRST, self.first.name)

        logger.debug(f"Route {origin!r} -> {destination!r}: {decision.direction.value}")
        return decision

    def expected_terminal(self, origin: str, destination: str) -> Optional[str]:
        """Terminal name the platform signs should point to (None if already there)."""
        return self.resolve(origin, destination).terminal
