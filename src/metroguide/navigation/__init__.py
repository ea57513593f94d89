"""Navigation module for line topology and direction decisions."""
from .route_resolver import (
    Direction,
    RouteDecision,
    RouteDirectionResolver,
    Station,
    StationNotFoundError,
)

__all__ = [
    'Direction',
    'RouteDecision',
    'RouteDirectionResolver',
    'Station',
    'StationNotFoundError',
]
