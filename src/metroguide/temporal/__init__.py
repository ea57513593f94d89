"""Temporal module for per-key distance smoothing."""
from .smoothing import DistanceSmoother, SmoothingState

__all__ = [
    'DistanceSmoother',
    'SmoothingState',
]
