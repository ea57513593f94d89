"""
Distance Smoother - exponential moving average per (label, position bucket).

Keeps one SmoothingState per key for the whole session. Keys are bounded by the
number of distinct label/bucket combinations, so states are never evicted.
"""

from dataclasses import dataclass
from typing import Dict, Hashable, List, Sequence, Tuple


@dataclass
class SmoothingState:
    """EMA state for a single (label, position bucket) key."""
    value: float  # Smoothed distance in meters
    warmed_up: bool  # True once the first sample has seeded the average
    samples: int  # Number of samples absorbed


class DistanceSmoother:
    """
    Exponential smoothing of distance estimates.

    First sample seeds the state; later samples use
    ``smoothed = alpha * x + (1 - alpha) * previous``.
    """

    def __init__(self, alpha: float):
        if not 0.0 < alpha < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        self.alpha = alpha
        self.states: Dict[Hashable, SmoothingState] = {}

    def _step(self, state: SmoothingState, sample: float) -> SmoothingState:
        if not state.warmed_up:
            return SmoothingState(value=sample, warmed_up=True, samples=1)
        value = self.alpha * sample + (1.0 - self.alpha) * state.value
        return SmoothingState(value=value, warmed_up=True, samples=state.samples + 1)

    def update(self, key: Hashable, sample: float) -> float:
        """Absorb one sample and return the smoothed value."""
        return self.update_batch([(key, sample)])[0]

    def update_batch(self, samples: Sequence[Tuple[Hashable, float]]) -> List[float]:
        """
        Absorb all samples of one frame atomically.

        New states are computed on a staging copy and committed only after
        every sample was processed, so a failure never leaves the store
        half-updated.

        Args:
            samples: (key, meters) pairs in frame order

        Returns:
            Smoothed value per sample, in input order
        """
        staged: Dict[Hashable, SmoothingState] = {}
        smoothed = []
        for key, sample in samples:
            previous = staged.get(key) or self.states.get(key) or SmoothingState(0.0, False, 0)
            current = self._step(previous, float(sample))
            staged[key] = current
            smoothed.append(current.value)
        self.states.update(staged)
        return smoothed

    def get(self, key: Hashable) -> SmoothingState:
        return self.states.get(key)

    def reset(self):
        """Drop all smoothing state."""
        self.states.clear()
