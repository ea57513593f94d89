"""Pipelines module: session wiring for live guidance."""
from .guidance_session import GuidanceSession

__all__ = ['GuidanceSession']
