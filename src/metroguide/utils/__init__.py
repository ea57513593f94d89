"""Utility modules for MetroGuide."""

from .logging_config import set_verbosity, setup_logger
from .path_utils import get_configs_dir, get_project_root, resolve_data_path
from .scheduling import ThreadingScheduler, TimerHandle

__all__ = [
    "setup_logger",
    "set_verbosity",
    "get_configs_dir",
    "get_project_root",
    "resolve_data_path",
    "ThreadingScheduler",
    "TimerHandle",
]
