"""Locating the bundled configs and files referenced from config."""

from pathlib import Path
from typing import Optional, Union

CONFIGS_DIRNAME = "configs"


def get_project_root() -> Path:
    """
    Directory holding ``pyproject.toml`` and the bundled ``configs/``.

    Walks up from this file, which works for a source checkout and an
    editable install; falls back to the working directory.
    """
    for parent in Path(__file__).resolve().parents:
        if (parent / "pyproject.toml").exists() and (parent / CONFIGS_DIRNAME).is_dir():
            return parent
    return Path.cwd()


def get_configs_dir() -> Path:
    return get_project_root() / CONFIGS_DIRNAME


def resolve_data_path(path: Optional[Union[str, Path]]) -> Optional[Path]:
    """
    Resolve a file path written in a config file.

    Absolute paths, and relative paths that exist from the working directory,
    are used as given. Anything else is taken relative to the project root,
    so ``configs/labels.txt`` resolves from any directory.

    Returns:
        Resolved path, or None for an empty value
    """
    if not path:
        return None
    path = Path(path).expanduser()
    if path.is_absolute() or path.exists():
        return path
    return get_project_root() / path
