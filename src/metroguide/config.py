"""
Configuration module for MetroGuide.

Calibration, cooldowns, signage parameters and the line topology, with
YAML loading and environment-based overrides.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .utils.path_utils import get_configs_dir, resolve_data_path

DEFAULT_STATIONS = [
    "cerrillos",
    "lo valledor",
    "pac",
    "franklin",
    "biobío",
    "ñuble",
    "estadio nacional",
    "ñuñoa",
    "inés de suárez",
    "los leones",
]

DEFAULT_SIGNAGE_LABELS = [
    "senales_amarillas",
    "senales_azules",
    "senales_cafes",
    "senales_rojas",
    "senales_rosas",
    "senales_verdes",
]


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else None


@dataclass
class PerceptionConfig:
    """Camera calibration and distance bucketing."""

    model_input_size: int = 640
    focal_length_px: Optional[float] = None
    known_height_m: Optional[float] = None
    known_heights: Dict[str, float] = field(default_factory=dict)
    pov_k: Optional[float] = None
    near_threshold_m: float = 1.5
    mid_threshold_m: float = 3.5
    smoothing_alpha: float = 0.4
    near_ratio: float = 0.45
    mid_ratio: float = 0.25
    min_announce_confidence: float = 0.80
    label_file: Optional[str] = None
    display_names: Dict[str, str] = field(
        default_factory=lambda: {
            "escalera_norm": "stairs",
            "escalera_meca": "escalator",
            "podo_circulo": "tactile paving",
            "podo_linea": "tactile paving",
        }
    )
    suppress_unless_far: List[str] = field(
        default_factory=lambda: ["podo_circulo", "podo_linea"]
    )

    def __post_init__(self):
        if not 0.0 < self.smoothing_alpha < 1.0:
            raise ValueError(f"smoothing_alpha must be in (0, 1), got {self.smoothing_alpha}")
        if not 0.0 < self.near_threshold_m < self.mid_threshold_m:
            raise ValueError(
                f"Distance thresholds must increase: near={self.near_threshold_m}, "
                f"mid={self.mid_threshold_m}"
            )
        if not 0.0 < self.mid_ratio < self.near_ratio:
            raise ValueError(
                f"Height ratios must satisfy mid < near: mid={self.mid_ratio}, near={self.near_ratio}"
            )

    def known_height_for(self, label: str) -> Optional[float]:
        """Real-world height for a label, falling back to the global value."""
        return self.known_heights.get(label.lower(), self.known_height_m)

    @classmethod
    def from_env(cls) -> "PerceptionConfig":
        """Create config from environment variables."""
        return cls(
            focal_length_px=_optional_float("METROGUIDE_FOCAL_PX"),
            known_height_m=_optional_float("METROGUIDE_KNOWN_HEIGHT_M"),
            pov_k=_optional_float("METROGUIDE_POV_K"),
            smoothing_alpha=float(os.getenv("METROGUIDE_ALPHA", "0.4")),
            min_announce_confidence=float(os.getenv("METROGUIDE_MIN_CONF", "0.80")),
            label_file=os.getenv("METROGUIDE_LABELS") or None,
        )


@dataclass
class SignageConfig:
    """Signage OCR validation and turn inference."""

    signage_labels: List[str] = field(default_factory=lambda: list(DEFAULT_SIGNAGE_LABELS))
    max_signs: int = 3
    interval_s: float = 5.0
    turn_threshold: float = 0.15
    hysteresis: float = 0.05


@dataclass
class SpeechConfig:
    """Cooldowns and listening restart timing (seconds)."""

    perception_cooldown_s: float = 2.5
    navigation_cooldown_s: float = 5.0
    dialogue_cooldown_s: float = 0.0
    restart_delay_s: float = 0.2
    error_restart_delay_s: float = 0.4
    min_restart_spacing_s: float = 0.4
    restart_retry_s: float = 0.3


@dataclass
class DialogueConfig:
    """Command catalog location and line topology."""

    catalog_path: Optional[str] = None
    stations: List[str] = field(default_factory=lambda: list(DEFAULT_STATIONS))

    def resolved_catalog_path(self) -> Path:
        if self.catalog_path:
            return resolve_data_path(self.catalog_path)
        return get_configs_dir() / "commands.yaml"


@dataclass
class ProjectConfig:
    """Main project configuration container."""

    project_name: str = "metroguide"
    debug: bool = False
    continuous_listening: bool = True

    perception: PerceptionConfig = field(default_factory=PerceptionConfig)
    signage: SignageConfig = field(default_factory=SignageConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    dialogue: DialogueConfig = field(default_factory=DialogueConfig)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "ProjectConfig":
        """Build from a nested dictionary (sections are optional)."""
        config_dict = dict(config_dict or {})
        sections = {
            "perception": PerceptionConfig,
            "signage": SignageConfig,
            "speech": SpeechConfig,
            "dialogue": DialogueConfig,
        }
        kwargs = {}
        for name, section_cls in sections.items():
            kwargs[name] = section_cls(**(config_dict.pop(name, None) or {}))
        return cls(**config_dict, **kwargs)

    @classmethod
    def from_yaml(cls, config_path: Path) -> "ProjectConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)

        return cls.from_dict(config_dict)

    @classmethod
    def from_env(cls) -> "ProjectConfig":
        """Create config from environment variables."""
        return cls(
            debug=os.getenv("DEBUG", "false").lower() == "true",
            continuous_listening=os.getenv("METROGUIDE_CONTINUOUS", "true").lower() == "true",
            perception=PerceptionConfig.from_env(),
            dialogue=DialogueConfig(catalog_path=os.getenv("METROGUIDE_CATALOG") or None),
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary for logging."""
        return {
            "project_name": self.project_name,
            "debug": self.debug,
            "continuous_listening": self.continuous_listening,
            "perception": asdict(self.perception),
            "signage": asdict(self.signage),
            "speech": asdict(self.speech),
            "dialogue": asdict(self.dialogue),
        }


# Singleton instance
_config: Optional[ProjectConfig] = None


def get_config(config_path: Optional[Path] = None) -> ProjectConfig:
    """
    Get or create global configuration.

    Args:
        config_path: Path to YAML config file. If None, uses env variables.

    Returns:
        ProjectConfig instance
    """
    global _config
    if _config is None:
        if config_path:
            _config = ProjectConfig.from_yaml(config_path)
        else:
            _config = ProjectConfig.from_env()
    return _config


def reset_config():
    """Reset global configuration (useful for testing)."""
    global _config
    _config = None
