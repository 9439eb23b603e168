"""
Configuration for CPAR
======================

Settings are kept as a nested dictionary (defaults, optionally overridden by
a YAML file and then by command-line flags) and resolved once into frozen
dataclasses before any image is touched. The cropping core only ever sees
``CropConfig``.
"""

import copy
from dataclasses import dataclass, field
from fractions import Fraction
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


AXES = ('x', 'y')
AXIS_KEYS = ('threshold', 'percentile', 'extra')


@dataclass(frozen=True)
class AxisConfig:
    """Resolved detection parameters for one axis."""
    threshold: int = 250
    percentile_fraction: Fraction = Fraction(1, 20)
    extra_margin: int = 0

    def __post_init__(self):
        if not 0 <= self.threshold <= 255:
            raise ValueError(f"threshold must be within 0-255, got {self.threshold}")
        if not 0.0 <= self.percentile_fraction <= 1.0:
            raise ValueError(f"percentile fraction must be within 0.0-1.0, got {self.percentile_fraction}")
        if self.extra_margin < 0:
            raise ValueError(f"extra margin must be non-negative, got {self.extra_margin}")

    @classmethod
    def from_percentile(cls, threshold: int, percentile: float, extra_margin: int) -> 'AxisConfig':
        """
        Build from a user-facing percentile (0-100).

        A percentile of 100 means every scanned line must agree on the edge,
        which is the tightest boundary (fraction 0). The fraction is kept exact
        so that flooring it against a line count never lands one index low.
        """
        if not 0 <= percentile <= 100:
            raise ValueError(f"percentile must be within 0-100, got {percentile}")
        return cls(
            threshold=int(threshold),
            percentile_fraction=Fraction(100 - percentile) / 100,
            extra_margin=int(extra_margin),
        )


@dataclass(frozen=True)
class CropConfig:
    """Fully resolved configuration handed to the pipeline."""
    x_axis: AxisConfig = field(default_factory=AxisConfig)
    y_axis: AxisConfig = field(default_factory=AxisConfig)
    blur_sigma: Optional[float] = None
    downscale: float = 1.0

    def __post_init__(self):
        if self.blur_sigma is not None and self.blur_sigma <= 0:
            raise ValueError(f"blur sigma must be positive, got {self.blur_sigma}")
        if self.downscale <= 0:
            raise ValueError(f"downscale factor must be positive, got {self.downscale}")


class CropSettings:
    """Layered settings for a cropping run."""

    DEFAULT_CONFIG = {
        'threshold': 250,
        'percentile': 95,
        'extra': 0,

        # Per-axis overrides, None falls back to the shared value
        'x': {
            'threshold': None,
            'percentile': None,
            'extra': None,
        },
        'y': {
            'threshold': None,
            'percentile': None,
            'extra': None,
        },

        'blur': None,
        'downscale': 1.0,
        'workers': None,

        'logging': {
            'level': 'INFO',  # DEBUG, INFO, WARNING, ERROR
            'file': None,
        }
    }

    def __init__(self, config_dict: Dict[str, Any] = None):
        """
        Initialize settings.

        Args:
            config_dict: Optional configuration dictionary (overrides defaults)
        """
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_dict:
            self._update_nested(self.config, config_dict)

    def _update_nested(self, base: Dict, update: Dict):
        """Recursively update nested dictionary."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict):
                if not isinstance(value, dict):
                    raise ValueError(f"'{key}' must be a mapping, got {value!r}")
                self._update_nested(base[key], value)
            else:
                base[key] = value

    def get(self, *keys):
        """Get nested configuration value."""
        value = self.config
        for key in keys:
            value = value[key]
        return value

    def set(self, *keys, value):
        """Set nested configuration value."""
        config = self.config
        for key in keys[:-1]:
            config = config[key]
        config[keys[-1]] = value

    def apply_overrides(self, shared: Dict[str, Any], per_axis: Dict[str, Dict[str, Any]] = None):
        """
        Apply command-line values on top of the current settings.

        An explicit shared value clears any per-axis value loaded from a file,
        so a flag given on the command line always wins.

        Args:
            shared: Mapping of top-level keys to values, None entries are ignored
            per_axis: Mapping of axis name to {key: value}, None entries are ignored
        """
        for key, value in shared.items():
            if value is None:
                continue
            self.set(key, value=value)
            if key in AXIS_KEYS:
                for axis in AXES:
                    self.set(axis, key, value=None)

        for axis, values in (per_axis or {}).items():
            for key, value in values.items():
                if value is not None:
                    self.set(axis, key, value=value)

    def axis_value(self, axis: str, key: str):
        """Per-axis value with fallback to the shared one."""
        value = self.get(axis, key)
        return self.get(key) if value is None else value

    def resolve(self) -> CropConfig:
        """
        Resolve into a validated ``CropConfig``.

        Raises:
            ValueError: If any value is out of range
        """
        try:
            axes = {}
            for axis in AXES:
                axes[axis] = AxisConfig.from_percentile(
                    threshold=self.axis_value(axis, 'threshold'),
                    percentile=self.axis_value(axis, 'percentile'),
                    extra_margin=self.axis_value(axis, 'extra'),
                )

            blur = self.get('blur')
            return CropConfig(
                x_axis=axes['x'],
                y_axis=axes['y'],
                blur_sigma=float(blur) if blur is not None else None,
                downscale=float(self.get('downscale')),
            )
        except TypeError as e:
            raise ValueError(f"invalid setting type: {e}") from e

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> 'CropSettings':
        """Load settings from YAML file."""
        with open(yaml_path, 'r') as f:
            try:
                config_dict = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"{yaml_path}: invalid YAML: {e}") from e
        if config_dict is not None and not isinstance(config_dict, dict):
            raise ValueError(f"{yaml_path}: expected a mapping at the top level")
        return cls(config_dict)

    def to_yaml(self, yaml_path: Path):
        """Save settings to YAML file."""
        with open(yaml_path, 'w') as f:
            yaml.dump(self.config, f, default_flow_style=False, indent=2)

    def to_dict(self) -> Dict[str, Any]:
        """Get settings as dictionary."""
        return copy.deepcopy(self.config)


def load_settings(yaml_path: Path = None) -> CropSettings:
    """
    Load settings from YAML or use defaults.

    Args:
        yaml_path: Optional path to YAML config file

    Returns:
        CropSettings instance
    """
    if yaml_path and Path(yaml_path).exists():
        return CropSettings.from_yaml(Path(yaml_path))
    else:
        return CropSettings()
