"""
Run configuration for a detector comparison.

Settings come from an optional YAML file and can be overridden from the
command line. Example compare.yaml:

    ground_truth_dir: ground-truth
    results_dir: results
    detectors:
      - apriltag-3.4.5
      - kornia-apriltag-0.1.10
    output_dir: comparison-output
    workers: 4
    plots: true
    log_file: comparison-output/compare.log
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import List, Optional, Union

import yaml

from .errors import ConfigError


@dataclass(frozen=True)
class CompareConfig:
    ground_truth_dir: str = "ground-truth"
    results_dir: str = "results"
    detectors: List[str] = field(default_factory=list)  # empty = discover from results_dir
    output_dir: str = "comparison-output"
    workers: int = 1
    plots: bool = True
    log_file: Optional[str] = None


_FIELD_TYPES = {
    'ground_truth_dir': str,
    'results_dir': str,
    'output_dir': str,
    'workers': int,
    'plots': bool,
    'log_file': str,
}


def _validate(key: str, value):
    if key != 'detectors' and key not in _FIELD_TYPES:
        raise ConfigError(f"Unknown config key: {key}")
    if key == 'detectors':
        # a bare "detectors:" line parses as None
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(d, str) for d in value):
            raise ConfigError("'detectors' must be a list of detector names")
        return list(value)

    if value is None and key == 'log_file':
        return None

    expected = _FIELD_TYPES[key]
    # bool is a subclass of int; reject it for numeric fields
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ConfigError(f"'{key}' must be of type {expected.__name__}, got {value!r}")
    if key == 'workers' and value < 1:
        raise ConfigError(f"'workers' must be at least 1, got {value}")
    return value


def config_from_dict(data: dict) -> CompareConfig:
    """
    Build a CompareConfig from a mapping, rejecting unknown keys.

    Raises:
        ConfigError: If a key is unknown or a value has the wrong type
    """
    known = {f.name for f in fields(CompareConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    return CompareConfig(**{key: _validate(key, value) for key, value in data.items()})


def load_config(config_path: Union[str, Path]) -> CompareConfig:
    """
    Load run configuration from a YAML file.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or contains
                     invalid settings
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return CompareConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    return config_from_dict(data)


def apply_overrides(config: CompareConfig, **overrides) -> CompareConfig:
    """Return a copy of config with every non-None override applied."""
    changes = {key: _validate(key, value) for key, value in overrides.items() if value is not None}
    return replace(config, **changes)
