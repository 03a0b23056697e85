"""
Configuration loading and validation.

Model settings live in a nested dictionary, optionally read from YAML:

    fit:
      maxit: 100
      tol: 1.0e-4
      threads: 0
      verbose: false
      L1: [0.0, 0.0]
      upper_bound: 0.0
    masking:
      mask_zeros: false
"""

import copy
import yaml
from typing import Dict, Optional

from .exceptions import ConfigurationError

# added to every ALS denominator to avoid division by zero
DIV_OFFSET = 1e-15

DEFAULT_CONFIG = {
    'fit': {
        'maxit': 100,
        'tol': 1e-4,
        'threads': 0,
        'verbose': False,
        'L1': [0.0, 0.0],
        'upper_bound': 0.0,
    },
    'masking': {
        'mask_zeros': False,
    },
}


def merge_config(config: Optional[Dict]) -> Dict:
    """Return a copy of DEFAULT_CONFIG with the sections of *config* laid over it."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    if not config:
        return merged

    for section, values in config.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def load_config(config_path: str) -> Dict:
    """
    Load a YAML configuration file and merge it over the defaults.

    Parameters
    ----------
    config_path : str
        Path to YAML file.

    Returns
    -------
    dict
        Validated configuration.
    """
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}
    config = merge_config(config)
    validate_config(config)
    return config


def validate_config(config: Dict) -> None:
    """Raise ConfigurationError if any fit setting is out of range."""
    fit_config = config.get('fit', {})

    l1 = fit_config.get('L1', [0.0, 0.0])
    if len(l1) != 2:
        raise ConfigurationError(f"'L1' must have exactly two elements (u, v), got {len(l1)}")
    if any(p < 0 for p in l1):
        raise ConfigurationError("'L1' penalties must be non-negative")

    if fit_config.get('maxit', 100) < 0:
        raise ConfigurationError("'maxit' must be non-negative")
    if fit_config.get('threads', 0) < 0:
        raise ConfigurationError("'threads' must be non-negative (0 = all cores)")
    if fit_config.get('tol', 1e-4) < 0:
        raise ConfigurationError("'tol' must be non-negative")
