"""
HiCWeaver v0.1.0

Configuration schema for HiCWeaver.

Defines all available configuration parameters with defaults and validation.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
from typing import Dict, Any, Optional, List
from pathlib import Path
import yaml


# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # AutoCut: misassembly breakpoint detection
    # ========================================================================
    'autocut': {
        'cut_threshold': 0.20,  # Relative drop below local baseline
        'window_size': 8,  # Diagonal band half-width (overview pixels)
        'min_fragment_size': 16,  # Minimum pixels between cuts and edges
        'min_confidence': 0.3,  # Breakpoints at or below are dropped
    },

    # ========================================================================
    # AutoSort: contig ordering and orientation
    # ========================================================================
    'autosort': {
        'max_diagonal_distance': 50,  # Largest band distance sampled
        'signal_cutoff': 0.05,  # Minimum link score kept
        'hard_threshold': 0.2,  # Cap on the adaptive chaining threshold
        'min_chain_size': 3,  # Legacy small-chain merge only
        'merge_threshold': 0.05,  # Floor of the chain merge threshold
        'per_scaffold': False,  # Sort each scaffold independently
    },

    # ========================================================================
    # Output
    # ========================================================================
    'output': {
        'format': 'json',  # 'json', 'tsv'
        'indent': 2,

        # Logging
        'logging': {
            'level': 'INFO',  # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
            'log_file': None,
        },
    },
}

VALID_TEMPLATES = ['default', 'sensitive', 'conservative']
VALID_OUTPUT_FORMATS = ['json', 'tsv']
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Path to YAML config file (None = use defaults)

    Returns:
        Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path) as f:
                user_config = yaml.safe_load(f)

            if user_config is not None and not isinstance(user_config, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping at the top level")

            # Deep merge user config into defaults
            if user_config:
                config = _deep_merge(config, user_config)

    return config


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def save_config_template(output_path: Path, template: str = 'default'):
    """
    Save a configuration template to file.

    Args:
        output_path: Output file path
        template: Template type ('default', 'sensitive', 'conservative')
    """
    if template not in VALID_TEMPLATES:
        raise ValueError(f"Unknown template: {template} (choose from {VALID_TEMPLATES})")

    config = copy.deepcopy(DEFAULT_CONFIG)

    # Customize for specific templates
    if template == 'sensitive':
        # Shallower drops count as breakpoints, weaker links chain
        config['autocut']['cut_threshold'] = 0.15
        config['autocut']['min_confidence'] = 0.2
        config['autosort']['hard_threshold'] = 0.15

    elif template == 'conservative':
        config['autocut']['cut_threshold'] = 0.30
        config['autocut']['min_fragment_size'] = 24
        config['autocut']['min_confidence'] = 0.5
        config['autosort']['hard_threshold'] = 0.3
        config['autosort']['merge_threshold'] = 0.1

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def _check_fraction(errors: List[str], section: Dict[str, Any], name: str, key: str):
    value = section.get(key)
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not 0.0 <= value <= 1.0:
        errors.append(f"Invalid {name}.{key}: {value!r} (must be a number in [0, 1])")


def _check_positive_int(errors: List[str], section: Dict[str, Any], name: str, key: str):
    value = section.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        errors.append(f"Invalid {name}.{key}: {value!r} (must be a positive integer)")


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    for section_name in ('autocut', 'autosort', 'output'):
        if not isinstance(config.get(section_name), dict):
            errors.append(f"Missing or invalid configuration section: {section_name}")
    if errors:
        return errors

    # Validate AutoCut settings
    autocut = config['autocut']
    for key in ('cut_threshold', 'min_confidence'):
        _check_fraction(errors, autocut, 'autocut', key)
    for key in ('window_size', 'min_fragment_size'):
        _check_positive_int(errors, autocut, 'autocut', key)

    # Validate AutoSort settings
    autosort = config['autosort']
    for key in ('signal_cutoff', 'hard_threshold', 'merge_threshold'):
        _check_fraction(errors, autosort, 'autosort', key)
    for key in ('max_diagonal_distance', 'min_chain_size'):
        _check_positive_int(errors, autosort, 'autosort', key)
    if not isinstance(autosort.get('per_scaffold', False), bool):
        errors.append(f"Invalid autosort.per_scaffold: {autosort.get('per_scaffold')!r} (must be true/false)")

    # Validate output settings
    output = config['output']
    if output.get('format', 'json') not in VALID_OUTPUT_FORMATS:
        errors.append(f"Invalid output.format: {output.get('format')} (choose from {VALID_OUTPUT_FORMATS})")
    logging_config = output.get('logging') or {}
    level = logging_config.get('level', 'INFO') if isinstance(logging_config, dict) else logging_config
    if str(level).upper() not in VALID_LOG_LEVELS:
        errors.append(f"Invalid output.logging.level: {level} (choose from {VALID_LOG_LEVELS})")

    return errors

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
