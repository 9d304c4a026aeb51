#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("registry_retention")

ENV_PREFIX = "REGISTRY_RETENTION_"

# Rule inputs, in the order they are reported
INPUT_NAMES = (
    "repository",
    "username",
    "password",
    "match",
    "retention",
    "minimum",
    "multiple",
    "unless",
    "dryrun",
)

TRUE_VALUES = ('true', '1', 'yes', 'on')


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. REGISTRY_RETENTION_CONFIG environment variable
    2. ~/.registry-retention/ directory
    """
    if 'REGISTRY_RETENTION_CONFIG' in os.environ:
        path = Path(os.environ['REGISTRY_RETENTION_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.registry-retention'
    for filename in ['config.yaml', 'config.yml', 'config.json', 'config.toml']:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.yaml'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    config = apply_env_overrides(config)

    return config


def save_config(config, config_path=None):
    """Save configuration to file (YAML or JSON, chosen by suffix)."""
    config_path = Path(config_path) if config_path else get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    else:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "registry": {
            "base_url": "https://hub.docker.com",
            "timeout_seconds": 30,
            "page_size": 100
        },
        "behavior": {
            "fail_on_registry_error": True
        },
        "logging": {
            "level": "INFO"
        },
        "retention": {
            "repository": "",
            "match": "",
            "retention": "",
            "minimum": "",
            "multiple": "",
            "unless": "",
            "dryrun": False
        }
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def _typed_env_value(value):
    if value.lower() in TRUE_VALUES:
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: REGISTRY_RETENTION_SECTION_KEY
    For example: REGISTRY_RETENTION_BEHAVIOR_FAIL_ON_REGISTRY_ERROR=false
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')
        typed_value = _typed_env_value(value)

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # Path conflict, e.g., env var is longer but we found a non-dict value
                break

    return config


def parse_bool(value) -> bool:
    """Interpret a boolean-as-string input ("true", "1", "yes", "on")."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def collect_inputs(config=None, overrides=None):
    """
    Gather rule inputs.

    Lowest precedence first:
    1. the `retention` section of the config
    2. INPUT_<NAME> environment variables (CI action inputs)
    3. explicit overrides (command-line options); None values are ignored

    Scalar string values are stripped (rule lists keep their YAML
    indentation); dryrun is returned as a bool.
    """
    config = config if config is not None else load_config()
    inputs = {name: config.get("retention", {}).get(name) for name in INPUT_NAMES}

    for name in INPUT_NAMES:
        env_value = os.environ.get(f"INPUT_{name.upper()}")
        if env_value is not None and env_value.strip():
            inputs[name] = env_value

    for name, value in (overrides or {}).items():
        if value is not None:
            inputs[name] = value

    for name, value in inputs.items():
        if isinstance(value, str) and name not in ("multiple", "unless"):
            inputs[name] = value.strip()

    inputs["dryrun"] = parse_bool(inputs.get("dryrun"))
    return inputs


def set_log_level(level):
    """Set the level of the root logger (e.g. "DEBUG" or logging.DEBUG)."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.getLogger().setLevel(level)
