#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

import logging
import sys

import yaml

from .domain import ExclusionList
from .exceptions import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("srcarchive")

CONFIG_FILENAMES = ['srcarchive.toml', 'srcarchive.json', 'srcarchive.yaml', 'srcarchive.yml']

# Value of BUILD_REASON that CI sets for nightly runs
SCHEDULE_BUILD_REASON = "Schedule"

# Keys that may only come from the project's config file
FILE_ONLY_KEYS = {'exclude'}


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "project": "",              # Empty means: name of the root directory
        "tag": "",                  # Explicit VersionTag override
        "tag_pattern": "20*",       # git describe --match pattern for release tags
        "scheduled": False,         # Nightly/unattended run
        "output_dir": "",           # Empty means: current working directory
        "recursive": False,         # Enumerate nested-within-nested submodules
        "jobs": 1,                  # Concurrent snapshot generation (1 = sequential)
        "compresslevel": 9,         # gzip level for the artifact
        "exclude": [
            "deps/harfbuzz/harfbuzz/test",
            "deps/freetype/libpng/contrib",
            "docs/screenshots",
        ],
        "git": {
            "timeout": 300,
        },
    }


def get_config_path(repo_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Get the path to the configuration file.

    Checks in order:
    1. SRCARCHIVE_CONFIG environment variable
    2. srcarchive.{toml,json,yaml,yml} in the repository root

    Returns None when no config file exists.
    """
    if 'SRCARCHIVE_CONFIG' in os.environ:
        path = Path(os.environ['SRCARCHIVE_CONFIG']).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return path

    root = Path(repo_path) if repo_path else Path.cwd()
    for filename in CONFIG_FILENAMES:
        path = root / filename
        if path.exists():
            return path

    return None


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """Read a TOML, YAML or JSON config file into a dict."""
    try:
        if config_path.suffix.lower() in ['.toml']:
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f)
        else:
            # Default to JSON format
            with open(config_path, 'r') as f:
                file_config = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return file_config


def load_config(repo_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load configuration: defaults, then config file, then environment."""
    config = get_default_config()

    config_path = get_config_path(repo_path)
    if config_path is not None:
        logger.debug(f"Using config from {config_path}")
        config = merge_configs(config, read_config_file(config_path))

    config = apply_env_overrides(config)
    validate_config(config)

    return config


def validate_config(config: Dict[str, Any]) -> None:
    """Check value types that the pipeline relies on."""
    exclude = config.get('exclude')
    if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
        raise ConfigError("'exclude' must be a list of paths")
    try:
        ExclusionList.from_paths(exclude)
    except ValueError as e:
        raise ConfigError(f"Invalid 'exclude' entry: {e}") from e

    jobs = config.get('jobs')
    if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
        raise ConfigError("'jobs' must be a positive integer")

    level = config.get('compresslevel')
    if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level <= 9:
        raise ConfigError("'compresslevel' must be an integer from 0 to 9")

    timeout = config.get('git', {}).get('timeout')
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError("'git.timeout' must be a positive number")

    for key in ('project', 'tag', 'tag_pattern', 'output_dir'):
        if not isinstance(config.get(key), str):
            raise ConfigError(f"'{key}' must be a string")


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


def is_scheduled_reason(build_reason: Optional[str]) -> bool:
    """True when BUILD_REASON marks an unattended nightly run."""
    return build_reason == SCHEDULE_BUILD_REASON


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.

    TAG_NAME and BUILD_REASON are the variables CI already exports.
    Other keys follow the pattern: SRCARCHIVE_SECTION_KEY
    For example: SRCARCHIVE_GIT_TIMEOUT=600
    """
    tag_name = os.environ.get('TAG_NAME')
    if tag_name and tag_name.strip():
        config['tag'] = tag_name.strip()

    if is_scheduled_reason(os.environ.get('BUILD_REASON')):
        config['scheduled'] = True

    env_prefix = "SRCARCHIVE_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'SRCARCHIVE_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', '1', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', '0', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key is None or (current_level is config and matched_key in FILE_ONLY_KEYS):
                break

            if i + best_match_len == len(key_parts):
                current = current_level[matched_key]
                # Keep the type of the existing value: "1" is a tag or one job, not True
                if isinstance(current, str):
                    typed_value = value
                elif isinstance(current, int) and not isinstance(current, bool) and isinstance(typed_value, bool):
                    typed_value = int(value) if value.isdigit() else typed_value
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # Path conflict, e.g., env var is longer but we found a non-dict value
                break

    return config


def configure_logging(debug: bool = False) -> None:
    """Switch the package to debug logging when requested."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            force=True,
        )
