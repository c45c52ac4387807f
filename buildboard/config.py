#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path
from typing import Any, Dict, List

import logging
import sys

import yaml

from .domain.repository import TrackedRepository
from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("buildboard")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']

# Repositories tracked when the configuration does not list any
DEFAULT_PROJECTS = [
    {"path": "redox-os/redox", "packages": []},
    {"path": "redox-os/relibc", "packages": ["relibc"]},
    {"path": "redox-os/cookbook", "packages": []},
    {"path": "redox-os/installer", "packages": ["installer"]},
    {"path": "redox-os/pkgutils", "packages": ["pkgutils"]},
    {"path": "redox-os/kernel", "packages": ["kernel"]},
    {"path": "redox-os/drivers", "packages": ["drivers", "drivers-initfs"]},
    {"path": "redox-os/base", "packages": ["base", "base-initfs"]},
    {"path": "redox-os/redoxfs", "packages": ["redoxfs"]},
    {"path": "redox-os/bootloader", "packages": ["bootloader"]},
    {"path": "redox-os/acid", "packages": ["acid"]},
    {"path": "redox-os/redoxer", "packages": []},
    {"path": "redox-os/orbital", "packages": ["orbital"]},
    {"path": "redox-os/orbutils", "packages": ["orbutils"]},
    {"path": "redox-os/extrautils", "packages": ["extrautils"]},
    {"path": "redox-os/book", "packages": []},
    {"path": "redox-os/website", "packages": []},
]


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. BUILDBOARD_CONFIG environment variable
    2. ~/.buildboard/ directory
    """
    if 'BUILDBOARD_CONFIG' in os.environ:
        path = Path(os.environ['BUILDBOARD_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.buildboard'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "max_concurrent_requests": 8,
        },
        "gitlab": {
            "url": "https://gitlab.redox-os.org",
            "token": "",
            "timeout_seconds": 30,
            "max_retries": 3,
            "max_delay_seconds": 60,
        },
        "artifacts": {
            "package_url": "https://static.redox-os.org/pkg/",
            "image_url": "https://static.redox-os.org/img/",
            "platforms": ["x86_64", "aarch64", "i586"],
            "stale_hours": 48,
            "timeout_seconds": 30,
        },
        "cache": {
            "ttl_seconds": 3600,
        },
        "projects": [dict(p) for p in DEFAULT_PROJECTS],
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s",
        },
    }


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config():
    """Load configuration from file, then apply environment overrides."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)

    return apply_env_overrides(config)


def save_config(config, config_path=None):
    """Save configuration to file (JSON, TOML is read-only with tomllib)."""
    config_path = Path(config_path) if config_path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ('.yaml', '.yml'):
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    else:
        if config_path.suffix.lower() == '.toml':
            logger.warning("Writing TOML is not supported. Saving as JSON instead.")
            config_path = config_path.with_suffix('.json')
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


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
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _typed_env_value(value: str):
    if value.lower() in ('true', 'yes', 'on'):
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    if ',' in value:
        return [part.strip() for part in value.split(',') if part.strip()]
    return value


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern BUILDBOARD_SECTION_KEY,
    for example BUILDBOARD_CACHE_TTL_SECONDS=600. The GitLab conventions
    GITLAB_URL and GITLAB_PRIVATE_TOKEN are honoured as well.
    """
    if os.environ.get('GITLAB_URL'):
        config.setdefault('gitlab', {})['url'] = os.environ['GITLAB_URL']
    if os.environ.get('GITLAB_PRIVATE_TOKEN'):
        config.setdefault('gitlab', {})['token'] = os.environ['GITLAB_PRIVATE_TOKEN']

    env_prefix = "BUILDBOARD_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'BUILDBOARD_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')
        typed_value = _typed_env_value(value)

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


def setup_logging(config) -> None:
    """Apply the logging section to the buildboard logger."""
    logging_config = config.get('logging', {})
    level_name = str(logging_config.get('level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown logging level: {level_name}")
    logger.setLevel(level)

    fmt = logging_config.get('format')
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def get_tracked_repositories(config) -> List[TrackedRepository]:
    """
    Build the tracked repository list from the 'projects' section.

    Each entry is either a path string or a mapping with 'path' and
    optional 'branch' and 'packages'.
    """
    repositories = []
    seen = set()
    for entry in config.get('projects') or []:
        if isinstance(entry, str):
            entry = {'path': entry}
        if not isinstance(entry, dict) or not entry.get('path'):
            raise ConfigError(f"Invalid project entry: {entry!r}")

        packages = entry.get('packages') or []
        if isinstance(packages, str):
            packages = [packages]

        repo = TrackedRepository.create(
            path=str(entry['path']).strip('/'),
            branch=entry.get('branch'),
            packages=packages,
        )
        if repo.path in seen:
            logger.warning(f"Project {repo.path} listed more than once, ignoring duplicate")
            continue
        seen.add(repo.path)
        repositories.append(repo)
    return repositories


def get_platforms(config) -> List[str]:
    """Platform tokens to reconcile artifacts for, in configured order."""
    platforms = config.get('artifacts', {}).get('platforms') or []
    if isinstance(platforms, str):
        platforms = [p.strip() for p in platforms.split(',')]
    result = []
    for platform in platforms:
        if platform and platform not in result:
            result.append(platform)
    return result


def _with_trailing_slash(url: str) -> str:
    return url if url.endswith('/') else url + '/'


def get_artifact_urls(config) -> Dict[str, str]:
    """Base URLs of the package and image listings."""
    artifacts = config.get('artifacts', {})
    return {
        'package_url': _with_trailing_slash(artifacts.get('package_url', '')),
        'image_url': _with_trailing_slash(artifacts.get('image_url', '')),
    }
