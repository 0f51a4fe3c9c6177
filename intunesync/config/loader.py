# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Configuration loading and merging for intunesync.

The effective configuration is built from two layers:

1. **Built-in defaults** (DEFAULT_CONFIG below)
   - Graph endpoint and API version
   - Request timeout
   - No log file

2. **Configuration file** (optional YAML, e.g. intunesync.yaml)
   - Overrides any default
   - Per record type: enabled flag, folder name, extra fields to strip

Merge Behavior:
    The loader performs deep merging with "last wins" semantics:

    - **Dicts**: Recursively merged (keys from overlay override base)
    - **Lists**: Completely replaced (NOT appended/extended)
    - **Scalars**: Overwritten (strings, numbers, booleans)

Path Resolution:
    Relative paths are resolved against the CONFIG FILE location. Currently
    resolved paths: logging.file

Credentials are never read from the configuration file; the credential
manager takes them from the environment (or a .env file).

Example:
    A configuration file:
        ```yaml
        graph:
          api_version: beta
          timeout: 120
        logging:
          file: logs/intunesync.log
        record_types:
          scripts:
            enabled: false
          device_configurations:
            folder: Profiles
            strip_fields: [supportsScopeTags]
        ```

    Loading it:
        ```python
        from pathlib import Path
        from intunesync.config import load_effective_config

        config = load_effective_config(Path("intunesync.yaml"))
        print(config["graph"]["api_version"])  # "beta"
        ```
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from intunesync.exceptions import ConfigError
from intunesync.logging import Logger, SilentLogger

DEFAULT_CONFIG: dict[str, Any] = {
    "graph": {
        "base_url": "https://graph.microsoft.com",
        "api_version": "beta",
        "timeout": 60,
    },
    "logging": {
        "file": None,
    },
    "record_types": {},
}

# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """Loads a YAML file and returns the parsed Python object.

    Args:
        p: Path to the YAML file to load.

    Returns:
        The parsed Python object from the YAML file.

    Raises:
        ConfigError: When file does not exist, invalid YAML (parse error), or empty files.
    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merges two dicts with "overlay wins" semantics.

    Merge behavior:

    - dict + dict -> deep merge
    - list + list -> overlay REPLACES base (not concatenated)
    - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.

    Args:
        base: The base dictionary.
        overlay: The overlay dictionary that takes precedence.

    Returns:
        A new dictionary with the merged contents.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            # Replace lists and scalars entirely
            result[k] = v
    return result


# -------------------------------
# Path resolution
# -------------------------------


def _resolve_known_paths(cfg: dict[str, Any], config_dir: Path) -> None:
    """Resolve relative path fields against the config file directory.

    Currently handled: cfg["logging"]["file"]. Modifies cfg in place.
    """
    raw_path = cfg.get("logging", {}).get("file")
    if isinstance(raw_path, str) and raw_path:
        p = Path(raw_path)
        if not p.is_absolute():
            cfg["logging"]["file"] = str((config_dir / p).resolve())


def _check_shape(cfg: dict[str, Any], source: Path) -> None:
    for section in ("graph", "logging", "record_types"):
        value = cfg.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(f"'{section}' must be a mapping in {source}")
    for key, overrides in (cfg.get("record_types") or {}).items():
        if not isinstance(overrides, dict):
            raise ConfigError(f"record_types.{key} must be a mapping in {source}")


# -------------------------------
# Public API
# -------------------------------


def load_effective_config(
    config_path: Path | None = None,
    *,
    logger: Logger | None = None,
) -> dict[str, Any]:
    """Load the effective configuration.

    Steps:

    1. Start from a deep copy of DEFAULT_CONFIG.
    2. If config_path is given, read it and deep-merge it on top.
    3. Resolve relative paths against the config file directory.

    Args:
        config_path: Optional YAML configuration file.
        logger: Logger for progress output. Defaults to a silent logger.

    Returns:
        A merged configuration dict.

    Raises:
        ConfigError: If the file is missing, empty, not valid YAML, or not a
            mapping at the top level or in a known section.
    """
    if logger is None:
        logger = SilentLogger()

    merged = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        logger.verbose("CONFIG", "No configuration file, using built-in defaults")
        return merged

    config_path = config_path.resolve()
    logger.verbose("CONFIG", f"Loading: {config_path}")

    data = _load_yaml_file(config_path)
    if not isinstance(data, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {config_path}")
    _check_shape(data, config_path)

    merged = _deep_merge_dicts(merged, data)
    _resolve_known_paths(merged, config_path.parent)

    logger.debug("CONFIG", f"Effective configuration: {merged}")
    return merged
