"""Configuration loader with merge logic."""

import copy
from pathlib import Path
from typing import Any, Optional

import yaml

from skill_factory.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG
from skill_factory.config.schema import SkillFactoryConfig
from skill_factory.utils.paths import expand_path


def find_config_file(root_dir: Path) -> Optional[Path]:
    """Return the project config file in ``root_dir`` if there is one."""
    candidate = root_dir / CONFIG_FILENAME
    if candidate.is_file():
        return candidate
    return None


def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        file_path: Path to the YAML file

    Returns:
        Dictionary containing the parsed YAML content

    Raises:
        yaml.YAMLError: If the file contains invalid YAML
        ValueError: If the top level of the document is not a mapping
        FileNotFoundError: If the file doesn't exist
    """
    with open(file_path, "r", encoding="utf-8") as f:
        content = yaml.safe_load(f)

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Config file {file_path} must contain a mapping")
    return content


def merge_configs(configs: list[dict[str, Any]]) -> dict[str, Any]:
    """Deep merge configuration dictionaries, later ones taking precedence.

    Nested dictionaries are merged recursively; any other value, lists
    included, is replaced by the later config.
    """
    result: dict[str, Any] = {}
    for config in configs:
        result = _deep_merge(result, config)
    return result


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result


def load_config(
    root_dir: Optional[Path] = None, config_path: Optional[Path] = None
) -> SkillFactoryConfig:
    """Load the configuration for a project.

    Configuration precedence (lowest to highest):
    1. Built-in defaults
    2. ``skill-factory.yaml`` in the root directory
    3. Explicitly provided config_path (if given)

    Relative paths in the settings resolve against ``root_dir``.

    Args:
        root_dir: Project root (default: current directory)
        config_path: Optional explicit path to a config file

    Returns:
        Validated SkillFactoryConfig instance

    Raises:
        ValidationError: If the merged configuration is invalid
        yaml.YAMLError: If a config file contains invalid YAML
        FileNotFoundError: If config_path is provided but doesn't exist
    """
    root = expand_path(root_dir) if root_dir is not None else Path.cwd()

    configs_to_merge = [DEFAULT_CONFIG]

    project_config = find_config_file(root)
    if project_config is not None:
        try:
            configs_to_merge.append(load_yaml_file(project_config))
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error loading {project_config}: {e}") from e

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        configs_to_merge.append(load_yaml_file(config_path))

    merged = merge_configs(configs_to_merge)

    config = SkillFactoryConfig(**merged)
    return config.bind_root(root)
