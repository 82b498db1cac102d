"""Configuration loading and management."""

from skill_factory.config.loader import load_config, merge_configs
from skill_factory.config.schema import SettingsConfig, SkillFactoryConfig

__all__ = [
    "load_config",
    "merge_configs",
    "SettingsConfig",
    "SkillFactoryConfig",
]
