"""Scaffolding of new skills."""

from skill_factory.scaffold.creator import CreatedSkill, SkillExistsError, create_skill
from skill_factory.scaffold.installer import InstallStep, install_dependencies

__all__ = [
    "CreatedSkill",
    "InstallStep",
    "SkillExistsError",
    "create_skill",
    "install_dependencies",
]
