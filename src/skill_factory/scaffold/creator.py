"""Create a new skill directory and register it."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from skill_factory.config.schema import SkillFactoryConfig
from skill_factory.core.errors import SkillFactoryError
from skill_factory.core.layout import entrypoint_for, skill_dir
from skill_factory.core.models import (
    Permissions,
    Registry,
    RuntimeInfo,
    SkillLink,
    SkillRecord,
    SkillStatus,
    current_timestamp,
    to_kebab_case,
    to_mcp_command,
    to_pascal_case,
)
from skill_factory.core.registry import find_skill, suggest_next_skills
from skill_factory.core.sync import DEFAULT_CAPABILITY, default_resource_profile
from skill_factory.scaffold.installer import InstallStep, install_dependencies
from skill_factory.scaffold.templates import render_skill_files
from skill_factory.utils.paths import ensure_dir


class SkillExistsError(SkillFactoryError):
    """The skill directory or registry record already exists."""


@dataclass
class CreatedSkill:
    """Everything produced by creating a skill."""

    record: SkillRecord
    path: Path
    files: list[str] = field(default_factory=list)
    install_steps: list[InstallStep] = field(default_factory=list)


def create_skill(
    config: SkillFactoryConfig,
    registry: Registry,
    category: str,
    name: str,
    capability: Optional[str] = None,
    dependencies: Optional[list[str]] = None,
    install: bool = True,
) -> tuple[Registry, CreatedSkill]:
    """Scaffold a new skill and add its record to the registry.

    Args:
        config: Loaded configuration
        registry: Registry to add the skill to (not modified)
        category: Category the skill belongs to
        name: Skill name, converted to kebab-case
        capability: One-line description of what the skill does
        dependencies: Packages to install into the skill directory
        install: Run the dependency installer

    Returns:
        Tuple of (updated registry, created skill)

    Raises:
        ValueError: If the category or name is invalid
        SkillExistsError: If the skill already exists
    """
    if category not in registry.categories:
        raise ValueError(
            f"Unknown category '{category}'. Expected one of: "
            f"{', '.join(registry.categories)}"
        )

    skill_name = to_kebab_case(name)
    if not skill_name:
        raise ValueError(f"Invalid skill name: {name!r}")

    capability = capability or DEFAULT_CAPABILITY
    dependencies = list(dependencies or [])
    path = skill_dir(config.skills_dir, category, skill_name)

    if path.exists():
        raise SkillExistsError(
            f'Skill "{skill_name}" already exists in category "{category}"'
        )
    if find_skill(registry, skill_name) is not None:
        raise SkillExistsError(f'Skill "{skill_name}" is already registered')

    mcp_command = to_mcp_command(skill_name)
    resource_profile = default_resource_profile(category)
    files = render_skill_files(
        skill_name, category, capability, mcp_command, resource_profile
    )

    for relative, content in files.items():
        target = path / relative
        ensure_dir(target.parent)
        target.write_text(content, encoding="utf-8")

    steps: list[InstallStep] = []
    if install and dependencies:
        steps = asyncio.run(
            install_dependencies(
                dependencies, path, command=config.settings.install_command
            )
        )

    suggestions = suggest_next_skills(
        registry, category, f"{to_pascal_case(skill_name)}Output"
    )

    timestamp = current_timestamp()
    record = SkillRecord(
        name=skill_name,
        category=category,
        version="1.0.0",
        capability=capability,
        mcp_command=mcp_command,
        status=SkillStatus.ALPHA,
        skill_link=SkillLink(
            input=["input: string"],
            output=["result: string", "metadata: SkillMetadata"],
            chainable=True,
            suggested_next_skills=suggestions,
        ),
        entrypoint=entrypoint_for(category, skill_name),
        dependencies=dependencies,
        runtime=RuntimeInfo(type="bun", version=">=1.0.0", package_manager="bun"),
        permissions=Permissions(),
        resource_profile=resource_profile,
        created=timestamp,
        updated=timestamp,
    )

    updated = registry.model_copy(deep=True)
    updated.skills.append(record)

    return updated, CreatedSkill(
        record=record, path=path, files=list(files), install_steps=steps
    )
