"""Pydantic models for skill factory configuration."""

from pathlib import Path

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from skill_factory.core.models import KEBAB_CASE_PATTERN
from skill_factory.core.validator import ProtocolPolicy
from skill_factory.utils.paths import expand_path


class SettingsConfig(BaseModel):
    """Project settings for skill factory."""

    skills_dir: str = Field(
        default="skills", description="Directory holding <category>/<skill> folders"
    )
    registry_file: str = Field(
        default="registry/discovery.json",
        description="Location of the discovery registry document",
    )
    categories: list[str] = Field(
        default=["web", "code", "data", "automation"],
        description="Category directories scanned for skills",
    )
    maintainer: str = Field(
        default="AIwork4me", description="Maintainer recorded in new registries"
    )
    protocol_policy: ProtocolPolicy = Field(
        default=ProtocolPolicy.STRICT,
        description="Whether a protocol mismatch fails validation",
    )
    install_command: list[str] = Field(
        default=["bun", "add"],
        description="Command prefix used to install a skill dependency",
    )

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v: list[str]) -> list[str]:
        """Categories are non-empty, unique kebab-case names."""
        if not v:
            raise ValueError("At least one category is required")
        if len(set(v)) != len(v):
            raise ValueError("Categories must be unique")
        for category in v:
            if not KEBAB_CASE_PATTERN.fullmatch(category):
                raise ValueError(f"Category must be kebab-case, got: {category!r}")
        return v

    @field_validator("install_command")
    @classmethod
    def validate_install_command(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("install_command must name an executable")
        return v


class SkillFactoryConfig(BaseModel):
    """Root configuration for skill factory."""

    version: str = Field(description="Config schema version")
    settings: SettingsConfig = Field(default_factory=SettingsConfig)

    _root_dir: Path = PrivateAttr(default_factory=Path.cwd)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        if not v.startswith("1."):
            raise ValueError(
                f"Unsupported config version: {v}. Only version 1.x is supported."
            )
        return v

    @property
    def root_dir(self) -> Path:
        """Directory relative settings paths are resolved against."""
        return self._root_dir

    def bind_root(self, root_dir: Path) -> "SkillFactoryConfig":
        """Resolve relative settings paths against ``root_dir`` from now on."""
        self._root_dir = expand_path(root_dir)
        return self

    @property
    def skills_dir(self) -> Path:
        return expand_path(self.settings.skills_dir, self.root_dir)

    @property
    def registry_path(self) -> Path:
        return expand_path(self.settings.registry_file, self.root_dir)
