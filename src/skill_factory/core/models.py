"""Pydantic models for the discovery registry and skill manifests."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

SEMVER_PATTERN = re.compile(r"\d+\.\d+\.\d+")
KEBAB_CASE_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")

REGISTRY_SCHEMA_URL = "https://aiwork4me.github.io/schemas/discovery-2026.json"
MANIFEST_SCHEMA_URL = "https://aiwork4me.github.io/schemas/mcp-2026.json"
REGISTRY_VERSION = "1.0.0"
DEFAULT_MAINTAINER = "AIwork4me"
DEFAULT_CATEGORIES = ["web", "code", "data", "automation"]


def current_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_kebab_case(value: str) -> str:
    """Lowercase a name and collapse every non-alphanumeric run into a dash."""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def to_mcp_command(name: str) -> str:
    """Derive the MCP command identifier for a skill name."""
    return f"mcp__{name.replace('-', '_')}__main"


def to_pascal_case(name: str) -> str:
    return "".join(word[:1].upper() + word[1:] for word in name.split("-"))


class _CamelModel(BaseModel):
    """Base for documents stored with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)


class SkillStatus(str, Enum):
    """Lifecycle status of a registered skill."""

    PRODUCTION = "production"
    BETA = "beta"
    ALPHA = "alpha"
    DEPRECATED = "deprecated"


class ContainerLimits(_CamelModel):
    """Resource limits for running a skill inside a container."""

    cpu: Literal["low", "medium", "high"]
    memory: str
    timeout_seconds: int = Field(alias="timeoutSeconds", gt=0)


class ResourceProfile(_CamelModel):
    """Cost-estimation metadata declared for a skill."""

    intensity: Literal["low", "medium", "high", "critical"]
    estimated_token_usage: str = Field(alias="estimatedTokenUsage")
    estimated_duration: str = Field(alias="estimatedDuration")
    memory_requirement: Literal["low", "medium", "high"] = Field(
        alias="memoryRequirement"
    )
    container_limits: Optional[ContainerLimits] = Field(
        default=None, alias="containerLimits"
    )


class SkillLink(_CamelModel):
    """Chaining descriptor stored on a registry record."""

    input: list[str] = Field(default_factory=list)
    output: list[str] = Field(default_factory=list)
    chainable: bool = True
    suggested_next_skills: Optional[list[str]] = Field(
        default=None, alias="suggestedNextSkills"
    )


class RuntimeInfo(_CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str
    version: Optional[str] = None
    package_manager: Optional[str] = Field(default=None, alias="packageManager")
    entrypoint: Optional[str] = None


class SandboxSettings(_CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    mode: Optional[str] = None
    allow_network_outbound: Optional[bool] = Field(
        default=None, alias="allowNetworkOutbound"
    )
    allow_filesystem_write: Optional[bool] = Field(
        default=None, alias="allowFilesystemWrite"
    )
    allow_subprocess: Optional[bool] = Field(default=None, alias="allowSubprocess")


class Permissions(_CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    network: list[str] = Field(default_factory=list)
    filesystem: list[str] = Field(default_factory=list)
    env: list[str] = Field(default_factory=list)
    sandbox: Optional[SandboxSettings] = None


class SkillRecord(_CamelModel):
    """One registry entry, derived from a skill manifest."""

    name: str
    category: str
    version: str
    capability: str
    mcp_command: str = Field(alias="mcpCommand")
    status: SkillStatus = SkillStatus.ALPHA
    skill_link: SkillLink = Field(default_factory=SkillLink, alias="skillLink")
    entrypoint: str
    dependencies: list[str] = Field(default_factory=list)
    runtime: Optional[RuntimeInfo] = None
    permissions: Optional[Permissions] = None
    resource_profile: Optional[ResourceProfile] = Field(
        default=None, alias="resourceProfile"
    )
    created: str
    updated: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Skill identifiers are kebab-case."""
        if not KEBAB_CASE_PATTERN.fullmatch(v):
            raise ValueError(f"Skill name must be kebab-case, got: {v!r}")
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Versions follow major.minor.patch."""
        if not SEMVER_PATTERN.fullmatch(v):
            raise ValueError(f"Version must match major.minor.patch, got: {v!r}")
        return v


class TemplateEntry(_CamelModel):
    path: str
    description: str = ""


class Registry(_CamelModel):
    """The discovery registry document (``registry/discovery.json``)."""

    schema_url: str = Field(default=REGISTRY_SCHEMA_URL, alias="$schema")
    version: str = REGISTRY_VERSION
    last_updated: str = Field(default_factory=current_timestamp, alias="lastUpdated")
    maintainer: str = DEFAULT_MAINTAINER
    skills: list[SkillRecord] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    templates: dict[str, TemplateEntry] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_unique_names(self) -> "Registry":
        """Reject registries that list the same skill twice."""
        seen: set[str] = set()
        for skill in self.skills:
            if skill.name in seen:
                raise ValueError(f"Duplicate skill in registry: {skill.name}")
            seen.add(skill.name)
        return self

    def to_document(self) -> dict[str, Any]:
        """Serialise to the on-disk JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ToolSpec(_CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    description: str
    input_schema: dict[str, Any] = Field(alias="inputSchema")
    output_schema: Optional[dict[str, Any]] = Field(default=None, alias="outputSchema")


class ManifestSkillLink(_CamelModel):
    """Chaining descriptor as declared in a manifest."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    compatible: Optional[bool] = None
    input_type: Optional[str] = Field(default=None, alias="inputType")
    output_type: Optional[str] = Field(default=None, alias="outputType")


class DeepAgentSettings(_CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    supports_progress: bool = Field(default=False, alias="supportsProgress")
    supports_cancellation: bool = Field(default=False, alias="supportsCancellation")
    supports_self_correction: bool = Field(
        default=False, alias="supportsSelfCorrection"
    )
    max_execution_time: Optional[int] = Field(default=None, alias="maxExecutionTime")


class ManifestDocument(_CamelModel):
    """Tolerant view of ``mcp-config.json``.

    Every field is optional and loosely typed so that partially written
    manifests can still be read during registration and auditing.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[Any] = None
    version: Optional[Any] = None
    protocol: Optional[Any] = None
    description: Optional[Any] = None
    status: Optional[Any] = None
    tools: Optional[Any] = None
    dependencies: Optional[Any] = None
    skill_link: Optional[dict[str, Any]] = Field(default=None, alias="skillLink")
    runtime: Optional[dict[str, Any]] = None
    permissions: Optional[dict[str, Any]] = None
    deep_agent: Optional[dict[str, Any]] = Field(default=None, alias="deepAgent")
    resource_profile: Optional[dict[str, Any]] = Field(
        default=None, alias="resourceProfile"
    )

    def first_tool_description(self) -> Optional[str]:
        if isinstance(self.tools, list) and self.tools:
            first = self.tools[0]
            if isinstance(first, dict) and isinstance(first.get("description"), str):
                return first["description"] or None
        return None

    def sandbox_mode(self) -> Optional[str]:
        sandbox = (self.permissions or {}).get("sandbox")
        if isinstance(sandbox, dict):
            return sandbox.get("mode")
        return None

    def network_permissions(self) -> list[str]:
        network = (self.permissions or {}).get("network")
        return network if isinstance(network, list) else []


class Manifest(_CamelModel):
    """Strongly typed manifest, built only from a document that passed validation."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    schema_url: Optional[str] = Field(default=None, alias="$schema")
    name: str
    version: str
    protocol: str
    description: Optional[str] = None
    tools: list[ToolSpec]
    skill_link: Optional[ManifestSkillLink] = Field(default=None, alias="skillLink")
    runtime: Optional[RuntimeInfo] = None
    permissions: Optional[Permissions] = None
    deep_agent: Optional[DeepAgentSettings] = Field(default=None, alias="deepAgent")
    resource_profile: Optional[ResourceProfile] = Field(
        default=None, alias="resourceProfile"
    )
    security_manifest: Optional[dict[str, Any]] = Field(
        default=None, alias="securityManifest"
    )
