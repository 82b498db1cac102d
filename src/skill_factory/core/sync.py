"""Synchronise skill directories on disk into the registry.

Registration walks ``skills/<category>/<name>/`` for directories carrying an
``mcp-config.json`` and derives one SkillRecord per directory. Existing
records keep their ``created`` timestamp; everything else is rewritten, so
re-running registration over unchanged manifests only moves ``updated``.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from skill_factory.core.errors import ManifestParseError, NotFoundError
from skill_factory.core.layout import (
    MANIFEST_FILENAME,
    SkillCandidate,
    entrypoint_for,
)
from skill_factory.core.models import (
    ContainerLimits,
    ManifestDocument,
    Registry,
    ResourceProfile,
    SkillLink,
    SkillRecord,
    SkillStatus,
    current_timestamp,
    to_mcp_command,
)
from skill_factory.core.registry import upsert_skill

DEFAULT_VERSION = "1.0.0"
DEFAULT_CAPABILITY = "AI-powered skill"
DEFAULT_INPUT = ["input: string"]
DEFAULT_OUTPUT = ["result: string"]
FALLBACK_PROFILE_CATEGORY = "automation"

_RESOURCE_PROFILES: dict[str, dict[str, Any]] = {
    "web": {
        "intensity": "high",
        "estimatedTokenUsage": "5k-20k",
        "estimatedDuration": "10-60s",
        "memoryRequirement": "medium",
        "containerLimits": {"cpu": "medium", "memory": "512Mi", "timeoutSeconds": 60},
    },
    "code": {
        "intensity": "medium",
        "estimatedTokenUsage": "1k-10k",
        "estimatedDuration": "5-30s",
        "memoryRequirement": "low",
        "containerLimits": {"cpu": "low", "memory": "256Mi", "timeoutSeconds": 30},
    },
    "data": {
        "intensity": "high",
        "estimatedTokenUsage": "10k-50k",
        "estimatedDuration": "15-120s",
        "memoryRequirement": "high",
        "containerLimits": {"cpu": "high", "memory": "1Gi", "timeoutSeconds": 120},
    },
    "automation": {
        "intensity": "medium",
        "estimatedTokenUsage": "500-5k",
        "estimatedDuration": "1-30s",
        "memoryRequirement": "low",
        "containerLimits": {"cpu": "low", "memory": "256Mi", "timeoutSeconds": 30},
    },
}


def default_resource_profile(category: str) -> ResourceProfile:
    """Return the default resource profile for a category.

    Unknown categories get the automation profile.
    """
    profile = _RESOURCE_PROFILES.get(category, _RESOURCE_PROFILES[FALLBACK_PROFILE_CATEGORY])
    return ResourceProfile.model_validate(profile)


@dataclass
class SyncFailure:
    """A candidate that could not be registered."""

    name: str
    reason: str


@dataclass
class SyncReport:
    """Outcome of a registration pass.

    Attributes:
        registered: Names of skills added to the registry
        updated: Names of skills whose record was refreshed
        failures: Candidates skipped because their manifest was unusable
        total: Number of skills in the registry after the pass
    """

    registered: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    failures: list[SyncFailure] = field(default_factory=list)
    total: int = 0


def scan_local_skills(skills_dir: Path, categories: list[str]) -> list[SkillCandidate]:
    """Find skill directories that carry a manifest.

    Categories are visited in the given order and skill directories in name
    order. Missing category directories are skipped.

    Args:
        skills_dir: Root of the skills tree
        categories: Category directory names to scan

    Returns:
        Candidates in scan order
    """
    candidates = []

    for category in categories:
        category_dir = skills_dir / category
        if not category_dir.is_dir():
            continue

        for entry in sorted(category_dir.iterdir(), key=lambda p: p.name):
            if entry.is_dir() and (entry / MANIFEST_FILENAME).is_file():
                candidates.append(
                    SkillCandidate(name=entry.name, category=category, path=entry)
                )

    return candidates


def read_manifest(candidate: SkillCandidate) -> ManifestDocument:
    """Read a candidate's manifest into the tolerant manifest view.

    Raises:
        ManifestParseError: If the manifest cannot be read or parsed
    """
    path = candidate.manifest_path
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestParseError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestParseError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestParseError(f"{path} must contain a JSON object")

    try:
        return ManifestDocument.model_validate(data)
    except ValidationError as e:
        raise ManifestParseError(f"Malformed manifest {path}: {_first_error(e)}") from e


def _first_error(error: ValidationError) -> str:
    details = error.errors()[0]
    location = ".".join(str(part) for part in details["loc"])
    if location:
        return f"{location}: {details['msg']}"
    return details["msg"]


def _status_from(manifest: ManifestDocument) -> SkillStatus:
    try:
        return SkillStatus(manifest.status)
    except ValueError:
        return SkillStatus.ALPHA


def _skill_link_from(manifest: ManifestDocument) -> SkillLink:
    declared = manifest.skill_link or {}
    input_type = declared.get("inputType")
    output_type = declared.get("outputType")
    compatible = declared.get("compatible")
    return SkillLink(
        input=[f"input: {input_type}"] if input_type else list(DEFAULT_INPUT),
        output=[f"result: {output_type}"] if output_type else list(DEFAULT_OUTPUT),
        chainable=compatible if isinstance(compatible, bool) else True,
    )


def build_record(
    candidate: SkillCandidate,
    manifest: ManifestDocument,
    now: str,
    created: Optional[str] = None,
) -> SkillRecord:
    """Derive a registry record from a skill's manifest.

    Values the manifest does not declare fall back to category defaults.

    Args:
        candidate: The skill directory being registered
        manifest: Its parsed manifest
        now: Timestamp used for ``updated`` (and ``created`` for new records)
        created: Existing creation timestamp to carry over

    Returns:
        A SkillRecord satisfying the registry invariants

    Raises:
        ManifestParseError: If the manifest yields an invalid record
    """
    dependencies = manifest.dependencies if isinstance(manifest.dependencies, list) else []

    data: dict[str, Any] = {
        "name": candidate.name,
        "category": candidate.category,
        "version": manifest.version or DEFAULT_VERSION,
        "capability": manifest.first_tool_description() or DEFAULT_CAPABILITY,
        "mcpCommand": to_mcp_command(candidate.name),
        "status": _status_from(manifest),
        "skillLink": _skill_link_from(manifest),
        "entrypoint": entrypoint_for(candidate.category, candidate.name),
        "dependencies": dependencies,
        "runtime": manifest.runtime,
        "permissions": manifest.permissions,
        "resourceProfile": manifest.resource_profile
        or default_resource_profile(candidate.category),
        "created": created or now,
        "updated": now,
    }

    try:
        return SkillRecord.model_validate(data)
    except ValidationError as e:
        raise ManifestParseError(
            f"Cannot register {candidate.name}: {_first_error(e)}"
        ) from e


def _register_candidate(
    registry: Registry, candidate: SkillCandidate, now: str
) -> tuple[Registry, bool]:
    manifest = read_manifest(candidate)
    record = build_record(candidate, manifest, now)
    return upsert_skill(registry, record)


def register_all(
    registry: Registry, skills_dir: Path, now: Optional[str] = None
) -> tuple[Registry, SyncReport]:
    """Register every skill found under the skills directory.

    Candidates are processed one at a time in scan order. A candidate whose
    manifest cannot be used is recorded in the report and skipped; the rest
    of the batch continues.

    Args:
        registry: Registry to update (not modified)
        skills_dir: Root of the skills tree
        now: Timestamp to stamp records with (default: current time)

    Returns:
        Tuple of (updated registry, report)
    """
    now = now or current_timestamp()
    report = SyncReport()

    for candidate in scan_local_skills(skills_dir, registry.categories):
        try:
            registry, created = _register_candidate(registry, candidate, now)
        except ManifestParseError as e:
            report.failures.append(SyncFailure(name=candidate.name, reason=str(e)))
            continue

        if created:
            report.registered.append(candidate.name)
        else:
            report.updated.append(candidate.name)

    report.total = len(registry.skills)
    return registry, report


def register_one(
    registry: Registry, skills_dir: Path, name: str, now: Optional[str] = None
) -> tuple[Registry, SyncReport]:
    """Register a single named skill found under the skills directory.

    Args:
        registry: Registry to update (not modified)
        skills_dir: Root of the skills tree
        name: Skill directory name
        now: Timestamp to stamp the record with (default: current time)

    Returns:
        Tuple of (updated registry, report)

    Raises:
        NotFoundError: If no skill directory with a manifest has that name
        ManifestParseError: If the manifest cannot be used
    """
    now = now or current_timestamp()

    candidate = next(
        (c for c in scan_local_skills(skills_dir, registry.categories) if c.name == name),
        None,
    )
    if candidate is None:
        raise NotFoundError(f'Skill "{name}" not found in local skills directory')

    registry, created = _register_candidate(registry, candidate, now)

    report = SyncReport(total=len(registry.skills))
    if created:
        report.registered.append(name)
    else:
        report.updated.append(name)
    return registry, report
