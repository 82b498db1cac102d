"""Core registry engine: store, validator, auditor and synchronizer."""

from skill_factory.core.auditor import AuditFinding, AuditResult, Severity, audit_skill
from skill_factory.core.models import Manifest, ManifestDocument, Registry, SkillRecord
from skill_factory.core.registry import RegistryStore, find_skill, upsert_skill
from skill_factory.core.sync import SyncReport, register_all, register_one
from skill_factory.core.validator import (
    ProtocolPolicy,
    ValidationReport,
    cast_manifest,
    validate_manifest,
)

__all__ = [
    "AuditFinding",
    "AuditResult",
    "Manifest",
    "ManifestDocument",
    "ProtocolPolicy",
    "Registry",
    "RegistryStore",
    "Severity",
    "SkillRecord",
    "SyncReport",
    "ValidationReport",
    "audit_skill",
    "cast_manifest",
    "find_skill",
    "register_all",
    "register_one",
    "upsert_skill",
    "validate_manifest",
]
