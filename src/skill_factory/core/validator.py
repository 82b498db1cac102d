"""Manifest validation against the mcp-2026 schema.

``validate_manifest`` is a pure check over an already parsed manifest: it
collects every violation in a single pass and never stops at the first one.
``cast_manifest`` is the only way to obtain a typed ``Manifest``; it refuses
documents that do not pass validation.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from skill_factory.core.errors import ManifestValidationError
from skill_factory.core.layout import (
    REQUIRED_FILES,
    RESILIENCE_TEST_FILENAME,
    SECURITY_TEST_FILENAME,
    list_test_files,
)
from skill_factory.core.models import SEMVER_PATTERN, Manifest

PROTOCOL = "mcp-2026"
REQUIRED_FIELDS = ("name", "version", "protocol", "tools")
REQUIRED_TOOL_FIELDS = ("name", "description", "inputSchema")

# Optional blocks whose absence is reported as a warning only.
ADVISORY_BLOCKS = (
    ("runtime", "No runtime configuration"),
    ("permissions", "No permissions declared"),
    ("deepAgent", "No deepAgent configuration (2026 Standard)"),
    ("resourceProfile", "No resourceProfile defined (cost estimation unavailable)"),
)


class ProtocolPolicy(str, Enum):
    """How a protocol mismatch affects the overall verdict.

    The validator always reports a mismatch as an error. Under STRICT the
    error fails the manifest; under ADVISORY it is tolerated when it is the
    only error.
    """

    STRICT = "strict"
    ADVISORY = "advisory"


@dataclass
class ValidationReport:
    """Outcome of validating one manifest.

    Attributes:
        errors: Every schema violation found, in check order
        warnings: Advisory notes that never affect validity
        protocol_error: The protocol mismatch message, if any
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    protocol_error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return not self.errors

    def blocking_errors(
        self, policy: ProtocolPolicy = ProtocolPolicy.STRICT
    ) -> list[str]:
        """Return the errors that fail the manifest under ``policy``."""
        if policy is ProtocolPolicy.ADVISORY and self.protocol_error:
            return [e for e in self.errors if e != self.protocol_error]
        return list(self.errors)

    def passes(self, policy: ProtocolPolicy = ProtocolPolicy.STRICT) -> bool:
        return not self.blocking_errors(policy)


def validate_manifest(manifest: Any) -> ValidationReport:
    """Validate a parsed manifest against the mcp-2026 schema.

    Args:
        manifest: Parsed JSON content of ``mcp-config.json``

    Returns:
        ValidationReport listing all errors and advisory warnings
    """
    report = ValidationReport()

    if not isinstance(manifest, dict):
        report.errors.append("Manifest must be a JSON object")
        return report

    for field_name in REQUIRED_FIELDS:
        if field_name not in manifest:
            report.errors.append(f'Missing required field: "{field_name}"')

    if "name" in manifest and not isinstance(manifest["name"], str):
        report.errors.append('Field "name" must be a string')

    if "version" in manifest:
        version = manifest["version"]
        if not isinstance(version, str) or not SEMVER_PATTERN.fullmatch(version):
            report.errors.append(
                f'Field "version" must match semver format (e.g., "1.0.0"), '
                f'got: "{version}"'
            )

    if "protocol" in manifest and manifest["protocol"] != PROTOCOL:
        message = f'Field "protocol" should be "{PROTOCOL}", got: "{manifest["protocol"]}"'
        report.errors.append(message)
        report.protocol_error = message

    if "tools" in manifest:
        tools = manifest["tools"]
        if not isinstance(tools, list):
            report.errors.append('Field "tools" must be an array')
        else:
            for index, tool in enumerate(tools):
                report.errors.extend(_check_tool(index, tool))

    for block, warning in ADVISORY_BLOCKS:
        if manifest.get(block) is None:
            report.warnings.append(warning)

    return report


def _check_tool(index: int, tool: Any) -> list[str]:
    if not isinstance(tool, dict):
        tool = {}
    errors = []
    for field_name in REQUIRED_TOOL_FIELDS:
        value = tool.get(field_name)
        if field_name == "inputSchema":
            present = isinstance(value, dict)
        else:
            present = bool(value)
        if not present:
            errors.append(f'Tool {index}: missing "{field_name}"')
    return errors


def cast_manifest(
    data: Any, policy: ProtocolPolicy = ProtocolPolicy.STRICT
) -> Manifest:
    """Validate a parsed manifest and build the typed model from it.

    Args:
        data: Parsed JSON content of ``mcp-config.json``
        policy: Protocol policy applied to the validation verdict

    Returns:
        Typed Manifest

    Raises:
        ManifestValidationError: If the manifest does not pass under ``policy``
            or its optional blocks have the wrong shape
    """
    report = validate_manifest(data)
    errors = report.blocking_errors(policy)
    if errors:
        raise ManifestValidationError(errors)

    # Optional blocks are not covered by the schema checks above.
    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(
            [
                f'Field "{".".join(str(p) for p in err["loc"])}": {err["msg"]}'
                for err in e.errors()
            ]
        ) from e


@dataclass
class FileCheck:
    """Presence of the files a complete skill ships with."""

    present: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    test_files: list[str] = field(default_factory=list)

    @property
    def has_security_tests(self) -> bool:
        return SECURITY_TEST_FILENAME in self.test_files

    @property
    def has_resilience_tests(self) -> bool:
        return RESILIENCE_TEST_FILENAME in self.test_files


def check_skill_files(skill_path: Path) -> FileCheck:
    """Check which required files and test files exist in a skill directory."""
    check = FileCheck(test_files=list_test_files(skill_path))
    for filename in REQUIRED_FILES:
        if (skill_path / filename).is_file():
            check.present.append(filename)
        else:
            check.missing.append(filename)
    return check
