"""Static security audit of a registered skill.

The auditor never runs skill code. It scans a fixed set of source files line
by line against ``SECURITY_RULES``, inspects the permissions declared in the
manifest and checks that the skill ships security tests.
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import NamedTuple, Optional

from pydantic import ValidationError

from skill_factory.core.layout import (
    AUDITED_SOURCE_FILES,
    MANIFEST_FILENAME,
    SECURITY_TEST_FILENAME,
    TESTS_DIRNAME,
    has_security_tests,
    skill_dir,
)
from skill_factory.core.models import ManifestDocument, Registry
from skill_factory.core.registry import find_skill


class Severity(str, Enum):
    """Severity of an audit finding, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Severities that fail the audit gate.
BLOCKING_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)

DISABLED_SANDBOX_MODES = ("none", "disabled")


class SecurityRule(NamedTuple):
    """A line pattern the auditor flags."""

    pattern: re.Pattern
    severity: Severity
    category: str
    message: str


SECURITY_RULES: list[SecurityRule] = [
    SecurityRule(
        re.compile(r"eval\s*\("),
        Severity.CRITICAL,
        "code-injection",
        "Use of eval() - potential code injection",
    ),
    SecurityRule(
        re.compile(r"Function\s*\("),
        Severity.CRITICAL,
        "code-injection",
        "Dynamic Function creation - potential code injection",
    ),
    SecurityRule(
        re.compile(r"exec\s*\("),
        Severity.HIGH,
        "command-injection",
        "exec() call - potential command injection",
    ),
    SecurityRule(
        re.compile(r"spawn\s*\("),
        Severity.HIGH,
        "command-injection",
        "spawn() call - potential command injection",
    ),
    SecurityRule(
        re.compile(r"child_process"),
        Severity.HIGH,
        "command-injection",
        "child_process import - review for command injection",
    ),
    SecurityRule(
        re.compile(r"process\.env\.[A-Z_]+\s*[+`]"),
        Severity.MEDIUM,
        "secret-leak",
        "Potential environment variable leak in string",
    ),
    SecurityRule(
        re.compile(r"password\s*=\s*[\"'][^\"']+[\"']"),
        Severity.HIGH,
        "hardcoded-secret",
        "Hardcoded password detected",
    ),
    SecurityRule(
        re.compile(r"api[_-]?key\s*=\s*[\"'][^\"']+[\"']", re.IGNORECASE),
        Severity.HIGH,
        "hardcoded-secret",
        "Hardcoded API key detected",
    ),
    SecurityRule(
        re.compile(r"secret\s*=\s*[\"'][^\"']+[\"']", re.IGNORECASE),
        Severity.HIGH,
        "hardcoded-secret",
        "Hardcoded secret detected",
    ),
    SecurityRule(
        re.compile(r"file:///"),
        Severity.MEDIUM,
        "ssrf",
        "file:// protocol usage - potential SSRF",
    ),
    SecurityRule(
        re.compile(r"\.\./"),
        Severity.MEDIUM,
        "path-traversal",
        "Path traversal pattern detected",
    ),
]


@dataclass
class AuditFinding:
    """A single issue reported by the audit.

    Attributes:
        severity: How serious the issue is
        category: Issue family (code-injection, permissions, ...)
        message: Human readable description
        file: File the issue was found in, relative to the skill directory
        line: 1-based line number within ``file``
    """

    severity: Severity
    category: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None

    @property
    def location(self) -> str:
        if not self.file:
            return ""
        if self.line:
            return f"{self.file}:{self.line}"
        return self.file


@dataclass
class AuditResult:
    """Findings of an audit and the resulting gate verdict."""

    findings: list[AuditFinding] = field(default_factory=list)

    def add(self, finding: AuditFinding) -> None:
        self.findings.append(finding)

    @property
    def summary(self) -> dict[Severity, int]:
        counts = {severity: 0 for severity in Severity}
        for finding in self.findings:
            counts[finding.severity] += 1
        return counts

    @property
    def passed(self) -> bool:
        """The gate passes when there are no critical or high findings."""
        counts = self.summary
        return all(counts[severity] == 0 for severity in BLOCKING_SEVERITIES)

    def by_severity(self, severity: Severity) -> list[AuditFinding]:
        return [f for f in self.findings if f.severity == severity]


def scan_source(
    content: str, filename: str, rules: list[SecurityRule] = SECURITY_RULES
) -> list[AuditFinding]:
    """Scan source text line by line against the rule table.

    Every rule that matches a line produces its own finding; a line can
    produce several findings.
    """
    findings = []
    for line_number, line in enumerate(content.split("\n"), start=1):
        for rule in rules:
            if rule.pattern.search(line):
                findings.append(
                    AuditFinding(
                        severity=rule.severity,
                        category=rule.category,
                        message=rule.message,
                        file=filename,
                        line=line_number,
                    )
                )
    return findings


def audit_permissions(manifest: ManifestDocument) -> list[AuditFinding]:
    """Flag overly permissive settings in a manifest's permissions block."""
    findings = []

    if manifest.sandbox_mode() in DISABLED_SANDBOX_MODES:
        findings.append(
            AuditFinding(
                severity=Severity.HIGH,
                category="permissions",
                message="Sandbox mode is disabled - skill runs without restrictions",
                file=MANIFEST_FILENAME,
            )
        )

    if "*" in manifest.network_permissions():
        findings.append(
            AuditFinding(
                severity=Severity.MEDIUM,
                category="permissions",
                message="Wildcard network permission - consider restricting domains",
                file=MANIFEST_FILENAME,
            )
        )

    return findings


def _read_manifest(path: Path) -> Optional[ManifestDocument]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ManifestDocument.model_validate(data)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError):
        return None


def audit_skill(name: str, registry: Registry, skills_dir: Path) -> AuditResult:
    """Run the security audit for a registered skill.

    Args:
        name: Skill identifier to audit
        registry: Registry used to resolve the skill's category
        skills_dir: Root of the skills tree

    Returns:
        AuditResult with all findings
    """
    result = AuditResult()

    record = find_skill(registry, name)
    if record is None:
        result.add(
            AuditFinding(
                severity=Severity.CRITICAL,
                category="registry",
                message=f'Skill "{name}" not found in registry',
            )
        )
        return result

    path = skill_dir(skills_dir, record.category, name)

    for filename in AUDITED_SOURCE_FILES:
        source_path = path / filename
        if not source_path.is_file():
            continue
        content = source_path.read_text(encoding="utf-8", errors="replace")
        for finding in scan_source(content, filename):
            result.add(finding)

    manifest = _read_manifest(path / MANIFEST_FILENAME)
    if manifest is None:
        result.add(
            AuditFinding(
                severity=Severity.LOW,
                category="config",
                message=f"Could not parse {MANIFEST_FILENAME} for security review",
            )
        )
    else:
        for finding in audit_permissions(manifest):
            result.add(finding)

    if not has_security_tests(path):
        result.add(
            AuditFinding(
                severity=Severity.MEDIUM,
                category="testing",
                message=(
                    "Missing security test file "
                    f"({TESTS_DIRNAME}/{SECURITY_TEST_FILENAME})"
                ),
            )
        )

    return result
