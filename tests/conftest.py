"""Shared pytest fixtures for skill factory tests."""

import json
from pathlib import Path

import pytest

from skill_factory.core.layout import MANIFEST_FILENAME


def build_manifest(name: str, **overrides) -> dict:
    """Build a well-formed mcp-2026 manifest."""
    manifest = {
        "name": name,
        "version": "1.0.0",
        "protocol": "mcp-2026",
        "tools": [
            {
                "name": name,
                "description": f"{name} capability",
                "inputSchema": {"type": "object"},
            }
        ],
        "runtime": {"type": "bun", "version": ">=1.0.0", "packageManager": "bun"},
        "permissions": {
            "network": [],
            "filesystem": [],
            "env": [],
            "sandbox": {"mode": "strict"},
        },
        "deepAgent": {"supportsProgress": True, "supportsSelfCorrection": True},
        "resourceProfile": {
            "intensity": "low",
            "estimatedTokenUsage": "100-500",
            "estimatedDuration": "1-5s",
            "memoryRequirement": "low",
        },
    }
    manifest.update(overrides)
    return manifest


@pytest.fixture
def project_dir(tmp_path):
    """Provide an empty project root with a skills directory."""
    (tmp_path / "skills").mkdir()
    return tmp_path


@pytest.fixture
def skills_dir(project_dir):
    return project_dir / "skills"


@pytest.fixture
def registry_path(project_dir):
    return project_dir / "registry" / "discovery.json"


@pytest.fixture
def valid_manifest():
    """Provide a well-formed manifest dictionary."""
    return build_manifest("sample-skill")


@pytest.fixture
def make_skill(skills_dir):
    """Factory creating a skill directory with a manifest and optional files.

    Usage: make_skill("web", "page-fetcher", files={"index.ts": "..."})
    """

    def _make(
        category: str,
        name: str,
        manifest=None,
        files: dict[str, str] = None,
        security_tests: bool = True,
    ) -> Path:
        path = skills_dir / category / name
        path.mkdir(parents=True)

        if manifest is None:
            manifest = build_manifest(name)
        if isinstance(manifest, str):
            (path / MANIFEST_FILENAME).write_text(manifest)
        else:
            (path / MANIFEST_FILENAME).write_text(json.dumps(manifest, indent=2))

        for relative, content in (files or {}).items():
            target = path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)

        if security_tests:
            tests_dir = path / "tests"
            tests_dir.mkdir(exist_ok=True)
            (tests_dir / "security.test.ts").write_text("// security tests\n")

        return path

    return _make


@pytest.fixture
def manifest_factory():
    """Provide the manifest builder to tests."""
    return build_manifest


@pytest.fixture
def anyio_backend():
    """Run anyio-marked tests on asyncio, the only backend the installer uses."""
    return "asyncio"
