"""Integration tests for CLI commands."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from skill_factory.cli import app
from skill_factory.core.layout import MANIFEST_FILENAME

runner = CliRunner()


def invoke(project_dir, *args):
    return runner.invoke(app, [*args, "--root", str(project_dir)])


def read_registry(project_dir) -> dict:
    return json.loads((project_dir / "registry" / "discovery.json").read_text())


@pytest.fixture
def created_skill(project_dir):
    """Create a complete skill through the CLI."""
    result = invoke(
        project_dir,
        "create",
        "--category",
        "web",
        "--name",
        "page-fetcher",
        "--capability",
        "Fetch web pages",
        "--no-install",
    )
    assert result.exit_code == 0, result.stdout
    return project_dir / "skills" / "web" / "page-fetcher"


class TestCreateCommand:
    """Test 'skill-factory create' command."""

    def test_create_writes_skill_and_registry(self, project_dir, created_skill):
        """Test that create scaffolds files and registers the skill."""
        assert (created_skill / MANIFEST_FILENAME).exists()
        assert (created_skill / "tests" / "security.test.ts").exists()

        registry = read_registry(project_dir)
        assert [s["name"] for s in registry["skills"]] == ["page-fetcher"]
        assert registry["skills"][0]["mcpCommand"] == "mcp__page_fetcher__main"
        assert registry["skills"][0]["status"] == "alpha"

    def test_create_splits_dependencies(self, project_dir):
        result = invoke(
            project_dir,
            "create",
            "-c",
            "data",
            "-n",
            "csv-parser",
            "--dependencies",
            "zod, papaparse",
            "--dependencies",
            "lodash",
            "--no-install",
        )

        assert result.exit_code == 0
        skill = read_registry(project_dir)["skills"][0]
        assert skill["dependencies"] == ["zod", "papaparse", "lodash"]

    def test_create_unknown_category(self, project_dir):
        result = invoke(project_dir, "create", "-c", "games", "-n", "chess")

        assert result.exit_code == 1
        assert "Unknown category" in result.stdout

    def test_create_existing_skill(self, project_dir, created_skill):
        result = invoke(
            project_dir, "create", "-c", "web", "-n", "page-fetcher", "--no-install"
        )

        assert result.exit_code == 1
        assert "already exists" in result.stdout


class TestValidateCommand:
    """Test 'skill-factory validate' command."""

    def test_validate_created_skill(self, project_dir, created_skill):
        result = invoke(project_dir, "validate", "--skill", "page-fetcher")

        assert result.exit_code == 0
        assert "passes 2026 schema validation" in result.stdout
        assert "is valid!" in result.stdout

    def test_validate_unregistered_skill(self, project_dir):
        result = invoke(project_dir, "validate", "-s", "ghost")

        assert result.exit_code == 1
        assert "not found in registry" in result.stdout

    def test_validate_invalid_manifest(self, project_dir, created_skill):
        manifest_path = created_skill / MANIFEST_FILENAME
        manifest = json.loads(manifest_path.read_text())
        manifest["version"] = "latest"
        manifest_path.write_text(json.dumps(manifest))

        result = invoke(project_dir, "validate", "-s", "page-fetcher")

        assert result.exit_code == 1
        assert "latest" in result.stdout
        assert "Validation failed" in result.stdout

    def test_validate_missing_files(self, project_dir, make_skill):
        make_skill("code", "lint-runner")
        invoke(project_dir, "register", "--all")

        result = invoke(project_dir, "validate", "-s", "lint-runner")

        assert result.exit_code == 1
        assert "MISSING" in result.stdout

    def test_validate_malformed_optional_block(self, project_dir, created_skill):
        """Test that validate rejects what register would reject."""
        manifest_path = created_skill / MANIFEST_FILENAME
        manifest = json.loads(manifest_path.read_text())
        manifest["resourceProfile"]["intensity"] = "extreme"
        manifest_path.write_text(json.dumps(manifest))

        result = invoke(project_dir, "validate", "-s", "page-fetcher")

        assert result.exit_code == 1
        assert "malformed optional blocks" in result.stdout
        assert "resourceProfile.intensity" in result.stdout
        assert "passes 2026 schema" not in result.stdout
        assert invoke(project_dir, "register", "-s", "page-fetcher").exit_code == 1


class TestProtocolPolicy:
    """Test protocol mismatch handling in 'validate'."""

    @pytest.fixture
    def old_protocol_skill(self, created_skill):
        manifest_path = created_skill / MANIFEST_FILENAME
        manifest = json.loads(manifest_path.read_text())
        manifest["protocol"] = "mcp-2025"
        manifest_path.write_text(json.dumps(manifest))
        return created_skill

    def test_strict_policy_fails(self, project_dir, old_protocol_skill):
        result = invoke(project_dir, "validate", "-s", "page-fetcher")

        assert result.exit_code == 1
        assert "mcp-2025" in result.stdout

    def test_lenient_flag_passes(self, project_dir, old_protocol_skill):
        result = invoke(
            project_dir, "validate", "-s", "page-fetcher", "--lenient-protocol"
        )

        assert result.exit_code == 0
        assert "advisory protocol policy" in result.stdout

    def test_advisory_policy_from_config(self, project_dir, old_protocol_skill):
        (project_dir / "skill-factory.yaml").write_text(
            yaml.dump({"settings": {"protocol_policy": "advisory"}})
        )

        result = invoke(project_dir, "validate", "-s", "page-fetcher")

        assert result.exit_code == 0


class TestRegisterCommand:
    """Test 'skill-factory register' command."""

    def test_register_requires_target(self, project_dir):
        result = invoke(project_dir, "register")

        assert result.exit_code == 1
        assert "--skill <name> or --all" in result.stdout

    def test_register_all(self, project_dir, make_skill):
        make_skill("web", "page-fetcher")
        make_skill("data", "csv-parser")

        result = invoke(project_dir, "register", "--all")

        assert result.exit_code == 0
        assert "Registered: csv-parser" in result.stdout
        assert "Registered: page-fetcher" in result.stdout
        assert "Total: 2" in result.stdout
        names = [s["name"] for s in read_registry(project_dir)["skills"]]
        assert sorted(names) == ["csv-parser", "page-fetcher"]

    def test_register_all_twice_updates(self, project_dir, make_skill):
        make_skill("web", "page-fetcher")
        invoke(project_dir, "register", "--all")

        result = invoke(project_dir, "register", "--all")

        assert result.exit_code == 0
        assert "Updated: page-fetcher" in result.stdout
        assert len(read_registry(project_dir)["skills"]) == 1

    def test_register_all_reports_broken_manifest(self, project_dir, make_skill):
        """Test that one broken manifest does not block the others."""
        make_skill("web", "page-fetcher")
        make_skill("web", "broken-skill", manifest="{not json")

        result = invoke(project_dir, "register", "--all")

        assert result.exit_code == 0
        assert "Failed to register broken-skill" in result.stdout
        names = [s["name"] for s in read_registry(project_dir)["skills"]]
        assert names == ["page-fetcher"]

    def test_register_single(self, project_dir, make_skill):
        make_skill("automation", "cron-runner")

        result = invoke(project_dir, "register", "-s", "cron-runner")

        assert result.exit_code == 0
        assert "Registered skill: cron-runner" in result.stdout

    def test_register_single_not_found(self, project_dir):
        result = invoke(project_dir, "register", "-s", "ghost")

        assert result.exit_code == 1
        assert "not found in local skills directory" in result.stdout
        assert not (project_dir / "registry" / "discovery.json").exists()


class TestAuditCommand:
    """Test 'skill-factory audit' command."""

    def test_audit_clean_skill(self, project_dir, created_skill):
        result = invoke(project_dir, "audit", "-s", "page-fetcher")

        assert result.exit_code == 0
        assert "No security issues found!" in result.stdout

    def test_audit_fails_on_critical(self, project_dir, make_skill):
        make_skill(
            "code",
            "code-runner",
            files={"index.ts": "const x = 1;\nconst y = eval(input);\n"},
        )
        invoke(project_dir, "register", "--all")

        result = invoke(project_dir, "audit", "-s", "code-runner")

        assert result.exit_code == 1
        assert "CRITICAL (1)" in result.stdout
        assert "[code-injection]" in result.stdout
        assert "index.ts:2" in result.stdout
        assert "Audit FAILED" in result.stdout

    def test_audit_passes_with_minor_findings(self, project_dir, make_skill):
        make_skill("code", "lint-runner", security_tests=False)
        invoke(project_dir, "register", "--all")

        result = invoke(project_dir, "audit", "-s", "lint-runner")

        assert result.exit_code == 0
        assert "MEDIUM (1)" in result.stdout
        assert "Audit PASSED" in result.stdout

    def test_audit_unregistered_skill(self, project_dir):
        result = invoke(project_dir, "audit", "-s", "ghost")

        assert result.exit_code == 1
        assert "not found in registry" in result.stdout


class TestListCommand:
    """Test 'skill-factory list' command."""

    def test_list_empty(self, project_dir):
        result = invoke(project_dir, "list")

        assert result.exit_code == 0
        assert "Total Skills: 0" in result.stdout
        assert "No skills registered yet" in result.stdout

    def test_list_registered(self, project_dir, created_skill):
        result = invoke(project_dir, "list")

        assert result.exit_code == 0
        assert "Total Skills: 1" in result.stdout
        assert "alpha" in result.stdout


class TestConfigErrors:
    """Test commands with an invalid configuration."""

    def test_invalid_config_exits(self, project_dir):
        (project_dir / "skill-factory.yaml").write_text(
            yaml.dump({"settings": {"categories": []}})
        )

        result = invoke(project_dir, "list")

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.stdout


class TestInvalidRegistry:
    """Test commands over a registry document that violates its schema."""

    @pytest.fixture
    def legacy_registry(self, project_dir, created_skill):
        registry_path = project_dir / "registry" / "discovery.json"
        document = json.loads(registry_path.read_text())
        legacy = dict(document["skills"][0], name="legacy", version="1.0")
        document["skills"].append(legacy)
        registry_path.write_text(json.dumps(document))
        return registry_path

    def test_register_refuses_to_overwrite(
        self, project_dir, legacy_registry, make_skill
    ):
        """Test that existing records survive a registry that fails to load."""
        make_skill("data", "new-one")
        original = legacy_registry.read_bytes()

        result = invoke(project_dir, "register", "--all")

        assert result.exit_code == 1
        assert "Invalid registry" in result.stdout
        assert legacy_registry.read_bytes() == original

    def test_list_reports_invalid_registry(self, project_dir, legacy_registry):
        result = invoke(project_dir, "list")

        assert result.exit_code == 1
        assert "legacy" in result.stdout
