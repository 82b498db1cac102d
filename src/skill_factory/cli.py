"""CLI application entry point."""

import json
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from skill_factory.config.loader import load_config
from skill_factory.config.schema import SkillFactoryConfig
from skill_factory.core.auditor import AuditResult, Severity, audit_skill
from skill_factory.core.errors import (
    ManifestParseError,
    ManifestValidationError,
    NotFoundError,
    PersistenceError,
    RegistryFormatError,
)
from skill_factory.core.layout import MANIFEST_FILENAME, skill_dir
from skill_factory.core.models import Registry, SkillStatus
from skill_factory.core.registry import RegistryStore, find_skill
from skill_factory.core.sync import register_all, register_one
from skill_factory.core.validator import (
    ProtocolPolicy,
    cast_manifest,
    check_skill_files,
    validate_manifest,
)
from skill_factory.scaffold.creator import SkillExistsError, create_skill
from skill_factory.utils.output import (
    SEVERITY_STYLES,
    console,
    print_bullet,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    name="skill-factory",
    help="Scaffold, validate, register and audit MCP skills",
    no_args_is_help=True,
)

STATUS_STYLES = {
    SkillStatus.PRODUCTION: "green",
    SkillStatus.BETA: "yellow",
    SkillStatus.ALPHA: "blue",
    SkillStatus.DEPRECATED: "red",
}

RootOption = typer.Option(
    None,
    "--root",
    "-r",
    help="Project root containing skills/ and registry/ (default: current directory)",
)
ConfigOption = typer.Option(
    None,
    "--config",
    help="Path to config file (merged over skill-factory.yaml)",
)


def load_project(
    root: Optional[Path], config: Optional[Path]
) -> tuple[SkillFactoryConfig, RegistryStore]:
    """Load configuration and build the registry store for a command.

    Raises:
        typer.Exit: If the configuration cannot be loaded
    """
    try:
        cfg = load_config(root_dir=root, config_path=config)
    except ValidationError as e:
        print_error("Configuration validation failed:")
        console.print(e)
        raise typer.Exit(1)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(1)

    store = RegistryStore(
        cfg.registry_path,
        categories=cfg.settings.categories,
        maintainer=cfg.settings.maintainer,
    )
    return cfg, store


def load_registry(store: RegistryStore) -> Registry:
    """Load the registry for a command.

    Raises:
        typer.Exit: If the registry document violates the registry schema
    """
    try:
        return store.load()
    except RegistryFormatError as e:
        print_error(str(e))
        print_info("Fix or remove the offending record; the file was not modified")
        raise typer.Exit(1)


@app.command()
def create(
    category: str = typer.Option(..., "--category", "-c", help="Skill category"),
    name: str = typer.Option(..., "--name", "-n", help="Skill name (kebab-case)"),
    capability: Optional[str] = typer.Option(
        None, "--capability", "-d", help="Brief description of the skill"
    ),
    dependencies: Optional[list[str]] = typer.Option(
        None,
        "--dependencies",
        help="Packages to install (comma-separated, repeatable)",
    ),
    no_install: bool = typer.Option(
        False, "--no-install", help="Skip dependency installation"
    ),
    root: Optional[Path] = RootOption,
    config: Optional[Path] = ConfigOption,
):
    """Create a new skill and add it to the registry."""
    try:
        cfg, store = load_project(root, config)
        registry = load_registry(store)

        packages = [
            dep.strip()
            for entry in dependencies or []
            for dep in entry.split(",")
            if dep.strip()
        ]

        print_info(f"Creating skill: {name}")
        print_info(f"Category: {category}")
        print_info(f"Dependencies: {', '.join(packages) if packages else 'none'}")

        try:
            registry, created = create_skill(
                cfg,
                registry,
                category=category,
                name=name,
                capability=capability,
                dependencies=packages,
                install=not no_install,
            )
        except (ValueError, SkillExistsError) as e:
            print_error(str(e))
            raise typer.Exit(1)

        print_success(f"Skill files created in {created.path}")

        for step in created.install_steps:
            if step.ok:
                print_success(f"Installed {step.dependency}")
            else:
                print_warning(f"Failed to install {step.dependency}: {step.message}")
        if any(not step.ok for step in created.install_steps):
            print_info("You may need to install failed dependencies manually")

        suggestions = created.record.skill_link.suggested_next_skills
        if suggestions:
            print_info(f"Suggested next skills: {', '.join(suggestions)}")

        store.save(registry)
        print_success(f"Registry updated: {store.registry_path}")

        console.print()
        print_success(f'Skill "{created.record.name}" created successfully')
        print_info(f"MCP Command: {created.record.mcp_command}")

    except typer.Exit:
        raise
    except PersistenceError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(1)


@app.command()
def validate(
    skill: str = typer.Option(..., "--skill", "-s", help="Skill name to validate"),
    lenient_protocol: bool = typer.Option(
        False,
        "--lenient-protocol",
        help="Report a protocol mismatch without failing validation",
    ),
    root: Optional[Path] = RootOption,
    config: Optional[Path] = ConfigOption,
):
    """Validate a skill against the MCP 2026 schema."""
    try:
        cfg, store = load_project(root, config)
        registry = load_registry(store)

        console.print(f"[bold]Validating skill:[/bold] {escape(skill)}")
        console.print()

        record = find_skill(registry, skill)
        if record is None:
            print_error(f'Skill "{skill}" not found in registry')
            raise typer.Exit(1)

        policy = (
            ProtocolPolicy.ADVISORY if lenient_protocol else cfg.settings.protocol_policy
        )
        path = skill_dir(cfg.skills_dir, record.category, skill)
        has_errors = False

        files = check_skill_files(path)
        for filename in files.present:
            print_success(filename)
        for filename in files.missing:
            print_error(f"{filename} - MISSING")
            has_errors = True

        console.print()
        console.print("[bold]MCP Config Validation:[/bold]")

        try:
            data = json.loads((path / MANIFEST_FILENAME).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            print_error(f"Failed to parse {MANIFEST_FILENAME}: {e}")
            data = None
            has_errors = True

        if data is not None:
            report = validate_manifest(data)
            blocking = report.blocking_errors(policy)

            # Blocks outside the required schema are checked by the typed cast.
            cast_errors: list[str] = []
            if not blocking:
                try:
                    cast_manifest(data, policy)
                except ManifestValidationError as e:
                    cast_errors = e.errors

            if blocking:
                print_error("MCP config schema validation failed:")
                for error in report.errors:
                    print_bullet(error, style="red")
                has_errors = True
            elif cast_errors:
                print_error("MCP config has malformed optional blocks:")
                for error in cast_errors:
                    print_bullet(error, style="red")
                has_errors = True
            elif report.valid:
                print_success("MCP config passes 2026 schema validation")
            else:
                print_warning(
                    "MCP config accepted under advisory protocol policy:"
                )
                print_bullet(report.protocol_error or "", style="yellow")

            for warning in report.warnings:
                print_warning(warning)

            if isinstance(data, dict):
                _print_manifest_details(data)

        console.print()
        if files.test_files:
            print_success(f"Test files: {', '.join(files.test_files)}")
            if files.has_security_tests:
                print_success("Security tests present")
            else:
                print_warning("Missing security.test.ts (2026 Standard)")
            if files.has_resilience_tests:
                print_success("Resilience tests present")
            else:
                print_warning("Missing resilience.test.ts")
        else:
            print_warning("No test files found")

        console.print()
        if has_errors:
            print_error("Validation failed with errors")
            raise typer.Exit(1)

        print_success(f'Skill "{skill}" is valid!')

    except typer.Exit:
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(1)


def _print_manifest_details(data: dict) -> None:
    runtime = data.get("runtime")
    if isinstance(runtime, dict):
        print_success(f"Runtime configured: {runtime.get('type', 'unknown')}")

    if isinstance(data.get("permissions"), dict):
        print_success("Permissions declared")

    deep_agent = data.get("deepAgent")
    if isinstance(deep_agent, dict):
        print_success(
            "Deep Agent config: "
            f"progress={str(deep_agent.get('supportsProgress', False)).lower()}, "
            f"self-correction={str(deep_agent.get('supportsSelfCorrection', False)).lower()}"
        )

    profile = data.get("resourceProfile")
    if isinstance(profile, dict):
        print_success(
            f"Resource profile: {profile.get('intensity', 'unknown')} intensity"
        )


@app.command()
def register(
    skill: Optional[str] = typer.Option(
        None, "--skill", "-s", help="Skill name to register"
    ),
    all_skills: bool = typer.Option(
        False, "--all", help="Register all local skills"
    ),
    root: Optional[Path] = RootOption,
    config: Optional[Path] = ConfigOption,
):
    """Register skill(s) found in the skills directory."""
    try:
        if not all_skills and not skill:
            print_error("Please specify --skill <name> or --all")
            raise typer.Exit(1)

        cfg, store = load_project(root, config)
        registry = load_registry(store)

        console.print("[bold]Registering skills...[/bold]")
        console.print()

        if all_skills:
            registry, report = register_all(registry, cfg.skills_dir)

            for name in report.registered:
                print_success(f"Registered: {name}")
            for name in report.updated:
                print_info(f"Updated: {name}")
            for failure in report.failures:
                print_error(f"Failed to register {failure.name}: {failure.reason}")

            store.save(registry)

            console.print()
            console.print("[bold]Registration complete:[/bold]")
            console.print(f"  Registered: {len(report.registered)}")
            console.print(f"  Updated: {len(report.updated)}")
            if report.failures:
                console.print(f"  Failed: {len(report.failures)}")
            console.print(f"  Total: {report.total}")
            return

        try:
            registry, report = register_one(registry, cfg.skills_dir, skill)
        except (NotFoundError, ManifestParseError) as e:
            print_error(str(e))
            raise typer.Exit(1)

        store.save(registry)

        if report.registered:
            print_success(f"Registered skill: {skill}")
        else:
            print_success(f"Updated skill: {skill}")

    except typer.Exit:
        raise
    except PersistenceError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(1)


def print_audit_result(result: AuditResult) -> None:
    """Print audit findings grouped by severity, followed by the tally."""
    for severity in Severity:
        findings = result.by_severity(severity)
        if not findings:
            continue

        style = SEVERITY_STYLES[severity.value]
        console.print(
            f"{severity.value.upper()} ({len(findings)})", style=style, highlight=False
        )
        for finding in findings:
            location = f" [{finding.location}]" if finding.location else ""
            print_bullet(f"[{finding.category}] {finding.message}{location}", style=style)
        console.print()

    summary = result.summary
    console.print("[bold]Audit Summary:[/bold]")
    for severity in Severity:
        count = summary[severity]
        style = SEVERITY_STYLES[severity.value] if count else "green"
        label = f"{severity.value.capitalize()}:"
        console.print(f"  {label:<10}{count}", style=style, highlight=False)


@app.command()
def audit(
    skill: str = typer.Option(..., "--skill", "-s", help="Skill name to audit"),
    root: Optional[Path] = RootOption,
    config: Optional[Path] = ConfigOption,
):
    """Run a static security audit on a skill."""
    try:
        cfg, store = load_project(root, config)
        registry = load_registry(store)

        console.print(f"[bold]Security Audit:[/bold] {escape(skill)}")
        console.print()

        result = audit_skill(skill, registry, cfg.skills_dir)

        if not result.findings:
            print_success("No security issues found!")
            print_info("Skill passes security audit.")
            return

        print_audit_result(result)
        console.print()

        if result.passed:
            print_success(
                "Audit PASSED (minor issues found, no critical/high severity)"
            )
            return

        print_error("Audit FAILED (critical or high severity issues found)")
        print_warning("Fix the issues above before registering this skill.")
        raise typer.Exit(1)

    except typer.Exit:
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(1)


@app.command("list")
def list_skills(
    root: Optional[Path] = RootOption,
    config: Optional[Path] = ConfigOption,
):
    """List all registered skills."""
    try:
        cfg, store = load_project(root, config)
        registry = load_registry(store)

        console.print("[bold]Skill Registry[/bold]")
        console.print(f"Total Skills: {len(registry.skills)}")
        console.print(f"Categories: {', '.join(registry.categories)}")
        console.print()

        if not registry.skills:
            print_info("No skills registered yet.")
            print_info("Run 'skill-factory register --all' to register local skills")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Name", style="green")
        table.add_column("Category")
        table.add_column("Capability")
        table.add_column("MCP Command")
        table.add_column("Status")

        for record in registry.skills:
            style = STATUS_STYLES.get(record.status, "")
            table.add_row(
                escape(record.name),
                escape(record.category),
                escape(record.capability),
                escape(record.mcp_command),
                f"[{style}]{record.status.value}[/{style}]",
            )

        console.print(table)

    except typer.Exit:
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
