"""On-disk layout of a skill directory."""

from dataclasses import dataclass
from pathlib import Path

MANIFEST_FILENAME = "mcp-config.json"
ENTRY_FILENAME = "index.ts"
TESTS_DIRNAME = "tests"
TEST_FILE_SUFFIX = ".test.ts"
SECURITY_TEST_FILENAME = "security.test.ts"
RESILIENCE_TEST_FILENAME = "resilience.test.ts"

# Files every generated skill ships with, in the order they are reported.
REQUIRED_FILES = (
    ENTRY_FILENAME,
    "types.ts",
    "utils.ts",
    "resilience.ts",
    "progress.ts",
    MANIFEST_FILENAME,
    "README.md",
)

# Source files scanned by the security auditor, in scan order.
AUDITED_SOURCE_FILES = (
    ENTRY_FILENAME,
    "utils.ts",
    "resilience.ts",
    "progress.ts",
)


@dataclass
class SkillCandidate:
    """A skill directory found on disk that carries a manifest.

    Attributes:
        name: Directory name, used as the skill identifier
        category: Category directory the skill lives under
        path: Absolute path to the skill directory
    """

    name: str
    category: str
    path: Path

    @property
    def manifest_path(self) -> Path:
        return self.path / MANIFEST_FILENAME


def skill_dir(skills_dir: Path, category: str, name: str) -> Path:
    """Return the directory of a skill within the skills tree."""
    return skills_dir / category / name


def entrypoint_for(category: str, name: str) -> str:
    """Return the registry entrypoint string for a skill."""
    return f"./skills/{category}/{name}/{ENTRY_FILENAME}"


def list_test_files(path: Path) -> list[str]:
    """List test file names under a skill's tests directory, sorted."""
    tests_dir = path / TESTS_DIRNAME
    if not tests_dir.is_dir():
        return []
    return sorted(
        entry.name
        for entry in tests_dir.iterdir()
        if entry.is_file() and entry.name.endswith(TEST_FILE_SUFFIX)
    )


def has_security_tests(path: Path) -> bool:
    return (path / TESTS_DIRNAME / SECURITY_TEST_FILENAME).is_file()
